from __future__ import annotations

from datetime import date, timedelta

import pytest

from taskflow.domain.enums import RecurrenceType
from taskflow.domain.recurrence import (
    add_months,
    add_weekdays,
    calculate_next_recurring_date,
    is_past_end_date,
    parse_recurrence_type,
)


@pytest.mark.parametrize("rule", ["daily", "custom"])
@pytest.mark.parametrize("interval", [1, 3, 10, 45])
def test_daily_and_custom_add_days(rule: str, interval: int) -> None:
    start = date(2024, 1, 1)
    assert calculate_next_recurring_date(start, rule, interval) == start + timedelta(days=interval)


@pytest.mark.parametrize("interval", [1, 2, 5])
def test_weekly_adds_whole_weeks(interval: int) -> None:
    start = date(2024, 2, 26)
    assert calculate_next_recurring_date(start, "weekly", interval) == start + timedelta(days=7 * interval)


def test_missing_interval_defaults_to_one() -> None:
    start = date(2024, 1, 1)
    assert calculate_next_recurring_date(start, "daily") == date(2024, 1, 2)
    assert calculate_next_recurring_date(start, "daily", None) == date(2024, 1, 2)
    assert calculate_next_recurring_date(start, "daily", 0) == date(2024, 1, 2)
    assert calculate_next_recurring_date(start, "weekly", -3) == date(2024, 1, 8)


def test_unknown_or_missing_rule_has_no_next_date() -> None:
    start = date(2024, 1, 1)
    assert calculate_next_recurring_date(start, None, 1) is None
    assert calculate_next_recurring_date(start, "bogus", 1) is None
    assert calculate_next_recurring_date(start, "", 1) is None
    assert calculate_next_recurring_date(start, "Daily", 1) is None


def test_enum_members_are_accepted() -> None:
    start = date(2024, 1, 1)
    assert calculate_next_recurring_date(start, RecurrenceType.WEEKLY, 1) == date(2024, 1, 8)
    assert parse_recurrence_type(RecurrenceType.YEARLY) is RecurrenceType.YEARLY
    assert parse_recurrence_type("monthly") is RecurrenceType.MONTHLY
    assert parse_recurrence_type("fortnightly") is None


@pytest.mark.parametrize(
    ("start", "interval", "expected"),
    [
        (date(2024, 1, 5), 1, date(2024, 1, 8)),  # Friday -> Monday
        (date(2024, 1, 6), 1, date(2024, 1, 8)),  # Saturday -> Monday
        (date(2024, 1, 7), 1, date(2024, 1, 8)),  # Sunday -> Monday
        (date(2024, 1, 3), 3, date(2024, 1, 8)),
        (date(2024, 1, 1), 5, date(2024, 1, 8)),
        (date(2024, 1, 1), 10, date(2024, 1, 15)),
    ],
)
def test_weekday_skips_weekends(start: date, interval: int, expected: date) -> None:
    assert calculate_next_recurring_date(start, "weekday", interval) == expected


def test_weekday_result_counts_exactly_interval_weekdays() -> None:
    for offset in range(14):
        start = date(2024, 3, 1) + timedelta(days=offset)
        for interval in range(1, 8):
            result = calculate_next_recurring_date(start, "weekday", interval)
            assert result.weekday() < 5
            between = [start + timedelta(days=n) for n in range(1, (result - start).days + 1)]
            assert sum(1 for day in between if day.weekday() < 5) == interval


@pytest.mark.parametrize(
    ("start", "interval", "expected"),
    [
        (date(2024, 1, 15), 1, date(2024, 2, 15)),
        (date(2024, 12, 15), 1, date(2025, 1, 15)),
        (date(2024, 1, 31), 1, date(2024, 3, 2)),
        (date(2023, 1, 31), 1, date(2023, 3, 3)),
        (date(2024, 3, 31), 1, date(2024, 5, 1)),
        (date(2024, 11, 30), 3, date(2025, 3, 2)),
        (date(2024, 5, 10), 14, date(2025, 7, 10)),
    ],
)
def test_monthly_carries_day_with_overflow(start: date, interval: int, expected: date) -> None:
    assert calculate_next_recurring_date(start, "monthly", interval) == expected


@pytest.mark.parametrize(
    ("start", "interval", "expected"),
    [
        (date(2023, 6, 10), 2, date(2025, 6, 10)),
        (date(2024, 2, 29), 1, date(2025, 3, 1)),
        (date(2024, 2, 29), 4, date(2028, 2, 29)),
    ],
)
def test_yearly(start: date, interval: int, expected: date) -> None:
    assert calculate_next_recurring_date(start, "yearly", interval) == expected


def test_month_steps_round_trip_when_day_exists_in_both_months() -> None:
    start = date(2024, 3, 15)
    forward = add_months(start, 5)
    assert add_months(forward, -5) == start


def test_same_inputs_give_same_result() -> None:
    start = date(2024, 1, 31)
    first = calculate_next_recurring_date(start, "monthly", 1)
    second = calculate_next_recurring_date(start, "monthly", 1)
    assert first == second == date(2024, 3, 2)


def test_add_weekdays_zero_is_identity() -> None:
    assert add_weekdays(date(2024, 1, 6), 0) == date(2024, 1, 6)


def test_end_date_is_inclusive() -> None:
    end = date(2024, 1, 10)
    assert not is_past_end_date(date(2024, 1, 10), end)
    assert is_past_end_date(date(2024, 1, 11), end)
    assert not is_past_end_date(date(2030, 1, 1), None)
