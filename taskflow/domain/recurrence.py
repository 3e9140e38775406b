"""Date arithmetic for recurring tasks.

All dates are naive calendar dates. Month and year steps keep the day of
month and let any excess roll into the following month, so Jan 31 plus one
month lands in early March rather than being clamped to the end of February.
"""
from __future__ import annotations

from datetime import date, timedelta

from .enums import RecurrenceType

SATURDAY = 5


def parse_recurrence_type(value: RecurrenceType | str | None) -> RecurrenceType | None:
    if value is None or isinstance(value, RecurrenceType):
        return value
    try:
        return RecurrenceType(value)
    except ValueError:
        return None


def normalize_interval(interval: int | None) -> int:
    return max(int(interval or 1), 1)


def calculate_next_recurring_date(
    current: date,
    recurrence_type: RecurrenceType | str | None,
    interval: int | None = None,
) -> date | None:
    """Return the date of the occurrence after ``current``.

    ``None`` means the rule is absent or unrecognized and no occurrence
    follows. The result depends only on the arguments.
    """
    rule = parse_recurrence_type(recurrence_type)
    if rule is None:
        return None

    step = normalize_interval(interval)

    if rule in (RecurrenceType.DAILY, RecurrenceType.CUSTOM):
        return current + timedelta(days=step)
    if rule == RecurrenceType.WEEKLY:
        return current + timedelta(weeks=step)
    if rule == RecurrenceType.WEEKDAY:
        return add_weekdays(current, step)
    if rule == RecurrenceType.MONTHLY:
        return add_months(current, step)
    if rule == RecurrenceType.YEARLY:
        return add_months(current, step * 12)
    raise ValueError(f"Unhandled recurrence type: {rule!r}")


def is_weekday(value: date) -> bool:
    return value.weekday() < SATURDAY


def add_weekdays(base: date, count: int) -> date:
    current = base
    remaining = count
    while remaining > 0:
        current += timedelta(days=1)
        if is_weekday(current):
            remaining -= 1
    return current


def add_months(base: date, months: int) -> date:
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    # Overflowing days carry into the next month instead of clamping.
    return date(year, month, 1) + timedelta(days=base.day - 1)


def is_past_end_date(next_date: date, end_date: date | None) -> bool:
    """The end date is inclusive: only dates strictly after it are excluded."""
    return end_date is not None and next_date > end_date
