from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional

from .enums import ChangeType, Priority


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    title: str
    date: date
    list_id: int
    description: str | None = None
    priority: Priority = Priority.NONE
    deadline: Optional[datetime] = None
    estimate_hours: int | None = None
    estimate_minutes: int | None = None
    actual_hours: int | None = None
    actual_minutes: int | None = None
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    is_recurring: bool = False
    recurrence_type: str | None = None
    recurrence_interval: int | None = None
    recurrence_end_date: Optional[date] = None
    reminders: list[dict[str, Any]] | None = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class TaskChangeEntity:
    id: int | None
    task_id: int
    change_type: ChangeType
    changed_fields: dict[str, Any] | None
    old_value: dict[str, Any] | None
    new_value: dict[str, Any] | None
    changed_by: str | None
    created_at: datetime


@dataclass
class RecurrenceReport:
    """Outcome of one processing cycle.

    ``created`` maps each source task id to the id of the occurrence generated
    from it. ``skipped`` holds due tasks that had no next occurrence (no rule,
    past the end date, or already generated) and ``failed`` holds tasks whose
    processing raised.
    """

    reference_date: date
    created: dict[int, int] = field(default_factory=dict)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def due_count(self) -> int:
        return len(self.created) + len(self.skipped) + len(self.failed)
