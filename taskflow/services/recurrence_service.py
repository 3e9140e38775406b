from __future__ import annotations

import logging
from datetime import date

from taskflow.domain.entities import RecurrenceReport, TaskEntity
from taskflow.domain.enums import ChangeType, RecurrenceType
from taskflow.domain.recurrence import calculate_next_recurring_date, is_past_end_date
from taskflow.infra.repository import TaskRepository

logger = logging.getLogger(__name__)


class RecurrenceService:
    """Generates the next occurrence of completed recurring tasks.

    Meant to be driven once per cycle by an external scheduler. A task is due
    when it is recurring, completed, and dated on the cycle's reference date.
    """

    def __init__(self, repo: TaskRepository, changed_by: str | None = None) -> None:
        self._repo = repo
        self._changed_by = changed_by

    def process_recurring_tasks(self, reference_date: date | None = None) -> RecurrenceReport:
        reference_date = reference_date or date.today()
        report = RecurrenceReport(reference_date=reference_date)

        due_tasks = self._repo.find_due_recurring_tasks(reference_date)
        for task in due_tasks:
            try:
                new_task = self._generate_next(task)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to generate next occurrence for task %s", task.id)
                report.failed.append(task.id)
                continue

            if new_task is None:
                report.skipped.append(task.id)
            else:
                report.created[task.id] = new_task.id

        logger.info(
            "Recurring tasks for %s: due=%d created=%d skipped=%d failed=%d",
            reference_date.isoformat(),
            len(due_tasks),
            len(report.created),
            len(report.skipped),
            len(report.failed),
        )
        return report

    @staticmethod
    def calculate_next_recurring_date(
        current: date, recurrence_type: RecurrenceType | str | None, interval: int | None = None
    ) -> date | None:
        return calculate_next_recurring_date(current, recurrence_type, interval)

    def _generate_next(self, task: TaskEntity) -> TaskEntity | None:
        next_date = calculate_next_recurring_date(
            task.date, task.recurrence_type, task.recurrence_interval
        )
        if next_date is None:
            logger.debug("Task %s has no usable recurrence rule: %r", task.id, task.recurrence_type)
            return None
        if is_past_end_date(next_date, task.recurrence_end_date):
            logger.debug(
                "Task %s recurrence ended on %s, next date %s skipped",
                task.id,
                task.recurrence_end_date,
                next_date,
            )
            return None

        with self._repo.transaction() as store:
            if store.has_generated(task.id, next_date):
                logger.debug("Task %s already generated an occurrence for %s", task.id, next_date)
                return None

            new_task = store.insert_task(self._build_occurrence(task, next_date))
            copied = store.copy_label_associations(task.id, new_task.id)
            store.record_generation(task.id, next_date, new_task.id)
            store.record_change(
                new_task.id,
                ChangeType.CREATE,
                new_value=new_task,
                changed_by=self._changed_by,
                changed_fields={
                    "recurrence_source_id": task.id,
                    "date": next_date.isoformat(),
                },
            )

        logger.debug(
            "Task %s recurred as task %s on %s with %d label(s)",
            task.id,
            new_task.id,
            next_date,
            copied,
        )
        return new_task

    @staticmethod
    def _build_occurrence(task: TaskEntity, next_date: date) -> dict:
        # Sub-tasks and attachments stay with the source occurrence.
        return {
            "title": task.title,
            "description": task.description,
            "date": next_date,
            "deadline": task.deadline,
            "estimate_hours": task.estimate_hours,
            "estimate_minutes": task.estimate_minutes,
            "actual_hours": None,
            "actual_minutes": None,
            "priority": task.priority,
            "list_id": task.list_id,
            "is_completed": False,
            "completed_at": None,
            "is_recurring": True,
            "recurrence_type": task.recurrence_type,
            "recurrence_interval": task.recurrence_interval,
            "recurrence_end_date": task.recurrence_end_date,
            "reminders": task.reminders,
        }
