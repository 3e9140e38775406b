from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from taskflow.domain.entities import TaskChangeEntity, TaskEntity
from taskflow.domain.enums import ChangeType, Priority

from .db import SessionLocal
from .models import RecurrenceGenerationModel, TaskChangeModel, TaskLabelModel, TaskModel


def _to_entity(model: TaskModel) -> TaskEntity:
    return TaskEntity(
        id=model.id,
        title=model.title,
        description=model.description,
        date=model.date,
        list_id=model.list_id,
        priority=Priority(model.priority),
        deadline=model.deadline,
        estimate_hours=model.estimate_hours,
        estimate_minutes=model.estimate_minutes,
        actual_hours=model.actual_hours,
        actual_minutes=model.actual_minutes,
        is_completed=model.is_completed,
        completed_at=model.completed_at,
        is_recurring=model.is_recurring,
        recurrence_type=model.recurrence_type,
        recurrence_interval=model.recurrence_interval,
        recurrence_end_date=model.recurrence_end_date,
        reminders=model.reminders,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_change_entity(model: TaskChangeModel) -> TaskChangeEntity:
    return TaskChangeEntity(
        id=model.id,
        task_id=model.task_id,
        change_type=ChangeType(model.change_type),
        changed_fields=model.changed_fields,
        old_value=model.old_value,
        new_value=model.new_value,
        changed_by=model.changed_by,
        created_at=model.created_at,
    )


def _normalize_data(data: dict) -> dict:
    normalized = dict(data)
    if isinstance(normalized.get("priority"), Priority):
        normalized["priority"] = normalized["priority"].value
    if "recurrence_type" in normalized and normalized["recurrence_type"] is not None:
        normalized["recurrence_type"] = str(normalized["recurrence_type"])
    return normalized


def snapshot(task: TaskEntity | None) -> dict[str, Any] | None:
    """JSON-safe copy of a task for the audit trail."""
    if task is None:
        return None
    result = {}
    for key, value in asdict(task).items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (date, datetime)):
            value = value.isoformat()
        result[key] = value
    return result


class TaskRepository:
    """SQLAlchemy-backed task store.

    Each call runs in its own session and commits on success. Inside
    ``transaction()`` all calls share a single session and are committed or
    rolled back together.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        self._session_factory = session_factory
        self._active_session: Session | None = None

    @contextmanager
    def transaction(self) -> Iterator[TaskRepository]:
        if self._active_session is not None:
            yield self
            return
        with self._session_factory() as session:
            self._active_session = session
            try:
                yield self
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                self._active_session = None

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        if self._active_session is not None:
            yield self._active_session
            return
        with self._session_factory() as session:
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_scope() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def find_due_recurring_tasks(self, reference_date: date) -> list[TaskEntity]:
        with self._session_scope() as session:
            stmt = (
                select(TaskModel)
                .where(
                    TaskModel.is_recurring.is_(True),
                    TaskModel.is_completed.is_(True),
                    TaskModel.date == reference_date,
                )
                .order_by(TaskModel.id.asc())
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def find_newest_task_for_date(self, target: date) -> Optional[TaskEntity]:
        with self._session_scope() as session:
            stmt = (
                select(TaskModel)
                .where(TaskModel.date == target, TaskModel.is_completed.is_(False))
                .order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
                .limit(1)
            )
            task = session.scalars(stmt).first()
            return _to_entity(task) if task else None

    def insert_task(self, data: dict) -> TaskEntity:
        with self._session_scope() as session:
            task = TaskModel(**_normalize_data(data))
            session.add(task)
            session.flush()
            session.refresh(task)
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_scope() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None
            for key, value in _normalize_data(data).items():
                setattr(task, key, value)
            session.flush()
            session.refresh(task)
            return _to_entity(task)

    def list_label_associations(self, task_id: int) -> list[int]:
        with self._session_scope() as session:
            stmt = (
                select(TaskLabelModel.label_id)
                .where(TaskLabelModel.task_id == task_id)
                .order_by(TaskLabelModel.label_id.asc())
            )
            return list(session.scalars(stmt))

    def set_task_labels(self, task_id: int, label_ids: list[int]) -> None:
        with self._session_scope() as session:
            existing = session.scalars(
                select(TaskLabelModel).where(TaskLabelModel.task_id == task_id)
            ).all()
            for association in existing:
                session.delete(association)
            session.flush()
            for label_id in dict.fromkeys(label_ids):
                session.add(TaskLabelModel(task_id=task_id, label_id=label_id))

    def copy_label_associations(self, source_task_id: int, target_task_id: int) -> int:
        label_ids = self.list_label_associations(source_task_id)
        if not label_ids:
            return 0
        with self._session_scope() as session:
            for label_id in label_ids:
                session.add(TaskLabelModel(task_id=target_task_id, label_id=label_id))
            session.flush()
        return len(label_ids)

    def has_generated(self, source_task_id: int, generated_date: date) -> bool:
        with self._session_scope() as session:
            stmt = select(RecurrenceGenerationModel.id).where(
                RecurrenceGenerationModel.source_task_id == source_task_id,
                RecurrenceGenerationModel.generated_date == generated_date,
            )
            return session.scalars(stmt).first() is not None

    def record_generation(
        self, source_task_id: int, generated_date: date, generated_task_id: int
    ) -> None:
        with self._session_scope() as session:
            session.add(
                RecurrenceGenerationModel(
                    source_task_id=source_task_id,
                    generated_date=generated_date,
                    generated_task_id=generated_task_id,
                )
            )
            session.flush()

    def record_change(
        self,
        task_id: int,
        change_type: ChangeType,
        old_value: TaskEntity | None = None,
        new_value: TaskEntity | None = None,
        changed_by: str | None = None,
        changed_fields: dict[str, Any] | None = None,
    ) -> None:
        with self._session_scope() as session:
            session.add(
                TaskChangeModel(
                    task_id=task_id,
                    change_type=ChangeType(change_type).value,
                    changed_fields=changed_fields,
                    old_value=snapshot(old_value),
                    new_value=snapshot(new_value),
                    changed_by=changed_by,
                )
            )

    def list_task_changes(
        self,
        task_id: int,
        limit: int = 100,
        offset: int = 0,
        change_type: ChangeType | None = None,
    ) -> list[TaskChangeEntity]:
        with self._session_scope() as session:
            stmt = select(TaskChangeModel).where(TaskChangeModel.task_id == task_id)
            if change_type:
                stmt = stmt.where(TaskChangeModel.change_type == ChangeType(change_type).value)
            stmt = (
                stmt.order_by(TaskChangeModel.created_at.desc(), TaskChangeModel.id.desc())
                .limit(limit)
                .offset(offset)
            )
            return [_to_change_entity(change) for change in session.scalars(stmt)]
