from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .db import Base


def utcnow() -> datetime:
    return datetime.utcnow()


class ListModel(Base):
    __tablename__ = "lists"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(7), nullable=False)
    emoji = Column(String(4), nullable=False)
    is_magic = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class LabelModel(Base):
    __tablename__ = "labels"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    icon = Column(String(4), nullable=False)
    color = Column(String(7), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TaskModel(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_date_completed", "date", "is_completed"),
    )

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    deadline = Column(DateTime, nullable=True)
    estimate_hours = Column(Integer, nullable=True)
    estimate_minutes = Column(Integer, nullable=True)
    actual_hours = Column(Integer, nullable=True)
    actual_minutes = Column(Integer, nullable=True)
    priority = Column(String(10), nullable=False, default="none", index=True)
    list_id = Column(Integer, ForeignKey("lists.id"), nullable=False, index=True)
    is_completed = Column(Boolean, nullable=False, default=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False, index=True)
    recurrence_type = Column(String(20), nullable=True)
    recurrence_interval = Column(Integer, nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    reminders = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class TaskLabelModel(Base):
    __tablename__ = "task_labels"
    __table_args__ = (
        UniqueConstraint("task_id", "label_id", name="uq_task_labels_task_label"),
    )

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    label_id = Column(Integer, ForeignKey("labels.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class SubtaskModel(Base):
    __tablename__ = "sub_tasks"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class AttachmentModel(Base):
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(100), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TaskChangeModel(Base):
    __tablename__ = "task_changes"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, nullable=False, index=True)
    change_type = Column(String(20), nullable=False, index=True)
    changed_fields = Column(JSON, nullable=True)
    old_value = Column(JSON, nullable=True)
    new_value = Column(JSON, nullable=True)
    changed_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class RecurrenceGenerationModel(Base):
    __tablename__ = "recurrence_generations"
    __table_args__ = (
        UniqueConstraint(
            "source_task_id",
            "generated_date",
            name="uq_recurrence_generations_source_date",
        ),
    )

    id = Column(Integer, primary_key=True)
    source_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    generated_date = Column(Date, nullable=False)
    generated_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
