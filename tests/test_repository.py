from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from taskflow.domain.enums import ChangeType, Priority
from taskflow.infra.models import AttachmentModel, SubtaskModel, TaskLabelModel
from taskflow.infra.repository import TaskRepository
from taskflow.services.recurrence_service import RecurrenceService


def _task_data(**overrides) -> dict:
    data = {
        "title": "Review budget",
        "date": date(2024, 1, 1),
        "list_id": 1,
        "priority": Priority.MEDIUM,
        "is_completed": True,
        "completed_at": datetime(2024, 1, 1, 12, 0),
        "is_recurring": True,
        "recurrence_type": "weekly",
        "recurrence_interval": 1,
    }
    data.update(overrides)
    return data


def test_find_due_recurring_tasks_filters_on_flags_and_date(repo: TaskRepository) -> None:
    due = repo.insert_task(_task_data())
    repo.insert_task(_task_data(title="open", is_completed=False, completed_at=None))
    repo.insert_task(_task_data(title="other day", date=date(2024, 1, 2)))
    repo.insert_task(_task_data(title="plain", is_recurring=False))

    result = repo.find_due_recurring_tasks(date(2024, 1, 1))

    assert [task.id for task in result] == [due.id]
    assert result[0].priority is Priority.MEDIUM


def test_find_newest_task_for_date_ignores_completed(repo: TaskRepository) -> None:
    older = repo.insert_task(_task_data(title="older", is_completed=False, completed_at=None))
    newer = repo.insert_task(_task_data(title="newer", is_completed=False, completed_at=None))
    repo.insert_task(_task_data(title="done"))

    found = repo.find_newest_task_for_date(date(2024, 1, 1))

    assert found.id == newer.id != older.id
    assert repo.find_newest_task_for_date(date(2030, 1, 1)) is None


def test_copy_label_associations(repo: TaskRepository) -> None:
    source = repo.insert_task(_task_data())
    target = repo.insert_task(_task_data(title="copy"))
    repo.set_task_labels(source.id, [2, 1])

    copied = repo.copy_label_associations(source.id, target.id)

    assert copied == 2
    assert repo.list_label_associations(target.id) == [1, 2]
    assert repo.copy_label_associations(target.id + 100, source.id) == 0


def test_transaction_rolls_back_every_write(repo: TaskRepository) -> None:
    with pytest.raises(RuntimeError):
        with repo.transaction() as store:
            task = store.insert_task(_task_data())
            store.set_task_labels(task.id, [1])
            raise RuntimeError("boom")

    assert repo.find_due_recurring_tasks(date(2024, 1, 1)) == []
    assert repo.list_label_associations(task.id) == []


def test_generation_guard(repo: TaskRepository) -> None:
    source = repo.insert_task(_task_data())
    target = repo.insert_task(_task_data(date=date(2024, 1, 8), is_completed=False))

    assert not repo.has_generated(source.id, date(2024, 1, 8))
    repo.record_generation(source.id, date(2024, 1, 8), target.id)
    assert repo.has_generated(source.id, date(2024, 1, 8))

    with pytest.raises(IntegrityError):
        repo.record_generation(source.id, date(2024, 1, 8), target.id)


def test_task_changes_newest_first(repo: TaskRepository) -> None:
    task = repo.insert_task(_task_data())
    repo.record_change(task.id, ChangeType.CREATE, new_value=task, changed_by="tester")
    repo.record_change(task.id, ChangeType.COMPLETE, new_value=task)

    changes = repo.list_task_changes(task.id)

    assert [c.change_type for c in changes] == [ChangeType.COMPLETE, ChangeType.CREATE]
    assert changes[1].changed_by == "tester"
    assert changes[1].new_value["date"] == "2024-01-01"
    assert changes[1].new_value["priority"] == "medium"
    assert [c.change_type for c in repo.list_task_changes(task.id, change_type=ChangeType.CREATE)] == [
        ChangeType.CREATE
    ]


def test_recurrence_against_database(repo: TaskRepository, session_factory) -> None:
    source = repo.insert_task(_task_data(reminders=[{"time": "1", "unit": "hours"}]))
    repo.set_task_labels(source.id, [1, 2])
    with session_factory() as session:
        session.add(SubtaskModel(task_id=source.id, title="Collect receipts"))
        session.add(
            AttachmentModel(
                task_id=source.id,
                file_name="budget.xlsx",
                file_path="/uploads/budget.xlsx",
                mime_type="application/vnd.ms-excel",
            )
        )
        session.commit()

    service = RecurrenceService(repo, changed_by="recurrence")
    report = service.process_recurring_tasks(date(2024, 1, 1))
    again = service.process_recurring_tasks(date(2024, 1, 1))

    new_id = report.created[source.id]
    new_task = repo.get_task(new_id)
    assert new_task.date == date(2024, 1, 8)
    assert new_task.is_completed is False
    assert new_task.reminders == [{"time": "1", "unit": "hours"}]
    assert repo.list_label_associations(new_id) == [1, 2]
    assert again.created == {}

    with session_factory() as session:
        assert session.scalar(
            select(func.count()).select_from(SubtaskModel).where(SubtaskModel.task_id == new_id)
        ) == 0
        assert session.scalar(
            select(func.count()).select_from(AttachmentModel).where(AttachmentModel.task_id == new_id)
        ) == 0
        assert session.scalar(select(func.count()).select_from(TaskLabelModel)) == 4

    changes = repo.list_task_changes(new_id)
    assert len(changes) == 1
    assert changes[0].changed_fields == {"recurrence_source_id": source.id, "date": "2024-01-08"}
