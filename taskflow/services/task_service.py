from __future__ import annotations

from datetime import datetime

from taskflow.domain.entities import TaskEntity
from taskflow.domain.enums import ChangeType
from taskflow.infra.repository import TaskRepository


class TaskService:
    def __init__(self, repo: TaskRepository) -> None:
        self._repo = repo

    def get_task(self, task_id: int) -> TaskEntity | None:
        return self._repo.get_task(task_id)

    def create_task(self, data: dict, label_ids: list[int] | None = None) -> TaskEntity:
        normalized = self._normalize_data(data)
        with self._repo.transaction() as store:
            task = store.insert_task(normalized)
            if label_ids:
                store.set_task_labels(task.id, label_ids)
            store.record_change(task.id, ChangeType.CREATE, new_value=task)
        return task

    def complete_task(self, task_id: int, completed_at: datetime | None = None) -> TaskEntity | None:
        return self._set_completion(
            task_id,
            {"is_completed": True, "completed_at": completed_at or datetime.utcnow()},
            ChangeType.COMPLETE,
        )

    def uncomplete_task(self, task_id: int) -> TaskEntity | None:
        return self._set_completion(
            task_id,
            {"is_completed": False, "completed_at": None},
            ChangeType.UNCOMPLETE,
        )

    def _set_completion(self, task_id: int, data: dict, change_type: ChangeType) -> TaskEntity | None:
        with self._repo.transaction() as store:
            task = store.update_task(task_id, data)
            if not task:
                return None
            store.record_change(task_id, change_type, new_value=task)
        return task

    def _normalize_data(self, data: dict) -> dict:
        normalized = dict(data)
        normalized.setdefault("is_recurring", False)
        if normalized.get("is_completed") and "completed_at" not in normalized:
            normalized["completed_at"] = datetime.utcnow()
        normalized.pop("id", None)
        return normalized
