from __future__ import annotations

import argparse
import logging
import sys
from datetime import date

from taskflow.config import SETTINGS
from taskflow.infra.db import create_schema, init_db
from taskflow.infra.logging import setup_logging
from taskflow.infra.repository import TaskRepository
from taskflow.services.recurrence_service import RecurrenceService

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="taskflow-recur",
        description="Generate the next occurrence of completed recurring tasks.",
    )
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="reference date (YYYY-MM-DD); defaults to today",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="create missing tables before processing (local SQLite setups)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging()
    try:
        init_db()
        if args.create_schema:
            create_schema()
    except Exception:  # noqa: BLE001
        logger.exception("Database is not reachable")
        return 1

    service = RecurrenceService(TaskRepository(), changed_by=SETTINGS.audit_actor)
    try:
        report = service.process_recurring_tasks(args.date)
    except Exception:  # noqa: BLE001
        logger.exception("Failed to load due recurring tasks")
        return 1

    for source_id, new_id in report.created.items():
        logger.info("Task %s -> task %s", source_id, new_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
