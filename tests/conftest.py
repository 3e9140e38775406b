from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskflow.infra.db import create_schema
from taskflow.infra.models import LabelModel, ListModel
from taskflow.infra.repository import TaskRepository


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_schema(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    with factory() as session:
        session.add(ListModel(id=1, name="Inbox", color="#3B82F6", emoji="📥", is_magic=True))
        session.add_all([
            LabelModel(id=1, name="home", icon="🏠", color="#10B981"),
            LabelModel(id=2, name="work", icon="💼", color="#F59E0B"),
        ])
        session.commit()
    yield factory
    engine.dispose()


@pytest.fixture()
def repo(session_factory) -> TaskRepository:
    return TaskRepository(session_factory)
