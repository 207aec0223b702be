# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from todo_list.controller import TaskListController
from todo_list.db import SQLiteTaskStore
from todo_list.main import create_app
from todo_list.repositories import InMemoryTaskStore, TaskStore
from todo_list.settings import Settings

from .fakes import ManualScheduler


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[TaskStore]:
    """Empty, unseeded store; every store test runs against both backends."""
    if request.param == "sqlite":
        s: TaskStore = SQLiteTaskStore(str(tmp_path / "tasks.db"))
    else:
        s = InMemoryTaskStore()
    yield s
    s.close()


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def controller(store: TaskStore, scheduler: ManualScheduler) -> TaskListController:
    return TaskListController(store, scheduler, completion_delay=3.0)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        persistence_backend="sqlite",
        sqlite_db_path=str(tmp_path / "data" / "tasks.db"),
        completion_delete_delay=0.3,
        log_level="WARNING",
    )


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    # Entering the client runs the lifespan: store opened, defaults seeded.
    with TestClient(create_app(settings)) as c:
        yield c
