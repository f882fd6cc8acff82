from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from todo_service.service import ToDoService
from todo_service.store import SQLiteStore

from .fakes import FakeStore


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    return str(tmp_path / "data" / "todo.db")


@pytest_asyncio.fixture
async def sqlite_store(db_path: str) -> AsyncIterator[SQLiteStore]:
    async with SQLiteStore(db_path, pool_size=4, acquire_timeout=0.5) as store:
        yield store


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def sqlite_service(sqlite_store: SQLiteStore) -> ToDoService:
    return ToDoService(sqlite_store)


@pytest.fixture
def fake_service(fake_store: FakeStore) -> ToDoService:
    return ToDoService(fake_store)
