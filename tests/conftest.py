"""
Shared pytest fixtures for notekeep tests.

Provides an in-memory slot storage that records writes, alongside
real SQLite-backed fixtures on tmp_path.
"""

import sqlite3
from typing import Optional

import pytest

from notekeep.api import Notebook
from notekeep.config import StoreConfig
from notekeep.repository import NoteRepository
from notekeep.slot_store import SlotStore
from notekeep.types import Tag


class MockSlotStorage:
    """
    In-memory slot storage for testing.

    Counts writes per key and can be told to reject writes the way a
    full disk would.
    """

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.writes: dict[str, int] = {}
        self.fail_writes = False
        self.closed = False

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, text: str) -> None:
        if self.fail_writes:
            raise sqlite3.OperationalError("database or disk is full")
        self._data[key] = text
        self.writes[key] = self.writes.get(key, 0) + 1

    def keys(self) -> list[str]:
        return list(self._data)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def mock_storage():
    return MockSlotStorage()


@pytest.fixture
def slot_store(tmp_path):
    """Real SQLite slot store."""
    with SlotStore(tmp_path / "notes.db") as store:
        yield store


@pytest.fixture
def repo(mock_storage):
    return NoteRepository(mock_storage)


@pytest.fixture
def notebook(tmp_path):
    """Notebook on a real store directory."""
    nb = Notebook(tmp_path / "store")
    yield nb
    nb.close()


@pytest.fixture
def tag_a():
    return Tag(id="a", label="work")


@pytest.fixture
def tag_b():
    return Tag(id="b", label="urgent")


@pytest.fixture
def make_storage():
    """Factory for mock storages pre-seeded with slot text."""
    return MockSlotStorage
