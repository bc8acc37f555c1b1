"""
Durable slot storage using SQLite.

A slot is a named location holding the JSON text of one whole value.
DurableValue binds an in-memory value to a slot: the stored value is
loaded when the handle is opened, and every change is written back in
full (never as a diff).
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Generic, Optional, TypeVar, Union

from .protocol import SlotStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SlotStore:
    """
    SQLite-backed store of named slots.

    One row per key. Each write replaces the row and commits immediately,
    so the last successful write before exit is the durable state.
    """

    def __init__(self, store_path: Path):
        """
        Args:
            store_path: Path to SQLite database file
        """
        self._db_path = Path(store_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the SQLite database."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS slots (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def _now(self) -> str:
        """Current timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat()

    @property
    def path(self) -> Path:
        return self._db_path

    def read(self, key: str) -> Optional[str]:
        """
        Read the text stored in a slot.

        Returns:
            The stored text, or None if the slot was never written
        """
        cursor = self._conn.execute(
            "SELECT value FROM slots WHERE key = ?", (key,)
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return row["value"]

    def write(self, key: str, text: str) -> None:
        """Replace the whole value of a slot."""
        self._conn.execute("""
            INSERT OR REPLACE INTO slots (key, value, updated_at)
            VALUES (?, ?, ?)
        """, (key, text, self._now()))
        self._conn.commit()

    def keys(self) -> list[str]:
        """List slot keys in insertion order."""
        cursor = self._conn.execute("SELECT key FROM slots ORDER BY rowid")
        return [row["key"] for row in cursor]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        self.close()


class DurableValue(Generic[T]):
    """
    A value of type T bound to a durable slot.

    Example:
        tags = DurableValue.open(store, "TAGS", [])
        tags.set(lambda prev: [*prev, {"id": "a", "label": "work"}])
    """

    def __init__(
        self,
        storage: SlotStorage,
        key: str,
        value: T,
        *,
        encode: Optional[Callable[[T], Any]] = None,
    ) -> None:
        self._storage = storage
        self._key = key
        self._value = value
        self._encode = encode
        self._version = 0

    @classmethod
    def open(
        cls,
        storage: SlotStorage,
        key: str,
        initial: Union[T, Callable[[], T]],
        *,
        decode: Optional[Callable[[Any], T]] = None,
        encode: Optional[Callable[[T], Any]] = None,
    ) -> "DurableValue[T]":
        """
        Load the value stored at ``key``, or seed it from ``initial``.

        The stored value is trusted: malformed text or records raise
        from json or ``decode`` and are not caught here. When the slot
        is absent, a callable ``initial`` is invoked to produce the value.
        Opening never writes.

        Args:
            storage: Slot storage backend
            key: Slot name
            initial: Value, or zero-argument factory, used when the slot is empty
            decode: Converts parsed JSON into T
            encode: Converts T into JSON-serializable data
        """
        text = storage.read(key)
        if text is None:
            value = initial() if callable(initial) else initial
            logger.debug("Slot %s absent, seeded with initial value", key)
        else:
            data = json.loads(text)
            value = decode(data) if decode is not None else data
            logger.debug("Slot %s loaded (%d bytes)", key, len(text))
        return cls(storage, key, value, encode=encode)

    @property
    def key(self) -> str:
        return self._key

    @property
    def value(self) -> T:
        """Current value. No side effects."""
        return self._value

    @property
    def version(self) -> int:
        """Counter bumped on every ``set``; lets consumers cache derived data."""
        return self._version

    def set(self, new_value: Union[T, Callable[[T], T]]) -> T:
        """
        Replace the current value and persist it.

        ``new_value`` may be a plain value or a function of the previous
        value. The in-memory value is replaced first; the whole value is
        then serialized and written. Storage failures propagate.

        Returns:
            The new current value
        """
        if callable(new_value):
            new_value = new_value(self._value)
        self._value = new_value
        self._version += 1
        self._persist()
        return new_value

    def _persist(self) -> None:
        data = self._encode(self._value) if self._encode is not None else self._value
        text = json.dumps(data, ensure_ascii=False)
        self._storage.write(self._key, text)
