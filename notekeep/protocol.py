"""
Protocol definition for durable slot storage.

Implemented by:
- SlotStore (local SQLite)
- test doubles (in-memory)
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class SlotStorage(Protocol):
    """
    Named slots holding one text value each.

    ``read`` returns None for a slot that was never written.
    ``write`` replaces the whole value; failures propagate to the caller.
    """

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, text: str) -> None: ...

    def keys(self) -> list[str]: ...

    def close(self) -> None: ...
