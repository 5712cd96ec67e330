"""
In-memory snapshot store

Default store when no storage directory is configured. Snapshots live as
long as the store object.
"""

from typing import Optional

from .base import SnapshotStore


class MemorySnapshotStore(SnapshotStore):
    """Dict-backed snapshot store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    @property
    def name(self) -> str:
        return "memory"

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, data: str) -> None:
        self._data[key] = data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)
