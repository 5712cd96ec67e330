"""
JSON file snapshot store

Keeps one file per snapshot key in a local directory, for terminals and
scripted runs that should survive a process restart.
"""

import re
from pathlib import Path
from typing import Optional, Union

from .base import SnapshotStore, PersistenceError


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileSnapshotStore(SnapshotStore):
    """
    Directory-backed snapshot store.

    Keys are sanitised into file names; the directory is created on first
    write.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    @property
    def name(self) -> str:
        return "file"

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_UNSAFE_CHARS.sub('_', key)}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise PersistenceError(f"Could not read snapshot {path}: {e}") from e

    def write(self, key: str, data: str) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(data, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise PersistenceError(f"Could not write snapshot {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise PersistenceError(f"Could not remove snapshot {path}: {e}") from e

    def __repr__(self) -> str:
        return f"FileSnapshotStore(directory={str(self.directory)!r})"
