"""Key-value media for the local record store.

A medium maps a key (``patient_records``) to one text value holding the
serialized collection. ``JsonFileStorage`` keeps each key in its own file,
``MemoryStorage`` keeps them in a dict for tests and throwaway sessions.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from eyerecords.services.errors import PersistenceFailure, StorageUnavailable


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Stores each key as ``<data_dir>/<key>.json``."""

    def __init__(self, data_dir: str | os.PathLike):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailable(f"Cannot read {path}: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file, then swap it in
            fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise PersistenceFailure(f"Cannot write {path}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceFailure(f"Cannot remove {self._path(key)}: {exc}") from exc
