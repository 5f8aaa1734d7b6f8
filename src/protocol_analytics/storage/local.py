"""File-backed JSON key-value store for development and tests.

One ``<key>.json`` file per key under ``root``. Writes go to a temporary file
that replaces the target in one rename, so a reader sees either the old or
the new value.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from protocol_analytics.shared.exceptions import StoreReadError, StoreWriteError


class LocalJsonStore:
    """Local directory standing in for the remote store."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    async def get(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreReadError(f"Cannot read {path}: {e}") from e

    async def upsert(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=True)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self._path(key))
        except OSError as e:
            raise StoreWriteError(f"Cannot write {key} under {self.root}: {e}") from e

    def keys(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(p.stem for p in self.root.glob("*.json"))
