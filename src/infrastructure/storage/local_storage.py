from __future__ import annotations

import os
import re
import uuid
from pathlib import Path

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalKeyValueStorage:
    """Durable client-side key-value storage, one file per key.

    Values are opaque strings. A missing file means the key is absent.
    """

    def __init__(self, directory: Path | str | None = None) -> None:
        self.local_dir = Path(directory or os.getenv("SESSION_STORAGE_DIR", ".local_storage"))

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.local_dir / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
