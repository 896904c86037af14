"""
Local Cache

A small JSON-file key/value cache that plays the role browser storage
plays for a web client: records, the last serialized document, and
image previews keyed by generated filename.

The cache is ADVISORY. The canonical document on disk is authoritative;
nothing here is ever treated as durable state.
"""

import json
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from ..observability import get_logger

logger = get_logger(__name__)


RECORDS_KEY = "personsData"
DOCUMENT_KEY = "personsJsonData"


def image_key(filename: str) -> str:
    return f"image_{filename}"


def image_path_key(filename: str) -> str:
    return f"imagePath_{filename}"


class LocalCache:
    """
    Write-through key/value cache persisted as a single JSON file.

    Usage:
        cache = LocalCache(Path("~/.cache/reconnect").expanduser())
        cache.set("personsData", [...])
        cache.get("personsData")
    """

    FILENAME = "local-storage.json"

    def __init__(self, directory: Path):
        self._path = Path(directory) / self.FILENAME
        self._lock = Lock()
        self._entries: dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable cache file", path=str(self._path), error=str(e))
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring cache file with unexpected shape", path=str(self._path))
            return {}
        return data

    def _flush(self) -> None:
        """Write entries to disk. A failed write is logged; entries stay in memory."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._entries, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Cache write failed", path=str(self._path), error=str(e))

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self._lock:
            return self._entries.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if self._entries.pop(key, None) is not None:
                self._flush()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
