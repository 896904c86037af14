"""
Project Storage

File persistence for the local server. Everything lives under one
project root:

    <root>/data/persons.json   the canonical document
    <root>/img/<filename>      uploaded images

WRITE CONTRACT:
- Every write is a full overwrite. No merge, no versioning, no locking.
- Concurrent writers get last-write-wins. One local operator is assumed.
- Directories are created on demand, then probed for writability.
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..observability import get_logger, get_metrics

logger = get_logger(__name__)


DATA_DIRNAME = "data"
IMG_DIRNAME = "img"
DOCUMENT_FILENAME = "persons.json"
WRITE_TEST_FILENAME = ".write-test"


# ============================================================
# EXCEPTIONS
# ============================================================

class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class DirectoryUnwritableError(StorageError):
    """Raised when a target directory cannot be written to."""

    def __init__(self, path: Path, label: str = "Directory"):
        super().__init__(f"{label} is not writable")
        self.path = path


class WriteFailedError(StorageError):
    """Raised when the write itself fails."""

    def __init__(self, path: Path, cause: OSError):
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause


class InvalidFilenameError(StorageError):
    """Raised when an image filename is not a bare file name."""
    pass


# ============================================================
# HELPERS
# ============================================================

def is_directory_writable(path: Path) -> bool:
    """Probe writability by creating and deleting a marker file."""
    if not path.is_dir():
        return False

    marker = path / WRITE_TEST_FILENAME
    try:
        marker.write_text("test", encoding="utf-8")
        marker.unlink()
    except OSError as e:
        logger.warning("Directory is not writable", path=str(path), error=str(e))
        return False
    return True


@dataclass
class DirectoryStatus:
    path: str
    exists: bool
    writable: bool

    @classmethod
    def probe(cls, path: Path) -> "DirectoryStatus":
        return cls(path=str(path), exists=path.exists(), writable=is_directory_writable(path))


# ============================================================
# STORAGE
# ============================================================

class ProjectStorage:
    """Resolves and writes the data and image files under a project root."""

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.data_dir = self.root / DATA_DIRNAME
        self.img_dir = self.root / IMG_DIRNAME
        self.document_path = self.data_dir / DOCUMENT_FILENAME

    def directory_status(self) -> dict[str, DirectoryStatus]:
        return {
            "data": DirectoryStatus.probe(self.data_dir),
            "img": DirectoryStatus.probe(self.img_dir),
        }

    def ensure_directories(self) -> None:
        """Create data/ and img/ if missing."""
        for directory in (self.data_dir, self.img_dir):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory", path=str(directory))

    def _prepare(self, directory: Path, label: str) -> None:
        try:
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory", path=str(directory))
        except OSError as e:
            raise WriteFailedError(directory, e) from e

        if not is_directory_writable(directory):
            raise DirectoryUnwritableError(directory, label)

    def write_document(self, data: dict[str, Any]) -> Path:
        """
        Overwrite the canonical document with `data`.

        Raises:
            DirectoryUnwritableError: If data/ cannot be written to
            WriteFailedError: If creating the directory or writing the file fails
        """
        start = time.perf_counter()
        self._prepare(self.data_dir, "Data directory")

        try:
            self.document_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            get_metrics().record_write_failure()
            raise WriteFailedError(self.document_path, e) from e

        get_metrics().record_write("document", (time.perf_counter() - start) * 1000)
        logger.info("File updated", path=str(self.document_path))
        return self.document_path

    def write_image(self, filename: str, raw: bytes) -> Path:
        """
        Write (or overwrite) img/<filename>.

        Raises:
            InvalidFilenameError: If filename contains directory parts
            DirectoryUnwritableError: If img/ cannot be written to
            WriteFailedError: If creating the directory or writing the file fails
        """
        if filename in (".", "..") or Path(filename).name != filename:
            raise InvalidFilenameError(f"Invalid filename: {filename!r}")

        start = time.perf_counter()
        self._prepare(self.img_dir, "Image directory")

        target = self.img_dir / filename
        try:
            target.write_bytes(raw)
        except OSError as e:
            get_metrics().record_write_failure()
            raise WriteFailedError(target, e) from e

        get_metrics().record_write("image", (time.perf_counter() - start) * 1000)
        logger.info("Image saved", path=str(target), size_bytes=len(raw))
        return target

    def read_document(self) -> Optional[dict[str, Any]]:
        """
        Load the canonical document, or None if it does not exist yet.

        Raises:
            json.JSONDecodeError: If the file is not valid JSON
        """
        if not self.document_path.exists():
            return None
        return json.loads(self.document_path.read_text(encoding="utf-8"))
