"""
Record Store

Owns the session's record set. Registration is strictly additive:
records are appended, never edited or removed.

Lifecycle:
    store = RecordStore(persister=client.persist, cache=cache)
    store.initialize(records)         # from the canonical document
    result = store.append(record)     # validates id, appends, persists
    store.snapshot()                  # list copy for callers

DURABILITY:
The store is optimistic. An append is final for the session even when
persistence fails; the outcome is handed back to the caller, which
decides how to surface it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from ..observability import get_logger, get_metrics
from ..schemas import PersonRecord
from .cache import RECORDS_KEY, LocalCache

logger = get_logger(__name__)


class StoreError(Exception):
    """Base exception for record store errors."""
    pass


class DuplicateRecordError(StoreError):
    """Raised when a record id is already present in the record set."""

    def __init__(self, record_id: Union[int, str]):
        super().__init__(f"Record {record_id!r} already exists")
        self.record_id = record_id


# Receives the full record set after an append; returns the persistence outcome
Persister = Callable[[list[PersonRecord]], Any]


@dataclass
class AppendResult:
    """Outcome of an append. `persisted` is None when no persister is configured."""
    record: PersonRecord
    persisted: Optional[Any] = None


class RecordStore:
    """In-memory record set with an explicit lifecycle."""

    def __init__(
        self,
        persister: Optional[Persister] = None,
        cache: Optional[LocalCache] = None,
    ):
        self._records: list[PersonRecord] = []
        # ids compared by string form: 1 and "1" are the same record
        self._ids: set[str] = set()
        self._persister = persister
        self._cache = cache

    def initialize(self, records: Iterable[PersonRecord]) -> None:
        """
        Replace the record set with records loaded from the canonical document.

        Raises:
            DuplicateRecordError: If the source contains the same id twice
        """
        loaded: list[PersonRecord] = []
        ids: set[str] = set()
        for record in records:
            if str(record.id) in ids:
                raise DuplicateRecordError(record.id)
            ids.add(str(record.id))
            loaded.append(record)

        self._records = loaded
        self._ids = ids
        logger.info("Record store initialized", record_count=len(loaded))

    def append(self, record: PersonRecord) -> AppendResult:
        """
        Append a new record and trigger persistence.

        Raises:
            DuplicateRecordError: If the id is already in use
        """
        if str(record.id) in self._ids:
            raise DuplicateRecordError(record.id)

        self._records.append(record)
        self._ids.add(str(record.id))
        get_metrics().records_appended += 1
        logger.info("Record appended", record_id=str(record.id), category=record.category.value)

        if self._cache is not None:
            self._cache.set(
                RECORDS_KEY,
                [r.model_dump(mode="json", by_alias=True) for r in self._records],
            )

        persisted = None
        if self._persister is not None:
            persisted = self._persister(self.snapshot())

        return AppendResult(record=record, persisted=persisted)

    def all(self) -> tuple[PersonRecord, ...]:
        """Read-only view in insertion order."""
        return tuple(self._records)

    def snapshot(self) -> list[PersonRecord]:
        return list(self._records)

    def get(self, record_id: Union[int, str]) -> Optional[PersonRecord]:
        for record in self._records:
            if str(record.id) == str(record_id):
                return record
        return None

    def __len__(self) -> int:
        return len(self._records)
