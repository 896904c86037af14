"""
Search Session

Application state for one client session: the record store, the active
criteria, the filtered view and the current page.

    session = SearchSession(store, page_size=6)
    session.search(FilterCriteria(location="cairo"))
    session.view().indicator        # "Page 1 of 2"
    session.next_page()
"""

from enum import Enum
from typing import Optional, Union

import httpx
from pydantic import ValidationError

from ..core import (
    DEFAULT_PAGE_SIZE,
    FilterCriteria,
    LocalCache,
    Page,
    RecordStore,
    filter_records,
    paginate,
    total_pages,
)
from ..core.cache import DOCUMENT_KEY
from ..observability import get_logger
from ..core.store import Persister
from ..schemas import Category, ContactInfo, Gender, PersonRecord, build_document, records_from_document
from .persistence import PersistenceClient, PersistOutcome, PersistResult

logger = get_logger(__name__)


class SearchSession:
    """Filter and pagination state over a RecordStore."""

    def __init__(self, store: RecordStore, page_size: int = DEFAULT_PAGE_SIZE):
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.store = store
        self.page_size = page_size
        self.criteria = FilterCriteria()
        self.page_index = 1
        self._results: list[PersonRecord] = store.snapshot()

    @property
    def results(self) -> list[PersonRecord]:
        return list(self._results)

    @property
    def total_pages(self) -> int:
        return total_pages(len(self._results), self.page_size)

    def search(self, criteria: FilterCriteria) -> list[PersonRecord]:
        """Apply new criteria over the whole record set and go back to page 1."""
        self.criteria = criteria
        self._results = filter_records(self.store.all(), criteria)
        self.page_index = 1
        logger.debug("Search applied", result_count=len(self._results))
        return self.results

    def reset(self) -> list[PersonRecord]:
        """Clear all criteria."""
        return self.search(FilterCriteria())

    def refresh(self) -> None:
        """Re-run the active criteria after the record set changed."""
        self._results = filter_records(self.store.all(), self.criteria)
        self.page_index = min(self.page_index, self.total_pages)

    def view(self) -> Page[PersonRecord]:
        return paginate(self._results, self.page_index, self.page_size)

    def go_to(self, page_index: int) -> Page[PersonRecord]:
        """Jump to a page, clamped to the valid range."""
        self.page_index = max(1, min(page_index, self.total_pages))
        return self.view()

    def next_page(self) -> Page[PersonRecord]:
        if self.page_index < self.total_pages:
            self.page_index += 1
        return self.view()

    def previous_page(self) -> Page[PersonRecord]:
        if self.page_index > 1:
            self.page_index -= 1
        return self.view()

    def contact_details(self, record_id: Union[int, str]) -> Optional[ContactInfo]:
        record = self.store.get(record_id)
        return record.contact_info if record is not None else None


# ============================================================
# LOADING
# ============================================================

class RecordSource(str, Enum):
    SERVER = "server"
    CACHE = "cache"
    DEMO = "demo"


DEMO_RECORDS = [
    PersonRecord(
        id=1,
        name="Aisha Patel",
        age=8,
        gender=Gender.FEMALE,
        category=Category.SEPARATED,
        description=(
            "Black hair, brown eyes, small build. Speaks Gujarati and English. "
            "Height approximately 4'2\". Wears glasses with purple frames."
        ),
        location="Mumbai, India",
        date_reported="2023-04-12",
        photo_url="img/placeholder.jpg",
        contact_info=ContactInfo(
            name="Mumbai Child Services",
            email="childservices@mumbai.gov.in",
            phone="+91 22 2345 6789",
        ),
        additional_details=(
            "Aisha was separated from her family during a crowded festival "
            "in Mumbai on April 10, 2023."
        ),
    ),
]


def load_records(
    client: PersistenceClient,
    cache: Optional[LocalCache] = None,
) -> tuple[list[PersonRecord], RecordSource]:
    """
    Load the record set for a new session.

    Tries the server's canonical document first, then the last document
    cached locally, then the built-in demo records.
    """
    try:
        return records_from_document(client.fetch_document()), RecordSource.SERVER
    except (httpx.HTTPError, ValueError) as e:
        # pydantic.ValidationError is a ValueError
        logger.error("Error loading persons.json", error=str(e))

    if cache is not None:
        cached = cache.get(DOCUMENT_KEY)
        if cached is not None:
            try:
                records = records_from_document(cached)
            except ValidationError as e:
                logger.error("Cached document is invalid", error=str(e))
            else:
                logger.warning("Using cached document", record_count=len(records))
                return records, RecordSource.CACHE

    logger.warning("Could not load data from persons.json. Using demo data instead.")
    return [record.model_copy(deep=True) for record in DEMO_RECORDS], RecordSource.DEMO


OVERWRITE_REFUSED = (
    "Not saved: this session was loaded from {source} data while the server "
    "already holds persons.json. Saving would overwrite the records in it."
)


def persister_for(client: PersistenceClient, source: RecordSource) -> Persister:
    """
    Pick the persister for a session loaded from `source`.

    Every save replaces the server document wholesale, so a session that
    did not load that document must not save over it. Such a session gets
    a persister that refuses with a SKIPPED result. When the server is
    unreachable the normal persister is used; its failure leads to the
    manual recovery path.
    """
    if source == RecordSource.SERVER:
        return client.persist

    if not client.document_exists():
        return client.persist

    logger.error(
        "Server document exists but was not loaded; saving is disabled for this session",
        source=source.value,
    )
    message = OVERWRITE_REFUSED.format(source=source.value)

    def refuse(records: list[PersonRecord]) -> PersistResult:
        logger.warning("Refused to overwrite server document", record_count=len(records))
        return PersistResult(
            outcome=PersistOutcome.SKIPPED,
            document=build_document(records),
            message=message,
        )

    return refuse
