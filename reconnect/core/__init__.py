# Core services: search engine, pagination, record store, file storage
from .filters import (
    ALL_CATEGORIES,
    CriteriaError,
    FilterCriteria,
    filter_records,
    matches,
)
from .pagination import DEFAULT_PAGE_SIZE, Page, paginate, total_pages
from .cache import LocalCache
from .store import (
    AppendResult,
    DuplicateRecordError,
    RecordStore,
    StoreError,
)
from .storage import (
    DirectoryStatus,
    DirectoryUnwritableError,
    InvalidFilenameError,
    ProjectStorage,
    StorageError,
    WriteFailedError,
    is_directory_writable,
)

__all__ = [
    "ALL_CATEGORIES",
    "CriteriaError",
    "FilterCriteria",
    "filter_records",
    "matches",
    "DEFAULT_PAGE_SIZE",
    "Page",
    "paginate",
    "total_pages",
    "LocalCache",
    "AppendResult",
    "DuplicateRecordError",
    "RecordStore",
    "StoreError",
    "DirectoryStatus",
    "DirectoryUnwritableError",
    "InvalidFilenameError",
    "ProjectStorage",
    "StorageError",
    "WriteFailedError",
    "is_directory_writable",
]
