# Schemas for the Reconnect registry
# The application record shape and the canonical on-disk document shape.

from .person import (
    PLACEHOLDER_PHOTO,
    Category,
    ContactInfo,
    Gender,
    PersonRecord,
)
from .document import (
    PersonDocument,
    PersonsDocument,
    ReportingEntity,
    build_document,
    from_document,
    normalize_photo_url,
    records_from_document,
    to_document,
)

__all__ = [
    # Person
    "PLACEHOLDER_PHOTO",
    "Category",
    "ContactInfo",
    "Gender",
    "PersonRecord",
    # Document
    "PersonDocument",
    "PersonsDocument",
    "ReportingEntity",
    "build_document",
    "from_document",
    "normalize_photo_url",
    "records_from_document",
    "to_document",
]
