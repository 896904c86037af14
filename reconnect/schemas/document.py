"""
Canonical Document Schema

The on-disk shape of persons.json:

    {"persons": [PersonDocument, ...]}

Mapping rules between the application shape and the document shape:
- description -> physicalDescription
- location -> lastLocation
- contactInfo -> reportingEntity (type "individual", address always empty)
- status is always "active"
- age is written as an integer
- embedded data URIs collapse to the placeholder path

Images are never written inline. They live as separate files under img/.

Loading is lenient. Hand-edited files carry nulls, blanks and odd casing:
- null text fields load as ""
- a blank, null or unknown gender loads as not-specified
- gender and category match case-insensitively
- a blank or null photoUrl loads as the placeholder
"""

from typing import Any, Iterable, List, Optional, Union

from pydantic import Field, field_validator

from .person import (
    PLACEHOLDER_PHOTO,
    CamelModel,
    Category,
    ContactInfo,
    Gender,
    PersonRecord,
)


def _text_or_empty(value: Optional[Any]) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class ReportingEntity(CamelModel):
    """Who reported the person. Derived from the record's contact info."""
    name: str = ""
    type: str = "individual"
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""

    @field_validator("name", "type", "contact_person", "email", "phone", "address", mode="before")
    @classmethod
    def null_text_as_empty(cls, v):
        return _text_or_empty(v)

    @field_validator("type", mode="after")
    @classmethod
    def blank_type_is_individual(cls, v: str) -> str:
        return v or "individual"


class PersonDocument(CamelModel):
    """One entry of the canonical document."""
    id: Union[int, str]
    name: str
    age: int = Field(..., ge=0)
    gender: Gender = Gender.NOT_SPECIFIED
    category: Category
    physical_description: str = ""
    last_location: str
    date_reported: str
    photo_url: str = PLACEHOLDER_PHOTO
    additional_details: str = ""
    reporting_entity: ReportingEntity = Field(default_factory=ReportingEntity)
    status: str = "active"

    @field_validator("physical_description", "last_location", "date_reported", "additional_details", mode="before")
    @classmethod
    def null_text_as_empty(cls, v):
        return _text_or_empty(v)

    @field_validator("gender", mode="before")
    @classmethod
    def lenient_gender(cls, v):
        if isinstance(v, Gender):
            return v
        value = _text_or_empty(v).strip().lower()
        try:
            return Gender(value)
        except ValueError:
            return Gender.NOT_SPECIFIED

    @field_validator("category", mode="before")
    @classmethod
    def case_insensitive_category(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("photo_url", mode="before")
    @classmethod
    def blank_photo_is_placeholder(cls, v):
        return _text_or_empty(v) or PLACEHOLDER_PHOTO

    @field_validator("reporting_entity", mode="before")
    @classmethod
    def null_entity_is_blank(cls, v):
        return {} if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def blank_status_is_active(cls, v):
        return _text_or_empty(v) or "active"


class PersonsDocument(CamelModel):
    """The whole canonical document."""
    persons: List[PersonDocument] = Field(default_factory=list)


def normalize_photo_url(photo_url: str | None) -> str:
    """Data URIs and empty values become the placeholder; paths pass through."""
    if not photo_url or photo_url.startswith("data:"):
        return PLACEHOLDER_PHOTO
    return photo_url


def to_document(record: PersonRecord) -> PersonDocument:
    contact = record.contact_info
    return PersonDocument(
        id=record.id,
        name=record.name,
        age=int(record.age),
        gender=record.gender,
        category=record.category,
        physical_description=record.description,
        last_location=record.location,
        date_reported=record.date_reported,
        photo_url=normalize_photo_url(record.photo_url),
        additional_details=record.additional_details,
        reporting_entity=ReportingEntity(
            name=contact.name,
            contact_person=contact.name,
            email=contact.email,
            phone=contact.phone,
        ),
    )


def from_document(doc: PersonDocument) -> PersonRecord:
    entity = doc.reporting_entity
    return PersonRecord(
        id=doc.id,
        name=doc.name,
        age=doc.age,
        gender=doc.gender,
        category=doc.category,
        description=doc.physical_description,
        location=doc.last_location,
        date_reported=doc.date_reported,
        photo_url=doc.photo_url,
        contact_info=ContactInfo(
            name=entity.name,
            email=entity.email,
            phone=entity.phone,
        ),
        additional_details=doc.additional_details,
    )


def build_document(records: Iterable[PersonRecord]) -> dict[str, Any]:
    """
    Serialize a record set into the canonical JSON-ready document.

    Returns plain dicts with camelCase keys, ready for json.dumps.
    """
    document = PersonsDocument(persons=[to_document(r) for r in records])
    return document.model_dump(mode="json", by_alias=True)


def records_from_document(payload: dict[str, Any]) -> list[PersonRecord]:
    """
    Parse a canonical document into application records.

    Raises:
        pydantic.ValidationError: If the payload is not a valid document
    """
    document = PersonsDocument.model_validate(payload)
    return [from_document(doc) for doc in document.persons]
