"""
Person Record Schema

The application shape of a registered person.
This is what the search engine, the store and the client work with.
"""

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


PLACEHOLDER_PHOTO = "img/placeholder.jpg"


class Category(str, Enum):
    """Why a person is registered."""
    MISSING = "missing"
    ORPHANED = "orphaned"
    HOMELESS = "homeless"
    SEPARATED = "separated"

    @property
    def display_name(self) -> str:
        return _CATEGORY_DISPLAY_NAMES[self]


_CATEGORY_DISPLAY_NAMES = {
    Category.MISSING: "Missing Person",
    Category.ORPHANED: "Orphaned Child",
    Category.HOMELESS: "Homeless",
    Category.SEPARATED: "Separated",
}


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    NOT_SPECIFIED = "not-specified"


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire. Accepts both on input."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactInfo(CamelModel):
    """Who to contact about a record."""
    name: str = ""
    email: str = ""
    phone: str = ""


class PersonRecord(CamelModel):
    """
    A registered person.

    Records are append-only: once created they are never edited or deleted.
    The id is assigned at creation and is unique within a record set.
    """
    id: Union[int, str] = Field(..., description="Opaque unique identifier")

    name: str = Field(..., min_length=1, description="Display name")

    # Form input arrives as a string; pydantic coerces "10" -> 10
    age: int = Field(..., ge=0)

    gender: Gender = Gender.NOT_SPECIFIED

    category: Category

    description: str = ""

    location: str = Field(..., description="Last known location")

    date_reported: str = Field(
        ...,
        description="ISO date (YYYY-MM-DD). Kept as text so bad dates still load.",
        examples=["2023-04-12"],
    )

    photo_url: str = Field(
        default=PLACEHOLDER_PHOTO,
        description="Relative image path, data URI, or the placeholder path",
    )

    contact_info: ContactInfo = Field(default_factory=ContactInfo)

    additional_details: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "id_k3j9x0a1b",
                "name": "Aisha Patel",
                "age": 8,
                "gender": "female",
                "category": "separated",
                "description": "Black hair, brown eyes, small build.",
                "location": "Mumbai, India",
                "dateReported": "2023-04-12",
                "photoUrl": "img/placeholder.jpg",
                "contactInfo": {
                    "name": "Mumbai Child Services",
                    "email": "childservices@mumbai.gov.in",
                    "phone": "+91 22 2345 6789",
                },
                "additionalDetails": "",
            }
        }
    )
