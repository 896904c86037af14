"""
Tests for the record <-> canonical document mapping.
"""

import pytest
from pydantic import ValidationError

from reconnect.schemas import (
    PLACEHOLDER_PHOTO,
    Category,
    Gender,
    PersonDocument,
    PersonRecord,
    build_document,
    from_document,
    normalize_photo_url,
    records_from_document,
    to_document,
)


class TestPersonRecord:

    def test_accepts_camel_case_input(self):
        record = PersonRecord.model_validate({
            "id": "id_abc",
            "name": "Omar",
            "age": "12",
            "category": "missing",
            "location": "Cairo",
            "dateReported": "2024-01-01",
            "photoUrl": "img/omar.png",
            "contactInfo": {"name": "Aunt", "email": "", "phone": "123"},
            "additionalDetails": "Wearing a red jacket",
        })
        assert record.age == 12
        assert record.gender == Gender.NOT_SPECIFIED
        assert record.photo_url == "img/omar.png"
        assert record.contact_info.phone == "123"

    def test_dumps_camel_case(self, make_record):
        data = make_record().model_dump(mode="json", by_alias=True)
        assert "dateReported" in data
        assert "contactInfo" in data
        assert "date_reported" not in data

    def test_negative_age_rejected(self, make_record):
        with pytest.raises(ValidationError):
            make_record(age=-1)

    def test_category_display_names(self):
        assert Category.MISSING.display_name == "Missing Person"
        assert Category.ORPHANED.display_name == "Orphaned Child"
        assert Category.HOMELESS.display_name == "Homeless"
        assert Category.SEPARATED.display_name == "Separated"


class TestDocumentMapping:

    def test_field_renames_and_fixed_values(self, make_record):
        record = make_record(description="Tall, brown eyes", location="Aswan")
        doc = to_document(record).model_dump(mode="json", by_alias=True)

        assert doc["physicalDescription"] == "Tall, brown eyes"
        assert doc["lastLocation"] == "Aswan"
        assert doc["status"] == "active"
        assert doc["reportingEntity"] == {
            "name": "Relief Desk",
            "type": "individual",
            "contactPerson": "Relief Desk",
            "email": "desk@example.org",
            "phone": "+20 2 555 0100",
            "address": "",
        }
        assert "description" not in doc
        assert "contactInfo" not in doc

    def test_age_written_as_integer(self, make_record):
        doc = build_document([make_record(age="9")])
        assert doc["persons"][0]["age"] == 9

    def test_round_trip_preserves_core_fields(self, make_record):
        record = make_record(id=42, photo_url="img/image_1_2.jpg")
        back = from_document(to_document(record))

        for field in ("id", "name", "age", "category", "location", "date_reported", "photo_url"):
            assert getattr(back, field) == getattr(record, field)
        assert back.contact_info == record.contact_info

    def test_embedded_image_collapses_to_placeholder(self, make_record):
        record = make_record(photo_url="data:image/png;base64,iVBORw0KGgo=")
        back = from_document(to_document(record))
        assert back.photo_url == PLACEHOLDER_PHOTO

    @pytest.mark.parametrize("url, expected", [
        ("data:image/jpeg;base64,AAAA", PLACEHOLDER_PHOTO),
        ("", PLACEHOLDER_PHOTO),
        (None, PLACEHOLDER_PHOTO),
        ("img/image_1700000000000_42.png", "img/image_1700000000000_42.png"),
    ])
    def test_normalize_photo_url(self, url, expected):
        assert normalize_photo_url(url) == expected

    def test_build_document_preserves_order(self, make_record):
        records = [make_record(name=n) for n in ("C", "A", "B")]
        doc = build_document(records)
        assert [p["name"] for p in doc["persons"]] == ["C", "A", "B"]

    def test_lenient_loading_fills_defaults(self):
        records = records_from_document({
            "persons": [{
                "id": 1,
                "name": "Aisha Patel",
                "age": 8,
                "category": "separated",
                "lastLocation": "Mumbai, India",
                "dateReported": "2023-04-12",
            }]
        })
        record = records[0]
        assert record.id == 1
        assert record.gender == Gender.NOT_SPECIFIED
        assert record.description == ""
        assert record.photo_url == PLACEHOLDER_PHOTO
        assert record.contact_info.name == ""

    def test_empty_document(self):
        assert records_from_document({"persons": []}) == []

    def test_invalid_document_raises(self):
        with pytest.raises(ValidationError):
            records_from_document({"persons": "not-an-array"})

    def test_document_model_defaults(self):
        doc = PersonDocument(
            id="x", name="N", age=1, category="homeless",
            last_location="Here", date_reported="2024-01-01",
        )
        assert doc.status == "active"
        assert doc.reporting_entity.type == "individual"


class TestLenientDocumentLoading:

    @pytest.fixture
    def entry(self):
        return {
            "id": "id_real00001",
            "name": "Real Person",
            "age": 30,
            "gender": "female",
            "category": "missing",
            "physicalDescription": "Tall",
            "lastLocation": "Alexandria",
            "dateReported": "2024-02-02",
            "photoUrl": "img/image_1_1.jpg",
            "additionalDetails": "",
            "reportingEntity": {"name": "Desk", "type": "individual"},
            "status": "active",
        }

    def load_one(self, entry):
        return records_from_document({"persons": [entry]})[0]

    @pytest.mark.parametrize("gender", ["", None, "  ", "unknown", 7])
    def test_blank_or_unknown_gender_is_not_specified(self, entry, gender):
        entry["gender"] = gender
        assert self.load_one(entry).gender == Gender.NOT_SPECIFIED

    @pytest.mark.parametrize("gender, expected", [
        ("Male", Gender.MALE),
        ("FEMALE", Gender.FEMALE),
        (" Not-Specified ", Gender.NOT_SPECIFIED),
    ])
    def test_gender_ignores_case(self, entry, gender, expected):
        entry["gender"] = gender
        assert self.load_one(entry).gender == expected

    def test_category_ignores_case(self, entry):
        entry["category"] = "Homeless"
        assert self.load_one(entry).category == Category.HOMELESS

    @pytest.mark.parametrize("key", ["physicalDescription", "additionalDetails", "lastLocation"])
    def test_null_text_loads_empty(self, entry, key):
        entry[key] = None
        record = self.load_one(entry)
        assert record.name == "Real Person"
        assert "" in (record.description, record.additional_details, record.location)

    @pytest.mark.parametrize("photo", [None, ""])
    def test_blank_photo_is_placeholder(self, entry, photo):
        entry["photoUrl"] = photo
        assert self.load_one(entry).photo_url == PLACEHOLDER_PHOTO

    def test_null_reporting_entity_fields(self, entry):
        entry["reportingEntity"] = {"name": None, "email": None, "phone": None, "type": None}
        record = self.load_one(entry)
        assert record.contact_info.name == ""
        assert record.contact_info.email == ""

    def test_null_reporting_entity(self, entry):
        entry["reportingEntity"] = None
        assert self.load_one(entry).contact_info.phone == ""

    def test_unknown_category_still_rejected(self, entry):
        entry["category"] = "lost-and-found"
        with pytest.raises(ValidationError):
            self.load_one(entry)

    def test_reserializes_cleanly(self, entry):
        entry["gender"] = ""
        entry["physicalDescription"] = None
        document = build_document(records_from_document({"persons": [entry]}))
        person = document["persons"][0]
        assert person["gender"] == "not-specified"
        assert person["physicalDescription"] == ""
        assert person["reportingEntity"]["type"] == "individual"
