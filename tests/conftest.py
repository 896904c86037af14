import pytest

from reconnect.schemas import ContactInfo, PersonRecord


@pytest.fixture
def make_record():
    """Factory for PersonRecord with sensible defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"id_{counter['n']:09d}",
            "name": f"Person {counter['n']}",
            "age": 10,
            "gender": "not-specified",
            "category": "missing",
            "description": "",
            "location": "Cairo, Egypt",
            "date_reported": "2024-03-01",
            "photo_url": "img/placeholder.jpg",
            "contact_info": ContactInfo(name="Relief Desk", email="desk@example.org", phone="+20 2 555 0100"),
            "additional_details": "",
        }
        data.update(overrides)
        return PersonRecord(**data)

    return _make
