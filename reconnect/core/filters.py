"""
Filter Engine

Pure, order-preserving search over a record set.

All supplied constraints are AND-combined. An absent constraint matches
everything, so an empty FilterCriteria returns the record set unchanged.

Unreadable values:
- A dateReported that is not an ISO date never fails the date constraint.
- An age that cannot be read as an integer never fails the age bounds.
"""

from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from ..schemas import Category, PersonRecord


ALL_CATEGORIES = "all"


class CriteriaError(ValueError):
    """Raised when raw form input cannot be turned into criteria."""
    pass


@dataclass(frozen=True)
class FilterCriteria:
    """Optional search constraints. None means 'no constraint'."""
    location: Optional[str] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    category: Optional[Category] = None
    reported_on_or_after: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.location,
                self.age_min,
                self.age_max,
                self.category,
                self.reported_on_or_after,
            )
        )

    @classmethod
    def from_form(cls, form: Mapping[str, Optional[str]]) -> "FilterCriteria":
        """
        Build criteria from raw form or query-string values.

        Recognised keys: location, age_min, age_max, category, since.
        Blank values are treated as absent, and category "all" is no constraint.

        Raises:
            CriteriaError: If an age, category or date is malformed
        """
        location = _blank_to_none(form.get("location"))

        category_raw = _blank_to_none(form.get("category"))
        category = None
        if category_raw is not None and category_raw != ALL_CATEGORIES:
            try:
                category = Category(category_raw)
            except ValueError:
                raise CriteriaError(f"Unknown category: {category_raw}")

        since_raw = _blank_to_none(form.get("since"))
        since = None
        if since_raw is not None:
            try:
                since = date.fromisoformat(since_raw)
            except ValueError:
                raise CriteriaError(f"Invalid date: {since_raw} (expected YYYY-MM-DD)")

        return cls(
            location=location,
            age_min=_parse_bound(form.get("age_min"), "age_min"),
            age_max=_parse_bound(form.get("age_max"), "age_max"),
            category=category,
            reported_on_or_after=since,
        )


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_bound(value: Optional[str], field_name: str) -> Optional[int]:
    value = _blank_to_none(value)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise CriteriaError(f"{field_name} must be a whole number, got {value!r}")


def _read_age(age) -> Optional[int]:
    try:
        return int(age)
    except (TypeError, ValueError):
        return None


def _read_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def matches(record: PersonRecord, criteria: FilterCriteria) -> bool:
    """Check a single record against every supplied constraint."""
    if criteria.location:
        if criteria.location.lower() not in (record.location or "").lower():
            return False

    if criteria.age_min is not None or criteria.age_max is not None:
        age = _read_age(record.age)
        if age is not None:
            if criteria.age_min is not None and age < criteria.age_min:
                return False
            if criteria.age_max is not None and age > criteria.age_max:
                return False

    if criteria.category is not None and record.category != criteria.category:
        return False

    if criteria.reported_on_or_after is not None:
        reported = _read_date(record.date_reported)
        if reported is not None and reported < criteria.reported_on_or_after:
            return False

    return True


def filter_records(
    records: Sequence[PersonRecord],
    criteria: FilterCriteria,
) -> list[PersonRecord]:
    """
    Return the records that satisfy the criteria, in their original order.

    No side effects: the input sequence is never modified.
    """
    if criteria.is_empty:
        return list(records)
    return [record for record in records if matches(record, criteria)]
