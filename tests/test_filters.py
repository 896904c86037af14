"""
Tests for the search engine and pagination.

The filter is a pure, order-preserving subsequence of the record set.
"""

from datetime import date

import pytest

from reconnect.core import (
    CriteriaError,
    FilterCriteria,
    filter_records,
    paginate,
    total_pages,
)
from reconnect.schemas import Category


class TestFilterRecords:
    """Matching rules, AND-combined."""

    @pytest.fixture
    def records(self, make_record):
        return [
            make_record(name="Omar", age=10, category="missing", location="Cairo", date_reported="2024-01-10"),
            make_record(name="Lina", age=4, category="orphaned", location="Alexandria", date_reported="2024-02-01"),
            make_record(name="Sami", age=35, category="homeless", location="Giza, near CAIRO", date_reported="2023-12-24"),
            make_record(name="Nour", age=15, category="missing", location="Aswan", date_reported="2024-03-05"),
            make_record(name="Yara", age=7, category="separated", location="Cairo", date_reported="not-a-date"),
        ]

    def test_empty_criteria_returns_everything(self, records):
        assert filter_records(records, FilterCriteria()) == records

    def test_result_is_a_new_list(self, records):
        result = filter_records(records, FilterCriteria())
        result.pop()
        assert len(records) == 5

    def test_location_is_case_insensitive_substring(self, records):
        result = filter_records(records, FilterCriteria(location="cairo"))
        assert [r.name for r in result] == ["Omar", "Sami", "Yara"]

    def test_age_bounds_are_inclusive(self, records):
        result = filter_records(records, FilterCriteria(age_min=7, age_max=15))
        assert [r.name for r in result] == ["Omar", "Nour", "Yara"]

    def test_only_one_age_bound(self, records):
        assert [r.name for r in filter_records(records, FilterCriteria(age_min=15))] == ["Sami", "Nour"]
        assert [r.name for r in filter_records(records, FilterCriteria(age_max=4))] == ["Lina"]

    def test_category_exact_match(self, records):
        result = filter_records(records, FilterCriteria(category=Category.MISSING))
        assert [r.name for r in result] == ["Omar", "Nour"]

    def test_reported_on_or_after(self, records):
        result = filter_records(records, FilterCriteria(reported_on_or_after=date(2024, 2, 1)))
        # Lina is on the boundary; Yara's date is unreadable and is kept
        assert [r.name for r in result] == ["Lina", "Nour", "Yara"]

    def test_unreadable_date_is_always_included(self, records):
        result = filter_records(records, FilterCriteria(reported_on_or_after=date(2099, 1, 1)))
        assert [r.name for r in result] == ["Yara"]

    def test_order_is_preserved(self, records):
        result = filter_records(records, FilterCriteria(age_max=20))
        positions = [records.index(r) for r in result]
        assert positions == sorted(positions)

    def test_constraints_compose(self, records):
        location_only = FilterCriteria(location="cairo")
        age_only = FilterCriteria(age_max=12)
        both = FilterCriteria(location="cairo", age_max=12)

        chained = filter_records(filter_records(records, location_only), age_only)
        assert chained == filter_records(records, both)
        assert filter_records(filter_records(records, age_only), location_only) == chained

    def test_filter_is_idempotent(self, records):
        criteria = FilterCriteria(location="a", age_min=5)
        once = filter_records(records, criteria)
        assert filter_records(once, criteria) == once
        assert filter_records(records, criteria) == once

    def test_registered_person_scenario(self, make_record):
        person = make_record(category="missing", age="10", location="Cairo")
        assert person.age == 10

        found = filter_records(
            [person],
            FilterCriteria(location="cairo", age_min=5, age_max=15, category=Category.MISSING),
        )
        assert found == [person]
        assert filter_records([person], FilterCriteria(category=Category.HOMELESS)) == []


class TestCriteriaFromForm:

    def test_blank_values_are_absent(self):
        criteria = FilterCriteria.from_form({
            "location": "  ",
            "age_min": "",
            "age_max": None,
            "category": "",
            "since": "",
        })
        assert criteria.is_empty

    def test_all_category_is_no_constraint(self):
        assert FilterCriteria.from_form({"category": "all"}).category is None

    def test_parses_values(self):
        criteria = FilterCriteria.from_form({
            "location": "Cairo",
            "age_min": "5",
            "age_max": "15",
            "category": "missing",
            "since": "2024-01-31",
        })
        assert criteria == FilterCriteria(
            location="Cairo",
            age_min=5,
            age_max=15,
            category=Category.MISSING,
            reported_on_or_after=date(2024, 1, 31),
        )

    @pytest.mark.parametrize("form", [
        {"age_min": "five"},
        {"age_max": "1.5"},
        {"category": "lost"},
        {"since": "31/01/2024"},
    ])
    def test_malformed_values_raise(self, form):
        with pytest.raises(CriteriaError):
            FilterCriteria.from_form(form)


class TestPaginate:

    def test_single_page_holds_everything(self):
        items = list(range(7))
        page = paginate(items, 1, len(items))
        assert page.items == items
        assert page.total_pages == 1

    def test_empty_input_is_page_one_of_one(self):
        page = paginate([], 1, 6)
        assert page.items == []
        assert page.total_pages == 1
        assert page.indicator == "Page 1 of 1"
        assert not page.has_previous
        assert not page.has_next

    def test_windows(self):
        items = list(range(13))
        assert paginate(items, 1, 6).items == [0, 1, 2, 3, 4, 5]
        assert paginate(items, 3, 6).items == [12]
        assert paginate(items, 2, 6).total_pages == 3

    def test_navigation_flags(self):
        items = list(range(13))
        first, middle, last = (paginate(items, i, 6) for i in (1, 2, 3))
        assert (first.has_previous, first.has_next) == (False, True)
        assert (middle.has_previous, middle.has_next) == (True, True)
        assert (last.has_previous, last.has_next) == (True, False)
        assert last.indicator == "Page 3 of 3"

    def test_out_of_range_page_is_empty_and_not_clamped(self):
        items = list(range(5))
        page = paginate(items, 4, 6)
        assert page.items == []
        assert page.page_index == 4
        assert paginate(items, 0, 6).items == []

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValueError):
            paginate([1, 2], 1, 0)
        with pytest.raises(ValueError):
            total_pages(3, -1)
