"""Unit tests for person-detail field extraction."""

import pytest
from playwright.async_api import Error as PlaywrightError

from wplookup.services.extractor import (
    EXTRACT_FIELDS_SCRIPT,
    RECORD_FIELDS,
    FieldExtractor,
    build_fields,
    parse_birthday,
    split_city_state_zip,
)

FULL_PAGE = {
    "addressLine1": "123 Main St",
    "addressLine2": "New York, NY 10001",
    "ageText": "Age 54 (Mar 1970)",
    "email": "  john.smith@example.com ",
    "phone": "(212) 555-0100",
    "county": "New York County",
}


class TestSplitCityStateZip:
    """Test address line 2 splitting."""

    def test_full_line(self):
        assert split_city_state_zip("New York, NY 10001") == ("New York", "NY", "10001")

    def test_missing_zip(self):
        """Test a state without zip leaves state and zip empty."""
        assert split_city_state_zip("Springfield, IL") == ("Springfield", "", "")

    def test_no_comma(self):
        assert split_city_state_zip("Somewhere") == ("", "", "")


class TestParseBirthday:
    """Test birthday parsing from the age line."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Age 54 (Mar 1970)", "1970-03-01"),
            ("Age 40 (Jul 14, 1984)", "1984-07-14"),
            ("Age 54", ""),
            ("Age ?? (unknown)", ""),
            ("", ""),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_birthday(text) == expected


class TestBuildFields:
    """Test assembly of record fields."""

    def test_full_page(self):
        """Test every field is filled from a complete page."""
        fields = build_fields(FULL_PAGE)

        assert fields == {
            "address": "123 Main St, New York, NY 10001",
            "city": "New York",
            "state": "NY",
            "zip_code": "10001",
            "county": "New York County",
            "birthday": "1970-03-01",
            "emails": "john.smith@example.com",
            "phone_number": "(212) 555-0100",
        }

    def test_missing_address_elements(self):
        """Test missing address lines leave address fields empty, others intact."""
        raw = dict(FULL_PAGE, addressLine1="", addressLine2="")

        fields = build_fields(raw)

        assert set(fields) == set(RECORD_FIELDS)
        assert fields["address"] == ""
        assert fields["city"] == ""
        assert fields["state"] == ""
        assert fields["zip_code"] == ""
        assert fields["emails"] == "john.smith@example.com"
        assert fields["phone_number"] == "(212) 555-0100"
        assert fields["birthday"] == "1970-03-01"

    def test_empty_page(self):
        """Test an empty read yields all-empty fields."""
        assert build_fields({}) == dict.fromkeys(RECORD_FIELDS, "")


class TestFieldExtractor:
    """Test the in-page read."""

    @pytest.mark.asyncio
    async def test_extract(self, make_page):
        """Test the script receives the selector map and its result is normalised."""
        seen = {}

        def script(arg):
            seen.update(arg)
            return FULL_PAGE

        page = make_page(scripts={EXTRACT_FIELDS_SCRIPT: script})

        fields = await FieldExtractor().extract(page)

        assert fields["city"] == "New York"
        assert seen["addressLine1"] == ".address-line1.address-line--linked"
        assert seen["phone"] == '[data-qa-selector="phone-number"] a'

    @pytest.mark.asyncio
    async def test_evaluation_failure_yields_empty_record(self, make_page):
        """Test a failing evaluation never raises."""
        page = make_page(
            scripts={EXTRACT_FIELDS_SCRIPT: PlaywrightError("Execution context was destroyed")}
        )

        fields = await FieldExtractor().extract(page)

        assert fields == dict.fromkeys(RECORD_FIELDS, "")
