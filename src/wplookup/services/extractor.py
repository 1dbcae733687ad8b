"""
Person-detail page field extraction.

One in-page evaluation reads the raw text of every field selector; absent
elements come back as empty strings. Normalisation (address split, birthday
parse) happens in Python so it can be tested without a browser.
"""

import re
from datetime import datetime

from dateutil import parser as date_parser
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from wplookup.config.selectors import DEFAULT_SELECTORS, SiteSelectors

# Fields every successful record carries, with their empty defaults
RECORD_FIELDS = (
    "address",
    "city",
    "state",
    "zip_code",
    "county",
    "birthday",
    "emails",
    "phone_number",
)

# JAVASCRIPT_JUSTIFICATION: one round trip for all fields; each lookup
# tolerates a missing element and returns "".
EXTRACT_FIELDS_SCRIPT = """
(selectors) => {
  const text = (selector) => {
    const el = document.querySelector(selector);
    return el && el.textContent ? el.textContent.trim() : "";
  };
  return {
    addressLine1: text(selectors.addressLine1),
    addressLine2: text(selectors.addressLine2),
    ageText: text(selectors.age),
    email: text(selectors.email),
    phone: text(selectors.phone),
    county: text(selectors.county),
  };
}
"""

_PARENTHESIZED = re.compile(r"\(([^)]+)\)")

# Day and month fall back to the 1st when the page shows only "Mar 1970"
_BIRTHDAY_DEFAULT = datetime(1900, 1, 1)


def split_city_state_zip(line: str) -> tuple[str, str, str]:
    """Split ``"City, ST 12345"`` into its parts.

    Each stage needs at least two parts; otherwise the fields it would have
    produced stay empty.

    Returns:
        (city, state, zip_code)
    """
    parts = line.split(", ")
    if len(parts) < 2:
        return "", "", ""

    city = parts[0]
    state_zip = parts[1].split(" ")
    if len(state_zip) < 2:
        return city, "", ""

    return city, state_zip[0], state_zip[1]


def parse_birthday(age_text: str) -> str:
    """Parse the parenthesized date in an age line such as ``"Age 54 (Mar 1970)"``.

    Returns:
        ISO date string, or "" when there is no parseable date
    """
    match = _PARENTHESIZED.search(age_text)
    if not match:
        return ""

    try:
        parsed = date_parser.parse(match.group(1), default=_BIRTHDAY_DEFAULT)
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable birthday text: {match.group(1)!r}")
        return ""

    return parsed.date().isoformat()


def build_fields(raw: dict) -> dict[str, str]:
    """Assemble record fields from the raw in-page texts."""
    fields = dict.fromkeys(RECORD_FIELDS, "")

    line1 = (raw.get("addressLine1") or "").strip()
    line2 = (raw.get("addressLine2") or "").strip()
    if line1 and line2:
        fields["address"] = f"{line1}, {line2}"
        fields["city"], fields["state"], fields["zip_code"] = split_city_state_zip(line2)

    fields["birthday"] = parse_birthday(raw.get("ageText") or "")
    fields["emails"] = (raw.get("email") or "").strip()
    fields["phone_number"] = (raw.get("phone") or "").strip()
    fields["county"] = (raw.get("county") or "").strip()
    return fields


class FieldExtractor:
    """Read a person-detail page into record fields."""

    def __init__(self, selectors: SiteSelectors = DEFAULT_SELECTORS):
        self._selectors = selectors

    def _script_arg(self) -> dict[str, str]:
        s = self._selectors
        return {
            "addressLine1": s.address_line1.as_css(),
            "addressLine2": s.address_line2.as_css(),
            "age": s.age.as_css(),
            "email": s.email.as_css(),
            "phone": s.phone.as_css(),
            "county": s.county.as_css(),
        }

    async def extract(self, page: Page) -> dict[str, str]:
        """Extract fields from the loaded person-detail page.

        Never raises for missing elements; a failed evaluation yields a record
        of empty fields.
        """
        try:
            raw = await page.evaluate(EXTRACT_FIELDS_SCRIPT, self._script_arg())
        except PlaywrightError as e:
            logger.warning(f"Field extraction failed, returning empty fields: {e}")
            raw = {}

        fields = build_fields(raw or {})
        found = [name for name, value in fields.items() if value]
        logger.info(f"Extracted {len(found)} field(s): {', '.join(found) or 'none'}")
        return fields
