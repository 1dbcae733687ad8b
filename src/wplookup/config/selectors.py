"""Selector chains for the Whitepages pages.

Every DOM lookup the navigator, orchestrator and extractor perform is listed
here. A chain is an ordered list of alternative CSS selectors; the first one
that matches wins. Site drift is handled by editing this data (or by pointing
``selectors_file`` at a JSON override) rather than the navigation code.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path

from loguru import logger

from wplookup.errors import WplookupError


@dataclass(frozen=True)
class SelectorChain:
    """Prioritized alternatives for locating one page element."""

    name: str
    selectors: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.selectors:
            raise ValueError(f"Selector chain '{self.name}' must not be empty")

    @property
    def primary(self) -> str:
        return self.selectors[0]

    def as_css(self) -> str:
        """All alternatives as one CSS selector list (first match in document order)."""
        return ", ".join(self.selectors)


def chain(name: str, *selectors: str) -> SelectorChain:
    return SelectorChain(name=name, selectors=tuple(selectors))


@dataclass(frozen=True)
class SiteSelectors:
    """All selector chains used against the live site."""

    # Turnstile challenge markers (presence of either means "still showing")
    challenge_input: SelectorChain = chain(
        "challenge_input", 'input[name="cf-turnstile-response"]'
    )
    challenge_container: SelectorChain = chain("challenge_container", 'div[id^="RInW4"]')

    # Login state markers
    logged_in_content: SelectorChain = chain("logged_in_content", ".logged-in-content")
    logged_out_hidden: SelectorChain = chain(
        "logged_out_hidden", ".logged-out-content.hidden"
    )

    # Login form
    login_email: SelectorChain = chain(
        "login_email",
        '[data-qa-selector="login-username-input"]',
        'input[type="email"]',
        'input[name="email"]',
        'input[placeholder*="email" i]',
    )
    login_password: SelectorChain = chain(
        "login_password",
        '[data-qa-selector="login-password-input"]',
        'input[type="password"]',
        'input[name="password"]',
    )
    login_submit: SelectorChain = chain(
        "login_submit",
        '[data-qa-selector="login-submit-btn"]',
        'button[type="submit"]',
        'input[type="submit"]',
    )
    login_errors: SelectorChain = chain(
        "login_errors", '.error, .alert, [class*="error"], [class*="alert"]'
    )

    # Primary (home page) search form
    search_name: SelectorChain = chain("search_name", "#search-name")
    search_location: SelectorChain = chain("search_location", "#search-location")
    search_submit: SelectorChain = chain("search_submit", "#wp-search")
    search_suggestions: SelectorChain = chain("search_suggestions", ".location-suggestion")

    # Navbar search form (person-detail pages)
    navbar_name: SelectorChain = chain("navbar_name", "#name-input")
    navbar_location: SelectorChain = chain("navbar_location", "#location-input")
    navbar_submit: SelectorChain = chain(
        "navbar_submit", '[data-qa-selector="person-search-button"]'
    )
    navbar_suggestions: SelectorChain = chain(
        "navbar_suggestions", '[data-qa-selector="person-location-suggestions"] > div'
    )

    # Consent (terms of service) modal
    consent_modal: SelectorChain = chain("consent_modal", ".tos-modal-card")
    consent_checkbox: SelectorChain = chain("consent_checkbox", "#tos-checkbox")
    consent_continue: SelectorChain = chain(
        "consent_continue", "[data-js-tos-continue-button]"
    )

    # Results page
    no_results: SelectorChain = chain(
        "no_results", ".no-results", '[data-qa-selector="no-results"]'
    )
    result_links: SelectorChain = chain("result_links", '[data-qa-selector="email-link"]')

    # Person-detail page fields
    address_line1: SelectorChain = chain(
        "address_line1", ".address-line1.address-line--linked"
    )
    address_line2: SelectorChain = chain(
        "address_line2", ".address-line2.address-line--linked"
    )
    age: SelectorChain = chain("age", ".person-age-desktop .list-item--content--title")
    email: SelectorChain = chain("email", '[data-qa-selector="email"]')
    phone: SelectorChain = chain("phone", '[data-qa-selector="phone-number"] a')
    county: SelectorChain = chain("county", ".county-info")

    @property
    def challenge_markers(self) -> tuple[SelectorChain, ...]:
        return (self.challenge_input, self.challenge_container)


DEFAULT_SELECTORS = SiteSelectors()


def load_selectors(path: str | Path | None) -> SiteSelectors:
    """Load selector overrides from a JSON file.

    The file maps chain names to a list of selectors, e.g.
    ``{"search_name": ["#search-name", "input[name='name']"]}``.
    Chains not mentioned keep their built-in selectors.

    Args:
        path: JSON file path, or None for the built-in selectors

    Returns:
        SiteSelectors with overrides applied

    Raises:
        WplookupError: If the file is unreadable or names an unknown chain
    """
    if path is None:
        return DEFAULT_SELECTORS

    path = Path(path).expanduser()
    try:
        overrides = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise WplookupError(f"Cannot read selectors file {path}: {e}") from e

    if not isinstance(overrides, dict):
        raise WplookupError(f"Selectors file {path} must contain a JSON object")

    known = {f.name for f in fields(SiteSelectors)}
    changes: dict[str, SelectorChain] = {}
    for name, selectors in overrides.items():
        if name not in known:
            raise WplookupError(f"Unknown selector chain '{name}' in {path}")
        if isinstance(selectors, str):
            selectors = [selectors]
        changes[name] = SelectorChain(name=name, selectors=tuple(selectors))

    logger.info(f"Loaded {len(changes)} selector override(s) from {path}")
    return replace(DEFAULT_SELECTORS, **changes)
