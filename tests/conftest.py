"""
Shared fixtures: scripted stand-ins for Playwright pages.

``FakePage`` answers locator counts from a selector map and in-page
evaluations from a script map. ``FakeWhitepages`` subclasses it into a small
simulated site (home, login, results and person-detail pages) so whole
batches can run without a browser.
"""

from typing import Any, Callable

import pytest

from wplookup.config import Config
from wplookup.services.challenge.interceptor import (
    CALLBACK_CHECK_SCRIPT,
    CALLBACK_HANDLE_SCRIPT,
    INVOKE_CALLBACK_SCRIPT,
)
from wplookup.services.extractor import EXTRACT_FIELDS_SCRIPT
from wplookup.services.navigator import LOGIN_ERRORS_SCRIPT, LOGIN_STATUS_SCRIPT


class FakeHandle:
    """JSHandle stand-in for the captured Turnstile callback."""

    def __init__(self) -> None:
        self.tokens: list[str] = []
        self.disposed = False

    async def evaluate(self, script: str, arg: Any = None) -> None:
        assert script == INVOKE_CALLBACK_SCRIPT
        self.tokens.append(arg)

    async def dispose(self) -> None:
        self.disposed = True


class FakeLocator:
    """Locator stand-in; ``first`` is the locator itself."""

    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        return self.page.count(self.selector)

    async def click(self, click_count: int = 1, **kwargs: Any) -> None:
        self.page.clicks.append(self.selector)
        if click_count == 1:
            self.page.handle_click(self.selector)

    async def press_sequentially(self, text: str, **kwargs: Any) -> None:
        self.page.typed[self.selector] = text


class FakeConsoleMessage:
    def __init__(self, text: str):
        self.text = text


class FakePage:
    """Scripted page.

    Attributes:
        dom: selector -> element count, or a callable returning the count
        scripts: script source -> return value, or a callable taking the arg
    """

    def __init__(
        self,
        dom: dict[str, int | Callable[[], int]] | None = None,
        scripts: dict[str, Any] | None = None,
    ):
        self.dom = dict(dom or {})
        self.scripts = dict(scripts or {})
        self.url = "about:blank"
        self.listeners: dict[str, list[Callable]] = {}
        self.init_scripts: list[str] = []
        self.clicks: list[str] = []
        self.typed: dict[str, str] = {}
        self.visited: list[str] = []
        self.reloads = 0
        self.goto_error: Exception | None = None
        self.callback_handle = FakeHandle()

    # Element lookups

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    def count(self, selector: str) -> int:
        value = self.dom.get(selector, 0)
        return value() if callable(value) else value

    def handle_click(self, selector: str) -> None:
        """Hook for subclasses: react to a plain click."""

    # Evaluation

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        return self.evaluate_script(script, arg)

    def evaluate_script(self, script: str, arg: Any) -> Any:
        if script in self.scripts:
            value = self.scripts[script]
            if isinstance(value, Exception):
                raise value
            return value(arg) if callable(value) else value
        if script == CALLBACK_CHECK_SCRIPT:
            return True
        return None

    async def evaluate_handle(self, script: str, arg: Any = None) -> FakeHandle:
        assert script == CALLBACK_HANDLE_SCRIPT
        return self.callback_handle

    async def wait_for_function(self, script: str, timeout: float | None = None) -> None:
        return None

    # Navigation

    async def goto(self, url: str, **kwargs: Any) -> None:
        if self.goto_error is not None:
            raise self.goto_error
        self.visited.append(url)
        self.url = url
        self.handle_goto(url)

    def handle_goto(self, url: str) -> None:
        """Hook for subclasses: react to a navigation."""

    async def reload(self, **kwargs: Any) -> None:
        self.reloads += 1

    # Events

    async def add_init_script(self, script: str | None = None, **kwargs: Any) -> None:
        self.init_scripts.append(script)

    def on(self, event: str, handler: Callable) -> None:
        self.listeners.setdefault(event, []).append(handler)

    async def emit(self, event: str, payload: Any) -> None:
        for handler in self.listeners.get(event, []):
            await handler(payload)


HOME_URL = "https://www.whitepages.com/"
LOGIN_URL = "https://www.whitepages.com/auth/login?redirect=%2F"


class FakeWhitepages(FakePage):
    """A tiny simulated Whitepages site.

    Args:
        people: name -> raw detail-page texts (as EXTRACT_FIELDS_SCRIPT returns
            them); names not listed have no results
        logged_in: Whether the persistent profile already holds a session
        challenge_probes: Probes for which the Turnstile markers stay up after
            each navigation
        consent_modal: Show the terms modal on the first results page
        navbar_form: Whether person-detail pages carry the navbar search form
    """

    def __init__(
        self,
        people: dict[str, dict[str, str]],
        logged_in: bool = True,
        challenge_probes: int = 0,
        consent_modal: bool = False,
        navbar_form: bool = True,
    ):
        super().__init__()
        self.people = people
        self.logged_in = logged_in
        self.challenge_probes = challenge_probes
        self.consent_pending = consent_modal
        self.navbar_form = navbar_form
        self.view = "blank"
        self.current_person: str | None = None
        self.searches: list[tuple[str, str]] = []
        self._challenge_left = 0

        self.scripts[LOGIN_STATUS_SCRIPT] = lambda _: {
            "loggedInMarker": self.logged_in,
            "loggedOutHidden": self.logged_in,
            "loggedInVisible": self.logged_in,
            "loggedOutVisible": not self.logged_in,
        }
        self.scripts[LOGIN_ERRORS_SCRIPT] = lambda _: []
        self.scripts[EXTRACT_FIELDS_SCRIPT] = lambda _: (
            self.people.get(self.current_person, {}) if self.view == "detail" else {}
        )

    def handle_goto(self, url: str) -> None:
        self.view = "login" if url == LOGIN_URL else "home"
        self._challenge_left = self.challenge_probes

    def count(self, selector: str) -> int:
        if selector == 'input[name="cf-turnstile-response"]':
            if self._challenge_left > 0:
                self._challenge_left -= 1
                return 1
            return 0
        return 1 if selector in self._visible() else 0

    def _visible(self) -> set[str]:
        if self.view == "home":
            visible = {"#search-name", "#search-location", "#wp-search"}
            if self.typed.get("#search-location"):
                visible.add(".location-suggestion")
            return visible

        if self.view == "login":
            return {
                '[data-qa-selector="login-username-input"]',
                '[data-qa-selector="login-password-input"]',
                '[data-qa-selector="login-submit-btn"]',
            }

        if self.view == "results":
            visible = set()
            if self.consent_pending:
                visible |= {".tos-modal-card", "#tos-checkbox", "[data-js-tos-continue-button]"}
            if self.current_person in self.people:
                visible.add('[data-qa-selector="email-link"]')
            else:
                visible.add(".no-results")
            return visible

        if self.view == "detail" and self.navbar_form:
            visible = {
                "#name-input",
                "#location-input",
                '[data-qa-selector="person-search-button"]',
            }
            if self.typed.get("#location-input"):
                visible.add('[data-qa-selector="person-location-suggestions"] > div')
            return visible

        return set()

    def handle_click(self, selector: str) -> None:
        if selector == "#wp-search":
            self._search(self.typed.get("#search-name"), self.typed.get("#search-location"))
        elif selector == '[data-qa-selector="person-search-button"]':
            self._search(self.typed.get("#name-input"), self.typed.get("#location-input"))
        elif selector == "[data-js-tos-continue-button]":
            self.consent_pending = False
        elif selector == '[data-qa-selector="email-link"]':
            self.view = "detail"
        elif selector == '[data-qa-selector="login-submit-btn"]':
            if self.typed.get('[data-qa-selector="login-password-input"]'):
                self.logged_in = True

    def _search(self, name: str | None, location: str | None) -> None:
        self.searches.append((name, location))
        self.current_person = name
        self.view = "results"
        self.typed.pop("#location-input", None)


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def make_page() -> Callable[..., FakePage]:
    return FakePage


@pytest.fixture
def make_site() -> Callable[..., FakeWhitepages]:
    return FakeWhitepages


@pytest.fixture
def console_message() -> Callable[[str], FakeConsoleMessage]:
    return FakeConsoleMessage


@pytest.fixture
def sleeps() -> list[float]:
    """Recorded sleep durations (see ``no_sleep``)."""
    return []


@pytest.fixture
def no_sleep(sleeps: list[float]) -> Callable[[float], Any]:
    """Awaitable sleep that records the duration and returns immediately."""

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def test_config(tmp_path) -> Config:
    """Configuration with every delay at zero and no .env file."""
    return Config(
        _env_file=None,
        twocaptcha_api_key=None,
        challenge_poll_interval_seconds=0.0,
        challenge_max_attempts=5,
        challenge_debounce_rounds=1,
        settle_short_seconds=0.0,
        settle_detail_seconds=0.0,
        login_settle_seconds=0.0,
        rate_limit_enabled=False,
        log_file=str(tmp_path / "logs" / "wplookup.log"),
        extension_config_path=str(tmp_path / "config.js"),
    )
