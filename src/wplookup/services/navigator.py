"""
Session navigation: home page, challenge clearance and login.

State is never cached. Every decision re-reads the DOM markers because the
site can put a challenge back up or drop the session at any point.

    Start -> ChallengeCheck -> LoginCheck -> (LoginForm ->) SearchReady

Login state uses marker co-presence: the session is logged in when the
logged-in content block exists *and* the logged-out block carries the
``hidden`` class.
"""

from dataclasses import dataclass

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from wplookup.config.selectors import DEFAULT_SELECTORS, SiteSelectors
from wplookup.config.settings import Config
from wplookup.errors import LoginFailedError
from wplookup.models.person import Credentials, SessionState
from wplookup.services.challenge.poller import ChallengePoller
from wplookup.services.locators import find_first, replace_text
from wplookup.services.page_waits import PageWaiter
from wplookup.services.poll_policy import poll_until

LOGIN_STATUS_SCRIPT = """
(selectors) => {
  const loggedIn = document.querySelector(selectors.loggedIn);
  const loggedOutHidden = document.querySelector(selectors.loggedOutHidden);
  return {
    loggedInMarker: !!loggedIn,
    loggedOutHidden: !!loggedOutHidden,
    loggedInVisible: !!loggedIn && loggedIn.offsetParent !== null,
    loggedOutVisible: !!loggedOutHidden && loggedOutHidden.offsetParent !== null,
  };
}
"""

LOGIN_ERRORS_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector))
  .map((el) => (el.textContent || "").trim())
  .filter((text) => text.length > 0)
  .slice(0, 5)
"""


@dataclass(frozen=True)
class LoginStatus:
    """Login markers as read from the current document."""

    logged_in_marker: bool = False
    logged_out_hidden: bool = False
    logged_in_visible: bool = False
    logged_out_visible: bool = True

    @property
    def is_logged_in(self) -> bool:
        return self.logged_in_marker and self.logged_out_hidden

    @classmethod
    def from_page_result(cls, result: dict) -> "LoginStatus":
        return cls(
            logged_in_marker=bool(result.get("loggedInMarker")),
            logged_out_hidden=bool(result.get("loggedOutHidden")),
            logged_in_visible=bool(result.get("loggedInVisible")),
            logged_out_visible=bool(result.get("loggedOutVisible")),
        )


class SessionNavigator:
    """Bring a fresh page to the search-ready home page, logging in if needed."""

    def __init__(
        self,
        page: Page,
        poller: ChallengePoller,
        waiter: PageWaiter,
        config: Config,
        selectors: SiteSelectors = DEFAULT_SELECTORS,
    ):
        self.page = page
        self.poller = poller
        self.waiter = waiter
        self.config = config
        self.selectors = selectors

    async def open_home(self) -> bool:
        """Initial navigation to the home page, then wait out any challenge.

        Returns:
            Whether the challenge cleared (False means proceeding optimistically)
        """
        await self.waiter.navigate(self.page, self.config.whitepages_base_url)
        cleared = await self.poller.await_challenge_clear(self.page, "home")
        if not cleared:
            logger.warning("Proceeding past home-page challenge without clearance")
        return cleared

    async def go_home(self) -> None:
        """Return to the home/search page, reloading if navigation fails."""
        await self.waiter.navigate(
            self.page, self.config.whitepages_base_url, reload_on_error=True
        )

    async def check_login_status(self) -> LoginStatus:
        """Read the login markers. A failed read counts as logged out."""
        try:
            result = await self.page.evaluate(
                LOGIN_STATUS_SCRIPT,
                {
                    "loggedIn": self.selectors.logged_in_content.as_css(),
                    "loggedOutHidden": self.selectors.logged_out_hidden.as_css(),
                },
            )
        except PlaywrightError as e:
            logger.warning(f"Error checking login status, assuming not logged in: {e}")
            return LoginStatus()

        status = LoginStatus.from_page_result(result or {})
        logger.info(
            f"Login status: logged_in={status.is_logged_in} "
            f"(marker={status.logged_in_marker}, logged_out_hidden={status.logged_out_hidden})"
        )
        return status

    async def current_state(self) -> SessionState:
        """Infer the session state from the DOM as it is right now."""
        if await self.poller.markers_present(self.page):
            return SessionState.CHALLENGE_PENDING
        status = await self.check_login_status()
        return SessionState.LOGGED_IN if status.is_logged_in else SessionState.LOGGED_OUT

    async def login(self, credentials: Credentials) -> bool:
        """Submit the login form.

        Controls are located through their selector fallback chains. The
        login page can show its own challenge, so that is awaited first.

        Args:
            credentials: Site credentials

        Returns:
            True if the login markers show a logged-in session afterwards
        """
        logger.info(f"Logging in as {credentials.email}")
        await self.waiter.navigate(self.page, self.config.whitepages_login_url)
        await self.poller.await_challenge_clear(self.page, "login")

        async def email_field_present() -> bool:
            return await find_first(self.page, self.selectors.login_email) is not None

        await poll_until(
            email_field_present,
            self.config.control_poll_policy(),
            "login-form",
            self.poller.sleep,
        )

        email_input = await find_first(self.page, self.selectors.login_email)
        password_input = await find_first(self.page, self.selectors.login_password)
        submit_button = await find_first(self.page, self.selectors.login_submit)

        if email_input is None or password_input is None or submit_button is None:
            logger.warning(
                "Login form elements not found "
                f"(email={email_input is not None}, password={password_input is not None}, "
                f"submit={submit_button is not None})"
            )
            return False

        await replace_text(email_input, credentials.email)
        await replace_text(password_input, credentials.password)
        await submit_button.click()
        logger.info("Login form submitted")

        await self.waiter.settle(self.config.login_settle_seconds)
        await self._log_login_errors()

        status = await self.check_login_status()
        if not status.is_logged_in:
            logger.warning("Login markers still show a logged-out session")
        return status.is_logged_in

    async def _log_login_errors(self) -> None:
        try:
            messages = await self.page.evaluate(
                LOGIN_ERRORS_SCRIPT, self.selectors.login_errors.as_css()
            )
        except PlaywrightError as e:
            logger.debug(f"Could not read login error messages: {e}")
            return

        for message in messages or []:
            logger.warning(f"Login page message: {message}")

    async def ensure_search_ready(self, credentials: Credentials) -> SessionState:
        """Drive the page from blank to the search-ready home page.

        Raises:
            LoginFailedError: If login verification is enabled and fails
        """
        await self.open_home()

        status = await self.check_login_status()
        if status.is_logged_in:
            logger.info("Already logged in")
        else:
            logger.info("Not logged in, going to login page")
            logged_in = await self.login(credentials)
            if not logged_in and self.config.verify_login:
                raise LoginFailedError(f"Login failed for {credentials.email}")

        await self.go_home()
        await self.poller.await_challenge_clear(self.page, "search page")
        logger.info("Session ready for search")
        return SessionState.SEARCH_READY
