"""Browser session management for Whitepages automation.

One ``BrowserSession`` serves exactly one batch: it launches Chrome with a
persistent profile (which keeps the site login between runs), opens a single
page, wires the Turnstile interceptor and resolver onto it, and releases
everything on exit however the batch ended.

Example:
    async with BrowserSession(config, solver) as session:
        navigator = SessionNavigator(session.page, ...)
"""

from loguru import logger
from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from wplookup.config.settings import Config
from wplookup.errors import BrowserLaunchError
from wplookup.services.challenge.interceptor import ChallengeSession, install_interceptor
from wplookup.services.challenge.resolver import ChallengeResolver
from wplookup.services.challenge.solver import TurnstileSolver

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-first-run",
    "--no-default-browser-check",
]


class BrowserSession:
    """Scoped browser, page and challenge handling for one batch."""

    def __init__(self, config: Config, solver: TurnstileSolver | None = None):
        """Initialize browser session.

        Args:
            config: Application configuration (browser and timeout settings)
            solver: Turnstile solver handed to the page's resolver
        """
        self._config = config
        self._solver = solver
        self._playwright = None
        self._context: BrowserContext | None = None
        self.page: Page | None = None
        self.challenge_session: ChallengeSession | None = None
        self.resolver: ChallengeResolver | None = None

    async def __aenter__(self) -> "BrowserSession":
        """Async context manager entry - launch browser and prepare the page."""
        try:
            await self.open()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - always release the browser."""
        await self.close()

    async def open(self) -> Page:
        """Launch Chrome and prepare a page with Turnstile handling attached.

        Raises:
            BrowserLaunchError: If Chrome or the page could not be started
        """
        config = self._config
        self._playwright = await async_playwright().start()

        launch_options = {
            "user_data_dir": config.browser_profile_dir,
            "headless": config.headless,
            "viewport": {"width": config.viewport_width, "height": config.viewport_height},
            "args": LAUNCH_ARGS,
        }
        if config.browser_channel:
            launch_options["channel"] = config.browser_channel
        if config.user_agent:
            launch_options["user_agent"] = config.user_agent

        try:
            logger.info(
                f"Launching Chrome (headless={config.headless}, "
                f"profile={config.browser_profile_dir})..."
            )
            self._context = await self._playwright.chromium.launch_persistent_context(
                **launch_options
            )
        except PlaywrightError as e:
            logger.error(f"Failed to launch Chrome: {e}")
            logger.warning("Ensure no other Chrome is running with the same profile directory")
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

        self._context.set_default_timeout(config.page_timeout_ms)
        self._context.set_default_navigation_timeout(config.navigation_timeout_ms)

        pages = self._context.pages
        self.page = pages[0] if pages else await self._context.new_page()

        await install_interceptor(self.page)
        self.challenge_session = ChallengeSession()
        self.resolver = ChallengeResolver(
            self.page,
            self.challenge_session,
            self._solver,
            solve_timeout_seconds=config.solve_timeout_seconds,
        )
        self.resolver.attach()

        logger.info("Browser page ready")
        return self.page

    async def close(self) -> None:
        """Release the page, context and Playwright driver."""
        if self.resolver is not None:
            self.resolver.cancel()

        if self.challenge_session is not None:
            try:
                await self.challenge_session.reset()
            except PlaywrightError as e:
                logger.debug(f"Error releasing challenge callback: {e}")
            self.challenge_session = None

        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            self._context = None

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
            self._playwright = None

        if self.page is not None:
            logger.info("Browser closed")
        self.page = None
        self.resolver = None
