"""
Page readiness waits for Playwright browser automation.

Document-completion waits, fixed settle delays and navigation helpers shared
by the navigator and the search orchestrator.
"""

import asyncio

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from wplookup.services.poll_policy import Sleep

DOCUMENT_COMPLETE = "() => document.readyState === 'complete'"


class PageWaiter:
    """Wait for pages to finish loading and for asynchronous updates to settle."""

    def __init__(
        self,
        timeout_ms: int = 30000,
        navigation_timeout_ms: int = 60000,
        sleep: Sleep = asyncio.sleep,
    ):
        """Initialize waiter.

        Args:
            timeout_ms: Timeout for document-completion waits in milliseconds
            navigation_timeout_ms: Timeout for page.goto in milliseconds
            sleep: Awaitable sleep used for settle delays
        """
        self.timeout_ms = timeout_ms
        self.navigation_timeout_ms = navigation_timeout_ms
        self._sleep = sleep

    async def wait_for_document_complete(self, page: Page) -> bool:
        """Wait until ``document.readyState`` is ``complete``.

        Args:
            page: Playwright page

        Returns:
            True if the document completed, False on timeout
        """
        try:
            await page.wait_for_function(DOCUMENT_COMPLETE, timeout=self.timeout_ms)
            logger.debug("Document complete")
            return True

        except PlaywrightTimeoutError:
            logger.warning(f"Document not complete after {self.timeout_ms}ms")
            return False

    async def settle(self, seconds: float) -> None:
        """Pause so asynchronous page updates can finish before the next query."""
        if seconds > 0:
            await self._sleep(seconds)

    async def navigate(self, page: Page, url: str, *, reload_on_error: bool = False) -> None:
        """Navigate to ``url`` and wait for the document to complete.

        Args:
            page: Playwright page
            url: Destination URL
            reload_on_error: Reload the current page instead of raising when
                navigation fails

        Raises:
            PlaywrightError: If navigation fails and ``reload_on_error`` is False
        """
        logger.info(f"Navigating to {url}")
        try:
            await page.goto(url, wait_until="load", timeout=self.navigation_timeout_ms)
        except PlaywrightError as e:
            if not reload_on_error:
                raise
            logger.warning(f"Navigation to {url} failed, reloading instead: {e}")
            await page.reload(wait_until="load", timeout=self.navigation_timeout_ms)

        await self.wait_for_document_complete(page)
