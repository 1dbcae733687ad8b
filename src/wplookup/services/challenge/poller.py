"""
Turnstile clearance polling.

The challenge counts as showing while either marker (the hidden response
input or the widget container) is on the page. Clearance is only declared
after the markers stay absent through the debounce window, so a widget
re-rendering itself does not read as solved.
"""

import asyncio

from loguru import logger
from playwright.async_api import Page

from wplookup.config.selectors import DEFAULT_SELECTORS, SiteSelectors
from wplookup.services.locators import is_present
from wplookup.services.poll_policy import PollPolicy, Sleep, poll_until


class ChallengePoller:
    """Wait out Turnstile challenges with a bounded, debounced poll."""

    def __init__(
        self,
        policy: PollPolicy | None = None,
        selectors: SiteSelectors = DEFAULT_SELECTORS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.policy = policy or PollPolicy()
        self._selectors = selectors
        self.sleep = sleep

    async def markers_present(self, page: Page) -> bool:
        """Whether any challenge marker is on the page right now."""
        for marker in self._selectors.challenge_markers:
            if await is_present(page, marker):
                return True
        return False

    async def await_challenge_clear(
        self,
        page: Page,
        label: str,
        policy: PollPolicy | None = None,
    ) -> bool:
        """Poll until the challenge markers are gone.

        Probe errors (e.g. navigation in progress) count as failed attempts.

        Args:
            page: Playwright page
            label: Where in the flow this wait happens, for logs
            policy: Override of the poller's default policy

        Returns:
            True if cleared, False if the attempt budget ran out
        """
        policy = policy or self.policy
        logger.info(f"Checking for Turnstile challenge ({label})...")

        async def challenge_absent() -> bool:
            return not await self.markers_present(page)

        result = await poll_until(challenge_absent, policy, f"challenge:{label}", self.sleep)

        if result.satisfied:
            logger.info(f"Challenge cleared or not present ({label}), proceeding")
        else:
            logger.warning(
                f"Challenge still present after {result.attempts} attempt(s) ({label})"
            )
        return result.satisfied
