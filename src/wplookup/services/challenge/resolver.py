"""
Host-side Turnstile resolution.

Listens to the page console for lines written by the interceptor, sends the
captured parameters to the solving service and hands the token back to the
widget callback. At most one solve runs per page; interceptions that arrive
while a solve is in flight are dropped so the paid service is not billed
twice for one widget.

Failure policy: a failed or timed-out solve is logged and swallowed. The
caller's challenge poller then either sees the widget clear on its own or
runs out of attempts and proceeds optimistically.
"""

import asyncio

from loguru import logger
from playwright.async_api import ConsoleMessage, Page
from playwright.async_api import Error as PlaywrightError

from wplookup.errors import ChallengeSolveError
from wplookup.models.challenge import INTERCEPT_PREFIX, ChallengeParams
from wplookup.services.challenge.interceptor import ChallengeSession
from wplookup.services.challenge.solver import TurnstileSolver


class ChallengeResolver:
    """Turn intercepted Turnstile renders into solved tokens."""

    def __init__(
        self,
        page: Page,
        session: ChallengeSession,
        solver: TurnstileSolver | None,
        solve_timeout_seconds: float | None = None,
    ):
        """Initialize resolver.

        Args:
            page: Page whose console is watched
            session: Owner of the captured widget callback for this page
            solver: Solving service, or None to log interceptions only
            solve_timeout_seconds: Upper bound for one solve (None = unbounded)
        """
        self._page = page
        self._session = session
        self._solver = solver
        self._solve_timeout = solve_timeout_seconds

        self.in_progress = False
        self._active: asyncio.Task | None = None
        self.interceptions = 0
        self.ignored = 0
        self.solve_attempts = 0
        self.solved = 0
        self.failed = 0

    def attach(self) -> None:
        """Subscribe to the page console."""
        self._page.on("console", self.handle_console_message)
        logger.debug("Challenge resolver listening to page console")

    async def handle_console_message(self, message: ConsoleMessage) -> None:
        """Console event handler; ignores everything but interception lines."""
        text = message.text
        if INTERCEPT_PREFIX in text:
            await self.handle_interception(text)
        elif text == "Console was cleared":
            logger.debug("Page tried to clear the console")

    async def handle_interception(self, text: str) -> None:
        """Solve the challenge described by one interception line."""
        self.interceptions += 1

        if self.in_progress:
            self.ignored += 1
            logger.info("Turnstile solve already in progress, ignoring interception")
            return

        self.in_progress = True
        self._active = asyncio.current_task()
        try:
            try:
                params = ChallengeParams.from_console_line(text)
            except ValueError as e:
                logger.error(f"Discarding Turnstile interception: {e}")
                return

            logger.info(
                f"Intercepted Turnstile parameters (sitekey={params.site_key[:12]}..., "
                f"action={params.action})"
            )

            if not await self._session.capture(self._page):
                return

            if self._solver is None:
                logger.warning("No solver configured, leaving Turnstile unsolved")
                return

            self.solve_attempts += 1
            if self._solve_timeout:
                result = await asyncio.wait_for(
                    self._solver.solve(params), timeout=self._solve_timeout
                )
            else:
                result = await self._solver.solve(params)

            await self._session.invoke(result.token)
            self.solved += 1

        except ChallengeSolveError as e:
            self.failed += 1
            logger.error(f"Error solving Turnstile: {e}")

        except asyncio.TimeoutError:
            self.failed += 1
            logger.error(f"Turnstile solve timed out after {self._solve_timeout}s")

        except PlaywrightError as e:
            # Page navigated or closed between interception and callback
            self.failed += 1
            logger.error(f"Could not deliver Turnstile token to page: {e}")

        except Exception as e:
            self.failed += 1
            logger.error(f"Unexpected error handling Turnstile interception: {e}")

        finally:
            self.in_progress = False
            self._active = None

    def cancel(self) -> bool:
        """Cancel the solve in flight, if any.

        Returns:
            True if a running solve was cancelled
        """
        task = self._active
        if task is None or task.done():
            return False
        logger.info("Cancelling in-flight Turnstile solve")
        return task.cancel()
