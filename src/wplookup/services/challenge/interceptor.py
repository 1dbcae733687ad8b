"""
Turnstile render interception.

The init script below runs in every document the page loads, before any site
script. It keeps the site from clearing the console, waits for the Turnstile
global to appear, and swaps ``turnstile.render`` for a wrapper that reports
the widget's parameters on the console instead of rendering. The widget's
completion callback is parked on a page slot where the host-side
``ChallengeSession`` picks it up as a handle.
"""

import json

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import JSHandle, Page

from wplookup.models.challenge import INTERCEPT_PREFIX

# Page slot the wrapper stores the widget callback in
CALLBACK_SLOT = "__wplookupTurnstileCallback"

# Poll interval for window.turnstile, in milliseconds
INSTALL_POLL_MS = 50

CALLBACK_CHECK_SCRIPT = f"() => typeof window.{CALLBACK_SLOT} === 'function'"
CALLBACK_HANDLE_SCRIPT = f"() => window.{CALLBACK_SLOT}"
INVOKE_CALLBACK_SCRIPT = "(cb, token) => cb(token)"

_INTERCEPTOR_TEMPLATE = """
(() => {
  console.clear = () => console.log("Console was cleared");

  const prefix = %(prefix)s;
  const slot = %(slot)s;
  const timer = setInterval(() => {
    if (!window.turnstile) {
      return;
    }
    clearInterval(timer);

    window.turnstile.render = (container, options) => {
      const params = {
        sitekey: options.sitekey,
        pageurl: window.location.href,
        data: options.cData,
        pagedata: options.chlPageData,
        action: options.action,
        userAgent: navigator.userAgent,
        json: 1,
      };
      window[slot] = options.callback;
      console.log(prefix + JSON.stringify(params));
    };
  }, %(interval)d);
})();
"""


def build_interceptor_script() -> str:
    """Render the init script with the console prefix and callback slot."""
    return _INTERCEPTOR_TEMPLATE % {
        "prefix": json.dumps(INTERCEPT_PREFIX),
        "slot": json.dumps(CALLBACK_SLOT),
        "interval": INSTALL_POLL_MS,
    }


async def install_interceptor(page: Page) -> None:
    """Register the interceptor on ``page``. Call once, before the first navigation."""
    await page.add_init_script(script=build_interceptor_script())
    logger.debug("Turnstile interceptor installed")


class ChallengeSession:
    """Per-page owner of the captured Turnstile completion callback.

    The handle is set by ``capture`` after an interception and consumed by
    ``invoke``; invoking before capture is a logged no-op.
    """

    def __init__(self) -> None:
        self._callback: JSHandle | None = None

    @property
    def has_callback(self) -> bool:
        return self._callback is not None

    async def capture(self, page: Page) -> bool:
        """Take a handle on the callback the interceptor parked on the page.

        Returns:
            True if a callback was captured
        """
        available = await page.evaluate(CALLBACK_CHECK_SCRIPT)
        if not available:
            logger.warning("Interception reported but no Turnstile callback on page")
            return False

        await self._release()
        self._callback = await page.evaluate_handle(CALLBACK_HANDLE_SCRIPT)
        logger.debug("Turnstile callback captured")
        return True

    async def invoke(self, token: str) -> bool:
        """Hand ``token`` to the captured callback, exactly once.

        Returns:
            True if a callback was invoked, False if none had been captured
        """
        if self._callback is None:
            logger.warning("No captured Turnstile callback to invoke")
            return False

        callback, self._callback = self._callback, None
        try:
            await callback.evaluate(INVOKE_CALLBACK_SCRIPT, token)
            logger.info("Turnstile callback invoked with solved token")
        finally:
            await self._dispose(callback)
        return True

    async def reset(self) -> None:
        """Drop any captured handle (e.g. when the page is closing)."""
        await self._release()

    async def _release(self) -> None:
        if self._callback is not None:
            callback, self._callback = self._callback, None
            await self._dispose(callback)

    @staticmethod
    async def _dispose(handle: JSHandle) -> None:
        try:
            await handle.dispose()
        except PlaywrightError as e:
            # Handle is already gone when the document navigated away
            logger.debug(f"Callback handle dispose failed: {e}")
