"""Selector-chain lookups on a Playwright page."""

from loguru import logger
from playwright.async_api import Locator, Page

from wplookup.config.selectors import SelectorChain


async def find_first(page: Page, chain: SelectorChain) -> Locator | None:
    """Return a locator for the first selector in ``chain`` that matches.

    Args:
        page: Playwright page
        chain: Ordered selector alternatives

    Returns:
        Locator for the first matching element, or None if nothing matched
    """
    for selector in chain.selectors:
        locator = page.locator(selector)
        if await locator.count() > 0:
            if selector != chain.primary:
                logger.debug(f"{chain.name}: matched fallback selector {selector!r}")
            return locator.first

    logger.debug(f"{chain.name}: no selector matched")
    return None


async def is_present(page: Page, chain: SelectorChain) -> bool:
    """Whether any selector in ``chain`` matches at least one element."""
    return await find_first(page, chain) is not None


async def replace_text(locator: Locator, text: str) -> None:
    """Select the field's current contents and type ``text`` over it."""
    await locator.click(click_count=3)
    await locator.press_sequentially(text)
