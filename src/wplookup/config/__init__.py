"""Configuration module for wplookup."""

from wplookup.config.selectors import (
    DEFAULT_SELECTORS,
    SelectorChain,
    SiteSelectors,
    load_selectors,
)
from wplookup.config.settings import Config, get_config

__all__ = [
    "Config",
    "get_config",
    "DEFAULT_SELECTORS",
    "SelectorChain",
    "SiteSelectors",
    "load_selectors",
]
