"""Rewrite the solver browser extension's ``config.js``.

For setups that load the solver as a Chrome extension into the persistent
profile instead of (or next to) the 2Captcha client. Only the API key and
two mode flags are touched; the rest of the file is left as is.
"""

import re
from pathlib import Path

from loguru import logger

from wplookup.errors import ExtensionConfigError

PLACEHOLDER_API_KEY = "YourApiKey"

_API_KEY = re.compile(r'apiKey:\s*"([^"]*)"')
_RECAPTCHA_ENABLED = re.compile(r"enabledForRecaptcha:\s*(true|false)")
_RECAPTCHA_MODE = re.compile(r'reCaptchaMode:\s*"[^"]*"')
_DEFAULT_CONFIG_OPEN = "export const defaultConfig = {"


def update_api_key(path: str | Path, api_key: str) -> Path:
    """Write ``api_key`` into the extension config.

    Replaces an existing ``apiKey: "..."`` entry or inserts one at the top of
    ``defaultConfig``. Also forces ``enabledForRecaptcha: true`` and
    ``reCaptchaMode: "token"``.

    Args:
        path: Path to the extension's ``assets/config.js``
        api_key: Solver API key

    Returns:
        The path written

    Raises:
        ExtensionConfigError: If the file is missing or has no place for the key
    """
    path = Path(path)
    if not api_key or '"' in api_key:
        raise ExtensionConfigError("API key must be a non-empty string without quotes")
    if not path.is_file():
        raise ExtensionConfigError(f"Extension config file not found: {path}")

    logger.info(f"Updating extension API key in {path}")
    content = path.read_text(encoding="utf-8")

    if _API_KEY.search(content):
        content = _API_KEY.sub(lambda _: f'apiKey: "{api_key}"', content, count=1)
    elif _DEFAULT_CONFIG_OPEN in content:
        content = content.replace(
            _DEFAULT_CONFIG_OPEN,
            f'{_DEFAULT_CONFIG_OPEN}\n  apiKey: "{api_key}",',
            1,
        )
    else:
        raise ExtensionConfigError(f"No apiKey entry or defaultConfig object in {path}")

    content = _RECAPTCHA_ENABLED.sub("enabledForRecaptcha: true", content)
    content = _RECAPTCHA_MODE.sub('reCaptchaMode: "token"', content)

    path.write_text(content, encoding="utf-8")
    logger.info("Extension configuration updated")
    return path


def validate_config(path: str | Path) -> bool:
    """Check that the extension config exists and carries a real API key.

    Raises:
        ExtensionConfigError: If the file is missing or the key is unset/placeholder
    """
    path = Path(path)
    if not path.is_file():
        raise ExtensionConfigError(f"Extension config file not found: {path}")

    match = _API_KEY.search(path.read_text(encoding="utf-8"))
    if not match or not match.group(1) or match.group(1) == PLACEHOLDER_API_KEY:
        raise ExtensionConfigError("Extension API key not properly configured")

    logger.info("Extension configuration is valid")
    return True
