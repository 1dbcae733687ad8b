"""
Data models for Turnstile challenge interception and solving.
"""

import json
from dataclasses import dataclass
from typing import Any

# Console line prefix written by the in-page interceptor
INTERCEPT_PREFIX = "intercepted-params:"


@dataclass(frozen=True)
class ChallengeParams:
    """Parameters the Turnstile widget would have rendered with.

    Captured in-page and forwarded to the solving service unchanged.
    """

    site_key: str
    page_url: str
    user_agent: str
    data: str | None = None
    page_data: str | None = None
    action: str | None = None
    json: bool = True

    @classmethod
    def from_console_line(cls, text: str) -> "ChallengeParams":
        """Parse an ``intercepted-params:{...}`` console line.

        Args:
            text: Full console message text

        Returns:
            Parsed parameters

        Raises:
            ValueError: If the prefix is missing, the JSON is malformed, or
                the site key / page URL is absent
        """
        _, sep, payload = text.partition(INTERCEPT_PREFIX)
        if not sep:
            raise ValueError("Console line carries no intercepted parameters")

        try:
            raw: Any = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError(f"Malformed intercepted parameters: {e}") from e

        if not isinstance(raw, dict):
            raise ValueError("Intercepted parameters must be a JSON object")

        site_key = raw.get("sitekey")
        page_url = raw.get("pageurl")
        if not site_key or not page_url:
            raise ValueError("Intercepted parameters lack sitekey or pageurl")

        return cls(
            site_key=site_key,
            page_url=page_url,
            user_agent=raw.get("userAgent") or "",
            data=raw.get("data"),
            page_data=raw.get("pagedata"),
            action=raw.get("action"),
            json=bool(raw.get("json", 1)),
        )

    def to_solver_kwargs(self) -> dict[str, str]:
        """Keyword arguments for ``TwoCaptcha.turnstile``.

        Unset optional values are dropped. The ``json`` flag is not passed:
        the client library chooses its own response format.
        """
        kwargs = {
            "sitekey": self.site_key,
            "url": self.page_url,
            "useragent": self.user_agent,
            "data": self.data,
            "pagedata": self.page_data,
            "action": self.action,
        }
        return {key: value for key, value in kwargs.items() if value}


@dataclass(frozen=True)
class SolveResult:
    """Token returned by the solving service. ``id`` is kept for audit logs."""

    id: str
    token: str
