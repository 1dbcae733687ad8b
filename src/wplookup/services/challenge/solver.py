"""
Turnstile solving capability.

The navigation core only needs ``solve(params) -> SolveResult``. The
2Captcha-backed implementation wraps the blocking ``twocaptcha`` client in a
worker thread so the browser event loop keeps running while a worker solves.
"""

import asyncio
from typing import Protocol

from loguru import logger
from twocaptcha import TwoCaptcha
from twocaptcha import api as twocaptcha_api
from twocaptcha import solver as twocaptcha_solver

from wplookup.errors import ChallengeSolveError
from wplookup.models.challenge import ChallengeParams, SolveResult

# The client raises transport errors from its api module and validation or
# timeout errors from its solver module; the two families are unrelated.
SOLVE_ERRORS = (
    twocaptcha_solver.SolverExceptions,
    twocaptcha_api.ApiException,
    twocaptcha_api.NetworkException,
)


class TurnstileSolver(Protocol):
    """Anything that turns challenge parameters into a completion token."""

    async def solve(self, params: ChallengeParams) -> SolveResult:
        """Solve one challenge.

        Raises:
            ChallengeSolveError: If no token could be obtained
        """
        ...


def _error_code(error: Exception) -> str | None:
    """2Captcha reports failures as ERROR_* strings; pick that out if present."""
    message = str(error).strip()
    if message.startswith("ERROR_") and " " not in message:
        return message
    return None


class TwoCaptchaTurnstileSolver:
    """Solve Cloudflare Turnstile challenges through 2Captcha."""

    def __init__(
        self,
        api_key: str,
        timeout_seconds: int = 180,
        polling_interval_seconds: int = 10,
    ):
        """Initialize solver.

        Args:
            api_key: 2Captcha API key
            timeout_seconds: Service-side wait for a worker to solve
            polling_interval_seconds: How often the client polls for the answer
        """
        if not api_key:
            raise ValueError("2Captcha API key is required")

        self._client = TwoCaptcha(
            api_key,
            defaultTimeout=timeout_seconds,
            pollingInterval=polling_interval_seconds,
        )
        logger.info(
            f"Initialized 2Captcha Turnstile solver: timeout={timeout_seconds}s, "
            f"polling={polling_interval_seconds}s"
        )

    async def solve(self, params: ChallengeParams) -> SolveResult:
        """Submit the challenge to 2Captcha and wait for the token."""
        logger.info(f"Submitting Turnstile challenge (sitekey={params.site_key[:12]}...)")

        try:
            response = await asyncio.to_thread(
                self._client.turnstile, **params.to_solver_kwargs()
            )
        except SOLVE_ERRORS as e:
            raise ChallengeSolveError(
                f"2Captcha could not solve Turnstile: {e}", code=_error_code(e)
            ) from e

        token = response.get("code") if isinstance(response, dict) else None
        if not token:
            raise ChallengeSolveError("2Captcha returned no token", code="EMPTY_TOKEN")

        result = SolveResult(id=str(response.get("captchaId", "")), token=token)
        logger.info(f"Turnstile solved (id={result.id})")
        return result
