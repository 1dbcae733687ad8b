"""Cloudflare Turnstile interception, solving and clearance polling.

Primary Classes:
    ChallengeSession: Per-page owner of the captured widget callback
    ChallengeResolver: Console listener that solves intercepted challenges
    ChallengePoller: Bounded wait for the challenge markers to disappear
    TwoCaptchaTurnstileSolver: 2Captcha-backed solving capability
"""

from .interceptor import (
    CALLBACK_SLOT,
    ChallengeSession,
    build_interceptor_script,
    install_interceptor,
)
from .poller import ChallengePoller
from .resolver import ChallengeResolver
from .solver import TurnstileSolver, TwoCaptchaTurnstileSolver

__all__ = [
    "CALLBACK_SLOT",
    "ChallengeSession",
    "build_interceptor_script",
    "install_interceptor",
    "ChallengePoller",
    "ChallengeResolver",
    "TurnstileSolver",
    "TwoCaptchaTurnstileSolver",
]
