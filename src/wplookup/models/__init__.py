"""Data models for wplookup."""

from wplookup.models.challenge import INTERCEPT_PREFIX, ChallengeParams, SolveResult
from wplookup.models.person import (
    NO_RESULTS_ERROR,
    Credentials,
    PersonRecord,
    SearchRequest,
    SessionState,
)

__all__ = [
    "INTERCEPT_PREFIX",
    "ChallengeParams",
    "SolveResult",
    "NO_RESULTS_ERROR",
    "Credentials",
    "PersonRecord",
    "SearchRequest",
    "SessionState",
]
