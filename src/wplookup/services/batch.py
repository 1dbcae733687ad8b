"""
Batch entry points shared by the HTTP API and the CLI.

``run_search_batch`` owns one browser session for the whole batch: it is
acquired at the start and released on every exit path, including
cancellation. Per-entry failures come back as error records; only problems
that prevent the batch from being attempted at all are raised.
"""

from typing import Callable

from loguru import logger

from wplookup.config.selectors import load_selectors
from wplookup.config.settings import Config, get_config
from wplookup.models.person import Credentials, PersonRecord, SearchRequest, SessionState
from wplookup.services.browser import BrowserSession
from wplookup.services.challenge.poller import ChallengePoller
from wplookup.services.challenge.solver import TurnstileSolver, TwoCaptchaTurnstileSolver
from wplookup.services.extractor import FieldExtractor
from wplookup.services.navigator import LoginStatus, SessionNavigator
from wplookup.services.orchestrator import SearchOrchestrator
from wplookup.services.page_waits import PageWaiter

SessionFactory = Callable[[Config, TurnstileSolver | None], BrowserSession]


def build_solver(config: Config) -> TurnstileSolver | None:
    """Create the 2Captcha solver, or None when no API key is configured."""
    if not config.twocaptcha_api_key:
        logger.warning("TWOCAPTCHA_API_KEY not set; Turnstile challenges will not be solved")
        return None

    return TwoCaptchaTurnstileSolver(
        config.twocaptcha_api_key,
        timeout_seconds=config.solve_timeout_seconds,
        polling_interval_seconds=config.solver_polling_interval_seconds,
    )


def _build_navigator(page, config: Config) -> tuple[SessionNavigator, ChallengePoller, PageWaiter]:
    selectors = load_selectors(config.selectors_file)
    poller = ChallengePoller(config.challenge_poll_policy(), selectors)
    waiter = PageWaiter(config.page_timeout_ms, config.navigation_timeout_ms)
    navigator = SessionNavigator(page, poller, waiter, config, selectors)
    return navigator, poller, waiter


async def run_search_batch(
    credentials: Credentials,
    requests: list[SearchRequest],
    config: Config | None = None,
    solver: TurnstileSolver | None = None,
    session_factory: SessionFactory = BrowserSession,
) -> list[PersonRecord]:
    """Log in and search every request with one browser page.

    Args:
        credentials: Site login
        requests: Searches to run, in order
        config: Configuration (defaults to the global one)
        solver: Turnstile solver (defaults to one built from config)
        session_factory: Builds the browser session; replaceable in tests

    Returns:
        One record per request, in input order

    Raises:
        BrowserLaunchError: If the browser could not be started
        LoginFailedError: If login verification is enabled and fails
    """
    config = config or get_config()
    if solver is None:
        solver = build_solver(config)

    logger.info(f"Starting batch of {len(requests)} search(es) for {credentials.email}")

    async with session_factory(config, solver) as session:
        page = session.page
        navigator, poller, waiter = _build_navigator(page, config)
        orchestrator = SearchOrchestrator(
            page,
            navigator,
            poller,
            FieldExtractor(navigator.selectors),
            waiter,
            config,
            navigator.selectors,
        )

        await navigator.ensure_search_ready(credentials)
        records = await orchestrator.run(requests)

        resolver = session.resolver
        if resolver is not None and resolver.interceptions:
            logger.info(
                f"Turnstile: {resolver.interceptions} interception(s), "
                f"{resolver.solved} solved, {resolver.failed} failed"
            )

    return records


async def run_login_check(
    credentials: Credentials,
    config: Config | None = None,
    solver: TurnstileSolver | None = None,
    session_factory: SessionFactory = BrowserSession,
) -> LoginStatus:
    """Open the site, log in if needed and report the resulting login markers."""
    config = config or get_config()
    if solver is None:
        solver = build_solver(config)

    async with session_factory(config, solver) as session:
        navigator, _, _ = _build_navigator(session.page, config)
        await navigator.open_home()

        state = await navigator.current_state()
        logger.info(f"Session state on arrival: {state.value}")
        if state is not SessionState.LOGGED_IN:
            await navigator.login(credentials)

        return await navigator.check_login_status()
