"""
Search orchestration over a batch of name/location requests.

The batch is a fold: each request is processed into an ``EntryOutcome`` and
appended in input order. The first request uses the home-page search form;
later ones use the navbar form on the person-detail page that the previous
request left open. Any exception inside one entry becomes that entry's
``error`` string, so one failure never aborts the rest of the batch.
"""

from dataclasses import dataclass
from enum import Enum

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from wplookup.config.selectors import DEFAULT_SELECTORS, SelectorChain, SiteSelectors
from wplookup.config.settings import Config
from wplookup.errors import SearchFormUnavailableError
from wplookup.models.person import NO_RESULTS_ERROR, PersonRecord, SearchRequest
from wplookup.services.challenge.poller import ChallengePoller
from wplookup.services.extractor import FieldExtractor
from wplookup.services.locators import find_first, is_present, replace_text
from wplookup.services.navigator import SessionNavigator
from wplookup.services.page_waits import PageWaiter
from wplookup.services.poll_policy import poll_until

SEARCH_FORM_UNAVAILABLE = "Search form not available"
SEARCH_SUBMIT_UNAVAILABLE = "Search functionality not available"


class SearchForm(Enum):
    PRIMARY = "primary"
    NAVBAR = "navbar"


class EntryStatus(Enum):
    FOUND = "found"
    NO_RESULTS = "no_results"
    FAILED = "failed"


@dataclass
class EntryOutcome:
    """Tagged result of processing one request."""

    record: PersonRecord
    status: EntryStatus
    used_form: SearchForm | None = None

    @property
    def ok(self) -> bool:
        return self.status is EntryStatus.FOUND


class SearchOrchestrator:
    """Run a batch of searches on a search-ready page."""

    def __init__(
        self,
        page: Page,
        navigator: SessionNavigator,
        poller: ChallengePoller,
        extractor: FieldExtractor,
        waiter: PageWaiter,
        config: Config,
        selectors: SiteSelectors = DEFAULT_SELECTORS,
    ):
        self.page = page
        self.navigator = navigator
        self.poller = poller
        self.extractor = extractor
        self.waiter = waiter
        self.config = config
        self.selectors = selectors

    async def run(self, requests: list[SearchRequest]) -> list[PersonRecord]:
        """Process every request in order.

        Returns:
            Exactly one record per request, in input order
        """
        outcomes: list[EntryOutcome] = []
        for index, request in enumerate(requests):
            logger.info(
                f"[{index + 1}/{len(requests)}] Searching: {request.name} in {request.location}"
            )
            outcome = await self.process_entry(index, request)
            outcomes.append(outcome)

        found = sum(1 for o in outcomes if o.ok)
        logger.info(f"Batch complete: {found}/{len(outcomes)} record(s) found")
        return [o.record for o in outcomes]

    async def process_entry(self, index: int, request: SearchRequest) -> EntryOutcome:
        """Process one request; exceptions are converted into an error record."""
        form = SearchForm.PRIMARY if index == 0 else SearchForm.NAVBAR
        try:
            if form is SearchForm.NAVBAR:
                form = await self._submit_navbar_search(request)
            else:
                await self._submit_primary_search(request)
            return await self._collect_result(request, form)

        except Exception as e:
            logger.error(f"Error processing {request.name}: {e}")
            return EntryOutcome(
                record=PersonRecord.failure(request, str(e)),
                status=EntryStatus.FAILED,
                used_form=form,
            )

    async def _submit_primary_search(self, request: SearchRequest) -> None:
        s = self.selectors
        name_input = await find_first(self.page, s.search_name)
        location_input = await find_first(self.page, s.search_location)
        if name_input is None or location_input is None:
            raise SearchFormUnavailableError(SEARCH_FORM_UNAVAILABLE)

        await replace_text(name_input, request.name)
        await replace_text(location_input, request.location)
        await self.waiter.settle(self.config.settle_short_seconds)
        await self._pick_suggestion(s.search_suggestions)

        submit = await find_first(self.page, s.search_submit)
        if submit is None:
            raise SearchFormUnavailableError(SEARCH_SUBMIT_UNAVAILABLE)

        await submit.click()
        logger.info("Search submitted (home form)")

    async def _submit_navbar_search(self, request: SearchRequest) -> SearchForm:
        """Search through the navbar form, falling back to the home form.

        Returns:
            The form that was actually used
        """
        s = self.selectors
        name_input = await find_first(self.page, s.navbar_name)
        location_input = await find_first(self.page, s.navbar_location)
        submit = await find_first(self.page, s.navbar_submit)

        if name_input is None or location_input is None or submit is None:
            logger.warning("Navbar search form incomplete, falling back to home page form")
            await self.navigator.go_home()
            await self.poller.await_challenge_clear(self.page, "search page")
            await self._submit_primary_search(request)
            return SearchForm.PRIMARY

        await replace_text(name_input, request.name)
        await replace_text(location_input, request.location)
        await self.waiter.settle(self.config.settle_short_seconds)
        await self._pick_suggestion(s.navbar_suggestions)

        await submit.click()
        logger.info("Search submitted (navbar form)")
        return SearchForm.NAVBAR

    async def _pick_suggestion(self, suggestions: SelectorChain) -> bool:
        """Click the first location suggestion if the list shows up."""

        async def suggestions_shown() -> bool:
            return await is_present(self.page, suggestions)

        shown = await poll_until(
            suggestions_shown,
            self.config.control_poll_policy(),
            suggestions.name,
            self.poller.sleep,
        )
        if not shown:
            logger.debug("No location suggestions shown")
            return False

        first = await find_first(self.page, suggestions)
        if first is None:
            return False
        await first.click()
        logger.debug("Clicked first location suggestion")
        return True

    async def _accept_consent(self) -> bool:
        """Tick and confirm the terms-of-service modal when it is shown."""
        s = self.selectors
        if not await is_present(self.page, s.consent_modal):
            return False

        logger.info("Consent modal shown, accepting terms")
        checkbox = await find_first(self.page, s.consent_checkbox)
        if checkbox is not None:
            await checkbox.click()
        button = await find_first(self.page, s.consent_continue)
        if button is not None:
            await button.click()
        await self.waiter.wait_for_document_complete(self.page)
        await self.waiter.settle(self.config.settle_short_seconds)
        return True

    async def _collect_result(self, request: SearchRequest, form: SearchForm) -> EntryOutcome:
        s = self.selectors
        await self.waiter.wait_for_document_complete(self.page)
        await self.waiter.settle(self.config.settle_short_seconds)
        await self.poller.await_challenge_clear(self.page, "search results")
        await self._accept_consent()

        if await is_present(self.page, s.no_results):
            logger.info(f"No results for {request.name}")
            return await self._no_results(request, form)

        first_result = await find_first(self.page, s.result_links)
        if first_result is None:
            logger.info(f"No result links for {request.name}")
            return await self._no_results(request, form)

        await first_result.click()
        await self.waiter.wait_for_document_complete(self.page)
        await self.waiter.settle(self.config.settle_detail_seconds)
        await self.poller.await_challenge_clear(self.page, "person detail")

        fields = await self.extractor.extract(self.page)
        return EntryOutcome(
            record=PersonRecord.from_fields(request, fields),
            status=EntryStatus.FOUND,
            used_form=form,
        )

    async def _no_results(self, request: SearchRequest, form: SearchForm) -> EntryOutcome:
        """No-results outcome; on the navbar path, head back home for the next entry."""
        outcome = EntryOutcome(
            record=PersonRecord.failure(request, NO_RESULTS_ERROR),
            status=EntryStatus.NO_RESULTS,
            used_form=form,
        )
        if form is SearchForm.NAVBAR:
            try:
                await self.navigator.go_home()
            except PlaywrightError as e:
                logger.warning(f"Could not return home after empty results: {e}")
        return outcome
