from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from leadgen.contracts.filters import CanonicalFilterState, SidebarForm, ValidationWarning
from leadgen.contracts.search import CompanySearchOutput, ContactSearchOutput
from leadgen.services.filter_normalizer import FilterNormalizer
from leadgen.services.filter_state import apply_sidebar_filters
from leadgen.services.query_interpretation import ParsedQuery, parse_query
from leadgen.services.search_orchestrator import search_companies, search_contacts, selection_key
from leadgen.utils.exceptions import ParseError, TransportError

logger = logging.getLogger(__name__)

ParseFn = Callable[..., Awaitable[ParsedQuery]]
CompanySearchFn = Callable[..., Awaitable[CompanySearchOutput]]
ContactSearchFn = Callable[..., Awaitable[ContactSearchOutput]]


class SessionPhase(str, Enum):
    IDLE = "idle"
    AWAITING_SEARCH = "awaiting_search"
    COMPANY_SEARCH = "company_search"
    CONTACT_SEARCH = "contact_search"


class SearchSession:
    """Per-user search flow: filter state, company page, selection and contact page.

    Every slot (filters, companies, contacts) carries a generation number. A
    call only writes its result back if no newer call for the same slot started
    while it was awaiting, so a slow page-2 reply never overwrites a newer
    page-1 reply. Collaborator failures become ``error`` and leave the filter
    state and the last good results untouched.
    """

    def __init__(
        self,
        *,
        parse: ParseFn = parse_query,
        company_search: CompanySearchFn = search_companies,
        contact_search: ContactSearchFn = search_contacts,
        normalizer: FilterNormalizer | None = None,
    ):
        self._parse = parse
        self._company_search = company_search
        self._contact_search = contact_search
        self._normalizer = normalizer
        self._generations = {"filters": 0, "companies": 0, "contacts": 0}

        self.phase = SessionPhase.IDLE
        self.filter_state = CanonicalFilterState()
        self.warnings: list[ValidationWarning] = []
        self.companies: CompanySearchOutput | None = None
        self.contacts: ContactSearchOutput | None = None
        self.selected: dict[str, dict[str, Any]] = {}
        self.error: str | None = None
        self.failed_request: dict[str, Any] | None = None

    def _bump(self, slot: str) -> int:
        self._generations[slot] += 1
        return self._generations[slot]

    def _is_current(self, slot: str, token: int) -> bool:
        return self._generations[slot] == token

    def _fail(self, message: str, sent_request: dict[str, Any] | None = None) -> None:
        self.error = message
        self.failed_request = sent_request
        logger.warning("Search session error", extra={"error": message, "phase": self.phase.value})

    @property
    def is_people_focused_search(self) -> bool:
        return bool(self.companies and self.companies.is_people_focused_search)

    async def _replace_state(self, state: CanonicalFilterState) -> None:
        # Invalidate anything still in flight for the old state.
        self._bump("companies")
        self._bump("contacts")
        self.filter_state = state
        self.companies = None
        self.contacts = None
        self.selected = {}
        self.error = None
        self.failed_request = None
        self.phase = SessionPhase.AWAITING_SEARCH
        if state.source == "sidebar":
            await self.search_companies(1)

    async def submit_query(self, query: str) -> ParsedQuery | None:
        token = self._bump("filters")
        try:
            parsed = await self._parse(query, normalizer=self._normalizer)
        except ParseError as exc:
            if self._is_current("filters", token):
                self._fail(f"Failed to parse query: {exc}")
            return None
        except TransportError as exc:
            if self._is_current("filters", token):
                self._fail(exc.user_message(), exc.sent_request)
            return None
        if not self._is_current("filters", token):
            logger.debug("Discarding a stale query parse", extra={"query": query})
            return None
        self.warnings = list(parsed.warnings)
        await self._replace_state(parsed.filters)
        return parsed

    async def apply_sidebar(self, form: SidebarForm | dict[str, Any]) -> CanonicalFilterState:
        self._bump("filters")
        state = apply_sidebar_filters(form, normalizer=self._normalizer)
        self.warnings = []
        await self._replace_state(state)
        return state

    async def search_companies(self, page: int = 1, *, allow_unfiltered_people_search: bool = False) -> CompanySearchOutput | None:
        token = self._bump("companies")
        self.phase = SessionPhase.COMPANY_SEARCH
        hint = self.companies.total_count if self.companies and self.companies.status != "awaiting_search" else None
        try:
            result = await self._company_search(
                self.filter_state,
                page,
                normalizer=self._normalizer,
                total_count_hint=hint,
                allow_unfiltered_people_search=allow_unfiltered_people_search,
            )
        except TransportError as exc:
            if self._is_current("companies", token):
                self._fail(exc.user_message(), exc.sent_request)
            return None
        if not self._is_current("companies", token):
            logger.debug("Discarding a stale company page", extra={"page": page})
            return None
        self.companies = result
        self.error = None
        self.failed_request = None
        if result.status == "awaiting_search":
            self.phase = SessionPhase.AWAITING_SEARCH
        return result

    def toggle_company(self, company: dict[str, Any]) -> bool:
        """Select or deselect ``company``; returns whether it is now selected."""
        key = selection_key(company)
        if key in self.selected:
            del self.selected[key]
            return False
        self.selected[key] = company
        return True

    def select_all(self) -> None:
        for company in self.companies.companies if self.companies else []:
            self.selected.setdefault(selection_key(company), company)

    def clear_selection(self) -> None:
        self.selected = {}

    async def search_contacts(self, page: int = 1) -> ContactSearchOutput | None:
        if not self.selected:
            raise ValueError("Select at least one company before searching for contacts")
        token = self._bump("contacts")
        self.phase = SessionPhase.CONTACT_SEARCH
        try:
            result = await self._contact_search(
                list(self.selected.values()),
                self.filter_state,
                page,
                normalizer=self._normalizer,
            )
        except TransportError as exc:
            if self._is_current("contacts", token):
                self._fail(exc.user_message(), exc.sent_request)
            return None
        if not self._is_current("contacts", token):
            logger.debug("Discarding a stale contact page", extra={"page": page})
            return None
        self.contacts = result
        self.error = None
        self.failed_request = None
        return result
