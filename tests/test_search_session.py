from __future__ import annotations

import asyncio
from typing import Any

import pytest

from leadgen.contracts.filters import CanonicalFilterState, SidebarForm
from leadgen.contracts.search import CompanySearchOutput, ContactSearchOutput
from leadgen.services.query_interpretation import ParsedQuery
from leadgen.services.search_session import SearchSession, SessionPhase
from leadgen.utils.exceptions import ParseError, TransportError


class _FakeCompanySearch:
    def __init__(self, pages: dict[int, CompanySearchOutput] | None = None):
        self.pages = pages or {}
        self.calls: list[dict[str, Any]] = []
        self.gates: dict[int, asyncio.Event] = {}
        self.error: Exception | None = None

    async def __call__(self, state: CanonicalFilterState, page: int = 1, **kwargs: Any) -> CompanySearchOutput:
        self.calls.append({"state": state, "page": page, **kwargs})
        gate = self.gates.get(page)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        if page in self.pages:
            return self.pages[page]
        return CompanySearchOutput(
            companies=[{"name": f"Page {page}", "linkedin_company_id": str(page)}],
            total_count=30,
            page=page,
            total_pages=3,
        )


def _parser(state: CanonicalFilterState):
    async def parse(query: str, **kwargs: Any) -> ParsedQuery:
        return ParsedQuery(filters=state, warnings=[], raw_response="{}")

    return parse


@pytest.mark.asyncio
async def test_parsed_query_waits_for_explicit_search():
    company_search = _FakeCompanySearch()
    session = SearchSession(
        parse=_parser(CanonicalFilterState(industry=["Financial Services"], source="query_parser")),
        company_search=company_search,
    )

    await session.submit_query("fintech companies")

    assert session.phase == SessionPhase.AWAITING_SEARCH
    assert session.filter_state.industry == ["Financial Services"]
    assert company_search.calls == []

    result = await session.search_companies(1)

    assert result is not None
    assert session.companies is result
    assert session.phase == SessionPhase.COMPANY_SEARCH


@pytest.mark.asyncio
async def test_sidebar_apply_runs_first_page_immediately():
    company_search = _FakeCompanySearch()
    session = SearchSession(company_search=company_search)

    state = await session.apply_sidebar(SidebarForm(industries=["Financial Services"]))

    assert state.source == "sidebar"
    assert [call["page"] for call in company_search.calls] == [1]
    assert company_search.calls[0]["total_count_hint"] is None
    assert session.companies.page == 1


@pytest.mark.asyncio
async def test_later_pages_pass_the_known_total():
    company_search = _FakeCompanySearch()
    session = SearchSession(company_search=company_search)
    await session.apply_sidebar(SidebarForm(industries=["Financial Services"]))

    await session.search_companies(2)

    assert company_search.calls[-1]["total_count_hint"] == 30


@pytest.mark.asyncio
async def test_stale_page_reply_is_discarded():
    company_search = _FakeCompanySearch()
    company_search.gates[2] = asyncio.Event()
    session = SearchSession(
        parse=_parser(CanonicalFilterState(industry=["Financial Services"], source="query_parser")),
        company_search=company_search,
    )
    await session.submit_query("fintech")

    slow = asyncio.create_task(session.search_companies(2))
    await asyncio.sleep(0)
    fast = await session.search_companies(1)
    company_search.gates[2].set()
    stale = await slow

    assert stale is None
    assert fast is not None
    assert session.companies.page == 1


@pytest.mark.asyncio
async def test_transport_error_keeps_filters_and_previous_results():
    company_search = _FakeCompanySearch()
    session = SearchSession(company_search=company_search)
    await session.apply_sidebar(SidebarForm(industries=["Financial Services"]))
    previous = session.companies

    company_search.error = TransportError(
        "Service Unavailable",
        provider="crustdata",
        status_code=503,
        sent_request={"page": 2},
    )
    result = await session.search_companies(2)

    assert result is None
    assert session.companies is previous
    assert session.filter_state.industry == ["Financial Services"]
    assert "HTTP 503" in session.error
    assert session.failed_request == {"page": 2}


@pytest.mark.asyncio
async def test_parse_failure_surfaces_error_without_touching_state():
    async def parse(query: str, **kwargs: Any) -> ParsedQuery:
        raise ParseError("Expecting value", raw_response="not json")

    session = SearchSession(parse=parse, company_search=_FakeCompanySearch())
    await session.apply_sidebar(SidebarForm(job_titles=["CFO"], industries=["Financial Services"]))

    assert await session.submit_query("anything") is None
    assert session.error == "Failed to parse query: Expecting value"
    assert session.filter_state.current_title == ["CFO"]


@pytest.mark.asyncio
async def test_new_filter_state_clears_results_and_selection():
    company_search = _FakeCompanySearch()
    session = SearchSession(
        parse=_parser(CanonicalFilterState(current_title=["CTO"], industry=["Software Development"])),
        company_search=company_search,
    )
    await session.apply_sidebar(SidebarForm(industries=["Financial Services"]))
    session.select_all()
    assert session.selected

    await session.submit_query("CTOs at software companies")

    assert session.companies is None
    assert session.contacts is None
    assert session.selected == {}
    assert session.filter_state.current_title == ["CTO"]


@pytest.mark.asyncio
async def test_people_focused_result_is_exposed():
    company_search = _FakeCompanySearch(
        {1: CompanySearchOutput(status="awaiting_search", is_people_focused_search=True)}
    )
    session = SearchSession(company_search=company_search)

    await session.apply_sidebar(SidebarForm(seniority_levels=["CXO"]))

    assert session.is_people_focused_search is True
    assert session.phase == SessionPhase.AWAITING_SEARCH


@pytest.mark.asyncio
async def test_toggle_selection_and_contact_search():
    captured: dict[str, Any] = {}

    async def contact_search(companies, state, page=1, **kwargs):
        captured.update(companies=companies, state=state, page=page)
        return ContactSearchOutput(profiles=[{"name": "Ada"}], total_count=1, page=page, total_pages=1)

    session = SearchSession(company_search=_FakeCompanySearch(), contact_search=contact_search)
    await session.apply_sidebar(SidebarForm(job_titles=["CFO"], industries=["Financial Services"]))
    company = session.companies.companies[0]

    assert session.toggle_company(company) is True
    assert session.toggle_company(company) is False
    with pytest.raises(ValueError):
        await session.search_contacts()

    session.toggle_company(company)
    result = await session.search_contacts()

    assert result.profiles == [{"name": "Ada"}]
    assert captured["companies"] == [company]
    assert captured["state"].current_title == ["CFO"]
    assert session.phase == SessionPhase.CONTACT_SEARCH
