from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Awaitable, Callable, Iterable
from urllib.parse import urlparse

from leadgen.config import Settings, get_settings
from leadgen.contracts.filters import (
    COMPANY_SCOPED,
    FILTER_SHAPES,
    PERSON_SCOPED,
    CanonicalFilterState,
    FilterShape,
    FilterType,
    RangeValue,
)
from leadgen.contracts.search import CompanySearchOutput, ContactSearchOutput
from leadgen.providers import crustdata
from leadgen.services.filter_normalizer import FilterNormalizer, NormalizedFilters, clean_company_names
from leadgen.utils.exceptions import EmptyFilterSetError, NoMoreResultsError
from leadgen.utils.pagination import COMPANY_PAGINATION, CONTACT_PAGINATION
from leadgen.utils.retry import RetryPolicy, company_search_policy, contact_search_policy

logger = logging.getLogger(__name__)

# payload -> {"companies" | "profiles": [...], "total_count": int | None}
SearchClient = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

PEOPLE_FOCUSED_MESSAGE = "Add a company filter or a company name to find companies for these people filters."
EMPTY_FILTERS_MESSAGE = "Add at least one company filter to search."


@dataclass(frozen=True)
class FilterClassification:
    company_scoped: frozenset[FilterType]
    person_scoped: frozenset[FilterType]

    @property
    def has_current_company(self) -> bool:
        return FilterType.CURRENT_COMPANY in self.person_scoped

    @property
    def is_people_focused(self) -> bool:
        return bool(self.person_scoped) and not self.company_scoped and not self.has_current_company

    @property
    def needs_company_keyword(self) -> bool:
        return self.has_current_company and not self.company_scoped


def _is_set(value: Any, shape: FilterShape) -> bool:
    if value is None:
        return False
    if shape == FilterShape.BOOLEAN:
        return value is True
    if shape == FilterShape.RANGE:
        return isinstance(value, RangeValue) and value.is_set
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, bool):
        return value
    return bool(value)


def classify_filters(state: CanonicalFilterState) -> FilterClassification:
    present = {
        filter_type
        for filter_type in COMPANY_SCOPED | PERSON_SCOPED
        if _is_set(state.get(filter_type), FILTER_SHAPES[filter_type])
    }
    return FilterClassification(
        company_scoped=frozenset(present & COMPANY_SCOPED),
        person_scoped=frozenset(present & PERSON_SCOPED),
    )


def company_request(normalized: NormalizedFilters, page: int) -> dict[str, Any]:
    """One request builder for every page; the page number is the only thing that varies."""
    payload: dict[str, Any] = {
        "filters": normalized.payload(),
        "page": page,
        "page_size": COMPANY_PAGINATION.per_page,
    }
    if normalized.region_names:
        payload["regionIds"] = list(normalized.region_ids)
        payload["regionNames"] = list(normalized.region_names)
    return payload


def build_company_filters(
    state: CanonicalFilterState,
    classification: FilterClassification,
    normalizer: FilterNormalizer,
    *,
    allow_empty: bool = False,
) -> NormalizedFilters:
    request_state = state
    if classification.needs_company_keyword:
        names = clean_company_names(state.current_company)
        if names:
            logger.info("Looking up the named company by keyword", extra={"keyword": names[0]})
            request_state = state.model_copy(update={"keyword": [names[0]], "tags": None})
    normalized = normalizer.company_filters(request_state)
    if not normalized.filters and not allow_empty:
        raise EmptyFilterSetError("No company filters left after normalization")
    return normalized


def _default_company_client(settings: Settings) -> SearchClient:
    async def call(payload: dict[str, Any]) -> dict[str, Any]:
        result = await crustdata.search_companies(
            api_key=settings.crustdata_api_key,
            base_url=settings.crustdata_api_url,
            payload=payload,
            timeout=settings.search_timeout_seconds,
        )
        return result["mapped"]

    return call


def _default_contact_client(settings: Settings) -> SearchClient:
    async def call(payload: dict[str, Any]) -> dict[str, Any]:
        result = await crustdata.search_people(
            api_key=settings.crustdata_api_key,
            base_url=settings.crustdata_api_url,
            payload=payload,
            timeout=settings.search_timeout_seconds,
        )
        return result["mapped"]

    return call


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


async def search_companies(
    filter_state: CanonicalFilterState,
    page: int = 1,
    *,
    client: SearchClient | None = None,
    retry_policy: RetryPolicy | None = None,
    normalizer: FilterNormalizer | None = None,
    total_count_hint: int | None = None,
    allow_unfiltered_people_search: bool = False,
) -> CompanySearchOutput:
    """Run one company search page.

    People-only filter sets and filter sets that normalize to nothing do not
    call the collaborator; they come back with status ``awaiting_search``.
    TransportError propagates once the retry budget is spent.
    """
    settings = get_settings() if client is None or retry_policy is None else None
    client = client or _default_company_client(settings)
    retry_policy = retry_policy or company_search_policy(settings)
    normalizer = normalizer or FilterNormalizer()

    classification = classify_filters(filter_state)
    people_focused = classification.is_people_focused
    if people_focused and not allow_unfiltered_people_search:
        logger.info(
            "People-focused filters without company filters; waiting for an explicit unfiltered search",
            extra={"person_filters": sorted(item.value for item in classification.person_scoped)},
        )
        return CompanySearchOutput(
            status="awaiting_search",
            is_people_focused_search=True,
            message=PEOPLE_FOCUSED_MESSAGE,
        )

    try:
        normalized = build_company_filters(
            filter_state,
            classification,
            normalizer,
            allow_empty=people_focused and allow_unfiltered_people_search,
        )
    except EmptyFilterSetError:
        logger.info("Normalization left no company filters; not calling the search API")
        return CompanySearchOutput(
            status="awaiting_search",
            message=EMPTY_FILTERS_MESSAGE,
            warnings=normalizer.normalize_state(filter_state)[1],
        )

    if total_count_hint is not None:
        page = COMPANY_PAGINATION.clamp(page, COMPANY_PAGINATION.total_pages(total_count_hint))
    page = max(page, 1)

    replayed = False
    while True:
        payload = company_request(normalized, page)
        try:
            mapped = await retry_policy.run(partial(client, payload), label="company_search")
        except NoMoreResultsError:
            # Step back until a page answers; its total_count sets total_pages.
            if page > 1:
                logger.info("No more company results; falling back to the previous page", extra={"page": page})
                page -= 1
                continue
            return CompanySearchOutput(
                page=page,
                status="no_results",
                is_last_page=True,
                is_people_focused_search=people_focused,
                message="No more results available",
                warnings=normalized.warnings,
                sent_request=payload,
            )

        companies = [item for item in mapped.get("companies") or [] if isinstance(item, dict)]
        reported_total = _as_int(mapped.get("total_count"))
        total = reported_total if reported_total is not None else len(companies)
        total_pages = COMPANY_PAGINATION.total_pages(total)
        if reported_total is not None and total_pages >= 1 and page > total_pages and not replayed:
            logger.info(
                "Requested page is past the last page; replaying the last page",
                extra={"page": page, "total_pages": total_pages},
            )
            replayed = True
            page = total_pages
            continue
        break

    return CompanySearchOutput(
        companies=companies,
        total_count=total,
        page=page,
        total_pages=total_pages,
        is_last_page=COMPANY_PAGINATION.is_last_page(page, total_pages, len(companies)),
        status="ok" if companies else "no_results",
        is_people_focused_search=people_focused,
        warnings=normalized.warnings,
        sent_request=payload,
    )


def _first_str(company: dict[str, Any], keys: Iterable[str]) -> str | None:
    for key in keys:
        value = company.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _strip_www(host: str) -> str:
    return host[len("www.") :] if host.lower().startswith("www.") else host


def company_identifier(company: dict[str, Any]) -> str | None:
    """Identifier used in the person search: domain, website host, LinkedIn URL, then name."""
    domain = _first_str(company, ("domain", "company_website_domain", "website_domain"))
    if domain:
        return _strip_www(domain)
    website = _first_str(company, ("website", "company_website"))
    if website:
        parsed = urlparse(website if "://" in website else f"https://{website}")
        host = parsed.hostname
        return _strip_www(host) if host else website
    linkedin = _first_str(company, ("linkedin_url", "linkedin_profile_url", "company_linkedin_url"))
    if linkedin:
        return linkedin
    return _first_str(company, ("name", "company_name"))


def company_identifiers(companies: Iterable[dict[str, Any]]) -> list[str]:
    identifiers: list[str] = []
    for company in companies:
        if not isinstance(company, dict):
            continue
        identifier = company_identifier(company)
        if identifier and identifier not in identifiers:
            identifiers.append(identifier)
    return identifiers


def selection_key(company: dict[str, Any]) -> str:
    """Stable identity of a company row for selection toggling."""
    for key in ("linkedin_company_id", "company_id", "id"):
        value = company.get(key)
        if value not in (None, ""):
            return str(value)
    name = _first_str(company, ("name", "company_name")) or ""
    location = _first_str(company, ("location", "hq_location", "headquarters")) or ""
    return f"{name}-{location}"


def contact_request(normalized: NormalizedFilters, page: int) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "filters": normalized.payload(),
        "page": page,
        "limit": CONTACT_PAGINATION.per_page,
    }
    if normalized.post_processing:
        payload["post_processing"] = dict(normalized.post_processing)
    return payload


async def search_contacts(
    selected_companies: list[dict[str, Any]],
    filter_state: CanonicalFilterState,
    page: int = 1,
    *,
    client: SearchClient | None = None,
    retry_policy: RetryPolicy | None = None,
    normalizer: FilterNormalizer | None = None,
) -> ContactSearchOutput:
    """Find people at the selected companies. Raises ValueError when nothing usable is selected."""
    identifiers = company_identifiers(selected_companies)
    if not identifiers:
        raise ValueError("Company information is required.")

    settings = get_settings() if client is None or retry_policy is None else None
    client = client or _default_contact_client(settings)
    retry_policy = retry_policy or contact_search_policy(settings)
    normalizer = normalizer or FilterNormalizer()

    normalized = normalizer.person_filters(filter_state, identifiers)
    page = CONTACT_PAGINATION.clamp(page)

    while True:
        payload = contact_request(normalized, page)
        try:
            mapped = await retry_policy.run(partial(client, payload), label="contact_search")
        except NoMoreResultsError:
            mapped = {"profiles": [], "total_count": 0}
        profiles = [item for item in mapped.get("profiles") or [] if isinstance(item, dict)]
        if not profiles and page > 1:
            logger.info("Empty contact page; rewinding to the first page", extra={"page": page})
            page = 1
            continue
        break

    total = _as_int(mapped.get("total_count")) or 0
    return ContactSearchOutput(
        profiles=profiles,
        total_count=total,
        page=page,
        total_pages=CONTACT_PAGINATION.total_pages(total),
        status="ok" if profiles else "no_results",
        company_identifiers=identifiers,
        warnings=normalized.warnings,
        sent_request=payload,
    )
