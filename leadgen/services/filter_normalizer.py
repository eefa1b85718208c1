from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from leadgen.contracts.filters import (
    ALLOWED_VALUES,
    JOB_OPPORTUNITY_VALUES,
    CanonicalFilterState,
    FilterType,
    RangeValue,
    SearchFilter,
    ValidationWarning,
)
from leadgen.services.vocabulary_matcher import INDUSTRY_THRESHOLD, REGION_THRESHOLD, resolve_token
from leadgen.vocabulary.loader import Vocabulary, get_vocabulary

logger = logging.getLogger(__name__)

_DOMAIN_SUFFIXES = (
    "com|org|net|edu|gov|mil|int|io|ai|co|uk|de|fr|jp|cn|in|br|au|ca|mx|es|it|nl|se|no|dk|fi|pl|ru|kr|sg|hk|tw|"
    "th|vn|my|id|ph|tr|ae|sa|il|za|ng|ke|gh|ug|tz|mw|zm|bw|na|sz|ls|st|ao|mz|zw"
)
_DOMAIN_SUFFIX_RE = re.compile(rf"(?:\.(?:{_DOMAIN_SUFFIXES}))+$", re.IGNORECASE)


@dataclass(frozen=True)
class RangeDefaults:
    max: int | float
    min: int | float = 0
    sub_filter: str | None = None
    force_sub_filter: bool = False


RANGE_DEFAULTS: Mapping[FilterType, RangeDefaults] = MappingProxyType(
    {
        FilterType.COMPANY_HEADCOUNT_GROWTH: RangeDefaults(max=100),
        FilterType.ANNUAL_REVENUE: RangeDefaults(max=1000, sub_filter="USD", force_sub_filter=True),
        FilterType.DEPARTMENT_HEADCOUNT: RangeDefaults(max=100, sub_filter="Engineering"),
        FilterType.DEPARTMENT_HEADCOUNT_GROWTH: RangeDefaults(max=50, sub_filter="Engineering"),
    }
)

_COMPANY_LIST_FIELDS = (
    FilterType.COMPANY_HEADCOUNT,
    FilterType.ACCOUNT_ACTIVITIES,
)
_PERSON_LIST_FIELDS = (
    FilterType.YEARS_OF_EXPERIENCE,
    FilterType.YEARS_AT_CURRENT_COMPANY,
    FilterType.YEARS_IN_CURRENT_POSITION,
    FilterType.SENIORITY_LEVEL,
)
_PERSON_BOOLEAN_FIELDS = (
    FilterType.RECENTLY_CHANGED_JOBS,
    FilterType.POSTED_ON_LINKEDIN,
    FilterType.IN_THE_NEWS,
)


def _as_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _as_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        candidate = _as_str(value)
        return [candidate] if candidate else []
    if not isinstance(value, (list, tuple)):
        return []
    cleaned: list[str] = []
    for item in value:
        candidate = _as_str(item)
        if candidate and candidate not in cleaned:
            cleaned.append(candidate)
    return cleaned


def _as_range(value: Any) -> RangeValue | None:
    if isinstance(value, RangeValue):
        return value
    if isinstance(value, dict):
        return RangeValue.model_validate(value)
    return None


def strip_domain_suffix(name: str) -> str:
    """``"google.com"`` -> ``"google"``; ``"https://www.acme.co.uk/about"`` -> ``"acme"``."""
    cleaned = name.strip()
    for prefix in ("https://", "http://"):
        if cleaned.lower().startswith(prefix):
            cleaned = cleaned[len(prefix) :]
    head = cleaned.split("/")[0]
    if "/" in cleaned and "." in head:
        cleaned = head
    if cleaned.lower().startswith("www.") and _DOMAIN_SUFFIX_RE.search(cleaned):
        cleaned = cleaned[len("www.") :]
    stripped = _DOMAIN_SUFFIX_RE.sub("", cleaned)
    return stripped or cleaned


def clean_company_names(value: Any) -> list[str]:
    names: list[str] = []
    for item in _as_str_list(value):
        stripped = strip_domain_suffix(item)
        if stripped and stripped not in names:
            names.append(stripped)
    return names


@dataclass
class NormalizedFilters:
    filters: list[SearchFilter] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    region_names: list[str] = field(default_factory=list)
    region_ids: list[str] = field(default_factory=list)
    post_processing: dict[str, Any] | None = None

    def payload(self) -> list[dict[str, Any]]:
        return [item.to_payload() for item in self.filters]


class FilterNormalizer:
    """Turns canonical filter state into API-ready filters.

    Vocabulary, allow-lists and range defaults are passed in so each rule can
    be exercised in isolation.
    """

    def __init__(
        self,
        vocabulary: Vocabulary | None = None,
        *,
        allowed_values: Mapping[FilterType, Sequence[str]] = ALLOWED_VALUES,
        range_defaults: Mapping[FilterType, RangeDefaults] = RANGE_DEFAULTS,
    ):
        self.vocabulary = vocabulary or get_vocabulary()
        self.allowed_values = allowed_values
        self.range_defaults = range_defaults

    def filter_allowed(self, filter_type: FilterType, values: Any) -> tuple[list[str], ValidationWarning | None]:
        allowed = self.allowed_values[filter_type]
        items = _as_str_list(values)
        kept = [item for item in items if item in allowed]
        rejected = [item for item in items if item not in allowed]
        if not rejected:
            return kept, None
        if kept:
            message = f"Dropped invalid {filter_type.value} values"
        else:
            message = f"All {filter_type.value} values are invalid; filter dropped"
        logger.warning(
            message,
            extra={"filter_type": filter_type.value, "rejected": rejected, "allowed": list(allowed)},
        )
        return kept, ValidationWarning(field=filter_type.value, message=message, rejected=rejected)

    def shape_range(self, filter_type: FilterType, raw: Any) -> tuple[RangeValue | None, ValidationWarning | None]:
        if raw is None:
            return None, None
        try:
            value = _as_range(raw)
        except ValueError:
            value = None
        if value is None:
            message = f"Unrecognised {filter_type.value} range; filter dropped"
            logger.warning(message, extra={"filter_type": filter_type.value, "raw": raw})
            return None, ValidationWarning(field=filter_type.value, message=message, rejected=[raw])
        if not value.is_set:
            return None, None
        defaults = self.range_defaults[filter_type]
        if defaults.sub_filter is None:
            sub_filter = None
        elif defaults.force_sub_filter:
            sub_filter = defaults.sub_filter
        else:
            sub_filter = value.sub_filter or defaults.sub_filter
        lower = value.min if value.min is not None else defaults.min
        upper = value.max
        if upper is None:
            # Open-ended selections like "$5B+" start above the field default.
            upper = defaults.max if defaults.max >= lower else lower * 10
        shaped = RangeValue(min=lower, max=upper, sub_filter=sub_filter)
        return shaped, None

    def map_keyword(self, term: str) -> str:
        mapped = self.vocabulary.keyword_map.get(term.strip().lower())
        if mapped is None or mapped.lower() == term.strip().lower():
            return term.strip()
        return mapped

    def first_keyword(self, values: Any) -> list[str]:
        items = _as_str_list(values)
        if not items:
            return []
        if len(items) > 1:
            logger.info("Keeping only the first keyword", extra={"kept": items[0], "dropped": items[1:]})
        return [self.map_keyword(items[0])]

    def match_industries(self, values: Any) -> tuple[list[str], list[ValidationWarning]]:
        matched: list[str] = []
        unmatched: list[str] = []
        for item in _as_str_list(values):
            match = resolve_token(
                item,
                self.vocabulary.industries,
                synonyms=self.vocabulary.industry_synonyms,
                threshold=INDUSTRY_THRESHOLD,
            )
            if match is None:
                logger.info("No match found for industry", extra={"industry": item})
                unmatched.append(item)
                continue
            if match.strategy != "exact":
                logger.debug(
                    "Matched industry",
                    extra={"industry": item, "matched": match.value, "strategy": match.strategy},
                )
            if match.value not in matched:
                matched.append(match.value)
        warnings = []
        if unmatched:
            warnings.append(
                ValidationWarning(
                    field=FilterType.INDUSTRY.value,
                    message="Industries not found in the controlled vocabulary were dropped",
                    rejected=unmatched,
                )
            )
        return matched, warnings

    def match_regions(self, values: Any) -> tuple[list[str], list[str], list[ValidationWarning]]:
        names: list[str] = []
        ids: list[str] = []
        unmatched: list[str] = []
        for item in _as_str_list(values):
            match = resolve_token(
                item,
                self.vocabulary.region_names,
                synonyms=self.vocabulary.region_synonyms,
                threshold=REGION_THRESHOLD,
            )
            entry = self.vocabulary.region(match.value) if match else None
            if entry is None:
                logger.info("No match found for region", extra={"region": item})
                unmatched.append(item)
                continue
            if match.strategy != "exact":
                logger.debug(
                    "Matched region",
                    extra={"region": item, "matched": entry.name, "strategy": match.strategy},
                )
            if entry.name not in names:
                names.append(entry.name)
                ids.append(entry.id)
        warnings = []
        if unmatched:
            warnings.append(
                ValidationWarning(
                    field=FilterType.REGION.value,
                    message="Regions not found in the controlled vocabulary were dropped",
                    rejected=unmatched,
                )
            )
        return names, ids, warnings

    def job_opportunities(self, raw: Any) -> tuple[list[str], ValidationWarning | None]:
        if raw is True:
            return list(JOB_OPPORTUNITY_VALUES), None
        if raw is False or raw is None:
            return [], None
        return self.filter_allowed(FilterType.JOB_OPPORTUNITIES, raw)

    def normalize_state(self, state: CanonicalFilterState) -> tuple[CanonicalFilterState, list[ValidationWarning]]:
        """Sanitize every field of ``state``; empty results become absent.

        Running this on its own output returns the same state.
        """
        warnings: list[ValidationWarning] = []
        update: dict[str, Any] = {}

        for filter_type, attribute in (
            (FilterType.COMPANY_HEADCOUNT, "company_headcount"),
            (FilterType.ACCOUNT_ACTIVITIES, "account_activities"),
            (FilterType.YEARS_OF_EXPERIENCE, "years_of_experience"),
            (FilterType.YEARS_AT_CURRENT_COMPANY, "years_at_current_company"),
            (FilterType.YEARS_IN_CURRENT_POSITION, "years_in_current_position"),
            (FilterType.SENIORITY_LEVEL, "seniority_level"),
        ):
            kept, warning = self.filter_allowed(filter_type, getattr(state, attribute))
            update[attribute] = kept or None
            if warning:
                warnings.append(warning)

        opportunities, warning = self.job_opportunities(state.job_opportunities)
        update["job_opportunities"] = opportunities or None
        if warning:
            warnings.append(warning)

        for filter_type, attribute in (
            (FilterType.COMPANY_HEADCOUNT_GROWTH, "company_headcount_growth"),
            (FilterType.ANNUAL_REVENUE, "annual_revenue"),
            (FilterType.DEPARTMENT_HEADCOUNT, "department_headcount"),
            (FilterType.DEPARTMENT_HEADCOUNT_GROWTH, "department_headcount_growth"),
        ):
            shaped, warning = self.shape_range(filter_type, getattr(state, attribute))
            update[attribute] = shaped
            if warning:
                warnings.append(warning)

        industries, industry_warnings = self.match_industries(state.industry)
        update["industry"] = industries or None
        warnings.extend(industry_warnings)

        region_names, region_ids, region_warnings = self.match_regions(state.region)
        update["region"] = region_names or None
        update["region_ids"] = region_ids or None
        warnings.extend(region_warnings)

        update["tags"] = self.first_keyword(state.tags) or None
        update["keyword"] = self.first_keyword(state.keyword) or None
        update["current_title"] = _as_str_list(state.current_title) or None
        update["current_company"] = clean_company_names(state.current_company) or None

        return state.model_copy(update=update), warnings

    def company_filters(self, state: CanonicalFilterState) -> NormalizedFilters:
        normalized, warnings = self.normalize_state(state)
        result = NormalizedFilters(warnings=warnings)

        if normalized.industry:
            result.filters.append(SearchFilter(filter_type=FilterType.INDUSTRY.value, type="in", value=normalized.industry))
        # TAGS wins over KEYWORD: the search API accepts a single keyword.
        keyword = normalized.tags or normalized.keyword
        if normalized.tags and normalized.keyword:
            logger.info(
                "Suppressing KEYWORD in favour of TAGS",
                extra={"tags": normalized.tags, "keyword": normalized.keyword},
            )
        if normalized.region:
            result.filters.append(SearchFilter(filter_type=FilterType.REGION.value, type="in", value=normalized.region))
            result.region_names = list(normalized.region)
            result.region_ids = list(normalized.region_ids or [])
        for filter_type in _COMPANY_LIST_FIELDS:
            values = normalized.get(filter_type)
            if values:
                result.filters.append(SearchFilter(filter_type=filter_type.value, type="in", value=values))
        for filter_type in RANGE_DEFAULTS:
            shaped = normalized.get(filter_type)
            if shaped is None:
                continue
            result.filters.append(
                SearchFilter(
                    filter_type=filter_type.value,
                    type="between",
                    value={"min": shaped.min, "max": shaped.max},
                    sub_filter=shaped.sub_filter,
                )
            )
        if normalized.job_opportunities:
            result.filters.append(
                SearchFilter(filter_type=FilterType.JOB_OPPORTUNITIES.value, type="in", value=normalized.job_opportunities)
            )
        if keyword:
            result.filters.append(SearchFilter(filter_type=FilterType.KEYWORD.value, type="in", value=keyword))
        return result

    def person_filters(self, state: CanonicalFilterState, company_identifiers: Sequence[str]) -> NormalizedFilters:
        normalized, warnings = self.normalize_state(state)
        result = NormalizedFilters(warnings=warnings)

        identifiers = _as_str_list(list(company_identifiers))
        if identifiers:
            result.filters.append(
                SearchFilter(filter_type=FilterType.CURRENT_COMPANY.value, type="in", value=identifiers)
            )
        if normalized.current_title:
            result.filters.append(
                SearchFilter(filter_type=FilterType.CURRENT_TITLE.value, type="in", value=normalized.current_title)
            )
            result.post_processing = {"strict_title_and_company_match": False}
        for filter_type in _PERSON_LIST_FIELDS:
            values = normalized.get(filter_type)
            if values:
                result.filters.append(SearchFilter(filter_type=filter_type.value, type="in", value=values))
        for filter_type in _PERSON_BOOLEAN_FIELDS:
            if normalized.get(filter_type) is True:
                result.filters.append(SearchFilter(filter_type=filter_type.value))
        return result
