from __future__ import annotations

import logging
import re
from typing import Any

from leadgen.contracts.filters import CanonicalFilterState, RangeValue, SidebarForm
from leadgen.services.filter_normalizer import FilterNormalizer

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENT = "Engineering"

_MONEY_RE = re.compile(r"^(-?)\$?\s*(\d+(?:\.\d+)?)\s*([kmb])?$", re.IGNORECASE)
# Either bound may carry a leading minus: "-10-25%", "-20--5%".
_BETWEEN_RE = re.compile(r"^(-?[^-]+?)\s*-\s*(-?[^-]+)$")
_MONEY_SCALE = {"k": 0.001, "m": 1, "b": 1000, None: 1}


def _number(text: str) -> float | None:
    try:
        return float(text.strip().rstrip("%").replace(",", ""))
    except ValueError:
        return None


def _clean_number(value: float | None) -> int | float | None:
    if value is None:
        return None
    return int(value) if float(value).is_integer() else value


def _money_in_millions(text: str) -> float | None:
    match = _MONEY_RE.match(text.strip().replace(",", ""))
    if not match:
        return None
    sign, amount, unit = match.groups()
    value = float(amount) * _MONEY_SCALE[unit.lower() if unit else None]
    return -value if sign else value


def parse_range_text(text: str, *, money: bool = False) -> RangeValue | None:
    """Parse sidebar range labels.

    ``"10-25%"``, ``"50-200"``, ``"500+"``, ``"$10M-$50M"``, ``"$5B+"`` and
    ``"Under $1M"``. Money is returned in millions of USD.
    """
    convert = _money_in_millions if money else _number
    cleaned = text.strip()
    if not cleaned:
        return None
    lowered = cleaned.lower()
    if lowered.startswith("under "):
        upper = convert(cleaned[len("under ") :])
        return RangeValue(max=_clean_number(upper)) if upper is not None else None
    if cleaned.endswith("+"):
        lower = convert(cleaned[:-1].rstrip("%"))
        return RangeValue(min=_clean_number(lower)) if lower is not None else None
    match = _BETWEEN_RE.match(cleaned)
    if match:
        low_text, high_text = match.groups()
        lower, upper = convert(low_text.rstrip("%")), convert(high_text.rstrip("%"))
        if lower is None or upper is None:
            return None
        return RangeValue(min=_clean_number(lower), max=_clean_number(upper))
    return None


def _format_number(value: int | float) -> str:
    return f"{value:g}"


def _format_money(millions: int | float) -> str:
    if millions >= 1000 and float(millions / 1000).is_integer():
        return f"${_format_number(millions / 1000)}B"
    return f"${_format_number(millions)}M"


def format_range_text(value: RangeValue, *, money: bool = False, suffix: str = "") -> str | None:
    fmt = _format_money if money else _format_number
    if value.min is not None and value.max is not None:
        return f"{fmt(value.min)}-{fmt(value.max)}{suffix}"
    if value.min is not None:
        return f"{fmt(value.min)}{suffix}+"
    if value.max is not None:
        return f"Under {fmt(value.max)}{suffix}"
    return None


def _union(ranges: list[RangeValue]) -> RangeValue | None:
    if not ranges:
        return None
    lows = [item.min for item in ranges]
    highs = [item.max for item in ranges]
    # An open bound on any selected range keeps the union open on that side.
    low = None if any(bound is None for bound in lows) else min(lows)
    high = None if any(bound is None for bound in highs) else max(highs)
    return RangeValue(min=low, max=high)


def _parse_all(labels: list[str], *, money: bool, field_name: str) -> RangeValue | None:
    parsed: list[RangeValue] = []
    for label in labels:
        value = parse_range_text(label, money=money)
        if value is None:
            logger.info("Ignoring unrecognised sidebar range", extra={"field": field_name, "label": label})
            continue
        parsed.append(value)
    return _union(parsed)


def _with_sub_filter(value: RangeValue | None, sub_filter: str) -> RangeValue | None:
    if value is None:
        return None
    return RangeValue(min=value.min, max=value.max, sub_filter=sub_filter)


def apply_sidebar_filters(
    form: SidebarForm | dict[str, Any],
    *,
    normalizer: FilterNormalizer | None = None,
) -> CanonicalFilterState:
    """Project the sidebar form onto a fresh canonical state tagged ``sidebar``.

    The result replaces the previous state wholesale: every empty selection is
    absent, never defaulted.
    """
    if not isinstance(form, SidebarForm):
        form = SidebarForm.model_validate(form)
    normalizer = normalizer or FilterNormalizer()

    region_names, region_ids, _ = normalizer.match_regions(form.regions)
    if len(region_names) < len(form.regions):
        logger.info(
            "Dropped sidebar regions missing from the vocabulary",
            extra={"selected": form.regions, "resolved": region_names},
        )

    department = form.departments[0] if form.departments else DEFAULT_DEPARTMENT
    department_headcount = None
    if form.department_sizes:
        department_headcount = _with_sub_filter(
            _parse_all(form.department_sizes[:1], money=False, field_name="departmentSizes"),
            department,
        )

    department_growth = None
    if form.department_growth_ranges:
        bounds = list(form.department_growth_ranges) + [None, None]
        department_growth = RangeValue(
            min=_clean_number(bounds[0]) if bounds[0] is not None else 0,
            max=_clean_number(bounds[1]),
            sub_filter=form.department_growth_department or department,
        )

    if form.job_opportunities is True:
        job_opportunities: list[str] | bool | None = True
    elif isinstance(form.job_opportunities, list) and form.job_opportunities:
        job_opportunities = list(form.job_opportunities)
    else:
        job_opportunities = None

    return CanonicalFilterState(
        current_title=list(form.job_titles) or None,
        current_company=form.current_company.strip() if form.current_company and form.current_company.strip() else None,
        years_of_experience=list(form.years_ranges) or None,
        industry=list(form.industries) or None,
        tags=list(form.specializations) or None,
        region=region_names or None,
        region_ids=region_ids or None,
        company_headcount=list(form.company_sizes) or None,
        company_headcount_growth=_parse_all(form.growth_ranges, money=False, field_name="growthRanges"),
        annual_revenue=_parse_all(form.revenue_ranges, money=True, field_name="revenueRanges"),
        department_headcount=department_headcount,
        department_headcount_growth=department_growth,
        account_activities=list(form.account_activities) or None,
        job_opportunities=job_opportunities,
        keyword=list(form.keywords) or None,
        years_at_current_company=list(form.years_at_company) or None,
        years_in_current_position=list(form.years_in_position) or None,
        seniority_level=list(form.seniority_levels) or None,
        recently_changed_jobs=form.recently_changed,
        posted_on_linkedin=form.linkedin_posted,
        in_the_news=form.in_the_news,
        source="sidebar",
    )


def to_sidebar_form(state: CanonicalFilterState) -> SidebarForm:
    """Project canonical state onto the sidebar form (parser -> sidebar direction)."""
    current_company = state.current_company
    if isinstance(current_company, list):
        current_company = current_company[0] if current_company else None

    departments: list[str] = []
    department_sizes: list[str] = []
    if state.department_headcount is not None:
        if state.department_headcount.sub_filter:
            departments.append(state.department_headcount.sub_filter)
        label = format_range_text(state.department_headcount)
        if label:
            department_sizes.append(label)

    growth_bounds: list[float] = []
    growth_department = None
    if state.department_headcount_growth is not None:
        growth = state.department_headcount_growth
        growth_bounds = [growth.min if growth.min is not None else 0]
        if growth.max is not None:
            growth_bounds.append(growth.max)
        growth_department = growth.sub_filter

    revenue = format_range_text(state.annual_revenue, money=True) if state.annual_revenue else None
    company_growth = (
        format_range_text(state.company_headcount_growth, suffix="%") if state.company_headcount_growth else None
    )

    return SidebarForm(
        job_titles=list(state.current_title or []),
        industries=list(state.industry or []),
        regions=list(state.region or []),
        company_sizes=list(state.company_headcount or []),
        revenue_ranges=[revenue] if revenue else [],
        seniority_levels=list(state.seniority_level or []),
        years_ranges=list(state.years_of_experience or []),
        growth_ranges=[company_growth] if company_growth else [],
        departments=departments,
        department_sizes=department_sizes,
        department_growth_ranges=growth_bounds,
        department_growth_department=growth_department,
        specializations=list(state.tags or []),
        keywords=list(state.keyword or []),
        account_activities=list(state.account_activities or []),
        current_company=current_company,
        years_at_company=list(state.years_at_current_company or []),
        years_in_position=list(state.years_in_current_position or []),
        job_opportunities=state.job_opportunities if state.job_opportunities is True else list(state.job_opportunities or []),
        recently_changed=state.recently_changed_jobs,
        linkedin_posted=state.posted_on_linkedin,
        in_the_news=state.in_the_news,
    )
