from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from leadgen.config import Settings, get_settings
from leadgen.contracts.filters import (
    FILTER_SHAPES,
    CanonicalFilterState,
    FilterShape,
    FilterType,
    RangeValue,
    ValidationWarning,
    attribute_for,
)
from leadgen.providers import openai_provider
from leadgen.services.filter_normalizer import FilterNormalizer, clean_company_names
from leadgen.services.prompts import SYSTEM_PROMPT, user_prompt
from leadgen.utils.exceptions import ParseError
from leadgen.vocabulary.loader import Vocabulary

logger = logging.getLogger(__name__)

# (system_prompt, user_message) -> reply text
LLMComplete = Callable[[str, str], Awaitable[str]]

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)

_ENUMERATED_LIST_FIELDS = (
    FilterType.COMPANY_HEADCOUNT,
    FilterType.ACCOUNT_ACTIVITIES,
    FilterType.YEARS_OF_EXPERIENCE,
    FilterType.YEARS_AT_CURRENT_COMPANY,
    FilterType.YEARS_IN_CURRENT_POSITION,
    FilterType.SENIORITY_LEVEL,
)

INFERRED_MESSAGE = "filter was inferred but not explicitly mentioned"


@dataclass
class ParsedQuery:
    filters: CanonicalFilterState
    warnings: list[ValidationWarning] = field(default_factory=list)
    raw_response: str = ""


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    match = _CODE_FENCE_RE.match(cleaned)
    return match.group(1) if match else cleaned


def decode_filter_reply(text: str) -> dict[str, Any]:
    """Decode the model reply strictly. Anything but one JSON object is a ParseError."""
    try:
        loaded = json.loads(_strip_code_fence(text))
    except ValueError as exc:
        logger.error("Failed to parse LLM reply as JSON", extra={"raw_response": text})
        raise ParseError("Failed to parse response", raw_response=text) from exc
    if not isinstance(loaded, dict):
        logger.error("LLM reply is not a JSON object", extra={"raw_response": text})
        raise ParseError("Failed to parse response", raw_response=text)
    return loaded


def _as_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


_UNREADABLE = object()


def _as_bound(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        return _UNREADABLE
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return _UNREADABLE
        return int(number) if number.is_integer() else number
    return _UNREADABLE


def _is_blank_range(value: Any) -> bool:
    return value is None or (isinstance(value, dict) and all(_as_bound(value.get(key)) is None for key in ("min", "max")))


def _as_range(value: Any) -> RangeValue | None:
    if not isinstance(value, dict):
        return None
    bounds = {key: _as_bound(value.get(key)) for key in ("min", "max")}
    if any(bound is _UNREADABLE for bound in bounds.values()):
        return None
    sub_filter = value.get("sub_filter")
    shaped = RangeValue(
        min=bounds["min"],
        max=bounds["max"],
        sub_filter=sub_filter if isinstance(sub_filter, str) and sub_filter.strip() else None,
    )
    return shaped if shaped.is_set else None


def _as_tristate(value: Any) -> bool | None:
    # A missing or non-boolean key stays unset; only a literal false is False.
    return value if isinstance(value, bool) else None


def reply_to_state(reply: dict[str, Any]) -> CanonicalFilterState:
    """Shape a decoded reply into canonical state without any vocabulary work."""
    values: dict[str, Any] = {}
    for filter_type, shape in FILTER_SHAPES.items():
        if filter_type in {FilterType.REGION_IDS, FilterType.SOURCE}:
            continue
        raw = reply.get(filter_type.value)
        if shape == FilterShape.RANGE:
            values[attribute_for(filter_type)] = _as_range(raw)
        elif shape == FilterShape.BOOLEAN:
            values[attribute_for(filter_type)] = _as_tristate(raw)
        elif filter_type == FilterType.JOB_OPPORTUNITIES and isinstance(raw, bool):
            values[attribute_for(filter_type)] = raw
        else:
            values[attribute_for(filter_type)] = _as_str_list(raw)
    values["source"] = "query_parser"
    return CanonicalFilterState(**values)


def _mentions(text: str, term: str) -> bool:
    term = term.strip().lower()
    if not term:
        return False
    return re.search(rf"(?<![a-z0-9]){re.escape(term)}(?![a-z0-9])", text) is not None


def _loose_form(value: str) -> str:
    return re.sub(r"\s+", " ", re.sub(r"[^a-z0-9]+", " ", value.lower())).strip()


def plausibility_warnings(query: str, state: CanonicalFilterState, vocabulary: Vocabulary) -> list[ValidationWarning]:
    """Flag INDUSTRY, REGION and COMPANY_HEADCOUNT values the query never mentions."""
    text = query.lower()
    loose_text = _loose_form(query)
    warnings: list[ValidationWarning] = []

    for filter_type, values in ((FilterType.INDUSTRY, state.industry), (FilterType.REGION, state.region)):
        for value in values or []:
            terms = (value, *vocabulary.aliases_for(value))
            if any(_mentions(text, term) or _mentions(loose_text, _loose_form(term)) for term in terms):
                continue
            logger.warning(
                "Filter value was not mentioned in the query",
                extra={"field": filter_type.value, "value": value, "query": query},
            )
            warnings.append(
                ValidationWarning(
                    field=filter_type.value,
                    message=f"{filter_type.value} {INFERRED_MESSAGE}",
                    rejected=[value],
                )
            )

    if state.company_headcount:
        terms = (*state.company_headcount, *vocabulary.headcount_mentions)
        if not any(_mentions(text, term) for term in terms):
            logger.warning(
                "Company size was not mentioned in the query",
                extra={"field": FilterType.COMPANY_HEADCOUNT.value, "value": state.company_headcount, "query": query},
            )
            warnings.append(
                ValidationWarning(
                    field=FilterType.COMPANY_HEADCOUNT.value,
                    message=f"{FilterType.COMPANY_HEADCOUNT.value} {INFERRED_MESSAGE}",
                    rejected=list(state.company_headcount),
                )
            )
    return warnings


def interpret_reply(
    query: str,
    reply: dict[str, Any],
    normalizer: FilterNormalizer,
) -> tuple[CanonicalFilterState, list[ValidationWarning]]:
    state = reply_to_state(reply)
    warnings: list[ValidationWarning] = []

    for filter_type, shape in FILTER_SHAPES.items():
        raw = reply.get(filter_type.value)
        if shape != FilterShape.RANGE or state.get(filter_type) is not None or _is_blank_range(raw):
            continue
        message = f"Unrecognised {filter_type.value} range; filter dropped"
        logger.warning(message, extra={"filter_type": filter_type.value, "raw": raw})
        warnings.append(ValidationWarning(field=filter_type.value, message=message, rejected=[raw]))

    industries, industry_warnings = normalizer.match_industries(state.industry)
    region_names, region_ids, region_warnings = normalizer.match_regions(state.region)
    warnings.extend(industry_warnings)
    warnings.extend(region_warnings)

    update: dict[str, Any] = {
        "industry": industries,
        "region": region_names,
        "region_ids": region_ids,
        "current_company": clean_company_names(state.current_company),
    }
    for filter_type in _ENUMERATED_LIST_FIELDS:
        kept, warning = normalizer.filter_allowed(filter_type, state.get(filter_type))
        update[attribute_for(filter_type)] = kept
        if warning:
            warnings.append(warning)
    if state.job_opportunities is not True:
        kept, warning = normalizer.filter_allowed(FilterType.JOB_OPPORTUNITIES, state.job_opportunities)
        update["job_opportunities"] = kept
        if warning:
            warnings.append(warning)

    interpreted = state.model_copy(update=update)
    warnings.extend(plausibility_warnings(query, interpreted, normalizer.vocabulary))
    return interpreted, warnings


def _default_llm(settings: Settings) -> LLMComplete:
    async def complete(system_prompt: str, user_message: str) -> str:
        result = await openai_provider.complete_chat(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            system_prompt=system_prompt,
            user_message=user_message,
            temperature=settings.openai_temperature,
            api_url=settings.openai_api_url,
            timeout=settings.openai_timeout_seconds,
        )
        return result["mapped"]

    return complete


async def parse_query(
    query: str,
    *,
    llm: LLMComplete | None = None,
    normalizer: FilterNormalizer | None = None,
) -> ParsedQuery:
    """Turn one free-text query into canonical filter state tagged ``query_parser``.

    Raises ParseError when the reply is not a JSON object and TransportError
    when the LLM call itself fails. Neither is retried here.
    """
    cleaned = query.strip() if isinstance(query, str) else ""
    if not cleaned:
        raise ValueError("Query is required")
    complete = llm or _default_llm(get_settings())
    raw = await complete(SYSTEM_PROMPT, user_prompt(cleaned))
    logger.debug("Raw LLM reply", extra={"raw_response": raw})
    reply = decode_filter_reply(raw)
    state, warnings = interpret_reply(cleaned, reply, normalizer or FilterNormalizer())
    return ParsedQuery(filters=state, warnings=warnings, raw_response=raw)
