from __future__ import annotations

import logging
from typing import Any

from leadgen.providers.common import ProviderAdapterResult, now_ms, post_json, require_api_key
from leadgen.utils.exceptions import NoMoreResultsError, TransportError

logger = logging.getLogger(__name__)

PROVIDER = "crustdata"
NO_MORE_RESULTS_ERROR = "Failed to parse search query"


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}


async def _search(
    *,
    api_key: str | None,
    url: str,
    payload: dict[str, Any],
    timeout: float,
    action: str,
) -> tuple[dict[str, Any], dict[str, Any]]:
    key = require_api_key(api_key, provider=PROVIDER, sent_request=payload)
    started = now_ms()
    res, body = await post_json(provider=PROVIDER, url=url, headers=_headers(key), payload=payload, timeout=timeout)
    # Checked before the status code: the API uses this payload for pages past the end.
    if body.get("error") == NO_MORE_RESULTS_ERROR:
        raise NoMoreResultsError(provider=PROVIDER, details=body, sent_request=payload)
    if res.status_code >= 400:
        raise TransportError(
            f"{action} failed",
            provider=PROVIDER,
            status_code=res.status_code,
            details=body,
            sent_request=payload,
        )
    attempt = {
        "provider": PROVIDER,
        "action": action,
        "status": "completed",
        "http_status": res.status_code,
        "duration_ms": now_ms() - started,
    }
    return attempt, body


async def search_companies(
    *,
    api_key: str | None,
    base_url: str,
    payload: dict[str, Any],
    timeout: float = 30.0,
) -> ProviderAdapterResult:
    """POST to the company screener. ``mapped.total_count`` is None when the API reports none."""
    attempt, body = await _search(
        api_key=api_key,
        url=f"{base_url.rstrip('/')}/screener/company/search",
        payload=payload,
        timeout=timeout,
        action="company_search",
    )
    companies = [item for item in _as_list(body.get("companies") or body.get("results")) if isinstance(item, dict)]
    total = _as_int(body.get("total_count"))
    if total is None:
        total = _as_int(body.get("total_display_count"))
    attempt["result_count"] = len(companies)
    return {"attempt": attempt, "mapped": {"companies": companies, "total_count": total}}


async def search_people(
    *,
    api_key: str | None,
    base_url: str,
    payload: dict[str, Any],
    timeout: float = 30.0,
) -> ProviderAdapterResult:
    attempt, body = await _search(
        api_key=api_key,
        url=f"{base_url.rstrip('/')}/screener/person/search",
        payload=payload,
        timeout=timeout,
        action="person_search",
    )
    profiles = [_as_dict(item) for item in _as_list(body.get("profiles")) if isinstance(item, dict)]
    total = _as_int(body.get("total_display_count"))
    if total is None:
        total = _as_int(body.get("total_count"))
    attempt["result_count"] = len(profiles)
    return {"attempt": attempt, "mapped": {"profiles": profiles, "total_count": total}}
