from __future__ import annotations

import time
from typing import Any, TypedDict

import httpx

from leadgen.utils.exceptions import TransportError


class ProviderAdapterResult(TypedDict):
    attempt: dict[str, Any]
    mapped: Any


def now_ms() -> int:
    return int(time.time() * 1000)


def parse_json_or_raw(text: str, parser: Any) -> dict[str, Any]:
    try:
        parsed = parser()
        if isinstance(parsed, dict):
            return parsed
        return {"value": parsed}
    except ValueError:
        return {"raw": text}


async def post_json(
    *,
    provider: str,
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: float,
) -> tuple[httpx.Response, dict[str, Any]]:
    """POST ``payload`` and decode the reply; network failures become retryable TransportErrors."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            res = await client.post(url, headers=headers, json=payload)
    except httpx.TimeoutException as exc:
        raise TransportError(
            f"Request timed out after {timeout:g}s",
            provider=provider,
            details=str(exc) or exc.__class__.__name__,
            sent_request=payload,
        ) from exc
    except httpx.HTTPError as exc:
        raise TransportError(
            "Request failed",
            provider=provider,
            details=str(exc) or exc.__class__.__name__,
            sent_request=payload,
        ) from exc
    return res, parse_json_or_raw(res.text, res.json)


def require_api_key(api_key: str | None, *, provider: str, sent_request: dict[str, Any] | None = None) -> str:
    if not api_key:
        raise TransportError(
            "missing_api_key",
            provider=provider,
            sent_request=sent_request,
            retryable=False,
        )
    return api_key
