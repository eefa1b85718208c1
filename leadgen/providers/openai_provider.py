from __future__ import annotations

import logging
from typing import Any

from leadgen.providers.common import ProviderAdapterResult, now_ms, post_json, require_api_key
from leadgen.utils.exceptions import TransportError

logger = logging.getLogger(__name__)


def _message_content(body: dict[str, Any]) -> str:
    content = ""
    choices = body.get("choices") or []
    if choices:
        message = (choices[0] or {}).get("message") or {}
        raw_content = message.get("content")
        if isinstance(raw_content, str):
            content = raw_content
        elif isinstance(raw_content, list):
            chunks: list[str] = []
            for part in raw_content:
                if not isinstance(part, dict):
                    continue
                text = part.get("text")
                if isinstance(text, str):
                    chunks.append(text)
            content = "".join(chunks)
    return content


async def complete_chat(
    *,
    api_key: str | None,
    model: str,
    system_prompt: str,
    user_message: str,
    temperature: float = 0.2,
    api_url: str = "https://api.openai.com/v1/chat/completions",
    timeout: float = 30.0,
) -> ProviderAdapterResult:
    """Run one system+user chat completion; ``mapped`` is the reply text, undecoded."""
    payload = {
        "model": model,
        "temperature": temperature,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
    }
    key = require_api_key(api_key, provider="openai", sent_request={"model": model})
    started = now_ms()
    res, body = await post_json(
        provider="openai",
        url=api_url,
        headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        payload=payload,
        timeout=timeout,
    )
    if res.status_code >= 400:
        raise TransportError(
            "Chat completion failed",
            provider="openai",
            status_code=res.status_code,
            details=body,
            sent_request={"model": model, "temperature": temperature},
        )
    content = _message_content(body)
    logger.debug("LLM reply received", extra={"model": model, "reply_chars": len(content)})
    return {
        "attempt": {
            "provider": "openai",
            "action": "chat_completion",
            "status": "completed",
            "duration_ms": now_ms() - started,
            "raw_response": body,
        },
        "mapped": content,
    }
