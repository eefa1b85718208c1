# leadgen/utils/exceptions.py - Custom exception classes

from __future__ import annotations

from typing import Any


class LeadgenError(Exception):
    """Base class for errors raised by the query and search services."""


class ParseError(LeadgenError):
    """The LLM reply could not be decoded as a JSON object."""

    def __init__(self, message: str, *, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class TransportError(LeadgenError):
    """A collaborator call failed (network, timeout or non-2xx reply)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        status_code: int | None = None,
        details: Any = None,
        sent_request: dict[str, Any] | None = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.details = details
        self.sent_request = sent_request or {}
        self.retryable = retryable

    def user_message(self) -> str:
        if self.status_code is not None:
            return f"Error from {self.provider} API (HTTP {self.status_code}): {self}"
        return f"Error from {self.provider} API: {self}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.user_message(),
            "details": self.details,
            "sent_request": self.sent_request,
        }


class NoMoreResultsError(TransportError):
    """Search collaborator signalled that pagination ran past the last page."""

    def __init__(self, *, provider: str, details: Any = None, sent_request: dict[str, Any] | None = None):
        super().__init__(
            "No more results available",
            provider=provider,
            details=details,
            sent_request=sent_request,
            retryable=False,
        )


class EmptyFilterSetError(LeadgenError):
    """Normalization left nothing to send to the search collaborator."""
