# leadgen/utils/retry.py - Bounded retry policy for collaborator calls

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from leadgen.config import Settings
from leadgen.utils.exceptions import TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
BackoffFn = Callable[[int], float]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry retryable TransportErrors up to ``max_retries`` extra attempts.

    ``backoff`` receives the 1-based retry number and returns the delay in
    seconds; without it every retry waits ``delay_seconds``. ``sleep`` is
    injectable so tests run without real delays.
    """

    max_retries: int = 2
    delay_seconds: float = 1.0
    backoff: BackoffFn | None = None
    sleep: SleepFn = asyncio.sleep

    def delay_for(self, retry_number: int) -> float:
        if self.backoff is not None:
            return self.backoff(retry_number)
        return self.delay_seconds

    async def run(self, operation: Callable[[], Awaitable[T]], *, label: str) -> T:
        retries = 0
        while True:
            try:
                return await operation()
            except TransportError as exc:
                if not exc.retryable or retries >= self.max_retries:
                    raise
                retries += 1
                delay = self.delay_for(retries)
                logger.warning(
                    "Collaborator call failed, retrying",
                    extra={
                        "label": label,
                        "retry": retries,
                        "max_retries": self.max_retries,
                        "delay_seconds": delay,
                        "error": str(exc),
                    },
                )
                await self.sleep(delay)


def company_search_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.search_max_retries,
        delay_seconds=settings.search_retry_delay_seconds,
    )


def contact_search_policy(settings: Settings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.contact_search_max_retries,
        delay_seconds=settings.search_retry_delay_seconds,
    )
