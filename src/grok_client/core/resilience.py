"""Retry policy for the Grok transport.

Only rate-limited (429) and server-error (5xx) responses are retried. Every
other failure, including connection errors and other 4xx statuses, surfaces
on the first attempt. Retries sleep on the calling thread.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from grok_client.core.config import GrokConfig, RetryBackoff
from grok_client.domain.exceptions import GrokError

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


@dataclass(slots=True, frozen=True)
class RetryConfig:
    """Retry settings.

    Attributes:
        max_attempts: Total attempts including the first (default: 3).
        delay: Seconds between attempts, or the initial delay for
            exponential backoff (default: 1.0).
        backoff: "fixed" or "exponential".
        max_delay: Upper bound for exponential delays in seconds.
    """

    max_attempts: int = 3
    delay: float = 1.0
    backoff: RetryBackoff = "fixed"
    max_delay: float = 60.0

    @classmethod
    def from_config(cls, config: GrokConfig) -> RetryConfig:
        return cls(
            max_attempts=max(1, config.max_retries),
            delay=max(0, config.retry_delay) / 1000,
            backoff=config.retry_backoff,
        )


def is_retryable(exc: BaseException) -> bool:
    """Whether ``exc`` is a client error carrying a 429 or 5xx status."""
    return isinstance(exc, GrokError) and exc.retryable


def call_with_retry(func: Callable[[], _T], *, config: RetryConfig | None = None) -> _T:
    """Invoke ``func``, retrying on 429/5xx errors (powered by tenacity).

    The last error is re-raised unchanged once attempts are exhausted.
    """
    cfg = config or RetryConfig()
    match cfg.backoff:
        case "exponential":
            wait = wait_exponential(multiplier=cfg.delay, min=cfg.delay, max=cfg.max_delay)
        case _:
            wait = wait_fixed(cfg.delay)

    retrying = Retrying(
        stop=stop_after_attempt(cfg.max_attempts),
        wait=wait,
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(func)


__all__ = ["RetryConfig", "call_with_retry", "is_retryable"]
