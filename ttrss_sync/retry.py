"""Tenacity re-login wrapper driven by RetryConfig."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .config import RetryConfig
from .errors import ProtocolStatusError

T = TypeVar("T")


def is_session_expired(exc: BaseException) -> bool:
    """True for the server's "not logged in" protocol error."""
    return isinstance(exc, ProtocolStatusError) and exc.session_expired


def with_relogin(config: RetryConfig, *, relogin: Callable[[], None]) -> Callable:
    """Return a tenacity retry decorator that re-authenticates between attempts.

    Only an expired session is retried; *relogin* runs before the backoff
    sleep preceding each new attempt.  After ``max_attempts`` the last
    error is re-raised unchanged.

    Usage::

        @with_relogin(config.relogin, relogin=pipeline.relogin)
        def fetch() -> list[Feed]: ...
    """

    def _before_sleep(state: RetryCallState) -> None:
        relogin()

    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.initial_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=retry_if_exception(is_session_expired),
        before_sleep=_before_sleep,
        reraise=True,
    )
