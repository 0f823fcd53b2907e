"""Error types and retry helpers for the relay's outbound HTTP calls.

This module provides:
- The relay's exception taxonomy (transport, API, not-found, format)
- A tenacity retry factory for idempotent requests

Adapters raise these exceptions; only the message handler turns them into
chat text.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

log = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class RelayError(Exception):
    """Base exception for all relay errors."""


class TransportError(RelayError):
    """Network or connection failure talking to an upstream service."""


class ApiError(RelayError):
    """Upstream returned a non-success status or an unexpected JSON shape.

    Attributes:
        status_code: HTTP status of the failed response, if there was one.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(RelayError):
    """An expected resource (build, pending input, parameters) is absent."""


class FormatError(RelayError):
    """Malformed chat command syntax."""


class UsageError(FormatError):
    """Command is missing arguments; the message is the usage line."""


# =============================================================================
# Retry Decorator
# =============================================================================


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts for debugging."""
    if retry_state.outcome is None:
        return

    exception = retry_state.outcome.exception()
    if exception:
        log.warning(
            "retrying_operation",
            attempt=retry_state.attempt_number,
            exception_type=type(exception).__name__,
            exception_message=str(exception),
            wait_time=retry_state.next_action.sleep if retry_state.next_action else 0,
        )


def create_retry(
    max_attempts: int = 1,
    min_wait: float = 0.5,
    max_wait: float = 5.0,
    retry_on: tuple[type[Exception], ...] = (TransportError,),
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Create a retry decorator for idempotent calls.

    With the default of a single attempt the decorated call runs exactly
    once and its exception propagates unchanged.

    Args:
        max_attempts: Total number of attempts, including the first.
        min_wait: Initial wait between attempts (seconds).
        max_wait: Maximum wait between attempts (seconds).
        retry_on: Exception types that trigger another attempt.

    Returns:
        A retry decorator configured with the given parameters.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry,
        reraise=True,
    )
