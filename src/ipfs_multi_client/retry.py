"""
Opt-in retries for transport failures.

Nothing is retried unless ``Settings.http_retry`` is positive. Only
``TransportError`` is retried; daemon rejections and decode failures are
deterministic and surface immediately.
"""
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import TransportError

__all__ = ["call_with_retry"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.debug(f"Retrying after transport error (attempt {state.attempt_number}): {exc}")


def call_with_retry(func: Callable[[], T], retries: int) -> T:
    """
    Call ``func``, retrying up to ``retries`` times on ``TransportError``.

    Args:
        func: Zero-argument callable performing one request
        retries: Extra attempts after the first (0 calls ``func`` exactly once)

    Returns:
        ``func``'s result

    Raises:
        TransportError: From the last attempt if every attempt failed
    """
    if retries <= 0:
        return func()

    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(TransportError),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retrying(func)
