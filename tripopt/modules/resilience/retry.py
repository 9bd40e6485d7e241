"""
modules/resilience/retry.py
-----------------------------
Retry/backoff driver with cooperative cancellation.

with_retry(operation, config) invokes ``operation`` until one of:
  - it succeeds                                -> result returned
  - it fails with a non-retryable error        -> ClassifiedError raised
  - the retry budget is exhausted              -> last ClassifiedError raised
  - the cancellation token fires               -> non-retryable OPERATION_CANCELLED

Backoff before retry number n (1-based):
    delay = min(base_delay * 2**n + uniform(0, jitter), max_delay)

The loop is explicit; the token is passed in by the caller and checked at the
start of every attempt and before every sleep.  The sleep itself and the
awaited operation are both interrupted when the token fires.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from tripopt import config
from tripopt.modules.resilience.error_classifier import (
    ClassifiedError,
    ErrorType,
    classify_error,
    create_error,
    generate_correlation_id,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Union[Awaitable[T], T]]

CANCELLED_CODE = "OPERATION_CANCELLED"


# ── Cancellation ─────────────────────────────────────────────────────────────

class CancellationToken:
    """
    Single-shot cancellation signal shared by one optimization run.

    ``cancel()`` may be called from any coroutine on the same loop; awaiting
    code observes it through ``cancelled`` or ``wait()``.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled by caller") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True


# ── Configuration ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RetryConfig:
    """Retry budget and backoff shape. Delays are in seconds."""
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    jitter: float = 1.0
    retryable_errors: frozenset = field(default_factory=lambda: DEFAULT_RETRYABLE)


DEFAULT_RETRYABLE: frozenset = frozenset({
    ErrorType.NETWORK_ERROR,
    ErrorType.TIMEOUT_ERROR,
    ErrorType.RESOURCE_ERROR,
    ErrorType.EXTERNAL_SERVICE_ERROR,
    ErrorType.UNKNOWN_ERROR,
})

DEFAULT_RETRY_CONFIG = RetryConfig()

AGGRESSIVE_RETRY_CONFIG = RetryConfig(
    max_retries=5,
    base_delay=0.5,
    max_delay=8.0,
    retryable_errors=DEFAULT_RETRYABLE | {ErrorType.DATA_ERROR},
)

CONSERVATIVE_RETRY_CONFIG = RetryConfig(
    max_retries=2,
    base_delay=2.0,
    max_delay=15.0,
    retryable_errors=frozenset({ErrorType.NETWORK_ERROR, ErrorType.TIMEOUT_ERROR}),
)

_PROFILES: dict[str, RetryConfig] = {
    "default":      DEFAULT_RETRY_CONFIG,
    "aggressive":   AGGRESSIVE_RETRY_CONFIG,
    "conservative": CONSERVATIVE_RETRY_CONFIG,
}


def get_retry_config(profile: Optional[str] = None) -> RetryConfig:
    """Return a preset profile; unknown names fall back to ``default``."""
    name = (profile or config.RETRY_PROFILE).lower()
    if name not in _PROFILES:
        logger.warning("Unknown retry profile %r; using 'default'", name)
    return _PROFILES.get(name, DEFAULT_RETRY_CONFIG)


def compute_backoff_delay(
    retry_number: int,
    retry_config: RetryConfig,
    jitter: float = 0.0,
) -> float:
    """Delay in seconds before retry ``retry_number`` (1-based)."""
    return min(
        retry_config.base_delay * (2 ** retry_number) + jitter,
        retry_config.max_delay,
    )


def should_retry(error: ClassifiedError, retry_config: RetryConfig) -> bool:
    return error.retryable and error.type in retry_config.retryable_errors


# ── Driver ───────────────────────────────────────────────────────────────────

def _cancelled_error(
    stage: str,
    correlation_id: str,
    operation_name: str,
    attempt: int,
    reason: str,
) -> ClassifiedError:
    return create_error(
        ErrorType.TIMEOUT_ERROR,
        f"Operation was cancelled: {reason or 'cancelled'}",
        stage=stage,
        retryable=False,
        correlation_id=correlation_id,
        code=CANCELLED_CODE,
        context={"operation": operation_name, "attempts": attempt},
    )


async def _invoke(operation: Operation, cancel_token: Optional[CancellationToken]) -> Any:
    """Run one attempt; abort the awaited operation if the token fires first."""
    result = operation()
    if not inspect.isawaitable(result):
        return result
    if cancel_token is None:
        return await result

    op_task = asyncio.ensure_future(result)
    cancel_task = asyncio.ensure_future(cancel_token.wait())
    try:
        done, _ = await asyncio.wait(
            {op_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        cancel_task.cancel()

    if op_task in done:
        return op_task.result()

    op_task.cancel()
    try:
        await op_task
    except asyncio.CancelledError:
        pass
    except Exception:  # noqa: BLE001 - outcome superseded by cancellation
        logger.debug("Operation failed while being cancelled", exc_info=True)
    raise _OperationAborted()


class _OperationAborted(Exception):
    """Internal marker: the token fired while an attempt was in flight."""


async def with_retry(
    operation: Operation,
    retry_config: Optional[RetryConfig] = None,
    *,
    stage: str = "unknown",
    correlation_id: Optional[str] = None,
    cancel_token: Optional[CancellationToken] = None,
    operation_name: str = "operation",
    on_retry: Optional[Callable[[ClassifiedError, int, float], None]] = None,
    rng: Optional[random.Random] = None,
) -> Any:
    """
    Invoke ``operation`` with classified retries.

    Args:
        operation:      zero-arg callable returning a value or an awaitable.
        retry_config:   budget/backoff profile (default: config.RETRY_PROFILE).
        stage:          pipeline stage stamped on any error raised.
        correlation_id: shared id for this logical operation; generated if None.
        cancel_token:   cooperative cancellation signal.
        on_retry:       hook called as (error, retry_number, delay) before sleeping.
        rng:            random source for jitter.

    Raises:
        ClassifiedError on final failure, non-retryable failure or cancellation.
    """
    cfg = retry_config or get_retry_config()
    corr = correlation_id or generate_correlation_id()
    jitter_source = rng or random

    attempt = 0
    while True:
        attempt += 1
        if cancel_token is not None and cancel_token.cancelled:
            raise _cancelled_error(stage, corr, operation_name, attempt, cancel_token.reason)

        try:
            return await _invoke(operation, cancel_token)
        except _OperationAborted:
            raise _cancelled_error(
                stage, corr, operation_name, attempt,
                cancel_token.reason if cancel_token else "",
            ) from None
        except Exception as exc:  # noqa: BLE001 - every failure is classified
            error = classify_error(
                exc,
                stage=stage,
                correlation_id=corr,
                context={"operation": operation_name, "attempts": attempt},
            )
            if error is not exc:
                error.__cause__ = exc

        retries_used = attempt - 1
        if retries_used >= cfg.max_retries or not should_retry(error, cfg):
            logger.info(
                "%s failed permanently after %d attempt(s): [%s] %s",
                operation_name, attempt, error.type.value, error.message,
            )
            raise error

        retry_number = attempt
        delay = compute_backoff_delay(
            retry_number, cfg, jitter_source.uniform(0.0, cfg.jitter) if cfg.jitter > 0 else 0.0
        )
        logger.warning(
            "%s failed (attempt %d/%d), retrying in %.2fs: [%s] %s",
            operation_name, attempt, cfg.max_retries + 1, delay,
            error.type.value, error.message,
        )
        if on_retry is not None:
            on_retry(error, retry_number, delay)

        if cancel_token is not None:
            if cancel_token.cancelled or await cancel_token.sleep(delay):
                raise _cancelled_error(stage, corr, operation_name, attempt, cancel_token.reason)
        elif delay > 0:
            await asyncio.sleep(delay)
