"""
modules/resilience/error_classifier.py
----------------------------------------
Turns an arbitrary failure into a typed, inspectable ClassifiedError.

Every failure that leaves the optimization core arrives as exactly one
ClassifiedError carrying:
  type           : closed ErrorType taxonomy
  code           : short machine code (explicit at known sites, generated otherwise)
  stage          : pipeline stage in which the failure happened
  retryable      : verdict used by the retry driver
  context        : read-only mapping of extra key/values
  timestamp      : ISO-8601 UTC creation time
  correlation_id : shared by every stage and retry of one optimization run

The record is built once at the failure site and never mutated afterwards.

Classification order:
  1. already a ClassifiedError           -> returned unchanged
  2. domain exception kinds raised by the core
  3. message inspection (network, timeout, permission, ...)
  4. built-in exception kinds (TimeoutError, ConnectionError, KeyError, ...)
  5. UNKNOWN_ERROR (retryable: assume transient)
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


# ── Taxonomy ─────────────────────────────────────────────────────────────────

class ErrorType(Enum):
    """Closed set of failure kinds surfaced by the optimizer."""

    NETWORK_ERROR          = "NETWORK_ERROR"
    TIMEOUT_ERROR          = "TIMEOUT_ERROR"
    PERMISSION_ERROR       = "PERMISSION_ERROR"
    VALIDATION_ERROR       = "VALIDATION_ERROR"
    RESOURCE_ERROR         = "RESOURCE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    DATA_ERROR             = "DATA_ERROR"
    UNKNOWN_ERROR          = "UNKNOWN_ERROR"


# ── Domain exceptions raised inside the core ─────────────────────────────────

class OptimizationInputError(ValueError):
    """Caller supplied inputs that no retry can fix (empty trip, bad settings)."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class TripDataError(LookupError):
    """Malformed or missing data returned by a data provider."""


class ExternalServiceError(RuntimeError):
    """A distance/data provider call failed on the provider side."""


# ── Classified error ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ErrorRecord:
    type: ErrorType
    code: str
    message: str
    stage: str
    retryable: bool
    correlation_id: str
    timestamp: str
    context: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


class ClassifiedError(Exception):
    """
    Exception carrying an immutable ErrorRecord.

    Attributes are exposed as read-only properties; use ``to_dict()`` for
    logging or transport.
    """

    def __init__(self, record: ErrorRecord) -> None:
        super().__init__(record.message)
        self._record = record

    @property
    def record(self) -> ErrorRecord:
        return self._record

    @property
    def type(self) -> ErrorType:
        return self._record.type

    @property
    def code(self) -> str:
        return self._record.code

    @property
    def message(self) -> str:
        return self._record.message

    @property
    def stage(self) -> str:
        return self._record.stage

    @property
    def retryable(self) -> bool:
        return self._record.retryable

    @property
    def context(self) -> Mapping[str, Any]:
        return self._record.context

    @property
    def timestamp(self) -> str:
        return self._record.timestamp

    @property
    def correlation_id(self) -> str:
        return self._record.correlation_id

    def to_dict(self) -> dict:
        return {
            "type":           self.type.value,
            "code":           self.code,
            "message":        self.message,
            "stage":          self.stage,
            "retryable":      self.retryable,
            "context":        dict(self.context),
            "timestamp":      self.timestamp,
            "correlation_id": self.correlation_id,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"ClassifiedError({self.type.value}/{self.code} @ {self.stage}: "
            f"{self.message!r}, retryable={self.retryable})"
        )


# ── Message patterns ─────────────────────────────────────────────────────────
# Checked in order; the first matching group wins.
_MESSAGE_PATTERNS: list[tuple[ErrorType, tuple[str, ...]]] = [
    (ErrorType.NETWORK_ERROR,          ("network", "fetch", "connection", "unreachable", "dns")),
    (ErrorType.TIMEOUT_ERROR,          ("timeout", "timed out", "deadline")),
    (ErrorType.PERMISSION_ERROR,       ("unauthorized", "forbidden", "permission", "not a member")),
    (ErrorType.VALIDATION_ERROR,       ("validation", "invalid", "required")),
    (ErrorType.RESOURCE_ERROR,         ("not found", "resource", "limit", "quota", "too many requests")),
    (ErrorType.EXTERNAL_SERVICE_ERROR, ("external service", "provider", "upstream", "service unavailable")),
    (ErrorType.DATA_ERROR,             ("malformed", "missing field", "corrupt", "decode")),
]


def _type_from_kind(error: BaseException) -> Optional[ErrorType]:
    """Domain exception kinds take precedence over message text."""
    if isinstance(error, OptimizationInputError):
        return ErrorType.VALIDATION_ERROR
    if isinstance(error, TripDataError):
        return ErrorType.DATA_ERROR
    if isinstance(error, ExternalServiceError):
        return ErrorType.EXTERNAL_SERVICE_ERROR
    if isinstance(error, PermissionError):
        return ErrorType.PERMISSION_ERROR
    return None


def _type_from_builtin(error: BaseException) -> ErrorType:
    """Fallback on the exception class once message inspection found nothing."""
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorType.TIMEOUT_ERROR
    if isinstance(error, ConnectionError):
        return ErrorType.NETWORK_ERROR
    if isinstance(error, (KeyError, TypeError, json.JSONDecodeError)):
        return ErrorType.DATA_ERROR
    if isinstance(error, ValueError):
        return ErrorType.VALIDATION_ERROR
    if isinstance(error, MemoryError):
        return ErrorType.RESOURCE_ERROR
    return ErrorType.UNKNOWN_ERROR


def categorize_error(error: BaseException) -> ErrorType:
    """Map an exception to an ErrorType without building a record."""
    if isinstance(error, ClassifiedError):
        return error.type

    by_kind = _type_from_kind(error)
    if by_kind is not None:
        return by_kind

    message = str(error).lower()
    for error_type, needles in _MESSAGE_PATTERNS:
        if any(n in message for n in needles):
            return error_type

    return _type_from_builtin(error)


def is_retryable(error_type: ErrorType, message: str = "") -> bool:
    """
    Retryability verdict per type.

    network / timeout / resource / data -> True
    validation / permission             -> False
    external service                    -> True unless it reports a validation failure
    unknown                             -> True (fail open)
    """
    if error_type in (ErrorType.VALIDATION_ERROR, ErrorType.PERMISSION_ERROR):
        return False
    if error_type is ErrorType.EXTERNAL_SERVICE_ERROR:
        return "validation" not in message.lower()
    return True


# ── Identifiers ──────────────────────────────────────────────────────────────

def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def generate_error_code(error_type: ErrorType) -> str:
    prefix = error_type.value.split("_")[0][:3].upper()
    return f"{prefix}_{_base36(int(time.time() * 1000))}"


def generate_correlation_id() -> str:
    return f"opt_{int(time.time() * 1000)}_{uuid.uuid4().hex[:12]}"


# ── Public API ───────────────────────────────────────────────────────────────

def create_error(
    error_type: ErrorType,
    message: str,
    *,
    stage: str,
    retryable: bool,
    correlation_id: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> ClassifiedError:
    """Construct a ClassifiedError directly (used at known failure sites)."""
    record = ErrorRecord(
        type=error_type,
        code=code or generate_error_code(error_type),
        message=message,
        stage=stage,
        retryable=retryable,
        correlation_id=correlation_id or generate_correlation_id(),
        timestamp=datetime.now(timezone.utc).isoformat(),
        context=MappingProxyType(dict(context or {})),
    )
    return ClassifiedError(record)


def classify_error(
    error: BaseException,
    *,
    stage: str = "unknown",
    correlation_id: Optional[str] = None,
    context: Optional[Mapping[str, Any]] = None,
) -> ClassifiedError:
    """
    Classify ``error`` into a ClassifiedError.

    An error that is already classified is returned unchanged so that its
    original stage, verdict and correlation id survive re-raising.
    """
    if isinstance(error, ClassifiedError):
        return error

    error_type = categorize_error(error)
    message = str(error) or error.__class__.__name__
    merged: dict[str, Any] = {"original_error": error.__class__.__name__}
    merged.update(context or {})

    return create_error(
        error_type,
        message,
        stage=stage,
        retryable=is_retryable(error_type, message),
        correlation_id=correlation_id,
        code=getattr(error, "code", None) if isinstance(error, OptimizationInputError) else None,
        context=merged,
    )
