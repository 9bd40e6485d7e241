"""
modules/resilience package: failure classification and retry/backoff.
"""
from tripopt.modules.resilience.error_classifier import (
    ClassifiedError,
    ErrorRecord,
    ErrorType,
    ExternalServiceError,
    OptimizationInputError,
    TripDataError,
    categorize_error,
    classify_error,
    create_error,
    generate_correlation_id,
    is_retryable,
)
from tripopt.modules.resilience.retry import (
    AGGRESSIVE_RETRY_CONFIG,
    CONSERVATIVE_RETRY_CONFIG,
    DEFAULT_RETRY_CONFIG,
    CancellationToken,
    RetryConfig,
    compute_backoff_delay,
    get_retry_config,
    with_retry,
)

__all__ = [
    "ClassifiedError",
    "ErrorRecord",
    "ErrorType",
    "ExternalServiceError",
    "OptimizationInputError",
    "TripDataError",
    "categorize_error",
    "classify_error",
    "create_error",
    "generate_correlation_id",
    "is_retryable",
    "AGGRESSIVE_RETRY_CONFIG",
    "CONSERVATIVE_RETRY_CONFIG",
    "DEFAULT_RETRY_CONFIG",
    "CancellationToken",
    "RetryConfig",
    "compute_backoff_delay",
    "get_retry_config",
    "with_retry",
]
