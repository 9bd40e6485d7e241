"""
tripopt: group itinerary optimizer.

Public entry points:
    run_optimization   staged optimization pipeline (async)
    classify_error     any exception -> ClassifiedError
    with_retry         classified retry/backoff driver (async)
"""
__version__ = "1.0.0"

from tripopt.modules.resilience.error_classifier import ClassifiedError, ErrorType, classify_error
from tripopt.modules.resilience.retry import CancellationToken, RetryConfig, with_retry
from tripopt.pipeline.orchestrator import OptimizationPipeline, run_optimization

__all__ = [
    "ClassifiedError",
    "ErrorType",
    "classify_error",
    "CancellationToken",
    "RetryConfig",
    "with_retry",
    "OptimizationPipeline",
    "run_optimization",
]
