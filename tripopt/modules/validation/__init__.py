"""
modules/validation package: input guards before optimization starts.
"""
from tripopt.modules.validation.input_validator import (
    ValidationResult,
    filter_valid,
    placeholder_place,
    validate_place_record,
    validate_settings,
    validate_trip_context,
)

__all__ = [
    "ValidationResult",
    "filter_valid",
    "placeholder_place",
    "validate_place_record",
    "validate_settings",
    "validate_trip_context",
]
