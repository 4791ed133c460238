from flowbridge.validation.validator import (
    ValidationError,
    split_by_severity,
    validate,
    validate_or_raise,
)

__all__ = ["validate", "validate_or_raise", "split_by_severity", "ValidationError"]
