"""fieldrules: declarative field validation for dataclasses and pydantic models."""
from functools import lru_cache
from typing import Any

from .errors import ErrorCode, PlanBuildError
from .validation import (
    ConstraintError,
    ConstraintRegistry,
    Rules,
    ValidationError,
    Validator,
    ValidatorOptions,
    get_plan,
)

__version__ = "0.1.0"


@lru_cache(maxsize=None)
def _default_validator(record_type: type) -> Validator:
    return Validator(record_type)


def validate(instance: Any, *, context: Any = None) -> ValidationError | None:
    """Validate an instance with a shared default Validator for its type."""
    return _default_validator(type(instance)).validate(instance, context=context)


__all__ = [
    "ConstraintError",
    "ConstraintRegistry",
    "ErrorCode",
    "PlanBuildError",
    "Rules",
    "ValidationError",
    "Validator",
    "ValidatorOptions",
    "get_plan",
    "validate",
]
