"""Constraint Base Types

Every constraint is an immutable object exposing validate(value) and returning
a ValidationResult; failures are values, never raised.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Set
from dataclasses import dataclass
from typing import Any

from fieldrules.errors import ErrorCode


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Result of a validation check with rich context."""
    is_valid: bool
    error_message: str | None = None
    error_code: ErrorCode | None = None
    constraint: str | None = None
    expected: Any = None
    actual: Any = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def valid(cls) -> ValidationResult: return _VALID

    @classmethod
    def invalid(cls, message: str, code: ErrorCode = ErrorCode.E2000_INVALID_FORMAT, *,
                constraint: str | None = None, expected: Any = None, actual: Any = None, **metadata) -> ValidationResult:
        return cls(is_valid=False, error_message=message, error_code=code, constraint=constraint,
            expected=expected, actual=actual, metadata=metadata or None)

    def to_dict(self) -> dict[str, Any]:
        if self.is_valid: return {"valid": True}
        return {"valid": False, "message": self.error_message, "code": self.error_code.name if self.error_code else None,
            "constraint": self.constraint, "expected": self.expected, "actual": self.actual, **(self.metadata or {})}


_VALID = ValidationResult(is_valid=True)


def is_absent(value: Any) -> bool:
    """None or the empty string: skipped by every format constraint."""
    return value is None or (isinstance(value, str) and value == "")


def type_name(value: Any) -> str: return type(value).__name__


class Constraint(ABC):
    """Base class for single-value constraints."""

    @abstractmethod
    def validate(self, value: Any) -> ValidationResult:
        """Validate a value. Returns ValidationResult."""

    @property
    @abstractmethod
    def constraint_name(self) -> str:
        """Declaration key this constraint was built from."""

    def __call__(self, value: Any) -> ValidationResult: return self.validate(value)


class StringConstraint(Constraint):
    """Constraint over string values that skips absent values.

    Subclasses implement check(); non-string values are type failures.
    """

    def validate(self, value: Any) -> ValidationResult:
        if is_absent(value): return ValidationResult.valid()
        if not isinstance(value, str):
            return ValidationResult.invalid(f"{self.constraint_name} constraint requires string value",
                ErrorCode.E6000_INVALID_TYPE, constraint=self.constraint_name, expected="str", actual=type_name(value))
        return self.check(value)

    @abstractmethod
    def check(self, value: str) -> ValidationResult:
        """Validate a non-empty string."""


_SIZED_VALUES = (str, bytes, bytearray, list, tuple, Mapping, Set)


@dataclass(frozen=True, slots=True)
class Required(Constraint):
    """Fails on None and on empty strings, bytes and collections."""

    @property
    def constraint_name(self) -> str: return "required"

    def validate(self, value: Any) -> ValidationResult:
        if value is None or (isinstance(value, _SIZED_VALUES) and len(value) == 0):
            return ValidationResult.invalid("is required", ErrorCode.E1000_REQUIRED, constraint="required")
        return ValidationResult.valid()
