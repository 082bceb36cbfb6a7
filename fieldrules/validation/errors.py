"""Validation Error Values

ConstraintError is one accumulated failure: external field path, code,
message and offending value. ValidationError gathers every failure of one
validate call; it is an Exception so callers may raise it, but the engine
itself only returns it.

Error Format:
{
    "error": {
        "type": "validation_error",
        "error_count": 1,
        "errors": [
            {"field": "items[0].email", "code": "E2001_INVALID_EMAIL",
             "constraint": "email", "message": "must be a valid email address", "value": "nope"}
        ]
    }
}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from fieldrules.errors import ErrorCode

from .constraints.base import ValidationResult


@dataclass(frozen=True, slots=True)
class ConstraintError:
    """A single failed constraint on a single field."""
    field: str
    code: ErrorCode
    message: str
    value: Any = None
    constraint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {"field": self.field, "code": self.code.name, "message": self.message}
        if self.constraint: result["constraint"] = self.constraint
        if self.value is not None: result["value"] = self.value
        return result

    def __str__(self) -> str: return f"{self.field}: {self.message}" if self.field else self.message


@dataclass
class ValidationError(Exception):
    """Every constraint failure of one validation run, in evaluation order."""
    errors: list[ConstraintError] = field(default_factory=list)

    def __post_init__(self):
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.errors: return "validation failed"
        first = str(self.errors[0])
        if len(self.errors) == 1: return first
        return f"{first} (and {len(self.errors) - 1} more errors)"

    @property
    def field_errors(self) -> dict[str, list[ConstraintError]]:
        """Group errors by field path."""
        result: dict[str, list[ConstraintError]] = {}
        for error in self.errors: result.setdefault(error.field, []).append(error)
        return result

    @property
    def first_error(self) -> ConstraintError | None: return self.errors[0] if self.errors else None

    @property
    def codes(self) -> list[ErrorCode]: return [e.code for e in self.errors]

    def get_errors_for_field(self, field_path: str) -> list[ConstraintError]:
        return [e for e in self.errors if e.field == field_path]

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"type": "validation_error", "error_count": len(self.errors),
            "errors": [e.to_dict() for e in self.errors]}}


class ErrorAccumulator:
    """Collects failures for one validate call."""

    def __init__(self) -> None:
        self._errors: list[ConstraintError] = []

    def add(self, path: str, result: ValidationResult, value: Any = None) -> None:
        if result.is_valid: return
        self._errors.append(ConstraintError(
            field=path,
            code=result.error_code or ErrorCode.E9000_INTERNAL_GENERIC,
            message=result.error_message or "validation failed",
            value=value,
            constraint=result.constraint,
        ))

    def mark(self) -> int: return len(self._errors)

    def has_errors_since(self, mark: int) -> bool: return len(self._errors) > mark

    @property
    def has_errors(self) -> bool: return bool(self._errors)

    def to_error(self) -> ValidationError | None:
        return ValidationError(list(self._errors)) if self._errors else None
