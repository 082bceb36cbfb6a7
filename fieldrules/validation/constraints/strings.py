"""String Shape, Choice and Exact-Match Constraints"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable

from fieldrules.errors import ErrorCode
from fieldrules.validation.compare import canonical_string, is_scalar

from .base import Constraint, StringConstraint, ValidationResult, is_absent, type_name

_ALPHA_RE = re.compile(r"^[a-zA-Z]+$")
_ALPHANUM_RE = re.compile(r"^[a-zA-Z0-9]+$")


# ============================================================================
# Character Classes
# ============================================================================

_SHAPES: dict[str, tuple[Callable[[str], bool], str, ErrorCode]] = {
    "ascii": (str.isascii, "must contain only ASCII characters", ErrorCode.E2040_INVALID_CHARACTERS),
    "alpha": (lambda v: bool(_ALPHA_RE.match(v)), "must contain only alphabetic characters", ErrorCode.E2040_INVALID_CHARACTERS),
    "alphanum": (lambda v: bool(_ALPHANUM_RE.match(v)), "must contain only alphanumeric characters", ErrorCode.E2040_INVALID_CHARACTERS),
    "lowercase": (lambda v: v == v.lower(), "must be all lowercase", ErrorCode.E2041_INVALID_CASE),
    "uppercase": (lambda v: v == v.upper(), "must be all uppercase", ErrorCode.E2041_INVALID_CASE),
}

SHAPE_KEYS = frozenset(_SHAPES)


@dataclass(frozen=True, slots=True)
class Shape(StringConstraint):
    name: str

    @property
    def constraint_name(self) -> str: return self.name

    def check(self, value: str) -> ValidationResult:
        predicate, message, code = _SHAPES[self.name]
        if predicate(value): return ValidationResult.valid()
        return ValidationResult.invalid(message, code, constraint=self.name, actual=value)


# ============================================================================
# Substrings
# ============================================================================

_SUBSTRINGS: dict[str, tuple[Callable[[str, str], bool], str]] = {
    "contains": (lambda v, s: s in v, "must contain '{}'"),
    "excludes": (lambda v, s: s not in v, "must not contain '{}'"),
    "startswith": (str.startswith, "must start with '{}'"),
    "endswith": (str.endswith, "must end with '{}'"),
}

SUBSTRING_KEYS = frozenset(_SUBSTRINGS)


@dataclass(frozen=True, slots=True)
class Substring(StringConstraint):
    name: str
    text: str

    @property
    def constraint_name(self) -> str: return self.name

    def check(self, value: str) -> ValidationResult:
        predicate, message = _SUBSTRINGS[self.name]
        if predicate(value, self.text): return ValidationResult.valid()
        return ValidationResult.invalid(message.format(self.text), ErrorCode.E2042_SUBSTRING_MISMATCH,
            constraint=f"{self.name}={self.text}", expected=self.text, actual=value)


# ============================================================================
# Patterns and Layouts
# ============================================================================

@dataclass(frozen=True, slots=True)
class Pattern(StringConstraint):
    """regexp=<pattern>: unanchored search, compiled once at plan build."""
    regex: re.Pattern

    @property
    def constraint_name(self) -> str: return "regexp"

    def check(self, value: str) -> ValidationResult:
        if self.regex.search(value): return ValidationResult.valid()
        return ValidationResult.invalid(f"must match pattern '{self.regex.pattern}'", ErrorCode.E2031_PATTERN_MISMATCH,
            constraint="regexp", expected=self.regex.pattern, actual=value)


@dataclass(frozen=True, slots=True)
class DateTimeLayout(StringConstraint):
    """datetime=<strftime layout>."""
    layout: str

    @property
    def constraint_name(self) -> str: return "datetime"

    def check(self, value: str) -> ValidationResult:
        try:
            datetime.strptime(value, self.layout)
        except ValueError:
            return ValidationResult.invalid(f"must be a valid datetime in format '{self.layout}'",
                ErrorCode.E2034_INVALID_DATETIME, constraint="datetime", expected=self.layout, actual=value)
        return ValidationResult.valid()


# ============================================================================
# Choices and Exact Match
# ============================================================================

def _unsupported(name: str, value: Any) -> ValidationResult:
    return ValidationResult.invalid(f"{name} constraint not supported for type {type_name(value)}",
        ErrorCode.E6001_UNSUPPORTED_TYPE, constraint=name, actual=type_name(value))


@dataclass(frozen=True, slots=True)
class OneOf(Constraint):
    """oneof / oneofci: canonical string of the value must be a listed choice."""
    choices: tuple[str, ...]
    ignore_case: bool = False

    @property
    def constraint_name(self) -> str: return "oneofci" if self.ignore_case else "oneof"

    def validate(self, value: Any) -> ValidationResult:
        if is_absent(value): return ValidationResult.valid()
        if not is_scalar(value): return _unsupported(self.constraint_name, value)
        text = canonical_string(value)
        if self.ignore_case:
            matched = text.casefold() in {c.casefold() for c in self.choices}
        else:
            matched = text in self.choices
        if matched: return ValidationResult.valid()
        return ValidationResult.invalid(f"must be one of: {', '.join(self.choices)}", ErrorCode.E2032_NOT_ONE_OF,
            constraint=self.constraint_name, expected=list(self.choices), actual=value)


@dataclass(frozen=True, slots=True)
class Const(Constraint):
    """const=<literal> (alias eq), or ne=<literal> when negated.

    Compares the canonical string of the value with the literal. Aggregates
    (collections, records) have no canonical form and fail.
    """
    literal: str
    name: str = "const"
    negate: bool = False

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if is_absent(value): return ValidationResult.valid()
        if not is_scalar(value): return _unsupported(self.name, value)
        if (canonical_string(value) == self.literal) != self.negate: return ValidationResult.valid()
        message = f"must not be equal to '{self.literal}'" if self.negate else f"must be equal to '{self.literal}'"
        return ValidationResult.invalid(message, ErrorCode.E2033_CONST_MISMATCH,
            constraint=f"{self.name}={self.literal}", expected=self.literal, actual=value)

