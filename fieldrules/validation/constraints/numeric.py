"""Numeric and Length Constraints

Thresholds (gt/gte/lt/lte) widen Decimals and floats to float, compare ints
exactly and reject booleans outright. min/max come in two shapes chosen by
the field's static type: ValueBound for numeric and untyped fields,
LengthBound for strings, bytes, sequences and mappings.
"""
from __future__ import annotations

import math
import numbers
import operator
from collections.abc import Mapping, Set
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Callable

from fieldrules.errors import ErrorCode
from fieldrules.validation.compare import canonical_string, is_numeric

from .base import Constraint, ValidationResult, type_name

MULTIPLE_OF_EPSILON = 1e-9

_SIZED = (str, bytes, bytearray, list, tuple, Mapping, Set)


def _requires_numeric(name: str, value: Any) -> ValidationResult:
    return ValidationResult.invalid(f"{name} constraint requires numeric value", ErrorCode.E6000_INVALID_TYPE,
        constraint=name, expected="number", actual=type_name(value))


def _unit(value: Any) -> str: return "characters" if isinstance(value, str) else "items"


def _widen(value: Any) -> Any:
    """Float for Decimals and floats; ints and fractions compare against floats exactly."""
    return value if isinstance(value, numbers.Rational) else float(value)


# ============================================================================
# Thresholds
# ============================================================================

_THRESHOLDS: dict[str, tuple[Callable[[float, float], bool], str, ErrorCode]] = {
    "gt": (operator.gt, "must be greater than {}", ErrorCode.E3010_GT),
    "gte": (operator.ge, "must be at least {}", ErrorCode.E3011_GTE),
    "lt": (operator.lt, "must be less than {}", ErrorCode.E3012_LT),
    "lte": (operator.le, "must be at most {}", ErrorCode.E3013_LTE),
}

THRESHOLD_KEYS = frozenset(_THRESHOLDS)


@dataclass(frozen=True, slots=True)
class Threshold(Constraint):
    """Strict or inclusive numeric bound."""
    op: str
    bound: float

    @property
    def constraint_name(self) -> str: return self.op

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not is_numeric(value): return _requires_numeric(self.op, value)
        passes, message, code = _THRESHOLDS[self.op]
        if passes(_widen(value), self.bound): return ValidationResult.valid()
        bound = canonical_string(self.bound)
        return ValidationResult.invalid(message.format(bound), code, constraint=f"{self.op}={bound}",
            expected=self.bound, actual=value)


# ============================================================================
# min / max
# ============================================================================

@dataclass(frozen=True, slots=True)
class ValueBound(Constraint):
    """min/max over a value. Strings reaching an untyped field use their length."""
    name: str
    bound: int

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        is_min = self.name == "min"
        word = "at least" if is_min else "at most"
        code = ErrorCode.E3000_MIN_VALUE if is_min else ErrorCode.E3001_MAX_VALUE
        if is_numeric(value):
            violated = value < self.bound if is_min else value > self.bound
            message = f"must be {word} {self.bound}"
        elif isinstance(value, str):
            violated = len(value) < self.bound if is_min else len(value) > self.bound
            message = f"must be {word} {self.bound} characters"
        else:
            return ValidationResult.invalid(f"{self.name} constraint not supported for type {type_name(value)}",
                ErrorCode.E6000_INVALID_TYPE, constraint=self.name, actual=type_name(value))
        if not violated: return ValidationResult.valid()
        return ValidationResult.invalid(message, code, constraint=f"{self.name}={self.bound}", expected=self.bound, actual=value)


@dataclass(frozen=True, slots=True)
class LengthBound(Constraint):
    """min/max over the length of a string, bytes or collection."""
    name: str
    bound: int

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not isinstance(value, _SIZED):
            return ValidationResult.invalid(f"{self.name} constraint requires a string or collection value",
                ErrorCode.E6000_INVALID_TYPE, constraint=self.name, actual=type_name(value))
        length = len(value)
        if self.name == "min":
            if length >= self.bound: return ValidationResult.valid()
            word, code = "at least", ErrorCode.E3002_MIN_LENGTH
        else:
            if length <= self.bound: return ValidationResult.valid()
            word, code = "at most", ErrorCode.E3003_MAX_LENGTH
        message = (f"must be {word} {self.bound} characters" if isinstance(value, str)
                   else f"must contain {word} {self.bound} {_unit(value)}")
        return ValidationResult.invalid(message, code, constraint=f"{self.name}={self.bound}",
            expected=self.bound, actual=length)


@dataclass(frozen=True, slots=True)
class ExactLength(Constraint):
    """len=N: exact character or item count. Empty strings are checked too."""
    length: int

    @property
    def constraint_name(self) -> str: return "len"

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not isinstance(value, _SIZED):
            return ValidationResult.invalid("len constraint requires a string or collection value",
                ErrorCode.E6000_INVALID_TYPE, constraint="len", actual=type_name(value))
        if len(value) == self.length: return ValidationResult.valid()
        message = (f"must be exactly {self.length} characters" if isinstance(value, str)
                   else f"must contain exactly {self.length} {_unit(value)}")
        return ValidationResult.invalid(message, ErrorCode.E3004_EXACT_LENGTH, constraint=f"len={self.length}",
            expected=self.length, actual=len(value))


@dataclass(frozen=True, slots=True)
class Unique(Constraint):
    """Sequence items must be pairwise distinct."""

    @property
    def constraint_name(self) -> str: return "unique"

    def validate(self, value: Any) -> ValidationResult:
        if value is None or isinstance(value, (Mapping, Set)): return ValidationResult.valid()
        if not isinstance(value, (list, tuple)):
            return ValidationResult.invalid("unique constraint requires a sequence value",
                ErrorCode.E6000_INVALID_TYPE, constraint="unique", actual=type_name(value))
        seen: list[Any] = []
        for item in value:
            if item in seen:
                return ValidationResult.invalid("must contain unique items", ErrorCode.E3030_NOT_UNIQUE,
                    constraint="unique", actual=item)
            seen.append(item)
        return ValidationResult.valid()


# ============================================================================
# Sign, Multiples and Digits
# ============================================================================

@dataclass(frozen=True, slots=True)
class Sign(Constraint):
    """positive (> 0) or negative (< 0)."""
    name: str

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not is_numeric(value): return _requires_numeric(self.name, value)
        if self.name == "positive":
            if value > 0: return ValidationResult.valid()
            return ValidationResult.invalid("must be positive (greater than 0)", ErrorCode.E3020_NOT_POSITIVE,
                constraint="positive", actual=value)
        if value < 0: return ValidationResult.valid()
        return ValidationResult.invalid("must be negative (less than 0)", ErrorCode.E3021_NOT_NEGATIVE,
            constraint="negative", actual=value)


def _remainder(value: Any, factor: float) -> float:
    """|value mod factor|, exact for numbers beyond float range and nan for infinities."""
    try:
        number = float(value)
    except OverflowError:
        number = math.inf
    if math.isfinite(number): return abs(math.fmod(number, factor))
    if isinstance(value, float) or (isinstance(value, Decimal) and not value.is_finite()): return math.nan
    return abs(float(Fraction(value) % Fraction(factor)))


@dataclass(frozen=True, slots=True)
class MultipleOf(Constraint):
    factor: float

    @property
    def constraint_name(self) -> str: return "multiple_of"

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not is_numeric(value): return _requires_numeric("multiple_of", value)
        remainder = _remainder(value, self.factor)
        if remainder < MULTIPLE_OF_EPSILON or abs(remainder - abs(self.factor)) < MULTIPLE_OF_EPSILON:
            return ValidationResult.valid()
        factor = canonical_string(self.factor)
        return ValidationResult.invalid(f"must be a multiple of {factor}", ErrorCode.E3022_NOT_MULTIPLE_OF,
            constraint=f"multiple_of={factor}", expected=self.factor, actual=value)


def _digits(value: Any) -> tuple[int, int] | None:
    """(total digits, decimal places) of a finite number's shortest decimal form."""
    try:
        number = Decimal(canonical_string(value))
    except InvalidOperation:
        return None
    if not number.is_finite(): return None
    _, digits, exponent = number.normalize().as_tuple()
    if exponent >= 0: return len(digits) + exponent, 0
    places = -exponent
    return max(len(digits), places), places


@dataclass(frozen=True, slots=True)
class DigitLimit(Constraint):
    """max_digits=N or decimal_places=N."""
    name: str
    limit: int

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if value is None: return ValidationResult.valid()
        if not is_numeric(value): return _requires_numeric(self.name, value)
        counted = _digits(value)
        if counted is None: return ValidationResult.valid()
        total, places = counted
        if self.name == "max_digits":
            if total <= self.limit: return ValidationResult.valid()
            return ValidationResult.invalid(f"must have at most {self.limit} digits", ErrorCode.E3023_TOO_MANY_DIGITS,
                constraint=f"max_digits={self.limit}", expected=self.limit, actual=total)
        if places <= self.limit: return ValidationResult.valid()
        return ValidationResult.invalid(f"must have at most {self.limit} decimal places",
            ErrorCode.E3024_TOO_MANY_DECIMAL_PLACES, constraint=f"decimal_places={self.limit}",
            expected=self.limit, actual=places)
