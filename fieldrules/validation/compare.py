"""Value Comparison Utilities

Three-way comparison, type compatibility, canonical string rendering and the
zero-value predicate shared by cross-field constraints, exact-match
constraints and the presence-conditional family.
"""
from __future__ import annotations

import math
import numbers
from collections.abc import Mapping, Set
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from fieldrules.errors import ErrorCode, Ok, Result, err


def is_numeric(value: Any) -> bool:
    """True for ints, floats, Decimals and other real numbers; never for bool."""
    if isinstance(value, bool): return False
    return isinstance(value, (numbers.Real, Decimal))


def _sign(a: Any, b: Any) -> int: return (a > b) - (a < b)


def value_kind(value: Any) -> str:
    """Coarse comparison kind of a runtime value."""
    if value is None: return "none"
    if isinstance(value, bool): return "bool"
    if is_numeric(value): return "numeric"
    if isinstance(value, str): return "string"
    if isinstance(value, datetime): return "datetime"
    if isinstance(value, date): return "date"
    if isinstance(value, time): return "time"
    if isinstance(value, timedelta): return "duration"
    return type(value).__name__


_COMPARABLE_KINDS = frozenset({"none", "bool", "numeric", "string", "datetime", "date", "time", "duration"})


def check_type_compatibility(a: Any, b: Any) -> Result[None, Any]:
    """Check that two values may be compared by a cross-field constraint.

    None pairs with None only; every other pairing must share a comparable kind.
    """
    kind_a, kind_b = value_kind(a), value_kind(b)
    if (kind_a == "none") != (kind_b == "none"):
        return err(ErrorCode.E4010_INCOMPATIBLE_TYPES, "cannot compare nil with non-nil value")
    if kind_a != kind_b or kind_a not in _COMPARABLE_KINDS:
        return err(ErrorCode.E4010_INCOMPATIBLE_TYPES,
            f"cannot compare types {type(a).__name__} and {type(b).__name__}")
    if kind_a in ("datetime", "time") and (a.tzinfo is None) != (b.tzinfo is None):
        return err(ErrorCode.E4010_INCOMPATIBLE_TYPES, "cannot compare naive and aware times")
    return Ok(None)


def compare(a: Any, b: Any) -> int:
    """Three-way comparison returning -1, 0 or 1.

    None sorts below every non-None value. Strings compare lexicographically,
    numerics by magnitude, booleans False < True, times chronologically.
    Pairs with no defined order compare equal.
    """
    if a is None or b is None:
        return 0 if a is b else (-1 if a is None else 1)
    kind = value_kind(a)
    if kind != value_kind(b): return 0
    if kind == "numeric":
        try:
            return _sign(a, b)
        except TypeError:
            return _sign(float(a), float(b))
    if kind in ("string", "bool", "date", "duration"): return _sign(a, b)
    if kind in ("datetime", "time"):
        if (a.tzinfo is None) != (b.tzinfo is None): return 0
        return _sign(a, b)
    return 0


def format_float(value: float) -> str:
    """Shortest round-trip decimal form of a float, never in exponent notation."""
    if math.isnan(value): return "NaN"
    if math.isinf(value): return "+Inf" if value > 0 else "-Inf"
    text = repr(value)
    if "e" in text or "E" in text: text = format(Decimal(text), "f")
    if text.endswith(".0"): text = text[:-2]
    return text


def canonical_string(value: Any) -> str:
    """Render a scalar the way declaration literals are written.

    Integers in decimal, floats in shortest round-trip form, booleans as
    true/false, enum members by value; anything else through str().
    """
    if value is None: return ""
    if isinstance(value, Enum): return canonical_string(value.value)
    if isinstance(value, bool): return "true" if value else "false"
    if isinstance(value, int): return str(int(value))
    if isinstance(value, float): return format_float(value)
    if isinstance(value, Decimal):
        if not value.is_finite(): return format_float(float(value))
        return format(value.normalize(), "f")
    if isinstance(value, (bytes, bytearray)): return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def is_scalar(value: Any) -> bool:
    """True when canonical_string gives a meaningful rendering of value."""
    if isinstance(value, Enum): value = value.value
    return value is None or isinstance(value, (str, bytes, bytearray, bool, date, time, timedelta)) or is_numeric(value)


def is_zero_value(value: Any) -> bool:
    """True for None, empty strings, numeric zero, False and empty collections."""
    if value is None: return True
    if isinstance(value, (str, bytes, bytearray)): return len(value) == 0
    if isinstance(value, bool): return not value
    if is_numeric(value): return value == 0
    if isinstance(value, timedelta): return value == timedelta(0)
    if isinstance(value, (list, tuple, Mapping, Set)): return len(value) == 0
    return False
