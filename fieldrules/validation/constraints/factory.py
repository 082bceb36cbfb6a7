"""Constraint Factory

Builds constraint objects from a parsed declaration and the field's static
type. One constraint per recognised key, in declaration order:

    build_constraints(parse_declaration("required,min=3,email"), type_info(str))
    -> [Required(), LengthBound("min", 3), Format("email", ...)]

Malformed parameters (`gt=abc`, `postcode=ZZ`, `multiple_of=0`) omit the
constraint instead of failing the build. An invalid regular expression is the
one parameter error that aborts plan construction.
"""
from __future__ import annotations

import math
import re
from typing import Callable

from fieldrules.errors import PlanBuildError
from fieldrules.logging import plan_logger
from fieldrules.validation.declarations import Declaration, OR_SEPARATOR, is_or_expression, split_entry
from fieldrules.validation.schema import ANY_TYPE, TypeInfo

from .base import Constraint, Required
from .composite import AnyOf
from .formats import FORMATS, Format
from .iso import ISO_CODES, POSTCODE_PATTERNS, IsoCode, PostCode
from .numeric import (
    THRESHOLD_KEYS, DigitLimit, ExactLength, LengthBound, MultipleOf, Sign, Threshold, Unique, ValueBound,
)
from .strings import SHAPE_KEYS, SUBSTRING_KEYS, Const, DateTimeLayout, OneOf, Pattern, Shape, Substring

Builder = Callable[[str, str, TypeInfo], "Constraint | None"]

ALIASES: dict[str, str] = {
    "iscolor": "hexcolor|rgb|rgba|hsl|hsla",
}

# Keys understood elsewhere (or intentionally inert) that never produce a constraint here
IGNORED_KEYS = frozenset({"default", "omitempty", "exclude", "include"})

_INT_RE = re.compile(r"[+-]?\d+")


def parse_int(value: str) -> int | None:
    return int(value) if _INT_RE.fullmatch(value) else None


def parse_float(value: str) -> float | None:
    if not value or "_" in value: return None
    try:
        return float(value)
    except ValueError:
        return None


# ============================================================================
# Builders
# ============================================================================

def _bound(key: str, value: str, info: TypeInfo) -> Constraint | None:
    bound = parse_int(value)
    if bound is None: return None
    return LengthBound(key, bound) if info.measures_length else ValueBound(key, bound)


def _threshold(key: str, value: str, info: TypeInfo) -> Constraint | None:
    bound = parse_float(value)
    return None if bound is None else Threshold(key, bound)


def _exact_length(key: str, value: str, info: TypeInfo) -> Constraint | None:
    length = parse_int(value)
    return None if length is None or length < 0 else ExactLength(length)


def _multiple_of(key: str, value: str, info: TypeInfo) -> Constraint | None:
    factor = parse_float(value)
    return None if not factor or not math.isfinite(factor) else MultipleOf(factor)


def _digit_limit(key: str, value: str, info: TypeInfo) -> Constraint | None:
    limit = parse_int(value)
    # max_digits counts at least one digit; decimal_places=0 means integral
    floor = 1 if key == "max_digits" else 0
    return None if limit is None or limit < floor else DigitLimit(key, limit)


def _regexp(key: str, value: str, info: TypeInfo) -> Constraint | None:
    if not value: return None
    try:
        return Pattern(re.compile(value))
    except re.error as exc:
        raise PlanBuildError(f"invalid regexp pattern '{value}': {exc}") from exc


def _postcode(key: str, value: str, info: TypeInfo) -> Constraint | None:
    country = value.strip().upper()
    pattern = POSTCODE_PATTERNS.get(country)
    return None if pattern is None else PostCode(country, pattern)


def _one_of(key: str, value: str, info: TypeInfo) -> Constraint | None:
    choices = tuple(value.split())
    return OneOf(choices, ignore_case=key == "oneofci") if choices else None


def _const(key: str, value: str, info: TypeInfo) -> Constraint | None:
    return Const(value, name=key, negate=key == "ne")


def _substring(key: str, value: str, info: TypeInfo) -> Constraint | None:
    return Substring(key, value) if value else None


def _datetime(key: str, value: str, info: TypeInfo) -> Constraint | None:
    return DateTimeLayout(value) if value else None


BUILDERS: dict[str, Builder] = {
    "required": lambda key, value, info: Required(),
    "min": _bound,
    "max": _bound,
    **{key: _threshold for key in THRESHOLD_KEYS},
    "len": _exact_length,
    "positive": lambda key, value, info: Sign(key),
    "negative": lambda key, value, info: Sign(key),
    "multiple_of": _multiple_of,
    "max_digits": _digit_limit,
    "decimal_places": _digit_limit,
    "unique": lambda key, value, info: Unique(),
    "regexp": _regexp,
    "pattern": _regexp,
    "postcode": _postcode,
    "postcode_iso3166_alpha2": _postcode,
    "oneof": _one_of,
    "oneofci": _one_of,
    "const": _const,
    "eq": _const,
    "ne": _const,
    "datetime": _datetime,
    **{key: (lambda key, value, info: Shape(key)) for key in SHAPE_KEYS},
    **{key: _substring for key in SUBSTRING_KEYS},
    **{key: (lambda key, value, info: Format(key, FORMATS[key])) for key in FORMATS},
    **{key: (lambda key, value, info: IsoCode(key, ISO_CODES[key])) for key in ISO_CODES},
}


def is_builtin(key: str) -> bool:
    """True for every key the engine itself interprets."""
    from fieldrules.validation.crossfield import CROSS_FIELD_KEYS

    return key in BUILDERS or key in ALIASES or key in IGNORED_KEYS or key in CROSS_FIELD_KEYS


# ============================================================================
# Factory
# ============================================================================

def build_constraint(key: str, value: str, info: TypeInfo = ANY_TYPE) -> Constraint | None:
    """Build one constraint, or None when the key is unknown or its parameter malformed."""
    if is_or_expression(key): return build_any_of(key, info)
    if key in ALIASES: return build_any_of(ALIASES[key], info)
    builder = BUILDERS.get(key)
    if builder is None: return None
    constraint = builder(key, value, info)
    if constraint is None:
        plan_logger().debug("constraint_omitted", constraint=key, param=value, reason="malformed parameter")
    return constraint


def build_any_of(expression: str, info: TypeInfo = ANY_TYPE) -> AnyOf | None:
    """Build an OR constraint from `a|b=1|c`; unusable alternatives are dropped."""
    alternatives = []
    for part in expression.split(OR_SEPARATOR):
        part = part.strip()
        if not part: continue
        key, value = split_entry(part)
        constraint = build_constraint(key, value, info)
        if constraint is not None: alternatives.append(constraint)
    if not alternatives: return None
    return AnyOf(expression, tuple(alternatives))


def build_constraints(declaration: Declaration, info: TypeInfo = ANY_TYPE) -> list[Constraint]:
    """Build the simple constraints of a declaration in declaration order.

    Unknown keys are skipped here; the plan records them as context
    constraints resolved through a registry at validate time.

    Raises:
        PlanBuildError: On an invalid regular expression.
    """
    constraints = []
    for key, value in declaration.items():
        constraint = build_constraint(key, value, info)
        if constraint is not None: constraints.append(constraint)
    return constraints


def context_constraint_names(declaration: Declaration) -> list[tuple[str, str]]:
    """(name, param) pairs for keys the engine does not interpret."""
    return [(key, value) for key, value in declaration.items() if not is_or_expression(key) and not is_builtin(key)]
