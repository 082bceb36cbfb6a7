"""Built-in constraint kinds and the factory that builds them from declarations."""

from .base import (
    Constraint,
    StringConstraint,
    Required,
    ValidationResult,
    is_absent,
)
from .composite import AnyOf
from .formats import FORMATS, Format, FormatSpec
from .iso import ISO_CODES, POSTCODE_PATTERNS, IsoCode, PostCode
from .numeric import (
    DigitLimit,
    ExactLength,
    LengthBound,
    MultipleOf,
    Sign,
    Threshold,
    Unique,
    ValueBound,
)
from .strings import Const, DateTimeLayout, OneOf, Pattern, Shape, Substring
from .factory import (
    ALIASES,
    BUILDERS,
    build_any_of,
    build_constraint,
    build_constraints,
    context_constraint_names,
    is_builtin,
)

__all__ = [
    # Base
    "Constraint",
    "StringConstraint",
    "Required",
    "ValidationResult",
    "is_absent",
    # Kinds
    "AnyOf",
    "FORMATS",
    "Format",
    "FormatSpec",
    "ISO_CODES",
    "POSTCODE_PATTERNS",
    "IsoCode",
    "PostCode",
    "DigitLimit",
    "ExactLength",
    "LengthBound",
    "MultipleOf",
    "Sign",
    "Threshold",
    "Unique",
    "ValueBound",
    "Const",
    "DateTimeLayout",
    "OneOf",
    "Pattern",
    "Shape",
    "Substring",
    # Factory
    "ALIASES",
    "BUILDERS",
    "build_any_of",
    "build_constraint",
    "build_constraints",
    "context_constraint_names",
    "is_builtin",
]
