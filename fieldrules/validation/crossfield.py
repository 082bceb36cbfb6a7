"""Cross-Field Constraints

Constraints whose outcome depends on another field of the same instance.

Relational family (strict): eqfield, nefield, gtfield, gtefield, ltfield,
ltefield and their cross-record spellings eqcsfield ... ltecsfield, which take
a dotted path into a nested record. The target must resolve when the plan is
built; an unknown target or a field referencing itself raises PlanBuildError.
skip_unless resolves its target just as strictly.

Presence family (lenient): required/excluded x if/unless/with/without. An
unknown target is kept as an unresolved sentinel and the constraint passes
silently at validate time.

Gate: skip_unless=Field literal. While Field does not equal literal the field
is not validated at all.

    @dataclass
    class Booking:
        start_year: int
        end_year: int = field(metadata={"validate": "gtfield=start_year"})
        kind: str = ""
        promo: str = field(default="", metadata={"validate": "required_if=kind:promo"})
        voucher: str = field(default="", metadata={"validate": "skip_unless=kind promo,len=8"})
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from fieldrules.errors import AppError, Err, ErrorCode, Ok, PlanBuildError, Result

from .compare import canonical_string, check_type_compatibility, compare, is_zero_value
from .constraints.base import ValidationResult
from .declarations import Declaration
from .fieldpath import FieldPath, compile_path
from .schema import FieldDescriptor, RecordSchema

_RELATIONAL: dict[str, tuple[Callable[[int], bool], str, ErrorCode]] = {
    "eqfield": (lambda c: c == 0, "must equal field {}", ErrorCode.E4000_EQ_FIELD),
    "nefield": (lambda c: c != 0, "must not equal field {}", ErrorCode.E4001_NE_FIELD),
    "gtfield": (lambda c: c > 0, "must be greater than field {}", ErrorCode.E4002_GT_FIELD),
    "gtefield": (lambda c: c >= 0, "must be at least field {}", ErrorCode.E4003_GTE_FIELD),
    "ltfield": (lambda c: c < 0, "must be less than field {}", ErrorCode.E4004_LT_FIELD),
    "ltefield": (lambda c: c <= 0, "must be at most field {}", ErrorCode.E4005_LTE_FIELD),
}

# Cross-record spellings behave exactly like their same-record counterparts
_RELATIONAL.update({key.replace("field", "csfield"): rule for key, rule in list(_RELATIONAL.items())})

_PRESENCE_CODES: dict[str, ErrorCode] = {
    "required_if": ErrorCode.E1001_REQUIRED_IF,
    "required_unless": ErrorCode.E1002_REQUIRED_UNLESS,
    "required_with": ErrorCode.E1003_REQUIRED_WITH,
    "required_without": ErrorCode.E1004_REQUIRED_WITHOUT,
    "excluded_if": ErrorCode.E1010_EXCLUDED_IF,
    "excluded_unless": ErrorCode.E1011_EXCLUDED_UNLESS,
    "excluded_with": ErrorCode.E1012_EXCLUDED_WITH,
    "excluded_without": ErrorCode.E1013_EXCLUDED_WITHOUT,
}

RELATIONAL_KEYS = frozenset(_RELATIONAL)
PRESENCE_KEYS = frozenset(_PRESENCE_CODES)
GATE_KEY = "skip_unless"
CROSS_FIELD_KEYS = RELATIONAL_KEYS | PRESENCE_KEYS | {GATE_KEY}


class CrossFieldConstraint(ABC):
    """Constraint evaluated against the field value and its enclosing record."""

    @abstractmethod
    def validate_across_fields(self, value: Any, record: Any, field_name: str) -> ValidationResult:
        """Validate value in the context of the record that holds it."""

    @property
    @abstractmethod
    def constraint_name(self) -> str: ...


# ============================================================================
# Relational Family
# ============================================================================

@dataclass(frozen=True, slots=True)
class FieldComparison(CrossFieldConstraint):
    """Compares the field with another field: eqfield, gtfield, ..."""
    op: str
    target: FieldPath

    @property
    def constraint_name(self) -> str: return self.op

    def validate_across_fields(self, value: Any, record: Any, field_name: str) -> ValidationResult:
        match self.target.resolve(record):
            case Err(error):
                return ValidationResult.invalid(error.message, error.code, constraint=self.op, **error.metadata)
            case Ok(other):
                pass

        match check_type_compatibility(value, other):
            case Err(error):
                return ValidationResult.invalid(error.message, error.code, constraint=self.op,
                    expected=type(other).__name__, actual=type(value).__name__)

        passes, message, code = _RELATIONAL[self.op]
        if passes(compare(value, other)): return ValidationResult.valid()
        return ValidationResult.invalid(message.format(self.target.dotted), code,
            constraint=f"{self.op}={self.target.dotted}", expected=other, actual=value)


# ============================================================================
# Presence Family
# ============================================================================

@dataclass(frozen=True, slots=True)
class ConditionalPresence(CrossFieldConstraint):
    """required_* / excluded_* constraints conditioned on another field.

    target is None when the referenced field could not be resolved; the
    constraint then always passes.
    """
    name: str
    target_name: str
    target: FieldPath | None
    literal: str | None = None

    @property
    def constraint_name(self) -> str: return self.name

    @property
    def requires(self) -> bool: return self.name.startswith("required")

    @property
    def mode(self) -> str: return self.name.partition("_")[2]

    def _condition_holds(self, other: Any) -> bool:
        mode = self.mode
        if mode == "if": return canonical_string(other) == self.literal
        if mode == "unless": return canonical_string(other) != self.literal
        if mode == "with": return not is_zero_value(other)
        return is_zero_value(other)

    def _describe_condition(self) -> str:
        mode = self.mode
        if mode in ("if", "unless"):
            word = "when" if mode == "if" else "unless"
            return f"{word} {self.target_name} equals '{self.literal}'"
        return f"when {self.target_name} is {'present' if mode == 'with' else 'absent'}"

    def validate_across_fields(self, value: Any, record: Any, field_name: str) -> ValidationResult:
        if self.target is None: return ValidationResult.valid()

        match self.target.resolve(record):
            case Err(error):
                return ValidationResult.invalid(error.message, error.code, constraint=self.name, **error.metadata)
            case Ok(other):
                pass

        if not self._condition_holds(other): return ValidationResult.valid()
        if is_zero_value(value) != self.requires: return ValidationResult.valid()
        prefix = "is required" if self.requires else "must be absent"
        return ValidationResult.invalid(f"{prefix} {self._describe_condition()}", _PRESENCE_CODES[self.name],
            constraint=self.name, expected=self.literal, actual=value)


# ============================================================================
# Gate
# ============================================================================

@dataclass(frozen=True, slots=True)
class SkipUnless:
    """skip_unless=Field literal: the field is validated only while Field equals literal."""
    target: FieldPath
    literal: str

    def is_open(self, record: Any) -> Result[bool, AppError]:
        return self.target.resolve(record).map(lambda other: canonical_string(other) == self.literal)


# ============================================================================
# Resolution
# ============================================================================

def parse_conditional(key: str, value: str) -> tuple[str, str] | None:
    """Split an if/unless argument into (field, literal) on the first separator.

    required_* uses ':'; excluded_* and skip_unless use a single space. The
    literal keeps any further separators verbatim. None when the separator is
    missing.
    """
    separator = ":" if key.startswith("required") else " "
    target, found, literal = value.partition(separator)
    if not found or not target.strip(): return None
    return target.strip(), literal


def build_cross_field(declaration: Declaration, schema: RecordSchema, descriptor: FieldDescriptor,
                      describe_nested: Callable[[type], RecordSchema]) -> list[CrossFieldConstraint]:
    """Resolve the cross-field keys of one field's declaration.

    Raises:
        PlanBuildError: When a relational target does not exist or is the
            field itself.
    """
    constraints: list[CrossFieldConstraint] = []
    for key, value in declaration.items():
        if key in RELATIONAL_KEYS:
            path = _strict_path(key, value.strip(), schema, descriptor, describe_nested)
            constraints.append(FieldComparison(key, path))
        elif key in PRESENCE_KEYS:
            literal = None
            target = value.strip()
            if key.endswith(("_if", "_unless")):
                parsed = parse_conditional(key, value)
                if parsed is None: continue
                target, literal = parsed
            constraints.append(ConditionalPresence(key, target, compile_path(schema, target, describe_nested), literal))
    return constraints


def build_gate(declaration: Declaration, schema: RecordSchema, descriptor: FieldDescriptor,
               describe_nested: Callable[[type], RecordSchema]) -> SkipUnless | None:
    """Resolve a skip_unless key. A value without a literal omits the gate.

    Raises:
        PlanBuildError: When the target does not exist or is the field itself.
    """
    value = declaration.get(GATE_KEY)
    if value is None: return None
    parsed = parse_conditional(GATE_KEY, value)
    if parsed is None: return None
    target, literal = parsed
    return SkipUnless(_strict_path(GATE_KEY, target, schema, descriptor, describe_nested), literal)


def _strict_path(key: str, target: str, schema: RecordSchema, descriptor: FieldDescriptor,
                 describe_nested: Callable[[type], RecordSchema]) -> FieldPath:
    if target == descriptor.name:
        raise PlanBuildError(f"field {descriptor.name} cannot reference itself in {key} constraint",
            record=schema.name, field=descriptor.name)
    path = compile_path(schema, target, describe_nested)
    if path is None:
        raise PlanBuildError(f"field {descriptor.name} references non-existent field {target} in {key} constraint",
            record=schema.name, field=descriptor.name)
    return path
