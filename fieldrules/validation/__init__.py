"""Declarative Field Validation

Rules are declared inline on each field of a dataclass or pydantic model and
compiled once per type into an immutable ValidationPlan.

Key Features:
- Small declaration grammar: `required,min=3,max=64,email`
- Format, threshold, length, exact-match and OR constraints
- Cross-field constraints (strict relational, lenient presence-conditional)
- Dotted paths into nested records
- Dive into sequences and mappings, with key and element rules
- Registry of user-defined constraints looked up at validate time

Usage:
    from fieldrules.validation import Rules, Validator

    @dataclass
    class Window:
        start_year: int
        end_year: Annotated[int, Rules("gtfield=start_year")]

    error = Validator(Window).validate(Window(2000, 2000))
    # error.errors[0].message == "must be greater than field start_year"
"""

from .declarations import (
    Declaration,
    ParsedDeclaration,
    parse_declaration,
    parse_declaration_sections,
)
from .compare import (
    canonical_string,
    check_type_compatibility,
    compare,
    is_numeric,
    is_zero_value,
)
from .schema import (
    FieldDescriptor,
    RecordSchema,
    Rules,
    TypeInfo,
    TypeKind,
    describe,
    type_info,
)
from .constraints import (
    Constraint,
    ValidationResult,
    build_constraints,
)
from .crossfield import (
    ConditionalPresence,
    CrossFieldConstraint,
    FieldComparison,
    SkipUnless,
    build_cross_field,
    build_gate,
    parse_conditional,
)
from .fieldpath import FieldPath, FieldStep, compile_path
from .plan import (
    ContextConstraint,
    FieldPlan,
    PlanCache,
    ValidationPlan,
    get_plan,
    get_plan_cache,
)
from .registry import ConstraintRegistry
from .errors import ConstraintError, ErrorAccumulator, ValidationError
from .validator import Validator, ValidatorOptions

__all__ = [
    # Declarations
    "Declaration",
    "ParsedDeclaration",
    "parse_declaration",
    "parse_declaration_sections",
    # Comparison
    "canonical_string",
    "check_type_compatibility",
    "compare",
    "is_numeric",
    "is_zero_value",
    # Schema
    "FieldDescriptor",
    "RecordSchema",
    "Rules",
    "TypeInfo",
    "TypeKind",
    "describe",
    "type_info",
    # Constraints
    "Constraint",
    "ValidationResult",
    "build_constraints",
    # Cross-field
    "ConditionalPresence",
    "CrossFieldConstraint",
    "FieldComparison",
    "SkipUnless",
    "build_cross_field",
    "build_gate",
    "parse_conditional",
    "FieldPath",
    "FieldStep",
    "compile_path",
    # Plans
    "ContextConstraint",
    "FieldPlan",
    "PlanCache",
    "ValidationPlan",
    "get_plan",
    "get_plan_cache",
    # Execution
    "ConstraintRegistry",
    "ConstraintError",
    "ErrorAccumulator",
    "ValidationError",
    "Validator",
    "ValidatorOptions",
]
