"""Validator

Executes a ValidationPlan against instances. One depth-first pass in field
declaration order. A field whose skip_unless gate is closed is passed over;
otherwise, per field:

1. simple constraints (every failure is kept, no short-circuit)
2. cross-field constraints against sibling values
3. context constraints looked up by name in the registry
4. recursion into nested records, then element-wise dive into collections

Usage:
    validator = Validator(Signup)            # builds (or reuses) the plan
    if (error := validator.validate(signup)) is not None:
        for failure in error.errors:
            print(failure.field, failure.code.name, failure.message)
"""
from __future__ import annotations

from collections.abc import Mapping, Set
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from fieldrules.config import get_settings
from fieldrules.errors import Err, ErrorCode, Ok
from fieldrules.logging import validator_logger

from .constraints.base import ValidationResult
from .errors import ErrorAccumulator, ValidationError
from .plan import ContextConstraint, FieldPlan, ValidationPlan, get_plan_cache
from .registry import ConstraintRegistry
from .schema import NameFunc

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ValidatorOptions:
    """Per-validator overrides of the settings-wide defaults."""
    declaration_key: str | None = None
    name_func: NameFunc | None = None


def _join(path: str, name: str) -> str: return f"{path}.{name}" if path else name


class Validator(Generic[T]):
    """Validates instances of one record type.

    The plan is built when the validator is constructed, so declaration
    mistakes raise PlanBuildError here rather than during validation.
    """

    def __init__(self, record_type: type[T], *, registry: ConstraintRegistry | None = None,
                 options: ValidatorOptions | None = None) -> None:
        options = options or ValidatorOptions()
        self.record_type = record_type
        self.registry = registry if registry is not None else ConstraintRegistry()
        self.options = options
        self._plans = get_plan_cache(options.declaration_key or get_settings().DECLARATION_KEY, options.name_func)
        self.plan: ValidationPlan = self._plans.get(record_type)

    # ========================================================================
    # Public API
    # ========================================================================

    def validate(self, instance: T, *, context: Any = None) -> ValidationError | None:
        """Validate every field. Returns None on success."""
        return self._run(instance, context, None)

    def validate_or_raise(self, instance: T, *, context: Any = None) -> T:
        """Validate and return the instance, raising ValidationError on failure."""
        error = self.validate(instance, context=context)
        if error is not None: raise error
        return instance

    def validate_partial(self, instance: T, *fields: str, context: Any = None) -> ValidationError | None:
        """Validate only the named top-level fields (attribute or external names)."""
        wanted = self._resolve_names(fields)
        return self._run(instance, context, lambda field: field.name in wanted)

    def validate_except(self, instance: T, *fields: str, context: Any = None) -> ValidationError | None:
        """Validate every top-level field except the named ones."""
        skipped = self._resolve_names(fields)
        return self._run(instance, context, lambda field: field.name not in skipped)

    # ========================================================================
    # Traversal
    # ========================================================================

    def _resolve_names(self, names: tuple[str, ...]) -> set[str]:
        resolved = set()
        for name in names:
            field = self.plan.field(name)
            if field is None: raise ValueError(f"{self.plan.name} has no field {name!r}")
            resolved.add(field.name)
        return resolved

    def _run(self, instance: Any, context: Any, include: Callable[[FieldPlan], bool] | None) -> ValidationError | None:
        acc = ErrorAccumulator()
        if instance is None:
            acc.add("root", ValidationResult.invalid("cannot validate nil value", ErrorCode.E6000_INVALID_TYPE))
            return acc.to_error()
        if not isinstance(instance, self.record_type):
            raise TypeError(f"expected {self.record_type.__name__} instance, got {type(instance).__name__}")

        self._validate_record(self.plan, instance, "", acc, context, include)
        error = acc.to_error()
        if error is not None:
            validator_logger().debug("validation_failed", record=self.plan.name, error_count=len(error.errors))
        return error

    def _validate_record(self, plan: ValidationPlan, instance: Any, path: str, acc: ErrorAccumulator,
                         context: Any, include: Callable[[FieldPlan], bool] | None = None) -> None:
        mark = acc.mark()
        for field in plan.fields:
            if include is not None and not include(field): continue
            value = getattr(instance, field.name)
            self._validate_field(field, value, instance, _join(path, field.external_name), acc, context)

        record_validator = self.registry.record_validator(plan.record_type)
        if record_validator is not None and not acc.has_errors_since(mark):
            try:
                record_validator(instance)
            except ValueError as exc:
                acc.add(path or plan.name, ValidationResult.invalid(str(exc) or f"failed {plan.name} validation",
                    ErrorCode.E5010_CUSTOM_VALIDATION, constraint="record"))

    def _validate_field(self, field: FieldPlan, value: Any, instance: Any, path: str,
                        acc: ErrorAccumulator, context: Any) -> None:
        if field.gate is not None:
            match field.gate.is_open(instance):
                case Err(error):
                    acc.add(path, ValidationResult.invalid(error.message, error.code, constraint="skip_unless",
                        **error.metadata), value)
                    return
                case Ok(False):
                    return

        for constraint in field.constraints:
            acc.add(path, constraint.validate(value), value)
        for constraint in field.cross_field:
            acc.add(path, constraint.validate_across_fields(value, instance, field.name), value)
        self._apply_context(field.context, value, path, acc, context)

        if value is None: return
        if field.nested_type is not None:
            if isinstance(value, field.nested_type):
                self._validate_record(self._plans.get(field.nested_type), value, path, acc, context)
        elif field.is_collection:
            self._dive(field, value, path, acc, context)

    def _dive(self, field: FieldPlan, value: Any, path: str, acc: ErrorAccumulator, context: Any) -> None:
        if field.is_map:
            if not isinstance(value, Mapping): return
            for key, item in value.items():
                item_path = f"{path}[{key}]"
                for constraint in field.key_constraints:
                    acc.add(item_path, constraint.validate(key), key)
                self._validate_element(field, item, item_path, acc, context)
            return
        if not isinstance(value, (list, tuple, Set)): return
        for index, item in enumerate(value):
            self._validate_element(field, item, f"{path}[{index}]", acc, context)

    def _validate_element(self, field: FieldPlan, item: Any, path: str, acc: ErrorAccumulator, context: Any) -> None:
        if field.has_dive:
            for constraint in field.element_constraints:
                acc.add(path, constraint.validate(item), item)
            self._apply_context(field.element_context, item, path, acc, context)
        if field.element_type is not None and isinstance(item, field.element_type):
            self._validate_record(self._plans.get(field.element_type), item, path, acc, context)

    def _apply_context(self, constraints: tuple[ContextConstraint, ...], value: Any, path: str,
                       acc: ErrorAccumulator, context: Any) -> None:
        for constraint in constraints:
            registered = self.registry.get(constraint.name)
            if registered is None: continue
            acc.add(path, registered.evaluate(value, constraint.param, context), value)
