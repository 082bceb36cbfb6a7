"""Validation Plans

A ValidationPlan is the compiled, immutable form of one record type's
declarations: per field, its simple constraints, cross-field constraints,
context constraint names and, for collections, key and element constraints.

Plans are built once per record type by a PlanCache and then shared by every
validation of that type. Building is the only stage allowed to fail hard;
PlanBuildError signals a mistake in the declarations.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from fieldrules.errors import PlanBuildError
from fieldrules.logging import plan_logger

from .constraints.base import Constraint
from .constraints.factory import build_constraints, context_constraint_names
from .crossfield import CrossFieldConstraint, SkipUnless, build_cross_field, build_gate
from .declarations import ParsedDeclaration, parse_declaration_sections
from .schema import ANY_TYPE, FieldDescriptor, NameFunc, RecordSchema, TypeInfo, describe


@dataclass(frozen=True, slots=True)
class ContextConstraint:
    """A declaration key resolved by name through a registry at validate time."""
    name: str
    param: str


@dataclass(frozen=True, slots=True)
class FieldPlan:
    name: str
    external_name: str
    index: int
    type_info: TypeInfo
    constraints: tuple[Constraint, ...] = ()
    cross_field: tuple[CrossFieldConstraint, ...] = ()
    context: tuple[ContextConstraint, ...] = ()
    has_dive: bool = False
    element_constraints: tuple[Constraint, ...] = ()
    element_context: tuple[ContextConstraint, ...] = ()
    key_constraints: tuple[Constraint, ...] = ()
    nested_type: type | None = None
    element_type: type | None = None
    is_required: bool = False
    gate: SkipUnless | None = None

    @property
    def is_collection(self) -> bool: return self.type_info.is_collection

    @property
    def is_map(self) -> bool: return self.type_info.is_map

    @property
    def has_field_rules(self) -> bool: return bool(self.constraints or self.cross_field or self.context)


@dataclass(frozen=True, slots=True)
class ValidationPlan:
    record_type: type
    fields: tuple[FieldPlan, ...]

    @property
    def name(self) -> str: return self.record_type.__name__

    def field(self, name: str) -> FieldPlan | None:
        """Look a field up by attribute or external name."""
        for plan in self.fields:
            if plan.name == name or plan.external_name == name: return plan
        return None


class PlanCache:
    """Builds and caches one ValidationPlan per record type.

    Lookups are lock-free once a plan exists; construction runs under a
    re-entrant lock so each type is built exactly once even under concurrent
    first use.
    """

    def __init__(self, declaration_key: str = "validate", name_func: NameFunc | None = None) -> None:
        self.declaration_key = declaration_key
        self.name_func = name_func
        self._plans: dict[type, ValidationPlan] = {}
        self._schemas: dict[type, RecordSchema] = {}
        self._building: set[type] = set()
        self._lock = threading.RLock()

    def __contains__(self, record_type: object) -> bool: return record_type in self._plans

    def __len__(self) -> int: return len(self._plans)

    def get(self, record_type: type) -> ValidationPlan:
        """Return the plan for record_type, building it on first use.

        Raises:
            PlanBuildError: If the declarations of record_type (or of a record
                type it nests) are invalid.
        """
        plan = self._plans.get(record_type)
        if plan is not None: return plan
        with self._lock:
            plan = self._plans.get(record_type)
            if plan is None:
                plan = self._build(record_type)
                self._plans[record_type] = plan
            return plan

    def clear(self) -> None:
        with self._lock:
            self._plans.clear()
            self._schemas.clear()

    def describe(self, record_type: type) -> RecordSchema:
        schema = self._schemas.get(record_type)
        if schema is None:
            schema = describe(record_type, self.declaration_key, self.name_func)
            self._schemas[record_type] = schema
        return schema

    # ------------------------------------------------------------------------

    def _build(self, record_type: type) -> ValidationPlan:
        log = plan_logger()
        self._building.add(record_type)
        try:
            schema = self.describe(record_type)
            fields = tuple(self._build_field(schema, descriptor) for descriptor in schema.fields)
        except PlanBuildError as exc:
            log.warning("plan_build_failed", record=getattr(record_type, "__name__", str(record_type)),
                error=exc.message)
            raise
        finally:
            self._building.discard(record_type)
        log.debug("plan_built", record=schema.name, fields=len(fields))
        return ValidationPlan(record_type=record_type, fields=fields)

    def _ensure(self, record_type: type | None) -> None:
        # Types already under construction are picked up from the cache at validate time
        if record_type is not None and record_type not in self._building:
            self.get(record_type)

    def _build_field(self, schema: RecordSchema, descriptor: FieldDescriptor) -> FieldPlan:
        try:
            return self._compile_field(schema, descriptor)
        except PlanBuildError as exc:
            if exc.field is not None: raise
            raise PlanBuildError(f"field {schema.name}.{descriptor.name}: {exc.message}",
                record=schema.name, field=descriptor.name) from exc

    def _compile_field(self, schema: RecordSchema, descriptor: FieldDescriptor) -> FieldPlan:
        info = descriptor.type_info
        parsed = (parse_declaration_sections(descriptor.declaration)
                  if descriptor.declaration is not None else ParsedDeclaration())
        _check_structure(parsed, info)

        declared = parsed.field_level
        elem_info = info.elem or ANY_TYPE
        nested_type = info.annotation if info.is_record else None
        element_type = info.elem_record
        self._ensure(nested_type)
        self._ensure(element_type)

        return FieldPlan(
            name=descriptor.name,
            external_name=descriptor.external_name,
            index=descriptor.index,
            type_info=info,
            constraints=tuple(build_constraints(declared, info)),
            cross_field=tuple(build_cross_field(declared, schema, descriptor, self.describe)),
            context=_context(declared),
            has_dive=parsed.dive,
            element_constraints=tuple(build_constraints(parsed.element_level, elem_info)),
            element_context=_context(parsed.element_level),
            key_constraints=tuple(build_constraints(parsed.key_level, info.key or ANY_TYPE)),
            nested_type=nested_type,
            element_type=element_type,
            is_required="required" in declared,
            gate=build_gate(declared, schema, descriptor, self.describe),
        )


def _context(declaration: Any) -> tuple[ContextConstraint, ...]:
    return tuple(ContextConstraint(name, param) for name, param in context_constraint_names(declaration))


def _check_structure(parsed: ParsedDeclaration, info: TypeInfo) -> None:
    if parsed.keys_outside_dive: raise PlanBuildError("'keys' can only appear after 'dive'")
    if parsed.endkeys_without_keys: raise PlanBuildError("'endkeys' without preceding 'keys'")
    if parsed.unclosed_keys: raise PlanBuildError("'keys' without closing 'endkeys'")
    if parsed.dive and not info.is_collection:
        raise PlanBuildError(f"'dive' can only be used on sequence or mapping types, got {info.kind.value}")
    if parsed.key_level and not info.is_map:
        raise PlanBuildError(f"'keys' can only be used on mapping types, got {info.kind.value}")


# ============================================================================
# Shared Caches
# ============================================================================

_caches: dict[tuple[str, Any], PlanCache] = {}
_caches_lock = threading.Lock()


def get_plan_cache(declaration_key: str = "validate", name_func: NameFunc | None = None) -> PlanCache:
    """Process-wide PlanCache for one (declaration key, name function) pair."""
    key = (declaration_key, name_func)
    cache = _caches.get(key)
    if cache is None:
        with _caches_lock:
            cache = _caches.setdefault(key, PlanCache(declaration_key, name_func))
    return cache


def get_plan(record_type: type, declaration_key: str = "validate", name_func: NameFunc | None = None) -> ValidationPlan:
    return get_plan_cache(declaration_key, name_func).get(record_type)
