"""Record Schema Description

Describes a record type once, producing the ordered field descriptors the
plan builder consumes. Everything downstream works from these descriptors
and never inspects the record class again.

Supported record types:
- dataclasses: declaration in `field(metadata={"validate": "..."})`,
  external name in `metadata["json"]`
- pydantic models: declaration in `Field(json_schema_extra={"validate": "..."})`,
  external name from the serialization alias or alias
- both: an `Annotated[T, Rules("...")]` marker on the annotation

Usage:
    @dataclass
    class Signup:
        email: Annotated[str, Rules("required,email")]
        age: int = field(default=0, metadata={"validate": "gte=18", "json": "user_age"})
"""
from __future__ import annotations

import dataclasses
import inspect
import numbers
import re
import types
import typing
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Callable, Union, get_args, get_origin

from pydantic import BaseModel

from fieldrules.errors import PlanBuildError
NameFunc = Callable[[str], "str | None"]


@dataclass(frozen=True, slots=True)
class Rules:
    """Annotated marker carrying a field's declaration text."""
    declaration: str


class TypeKind(str, Enum):
    """Static classification of a field annotation."""
    NUMERIC = "numeric"
    STRING = "string"
    BYTES = "bytes"
    BOOL = "bool"
    TIME = "time"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    RECORD = "record"
    ANY = "any"


@dataclass(frozen=True, slots=True)
class TypeInfo:
    """Static type of a field with Optional and Annotated layers removed."""
    kind: TypeKind
    annotation: Any = None
    optional: bool = False
    elem: TypeInfo | None = None
    key: TypeInfo | None = None

    @property
    def is_collection(self) -> bool: return self.kind in (TypeKind.SEQUENCE, TypeKind.MAPPING)

    @property
    def is_map(self) -> bool: return self.kind is TypeKind.MAPPING

    @property
    def is_record(self) -> bool: return self.kind is TypeKind.RECORD

    @property
    def measures_length(self) -> bool:
        """min/max compare length rather than value for these kinds."""
        return self.kind in (TypeKind.STRING, TypeKind.BYTES, TypeKind.SEQUENCE, TypeKind.MAPPING)

    @property
    def elem_record(self) -> type | None:
        """Record type of collection elements, if any."""
        if self.is_collection and self.elem is not None and self.elem.is_record:
            return self.elem.annotation
        return None


ANY_TYPE = TypeInfo(TypeKind.ANY)


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One declared field of a record type."""
    name: str
    external_name: str
    index: int
    type_info: TypeInfo
    declaration: str | None


@dataclass(frozen=True, slots=True)
class RecordSchema:
    """Ordered field descriptors of one record type."""
    record_type: type
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str: return self.record_type.__name__

    def field(self, name: str) -> FieldDescriptor | None:
        for descriptor in self.fields:
            if descriptor.name == name: return descriptor
        return None

    def index_of(self, name: str) -> int:
        """Stable index of a field, or -1 when the record has no such field."""
        descriptor = self.field(name)
        return descriptor.index if descriptor else -1


# ============================================================================
# Type Classification
# ============================================================================

def is_record_type(tp: Any) -> bool:
    if not isinstance(tp, type): return False
    if dataclasses.is_dataclass(tp): return True
    return issubclass(tp, BaseModel)


def _strip_annotated(annotation: Any) -> tuple[Any, tuple[Any, ...]]:
    if get_origin(annotation) is Annotated:
        base, *extras = get_args(annotation)
        return base, tuple(extras)
    return annotation, ()


def _is_union(origin: Any) -> bool:
    return origin is Union or origin is types.UnionType


_SEQUENCE_ORIGINS = (list, tuple, set, frozenset)


def type_info(annotation: Any) -> TypeInfo:
    """Classify an annotation, unwrapping Annotated and Optional layers."""
    annotation, _ = _strip_annotated(annotation)
    origin = get_origin(annotation)

    if _is_union(origin):
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1 and len(members) < len(get_args(annotation)):
            inner = type_info(members[0])
            return TypeInfo(inner.kind, inner.annotation, True, inner.elem, inner.key)
        return TypeInfo(TypeKind.ANY, annotation, type(None) in get_args(annotation))

    if annotation is None or annotation is Any or isinstance(annotation, (str, typing.TypeVar)):
        return TypeInfo(TypeKind.ANY, annotation)

    if origin is not None:
        args = get_args(annotation)
        if origin in _SEQUENCE_ORIGINS or (isinstance(origin, type) and issubclass(origin, (Sequence, Set))
                                          and not issubclass(origin, (str, bytes))):
            if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
                elem = type_info(args[0])
            elif origin is tuple:
                elem = ANY_TYPE
            else:
                elem = type_info(args[0]) if args else ANY_TYPE
            return TypeInfo(TypeKind.SEQUENCE, annotation, elem=elem)
        if isinstance(origin, type) and issubclass(origin, Mapping):
            key = type_info(args[0]) if args else ANY_TYPE
            elem = type_info(args[1]) if len(args) > 1 else ANY_TYPE
            return TypeInfo(TypeKind.MAPPING, annotation, elem=elem, key=key)
        return TypeInfo(TypeKind.ANY, annotation)

    if not isinstance(annotation, type): return TypeInfo(TypeKind.ANY, annotation)
    if is_record_type(annotation): return TypeInfo(TypeKind.RECORD, annotation)
    if issubclass(annotation, bool): return TypeInfo(TypeKind.BOOL, annotation)
    if issubclass(annotation, (numbers.Real, Decimal)): return TypeInfo(TypeKind.NUMERIC, annotation)
    if issubclass(annotation, str): return TypeInfo(TypeKind.STRING, annotation)
    if issubclass(annotation, (bytes, bytearray)): return TypeInfo(TypeKind.BYTES, annotation)
    if issubclass(annotation, (datetime, date, time, timedelta)): return TypeInfo(TypeKind.TIME, annotation)
    if issubclass(annotation, Mapping): return TypeInfo(TypeKind.MAPPING, annotation, elem=ANY_TYPE, key=ANY_TYPE)
    if issubclass(annotation, (list, tuple, set, frozenset)):
        return TypeInfo(TypeKind.SEQUENCE, annotation, elem=ANY_TYPE)
    return TypeInfo(TypeKind.ANY, annotation)


# ============================================================================
# Record Description
# ============================================================================

def _rules_marker(extras: tuple[Any, ...] | list[Any]) -> str | None:
    for extra in extras:
        if isinstance(extra, Rules): return extra.declaration
    return None


def _defining_locals(record_type: type) -> dict[str, Any]:
    """Locals of the live frame whose function defined record_type, if any."""
    qualname = record_type.__qualname__
    if ".<locals>." not in qualname: return {}
    function = qualname.rsplit(".<locals>.", 1)[0].rsplit(".", 1)[-1]
    frame = inspect.currentframe()
    try:
        while frame is not None:
            if frame.f_code.co_name == function and frame.f_globals.get("__name__") == record_type.__module__:
                return dict(frame.f_locals)
            frame = frame.f_back
    finally:
        del frame
    return {}


def _type_hints(record_type: type) -> dict[str, Any]:
    """Resolve every field annotation of a dataclass.

    Module globals always apply. A record defined inside a function also sees
    that function's locals while it is still running.

    Raises:
        PlanBuildError: Naming the first field whose annotation refers to an
            undefined name.
    """
    localns = _defining_locals(record_type)
    if localns: localns.setdefault(record_type.__name__, record_type)
    try:
        return typing.get_type_hints(record_type, localns=localns or None, include_extras=True)
    except NameError as exc:
        missing = getattr(exc, "name", None)
        culprit = next((f.name for f in dataclasses.fields(record_type)
                        if missing and re.search(rf"\b{re.escape(missing)}\b", str(f.type))), None)
        where = f"field {culprit} of {record_type.__name__}" if culprit else record_type.__name__
        raise PlanBuildError(f"cannot resolve type annotation of {where}: {exc}",
            record=record_type.__name__, field=culprit) from exc


def _dataclass_fields(record_type: type, declaration_key: str) -> list[tuple[str, str | None, Any, str | None]]:
    hints = _type_hints(record_type)

    rows = []
    for f in dataclasses.fields(record_type):
        annotation = hints.get(f.name, f.type)
        _, extras = _strip_annotated(annotation)
        declaration = f.metadata.get(declaration_key)
        if declaration is None: declaration = _rules_marker(extras)
        rows.append((f.name, f.metadata.get("json"), annotation, declaration))
    return rows


def _model_fields(record_type: type[BaseModel], declaration_key: str) -> list[tuple[str, str | None, Any, str | None]]:
    rows = []
    for name, info in record_type.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        declaration = extra.get(declaration_key)
        if declaration is None: declaration = _rules_marker(info.metadata)
        alias = info.serialization_alias or info.alias
        rows.append((name, alias, info.annotation, declaration))
    return rows


def describe(record_type: type, declaration_key: str = "validate", name_func: NameFunc | None = None) -> RecordSchema:
    """Describe a record type's fields in declaration order.

    Args:
        record_type: A dataclass or pydantic model class.
        declaration_key: Metadata key holding declaration text.
        name_func: Optional override mapping a field name to its external
            name; a falsy return falls back to the declared alias.

    Raises:
        PlanBuildError: If record_type is not a supported record type.
    """
    if not is_record_type(record_type):
        raise PlanBuildError(f"{getattr(record_type, '__name__', record_type)!r} is not a dataclass or pydantic model",
            record=getattr(record_type, "__name__", None))

    if dataclasses.is_dataclass(record_type):
        rows = _dataclass_fields(record_type, declaration_key)
    else:
        rows = _model_fields(record_type, declaration_key)

    descriptors = []
    for index, (name, alias, annotation, declaration) in enumerate(rows):
        external = (name_func(name) if name_func else None) or alias or name
        descriptors.append(FieldDescriptor(name=name, external_name=external, index=index,
            type_info=type_info(annotation), declaration=declaration))
    return RecordSchema(record_type=record_type, fields=tuple(descriptors))
