"""Tests for dotted field paths into nested records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from fieldrules.errors import ErrorCode
from fieldrules.validation import Validator, compile_path, describe


@dataclass
class Limits:
    MinValue: int = 0
    MaxValue: int = 100


@dataclass
class Bounds:
    Inner: Optional[Limits] = None
    Value: int = field(default=0, metadata={"validate": "gtefield=Inner.MinValue,ltefield=Inner.MaxValue"})


@dataclass
class Deep:
    Outer: Optional[Bounds] = None
    Level: int = field(default=0, metadata={"validate": "gtfield=Outer.Inner.MinValue"})


@dataclass
class Switch:
    Inner: Optional[Limits] = None
    Reason: str = field(default="", metadata={"validate": "required_if=Inner.MinValue:5"})


# ---------------------------------------------------------------------------
# compile_path
# ---------------------------------------------------------------------------


def test_compile_sibling_path():
    schema = describe(Bounds)
    path = compile_path(schema, "Value", describe)
    assert path.dotted == "Value"
    assert not path.is_nested
    assert path.steps[0].index == 1


def test_compile_nested_path_records_steps():
    path = compile_path(describe(Bounds), "Inner.MinValue", describe)
    assert str(path) == "Inner.MinValue"
    assert path.is_nested
    assert [step.name for step in path.steps] == ["Inner", "MinValue"]
    assert path.steps[0].optional
    assert not path.steps[1].optional


def test_compile_rejects_unknown_segments():
    schema = describe(Bounds)
    assert compile_path(schema, "Inner.Missing", describe) is None
    assert compile_path(schema, "Nope", describe) is None
    assert compile_path(schema, "Value.MinValue", describe) is None
    assert compile_path(schema, "Inner..MinValue", describe) is None
    assert compile_path(schema, "", describe) is None


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


def test_resolve_reads_nested_value():
    path = compile_path(describe(Bounds), "Inner.MaxValue", describe)
    assert path.resolve(Bounds(Inner=Limits(1, 9))).unwrap() == 9


def test_resolve_nil_intermediate_is_err():
    path = compile_path(describe(Deep), "Outer.Inner.MinValue", describe)
    result = path.resolve(Deep(Outer=Bounds()))
    assert result.is_err()
    error = result.unwrap_err()
    assert error.code is ErrorCode.E4020_FIELD_PATH_ERROR
    assert error.message == "cannot resolve field path 'Outer.Inner.MinValue': 'Outer.Inner' is nil"
    assert error.metadata["link"] == "Outer.Inner"


# ---------------------------------------------------------------------------
# Validation through nested paths
# ---------------------------------------------------------------------------


def test_nested_target_compares_values():
    validator = Validator(Bounds)
    assert validator.validate(Bounds(Inner=Limits(10, 20), Value=15)) is None
    error = validator.validate(Bounds(Inner=Limits(10, 20), Value=5))
    assert [e.message for e in error.errors] == ["must be at least field Inner.MinValue"]


def test_nil_intermediate_reports_instead_of_crashing():
    """A None link in the middle of a path is a validation error naming the link."""
    error = Validator(Bounds).validate(Bounds(Inner=None, Value=5))
    assert error is not None
    assert {e.code for e in error.errors} == {ErrorCode.E4020_FIELD_PATH_ERROR}
    assert all("'Inner'" in e.message for e in error.errors)
    assert error.errors[0].field == "Value"


def test_three_level_path():
    validator = Validator(Deep)
    assert validator.validate(Deep(Outer=Bounds(Inner=Limits(1, 9), Value=5), Level=2)) is None
    error = validator.validate(Deep(Outer=Bounds(Inner=Limits(1, 9), Value=5), Level=1))
    assert [e.message for e in error.errors] == ["must be greater than field Outer.Inner.MinValue"]


def test_presence_family_follows_nested_paths():
    validator = Validator(Switch)
    error = validator.validate(Switch(Inner=Limits(5, 9)))
    assert [e.message for e in error.errors] == ["is required when Inner.MinValue equals '5'"]
    assert validator.validate(Switch(Inner=Limits(4, 9))) is None


def test_presence_family_nil_intermediate_is_path_error():
    error = Validator(Switch).validate(Switch(Inner=None))
    assert error.errors[0].code is ErrorCode.E4020_FIELD_PATH_ERROR
