"""Constraint Registry

Named, user-supplied constraints looked up lazily at validate time. A
registry is an explicit object handed to a Validator, so independently
configured validators never share state.

    registry = ConstraintRegistry()

    def is_even(value, param):
        if value % 2:
            raise ValueError("must be even")

    registry.register("even", is_even)
    Validator(Order, registry=registry)

Functions signal failure by raising ValueError; the message becomes the
error message. Names the engine interprets itself cannot be registered.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable

from fieldrules.errors import ErrorCode
from fieldrules.logging import registry_logger

from .constraints.base import ValidationResult
from .constraints.factory import is_builtin

ValidatorFunc = Callable[[Any, str], None]
ContextValidatorFunc = Callable[[Any, Any, str], None]
RecordValidatorFunc = Callable[[Any], None]


@dataclass(frozen=True, slots=True)
class RegisteredConstraint:
    name: str
    func: Callable[..., None]
    takes_context: bool = False

    def evaluate(self, value: Any, param: str, context: Any = None) -> ValidationResult:
        try:
            if self.takes_context:
                self.func(context, value, param)
            else:
                self.func(value, param)
        except ValueError as exc:
            code = ErrorCode.E5011_CONTEXT_VALIDATION if self.takes_context else ErrorCode.E5010_CUSTOM_VALIDATION
            return ValidationResult.invalid(str(exc) or f"failed {self.name} validation", code,
                constraint=self.name, actual=value)
        return ValidationResult.valid()


class ConstraintRegistry:
    """Thread-safe name -> constraint function mapping."""

    def __init__(self) -> None:
        self._constraints: dict[str, RegisteredConstraint] = {}
        self._record_validators: dict[type, RecordValidatorFunc] = {}
        self._lock = threading.Lock()

    def _check(self, name: str, fn: Any) -> None:
        if not name: raise ValueError("validator name cannot be empty")
        if not callable(fn): raise ValueError("validator function must be callable")
        if is_builtin(name): raise ValueError(f"cannot override built-in validator: {name}")

    def register(self, name: str, fn: ValidatorFunc) -> None:
        """Register fn(value, param) under name.

        Raises:
            ValueError: For an empty name, a non-callable or a built-in name.
        """
        self._check(name, fn)
        with self._lock:
            self._constraints[name] = RegisteredConstraint(name, fn)
        registry_logger().debug("validator_registered", name=name, context=False)

    def register_ctx(self, name: str, fn: ContextValidatorFunc) -> None:
        """Register fn(context, value, param); context is what Validator.validate received."""
        self._check(name, fn)
        with self._lock:
            self._constraints[name] = RegisteredConstraint(name, fn, takes_context=True)
        registry_logger().debug("validator_registered", name=name, context=True)

    def register_record(self, record_type: type, fn: RecordValidatorFunc) -> None:
        """Register fn(instance), run once a record of record_type has no field errors."""
        if not callable(fn): raise ValueError("validator function must be callable")
        with self._lock:
            self._record_validators[record_type] = fn
        registry_logger().debug("record_validator_registered", record=record_type.__name__)

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._constraints.pop(name, None) is not None

    def get(self, name: str) -> RegisteredConstraint | None: return self._constraints.get(name)

    def record_validator(self, record_type: type) -> RecordValidatorFunc | None:
        return self._record_validators.get(record_type)

    def __contains__(self, name: object) -> bool: return name in self._constraints

    def __len__(self) -> int: return len(self._constraints)
