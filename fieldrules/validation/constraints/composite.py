"""OR Composite Constraint"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fieldrules.errors import ErrorCode

from .base import Constraint, ValidationResult, is_absent


@dataclass(frozen=True, slots=True)
class AnyOf(Constraint):
    """Passes when at least one alternative passes.

    Built from an expression such as `hexcolor|rgb|rgba`; alternatives are
    tried in order and evaluation stops at the first success.
    """
    expression: str
    alternatives: tuple[Constraint, ...]

    @property
    def constraint_name(self) -> str: return self.expression

    def validate(self, value: Any) -> ValidationResult:
        if is_absent(value): return ValidationResult.valid()
        for alternative in self.alternatives:
            if alternative.validate(value).is_valid: return ValidationResult.valid()
        return ValidationResult.invalid(f"must match one of: {self.expression}", ErrorCode.E5000_OR_CONSTRAINT_FAILED,
            constraint=self.expression, expected=self.expression, actual=value)
