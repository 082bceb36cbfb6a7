"""Field Paths

A dotted reference such as `Inner.MinValue` compiled once against the record
schemas into an ordered tuple of steps. Walking a path never raises: a None
intermediate link is returned as an Err naming the broken link.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from fieldrules.errors import AppError, ErrorCode, Ok, Result, err

from .schema import RecordSchema


@dataclass(frozen=True, slots=True)
class FieldStep:
    """One hop of a path: the field's name, stable index and optionality."""
    name: str
    index: int
    optional: bool = False


@dataclass(frozen=True, slots=True)
class FieldPath:
    steps: tuple[FieldStep, ...]

    @property
    def dotted(self) -> str: return ".".join(step.name for step in self.steps)

    @property
    def is_nested(self) -> bool: return len(self.steps) > 1

    def resolve(self, instance: Any) -> Result[Any, AppError]:
        """Read the value the path points at from a live instance."""
        current = instance
        for position, step in enumerate(self.steps):
            if current is None:
                link = ".".join(s.name for s in self.steps[:position])
                return err(ErrorCode.E4020_FIELD_PATH_ERROR,
                    f"cannot resolve field path '{self.dotted}': '{link}' is nil", path=self.dotted, link=link)
            current = getattr(current, step.name)
        return Ok(current)

    def __str__(self) -> str: return self.dotted


def compile_path(schema: RecordSchema, target: str,
                 describe_nested: Callable[[type], RecordSchema]) -> FieldPath | None:
    """Compile a sibling name or dotted path against a record schema.

    Every segment but the last must name a record-typed field (optionally
    wrapped in Optional). Returns None when any segment does not resolve.
    """
    segments = [segment.strip() for segment in target.split(".")]
    if not target or any(not segment for segment in segments): return None

    steps = []
    current = schema
    for position, segment in enumerate(segments):
        descriptor = current.field(segment)
        if descriptor is None: return None
        info = descriptor.type_info
        steps.append(FieldStep(descriptor.name, descriptor.index, info.optional))
        if position < len(segments) - 1:
            if not info.is_record: return None
            current = describe_nested(info.annotation)
    return FieldPath(tuple(steps))
