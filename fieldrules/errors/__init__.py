"""Monadic Error Handling System

Key components:
- Result[T, E]: Monadic container for success/failure
- AppError: Error value with code, message and metadata
- ErrorCode: Hierarchical error code taxonomy
- PlanBuildError: Fatal plan construction failure

Usage:
    from fieldrules.errors import Ok, Err, ErrorCode

    match path.resolve(instance):
        case Ok(value):
            ...
        case Err(error):
            print(error.code.name, error.message)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    PlanBuildError,
    ok,
    err,
)

__all__ = [
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "PlanBuildError",
    "ok",
    "err",
]
