"""Monadic Error Handling Types

Result/Either types for deterministic, composable error propagation, plus the
error code taxonomy shared by every constraint and the plan builder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Iterator, NoReturn, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound="AppError")
F = TypeVar("F", bound="AppError")


class ErrorCode(Enum):
    """Hierarchical error code taxonomy.

    E1xxx: Presence (required/excluded) failures
    E2xxx: Format failures
    E3xxx: Range and length failures
    E4xxx: Cross-field and field path failures
    E5xxx: Composite and registered constraint failures
    E6xxx: Type failures
    E9xxx: Internal/plan construction errors
    """
    # Presence (E1xxx)
    E1000_REQUIRED = 1000
    E1001_REQUIRED_IF = 1001
    E1002_REQUIRED_UNLESS = 1002
    E1003_REQUIRED_WITH = 1003
    E1004_REQUIRED_WITHOUT = 1004
    E1010_EXCLUDED_IF = 1010
    E1011_EXCLUDED_UNLESS = 1011
    E1012_EXCLUDED_WITH = 1012
    E1013_EXCLUDED_WITHOUT = 1013

    # Format (E2xxx)
    E2000_INVALID_FORMAT = 2000
    E2001_INVALID_EMAIL = 2001
    E2002_INVALID_URL = 2002
    E2003_INVALID_UUID = 2003
    E2004_INVALID_IP = 2004
    E2005_INVALID_IPV4 = 2005
    E2006_INVALID_IPV6 = 2006
    E2010_INVALID_BASE64 = 2010
    E2011_INVALID_BASE64URL = 2011
    E2012_INVALID_BASE64RAWURL = 2012
    E2013_INVALID_BASE32 = 2013
    E2014_INVALID_JSON = 2014
    E2015_INVALID_JWT = 2015
    E2016_INVALID_DATAURI = 2016
    E2020_INVALID_TIMEZONE = 2020
    E2021_INVALID_LANGUAGE_TAG = 2021
    E2022_INVALID_COUNTRY_CODE = 2022
    E2023_INVALID_CURRENCY_CODE = 2023
    E2024_INVALID_SUBDIVISION = 2024
    E2025_INVALID_POSTCODE = 2025
    E2030_INVALID_COLOR = 2030
    E2031_PATTERN_MISMATCH = 2031
    E2032_NOT_ONE_OF = 2032
    E2033_CONST_MISMATCH = 2033
    E2034_INVALID_DATETIME = 2034
    E2040_INVALID_CHARACTERS = 2040
    E2041_INVALID_CASE = 2041
    E2042_SUBSTRING_MISMATCH = 2042

    # Range/Length (E3xxx)
    E3000_MIN_VALUE = 3000
    E3001_MAX_VALUE = 3001
    E3002_MIN_LENGTH = 3002
    E3003_MAX_LENGTH = 3003
    E3004_EXACT_LENGTH = 3004
    E3010_GT = 3010
    E3011_GTE = 3011
    E3012_LT = 3012
    E3013_LTE = 3013
    E3020_NOT_POSITIVE = 3020
    E3021_NOT_NEGATIVE = 3021
    E3022_NOT_MULTIPLE_OF = 3022
    E3023_TOO_MANY_DIGITS = 3023
    E3024_TOO_MANY_DECIMAL_PLACES = 3024
    E3030_NOT_UNIQUE = 3030

    # Cross-field (E4xxx)
    E4000_EQ_FIELD = 4000
    E4001_NE_FIELD = 4001
    E4002_GT_FIELD = 4002
    E4003_GTE_FIELD = 4003
    E4004_LT_FIELD = 4004
    E4005_LTE_FIELD = 4005
    E4010_INCOMPATIBLE_TYPES = 4010
    E4020_FIELD_PATH_ERROR = 4020

    # Composite/Registered (E5xxx)
    E5000_OR_CONSTRAINT_FAILED = 5000
    E5010_CUSTOM_VALIDATION = 5010
    E5011_CONTEXT_VALIDATION = 5011

    # Type (E6xxx)
    E6000_INVALID_TYPE = 6000
    E6001_UNSUPPORTED_TYPE = 6001

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_PLAN_BUILD_FAILED = 9001

    @property
    def category(self) -> str:
        """Human-readable error category."""
        code = self.value
        if 1000 <= code < 2000:
            return "presence"
        if 2000 <= code < 3000:
            return "format"
        if 3000 <= code < 4000:
            return "range"
        if 4000 <= code < 5000:
            return "crossfield"
        if 5000 <= code < 6000:
            return "composite"
        if 6000 <= code < 7000:
            return "type"
        return "internal"


@dataclass(frozen=True, slots=True)
class AppError:
    """Error value with a typed code, message and structured metadata."""
    code: ErrorCode
    message: str
    metadata: dict = field(default_factory=dict)

    def with_metadata(self, **kwargs) -> AppError:
        """Create new error with additional metadata."""
        return AppError(code=self.code, message=self.message, metadata={**self.metadata, **kwargs})

    def to_dict(self) -> dict:
        return {"error": {"code": self.code.name, "code_num": self.code.value, "message": self.message,
            "category": self.code.category, "metadata": self.metadata}}

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message}"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result monad."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U, AppError]:
        """Transform the success value."""
        return Ok(f(self.value))

    def flat_map(self, f: Callable[[T], Result[U, AppError]]) -> Result[U, AppError]:
        """Chain operations that may fail."""
        return f(self.value)

    def match(self, ok: Callable[[T], U], err: Callable[[AppError], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return ok(self.value)

    def __iter__(self) -> Iterator[T]:
        yield self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result monad."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        """Raises because Err has no value to unwrap."""
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> E:
        return self.error

    def map(self, f: Callable[[T], U]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore

    def flat_map(self, f: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """No-op for Err variant."""
        return self  # type: ignore

    def match(self, ok: Callable[[T], U], err: Callable[[E], U]) -> U:
        """Pattern match on Result. Forces exhaustive handling."""
        return err(self.error)

    def __iter__(self) -> Iterator:
        return iter([])


# Type alias for Result monad
Result = Union[Ok[T], Err[E]]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(code: ErrorCode, message: str, **metadata) -> Err[AppError]:
    """Construct an Err carrying a fresh AppError."""
    return Err(AppError(code=code, message=message, metadata=metadata))


class PlanBuildError(ValueError):
    """Raised when a record type's declarations cannot be compiled into a plan.

    Signals an authoring mistake (unknown or self-referencing cross-field
    target, dive on a scalar, invalid pattern), never bad runtime data.
    """

    def __init__(self, message: str, *, record: str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.record = record
        self.field = field

    @property
    def error(self) -> AppError:
        return AppError(code=ErrorCode.E9001_PLAN_BUILD_FAILED, message=self.message,
            metadata={"record": self.record, "field": self.field})
