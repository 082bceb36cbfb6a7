"""ISO Code Constraints

Country (ISO 3166-1/-2), currency (ISO 4217), language tag (BCP 47) and
postal code checks. Code tables come from pycountry; alphabetic codes must be
written in upper case even though pycountry lookups ignore case.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

import pycountry

from fieldrules.errors import ErrorCode

from .base import Constraint, StringConstraint, ValidationResult, is_absent, type_name

EU_ALPHA2 = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})

_ALPHA2_RE = re.compile(r"[A-Z]{2}")
_ALPHA3_RE = re.compile(r"[A-Z]{3}")
_NUMERIC3_RE = re.compile(r"\d{3}")
_SUBDIVISION_RE = re.compile(r"[A-Z]{2}-[A-Z0-9]{1,3}")
BCP47_RE = re.compile(
    r"(?P<language>[a-zA-Z]{2,3})(?:-[a-zA-Z]{3}){0,3}"
    r"(?:-[a-zA-Z]{4})?"
    r"(?:-(?:[a-zA-Z]{2}|\d{3}))?"
    r"(?:-(?:[a-zA-Z0-9]{5,8}|\d[a-zA-Z0-9]{3}))*"
    r"(?:-[0-9a-wyzA-WYZ](?:-[a-zA-Z0-9]{2,8})+)*"
    r"(?:-x(?:-[a-zA-Z0-9]{1,8})+)?"
    r"|x(?:-[a-zA-Z0-9]{1,8})+"
)


# ============================================================================
# Lookups
# ============================================================================

def is_country_alpha2(value: str) -> bool:
    return _ALPHA2_RE.fullmatch(value) is not None and pycountry.countries.get(alpha_2=value) is not None


def is_country_alpha3(value: str) -> bool:
    return _ALPHA3_RE.fullmatch(value) is not None and pycountry.countries.get(alpha_3=value) is not None


def is_country_numeric(value: str) -> bool:
    return _NUMERIC3_RE.fullmatch(value) is not None and pycountry.countries.get(numeric=value) is not None


def is_eu_alpha2(value: str) -> bool: return value in EU_ALPHA2


def is_eu_alpha3(value: str) -> bool:
    if _ALPHA3_RE.fullmatch(value) is None: return False
    country = pycountry.countries.get(alpha_3=value)
    return country is not None and country.alpha_2 in EU_ALPHA2


def is_subdivision(value: str) -> bool:
    return _SUBDIVISION_RE.fullmatch(value) is not None and pycountry.subdivisions.get(code=value) is not None


def is_currency(value: str) -> bool:
    return _ALPHA3_RE.fullmatch(value) is not None and pycountry.currencies.get(alpha_3=value) is not None


def is_currency_numeric(value: str) -> bool:
    return _NUMERIC3_RE.fullmatch(value) is not None and pycountry.currencies.get(numeric=value) is not None


def is_language_tag(value: str) -> bool:
    match = BCP47_RE.fullmatch(value)
    if match is None: return False
    language = match.group("language")
    if language is None: return True  # private use
    language = language.lower()
    if len(language) == 2: return pycountry.languages.get(alpha_2=language) is not None
    return pycountry.languages.get(alpha_3=language) is not None


@dataclass(frozen=True, slots=True)
class CodeSpec:
    predicate: Callable[[str], bool]
    message: str
    code: ErrorCode
    accepts_int: bool = False


ISO_CODES: dict[str, CodeSpec] = {
    "iso3166_1_alpha2": CodeSpec(is_country_alpha2, "must be a valid ISO 3166-1 alpha-2 country code",
        ErrorCode.E2022_INVALID_COUNTRY_CODE),
    "iso3166_1_alpha3": CodeSpec(is_country_alpha3, "must be a valid ISO 3166-1 alpha-3 country code",
        ErrorCode.E2022_INVALID_COUNTRY_CODE),
    "iso3166_1_alpha_numeric": CodeSpec(is_country_numeric, "must be a valid ISO 3166-1 numeric country code",
        ErrorCode.E2022_INVALID_COUNTRY_CODE, accepts_int=True),
    "iso3166_alpha2_eu": CodeSpec(is_eu_alpha2, "must be a valid EU country code (ISO 3166-1 alpha-2)",
        ErrorCode.E2022_INVALID_COUNTRY_CODE),
    "iso3166_alpha3_eu": CodeSpec(is_eu_alpha3, "must be a valid EU country code (ISO 3166-1 alpha-3)",
        ErrorCode.E2022_INVALID_COUNTRY_CODE),
    "iso3166_2": CodeSpec(is_subdivision, "must be a valid ISO 3166-2 subdivision code",
        ErrorCode.E2024_INVALID_SUBDIVISION),
    "iso4217": CodeSpec(is_currency, "must be a valid ISO 4217 currency code", ErrorCode.E2023_INVALID_CURRENCY_CODE),
    "iso4217_numeric": CodeSpec(is_currency_numeric, "must be a valid ISO 4217 numeric currency code",
        ErrorCode.E2023_INVALID_CURRENCY_CODE, accepts_int=True),
    "bcp47_language_tag": CodeSpec(is_language_tag, "must be a valid BCP 47 language tag",
        ErrorCode.E2021_INVALID_LANGUAGE_TAG),
}


@dataclass(frozen=True, slots=True)
class IsoCode(Constraint):
    """Named ISO code check. Numeric code variants also accept ints."""
    name: str
    spec: CodeSpec

    @property
    def constraint_name(self) -> str: return self.name

    def validate(self, value: Any) -> ValidationResult:
        if is_absent(value): return ValidationResult.valid()
        if self.spec.accepts_int and isinstance(value, int) and not isinstance(value, bool):
            value = f"{value:03d}"
        if not isinstance(value, str):
            return ValidationResult.invalid(f"{self.name} constraint requires string value", ErrorCode.E6000_INVALID_TYPE,
                constraint=self.name, expected="str", actual=type_name(value))
        if self.spec.predicate(value): return ValidationResult.valid()
        return ValidationResult.invalid(self.spec.message, self.spec.code, constraint=self.name, actual=value)


# ============================================================================
# Postal Codes
# ============================================================================

POSTCODE_PATTERNS: dict[str, re.Pattern] = {
    country: re.compile(pattern, re.IGNORECASE) for country, pattern in {
        "US": r"\d{5}(?:-\d{4})?",
        "GB": r"GIR ?0AA|[A-Z]{1,2}\d[A-Z\d]? ?\d[A-Z]{2}",
        "CA": r"[ABCEGHJ-NPRSTVXY]\d[ABCEGHJ-NPRSTV-Z] ?\d[ABCEGHJ-NPRSTV-Z]\d",
        "DE": r"\d{5}",
        "FR": r"\d{2} ?\d{3}",
        "IT": r"\d{5}",
        "ES": r"\d{5}",
        "NL": r"\d{4} ?[A-Z]{2}",
        "BE": r"\d{4}",
        "CH": r"\d{4}",
        "AT": r"\d{4}",
        "SE": r"\d{3} ?\d{2}",
        "NO": r"\d{4}",
        "DK": r"\d{4}",
        "FI": r"\d{5}",
        "PL": r"\d{2}-\d{3}",
        "PT": r"\d{4}-\d{3}",
        "IE": r"[A-Z]\d[\dW] ?[A-Z\d]{4}",
        "JP": r"\d{3}-?\d{4}",
        "AU": r"\d{4}",
        "NZ": r"\d{4}",
        "IN": r"\d{6}",
        "BR": r"\d{5}-?\d{3}",
        "MX": r"\d{5}",
        "CN": r"\d{6}",
        "RU": r"\d{6}",
        "KR": r"\d{5}",
        "ZA": r"\d{4}",
        "SG": r"\d{6}",
    }.items()
}


@dataclass(frozen=True, slots=True)
class PostCode(StringConstraint):
    country: str
    pattern: re.Pattern

    @property
    def constraint_name(self) -> str: return "postcode"

    def check(self, value: str) -> ValidationResult:
        if self.pattern.fullmatch(value): return ValidationResult.valid()
        return ValidationResult.invalid(f"must be a valid postcode for {self.country}", ErrorCode.E2025_INVALID_POSTCODE,
            constraint=f"postcode={self.country}", expected=self.country, actual=value)
