"""Format Predicates

Stateless checks over string values. Absent values (None or "") always pass;
non-string values are type failures.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Callable
from urllib.parse import urlparse
from zoneinfo import available_timezones

from fieldrules.errors import ErrorCode

from .base import StringConstraint, ValidationResult

# ============================================================================
# Patterns
# ============================================================================

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
UUID3_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-3[0-9a-fA-F]{3}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")
UUID4_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-4[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$")
UUID5_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-5[0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}$")
URI_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*$")

BASE64_RE = re.compile(r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=|[A-Za-z0-9+/]{4})$")
BASE64URL_RE = re.compile(r"^(?:[A-Za-z0-9_\-]{4})*(?:[A-Za-z0-9_\-]{2}(?:==)?|[A-Za-z0-9_\-]{3}=?)?$")
BASE64RAWURL_RE = re.compile(r"^(?:[A-Za-z0-9_\-]{4})*(?:[A-Za-z0-9_\-]{2,3})?$")
BASE32_RE = re.compile(r"^(?:[A-Z2-7]{8})*(?:[A-Z2-7]{2}={6}|[A-Z2-7]{4}={4}|[A-Z2-7]{5}={3}|[A-Z2-7]{7}=)?$")
JWT_RE = re.compile(r"^[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+$")
_MEDIA_TOKEN = r"[a-zA-Z0-9!#$&^_.+\-]+"
DATAURI_RE = re.compile(
    rf"^data:(?:{_MEDIA_TOKEN}/{_MEDIA_TOKEN})?(?:;{_MEDIA_TOKEN}={_MEDIA_TOKEN})*(?:;base64)?,.*$", re.DOTALL)

_BYTE = r"(?:25[0-5]|2[0-4]\d|1\d\d|[1-9]?\d)"
_PCT = r"(?:100|[1-9]?\d)%"
_ALPHA = r"(?:0|1|0?\.\d+|1\.0+)"
_HUE = r"(?:360|3[0-5]\d|[12]\d\d|[1-9]?\d)"
HEXCOLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
RGB_RE = re.compile(rf"^rgb\(\s*(?:{_BYTE}\s*,\s*{_BYTE}\s*,\s*{_BYTE}|{_PCT}\s*,\s*{_PCT}\s*,\s*{_PCT})\s*\)$")
RGBA_RE = re.compile(
    rf"^rgba\(\s*(?:{_BYTE}\s*,\s*{_BYTE}\s*,\s*{_BYTE}|{_PCT}\s*,\s*{_PCT}\s*,\s*{_PCT})\s*,\s*{_ALPHA}\s*\)$")
HSL_RE = re.compile(rf"^hsl\(\s*{_HUE}\s*,\s*{_PCT}\s*,\s*{_PCT}\s*\)$")
HSLA_RE = re.compile(rf"^hsla\(\s*{_HUE}\s*,\s*{_PCT}\s*,\s*{_PCT}\s*,\s*{_ALPHA}\s*\)$")


def _matches(pattern: re.Pattern) -> Callable[[str], bool]:
    return lambda value: pattern.fullmatch(value) is not None


# ============================================================================
# Predicates
# ============================================================================

def _is_web_url(value: str, schemes: tuple[str, ...]) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme.lower() in schemes and bool(parsed.hostname)


def is_url(value: str) -> bool: return _is_web_url(value, ("http", "https"))


def is_http_url(value: str) -> bool: return _is_web_url(value, ("http",))


def is_https_url(value: str) -> bool: return _is_web_url(value, ("https",))


def is_uri(value: str) -> bool:
    """Any scheme followed by an authority or path."""
    scheme, sep, rest = value.partition(":")
    return bool(sep) and bool(rest) and URI_SCHEME_RE.match(scheme) is not None and not any(c.isspace() for c in value)


def is_ip(value: str) -> bool:
    try:
        ip_address(value)
    except ValueError:
        return False
    return True


def is_ipv4(value: str) -> bool:
    try:
        IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    try:
        IPv6Address(value)
    except ValueError:
        return False
    return True


def is_json(value: str) -> bool:
    try:
        json.loads(value)
    except ValueError:
        return False
    return True


@lru_cache(maxsize=1)
def _timezones() -> frozenset[str]:
    return frozenset(available_timezones()) | {"UTC"}


def is_timezone(value: str) -> bool: return value in _timezones()


# ============================================================================
# Format Constraint
# ============================================================================

@dataclass(frozen=True, slots=True)
class FormatSpec:
    predicate: Callable[[str], bool]
    message: str
    code: ErrorCode


FORMATS: dict[str, FormatSpec] = {
    "email": FormatSpec(_matches(EMAIL_RE), "must be a valid email address", ErrorCode.E2001_INVALID_EMAIL),
    "url": FormatSpec(is_url, "must be a valid URL (http or https)", ErrorCode.E2002_INVALID_URL),
    "http_url": FormatSpec(is_http_url, "must be a valid HTTP URL", ErrorCode.E2002_INVALID_URL),
    "https_url": FormatSpec(is_https_url, "must be a valid HTTPS URL", ErrorCode.E2002_INVALID_URL),
    "uri": FormatSpec(is_uri, "must be a valid URI", ErrorCode.E2002_INVALID_URL),
    "uuid": FormatSpec(_matches(UUID_RE), "must be a valid UUID", ErrorCode.E2003_INVALID_UUID),
    "uuid3": FormatSpec(_matches(UUID3_RE), "must be a valid version 3 UUID", ErrorCode.E2003_INVALID_UUID),
    "uuid4": FormatSpec(_matches(UUID4_RE), "must be a valid version 4 UUID", ErrorCode.E2003_INVALID_UUID),
    "uuid5": FormatSpec(_matches(UUID5_RE), "must be a valid version 5 UUID", ErrorCode.E2003_INVALID_UUID),
    "ip": FormatSpec(is_ip, "must be a valid IP address", ErrorCode.E2004_INVALID_IP),
    "ipv4": FormatSpec(is_ipv4, "must be a valid IPv4 address", ErrorCode.E2005_INVALID_IPV4),
    "ipv6": FormatSpec(is_ipv6, "must be a valid IPv6 address", ErrorCode.E2006_INVALID_IPV6),
    "base64": FormatSpec(_matches(BASE64_RE), "must be valid base64", ErrorCode.E2010_INVALID_BASE64),
    "base64url": FormatSpec(_matches(BASE64URL_RE), "must be valid base64url", ErrorCode.E2011_INVALID_BASE64URL),
    "base64rawurl": FormatSpec(_matches(BASE64RAWURL_RE), "must be valid unpadded base64url",
        ErrorCode.E2012_INVALID_BASE64RAWURL),
    "base32": FormatSpec(_matches(BASE32_RE), "must be valid base32", ErrorCode.E2013_INVALID_BASE32),
    "json": FormatSpec(is_json, "must be valid JSON", ErrorCode.E2014_INVALID_JSON),
    "jwt": FormatSpec(_matches(JWT_RE), "must be a valid JWT", ErrorCode.E2015_INVALID_JWT),
    "datauri": FormatSpec(_matches(DATAURI_RE), "must be a valid data URI", ErrorCode.E2016_INVALID_DATAURI),
    "timezone": FormatSpec(is_timezone, "must be a valid IANA timezone", ErrorCode.E2020_INVALID_TIMEZONE),
    "hexcolor": FormatSpec(_matches(HEXCOLOR_RE), "must be a valid hex color", ErrorCode.E2030_INVALID_COLOR),
    "rgb": FormatSpec(_matches(RGB_RE), "must be a valid rgb color", ErrorCode.E2030_INVALID_COLOR),
    "rgba": FormatSpec(_matches(RGBA_RE), "must be a valid rgba color", ErrorCode.E2030_INVALID_COLOR),
    "hsl": FormatSpec(_matches(HSL_RE), "must be a valid hsl color", ErrorCode.E2030_INVALID_COLOR),
    "hsla": FormatSpec(_matches(HSLA_RE), "must be a valid hsla color", ErrorCode.E2030_INVALID_COLOR),
}


@dataclass(frozen=True, slots=True)
class Format(StringConstraint):
    """Named format predicate over a string."""
    name: str
    spec: FormatSpec

    @property
    def constraint_name(self) -> str: return self.name

    def check(self, value: str) -> ValidationResult:
        if self.spec.predicate(value): return ValidationResult.valid()
        return ValidationResult.invalid(self.spec.message, self.spec.code, constraint=self.name, actual=value)
