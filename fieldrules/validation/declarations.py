"""Declaration Parsing

Turns one field's raw declaration text into an ordered set of (key, value)
pairs. Parsing is tolerant and never fails:

    parse_declaration("required, min = 5 ,max=10")
    -> Declaration(("required", ""), ("min", "5"), ("max", "10"))

Entries are `key`, `key=value` or `key:value`. An entry whose key part
contains `|` is an OR expression and is stored whole under its own text.
The `dive`, `keys` and `endkeys` markers split a declaration into
field-level, key-level and element-level sections.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

DIVE = "dive"
KEYS = "keys"
ENDKEYS = "endkeys"
OR_SEPARATOR = "|"


@dataclass(frozen=True, slots=True)
class Declaration:
    """Ordered, immutable key/value pairs of one declaration section.

    Duplicate keys keep their first position and their last value.
    """
    pairs: tuple[tuple[str, str], ...] = ()

    @classmethod
    def from_entries(cls, entries: list[tuple[str, str]]) -> Declaration:
        merged: dict[str, str] = {}
        for key, value in entries: merged[key] = value
        return cls(tuple(merged.items()))

    def get(self, key: str, default: str | None = None) -> str | None:
        for k, v in self.pairs:
            if k == key: return v
        return default

    def keys(self) -> list[str]: return [k for k, _ in self.pairs]

    def items(self) -> tuple[tuple[str, str], ...]: return self.pairs

    def as_dict(self) -> dict[str, str]: return dict(self.pairs)

    def __contains__(self, key: object) -> bool: return any(k == key for k, _ in self.pairs)

    def __iter__(self) -> Iterator[str]: return iter(self.keys())

    def __len__(self) -> int: return len(self.pairs)

    def __bool__(self) -> bool: return bool(self.pairs)


@dataclass(frozen=True, slots=True)
class ParsedDeclaration:
    """A declaration split on the dive/keys/endkeys markers."""
    field_level: Declaration = field(default_factory=Declaration)
    key_level: Declaration = field(default_factory=Declaration)
    element_level: Declaration = field(default_factory=Declaration)
    dive: bool = False
    keys_outside_dive: bool = False
    endkeys_without_keys: bool = False
    unclosed_keys: bool = False

    @property
    def is_malformed(self) -> bool:
        return self.keys_outside_dive or self.endkeys_without_keys or self.unclosed_keys


def is_or_expression(key: str) -> bool:
    return OR_SEPARATOR in key


def split_entry(entry: str) -> tuple[str, str]:
    """Split a single trimmed entry into (key, value).

    `=` takes precedence over `:`; an OR expression is kept whole.
    """
    sep_at = entry.find("=")
    if sep_at == -1: sep_at = entry.find(":")
    if sep_at == -1: return entry, ""
    key = entry[:sep_at].strip()
    if OR_SEPARATOR in key: return entry, ""
    return key, entry[sep_at + 1:].strip()


def _entries(text: str | None) -> Iterator[str]:
    for part in (text or "").split(","):
        part = part.strip()
        if part: yield part


def parse_declaration(text: str | None) -> Declaration:
    """Parse declaration text into an ordered Declaration.

    Empty or whitespace-only text yields an empty Declaration. Callers
    represent "no declaration at all" with None before reaching here.
    """
    return Declaration.from_entries([split_entry(entry) for entry in _entries(text)])


def parse_declaration_sections(text: str | None) -> ParsedDeclaration:
    """Parse declaration text into field, key and element sections.

    Structural misuse of the markers is recorded as flags rather than raised;
    the plan builder decides whether a flag is fatal for the field's type.
    """
    sections: dict[str, list[tuple[str, str]]] = {"field": [], "keys": [], "elements": []}
    state = "field"
    dive = keys_seen = endkeys_seen = False
    keys_outside_dive = endkeys_without_keys = False

    for entry in _entries(text):
        if entry == DIVE:
            if state == "field":
                dive, state = True, "elements"
            continue
        if entry == KEYS:
            if not dive or keys_seen:
                keys_outside_dive = True
                continue
            keys_seen, state = True, "keys"
            continue
        if entry == ENDKEYS:
            if not keys_seen:
                endkeys_without_keys = True
                continue
            endkeys_seen, state = True, "elements"
            continue
        sections[state].append(split_entry(entry))

    return ParsedDeclaration(
        field_level=Declaration.from_entries(sections["field"]),
        key_level=Declaration.from_entries(sections["keys"]),
        element_level=Declaration.from_entries(sections["elements"]),
        dive=dive,
        keys_outside_dive=keys_outside_dive,
        endkeys_without_keys=endkeys_without_keys,
        unclosed_keys=keys_seen and not endkeys_seen,
    )
