"""Tests for declaration parsing."""

from __future__ import annotations

from fieldrules.validation.declarations import (
    Declaration,
    parse_declaration,
    parse_declaration_sections,
    split_entry,
)


# ---------------------------------------------------------------------------
# parse_declaration
# ---------------------------------------------------------------------------


def test_whitespace_is_trimmed_around_keys_values_and_separators():
    """Spaced and compact forms parse to the same pairs."""
    spaced = parse_declaration("min = 5 , max = 10")
    compact = parse_declaration("min=5,max=10")
    assert spaced == compact
    assert spaced.as_dict() == {"min": "5", "max": "10"}


def test_bare_keys_have_empty_values():
    decl = parse_declaration("required,email")
    assert decl.items() == (("required", ""), ("email", ""))


def test_declaration_order_is_preserved():
    decl = parse_declaration("email,required,min=3,max=9")
    assert decl.keys() == ["email", "required", "min", "max"]


def test_duplicate_key_last_value_wins():
    """A repeated key keeps its first position and its last value."""
    decl = parse_declaration("min=1,max=9,min=3")
    assert decl.items() == (("min", "3"), ("max", "9"))


def test_empty_entries_are_ignored():
    decl = parse_declaration("required,, ,email,")
    assert decl.keys() == ["required", "email"]


def test_empty_declaration_is_empty_not_absent():
    """Blank text yields an empty Declaration, never None."""
    for text in ("", "   ", " , ,"):
        decl = parse_declaration(text)
        assert decl is not None
        assert isinstance(decl, Declaration)
        assert len(decl) == 0
        assert not decl


def test_value_keeps_everything_after_first_equals():
    decl = parse_declaration("regexp=^a=b$")
    assert decl.get("regexp") == "^a=b$"


def test_colon_syntax_when_no_equals():
    decl = parse_declaration("exclude:response|log")
    assert decl.get("exclude") == "response|log"


def test_equals_takes_precedence_over_colon():
    decl = parse_declaration("required_if=Status:active")
    assert decl.get("required_if") == "Status:active"


def test_or_expression_is_stored_whole():
    decl = parse_declaration("hexcolor|rgb|rgba")
    assert decl.keys() == ["hexcolor|rgb|rgba"]
    assert decl.get("hexcolor|rgb|rgba") == ""


def test_or_expression_with_parameterised_alternative():
    key, value = split_entry("hexcolor|len=4")
    assert key == "hexcolor|len=4"
    assert value == ""


def test_oneof_keeps_spaces_in_value():
    decl = parse_declaration("oneof=admin user guest")
    assert decl.get("oneof") == "admin user guest"


def test_contains_and_missing_lookup():
    decl = parse_declaration("required")
    assert "required" in decl
    assert "email" not in decl
    assert decl.get("email") is None


# ---------------------------------------------------------------------------
# parse_declaration_sections
# ---------------------------------------------------------------------------


def test_sections_without_dive():
    parsed = parse_declaration_sections("min=3,max=5")
    assert not parsed.dive
    assert parsed.field_level.as_dict() == {"min": "3", "max": "5"}
    assert not parsed.element_level
    assert not parsed.key_level


def test_sections_split_on_dive():
    parsed = parse_declaration_sections("min=1,dive,email")
    assert parsed.dive
    assert parsed.field_level.keys() == ["min"]
    assert parsed.element_level.keys() == ["email"]


def test_sections_with_keys_block():
    parsed = parse_declaration_sections("dive,keys,min=2,endkeys,required")
    assert parsed.key_level.as_dict() == {"min": "2"}
    assert parsed.element_level.keys() == ["required"]
    assert not parsed.is_malformed


def test_keys_outside_dive_is_flagged():
    parsed = parse_declaration_sections("keys,min=2,endkeys")
    assert parsed.keys_outside_dive
    assert parsed.is_malformed


def test_endkeys_without_keys_is_flagged():
    parsed = parse_declaration_sections("dive,endkeys,email")
    assert parsed.endkeys_without_keys


def test_unclosed_keys_is_flagged():
    parsed = parse_declaration_sections("dive,keys,min=2")
    assert parsed.unclosed_keys
    assert parsed.is_malformed
