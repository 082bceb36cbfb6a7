"""Tests for comparison, compatibility, canonical strings and zero values."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum, IntEnum
from fractions import Fraction

import pytest

from fieldrules.errors import ErrorCode
from fieldrules.validation.compare import (
    canonical_string,
    check_type_compatibility,
    compare,
    is_numeric,
    is_zero_value,
)


class Color(Enum):
    RED = "red"


class Level(IntEnum):
    LOW = 1


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "a, b",
    [
        (1, 2),
        (-5, 3),
        (1.5, 2.25),
        (1, 1.5),
        (Decimal("1.10"), Decimal("1.2")),
        (Decimal("0.5"), 1),
        (Fraction(1, 3), 0.5),
        (2**70, 2**70 + 1),
    ],
)
def test_compare_numeric_ordering(a, b):
    """For a < b: compare(a, b) is -1, compare(b, a) is 1, compare(a, a) is 0."""
    assert compare(a, b) == -1
    assert compare(b, a) == 1
    assert compare(a, a) == 0


def test_compare_strings_lexicographic():
    assert compare("apple", "banana") == -1
    assert compare("b", "a") == 1
    assert compare("same", "same") == 0


def test_compare_none_sorts_lowest():
    assert compare(None, 0) == -1
    assert compare(0, None) == 1
    assert compare(None, None) == 0


def test_compare_booleans():
    assert compare(False, True) == -1
    assert compare(True, True) == 0


def test_compare_times_chronologically():
    earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
    later = earlier + timedelta(hours=1)
    assert compare(earlier, later) == -1
    assert compare(date(2024, 5, 1), date(2024, 4, 1)) == 1


def test_compare_unordered_pairs_are_equal():
    assert compare([1], [2]) == 0
    assert compare("1", 1) == 0


# ---------------------------------------------------------------------------
# check_type_compatibility
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "a, b",
    [
        (1, 2.5),
        (Decimal("1"), 3),
        ("a", "b"),
        (True, False),
        (None, None),
        (date(2024, 1, 1), date(2024, 1, 2)),
        (Level.LOW, 3),
    ],
)
def test_compatible_pairs(a, b):
    assert check_type_compatibility(a, b).is_ok()


def test_none_against_value_is_incompatible():
    result = check_type_compatibility(None, 5)
    assert result.is_err()
    assert result.unwrap_err().code is ErrorCode.E4010_INCOMPATIBLE_TYPES
    assert result.unwrap_err().message == "cannot compare nil with non-nil value"
    assert check_type_compatibility("x", None).is_err()


@pytest.mark.parametrize(
    "a, b",
    [
        ("1", 1),
        (True, 1),
        (datetime(2024, 1, 1), date(2024, 1, 1)),
        ([1], [1]),
        (Color.RED, Color.RED),
    ],
)
def test_incompatible_pairs(a, b):
    result = check_type_compatibility(a, b)
    assert result.is_err()
    assert "cannot compare types" in result.unwrap_err().message


def test_naive_and_aware_datetimes_are_incompatible():
    naive = datetime(2024, 1, 1)
    aware = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert check_type_compatibility(naive, aware).is_err()


# ---------------------------------------------------------------------------
# canonical_string / is_numeric / is_zero_value
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value, expected",
    [
        (42, "42"),
        (-7, "-7"),
        (1.0, "1"),
        (1.5, "1.5"),
        (0.1, "0.1"),
        (1e21, "1000000000000000000000"),
        (1e-7, "0.0000001"),
        (float("inf"), "+Inf"),
        (True, "true"),
        (False, "false"),
        (Decimal("1.50"), "1.5"),
        (Decimal("100"), "100"),
        (Color.RED, "red"),
        (Level.LOW, "1"),
        ("text", "text"),
        (None, ""),
    ],
)
def test_canonical_string(value, expected):
    assert canonical_string(value) == expected


def test_is_numeric_rejects_bool():
    assert is_numeric(3)
    assert is_numeric(2.5)
    assert is_numeric(Decimal("1"))
    assert not is_numeric(True)
    assert not is_numeric("3")


@pytest.mark.parametrize("value", [None, "", 0, 0.0, False, [], {}, set(), Decimal("0")])
def test_zero_values(value):
    assert is_zero_value(value)


@pytest.mark.parametrize("value", ["x", 1, -0.5, True, [0], {"a": 1}, object()])
def test_non_zero_values(value):
    assert not is_zero_value(value)
