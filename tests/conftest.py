"""Shared fixtures for the fieldrules test-suite."""

from __future__ import annotations

import pytest

from fieldrules.logging import configure_logging
from fieldrules.validation import ConstraintRegistry, PlanCache


@pytest.fixture(scope="session", autouse=True)
def _quiet_logging():
    """Keep structlog output to warnings and above during tests."""
    configure_logging(level="WARNING", json_logs=False)


@pytest.fixture
def registry() -> ConstraintRegistry:
    """A fresh, empty constraint registry."""
    return ConstraintRegistry()


@pytest.fixture
def plan_cache() -> PlanCache:
    """An isolated plan cache, independent of the process-wide ones."""
    return PlanCache()
