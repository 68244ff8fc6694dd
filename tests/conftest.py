"""Shared fixtures for the KinGraph test suite."""

from pathlib import Path

import pytest
import structlog

FIXTURES = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES / name).read_text(encoding="utf-8")


@pytest.fixture
def table_html() -> str:
    return load_fixture("register_table.html")


@pytest.fixture
def narrative_html() -> str:
    return load_fixture("narrative.html")


@pytest.fixture
def linked_tree_html() -> str:
    return load_fixture("linked_tree.html")


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI runs reconfigure structlog against captured streams; undo that after each test."""
    yield
    structlog.reset_defaults()
