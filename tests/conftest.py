"""
Pytest configuration and shared fixtures for all tailcallopt tests.

Parser and optimizer instances are stateless between calls, so tests share
them through tests/test_utils.py. Interpreters hold global bindings and are
created fresh per test.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from tailcallopt.runtime.interpreter import Interpreter


@pytest.fixture
def interpreter():
    """Fresh interpreter per test; global bindings never leak between tests."""
    return Interpreter()


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: optimizes and evaluates whole programs end to end"
    )
