"""Pytest configuration and shared fixtures for all tests."""

import logging
from pathlib import Path

import pytest

TEST_DATA_DIR = Path(__file__).parent / "test-data"


@pytest.fixture
def test_data_dir() -> Path:
    """Directory holding the fixture files."""
    return TEST_DATA_DIR


@pytest.fixture(autouse=True)
def propagate_lockscan_logs():
    """Let caplog see records from the lockscan logger.

    The package logger writes to its own stderr handler; propagation is
    enabled for the duration of each test so tests can assert on log output.
    """
    logger = logging.getLogger("lockscan")
    previous = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = previous
