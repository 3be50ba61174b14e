"""Pytest configuration and fixtures for testbundler tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from testbundler.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only logger for the whole test session."""
    test_log_root = Path(tempfile.gettempdir()) / "testbundler-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def mock_argv():
    """Save and restore sys.argv."""
    original = sys.argv.copy()
    sys.argv = ["testbundler"]
    yield
    sys.argv = original


@pytest.fixture
def fixtures_dir():
    """Path to the shared test fixtures directory."""
    return Path(__file__).parent / "fixtures"
