"""Configuration for pytest testing framework."""

import os

import pytest
from _pytest.python import Function


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "external: mark test as requiring a live database server"
    )


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add command-line options."""
    parser.addoption(
        "--run-external",
        action="store_true",
        default=False,
        help="Run tests that require live database servers",
    )


def pytest_runtest_setup(item: Function) -> None:
    """Skip external tests unless requested."""
    if item.get_closest_marker("external"):
        if not item.config.getoption("--run-external", default=False):
            pytest.skip("Skipping external integration test. Use --run-external to run.")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep STOREBRIDGE_* variables from the shell out of settings under test."""
    for name in list(os.environ):
        if name.startswith("STOREBRIDGE_"):
            monkeypatch.delenv(name)
