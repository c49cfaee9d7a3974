"""Shared pytest configuration and fixtures for the display agent test suite."""

import sys
from pathlib import Path

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "sway: mark test as requiring a running sway session"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-sway",
        action="store_true",
        default=False,
        help="Run tests that talk to a live sway session",
    )


def pytest_collection_modifyitems(config, items):
    """Skip sway tests unless --run-sway is specified."""
    if config.getoption("--run-sway"):
        return

    skip_sway = pytest.mark.skip(reason="Need --run-sway option to run")
    for item in items:
        if "sway" in item.keywords:
            item.add_marker(skip_sway)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT
