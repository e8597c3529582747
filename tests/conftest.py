"""
pytest configuration for vi_access tests.

Adds src directory to Python path for imports and keeps the test run
independent of the developer's environment.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from vi_access.config.settings import ApiResourceSettings  # noqa: E402
from vi_access.logging.context import clear_log_context  # noqa: E402

# Variables read by the settings and credential loaders
_VI_ENV_VARS = (
    "SUBSCRIPTION_ID",
    "VI_RESOURCE_GROUP",
    "VI_ACCOUNT_NAME",
    "API_VERSION",
    "AZURE_RESOURCE",
    "API_ENDPOINT",
    "DEFAULT_HTTP_CLIENT_NAME",
    "VI_CONFIG_FILE",
    "VI_MAX_RETRY_ATTEMPTS",
    "VI_RETRY_BASE_DELAY",
    "VI_HTTP_TIMEOUT",
    "VIDEOINDEXER_TENANT_ID",
    "VIDEOINDEXER_CLIENT_ID",
    "VIDEOINDEXER_CLIENT_SECRET",
    "LOG_LEVEL",
    "LOG_JSON",
    "LOG_DIR",
    "LOG_TO_STDOUT",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Strip Video Indexer variables from the environment for every test."""
    for name in _VI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    clear_log_context()


@pytest.fixture
def api_settings():
    """Fully populated resource settings."""
    return ApiResourceSettings(
        subscription_id="sub-123",
        resource_group="rg-media",
        account_name="vi-account",
    )
