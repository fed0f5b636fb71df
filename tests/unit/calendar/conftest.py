"""Shared fixtures for Google Calendar unit tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from chronos.models.provider import ProviderConfig
from tests.fakes import make_config, make_credentials


@pytest.fixture()
def provider_config() -> ProviderConfig:
    return make_config()


@pytest.fixture()
def mock_credentials() -> MagicMock:
    """Return a mock Credentials object that reports as valid."""
    return make_credentials()


@pytest.fixture()
def mock_expired_credentials() -> MagicMock:
    """Return a mock Credentials object that is expired but has a refresh token."""
    return make_credentials(valid=False)


@pytest.fixture()
def tmp_token_file(tmp_path: Path) -> Path:
    """Return a path for token.json in a temp directory (file does not exist yet)."""
    return tmp_path / "token.json"


@pytest.fixture()
def vancouver() -> ZoneInfo:
    return ZoneInfo("America/Vancouver")
