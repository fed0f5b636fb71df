"""Shared fixtures for chronos tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

_ENV_VARS = ("CHRONOS_DATA_DIR", "LOG_LEVEL", "TIMEZONE", "GOOGLE_INIT_TIMEOUT")


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set every chronos environment variable to a valid value.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("chronos.config.load_dotenv", lambda *_a, **_kw: None)
    env_vars = {
        "CHRONOS_DATA_DIR": str(tmp_path / "data"),
        "LOG_LEVEL": "INFO",
        "TIMEZONE": "America/Vancouver",
        "GOOGLE_INIT_TIMEOUT": "5",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all chronos-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("chronos.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
