"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from core.constants import SURROGATE_PREFIX_ENV_VAR, TRACE_ENV_VAR


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    src_path = Path(__file__).resolve().parent.parent / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear Recordset environment variables so settings start from defaults."""
    monkeypatch.delenv(TRACE_ENV_VAR, raising=False)
    monkeypatch.delenv(SURROGATE_PREFIX_ENV_VAR, raising=False)
