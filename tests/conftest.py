# ruff: noqa: E402, I001
"""Pytest configuration for test isolation.

Settings are read from the process environment and the database layer caches
one engine per URL. Both would leak between tests, so every test starts with
the package's environment variables cleared, logging detached and no cached
engines.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make the workspace packages importable without an install.
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from db.client import dispose_engines
from spending_analysis.logging_setup import reset_logging

_ENV_VARS = (
    "SPENDING_ANALYSIS_NORMALIZER",
    "SPENDING_ANALYSIS_MODEL",
    "SPENDING_ANALYSIS_MAX_TOKENS",
    "SPENDING_ANALYSIS_CURRENCY_PREFIX",
    "SPENDING_ANALYSIS_LOG_LEVEL",
    "ANTHROPIC_API_KEY",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the working directory.
    monkeypatch.chdir(tmp_path)
    reset_logging()
    yield
    reset_logging()
    dispose_engines()
