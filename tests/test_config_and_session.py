from __future__ import annotations

import io
import logging

import pytest

from spending_analysis.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, Settings
from spending_analysis.logging_setup import configure_logging, get_logger, resolve_level
from spending_analysis.session import DashboardSession, UserProfile


def test_settings_defaults():
    s = Settings.from_env({})

    assert s.normalizer == "csv"
    assert s.model == DEFAULT_MODEL
    assert s.max_tokens == DEFAULT_MAX_TOKENS
    assert s.currency_prefix == "R$"
    assert s.anthropic_api_key is None
    assert s.database_url is None


def test_settings_from_environment():
    s = Settings.from_env(
        {
            "SPENDING_ANALYSIS_NORMALIZER": " LLM ",
            "ANTHROPIC_API_KEY": "sk-x",
            "SPENDING_ANALYSIS_MODEL": "claude-test",
            "SPENDING_ANALYSIS_MAX_TOKENS": "800",
            "SPENDING_ANALYSIS_CURRENCY_PREFIX": "",
            "DATABASE_URL": "sqlite:///x.db",
        }
    )

    assert s.normalizer == "llm"
    assert s.anthropic_api_key == "sk-x"
    assert s.model == "claude-test"
    assert s.max_tokens == 800
    assert s.currency_prefix == ""
    assert s.database_url == "sqlite:///x.db"


@pytest.mark.parametrize(
    "env",
    [
        {"SPENDING_ANALYSIS_NORMALIZER": "pdf"},
        {"SPENDING_ANALYSIS_MAX_TOKENS": "lots"},
        {"SPENDING_ANALYSIS_MAX_TOKENS": "0"},
    ],
)
def test_invalid_settings_are_rejected(env: dict[str, str]):
    with pytest.raises(ValueError):
        Settings.from_env(env)


def test_settings_read_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SPENDING_ANALYSIS_MAX_TOKENS", "42")

    assert Settings.from_env().max_tokens == 42


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("15") == 15
    assert resolve_level("nonsense") == logging.INFO


def test_configure_logging_installs_one_handler():
    stream = io.StringIO()

    logger = configure_logging("INFO", stream=stream)
    again = configure_logging("DEBUG")
    get_logger("spending_analysis.tests").info("hello %s", "there")
    get_logger("spending_analysis.tests").debug("hidden")

    assert logger is again
    assert len([h for h in logger.handlers if isinstance(h, logging.StreamHandler)]) == 1
    out = stream.getvalue()
    assert "spending_analysis.tests: hello there" in out
    assert "hidden" not in out


def test_session_requires_sign_in():
    with pytest.raises(PermissionError):
        DashboardSession().require_user()

    user = UserProfile(uid="u1", email="a@example.com", name="A")
    assert DashboardSession(user=user).require_user() is user


def test_session_operation_tracks_loading_and_error():
    state = DashboardSession()

    with state.operation():
        assert state.loading is True
        with state.operation():
            assert state.loading is True
        assert state.loading is True
    assert state.loading is False
    assert state.error is None

    with pytest.raises(RuntimeError):
        with state.operation():
            raise RuntimeError("upload failed")
    assert state.loading is False
    assert state.error == "upload failed"

    with state.operation():
        pass
    assert state.error is None
