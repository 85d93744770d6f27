"""Runtime settings read from the environment.

Entrypoints load ``.env`` with ``python-dotenv`` first (override disabled), so
values already exported in the shell win over the file.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

NORMALIZER_STRATEGIES: tuple[str, ...] = ("csv", "llm")

DEFAULT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_MAX_TOKENS = 5000
DEFAULT_CURRENCY_PREFIX = "R$"


@dataclass(frozen=True, slots=True)
class Settings:
    normalizer: str = "csv"
    anthropic_api_key: str | None = None
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    currency_prefix: str = DEFAULT_CURRENCY_PREFIX
    database_url: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        normalizer = (env.get("SPENDING_ANALYSIS_NORMALIZER") or "csv").strip().lower()
        if normalizer not in NORMALIZER_STRATEGIES:
            raise ValueError(
                f"SPENDING_ANALYSIS_NORMALIZER must be one of {NORMALIZER_STRATEGIES}, "
                f"got {normalizer!r}"
            )

        raw_tokens = (env.get("SPENDING_ANALYSIS_MAX_TOKENS") or "").strip()
        try:
            max_tokens = int(raw_tokens) if raw_tokens else DEFAULT_MAX_TOKENS
        except ValueError as exc:
            raise ValueError(
                f"SPENDING_ANALYSIS_MAX_TOKENS must be an integer, got {raw_tokens!r}"
            ) from exc
        if max_tokens <= 0:
            raise ValueError("SPENDING_ANALYSIS_MAX_TOKENS must be positive")

        return cls(
            normalizer=normalizer,
            anthropic_api_key=env.get("ANTHROPIC_API_KEY") or None,
            model=env.get("SPENDING_ANALYSIS_MODEL") or DEFAULT_MODEL,
            max_tokens=max_tokens,
            currency_prefix=env.get("SPENDING_ANALYSIS_CURRENCY_PREFIX", DEFAULT_CURRENCY_PREFIX),
            database_url=env.get("DATABASE_URL") or None,
        )


__all__ = ["NORMALIZER_STRATEGIES", "Settings"]
