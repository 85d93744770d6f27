"""Statement text → :class:`~spending_analysis.models.Transaction` normalizers.

Two interchangeable strategies implement :class:`StatementNormalizer`:

- :class:`CsvStatementNormalizer` parses the bank export directly. The layout
  is positional (date, description, category, type, value) with a header row.
  Parsing follows RFC 4180 quoting via the stdlib :mod:`csv` module.
- :class:`LlmStatementNormalizer` sends the raw text to the Anthropic Messages
  API, reassembles the streamed reply and validates every element.

Callers obtain one through :func:`get_normalizer` and only ever call
``normalize(raw_text)``.
"""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Iterator
from decimal import Decimal, InvalidOperation
from io import StringIO
from os import PathLike
from pathlib import Path
from typing import Any, Protocol

from anthropic import Anthropic, APIError
from pydantic import ValidationError

from . import prompting
from .config import DEFAULT_CURRENCY_PREFIX, DEFAULT_MAX_TOKENS, DEFAULT_MODEL, Settings
from .logging_setup import get_logger
from .models import LlmTransactionRecord, Transaction
from .periods import parse_period

MIN_FIELDS = 5

_logger = get_logger("spending_analysis.normalizers")


class CompletionParseError(ValueError):
    """The completion text was not a JSON array of valid transactions."""


class EmptyCompletionError(CompletionParseError):
    """The completion stream ended without producing any text."""


class CompletionServiceError(RuntimeError):
    """The text-completion service failed (network, auth, rate limit, ...)."""


class StatementNormalizer(Protocol):
    def normalize(self, raw_text: str) -> list[Transaction]: ...


# ---------------------------------------------------------------------------
# Direct CSV parsing
# ---------------------------------------------------------------------------


def parse_value(raw: str, *, currency_prefix: str = DEFAULT_CURRENCY_PREFIX) -> Decimal:
    """Parse a statement amount such as ``"R$ 1.234,56"`` into a ``Decimal``.

    The currency prefix, sign and surrounding parentheses may appear in any
    order. When both separators are present, the rightmost one is the decimal
    separator; a lone comma is a decimal comma. The absolute value is
    returned because direction is carried by the ``type`` column.
    """

    s = (raw or "").strip()
    if not s:
        raise ValueError("value is empty")

    while True:
        changed = False
        if s[0] in "+-":
            s = s[1:].lstrip()
            changed = True
        if currency_prefix and s.startswith(currency_prefix):
            s = s[len(currency_prefix) :].lstrip()
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            s = s[1:-1].strip()
            changed = True
        if not changed or not s:
            break

    s = s.replace(" ", "").replace("\u00a0", "")
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".")

    try:
        d = Decimal(s)
    except InvalidOperation as exc:
        raise ValueError(f"invalid value: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"invalid value: {raw!r}")
    return abs(d)


def _iter_rows(csv_text: str) -> Iterator[list[str]]:
    with StringIO(csv_text) as f:
        for row in csv.reader(f, delimiter=",", quotechar='"'):
            if not any(cell.strip() for cell in row):
                continue
            yield row


class CsvStatementNormalizer:
    """Positional parser for the bank's five-column CSV export.

    Rows with fewer than five fields are dropped silently. Rows whose value
    cannot be parsed are dropped with a warning.
    """

    def __init__(self, *, currency_prefix: str = DEFAULT_CURRENCY_PREFIX) -> None:
        self.currency_prefix = currency_prefix

    def normalize(self, raw_text: str) -> list[Transaction]:
        rows = _iter_rows(raw_text.lstrip("\ufeff"))
        next(rows, None)  # header

        out: list[Transaction] = []
        short = invalid = 0
        for line_no, row in enumerate(rows, start=2):
            if len(row) < MIN_FIELDS:
                short += 1
                _logger.debug("skipping row %d: %d fields", line_no, len(row))
                continue
            try:
                value = parse_value(row[4], currency_prefix=self.currency_prefix)
            except ValueError as exc:
                invalid += 1
                _logger.warning("skipping row %d: %s", line_no, exc)
                continue
            out.append(
                Transaction(
                    date=row[0].strip(),
                    description=row[1].strip(),
                    category=row[2].strip(),
                    type=row[3].strip(),
                    value=value,
                )
            )

        _logger.info(
            "normalized %d transactions (skipped %d short rows, %d invalid values)",
            len(out),
            short,
            invalid,
        )
        return out

    def normalize_file(self, path: str | PathLike[str]) -> list[Transaction]:
        text = Path(path).read_text(encoding="utf-8-sig")
        return self.normalize(text)

    def normalize_period(
        self, period: str, *, directory: str | PathLike[str]
    ) -> list[Transaction]:
        """Normalize the statement stored as ``<directory>/<period>.csv``.

        Raises ``FileNotFoundError`` when no statement exists for ``period``.
        """

        parse_period(period)
        return self.normalize_file(Path(directory) / f"{period}.csv")


# ---------------------------------------------------------------------------
# LLM-backed normalization
# ---------------------------------------------------------------------------


def collect_text(events: Iterable[Any]) -> str:
    """Concatenate ``text_delta`` fragments from a Messages API event stream."""

    parts: list[str] = []
    for event in events:
        if getattr(event, "type", None) != "content_block_delta":
            continue
        delta = getattr(event, "delta", None)
        if getattr(delta, "type", None) == "text_delta":
            parts.append(delta.text)
    return "".join(parts)


def parse_completion(text: str) -> list[Transaction]:
    """Validate the accumulated completion and convert it to transactions."""

    if not text or not text.strip():
        raise EmptyCompletionError("completion service returned no text")
    try:
        items = prompting.decode_json_array(text)
    except json.JSONDecodeError as exc:
        raise CompletionParseError(f"completion is not valid JSON: {exc}") from exc
    except TypeError as exc:
        raise CompletionParseError(str(exc)) from exc

    out: list[Transaction] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise CompletionParseError(f"element {i} is not an object")
        try:
            out.append(LlmTransactionRecord.model_validate(item).to_transaction())
        except ValidationError as exc:
            raise CompletionParseError(f"element {i} is invalid: {exc}") from exc
    return out


class LlmStatementNormalizer:
    """Normalize statements by delegating to an Anthropic model.

    Parameters
    ----------
    client:
        Optional pre-built client (tests inject a stub). When omitted, one is
        created lazily from ``api_key``.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("ANTHROPIC_API_KEY is required for LLM normalization")
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def complete(self, raw_text: str) -> str:
        """Run the streamed completion and return the concatenated text."""

        client = self._get_client()
        try:
            stream = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                stream=True,
                messages=[{"role": "user", "content": prompting.build_user_content(raw_text)}],
            )
            text = collect_text(stream)
        except APIError as exc:
            raise CompletionServiceError(f"completion service failed: {exc}") from exc
        _logger.debug("completion text: %s", text)
        return text

    def normalize(self, raw_text: str) -> list[Transaction]:
        text = self.complete(raw_text)
        transactions = parse_completion(text)
        _logger.info("model returned %d transactions", len(transactions))
        return transactions


def get_normalizer(settings: Settings | None = None, *, client: Any | None = None) -> StatementNormalizer:
    """Return the strategy selected by ``settings.normalizer``."""

    s = settings or Settings.from_env()
    if s.normalizer == "csv":
        return CsvStatementNormalizer(currency_prefix=s.currency_prefix)
    if s.normalizer == "llm":
        return LlmStatementNormalizer(
            api_key=s.anthropic_api_key,
            model=s.model,
            max_tokens=s.max_tokens,
            client=client,
        )
    raise ValueError(f"unknown normalizer: {s.normalizer!r}")


__all__ = [
    "CompletionParseError",
    "CompletionServiceError",
    "CsvStatementNormalizer",
    "EmptyCompletionError",
    "LlmStatementNormalizer",
    "StatementNormalizer",
    "collect_text",
    "get_normalizer",
    "parse_completion",
    "parse_value",
]
