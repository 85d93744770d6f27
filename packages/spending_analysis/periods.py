"""Period keys (``YYYY-MM``): parsing, labels, ordering and grouping."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from datetime import date

from .models import Transaction, TransactionsByPeriod

PERIOD_PATTERN = re.compile(r"\d{4}-\d{2}")

_MONTHS_EN: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_MONTHS_PT: tuple[str, ...] = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)


def parse_period(key: str) -> tuple[int, int]:
    """Return ``(year, month)`` for a ``YYYY-MM`` key."""

    if not isinstance(key, str) or not PERIOD_PATTERN.fullmatch(key.strip()):
        raise ValueError(f"invalid period key: {key!r} (expected YYYY-MM)")
    year_s, month_s = key.strip().split("-")
    month = int(month_s)
    if not 1 <= month <= 12:
        raise ValueError(f"invalid month in period key: {key!r}")
    return int(year_s), month


def format_period(key: str, locale: str = "en") -> str:
    """Human label for a period: ``"January 2024"`` or ``"2024 - Janeiro"``."""

    year, month = parse_period(key)
    if locale == "pt":
        return f"{year} - {_MONTHS_PT[month - 1]}"
    if locale == "en":
        return f"{_MONTHS_EN[month - 1]} {year}"
    raise ValueError(f"unsupported locale: {locale!r}")


def sort_periods(keys: Iterable[str]) -> list[str]:
    # Zero-padded keys sort lexicographically; parse anyway to reject junk.
    return sorted(keys, key=parse_period)


def default_selection(keys: Iterable[str], limit: int = 4) -> list[str]:
    """The ``limit`` most recent periods, oldest first."""

    ordered = sort_periods(keys)
    return ordered[-limit:] if limit > 0 else []


def period_from_filename(name: str, *, today: date | None = None) -> str:
    """First ``YYYY-MM`` token in ``name``, else the current month."""

    m = PERIOD_PATTERN.search(name)
    if m:
        return m.group(0)
    return (today or date.today()).strftime("%Y-%m")


def group_by_period(records: Iterable[tuple[str, Transaction]]) -> dict[str, list[Transaction]]:
    grouped: dict[str, list[Transaction]] = {}
    for period, tx in records:
        grouped.setdefault(period, []).append(tx)
    return grouped


def selected_transactions(
    transactions_by_period: TransactionsByPeriod | None, selected: Sequence[str]
) -> list[Transaction]:
    """Flatten the selected periods in selection order; unknown keys are skipped."""

    if not transactions_by_period:
        return []
    out: list[Transaction] = []
    for period in selected:
        out.extend(transactions_by_period.get(period) or ())
    return out


def years_index(keys: Iterable[str]) -> Mapping[str, list[str]]:
    """Group period keys by year, newest year first (period picker layout)."""

    by_year: dict[str, list[str]] = {}
    for key in sort_periods(keys):
        by_year.setdefault(key[:4], []).append(key)
    return dict(sorted(by_year.items(), key=lambda kv: kv[0], reverse=True))


__all__ = [
    "PERIOD_PATTERN",
    "default_selection",
    "format_period",
    "group_by_period",
    "parse_period",
    "period_from_filename",
    "selected_transactions",
    "sort_periods",
    "years_index",
]
