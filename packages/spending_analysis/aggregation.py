"""Period summaries and the cross-period views built on top of them.

Every function here is pure: inputs are read, never mutated, and results are
recomputed from scratch on each call. Sums stay unrounded ``Decimal`` values;
rounding to cents is left to the ``to_dict`` renderers.

Selections are always processed in calendar order. "Most recent" therefore
means the latest period key, regardless of the order the caller picked the
periods in.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any

from .logging_setup import get_logger
from .models import (
    CategoryShare,
    DashboardOverview,
    DashboardSummary,
    NoData,
    PeriodDelta,
    PeriodResult,
    PeriodSummary,
    Transaction,
    TransactionExtreme,
    TransactionsByPeriod,
    UnavailablePeriod,
    money,
)
from .periods import format_period, parse_period, selected_transactions, sort_periods
from .rides import summarize_rides

_logger = get_logger("spending_analysis.aggregation")

ZERO = Decimal("0")


def total_of(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.value for t in transactions), ZERO)


def category_sums(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    sums: dict[str, Decimal] = {}
    for t in transactions:
        sums[t.category] = sums.get(t.category, ZERO) + t.value
    return sums


def average_of(total: Decimal, count: int) -> Decimal:
    return total / count if count else ZERO


def summarize_period(
    period: str, transactions: Sequence[Transaction], *, locale: str = "en"
) -> PeriodResult:
    """Total, category breakdown, count and average for one period.

    An empty ``transactions`` sequence yields an :class:`UnavailablePeriod`
    marker so "no data" stays distinguishable from "zero spending".
    """

    parse_period(period)
    if not transactions:
        return UnavailablePeriod(period=period)
    total = total_of(transactions)
    count = len(transactions)
    sums = category_sums(transactions)
    extremes = transaction_extremes(transactions)
    return PeriodSummary(
        period=period,
        label=format_period(period, locale),
        total=total,
        category_sums=sums,
        count=count,
        average=average_of(total, count),
        top_categories=tuple(top_categories(sums, total)),
        largest=extremes[0] if extremes else None,
        smallest=extremes[1] if extremes else None,
    )


def summarize_periods(
    transactions_by_period: TransactionsByPeriod | None,
    selected: Iterable[str],
    *,
    locale: str = "en",
) -> list[PeriodResult]:
    """One result per selected period, oldest first (see :func:`summarize_period`)."""

    data = transactions_by_period or {}
    return [
        summarize_period(period, data.get(period) or (), locale=locale)
        for period in sort_periods(dict.fromkeys(selected))
    ]


def available(results: Iterable[PeriodResult]) -> list[PeriodSummary]:
    return [r for r in results if isinstance(r, PeriodSummary)]


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------


def bar_series(summaries: Iterable[PeriodSummary]) -> list[dict[str, Any]]:
    ordered = sorted(summaries, key=lambda s: s.period)
    return [{"period": s.period, "total": money(s.total)} for s in ordered]


def line_series(summaries: Iterable[PeriodSummary]) -> list[dict[str, Any]]:
    ordered = sorted(summaries, key=lambda s: s.period)
    return [{"period": s.period, "avgTransaction": money(s.average)} for s in ordered]


def category_comparison(summaries: Sequence[PeriodSummary]) -> list[dict[str, Any]]:
    """One row per category with one column per period (``0`` where absent).

    Categories appear in first-seen order across the summaries.
    """

    categories: dict[str, None] = {}
    for s in summaries:
        categories.update(dict.fromkeys(s.category_sums))

    rows: list[dict[str, Any]] = []
    for category in categories:
        row: dict[str, Any] = {"category": category}
        for s in summaries:
            row[s.period] = money(s.category_sums.get(category, ZERO))
        rows.append(row)
    return rows


def pie_breakdown(summaries: Sequence[PeriodSummary]) -> list[dict[str, Any]]:
    """Category split of the most recent period by calendar value."""

    if not summaries:
        return []
    latest = max(summaries, key=lambda s: s.period)
    return [{"name": name, "value": money(value)} for name, value in latest.category_sums.items()]


# ---------------------------------------------------------------------------
# Rankings and extrema
# ---------------------------------------------------------------------------


def top_categories(
    sums: Mapping[str, Decimal], total: Decimal, *, limit: int = 5
) -> list[CategoryShare]:
    ranked = sorted(sums.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [
        CategoryShare(
            category=name,
            amount=amount,
            percentage=(amount / total * 100) if total else None,
        )
        for name, amount in ranked
    ]


def transaction_extremes(
    transactions: Sequence[Transaction],
) -> tuple[TransactionExtreme, TransactionExtreme] | None:
    """``(largest, smallest)``; the first transaction wins ties."""

    if not transactions:
        return None
    largest = max(transactions, key=lambda t: t.value)
    smallest = min(transactions, key=lambda t: t.value)
    return (
        TransactionExtreme(amount=largest.value, category=largest.category),
        TransactionExtreme(amount=smallest.value, category=smallest.category),
    )


def top_expenses(transactions: Iterable[Transaction], *, limit: int = 10) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.value, reverse=True)[:limit]


def period_delta(results: Sequence[PeriodResult]) -> PeriodDelta | None:
    """Change between the last two results when both are available."""

    if len(results) < 2:
        return None
    previous, current = results[-2], results[-1]
    if not isinstance(previous, PeriodSummary) or not isinstance(current, PeriodSummary):
        return None
    difference = current.total - previous.total
    return PeriodDelta(
        current_period=current.label,
        previous_period=previous.label,
        difference=difference,
        percent_change=(difference / previous.total * 100) if previous.total else None,
        increased=difference > 0,
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def build_dashboard_summary(
    transactions_by_period: TransactionsByPeriod | None,
    selected: Sequence[str] | None,
    *,
    locale: str = "en",
    sample_size: int = 3,
) -> DashboardSummary | NoData:
    """Overview, per-period summaries and a small raw sample for a selection.

    Returns :class:`NoData` only when there is no transaction data or nothing
    is selected. Selected periods without transactions are kept as
    :class:`UnavailablePeriod` markers; the date range covers the available
    periods.
    """

    if not transactions_by_period or not selected:
        return NoData()

    results = summarize_periods(transactions_by_period, selected, locale=locale)
    summaries = available(results)

    ordered_keys = [r.period for r in results]
    everything = selected_transactions(transactions_by_period, ordered_keys)
    total = total_of(everything)
    count = len(everything)

    overview = DashboardOverview(
        periods_analyzed=len(results),
        start_label=summaries[0].label if summaries else None,
        end_label=summaries[-1].label if summaries else None,
        total=total,
        transaction_count=count,
        average=average_of(total, count),
        top_categories=tuple(top_categories(category_sums(everything), total)),
        rides=summarize_rides(everything, overall_total=total),
        growth=period_delta(results),
    )
    _logger.debug(
        "dashboard summary over %d periods (%d available, %d transactions)",
        len(results),
        len(summaries),
        count,
    )
    return DashboardSummary(
        overview=overview,
        period_summaries=tuple(results),
        sample=tuple(everything[:sample_size]),
    )


__all__ = [
    "PeriodResult",
    "available",
    "average_of",
    "bar_series",
    "build_dashboard_summary",
    "category_comparison",
    "category_sums",
    "line_series",
    "period_delta",
    "pie_breakdown",
    "summarize_period",
    "summarize_periods",
    "top_categories",
    "top_expenses",
    "total_of",
    "transaction_extremes",
]
