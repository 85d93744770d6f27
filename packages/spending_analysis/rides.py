"""Vendor-pattern analysis for ride-hailing spend.

A transaction is a ride when its description or category mentions one of the
vendor keywords, or its category mentions a generic ride/transport keyword.
Matching is a case-insensitive substring test.

Time-of-day buckets (by hour):

=========  ============
morning    [5, 12)
afternoon  [12, 17)
evening    [17, 21)
night      [21, 24) and [0, 5)
=========  ============

Dates without a time component count as hour 0 (night), which mirrors how a
bare ``YYYY-MM-DD`` statement date carries no time-of-day information.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from .logging_setup import get_logger
from .models import RideMonth, RideSummary, TimeOfDayCounts, Transaction, TransactionsByPeriod
from .periods import sort_periods

_logger = get_logger("spending_analysis.rides")

VENDOR_KEYWORDS: tuple[str, ...] = ("uber",)
CATEGORY_KEYWORDS: tuple[str, ...] = ("ride", "transport")

TIME_BUCKETS: tuple[str, ...] = ("morning", "afternoon", "evening", "night")

_STATEMENT_FORMATS: tuple[str, ...] = (
    "%d/%m/%Y",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y %H:%M:%S",
)

_ZERO = Decimal("0")


def is_ride(
    tx: Transaction,
    *,
    vendors: Sequence[str] = VENDOR_KEYWORDS,
    categories: Sequence[str] = CATEGORY_KEYWORDS,
) -> bool:
    description = tx.description.lower()
    category = tx.category.lower()
    if any(v in description or v in category for v in vendors):
        return True
    return any(c in category for c in categories)


def time_of_day(hour: int) -> str:
    if not 0 <= hour <= 23:
        raise ValueError(f"hour out of range: {hour}")
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 or ``DD/MM/YYYY[ HH:MM[:SS]]`` statement date.

    ISO offsets are kept, so the hour is the wall-clock hour written in the
    statement.
    """

    s = value.strip()
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    for fmt in _STATEMENT_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognized date: {value!r}")


def is_weekend(moment: datetime) -> bool:
    return moment.weekday() >= 5


def most_common_time(counts: TimeOfDayCounts) -> str:
    """Bucket with the highest count; earlier buckets win ties."""

    best = TIME_BUCKETS[0]
    for bucket in TIME_BUCKETS[1:]:
        if getattr(counts, bucket) > getattr(counts, best):
            best = bucket
    return best


def _bucket_and_week(rides: Iterable[Transaction]) -> tuple[TimeOfDayCounts, int, int]:
    tally = dict.fromkeys(TIME_BUCKETS, 0)
    weekday = weekend = 0
    for tx in rides:
        try:
            moment = parse_timestamp(tx.date)
        except ValueError:
            _logger.debug("ride without a parseable date: %r", tx.date)
            continue
        tally[time_of_day(moment.hour)] += 1
        if is_weekend(moment):
            weekend += 1
        else:
            weekday += 1
    return TimeOfDayCounts(**tally), weekday, weekend


def summarize_rides(
    transactions: Iterable[Transaction], *, overall_total: Decimal | None = None
) -> RideSummary | None:
    """Ride spend statistics, or ``None`` when nothing matches."""

    rides = [t for t in transactions if is_ride(t)]
    if not rides:
        return None

    total = sum((t.value for t in rides), _ZERO)
    counts, weekday, weekend = _bucket_and_week(rides)
    share = None
    if overall_total:
        share = total / overall_total * 100
    return RideSummary(
        total=total,
        trip_count=len(rides),
        average_trip_cost=total / len(rides),
        time_of_day=counts,
        most_common_time=most_common_time(counts),
        weekday_trips=weekday,
        weekend_trips=weekend,
        percent_of_total_spending=share,
    )


def rides_by_period(transactions_by_period: TransactionsByPeriod) -> list[RideMonth]:
    """Per-period ride totals, oldest first; periods without rides are omitted."""

    months: list[RideMonth] = []
    for period in sort_periods(transactions_by_period):
        rides = [t for t in transactions_by_period[period] if is_ride(t)]
        if not rides:
            continue
        total = sum((t.value for t in rides), _ZERO)
        _counts, weekday, weekend = _bucket_and_week(rides)
        months.append(
            RideMonth(
                period=period,
                total=total,
                trip_count=len(rides),
                average_trip_cost=total / len(rides),
                weekday_trips=weekday,
                weekend_trips=weekend,
            )
        )
    return months


__all__ = [
    "CATEGORY_KEYWORDS",
    "TIME_BUCKETS",
    "VENDOR_KEYWORDS",
    "is_ride",
    "is_weekend",
    "most_common_time",
    "parse_timestamp",
    "rides_by_period",
    "summarize_rides",
    "time_of_day",
]
