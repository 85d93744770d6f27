"""Data models and type aliases for ``spending_analysis``.

``Transaction`` is the single normalized record every other module consumes.
Summary records are derived on demand by :mod:`spending_analysis.aggregation`
and :mod:`spending_analysis.rides`; none of them is cached or mutated after
construction.

Money is carried as :class:`~decimal.Decimal` end to end. Rounding to cents
happens only when a record is rendered (``to_dict``), never while summing.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

CENT = Decimal("0.01")

TRANSACTION_FIELDS: tuple[str, ...] = ("date", "description", "category", "type", "value")


def money(value: Decimal) -> float:
    """Round ``value`` to cents (half-up) and return it as a JSON-friendly float."""

    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def percent(value: Decimal) -> float:
    """Round a percentage to one decimal place."""

    return float(value.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def to_decimal(raw: Any) -> Decimal:
    """Coerce ``raw`` into a finite, non-negative ``Decimal``.

    Raises ``ValueError`` for booleans, unparsable text, NaN/Infinity and
    negative amounts.
    """

    if isinstance(raw, bool):
        raise ValueError(f"invalid value: {raw!r}")
    try:
        d = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"invalid value: {raw!r}") from exc
    if not d.is_finite():
        raise ValueError(f"value must be finite: {raw!r}")
    if d < 0:
        raise ValueError(f"value must be non-negative: {raw!r}")
    return d


# ---------------------------------------------------------------------------
# Core record and collections
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """One normalized financial event.

    Attributes
    ----------
    date:
        Date string as produced by the normalizer. The LLM path emits
        ``YYYY-MM-DD``; the direct CSV path keeps the bank's own format.
    description:
        Vendor or memo text.
    category:
        Category label, carried from the file or inferred by the model.
    type:
        Conventionally ``"income"`` or ``"expense"``; not validated.
    value:
        Non-negative amount in local currency.
    """

    date: str
    description: str
    category: str
    type: str
    value: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "description": self.description,
            "category": self.category,
            "type": self.type,
            "value": money(self.value),
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Transaction:
        """Build a transaction from a JSON-like mapping.

        Every field in :data:`TRANSACTION_FIELDS` must be present and not
        ``None``; ``value`` must satisfy :func:`to_decimal`.
        """

        missing = [k for k in TRANSACTION_FIELDS if data.get(k) is None]
        if missing:
            raise ValueError("transaction is missing fields: " + ", ".join(missing))
        return cls(
            date=str(data["date"]),
            description=str(data["description"]),
            category=str(data["category"]),
            type=str(data["type"]),
            value=to_decimal(data["value"]),
        )


type TransactionsByPeriod = Mapping[str, Sequence[Transaction]]
"""Transactions grouped by period key (``YYYY-MM``).

Keys are unique; order across keys carries no meaning. Order inside a period
is the insertion order of the source.
"""


# ---------------------------------------------------------------------------
# Derived summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PeriodSummary:
    period: str
    label: str
    total: Decimal
    category_sums: Mapping[str, Decimal]
    count: int
    average: Decimal
    top_categories: tuple[CategoryShare, ...] = ()
    largest: TransactionExtreme | None = None
    smallest: TransactionExtreme | None = None
    available: bool = field(default=True, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "formattedPeriod": self.label,
            "available": True,
            "totalSpent": money(self.total),
            "transactionCount": self.count,
            "averageTransactionValue": money(self.average),
            "categorySums": {k: money(v) for k, v in self.category_sums.items()},
            "topCategories": [c.to_dict() for c in self.top_categories],
            "largestTransaction": self.largest.to_dict() if self.largest else None,
            "smallestTransaction": self.smallest.to_dict() if self.smallest else None,
        }


@dataclass(frozen=True, slots=True)
class UnavailablePeriod:
    """Marker for a selected period that holds no transactions."""

    period: str
    available: bool = field(default=False, init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"period": self.period, "available": False}


type PeriodResult = PeriodSummary | UnavailablePeriod
"""One entry per selected period: a summary, or the marker for an empty period."""


@dataclass(frozen=True, slots=True)
class NoData:
    message: str = "No transaction data or periods selected"

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


@dataclass(frozen=True, slots=True)
class CategoryShare:
    category: str
    amount: Decimal
    percentage: Decimal | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "amount": money(self.amount),
            "percentage": percent(self.percentage) if self.percentage is not None else None,
        }


@dataclass(frozen=True, slots=True)
class TransactionExtreme:
    amount: Decimal
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {"amount": money(self.amount), "category": self.category}


@dataclass(frozen=True, slots=True)
class PeriodDelta:
    """Change in total spending between two consecutive summaries.

    ``percent_change`` is ``None`` when the previous total is zero.
    """

    current_period: str
    previous_period: str
    difference: Decimal
    percent_change: Decimal | None
    increased: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentPeriod": self.current_period,
            "previousPeriod": self.previous_period,
            "difference": money(self.difference),
            "percentChange": (
                percent(self.percent_change) if self.percent_change is not None else None
            ),
            "increased": self.increased,
        }


@dataclass(frozen=True, slots=True)
class TimeOfDayCounts:
    morning: int = 0
    afternoon: int = 0
    evening: int = 0
    night: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "morning": self.morning,
            "afternoon": self.afternoon,
            "evening": self.evening,
            "night": self.night,
        }


@dataclass(frozen=True, slots=True)
class RideSummary:
    total: Decimal
    trip_count: int
    average_trip_cost: Decimal
    time_of_day: TimeOfDayCounts
    most_common_time: str
    weekday_trips: int
    weekend_trips: int
    percent_of_total_spending: Decimal | None

    def to_dict(self) -> dict[str, Any]:
        share = self.percent_of_total_spending
        return {
            "totalSpent": money(self.total),
            "tripCount": self.trip_count,
            "averageTripCost": money(self.average_trip_cost),
            "timeOfDay": self.time_of_day.to_dict(),
            "mostCommonTime": self.most_common_time,
            "weekdayTrips": self.weekday_trips,
            "weekendTrips": self.weekend_trips,
            "percentOfTotalSpending": percent(share) if share is not None else None,
        }


@dataclass(frozen=True, slots=True)
class RideMonth:
    period: str
    total: Decimal
    trip_count: int
    average_trip_cost: Decimal
    weekday_trips: int
    weekend_trips: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "period": self.period,
            "totalSpent": money(self.total),
            "tripCount": self.trip_count,
            "avgTripCost": money(self.average_trip_cost),
            "weekdayTrips": self.weekday_trips,
            "weekendTrips": self.weekend_trips,
        }


@dataclass(frozen=True, slots=True)
class DashboardOverview:
    periods_analyzed: int
    start_label: str | None
    end_label: str | None
    total: Decimal
    transaction_count: int
    average: Decimal
    top_categories: tuple[CategoryShare, ...]
    rides: RideSummary | None
    growth: PeriodDelta | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "periodsAnalyzed": self.periods_analyzed,
            "dateRange": {"start": self.start_label, "end": self.end_label},
            "totalSpent": money(self.total),
            "totalTransactions": self.transaction_count,
            "averageTransactionValue": money(self.average),
            "topCategories": [c.to_dict() for c in self.top_categories],
            "uberSummary": self.rides.to_dict() if self.rides else None,
            "periodOverPeriodGrowth": self.growth.to_dict() if self.growth else None,
        }


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    """Everything the dashboard needs for one selection of periods.

    ``period_summaries`` holds one entry per selected period in calendar order;
    empty periods stay in place as :class:`UnavailablePeriod` markers.
    """

    overview: DashboardOverview
    period_summaries: tuple[PeriodResult, ...]
    sample: tuple[Transaction, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "overview": self.overview.to_dict(),
            "periodSummaries": [p.to_dict() for p in self.period_summaries],
            "rawDataSample": {
                "transactionCount": self.overview.transaction_count,
                "sampleTransactions": [t.to_dict() for t in self.sample],
            },
        }


# ---------------------------------------------------------------------------
# DTO for model-produced rows
# ---------------------------------------------------------------------------


class LlmTransactionRecord(BaseModel):
    """Validated shape of one element of the model's JSON array.

    Text fields accept numbers (coerced to ``str``); ``value`` accepts numbers
    or numeric strings. Missing fields, ``null`` and negative or non-finite
    values fail validation instead of degrading silently.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    date: str
    description: str
    category: str
    type: str
    value: Decimal

    @field_validator("value", mode="before")
    @classmethod
    def _value_finite_non_negative(cls, v: Any) -> Decimal:
        return to_decimal(v)

    def to_transaction(self) -> Transaction:
        return Transaction(
            date=self.date,
            description=self.description,
            category=self.category,
            type=self.type,
            value=self.value,
        )
