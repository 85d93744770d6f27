from __future__ import annotations

from decimal import Decimal

import pytest

from spending_analysis.aggregation import (
    bar_series,
    build_dashboard_summary,
    category_comparison,
    line_series,
    period_delta,
    pie_breakdown,
    summarize_period,
    summarize_periods,
    top_categories,
    top_expenses,
    transaction_extremes,
)
from spending_analysis.models import (
    DashboardSummary,
    NoData,
    PeriodSummary,
    Transaction,
    UnavailablePeriod,
)


def tx(value: str, category: str = "Food", description: str = "Shop", date: str = "2024-01-10"):
    return Transaction(
        date=date, description=description, category=category, type="expense", value=Decimal(value)
    )


DATA = {
    "2024-01": [tx("10", "Food"), tx("30", "Rent"), tx("20", "Food")],
    "2024-02": [tx("100", "Rent"), tx("5.5", "Fun")],
    "2024-03": [],
}


def test_period_summary_totals_categories_count_and_average():
    s = summarize_period("2024-01", DATA["2024-01"])

    assert s.total == Decimal("60")
    assert s.count == 3
    assert s.average == Decimal("20")
    assert s.category_sums == {"Food": Decimal("30"), "Rent": Decimal("30")}
    assert sum(s.category_sums.values()) == s.total
    assert s.label == "January 2024"
    assert s.largest.amount == Decimal("30") and s.largest.category == "Rent"
    assert s.smallest.amount == Decimal("10") and s.smallest.category == "Food"


def test_period_label_follows_locale():
    assert summarize_period("2024-03", [tx("1")], locale="pt").label == "2024 - Março"


def test_summarize_period_without_transactions_is_unavailable():
    result = summarize_period("2024-03", [])

    assert result == UnavailablePeriod("2024-03")
    assert result.to_dict() == {"period": "2024-03", "available": False}
    with pytest.raises(ValueError):
        summarize_period("March", [])


def test_summary_renders_rounded_money():
    s = summarize_period("2024-01", [tx("0.005"), tx("0.01")])

    body = s.to_dict()

    assert body["totalSpent"] == 0.02
    assert body["transactionCount"] == 2
    assert body["averageTransactionValue"] == 0.01
    assert body["formattedPeriod"] == "January 2024"


def test_empty_selected_period_is_marked_unavailable():
    results = summarize_periods(DATA, ["2024-03", "2024-01", "2025-12"])

    assert [r.period for r in results] == ["2024-01", "2024-03", "2025-12"]
    assert isinstance(results[0], PeriodSummary)
    assert results[1] == UnavailablePeriod("2024-03")
    assert results[2].to_dict() == {"period": "2025-12", "available": False}


def test_duplicate_selection_is_summarized_once():
    results = summarize_periods(DATA, ["2024-01", "2024-01"])

    assert len(results) == 1


def test_bad_period_key_in_selection_raises():
    with pytest.raises(ValueError):
        summarize_periods(DATA, ["January"])


def test_chart_series_are_in_calendar_order():
    summaries = [summarize_period(p, DATA[p]) for p in ("2024-02", "2024-01")]

    assert bar_series(summaries) == [
        {"period": "2024-01", "total": 60.0},
        {"period": "2024-02", "total": 105.5},
    ]
    assert line_series(summaries) == [
        {"period": "2024-01", "avgTransaction": 20.0},
        {"period": "2024-02", "avgTransaction": 52.75},
    ]


def test_category_comparison_fills_missing_categories_with_zero():
    summaries = [summarize_period(p, DATA[p]) for p in ("2024-01", "2024-02")]

    rows = category_comparison(summaries)

    assert rows == [
        {"category": "Food", "2024-01": 30.0, "2024-02": 0.0},
        {"category": "Rent", "2024-01": 30.0, "2024-02": 100.0},
        {"category": "Fun", "2024-01": 0.0, "2024-02": 5.5},
    ]


def test_pie_uses_latest_period_regardless_of_selection_order():
    summaries = [summarize_period(p, DATA[p]) for p in ("2024-02", "2024-01")]

    assert pie_breakdown(summaries) == [
        {"name": "Rent", "value": 100.0},
        {"name": "Fun", "value": 5.5},
    ]
    assert pie_breakdown([]) == []


def test_top_categories_rank_by_amount_with_percentages():
    ranked = top_categories(
        {"A": Decimal("10"), "B": Decimal("50"), "C": Decimal("40")}, Decimal("100"), limit=2
    )

    assert [(c.category, c.percentage) for c in ranked] == [
        ("B", Decimal("50")),
        ("C", Decimal("40")),
    ]
    assert top_categories({"A": Decimal("0")}, Decimal("0"))[0].percentage is None


def test_extremes_and_top_expenses():
    txs = [tx("5", "A"), tx("9", "B"), tx("9", "C"), tx("1", "D")]

    largest, smallest = transaction_extremes(txs)

    assert (largest.category, smallest.category) == ("B", "D")
    assert transaction_extremes([]) is None
    assert [t.category for t in top_expenses(txs, limit=2)] == ["B", "C"]


def test_period_delta_math():
    results = summarize_periods(DATA, ["2024-01", "2024-02"])

    delta = period_delta(results)

    assert delta.difference == Decimal("45.5")
    assert delta.increased is True
    assert delta.to_dict() == {
        "currentPeriod": "February 2024",
        "previousPeriod": "January 2024",
        "difference": 45.5,
        "percentChange": 75.8,
        "increased": True,
    }


def test_period_delta_needs_two_available_periods():
    assert period_delta(summarize_periods(DATA, ["2024-01"])) is None
    assert period_delta(summarize_periods(DATA, ["2024-01", "2024-03"])) is None


def test_period_delta_from_zero_has_no_percentage():
    data = {"2024-01": [tx("0")], "2024-02": [tx("10")]}

    delta = period_delta(summarize_periods(data, ["2024-01", "2024-02"]))

    assert delta.percent_change is None
    assert delta.to_dict()["percentChange"] is None


@pytest.mark.parametrize(
    "data, selected",
    [({}, ["2024-01"]), (None, ["2024-01"]), (DATA, []), (DATA, None)],
)
def test_dashboard_without_data_or_selection_is_no_data(data, selected):
    result = build_dashboard_summary(data, selected)

    assert isinstance(result, NoData)
    assert result.to_dict() == {
        "success": False,
        "message": "No transaction data or periods selected",
    }


def test_dashboard_with_only_empty_periods_keeps_unavailable_markers():
    data = {"2024-01": [], "2024-02": []}

    result = build_dashboard_summary(data, ["2024-02", "2024-01"])

    assert isinstance(result, DashboardSummary)
    body = result.to_dict()
    assert body["periodSummaries"] == [
        {"period": "2024-01", "available": False},
        {"period": "2024-02", "available": False},
    ]
    assert body["overview"]["periodsAnalyzed"] == 2
    assert body["overview"]["dateRange"] == {"start": None, "end": None}
    assert body["overview"]["totalSpent"] == 0.0
    assert body["overview"]["uberSummary"] is None
    assert body["overview"]["periodOverPeriodGrowth"] is None


def test_dashboard_keeps_empty_period_next_to_available_one():
    data = {"2024-01": [tx("10")], "2024-02": []}

    result = build_dashboard_summary(data, ["2024-01", "2024-02"])

    summaries = result.to_dict()["periodSummaries"]
    assert summaries[0]["period"] == "2024-01"
    assert summaries[0]["available"] is True
    assert summaries[0]["totalSpent"] == 10.0
    assert summaries[1] == {"period": "2024-02", "available": False}


def test_dashboard_summary_overview():
    data = {
        **DATA,
        "2024-02": [*DATA["2024-02"], tx("14.5", "Transport", "Uber *trip", "2024-02-03T08:15:00")],
    }

    result = build_dashboard_summary(data, ["2024-02", "2024-01", "2024-03"])

    assert isinstance(result, DashboardSummary)
    body = result.to_dict()
    overview = body["overview"]
    assert body["success"] is True
    assert overview["periodsAnalyzed"] == 3
    assert overview["dateRange"] == {"start": "January 2024", "end": "February 2024"}
    assert overview["totalSpent"] == 180.0
    assert overview["totalTransactions"] == 6
    assert overview["averageTransactionValue"] == 30.0
    assert overview["topCategories"][0] == {"category": "Rent", "amount": 130.0, "percentage": 72.2}
    assert overview["uberSummary"]["tripCount"] == 1
    assert overview["uberSummary"]["timeOfDay"]["morning"] == 1
    # 2024-03 is empty, so there is no consecutive pair to compare.
    assert overview["periodOverPeriodGrowth"] is None
    assert [(p["period"], p["available"]) for p in body["periodSummaries"]] == [
        ("2024-01", True),
        ("2024-02", True),
        ("2024-03", False),
    ]
    assert body["rawDataSample"]["transactionCount"] == 6
    assert len(body["rawDataSample"]["sampleTransactions"]) == 3


def test_dashboard_does_not_mutate_input():
    snapshot = {k: list(v) for k, v in DATA.items()}

    build_dashboard_summary(DATA, ["2024-01", "2024-02"])

    assert DATA == snapshot
