"""Public interface for the ``spending_analysis`` package.

Only symbol re-exports live here. Modules that pull in the database layer or
the HTTP stack (``persistence``, ``uploads``, ``server``, ``cli``) are imported
explicitly by callers that need them.
"""

from .aggregation import (
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
from .models import (
    CategoryShare,
    DashboardSummary,
    NoData,
    PeriodDelta,
    PeriodSummary,
    RideSummary,
    Transaction,
    TransactionsByPeriod,
    UnavailablePeriod,
)
from .normalizers import (
    CompletionParseError,
    CompletionServiceError,
    CsvStatementNormalizer,
    EmptyCompletionError,
    LlmStatementNormalizer,
    StatementNormalizer,
    get_normalizer,
)
from .rides import rides_by_period, summarize_rides, time_of_day

__all__ = [
    # Normalizers
    "StatementNormalizer",
    "CsvStatementNormalizer",
    "LlmStatementNormalizer",
    "get_normalizer",
    "CompletionParseError",
    "CompletionServiceError",
    "EmptyCompletionError",
    # Aggregation
    "summarize_period",
    "summarize_periods",
    "bar_series",
    "line_series",
    "category_comparison",
    "pie_breakdown",
    "top_categories",
    "top_expenses",
    "transaction_extremes",
    "period_delta",
    "build_dashboard_summary",
    "summarize_rides",
    "rides_by_period",
    "time_of_day",
    # Models / types
    "Transaction",
    "TransactionsByPeriod",
    "PeriodSummary",
    "UnavailablePeriod",
    "NoData",
    "CategoryShare",
    "PeriodDelta",
    "RideSummary",
    "DashboardSummary",
]
