"""HTTP surface: statement conversion and dashboard summaries (FastAPI).

Endpoints
---------
- ``POST /convert``: ``{"data": {"csvText": "..."}}`` (a bare
  ``{"csvText": ...}`` is accepted too) → ``{"success": true, "data": [...]}``.
  400 when the text is missing or empty, 500 with ``error``/``details`` when
  normalization fails.
- ``POST /summary``: ``{"transactions": {period: [...]}, "selectedPeriods":
  [...]}`` → dashboard summary plus chart series.
- ``GET /health``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from . import aggregation, rides
from .config import Settings
from .logging_setup import configure_logging, get_logger
from .models import NoData, Transaction
from .normalizers import StatementNormalizer, get_normalizer

_logger = get_logger("spending_analysis.server")


def _error(status_code: int, **content: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content)


def _csv_text(payload: Any) -> str | None:
    if not isinstance(payload, Mapping):
        return None
    data = payload.get("data", payload)
    if not isinstance(data, Mapping):
        return None
    text = data.get("csvText")
    return text if isinstance(text, str) and text.strip() else None


def _parse_transactions(raw: Any) -> dict[str, list[Transaction]]:
    if not isinstance(raw, Mapping):
        raise ValueError("transactions must be an object keyed by period")
    parsed: dict[str, list[Transaction]] = {}
    for period, items in raw.items():
        if not isinstance(items, list):
            raise ValueError(f"transactions for {period!r} must be a list")
        if not all(isinstance(item, Mapping) for item in items):
            raise ValueError(f"transactions for {period!r} must be objects")
        parsed[str(period)] = [Transaction.from_mapping(item) for item in items]
    return parsed


def create_app(
    settings: Settings | None = None, *, normalizer: StatementNormalizer | None = None
) -> FastAPI:
    """Build the application; ``normalizer`` overrides the configured strategy."""

    configure_logging()
    app = FastAPI(title="spending-analysis")
    app.state.settings = settings or Settings.from_env()
    app.state.normalizer = normalizer

    def _normalizer(request: Request) -> StatementNormalizer:
        if request.app.state.normalizer is None:
            request.app.state.normalizer = get_normalizer(request.app.state.settings)
        return request.app.state.normalizer

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/convert")
    def convert(request: Request, payload: Any = Body(default=None)) -> JSONResponse:  # noqa: B008
        csv_text = _csv_text(payload)
        if csv_text is None:
            _logger.info("convert called without csvText: %s", json.dumps(payload)[:500])
            return _error(
                400,
                error='The request must include a non-empty "csvText" argument.',
                body=json.dumps(payload),
            )
        try:
            transactions = _normalizer(request).normalize(csv_text)
        except Exception as exc:  # noqa: BLE001 - every downstream failure maps to 500
            _logger.exception("failed to convert CSV")
            return _error(500, error="Failed to process CSV data", details=str(exc))
        return JSONResponse({"success": True, "data": [t.to_dict() for t in transactions]})

    @app.post("/summary")
    def summary(payload: Any = Body(default=None)) -> JSONResponse:  # noqa: B008
        if not isinstance(payload, Mapping):
            return _error(400, error="request body must be a JSON object")
        selected = payload.get("selectedPeriods") or []
        locale = payload.get("locale") or "en"
        raw = payload.get("transactions")
        try:
            if not isinstance(selected, list) or not all(isinstance(p, str) for p in selected):
                raise ValueError("selectedPeriods must be a list of YYYY-MM keys")
            by_period = _parse_transactions({} if raw is None else raw)
            result = aggregation.build_dashboard_summary(by_period, selected, locale=locale)
        except ValueError as exc:
            return _error(400, error="Invalid transaction data", details=str(exc))

        if isinstance(result, NoData):
            return JSONResponse(result.to_dict())

        summaries = aggregation.available(result.period_summaries)
        in_view = {s.period: by_period[s.period] for s in summaries}
        flat = [t for txs in in_view.values() for t in txs]
        body = result.to_dict()
        body["charts"] = {
            "bar": aggregation.bar_series(summaries),
            "line": aggregation.line_series(summaries),
            "categoryComparison": aggregation.category_comparison(summaries),
            "pie": aggregation.pie_breakdown(summaries),
            "ridesByPeriod": [m.to_dict() for m in rides.rides_by_period(in_view)],
            "topExpenses": [t.to_dict() for t in aggregation.top_expenses(flat)],
        }
        return JSONResponse(body)

    return app


__all__ = ["create_app"]
