"""Storage of normalized transactions per user and period.

Rows live in ``sa_transactions`` (see ``db.models.ledger``). Each row carries
the owning user id, the period the upload was filed under and the upload
timestamp. Reading back regroups rows into ``TransactionsByPeriod`` keyed by
that stored period tag.

Sessions are supplied by the caller (normally via ``db.client.session_scope``)
so transaction boundaries stay explicit.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models.ledger import StoredTransaction

from .logging_setup import get_logger
from .models import CENT, Transaction
from .periods import group_by_period, parse_period

_logger = get_logger("spending_analysis.persistence")


def _require_user(user_id: str) -> str:
    uid = (user_id or "").strip()
    if not uid:
        raise ValueError("user_id is required")
    return uid


def save_transactions(
    session: Session,
    *,
    user_id: str,
    period: str,
    transactions: Iterable[Transaction],
    uploaded_at: datetime | None = None,
) -> int:
    """Insert one row per transaction and return how many were added.

    Values are stored rounded to cents; the in-memory ``Transaction`` keeps
    full precision.
    """

    uid = _require_user(user_id)
    parse_period(period)
    stamp = uploaded_at or datetime.now(UTC)

    rows = [
        StoredTransaction(
            user_id=uid,
            period=period,
            date=tx.date,
            description=tx.description,
            category=tx.category,
            type=tx.type,
            value=tx.value.quantize(CENT, rounding=ROUND_HALF_UP),
            uploaded_at=stamp,
        )
        for tx in transactions
    ]
    session.add_all(rows)
    session.flush()
    _logger.info("stored %d transactions for period %s", len(rows), period)
    return len(rows)


def load_transactions_by_period(session: Session, *, user_id: str) -> dict[str, list[Transaction]]:
    """All of a user's transactions grouped by stored period tag."""

    uid = _require_user(user_id)
    stmt = (
        select(StoredTransaction)
        .where(StoredTransaction.user_id == uid)
        .order_by(StoredTransaction.id)
    )
    records = (
        (
            row.period,
            Transaction(
                date=row.date,
                description=row.description,
                category=row.category,
                type=row.type,
                value=row.value,
            ),
        )
        for row in session.scalars(stmt)
    )
    return group_by_period(records)


def delete_period(session: Session, *, user_id: str, period: str) -> int:
    """Remove a user's rows for one period (used before re-uploading it)."""

    uid = _require_user(user_id)
    parse_period(period)
    result = session.execute(
        delete(StoredTransaction).where(
            StoredTransaction.user_id == uid, StoredTransaction.period == period
        )
    )
    removed = result.rowcount or 0
    _logger.info("removed %d transactions for period %s", removed, period)
    return removed


__all__ = ["delete_period", "load_transactions_by_period", "save_transactions"]
