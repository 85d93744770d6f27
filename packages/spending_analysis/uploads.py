"""Batch upload workflow: statement files → normalized rows → storage.

Each file is filed under the ``YYYY-MM`` token found in its name (or the
current month) and persisted in its own database transaction. A failure on
one file propagates immediately; files already committed stay committed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from db.client import session_scope

from .logging_setup import get_logger
from .normalizers import StatementNormalizer
from .periods import period_from_filename
from .persistence import delete_period, save_transactions

_logger = get_logger("spending_analysis.uploads")


@dataclass(frozen=True, slots=True)
class UploadResult:
    filename: str
    period: str
    count: int


def upload_statements(
    files: Iterable[tuple[str, str]],
    *,
    user_id: str,
    normalizer: StatementNormalizer,
    database_url: str | None = None,
    uploaded_at: datetime | None = None,
    replace: bool = False,
    today: date | None = None,
) -> list[UploadResult]:
    """Normalize and store ``(filename, text)`` pairs for ``user_id``.

    When ``replace`` is true, rows previously stored for the same period are
    removed in the same transaction as the insert.
    """

    stamp = uploaded_at or datetime.now(UTC)
    results: list[UploadResult] = []
    for filename, text in files:
        period = period_from_filename(filename, today=today)
        transactions = normalizer.normalize(text)
        with session_scope(database_url=database_url) as session:
            if replace:
                delete_period(session, user_id=user_id, period=period)
            count = save_transactions(
                session,
                user_id=user_id,
                period=period,
                transactions=transactions,
                uploaded_at=stamp,
            )
        _logger.info("uploaded %s as %s (%d transactions)", filename, period, count)
        results.append(UploadResult(filename=filename, period=period, count=count))
    return results


__all__ = ["UploadResult", "upload_statements"]
