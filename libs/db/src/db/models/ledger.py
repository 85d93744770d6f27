from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: sa_transactions
# ---------------------------


class StoredTransaction(Base):
    """One normalized transaction owned by a user and tagged with its period.

    ``user_id`` is an opaque partition key supplied by the identity provider.
    ``period`` is the ``YYYY-MM`` bucket the upload was filed under, which is
    not necessarily the month of ``date``.
    """

    __tablename__ = "sa_transactions"
    __table_args__ = (
        Index("ix_sa_transactions_user_period", "user_id", "period"),
        CheckConstraint("value >= 0", name="ck_sa_tx_value_nonnegative"),
    )

    # BigInteger autoincrement only works on SQLite as INTEGER PRIMARY KEY.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    date: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
