"""db: storage library for uploaded statement transactions (SQLAlchemy/Alembic).

Public exports
--------------
- ``Base`` and ``metadata`` (Alembic targets ``metadata`` for autogenerate)
- ORM models from ``db.models.ledger``
- Engine/session helpers live in ``db.client``
"""

from __future__ import annotations

from .models.ledger import Base, StoredTransaction

metadata = Base.metadata

__all__ = [
    "Base",
    "StoredTransaction",
    "metadata",
]
