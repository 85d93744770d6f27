"""ORM models registry for the statement store."""

from .ledger import Base, StoredTransaction

__all__ = [
    "Base",
    "StoredTransaction",
]
