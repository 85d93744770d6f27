"""Request-scoped dashboard state.

Handlers receive a :class:`DashboardSession` explicitly instead of reading a
process-wide context. It answers two questions for every view: who is signed
in, and whether an operation is in flight.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class UserProfile:
    uid: str
    email: str
    name: str
    phone: str | None = None


@dataclass(slots=True)
class DashboardSession:
    user: UserProfile | None = None
    loading: bool = False
    error: str | None = None
    _depth: int = field(default=0, repr=False)

    def require_user(self) -> UserProfile:
        if self.user is None:
            raise PermissionError("sign-in required")
        return self.user

    @contextmanager
    def operation(self) -> Iterator[DashboardSession]:
        """Mark an operation in flight; record its error message on failure."""

        self._depth += 1
        self.loading = True
        self.error = None
        try:
            yield self
        except Exception as exc:
            self.error = str(exc)
            raise
        finally:
            self._depth -= 1
            self.loading = self._depth > 0


__all__ = ["DashboardSession", "UserProfile"]
