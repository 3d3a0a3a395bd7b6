"""Immutable authentication state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """Session token issued by ``login``.

    A ``Session`` is never modified in place; a successful login produces
    a new authenticated value (see :meth:`SessionClient.authenticate`).
    """

    token: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.token is not None

    def require_token(self) -> str:
        """Return the token, or fail loudly if the caller skipped login."""
        if self.token is None:
            raise AssertionError("Not logged in")
        return self.token

    def __repr__(self) -> str:
        state = "authenticated" if self.authenticated else "unauthenticated"
        return f"Session({state})"
