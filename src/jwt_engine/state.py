"""Per-request resolved identity state.

Every request resolves to exactly one AuthState before downstream handlers
run. INVALID covers every failure mode; invalid_reason tells a bad primary
token apart from a missing or mismatched modifier token.
"""

from __future__ import annotations

__all__ = [
    "AuthState",
    "InvalidReason",
    "RequestAuth",
]

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AuthState(str, Enum):
    """Outcome of verifying a request's primary token."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    INVALID = "invalid"


class InvalidReason(str, Enum):
    """Why a request resolved to INVALID."""

    TOKEN = "token"
    MODIFIER = "modifier"


@dataclass(frozen=True)
class RequestAuth:
    """Resolved identity for one request.

    Attributes:
        state: Resolved state.
        payload: Decoded claims (AUTHENTICATED only).
        signed_token: Raw signed token as received or issued, None if absent.
        invalid_reason: Failure category (INVALID only).
    """

    state: AuthState
    payload: dict[str, Any] | None = field(default=None)
    signed_token: str | None = None
    invalid_reason: InvalidReason | None = None

    @classmethod
    def unauthenticated(cls) -> "RequestAuth":
        return cls(state=AuthState.UNAUTHENTICATED)

    @classmethod
    def authenticated(cls, payload: dict[str, Any], signed_token: str) -> "RequestAuth":
        return cls(state=AuthState.AUTHENTICATED, payload=payload, signed_token=signed_token)

    @classmethod
    def invalid(cls, signed_token: str, reason: InvalidReason = InvalidReason.TOKEN) -> "RequestAuth":
        return cls(state=AuthState.INVALID, signed_token=signed_token, invalid_reason=reason)

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED
