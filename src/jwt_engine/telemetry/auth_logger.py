"""Authentication audit logger.

Logs authentication lifecycle events to the jwt_engine.audit logger:
- Token validation (success/failure)
- Authentication (token issued)
- Deauthentication (token removed)

Events never include the signed token or full claims, only the
subject claim when one is present.
"""

from __future__ import annotations

__all__ = [
    "AuthEvent",
    "AuthLogger",
    "get_auth_logger",
]

import logging
from typing import Any, Literal

from pydantic import BaseModel

from jwt_engine.telemetry.system_logger import AUDIT_LOGGER_NAME

AuthEventType = Literal[
    "token_validated",
    "token_invalid",
    "authenticated",
    "deauthenticated",
]


class AuthEvent(BaseModel):
    """One authentication audit entry.

    Attributes:
        event_type: Lifecycle event name.
        status: "Success" or "Failure".
        subject: Value of the "sub" claim, when present.
        transport: Active primary transport kind ("cookie" or "header").
        path: Request path the event occurred on.
        method: HTTP method of the request.
        error_type: Failure category for token_invalid events.
        error_message: Human-readable failure description.
        message: Optional human-readable message.
    """

    event_type: AuthEventType
    status: Literal["Success", "Failure"]
    subject: str | None = None
    transport: str | None = None
    path: str | None = None
    method: str | None = None
    error_type: str | None = None
    error_message: str | None = None
    message: str | None = None


def _subject_of(payload: dict[str, Any] | None) -> str | None:
    if not payload:
        return None
    sub = payload.get("sub")
    return str(sub) if sub is not None else None


class AuthLogger:
    """Audit logger for authentication events.

    Usage:
        auth_logger = get_auth_logger()
        auth_logger.log_token_validated(payload=claims, path="/me", method="GET")
    """

    def __init__(self, logger: logging.Logger, transport: str | None = None) -> None:
        """Initialize auth logger.

        Args:
            logger: Destination logger.
            transport: Primary transport kind, recorded on every event.
        """
        self._logger = logger
        self._transport = transport

    def _log_event(self, event: AuthEvent) -> None:
        self._logger.info(event.model_dump(mode="json", exclude_none=True))

    def log_token_validated(
        self,
        *,
        payload: dict[str, Any] | None = None,
        path: str | None = None,
        method: str | None = None,
    ) -> None:
        """Log successful token verification."""
        self._log_event(
            AuthEvent(
                event_type="token_validated",
                status="Success",
                subject=_subject_of(payload),
                transport=self._transport,
                path=path,
                method=method,
            )
        )

    def log_token_invalid(
        self,
        *,
        error_type: str,
        error_message: str | None = None,
        path: str | None = None,
        method: str | None = None,
    ) -> None:
        """Log failed token verification.

        Args:
            error_type: Failure category (e.g. "expired", "modifier_mismatch").
            error_message: Human-readable error description.
            path: Request path.
            method: HTTP method.
        """
        self._log_event(
            AuthEvent(
                event_type="token_invalid",
                status="Failure",
                transport=self._transport,
                path=path,
                method=method,
                error_type=error_type,
                error_message=error_message,
            )
        )

    def log_authenticated(
        self,
        *,
        payload: dict[str, Any] | None = None,
        path: str | None = None,
        method: str | None = None,
    ) -> None:
        """Log a newly issued token."""
        self._log_event(
            AuthEvent(
                event_type="authenticated",
                status="Success",
                subject=_subject_of(payload),
                transport=self._transport,
                path=path,
                method=method,
            )
        )

    def log_deauthenticated(
        self,
        *,
        payload: dict[str, Any] | None = None,
        path: str | None = None,
        method: str | None = None,
    ) -> None:
        """Log token removal."""
        self._log_event(
            AuthEvent(
                event_type="deauthenticated",
                status="Success",
                subject=_subject_of(payload),
                transport=self._transport,
                path=path,
                method=method,
            )
        )


def get_auth_logger(transport: str | None = None) -> AuthLogger:
    """Create an AuthLogger bound to the jwt_engine.audit logger.

    Args:
        transport: Primary transport kind recorded on each event.

    Returns:
        AuthLogger instance.
    """
    return AuthLogger(logging.getLogger(AUDIT_LOGGER_NAME), transport=transport)
