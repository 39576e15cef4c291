"""Logging for jwt-engine.

- system_logger.py: operational events (warnings, errors, debug traces)
- auth_logger.py: authentication lifecycle audit events
"""

from jwt_engine.telemetry.auth_logger import AuthEvent, AuthLogger, get_auth_logger
from jwt_engine.telemetry.system_logger import (
    JsonFormatter,
    configure_system_logging,
    get_system_logger,
)

__all__ = [
    # System logging
    "JsonFormatter",
    "configure_system_logging",
    "get_system_logger",
    # Audit logging
    "AuthEvent",
    "AuthLogger",
    "get_auth_logger",
]
