"""Exceptions raised by jwt-engine.

Hierarchy:
    JwtEngineError
    ├── SigningError        - signing failed; surfaced to authenticate() callers
    ├── VerificationError   - token rejected; resolved to INVALID by the engine
    ├── TransportError      - token source malformed; treated as "no token"
    └── ConfigurationError  - invalid engine configuration (also a ValueError)
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "JwtEngineError",
    "SigningError",
    "TransportError",
    "VerificationError",
]


class JwtEngineError(Exception):
    """Base class for all jwt-engine errors."""


class SigningError(JwtEngineError):
    """Raised when the signer cannot produce a token.

    A failing signer indicates misconfiguration (wrong key type, unsupported
    algorithm, unserializable payload), so it is never retried internally.
    """


class VerificationError(JwtEngineError):
    """Raised when a signed token fails verification.

    Attributes:
        reason: Machine-friendly failure category
            ("expired", "not_yet_valid", "bad_signature", "malformed").
    """

    def __init__(self, message: str, reason: str = "malformed") -> None:
        super().__init__(message)
        self.reason = reason


class TransportError(JwtEngineError):
    """Raised when a token source is present but unusable (e.g. bad header)."""


class ConfigurationError(JwtEngineError, ValueError):
    """Raised when engine configuration is invalid."""
