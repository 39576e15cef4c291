"""JWT signing and verification backed by PyJWT.

The Signer owns immutable key material for the lifetime of an engine and
exposes async sign/verify. The PyJWT calls run in a worker thread so RSA/EC
operations never block the event loop.

Key material resolution (KeyMaterial.from_config):
- private_key + public_key: loaded as PEM via cryptography
- secret_key: used for both signing and verification
- neither: a random secret is generated once (tokens die with the process)
"""

from __future__ import annotations

__all__ = [
    "KeyMaterial",
    "Signer",
]

import asyncio
import secrets
import time
from dataclasses import dataclass
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization

from jwt_engine.config import JwtEngineConfig
from jwt_engine.constants import GENERATED_SECRET_BYTES
from jwt_engine.exceptions import ConfigurationError, SigningError, VerificationError

# Timing claims set by the signer; caller-supplied values are replaced
_TIMING_CLAIMS = ("iat", "exp", "nbf")


@dataclass(frozen=True)
class KeyMaterial:
    """Signing and verification keys for one engine.

    Attributes:
        signing_key: Secret string or private key object.
        verification_key: Secret string or public key object.
        generated: True if the secret was generated at construction.
    """

    signing_key: Any
    verification_key: Any
    generated: bool = False

    @classmethod
    def from_config(cls, config: JwtEngineConfig) -> "KeyMaterial":
        """Resolve key material from configuration.

        Args:
            config: Engine configuration.

        Returns:
            KeyMaterial ready for PyJWT.

        Raises:
            ConfigurationError: If a PEM key cannot be loaded.
        """
        if config.private_key and config.public_key:
            try:
                private_key = serialization.load_pem_private_key(
                    config.private_key.encode("utf-8"),
                    password=None,
                )
                public_key = serialization.load_pem_public_key(config.public_key.encode("utf-8"))
            except (ValueError, TypeError) as e:
                raise ConfigurationError(f"Failed to load PEM key pair: {e}") from e
            return cls(signing_key=private_key, verification_key=public_key)

        if config.secret_key:
            return cls(signing_key=config.secret_key, verification_key=config.secret_key)

        secret = secrets.token_hex(GENERATED_SECRET_BYTES)
        return cls(signing_key=secret, verification_key=secret, generated=True)


class Signer:
    """Async JWT sign/verify for a fixed algorithm and key material."""

    def __init__(
        self,
        keys: KeyMaterial,
        algorithm: str,
        expires_in: float,
        not_before: float | None = None,
    ) -> None:
        """Initialize signer.

        Args:
            keys: Key material (never mutated after construction).
            algorithm: JWS algorithm identifier.
            expires_in: Token lifetime in seconds.
            not_before: Seconds after issue before the token becomes valid.
        """
        self._keys = keys
        self.algorithm = algorithm
        self.expires_in = expires_in
        self.not_before = not_before

    @classmethod
    def from_config(cls, config: JwtEngineConfig) -> "Signer":
        return cls(
            keys=KeyMaterial.from_config(config),
            algorithm=config.algorithm,
            expires_in=config.expires_in,
            not_before=config.not_before,
        )

    @property
    def uses_generated_secret(self) -> bool:
        return self._keys.generated

    def _build_claims(self, payload: dict[str, Any]) -> dict[str, Any]:
        now = time.time()
        claims = {k: v for k, v in payload.items() if k not in _TIMING_CLAIMS}
        claims["iat"] = int(now)
        claims["exp"] = int(now + self.expires_in)
        if self.not_before is not None:
            claims["nbf"] = int(now + self.not_before)
        return claims

    def _encode(self, payload: dict[str, Any]) -> str:
        try:
            return jwt.encode(self._build_claims(payload), self._keys.signing_key, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise SigningError(f"Failed to sign token: {e}") from e

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self._keys.verification_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise VerificationError("Token has expired", reason="expired") from e
        except jwt.ImmatureSignatureError as e:
            raise VerificationError("Token is not yet valid", reason="not_yet_valid") from e
        except jwt.InvalidSignatureError as e:
            raise VerificationError("Token signature is invalid", reason="bad_signature") from e
        except jwt.PyJWTError as e:
            raise VerificationError(f"Malformed token: {e}", reason="malformed") from e

    async def sign(self, payload: dict[str, Any]) -> str:
        """Sign a payload.

        iat and exp (and nbf when configured) are set here; any timing claims
        already in the payload are replaced, never merged.

        Args:
            payload: Claims to sign.

        Returns:
            Compact JWS string.

        Raises:
            SigningError: If PyJWT rejects the key or payload.
        """
        return await asyncio.to_thread(self._encode, payload)

    async def verify(self, token: str) -> dict[str, Any]:
        """Verify a signed token and return its claims.

        Args:
            token: Compact JWS string.

        Returns:
            Decoded claims.

        Raises:
            VerificationError: On expiry, not-before, signature or format failure.
        """
        return await asyncio.to_thread(self._decode, token)
