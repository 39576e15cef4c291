"""Engine configuration for jwt-engine.

Defines configuration models for key material, token lifetime, the primary
token transport and the optional modifier token scheme. Every field is
optional; an empty JwtEngineConfig() is a working cookie-based HS256 setup
with a per-process random secret.

Example usage:
    # Load from config file
    config = JwtEngineConfig.load_from_file(config_path)

    # Save configuration
    config.save_to_file(config_path)
"""

from __future__ import annotations

__all__ = [
    "CookieModifierConfig",
    "CookieTransportConfig",
    "HeaderModifierConfig",
    "HeaderTransportConfig",
    "JwtEngineConfig",
    "ModifierConfig",
    "TransportConfig",
]

import json
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from jwt_engine.constants import (
    ASYMMETRIC_ALGORITHMS,
    DEFAULT_ALGORITHM,
    DEFAULT_AUTH_HEADER,
    DEFAULT_AUTH_SCHEME,
    DEFAULT_COOKIE_NAME,
    DEFAULT_COOKIE_PATH,
    DEFAULT_EXPIRES_IN,
    DEFAULT_MODIFIER_COOKIE_NAME,
    DEFAULT_MODIFIER_HEADER,
    DEFAULT_TOKEN_RESPONSE_HEADER,
    SYMMETRIC_ALGORITHMS,
)
from jwt_engine.exceptions import ConfigurationError
from jwt_engine.utils.duration import parse_duration


# =============================================================================
# Primary Token Transport
# =============================================================================


class _CookieSettings(BaseModel):
    """Cookie attributes shared by the cookie transport and cookie modifier.

    Attributes:
        path: Cookie path.
        domain: Cookie domain, or None for host-only cookies.
        secure: Send only over HTTPS.
        same_site: SameSite policy.
        max_age: Cookie lifetime in seconds, or None to follow the token expiry.
    """

    path: str = DEFAULT_COOKIE_PATH
    domain: str | None = None
    secure: bool = True
    same_site: Literal["lax", "strict", "none"] = "lax"
    max_age: int | None = Field(default=None, ge=0)


class CookieTransportConfig(_CookieSettings):
    """Primary token carried in an HTTP cookie.

    Attributes:
        kind: Discriminator ("cookie").
        name: Cookie name.
        http_only: Hide the cookie from client-side script.
    """

    kind: Literal["cookie"] = "cookie"
    name: str = DEFAULT_COOKIE_NAME
    http_only: bool = True


class HeaderTransportConfig(BaseModel):
    """Primary token carried in an Authorization-style request header.

    Attributes:
        kind: Discriminator ("header").
        header_name: Request header holding "<scheme> <token>".
        scheme: Authorization scheme expected before the token.
        response_header: Response header used to hand a new token to the client.
    """

    kind: Literal["header"] = "header"
    header_name: str = DEFAULT_AUTH_HEADER
    scheme: str = DEFAULT_AUTH_SCHEME
    response_header: str = DEFAULT_TOKEN_RESPONSE_HEADER


TransportConfig = Annotated[
    Union[CookieTransportConfig, HeaderTransportConfig],
    Field(discriminator="kind"),
]


# =============================================================================
# Modifier Token
# =============================================================================


class CookieModifierConfig(_CookieSettings):
    """Modifier token carried in its own cookie.

    http_only defaults to False so client script can read the value.

    Attributes:
        kind: Discriminator ("cookie").
        name: Cookie name.
        http_only: Hide the cookie from client-side script.
    """

    kind: Literal["cookie"] = "cookie"
    name: str = DEFAULT_MODIFIER_COOKIE_NAME
    http_only: bool = False


class HeaderModifierConfig(BaseModel):
    """Modifier token the client must echo back in a custom request header.

    Attributes:
        kind: Discriminator ("header").
        header_name: Request header the client sends the modifier token in.
        response_header: Response header the modifier token is issued in.
    """

    kind: Literal["header"] = "header"
    header_name: str = DEFAULT_MODIFIER_HEADER
    response_header: str = DEFAULT_MODIFIER_HEADER


ModifierConfig = Annotated[
    Union[CookieModifierConfig, HeaderModifierConfig],
    Field(discriminator="kind"),
]


# =============================================================================
# Engine Configuration
# =============================================================================


class JwtEngineConfig(BaseModel):
    """Main configuration for an AuthEngine.

    Key material:
    - private_key + public_key (PEM): asymmetric signing (RS*/PS*/ES*/EdDSA).
    - secret_key: shared secret for HS* algorithms.
    - neither: the engine generates a random secret at construction.
      Tokens signed with a generated secret do not survive a restart.

    Attributes:
        secret_key: Shared HMAC secret.
        private_key: PEM private key used for signing.
        public_key: PEM public key used for verification.
        algorithm: JWS algorithm identifier.
        expires_in: Token lifetime in seconds (accepts "1 day", "2h", ...).
        not_before: Delay before a new token becomes valid, in seconds.
        transport: Primary token transport (cookie or header).
        modifier: Modifier token scheme, or None to disable.
        modifier_secret: HMAC secret for modifier tokens (random if omitted).

    Construction and model_validate() raise ConfigurationError for invalid
    values (unsupported algorithm, half-specified key pair, bad duration).
    """

    secret_key: str | None = None
    private_key: str | None = None
    public_key: str | None = None
    algorithm: str = DEFAULT_ALGORITHM
    expires_in: float = Field(default_factory=lambda: parse_duration(DEFAULT_EXPIRES_IN))
    not_before: float | None = None
    transport: TransportConfig = Field(default_factory=CookieTransportConfig)
    modifier: ModifierConfig | None = None
    modifier_secret: str | None = None

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @classmethod
    def model_validate(cls, obj: Any, **kwargs: Any) -> "JwtEngineConfig":
        """Validate obj, raising ConfigurationError instead of ValidationError."""
        try:
            return super().model_validate(obj, **kwargs)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @field_validator("expires_in", "not_before", mode="before")
    @classmethod
    def _parse_durations(cls, value: object) -> float | None:
        if value is None:
            return None
        return parse_duration(value)  # type: ignore[arg-type]

    @field_validator("algorithm")
    @classmethod
    def _check_algorithm(cls, value: str) -> str:
        if value not in SYMMETRIC_ALGORITHMS | ASYMMETRIC_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {value}")
        return value

    @model_validator(mode="after")
    def _check_key_material(self) -> "JwtEngineConfig":
        if bool(self.private_key) != bool(self.public_key):
            raise ValueError("private_key and public_key must be provided together")

        has_pair = self.uses_key_pair
        if self.algorithm in ASYMMETRIC_ALGORITHMS and not has_pair:
            raise ValueError(f"Algorithm {self.algorithm} requires private_key and public_key")
        if self.algorithm in SYMMETRIC_ALGORITHMS and has_pair:
            raise ValueError(f"Algorithm {self.algorithm} uses secret_key, not a key pair")
        return self

    @property
    def uses_key_pair(self) -> bool:
        """True when an asymmetric key pair is configured."""
        return bool(self.private_key) and bool(self.public_key)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a JSON file.

        Key material is written as-is, so the file gets owner-only permissions.

        Args:
            config_path: Destination path.
        """
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

        config_path.chmod(0o600)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "JwtEngineConfig":
        """Load configuration from a JSON file.

        Args:
            config_path: Path to the config file.

        Returns:
            Validated JwtEngineConfig.

        Raises:
            FileNotFoundError: If the config file doesn't exist.
            ConfigurationError: If the file is not valid JSON or fails validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in config file {config_path}: {e}") from e

        try:
            return super().model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e
