"""Modifier tokens: a second token bound to the primary token.

Cookie-only authentication is exposed to cross-site request forgery because
browsers attach cookies to cross-origin requests. A modifier token travels
separately from the primary token and must match it on every request:

- HeaderModifierEngine: the client reads the modifier from a response header
  and sends it back in a custom request header. A cross-origin form post
  cannot set that header, so a stolen or ambient cookie alone is useless.
- CookieModifierEngine: the modifier lives in its own cookie (readable by
  client script by default), issued and expired together with the primary.

The modifier value is HMAC-SHA256(modifier_secret, primary_token), so it is
only valid alongside the exact primary token it was issued for.
"""

from __future__ import annotations

__all__ = [
    "CookieModifierEngine",
    "HeaderModifierEngine",
    "ModifierTokenEngine",
    "create_modifier_engine",
    "derive_modifier_token",
]

import hashlib
import hmac
import math
import secrets
from typing import Any, Protocol, runtime_checkable

from starlette.requests import Request
from starlette.responses import Response

from jwt_engine.config import CookieModifierConfig, HeaderModifierConfig, JwtEngineConfig
from jwt_engine.constants import GENERATED_SECRET_BYTES


def derive_modifier_token(secret: str, main_token: str) -> str:
    """Derive the modifier token for a primary token.

    Args:
        secret: Modifier HMAC secret.
        main_token: Signed primary token.

    Returns:
        64-character hex digest.
    """
    return hmac.new(secret.encode("utf-8"), main_token.encode("utf-8"), hashlib.sha256).hexdigest()


@runtime_checkable
class ModifierTokenEngine(Protocol):
    """Protocol for issuing and checking modifier tokens."""

    kind: str

    async def issue(self, main_token: str, payload: dict[str, Any], response: Response) -> None:
        """Issue the modifier token for main_token on the response."""
        ...

    async def validate(self, request: Request, main_token: str) -> bool:
        """Return True if the request carries the modifier token for main_token."""
        ...

    async def remove(self, response: Response) -> None:
        """Tell the client to discard its modifier token."""
        ...


class _HmacModifier:
    """Shared derivation and constant-time comparison."""

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret or secrets.token_hex(GENERATED_SECRET_BYTES)

    def _derive(self, main_token: str) -> str:
        return derive_modifier_token(self._secret, main_token)

    def _matches(self, provided: str | None, main_token: str) -> bool:
        if not provided:
            return False
        return hmac.compare_digest(provided, self._derive(main_token))


class CookieModifierEngine(_HmacModifier):
    """Modifier token stored in a separate cookie."""

    kind = "cookie"

    def __init__(self, config: CookieModifierConfig, expires_in: float, secret: str | None = None) -> None:
        super().__init__(secret)
        self.config = config
        self._max_age = config.max_age if config.max_age is not None else max(1, math.ceil(expires_in))

    async def issue(self, main_token: str, payload: dict[str, Any], response: Response) -> None:
        response.set_cookie(
            key=self.config.name,
            value=self._derive(main_token),
            max_age=self._max_age,
            path=self.config.path,
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=self.config.http_only,
            samesite=self.config.same_site,
        )

    async def validate(self, request: Request, main_token: str) -> bool:
        return self._matches(request.cookies.get(self.config.name), main_token)

    async def remove(self, response: Response) -> None:
        response.delete_cookie(
            key=self.config.name,
            path=self.config.path,
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=self.config.http_only,
            samesite=self.config.same_site,
        )


class HeaderModifierEngine(_HmacModifier):
    """Modifier token echoed back by the client in a custom request header."""

    kind = "header"

    def __init__(self, config: HeaderModifierConfig, secret: str | None = None) -> None:
        super().__init__(secret)
        self.config = config

    async def issue(self, main_token: str, payload: dict[str, Any], response: Response) -> None:
        response.headers[self.config.response_header] = self._derive(main_token)

    async def validate(self, request: Request, main_token: str) -> bool:
        provided = request.headers.get(self.config.header_name)
        return self._matches(provided.strip() if provided else None, main_token)

    async def remove(self, response: Response) -> None:
        # Clients drop the value themselves; only undo an issue() in this response
        if self.config.response_header in response.headers:
            del response.headers[self.config.response_header]


def create_modifier_engine(config: JwtEngineConfig) -> ModifierTokenEngine | None:
    """Create the modifier engine selected by configuration.

    Args:
        config: Engine configuration.

    Returns:
        CookieModifierEngine, HeaderModifierEngine, or None if not configured.
    """
    modifier_config = config.modifier
    if modifier_config is None:
        return None
    if isinstance(modifier_config, HeaderModifierConfig):
        return HeaderModifierEngine(modifier_config, secret=config.modifier_secret)
    return CookieModifierEngine(modifier_config, expires_in=config.expires_in, secret=config.modifier_secret)
