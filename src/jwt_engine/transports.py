"""Primary token transports.

A TokenTransport decides where the signed token lives between requests:
- CookieTransport: HTTP cookie (default; secure, HttpOnly, SameSite=Lax)
- HeaderTransport: Authorization-style request header

The TokenTransport protocol lets AuthEngine stay unaware of which variant
is active. The variant is picked from JwtEngineConfig.transport by
create_token_transport().
"""

from __future__ import annotations

__all__ = [
    "CookieTransport",
    "HeaderTransport",
    "TokenTransport",
    "create_token_transport",
]

import math
from typing import Any, Protocol, runtime_checkable

from starlette.requests import Request
from starlette.responses import Response

from jwt_engine.config import CookieTransportConfig, HeaderTransportConfig, JwtEngineConfig
from jwt_engine.exceptions import TransportError


@runtime_checkable
class TokenTransport(Protocol):
    """Protocol for moving the primary signed token between client and server.

    get() never raises for an absent or malformed token; both are None.
    """

    kind: str

    async def get(self, request: Request) -> str | None:
        """Read the signed token from the request."""
        ...

    async def set(self, signed_token: str, payload: dict[str, Any], response: Response) -> None:
        """Persist the signed token on the response."""
        ...

    async def remove(self, response: Response) -> None:
        """Tell the client to stop sending the token."""
        ...


class CookieTransport:
    """Signed token stored in an HTTP cookie."""

    kind = "cookie"

    def __init__(self, config: CookieTransportConfig, expires_in: float) -> None:
        """Initialize cookie transport.

        Args:
            config: Cookie name and attributes.
            expires_in: Token lifetime, used as max-age unless config.max_age is set.
        """
        self.config = config
        self._max_age = config.max_age if config.max_age is not None else max(1, math.ceil(expires_in))

    async def get(self, request: Request) -> str | None:
        value = request.cookies.get(self.config.name)
        return value or None

    async def set(self, signed_token: str, payload: dict[str, Any], response: Response) -> None:
        response.set_cookie(
            key=self.config.name,
            value=signed_token,
            max_age=self._max_age,
            path=self.config.path,
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=self.config.http_only,
            samesite=self.config.same_site,
        )

    async def remove(self, response: Response) -> None:
        response.delete_cookie(
            key=self.config.name,
            path=self.config.path,
            domain=self.config.domain,
            secure=self.config.secure,
            httponly=self.config.http_only,
            samesite=self.config.same_site,
        )


class HeaderTransport:
    """Signed token sent by the client as "<scheme> <token>" in a request header.

    New tokens are handed to the client in a response header. Headers cannot
    be expired from the server, so remove() only drops a token issued earlier
    in the same response.
    """

    kind = "header"

    def __init__(self, config: HeaderTransportConfig) -> None:
        self.config = config

    def _parse(self, header_value: str) -> str:
        """Extract the token from a header value.

        Raises:
            TransportError: If the scheme is wrong or the token is missing.
        """
        scheme, _, token = header_value.strip().partition(" ")
        if scheme.lower() != self.config.scheme.lower():
            raise TransportError(f"Unexpected authorization scheme: {scheme!r}")
        token = token.strip()
        if not token:
            raise TransportError("Authorization header has no token")
        return token

    async def get(self, request: Request) -> str | None:
        header_value = request.headers.get(self.config.header_name)
        if not header_value:
            return None
        try:
            return self._parse(header_value)
        except TransportError:
            return None

    async def set(self, signed_token: str, payload: dict[str, Any], response: Response) -> None:
        response.headers[self.config.response_header] = signed_token

    async def remove(self, response: Response) -> None:
        if self.config.response_header in response.headers:
            del response.headers[self.config.response_header]


def create_token_transport(config: JwtEngineConfig) -> TokenTransport:
    """Create the primary token transport selected by configuration.

    Args:
        config: Engine configuration.

    Returns:
        CookieTransport or HeaderTransport.
    """
    transport_config = config.transport
    if isinstance(transport_config, HeaderTransportConfig):
        return HeaderTransport(transport_config)
    return CookieTransport(transport_config, expires_in=config.expires_in)
