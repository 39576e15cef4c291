"""Starlette middleware that runs AuthEngine.verify() on every request.

The handler's response does not exist yet when verification runs, so token
changes (Set-Cookie, token response headers) are written to a header-only
carrier response and merged into the real response after the handler
returns. This is the same sub-response approach FastAPI uses for
`response: Response` parameters.

Usage:
    app = FastAPI()
    engine = install_engine(app, JwtEngineConfig(secret_key="..."))

    @app.get("/me", dependencies=[Depends(require_authenticated)])
    async def me(request: Request):
        return request.state.token
"""

from __future__ import annotations

__all__ = [
    "JwtEngineMiddleware",
    "install_engine",
]

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from jwt_engine.config import JwtEngineConfig
from jwt_engine.engine import AuthEngine, InvalidTokenHook


def _header_carrier() -> Response:
    """Create an empty response used only to collect headers."""
    carrier = Response()
    del carrier.headers["content-length"]
    return carrier


class JwtEngineMiddleware(BaseHTTPMiddleware):
    """Verify the request token before any handler runs.

    After dispatch, request.state holds token, signed_token, resolved_auth
    and auth (an AuthContext with authenticate/deauthenticate).
    """

    def __init__(
        self,
        app: ASGIApp,
        engine: AuthEngine | None = None,
        config: JwtEngineConfig | None = None,
        on_invalid_token: InvalidTokenHook | None = None,
    ) -> None:
        """Initialize middleware.

        Args:
            app: ASGI application.
            engine: Pre-built engine. If omitted, one is built from config.
            config: Engine configuration (ignored when engine is given).
            on_invalid_token: Invalid-token hook (ignored when engine is given).
        """
        super().__init__(app)
        self.engine = engine or AuthEngine(config, on_invalid_token=on_invalid_token)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        carrier = _header_carrier()

        await self.engine.verify(request, carrier)
        request.state.auth = self.engine.bind(request, carrier)

        response = await call_next(request)

        response.raw_headers.extend(carrier.raw_headers)
        return response


def install_engine(
    app: ASGIApp,
    config: JwtEngineConfig | None = None,
    on_invalid_token: InvalidTokenHook | None = None,
) -> AuthEngine:
    """Build an AuthEngine and register JwtEngineMiddleware on a Starlette app.

    Args:
        app: Starlette or FastAPI application.
        config: Engine configuration.
        on_invalid_token: Invalid-token hook.

    Returns:
        The engine, for direct use (e.g. issuing tokens outside a request).
    """
    engine = AuthEngine(config, on_invalid_token=on_invalid_token)
    app.add_middleware(JwtEngineMiddleware, engine=engine)  # type: ignore[attr-defined]
    return engine
