"""AuthEngine: the sign/verify lifecycle for stateless request authentication.

Per request:
1. verify() reads the primary token through the TokenTransport, verifies it
   with the Signer and (if configured) checks the modifier token. The result
   is stored on request.state before any handler runs.
2. Handlers read request.state.auth (an AuthContext) and may call
   authenticate() or deauthenticate() on it any number of times.

Request state written by the engine:
    request.state.token          decoded payload, or None
    request.state.signed_token   raw signed token, or None
    request.state.resolved_auth  RequestAuth (state + reason)

Verification failures never raise. They resolve to AuthState.INVALID,
remove the token from the client and call the on_invalid_token hook.
Signing failures raise SigningError to the caller of authenticate().

Key material is fixed at construction. With no configured key a random
secret is generated, so restarting the process invalidates every token
issued before the restart.
"""

from __future__ import annotations

__all__ = [
    "AuthContext",
    "AuthEngine",
    "InvalidTokenHook",
    "get_request_auth",
]

import inspect
from typing import Any, Awaitable, Callable, Union

from starlette.requests import Request
from starlette.responses import Response

from jwt_engine.config import JwtEngineConfig
from jwt_engine.exceptions import SigningError, VerificationError
from jwt_engine.modifier import ModifierTokenEngine, create_modifier_engine
from jwt_engine.signer import Signer
from jwt_engine.state import AuthState, InvalidReason, RequestAuth
from jwt_engine.telemetry.auth_logger import get_auth_logger
from jwt_engine.telemetry.system_logger import get_system_logger
from jwt_engine.transports import TokenTransport, create_token_transport

InvalidTokenHook = Callable[[str, Request, Response], Union[Awaitable[None], None]]

logger = get_system_logger()


def get_request_auth(request: Request) -> RequestAuth:
    """Get the resolved identity for a request.

    Args:
        request: Incoming request.

    Returns:
        RequestAuth stored by AuthEngine.verify().

    Raises:
        RuntimeError: If the request was never verified (middleware missing).
    """
    auth = getattr(request.state, "resolved_auth", None)
    if auth is None:
        raise RuntimeError("Request was not verified. Is JwtEngineMiddleware installed?")
    return auth


class AuthEngine:
    """Orchestrates token verification, issuing and removal.

    Usage:
        engine = AuthEngine(JwtEngineConfig(secret_key="..."))
        await engine.verify(request, response)
        signed = await engine.authenticate({"sub": "user-1"}, request, response)
        await engine.deauthenticate(request, response)
    """

    def __init__(
        self,
        config: JwtEngineConfig | None = None,
        *,
        on_invalid_token: InvalidTokenHook | None = None,
        signer: Signer | None = None,
        transport: TokenTransport | None = None,
        modifier: ModifierTokenEngine | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Engine configuration (default: cookie transport, HS256, 1 day).
            on_invalid_token: Called as hook(signed_token, request, response)
                when a present token fails verification. May be async.
            signer: Signer override (default: built from config).
            transport: Transport override (default: built from config).
            modifier: Modifier engine override (default: built from config).
        """
        self.config = config or JwtEngineConfig()
        self.signer = signer or Signer.from_config(self.config)
        self.transport = transport or create_token_transport(self.config)
        self.modifier = modifier or create_modifier_engine(self.config)
        self._on_invalid_token = on_invalid_token
        self._auth_logger = get_auth_logger(transport=self.transport.kind)

        if self.signer.uses_generated_secret:
            logger.warning(
                {
                    "event": "ephemeral_secret_generated",
                    "message": "No key material configured; generated a random secret. "
                    "Tokens issued by this engine become invalid when the process restarts.",
                    "component": "auth_engine",
                    "details": {"algorithm": self.signer.algorithm},
                }
            )

    # -------------------------------------------------------------------------
    # Request state
    # -------------------------------------------------------------------------

    @staticmethod
    def _store(request: Request, auth: RequestAuth) -> RequestAuth:
        request.state.resolved_auth = auth
        request.state.token = auth.payload
        request.state.signed_token = auth.signed_token
        return auth

    def bind(self, request: Request, response: Response) -> "AuthContext":
        """Bind authenticate/deauthenticate to a request/response pair."""
        return AuthContext(self, request, response)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def verify(self, request: Request, response: Response) -> RequestAuth:
        """Resolve the identity state of a request.

        Args:
            request: Incoming request.
            response: Response that carries token removal on failure.

        Returns:
            The resolved RequestAuth (also stored on request.state).
        """
        signed_token = await self.transport.get(request)
        if signed_token is None:
            return self._store(request, RequestAuth.unauthenticated())

        try:
            payload = await self.signer.verify(signed_token)
        except VerificationError as e:
            return await self._reject(
                signed_token,
                request,
                response,
                reason=InvalidReason.TOKEN,
                error_type=e.reason,
                error_message=str(e),
            )

        if self.modifier is not None and not await self.modifier.validate(request, signed_token):
            return await self._reject(
                signed_token,
                request,
                response,
                reason=InvalidReason.MODIFIER,
                error_type="modifier_mismatch",
                error_message=f"Missing or mismatched {self.modifier.kind} modifier token",
            )

        logger.debug(
            {
                "event": "token_verified",
                "component": "auth_engine",
                "details": {"path": request.url.path},
            }
        )
        self._auth_logger.log_token_validated(payload=payload, path=request.url.path, method=request.method)
        return self._store(request, RequestAuth.authenticated(payload, signed_token))

    async def _reject(
        self,
        signed_token: str,
        request: Request,
        response: Response,
        *,
        reason: InvalidReason,
        error_type: str,
        error_message: str,
    ) -> RequestAuth:
        """Resolve INVALID, clear client tokens and run the invalid-token hook."""
        auth = self._store(request, RequestAuth.invalid(signed_token, reason))

        await self.transport.remove(response)
        if self.modifier is not None:
            await self.modifier.remove(response)

        logger.info(
            {
                "event": "modifier_token_rejected" if reason is InvalidReason.MODIFIER else "token_invalid",
                "message": error_message,
                "component": "auth_engine",
                "details": {"reason": error_type, "path": request.url.path},
            }
        )
        self._auth_logger.log_token_invalid(
            error_type=error_type,
            error_message=error_message,
            path=request.url.path,
            method=request.method,
        )

        if self._on_invalid_token is not None:
            try:
                result = self._on_invalid_token(signed_token, request, response)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    {
                        "event": "invalid_token_hook_failed",
                        "message": f"on_invalid_token hook raised: {e}",
                        "component": "auth_engine",
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                    }
                )
                raise

        return auth

    async def authenticate(
        self,
        payload: dict[str, Any] | None,
        request: Request,
        response: Response,
    ) -> str:
        """Sign a new token and attach it to the request and response.

        The payload replaces any previous payload; nothing is merged.

        Args:
            payload: Claims to sign (None signs an empty claim set).
            request: Current request (its state is updated).
            response: Response the token is persisted on.

        Returns:
            The signed token.

        Raises:
            SigningError: If the signer fails.
        """
        claims = dict(payload or {})
        try:
            signed_token = await self.signer.sign(claims)
        except SigningError as e:
            logger.error(
                {
                    "event": "signing_failed",
                    "message": str(e),
                    "component": "auth_engine",
                    "error_type": type(e.__cause__).__name__ if e.__cause__ else None,
                }
            )
            raise

        self._store(request, RequestAuth.authenticated(claims, signed_token))
        await self.transport.set(signed_token, claims, response)
        if self.modifier is not None:
            await self.modifier.issue(signed_token, claims, response)

        logger.debug(
            {
                "event": "token_signed",
                "component": "auth_engine",
                "details": {"algorithm": self.signer.algorithm, "expires_in": self.signer.expires_in},
            }
        )
        self._auth_logger.log_authenticated(payload=claims, path=request.url.path, method=request.method)
        return signed_token

    async def deauthenticate(self, request: Request, response: Response) -> None:
        """Remove the token from the request state, the client and the modifier.

        Args:
            request: Current request (later code sees no token).
            response: Response carrying the removal to the client.
        """
        previous = getattr(request.state, "token", None)
        self._store(request, RequestAuth.unauthenticated())
        await self.transport.remove(response)
        if self.modifier is not None:
            await self.modifier.remove(response)
        self._auth_logger.log_deauthenticated(payload=previous, path=request.url.path, method=request.method)


class AuthContext:
    """Request-scoped view of the resolved identity plus bound actions.

    Installed as request.state.auth by JwtEngineMiddleware:

        @app.post("/login")
        async def login(request: Request):
            token = await request.state.auth.authenticate({"sub": "user-1"})
            return {"token": token}
    """

    def __init__(self, engine: AuthEngine, request: Request, response: Response) -> None:
        self._engine = engine
        self._request = request
        self._response = response

    @property
    def resolved(self) -> RequestAuth:
        return get_request_auth(self._request)

    @property
    def state(self) -> AuthState:
        return self.resolved.state

    @property
    def payload(self) -> dict[str, Any] | None:
        return self.resolved.payload

    @property
    def signed_token(self) -> str | None:
        return self.resolved.signed_token

    @property
    def invalid_reason(self) -> InvalidReason | None:
        return self.resolved.invalid_reason

    @property
    def is_authenticated(self) -> bool:
        return self.resolved.is_authenticated

    async def authenticate(self, payload: dict[str, Any] | None = None) -> str:
        """Sign and attach a new token. See AuthEngine.authenticate()."""
        return await self._engine.authenticate(payload, self._request, self._response)

    async def deauthenticate(self) -> None:
        """Remove the token. See AuthEngine.deauthenticate()."""
        await self._engine.deauthenticate(self._request, self._response)
