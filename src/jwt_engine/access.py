"""Access predicates over the resolved identity state.

Two layers:
- check_* functions: pure, stateless tests of a RequestAuth. Safe to use
  anywhere, including outside a request.
- require_* FastAPI dependencies: run the checks against request.state and
  raise HTTPException to halt the handler chain.

Status codes:
    require_authenticated               401 unless AUTHENTICATED
    require_not_authenticated           403 if AUTHENTICATED
    require_authenticated_and_contains  401 unless AUTHENTICATED,
                                        403 if the claims don't match

Usage with Annotated (recommended):
    @app.get("/me")
    async def me(payload: AuthenticatedPayload) -> dict:
        return payload

    @app.get("/admin", dependencies=[Depends(require_authenticated_and_contains({"role": "admin"}))])
    async def admin() -> dict:
        ...
"""

from __future__ import annotations

__all__ = [
    # Pure checks
    "ClaimsPredicate",
    "check_authenticated",
    "check_authenticated_and_contains",
    "check_not_authenticated",
    # Dependencies
    "require_authenticated",
    "require_authenticated_and_contains",
    "require_not_authenticated",
    "resolve_request_auth",
    # Type aliases for Annotated pattern
    "AuthenticatedPayload",
    "RequestAuthDep",
]

from typing import Annotated, Any, Callable, Mapping, Union

from fastapi import Depends, HTTPException, Request

from jwt_engine.engine import get_request_auth
from jwt_engine.state import AuthState, RequestAuth

ClaimsPredicate = Union[Callable[[dict[str, Any]], bool], Mapping[str, Any]]


# =============================================================================
# Pure Checks
# =============================================================================


def check_authenticated(auth: RequestAuth) -> bool:
    """True only for AUTHENTICATED."""
    return auth.state is AuthState.AUTHENTICATED


def check_not_authenticated(auth: RequestAuth) -> bool:
    """True for UNAUTHENTICATED and INVALID."""
    return auth.state is not AuthState.AUTHENTICATED


def _payload_matches(payload: dict[str, Any], predicate: ClaimsPredicate) -> bool:
    if isinstance(predicate, Mapping):
        return all(key in payload and payload[key] == value for key, value in predicate.items())
    return bool(predicate(payload))


def check_authenticated_and_contains(auth: RequestAuth, predicate: ClaimsPredicate) -> bool:
    """True for AUTHENTICATED when the payload satisfies predicate.

    Args:
        auth: Resolved identity.
        predicate: Callable over the payload, or a mapping of required
            claim values (every key must be present with an equal value).

    Returns:
        True if access is allowed.
    """
    if not check_authenticated(auth) or auth.payload is None:
        return False
    return _payload_matches(auth.payload, predicate)


# =============================================================================
# FastAPI Dependencies
# =============================================================================


def resolve_request_auth(request: Request) -> RequestAuth:
    """Get the RequestAuth stored by JwtEngineMiddleware.

    Raises:
        HTTPException: 500 if the middleware is not installed.
    """
    try:
        return get_request_auth(request)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


def require_authenticated(request: Request) -> dict[str, Any]:
    """Allow only authenticated requests.

    Returns:
        The decoded token payload.

    Raises:
        HTTPException: 401 if the request is not authenticated.
    """
    auth = resolve_request_auth(request)
    if not check_authenticated(auth) or auth.payload is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return auth.payload


def require_not_authenticated(request: Request) -> None:
    """Allow only unauthenticated (or invalid-token) requests.

    Used for login and signup routes.

    Raises:
        HTTPException: 403 if the request is already authenticated.
    """
    auth = resolve_request_auth(request)
    if not check_not_authenticated(auth):
        raise HTTPException(status_code=403, detail="Already authenticated")


def require_authenticated_and_contains(predicate: ClaimsPredicate) -> Callable[[Request], dict[str, Any]]:
    """Build a dependency that requires authentication plus matching claims.

    Args:
        predicate: Callable over the payload or mapping of required claim values.

    Returns:
        FastAPI dependency returning the payload.
    """

    def dependency(request: Request) -> dict[str, Any]:
        payload = require_authenticated(request)
        if not _payload_matches(payload, predicate):
            raise HTTPException(status_code=403, detail="Insufficient claims")
        return payload

    return dependency


RequestAuthDep = Annotated[RequestAuth, Depends(resolve_request_auth)]
AuthenticatedPayload = Annotated[dict[str, Any], Depends(require_authenticated)]
