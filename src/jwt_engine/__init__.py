"""jwt-engine: stateless JWT request authentication for Starlette/FastAPI.

This package provides:
- AuthEngine: verify-on-request, authenticate/deauthenticate actions
- Token transports: cookie (default) or Authorization-style header
- Modifier tokens: a second token bound to the primary one (CSRF defense)
- Access predicates: pure checks plus FastAPI dependencies

Quick start:
    from fastapi import FastAPI, Request
    from jwt_engine import AuthenticatedPayload, JwtEngineConfig, install_engine

    app = FastAPI()
    install_engine(app, JwtEngineConfig(secret_key="change-me"))

    @app.post("/login")
    async def login(request: Request):
        await request.state.auth.authenticate({"sub": "user-1"})
        return {"ok": True}

    @app.get("/me")
    async def me(payload: AuthenticatedPayload):
        return payload
"""

__version__ = "0.1.0"

from jwt_engine.access import (
    AuthenticatedPayload,
    ClaimsPredicate,
    RequestAuthDep,
    check_authenticated,
    check_authenticated_and_contains,
    check_not_authenticated,
    require_authenticated,
    require_authenticated_and_contains,
    require_not_authenticated,
)
from jwt_engine.config import (
    CookieModifierConfig,
    CookieTransportConfig,
    HeaderModifierConfig,
    HeaderTransportConfig,
    JwtEngineConfig,
)
from jwt_engine.engine import AuthContext, AuthEngine, InvalidTokenHook, get_request_auth
from jwt_engine.exceptions import (
    ConfigurationError,
    JwtEngineError,
    SigningError,
    TransportError,
    VerificationError,
)
from jwt_engine.middleware import JwtEngineMiddleware, install_engine
from jwt_engine.modifier import (
    CookieModifierEngine,
    HeaderModifierEngine,
    ModifierTokenEngine,
    create_modifier_engine,
)
from jwt_engine.signer import KeyMaterial, Signer
from jwt_engine.state import AuthState, InvalidReason, RequestAuth
from jwt_engine.transports import (
    CookieTransport,
    HeaderTransport,
    TokenTransport,
    create_token_transport,
)

__all__ = [
    "__version__",
    # Engine
    "AuthEngine",
    "AuthContext",
    "InvalidTokenHook",
    "get_request_auth",
    "JwtEngineMiddleware",
    "install_engine",
    # State
    "AuthState",
    "InvalidReason",
    "RequestAuth",
    # Configuration
    "JwtEngineConfig",
    "CookieTransportConfig",
    "HeaderTransportConfig",
    "CookieModifierConfig",
    "HeaderModifierConfig",
    # Signing
    "Signer",
    "KeyMaterial",
    # Transports
    "TokenTransport",
    "CookieTransport",
    "HeaderTransport",
    "create_token_transport",
    # Modifier tokens
    "ModifierTokenEngine",
    "CookieModifierEngine",
    "HeaderModifierEngine",
    "create_modifier_engine",
    # Access predicates
    "ClaimsPredicate",
    "check_authenticated",
    "check_not_authenticated",
    "check_authenticated_and_contains",
    "require_authenticated",
    "require_not_authenticated",
    "require_authenticated_and_contains",
    "AuthenticatedPayload",
    "RequestAuthDep",
    # Exceptions
    "JwtEngineError",
    "SigningError",
    "VerificationError",
    "TransportError",
    "ConfigurationError",
]
