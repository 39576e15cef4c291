"""Tests for AuthEngine lifecycle: verify, authenticate, deauthenticate.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import logging
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import SECRET, build_request, response_cookies, tamper
from jwt_engine.config import HeaderModifierConfig, HeaderTransportConfig, JwtEngineConfig
from jwt_engine.engine import AuthContext, AuthEngine, get_request_auth
from jwt_engine.exceptions import SigningError
from jwt_engine.modifier import derive_modifier_token
from jwt_engine.state import AuthState, InvalidReason

MODIFIER_SECRET = "modifier-secret"


@pytest.fixture
def engine() -> AuthEngine:
    return AuthEngine(JwtEngineConfig(secret_key=SECRET, expires_in="1h"))


async def _issue(engine: AuthEngine, payload: dict, make_response) -> tuple[str, dict[str, str]]:
    """Authenticate on a fresh request and return (token, cookies set)."""
    request = build_request()
    response = make_response()
    await engine.authenticate(payload, request, response)
    return request.state.signed_token, response_cookies(response)


def _wait_for_second_boundary() -> None:
    """Sleep until early in a wall-clock second (exp has one-second resolution)."""
    fraction = time.time() % 1
    if fraction > 0.5:
        time.sleep(1.0 - fraction + 0.01)


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Tests for AuthEngine construction."""

    def test_defaults_to_cookie_transport_without_modifier(self):
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET))

        assert engine.transport.kind == "cookie"
        assert engine.modifier is None

    def test_warns_when_secret_is_generated(self, caplog):
        # Act
        with caplog.at_level(logging.WARNING, logger="jwt_engine.system"):
            engine = AuthEngine()

        # Assert
        assert engine.signer.uses_generated_secret is True
        events = [r.msg.get("event") for r in caplog.records if isinstance(r.msg, dict)]
        assert "ephemeral_secret_generated" in events

    def test_no_warning_with_configured_secret(self, caplog):
        with caplog.at_level(logging.WARNING, logger="jwt_engine.system"):
            AuthEngine(JwtEngineConfig(secret_key=SECRET))

        assert not caplog.records

    async def test_generated_secret_does_not_survive_new_engine(self, make_response):
        """Given two engines without key material, tokens of one fail on the other."""
        # Arrange
        first = AuthEngine()
        second = AuthEngine()
        token, cookies = await _issue(first, {"sub": "user-1"}, make_response)

        # Act
        auth = await second.verify(build_request(cookies=cookies), make_response())

        # Assert
        assert auth.state is AuthState.INVALID


# ============================================================================
# verify
# ============================================================================


class TestVerify:
    """Tests for AuthEngine.verify."""

    async def test_no_token_resolves_unauthenticated(self, engine, make_response):
        # Arrange
        request = build_request()

        # Act
        auth = await engine.verify(request, make_response())

        # Assert
        assert auth.state is AuthState.UNAUTHENTICATED
        assert request.state.token is None
        assert request.state.signed_token is None
        assert get_request_auth(request) is auth

    async def test_round_trip_resolves_authenticated(self, engine, make_response):
        # Arrange
        payload = {"sub": "user-1", "role": "admin"}
        token, cookies = await _issue(engine, payload, make_response)
        request = build_request(cookies=cookies)

        # Act
        auth = await engine.verify(request, make_response())

        # Assert
        assert auth.state is AuthState.AUTHENTICATED
        assert payload.items() <= auth.payload.items()
        assert request.state.token == auth.payload
        assert request.state.signed_token == token

    async def test_tampered_token_resolves_invalid_and_calls_hook_once(self, make_response):
        # Arrange
        hook = MagicMock()
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET), on_invalid_token=hook)
        token, _ = await _issue(engine, {"sub": "user-1"}, make_response)
        bad = tamper(token)
        request = build_request(cookies={"jwt_token": bad})
        response = make_response()

        # Act
        auth = await engine.verify(request, response)

        # Assert
        assert auth.state is AuthState.INVALID
        assert auth.invalid_reason is InvalidReason.TOKEN
        assert request.state.token is None
        assert request.state.signed_token == bad
        hook.assert_called_once_with(bad, request, response)

    async def test_invalid_token_is_removed_from_client(self, engine, make_response):
        # Arrange
        request = build_request(cookies={"jwt_token": "garbage"})
        response = make_response()

        # Act
        await engine.verify(request, response)

        # Assert
        assert response_cookies(response) == {"jwt_token": ""}

    async def test_async_hook_is_awaited(self, make_response):
        hook = AsyncMock()
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET), on_invalid_token=hook)

        await engine.verify(build_request(cookies={"jwt_token": "garbage"}), make_response())

        hook.assert_awaited_once()

    async def test_hook_not_called_for_missing_or_valid_token(self, make_response):
        hook = MagicMock()
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET), on_invalid_token=hook)
        _, cookies = await _issue(engine, {"sub": "user-1"}, make_response)

        await engine.verify(build_request(), make_response())
        await engine.verify(build_request(cookies=cookies), make_response())

        hook.assert_not_called()

    async def test_hook_errors_propagate(self, make_response):
        hook = MagicMock(side_effect=RuntimeError("hook broke"))
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET), on_invalid_token=hook)

        with pytest.raises(RuntimeError, match="hook broke"):
            await engine.verify(build_request(cookies={"jwt_token": "garbage"}), make_response())

    async def test_expired_token_resolves_invalid(self, make_response):
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET, expires_in=0))
        _, cookies = await _issue(engine, {"sub": "user-1"}, make_response)

        auth = await engine.verify(build_request(cookies=cookies), make_response())

        assert auth.state is AuthState.INVALID

    async def test_one_second_expiry_scenario(self, make_response):
        """Authenticated immediately after issue, INVALID and cleared after 1.1s."""
        # Arrange
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET, expires_in=1))
        _wait_for_second_boundary()
        _, cookies = await _issue(engine, {"user": "a"}, make_response)

        # Act: immediate verify
        first = await engine.verify(build_request(cookies=cookies), make_response())

        # Assert
        assert first.state is AuthState.AUTHENTICATED
        assert first.payload["user"] == "a"

        # Act: verify the same stored token after it expired
        time.sleep(1.1)
        response = make_response()
        second = await engine.verify(build_request(cookies=cookies), response)

        # Assert
        assert second.state is AuthState.INVALID
        assert response_cookies(response) == {"jwt_token": ""}

    async def test_verify_reads_header_transport(self, make_response):
        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET, transport=HeaderTransportConfig()))
        request = build_request()
        response = make_response()
        token = await engine.authenticate({"sub": "user-1"}, request, response)

        auth = await engine.verify(build_request(headers={"authorization": f"Bearer {token}"}), make_response())

        assert response.headers["x-auth-token"] == token
        assert auth.state is AuthState.AUTHENTICATED


# ============================================================================
# Modifier tokens
# ============================================================================


class TestVerifyWithModifier:
    """Tests for verify with a header modifier engine configured."""

    @pytest.fixture
    def engine(self) -> AuthEngine:
        return AuthEngine(
            JwtEngineConfig(
                secret_key=SECRET,
                modifier=HeaderModifierConfig(),
                modifier_secret=MODIFIER_SECRET,
            )
        )

    async def test_valid_cookie_without_modifier_header_is_invalid(self, engine, make_response):
        # Arrange
        hook = MagicMock()
        engine._on_invalid_token = hook
        _, cookies = await _issue(engine, {"sub": "user-1"}, make_response)
        response = make_response()

        # Act
        auth = await engine.verify(build_request(cookies=cookies), response)

        # Assert
        assert auth.state is AuthState.INVALID
        assert auth.invalid_reason is InvalidReason.MODIFIER
        assert response_cookies(response) == {"jwt_token": ""}
        hook.assert_called_once()

    async def test_valid_cookie_with_modifier_header_is_authenticated(self, engine, make_response):
        # Arrange
        request = build_request()
        response = make_response()
        token = await engine.authenticate({"sub": "user-1"}, request, response)
        modifier = response.headers["x-modifier-token"]

        # Act
        auth = await engine.verify(
            build_request(cookies=response_cookies(response), headers={"x-modifier-token": modifier}),
            make_response(),
        )

        # Assert
        assert modifier == derive_modifier_token(MODIFIER_SECRET, token)
        assert auth.state is AuthState.AUTHENTICATED

    async def test_modifier_from_other_session_is_rejected(self, engine, make_response):
        _, cookies = await _issue(engine, {"sub": "victim"}, make_response)
        other_request = build_request()
        other_response = make_response()
        await engine.authenticate({"sub": "attacker"}, other_request, other_response)

        auth = await engine.verify(
            build_request(cookies=cookies, headers={"x-modifier-token": other_response.headers["x-modifier-token"]}),
            make_response(),
        )

        assert auth.state is AuthState.INVALID

    async def test_bad_primary_token_reports_token_reason(self, engine, make_response):
        auth = await engine.verify(build_request(cookies={"jwt_token": "garbage"}), make_response())

        assert auth.invalid_reason is InvalidReason.TOKEN

    async def test_no_token_ignores_modifier(self, engine, make_response):
        auth = await engine.verify(build_request(), make_response())

        assert auth.state is AuthState.UNAUTHENTICATED


# ============================================================================
# authenticate / deauthenticate
# ============================================================================


class TestAuthenticate:
    """Tests for AuthEngine.authenticate."""

    async def test_returns_token_and_updates_request_state(self, engine, make_response):
        # Arrange
        request = build_request()
        response = make_response()

        # Act
        token = await engine.authenticate({"sub": "user-1"}, request, response)

        # Assert
        assert request.state.signed_token == token
        assert request.state.token == {"sub": "user-1"}
        assert get_request_auth(request).state is AuthState.AUTHENTICATED
        assert response_cookies(response) == {"jwt_token": token}

    async def test_reauthenticate_replaces_payload(self, engine, make_response):
        # Arrange
        request = build_request()
        await engine.authenticate({"sub": "user-1", "role": "admin"}, request, make_response())
        response = make_response()

        # Act
        await engine.authenticate({"sub": "user-1"}, request, response)
        auth = await engine.verify(build_request(cookies=response_cookies(response)), make_response())

        # Assert
        assert request.state.token == {"sub": "user-1"}
        assert "role" not in auth.payload

    async def test_none_payload_signs_empty_claims(self, engine, make_response):
        request = build_request()

        await engine.authenticate(None, request, make_response())

        assert request.state.token == {}

    async def test_signing_error_propagates(self, engine, make_response):
        request = build_request()

        with pytest.raises(SigningError):
            await engine.authenticate({"value": object()}, request, make_response())

        assert getattr(request.state, "signed_token", None) is None

    async def test_issues_modifier_token(self, make_response):
        engine = AuthEngine(
            JwtEngineConfig(secret_key=SECRET, modifier=HeaderModifierConfig(), modifier_secret=MODIFIER_SECRET)
        )
        response = make_response()

        token = await engine.authenticate({"sub": "user-1"}, build_request(), response)

        assert response.headers["x-modifier-token"] == derive_modifier_token(MODIFIER_SECRET, token)


class TestDeauthenticate:
    """Tests for AuthEngine.deauthenticate."""

    async def test_clears_request_state_and_cookie(self, engine, make_response):
        # Arrange
        _, cookies = await _issue(engine, {"sub": "user-1"}, make_response)
        request = build_request(cookies=cookies)
        await engine.verify(request, make_response())
        response = make_response()

        # Act
        await engine.deauthenticate(request, response)

        # Assert
        assert request.state.token is None
        assert request.state.signed_token is None
        assert get_request_auth(request).state is AuthState.UNAUTHENTICATED
        assert response_cookies(response) == {"jwt_token": ""}

    async def test_verify_after_deauthenticate_is_unauthenticated(self, engine, make_response):
        # Arrange
        _, cookies = await _issue(engine, {"sub": "user-1"}, make_response)
        response = make_response()

        # Act
        await engine.deauthenticate(build_request(cookies=cookies), response)
        auth = await engine.verify(build_request(cookies=response_cookies(response)), make_response())

        # Assert
        assert auth.state is AuthState.UNAUTHENTICATED

    async def test_removes_modifier_cookie(self, make_response):
        from jwt_engine.config import CookieModifierConfig

        engine = AuthEngine(JwtEngineConfig(secret_key=SECRET, modifier=CookieModifierConfig()))
        response = make_response()

        await engine.deauthenticate(build_request(), response)

        assert response_cookies(response) == {"jwt_token": "", "jwt_modifier": ""}


class TestAuthContext:
    """Tests for the request-scoped AuthContext."""

    async def test_bound_actions_update_state(self, engine, make_response):
        # Arrange
        request = build_request()
        response = make_response()
        await engine.verify(request, response)
        context = engine.bind(request, response)

        # Act & Assert
        assert isinstance(context, AuthContext)
        assert context.state is AuthState.UNAUTHENTICATED

        token = await context.authenticate({"sub": "user-1"})
        assert context.is_authenticated is True
        assert context.signed_token == token
        assert context.payload == {"sub": "user-1"}

        await context.deauthenticate()
        assert context.state is AuthState.UNAUTHENTICATED
        assert context.payload is None
        assert context.invalid_reason is None

    def test_unverified_request_raises(self):
        with pytest.raises(RuntimeError, match="JwtEngineMiddleware"):
            get_request_auth(build_request())
