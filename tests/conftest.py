"""Shared fixtures for jwt-engine tests."""

from __future__ import annotations

from http.cookies import SimpleCookie
from typing import Callable

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from starlette.requests import Request
from starlette.responses import Response

SECRET = "test-secret-" + "a" * 52


def build_request(
    *,
    cookies: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
    method: str = "GET",
    path: str = "/",
) -> Request:
    """Build a Starlette request from plain cookies and headers."""
    raw_headers = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode("latin-1")))
    scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": raw_headers,
    }
    return Request(scope)


def response_cookies(response: Response) -> dict[str, str]:
    """Parse Set-Cookie headers into name -> value (deleted cookies map to "")."""
    cookies: dict[str, str] = {}
    for header in response.headers.getlist("set-cookie"):
        jar: SimpleCookie = SimpleCookie()
        jar.load(header)
        for name, morsel in jar.items():
            cookies[name] = morsel.value
    return cookies


def tamper(token: str) -> str:
    """Flip one character in the middle of the signature segment."""
    header, payload, signature = token.split(".")
    index = len(signature) // 2
    replacement = "A" if signature[index] != "A" else "B"
    return f"{header}.{payload}.{signature[:index]}{replacement}{signature[index + 1:]}"


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory for Starlette requests."""
    return build_request


@pytest.fixture
def make_response() -> Callable[[], Response]:
    """Factory for empty header-carrier responses."""

    def factory() -> Response:
        response = Response()
        del response.headers["content-length"]
        return response

    return factory


@pytest.fixture
def rsa_pem_pair() -> tuple[str, str]:
    """Generate an RSA key pair as PEM strings."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("utf-8")
    )
    return private_pem, public_pem
