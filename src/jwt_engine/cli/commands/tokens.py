"""Token commands for jwt-engine CLI.

Commands:
    sign     - Sign a JSON payload with a config file or secret
    inspect  - Decode a token, verifying it when key material is given
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click
import jwt

from jwt_engine.config import JwtEngineConfig
from jwt_engine.exceptions import ConfigurationError, SigningError, VerificationError
from jwt_engine.signer import Signer


def _load_config(config_path: Path | None, secret: str | None, algorithm: str | None) -> JwtEngineConfig:
    """Build a config from a file, a secret, or both.

    Raises:
        click.ClickException: If no key material is given or the config is invalid.
    """
    try:
        if config_path is not None:
            config = JwtEngineConfig.load_from_file(config_path)
            overrides: dict[str, Any] = {}
            if secret is not None:
                overrides["secret_key"] = secret
            if algorithm is not None:
                overrides["algorithm"] = algorithm
            if overrides:
                config = JwtEngineConfig.model_validate({**config.model_dump(), **overrides})
            return config
        if secret is None:
            raise click.ClickException("Provide --config or --secret.")
        return JwtEngineConfig(secret_key=secret, algorithm=algorithm or "HS256")
    except (FileNotFoundError, ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e)) from e


@click.command()
@click.argument("payload")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--secret", help="Shared secret (HS* algorithms)")
@click.option("--algorithm", help="Signing algorithm (default from config, else HS256)")
@click.option("--expires-in", help="Token lifetime (e.g. '15m', '1 day')")
def sign(
    payload: str,
    config_path: Path | None,
    secret: str | None,
    algorithm: str | None,
    expires_in: str | None,
) -> None:
    """Sign PAYLOAD (a JSON object) and print the token."""
    try:
        claims = json.loads(payload)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"PAYLOAD is not valid JSON: {e}") from e
    if not isinstance(claims, dict):
        raise click.ClickException("PAYLOAD must be a JSON object.")

    config = _load_config(config_path, secret, algorithm)
    if expires_in is not None:
        try:
            config = JwtEngineConfig.model_validate({**config.model_dump(), "expires_in": expires_in})
        except ValueError as e:
            raise click.ClickException(f"Invalid --expires-in: {e}") from e

    try:
        token = asyncio.run(Signer.from_config(config).sign(claims))
    except SigningError as e:
        raise click.ClickException(str(e)) from e
    click.echo(token)


@click.command("inspect")
@click.argument("token")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--secret", help="Shared secret to verify with")
@click.option("--algorithm", help="Expected algorithm")
def inspect_token(token: str, config_path: Path | None, secret: str | None, algorithm: str | None) -> None:
    """Print the header and claims of TOKEN.

    With --config or --secret the signature and timing claims are verified
    and the command exits non-zero if verification fails.
    """
    try:
        header = jwt.get_unverified_header(token)
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise click.ClickException(f"Malformed token: {e}") from e

    click.echo(json.dumps({"header": header, "claims": claims}, indent=2, sort_keys=True))

    if config_path is None and secret is None:
        click.echo(click.style("Signature not verified (no key given)", fg="yellow"))
        return

    config = _load_config(config_path, secret, algorithm or header.get("alg"))
    try:
        asyncio.run(Signer.from_config(config).verify(token))
    except VerificationError as e:
        raise click.ClickException(f"Verification failed ({e.reason}): {e}") from e
    click.echo(click.style("Signature valid", fg="green"))
