"""Key material commands for jwt-engine CLI.

Commands:
    keygen       - Print a shared secret or a PEM key pair
    init-config  - Write a JwtEngineConfig file with fresh key material
"""

from __future__ import annotations

import secrets
from pathlib import Path

import click
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from jwt_engine.config import JwtEngineConfig
from jwt_engine.constants import GENERATED_SECRET_BYTES


def generate_rsa_pem_pair(key_size: int = 2048) -> tuple[str, str]:
    """Generate an RSA key pair.

    Args:
        key_size: Modulus size in bits.

    Returns:
        Tuple of (private_key_pem, public_key_pem).
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


@click.command()
@click.option("--rsa", "use_rsa", is_flag=True, help="Generate an RSA key pair instead of a secret")
@click.option("--bits", default=2048, show_default=True, type=click.IntRange(min=2048), help="RSA key size")
def keygen(use_rsa: bool, bits: int) -> None:
    """Generate signing key material.

    Without --rsa, prints a random 64-character hex secret for HS256.
    With --rsa, prints a PKCS8 private key followed by its public key.
    """
    if not use_rsa:
        click.echo(secrets.token_hex(GENERATED_SECRET_BYTES))
        return

    private_pem, public_pem = generate_rsa_pem_pair(bits)
    click.echo(private_pem, nl=False)
    click.echo(public_pem, nl=False)


@click.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--rsa", "use_rsa", is_flag=True, help="Use RS256 with a new key pair")
@click.option(
    "--transport",
    type=click.Choice(["cookie", "header"]),
    default="cookie",
    show_default=True,
    help="Primary token transport",
)
@click.option(
    "--modifier",
    type=click.Choice(["none", "cookie", "header"]),
    default="none",
    show_default=True,
    help="Modifier token scheme",
)
@click.option("--expires-in", default="1 day", show_default=True, help="Token lifetime (e.g. '2h', '1 day')")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(path: Path, use_rsa: bool, transport: str, modifier: str, expires_in: str, force: bool) -> None:
    """Write an engine configuration file with persistent key material.

    Persisted keys keep tokens valid across restarts.
    """
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists. Use --force to overwrite.")

    data: dict[str, object] = {
        "expires_in": expires_in,
        "transport": {"kind": transport},
        "modifier_secret": secrets.token_hex(GENERATED_SECRET_BYTES),
    }
    if modifier != "none":
        data["modifier"] = {"kind": modifier}
    if use_rsa:
        private_pem, public_pem = generate_rsa_pem_pair()
        data.update(algorithm="RS256", private_key=private_pem, public_key=public_pem)
    else:
        data["secret_key"] = secrets.token_hex(GENERATED_SECRET_BYTES)

    try:
        config = JwtEngineConfig.model_validate(data)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    config.save_to_file(path)
    click.echo(f"Wrote configuration to {path}")
