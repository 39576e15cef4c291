"""Main CLI entry point for jwt-engine.

Defines the CLI group and registers all subcommands.

Commands:
    keygen       Generate a shared secret or an RSA key pair
    init-config  Write an engine config file with fresh key material
    sign         Sign a JSON payload into a token
    inspect      Decode a token, verifying it when a key is given

Usage:
    jwt-engine -h, --help      Show help message
    jwt-engine -v, --version   Show version
"""

import sys

import click

from jwt_engine import __version__

from .commands.keys import init_config, keygen
from .commands.tokens import inspect_token, sign


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """jwt-engine: stateless JWT request authentication tools."""
    if version:
        click.echo(f"jwt-engine {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(keygen)
cli.add_command(init_config)
cli.add_command(sign)
cli.add_command(inspect_token)


def main() -> None:
    """CLI entry point."""
    cli()
