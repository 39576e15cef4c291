"""Command-line interface for jwt-engine.

Entry point: jwt-engine (see main.py)
"""

from jwt_engine.cli.main import cli, main

__all__ = ["cli", "main"]
