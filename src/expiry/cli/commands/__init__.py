"""CLI command modules."""

from expiry.cli.commands import config, keys, serve

__all__ = [
    "config",
    "keys",
    "serve",
]
