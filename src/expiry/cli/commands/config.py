"""Configuration management commands."""

from pathlib import Path
from typing import Annotated

import click
import typer

from expiry.cli.console import console, create_table, dim, error, success


def register(app: typer.Typer) -> None:
    """Register the config command."""

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate, paths"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: search standard locations)",
            ),
        ] = None,
    ) -> None:
        """Inspect configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from expiry.config import ConfigError, find_config_path, load_config
        from expiry.config.paths import get_all_paths

        if action == "paths":
            table = create_table("Paths", [("Name", "bold"), ("Path", "")])
            for name, value in get_all_paths().items():
                table.add_row(name, str(value))
            console.print(table)
            return

        if action not in ("show", "validate"):
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate, paths")
            raise typer.Exit(1)

        try:
            config_path = find_config_path(path)
            settings = load_config(config_path)
        except FileNotFoundError as e:
            error(str(e))
            raise typer.Exit(1) from None
        except ConfigError as e:
            error(f"Configuration error: {e}")
            raise typer.Exit(1) from None

        if action == "validate":
            source = config_path or "defaults"
            success(f"Configuration is valid ({source})")
            return

        if config_path is None:
            dim("No config file found; showing defaults")
        else:
            console.print(f"[bold]Config file: {config_path}[/bold]\n")
        console.print_json(settings.model_dump_json())
