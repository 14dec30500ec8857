"""Key and expiry management commands."""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from expiry.cli.console import console, create_table, dim, error, format_countdown, success
from expiry.cli.runtime import cli_context
from expiry.errors import NotFoundError
from expiry.scheduling import ExpiryScheduler
from expiry.timestamps import Timestamp

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to configuration file"),
]


def _display(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _is_expired(scheduler: ExpiryScheduler, key: str, now: Timestamp) -> bool:
    """Due but not yet removed (no server running)."""
    try:
        return scheduler.expires_at(key) <= now
    except NotFoundError:
        return False


def register(app: typer.Typer) -> None:
    """Register the key commands."""

    @app.command("set")
    def set_key(
        key: Annotated[str, typer.Argument(help="Key to set")],
        value: Annotated[str, typer.Argument(help="Value to store")],
        ttl: Annotated[
            float | None,
            typer.Option("--ttl", "-t", help="Expire after this many seconds"),
        ] = None,
        at: Annotated[
            datetime | None,
            typer.Option(
                "--at",
                help="Expire at this time (ISO 8601; naive times are UTC)",
                formats=["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"],
            ),
        ] = None,
        config: ConfigOption = None,
    ) -> None:
        """Store a value, optionally with an expiry.

        Examples:
            expiry set session:1 token --ttl 1200
            expiry set report done --at 2030-12-31T00:00:00
        """
        if ttl is not None and at is not None:
            error("Use either --ttl or --at, not both")
            raise typer.Exit(1)
        if ttl is not None and ttl <= 0:
            error("--ttl must be positive")
            raise typer.Exit(1)

        with cli_context(config) as ctx:
            ctx.tables.data[key] = value
            when = ttl if ttl is not None else at
            if when is not None:
                expires = ctx.scheduler.schedule(key, when)
                success(f"Set {key} (expires {expires.isoformat()})")
            else:
                # Plain set clears any previous expiry
                if key in ctx.scheduler:
                    ctx.scheduler.cancel(key)
                success(f"Set {key}")

    @app.command("get")
    def get_key(
        key: Annotated[str, typer.Argument(help="Key to read")],
        config: ConfigOption = None,
    ) -> None:
        """Print the value stored for a key."""
        with cli_context(config) as ctx:
            if _is_expired(ctx.scheduler, key, Timestamp.now()):
                error(f"Key not found: {key}")
                raise typer.Exit(1)
            try:
                value = ctx.tables.data[key]
            except KeyError:
                error(f"Key not found: {key}")
                raise typer.Exit(1) from None
            console.print(_display(value), markup=False, highlight=False)

    @app.command("ttl")
    def ttl_key(
        key: Annotated[str, typer.Argument(help="Key to inspect")],
        config: ConfigOption = None,
    ) -> None:
        """Show how long until a key expires."""
        with cli_context(config) as ctx:
            try:
                expires = ctx.scheduler.expires_at(key)
            except NotFoundError:
                if key in ctx.tables.data:
                    dim(f"{key} has no expiry")
                    return
                error(f"Key not found: {key}")
                raise typer.Exit(1) from None
            remaining = Timestamp.now().seconds_until(expires)
            console.print(
                f"{key}: {max(remaining, 0.0):.3f}s ({expires.isoformat()})",
                highlight=False,
            )

    @app.command("persist")
    def persist_key(
        key: Annotated[str, typer.Argument(help="Key to keep")],
        config: ConfigOption = None,
    ) -> None:
        """Remove the expiry from a key."""
        with cli_context(config) as ctx:
            try:
                ctx.scheduler.cancel(key)
            except NotFoundError:
                error(f"No pending expiry for {key}")
                raise typer.Exit(1) from None
            success(f"{key} will no longer expire")

    @app.command("delete")
    def delete_key(
        key: Annotated[str, typer.Argument(help="Key to delete")],
        config: ConfigOption = None,
    ) -> None:
        """Delete a key and its pending expiry."""
        with cli_context(config) as ctx:
            found = False
            if key in ctx.scheduler:
                ctx.scheduler.cancel(key)
                found = True
            try:
                del ctx.tables.data[key]
                found = True
            except KeyError:
                pass
            if not found:
                error(f"Key not found: {key}")
                raise typer.Exit(1)
            success(f"Deleted {key}")

    @app.command("list")
    def list_expiries(
        config: ConfigOption = None,
    ) -> None:
        """List pending expiries in firing order."""
        with cli_context(config) as ctx:
            pending = list(ctx.scheduler.pending())
            if not pending:
                dim("No pending expiries")
                return

            now = Timestamp.now()
            table = create_table(
                "Pending expiries",
                [("Key", "cyan"), ("Expires", "dim"), ("When", "")],
            )
            for when, key in pending:
                table.add_row(
                    key, when.isoformat(), format_countdown(now.seconds_until(when))
                )
            console.print(table)

    @app.command("stats")
    def stats(
        config: ConfigOption = None,
    ) -> None:
        """Show store and scheduler statistics."""
        with cli_context(config) as ctx:
            info = ctx.scheduler.get_stats()
            table = create_table("Expiry", [("Field", "bold"), ("Value", "")])
            table.add_row("Backend", ctx.config.store.backend)
            path = ctx.config.store.resolved_path()
            table.add_row("Path", str(path) if path else "-")
            table.add_row("Keys", str(len(ctx.tables.data)))
            table.add_row("Pending", str(info["pending"]))
            table.add_row("Next expiry", info["next_expiry"] or "-")
            table.add_row("Next key", info["next_key"] or "-")
            table.add_row("Renewal interval", f"{info['renewal_interval']}s")
            console.print(table)
