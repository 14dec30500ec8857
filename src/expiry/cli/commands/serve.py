"""Run the expiry loop against the configured store."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer

from expiry.cli.console import console, error
from expiry.cli.runtime import cli_context, load_config_or_exit
from expiry.timestamps import Timestamp

logger = logging.getLogger(__name__)


def register(app: typer.Typer) -> None:
    """Register the serve command."""

    @app.command()
    def serve(
        config: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="Path to configuration file"),
        ] = None,
        max_wait: Annotated[
            float | None,
            typer.Option(
                "--max-wait",
                help="Longest single wait in seconds (default: renewal interval)",
            ),
        ] = None,
    ) -> None:
        """Expire keys as their time comes, until interrupted.

        Other processes (such as ``expiry set``) may write to the same store
        while this runs; new expiries are picked up within --max-wait.
        """
        from expiry.logging import configure_logging

        settings = load_config_or_exit(config)
        configure_logging(
            level=settings.logging.level,
            use_rich=True,
            log_to_file=settings.logging.log_to_file,
            retention_days=settings.logging.retention_days,
        )
        if max_wait is not None and max_wait <= 0:
            error("--max-wait must be positive")
            raise typer.Exit(1)
        # Other processes share the store, so every wait is bounded
        if max_wait is None:
            max_wait = settings.max_wait or settings.renewal_interval

        def on_expire(when: Timestamp, key: str) -> None:
            logger.info(
                "key_expired",
                extra={"expiry.key": key, "expiry.time": when.isoformat()},
            )

        with cli_context(config, on_expire=on_expire, max_wait=max_wait) as ctx:
            scheduler = ctx.scheduler
            console.print(
                f"[bold]Serving expiries[/bold] from {ctx.config.store.backend} "
                f"({len(scheduler)} pending)"
            )

            async def run() -> None:
                await scheduler.start()
                try:
                    await scheduler.join()
                finally:
                    await scheduler.stop()

            try:
                asyncio.run(run())
            except KeyboardInterrupt:
                pass
            except Exception as e:
                error(f"Expiry loop failed: {e}")
                raise typer.Exit(1) from None
            console.print(f"[dim]Stopped after {scheduler.fired} expiries[/dim]")
