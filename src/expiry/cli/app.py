"""Main CLI application."""

import typer

from expiry.cli.commands import config, keys, serve

app = typer.Typer(
    name="expiry",
    help="expiry - keys that remove themselves on time",
    no_args_is_help=True,
)

config.register(app)
keys.register(app)
serve.register(app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
