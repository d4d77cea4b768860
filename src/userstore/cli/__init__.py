"""Main CLI application module."""

import typer

from .db_commands import import_json, init_db_command, show_stats
from .server_commands import serve

# Create the main CLI application
app = typer.Typer(
    help="Users CRUD API - database and server tooling",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command(name="init-db")(init_db_command)
app.command(name="import-json")(import_json)
app.command(name="stats")(show_stats)
app.command(name="serve")(serve)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
