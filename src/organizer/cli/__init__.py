"""CLI commands for the organizer.

Provides command-line interface using Typer:
- organizer serve: Run the API server
- organizer init-db: Create database tables

Usage:
    organizer --help
    organizer serve --port 8080
"""

import typer

from organizer.cli.db import app as db_app
from organizer.cli.serve import app as serve_app

app = typer.Typer(
    name="organizer",
    help="Daily organizer backend",
    no_args_is_help=True,
)

app.add_typer(serve_app, name="serve")
app.add_typer(db_app, name="init-db")


@app.callback()
def callback() -> None:
    """Daily organizer backend."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
