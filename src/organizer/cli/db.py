"""CLI command for creating the database schema.

Usage:
    organizer init-db
"""

from __future__ import annotations

import asyncio

import typer

from organizer.persistence.db import close_db, init_db

app = typer.Typer(help="Create database tables")


async def _init() -> None:
    try:
        await init_db()
    finally:
        await close_db()


@app.callback(invoke_without_command=True)
def init() -> None:
    """Create any missing organizer tables."""
    asyncio.run(_init())
    typer.echo("Database schema is up to date")
