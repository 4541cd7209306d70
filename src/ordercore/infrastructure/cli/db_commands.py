"""CLI commands for database maintenance."""

from __future__ import annotations

import click

from ordercore.infrastructure.bootstrap import engine
from ordercore.infrastructure.persistence.database import create_schema


@click.command("init")
def db_init() -> None:
    """Create all tables (existing tables are left alone)."""
    create_schema(engine())
    click.echo("Database schema created.")
