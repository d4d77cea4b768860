"""Database maintenance commands."""

from pathlib import Path

import typer
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from src.userstore.core.errors import UserStoreError
from src.userstore.core.services import UserService, import_users
from src.userstore.runtime.init_db import init_db

from .utils import console, database_service


def init_db_command() -> None:
    """Create the users table and its indexes."""
    with database_service() as db:
        try:
            init_db(db)
        except SQLAlchemyError as e:
            console.print(f"[red]❌ Failed to initialize database: {e}[/red]")
            raise typer.Exit(code=1) from e
    console.print("[green]✅ Database initialized[/green]")


def import_json(
    path: Path = typer.Argument(
        Path("data/data.json"), help="Legacy data.json file (array of users)"
    ),
) -> None:
    """Import users from a legacy flat-file data.json export."""
    if not path.exists():
        console.print(f"[yellow]No legacy data found at {path}, nothing to import[/yellow]")
        return

    with database_service() as db:
        try:
            db.create_all()
            summary = import_users(path, db)
        except (ValueError, UserStoreError, SQLAlchemyError) as e:
            console.print(f"[red]❌ Import failed: {e}[/red]")
            raise typer.Exit(code=1) from e

    for email in summary.skipped:
        console.print(f"[yellow]⚠️  {email} already exists, skipped[/yellow]")
    for failure in summary.failed:
        console.print(
            f"[red]❌ Record {failure.index} ({failure.email or 'unknown'}): "
            f"{'; '.join(failure.errors)}[/red]"
        )

    table = Table(title="Import summary")
    table.add_column("Result", style="cyan")
    table.add_column("Users", justify="right")
    table.add_row("Imported", str(summary.imported))
    table.add_row("Skipped", str(len(summary.skipped)))
    table.add_row("Failed", str(len(summary.failed)))
    table.add_row("Total", str(summary.total))
    console.print(table)

    if summary.backup_path is not None:
        console.print(f"[green]💾 Original data backed up to {summary.backup_path}[/green]")


def show_stats() -> None:
    """Print user statistics."""
    with database_service() as db:
        try:
            with db.session_scope() as session:
                stats = UserService(session).stats()
        except (UserStoreError, SQLAlchemyError) as e:
            console.print(f"[red]❌ Failed to read statistics: {e}[/red]")
            raise typer.Exit(code=1) from e

    console.print(f"[bold]Total users:[/bold] {stats.total_users}")
    if stats.storage_size_bytes is not None:
        console.print(
            f"[bold]Storage size:[/bold] {stats.storage_size_bytes} bytes"
            f" ({stats.database_name})"
        )

    cities = Table(title="Users by city")
    cities.add_column("City", style="green")
    cities.add_column("Count", justify="right")
    for row in stats.city_counts:
        cities.add_row(row.city, str(row.count))
    console.print(cities)

    genders = Table(title="Users by gender")
    genders.add_column("Gender", style="magenta")
    genders.add_column("Count", justify="right")
    for row in stats.gender_counts:
        genders.add_row(row.gender, str(row.count))
    console.print(genders)

    age = stats.age
    if age.average is not None:
        console.print(
            f"[bold]Age:[/bold] average {age.average:.1f}, "
            f"min {age.minimum}, max {age.maximum}"
        )
