"""Shared utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console

from src.userstore.core.services import DbSessionService

# Initialize Rich console for colored output
console = Console()


@contextmanager
def database_service() -> Iterator[DbSessionService]:
    """Build a connection pool from the active config and dispose it on exit."""
    service = DbSessionService()
    try:
        yield service
    finally:
        service.dispose()
