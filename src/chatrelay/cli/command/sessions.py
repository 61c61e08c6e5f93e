"""Sessions command implementation"""

import click
from rich.console import Console
from rich.table import Table

from ...backend.exception import SessionStoreError
from ..util import open_store, require_settings

console = Console()


@click.command(name="sessions", help="List resumable sessions, most recent first")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
@click.option(
    "--prune",
    is_flag=True,
    help="Delete entries beyond max_saved_sessions",
)
def sessions(path: str = None, prune: bool = False):
    """List saved sessions

    Args:
        path: Instance directory path (default: ~/.chatrelay)
        prune: Delete old entries before listing
    """
    settings = require_settings(console, path)

    try:
        store = open_store(settings)
        try:
            if prune:
                deleted = store.prune()
                console.print(f"[cyan]Pruned {deleted} old entries[/cyan]")

            entries = store.list_sessions()
        finally:
            store.dispose()
    except SessionStoreError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise click.Abort()

    if not entries:
        console.print("[yellow]No saved sessions[/yellow]")
        return

    table = Table(title="Saved sessions")
    table.add_column("Saved at")
    table.add_column("Session ID", style="cyan")
    table.add_column("Title")
    for entry in entries:
        table.add_row(
            entry.saved_at.strftime("%Y-%m-%d %H:%M"),
            entry.session_id,
            entry.title
        )
    console.print(table)
