"""CLI utility functions"""

from pathlib import Path

import click
from rich.console import Console

from ..backend.config import Settings, load_settings
from ..backend.exception import RelayException
from ..backend.runtime.session_store import SessionStore


def get_instance_path(path: str | None = None) -> Path:
    """Get instance path, default to ~/.chatrelay

    Args:
        path: Custom path (relative or absolute), None for default

    Returns:
        Resolved absolute path
    """
    if path is None:
        return Path.home() / ".chatrelay"
    return Path(path).resolve()


def is_initialized(instance_path: Path) -> bool:
    """Check if instance is initialized (config.toml exists)"""
    return (instance_path / "config.toml").exists()


def require_settings(console: Console, path: str | None) -> Settings:
    """Load settings of an initialized instance or abort with an error"""
    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(f"[red]Error: Not initialized at {instance_path}[/red]")
        console.print(f"[yellow]Run: chatrelay init {path if path else ''}[/yellow]")
        raise click.Abort()

    try:
        return load_settings(instance_path)
    except RelayException as e:
        console.print(f"[red]Error loading config: {e.message}[/red]")
        raise click.Abort()


def open_store(settings: Settings) -> SessionStore:
    store = SessionStore(
        settings.resolved_database_url,
        max_entries=settings.max_saved_sessions
    )
    store.create_tables()
    return store
