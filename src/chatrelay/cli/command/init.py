"""Init command implementation"""

from pathlib import Path

import click
from rich.console import Console

from ...backend.config import load_settings
from ...backend.exception import RelayException
from ..util import get_instance_path, is_initialized, open_store

console = Console()


CONFIG_TEMPLATE = """# chatrelay configuration
# Every key can also be set through a CHATRELAY_<KEY> environment variable.

working_dir = "{working_dir}"
default_model = "sonnet"
available_models = ["sonnet", "opus", "haiku"]
permission_mode = "bypassPermissions"

# Seconds a new message waits after interrupting the running query
preempt_grace_seconds = 0.1

# Session list
max_saved_sessions = 5
session_title_length = 50
"""


@click.command(name="init", help="Initialize a new chatrelay instance")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
@click.option(
    "--working-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory the assistant works in (default: home directory)",
)
def init(path: str = None, working_dir: str = None):
    """Initialize a new chatrelay instance

    Args:
        path: Instance directory path (default: ~/.chatrelay)
        working_dir: Assistant working directory
    """
    instance_path = get_instance_path(path)

    if is_initialized(instance_path):
        console.print(f"[red]Error: Already initialized at {instance_path}[/red]")
        raise click.Abort()

    console.print(f"Initializing chatrelay instance at {instance_path}")
    console.print("")

    # 1. Create directory structure
    instance_path.mkdir(parents=True, exist_ok=True)
    (instance_path / "data").mkdir(exist_ok=True)
    (instance_path / "logs").mkdir(exist_ok=True)

    # 2. Generate config.toml
    work_dir = Path(working_dir).resolve() if working_dir else Path.home()
    config_file = instance_path / "config.toml"
    config_file.write_text(CONFIG_TEMPLATE.format(working_dir=work_dir.as_posix()))
    console.print(f"  [green]✓[/green] {config_file}")

    # 3. Create session list tables
    try:
        settings = load_settings(instance_path)
        store = open_store(settings)
        store.dispose()
    except RelayException as e:
        console.print(f"[red]Error: {e.message}[/red]")
        raise click.Abort()
    console.print(f"  [green]✓[/green] {settings.resolved_database_url}")

    console.print("")
    console.print("[green]Initialized.[/green]")
