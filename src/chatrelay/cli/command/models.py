"""Models command implementation"""

import click
from rich.console import Console

from ..util import require_settings

console = Console()


@click.command(name="models", help="List recognized models")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def models(path: str = None):
    """List recognized models and mark the default

    Args:
        path: Instance directory path (default: ~/.chatrelay)
    """
    settings = require_settings(console, path)

    for name in settings.available_models:
        if name == settings.default_model:
            console.print(f"[green]* {name}[/green] (default)")
        else:
            console.print(f"  {name}")
