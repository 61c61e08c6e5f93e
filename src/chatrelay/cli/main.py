"""chatrelay CLI entry point"""

import click

from .command.init import init
from .command.models import models
from .command.sessions import sessions


@click.group(
    name="chatrelay",
    help="chatrelay - relay chat messages to a Claude Code session",
)
def main():
    """Main CLI entry point"""
    pass


# Register commands
main.add_command(init)
main.add_command(sessions)
main.add_command(models)


if __name__ == "__main__":
    main()
