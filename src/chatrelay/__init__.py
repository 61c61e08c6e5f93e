"""chatrelay - relays chat messages to a long-running Claude Code session"""

__version__ = "0.1.0"
