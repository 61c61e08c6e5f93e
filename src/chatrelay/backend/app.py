"""Application factory wiring the session orchestrator"""

import logging
from pathlib import Path
from typing import Optional

from .config import load_settings
from .logging import setup_logging
from .runtime.assistant import AssistantProcess, ClaudeAssistant
from .runtime.session import ChatSession
from .runtime.session_store import SessionStore

logger = logging.getLogger(__name__)


def create_chat_session(
    instance_path: Path,
    assistant: Optional[AssistantProcess] = None,
    configure_logging: bool = True,
    **overrides
) -> ChatSession:
    """Create and configure the process-wide ChatSession

    This is the factory a chat transport calls once at startup. It
    initializes logging, loads settings, prepares the session list
    database, and builds the orchestrator.

    Args:
        instance_path: Path to the chatrelay instance directory
        assistant: Assistant process (defaults to Claude through the Agent SDK)
        configure_logging: Install the instance log handlers
        **overrides: Settings overriding config.toml and environment

    Returns:
        ChatSession with no active session

    Raises:
        ConfigError: If the configuration is invalid
        SessionStoreError: If the session list database cannot be prepared
    """
    if configure_logging:
        setup_logging(instance_path)

    settings = load_settings(instance_path, **overrides)

    store = SessionStore(
        settings.resolved_database_url,
        max_entries=settings.max_saved_sessions
    )
    store.create_tables()

    session = ChatSession(
        settings=settings,
        assistant=assistant or ClaudeAssistant(settings),
        store=store
    )

    logger.info(
        f"Chat session ready: instance={instance_path}, "
        f"working_dir={settings.working_dir}, model={session.current_model}"
    )
    return session
