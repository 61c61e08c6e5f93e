"""Logging configuration for chatrelay backend"""

import logging
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from typing import List

LOG_FORMAT = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# (file name, level, chatrelay.* records only)
LOG_FILES = (
    ("debug.log", logging.DEBUG, True),
    ("info.log", logging.INFO, False),
    ("error.log", logging.ERROR, False),
)

# Libraries whose INFO output would drown the relay's own lines
QUIET_LOGGERS = ("sqlalchemy.engine", "asyncio")

_installed_handlers: List[logging.Handler] = []


class ProjectOnlyFilter(logging.Filter):
    """Filter to only allow logs from chatrelay.* modules"""

    def filter(self, record):
        return record.name.startswith('chatrelay.')


def _rotating_file(path: Path, level: int, formatter: logging.Formatter) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=path,
        when='midnight',
        backupCount=30,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def teardown_logging() -> None:
    """Remove and close the handlers installed by setup_logging"""
    root_logger = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()


def setup_logging(instance_path: Path, console_level: int = logging.INFO) -> Path:
    """Route chatrelay logs to the instance logs directory and the console

    Files (rotated at midnight, 30 kept):
    - debug.log: DEBUG+ from chatrelay.* only
    - info.log: INFO+ from everything
    - error.log: ERROR+ from everything

    Calling it again replaces the handlers of the previous call; handlers
    installed by anyone else are left on the root logger.

    Args:
        instance_path: Path to the chatrelay instance directory
        console_level: Minimum level for the console handler

    Returns:
        The logs directory
    """
    logs_dir = instance_path / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)

    teardown_logging()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    for filename, level, project_only in LOG_FILES:
        handler = _rotating_file(logs_dir / filename, level, formatter)
        if project_only:
            handler.addFilter(ProjectOnlyFilter())
        _installed_handlers.append(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    _installed_handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in _installed_handlers:
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging initialized: instance={instance_path}, logs_dir={logs_dir}"
    )
    return logs_dir
