"""
Logging configuration for scholar_notes.

The core only creates module loggers; the host application calls
setup_logging() once to attach a rotating file handler and, optionally,
a console handler to the root logger.

Usage:
    >>> from scholar_notes.config import Config
    >>> from scholar_notes.logging_config import setup_logging
    >>> config = Config.from_env()
    >>> setup_logging(config.log)
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from scholar_notes.config import LogConfig

# The arxiv client logs every page request at INFO.
CHATTY_LIBRARY_LOGGERS = ("arxiv", "urllib3")


def _handlers_for(log_config: LogConfig, log_path: Path) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [
        RotatingFileHandler(
            filename=str(log_path),
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
    ]
    if log_config.console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    return handlers


def setup_logging(
    log_config: Optional[LogConfig] = None,
    log_level_override: Optional[str] = None,
) -> None:
    """
    Configure the root logger for a scholar_notes host.

    Existing root handlers are replaced. Library loggers listed in
    CHATTY_LIBRARY_LOGGERS are held at WARNING unless the level is DEBUG.

    Args:
        log_config: LogConfig instance. If None, loads from environment.
        log_level_override: Level name that wins over log_config.level.
    """
    if log_config is None:
        log_config = LogConfig.from_env()

    level_name = (log_level_override or log_config.level).upper()
    level = getattr(logging, level_name, logging.INFO)

    log_config.log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_config.log_dir / log_config.log_file
    formatter = logging.Formatter(fmt=log_config.format_string, datefmt=log_config.date_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in _handlers_for(log_config, log_path):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    logging.info(f"Logging configured: level={level_name}, file={log_path}")
    logging.debug(f"Log rotation: maxBytes={log_config.max_bytes}, backupCount={log_config.backup_count}")

