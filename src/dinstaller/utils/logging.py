"""Rotating logger setup for the installer service."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _file_handler(logger: logging.Logger) -> Optional[RotatingFileHandler]:
    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            return handler
    return None


def setup_logger(
    name: str = "dinstaller",
    log_file: str = "./logs/dinstaller.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 3,
    level: int = logging.INFO,
    console: bool = True,
    share_with: Iterable[str] = (),
) -> logging.Logger:
    """Setup rotating file logger with ISO 8601 timestamps.

    Child loggers (``dinstaller.software``, ``dinstaller.client.remote``...)
    propagate to the logger configured here. Calling it again updates the
    level, and moves the file handler when ``log_file`` changed.

    Args:
        name: Logger name
        log_file: Path to log file (parent directory is created)
        max_bytes: Max size before rotation (default 10MB)
        backup_count: Number of rotated files to keep
        level: Logging level
        console: Also log to stderr
        share_with: Other loggers (``uvicorn.error``) also writing to the log file

    Returns:
        Configured logger instance
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    current = _file_handler(logger)
    if current is not None and Path(current.baseFilename) == log_path.resolve():
        for handler in logger.handlers:
            handler.setLevel(level)
        for other in share_with:
            if current not in logging.getLogger(other).handlers:
                logging.getLogger(other).addHandler(current)
        return logger

    stale = list(logger.handlers)
    for handler in stale:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for other in share_with:
        other_logger = logging.getLogger(other)
        for handler in stale:
            if handler in other_logger.handlers:
                other_logger.removeHandler(handler)
        other_logger.addHandler(handlers[0])

    return logger


def level_from_name(level_name: str) -> int:
    """Translate a configured level name (``"debug"``, ``"INFO"``) to a level."""
    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    return level
