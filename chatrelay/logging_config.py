"""Logging setup for chatrelay entry points.

Library modules only create module loggers; handlers are installed here,
once, by the interactive client or by an embedding application.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "chatrelay.log"
MAX_LOG_BYTES = 10_000_000
LOG_BACKUPS = 5
NOISY_LOGGERS = ("asyncio", "aiohttp", "backoff")


def resolve_level(level: Union[int, str, None]) -> int:
    """Turn a level number or name into a level number; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    if level:
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, int):
            return resolved
    return logging.INFO


def setup_logging(
    level: Union[int, str, None] = None,
    log_dir: Optional[Union[str, Path]] = None
) -> Optional[Path]:
    """Install console logging, plus a rotating file when ``log_dir`` is given.

    Args:
        level: Level number or name such as ``"DEBUG"``; INFO when omitted
        log_dir: Directory receiving ``chatrelay.log``

    Returns:
        The log file path, or None when logging to the console only
    """
    level = resolve_level(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not root_logger.handlers:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_file = None
    if log_dir:
        log_file = Path(log_dir) / LOG_FILE_NAME
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    third_party_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logging.getLogger(__name__).debug("Logging configured", extra={
        "level": logging.getLevelName(level),
        "log_file": str(log_file) if log_file else None
    })
    return log_file
