"""Loguru logging setup for the API server and the CLI.

Log lines never carry full addresses; property code logs the hash prefix
from ``redact_hash`` instead.
"""

import sys
from pathlib import Path

from loguru import logger

_TEXT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"
_LOG_FILE_NAME = "alset-api.log"
_HASH_PREFIX_LENGTH = 12


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, *, json_logs: bool = False) -> None:
    """Replace Loguru's sinks with the service's sinks.

    Args:
        log_level: Minimum level, case-insensitive.
        log_dir: When set, also write to ``<log_dir>/alset-api.log``,
            rotated daily and kept for a week.
        json_logs: Emit one JSON object per line on stderr instead of text.
    """
    level = log_level.upper()
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT)

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / _LOG_FILE_NAME,
            level=level,
            format=_TEXT_FORMAT,
            rotation="24h",
            retention="7 days",
        )


def redact_hash(address_hash: str) -> str:
    """Shorten an address hash for log lines."""
    return address_hash[:_HASH_PREFIX_LENGTH]
