"""Loguru logging configuration.

Human-readable stderr output at the configured level, an opt-in JSON sink
for records bound with ``json_output=True``, and an optional rotating file
when ``log_dir`` is set.

Tracebacks are rendered without variable values (``diagnose=False``): the
locals of a failed resolution hold customer addresses.
"""

import sys
from pathlib import Path

from loguru import logger

LOG_FILENAME = "reseller-map.log"

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | {message}"


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Replace all Loguru sinks with the application's.

    Args:
        log_level: Minimum level to emit (case-insensitive).
        log_dir: Directory for ``reseller-map.log`` (rotated daily, kept 7 days).
    """
    level = log_level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=_LOG_FORMAT, diagnose=False)
    logger.add(
        sys.stderr,
        level=level,
        serialize=True,
        diagnose=False,
        filter=lambda record: record["extra"].get("json_output", False),
    )

    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / LOG_FILENAME,
            level=level,
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
            diagnose=False,
        )
