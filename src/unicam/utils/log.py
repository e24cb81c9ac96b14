"""Logging helpers built on loguru.

The package disables its own records on import, as loguru recommends for
libraries. Applications opt in with :func:`configure_logging`.
"""

import sys
from typing import Any

from loguru import logger

PACKAGE = "unicam"

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(
    level: str = "INFO", sink: Any = sys.stderr, fmt: str = DEFAULT_FORMAT
) -> int:
    """Enable unicam log records and route them to ``sink``.

    Args:
        level: Minimum level to emit.
        sink: Any loguru sink (stream, path, callable).
        fmt: loguru format string.

    Returns:
        Handler id, usable with ``logger.remove``.
    """
    logger.enable(PACKAGE)
    return logger.add(
        sink,
        level=level,
        format=fmt,
        filter=PACKAGE,
    )


__all__ = ["DEFAULT_FORMAT", "PACKAGE", "configure_logging", "logger"]
