"""
Logging setup for applications and scripts using auxdata.

The library itself only emits records through module loggers under the
"auxdata" namespace; it never installs handlers on import.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Configure root logging, taking the level from LOG_LEVEL when not given.

    Args:
        level: Level name or number (default: $LOG_LEVEL or INFO).

    Returns:
        The "auxdata" package logger.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()

    logging.basicConfig(format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist, the level still applies
    logging.getLogger().setLevel(level)
    return logging.getLogger("auxdata")
