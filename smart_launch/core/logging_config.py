"""Logging setup for the smart_launch logger hierarchy.

Library modules only create loggers; the package root carries a
NullHandler. Applications that want the client's logs call
``setup_logging()``, which attaches handlers to the ``smart_launch`` logger
and leaves the root logger and other libraries alone.
"""

import logging
from pathlib import Path

from .config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    level: str | None = None,
    log_file: Path | None = None,
    name: str = "smart_launch",
) -> logging.Logger:
    """Attach handlers to the ``name`` logger.

    Calling it again replaces the handlers added by the previous call rather
    than stacking duplicates.

    Args:
        level: Log level (defaults to SMART_LOG_LEVEL)
        log_file: Optional file path for logging output
        name: Logger to configure

    Returns:
        The configured logger
    """
    level = level or settings.log_level

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in [h for h in logger.handlers if getattr(h, "_smart_launch", False)]:
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler._smart_launch = True
        logger.addHandler(handler)

    return logger
