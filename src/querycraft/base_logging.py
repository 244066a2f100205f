import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = set()


def configure_logging(name: Optional[str] = None, level: Union[int, str, None] = None, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """
    Attach a stream handler to the named logger.

    Calling this more than once for the same logger only updates the level.

    Args:
        name: Logger name. ``"root"`` or ``None`` configures the root logger
        level: Log level; defaults to the ``log_level`` setting
        fmt: Format string for the handler

    Returns:
        The configured logger
    """
    logger_name = None if name in (None, "root") else name
    logger = logging.getLogger(logger_name)

    if level is None:
        from .settings import get_settings
        level = get_settings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    key = logger_name or "root"
    if key not in _configured:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
        _configured.add(key)
    return logger
