"""Process-wide logging setup applied once at startup."""

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def config_configure_logging(level: str = "INFO") -> None:
    """Configure root logging handlers and level.

    Args:
        level: Logging level name.

    Returns:
        None: Configures the logging module as side effect.

    Raises:
        ValueError: Raised when level is not a known logging level name.
    """

    numeric_level = logging.getLevelName(level.strip().upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level: {level}")
    logging.basicConfig(level=numeric_level, format=_LOG_FORMAT)
