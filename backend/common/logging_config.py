"""
Logging setup

Minimum severity is an explicit setting passed in at startup rather than a
check on the build environment scattered through the code.
"""

import logging
from enum import Enum


class Severity(str, Enum):
    """Minimum severity levels accepted by LOG_LEVEL."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"

    @property
    def level(self) -> int:
        return _LEVELS[self]

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse a level name, accepting WARNING as an alias of WARN."""
        name = (value or "").strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f"Unknown log level: {value!r}") from None


_LEVELS = {
    Severity.DEBUG: logging.DEBUG,
    Severity.INFO: logging.INFO,
    Severity.WARN: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(min_severity: Severity, name: str = "saviour") -> logging.Logger:
    """
    Configure process logging and return the application logger.

    Args:
        min_severity: Records below this severity are dropped
        name: Name of the logger to return

    Returns:
        Logger for the application
    """
    logging.basicConfig(level=min_severity.level, format=LOG_FORMAT)
    logging.getLogger().setLevel(min_severity.level)
    logger = logging.getLogger(name)
    logger.setLevel(min_severity.level)
    return logger
