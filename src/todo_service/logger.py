"""Logging configuration."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def normalize_log_level(log_level: str) -> str:
    """Return the upper-case level name, or INFO for anything unrecognised."""
    name = (log_level or "").strip().upper()
    return name if name in LOG_LEVELS else "INFO"


def setup_logger(log_level: str = "INFO") -> None:
    """
    Configure root logging once for the process.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Unknown names fall back to INFO.
    """
    level = getattr(logging, normalize_log_level(log_level))

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("todo_service").setLevel(level)
