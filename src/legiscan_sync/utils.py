import logging
from datetime import date, datetime
from typing import Any, Optional


def logger_setup(logger_name="LegiScan Sync", log_level=logging.INFO, propagate=False):
    """
    Set up and return a logger with the specified name and level.
    Avoids affecting the root logger by setting propagate to False.

    Args:
        logger_name (str): The name of the logger.
        log_level (int): The logging level (e.g., logging.INFO, logging.DEBUG).

    Returns:
        logger (logging.Logger): Configured logger instance.
    """
    # Retrieve or create a logger
    logger = logging.getLogger(logger_name)

    # Avoid adding duplicate handlers if already set up
    if not logger.hasHandlers():
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)  # Match handler level to logger level

        # Set the format for the handler
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s - raised_by: %(name)s',
            datefmt='%Y-%m-%d %H:%M:%S'
            )
        console_handler.setFormatter(formatter)

        # Add the handler to the logger
        logger.addHandler(console_handler)

    # Set the logger level explicitly and prevent it from propagating to the root
    logger.setLevel(log_level)
    logger.propagate = propagate

    return logger


def to_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_date(date_text: Any) -> str:
    """LegiScan uses '0000-00-00' for unknown dates; map that (and None) to ''."""
    text = str(date_text or "").strip()
    if not text or text.startswith("0000-00-00"):
        return ""
    return text


def date_sort_key(date_text: Any) -> date:
    """Sortable date for 'YYYY-MM-DD' strings; unknown or malformed dates sort oldest."""
    text = normalize_date(date_text)
    if not text:
        return date.min
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return date.min
