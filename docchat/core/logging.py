"""Logging configuration for the DocChat service."""

import logging
import sys

# Client libraries that log every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "docling", "pinecone", "openai")


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with structured format for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)
