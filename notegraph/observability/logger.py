"""
Logger configuration.

Configures the root logger once for workers and scripts with an ISO
timestamp format and quiets chatty third-party libraries.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys

NOISY_LOGGERS = ("urllib3", "botocore", "boto3", "httpx", "aiosqlite", "sqlalchemy.engine")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure Python logging with ISO timestamp and structured format.

    Args:
        level: Root log level name (usually settings.log_level)
    """
    # Remove any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
