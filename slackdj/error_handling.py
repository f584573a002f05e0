"""
Error Handling & Logging Infrastructure

Logging setup for the relay plus the error taxonomy the HTTP boundary
maps onto status codes.
"""

import logging
import sys
from functools import wraps
from typing import Any, Callable, Optional

LOGGER_NAME = "slackdj"
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

_logger: Optional[logging.Logger] = None


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Set up logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if logger.handlers:
        _logger = logger
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
    )
    logger.addHandler(console_handler)

    _logger = logger
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get the relay logger, or a child of it when ``name`` is given."""
    global _logger
    if _logger is None:
        _logger = logging.getLogger(LOGGER_NAME)
        if not _logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            _logger.addHandler(handler)
            _logger.setLevel(logging.INFO)
    if name:
        return _logger.getChild(name)
    return _logger


def handle_errors(default_return: Any = None):
    """
    Decorator for best-effort steps: log the error and return ``default_return``.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                get_logger().error(
                    f"Error in {func.__name__}: {str(e)}",
                    exc_info=True
                )
                return default_return
        return wrapper
    return decorator


class RelayError(Exception):
    """Base class for errors that end a webhook invocation early."""

    status_code = 500


class MalformedPayload(RelayError):
    """The payload is missing token, channel_id or text."""

    status_code = 400


class NoTrackFound(RelayError):
    """The message text holds no parseable Spotify track link."""

    status_code = 400


class CredentialRefreshError(RelayError):
    """The access token could not be refreshed; nothing was written."""

    status_code = 500


class ConfigurationError(RelayError):
    """Exception for configuration-related errors."""
    pass
