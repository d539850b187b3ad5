"""Logging infrastructure for app-keystore.

@public

Every service operation accepts an optional ``logger`` argument (the logger
capability handed in by the adapter layer). When omitted, the module logger
returned by get_keystore_logger is used.

Example:
    >>> from app_keystore.logging import get_keystore_logger
    >>>
    >>> logger = get_keystore_logger(__name__)
    >>> logger.info("Serving install token")
"""

from .logging_config import LoggingConfig, get_keystore_logger, setup_logging

__all__ = [
    "LoggingConfig",
    "setup_logging",
    "get_keystore_logger",
]
