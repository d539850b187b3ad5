"""Logging setup for app-keystore.

@public

Loggers come from Prefect's logger factory, so keystore messages share
formatting with the rest of a Prefect-managed deployment. Prefect nests
them under its own logger: ``get_logger("app_keystore.keys")`` is named
``prefect.app_keystore.keys``. The built-in configuration therefore targets
whatever name Prefect gives the package logger, and every module logger
inherits its level.

Usage:
    >>> from app_keystore.logging import get_keystore_logger
    >>> logger = get_keystore_logger(__name__)
    >>> logger.info("Key store initialized")

Environment variables:
    APP_KEYSTORE_LOGGING_CONFIG: Path to a YAML dictConfig file
    APP_KEYSTORE_LOG_LEVEL: Package log level for the built-in configuration
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Any

import yaml
from prefect.logging import get_logger

KEYSTORE_PACKAGE = "app_keystore"


class LoggingConfig:
    """Resolves and applies the keystore logging configuration.

    @public

    A config_path argument wins over APP_KEYSTORE_LOGGING_CONFIG; with
    neither, or a path that does not exist, the built-in configuration is
    used.
    """

    def __init__(self, config_path: Path | None = None):
        if config_path is None and (env_path := os.environ.get("APP_KEYSTORE_LOGGING_CONFIG")):
            config_path = Path(env_path)
        self.config_path = config_path
        self._config: dict[str, Any] | None = None

    def load_config(self) -> dict[str, Any]:
        """Return the dictConfig mapping, read once and cached."""
        if self._config is None:
            if self.config_path and self.config_path.exists():
                with open(self.config_path, "r") as f:
                    self._config = yaml.safe_load(f)
            else:
                self._config = self._get_default_config()
        return self._config

    @staticmethod
    def _get_default_config() -> dict[str, Any]:
        """Console output for the package logger; WARNING for everything else."""
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s - %(message)s",
                    "datefmt": "%H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                get_logger(KEYSTORE_PACKAGE).name: {
                    "level": os.environ.get("APP_KEYSTORE_LOG_LEVEL", "INFO"),
                    "handlers": ["console"],
                    "propagate": False,
                },
            },
            "root": {
                "level": "WARNING",
                "handlers": ["console"],
            },
        }

    def apply(self) -> None:
        logging.config.dictConfig(self.load_config())


_logging_config: LoggingConfig | None = None


def setup_logging(config_path: Path | None = None, level: str | None = None):
    """Configure keystore logging.

    @public

    Args:
        config_path: Optional path to a YAML dictConfig file.
        level: Optional level for the package logger, overriding the file.

    Example:
        >>> setup_logging(level="DEBUG")
    """
    global _logging_config

    _logging_config = LoggingConfig(config_path)
    _logging_config.apply()

    if level:
        get_logger(KEYSTORE_PACKAGE).setLevel(level)


def get_keystore_logger(name: str) -> logging.Logger:
    """Logger for a keystore module; sets up logging on first use.

    @public
    """
    if _logging_config is None:
        setup_logging()

    return get_logger(name)
