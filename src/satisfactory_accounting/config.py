"""Configuration settings for the accounting engine."""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return float(value)


class Config:
    """Base configuration."""

    # Upper bound on building clock speed in percent. None = unbounded.
    MAX_CLOCK_SPEED = _optional_float("SATISFACTORY_ACCOUNTING_MAX_CLOCK")
    DEFAULT_CLOCK_SPEED = float(
        os.environ.get("SATISFACTORY_ACCOUNTING_DEFAULT_CLOCK", "100")
    )
    STORAGE_DIR = os.environ.get("SATISFACTORY_ACCOUNTING_STORAGE_DIR") or "saved_worlds"
    LOG_LEVEL = os.environ.get("SATISFACTORY_ACCOUNTING_LOG_LEVEL", "WARNING")


class DevelopmentConfig(Config):
    """Development configuration."""

    LOG_LEVEL = "DEBUG"


class TestingConfig(Config):
    """Testing configuration."""

    MAX_CLOCK_SPEED = None
    DEFAULT_CLOCK_SPEED = 100.0
    LOG_LEVEL = "DEBUG"


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "default": Config,
}


def get_config(name: str = "default") -> type[Config]:
    """Look up a configuration class by name, falling back to the default."""
    return config.get(name, Config)


def configure_logging(cfg: type[Config] = Config) -> None:
    """Apply the configured log level to the package logger."""
    logging.getLogger("satisfactory_accounting").setLevel(cfg.LOG_LEVEL)
