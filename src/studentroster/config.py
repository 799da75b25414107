"""
Configuration Management for StudentRoster

🔧 Environment-Aware Settings:
Dataclass configuration for the record store and logging, with presets per
environment and overrides from dictionaries or environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .persistence.sql import DEFAULT_DATABASE_URL

ENV_PREFIX = "STUDENTROSTER_"


class Environment(Enum):
    """Application environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


@dataclass
class PersistenceConfig:
    """Record store configuration"""
    backend: str = "sql"
    database_url: str = DEFAULT_DATABASE_URL
    echo: bool = False
    retry_delay: float = 1.0

    def __post_init__(self):
        if self.backend not in ("memory", "sql"):
            raise ValueError(f"Unknown persistence backend: {self.backend!r}")


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None


@dataclass
class RosterConfig:
    """Complete application configuration"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'RosterConfig':
        """Create configuration for specific environment"""
        config = cls(environment=environment)

        if environment == Environment.DEVELOPMENT:
            config.debug = True
            config.logging.level = "DEBUG"

        elif environment == Environment.TESTING:
            config.persistence.backend = "memory"
            config.persistence.database_url = "sqlite:///:memory:"
            config.persistence.retry_delay = 0.01
            config.logging.level = "WARNING"

        elif environment == Environment.PRODUCTION:
            config.debug = False
            config.logging.level = "INFO"

        return config

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'RosterConfig':
        """Create configuration from dictionary, starting from the environment preset"""
        environment = Environment(config_dict.get("environment", Environment.DEVELOPMENT.value))
        config = cls.for_environment(environment)

        if "debug" in config_dict:
            config.debug = bool(config_dict["debug"])

        for section in ("persistence", "logging"):
            target = getattr(config, section)
            for key, value in config_dict.get(section, {}).items():
                if not hasattr(target, key):
                    raise ValueError(f"Unknown {section} setting: {key}")
                setattr(target, key, value)

        # Re-run validation after overrides
        config.persistence.__post_init__()
        return config

    @classmethod
    def from_environment(cls, environ: Optional[Dict[str, str]] = None) -> 'RosterConfig':
        """Create configuration from environment variables"""
        environ = os.environ if environ is None else environ

        env_name = environ.get(f"{ENV_PREFIX}ENV", Environment.DEVELOPMENT.value)
        config = cls.for_environment(Environment(env_name))

        if environ.get(f"{ENV_PREFIX}DEBUG"):
            config.debug = environ[f"{ENV_PREFIX}DEBUG"].lower() == "true"

        if environ.get(f"{ENV_PREFIX}BACKEND"):
            config.persistence.backend = environ[f"{ENV_PREFIX}BACKEND"]
            config.persistence.__post_init__()

        if environ.get(f"{ENV_PREFIX}DATABASE_URL"):
            config.persistence.database_url = environ[f"{ENV_PREFIX}DATABASE_URL"]

        if environ.get(f"{ENV_PREFIX}LOG_LEVEL"):
            config.logging.level = environ[f"{ENV_PREFIX}LOG_LEVEL"].upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "persistence": {
                "backend": self.persistence.backend,
                "database_url": self.persistence.database_url,
                "echo": self.persistence.echo,
                "retry_delay": self.persistence.retry_delay,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_path": self.logging.file_path,
            },
        }


def configure_logging(config: LoggingConfig, logger_name: str = "studentroster") -> logging.Logger:
    """
    Apply a LoggingConfig to the package logger.

    Handlers installed by an earlier call are replaced, so calling this twice
    does not duplicate output.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(config.level)

    for handler in list(logger.handlers):
        if getattr(handler, "_studentroster", False):
            logger.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if config.file_path:
        handler = logging.FileHandler(config.file_path)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(config.format))
    handler._studentroster = True
    logger.addHandler(handler)
    return logger


__all__ = [
    "Environment", "PersistenceConfig", "LoggingConfig", "RosterConfig",
    "configure_logging", "ENV_PREFIX",
]
