"""
Configuration Loader for Password Arena

Handles loading and validation of configuration from environment variables
and YAML files using Pydantic for schema validation.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any
import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebConfig(BaseSettings):
    """Web front-end configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="HTTP port")
    admin_password: str = Field(
        default="changeme", description="Shared secret for admin endpoints"
    )
    trust_proxy: bool = Field(
        default=True, description="Honor X-Forwarded-For / X-Real-IP headers"
    )

    model_config = SettingsConfigDict(
        env_prefix="WEB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class RateLimitConfig(BaseSettings):
    """Sliding window rate limiter configuration."""

    window_seconds: float = Field(default=60.0, description="Lookback window in seconds")
    max_requests: int = Field(
        default=120, description="Requests allowed per key inside the window"
    )
    sweep_interval: float = Field(
        default=300.0,
        description="Seconds between sweeps of idle keys (0 disables sweeping)",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class DatabaseConfig(BaseSettings):
    """Database Configuration."""

    url: str = Field(default="sqlite:///arena.db", description="Database URL")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=20, description="Max pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        """Get database URL, preferring the DATABASE_URL env var."""
        return os.getenv("DATABASE_URL", self.url)


class MetricsConfig(BaseSettings):
    """Prometheus exporter configuration."""

    enabled: bool = Field(default=True, description="Expose Prometheus metrics")
    port: int = Field(default=9090, description="Metrics HTTP port")

    model_config = SettingsConfigDict(
        env_prefix="METRICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class LoggingConfig(BaseSettings):
    """Logging Configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format (json or text)")
    dir: str = Field(default="./logs", description="Log directory")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class AppConfig(BaseSettings):
    """Main Application Configuration."""

    environment: str = Field(default="development", description="Environment name")
    app_name: str = Field(default="Password Arena", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


class Config:
    """
    Centralized configuration management.

    Loads configuration from environment variables and optional YAML files.
    Uses Pydantic for validation and type safety.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_file: Optional path to YAML configuration file
        """
        self.app = AppConfig()
        self.web = WebConfig()
        self.rate_limit = RateLimitConfig()
        self.database = DatabaseConfig()
        self.metrics = MetricsConfig()
        self.logging = LoggingConfig()

        if config_file and config_file.exists():
            self._load_yaml(config_file)

    def _load_yaml(self, config_file: Path) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file
        """
        with open(config_file, "r", encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f)

        if not yaml_config:
            return

        for section, values in yaml_config.items():
            if hasattr(self, section) and isinstance(values, dict):
                config_obj = getattr(self, section)
                for key, value in values.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        The admin password is masked.

        Returns:
            Dictionary representation of configuration
        """
        web = self.web.model_dump()
        web["admin_password"] = "***"
        return {
            "app": self.app.model_dump(),
            "web": web,
            "rate_limit": self.rate_limit.model_dump(),
            "database": self.database.model_dump(),
            "metrics": self.metrics.model_dump(),
            "logging": self.logging.model_dump(),
        }


# Global configuration instance
_config: Optional[Config] = None


def get_config(config_file: Optional[Path] = None) -> Config:
    """
    Get global configuration instance.

    Args:
        config_file: Optional path to YAML configuration file

    Returns:
        Configuration instance
    """
    global _config
    if _config is None:
        _config = Config(config_file)
    return _config


def reload_config(config_file: Optional[Path] = None) -> Config:
    """
    Reload configuration from scratch.

    Args:
        config_file: Optional path to YAML configuration file

    Returns:
        New configuration instance
    """
    global _config
    _config = Config(config_file)
    return _config


def load_config(config_file: Optional[Path] = None) -> Config:
    """
    Load configuration from file or environment.

    Alias for get_config().
    """
    return get_config(config_file)
