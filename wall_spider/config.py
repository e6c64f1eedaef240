"""Configuration handling for the Graph API crawler."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_HOST = "graph.facebook.com"
DEFAULT_FEED_FIELDS = ["id", "message", "story", "from", "created_time"]


@dataclass
class RateLimitConfig:
    """Rate limiting configuration."""

    max_requests_per_minute: int = 200
    max_usage_percent: int = 90
    usage_cooldown_sec: int = 60
    sleep_buffer_sec: int = 2


@dataclass
class RetryConfig:
    """Retry and backoff configuration for failed requests."""

    max_retries: int = 3
    initial_backoff_sec: float = 1.0
    max_backoff_sec: float = 32.0
    backoff_factor: float = 2.0


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _apply_section(section: Any, values: Dict[str, Any]) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    for key, value in values.items():
        if hasattr(section, key):
            setattr(section, key, value)
        else:
            logger.warning(f"Ignoring unknown configuration key: {key}")


@dataclass
class Config:
    """Crawler configuration combining environment variables and YAML config."""

    # Graph API credentials and endpoint from environment
    api_token: str = ""
    host: str = DEFAULT_HOST
    api_version: Optional[str] = None

    # YAML config values with defaults
    feed_fields: List[str] = field(default_factory=lambda: list(DEFAULT_FEED_FIELDS))
    default_since_days: int = 7
    max_pages: int = 1000
    max_elapsed_sec: Optional[float] = 600.0
    request_timeout_sec: float = 30.0
    failure_threshold: int = 5
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    _SECTIONS = ("rate_limit", "retry", "monitoring")

    @classmethod
    def from_files(
        cls, config_path: Optional[str] = None, env_path: Optional[str] = None
    ) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        Args:
            config_path: Optional path to a YAML configuration file
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()

        if config_path and os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

            if yaml_config:
                for key, value in yaml_config.items():
                    if key in cls._SECTIONS:
                        if isinstance(value, dict):
                            _apply_section(getattr(config, key), value)
                    elif hasattr(config, key):
                        setattr(config, key, value)
                    else:
                        logger.warning(f"Ignoring unknown configuration key: {key}")
        elif config_path:
            logger.warning(f"Configuration file not found at {config_path}, using defaults")

        # Environment variables win over the YAML file
        config.api_token = os.getenv("GRAPH_API_TOKEN", config.api_token)
        config.host = os.getenv("GRAPH_API_HOST", config.host)
        config.api_version = os.getenv("GRAPH_API_VERSION", config.api_version) or None

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.api_token:
            errors.append("Missing GRAPH_API_TOKEN in environment")
        if not self.host:
            errors.append("host must not be empty")
        if not self.feed_fields:
            errors.append("feed_fields must list at least one field")
        if self.default_since_days <= 0:
            errors.append("default_since_days must be greater than 0")
        if self.max_pages <= 0:
            errors.append("max_pages must be greater than 0")
        if self.max_elapsed_sec is not None and self.max_elapsed_sec <= 0:
            errors.append("max_elapsed_sec must be greater than 0 when set")
        if self.request_timeout_sec <= 0:
            errors.append("request_timeout_sec must be greater than 0")
        if self.failure_threshold <= 0:
            errors.append("failure_threshold must be greater than 0")
        if self.retry.max_retries < 0:
            errors.append("retry.max_retries must not be negative")
        if self.rate_limit.max_requests_per_minute < 0:
            errors.append("rate_limit.max_requests_per_minute must not be negative")

        return errors
