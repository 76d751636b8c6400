"""Configuration management for rsfleet.

Configuration is read from environment variables:
- RS_ENDPOINT: Base URL of the orchestration API
- RS_REFRESH_TOKEN: OAuth refresh token used to obtain bearer tokens
- RS_API_VERSION: Value of the X_API_VERSION header
- RS_TAG_NAMESPACE: Namespace of tags kept during enrichment
- RS_MAX_WORKERS: Thread pool size for per-deployment array listing
- RS_TERMINATE_BATCH_SIZE: Concurrent terminations per batch
- RS_REQUEST_TIMEOUT: Per-request timeout in seconds
- RS_FIXTURE_FILE: JSON file of canned responses, replaces the HTTP transport
- DRY_RUN: Log launch/terminate actions without executing them
- LOG_LEVEL: Configurable log level
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_ENDPOINT = "https://us-3.rightscale.com"
DEFAULT_MAX_WORKERS = 8

_config_logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration validation errors."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)


def _positive_int(name: str, raw: str, default: int) -> int:
    try:
        parsed = int(raw)
    except ValueError:
        _config_logger.warning(f"Invalid {name} '{raw}' (not a valid integer), defaulting to {default}")
        return default
    if parsed < 1:
        _config_logger.warning(f"Invalid {name} '{parsed}' (must be positive), defaulting to {default}")
        return default
    return parsed


@dataclass
class FleetConfig:
    """Configuration for fleet operations.

    Attributes:
        endpoint: Base URL requests are joined to.
        refresh_token: OAuth refresh token exchanged for a bearer token.
        api_version: Sent as the X_API_VERSION header on every request.
        tag_namespace: Only tags in this namespace are kept during enrichment.
        max_workers: Upper bound on concurrent per-deployment listings.
        terminate_batch_size: Terminations issued concurrently per batch.
            1 means strictly sequential.
        request_timeout: Seconds before a single request is abandoned.
        fixture_file: Path of canned responses. When set, no network
            requests are made.
        dry_run: When True, launch and terminate are logged but not sent.
        log_level: Log level for output.
    """

    endpoint: str = DEFAULT_ENDPOINT
    refresh_token: str = ""
    api_version: str = "1.5"
    tag_namespace: str = "ec2"
    max_workers: int = DEFAULT_MAX_WORKERS
    terminate_batch_size: int = 1
    request_timeout: float = 30.0
    fixture_file: str = ""
    dry_run: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls, validate: bool = True) -> "FleetConfig":
        """Create configuration from environment variables.

        Args:
            validate: If True, validates the configuration and raises
                ConfigurationError if invalid.

        Returns:
            FleetConfig instance populated from environment variables.

        Raises:
            ConfigurationError: If RS_REQUEST_TIMEOUT is not a number, or if
                validation is enabled and the configuration is invalid.
        """
        config = cls()

        config.endpoint = os.environ.get("RS_ENDPOINT", DEFAULT_ENDPOINT).strip()
        config.refresh_token = os.environ.get("RS_REFRESH_TOKEN", "").strip()
        config.api_version = os.environ.get("RS_API_VERSION", "1.5").strip()
        config.tag_namespace = os.environ.get("RS_TAG_NAMESPACE", "ec2").strip()
        config.fixture_file = os.environ.get("RS_FIXTURE_FILE", "").strip()

        config.max_workers = _positive_int(
            "RS_MAX_WORKERS",
            os.environ.get("RS_MAX_WORKERS", str(DEFAULT_MAX_WORKERS)).strip(),
            DEFAULT_MAX_WORKERS,
        )
        config.terminate_batch_size = _positive_int(
            "RS_TERMINATE_BATCH_SIZE",
            os.environ.get("RS_TERMINATE_BATCH_SIZE", "1").strip(),
            1,
        )

        timeout = os.environ.get("RS_REQUEST_TIMEOUT")
        if timeout:
            try:
                config.request_timeout = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid RS_REQUEST_TIMEOUT: '{timeout}' is not a valid number"
                )

        dry_run_value = os.environ.get("DRY_RUN", "false").lower().strip()
        config.dry_run = dry_run_value in ("true", "1", "yes")

        log_level_value = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_value in VALID_LOG_LEVELS:
            config.log_level = log_level_value
        else:
            _config_logger.warning(f"Invalid LOG_LEVEL '{log_level_value}', defaulting to INFO")
            config.log_level = "INFO"

        if validate:
            errors = config.validate()
            if errors:
                raise ConfigurationError(
                    f"Configuration validation failed: {errors}", errors=errors
                )

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages. Empty list if configuration is valid.
        """
        errors = []

        if not self.endpoint.startswith(("http://", "https://")):
            errors.append(f"RS_ENDPOINT must be an http(s) URL: '{self.endpoint}'")

        if not self.refresh_token and not self.fixture_file:
            errors.append("RS_REFRESH_TOKEN is required unless RS_FIXTURE_FILE is set")

        if not self.tag_namespace:
            errors.append("RS_TAG_NAMESPACE cannot be empty")

        if ":" in self.tag_namespace:
            errors.append("RS_TAG_NAMESPACE cannot contain ':'")

        if self.request_timeout <= 0:
            errors.append("RS_REQUEST_TIMEOUT must be positive")

        return errors

    def get_numeric_log_level(self) -> int:
        """Get the numeric log level for use with logging module."""
        return getattr(logging, self.log_level, logging.INFO)


def configure_logging(config: Optional[FleetConfig] = None) -> logging.Logger:
    """Configure logging based on LOG_LEVEL environment variable or config.

    Args:
        config: Optional FleetConfig instance. If not provided, reads from environment.

    Returns:
        Configured logger instance for rsfleet.
    """
    if config is None:
        log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper().strip()
        if log_level_str not in VALID_LOG_LEVELS:
            logging.warning(f"Invalid LOG_LEVEL '{log_level_str}', defaulting to INFO")
            log_level_str = "INFO"
        config = FleetConfig(log_level=log_level_str)

    log_level = config.get_numeric_log_level()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )

    fleet_logger = logging.getLogger("rsfleet")
    fleet_logger.setLevel(log_level)

    return fleet_logger
