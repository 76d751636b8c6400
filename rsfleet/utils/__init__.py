"""Utility modules for API access, configuration, logging and validation."""

from rsfleet.utils.client import ApiClient, ApiResponse, FixtureTransport, HttpTransport
from rsfleet.utils.config import ConfigurationError, FleetConfig, configure_logging
from rsfleet.utils.logging import ActionType, FleetLogger, LogEntry, LogLevel, log_duration
from rsfleet.utils.security import InputValidator, LogSanitizer, ValidationResult

__all__ = [
    "ApiClient",
    "ApiResponse",
    "FixtureTransport",
    "HttpTransport",
    "ConfigurationError",
    "FleetConfig",
    "configure_logging",
    "ActionType",
    "FleetLogger",
    "LogEntry",
    "LogLevel",
    "log_duration",
    "InputValidator",
    "LogSanitizer",
    "ValidationResult",
]
