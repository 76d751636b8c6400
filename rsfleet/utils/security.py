"""Input validation and log sanitization for rsfleet.

Identifiers and hrefs are interpolated into request paths, so they are
checked before use. Log output is scrubbed of bearer and refresh tokens.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

RESOURCE_PATTERNS = {
    "array_id": re.compile(r"^[0-9]{1,20}$"),
}


@dataclass
class ValidationResult:
    """Result of input validation."""

    is_valid: bool
    errors: List[str]
    sanitized_value: Optional[Any] = None

    @classmethod
    def valid(cls, sanitized_value: Any = None) -> "ValidationResult":
        return cls(is_valid=True, errors=[], sanitized_value=sanitized_value)

    @classmethod
    def invalid(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=False, errors=errors)


class InputValidator:
    """Validates identifiers and counts before they reach a request path."""

    @staticmethod
    def validate_array_id(array_id: str) -> ValidationResult:
        """
        Validate a numeric array identifier.

        Catches the common mistake of passing a full href where only the
        trailing numeric id is expected.

        Args:
            array_id: The identifier to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        if not array_id:
            return ValidationResult.invalid(["Array ID cannot be empty"])

        if "/" in array_id:
            return ValidationResult.invalid(
                [f"Array ID '{array_id}' looks like an href, pass only the trailing numeric id"]
            )

        if not RESOURCE_PATTERNS["array_id"].match(array_id):
            return ValidationResult.invalid([f"Array ID '{array_id}' is not numeric"])

        return ValidationResult.valid(array_id)

    @staticmethod
    def validate_href(href: Optional[str]) -> ValidationResult:
        """Validate a resource href taken from a links collection.

        Hrefs are opaque identities; relative paths and absolute URLs are both
        accepted. Only missing values and parent-directory segments are refused.
        """
        if not href:
            return ValidationResult.invalid(["Resource href is missing"])

        if ".." in href:
            return ValidationResult.invalid(
                [f"Resource href '{href}' contains a parent directory segment"]
            )

        return ValidationResult.valid(href)

    @staticmethod
    def validate_count(count: int) -> ValidationResult:
        """Validate an instance count for launch."""
        if isinstance(count, bool) or not isinstance(count, int):
            return ValidationResult.invalid([f"Count must be an integer, got {count!r}"])

        if count < 1:
            return ValidationResult.invalid([f"Count must be at least 1, got {count}"])

        return ValidationResult.valid(count)


class LogSanitizer:
    """Sanitizes log output to prevent credential exposure."""

    SENSITIVE_PATTERNS = [
        (re.compile(r"(?i)bearer\s+[A-Za-z0-9._~+/=-]+"), "Bearer [REDACTED]"),
        (re.compile(r"(?i)refresh_token\s*[=:]\s*[^\s&]+"), "refresh_token=[REDACTED]"),
        (re.compile(r"(?i)access_token\"?\s*[=:]\s*\"?[^\s&\",}]+"), "access_token=[REDACTED]"),
        (re.compile(r"(?i)password\s*[=:]\s*\S+"), "password=[REDACTED]"),
        (re.compile(r"(?i)secret\s*[=:]\s*\S+"), "secret=[REDACTED]"),
    ]

    @classmethod
    def sanitize(cls, message: str) -> str:
        """
        Sanitize a log message to remove sensitive data.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message
        """
        sanitized = message
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize a dictionary for logging."""
        sanitized: Dict[str, Any] = {}
        sensitive_keys = {"token", "secret", "password", "authorization", "credential"}

        for key, value in data.items():
            key_lower = key.lower()
            if any(s in key_lower for s in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize(value)
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [cls.sanitize(v) if isinstance(v, str) else v for v in value]
            else:
                sanitized[key] = value

        return sanitized
