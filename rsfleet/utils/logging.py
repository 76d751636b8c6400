"""Structured logging for rsfleet operations.

FleetLogger records listing, enrichment, selection, launch and termination
actions as LogEntry objects and forwards them to the standard ``logging``
module. All output is passed through LogSanitizer so bearer and refresh
tokens never reach the logs.
"""

import logging
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, Iterator, List, Optional

from rsfleet.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

# Oldest entries are dropped once a logger holds this many
DEFAULT_MAX_ENTRIES = 10000


class LogLevel(Enum):
    """Log levels for fleet operations."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ActionType(Enum):
    """Types of actions that can be logged."""

    LIST = "LIST"
    ENRICH = "ENRICH"
    SELECT = "SELECT"
    LAUNCH = "LAUNCH"
    TERMINATE = "TERMINATE"
    SKIP = "SKIP"
    ERROR = "ERROR"


_LEVEL_MAP = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass
class LogEntry:
    """Structured log entry."""

    timestamp: datetime
    level: LogLevel
    action: ActionType
    resource_type: str
    resource_id: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    error_info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary for structured logging."""
        entry = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "action": self.action.value,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "message": self.message,
        }
        if self.details:
            entry["details"] = self.details
        if self.error_info:
            entry["error"] = self.error_info
        return entry


class FleetLogger:
    """Structured logging for fleet listing and scaling operations.

    Entries are kept in memory so callers can report on what a run did, and
    every message is sanitized before it is emitted.
    """

    def __init__(
        self,
        dry_run: bool = False,
        name: str = "rsfleet.actions",
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        """
        Initialize fleet logger.

        Args:
            dry_run: Whether operating in dry-run mode
            name: Name of the underlying standard library logger
            max_entries: Number of most recent entries kept for get_log_entries
        """
        self.dry_run = dry_run
        self._logger = logging.getLogger(name)
        self._log_entries: Deque[LogEntry] = deque(maxlen=max_entries)

    def _create_entry(
        self,
        level: LogLevel,
        action: ActionType,
        resource_type: str,
        resource_id: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_info: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        return LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            action=action,
            resource_type=resource_type,
            resource_id=LogSanitizer.sanitize(resource_id),
            message=LogSanitizer.sanitize(message),
            details=LogSanitizer.sanitize_dict(details) if details else {},
            error_info=LogSanitizer.sanitize_dict(error_info) if error_info else None,
        )

    def _log(self, entry: LogEntry) -> None:
        self._log_entries.append(entry)

        prefix = "[DRY RUN] " if self.dry_run else ""
        log_message = (
            f"{prefix}[{entry.action.value}] {entry.resource_type} "
            f"{entry.resource_id}: {entry.message}"
        )
        if entry.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in entry.details.items())
            log_message += f" ({detail_str})"
        if entry.error_info:
            log_message += f" - Error: {entry.error_info}"

        self._logger.log(_LEVEL_MAP[entry.level], log_message)

    def log_listing(self, resource_type: str, source: str, count: int) -> None:
        """Log the result of a listing call."""
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.LIST,
                resource_type=resource_type,
                resource_id=source,
                message=f"Listed {count} {resource_type}(s)",
                details={"count": count},
            )
        )

    def log_listing_failed(self, resource_type: str, source: str, error: Exception) -> None:
        """Log a listing failure that was tolerated."""
        self._log(
            self._create_entry(
                level=LogLevel.ERROR,
                action=ActionType.ERROR,
                resource_type=resource_type,
                resource_id=source,
                message=f"Could not list {resource_type}(s), continuing",
                error_info={"type": type(error).__name__, "message": str(error)},
            )
        )

    def log_enrichment(self, resource_count: int, tagged_count: int) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.DEBUG,
                action=ActionType.ENRICH,
                resource_type="server_array",
                resource_id="*",
                message=f"Joined tags onto {tagged_count} of {resource_count} array(s)",
                details={"arrays": resource_count, "tagged": tagged_count},
            )
        )

    def log_selected(self, resource_id: str, created_at: str) -> None:
        """Log an instance chosen for termination."""
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.SELECT,
                resource_type="instance",
                resource_id=resource_id,
                message="Instance being submitted for termination",
                details={"created_at": created_at},
            )
        )

    def log_skipped(self, resource_type: str, resource_id: str, reason: str) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.WARNING,
                action=ActionType.SKIP,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"Skipped: {reason}",
            )
        )

    def log_action(
        self,
        action: ActionType,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a launch or terminate action, planned or executed."""
        verb = "Would" if self.dry_run else "Issuing"
        self._log(
            self._create_entry(
                level=LogLevel.INFO,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"{verb} {action.value.lower()}",
                details=details,
            )
        )

    def log_action_failed(
        self,
        action: ActionType,
        resource_type: str,
        resource_id: str,
        error_message: str,
    ) -> None:
        self._log(
            self._create_entry(
                level=LogLevel.ERROR,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                message=f"{action.value.capitalize()} failed",
                error_info={"message": error_message},
            )
        )

    def get_log_entries(self) -> List[LogEntry]:
        return list(self._log_entries)

    def clear(self) -> None:
        self._log_entries.clear()


@contextmanager
def log_duration(name: str, log: Optional[logging.Logger] = None) -> Iterator[None]:
    """Log how long the wrapped block took, at DEBUG level."""
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start
        (log or logger).debug(f"{LogSanitizer.sanitize(name)} took {elapsed:.3f}s")
