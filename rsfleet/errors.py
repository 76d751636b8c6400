"""Exception hierarchy for rsfleet operations."""

from typing import Dict, Optional


class FleetError(Exception):
    """Base class for all rsfleet errors."""


class RequestError(FleetError):
    """A request could not be completed or returned an unexpected status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class DecodeError(FleetError):
    """A response body could not be decoded into the expected shape."""


class ValidationError(FleetError):
    """An argument was rejected before any request was made."""


class InsufficientCandidatesError(ValidationError):
    """Fewer instances are available than were requested for termination."""

    def __init__(self, message: str, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(message)


class BatchTerminationError(FleetError):
    """One or more instances in a termination batch failed.

    Attributes:
        errors: Mapping of instance href to failure message
        result: The full BatchResult, including successful terminations
    """

    def __init__(self, errors: Dict[str, str], result=None):
        self.errors = dict(errors)
        self.result = result
        super().__init__(" ".join(self.errors.values()))


class LaunchError(FleetError):
    """Launching instances into an array failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class NotSupportedError(FleetError):
    """The requested operation is intentionally not implemented."""
