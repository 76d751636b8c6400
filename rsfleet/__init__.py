"""rsfleet - listing, tag enrichment and scaling of server arrays."""

__version__ = "1.0.0"

from rsfleet.errors import (
    BatchTerminationError,
    DecodeError,
    FleetError,
    InsufficientCandidatesError,
    LaunchError,
    NotSupportedError,
    RequestError,
    ValidationError,
)
from rsfleet.manager import FleetManager
from rsfleet.models import (
    Deployment,
    Input,
    Link,
    Links,
    ServerArray,
    ServerInstance,
    Tag,
    Tags,
)

__all__ = [
    "BatchTerminationError",
    "DecodeError",
    "Deployment",
    "FleetError",
    "FleetManager",
    "Input",
    "InsufficientCandidatesError",
    "LaunchError",
    "Link",
    "Links",
    "NotSupportedError",
    "RequestError",
    "ServerArray",
    "ServerInstance",
    "Tag",
    "Tags",
    "ValidationError",
]
