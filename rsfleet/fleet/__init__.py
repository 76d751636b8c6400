"""Fleet listing and scaling modules."""

from rsfleet.fleet.aggregator import ArrayAggregator
from rsfleet.fleet.batch_processor import BatchProcessor, BatchResult
from rsfleet.fleet.inputs import InputManager
from rsfleet.fleet.scaler import ArrayScaler
from rsfleet.fleet.selector import InstanceSelector, parse_created_at
from rsfleet.fleet.terminator import BatchTerminator

__all__ = [
    "ArrayAggregator",
    "ArrayScaler",
    "BatchProcessor",
    "BatchResult",
    "BatchTerminator",
    "InputManager",
    "InstanceSelector",
    "parse_created_at",
]
