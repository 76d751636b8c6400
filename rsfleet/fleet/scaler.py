"""Scaling of a single server array up or down."""

import logging
from typing import Any, List, Optional

from rsfleet.errors import ValidationError
from rsfleet.fleet.batch_processor import BatchResult
from rsfleet.fleet.selector import InstanceSelector
from rsfleet.fleet.terminator import BatchTerminator
from rsfleet.models import ServerArray, ServerInstance, decode_list
from rsfleet.utils.logging import log_duration
from rsfleet.utils.security import InputValidator

logger = logging.getLogger(__name__)

CURRENT_INSTANCES_PATH = "/api/server_arrays/{array_id}/current_instances"


class ArrayScaler:
    """Launches into and downscales one array at a time.

    Downscaling lists the array's current instances, selects the oldest
    running ones and terminates them as a batch.
    """

    def __init__(
        self,
        client: Any,
        terminator: BatchTerminator,
        selector: Optional[InstanceSelector] = None,
    ):
        self.client = client
        self.terminator = terminator
        self.selector = selector or InstanceSelector()

    def get_array_instances(self, array_id: str) -> List[ServerInstance]:
        """
        List the current instances of an array.

        Raises:
            ValidationError: If array_id is not numeric
            RequestError: If the request fails
            DecodeError: If the response cannot be decoded
        """
        validation = InputValidator.validate_array_id(array_id)
        if not validation.is_valid:
            raise ValidationError("; ".join(validation.errors))

        path = CURRENT_INSTANCES_PATH.format(array_id=array_id)
        with log_duration(path, logger):
            payload = self.client.get_json(path)
        return decode_list(payload, ServerInstance)

    def downscale(self, array: ServerArray, count: int) -> BatchResult:
        """
        Terminate the ``count`` oldest running instances of ``array``.

        Raises:
            ValidationError: If the array is not addressable
            InsufficientCandidatesError: If fewer instances are eligible than requested
            RequestError, DecodeError: If the instances cannot be listed
            BatchTerminationError: If any termination failed
        """
        array_id = array.array_id
        if not array_id:
            raise ValidationError(f"Array '{array.name}' is not addressable, it has no self link")

        instances = self.get_array_instances(array_id)
        selected = self.selector.select_oldest(instances, count)
        if not selected:
            return BatchResult()

        logger.info(f"Downscaling array '{array.name}' by {len(selected)} instance(s)")
        return self.terminator.terminate([instance.href for instance in selected])

    def upscale(self, array: ServerArray, count: int) -> None:
        """Launch ``count`` new instances into ``array``."""
        logger.info(f"Upscaling array '{array.name}' by {count} instance(s)")
        self.terminator.launch_instances(array, count)
