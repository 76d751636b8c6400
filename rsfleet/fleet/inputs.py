"""Inputs of an array's next instance.

Inputs configure the instances an array will launch next. They do not
reflect the inputs of instances that are already running.
"""

import logging
from typing import Any, List

from rsfleet.errors import NotSupportedError, ValidationError
from rsfleet.models import Input, ServerArray, ServerInstance, decode_list

logger = logging.getLogger(__name__)


class InputManager:
    """Reads and updates next-instance inputs of server arrays."""

    def __init__(self, client: Any):
        self.client = client

    @staticmethod
    def _next_instance(array: ServerArray) -> str:
        href = array.next_instance_href
        if not href:
            raise ValidationError(f"Array '{array.name}' has no next_instance link")
        return href

    def array_inputs(self, array: ServerArray) -> List[Input]:
        """List the next-instance inputs of ``array``."""
        payload = self.client.get_json(f"{self._next_instance(array)}/inputs")
        return decode_list(payload, Input)

    def update_array_input(self, array: ServerArray, array_input: Input) -> None:
        """Set one next-instance input of ``array`` to ``array_input.value``."""
        path = f"{self._next_instance(array)}/inputs/multi_update"
        body = {"inputs": {array_input.name: array_input.value}}
        logger.info(f"Updating input '{array_input.name}' of array '{array.name}'")
        self.client.send("PUT", path, body)

    def instance_inputs(self, instance: ServerInstance) -> List[Input]:
        """Inputs of a running instance. Not supported."""
        raise NotSupportedError("listing inputs of a running instance is not supported")
