"""Instance termination and launch.

Termination is partial-failure tolerant: every instance is attempted, failures
are collected per href, and a single BatchTerminationError describing all of
them is raised once the batch is done.
"""

import logging
from typing import Any, List, Optional

from rsfleet.errors import BatchTerminationError, LaunchError, RequestError, ValidationError
from rsfleet.fleet.batch_processor import BatchProcessor, BatchResult
from rsfleet.models import ServerArray
from rsfleet.utils.logging import ActionType, FleetLogger
from rsfleet.utils.security import InputValidator

logger = logging.getLogger(__name__)

TERMINATE_SUCCESS_STATUS = 204
LAUNCH_SUCCESS_STATUSES = {200, 201}


class BatchTerminator:
    """Terminates instances and launches new ones into arrays."""

    def __init__(
        self,
        client: Any,
        batch_size: int = 1,
        dry_run: bool = False,
        fleet_logger: Optional[FleetLogger] = None,
    ):
        """
        Args:
            client: ApiClient (or anything with send_detailed)
            batch_size: Terminations issued concurrently per batch; 1 is sequential
            dry_run: Log actions without sending them
            fleet_logger: Structured logger for launch/terminate actions
        """
        self.client = client
        self.dry_run = dry_run
        self.batch_processor = BatchProcessor(batch_size=batch_size)
        self.fleet_logger = fleet_logger or FleetLogger(dry_run=dry_run)

    def terminate(self, instance_hrefs: List[str]) -> BatchResult:
        """
        Terminate every instance in ``instance_hrefs``.

        Args:
            instance_hrefs: Self hrefs of the instances to terminate

        Returns:
            BatchResult listing every terminated href

        Raises:
            BatchTerminationError: If any termination failed. Its message
                joins every failure and ``result`` holds the full BatchResult.
        """
        result = self.batch_processor.run(list(instance_hrefs), self._terminate_one, "instance")
        if result.failed:
            raise BatchTerminationError(result.errors, result)
        return result

    def _terminate_one(self, href: str) -> bool:
        validation = InputValidator.validate_href(href)
        if not validation.is_valid:
            message = f"Refusing to terminate {href!r}: {'; '.join(validation.errors)}"
            self.fleet_logger.log_action_failed(ActionType.TERMINATE, "instance", str(href), message)
            raise ValidationError(message)

        self.fleet_logger.log_action(ActionType.TERMINATE, "instance", href)
        if self.dry_run:
            return True

        try:
            response = self.client.send_detailed("POST", f"{href}/terminate")
        except RequestError as e:
            message = f"Error calling terminate instance endpoint for {href} - {e}"
            self.fleet_logger.log_action_failed(ActionType.TERMINATE, "instance", href, message)
            raise RequestError(message) from e

        if response.status_code != TERMINATE_SUCCESS_STATUS:
            message = (
                f"Error calling terminate instance endpoint for {href} expected "
                f"{TERMINATE_SUCCESS_STATUS} got {response.status_code}"
            )
            if response.text:
                message += f" - {response.text}"
            self.fleet_logger.log_action_failed(ActionType.TERMINATE, "instance", href, message)
            raise RequestError(message, status_code=response.status_code, body=response.text)

        return True

    def launch_instances(self, array: ServerArray, count: int) -> None:
        """
        Launch ``count`` new instances into ``array``.

        Raises:
            ValidationError: If count is out of range or the array has no self link
            LaunchError: On transport failure or any status other than 200/201
        """
        count_check = InputValidator.validate_count(count)
        if not count_check.is_valid:
            raise ValidationError("; ".join(count_check.errors))

        href_check = InputValidator.validate_href(array.self_href)
        if not href_check.is_valid:
            raise ValidationError(
                f"Array '{array.name}' is not addressable: {'; '.join(href_check.errors)}"
            )

        href = array.self_href
        self.fleet_logger.log_action(ActionType.LAUNCH, "server_array", href, {"count": count})
        if self.dry_run:
            return

        path = f"{href}/launch?count={count}&api_behavior=sync"
        try:
            response = self.client.send_detailed("POST", path)
        except RequestError as e:
            self.fleet_logger.log_action_failed(ActionType.LAUNCH, "server_array", href, str(e))
            raise LaunchError(f"Error calling launch array endpoint - {e}") from e

        if response.status_code in LAUNCH_SUCCESS_STATUSES:
            return

        message = f"Error calling launch array endpoint expected 201 got {response.status_code}"
        if response.text:
            message += f" - {response.text}"
        self.fleet_logger.log_action_failed(ActionType.LAUNCH, "server_array", href, message)
        raise LaunchError(message, status_code=response.status_code, body=response.text)
