"""Entry point wiring configuration, client and fleet components together.

FleetManager is the object applications hold on to. It owns one ApiClient
and shares a single FleetLogger between the aggregator, selector and
terminator so every action of a session ends up in one place.
"""

import logging
import threading
from typing import Any, List, Optional

from rsfleet.fleet.aggregator import ArrayAggregator
from rsfleet.fleet.batch_processor import BatchResult
from rsfleet.fleet.inputs import InputManager
from rsfleet.fleet.scaler import ArrayScaler
from rsfleet.fleet.selector import InstanceSelector
from rsfleet.fleet.terminator import BatchTerminator
from rsfleet.models import Deployment, Input, ServerArray, ServerInstance
from rsfleet.utils.client import ApiClient
from rsfleet.utils.config import ConfigurationError, FleetConfig, configure_logging
from rsfleet.utils.logging import FleetLogger, LogEntry
from rsfleet.utils.security import LogSanitizer

logger = logging.getLogger(__name__)


class FleetManager:
    """Lists, enriches and scales server arrays."""

    def __init__(self, config: FleetConfig, transport: Any = None):
        """
        Args:
            config: Validated configuration
            transport: Optional transport replacing the one chosen by config
        """
        self.config = config
        self.client = ApiClient(config, transport=transport)
        self.fleet_logger = FleetLogger(dry_run=config.dry_run)

        self.aggregator = ArrayAggregator(
            self.client,
            tag_namespace=config.tag_namespace,
            max_workers=config.max_workers,
            fleet_logger=self.fleet_logger,
        )
        self.terminator = BatchTerminator(
            self.client,
            batch_size=config.terminate_batch_size,
            dry_run=config.dry_run,
            fleet_logger=self.fleet_logger,
        )
        self.scaler = ArrayScaler(
            self.client,
            self.terminator,
            InstanceSelector(fleet_logger=self.fleet_logger),
        )
        self.inputs = InputManager(self.client)

    @classmethod
    def from_environment(cls, transport: Any = None) -> "FleetManager":
        """
        Build a manager from environment configuration and configure logging.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config = FleetConfig.from_environment(validate=False)
        configure_logging(config)

        errors = config.validate()
        if errors:
            logger.error(f"Configuration errors: {LogSanitizer.sanitize(str(errors))}")
            raise ConfigurationError(f"Configuration validation failed: {errors}", errors=errors)

        logger.debug(
            f"Configuration: endpoint={config.endpoint}, max_workers={config.max_workers}, "
            f"terminate_batch_size={config.terminate_batch_size}, dry_run={config.dry_run}"
        )
        return cls(config, transport=transport)

    def __enter__(self) -> "FleetManager":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def list_deployments(self) -> List[Deployment]:
        return self.aggregator.list_deployments()

    def list_arrays(
        self,
        want_tags: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ServerArray]:
        return self.aggregator.list_arrays(want_tags=want_tags, cancel_event=cancel_event)

    def get_array(self, array_id: str, want_tags: bool = False) -> ServerArray:
        return self.aggregator.get_array(array_id, want_tags=want_tags)

    def get_array_instances(self, array_id: str) -> List[ServerInstance]:
        return self.scaler.get_array_instances(array_id)

    def launch_array_instances(self, array: ServerArray, count: int) -> None:
        self.scaler.upscale(array, count)

    def downscale_array_instances(self, array: ServerArray, count: int) -> BatchResult:
        return self.scaler.downscale(array, count)

    def terminate_instances(self, instance_hrefs: List[str]) -> BatchResult:
        return self.terminator.terminate(instance_hrefs)

    def array_inputs(self, array: ServerArray) -> List[Input]:
        return self.inputs.array_inputs(array)

    def update_array_input(self, array: ServerArray, array_input: Input) -> None:
        self.inputs.update_array_input(array, array_input)

    def instance_inputs(self, instance: ServerInstance) -> List[Input]:
        return self.inputs.instance_inputs(instance)

    def action_log(self) -> List[LogEntry]:
        """The most recent structured log entries recorded by this manager."""
        return self.fleet_logger.get_log_entries()

    def clear_action_log(self) -> None:
        self.fleet_logger.clear()
