"""Age-based selection of instances to terminate when downscaling.

The oldest instances of an array are terminated first. Candidates are ranked
by creation time with the instance href as a tie-break, so instances created
in the same second are all kept and selection is reproducible.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from rsfleet.errors import InsufficientCandidatesError
from rsfleet.models import CREATED_AT_FORMAT, ServerInstance
from rsfleet.utils.logging import FleetLogger

logger = logging.getLogger(__name__)


def parse_created_at(raw: str) -> Optional[datetime]:
    """Parse a ``YYYY/MM/DD hh:mm:ss ±zzzz`` timestamp, or None if malformed."""
    try:
        return datetime.strptime(raw, CREATED_AT_FORMAT)
    except (TypeError, ValueError):
        return None


class InstanceSelector:
    """Chooses the oldest running instances of an array."""

    def __init__(self, fleet_logger: Optional[FleetLogger] = None):
        self.fleet_logger = fleet_logger or FleetLogger()

    def rank(self, instances: Sequence[ServerInstance]) -> List[ServerInstance]:
        """
        Order termination candidates oldest first.

        Terminated instances, instances with an unparsable creation time and
        instances without a self link are excluded.
        """
        candidates: List[Tuple[datetime, str, ServerInstance]] = []
        for instance in instances:
            if instance.is_terminated:
                continue

            href = instance.href
            if not href:
                self.fleet_logger.log_skipped("instance", instance.name, "no self link")
                continue

            created = parse_created_at(instance.created_at)
            if created is None:
                self.fleet_logger.log_skipped(
                    "instance",
                    instance.name,
                    f"could not parse created_at '{instance.created_at}'",
                )
                continue

            candidates.append((created, href, instance))

        candidates.sort(key=lambda c: (c[0], c[1]))
        return [instance for _, _, instance in candidates]

    def select_oldest(
        self, instances: Sequence[ServerInstance], count: int
    ) -> List[ServerInstance]:
        """
        Select the ``count`` oldest instances for termination.

        Args:
            instances: Current instances of one array
            count: Number of instances to select

        Returns:
            The selected instances, oldest first

        Raises:
            InsufficientCandidatesError: If count is negative, exceeds the
                number of live instances, or exceeds the number of eligible
                candidates.
        """
        if count < 0:
            raise InsufficientCandidatesError(
                f"Count submitted for downscale {count} must not be negative",
                requested=count,
                available=len(instances),
            )
        if count == 0:
            return []

        if count > len(instances):
            raise InsufficientCandidatesError(
                f"Count submitted for downscale {count} higher than running count {len(instances)}",
                requested=count,
                available=len(instances),
            )

        ranked = self.rank(instances)
        if count > len(ranked):
            raise InsufficientCandidatesError(
                f"Count submitted for downscale {count} higher than terminatable "
                f"count in array {len(ranked)}",
                requested=count,
                available=len(ranked),
            )

        selected = ranked[:count]
        for instance in selected:
            self.fleet_logger.log_selected(instance.href or instance.name, instance.created_at)
        return selected
