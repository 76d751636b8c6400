"""Batch processor for per-item API actions.

Items are processed in batches of a configurable size. A batch size of 1
runs every item sequentially; larger batches run their items concurrently on
a ThreadPoolExecutor and the next batch starts only once the current one has
finished. A failing item is recorded and never stops the remaining items.

Results from concurrent batches are merged by the calling thread only.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Result of batch processing.

    Attributes:
        successful: Items whose action succeeded
        failed: Items whose action failed
        errors: Mapping of failed item to error message
    """

    successful: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def merge(self, other: "BatchResult") -> None:
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)
        self.errors.update(other.errors)


class BatchProcessor:
    """Run an action over a list of items, tolerating per-item failures."""

    def __init__(self, batch_size: int = 1):
        """
        Args:
            batch_size: Items processed concurrently per batch. Values below 1
                are treated as 1.
        """
        self.batch_size = max(1, batch_size)
        logger.debug(f"BatchProcessor initialized with batch_size={self.batch_size}")

    def run(
        self,
        items: List[str],
        action: Callable[[str], bool],
        label: str = "item",
    ) -> BatchResult:
        """
        Apply ``action`` to every item.

        Args:
            items: Item identifiers, processed in order. Repeated items are
                processed once, at their first position.
            action: Returns True on success. Returning False or raising marks
                the item failed; the exception text becomes its error message.
            label: Human-readable item kind for logging

        Returns:
            BatchResult with successful, failed and error details
        """
        result = BatchResult()
        unique = list(dict.fromkeys(items))
        if len(unique) != len(items):
            logger.warning(f"Ignoring {len(items) - len(unique)} repeated {label}(s)")
        items = unique
        if not items:
            logger.debug(f"No {label}s to process")
            return result

        logger.info(f"Processing {len(items)} {label}(s) in batches of {self.batch_size}")

        for start in range(0, len(items), self.batch_size):
            batch = items[start : start + self.batch_size]
            if len(batch) > 1:
                result.merge(self._run_concurrent(batch, action, label))
            else:
                result.merge(self._run_sequential(batch, action, label))

        logger.info(
            f"Batch processing complete: {len(result.successful)} {label}(s) succeeded, "
            f"{len(result.failed)} failed"
        )
        return result

    def _run_concurrent(
        self,
        batch: List[str],
        action: Callable[[str], bool],
        label: str,
    ) -> BatchResult:
        result = BatchResult()
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {executor.submit(self._attempt, action, item): item for item in batch}
            for future in as_completed(futures):
                self._record(result, futures[future], *future.result(), label=label)
        return result

    def _run_sequential(
        self,
        batch: List[str],
        action: Callable[[str], bool],
        label: str,
    ) -> BatchResult:
        result = BatchResult()
        for item in batch:
            self._record(result, item, *self._attempt(action, item), label=label)
        return result

    @staticmethod
    def _record(
        result: BatchResult,
        item: str,
        success: bool,
        error_msg: Optional[str],
        label: str,
    ) -> None:
        if success:
            result.successful.append(item)
            logger.debug(f"Processed {label} {item}")
            return
        result.failed.append(item)
        result.errors[item] = error_msg or f"{label} {item} failed"
        logger.warning(f"Failed to process {label} {item}: {result.errors[item]}")

    @staticmethod
    def _attempt(action: Callable[[str], bool], item: str) -> Tuple[bool, Optional[str]]:
        try:
            success = action(item)
        except Exception as e:
            return False, str(e)
        return bool(success), None if success else "action returned False"
