"""Fleet-wide server array listing.

Arrays are listed per deployment. One worker per deployment is submitted to a
ThreadPoolExecutor; each worker lists the arrays of its deployment, optionally
enriches them with tags, and puts them on a queue followed by a completion
sentinel. The calling thread is the only consumer of that queue and the only
writer of the result list. It stops reading once it has seen one sentinel per
submitted worker, which guarantees every array put by any worker has already
been appended.

A failing deployment is logged and contributes nothing; the other deployments
are still returned.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional

from rsfleet.errors import ValidationError
from rsfleet.models import Deployment, RawTagRecord, ServerArray, decode_list, decode_one
from rsfleet.tags.mapper import associate_array_tags, map_tags_to_resource
from rsfleet.utils.logging import FleetLogger, log_duration
from rsfleet.utils.security import InputValidator

logger = logging.getLogger(__name__)

DEPLOYMENTS_PATH = "/api/deployments"
SERVER_ARRAY_PATH = "/api/server_arrays/{array_id}?view=instance_detail"
TAGS_BY_RESOURCE_PATH = "/api/tags/by_resource"
DETAIL_VIEW = "view=instance_detail"

# Marks the end of one worker's output on the shared queue
_WORKER_DONE = object()


class ArrayAggregator:
    """Lists server arrays across deployments and joins their tags."""

    def __init__(
        self,
        client: Any,
        tag_namespace: str = "ec2",
        max_workers: int = 8,
        fleet_logger: Optional[FleetLogger] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            client: ApiClient (or anything with get_json/post_json)
            tag_namespace: Namespace of tags kept during enrichment
            max_workers: Upper bound on concurrent deployment listings
            fleet_logger: Structured logger for listing actions
        """
        self.client = client
        self.tag_namespace = tag_namespace
        self.max_workers = max(1, max_workers)
        self.fleet_logger = fleet_logger or FleetLogger()

    def list_deployments(self) -> List[Deployment]:
        """
        List every deployment in the account.

        Raises:
            RequestError: If the request fails
            DecodeError: If the response is not a list of deployments
        """
        with log_duration(DEPLOYMENTS_PATH, logger):
            payload = self.client.get_json(DEPLOYMENTS_PATH)
        deployments = decode_list(payload, Deployment)
        self.fleet_logger.log_listing("deployment", DEPLOYMENTS_PATH, len(deployments))
        return deployments

    def list_arrays(
        self,
        want_tags: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[ServerArray]:
        """
        List every server array across all deployments.

        Listing is best-effort: a deployment whose arrays cannot be listed is
        logged and skipped. The order of the returned arrays is unspecified.

        Args:
            want_tags: Enrich each deployment's arrays with their tags
            cancel_event: When set, no further deployments are started and
                workers that have not yet delivered drop their results

        Returns:
            Arrays from every deployment that was listed successfully

        Raises:
            RequestError: If the deployment list itself cannot be fetched
            DecodeError: If the deployment list cannot be decoded
        """
        deployments = self.list_deployments()

        listing_hrefs = []
        for deployment in deployments:
            collection = deployment.server_arrays_href
            if not collection:
                self.fleet_logger.log_skipped(
                    "deployment", deployment.name, "no server_arrays link"
                )
                continue
            listing_hrefs.append(f"{collection}?{DETAIL_VIEW}")

        results: queue.Queue = queue.Queue()
        arrays: List[ServerArray] = []
        submitted = 0

        workers = max(1, min(self.max_workers, len(listing_hrefs)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rsfleet-list") as executor:
            for href in listing_hrefs:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(
                        f"Listing cancelled, {len(listing_hrefs) - submitted} deployment(s) not started"
                    )
                    break
                executor.submit(self._list_into_queue, href, want_tags, results, cancel_event)
                submitted += 1

            finished = 0
            while finished < submitted:
                item = results.get()
                if item is _WORKER_DONE:
                    finished += 1
                else:
                    arrays.append(item)

        logger.info(f"Collected {len(arrays)} array(s) from {submitted} deployment(s)")
        return arrays

    def _list_into_queue(
        self,
        href: str,
        want_tags: bool,
        results: queue.Queue,
        cancel_event: Optional[threading.Event],
    ) -> None:
        """Worker body. Always posts exactly one completion sentinel."""
        try:
            if cancel_event is not None and cancel_event.is_set():
                return
            arrays = self._list_deployment_arrays(href, want_tags)
            if cancel_event is not None and cancel_event.is_set():
                logger.debug(f"Dropping {len(arrays)} array(s) from {href} after cancellation")
                return
            for array in arrays:
                results.put(array)
        except Exception as e:
            self.fleet_logger.log_listing_failed("server_array", href, e)
        finally:
            results.put(_WORKER_DONE)

    def _list_deployment_arrays(self, href: str, want_tags: bool) -> List[ServerArray]:
        with log_duration(href, logger):
            payload = self.client.get_json(href)
        arrays = decode_list(payload, ServerArray)
        self.fleet_logger.log_listing("server_array", href, len(arrays))

        if want_tags and arrays:
            arrays = self.populate_array_tags(arrays)
        return arrays

    def get_array(self, array_id: str, want_tags: bool = False) -> ServerArray:
        """
        Fetch a single server array by its numeric id.

        Args:
            array_id: Trailing numeric portion of the array href
            want_tags: Enrich the array with its tags

        Raises:
            ValidationError: If array_id is not a numeric id
            RequestError: If a request fails
            DecodeError: If a response cannot be decoded
        """
        validation = InputValidator.validate_array_id(array_id)
        if not validation.is_valid:
            raise ValidationError("; ".join(validation.errors))

        path = SERVER_ARRAY_PATH.format(array_id=array_id)
        with log_duration(path, logger):
            payload = self.client.get_json(path)
        array = decode_one(payload, ServerArray)

        if want_tags:
            array = self.populate_array_tags([array])[0]
        return array

    def populate_array_tags(self, arrays: List[ServerArray]) -> List[ServerArray]:
        """
        Join tags onto arrays with one bulk tag lookup.

        Only addressable arrays are looked up; the rest come back with empty
        tags. Every returned array has its href normalized from its self link.

        Raises:
            RequestError: If the tag lookup fails
            DecodeError: If the tag response cannot be decoded
        """
        hrefs = [array.self_href for array in arrays if array.self_href]
        if not hrefs:
            return associate_array_tags(arrays, {})

        payload = self.client.post_json(TAGS_BY_RESOURCE_PATH, {"resource_hrefs": hrefs})
        records = decode_list(payload, RawTagRecord)
        tag_map = map_tags_to_resource(records, self.tag_namespace)

        joined = associate_array_tags(arrays, tag_map)
        self.fleet_logger.log_enrichment(len(joined), sum(1 for a in joined if a.tags))
        return joined
