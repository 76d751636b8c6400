"""Tests for fleet-wide array aggregation.

Covers per-deployment fan-out, best-effort failure handling, per-deployment
tag enrichment, cancellation and single-array lookup.
"""

import copy
import random
import threading
import time
from unittest.mock import MagicMock

import pytest

from rsfleet.errors import DecodeError, RequestError, ValidationError
from rsfleet.fleet.aggregator import ArrayAggregator
from rsfleet.models import Tag


def deployment_doc(deployment_id: int, with_arrays_link: bool = True) -> dict:
    links = [{"rel": "self", "href": f"/api/deployments/{deployment_id}"}]
    if with_arrays_link:
        links.append(
            {"rel": "server_arrays", "href": f"/api/deployments/{deployment_id}/server_arrays"}
        )
    return {"name": f"deployment-{deployment_id}", "links": links}


def array_doc(array_id: str) -> dict:
    return {
        "name": f"array-{array_id}",
        "instances_count": 1,
        "state": "enabled",
        "links": [{"rel": "self", "href": f"/api/server_arrays/{array_id}"}],
    }


def listing_path(deployment_id: int) -> str:
    return f"/api/deployments/{deployment_id}/server_arrays?view=instance_detail"


class FakeClient:
    """In-memory client with optional random latency and failures."""

    def __init__(self, arrays_per_deployment: dict, max_delay: float = 0.0):
        self.responses = {
            "/api/deployments": [deployment_doc(d) for d in arrays_per_deployment],
        }
        for deployment_id, array_ids in arrays_per_deployment.items():
            self.responses[listing_path(deployment_id)] = [array_doc(a) for a in array_ids]
        self.max_delay = max_delay
        self.failing_paths = set()
        self.failing_tag_hrefs = set()
        self.get_calls = []
        self.tag_requests = []
        self._lock = threading.Lock()

    def get_json(self, path):
        with self._lock:
            self.get_calls.append(path)
        if self.max_delay:
            time.sleep(random.uniform(0, self.max_delay))
        if path in self.failing_paths:
            raise RequestError(f"GET {path} returned status 500", status_code=500)
        return copy.deepcopy(self.responses[path])

    def post_json(self, path, body):
        hrefs = body["resource_hrefs"]
        with self._lock:
            self.tag_requests.append(list(hrefs))
        if self.failing_tag_hrefs.intersection(hrefs):
            raise RequestError("tag lookup failed", status_code=500)
        return [
            {
                "links": [{"rel": "resource", "href": href}],
                "tags": [{"name": f"ec2:Name={href.rsplit('/', 1)[-1]}"}, {"name": "x:y=z"}],
            }
            for href in hrefs
        ]


class TestListDeployments:
    """Tests for list_deployments."""

    def test_list_deployments(self, sample_deployment_data):
        client = MagicMock()
        client.get_json.return_value = [sample_deployment_data]

        deployments = ArrayAggregator(client).list_deployments()

        client.get_json.assert_called_once_with("/api/deployments")
        assert len(deployments) == 1
        assert deployments[0].name == "production"
        assert deployments[0].server_arrays_href == "/api/deployments/100/server_arrays"

    def test_request_error_propagates(self):
        client = MagicMock()
        client.get_json.side_effect = RequestError("boom")

        with pytest.raises(RequestError):
            ArrayAggregator(client).list_deployments()

    def test_unexpected_shape_raises_decode_error(self):
        client = MagicMock()
        client.get_json.return_value = {"error": "not a list"}

        with pytest.raises(DecodeError):
            ArrayAggregator(client).list_deployments()


class TestListArrays:
    """Tests for list_arrays."""

    def test_lists_arrays_from_every_deployment(self):
        client = FakeClient({1: ["11", "12"], 2: ["21"], 3: []})

        arrays = ArrayAggregator(client, max_workers=4).list_arrays()

        assert sorted(a.href for a in arrays) == [
            "/api/server_arrays/11",
            "/api/server_arrays/12",
            "/api/server_arrays/21",
        ]

    def test_listing_uses_detail_view(self):
        client = FakeClient({1: ["11"], 2: ["21"]})

        ArrayAggregator(client).list_arrays()

        assert set(client.get_calls) == {"/api/deployments", listing_path(1), listing_path(2)}

    def test_fan_in_never_loses_or_duplicates_arrays(self):
        """Aggregation over randomized worker latency always yields the same set."""
        layout = {
            1: ["11", "12", "13"],
            2: [],
            3: ["31"],
            4: ["41", "42", "43", "44", "45"],
            5: ["51", "52"],
        }
        expected = sorted(f"/api/server_arrays/{a}" for ids in layout.values() for a in ids)

        for _ in range(100):
            client = FakeClient(layout, max_delay=0.002)
            arrays = ArrayAggregator(client, max_workers=5).list_arrays()

            hrefs = sorted(a.href for a in arrays)
            assert len(arrays) == sum(len(ids) for ids in layout.values())
            assert hrefs == expected

    def test_failing_deployment_does_not_abort_others(self):
        client = FakeClient({1: ["11"], 2: ["21"], 3: ["31"]})
        client.failing_paths.add(listing_path(2))

        arrays = ArrayAggregator(client).list_arrays()

        assert sorted(a.href for a in arrays) == ["/api/server_arrays/11", "/api/server_arrays/31"]

    def test_deployment_listing_failure_aborts(self):
        client = FakeClient({1: ["11"]})
        client.failing_paths.add("/api/deployments")

        with pytest.raises(RequestError):
            ArrayAggregator(client).list_arrays()

    def test_malformed_deployment_listing_is_tolerated(self):
        client = FakeClient({1: ["11"], 2: ["21"]})
        client.responses[listing_path(1)] = {"unexpected": True}

        arrays = ArrayAggregator(client).list_arrays()

        assert [a.href for a in arrays] == ["/api/server_arrays/21"]

    def test_deployment_without_arrays_link_is_skipped(self):
        client = FakeClient({1: ["11"]})
        client.responses["/api/deployments"].append(deployment_doc(9, with_arrays_link=False))

        arrays = ArrayAggregator(client).list_arrays()

        assert [a.href for a in arrays] == ["/api/server_arrays/11"]
        assert not any("/deployments/9/" in call for call in client.get_calls)

    def test_no_deployments(self):
        client = FakeClient({})

        assert ArrayAggregator(client).list_arrays(want_tags=True) == []

    def test_without_tags_no_tag_lookup(self):
        client = FakeClient({1: ["11"]})

        arrays = ArrayAggregator(client).list_arrays()

        assert client.tag_requests == []
        assert len(arrays[0].tags) == 0

    def test_tags_enriched_per_deployment(self):
        client = FakeClient({1: ["11", "12"], 2: ["21"], 3: []})

        arrays = ArrayAggregator(client).list_arrays(want_tags=True)

        assert sorted(sorted(r) for r in client.tag_requests) == [
            ["/api/server_arrays/11", "/api/server_arrays/12"],
            ["/api/server_arrays/21"],
        ]
        for array in arrays:
            assert array.tags == [Tag("Name", array.href.rsplit("/", 1)[-1])]

    def test_tag_failure_drops_only_that_deployment(self):
        client = FakeClient({1: ["11"], 2: ["21"]})
        client.failing_tag_hrefs.add("/api/server_arrays/11")

        arrays = ArrayAggregator(client).list_arrays(want_tags=True)

        assert [a.href for a in arrays] == ["/api/server_arrays/21"]

    def test_cancelled_before_start(self):
        client = FakeClient({1: ["11"], 2: ["21"]})
        cancel = threading.Event()
        cancel.set()

        arrays = ArrayAggregator(client).list_arrays(cancel_event=cancel)

        assert arrays == []
        assert client.get_calls == ["/api/deployments"]

    def test_cancelled_while_listing(self):
        client = FakeClient({1: ["11"], 2: ["21"], 3: ["31"]})
        cancel = threading.Event()
        original_get = client.get_json

        def cancelling_get(path):
            result = original_get(path)
            if path != "/api/deployments":
                cancel.set()
            return result

        client.get_json = cancelling_get

        arrays = ArrayAggregator(client, max_workers=1).list_arrays(cancel_event=cancel)

        assert arrays == []
        assert len([c for c in client.get_calls if c != "/api/deployments"]) == 1


class TestGetArray:
    """Tests for get_array and populate_array_tags."""

    def test_get_array(self, sample_array_data):
        client = MagicMock()
        client.get_json.return_value = sample_array_data

        array = ArrayAggregator(client).get_array("200")

        client.get_json.assert_called_once_with("/api/server_arrays/200?view=instance_detail")
        assert array.name == "web-tier"
        assert array.href == "/api/server_arrays/200"
        assert array.instances_count == 3
        client.post_json.assert_not_called()

    def test_get_array_with_tags(self, sample_array_data, sample_tag_response):
        client = MagicMock()
        client.get_json.return_value = sample_array_data
        client.post_json.return_value = sample_tag_response

        array = ArrayAggregator(client).get_array("200", want_tags=True)

        client.post_json.assert_called_once_with(
            "/api/tags/by_resource", {"resource_hrefs": ["/api/server_arrays/200"]}
        )
        assert array.tags.tag_value("Name") == "web-tier"
        assert array.tags.tag_value("type") == "N/A"

    def test_get_array_tag_failure_propagates(self, sample_array_data):
        client = MagicMock()
        client.get_json.return_value = sample_array_data
        client.post_json.side_effect = RequestError("tags down")

        with pytest.raises(RequestError):
            ArrayAggregator(client).get_array("200", want_tags=True)

    def test_get_array_rejects_href(self):
        client = MagicMock()

        with pytest.raises(ValidationError):
            ArrayAggregator(client).get_array("/api/server_arrays/200")
        client.get_json.assert_not_called()

    def test_populate_skips_lookup_without_addressable_arrays(self):
        client = MagicMock()
        aggregator = ArrayAggregator(client)
        array = aggregator.populate_array_tags([])

        assert array == []
        client.post_json.assert_not_called()
