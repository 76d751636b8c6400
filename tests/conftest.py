"""Pytest configuration and shared fixtures."""

import os
from typing import Dict, List

import pytest

for _var in (
    "RS_ENDPOINT",
    "RS_REFRESH_TOKEN",
    "RS_FIXTURE_FILE",
    "RS_MAX_WORKERS",
    "RS_TERMINATE_BATCH_SIZE",
    "RS_REQUEST_TIMEOUT",
    "RS_TAG_NAMESPACE",
    "DRY_RUN",
    "LOG_LEVEL",
):
    os.environ.pop(_var, None)


@pytest.fixture
def sample_deployment_data() -> Dict:
    """Sample deployment document."""
    return {
        "name": "production",
        "links": [
            {"rel": "self", "href": "/api/deployments/100"},
            {"rel": "server_arrays", "href": "/api/deployments/100/server_arrays"},
        ],
    }


@pytest.fixture
def sample_array_data() -> Dict:
    """Sample server array document in the instance_detail view."""
    return {
        "name": "web-tier",
        "instances_count": 3,
        "state": "enabled",
        "array_type": "alert",
        "description": "Frontend web servers",
        "links": [
            {"rel": "self", "href": "/api/server_arrays/200"},
            {"rel": "deployment", "href": "/api/deployments/100"},
            {"rel": "current_instances", "href": "/api/server_arrays/200/current_instances"},
            {"rel": "next_instance", "href": "/api/clouds/1/instances/NEXT200"},
        ],
    }


@pytest.fixture
def sample_instance_data() -> Dict:
    """Sample server instance document."""
    return {
        "name": "web-tier #1",
        "state": "operational",
        "created_at": "2024/01/01 00:00:00 +0000",
        "resource_uid": "i-0abc",
        "links": [{"rel": "self", "href": "/api/clouds/1/instances/AAA"}],
    }


@pytest.fixture
def sample_tag_response() -> List[Dict]:
    """Sample tags/by_resource response."""
    return [
        {
            "links": [{"rel": "resource", "href": "/api/server_arrays/200"}],
            "tags": [
                {"name": "ec2:Name=web-tier"},
                {"name": "ec2:team=frontend"},
                {"name": "rs_agent:type=right_link_lite"},
            ],
        }
    ]
