"""Tests for next-instance input management."""

from unittest.mock import MagicMock

import pytest

from rsfleet.errors import NotSupportedError, ValidationError
from rsfleet.fleet.inputs import InputManager
from rsfleet.models import Input, Links, ServerArray, ServerInstance


@pytest.fixture
def array(sample_array_data) -> ServerArray:
    return ServerArray.from_api(sample_array_data)


class TestInputManager:
    """Tests for InputManager."""

    def test_array_inputs(self, array):
        client = MagicMock()
        client.get_json.return_value = [
            {"name": "APP_PORT", "value": "text:8080"},
            {"name": "DB_URL", "value": "text:postgres://db:5432/app"},
            {"name": "SECRET", "value": "cred:DB_PASSWORD"},
        ]

        inputs = InputManager(client).array_inputs(array)

        client.get_json.assert_called_once_with("/api/clouds/1/instances/NEXT200/inputs")
        assert inputs[0] == Input(name="APP_PORT", type="text", value="8080")
        assert inputs[1].value == "postgres://db:5432/app"
        assert inputs[2].type == "cred"

    def test_update_array_input(self, array):
        client = MagicMock()

        InputManager(client).update_array_input(
            array, Input(name="APP_PORT", type="text", value="9090")
        )

        client.send.assert_called_once_with(
            "PUT",
            "/api/clouds/1/instances/NEXT200/inputs/multi_update",
            {"inputs": {"APP_PORT": "9090"}},
        )

    def test_array_without_next_instance(self):
        client = MagicMock()
        array = ServerArray(name="bare", links=Links())

        with pytest.raises(ValidationError):
            InputManager(client).array_inputs(array)
        client.get_json.assert_not_called()

    def test_instance_inputs_not_supported(self, sample_instance_data):
        instance = ServerInstance.from_api(sample_instance_data)

        with pytest.raises(NotSupportedError):
            InputManager(MagicMock()).instance_inputs(instance)
