"""Shared fixtures for connector tests."""

from typing import Any, Dict, Optional

import pytest

from rpc_connector.config.schema import RESTAURANT_DESTINATION_EXAMPLE, DestinationConfig
from rpc_connector.config.settings import SyncSettings
from rpc_connector.destinations.memory import InMemoryDestination
from rpc_connector.schema.models import SpeedLimits, SyncPlan


def plan_data(
    operation: str = "upsert",
    object_api_name: str = "restaurant",
    definition: DestinationConfig = RESTAURANT_DESTINATION_EXAMPLE
) -> Dict[str, Any]:
    """Wire-format sync plan mapping every field of an object under its own name."""
    obj_config = definition.get_object(object_api_name)
    return {
        "object": obj_config.to_object().to_wire(),
        "operation": operation,
        "schema": {
            field.api_name: {
                "active_identifier": field.identifier,
                "field": field.to_wire(),
            }
            for field in obj_config.fields
        },
    }


@pytest.fixture
def make_plan():
    """Factory for sync plans over the example destination."""
    def _make_plan(operation: str = "upsert", object_api_name: str = "restaurant") -> SyncPlan:
        return SyncPlan.model_validate(plan_data(operation, object_api_name))
    return _make_plan


@pytest.fixture
def sync_settings() -> SyncSettings:
    """Sync settings independent of the environment."""
    return SyncSettings(
        default_batch_size=100,
        default_parallel_batches=4,
        default_records_per_second=100.0,
        max_batch_size=1000,
        batch_timeout_seconds=5.0,
        record_concurrency=5,
    )


@pytest.fixture
def fast_limits() -> SpeedLimits:
    """Limits loose enough that throttling never delays a test."""
    return SpeedLimits(
        maximum_batch_size=100,
        maximum_parallel_batches=1,
        maximum_records_per_second=1000.0,
    )


@pytest.fixture
def memory_destination() -> InMemoryDestination:
    """In-memory destination serving the restaurant example definition."""
    return InMemoryDestination(RESTAURANT_DESTINATION_EXAMPLE)


def restaurant(name: str, cuisine: Optional[str] = "Italian", **extra) -> Dict[str, Any]:
    """Build a restaurant record."""
    record = {"name": name, "cuisine": cuisine}
    record.update(extra)
    return record
