"""Tests for batch execution."""

import asyncio
from typing import Any, Dict, Optional

import pytest

from rpc_connector.config import RESTAURANT_DESTINATION_EXAMPLE
from rpc_connector.core import BatchDeadlineExceeded, BatchExecutionCoordinator, InvalidBatchError
from rpc_connector.core.coordinator import SKIPPED_EXISTING, SKIPPED_MISSING, UNCONFIRMED_WRITE
from rpc_connector.destinations import AmbiguousWriteError, InMemoryDestination
from rpc_connector.schema import ConfigurationError, RecordResult, SpeedLimits

from conftest import restaurant


class ScriptedDestination(InMemoryDestination):
    """In-memory destination with scripted per-record write behaviour."""

    def __init__(self, definition=RESTAURANT_DESTINATION_EXAMPLE):
        super().__init__(definition)
        self.failures: Dict[Any, Exception] = {}
        self.write_results: Dict[Any, Any] = {}
        self.lookup_error: Optional[Exception] = None
        self.write_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.writes = []

    async def find_existing(self, obj, identifier_field, identifiers):
        if self.lookup_error:
            raise self.lookup_error
        return await super().find_existing(obj, identifier_field, identifiers)

    async def write_record(self, obj, operation, identifier_field, identifier, payload):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.write_delay:
                await asyncio.sleep(self.write_delay)
            self.writes.append(identifier)

            if identifier in self.failures:
                raise self.failures[identifier]
            if identifier in self.write_results:
                return self.write_results[identifier]

            return await super().write_record(obj, operation, identifier_field, identifier, payload)
        finally:
            self.in_flight -= 1


class TestBatchExecutionCoordinator:
    """Test per-record outcomes of sync_batch."""

    @pytest.fixture(autouse=True)
    def setup(self, sync_settings, fast_limits, make_plan):
        self.settings = sync_settings
        self.limits = fast_limits
        self.make_plan = make_plan
        self.destination = ScriptedDestination()
        self.coordinator = BatchExecutionCoordinator(self.destination, self.settings)

    def seed(self, *names):
        for name in names:
            self.destination.records["restaurant"][name] = {"name": name}

    async def sync(self, operation, records):
        return await self.coordinator.sync_batch(self.make_plan(operation), records, self.limits)

    @pytest.mark.asyncio
    async def test_failure_isolated_to_its_record(self):
        self.destination.failures["Pizza House"] = Exception("API Error, please retry")

        results = await self.sync("upsert", [restaurant("Ashley's"), restaurant("Pizza House")])

        assert [r.to_wire() for r in results] == [
            {"identifier": "Ashley's", "success": True},
            {"identifier": "Pizza House", "success": False, "error_message": "API Error, please retry"},
        ]
        assert self.destination.get_record("restaurant", "Ashley's") == restaurant("Ashley's")
        assert self.destination.get_record("restaurant", "Pizza House") is None

    @pytest.mark.asyncio
    async def test_one_result_per_record(self):
        records = [restaurant(f"Place {i}") for i in range(25)]
        self.destination.failures["Place 3"] = RuntimeError("nope")
        self.destination.write_results["Place 7"] = False

        results = await self.sync("upsert", records)

        assert len(results) == len(records)
        assert [r.identifier for r in results] == [r["name"] for r in records]
        assert sum(1 for r in results if not r.success) == 2

    @pytest.mark.asyncio
    async def test_upsert_attempts_every_record(self):
        self.seed("Ashley's")

        results = await self.sync("upsert", [restaurant("Ashley's", "Diner"), restaurant("Pizza House")])

        assert all(r.success for r in results)
        assert sorted(self.destination.writes) == ["Ashley's", "Pizza House"]
        assert self.destination.get_record("restaurant", "Ashley's")["cuisine"] == "Diner"

    @pytest.mark.asyncio
    async def test_insert_skips_existing(self):
        self.seed("Ashley's")

        results = await self.sync("insert", [restaurant("Ashley's"), restaurant("Pizza House")])

        assert results[0].success is False
        assert results[0].error_message == SKIPPED_EXISTING
        assert results[1].success is True
        assert self.destination.writes == ["Pizza House"]

    @pytest.mark.asyncio
    async def test_update_skips_missing(self):
        self.seed("Ashley's")

        results = await self.sync("update", [{"name": "Ashley's", "seats": 30}, {"name": "Pizza House", "seats": 12}])

        assert results[0].success is True
        assert results[1].success is False
        assert results[1].error_message == SKIPPED_MISSING
        assert self.destination.writes == ["Ashley's"]
        assert self.destination.get_record("restaurant", "Ashley's") == {"name": "Ashley's", "seats": 30}

    @pytest.mark.asyncio
    async def test_lookup_failure_fails_every_candidate(self):
        self.destination.lookup_error = ConnectionError("lookup down")

        results = await self.sync("insert", [restaurant("Ashley's"), restaurant("Pizza House")])

        assert all(not r.success for r in results)
        assert all("lookup down" in r.error_message for r in results)
        assert self.destination.writes == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [False, None, "yes"])
    async def test_unconfirmed_write_is_failure(self, outcome):
        self.destination.write_results["Ashley's"] = outcome

        results = await self.sync("upsert", [restaurant("Ashley's")])

        assert results[0].success is False
        assert results[0].error_message == UNCONFIRMED_WRITE

    @pytest.mark.asyncio
    async def test_ambiguous_write_is_failure(self):
        self.destination.failures["Ashley's"] = AmbiguousWriteError("Write outcome unknown: reset")

        results = await self.sync("upsert", [restaurant("Ashley's")])

        assert results[0] == RecordResult("Ashley's", False, "Write outcome unknown: reset")

    @pytest.mark.asyncio
    async def test_invalid_record_fails_alone(self):
        records = [restaurant("Ashley's", seats="many"), restaurant("Pizza House"), {"name": "X", "owner": "Y"}]

        results = await self.sync("upsert", records)

        assert results[0].success is False
        assert "'seats'" in results[0].error_message
        assert results[1].success is True
        assert results[2].success is False
        assert "'owner'" in results[2].error_message
        assert self.destination.writes == ["Pizza House"]

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        assert await self.sync("upsert", []) == []

    @pytest.mark.asyncio
    async def test_duplicate_identifier_rejected(self):
        with pytest.raises(InvalidBatchError, match="more than once"):
            await self.sync("upsert", [restaurant("Ashley's"), restaurant("Ashley's")])

        assert self.destination.writes == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record", [{"cuisine": "Thai"}, {"name": ""}, {"name": 12}, "Ashley's"])
    async def test_unusable_identifier_rejected(self, record):
        with pytest.raises(InvalidBatchError):
            await self.sync("upsert", [restaurant("Pizza House"), record])

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(self):
        self.limits = SpeedLimits(
            maximum_batch_size=1,
            maximum_parallel_batches=1,
            maximum_records_per_second=1000.0
        )

        with pytest.raises(ConfigurationError):
            await self.sync("upsert", [restaurant("Ashley's"), restaurant("Pizza House")])

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        self.destination.write_delay = 0.01
        records = [restaurant(f"Place {i}") for i in range(20)]

        results = await self.sync("upsert", records)

        assert all(r.success for r in results)
        assert 1 < self.destination.max_in_flight <= self.settings.record_concurrency

    @pytest.mark.asyncio
    async def test_batch_deadline(self):
        self.settings.batch_timeout_seconds = 0.05
        self.destination.write_delay = 1.0

        with pytest.raises(BatchDeadlineExceeded):
            await self.sync("upsert", [restaurant("Ashley's")])
