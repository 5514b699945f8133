"""Tests for the sync speed governor."""

import pytest

from rpc_connector.config import SyncSettings
from rpc_connector.core import SyncSpeedGovernor
from rpc_connector.schema import ConfigurationError, SpeedLimits, SpeedOverride


class TestSyncSpeedGovernor:
    """Test speed limit computation and enforcement."""

    @pytest.fixture(autouse=True)
    def setup(self, sync_settings, make_plan):
        self.governor = SyncSpeedGovernor(sync_settings)
        self.plan = make_plan()

    def test_defaults(self):
        limits = self.governor.compute_speed(self.plan)

        assert limits == SpeedLimits(
            maximum_batch_size=100,
            maximum_parallel_batches=4,
            maximum_records_per_second=100.0
        )

    def test_repeatable(self):
        override = SpeedOverride(maximum_parallel_batches=2)

        first = self.governor.compute_speed(self.plan, override)
        second = self.governor.compute_speed(self.plan, override)

        assert first == second

    def test_partial_override(self):
        limits = self.governor.compute_speed(self.plan, SpeedOverride(maximum_batch_size=50))

        assert limits.maximum_batch_size == 50
        assert limits.maximum_parallel_batches == 4
        assert limits.maximum_records_per_second == 100.0

    def test_empty_override(self):
        assert self.governor.compute_speed(self.plan, SpeedOverride()) == self.governor.compute_speed(self.plan)

    def test_override_above_ceiling(self):
        with pytest.raises(ConfigurationError, match="exceeds the connector ceiling"):
            self.governor.compute_speed(self.plan, SpeedOverride(maximum_batch_size=5000))

    @pytest.mark.parametrize("values", [
        {"maximum_batch_size": 0, "maximum_parallel_batches": 1, "maximum_records_per_second": 1.0},
        {"maximum_batch_size": 10, "maximum_parallel_batches": 1},
        {"maximum_batch_size": 10, "maximum_parallel_batches": 1, "maximum_records_per_second": "fast"},
    ])
    def test_invalid_limits(self, values):
        with pytest.raises(ConfigurationError, match="Invalid sync speed"):
            self.governor.validate_limits(values)

    def test_check_batch(self):
        limits = SpeedLimits(
            maximum_batch_size=2,
            maximum_parallel_batches=1,
            maximum_records_per_second=10.0
        )

        self.governor.check_batch(limits, [{}, {}])

        with pytest.raises(ConfigurationError, match="exceeds maximum_batch_size"):
            self.governor.check_batch(limits, [{}, {}, {}])

    def test_full_batch_must_fit_time_budget(self):
        governor = SyncSpeedGovernor(SyncSettings(
            default_batch_size=40,
            default_parallel_batches=2,
            default_records_per_second=20.0,
            batch_timeout_seconds=1.0
        ))

        with pytest.raises(ConfigurationError, match="batch time budget"):
            governor.compute_speed(self.plan)

    def test_large_override_exceeding_time_budget(self):
        settings = SyncSettings(
            default_parallel_batches=4,
            default_records_per_second=100.0,
            max_batch_size=10000,
            batch_timeout_seconds=240.0
        )
        governor = SyncSpeedGovernor(settings)

        with pytest.raises(ConfigurationError, match="batch time budget"):
            governor.compute_speed(self.plan, SpeedOverride(maximum_batch_size=10000))

        limits = governor.compute_speed(self.plan, SpeedOverride(maximum_batch_size=6000))
        assert limits.maximum_batch_size / limits.records_per_second_per_batch <= 240.0
