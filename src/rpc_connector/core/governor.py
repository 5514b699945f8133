"""Sync speed governor: batch size, parallelism and throughput limits per sync."""

from typing import Optional, Sized

from pydantic import ValidationError

from ..config.settings import SyncSettings
from ..schema.models import SpeedLimits, SpeedOverride, SyncPlan
from ..schema.validation import ConfigurationError
from ..utils.logging import get_logger


class SyncSpeedGovernor:
    """Computes and enforces the speed limits of a sync.

    Limits have three independent axes: records per ``sync_batch`` call,
    parallel in-flight calls, and an aggregate records/second ceiling across
    all parallel calls. The result depends only on the plan, the configured
    defaults and the destination's override, so repeated calls for the same
    sync agree.

    Limits are scoped to one sync plan. Concurrent syncs against the same
    destination are not coordinated with each other.
    """

    def __init__(self, settings: SyncSettings):
        """Initialize governor.

        Args:
            settings: Default limits and hard ceilings
        """
        self.settings = settings
        self.logger = get_logger(self.__class__.__name__)

    def compute_speed(
        self,
        plan: SyncPlan,
        override: Optional[SpeedOverride] = None
    ) -> SpeedLimits:
        """Compute the speed limits for a sync plan.

        Args:
            plan: Sync plan the limits apply to
            override: Destination-specific limits; unset axes use defaults

        Returns:
            Validated SpeedLimits

        Raises:
            ConfigurationError: If the resulting limits are invalid
        """
        values = {
            "maximum_batch_size": self.settings.default_batch_size,
            "maximum_parallel_batches": self.settings.default_parallel_batches,
            "maximum_records_per_second": self.settings.default_records_per_second,
        }
        if override is not None:
            values.update(override.model_dump(exclude_none=True))

        limits = self.validate_limits(values)

        self.logger.debug(
            "Computed sync speed",
            object=plan.destination_object.api_name,
            operation=plan.operation.value,
            overridden=override is not None and not override.is_empty(),
            **limits.to_wire()
        )

        return limits

    def validate_limits(self, values) -> SpeedLimits:
        """Validate a limits triad, whether computed or supplied by a destination.

        Raises:
            ConfigurationError: If any axis is missing, non-positive or above the ceiling,
                or a full batch cannot finish within the batch time budget
        """
        if isinstance(values, SpeedLimits):
            values = values.model_dump()

        try:
            limits = SpeedLimits(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid sync speed: {e}")
        except TypeError as e:
            raise ConfigurationError(f"Invalid sync speed: {e}")

        if limits.maximum_batch_size > self.settings.max_batch_size:
            raise ConfigurationError(
                f"maximum_batch_size {limits.maximum_batch_size} exceeds the "
                f"connector ceiling of {self.settings.max_batch_size}"
            )

        # A full batch at the per-call rate must fit the batch time budget
        full_batch_seconds = limits.maximum_batch_size / limits.records_per_second_per_batch
        if full_batch_seconds > self.settings.batch_timeout_seconds:
            raise ConfigurationError(
                f"A full batch of {limits.maximum_batch_size} records at "
                f"{limits.records_per_second_per_batch:g} records/second per batch needs "
                f"{full_batch_seconds:g}s, more than the {self.settings.batch_timeout_seconds:g}s "
                f"batch time budget"
            )

        return limits

    def check_batch(self, limits: SpeedLimits, records: Sized) -> None:
        """Reject a batch larger than the negotiated batch size.

        Raises:
            ConfigurationError: If the batch is oversized
        """
        if len(records) > limits.maximum_batch_size:
            raise ConfigurationError(
                f"Batch of {len(records)} records exceeds maximum_batch_size "
                f"of {limits.maximum_batch_size}"
            )
