"""Batch execution: check-then-act delivery of one sync_batch call's records."""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from .governor import SyncSpeedGovernor
from .reconciler import ReconciliationReporter
from ..config.settings import SyncSettings
from ..destinations.base import BaseDestination
from ..performance.async_optimizer import SyncThrottle
from ..schema.models import Operation, RecordResult, SpeedLimits, SyncPlan
from ..schema.validation import check_record, is_valid_identifier_value, to_destination_payload
from ..utils.logging import get_logger, log_async_execution_time


SKIPPED_EXISTING = "Record already exists; insert skipped"
SKIPPED_MISSING = "Record does not exist; update skipped"
UNCONFIRMED_WRITE = "Destination did not confirm the write"


class SyncEngineError(Exception):
    """Base exception for batch execution errors."""
    pass


class InvalidBatchError(SyncEngineError):
    """Raised when records cannot be reported by identifier."""
    pass


class BatchDeadlineExceeded(SyncEngineError):
    """Raised when a batch cannot finish within its time budget."""
    pass


def describe_error(error: BaseException) -> str:
    """Human readable message for a record-level failure."""
    if isinstance(error, asyncio.TimeoutError):
        return str(error) or "Timed out waiting for the destination"
    return str(error) or error.__class__.__name__


class BatchExecutionCoordinator:
    """Delivers one batch of records to the destination.

    Every record ends with exactly one outcome. A record is only reported as
    successful when the destination confirmed the write; anything uncertain
    is reported as a failure so the caller can safely retry it.
    """

    def __init__(
        self,
        destination: BaseDestination,
        settings: SyncSettings,
        governor: Optional[SyncSpeedGovernor] = None,
        reporter: Optional[ReconciliationReporter] = None
    ):
        """Initialize coordinator.

        Args:
            destination: Destination access capability
            settings: Batch timeout and per-call concurrency
            governor: Speed governor used to check batch size
            reporter: Reconciliation reporter for the final results
        """
        self.destination = destination
        self.settings = settings
        self.governor = governor or SyncSpeedGovernor(settings)
        self.reporter = reporter or ReconciliationReporter()
        self.logger = get_logger(self.__class__.__name__)

    @log_async_execution_time
    async def sync_batch(
        self,
        plan: SyncPlan,
        records: Sequence[Mapping[str, Any]],
        limits: SpeedLimits
    ) -> List[RecordResult]:
        """Deliver a batch of records.

        Args:
            plan: Sync plan for this batch
            records: Records keyed by the plan's mapping keys
            limits: Speed limits computed for the plan

        Returns:
            One RecordResult per input record

        Raises:
            ConfigurationError: If the batch exceeds maximum_batch_size
            InvalidBatchError: If a record has no usable or a duplicated identifier
            BatchDeadlineExceeded: If the batch did not finish within budget
        """
        self.governor.check_batch(limits, records)
        self._check_identifiers(plan, records)

        start_time = time.monotonic()

        try:
            attempted = await asyncio.wait_for(
                self._execute(plan, records, limits),
                timeout=self.settings.batch_timeout_seconds
            )
        except asyncio.TimeoutError:
            self.logger.error(
                "Batch exceeded time budget",
                object=plan.destination_object.api_name,
                records=len(records),
                budget_seconds=self.settings.batch_timeout_seconds
            )
            raise BatchDeadlineExceeded(
                f"Batch of {len(records)} records did not complete within "
                f"{self.settings.batch_timeout_seconds}s"
            )

        results = self.reporter.reconcile(records, attempted, plan.identifier_key)

        succeeded = sum(1 for result in results if result.success)
        skipped = sum(
            1 for result in results
            if result.error_message in (SKIPPED_EXISTING, SKIPPED_MISSING)
        )
        self.logger.info(
            "Batch completed",
            object=plan.destination_object.api_name,
            operation=plan.operation.value,
            records=len(results),
            succeeded=succeeded,
            skipped=skipped,
            failed=len(results) - succeeded - skipped,
            duration=f"{time.monotonic() - start_time:.2f}s"
        )

        return results

    def _check_identifiers(self, plan: SyncPlan, records: Sequence[Mapping[str, Any]]) -> None:
        key = plan.identifier_key
        field = plan.identifier_field
        seen: Set[Any] = set()

        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise InvalidBatchError(f"Record at position {position} is not an object")

            identifier = record.get(key)
            if not is_valid_identifier_value(field, identifier):
                raise InvalidBatchError(
                    f"Record at position {position} has no valid value for identifier '{key}'"
                )
            if identifier in seen:
                raise InvalidBatchError(f"Identifier '{identifier}' appears more than once in the batch")
            seen.add(identifier)

    async def _execute(
        self,
        plan: SyncPlan,
        records: Sequence[Mapping[str, Any]],
        limits: SpeedLimits
    ) -> List[RecordResult]:
        key = plan.identifier_key
        attempted: List[RecordResult] = []
        candidates: List[Mapping[str, Any]] = []

        for record in records:
            error = check_record(plan, record)
            if error:
                attempted.append(RecordResult(record[key], False, error))
            else:
                candidates.append(record)

        if not candidates:
            return attempted

        to_write = candidates
        if plan.operation in (Operation.INSERT, Operation.UPDATE):
            existing, lookup_error = await self._find_existing(
                plan, [record[key] for record in candidates]
            )
            if lookup_error:
                attempted.extend(
                    RecordResult(record[key], False, lookup_error)
                    for record in candidates
                )
                return attempted

            to_write = []
            for record in candidates:
                exists = record[key] in existing
                if plan.operation == Operation.INSERT and exists:
                    attempted.append(RecordResult(record[key], False, SKIPPED_EXISTING))
                elif plan.operation == Operation.UPDATE and not exists:
                    attempted.append(RecordResult(record[key], False, SKIPPED_MISSING))
                else:
                    to_write.append(record)

        throttle = SyncThrottle(
            max_concurrent=self.settings.record_concurrency,
            records_per_second=limits.records_per_second_per_batch
        )

        writes = await asyncio.gather(
            *(self._write_one(plan, record, throttle) for record in to_write)
        )
        attempted.extend(writes)

        return attempted

    async def _find_existing(
        self,
        plan: SyncPlan,
        identifiers: List[Any]
    ) -> Tuple[Set[Any], Optional[str]]:
        """Look up which identifiers exist, with an error message if the lookup failed."""
        try:
            found = await self.destination.find_existing(
                plan.destination_object, plan.identifier_field, identifiers
            )
            return set(found), None
        except Exception as e:
            self.logger.warning(
                "Existence lookup failed",
                object=plan.destination_object.api_name,
                records=len(identifiers),
                error=describe_error(e)
            )
            return set(), f"Could not determine whether record exists: {describe_error(e)}"

    async def _write_one(
        self,
        plan: SyncPlan,
        record: Mapping[str, Any],
        throttle: SyncThrottle
    ) -> RecordResult:
        identifier = record[plan.identifier_key]
        payload: Dict[str, Any] = to_destination_payload(plan, record)

        async with throttle.slot():
            try:
                confirmed = await self.destination.write_record(
                    plan.destination_object,
                    plan.operation,
                    plan.identifier_field,
                    identifier,
                    payload
                )
            except Exception as e:
                self.logger.debug(
                    "Record write failed",
                    object=plan.destination_object.api_name,
                    error=describe_error(e)
                )
                return RecordResult(identifier, False, describe_error(e))

        if confirmed is True:
            return RecordResult(identifier, True)
        return RecordResult(identifier, False, UNCONFIRMED_WRITE)
