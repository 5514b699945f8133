"""Connector service: the six JSON-RPC methods over a destination."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .coordinator import BatchExecutionCoordinator, describe_error
from .governor import SyncSpeedGovernor
from .reconciler import ReconciliationReporter
from ..config.settings import SyncSettings
from ..destinations.base import BaseDestination
from ..schema.models import (
    ConnectionStatus,
    DestinationField,
    DestinationObject,
    Operation,
    SpeedLimits,
    SpeedOverride,
    SyncPlan,
)
from ..schema.validation import (
    ConfigurationError,
    validate_fields,
    validate_objects,
    validate_operations,
    validate_plan,
)
from ..utils.logging import get_logger, log_async_execution_time


class ObjectParams(BaseModel):
    """Params of list_fields and supported_operations."""

    model_config = ConfigDict(populate_by_name=True)

    destination_object: DestinationObject = Field(..., alias="object")


class SyncPlanParams(BaseModel):
    """Params of get_sync_speed."""

    sync_plan: SyncPlan


class SyncBatchParams(BaseModel):
    """Params of sync_batch."""

    sync_plan: SyncPlan
    records: List[Dict[str, Any]]


class DestinationConnector:
    """Answers orchestrator calls for one destination.

    Holds only its collaborators. Every call reads destination metadata
    afresh and keeps nothing once it returns, so calls may run concurrently.
    """

    def __init__(self, destination: BaseDestination, settings: SyncSettings):
        """Initialize the connector.

        Args:
            destination: Destination access capability
            settings: Sync speed defaults and batch execution limits
        """
        self.destination = destination
        self.settings = settings
        self.governor = SyncSpeedGovernor(settings)
        self.coordinator = BatchExecutionCoordinator(
            destination,
            settings,
            governor=self.governor,
            reporter=ReconciliationReporter()
        )
        self.logger = get_logger(self.__class__.__name__)

    @log_async_execution_time
    async def test_connection(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Check connectivity; failures are reported in the result."""
        try:
            await self.destination.test_connection()
            status = ConnectionStatus(success=True)
        except Exception as e:
            self.logger.warning("Connection test failed", error=describe_error(e))
            status = ConnectionStatus(success=False, error_message=describe_error(e))

        return status.to_wire()

    @log_async_execution_time
    async def list_objects(self, params: Dict[str, Any]) -> Dict[str, Any]:
        objects = await self._objects()
        return {"objects": [obj.to_wire() for obj in objects]}

    @log_async_execution_time
    async def list_fields(self, params: Dict[str, Any]) -> Dict[str, Any]:
        obj = ObjectParams.model_validate(params).destination_object
        fields = await self._fields(obj)
        return {"fields": [field.to_wire() for field in fields]}

    @log_async_execution_time
    async def supported_operations(self, params: Dict[str, Any]) -> Dict[str, Any]:
        obj = ObjectParams.model_validate(params).destination_object
        operations = await self._operations(obj)
        return {"operations": [operation.value for operation in operations]}

    @log_async_execution_time
    async def get_sync_speed(self, params: Dict[str, Any]) -> Dict[str, Any]:
        plan = SyncPlanParams.model_validate(params).sync_plan
        limits = await self._plan_limits(plan)
        return limits.to_wire()

    @log_async_execution_time
    async def sync_batch(self, params: Dict[str, Any]) -> Dict[str, Any]:
        batch = SyncBatchParams.model_validate(params)
        plan = batch.sync_plan

        limits = await self._plan_limits(plan)
        results = await self.coordinator.sync_batch(plan, batch.records, limits)

        return {"record_results": [result.to_wire() for result in results]}

    async def _plan_limits(self, plan: SyncPlan) -> SpeedLimits:
        """Validate a plan against live metadata and compute its limits."""
        fields = await self._fields(plan.destination_object)
        operations = await self._operations(plan.destination_object)
        validate_plan(plan, fields, operations)

        override = self._normalize_override(await self.destination.get_sync_speed(plan))
        return self.governor.compute_speed(plan, override)

    async def _objects(self) -> List[DestinationObject]:
        try:
            objects = await self.destination.list_objects()
        except ValidationError as e:
            raise ConfigurationError(f"Destination returned invalid objects: {e}")
        return validate_objects(objects)

    async def _fields(self, obj: DestinationObject) -> List[DestinationField]:
        try:
            fields = await self.destination.list_fields(obj)
        except ValidationError as e:
            raise ConfigurationError(f"Destination returned invalid fields for '{obj.api_name}': {e}")
        return validate_fields(obj, fields)

    async def _operations(self, obj: DestinationObject) -> List[Operation]:
        operations = await self.destination.supported_operations(obj)
        return validate_operations(obj, operations)

    def _normalize_override(self, override: Any) -> Optional[SpeedOverride]:
        """Accept an override as SpeedOverride, SpeedLimits or a plain mapping."""
        if override is None or isinstance(override, SpeedOverride):
            return override

        if isinstance(override, SpeedLimits):
            override = override.model_dump()

        if not isinstance(override, dict):
            raise ConfigurationError(
                f"Destination returned an unusable sync speed: {type(override).__name__}"
            )

        try:
            return SpeedOverride(**override)
        except ValidationError as e:
            raise ConfigurationError(f"Destination returned an invalid sync speed: {e}")
