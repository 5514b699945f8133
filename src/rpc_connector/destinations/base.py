"""Destination access interface and common functionality."""

from abc import ABC, abstractmethod
from typing import Any, Collection, Dict, List, Optional, Set

from ..config.schema import DestinationConfig, ObjectConfig
from ..schema.models import (
    DestinationField,
    DestinationObject,
    Operation,
    SpeedOverride,
    SyncPlan,
)
from ..schema.validation import ConfigurationError
from ..utils.logging import get_logger


class BaseDestination(ABC):
    """Abstract base class for destination access.

    Metadata queries are served from a destination definition unless a
    subclass fetches them dynamically. Subclasses implement the connectivity
    check, the existence lookup and the record write.
    """

    def __init__(self, definition: Optional[DestinationConfig] = None, **kwargs):
        """Initialize the destination.

        Args:
            definition: Static description of objects, fields and operations
            **kwargs: Additional configuration parameters
        """
        self.definition = definition
        self.logger = get_logger(self.__class__.__name__)

    @abstractmethod
    async def test_connection(self) -> None:
        """Check the destination is reachable and credentials are accepted.

        Raises:
            DestinationError: If the destination cannot be used
        """
        pass

    @abstractmethod
    async def find_existing(
        self,
        obj: DestinationObject,
        identifier_field: DestinationField,
        identifiers: Collection[Any]
    ) -> Set[Any]:
        """Return the subset of ``identifiers`` that already exist.

        Args:
            obj: Object being synced
            identifier_field: Field holding the join key
            identifiers: Identifier values to look up

        Returns:
            Identifier values present at the destination
        """
        pass

    @abstractmethod
    async def write_record(
        self,
        obj: DestinationObject,
        operation: Operation,
        identifier_field: DestinationField,
        identifier: Any,
        payload: Dict[str, Any]
    ) -> bool:
        """Persist one record.

        Args:
            obj: Object being synced
            operation: Write semantics for this record
            identifier_field: Field holding the join key
            identifier: Join key value
            payload: Field values keyed by destination field api name

        Returns:
            True only when the destination confirmed the write
        """
        pass

    async def list_objects(self) -> List[DestinationObject]:
        """List objects available for syncing."""
        return [obj.to_object() for obj in self._require_definition().objects]

    async def list_fields(self, obj: DestinationObject) -> List[DestinationField]:
        """List fields of an object."""
        return list(self._object_config(obj).fields)

    async def supported_operations(self, obj: DestinationObject) -> List[Operation]:
        """List write operations the destination can enforce for an object."""
        return list(self._object_config(obj).operations)

    async def get_sync_speed(self, plan: SyncPlan) -> Optional[SpeedOverride]:
        """Destination-specific speed override for a plan, if any."""
        if self.definition is None:
            return None
        return self.definition.speed_override_for(plan.destination_object.api_name)

    async def close(self) -> None:
        """Release any resources held by the destination."""
        pass

    def _require_definition(self) -> DestinationConfig:
        if self.definition is None:
            raise ConfigurationError(
                f"{self.__class__.__name__} has no destination definition"
            )
        return self.definition

    def _object_config(self, obj: DestinationObject) -> ObjectConfig:
        obj_config = self._require_definition().get_object(obj.api_name)
        if obj_config is None:
            raise UnknownObjectError(f"Unknown object: {obj.api_name}")
        return obj_config


class DestinationError(Exception):
    """Base class for destination access failures."""
    pass


class UnknownObjectError(DestinationError):
    """Raised when a request names an object the destination does not expose."""
    pass


class RateLimitError(DestinationError):
    """Raised when destination rate limit is exceeded."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class AuthenticationError(DestinationError):
    """Raised when destination authentication fails."""
    pass


class APIConnectionError(DestinationError):
    """Raised when the destination cannot be reached."""
    pass


class AmbiguousWriteError(DestinationError):
    """Raised when a write may or may not have been applied."""
    pass
