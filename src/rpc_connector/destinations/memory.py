"""In-memory destination backed by a destination definition."""

import asyncio
from typing import Any, Collection, Dict, Optional, Set

from .base import BaseDestination, UnknownObjectError
from ..config.schema import DestinationConfig
from ..schema.models import DestinationField, DestinationObject, Operation


class InMemoryDestination(BaseDestination):
    """Destination that stores records in process memory.

    Useful for local development against an orchestrator and as the
    reference implementation of the write semantics.
    """

    def __init__(self, definition: DestinationConfig, **kwargs):
        super().__init__(definition, **kwargs)

        # object api name -> identifier value -> stored field values
        self.records: Dict[str, Dict[Any, Dict[str, Any]]] = {
            obj.api_name: {} for obj in definition.objects
        }
        self._lock = asyncio.Lock()

        self.logger.info(
            "In-memory destination initialized",
            destination=definition.name,
            objects=list(self.records)
        )

    async def test_connection(self) -> None:
        return None

    async def find_existing(
        self,
        obj: DestinationObject,
        identifier_field: DestinationField,
        identifiers: Collection[Any]
    ) -> Set[Any]:
        table = self._table(obj)
        return {identifier for identifier in identifiers if identifier in table}

    async def write_record(
        self,
        obj: DestinationObject,
        operation: Operation,
        identifier_field: DestinationField,
        identifier: Any,
        payload: Dict[str, Any]
    ) -> bool:
        table = self._table(obj)

        async with self._lock:
            existing = table.get(identifier)

            if operation == Operation.INSERT and existing is not None:
                raise ValueError(f"Record '{identifier}' already exists")
            if operation == Operation.UPDATE and existing is None:
                raise ValueError(f"Record '{identifier}' does not exist")

            if existing is None:
                table[identifier] = dict(payload)
            else:
                existing.update(payload)

        return True

    def get_record(self, object_api_name: str, identifier: Any) -> Optional[Dict[str, Any]]:
        """Read back a stored record."""
        return self.records.get(object_api_name, {}).get(identifier)

    def _table(self, obj: DestinationObject) -> Dict[Any, Dict[str, Any]]:
        if obj.api_name not in self.records:
            raise UnknownObjectError(f"Unknown object: {obj.api_name}")
        return self.records[obj.api_name]
