"""Destination schema value types exchanged with the orchestrator."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Operation(str, Enum):
    """Write semantics a destination object can support."""
    UPSERT = "upsert"
    INSERT = "insert"
    UPDATE = "update"


class FieldType(str, Enum):
    """Value types a destination field can hold."""
    BOOLEAN = "boolean"
    DECIMAL = "decimal"
    FLOAT = "float"
    INTEGER = "integer"
    DATE = "date"
    DATE_TIME = "date_time"
    STRING = "string"


IDENTIFIER_TYPES = frozenset({FieldType.STRING, FieldType.INTEGER})


def _check_api_name(value: str) -> str:
    if not value or value != value.strip():
        raise ValueError("api name must be non-empty and carry no surrounding whitespace")
    return value


class DestinationObject(BaseModel):
    """An entity type exposed by the destination (roughly a table).

    Identity is ``api_name``; ``label`` is display-only.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    api_name: str = Field(..., alias="object_api_name", description="Stable, unique object name")
    label: str = Field(default="", description="Human readable name")

    @field_validator("api_name")
    @classmethod
    def validate_api_name(cls, v):
        return _check_api_name(v)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class DestinationField(BaseModel):
    """An attribute of a destination object (roughly a column)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    api_name: str = Field(..., alias="field_api_name")
    label: str = Field(default="")
    identifier: bool = Field(default=False, description="Can act as the sync join key")
    required: bool = Field(default=False)
    createable: bool = Field(default=True)
    updateable: bool = Field(default=True)
    type: FieldType = Field(...)
    array: bool = Field(default=False)

    @field_validator("api_name")
    @classmethod
    def validate_api_name(cls, v):
        return _check_api_name(v)

    @model_validator(mode="after")
    def validate_identifier_shape(self):
        """Identifier fields must be scalar strings or integers."""
        if self.identifier:
            if self.array:
                raise ValueError(f"Identifier field '{self.api_name}' cannot be an array")
            if self.type not in IDENTIFIER_TYPES:
                raise ValueError(
                    f"Identifier field '{self.api_name}' must be of type string or integer, "
                    f"not {self.type.value}"
                )
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SchemaEntry(BaseModel):
    """One mapped field inside a sync plan."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    active_identifier: bool = False
    field: DestinationField


class SyncPlan(BaseModel):
    """Resolved mapping and operation for one sync, sent on every execution call."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    destination_object: DestinationObject = Field(..., alias="object")
    operation: Operation
    mapping: Dict[str, SchemaEntry] = Field(..., alias="schema")

    @model_validator(mode="after")
    def validate_active_identifier(self):
        if not self.mapping:
            raise ValueError("Sync plan schema must map at least one field")

        active = [key for key, entry in self.mapping.items() if entry.active_identifier]
        if len(active) != 1:
            raise ValueError(
                f"Sync plan must have exactly one active identifier, found {len(active)}"
            )

        entry = self.mapping[active[0]]
        if not entry.field.identifier:
            raise ValueError(
                f"Active identifier '{active[0]}' maps to field "
                f"'{entry.field.api_name}' which is not identifier-eligible"
            )
        return self

    @property
    def identifier_key(self) -> str:
        """Record key holding the cross-system join value."""
        return next(key for key, entry in self.mapping.items() if entry.active_identifier)

    @property
    def identifier_field(self) -> DestinationField:
        return self.mapping[self.identifier_key].field

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SpeedLimits(BaseModel):
    """Batch size, concurrency and throughput ceiling for one sync."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    maximum_batch_size: int = Field(..., gt=0)
    maximum_parallel_batches: int = Field(..., gt=0)
    maximum_records_per_second: float = Field(..., gt=0)

    @field_validator("maximum_batch_size", "maximum_parallel_batches", mode="before")
    @classmethod
    def reject_booleans(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be an integer")
        return v

    @property
    def records_per_second_per_batch(self) -> float:
        """Throughput share of one in-flight batch."""
        return self.maximum_records_per_second / self.maximum_parallel_batches

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump()



class SpeedOverride(BaseModel):
    """Partial speed limits supplied by a destination; unset axes use defaults."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    maximum_batch_size: Optional[int] = Field(default=None, gt=0)
    maximum_parallel_batches: Optional[int] = Field(default=None, gt=0)
    maximum_records_per_second: Optional[float] = Field(default=None, gt=0)

    @field_validator("maximum_batch_size", "maximum_parallel_batches", mode="before")
    @classmethod
    def reject_booleans(cls, v):
        if isinstance(v, bool):
            raise ValueError("must be an integer")
        return v

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


@dataclass(frozen=True)
class RecordResult:
    """Outcome of one record within a sync_batch call."""

    identifier: Any
    success: bool
    error_message: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        data = {"identifier": self.identifier, "success": self.success}
        if self.error_message is not None:
            data["error_message"] = self.error_message
        return data


@dataclass(frozen=True)
class ConnectionStatus:
    """Result of a connectivity check; a failure here is not a protocol error."""

    success: bool
    error_message: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.error_message is not None:
            data["error_message"] = self.error_message
        return data
