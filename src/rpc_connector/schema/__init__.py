"""Destination schema model and validation rules."""

from .models import (
    Operation,
    FieldType,
    IDENTIFIER_TYPES,
    DestinationObject,
    DestinationField,
    SchemaEntry,
    SyncPlan,
    SpeedLimits,
    SpeedOverride,
    RecordResult,
    ConnectionStatus
)

from .validation import (
    ConfigurationError,
    validate_objects,
    validate_fields,
    validate_operations,
    validate_plan,
    is_valid_identifier_value,
    check_value,
    check_record,
    to_destination_payload
)

__all__ = [
    # Value types
    "Operation",
    "FieldType",
    "IDENTIFIER_TYPES",
    "DestinationObject",
    "DestinationField",
    "SchemaEntry",
    "SyncPlan",
    "SpeedLimits",
    "SpeedOverride",
    "RecordResult",
    "ConnectionStatus",

    # Validation
    "ConfigurationError",
    "validate_objects",
    "validate_fields",
    "validate_operations",
    "validate_plan",
    "is_valid_identifier_value",
    "check_value",
    "check_record",
    "to_destination_payload"
]
