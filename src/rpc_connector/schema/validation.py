"""Validation rules for destination metadata, sync plans and record values."""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    DestinationField,
    DestinationObject,
    FieldType,
    Operation,
    SyncPlan,
)


class ConfigurationError(Exception):
    """Raised when destination metadata or a sync plan is invalid.

    Configuration problems are reported to the caller and never corrected
    silently.
    """
    pass


def validate_objects(objects: Iterable[DestinationObject]) -> List[DestinationObject]:
    """Check an object listing is usable: non-empty and without duplicate names."""
    objects = list(objects)
    if not objects:
        raise ConfigurationError("Destination exposes no objects")

    seen = set()
    for obj in objects:
        if obj.api_name in seen:
            raise ConfigurationError(f"Duplicate object api name: {obj.api_name}")
        seen.add(obj.api_name)

    return objects


def validate_fields(obj: DestinationObject, fields: Iterable[DestinationField]) -> List[DestinationField]:
    """Check a field listing is sync-eligible.

    Each field has already passed its own shape rules; here we require unique
    names and at least one identifier-eligible field.
    """
    fields = list(fields)

    seen = set()
    for field in fields:
        if field.api_name in seen:
            raise ConfigurationError(
                f"Duplicate field api name '{field.api_name}' on object '{obj.api_name}'"
            )
        seen.add(field.api_name)

    if not any(field.identifier for field in fields):
        raise ConfigurationError(
            f"Object '{obj.api_name}' has no identifier field and cannot be synced"
        )

    return fields


def validate_operations(obj: DestinationObject, operations: Iterable[Any]) -> List[Operation]:
    """Normalize and check the operations advertised for an object."""
    result: List[Operation] = []
    for op in operations:
        try:
            operation = Operation(op)
        except ValueError:
            raise ConfigurationError(f"Unknown operation '{op}' on object '{obj.api_name}'")
        if operation not in result:
            result.append(operation)

    if not result:
        raise ConfigurationError(f"Object '{obj.api_name}' supports no operations")

    return result


def _describe_type(field: DestinationField) -> str:
    return f"array of {field.type.value}" if field.array else field.type.value


def validate_plan(
    plan: SyncPlan,
    fields: Iterable[DestinationField],
    operations: Iterable[Operation]
) -> None:
    """Check a sync plan against the destination's current metadata."""
    obj = plan.destination_object
    if plan.operation not in set(operations):
        raise ConfigurationError(
            f"Operation '{plan.operation.value}' is not supported for object '{obj.api_name}'"
        )

    known = {field.api_name: field for field in fields}
    for key, entry in plan.mapping.items():
        field = known.get(entry.field.api_name)
        if field is None:
            raise ConfigurationError(
                f"Mapped field '{entry.field.api_name}' does not exist on object '{obj.api_name}'"
            )
        if entry.field.type != field.type or entry.field.array != field.array:
            raise ConfigurationError(
                f"Mapped field '{field.api_name}' on object '{obj.api_name}' is declared as "
                f"{_describe_type(entry.field)} but the destination has {_describe_type(field)}"
            )
        if entry.active_identifier and not field.identifier:
            raise ConfigurationError(
                f"Field '{field.api_name}' on object '{obj.api_name}' cannot be used as identifier"
            )


def is_valid_identifier_value(field: DestinationField, value: Any) -> bool:
    """Identifier values must be present and match the identifier's scalar type."""
    if value is None or isinstance(value, bool):
        return False
    if field.type == FieldType.INTEGER:
        return isinstance(value, int)
    if field.type == FieldType.STRING:
        return isinstance(value, str) and value != ""
    return False


def _check_scalar(field_type: FieldType, value: Any) -> bool:
    if field_type == FieldType.BOOLEAN:
        return isinstance(value, bool)

    if field_type == FieldType.INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)

    if field_type == FieldType.FLOAT:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    if field_type == FieldType.DECIMAL:
        if isinstance(value, bool):
            return False
        if isinstance(value, (int, float)):
            return True
        if isinstance(value, str):
            try:
                Decimal(value)
            except InvalidOperation:
                return False
            return True
        return False

    if field_type == FieldType.DATE:
        if not isinstance(value, str):
            return False
        try:
            date.fromisoformat(value)
        except ValueError:
            return False
        return True

    if field_type == FieldType.DATE_TIME:
        if not isinstance(value, str):
            return False
        try:
            # fromisoformat before 3.11 does not accept a trailing "Z"
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return False
        return True

    return isinstance(value, str)


def check_value(field: DestinationField, value: Any, enforce_required: bool = True) -> Optional[str]:
    """Return an error message if ``value`` does not fit ``field``, else None."""
    if value is None:
        if field.required and enforce_required:
            return f"Field '{field.api_name}' is required"
        return None

    if field.array:
        if not isinstance(value, list):
            return f"Field '{field.api_name}' expects an array of {field.type.value}"
        for item in value:
            if item is not None and not _check_scalar(field.type, item):
                return f"Field '{field.api_name}' expects an array of {field.type.value}"
        return None

    if not _check_scalar(field.type, value):
        return f"Field '{field.api_name}' expects a {field.type.value} value"

    return None


def check_record(plan: SyncPlan, record: Mapping[str, Any]) -> Optional[str]:
    """Validate one record's keys and values against the plan's mapping."""
    for key in record:
        if key not in plan.mapping:
            return f"Field '{key}' is not mapped in the sync plan"

    # Updates may leave required fields untouched
    enforce_required = plan.operation != Operation.UPDATE

    for key, entry in plan.mapping.items():
        error = check_value(entry.field, record.get(key), enforce_required)
        if error:
            return error

    return None


def to_destination_payload(plan: SyncPlan, record: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate record keys to destination field api names."""
    return {
        plan.mapping[key].field.api_name: value
        for key, value in record.items()
        if key in plan.mapping
    }
