"""Destination definition schema: the objects, fields and operations a connector exposes."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..schema.models import (
    DestinationField,
    DestinationObject,
    FieldType,
    Operation,
    SpeedOverride,
)


class ObjectConfig(BaseModel):
    """Definition of a single destination object."""

    model_config = ConfigDict(populate_by_name=True)

    api_name: str = Field(..., alias="object_api_name", description="Stable object name")
    label: str = Field(default="", description="Display name", validate_default=True)
    description: Optional[str] = Field(None, description="Optional description")

    operations: List[Operation] = Field(
        default_factory=lambda: [Operation.UPSERT],
        description="Write operations the destination can enforce for this object"
    )
    fields: List[DestinationField] = Field(default_factory=list, description="Object fields")

    # Per-object speed override, layered over the destination-wide one
    sync_speed: Optional[SpeedOverride] = Field(None, description="Sync speed override")

    @field_validator("label")
    @classmethod
    def default_label(cls, v, info):
        return v or info.data.get("api_name", "")

    def to_object(self) -> DestinationObject:
        return DestinationObject(api_name=self.api_name, label=self.label)


class DestinationConfig(BaseModel):
    """Root definition for a destination served by this connector."""

    name: str = Field(default="Destination", description="Human-readable destination name")
    version: str = Field(default="1.0.0", description="Definition version")

    objects: List[ObjectConfig] = Field(default_factory=list, description="Exposed objects")

    # Destination-wide speed override
    sync_speed: Optional[SpeedOverride] = Field(None, description="Sync speed override")

    def get_object(self, api_name: str) -> Optional[ObjectConfig]:
        """Look up an object definition by api name."""
        for obj in self.objects:
            if obj.api_name == api_name:
                return obj
        return None

    def speed_override_for(self, api_name: str) -> Optional[SpeedOverride]:
        """Combine destination-wide and per-object overrides, object winning."""
        merged = {}
        if self.sync_speed:
            merged.update(self.sync_speed.model_dump(exclude_none=True))

        obj = self.get_object(api_name)
        if obj and obj.sync_speed:
            merged.update(obj.sync_speed.model_dump(exclude_none=True))

        return SpeedOverride(**merged) if merged else None


# Example definition used when no definition file is configured
RESTAURANT_DESTINATION_EXAMPLE = DestinationConfig(
    name="Restaurant Directory",
    objects=[
        ObjectConfig(
            api_name="restaurant",
            label="Restaurant",
            description="Restaurants listed in the directory",
            operations=[Operation.UPSERT, Operation.INSERT, Operation.UPDATE],
            fields=[
                DestinationField(
                    api_name="name",
                    label="Name",
                    identifier=True,
                    required=True,
                    createable=True,
                    updateable=False,
                    type=FieldType.STRING,
                ),
                DestinationField(api_name="cuisine", label="Cuisine", type=FieldType.STRING),
                DestinationField(api_name="rating", label="Rating", type=FieldType.DECIMAL),
                DestinationField(api_name="seats", label="Seats", type=FieldType.INTEGER),
                DestinationField(api_name="open_since", label="Open Since", type=FieldType.DATE),
                DestinationField(api_name="tags", label="Tags", type=FieldType.STRING, array=True),
            ],
            sync_speed=SpeedOverride(maximum_batch_size=50),
        ),
        ObjectConfig(
            api_name="review",
            label="Review",
            operations=[Operation.INSERT],
            fields=[
                DestinationField(
                    api_name="review_id",
                    label="Review ID",
                    identifier=True,
                    required=True,
                    type=FieldType.INTEGER,
                ),
                DestinationField(api_name="restaurant_name", label="Restaurant", type=FieldType.STRING),
                DestinationField(api_name="stars", label="Stars", type=FieldType.INTEGER),
                DestinationField(api_name="submitted_at", label="Submitted At", type=FieldType.DATE_TIME),
                DestinationField(api_name="verified", label="Verified", type=FieldType.BOOLEAN),
            ],
        ),
    ],
)
