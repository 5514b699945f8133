"""Destination definition loader for JSON/YAML files."""

import os
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union

from pydantic import ValidationError

from .schema import DestinationConfig, RESTAURANT_DESTINATION_EXAMPLE
from ..schema.validation import (
    ConfigurationError,
    validate_fields,
    validate_objects,
    validate_operations,
)
from ..utils.logging import get_logger


class ConfigLoader:
    """Loads and validates destination definitions."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)

    def load_from_file(self, file_path: Union[str, Path]) -> DestinationConfig:
        """Load a destination definition from a JSON or YAML file.

        Args:
            file_path: Path to definition file

        Returns:
            Validated DestinationConfig object

        Raises:
            ConfigurationError: If file cannot be loaded or validated
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise ConfigurationError(f"Destination definition not found: {file_path}")

        self.logger.info("Loading destination definition", file_path=str(file_path))

        suffix = file_path.suffix.lower()
        if suffix not in ('.yaml', '.yml', '.json'):
            raise ConfigurationError(f"Unsupported file format: {file_path.suffix}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                if suffix == '.json':
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML format: {e}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON format: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read destination definition: {e}")

        return self.load_from_dict(data or {})

    def load_from_dict(self, data: Dict[str, Any]) -> DestinationConfig:
        """Load a destination definition from a dictionary.

        Args:
            data: Definition data as dictionary

        Returns:
            Validated DestinationConfig object
        """
        if not isinstance(data, dict):
            raise ConfigurationError("Destination definition must be a mapping")

        try:
            config = DestinationConfig(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid destination definition: {e}")

        self.validate_config(config)

        self.logger.info(
            "Destination definition loaded",
            destination=config.name,
            objects_count=len(config.objects)
        )

        return config

    def validate_config(self, config: DestinationConfig) -> None:
        """Apply the sync-eligibility rules to every object in a definition.

        Raises:
            ConfigurationError: On the first rule violation found
        """
        validate_objects(obj.to_object() for obj in config.objects)

        for obj_config in config.objects:
            obj = obj_config.to_object()
            validate_fields(obj, obj_config.fields)
            validate_operations(obj, obj_config.operations)


def load_destination_config_from_env(config_path: Optional[str] = None) -> DestinationConfig:
    """Load the destination definition from the configured location.

    Looks for a definition in this order:
    1. ``config_path`` argument
    2. CONNECTOR_DESTINATION_FILE environment variable
    3. ./config/destination.yaml, ./config/destination.yml, ./config/destination.json

    If no file is found, the built-in example definition is used.
    """
    loader = ConfigLoader()
    logger = get_logger("load_destination_config_from_env")

    explicit = config_path or os.getenv('CONNECTOR_DESTINATION_FILE')
    if explicit:
        return loader.load_from_file(explicit)

    possible_files = [
        './config/destination.yaml',
        './config/destination.yml',
        './config/destination.json',
    ]

    for file_path in possible_files:
        if os.path.exists(file_path):
            logger.info("Found destination definition", file=file_path)
            return loader.load_from_file(file_path)

    logger.info("No destination definition found, using example definition")
    loader.validate_config(RESTAURANT_DESTINATION_EXAMPLE)
    return RESTAURANT_DESTINATION_EXAMPLE
