"""Destination factory for creating the configured destination."""

from typing import Dict, List, Optional, Type

from .base import BaseDestination
from .memory import InMemoryDestination
from .rest import RestDestination
from ..config.loader import load_destination_config_from_env
from ..config.schema import DestinationConfig
from ..config.settings import DestinationSettings


class DestinationFactory:
    """Factory for creating destination instances."""

    _destination_classes: Dict[str, Type[BaseDestination]] = {
        "memory": InMemoryDestination,
        "rest": RestDestination,
    }

    @classmethod
    def create_destination(
        cls,
        settings: DestinationSettings,
        definition: Optional[DestinationConfig] = None,
        **kwargs
    ) -> BaseDestination:
        """Create a destination instance.

        Args:
            settings: Destination settings (type, location, credentials)
            definition: Destination definition; loaded from settings if None
            **kwargs: Additional parameters

        Returns:
            Configured destination instance

        Raises:
            ValueError: If destination type is not supported
        """
        destination_type = settings.type.lower()
        if destination_type not in cls._destination_classes:
            raise ValueError(f"Unsupported destination type: {settings.type}")

        if definition is None:
            definition = load_destination_config_from_env(settings.config_path)

        destination_class = cls._destination_classes[destination_type]

        if destination_type == "rest":
            kwargs.update({
                "base_url": settings.base_url,
                "api_key": settings.api_key,
                "timeout_seconds": settings.timeout_seconds
            })

        return destination_class(definition=definition, **kwargs)

    @classmethod
    def get_supported_types(cls) -> List[str]:
        """Get list of supported destination types."""
        return list(cls._destination_classes.keys())
