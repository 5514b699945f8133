"""Configuration package for the destination connector."""

from .settings import (
    ServerSettings,
    SyncSettings,
    DestinationSettings,
    LoggingSettings,
    AppSettings,
    get_settings
)

from .schema import (
    DestinationConfig,
    ObjectConfig,
    RESTAURANT_DESTINATION_EXAMPLE
)

from .loader import (
    ConfigLoader,
    load_destination_config_from_env
)

from ..schema.validation import ConfigurationError

__all__ = [
    # Settings
    "ServerSettings",
    "SyncSettings",
    "DestinationSettings",
    "LoggingSettings",
    "AppSettings",
    "get_settings",

    # Destination definition
    "DestinationConfig",
    "ObjectConfig",
    "RESTAURANT_DESTINATION_EXAMPLE",

    "ConfigLoader",
    "ConfigurationError",
    "load_destination_config_from_env"
]
