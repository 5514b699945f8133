"""Destination access implementations."""

from .base import (
    BaseDestination,
    DestinationError,
    UnknownObjectError,
    RateLimitError,
    AuthenticationError,
    APIConnectionError,
    AmbiguousWriteError
)

from .memory import InMemoryDestination
from .rest import RestDestination
from .factory import DestinationFactory

__all__ = [
    # Base classes and exceptions
    "BaseDestination",
    "DestinationError",
    "UnknownObjectError",
    "RateLimitError",
    "AuthenticationError",
    "APIConnectionError",
    "AmbiguousWriteError",

    # Destination implementations
    "InMemoryDestination",
    "RestDestination",

    # Factory
    "DestinationFactory"
]
