"""JSON-RPC destination connector runtime."""

__version__ = "1.0.0"
