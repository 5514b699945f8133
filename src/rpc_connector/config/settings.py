"""Application configuration settings."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """HTTP transport configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    rpc_path: str = Field(default="/connector", description="Path the orchestrator POSTs JSON-RPC requests to")

    # Largest accepted request body in bytes
    client_max_size: int = Field(default=64 * 1024 * 1024, gt=0)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class SyncSettings(BaseSettings):
    """Default sync speed and batch execution limits."""

    default_batch_size: int = Field(default=100, gt=0)
    default_parallel_batches: int = Field(default=4, gt=0)
    default_records_per_second: float = Field(default=100.0, gt=0)

    # Hard ceiling on any batch size a destination may ask for
    max_batch_size: int = Field(default=10000, gt=0)

    # Must stay below the orchestrator's RPC timeout
    batch_timeout_seconds: float = Field(default=240.0, gt=0)

    # Concurrent destination calls issued within a single sync_batch call
    record_concurrency: int = Field(default=10, gt=0)

    model_config = SettingsConfigDict(env_prefix="SYNC_")


class DestinationSettings(BaseSettings):
    """Destination access configuration."""

    type: str = Field(default="memory", description="Destination implementation (memory, rest)")
    config_path: Optional[str] = Field(default=None, description="Destination definition file (YAML or JSON)")
    base_url: str = Field(default="")
    api_key: str = Field(default="")
    timeout_seconds: float = Field(default=30.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="DESTINATION_")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="json")
    file_path: Optional[str] = Field(default=None)

    model_config = SettingsConfigDict(env_prefix="LOG_")


class AppSettings(BaseSettings):
    """Main application settings."""

    name: str = Field(default="RPC Destination Connector")
    version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Sub-settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    destination: DestinationSettings = Field(default_factory=DestinationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def get_settings() -> AppSettings:
    """Load application settings from the environment.

    Only the entry point calls this; components receive their settings
    section explicitly.
    """
    return AppSettings()
