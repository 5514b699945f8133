"""Core sync governance and batch execution."""

from .governor import SyncSpeedGovernor
from .reconciler import ReconciliationReporter
from .coordinator import (
    BatchExecutionCoordinator,
    SyncEngineError,
    InvalidBatchError,
    BatchDeadlineExceeded
)
from .connector import DestinationConnector

__all__ = [
    "SyncSpeedGovernor",
    "ReconciliationReporter",
    "BatchExecutionCoordinator",
    "SyncEngineError",
    "InvalidBatchError",
    "BatchDeadlineExceeded",
    "DestinationConnector"
]
