"""
rollerderby: Compute Engine metadata synchronizer and rolling-update tool.
"""

from clients import ComputeRestClient
from config import ToolConfig
from errors import (
    OperationError,
    OptimisticConcurrencyError,
    RemoteReadError,
    RemoteWriteError,
    RollerDerbyError,
    SnapshotWriteError,
    ValidationError,
)
from log_utils import setup_logging
from metadata import MetadataSynchronizer
from models import InstanceGroupPolicy, MetadataStore, OperationResult, RolloutRequest
from rollout import RollingUpdateController

__all__ = [
    "ComputeRestClient",
    "ToolConfig",
    "OperationError",
    "OptimisticConcurrencyError",
    "RemoteReadError",
    "RemoteWriteError",
    "RollerDerbyError",
    "SnapshotWriteError",
    "ValidationError",
    "setup_logging",
    "MetadataSynchronizer",
    "InstanceGroupPolicy",
    "MetadataStore",
    "OperationResult",
    "RolloutRequest",
    "RollingUpdateController",
]
