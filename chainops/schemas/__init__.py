"""
chainops.schemas - Data structures shared by the orchestrator and the
state-diff verification engine.

TaskConfig -> (execution) -> ExecutionTrace -> StateDiffSpec

- ChainScope / TaskType / TaskConfig: resolved task descriptor
- StorageDiffEntry / StateDiffSpec: expected or actual storage changes
- StorageAccess / ExecutionTrace: raw record of an execution
"""

from .task import (
    ChainScope,
    TaskConfig,
    TaskType,
    parse_chain_scopes,
)
from .state_diff import (
    ENTRY_FIELDS,
    StateDiffSpec,
    StorageDiffEntry,
)
from .trace import (
    ExecutionTrace,
    StorageAccess,
)

__all__ = [
    # Task
    "ChainScope",
    "TaskConfig",
    "TaskType",
    "parse_chain_scopes",
    # State diff
    "ENTRY_FIELDS",
    "StateDiffSpec",
    "StorageDiffEntry",
    # Trace
    "ExecutionTrace",
    "StorageAccess",
]
