"""Execution orchestration for sync runs."""

from .batch_planner import (
    BatchPacer,
    BatchPlanner,
    ScopeBatch,
    plan_batches,
)
from .single_query import SingleQueryResult, run_single_query
from .sync_runner import (
    RunnerConfig,
    RunStatus,
    SyncRunner,
    SyncRunResult,
)

__all__ = [
    # Planner
    "BatchPacer",
    "BatchPlanner",
    "ScopeBatch",
    "plan_batches",
    # Single query
    "SingleQueryResult",
    "run_single_query",
    # Runner
    "RunnerConfig",
    "RunStatus",
    "SyncRunner",
    "SyncRunResult",
]
