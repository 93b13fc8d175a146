"""Core infrastructure for access-sync."""

from .config import get_config, SyncConfig
from .errors import (
    AccessSyncError,
    OracleError,
    TransientOracleError,
    FatalOracleError,
    EmptyReplyError,
    MalformedJsonError,
    UnexpectedShapeError,
    StoreAccessError,
)

__all__ = [
    # Config
    "get_config",
    "SyncConfig",
    # Errors
    "AccessSyncError",
    "OracleError",
    "TransientOracleError",
    "FatalOracleError",
    "EmptyReplyError",
    "MalformedJsonError",
    "UnexpectedShapeError",
    "StoreAccessError",
]
