"""Clients for the text-generation oracle and the access store."""

from .backoff import BackoffPolicy, compute_delay, with_backoff
from .oracle_client import OracleClient, extract_records, parse_reply
from .store_client import BaseStore, SupabaseStore

__all__ = [
    "BackoffPolicy",
    "compute_delay",
    "with_backoff",
    "OracleClient",
    "extract_records",
    "parse_reply",
    "BaseStore",
    "SupabaseStore",
]
