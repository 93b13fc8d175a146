"""JSON run report for sync runs."""

import logging
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import orjson

from .. import __version__
from ..orchestration.sync_runner import SyncRunResult

logger = logging.getLogger(__name__)


def json_dumps(obj: Any) -> bytes:
    """Serialize object to JSON bytes using orjson."""
    return orjson.dumps(
        obj,
        option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS,
        default=_json_default,
    )


def _json_default(obj: Any) -> Any:
    """Default serializer for non-standard types."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    raise TypeError(f"Cannot serialize {type(obj)}")


def build_report(result: SyncRunResult) -> dict[str, Any]:
    """Summarize a run as a JSON-ready dict."""
    report: dict[str, Any] = {
        "tool_version": __version__,
        "status": result.status.value,
        "started_at": result.started_at,
        "completed_at": result.completed_at,
        "duration_seconds": result.duration_seconds,
        "subjects": result.subjects,
        "batches": {
            "planned": result.batches_planned,
            "queried": result.batches_queried,
        },
        "records": {
            "collected": result.records_collected,
            "dropped": result.records_dropped,
            "flagged": result.records_flagged,
        },
        "error": result.error,
        "reconcile": None,
    }

    if result.reconcile is not None:
        report["reconcile"] = {
            "inserted": result.reconcile.inserted,
            "updated": result.reconcile.updated,
            "unchanged": result.reconcile.unchanged,
            "failed": result.reconcile.failed,
            "decisions": [asdict(d) for d in result.reconcile.decisions],
        }

    return report


def write_run_report(result: SyncRunResult, path: Path) -> Path:
    """Write the run report to `path`, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(json_dumps(build_report(result)))
    logger.info(f"Wrote run report to {path}")
    return path
