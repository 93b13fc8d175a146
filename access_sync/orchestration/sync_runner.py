"""Sync runner driving plan -> query -> normalize -> reconcile.

Batches are queried strictly one after another with a fixed pause between
them. Reconciliation only starts once every batch has been collected; any
oracle failure aborts the run before a single write is made.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Sequence

from ..clients.backoff import BackoffPolicy, SleepFunc
from ..clients.oracle_client import OracleClient
from ..clients.store_client import BaseStore
from ..core.config import SyncConfig
from ..reconcile.normalizer import RecordNormalizer
from ..reconcile.reconciler import ReconcileResult, Reconciler
from ..types.records import AccessRecord, utc_now
from .batch_planner import DEFAULT_BATCH_PAUSE, DEFAULT_BATCH_SIZE, BatchPacer, BatchPlanner

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Terminal state of a sync run."""

    COMPLETED = "completed"
    FATAL_ABORTED = "fatal_aborted"


@dataclass
class RunnerConfig:
    """Configuration for the sync runner."""

    # Batching
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_pause: float = DEFAULT_BATCH_PAUSE  # seconds between batches

    # Normalization
    strict_status: bool = False

    # Oracle retries
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)

    # Progress: (batch_number, total_batches, stage)
    progress_callback: Optional[Callable[[int, int, str], None]] = None

    @classmethod
    def from_sync_config(cls, config: SyncConfig) -> "RunnerConfig":
        """Build runner settings from the environment-driven config."""
        return cls(
            batch_size=config.batch_size,
            batch_pause=config.batch_pause,
            strict_status=config.strict_status,
            backoff=BackoffPolicy(
                max_retries=config.max_retries,
                base_delay=config.backoff_base,
                max_delay=config.backoff_cap,
            ),
        )


@dataclass
class SyncRunResult:
    """Result of one sync run."""

    status: RunStatus = RunStatus.COMPLETED
    started_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    subjects: list[str] = field(default_factory=list)
    batches_planned: int = 0
    batches_queried: int = 0
    records_collected: int = 0
    records_dropped: int = 0
    records_flagged: int = 0
    reconcile: Optional[ReconcileResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == RunStatus.COMPLETED

    @property
    def duration_seconds(self) -> float:
        """Get total run duration."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0


class SyncRunner:
    """Runs a full sync of the subject x scope catalogs.

    Features:
    - Contiguous scope batches, full subject list per batch
    - Fixed pacing between oracle requests
    - All-or-nothing collection before reconciliation
    - Per-record isolated reconciliation
    """

    def __init__(
        self,
        oracle: OracleClient,
        store: BaseStore,
        config: Optional[RunnerConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize the runner.

        Args:
            oracle: Oracle client used for every batch.
            store: Store the records are reconciled into.
            config: Runner configuration.
            sleep: Sleep used for inter-batch pacing.
        """
        self._config = config or RunnerConfig()
        self._oracle = oracle
        self._store = store
        self._planner = BatchPlanner(self._config.batch_size)
        self._pacer = BatchPacer(self._config.batch_pause, sleep=sleep)
        self._normalizer = RecordNormalizer(strict_status=self._config.strict_status)
        self._reconciler = Reconciler(store)

    async def run(
        self,
        subjects: Sequence[str],
        scopes: Sequence[str],
    ) -> SyncRunResult:
        """Run one sync.

        Args:
            subjects: Subject catalog, sent with every batch.
            scopes: Ordered scope catalog, split into batches.

        Returns:
            SyncRunResult; status is FATAL_ABORTED if collection failed.
        """
        result = SyncRunResult(subjects=list(subjects))
        result.batches_planned = self._planner.batch_count(len(scopes))

        logger.info(
            f"=== Sync started: {len(subjects)} substances x {len(scopes)} countries "
            f"in {result.batches_planned} batches ==="
        )

        collected: list[AccessRecord] = []
        seen: set[tuple[str, str]] = set()

        try:
            for batch in self._planner.plan(scopes):
                if batch.number > 1:
                    await self._pacer.wait()

                self._report_progress(batch.number, result.batches_planned, "Querying")
                logger.info(
                    f"[LLM] Querying {self._oracle.model} for {len(subjects)} substances "
                    f"x {len(batch)} countries (batch {batch.number}/{result.batches_planned})..."
                )

                raw = await self._oracle.query(subjects, batch.scopes)
                normalized = self._normalizer.normalize(
                    raw, subjects=subjects, scopes=batch.scopes
                )

                # First occurrence of a key across the whole run wins
                accepted = 0
                for record in normalized.records:
                    if record.key in seen:
                        logger.warning(
                            f"Dropping duplicate record for {record.subject}-{record.scope} "
                            f"from batch {batch.number}"
                        )
                        normalized.drop(
                            record.model_dump(by_alias=True, mode="json"), "duplicate key"
                        )
                        continue
                    seen.add(record.key)
                    collected.append(record)
                    accepted += 1

                result.batches_queried += 1
                result.records_dropped += len(normalized.dropped)
                result.records_flagged += len(normalized.flagged)

                logger.info(
                    f"Batch {batch.number}: {len(raw)} raw, "
                    f"{accepted} accepted, {len(normalized.dropped)} dropped"
                )

        except Exception as e:
            logger.exception(
                f"Fatal error in batch {result.batches_queried + 1}; "
                f"aborting before reconciliation"
            )
            result.status = RunStatus.FATAL_ABORTED
            result.error = f"{type(e).__name__}: {e}"
            result.records_collected = len(collected)
            result.completed_at = utc_now()
            self._report_progress(result.batches_queried, result.batches_planned, "Aborted")
            return result

        result.records_collected = len(collected)
        self._report_progress(result.batches_queried, result.batches_planned, "Reconciling")
        result.reconcile = await self._reconciler.reconcile(collected)

        result.completed_at = utc_now()
        self._report_progress(result.batches_queried, result.batches_planned, "Completed")
        logger.info(f"=== Sync finished in {result.duration_seconds:.1f}s ===")
        return result

    def run_sync(
        self,
        subjects: Sequence[str],
        scopes: Sequence[str],
    ) -> SyncRunResult:
        """Synchronous wrapper for run()."""
        return asyncio.run(self.run(subjects, scopes))

    def _report_progress(self, batch_number: int, total: int, stage: str) -> None:
        """Report progress via callback."""
        if self._config.progress_callback:
            self._config.progress_callback(batch_number, total, stage)
