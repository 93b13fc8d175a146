"""Diff-based reconciliation of access records into the store.

Each record is reconciled on its own: look up the existing row, then
insert, update or skip. A store failure on one key is logged and the
rest of the records still run. Reconciling the same input twice makes
no writes the second time.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from ..clients.store_client import BaseStore
from ..core.errors import StoreAccessError
from ..types.records import AccessRecord, utc_now

logger = logging.getLogger(__name__)


class ReconcileAction(str, Enum):
    """What the reconciler did for one key."""

    INSERTED = "inserted"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class ReconcileDecision:
    """Decision taken for a single (subject, scope) key."""

    subject: str
    scope: str
    action: ReconcileAction
    new_status: str
    old_status: Optional[str] = None
    error: Optional[str] = None


@dataclass
class ReconcileResult:
    """Result of reconciling a record set."""

    decisions: list[ReconcileDecision] = field(default_factory=list)

    def _count(self, action: ReconcileAction) -> int:
        return sum(1 for d in self.decisions if d.action == action)

    @property
    def inserted(self) -> int:
        return self._count(ReconcileAction.INSERTED)

    @property
    def updated(self) -> int:
        return self._count(ReconcileAction.UPDATED)

    @property
    def unchanged(self) -> int:
        return self._count(ReconcileAction.UNCHANGED)

    @property
    def failed(self) -> int:
        return self._count(ReconcileAction.FAILED)

    @property
    def writes(self) -> int:
        """Rows written to the store."""
        return self.inserted + self.updated


class Reconciler:
    """Converges persisted rows towards a set of access records."""

    def __init__(
        self,
        store: BaseStore,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the reconciler.

        Args:
            store: Store to read from and write to.
            clock: Source of updated_at timestamps.
        """
        self._store = store
        self._clock = clock

    async def reconcile(self, records: Iterable[AccessRecord]) -> ReconcileResult:
        """Reconcile records one at a time.

        Args:
            records: Canonical records for this run.

        Returns:
            ReconcileResult with one decision per record.
        """
        result = ReconcileResult()
        for record in records:
            result.decisions.append(await self.reconcile_one(record))

        logger.info(
            f"Reconciled {len(result.decisions)} records: "
            f"{result.inserted} inserted, {result.updated} updated, "
            f"{result.unchanged} unchanged, {result.failed} failed"
        )
        return result

    async def reconcile_one(self, record: AccessRecord) -> ReconcileDecision:
        """Apply the minimal write for one record."""
        subject, scope, status = record.subject, record.scope, record.status
        label = f"{subject} in {scope}"

        try:
            existing = await self._store.find(subject, scope)
        except StoreAccessError as e:
            logger.error(f"Fetch error for {subject}-{scope}: {e}")
            return ReconcileDecision(
                subject, scope, ReconcileAction.FAILED, status, error=str(e)
            )

        if existing is None:
            try:
                await self._store.insert(record, self._clock())
            except StoreAccessError as e:
                logger.error(f"Insert error for {subject}-{scope}: {e}")
                return ReconcileDecision(
                    subject, scope, ReconcileAction.FAILED, status, error=str(e)
                )
            logger.info(f"Inserted {label} = {status}")
            return ReconcileDecision(subject, scope, ReconcileAction.INSERTED, status)

        if existing.status != status:
            try:
                await self._store.update(existing.id, status, self._clock())
            except StoreAccessError as e:
                logger.error(f"Update error for {subject}-{scope}: {e}")
                return ReconcileDecision(
                    subject,
                    scope,
                    ReconcileAction.FAILED,
                    status,
                    old_status=existing.status,
                    error=str(e),
                )
            logger.info(f"Updated {label}: {existing.status} -> {status}")
            return ReconcileDecision(
                subject,
                scope,
                ReconcileAction.UPDATED,
                status,
                old_status=existing.status,
            )

        logger.info(f"Skipped {label}: no change")
        return ReconcileDecision(
            subject, scope, ReconcileAction.UNCHANGED, status, old_status=existing.status
        )
