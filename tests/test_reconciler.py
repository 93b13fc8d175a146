"""Tests for the diff-based reconciler."""

from datetime import datetime, timezone

import pytest

from access_sync.reconcile.reconciler import ReconcileAction, Reconciler
from access_sync.types.records import AccessRecord

from conftest import FIXED_NOW

OLD = datetime(2025, 6, 1, tzinfo=timezone.utc)


def record(subject, scope, status):
    return AccessRecord(subject=subject, scope=scope, status=status)


@pytest.fixture
def reconciler(store):
    return Reconciler(store, clock=lambda: FIXED_NOW)


class TestDecisionTable:
    """absent -> insert, same -> no write, different -> update."""

    @pytest.mark.asyncio
    async def test_insert_when_absent(self, store, reconciler):
        result = await reconciler.reconcile([record("MDMA", "US", "Banned")])

        assert result.inserted == 1
        row = store.rows[("MDMA", "US")]
        assert row.status == "Banned"
        assert row.updated_at == FIXED_NOW

    @pytest.mark.asyncio
    async def test_no_write_when_same(self, store, reconciler):
        store.seed("MDMA", "US", "Banned", OLD)

        result = await reconciler.reconcile([record("MDMA", "US", "Banned")])

        assert result.unchanged == 1
        assert result.writes == 0
        assert store.writes == []
        assert store.rows[("MDMA", "US")].updated_at == OLD

    @pytest.mark.asyncio
    async def test_update_when_different(self, store, reconciler):
        seeded = store.seed("MDMA", "US", "Banned", OLD)

        result = await reconciler.reconcile([record("MDMA", "US", "Limited Access Trials")])

        decision = result.decisions[0]
        assert decision.action == ReconcileAction.UPDATED
        assert decision.old_status == "Banned"
        assert decision.new_status == "Limited Access Trials"
        row = store.rows[("MDMA", "US")]
        assert row.id == seeded.id
        assert row.status == "Limited Access Trials"
        assert row.updated_at == FIXED_NOW


class TestIdempotence:
    """Reconciling the same set twice converges with zero second-pass writes."""

    @pytest.mark.asyncio
    async def test_second_pass_makes_no_writes(self, store, reconciler):
        store.seed("MDMA", "CA", "Unknown", OLD)
        records = [
            record("MDMA", "US", "Banned"),
            record("MDMA", "CA", "Banned"),
            record("Psilocybin", "US", "Limited Access Trials"),
        ]

        first = await reconciler.reconcile(records)
        state_after_first = store.snapshot()
        writes_after_first = len(store.writes)

        second = await reconciler.reconcile(records)

        assert first.inserted == 2 and first.updated == 1
        assert second.writes == 0
        assert second.unchanged == 3
        assert len(store.writes) == writes_after_first
        assert store.snapshot() == state_after_first


class TestFailureIsolation:
    """A store failure on one key does not stop the others."""

    @pytest.mark.asyncio
    async def test_fetch_failure_skips_record(self, store, reconciler):
        store.fail_find.add(("MDMA", "US"))

        result = await reconciler.reconcile(
            [record("MDMA", "US", "Banned"), record("MDMA", "CA", "Banned")]
        )

        assert [d.action for d in result.decisions] == [
            ReconcileAction.FAILED,
            ReconcileAction.INSERTED,
        ]
        assert "unreachable" in result.decisions[0].error
        assert ("MDMA", "US") not in store.rows

    @pytest.mark.asyncio
    async def test_write_failures_are_recorded(self, store, reconciler):
        store.seed("MDMA", "US", "Banned", OLD)
        store.fail_write.update({("MDMA", "US"), ("MDMA", "CA")})

        result = await reconciler.reconcile(
            [
                record("MDMA", "US", "Unknown"),
                record("MDMA", "CA", "Banned"),
                record("MDMA", "MX", "Banned"),
            ]
        )

        assert result.failed == 2
        assert result.inserted == 1
        assert result.decisions[0].old_status == "Banned"
        assert store.rows[("MDMA", "US")].status == "Banned"

    @pytest.mark.asyncio
    async def test_empty_input(self, reconciler):
        result = await reconciler.reconcile([])
        assert result.decisions == []
        assert result.writes == 0
