"""Tests for the ad-hoc single-substance query."""

import pytest

from access_sync.clients.oracle_client import OracleClient
from access_sync.core.errors import MalformedJsonError
from access_sync.orchestration.single_query import run_single_query

from conftest import completion, fake_openai, json_completion


class TestSingleQuery:
    """Test one-substance query and upsert."""

    @pytest.mark.asyncio
    async def test_upserts_mapping_reply(self, store, recording_sleep):
        oracle = OracleClient(
            client=fake_openai(json_completion({"US": "Banned", "AU": "Approved Medical Use"})),
            sleep=recording_sleep,
        )

        result = await run_single_query(oracle, store, " MDMA ")

        assert result.substance == "MDMA"
        assert result.upserted == 2
        assert store.snapshot() == {
            ("MDMA", "US"): "Banned",
            ("MDMA", "AU"): "Approved Medical Use",
        }
        assert [op for op, _ in store.writes] == ["upsert", "upsert"]

    @pytest.mark.asyncio
    async def test_repeat_query_merges(self, store, recording_sleep):
        store.seed("MDMA", "US", "Unknown")
        oracle = OracleClient(
            client=fake_openai(json_completion({"US": "Banned"})), sleep=recording_sleep
        )

        await run_single_query(oracle, store, "MDMA")

        assert store.snapshot() == {("MDMA", "US"): "Banned"}
        assert len(store.rows) == 1

    @pytest.mark.asyncio
    async def test_empty_mapping_upserts_nothing(self, store, recording_sleep):
        oracle = OracleClient(client=fake_openai(json_completion({})), sleep=recording_sleep)

        result = await run_single_query(oracle, store, "MDMA")

        assert result.upserted == 0
        assert result.dropped == 0
        assert store.snapshot() == {}

    @pytest.mark.asyncio
    async def test_null_status_entry_is_dropped(self, store, recording_sleep):
        oracle = OracleClient(
            client=fake_openai(json_completion({"US": "Banned", "CA": None})),
            sleep=recording_sleep,
        )

        result = await run_single_query(oracle, store, "MDMA")

        assert result.upserted == 1
        assert result.dropped == 1
        assert store.snapshot() == {("MDMA", "US"): "Banned"}

    @pytest.mark.asyncio
    async def test_missing_substance(self, store, recording_sleep):
        oracle = OracleClient(client=fake_openai(), sleep=recording_sleep)
        with pytest.raises(ValueError, match="Missing substance"):
            await run_single_query(oracle, store, "  ")

    @pytest.mark.asyncio
    async def test_invalid_json_propagates(self, store, recording_sleep):
        oracle = OracleClient(client=fake_openai(completion("{oops")), sleep=recording_sleep)
        with pytest.raises(MalformedJsonError):
            await run_single_query(oracle, store, "MDMA")
        assert store.writes == []
