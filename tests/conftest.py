"""Shared test doubles: in-memory store, fake OpenAI client, recording sleep."""

from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional, Sequence
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import orjson
import pytest

from access_sync.clients.store_client import BaseStore
from access_sync.core.errors import StoreAccessError
from access_sync.types.records import AccessRecord, PersistedRow

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class InMemoryStore(BaseStore):
    """Dict-backed store that records every write."""

    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], PersistedRow] = {}
        self.writes: list[tuple[str, Any]] = []
        self.fail_find: set[tuple[str, str]] = set()
        self.fail_write: set[tuple[str, str]] = set()
        self._next_id = 1

    def seed(self, subject: str, scope: str, status: str, updated_at: Optional[datetime] = None) -> PersistedRow:
        row = PersistedRow(
            id=self._next_id,
            subject=subject,
            scope=scope,
            status=status,
            updated_at=updated_at,
        )
        self._next_id += 1
        self.rows[(subject, scope)] = row
        return row

    def snapshot(self) -> dict[tuple[str, str], Optional[str]]:
        return {key: row.status for key, row in self.rows.items()}

    async def find(self, subject: str, scope: str) -> Optional[PersistedRow]:
        if (subject, scope) in self.fail_find:
            raise StoreAccessError("store unreachable", "find", subject, scope)
        return self.rows.get((subject, scope))

    async def insert(self, record: AccessRecord, updated_at: datetime) -> None:
        if record.key in self.fail_write:
            raise StoreAccessError("insert rejected", "insert", *record.key)
        self.seed(record.subject, record.scope, record.status, updated_at)
        self.writes.append(("insert", record.key))

    async def update(self, row_id: Any, status: str, updated_at: datetime) -> None:
        for key, row in self.rows.items():
            if row.id == row_id:
                if key in self.fail_write:
                    raise StoreAccessError("update rejected", "update", *key)
                self.rows[key] = row.model_copy(update={"status": status, "updated_at": updated_at})
                self.writes.append(("update", key))
                return
        raise StoreAccessError(f"no row with id {row_id}", "update")

    async def upsert(self, records: Sequence[AccessRecord]) -> int:
        for record in records:
            existing = self.rows.get(record.key)
            if existing is None:
                self.seed(record.subject, record.scope, record.status, FIXED_NOW)
            else:
                self.rows[record.key] = existing.model_copy(update={"status": record.status})
            self.writes.append(("upsert", record.key))
        return len(records)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def completion(content: Optional[str]) -> SimpleNamespace:
    """Minimal stand-in for a ChatCompletion response."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def json_completion(payload: Any) -> SimpleNamespace:
    return completion(orjson.dumps(payload).decode())


def fake_openai(*responses: Any) -> MagicMock:
    """AsyncOpenAI double whose create() yields/raises `responses` in order."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=list(responses))
    return client


_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def api_status_error(status: int) -> openai.APIStatusError:
    """Build the SDK exception class the API raises for `status`."""
    response = httpx.Response(status, request=_REQUEST)
    classes = {
        400: openai.BadRequestError,
        401: openai.AuthenticationError,
        429: openai.RateLimitError,
        500: openai.InternalServerError,
        503: openai.InternalServerError,
    }
    cls = classes.get(status, openai.APIStatusError)
    return cls(f"HTTP {status}", response=response, body=None)


def api_connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_REQUEST)


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
