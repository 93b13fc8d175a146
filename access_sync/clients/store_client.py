"""Store clients for persisted access rows.

BaseStore is the capability the reconciler needs; SupabaseStore implements
it over the Supabase PostgREST API with httpx.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..core.config import SyncConfig
from ..core.errors import StoreAccessError
from ..types.records import AccessRecord, PersistedRow, utc_now

logger = logging.getLogger(__name__)

CONFLICT_COLUMNS = "substance,country_code"
REQUEST_TIMEOUT = 30.0


class BaseStore(ABC):
    """Keyed access to persisted rows.

    Every method raises StoreAccessError on failure.
    """

    @abstractmethod
    async def find(self, subject: str, scope: str) -> Optional[PersistedRow]:
        """Return the row for (subject, scope), or None."""

    @abstractmethod
    async def insert(self, record: AccessRecord, updated_at: datetime) -> None:
        """Insert a new row for the record."""

    @abstractmethod
    async def update(self, row_id: Any, status: str, updated_at: datetime) -> None:
        """Set status and timestamp on an existing row."""

    @abstractmethod
    async def upsert(self, records: Sequence[AccessRecord]) -> int:
        """Batched insert-or-merge keyed on (subject, scope).

        Returns:
            Number of rows sent.
        """


class SupabaseStore(BaseStore):
    """PostgREST client for the access table."""

    def __init__(
        self,
        config: SyncConfig,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the store client.

        Args:
            config: Supabase URL, key and table name.
            client: Shared AsyncClient. If None, one is opened per request.
        """
        self._config = config
        self._client = client
        self._debug = config.store_debug

    @property
    def table_url(self) -> str:
        """Get the table endpoint URL."""
        return f"{self._config.rest_url}/{self._config.supabase_table}"

    def _build_headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        """Build request headers with the service key."""
        headers = {
            "apikey": self._config.supabase_key,
            "Authorization": f"Bearer {self._config.supabase_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _log_request(self, method: str, **kwargs: Any) -> None:
        """Log request details if debug is enabled."""
        if self._debug:
            logger.debug(f"Store {method} {self.table_url}")
            if "params" in kwargs:
                logger.debug(f"Query params: {kwargs['params']}")
            if "json" in kwargs:
                logger.debug(f"Request body: {kwargs['json']}")

    def _log_response(self, response: httpx.Response) -> None:
        """Log response details if debug is enabled."""
        if self._debug:
            logger.debug(f"Response status: {response.status_code}")
            logger.debug(f"Response body: {response.text[:1000]}")

    async def _request(
        self,
        method: str,
        operation: str,
        subject: Optional[str] = None,
        scope: Optional[str] = None,
        prefer: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send one request; any failure becomes StoreAccessError."""
        self._log_request(method, **kwargs)
        headers = self._build_headers(prefer)

        try:
            if self._client is not None:
                response = await self._client.request(
                    method, self.table_url, headers=headers, **kwargs
                )
            else:
                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                    response = await client.request(
                        method, self.table_url, headers=headers, **kwargs
                    )
        except httpx.HTTPError as e:
            raise StoreAccessError(
                f"{operation} request failed: {e}",
                operation=operation,
                subject=subject,
                scope=scope,
            ) from e

        self._log_response(response)

        if not response.is_success:
            raise StoreAccessError(
                f"{operation} returned {response.status_code}: {response.text[:500]}",
                operation=operation,
                subject=subject,
                scope=scope,
            )
        return response

    async def find(self, subject: str, scope: str) -> Optional[PersistedRow]:
        response = await self._request(
            "GET",
            "find",
            subject,
            scope,
            params={
                "select": "*",
                "substance": f"eq.{subject}",
                "country_code": f"eq.{scope}",
            },
        )

        try:
            rows = response.json()
        except ValueError as e:
            raise StoreAccessError(
                f"find returned unreadable body: {response.text[:200]}",
                operation="find",
                subject=subject,
                scope=scope,
            ) from e

        if not rows:
            return None
        if len(rows) > 1:
            raise StoreAccessError(
                f"find matched {len(rows)} rows, expected at most one",
                operation="find",
                subject=subject,
                scope=scope,
            )

        try:
            return PersistedRow.model_validate(rows[0])
        except ValidationError as e:
            raise StoreAccessError(
                f"find returned an invalid row: {e}",
                operation="find",
                subject=subject,
                scope=scope,
            ) from e

    async def insert(self, record: AccessRecord, updated_at: datetime) -> None:
        await self._request(
            "POST",
            "insert",
            record.subject,
            record.scope,
            prefer="return=minimal",
            json=[record.to_row(updated_at)],
        )

    async def update(self, row_id: Any, status: str, updated_at: datetime) -> None:
        await self._request(
            "PATCH",
            "update",
            prefer="return=minimal",
            params={"id": f"eq.{row_id}"},
            json={"access_status": status, "updated_at": updated_at.isoformat()},
        )

    async def upsert(self, records: Sequence[AccessRecord]) -> int:
        if not records:
            return 0

        now = utc_now()
        await self._request(
            "POST",
            "upsert",
            prefer="resolution=merge-duplicates,return=minimal",
            params={"on_conflict": CONFLICT_COLUMNS},
            json=[record.to_row(now) for record in records],
        )
        return len(records)
