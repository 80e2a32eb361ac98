"""
retainer.storage.rest
=====================

Backend for a hosted PostgREST / Supabase style table API.

Rows are the camelCase records produced by ``to_record()`` plus a
``position`` column that keeps insertion order.  A save upserts every
current row and then deletes whatever the state no longer holds.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from retainer.errors import PersistenceError
from retainer.models import ArchiveEntry, Contract, StoreState

from .base import RECORD_ERRORS, StorageBackend

logger = logging.getLogger(__name__)

UPSERT_PREFER = "resolution=merge-duplicates,return=minimal"


class RestBackend(StorageBackend):
    """
    Talks to two REST tables: active contracts and the archive log.

    Args:
        base_url: Root of the REST API (e.g. ``https://xyz.supabase.co/rest/v1``)
        api_key: Sent as ``apikey`` header and bearer token
        contracts_table: Table name for active contracts
        archive_table: Table name for archive entries
        timeout: Per‑request timeout in seconds
        client: Pre‑configured AsyncClient (tests pass one with a mock transport)
    """

    name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        contracts_table: str = "clients",
        archive_table: str = "clients_history",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.contracts_table = contracts_table
        self.archive_table = archive_table
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=str(base_url).rstrip("/"),
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _fetch(self, table: str) -> List[Dict[str, Any]]:
        response = await self._client.get(
            f"/{table}", params={"select": "*", "order": "position.asc"}
        )
        response.raise_for_status()
        return response.json() or []

    async def _replace(self, table: str, records: List[Dict[str, Any]]) -> None:
        rows = [dict(r, position=i) for i, r in enumerate(records)]
        if rows:
            response = await self._client.post(
                f"/{table}", json=rows, headers={"Prefer": UPSERT_PREFER}
            )
            response.raise_for_status()
        ids = [r["id"] for r in rows]
        # PostgREST refuses an unfiltered DELETE, hence "not.is.null" for "everything"
        id_filter = f"not.in.({','.join(ids)})" if ids else "not.is.null"
        response = await self._client.delete(f"/{table}", params={"id": id_filter})
        response.raise_for_status()

    # ------------------------------------------------------------------
    # StorageBackend API
    # ------------------------------------------------------------------
    async def load(self) -> StoreState:
        try:
            contracts = await self._fetch(self.contracts_table)
            archive = await self._fetch(self.archive_table)
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error loading contracts from {self._client.base_url}: {e}")
            raise PersistenceError(f"REST read failed: {e}", backend=self.name) from e
        try:
            state = StoreState.of(
                (Contract.from_record(r) for r in contracts),
                (ArchiveEntry.from_record(r) for r in archive),
            )
        except RECORD_ERRORS as e:
            logger.error(f"Malformed row in {self._client.base_url}: {e!r}")
            raise PersistenceError(f"REST read returned a malformed row: {e!r}", backend=self.name) from e
        logger.info(f"Loaded {len(contracts)} contracts and {len(archive)} archive entries")
        return state

    async def save(self, state: StoreState) -> None:
        try:
            await self._replace(self.contracts_table, [c.to_record() for c in state.contracts])
            await self._replace(self.archive_table, [a.to_record() for a in state.archive])
        except httpx.HTTPError as e:
            logger.error(f"Error saving contracts to {self._client.base_url}: {e}")
            raise PersistenceError(f"REST write failed: {e}", backend=self.name) from e

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
