"""
retainer.storage.memory
=======================

Dictionary‑backed backend.  Records are kept in their serialized form so
that a load/save cycle exercises the same conversion as a real store.

Only the standard library is used, so it can back unit tests and demos
without a database.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from retainer.errors import PersistenceError
from retainer.models import ArchiveEntry, Contract, StoreState

from .base import RECORD_ERRORS, StorageBackend

logger = logging.getLogger(__name__)


class MemoryBackend(StorageBackend):
    """
    In‑process store of contract and archive records.

    Example
    -------
    >>> backend = MemoryBackend()
    >>> await backend.save(StoreState.of([contract]))
    >>> (await backend.load()).contracts
    (Contract(id='…', last_name='Doe', ...),)
    """

    name = "memory"

    def __init__(self) -> None:
        self._tables: Dict[str, List[Dict[str, Any]]] = {"contracts": [], "archive": []}
        self._fail_next: Optional[Exception] = None
        self.saves = 0

    def fail_next_save(self, exc: Optional[Exception] = None) -> None:
        """Make the next ``save()`` raise PersistenceError (for tests)."""
        self._fail_next = exc or RuntimeError("simulated storage failure")

    async def load(self) -> StoreState:
        try:
            return StoreState.of(
                (Contract.from_record(r) for r in self._tables["contracts"]),
                (ArchiveEntry.from_record(r) for r in self._tables["archive"]),
            )
        except RECORD_ERRORS as e:
            logger.error(f"Malformed in-memory record: {e!r}")
            raise PersistenceError(f"memory load found a malformed record: {e!r}", backend=self.name) from e

    async def save(self, state: StoreState) -> None:
        if self._fail_next is not None:
            exc, self._fail_next = self._fail_next, None
            raise PersistenceError(f"memory save failed: {exc}", backend=self.name) from exc
        self._tables = {
            "contracts": [c.to_record() for c in state.contracts],
            "archive": [a.to_record() for a in state.archive],
        }
        self.saves += 1

    def records(self, table: str) -> List[Dict[str, Any]]:
        """Raw rows of ``"contracts"`` or ``"archive"``."""
        return [dict(r) for r in self._tables[table]]
