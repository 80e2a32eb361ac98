"""
retainer.store
==============

The contract store: single source of truth for active contracts and the
archive log.

Every mutation follows the same path:

1. compute a new immutable :class:`StoreState` from the current one
   (validation and look‑ups happen here, before anything changes);
2. persist it through the backend;
3. swap it in and notify subscribers.

Mutations are serialized with an :class:`asyncio.Lock`, so a second
mutation always starts from the state the first one persisted.  A
background task sweeps expired contracts into the archive on a fixed
interval; it goes through the same path.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, List, Optional, Tuple

from .clock import Clock, SystemClock
from .errors import NotFoundError, PersistenceError, ValidationError
from .lifecycle import AUTO_ARCHIVE_COMMENT, archive_contract, is_expired
from .models import ArchiveEntry, Contract, ContractInput, StoreState, validate_input
from .settings import SWEEP_INTERVAL
from .storage.base import StorageBackend

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]
Change = Tuple[Optional[StoreState], object]


def _index_of(records, id: str, kind: str) -> int:
    for i, r in enumerate(records):
        if r.id == id:
            return i
    raise NotFoundError(kind, id)


class ContractStore:
    """
    Active contracts + archive log, persisted through a backend.

    Example
    -------
    >>> async with ContractStore(MemoryBackend(), sweep_interval=None) as store:
    ...     c = await store.create(ContractInput("Doe", "Jane", ["SEO"], 1200, "monthly", "2024-01-01"))
    ...     store.list()
    (Contract(id='…', last_name='Doe', ...),)
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        clock: Optional[Clock] = None,
        sweep_interval: Optional[float] = SWEEP_INTERVAL,
        owns_backend: bool = False,
    ) -> None:
        self._backend = backend
        self._clock = clock or SystemClock()
        self._sweep_interval = sweep_interval or None
        self._owns_backend = owns_backend
        self._state = StoreState()
        self._subscribers: List[Subscriber] = []
        self._lock = asyncio.Lock()
        # nothing loaded yet: the first mutation reads the backend before saving
        self._stale = True
        self._sweeper: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------
    async def start(self) -> "ContractStore":
        """Load from the backend, sweep once, then start the sweep timer."""
        await self.refresh()
        try:
            await self.sweep_expired()
        except PersistenceError as e:
            logger.warning(f"Startup expiry sweep failed: {e}")
        if self._sweep_interval and self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep_loop(), name="retainer-expiry-sweep")
        return self

    async def close(self) -> None:
        """Stop the sweep timer (and the backend, when owned)."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        if self._owns_backend:
            await self._backend.close()

    async def __aenter__(self) -> "ContractStore":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.sweep_expired()
            except PersistenceError as e:
                logger.warning(f"Expiry sweep failed, retrying in {self._sweep_interval}s: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list(self) -> Tuple[Contract, ...]:
        """Active contracts in insertion order."""
        return self._state.contracts

    def get(self, id: str) -> Contract:
        contracts = self._state.contracts
        return contracts[_index_of(contracts, id, "contract")]

    def archive_log(self) -> Tuple[ArchiveEntry, ...]:
        """Archive entries in the order they were archived."""
        return self._state.archive

    def history_for(self, contract_id: str) -> List[ArchiveEntry]:
        return [a for a in self._state.archive if a.contract_id == contract_id]

    def snapshot(self) -> StoreState:
        return self._state

    # ------------------------------------------------------------------
    # Mutation plumbing
    # ------------------------------------------------------------------
    async def refresh(self) -> None:
        """Replace the in‑memory state with what the backend holds."""
        async with self._lock:
            await self._reload()
        self._notify()

    async def _reload(self) -> None:
        self._state = await self._backend.load()
        self._stale = False
        logger.info(
            f"Loaded {len(self._state.contracts)} active contracts and "
            f"{len(self._state.archive)} archive entries from {self._backend.name}"
        )

    async def _apply(self, change: Callable[[StoreState], Change]):
        async with self._lock:
            if self._stale:
                await self._reload()
            new_state, result = change(self._state)
            if new_state is None:
                return result
            try:
                await self._backend.save(new_state)
            except PersistenceError:
                self._stale = True
                raise
            self._state = new_state
        self._notify()
        return result

    # ------------------------------------------------------------------
    # Contract operations
    # ------------------------------------------------------------------
    async def create(self, data: ContractInput) -> Contract:
        """Validate *data*, assign an id and append the contract."""
        def change(state: StoreState) -> Change:
            contract = Contract.create(data)
            return dataclasses.replace(state, contracts=state.contracts + (contract,)), contract

        contract = await self._apply(change)
        logger.info(f"Created contract {contract.id} for {contract.display_name}")
        return contract

    async def update(self, contract: Contract) -> Contract:
        """Replace the stored contract that has ``contract.id``."""
        def change(state: StoreState) -> Change:
            i = _index_of(state.contracts, contract.id, "contract")
            updated = Contract(id=contract.id, **validate_input(contract))
            contracts = state.contracts[:i] + (updated,) + state.contracts[i + 1:]
            return dataclasses.replace(state, contracts=contracts), updated

        return await self._apply(change)

    async def delete(self, id: str) -> None:
        """Remove an active contract without archiving it."""
        def change(state: StoreState) -> Change:
            i = _index_of(state.contracts, id, "contract")
            return dataclasses.replace(state, contracts=state.contracts[:i] + state.contracts[i + 1:]), None

        await self._apply(change)
        logger.info(f"Deleted contract {id}")

    async def archive(self, id: str, comment: str) -> ArchiveEntry:
        """Move an active contract into the archive with a user comment."""
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError({"comment": "an archive comment is required"})

        def change(state: StoreState) -> Change:
            i = _index_of(state.contracts, id, "contract")
            entry = archive_contract(state.contracts[i], comment, self._clock.now())
            return StoreState(
                contracts=state.contracts[:i] + state.contracts[i + 1:],
                archive=state.archive + (entry,),
            ), entry

        entry = await self._apply(change)
        logger.info(f"Archived contract {id} as {entry.id}")
        return entry

    async def update_archive_comment(self, archive_id: str, comment: str) -> ArchiveEntry:
        """Change only the comment of an existing archive entry."""
        def change(state: StoreState) -> Change:
            i = _index_of(state.archive, archive_id, "archive entry")
            updated = dataclasses.replace(state.archive[i], archive_comment=comment)
            archive = state.archive[:i] + (updated,) + state.archive[i + 1:]
            return dataclasses.replace(state, archive=archive), updated

        return await self._apply(change)

    async def sweep_expired(self) -> int:
        """
        Archive every contract whose end date has begun.

        Returns the number archived; subscribers hear about it once, and
        only if that number is above zero.
        """
        def change(state: StoreState) -> Change:
            now = self._clock.now()
            expired = [c for c in state.contracts if is_expired(c, now)]
            if not expired:
                return None, 0
            entries = tuple(archive_contract(c, AUTO_ARCHIVE_COMMENT, now) for c in expired)
            gone = {c.id for c in expired}
            return StoreState(
                contracts=tuple(c for c in state.contracts if c.id not in gone),
                archive=state.archive + entries,
            ), len(entries)

        count = await self._apply(change)
        if count:
            logger.info(f"Expiry sweep archived {count} contract(s)")
        return count

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; call the returned handle to unsubscribe."""
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        self._subscribers = [s for s in self._subscribers if s != callback]

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                logger.exception(f"Subscriber {callback!r} raised during notification")
