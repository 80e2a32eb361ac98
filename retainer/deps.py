"""
retainer.deps
=============

Composition root: turns :class:`~retainer.settings.Settings` into a
wired‑up backend and store.

The store is *not* a module global; callers own its lifetime::

    async with create_store() as store:
        ...
"""

from __future__ import annotations

from typing import Optional

from .clock import Clock
from .settings import Settings, settings as default_settings
from .storage import MemoryBackend, RestBackend, SqlBackend, StorageBackend
from .store import ContractStore


def build_backend(settings: Optional[Settings] = None) -> StorageBackend:
    """Return the backend selected by ``settings.storage_backend``."""
    settings = settings or default_settings
    kind = settings.storage_backend
    if kind == "memory":
        return MemoryBackend()
    if kind == "sql":
        return SqlBackend(settings.database_url, echo=settings.database_echo)
    if kind == "rest":
        if settings.rest_url is None:
            raise ValueError("storage_backend='rest' requires RETAINER_REST_URL")
        return RestBackend(
            str(settings.rest_url),
            settings.rest_api_key,
            contracts_table=settings.contracts_table,
            archive_table=settings.archive_table,
            timeout=settings.rest_timeout,
        )
    raise ValueError(f"unknown storage backend {kind!r}")


def create_store(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> ContractStore:
    """Build an unstarted store that owns its backend."""
    settings = settings or default_settings
    return ContractStore(
        build_backend(settings),
        clock=clock,
        sweep_interval=settings.sweep_interval_seconds,
        owns_backend=True,
    )
