"""
tests/test_deps.py
==================

Tests for the settings‑driven composition root.
"""

import pytest

from conftest import make_input
from retainer.deps import build_backend, create_store
from retainer.settings import Settings
from retainer.storage import MemoryBackend, RestBackend, SqlBackend


def test_defaults():
    s = Settings()
    assert s.storage_backend in ("memory", "sql", "rest")
    assert Settings(sweep_interval_seconds=10).sweep_interval_seconds == 10


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("RETAINER_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("RETAINER_SWEEP_INTERVAL_SECONDS", "0")
    s = Settings()
    assert s.storage_backend == "memory"
    assert s.sweep_interval_seconds == 0


def test_build_memory_backend():
    assert isinstance(build_backend(Settings(storage_backend="memory")), MemoryBackend)


@pytest.mark.asyncio
async def test_build_sql_backend(tmp_path):
    backend = build_backend(Settings(storage_backend="sql", database_url=f"sqlite:///{tmp_path / 'x.db'}"))
    assert isinstance(backend, SqlBackend)
    await backend.close()


@pytest.mark.asyncio
async def test_build_rest_backend():
    backend = build_backend(Settings(
        storage_backend="rest",
        rest_url="https://db.example.test/rest/v1",
        rest_api_key="k",
        contracts_table="contracts",
    ))
    assert isinstance(backend, RestBackend)
    assert backend.contracts_table == "contracts"
    await backend.close()


def test_rest_backend_needs_url():
    with pytest.raises(ValueError):
        build_backend(Settings(storage_backend="rest", rest_url=None))


@pytest.mark.asyncio
async def test_create_store_without_timer(clock):
    store = create_store(Settings(storage_backend="memory", sweep_interval_seconds=0), clock=clock)
    async with store:
        await store.create(make_input())
        assert len(store.list()) == 1
        assert store._sweeper is None
