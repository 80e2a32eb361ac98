"""
tests/test_migrate.py
=====================

Unit tests for retainer.migrate.migrate
"""

import pytest

from conftest import NOW, make_input
from retainer.lifecycle import archive_contract
from retainer.migrate import migrate
from retainer.models import Contract, StoreState
from retainer.storage.memory import MemoryBackend


@pytest.mark.asyncio
async def test_copies_everything_into_empty_target():
    a = Contract.create(make_input(last_name="A"))
    b = Contract.create(make_input(last_name="B"))
    entry = archive_contract(Contract.create(make_input(last_name="Old")), "client churned", NOW)
    source, target = MemoryBackend(), MemoryBackend()
    await source.save(StoreState.of([a, b], [entry]))

    report = await migrate(source, target)

    assert (report.contracts_copied, report.archive_copied, report.skipped) == (2, 1, 0)
    assert await target.load() == StoreState.of([a, b], [entry])


@pytest.mark.asyncio
async def test_existing_records_are_skipped():
    shared = Contract.create(make_input(last_name="Shared"))
    only_target = Contract.create(make_input(last_name="Target"))
    only_source = Contract.create(make_input(last_name="Source"))
    source, target = MemoryBackend(), MemoryBackend()
    await source.save(StoreState.of([shared, only_source]))
    await target.save(StoreState.of([only_target, shared]))

    report = await migrate(source, target)

    assert (report.contracts_copied, report.skipped) == (1, 1)
    assert [c.last_name for c in (await target.load()).contracts] == ["Target", "Shared", "Source"]


@pytest.mark.asyncio
async def test_nothing_to_copy_does_not_write():
    source, target = MemoryBackend(), MemoryBackend()
    report = await migrate(source, target)
    assert report.contracts_copied == report.archive_copied == 0
    assert target.saves == 0


@pytest.mark.asyncio
async def test_contract_archived_in_target_is_not_reactivated():
    c = Contract.create(make_input(last_name="Gone"))
    source, target = MemoryBackend(), MemoryBackend()
    await source.save(StoreState.of([c]))
    await target.save(StoreState.of([], [archive_contract(c, "client churned", NOW)]))

    report = await migrate(source, target)

    assert (report.contracts_copied, report.skipped) == (0, 1)
    state = await target.load()
    assert state.contracts == ()
    assert [a.contract_id for a in state.archive] == [c.id]


@pytest.mark.asyncio
async def test_incoming_archive_entry_retires_active_target_copy():
    c = Contract.create(make_input(last_name="Gone"))
    other = Contract.create(make_input(last_name="Other"))
    source, target = MemoryBackend(), MemoryBackend()
    await source.save(StoreState.of([c], [archive_contract(c, "client churned", NOW)]))
    await target.save(StoreState.of([c, other]))

    report = await migrate(source, target)

    assert (report.archive_copied, report.retired, report.skipped) == (1, 1, 1)
    state = await target.load()
    assert state.contracts == (other,)
    assert {a.contract_id for a in state.archive} == {c.id}
