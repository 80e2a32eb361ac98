"""
tests/test_lifecycle.py
=======================

Unit tests for retainer.lifecycle
"""

from datetime import datetime, timezone

import pytest

from conftest import NOW, make_input
from retainer.errors import ValidationError
from retainer.lifecycle import AUTO_ARCHIVE_COMMENT, RULES, archive_contract, is_expired
from retainer.models import Contract, ContractState


def test_open_ended_never_expires():
    c = Contract.create(make_input())
    assert not is_expired(c, datetime(2099, 1, 1, tzinfo=timezone.utc))


def test_expires_once_end_date_begins():
    c = Contract.create(make_input(end_date="2024-06-30"))
    assert not is_expired(c, datetime(2024, 6, 29, 23, 59, tzinfo=timezone.utc))
    assert not is_expired(c, datetime(2024, 6, 30, tzinfo=timezone.utc))
    assert is_expired(c, datetime(2024, 6, 30, 0, 0, 1, tzinfo=timezone.utc))
    assert is_expired(c, datetime(2024, 7, 1, tzinfo=timezone.utc))


def test_naive_now_is_read_as_utc():
    c = Contract.create(make_input(end_date="2024-06-30"))
    assert is_expired(c, datetime(2024, 6, 30, 12))


def test_archive_builds_entry():
    c = Contract.create(make_input())
    entry = archive_contract(c, "client churned", NOW)
    assert entry.contract is c
    assert entry.contract_id == c.id
    assert entry.id != c.id
    assert entry.archived_at == NOW
    assert entry.archive_comment == "client churned"
    assert entry.state is ContractState.ARCHIVED


def test_archived_record_cannot_be_archived_again():
    entry = archive_contract(Contract.create(make_input()), AUTO_ARCHIVE_COMMENT, NOW)
    with pytest.raises(ValidationError):
        archive_contract(entry, "again", NOW)


def test_archived_is_terminal():
    assert RULES[ContractState.ARCHIVED] == set()
