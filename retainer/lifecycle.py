"""
retainer.lifecycle
==================

State‑transition guard for contract records.

A contract starts ACTIVE and may move to ARCHIVED exactly once; an
archived record never returns to the active set.  :pyfunc:`archive_contract`
validates the transition and produces the :class:`ArchiveEntry`.
"""

from __future__ import annotations

from datetime import datetime, time, timezone

from .errors import ValidationError
from .models import ArchiveEntry, Contract, ContractState, Record, new_id

AUTO_ARCHIVE_COMMENT = "Auto-archived: contract expired"

# ---------------------------------------------------------------------
# Allowed transitions: source state → set[valid target states]
# ---------------------------------------------------------------------
RULES = {
    ContractState.ACTIVE:   {ContractState.ARCHIVED},
    ContractState.ARCHIVED: set(),
}


def is_expired(contract: Contract, now: datetime) -> bool:
    """
    A contract expires once the start of its end date (midnight UTC) lies
    strictly before *now*, so it is archived during its last day.
    """
    if contract.end_date is None:
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return datetime.combine(contract.end_date, time.min, tzinfo=timezone.utc) < now


def archive_contract(record: Record, comment: str, archived_at: datetime) -> ArchiveEntry:
    """
    Turn an active contract into an :class:`ArchiveEntry`.

    Examples
    --------
    >>> entry = archive_contract(contract, "client churned", now)
    >>> archive_contract(entry, "again", now)
    Traceback (most recent call last):
        ...
    retainer.errors.ValidationError: invalid contract data (state: illegal transition ARCHIVED → ARCHIVED)
    """
    current = record.state
    if ContractState.ARCHIVED not in RULES.get(current, set()):
        raise ValidationError({"state": f"illegal transition {current.name} → {ContractState.ARCHIVED.name}"})
    return ArchiveEntry(
        id=new_id(),
        contract=record,
        archived_at=archived_at,
        archive_comment=comment,
    )
