"""
retainer.migrate
================

Copy contracts and archive entries from one backend into another, e.g.
from a local SQLite file to the hosted REST store.

Records the target already holds (same id) are left alone; everything
else is appended in source order and written with a single save.  A
contract archived on either side is never copied into the active set,
and an incoming archive entry retires the target's active copy of its
contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .models import StoreState
from .storage.base import StorageBackend

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    contracts_copied: int = 0
    archive_copied: int = 0
    skipped: int = 0
    retired: int = 0


async def migrate(source: StorageBackend, target: StorageBackend) -> MigrationReport:
    """Merge everything *source* holds into *target*."""
    src = await source.load()
    dst = await target.load()
    logger.info(
        f"Migrating {len(src.contracts)} contracts and {len(src.archive)} archive entries "
        f"from {source.name} to {target.name}"
    )

    report = MigrationReport()
    archive = list(dst.archive)
    known = {a.id for a in archive}
    for a in src.archive:
        if a.id in known:
            report.skipped += 1
            continue
        archive.append(a)
        known.add(a.id)
        report.archive_copied += 1
        logger.info(f"Migrated archive entry {a.id} ({a.contract.display_name})")
    archived = {a.contract_id for a in archive}

    contracts = []
    for c in dst.contracts:
        if c.id in archived:
            report.retired += 1
            logger.warning(f"Retiring contract {c.id} ({c.display_name}): it has an archive entry")
            continue
        contracts.append(c)
    known = {c.id for c in contracts}
    for c in src.contracts:
        if c.id in known or c.id in archived:
            report.skipped += 1
            reason = "archived" if c.id in archived else "already in target"
            logger.info(f"Skipping contract {c.id} ({c.display_name}): {reason}")
            continue
        contracts.append(c)
        known.add(c.id)
        report.contracts_copied += 1
        logger.info(f"Migrated contract {c.id} ({c.display_name})")

    if report.contracts_copied or report.archive_copied or report.retired:
        await target.save(StoreState.of(contracts, archive))
    logger.info(f"Migration finished: {report}")
    return report
