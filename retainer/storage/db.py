"""
retainer.storage.db
===================

Relational persistence via SQLModel.

This module exposes:

* ``ContractRow`` / ``ArchiveRow`` – table models mirroring
  :class:`retainer.models.Contract` and :class:`retainer.models.ArchiveEntry`
* ``make_engine(url)`` – engine factory (SQLite file by default; any
  SQLAlchemy URL such as a hosted Postgres works too)
* ``SqlBackend`` – the :class:`StorageBackend` built on those tables

Archive rows carry the originating ``contract_id`` alongside the
snapshot columns; there is no ``archive`` flag on the contracts table.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, Session, SQLModel, create_engine, select

from retainer.errors import PersistenceError
from retainer.models import ArchiveEntry, Contract, ContractInput, StoreState

from .base import RECORD_ERRORS, StorageBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
def make_engine(url: str, echo: bool = False) -> Engine:
    """Return an engine for *url*; SQLite connections may cross threads."""
    kwargs = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


# ---------------------------------------------------------------------------
# ORM models
# ---------------------------------------------------------------------------
class ContractRow(SQLModel, table=True):
    """SQL representation of an active :class:`Contract`."""

    __tablename__ = "contracts"

    id: str = Field(primary_key=True)
    position: int = Field(default=0, index=True)
    last_name: str
    first_name: str
    company: Optional[str] = None
    service_types: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    billing_frequency: str
    start_date: date
    end_date: Optional[date] = None
    comment: Optional[str] = None

    @classmethod
    def from_contract(cls, c: Contract, position: int) -> "ContractRow":
        return cls(
            id=c.id,
            position=position,
            last_name=c.last_name,
            first_name=c.first_name,
            company=c.company,
            service_types=[st.value for st in c.service_types],
            amount=c.amount,
            billing_frequency=c.billing_frequency.value,
            start_date=c.start_date,
            end_date=c.end_date,
            comment=c.comment,
        )

    def to_contract(self) -> Contract:
        return _contract(self, self.id)


class ArchiveRow(SQLModel, table=True):
    """SQL representation of an :class:`ArchiveEntry`."""

    __tablename__ = "contract_archive"

    id: str = Field(primary_key=True)
    position: int = Field(default=0, index=True)
    contract_id: str = Field(index=True)
    archived_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    archive_comment: str = ""
    last_name: str
    first_name: str
    company: Optional[str] = None
    service_types: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    billing_frequency: str
    start_date: date
    end_date: Optional[date] = None
    comment: Optional[str] = None

    @classmethod
    def from_entry(cls, a: ArchiveEntry, position: int) -> "ArchiveRow":
        c = a.contract
        return cls(
            id=a.id,
            position=position,
            contract_id=c.id,
            archived_at=a.archived_at.astimezone(timezone.utc),
            archive_comment=a.archive_comment,
            last_name=c.last_name,
            first_name=c.first_name,
            company=c.company,
            service_types=[st.value for st in c.service_types],
            amount=c.amount,
            billing_frequency=c.billing_frequency.value,
            start_date=c.start_date,
            end_date=c.end_date,
            comment=c.comment,
        )

    def to_entry(self) -> ArchiveEntry:
        archived_at = self.archived_at
        if archived_at.tzinfo is None:  # SQLite drops the offset
            archived_at = archived_at.replace(tzinfo=timezone.utc)
        return ArchiveEntry(
            id=self.id,
            contract=_contract(self, self.contract_id),
            archived_at=archived_at,
            archive_comment=self.archive_comment,
        )


def _contract(row, contract_id: str) -> Contract:
    return Contract.create(
        ContractInput(
            last_name=row.last_name,
            first_name=row.first_name,
            service_types=row.service_types,
            amount=row.amount,
            billing_frequency=row.billing_frequency,
            start_date=row.start_date,
            end_date=row.end_date,
            company=row.company,
            comment=row.comment,
        ),
        id=contract_id,
    )


def _sync_table(s: Session, model, rows: Iterable[SQLModel]) -> None:
    """Upsert *rows* and delete every other row of *model*."""
    keep = []
    for row in rows:
        s.merge(row)
        keep.append(row.id)
    for stale in s.exec(select(model).where(model.id.not_in(keep))).all():
        s.delete(stale)


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------
class SqlBackend(StorageBackend):
    """
    SQLModel‑backed store.

    Blocking session work runs in a worker thread so the event loop stays
    responsive while the database is busy.
    """

    name = "sql"

    def __init__(self, url: str, *, echo: bool = False, engine: Optional[Engine] = None) -> None:
        self.engine = engine or make_engine(url, echo=echo)
        self.create_all()

    def create_all(self) -> None:
        """Create the contract tables (safe if they already exist)."""
        SQLModel.metadata.create_all(
            self.engine, tables=[ContractRow.__table__, ArchiveRow.__table__]
        )

    # ------------------------------------------------------------------ sync
    def _load_sync(self) -> StoreState:
        with Session(self.engine) as s:
            contracts = s.exec(select(ContractRow).order_by(ContractRow.position)).all()
            archive = s.exec(select(ArchiveRow).order_by(ArchiveRow.position)).all()
            return StoreState.of(
                (row.to_contract() for row in contracts),
                (row.to_entry() for row in archive),
            )

    def _save_sync(self, state: StoreState) -> None:
        with Session(self.engine) as s:
            _sync_table(s, ContractRow, (ContractRow.from_contract(c, i) for i, c in enumerate(state.contracts)))
            _sync_table(s, ArchiveRow, (ArchiveRow.from_entry(a, i) for i, a in enumerate(state.archive)))
            s.commit()

    # ----------------------------------------------------------------- async
    async def load(self) -> StoreState:
        try:
            return await asyncio.to_thread(self._load_sync)
        except SQLAlchemyError as e:
            logger.error(f"Error loading contracts from database: {e}")
            raise PersistenceError(f"database read failed: {e}", backend=self.name) from e
        except RECORD_ERRORS as e:
            logger.error(f"Malformed row in database: {e!r}")
            raise PersistenceError(f"database read returned a malformed row: {e!r}", backend=self.name) from e

    async def save(self, state: StoreState) -> None:
        try:
            await asyncio.to_thread(self._save_sync, state)
        except SQLAlchemyError as e:
            logger.error(f"Error saving contracts to database: {e}")
            raise PersistenceError(f"database write failed: {e}", backend=self.name) from e

    async def close(self) -> None:
        self.engine.dispose()
