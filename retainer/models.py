"""
retainer.models
===============

Dataclasses and enums describing a service contract and its archived
form.  A record is always in exactly one :class:`ContractState`:

* :class:`Contract`      – ACTIVE, lives in the store's active list
* :class:`ArchiveEntry`  – ARCHIVED, a frozen snapshot of the contract
  plus the archival timestamp and comment

Both serialize to flat camelCase records (``lastName``, ``startDate`` …)
so any backend that can persist a list of key/value rows can hold them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum, auto
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .errors import ValidationError

CENT = Decimal("0.01")
# largest amount a NUMERIC(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


class ServiceType(str, Enum):
    """Service categories a contract can cover."""
    SEO = "SEO"
    WEB_DEVELOPMENT = "Web Development"
    WEB_DEVELOPMENT_MAINTENANCE = "Web Development Maintenance"
    WEBSITE_MAINTENANCE = "Website Maintenance"
    WEBSITE_CREATION = "Website Creation"

    @classmethod
    def _missing_(cls, value: object):
        # accept member names and case‑insensitive values ("seo", "WEBSITE_CREATION")
        if isinstance(value, str):
            needle = value.strip().lower()
            for member in cls:
                if needle in (member.value.lower(), member.name.lower()):
                    return member
        return None

    def __str__(self) -> str:
        return self.value


class BillingFrequency(str, Enum):
    """How often ``Contract.amount`` is billed."""
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            needle = value.strip().lower()
            for member in cls:
                if needle in (member.value, member.name.lower()):
                    return member
        return None

    def __str__(self) -> str:
        return self.value


class ContractState(Enum):
    """Life‑cycle states of a contract record."""
    ACTIVE = auto()
    ARCHIVED = auto()

    def __str__(self) -> str:
        return self.name


# ---------------------------------------------------------------------
# Input + validation
# ---------------------------------------------------------------------
@dataclass
class ContractInput:
    """
    Unvalidated contract data, as collected by a form.

    Field values may be loosely typed (``"2024-01-01"`` for a date,
    ``"1200.50"`` for an amount, ``"seo"`` for a service type);
    :func:`validate_input` coerces them or reports what is wrong.
    """
    last_name: Any = ""
    first_name: Any = ""
    service_types: Any = ()
    amount: Any = None
    billing_frequency: Any = None
    start_date: Any = None
    end_date: Any = None
    company: Any = None
    comment: Any = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ContractInput":
        """Build from a camelCase record (ids are ignored)."""
        return cls(
            last_name=record.get("lastName", ""),
            first_name=record.get("firstName", ""),
            service_types=record.get("serviceTypes", ()),
            amount=record.get("amount"),
            billing_frequency=record.get("billingFrequency"),
            start_date=record.get("startDate"),
            end_date=record.get("endDate"),
            company=record.get("company"),
            comment=record.get("comment"),
        )


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"expected a date, got {type(value).__name__}")


def _as_amount(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise TypeError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise TypeError(f"{value!r} is not a number") from None
    if not amount.is_finite():
        raise TypeError(f"{value!r} is not a finite number")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _as_service_types(value: Any) -> Tuple[Tuple[ServiceType, ...], list]:
    if value is None:
        value = ()
    elif isinstance(value, str):
        value = (value,)
    kept: list[ServiceType] = []
    unknown: list = []
    for raw in value:
        try:
            st = ServiceType(raw)
        except ValueError:
            unknown.append(raw)
            continue
        if st not in kept:
            kept.append(st)
    return tuple(kept), unknown


def validate_input(data: Union[ContractInput, "Contract"]) -> Dict[str, Any]:
    """
    Check and normalize every user‑editable contract field.

    Returns the keyword arguments for :class:`Contract` (minus ``id``).
    Raises :class:`~retainer.errors.ValidationError` naming every bad
    field at once.
    """
    errors: Dict[str, str] = {}
    out: Dict[str, Any] = {}

    for name in ("last_name", "first_name"):
        out[name] = _text(getattr(data, name))
        if not out[name]:
            errors[name] = "required"

    service_types, unknown = _as_service_types(data.service_types)
    if unknown:
        errors["service_types"] = f"unknown service type(s): {', '.join(map(str, unknown))}"
    elif not service_types:
        errors["service_types"] = "at least one service type is required"
    out["service_types"] = service_types

    try:
        out["amount"] = _as_amount(data.amount)
        if out["amount"] < 0:
            errors["amount"] = "must not be negative"
        elif out["amount"] > MAX_AMOUNT:
            errors["amount"] = f"must not exceed {MAX_AMOUNT}"
    except TypeError as exc:
        errors["amount"] = str(exc)

    try:
        out["billing_frequency"] = BillingFrequency(data.billing_frequency)
    except ValueError:
        errors["billing_frequency"] = f"must be one of {[f.value for f in BillingFrequency]}"

    if data.start_date in (None, ""):
        errors["start_date"] = "required"
    else:
        try:
            out["start_date"] = _as_date(data.start_date)
        except (TypeError, ValueError) as exc:
            errors["start_date"] = str(exc)

    out["end_date"] = None
    if data.end_date not in (None, ""):
        try:
            out["end_date"] = _as_date(data.end_date)
        except (TypeError, ValueError) as exc:
            errors["end_date"] = str(exc)
        else:
            start = out.get("start_date")
            if start is not None and out["end_date"] < start:
                errors["end_date"] = "must not be before start_date"

    out["company"] = _optional_text(data.company)
    out["comment"] = _optional_text(data.comment)

    if errors:
        raise ValidationError(errors)
    return out


def new_id() -> str:
    """Opaque unique identifier for contracts and archive entries."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Contract:
    """
    An active service contract.

    Parameters
    ----------
    id : str
        Opaque identifier assigned by the store, never changes.
    last_name, first_name : str
        Client contact, both required.
    service_types : tuple[ServiceType, ...]
        One or more categories, display order preserved.
    amount : Decimal
        Non‑negative amount per billing period.
    billing_frequency : BillingFrequency
        ``MONTHLY`` or ``ANNUAL``.
    start_date : datetime.date
        Contract effective start.
    end_date : datetime.date | None
        Last day of the contract; ``None`` means open‑ended.
    company, comment : str | None
        Optional free text.
    """
    id: str
    last_name: str
    first_name: str
    service_types: Tuple[ServiceType, ...]
    amount: Decimal
    billing_frequency: BillingFrequency
    start_date: date
    end_date: Optional[date] = None
    company: Optional[str] = None
    comment: Optional[str] = None

    state = ContractState.ACTIVE

    @classmethod
    def create(cls, data: ContractInput, id: Optional[str] = None) -> "Contract":
        """Validate *data* and build a contract with a fresh id."""
        return cls(id=id or new_id(), **validate_input(data))

    @property
    def monthly_equivalent(self) -> Decimal:
        """Amount normalized to one month (annual amounts divided by 12)."""
        if self.billing_frequency is BillingFrequency.ANNUAL:
            return self.amount / 12
        return self.amount

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_active_between(self, first_day: date, last_day: date) -> bool:
        """True if ``[start_date, end_date]`` overlaps ``[first_day, last_day]``."""
        return self.start_date <= last_day and (
            self.end_date is None or self.end_date >= first_day
        )

    # Serialization ---------------------------------------------------
    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lastName": self.last_name,
            "firstName": self.first_name,
            "company": self.company,
            "serviceTypes": [st.value for st in self.service_types],
            "amount": float(self.amount),
            "billingFrequency": self.billing_frequency.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat() if self.end_date else None,
            "comment": self.comment,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Contract":
        return cls.create(ContractInput.from_record(record), id=record["id"])


def _as_timestamp(value: Any) -> datetime:
    ts = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class ArchiveEntry:
    """
    A contract that has left the active set.

    ``contract`` is the snapshot taken at archive time; ``contract_id``
    points back at the originating contract.  ``archive_comment`` is
    separate from the contract's own ``comment`` and stays editable.
    """
    id: str
    contract: Contract
    archived_at: datetime
    archive_comment: str = field(default="")

    state = ContractState.ARCHIVED

    @property
    def contract_id(self) -> str:
        return self.contract.id

    def to_record(self) -> Dict[str, Any]:
        record = self.contract.to_record()
        record.update(
            id=self.id,
            contractId=self.contract.id,
            archivedAt=self.archived_at.isoformat(),
            archiveComment=self.archive_comment,
        )
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ArchiveEntry":
        snapshot = Contract.create(ContractInput.from_record(record), id=record["contractId"])
        return cls(
            id=record["id"],
            contract=snapshot,
            archived_at=_as_timestamp(record["archivedAt"]),
            archive_comment=record.get("archiveComment") or "",
        )


Record = Union[Contract, ArchiveEntry]


@dataclass(frozen=True)
class StoreState:
    """Immutable snapshot of everything the store persists."""
    contracts: Tuple[Contract, ...] = ()
    archive: Tuple[ArchiveEntry, ...] = ()

    @classmethod
    def of(cls, contracts: Iterable[Contract] = (), archive: Iterable[ArchiveEntry] = ()) -> "StoreState":
        return cls(tuple(contracts), tuple(archive))
