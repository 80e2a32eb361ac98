"""
retainer.stats
==============

Revenue statistics computed from a snapshot of contracts.

Everything here is a pure function of its arguments: nothing is cached,
nothing touches storage.  Callers re‑run the functions whenever the
store notifies them of a change.
"""

from __future__ import annotations

import calendar
import csv
import io
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .clock import SystemClock
from .models import CENT, ArchiveEntry, Contract, ServiceType
from .settings import settings

NARROW_NBSP = "\u202f"  # thousands separator
NBSP = "\u00a0"         # between amount and currency symbol


@dataclass(frozen=True)
class ServiceShare:
    """How many contracts include ``service_type`` and its share of all occurrences."""
    service_type: ServiceType
    count: int
    percentage: float


@dataclass(frozen=True)
class MonthlyStats:
    """Revenue and contract count for one calendar month."""
    label: str
    month_start: date
    month_end: date
    revenue: Decimal
    contract_count: int


# ---------------------------------------------------------------------
# Snapshot aggregates
# ---------------------------------------------------------------------
def monthly_revenue(contracts: Iterable[Contract]) -> Decimal:
    """Sum of every contract's amount normalized to one month."""
    return sum((c.monthly_equivalent for c in contracts), Decimal("0"))


def active_contract_count(contracts: Iterable[Contract]) -> int:
    return sum(1 for _ in contracts)


def service_type_distribution(contracts: Iterable[Contract]) -> List[ServiceShare]:
    """
    Count contracts per service type, most common first.

    Percentages are relative to the total number of (contract, service
    type) pairs, so they add up to 100 even when contracts carry several
    types.  Ties keep the order in which the types were first seen.
    """
    counts: Dict[ServiceType, int] = {}
    for c in contracts:
        for st in c.service_types:
            counts[st] = counts.get(st, 0) + 1

    total = sum(counts.values())
    if not total:
        return []
    shares = [ServiceShare(st, n, n / total * 100) for st, n in counts.items()]
    return sorted(shares, key=lambda s: s.count, reverse=True)


# ---------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------
def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the given month."""
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _archived_active_between(entry: ArchiveEntry, first_day: date, last_day: date) -> bool:
    # an archived contract stops counting on its end date or archive date, whichever is first
    c = entry.contract
    stopped = entry.archived_at.date()
    if c.end_date is not None and c.end_date < stopped:
        stopped = c.end_date
    return c.start_date <= last_day and stopped >= first_day


def monthly_history(
    contracts: Sequence[Contract],
    window_months: int = 12,
    today: Optional[date] = None,
    archive: Iterable[ArchiveEntry] = (),
) -> List[MonthlyStats]:
    """
    Revenue and contract count for the trailing *window_months* months.

    The last month is the one containing *today* (default: the current
    UTC date, the same day the store's sweeps use); results are oldest
    first.  A contract counts for a month when ``start_date <= month_end``
    and it has no end date or ``end_date >= month_start``.

    Only *contracts* are considered unless *archive* entries are passed
    as well; without them, contracts archived since are missing from past
    months.
    """
    if window_months < 0:
        raise ValueError("window_months must not be negative")
    today = today or SystemClock().today()
    archive = list(archive)

    stats: List[MonthlyStats] = []
    for back in range(window_months - 1, -1, -1):
        year, month0 = divmod(today.year * 12 + today.month - 1 - back, 12)
        first_day, last_day = month_bounds(year, month0 + 1)

        active = [c for c in contracts if c.is_active_between(first_day, last_day)]
        active += [a.contract for a in archive if _archived_active_between(a, first_day, last_day)]

        stats.append(MonthlyStats(
            label=first_day.strftime("%B %Y"),
            month_start=first_day,
            month_end=last_day,
            revenue=monthly_revenue(active),
            contract_count=len(active),
        ))
    return stats


# ---------------------------------------------------------------------
# Export / display
# ---------------------------------------------------------------------
def stats_csv(history: Iterable[MonthlyStats], distribution: Iterable[ServiceShare]) -> str:
    """Render the monthly series and the service distribution as CSV."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(["Revenue statistics"])
    w.writerow(["Month", "Monthly revenue", "Contracts"])
    for m in history:
        w.writerow([m.label, f"{m.revenue:.2f}", m.contract_count])
    w.writerow([])
    w.writerow(["Service distribution"])
    w.writerow(["Service type", "Contracts", "Percentage"])
    for s in distribution:
        w.writerow([s.service_type.value, s.count, f"{s.percentage:.2f}%"])
    return buf.getvalue()


def format_amount(amount, symbol: Optional[str] = None) -> str:
    """
    Format *amount* the way the application displays money.

    >>> format_amount(Decimal("1300"))
    '1\u202f300,00\xa0€'
    """
    symbol = settings.currency_symbol if symbol is None else symbol
    value = Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)
    digits = f"{abs(value):,.2f}".replace(",", NARROW_NBSP).replace(".", ",")
    sign = "-" if value < 0 else ""
    return f"{sign}{digits}{NBSP}{symbol}"
