"""Reference number generation for shipments, empty-repo jobs and invoices.

Formats:
  shipment job:    {yy}/{seq:5}                   global, restarts yearly
  house BL:        RST/{POL}{POD}/{yy}/{seq:5}    per route, restarts yearly
  empty-repo job:  RST/{POL}{POD}/{yy}/ER{seq:5}  global across routes and years
  invoice:         INV-{yy}-{seq:5}               global, restarts yearly

Each sequence is held in a SequenceCounter row keyed by (kind, scope).
The row is locked for the rest of the transaction, so the number is
reserved by the same commit that inserts the entity.  The first time a
scope is used the counter is seeded from the highest number already
present in the entity table (max-scan), which keeps numbering continuous
with data loaded before the counters existed.
"""

import re
from datetime import datetime
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.config import settings
from containerops.models.bill_management import BillManagement
from containerops.models.empty_repo_job import EmptyRepoJob
from containerops.models.sequence_counter import SequenceCounter
from containerops.models.shipment import Shipment
from containerops.utils.dates import two_digit_year

SEQ_WIDTH = 5

SHIPMENT_JOB = "shipment_job"
HOUSE_BL = "house_bl"
EMPTY_REPO_JOB = "empty_repo_job"
INVOICE = "invoice"

GLOBAL_SCOPE = "*"

_ER_SUFFIX = re.compile(r"ER(\d{5})$")
_TRAILING_SEQ = re.compile(r"(\d+)$")


# ── Max-scan seeds ───────────────────────────────────────────

async def _max_suffix(
    db: AsyncSession,
    column,
    prefix: str | None,
    pattern: re.Pattern = _TRAILING_SEQ,
) -> int:
    """Highest numeric suffix among values of ``column`` starting with ``prefix``."""
    query = select(column).where(column.is_not(None))
    if prefix:
        query = query.where(column.like(f"{prefix}%"))
    result = await db.execute(query)

    highest = 0
    for (value,) in result.all():
        match = pattern.search(value or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


# ── Counter core ─────────────────────────────────────────────

async def _load_counter(
    db: AsyncSession,
    kind: str,
    scope: str,
    seed: Callable[[], Awaitable[int]],
) -> SequenceCounter:
    result = await db.execute(
        select(SequenceCounter)
        .where(SequenceCounter.kind == kind, SequenceCounter.scope == scope)
        .with_for_update()
    )
    counter = result.scalar_one_or_none()
    if counter is None:
        counter = SequenceCounter(kind=kind, scope=scope, last_value=await seed())
        db.add(counter)
        await db.flush()
    return counter


async def next_sequence(
    db: AsyncSession,
    kind: str,
    scope: str,
    seed: Callable[[], Awaitable[int]],
) -> int:
    """Reserve and return the next value of the (kind, scope) sequence."""
    counter = await _load_counter(db, kind, scope, seed)
    counter.last_value += 1
    await db.flush()
    return counter.last_value


async def peek_sequence(
    db: AsyncSession,
    kind: str,
    scope: str,
    seed: Callable[[], Awaitable[int]],
) -> int:
    """Value the next reservation would get, without reserving it."""
    result = await db.execute(
        select(SequenceCounter.last_value).where(
            SequenceCounter.kind == kind, SequenceCounter.scope == scope
        )
    )
    current = result.scalar_one_or_none()
    if current is None:
        current = await seed()
    return current + 1


def _pad(seq: int) -> str:
    return f"{seq:0{SEQ_WIDTH}d}"


def route_prefix(pol_code: str, pod_code: str, year2: str) -> str:
    """RST/{POL}{POD}/{yy}/"""
    return f"{settings.job_number_prefix}/{pol_code}{pod_code}/{year2}/"


# ── Shipment job number ──────────────────────────────────────

def _shipment_job_seed(db: AsyncSession, year2: str):
    return lambda: _max_suffix(db, Shipment.job_number, f"{year2}/")


async def generate_shipment_job_number(db: AsyncSession, on: datetime | None = None) -> str:
    year2 = two_digit_year(on)
    seq = await next_sequence(db, SHIPMENT_JOB, year2, _shipment_job_seed(db, year2))
    return f"{year2}/{_pad(seq)}"


async def preview_shipment_job_number(db: AsyncSession, on: datetime | None = None) -> str:
    year2 = two_digit_year(on)
    seq = await peek_sequence(db, SHIPMENT_JOB, year2, _shipment_job_seed(db, year2))
    return f"{year2}/{_pad(seq)}"


# ── House BL ─────────────────────────────────────────────────

async def generate_house_bl(
    db: AsyncSession,
    pol_code: str,
    pod_code: str,
    on: datetime | None = None,
) -> str:
    year2 = two_digit_year(on)
    prefix = route_prefix(pol_code, pod_code, year2)
    seq = await next_sequence(
        db,
        HOUSE_BL,
        f"{pol_code}{pod_code}/{year2}",
        lambda: _max_suffix(db, Shipment.house_bl, prefix),
    )
    return f"{prefix}{_pad(seq)}"


# ── Empty-repo job number ────────────────────────────────────

def _empty_repo_seed(db: AsyncSession):
    # Route and year are ignored: the ER sequence is one global series
    return lambda: _max_suffix(db, EmptyRepoJob.job_number, None, _ER_SUFFIX)


async def generate_empty_repo_job_number(
    db: AsyncSession,
    pol_code: str,
    pod_code: str,
    on: datetime | None = None,
) -> str:
    seq = await next_sequence(db, EMPTY_REPO_JOB, GLOBAL_SCOPE, _empty_repo_seed(db))
    return f"{route_prefix(pol_code, pod_code, two_digit_year(on))}ER{_pad(seq)}"


async def preview_empty_repo_job_number(db: AsyncSession, on: datetime | None = None) -> str:
    seq = await peek_sequence(db, EMPTY_REPO_JOB, GLOBAL_SCOPE, _empty_repo_seed(db))
    return f"{route_prefix('[POL]', '[POD]', two_digit_year(on))}ER{_pad(seq)}"


# ── Invoice number ───────────────────────────────────────────

async def generate_invoice_number(db: AsyncSession, on: datetime | None = None) -> str:
    year2 = two_digit_year(on)
    prefix = f"{settings.invoice_prefix}-{year2}-"
    seq = await next_sequence(
        db,
        INVOICE,
        year2,
        lambda: _max_suffix(db, BillManagement.invoice_no, prefix),
    )
    return f"{prefix}{_pad(seq)}"


# ── Re-deriving the route segment on edit ────────────────────

def with_route(reference: str, pol_code: str, pod_code: str) -> str:
    """Swap the {POL}{POD} segment of an RST/... reference, keeping year and sequence.

    References that do not have the RST/{route}/{yy}/{seq} shape are
    returned unchanged.
    """
    parts = reference.split("/")
    if len(parts) != 4 or parts[0] != settings.job_number_prefix:
        return reference
    parts[1] = f"{pol_code}{pod_code}"
    return "/".join(parts)
