"""Movement ledger service.

The ledger is append-only: status changes always insert a new
MovementHistory row.  A container's current state is its row with the
greatest (date, id), selected with a row_number() window so the query
returns one row per container without scanning history in Python.

Status appends are compare-and-append: callers name the row they
believe is the container's latest, and the append is refused if another
row has been written since.  A batch resolves every row before adding
any, so one bad id aborts the whole batch with nothing written.
"""

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from containerops.models.empty_repo_job import EmptyRepoJob
from containerops.models.movement_history import MovementHistory
from containerops.models.shipment import Shipment
from containerops.services.transitions import (
    AVAILABLE,
    EmptyRepoContext,
    JobContext,
    ShipmentContext,
    job_context_from,
    resolve_transition,
)

logger = logging.getLogger("containerops.ledger")

# Fields an administrative correction may touch
EDITABLE_FIELDS = ("date", "remarks", "maintenance_status", "vessel_name")


# ── Queries ──────────────────────────────────────────────────

def _latest_ids(inventory_ids: Iterable[int] | None = None):
    rn = func.row_number().over(
        partition_by=MovementHistory.inventory_id,
        order_by=(MovementHistory.date.desc(), MovementHistory.id.desc()),
    ).label("rn")
    query = select(MovementHistory.id.label("id"), rn)
    if inventory_ids is not None:
        query = query.where(MovementHistory.inventory_id.in_(list(inventory_ids)))
    return query.subquery("latest_movement")


async def latest_per_container(
    db: AsyncSession,
    status: str | None = None,
) -> list[MovementHistory]:
    """Current state of every container that has ledger rows."""
    latest = _latest_ids()
    query = (
        select(MovementHistory)
        .join(latest, MovementHistory.id == latest.c.id)
        .where(latest.c.rn == 1)
        .order_by(MovementHistory.inventory_id)
    )
    if status:
        query = query.where(MovementHistory.status == status)
    result = await db.execute(query)
    return list(result.scalars().all())


async def latest_for_inventories(
    db: AsyncSession,
    inventory_ids: Iterable[int],
) -> dict[int, MovementHistory]:
    ids = list(inventory_ids)
    if not ids:
        return {}
    latest = _latest_ids(ids)
    result = await db.execute(
        select(MovementHistory)
        .join(latest, MovementHistory.id == latest.c.id)
        .where(latest.c.rn == 1)
    )
    return {row.inventory_id: row for row in result.scalars().all()}


async def latest_for_inventory(db: AsyncSession, inventory_id: int) -> MovementHistory | None:
    result = await db.execute(
        select(MovementHistory)
        .where(MovementHistory.inventory_id == inventory_id)
        .order_by(MovementHistory.date.desc(), MovementHistory.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def history_for_inventory(db: AsyncSession, inventory_id: int) -> list[MovementHistory]:
    """Full history of one container, oldest first."""
    result = await db.execute(
        select(MovementHistory)
        .where(MovementHistory.inventory_id == inventory_id)
        .order_by(MovementHistory.date, MovementHistory.id)
    )
    return list(result.scalars().all())


async def history_except(db: AsyncSession, status: str = AVAILABLE) -> list[MovementHistory]:
    """Every ledger row whose status is not ``status``, newest first."""
    result = await db.execute(
        select(MovementHistory)
        .where(MovementHistory.status != status)
        .order_by(MovementHistory.date.desc(), MovementHistory.id.desc())
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    status: str | None = None,
    inventory_id: int | None = None,
) -> tuple[list[MovementHistory], int]:
    base = select(MovementHistory)
    if status:
        base = base.where(MovementHistory.status == status)
    if inventory_id:
        base = base.where(MovementHistory.inventory_id == inventory_id)

    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
    result = await db.execute(
        base.order_by(MovementHistory.date.desc(), MovementHistory.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def get_movement(db: AsyncSession, movement_id: int) -> MovementHistory:
    row = await db.get(MovementHistory, movement_id)
    if not row:
        raise ResourceNotFoundError("Movement history", movement_id)
    return row


async def update_movement(db: AsyncSession, movement_id: int, changes: dict) -> MovementHistory:
    """Administrative correction.  Status and location are never editable."""
    row = await get_movement(db, movement_id)
    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(row, field, changes[field])
    await db.flush()
    return row


# ── Job lookups ──────────────────────────────────────────────

async def find_job_by_number(db: AsyncSession, job_number: str) -> Shipment | EmptyRepoJob | None:
    """Shipment first, then empty-repo job."""
    shipment = (
        await db.execute(select(Shipment).where(Shipment.job_number == job_number))
    ).scalar_one_or_none()
    if shipment:
        return shipment
    return (
        await db.execute(select(EmptyRepoJob).where(EmptyRepoJob.job_number == job_number))
    ).scalar_one_or_none()


async def job_for_row(db: AsyncSession, row: MovementHistory) -> JobContext:
    if row.shipment_id:
        return job_context_from(await db.get(Shipment, row.shipment_id))
    if row.empty_repo_job_id:
        return job_context_from(await db.get(EmptyRepoJob, row.empty_repo_job_id))
    return None


# ── Appends ──────────────────────────────────────────────────

def entry_date(previous: MovementHistory | None, requested: datetime | None = None) -> datetime:
    """Date for a row appended after ``previous``.

    Never earlier than ``previous.date``: a row dated before the current
    latest would never become the container's current state.  On a tie
    the higher id wins.
    """
    when = requested or datetime.utcnow()
    if previous is not None and previous.date and previous.date > when:
        return previous.date
    return when


def append_row(
    db: AsyncSession,
    inventory_id: int,
    status: str,
    date: datetime | None = None,
    port_id: int | None = None,
    address_book_id: int | None = None,
    job: JobContext = None,
    job_number: str | None = None,
    remarks: str | None = None,
    vessel_name: str | None = None,
    maintenance_status: str | None = None,
) -> MovementHistory:
    """Add one ledger row to the session.  The caller flushes."""
    row = MovementHistory(
        inventory_id=inventory_id,
        status=status,
        date=date or datetime.utcnow(),
        port_id=port_id,
        address_book_id=address_book_id,
        shipment_id=job.id if isinstance(job, ShipmentContext) else None,
        empty_repo_job_id=job.id if isinstance(job, EmptyRepoContext) else None,
        job_number=job.job_number if job is not None else job_number,
        remarks=remarks,
        vessel_name=vessel_name,
        maintenance_status=maintenance_status,
    )
    db.add(row)
    return row


async def _append_after(
    db: AsyncSession,
    previous_rows: list[MovementHistory],
    new_status: str,
    fallback_job: JobContext = None,
    port_id: int | None = None,
    address_book_id: int | None = None,
    remarks: str | None = None,
    maintenance_status: str | None = None,
    vessel_name: str | None = None,
) -> list[MovementHistory]:
    current = await latest_for_inventories(db, {row.inventory_id for row in previous_rows})

    pending = []
    for previous in previous_rows:
        latest = current.get(previous.inventory_id)
        if latest is None or latest.id != previous.id:
            raise ConflictError(
                f"Movement history {previous.id} is no longer the latest entry "
                f"for its container; reload and try again"
            )

        job = await job_for_row(db, previous) or fallback_job
        try:
            resolved = resolve_transition(
                new_status,
                previous,
                job,
                address_book_id=address_book_id,
                port_id=port_id,
                remarks=remarks,
                vessel_name=vessel_name,
            )
        except ValidationFailedError as exc:
            raise ValidationFailedError(f"Movement history {previous.id}: {exc.message}") from exc
        pending.append((previous, resolved, job))

    now = datetime.utcnow()
    rows = [
        append_row(
            db,
            inventory_id=previous.inventory_id,
            status=resolved.status,
            date=entry_date(previous, now),
            port_id=resolved.port_id,
            address_book_id=resolved.address_book_id,
            job=job,
            remarks=resolved.remarks,
            vessel_name=resolved.vessel_name,
            maintenance_status=maintenance_status,
        )
        for previous, resolved, job in pending
    ]
    await db.flush()
    for row in rows:
        await db.refresh(row, ["inventory", "port", "address_book"])
    logger.info(f"Appended {len(rows)} '{new_status}' ledger rows")
    return rows


async def _load_rows(db: AsyncSession, ids: Iterable[int]) -> list[MovementHistory]:
    rows = []
    seen = set()
    for movement_id in ids:
        if movement_id in seen:
            continue
        seen.add(movement_id)
        rows.append(await get_movement(db, movement_id))
    return rows


async def bulk_create_from_previous(
    db: AsyncSession,
    ids: Iterable[int],
    new_status: str,
    port_id: int | None = None,
    address_book_id: int | None = None,
    remarks: str | None = None,
    maintenance_status: str | None = None,
    vessel_name: str | None = None,
) -> list[MovementHistory]:
    """Append ``new_status`` after each of the given ledger rows.

    The owning job of each new row is the job of the row it follows.
    """
    previous_rows = await _load_rows(db, ids)
    return await _append_after(
        db,
        previous_rows,
        new_status,
        port_id=port_id,
        address_book_id=address_book_id,
        remarks=remarks,
        maintenance_status=maintenance_status,
        vessel_name=vessel_name,
    )


async def append_status(
    db: AsyncSession,
    ids: Iterable[int],
    new_status: str,
    job_number: str | None = None,
    port_id: int | None = None,
    address_book_id: int | None = None,
    remarks: str | None = None,
    maintenance_status: str | None = None,
    vessel_name: str | None = None,
) -> list[MovementHistory]:
    """Append ``new_status`` after each given ledger row, under ``job_number``.

    Rows keep the job of the row they follow; rows following a row with
    no job take the job named by ``job_number``.
    """
    fallback_job = None
    if job_number:
        job = await find_job_by_number(db, job_number)
        if job is None:
            raise ResourceNotFoundError("Job", job_number)
        fallback_job = job_context_from(job)

    previous_rows = await _load_rows(db, ids)
    return await _append_after(
        db,
        previous_rows,
        new_status,
        fallback_job=fallback_job,
        port_id=port_id,
        address_book_id=address_book_id,
        remarks=remarks,
        maintenance_status=maintenance_status,
        vessel_name=vessel_name,
    )


async def append_status_for_containers(
    db: AsyncSession,
    inventory_ids: Iterable[int],
    new_status: str,
    job_number: str | None = None,
    **options,
) -> list[MovementHistory]:
    """append_status() keyed by container instead of by ledger row."""
    inventory_ids = list(dict.fromkeys(inventory_ids))
    current = await latest_for_inventories(db, inventory_ids)
    missing = [i for i in inventory_ids if i not in current]
    if missing:
        raise ResourceNotFoundError("Movement history for container", missing[0])
    return await append_status(
        db,
        [current[i].id for i in inventory_ids],
        new_status,
        job_number=job_number,
        **options,
    )
