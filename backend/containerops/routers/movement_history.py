"""Movement ledger router.

Endpoints:
    GET   /api/movement-history/                   All rows (paginated, newest first)
    GET   /api/movement-history/latest             Current state per container
    GET   /api/movement-history/except-available   Every row that is not AVAILABLE
    GET   /api/movement-history/inventory/{id}     Full history of one container
    GET   /api/movement-history/{id}               Single row
    POST  /api/movement-history/bulk-create        Append a status after the given rows
    POST  /api/movement-history/bulk-update        Same, under a named job number
    PATCH /api/movement-history/{id}               Administrative correction
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.common import PaginatedResponse
from containerops.schemas.movement import (
    BulkCreateRequest,
    BulkUpdateRequest,
    MovementOut,
    MovementUpdate,
)
from containerops.services import ledger
from containerops.utils.cache import invalidate_cache

router = APIRouter()


# ── GET /api/movement-history/ ───────────────────────────────

@router.get("/", response_model=PaginatedResponse[MovementOut])
async def list_movements(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status: str | None = Query(None),
    inventory_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    items, total = await ledger.list_all(
        db, limit=limit, offset=offset, status=status, inventory_id=inventory_id
    )
    return PaginatedResponse(
        items=[MovementOut.model_validate(row) for row in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/latest", response_model=list[MovementOut])
async def latest_per_container(
    status: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows = await ledger.latest_per_container(db, status=status)
    return [MovementOut.model_validate(row) for row in rows]


@router.get("/except-available", response_model=list[MovementOut])
async def history_except_available(db: AsyncSession = Depends(get_db)):
    rows = await ledger.history_except(db)
    return [MovementOut.model_validate(row) for row in rows]


@router.get("/inventory/{inventory_id}", response_model=list[MovementOut])
async def history_for_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)):
    rows = await ledger.history_for_inventory(db, inventory_id)
    return [MovementOut.model_validate(row) for row in rows]


@router.get("/{movement_id}", response_model=MovementOut)
async def get_movement(movement_id: int, db: AsyncSession = Depends(get_db)):
    return MovementOut.model_validate(await ledger.get_movement(db, movement_id))


# ── POST /api/movement-history/bulk-* ────────────────────────

@router.post("/bulk-create", response_model=list[MovementOut], status_code=201)
async def bulk_create(body: BulkCreateRequest, db: AsyncSession = Depends(get_db)):
    """Append ``new_status`` after each listed row.  All rows or none."""
    rows = await ledger.bulk_create_from_previous(
        db,
        body.ids,
        body.new_status,
        port_id=body.port_id,
        address_book_id=body.address_book_id,
        remarks=body.remarks,
        maintenance_status=body.maintenance_status,
        vessel_name=body.vessel_name,
    )
    await invalidate_cache("dashboard:*")
    return [MovementOut.model_validate(row) for row in rows]


@router.post("/bulk-update", response_model=list[MovementOut], status_code=201)
async def bulk_update(body: BulkUpdateRequest, db: AsyncSession = Depends(get_db)):
    rows = await ledger.append_status(
        db,
        body.ids,
        body.new_status,
        job_number=body.job_number,
        port_id=body.port_id,
        address_book_id=body.address_book_id,
        remarks=body.remarks,
        maintenance_status=body.maintenance_status,
        vessel_name=body.vessel_name,
    )
    await invalidate_cache("dashboard:*")
    return [MovementOut.model_validate(row) for row in rows]


# ── PATCH /api/movement-history/{id} ─────────────────────────

@router.patch("/{movement_id}", response_model=MovementOut)
async def update_movement(
    movement_id: int,
    body: MovementUpdate,
    db: AsyncSession = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    if "date" in changes and changes["date"] is None:
        # Unparseable date: leave the recorded date alone
        changes.pop("date")
    row = await ledger.update_movement(db, movement_id, changes)
    await invalidate_cache("dashboard:*")
    return MovementOut.model_validate(row)
