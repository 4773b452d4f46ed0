"""Shipment router.

Endpoints:
    GET    /api/shipments/                                  List (paginated)
    GET    /api/shipments/next-job-number                   Preview of the next job number
    GET    /api/shipments/can-edit-inventory/{inventory_id} May the container be swapped?
    GET    /api/shipments/{id}                              Detail
    POST   /api/shipments/                                  Create (allots containers, opens bill)
    PATCH  /api/shipments/{id}                              Update (diffs the container set)
    POST   /api/shipments/{id}/cancel                       Cancel (releases containers)
    DELETE /api/shipments/{id}                              Delete (detaches bill)
    GET    /api/shipments/{id}/bl-assignments/{bl_type}     Containers grouped per BL
    PUT    /api/shipments/{id}/bl-assignments/{bl_type}     Replace BL grouping
    POST   /api/shipments/{id}/cro-generated                Record CRO issue
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.common import EditCheck, PaginatedResponse
from containerops.schemas.shipment import (
    BlAssignmentsIn,
    BlAssignmentsOut,
    BlType,
    CancelRequest,
    NextJobNumber,
    ShipmentCreate,
    ShipmentOut,
    ShipmentUpdate,
)
from containerops.services import shipments
from containerops.utils.cache import invalidate_cache

router = APIRouter()


# ── GET ──────────────────────────────────────────────────────

@router.get("/", response_model=PaginatedResponse[ShipmentOut])
async def list_shipments(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status: str | None = Query(None),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    items, total = await shipments.list_shipments(
        db, limit=limit, offset=offset, status=status, search=search
    )
    return PaginatedResponse(
        items=[ShipmentOut.model_validate(s) for s in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/next-job-number", response_model=NextJobNumber)
async def next_job_number(db: AsyncSession = Depends(get_db)):
    return NextJobNumber(job_number=await shipments.next_job_number(db))


@router.get("/can-edit-inventory/{inventory_id}", response_model=EditCheck)
async def can_edit_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)):
    return EditCheck(**await shipments.can_edit_inventory(db, inventory_id))


@router.get("/{shipment_id}", response_model=ShipmentOut)
async def get_shipment(shipment_id: int, db: AsyncSession = Depends(get_db)):
    return ShipmentOut.model_validate(await shipments.get_shipment(db, shipment_id))


# ── POST /api/shipments/ ─────────────────────────────────────

@router.post("/", response_model=ShipmentOut, status_code=201)
async def create_shipment(body: ShipmentCreate, db: AsyncSession = Depends(get_db)):
    shipment = await shipments.create_shipment(db, body)
    await invalidate_cache("dashboard:*")
    return ShipmentOut.model_validate(shipment)


# ── PATCH /api/shipments/{id} ────────────────────────────────

@router.patch("/{shipment_id}", response_model=ShipmentOut)
async def update_shipment(
    shipment_id: int,
    body: ShipmentUpdate,
    db: AsyncSession = Depends(get_db),
):
    shipment = await shipments.update_shipment(db, shipment_id, body)
    await invalidate_cache("dashboard:*")
    return ShipmentOut.model_validate(shipment)


@router.post("/{shipment_id}/cancel", response_model=ShipmentOut)
async def cancel_shipment(
    shipment_id: int,
    body: CancelRequest,
    db: AsyncSession = Depends(get_db),
):
    shipment = await shipments.cancel_shipment(db, shipment_id, body.reason)
    await invalidate_cache("dashboard:*")
    return ShipmentOut.model_validate(shipment)


# ── DELETE /api/shipments/{id} ───────────────────────────────

@router.delete("/{shipment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_shipment(shipment_id: int, db: AsyncSession = Depends(get_db)):
    await shipments.delete_shipment(db, shipment_id)
    await invalidate_cache("dashboard:*")


# ── BL assignments / CRO ─────────────────────────────────────

@router.get("/{shipment_id}/bl-assignments/{bl_type}", response_model=BlAssignmentsOut)
async def get_bl_assignments(
    shipment_id: int,
    bl_type: BlType,
    db: AsyncSession = Depends(get_db),
):
    return await shipments.get_bl_assignments(db, shipment_id, bl_type)


@router.put("/{shipment_id}/bl-assignments/{bl_type}", response_model=BlAssignmentsOut)
async def save_bl_assignments(
    shipment_id: int,
    bl_type: BlType,
    body: BlAssignmentsIn,
    db: AsyncSession = Depends(get_db),
):
    return await shipments.save_bl_assignments(db, shipment_id, bl_type, body.groups)


@router.post("/{shipment_id}/cro-generated", response_model=ShipmentOut)
async def mark_cro_generated(shipment_id: int, db: AsyncSession = Depends(get_db)):
    return ShipmentOut.model_validate(await shipments.mark_cro_generated(db, shipment_id))
