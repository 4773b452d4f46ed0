"""Container inventory router.

Endpoints:
    GET    /api/inventory/                      List (paginated, search by number)
    POST   /api/inventory/                      Create with nested leasing rows
    POST   /api/inventory/bulk-edit-status      Edit/delete eligibility for many ids
    GET    /api/inventory/{id}                  Detail
    GET    /api/inventory/{id}/can-edit         Edit eligibility
    GET    /api/inventory/{id}/can-delete       Delete eligibility
    PATCH  /api/inventory/{id}                  Update (lock-guarded)
    DELETE /api/inventory/{id}                  Delete (eligibility-guarded)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.common import DeleteCheck, EditCheck, PaginatedResponse
from containerops.schemas.inventory import (
    BulkEditStatusItem,
    BulkEditStatusRequest,
    InventoryCreate,
    InventoryOut,
    InventoryUpdate,
)
from containerops.services import inventory as inventory_service
from containerops.utils.cache import invalidate_cache

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[InventoryOut])
async def list_inventory(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    items, total = await inventory_service.list_inventory(
        db, limit=limit, offset=offset, search=search
    )
    return PaginatedResponse(
        items=[InventoryOut.model_validate(i) for i in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("/", response_model=InventoryOut, status_code=201)
async def create_inventory(body: InventoryCreate, db: AsyncSession = Depends(get_db)):
    inventory = await inventory_service.create_inventory(db, body)
    await invalidate_cache("dashboard:*")
    return InventoryOut.model_validate(inventory)


@router.post("/bulk-edit-status", response_model=list[BulkEditStatusItem])
async def bulk_edit_status(body: BulkEditStatusRequest, db: AsyncSession = Depends(get_db)):
    return await inventory_service.bulk_edit_status(db, body.container_ids)


@router.get("/{inventory_id}", response_model=InventoryOut)
async def get_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)):
    return InventoryOut.model_validate(await inventory_service.get_inventory(db, inventory_id))


@router.get("/{inventory_id}/can-edit", response_model=EditCheck)
async def can_edit(inventory_id: int, db: AsyncSession = Depends(get_db)):
    return await inventory_service.can_edit_container(db, inventory_id)


@router.get("/{inventory_id}/can-delete", response_model=DeleteCheck)
async def can_delete(inventory_id: int, db: AsyncSession = Depends(get_db)):
    return await inventory_service.can_delete_container(db, inventory_id)


@router.patch("/{inventory_id}", response_model=InventoryOut)
async def update_inventory(
    inventory_id: int,
    body: InventoryUpdate,
    db: AsyncSession = Depends(get_db),
):
    inventory = await inventory_service.update_inventory(db, inventory_id, body)
    return InventoryOut.model_validate(inventory)


@router.delete("/{inventory_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory(inventory_id: int, db: AsyncSession = Depends(get_db)):
    await inventory_service.delete_inventory(db, inventory_id)
    await invalidate_cache("dashboard:*")
