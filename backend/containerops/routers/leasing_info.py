"""Leasing info router.

Endpoints:
    GET    /api/leasing-info/        List (optionally for one container)
    POST   /api/leasing-info/        Create
    GET    /api/leasing-info/{id}    Detail
    PATCH  /api/leasing-info/{id}    Update (refused once the container has progressed)
    DELETE /api/leasing-info/{id}    Delete
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.leasing import LeasingInfoCreate, LeasingInfoOut, LeasingInfoUpdate
from containerops.services import leasing as leasing_service

router = APIRouter()


@router.get("/", response_model=list[LeasingInfoOut])
async def list_leasing(
    inventory_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    rows = await leasing_service.list_leasing(db, inventory_id=inventory_id)
    return [LeasingInfoOut.model_validate(row) for row in rows]


@router.post("/", response_model=LeasingInfoOut, status_code=201)
async def create_leasing(body: LeasingInfoCreate, db: AsyncSession = Depends(get_db)):
    leasing = await leasing_service.create_leasing(db, body.model_dump())
    return LeasingInfoOut.model_validate(leasing)


@router.get("/{leasing_id}", response_model=LeasingInfoOut)
async def get_leasing(leasing_id: int, db: AsyncSession = Depends(get_db)):
    return LeasingInfoOut.model_validate(await leasing_service.get_leasing(db, leasing_id))


@router.patch("/{leasing_id}", response_model=LeasingInfoOut)
async def update_leasing(
    leasing_id: int,
    body: LeasingInfoUpdate,
    db: AsyncSession = Depends(get_db),
):
    leasing = await leasing_service.update_leasing(
        db, leasing_id, body.model_dump(exclude_unset=True)
    )
    return LeasingInfoOut.model_validate(leasing)


@router.delete("/{leasing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leasing(leasing_id: int, db: AsyncSession = Depends(get_db)):
    await leasing_service.delete_leasing(db, leasing_id)
