"""Bill management router.

Endpoints:
    GET    /api/bill-management/                        List
    POST   /api/bill-management/                        Create (invoice number generated if blank)
    GET    /api/bill-management/shipment/{shipment_id}  Bill opened for a shipment
    GET    /api/bill-management/{id}                    Detail
    PATCH  /api/bill-management/{id}                    Remarks / billing status
    PATCH  /api/bill-management/{id}/status             Billing status only
    PATCH  /api/bill-management/{id}/invoice            Invoice number and amounts
    DELETE /api/bill-management/{id}                    Delete
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.middleware.exceptions import ResourceNotFoundError
from containerops.schemas.bill import (
    BillCreate,
    BillOut,
    BillStatusUpdate,
    BillUpdate,
    InvoiceDetailsUpdate,
)
from containerops.services import billing

router = APIRouter()


@router.get("/", response_model=list[BillOut])
async def list_bills(db: AsyncSession = Depends(get_db)):
    return [BillOut.model_validate(bill) for bill in await billing.list_bills(db)]


@router.post("/", response_model=BillOut, status_code=201)
async def create_bill(body: BillCreate, db: AsyncSession = Depends(get_db)):
    return BillOut.model_validate(await billing.create_bill(db, body))


@router.get("/shipment/{shipment_id}", response_model=BillOut)
async def get_bill_for_shipment(shipment_id: int, db: AsyncSession = Depends(get_db)):
    bill = await billing.find_by_shipment(db, shipment_id)
    if not bill:
        raise ResourceNotFoundError("Bill for shipment", shipment_id)
    return BillOut.model_validate(bill)


@router.get("/{bill_id}", response_model=BillOut)
async def get_bill(bill_id: int, db: AsyncSession = Depends(get_db)):
    return BillOut.model_validate(await billing.get_bill(db, bill_id))


@router.patch("/{bill_id}", response_model=BillOut)
async def update_bill(bill_id: int, body: BillUpdate, db: AsyncSession = Depends(get_db)):
    bill = await billing.update_bill(db, bill_id, body.model_dump(exclude_unset=True))
    return BillOut.model_validate(bill)


@router.patch("/{bill_id}/status", response_model=BillOut)
async def update_billing_status(
    bill_id: int,
    body: BillStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    bill = await billing.update_billing_status(db, bill_id, body.billing_status)
    return BillOut.model_validate(bill)


@router.patch("/{bill_id}/invoice", response_model=BillOut)
async def update_invoice_details(
    bill_id: int,
    body: InvoiceDetailsUpdate,
    db: AsyncSession = Depends(get_db),
):
    return BillOut.model_validate(await billing.update_invoice_details(db, bill_id, body))


@router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bill(bill_id: int, db: AsyncSession = Depends(get_db)):
    await billing.delete_bill(db, bill_id)
