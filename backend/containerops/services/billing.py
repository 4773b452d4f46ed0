"""Bill management service.

Payment status is derived from the amounts, never set directly:
    paid == 0           → Unpaid
    paid >= invoice     → Paid
    otherwise           → Partial
Setting a non-blank invoice number marks the bill Generated.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ResourceNotFoundError, ValidationFailedError
from containerops.models.bill_management import BillManagement
from containerops.models.shipment import Shipment
from containerops.schemas.bill import BillCreate, InvoiceDetailsUpdate
from containerops.utils.numbering import generate_invoice_number

logger = logging.getLogger("containerops.billing")


def payment_status_for(invoice_amount: float, paid_amount: float) -> str:
    if paid_amount == 0:
        return "Unpaid"
    if paid_amount >= invoice_amount:
        return "Paid"
    return "Partial"


async def get_bill(db: AsyncSession, bill_id: int) -> BillManagement:
    bill = await db.get(BillManagement, bill_id)
    if not bill:
        raise ResourceNotFoundError("Bill management record", bill_id)
    return bill


async def list_bills(db: AsyncSession) -> list[BillManagement]:
    result = await db.execute(
        select(BillManagement).order_by(BillManagement.created_at.desc(), BillManagement.id.desc())
    )
    return list(result.scalars().all())


async def find_by_shipment(db: AsyncSession, shipment_id: int) -> BillManagement | None:
    result = await db.execute(
        select(BillManagement)
        .where(BillManagement.shipment_id == shipment_id)
        .order_by(BillManagement.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def create_bill(db: AsyncSession, body: BillCreate) -> BillManagement:
    if body.paid_amount > body.invoice_amount:
        raise ValidationFailedError("Paid amount cannot be greater than invoice amount")
    if body.shipment_id and not await db.get(Shipment, body.shipment_id):
        raise ResourceNotFoundError("Shipment", body.shipment_id)

    invoice_no = body.invoice_no or await generate_invoice_number(db)
    bill = BillManagement(
        invoice_no=invoice_no,
        invoice_amount=body.invoice_amount,
        paid_amount=body.paid_amount,
        due_amount=body.invoice_amount - body.paid_amount,
        billing_status=body.billing_status or "Pending",
        payment_status=payment_status_for(body.invoice_amount, body.paid_amount),
        shipment_id=body.shipment_id,
        remarks=body.remarks,
    )
    db.add(bill)
    await db.flush()
    await db.refresh(bill, ["shipment"])
    logger.info(f"Created bill {invoice_no}")
    return bill


async def update_bill(db: AsyncSession, bill_id: int, changes: dict) -> BillManagement:
    bill = await get_bill(db, bill_id)
    for field, value in changes.items():
        setattr(bill, field, value)
    await db.flush()
    return bill


async def update_billing_status(db: AsyncSession, bill_id: int, billing_status: str) -> BillManagement:
    return await update_bill(db, bill_id, {"billing_status": billing_status})


async def update_invoice_details(
    db: AsyncSession,
    bill_id: int,
    body: InvoiceDetailsUpdate,
) -> BillManagement:
    bill = await get_bill(db, bill_id)

    if body.invoice_amount is not None and body.invoice_amount < 0:
        raise ValidationFailedError("Invoice amount cannot be negative")
    if body.paid_amount is not None and body.paid_amount < 0:
        raise ValidationFailedError("Paid amount cannot be negative")

    invoice_amount = body.invoice_amount if body.invoice_amount is not None else bill.invoice_amount
    paid_amount = body.paid_amount if body.paid_amount is not None else bill.paid_amount
    if paid_amount > invoice_amount:
        raise ValidationFailedError("Paid amount cannot be greater than invoice amount")

    if body.invoice_no:
        bill.invoice_no = body.invoice_no
        bill.billing_status = "Generated"
    bill.invoice_amount = invoice_amount
    bill.paid_amount = paid_amount
    bill.due_amount = invoice_amount - paid_amount
    bill.payment_status = payment_status_for(invoice_amount, paid_amount)

    await db.flush()
    return bill


async def delete_bill(db: AsyncSession, bill_id: int) -> None:
    bill = await get_bill(db, bill_id)
    await db.delete(bill)
    await db.flush()
