"""Pydantic schemas for BillManagement."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from containerops.schemas.validators import OptionalText, loaded_relation

BillingStatus = Literal["Pending", "Generated"]


class BillCreate(BaseModel):
    """Payload for POST /api/bill-management.  Invoice number is generated when omitted."""
    invoice_no: OptionalText = None
    invoice_amount: float = Field(0.0, ge=0)
    paid_amount: float = Field(0.0, ge=0)
    billing_status: BillingStatus | None = None
    shipment_id: int | None = None
    remarks: OptionalText = None


class BillUpdate(BaseModel):
    remarks: OptionalText = None
    billing_status: BillingStatus | None = None

    model_config = {"extra": "forbid"}


class BillStatusUpdate(BaseModel):
    billing_status: BillingStatus


class InvoiceDetailsUpdate(BaseModel):
    """Amounts are checked by the service so a bad amount is a business validation error."""
    invoice_no: OptionalText = None
    invoice_amount: float | None = None
    paid_amount: float | None = None


class BillOut(BaseModel):
    id: int
    invoice_no: str
    invoice_amount: float
    paid_amount: float
    due_amount: float
    billing_status: str
    payment_status: str
    shipment_id: int | None = None
    shipment_job_number: str | None = None
    shipment_number: str | None = None
    shipment_date: datetime | None = None
    customer_name: str | None = None
    port_details: str | None = None
    remarks: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _extract_shipment(cls, data):
        # Live bills show the shipment's current details; detached bills keep their snapshot
        if isinstance(data, dict):
            return data
        shipment = loaded_relation(data, "shipment")
        if shipment is not None:
            data.__dict__["shipment_job_number"] = shipment.job_number
        return data
