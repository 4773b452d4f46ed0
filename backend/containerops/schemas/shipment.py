"""Pydantic schemas for Shipment CRUD operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from containerops.schemas.validators import LenientDate, OptionalText, loaded_relation

BlType = Literal["draft", "original", "seaway"]


# ── Container assignment ─────────────────────────────────────

class JobContainerIn(BaseModel):
    """A container committed to a job.  Either id or number identifies it."""
    inventory_id: int | None = None
    container_number: OptionalText = None
    capacity: OptionalText = None
    tare: OptionalText = None
    port_id: int | None = None
    depot_name: OptionalText = None


class JobContainerOut(BaseModel):
    id: int
    inventory_id: int | None = None
    container_number: str | None = None
    capacity: str | None = None
    tare: str | None = None
    port_id: int | None = None
    depot_name: str | None = None

    model_config = {"from_attributes": True}


# ── Create ───────────────────────────────────────────────────

class ShipmentFields(BaseModel):
    transhipment_port_id: int | None = None

    customer_address_book_id: int | None = None
    consignee_address_book_id: int | None = None
    shipper_address_book_id: int | None = None
    carrier_address_book_id: int | None = None
    empty_return_depot_address_book_id: int | None = None
    exp_handling_agent_address_book_id: int | None = None
    imp_handling_agent_address_book_id: int | None = None

    quotation_ref_number: OptionalText = None
    ref_number: OptionalText = None
    master_bl: OptionalText = None
    shipping_term: OptionalText = None
    vessel_name: OptionalText = None
    quantity: OptionalText = None
    pol_free_days: OptionalText = None
    pod_free_days: OptionalText = None
    pol_detention_rate: OptionalText = None
    pod_detention_rate: OptionalText = None

    gs_date: LenientDate = None
    eta_to_pod: LenientDate = None
    estimate_date: LenientDate = None
    sob_date: LenientDate = None
    remark: OptionalText = None


class ShipmentCreate(ShipmentFields):
    """Payload for POST /api/shipments.

    ``date`` drives the job number year and the date of the ALLOTTED
    ledger rows; it defaults to today.
    """
    date: LenientDate = None
    pol_port_id: int
    pod_port_id: int
    containers: list[JobContainerIn] = []


# ── Update ───────────────────────────────────────────────────

class ShipmentUpdate(ShipmentFields):
    """Partial update.  Omit ``containers`` to leave the container set unchanged."""
    date: LenientDate = None
    pol_port_id: int | None = None
    pod_port_id: int | None = None
    containers: list[JobContainerIn] | None = None

    model_config = {"extra": "forbid"}


class CancelRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


# ── BL assignments ───────────────────────────────────────────

class BlAssignmentsIn(BaseModel):
    """Containers grouped per bill of lading: one list of numbers per BL."""
    groups: list[list[str]] = []


class BlAssignmentsOut(BaseModel):
    shipment_id: int
    bl_type: BlType
    groups: list[list[str]]


# ── Response ─────────────────────────────────────────────────

class NextJobNumber(BaseModel):
    job_number: str


class ShipmentOut(ShipmentFields):
    id: int
    job_number: str
    house_bl: str
    date: datetime
    pol_port_id: int
    pod_port_id: int
    pol_port_code: str | None = None
    pod_port_code: str | None = None
    customer_name: str | None = None
    status: str
    has_cro_generated: bool = False
    first_cro_generation_date: datetime | None = None
    created_at: datetime | None = None
    containers: list[JobContainerOut] = []

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _extract_relations(cls, data):
        if isinstance(data, dict):
            return data
        pol_port = loaded_relation(data, "pol_port")
        if pol_port is not None:
            data.__dict__["pol_port_code"] = pol_port.port_code
        pod_port = loaded_relation(data, "pod_port")
        if pod_port is not None:
            data.__dict__["pod_port_code"] = pod_port.port_code
        customer = loaded_relation(data, "customer")
        if customer is not None:
            data.__dict__["customer_name"] = customer.company_name
        return data
