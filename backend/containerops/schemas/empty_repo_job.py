"""Pydantic schemas for EmptyRepoJob CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, model_validator

from containerops.schemas.shipment import JobContainerIn, JobContainerOut
from containerops.schemas.validators import LenientDate, OptionalText, loaded_relation


class EmptyRepoJobFields(BaseModel):
    transhipment_port_id: int | None = None

    carrier_address_book_id: int | None = None
    empty_return_depot_address_book_id: int | None = None
    exp_handling_agent_address_book_id: int | None = None
    imp_handling_agent_address_book_id: int | None = None

    master_bl: OptionalText = None
    shipping_term: OptionalText = None
    vessel_name: OptionalText = None
    quantity: OptionalText = None

    gs_date: LenientDate = None
    eta_to_pod: LenientDate = None
    estimate_date: LenientDate = None
    sob_date: LenientDate = None
    remark: OptionalText = None


# ── Create / Update ──────────────────────────────────────────

class EmptyRepoJobCreate(EmptyRepoJobFields):
    date: LenientDate = None
    pol_port_id: int
    pod_port_id: int
    containers: list[JobContainerIn] = []


class EmptyRepoJobUpdate(EmptyRepoJobFields):
    """Partial update.  Omit ``containers`` to leave the container set unchanged."""
    date: LenientDate = None
    pol_port_id: int | None = None
    pod_port_id: int | None = None
    containers: list[JobContainerIn] | None = None

    model_config = {"extra": "forbid"}


# ── Response ─────────────────────────────────────────────────

class NextEmptyRepoJobNumber(BaseModel):
    """Preview with [POL][POD] placeholders; the route is filled in on create."""
    job_number: str
    house_bl: str


class EmptyRepoJobOut(EmptyRepoJobFields):
    id: int
    job_number: str
    house_bl: str
    date: datetime
    pol_port_id: int
    pod_port_id: int
    pol_port_code: str | None = None
    pod_port_code: str | None = None
    status: str
    has_cro_generated: bool = False
    first_cro_generation_date: datetime | None = None
    created_at: datetime | None = None
    containers: list[JobContainerOut] = []

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _extract_ports(cls, data):
        if isinstance(data, dict):
            return data
        pol_port = loaded_relation(data, "pol_port")
        if pol_port is not None:
            data.__dict__["pol_port_code"] = pol_port.port_code
        pod_port = loaded_relation(data, "pod_port")
        if pod_port is not None:
            data.__dict__["pod_port_code"] = pod_port.port_code
        return data
