"""Pydantic schemas for the movement ledger."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from containerops.schemas.validators import LenientDate, OptionalText, loaded_relation


# ── Status change requests ───────────────────────────────────

class BulkCreateRequest(BaseModel):
    """Payload for POST /api/movement-history/bulk-create.

    ``ids`` are the ledger rows each new row follows; each must still be
    its container's latest row.
    """
    ids: list[int] = Field(..., min_length=1)
    new_status: str = Field(..., min_length=1)
    port_id: int | None = None
    address_book_id: int | None = None
    remarks: OptionalText = None
    maintenance_status: OptionalText = None
    vessel_name: OptionalText = None


class BulkUpdateRequest(BulkCreateRequest):
    """Payload for POST /api/movement-history/bulk-update."""
    job_number: OptionalText = None


class MovementUpdate(BaseModel):
    """Administrative correction.  Status and location are not editable."""
    date: LenientDate = None
    remarks: OptionalText = None
    maintenance_status: OptionalText = None
    vessel_name: OptionalText = None

    model_config = {"extra": "forbid"}


# ── Response ─────────────────────────────────────────────────

class MovementOut(BaseModel):
    id: int
    inventory_id: int
    container_number: str | None = None
    status: str
    date: datetime
    maintenance_status: str | None = None
    port_id: int | None = None
    port_code: str | None = None
    address_book_id: int | None = None
    address_book_name: str | None = None
    shipment_id: int | None = None
    empty_repo_job_id: int | None = None
    job_number: str | None = None
    remarks: str | None = None
    vessel_name: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def _extract_relations(cls, data):
        if isinstance(data, dict):
            return data
        inventory = loaded_relation(data, "inventory")
        if inventory is not None:
            data.__dict__["container_number"] = inventory.container_number
        port = loaded_relation(data, "port")
        if port is not None:
            data.__dict__["port_code"] = port.port_code
        address_book = loaded_relation(data, "address_book")
        if address_book is not None:
            data.__dict__["address_book_name"] = address_book.company_name
        return data
