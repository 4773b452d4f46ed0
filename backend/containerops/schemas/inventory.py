"""Pydantic schemas for container inventory."""

from datetime import datetime

from pydantic import BaseModel, Field

from containerops.schemas.common import EditCheck
from containerops.schemas.leasing import LeasingInfoFields, LeasingInfoOut
from containerops.schemas.validators import LenientDate, OptionalText


class InventoryFields(BaseModel):
    container_category: OptionalText = None
    container_type: OptionalText = None
    container_size: OptionalText = None
    container_class: OptionalText = None
    container_capacity: OptionalText = None
    capacity_unit: OptionalText = None
    manufacturer: OptionalText = None
    build_year: OptionalText = None
    gross_weight: OptionalText = None
    tare_weight: OptionalText = None
    initial_survey_date: LenientDate = None


# ── Create ───────────────────────────────────────────────────

class InventoryCreate(InventoryFields):
    """Payload for POST /api/inventory.

    When the first leasing entry names both an on-hire port and depot,
    the container is placed in service with an AVAILABLE ledger row.
    """
    container_number: str = Field(..., min_length=1, max_length=50)
    leasing_info: list[LeasingInfoFields] = []


# ── Update ───────────────────────────────────────────────────

class LeasingInfoPatch(LeasingInfoFields):
    """Nested leasing entry on inventory update: with ``id`` it edits, without it adds."""
    id: int | None = None


class InventoryUpdate(InventoryFields):
    container_number: OptionalText = None
    leasing_info: list[LeasingInfoPatch] | None = None

    model_config = {"extra": "forbid"}


class BulkEditStatusRequest(BaseModel):
    container_ids: list[int] = Field(..., min_length=1)


# ── Response ─────────────────────────────────────────────────

class InventoryOut(BaseModel):
    id: int
    container_number: str
    container_category: str | None = None
    container_type: str | None = None
    container_size: str | None = None
    container_class: str | None = None
    container_capacity: str | None = None
    capacity_unit: str | None = None
    manufacturer: str | None = None
    build_year: str | None = None
    gross_weight: str | None = None
    tare_weight: str | None = None
    initial_survey_date: datetime | None = None
    created_at: datetime | None = None
    leasing_info: list[LeasingInfoOut] = []

    model_config = {"from_attributes": True}


class BulkEditStatusItem(EditCheck):
    id: int
    can_delete: bool
    delete_reason: str | None = None

