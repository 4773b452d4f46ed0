"""Pydantic schemas for LeasingInfo CRUD operations."""

from datetime import datetime

from pydantic import BaseModel

from containerops.schemas.validators import LenientDate, OptionalText


class LeasingInfoFields(BaseModel):
    ownership_type: OptionalText = None  # "Own" | "Lease"
    leasing_ref_no: OptionalText = None
    leasor_address_book_id: int | None = None
    lease_rent_per_day: OptionalText = None
    port_id: int | None = None
    on_hire_depot_address_book_id: int | None = None
    on_hire_date: LenientDate = None
    off_hire_date: LenientDate = None
    remarks: OptionalText = None


# ── Create ───────────────────────────────────────────────────

class LeasingInfoCreate(LeasingInfoFields):
    """Payload for POST /api/leasing-info.

    Leasor, on-hire port, on-hire depot and on-hire date are required;
    they are checked by the service so a missing id is reported as a
    business validation error rather than a schema error.
    """
    inventory_id: int | None = None


# ── Update ───────────────────────────────────────────────────

class LeasingInfoUpdate(LeasingInfoFields):
    """Partial update.  Only fields present in the payload are applied."""
    model_config = {"extra": "forbid"}


# ── Response ─────────────────────────────────────────────────

class LeasingInfoOut(BaseModel):
    id: int
    inventory_id: int
    ownership_type: str | None = None
    leasing_ref_no: str | None = None
    leasor_address_book_id: int | None = None
    lease_rent_per_day: str | None = None
    port_id: int | None = None
    on_hire_depot_address_book_id: int | None = None
    on_hire_date: datetime | None = None
    off_hire_date: datetime | None = None
    remarks: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
