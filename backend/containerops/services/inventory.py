"""Container inventory service.

Inventory rows carry no status; edit and delete eligibility is read from
the movement ledger and the job assignment tables.

Deletion eligibility:
  * no ledger rows: deletable
  * latest row still references a shipment or job: blocked
  * ALLOTTED at some point and then physically moved (picked up, gated
    in, shipped, discharged, returned): blocked for good, even when the
    container is AVAILABLE again
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ConflictError, ResourceNotFoundError
from containerops.models.empty_repo_job import RepoShipmentContainer
from containerops.models.inventory import Inventory, LeasingInfo
from containerops.models.movement_history import MovementHistory
from containerops.models.shipment import ShipmentContainer
from containerops.schemas.inventory import InventoryCreate, InventoryUpdate
from containerops.services import ledger
from containerops.services.leasing import validate_new_leasing
from containerops.services.transitions import ALLOTTED, AVAILABLE, PHYSICAL_LIFECYCLE_STATUSES
from containerops.utils.locks import LEASING_ALL_FIELDS, get_inventory_locks

logger = logging.getLogger("containerops.inventory")

ALLOCATED_REASON = "Container is currently allocated to a shipment and cannot be deleted."
LIFECYCLE_REASON = "Container has completed 1 status lifecycle and cannot be deleted."
DUPLICATE_REASON = "Container with this number already exists"


# ── Lookups ──────────────────────────────────────────────────

async def get_inventory(db: AsyncSession, inventory_id: int) -> Inventory:
    inventory = await db.get(Inventory, inventory_id)
    if not inventory:
        raise ResourceNotFoundError("Inventory", inventory_id)
    return inventory


async def list_inventory(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    search: str | None = None,
) -> tuple[list[Inventory], int]:
    base = select(Inventory)
    if search:
        base = base.where(Inventory.container_number.ilike(f"%{search}%"))

    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
    result = await db.execute(
        base.order_by(Inventory.container_number).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total


async def _ensure_unique_number(db: AsyncSession, container_number: str, exclude_id: int | None = None):
    query = select(Inventory.id).where(Inventory.container_number == container_number)
    if exclude_id:
        query = query.where(Inventory.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(DUPLICATE_REASON, error_code="DUPLICATE_CONTAINER")


# ── Create ───────────────────────────────────────────────────

async def create_inventory(db: AsyncSession, body: InventoryCreate) -> Inventory:
    container_number = body.container_number.strip().upper()
    await _ensure_unique_number(db, container_number)

    now = datetime.utcnow()
    fields = body.model_dump(exclude={"container_number", "leasing_info"})
    inventory = Inventory(container_number=container_number, **fields)
    for entry in body.leasing_info:
        data = entry.model_dump()
        data["ownership_type"] = data["ownership_type"] or "Lease"
        data["on_hire_date"] = data["on_hire_date"] or now
        inventory.leasing_info.append(LeasingInfo(**data))

    db.add(inventory)
    await db.flush()

    first = inventory.leasing_info[0] if inventory.leasing_info else None
    if first and first.port_id and first.on_hire_depot_address_book_id:
        ledger.append_row(
            db,
            inventory_id=inventory.id,
            status=AVAILABLE,
            date=first.on_hire_date,
            port_id=first.port_id,
            address_book_id=first.on_hire_depot_address_book_id,
        )
        await db.flush()

    logger.info(f"Created container {container_number} ({len(body.leasing_info)} leasing entries)")
    return inventory


# ── Update ───────────────────────────────────────────────────

async def update_inventory(db: AsyncSession, inventory_id: int, body: InventoryUpdate) -> Inventory:
    inventory = await get_inventory(db, inventory_id)
    changes = body.model_dump(exclude_unset=True)
    leasing_patches = changes.pop("leasing_info", None) or []

    updating = set(changes)
    for patch in leasing_patches:
        updating |= set(patch) - {"id"}
        if not patch.get("id"):
            # A new leasing entry writes every leasing field
            updating |= set(LEASING_ALL_FIELDS)

    locks = await get_inventory_locks(db, inventory_id)
    blocked = locks.check_update(updating)
    if blocked:
        raise ConflictError(blocked.reason)

    if changes.get("container_number"):
        changes["container_number"] = changes["container_number"].upper()
        await _ensure_unique_number(db, changes["container_number"], exclude_id=inventory_id)

    for field, value in changes.items():
        if field == "container_number" and not value:
            continue
        setattr(inventory, field, value)

    existing = {leasing.id: leasing for leasing in inventory.leasing_info}
    for patch in leasing_patches:
        leasing_id = patch.pop("id", None)
        if leasing_id:
            leasing = existing.get(leasing_id)
            if leasing is None:
                raise ResourceNotFoundError("Leasing info", leasing_id)
            for field, value in patch.items():
                setattr(leasing, field, value)
        else:
            validate_new_leasing(patch)
            patch.setdefault("ownership_type", "Lease")
            inventory.leasing_info.append(LeasingInfo(**patch))

    await db.flush()
    await db.refresh(inventory, ["leasing_info"])
    return inventory


# ── Eligibility checks ───────────────────────────────────────

async def can_edit_container(db: AsyncSession, inventory_id: int) -> dict:
    await get_inventory(db, inventory_id)
    lock = (await get_inventory_locks(db, inventory_id)).primary()
    if lock:
        return {"can_edit": False, "reason": lock.reason, "action": lock.action}
    return {"can_edit": True, "reason": None, "action": None}


def _delete_verdict(history: list[MovementHistory]) -> tuple[bool, str | None]:
    if not history:
        return True, None

    latest = history[-1]
    if latest.shipment_id or latest.empty_repo_job_id:
        return False, ALLOCATED_REASON

    statuses = {row.status for row in history}
    if ALLOTTED in statuses and statuses & PHYSICAL_LIFECYCLE_STATUSES:
        return False, LIFECYCLE_REASON
    return True, None


async def can_delete_container(db: AsyncSession, inventory_id: int) -> dict:
    history = await ledger.history_for_inventory(db, inventory_id)
    can_delete, reason = _delete_verdict(history)
    return {"can_delete": can_delete, "reason": reason}


async def bulk_edit_status(db: AsyncSession, inventory_ids: list[int]) -> list[dict]:
    """Edit and delete eligibility for several containers at once."""
    results = []
    for inventory_id in inventory_ids:
        lock = (await get_inventory_locks(db, inventory_id)).primary()
        history = await ledger.history_for_inventory(db, inventory_id)
        can_delete, delete_reason = _delete_verdict(history)
        results.append({
            "id": inventory_id,
            "can_edit": lock is None,
            "reason": lock.reason if lock else None,
            "action": lock.action if lock else None,
            "can_delete": can_delete,
            "delete_reason": delete_reason,
        })
    return results


# ── Delete ───────────────────────────────────────────────────

async def delete_inventory(db: AsyncSession, inventory_id: int) -> None:
    inventory = await get_inventory(db, inventory_id)

    verdict = await can_delete_container(db, inventory_id)
    if not verdict["can_delete"]:
        raise ConflictError(verdict["reason"])

    await db.execute(delete(MovementHistory).where(MovementHistory.inventory_id == inventory_id))
    await db.execute(delete(ShipmentContainer).where(ShipmentContainer.inventory_id == inventory_id))
    await db.execute(
        delete(RepoShipmentContainer).where(RepoShipmentContainer.inventory_id == inventory_id)
    )
    await db.delete(inventory)
    await db.flush()
    logger.info(f"Deleted container {inventory.container_number}")
