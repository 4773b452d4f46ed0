"""LeasingInfo service with the leasing guard.

A container's commercial terms freeze once its latest ledger row has
moved past ALLOTTED, and its on-hire port/depot cannot move while a
shipment or empty-repo job lists it.  Both checks run before any write.
Deleting a leasing row is not guarded.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from containerops.models.inventory import Inventory, LeasingInfo
from containerops.utils.locks import LEASING_ALL_FIELDS, get_leasing_locks

logger = logging.getLogger("containerops.leasing")

_REQUIRED_IDS = ("leasor_address_book_id", "on_hire_depot_address_book_id", "port_id")


async def guard_leasing_change(db: AsyncSession, inventory_id: int, updating_fields: set[str]) -> None:
    """Raise ConflictError if any of ``updating_fields`` is locked for the container."""
    locks = await get_leasing_locks(db, inventory_id)
    blocked = locks.check_update(updating_fields)
    if blocked:
        raise ConflictError(blocked.reason)


def validate_new_leasing(data: dict) -> None:
    if any(not data.get(name) for name in _REQUIRED_IDS):
        raise ValidationFailedError("Missing required IDs for creating leasing info.")
    if not data.get("on_hire_date"):
        raise ValidationFailedError("Missing onHireDate for creating leasing info.")


async def create_leasing(db: AsyncSession, data: dict) -> LeasingInfo:
    inventory_id = data.get("inventory_id")
    if not inventory_id:
        raise ValidationFailedError("Missing required IDs for creating leasing info.")
    validate_new_leasing(data)

    if not await db.get(Inventory, inventory_id):
        raise ResourceNotFoundError("Inventory", inventory_id)

    # A new leasing row writes every field, on-hire location included
    await guard_leasing_change(db, inventory_id, set(LEASING_ALL_FIELDS))

    leasing = LeasingInfo(
        inventory_id=inventory_id,
        **{name: data.get(name) for name in LEASING_ALL_FIELDS},
    )
    if leasing.ownership_type is None:
        leasing.ownership_type = "Lease"
    db.add(leasing)
    await db.flush()
    logger.info(f"Created leasing info {leasing.id} for inventory {inventory_id}")
    return leasing


async def list_leasing(db: AsyncSession, inventory_id: int | None = None) -> list[LeasingInfo]:
    query = select(LeasingInfo).order_by(LeasingInfo.id)
    if inventory_id:
        query = query.where(LeasingInfo.inventory_id == inventory_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_leasing(db: AsyncSession, leasing_id: int) -> LeasingInfo:
    leasing = await db.get(LeasingInfo, leasing_id)
    if not leasing:
        raise ResourceNotFoundError("Leasing info", leasing_id)
    return leasing


async def update_leasing(db: AsyncSession, leasing_id: int, changes: dict) -> LeasingInfo:
    """Apply a partial update.  ``changes`` holds only the fields the caller sent."""
    leasing = await get_leasing(db, leasing_id)
    await guard_leasing_change(db, leasing.inventory_id, set(changes))

    for field, value in changes.items():
        setattr(leasing, field, value)
    await db.flush()
    return leasing


async def delete_leasing(db: AsyncSession, leasing_id: int) -> None:
    leasing = await get_leasing(db, leasing_id)
    await db.delete(leasing)
    await db.flush()
