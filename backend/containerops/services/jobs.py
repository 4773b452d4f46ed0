"""Ledger side effects shared by the shipment and empty-repo job flows.

Both job kinds commit containers the same way:
  * allot     ALLOTTED row at the container's current location (or the
              job's POL when it has none), dated to the job date
  * release   AVAILABLE row at the container's last location, no job
  * return    AVAILABLE row at the container's on-hire depot, used by
              cancel and delete; containers with incomplete leasing
              data are skipped with a warning when best_effort is set

No row is dated before the container's current latest row (see
ledger.entry_date), so every append becomes the current state.
"""

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ResourceNotFoundError, ValidationFailedError
from containerops.models.inventory import Inventory, LeasingInfo
from containerops.models.port import Port
from containerops.services import ledger
from containerops.services.transitions import ALLOTTED, AVAILABLE, JobContext

logger = logging.getLogger("containerops.jobs")


# ── Input normalisation ──────────────────────────────────────

async def load_port(db: AsyncSession, port_id: int | None, label: str) -> Port:
    if not port_id:
        raise ValidationFailedError(f"{label} port is required")
    port = await db.get(Port, port_id)
    if not port:
        raise ResourceNotFoundError(f"{label} port", port_id)
    return port


async def resolve_inventory_ids(db: AsyncSession, containers: list[dict]) -> list[dict]:
    """Fill in inventory_id from container_number where the caller sent only the number."""
    for container in containers:
        if container.get("inventory_id") or not container.get("container_number"):
            continue
        inventory_id = (
            await db.execute(
                select(Inventory.id).where(
                    Inventory.container_number == container["container_number"].strip().upper()
                )
            )
        ).scalar()
        if inventory_id is None:
            logger.warning(
                f"Container {container['container_number']} is not in inventory; "
                f"no movement will be recorded for it"
            )
        container["inventory_id"] = inventory_id
    return containers


def inventory_ids_of(containers: Iterable) -> list[int]:
    ids = []
    for container in containers:
        inventory_id = (
            container.get("inventory_id") if isinstance(container, dict) else container.inventory_id
        )
        if inventory_id and inventory_id not in ids:
            ids.append(inventory_id)
    return ids


# ── Ledger side effects ──────────────────────────────────────

async def allot_containers(
    db: AsyncSession,
    job: JobContext,
    inventory_ids: list[int],
    date: datetime,
    remarks: str,
) -> None:
    current = await ledger.latest_for_inventories(db, inventory_ids)
    for inventory_id in inventory_ids:
        last = current.get(inventory_id)
        port_id = last.port_id if last and last.port_id else job.pol_port_id
        ledger.append_row(
            db,
            inventory_id=inventory_id,
            status=ALLOTTED,
            date=ledger.entry_date(last, date),
            port_id=port_id,
            address_book_id=last.address_book_id if last else None,
            job=job,
            remarks=remarks,
        )


async def release_containers(
    db: AsyncSession,
    inventory_ids: list[int],
    date: datetime,
    remarks: str,
) -> None:
    current = await ledger.latest_for_inventories(db, inventory_ids)
    for inventory_id in inventory_ids:
        last = current.get(inventory_id)
        ledger.append_row(
            db,
            inventory_id=inventory_id,
            status=AVAILABLE,
            date=ledger.entry_date(last, date),
            port_id=last.port_id if last else None,
            address_book_id=last.address_book_id if last else None,
            remarks=remarks,
        )


async def _latest_leasing(db: AsyncSession, inventory_id: int) -> LeasingInfo | None:
    result = await db.execute(
        select(LeasingInfo)
        .where(LeasingInfo.inventory_id == inventory_id)
        .order_by(LeasingInfo.created_at.desc(), LeasingInfo.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def return_to_on_hire_depot(
    db: AsyncSession,
    inventory_ids: list[int],
    remarks: str,
    job: JobContext = None,
    port_id: int | None = None,
    best_effort: bool = True,
) -> int:
    """Append AVAILABLE rows at each container's latest on-hire depot.

    ``port_id`` overrides the leasing port when given.  Returns the
    number of rows appended.
    """
    appended = 0
    now = datetime.utcnow()
    current = await ledger.latest_for_inventories(db, inventory_ids)
    for inventory_id in inventory_ids:
        leasing = await _latest_leasing(db, inventory_id)
        target_port = port_id or (leasing.port_id if leasing else None)
        depot = leasing.on_hire_depot_address_book_id if leasing else None

        if not target_port or not depot:
            if not best_effort:
                raise ValidationFailedError(
                    f"Container {inventory_id} has incomplete leasing info"
                )
            logger.warning(
                f"Skipping movement history for inventory {inventory_id} - incomplete leasing info"
            )
            continue

        ledger.append_row(
            db,
            inventory_id=inventory_id,
            status=AVAILABLE,
            date=ledger.entry_date(current.get(inventory_id), now),
            port_id=target_port,
            address_book_id=depot,
            job=job,
            remarks=remarks,
        )
        appended += 1
    return appended


def cancellation_remark(reason: str, on: datetime | None = None) -> str:
    return f"[CANCELLED on {(on or datetime.utcnow()).strftime('%Y-%m-%d')}] {reason.strip()}"
