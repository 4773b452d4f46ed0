"""Shipment orchestrator.

Creates, edits, cancels and deletes shipments while keeping the movement
ledger consistent with the shipment's container set:

  create   job number + house BL, assignment rows, ALLOTTED per
           container (dated to the shipment date), zero bill
  update   diff the container set: removed → AVAILABLE, added → ALLOTTED,
           unchanged → nothing
           a route change reserves a house BL on the new route
  cancel   status CANCELLED + dated remark, AVAILABLE per container at
           its on-hire depot
  delete   bill detached with a snapshot, AVAILABLE per container,
           assignment and BL rows removed, shipment removed

Ledger rows written before a delete are kept; their shipment reference
is cleared and the job number stays on the row.
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ConflictError, ResourceNotFoundError
from containerops.models.bill_management import BillManagement
from containerops.models.inventory import Inventory
from containerops.models.movement_history import MovementHistory
from containerops.models.shipment import BlAssignment, Shipment, ShipmentContainer
from containerops.schemas.shipment import ShipmentCreate, ShipmentUpdate
from containerops.services import jobs, ledger
from containerops.services.transitions import AVAILABLE, CANCELLED, job_context_from
from containerops.utils.numbering import (
    generate_house_bl,
    generate_shipment_job_number,
    preview_shipment_job_number,
)

logger = logging.getLogger("containerops.shipments")

ACTIVE = "ACTIVE"

_RELATIONS = ["pol_port", "pod_port", "customer", "containers"]


# ── Lookups ──────────────────────────────────────────────────

async def get_shipment(db: AsyncSession, shipment_id: int) -> Shipment:
    shipment = await db.get(Shipment, shipment_id)
    if not shipment:
        raise ResourceNotFoundError("Shipment", shipment_id)
    return shipment


async def list_shipments(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[Shipment], int]:
    base = select(Shipment)
    if status:
        base = base.where(Shipment.status == status)
    if search:
        pattern = f"%{search}%"
        base = base.where(or_(Shipment.job_number.ilike(pattern), Shipment.house_bl.ilike(pattern)))

    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
    result = await db.execute(
        base.order_by(Shipment.date.desc(), Shipment.job_number.desc(), Shipment.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all()), total


async def next_job_number(db: AsyncSession) -> str:
    """Preview of the number the next shipment created today would get."""
    return await preview_shipment_job_number(db)


# ── Create ───────────────────────────────────────────────────

async def create_shipment(db: AsyncSession, body: ShipmentCreate) -> Shipment:
    pol = await jobs.load_port(db, body.pol_port_id, "POL")
    pod = await jobs.load_port(db, body.pod_port_id, "POD")
    shipment_date = body.date or datetime.utcnow()

    job_number = await generate_shipment_job_number(db, shipment_date)
    house_bl = await generate_house_bl(db, pol.port_code, pod.port_code, shipment_date)

    fields = body.model_dump(exclude={"date", "containers"})
    shipment = Shipment(
        **fields,
        job_number=job_number,
        house_bl=house_bl,
        date=shipment_date,
        status=ACTIVE,
    )

    containers = await jobs.resolve_inventory_ids(db, [c.model_dump() for c in body.containers])
    for container in containers:
        shipment.containers.append(ShipmentContainer(**container))

    db.add(shipment)
    await db.flush()

    await jobs.allot_containers(
        db,
        job_context_from(shipment),
        jobs.inventory_ids_of(containers),
        shipment_date,
        remarks=f"Shipment created - {job_number}",
    )

    db.add(BillManagement(
        invoice_no="",
        invoice_amount=0.0,
        paid_amount=0.0,
        due_amount=0.0,
        billing_status="Pending",
        payment_status="Unpaid",
        shipment_id=shipment.id,
    ))
    await db.flush()
    await db.refresh(shipment, _RELATIONS)

    logger.info(
        f"Created shipment {job_number} ({house_bl}) with {len(containers)} containers"
    )
    return shipment


# ── Update ───────────────────────────────────────────────────

async def update_shipment(db: AsyncSession, shipment_id: int, body: ShipmentUpdate) -> Shipment:
    shipment = await get_shipment(db, shipment_id)
    changes = body.model_dump(exclude_unset=True, exclude={"containers"})

    # House BLs are sequenced per route, so a new route reserves a new number.
    # The job number never changes.
    if "pol_port_id" in changes or "pod_port_id" in changes:
        pol = await jobs.load_port(db, changes.get("pol_port_id") or shipment.pol_port_id, "POL")
        pod = await jobs.load_port(db, changes.get("pod_port_id") or shipment.pod_port_id, "POD")
        if (pol.id, pod.id) != (shipment.pol_port_id, shipment.pod_port_id):
            previous_bl = shipment.house_bl
            shipment.house_bl = await generate_house_bl(
                db, pol.port_code, pod.port_code, changes.get("date") or shipment.date
            )
            logger.info(f"Shipment {shipment.job_number}: house BL {previous_bl} -> {shipment.house_bl}")

    if changes.get("date") is None:
        changes.pop("date", None)
    for field, value in changes.items():
        if field in ("pol_port_id", "pod_port_id") and value is None:
            continue
        setattr(shipment, field, value)

    if body.containers is not None:
        await _apply_container_diff(db, shipment, body.containers)

    await db.flush()
    await db.refresh(shipment, _RELATIONS)
    return shipment


async def _apply_container_diff(db: AsyncSession, shipment: Shipment, submitted) -> None:
    containers = await jobs.resolve_inventory_ids(db, [c.model_dump() for c in submitted])
    existing_ids = jobs.inventory_ids_of(shipment.containers)
    new_ids = jobs.inventory_ids_of(containers)

    removed = [i for i in existing_ids if i not in new_ids]
    added = [c for c in containers if c["inventory_id"] and c["inventory_id"] not in existing_ids]

    if removed:
        await jobs.release_containers(
            db, removed, shipment.date, remarks=f"Removed from shipment - {shipment.job_number}"
        )
        for assignment in list(shipment.containers):
            if assignment.inventory_id in removed:
                shipment.containers.remove(assignment)

    for container in added:
        shipment.containers.append(ShipmentContainer(**container))
    await db.flush()

    if added:
        await jobs.allot_containers(
            db,
            job_context_from(shipment),
            jobs.inventory_ids_of(added),
            shipment.date,
            remarks=f"Shipment updated - {shipment.job_number}",
        )

    logger.info(
        f"Shipment {shipment.job_number}: {len(removed)} containers removed, {len(added)} added"
    )


# ── Cancel ───────────────────────────────────────────────────

async def cancel_shipment(
    db: AsyncSession,
    shipment_id: int,
    reason: str,
    best_effort: bool = True,
) -> Shipment:
    shipment = await get_shipment(db, shipment_id)
    if shipment.status == CANCELLED:
        raise ConflictError(f"Shipment {shipment.job_number} is already cancelled")

    shipment.status = CANCELLED
    shipment.remark = jobs.cancellation_remark(reason)

    appended = await jobs.return_to_on_hire_depot(
        db,
        jobs.inventory_ids_of(shipment.containers),
        remarks=f"Shipment cancelled - {shipment.job_number}",
        job=job_context_from(shipment),
        port_id=shipment.pol_port_id,
        best_effort=best_effort,
    )
    await db.flush()
    await db.refresh(shipment, _RELATIONS)

    logger.info(f"Cancelled shipment {shipment.job_number} ({appended} containers released)")
    return shipment


# ── Delete ───────────────────────────────────────────────────

async def delete_shipment(db: AsyncSession, shipment_id: int, best_effort: bool = True) -> None:
    shipment = await get_shipment(db, shipment_id)
    job_number = shipment.job_number

    port_details = None
    if shipment.pol_port and shipment.pod_port:
        port_details = f"{shipment.pol_port.port_name} → {shipment.pod_port.port_name}"

    bills = (
        await db.execute(select(BillManagement).where(BillManagement.shipment_id == shipment_id))
    ).scalars().all()
    for bill in bills:
        bill.shipment = None
        bill.shipment_id = None
        bill.remarks = "Shipment Deleted"
        bill.shipment_number = job_number
        bill.shipment_date = shipment.date
        bill.customer_name = shipment.customer.company_name if shipment.customer else None
        bill.port_details = port_details

    await jobs.return_to_on_hire_depot(
        db,
        jobs.inventory_ids_of(shipment.containers),
        remarks=f"Shipment deleted - {job_number}",
        best_effort=best_effort,
    )

    await db.execute(
        update(MovementHistory)
        .where(MovementHistory.shipment_id == shipment_id)
        .values(shipment_id=None)
    )
    await db.execute(delete(BlAssignment).where(BlAssignment.shipment_id == shipment_id))
    await db.delete(shipment)
    await db.flush()

    logger.info(f"Deleted shipment {job_number}")


# ── Inventory edit check ─────────────────────────────────────

async def can_edit_inventory(db: AsyncSession, inventory_id: int) -> dict:
    """A container may be swapped into or out of a job only while AVAILABLE."""
    if not await db.get(Inventory, inventory_id):
        return {"can_edit": False, "reason": "Container not found.", "action": None}

    latest = await ledger.latest_for_inventory(db, inventory_id)
    if latest is None:
        return {
            "can_edit": False,
            "reason": "Container not yet available in movement history.",
            "action": None,
        }
    if latest.status == AVAILABLE:
        return {"can_edit": True, "reason": None, "action": None}
    return {"can_edit": False, "reason": f"Container is currently {latest.status}.", "action": None}


# ── BL assignments ───────────────────────────────────────────

async def get_bl_assignments(db: AsyncSession, shipment_id: int, bl_type: str) -> dict:
    await get_shipment(db, shipment_id)
    result = await db.execute(
        select(BlAssignment)
        .where(BlAssignment.shipment_id == shipment_id, BlAssignment.bl_type == bl_type)
        .order_by(BlAssignment.bl_index)
    )
    groups = [list(row.container_numbers or []) for row in result.scalars().all()]
    return {"shipment_id": shipment_id, "bl_type": bl_type, "groups": groups}


async def save_bl_assignments(
    db: AsyncSession,
    shipment_id: int,
    bl_type: str,
    groups: list[list[str]],
) -> dict:
    """Replace the shipment's BL grouping for ``bl_type``."""
    await get_shipment(db, shipment_id)
    await db.execute(
        delete(BlAssignment).where(
            BlAssignment.shipment_id == shipment_id, BlAssignment.bl_type == bl_type
        )
    )
    for index, group in enumerate(groups):
        db.add(BlAssignment(
            shipment_id=shipment_id,
            bl_type=bl_type,
            bl_index=index,
            container_numbers=list(group),
        ))
    await db.flush()
    return {"shipment_id": shipment_id, "bl_type": bl_type, "groups": groups}


async def mark_cro_generated(db: AsyncSession, shipment_id: int) -> Shipment:
    """Record that a container release order was issued; the first date is kept."""
    shipment = await get_shipment(db, shipment_id)
    if not shipment.has_cro_generated:
        shipment.has_cro_generated = True
    if not shipment.first_cro_generation_date:
        shipment.first_cro_generation_date = datetime.utcnow()
    await db.flush()
    return shipment
