"""Downstream locking — prevent edits to container data referenced downstream.

Each check function returns a LockInfo describing which fields are locked
and why, without raising exceptions.  The caller (service) decides whether
to block the request based on which fields are being updated.

Two things lock a container's data:
  * movement status — once the latest ledger row has moved past
    ALLOTTED, the commercial terms and physical attributes are frozen
  * job assignment — while a shipment or empty-repo job lists the
    container, its on-hire port and depot cannot move
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.models.empty_repo_job import EmptyRepoJob, RepoShipmentContainer
from containerops.models.shipment import Shipment, ShipmentContainer
from containerops.services.ledger import latest_for_inventory
from containerops.services.transitions import COMMERCIALLY_OPEN_STATUSES


# ── Data structures ────────────────────────────────────────────


@dataclass
class FieldLock:
    """A single locked field with reason and unlock instructions."""
    field: str
    reason: str
    blocker_type: str   # "movement_status", "shipment", "empty_repo_job"
    blocker_ref: str    # status label or job number
    action: str         # "movement_status", "delete_shipment", "delete_empty_repo"


@dataclass
class LockInfo:
    """Lock state for a container.  Empty locked_fields means nothing locked."""
    locked_fields: dict[str, FieldLock] = field(default_factory=dict)

    @property
    def is_locked(self) -> bool:
        return len(self.locked_fields) > 0

    def check_update(self, updating_fields: set[str]) -> FieldLock | None:
        """Return the highest-priority FieldLock that conflicts, or None."""
        for name, lock in self.locked_fields.items():
            if name in updating_fields:
                return lock
        return None

    def primary(self) -> FieldLock | None:
        """The lock reported when asking whether the container is editable at all."""
        return next(iter(self.locked_fields.values()), None)

    def locked_field_names(self) -> list[str]:
        return list(self.locked_fields.keys())


def _add_locks(
    info: LockInfo,
    field_names: list[str],
    reason: str,
    blocker_type: str,
    blocker_ref: str,
    action: str,
) -> None:
    # First lock on a field wins: callers add the stronger blocker first
    for name in field_names:
        info.locked_fields.setdefault(name, FieldLock(
            field=name,
            reason=reason,
            blocker_type=blocker_type,
            blocker_ref=blocker_ref,
            action=action,
        ))


# ── Field groups ───────────────────────────────────────────────


LEASING_ON_HIRE_FIELDS = ["port_id", "on_hire_depot_address_book_id"]

LEASING_FROZEN_FIELDS = [
    "ownership_type", "leasor_address_book_id", "leasing_ref_no",
    "on_hire_date", "lease_rent_per_day",
] + LEASING_ON_HIRE_FIELDS

# Every LeasingInfo field a create writes
LEASING_ALL_FIELDS = LEASING_FROZEN_FIELDS + ["off_hire_date", "remarks"]

INVENTORY_FROZEN_FIELDS = [
    "container_number", "container_category", "container_type", "container_size",
    "container_class", "container_capacity", "capacity_unit", "manufacturer",
    "build_year", "gross_weight", "tare_weight", "initial_survey_date",
]

PROGRESSED_REASON = (
    "Cannot change inventory details as the container has progressed in movement status."
)
SHIPMENT_ASSIGNED_REASON = (
    "Remove the container or Delete the shipment first, then you can change the inventory data."
)
EMPTY_REPO_ASSIGNED_REASON = (
    "Remove the container or Delete the empty repo job first, then you can change the inventory data."
)


# ── Container locks (downstream: ledger + job assignments) ────


async def _add_container_locks(
    db: AsyncSession,
    info: LockInfo,
    inventory_id: int,
    frozen_fields: list[str],
) -> None:
    latest = await latest_for_inventory(db, inventory_id)
    if latest is not None and latest.status not in COMMERCIALLY_OPEN_STATUSES:
        _add_locks(
            info,
            frozen_fields,
            reason=PROGRESSED_REASON,
            blocker_type="movement_status",
            blocker_ref=latest.status,
            action="movement_status",
        )

    shipment_ref = (
        await db.execute(
            select(Shipment.job_number)
            .join(ShipmentContainer, ShipmentContainer.shipment_id == Shipment.id)
            .where(ShipmentContainer.inventory_id == inventory_id)
            .limit(1)
        )
    ).scalar()
    if shipment_ref:
        _add_locks(
            info,
            LEASING_ON_HIRE_FIELDS,
            reason=SHIPMENT_ASSIGNED_REASON,
            blocker_type="shipment",
            blocker_ref=shipment_ref,
            action="delete_shipment",
        )

    job_ref = (
        await db.execute(
            select(EmptyRepoJob.job_number)
            .join(RepoShipmentContainer, RepoShipmentContainer.empty_repo_job_id == EmptyRepoJob.id)
            .where(RepoShipmentContainer.inventory_id == inventory_id)
            .limit(1)
        )
    ).scalar()
    if job_ref:
        _add_locks(
            info,
            LEASING_ON_HIRE_FIELDS,
            reason=EMPTY_REPO_ASSIGNED_REASON,
            blocker_type="empty_repo_job",
            blocker_ref=job_ref,
            action="delete_empty_repo",
        )


async def get_leasing_locks(db: AsyncSession, inventory_id: int) -> LockInfo:
    """Locks on the LeasingInfo rows of a container."""
    info = LockInfo()
    await _add_container_locks(db, info, inventory_id, LEASING_FROZEN_FIELDS)
    return info


async def get_inventory_locks(db: AsyncSession, inventory_id: int) -> LockInfo:
    """Locks on a container's own attributes and its nested leasing info."""
    info = LockInfo()
    await _add_container_locks(
        db, info, inventory_id, INVENTORY_FROZEN_FIELDS + LEASING_FROZEN_FIELDS
    )
    return info
