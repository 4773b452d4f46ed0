"""Empty-repositioning job orchestrator.

Same container/ledger flow as shipments, with the job recorded on ledger
rows as empty_repo_job_id.  Differences from shipments:

  * the job number is also the house BL: RST/{POL}{POD}/{yy}/ER{seq5}
  * the ER sequence is one global series across every route and year
  * changing POL/POD re-derives the route segment of the number, keeping
    the sequence; ledger rows of the job carry the new number
  * no bill is created
"""

import logging
from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ConflictError, ResourceNotFoundError
from containerops.models.empty_repo_job import EmptyRepoJob, RepoShipmentContainer
from containerops.models.movement_history import MovementHistory
from containerops.schemas.empty_repo_job import EmptyRepoJobCreate, EmptyRepoJobUpdate
from containerops.services import jobs
from containerops.services.transitions import CANCELLED, job_context_from
from containerops.utils.numbering import (
    generate_empty_repo_job_number,
    preview_empty_repo_job_number,
    with_route,
)

logger = logging.getLogger("containerops.empty_repo_jobs")

ACTIVE = "ACTIVE"

_RELATIONS = ["pol_port", "pod_port", "containers"]


async def get_job(db: AsyncSession, job_id: int) -> EmptyRepoJob:
    job = await db.get(EmptyRepoJob, job_id)
    if not job:
        raise ResourceNotFoundError("Empty repo job", job_id)
    return job


async def list_jobs(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[EmptyRepoJob], int]:
    base = select(EmptyRepoJob)
    if status:
        base = base.where(EmptyRepoJob.status == status)
    if search:
        pattern = f"%{search}%"
        base = base.where(
            or_(EmptyRepoJob.job_number.ilike(pattern), EmptyRepoJob.master_bl.ilike(pattern))
        )

    total = (await db.execute(select(func.count()).select_from(base.subquery()))).scalar() or 0
    result = await db.execute(
        base.order_by(EmptyRepoJob.date.desc(), EmptyRepoJob.id.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total


async def next_job_number(db: AsyncSession) -> dict:
    job_number = await preview_empty_repo_job_number(db)
    return {"job_number": job_number, "house_bl": job_number}


# ── Create ───────────────────────────────────────────────────

async def create_job(db: AsyncSession, body: EmptyRepoJobCreate) -> EmptyRepoJob:
    pol = await jobs.load_port(db, body.pol_port_id, "POL")
    pod = await jobs.load_port(db, body.pod_port_id, "POD")
    job_date = body.date or datetime.utcnow()

    job_number = await generate_empty_repo_job_number(db, pol.port_code, pod.port_code, job_date)

    fields = body.model_dump(exclude={"date", "containers"})
    job = EmptyRepoJob(
        **fields,
        job_number=job_number,
        house_bl=job_number,
        date=job_date,
        status=ACTIVE,
    )

    containers = await jobs.resolve_inventory_ids(db, [c.model_dump() for c in body.containers])
    for container in containers:
        job.containers.append(RepoShipmentContainer(**container))

    db.add(job)
    await db.flush()

    await jobs.allot_containers(
        db,
        job_context_from(job),
        jobs.inventory_ids_of(containers),
        job_date,
        remarks=f"Empty Repo created - {job_number}",
    )
    await db.flush()
    await db.refresh(job, _RELATIONS)

    logger.info(f"Created empty repo job {job_number} with {len(containers)} containers")
    return job


# ── Update ───────────────────────────────────────────────────

async def update_job(db: AsyncSession, job_id: int, body: EmptyRepoJobUpdate) -> EmptyRepoJob:
    job = await get_job(db, job_id)
    changes = body.model_dump(exclude_unset=True, exclude={"containers"})

    if "pol_port_id" in changes or "pod_port_id" in changes:
        pol = await jobs.load_port(db, changes.get("pol_port_id") or job.pol_port_id, "POL")
        pod = await jobs.load_port(db, changes.get("pod_port_id") or job.pod_port_id, "POD")
        renumbered = with_route(job.job_number, pol.port_code, pod.port_code)
        if renumbered != job.job_number:
            # Ledger rows written under this job follow the new number
            await db.execute(
                update(MovementHistory)
                .where(MovementHistory.empty_repo_job_id == job.id)
                .values(job_number=renumbered)
            )
            logger.info(f"Empty repo job {job.job_number} renumbered to {renumbered}")
        job.job_number = renumbered
        job.house_bl = renumbered

    if changes.get("date") is None:
        changes.pop("date", None)
    for field, value in changes.items():
        if field in ("pol_port_id", "pod_port_id") and value is None:
            continue
        setattr(job, field, value)

    if body.containers is not None:
        await _apply_container_diff(db, job, body.containers)

    await db.flush()
    await db.refresh(job, _RELATIONS)
    return job


async def _apply_container_diff(db: AsyncSession, job: EmptyRepoJob, submitted) -> None:
    containers = await jobs.resolve_inventory_ids(db, [c.model_dump() for c in submitted])
    existing_ids = jobs.inventory_ids_of(job.containers)
    new_ids = jobs.inventory_ids_of(containers)

    removed = [i for i in existing_ids if i not in new_ids]
    added = [c for c in containers if c["inventory_id"] and c["inventory_id"] not in existing_ids]

    if removed:
        await jobs.release_containers(
            db, removed, job.date, remarks=f"Removed from Empty Repo - {job.job_number}"
        )
        for assignment in list(job.containers):
            if assignment.inventory_id in removed:
                job.containers.remove(assignment)

    for container in added:
        job.containers.append(RepoShipmentContainer(**container))
    await db.flush()

    if added:
        await jobs.allot_containers(
            db,
            job_context_from(job),
            jobs.inventory_ids_of(added),
            job.date,
            remarks=f"Empty Repo updated - {job.job_number}",
        )

    logger.info(
        f"Empty repo job {job.job_number}: {len(removed)} containers removed, {len(added)} added"
    )


# ── Cancel / Delete ──────────────────────────────────────────

async def cancel_job(
    db: AsyncSession,
    job_id: int,
    reason: str,
    best_effort: bool = True,
) -> EmptyRepoJob:
    job = await get_job(db, job_id)
    if job.status == CANCELLED:
        raise ConflictError(f"Empty repo job {job.job_number} is already cancelled")

    job.status = CANCELLED
    job.remark = jobs.cancellation_remark(reason)

    appended = await jobs.return_to_on_hire_depot(
        db,
        jobs.inventory_ids_of(job.containers),
        remarks=f"Empty Repo Job cancelled - {job.job_number}",
        job=job_context_from(job),
        port_id=job.pol_port_id,
        best_effort=best_effort,
    )
    await db.flush()
    await db.refresh(job, _RELATIONS)

    logger.info(f"Cancelled empty repo job {job.job_number} ({appended} containers released)")
    return job


async def delete_job(db: AsyncSession, job_id: int, best_effort: bool = True) -> None:
    job = await get_job(db, job_id)
    job_number = job.job_number

    await jobs.return_to_on_hire_depot(
        db,
        jobs.inventory_ids_of(job.containers),
        remarks=f"Empty Repo Job deleted - {job_number}",
        best_effort=best_effort,
    )
    await db.execute(
        update(MovementHistory)
        .where(MovementHistory.empty_repo_job_id == job_id)
        .values(empty_repo_job_id=None)
    )
    await db.delete(job)
    await db.flush()

    logger.info(f"Deleted empty repo job {job_number}")


async def mark_cro_generated(db: AsyncSession, job_id: int) -> EmptyRepoJob:
    job = await get_job(db, job_id)
    if not job.has_cro_generated:
        job.has_cro_generated = True
    if not job.first_cro_generation_date:
        job.first_cro_generation_date = datetime.utcnow()
    await db.flush()
    return job
