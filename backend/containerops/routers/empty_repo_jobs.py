"""Empty-repositioning job router.

Endpoints:
    GET    /api/empty-repo-jobs/                  List (paginated)
    GET    /api/empty-repo-jobs/next-job-number   Preview with [POL][POD] placeholders
    GET    /api/empty-repo-jobs/{id}              Detail
    POST   /api/empty-repo-jobs/                  Create (allots containers)
    PATCH  /api/empty-repo-jobs/{id}              Update (diffs the container set)
    POST   /api/empty-repo-jobs/{id}/cancel       Cancel (releases containers)
    DELETE /api/empty-repo-jobs/{id}              Delete
    POST   /api/empty-repo-jobs/{id}/cro-generated
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.common import PaginatedResponse
from containerops.schemas.empty_repo_job import (
    EmptyRepoJobCreate,
    EmptyRepoJobOut,
    EmptyRepoJobUpdate,
    NextEmptyRepoJobNumber,
)
from containerops.schemas.shipment import CancelRequest
from containerops.services import empty_repo_jobs
from containerops.utils.cache import invalidate_cache

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[EmptyRepoJobOut])
async def list_jobs(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    status: str | None = Query(None),
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    items, total = await empty_repo_jobs.list_jobs(
        db, limit=limit, offset=offset, status=status, search=search
    )
    return PaginatedResponse(
        items=[EmptyRepoJobOut.model_validate(job) for job in items],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/next-job-number", response_model=NextEmptyRepoJobNumber)
async def next_job_number(db: AsyncSession = Depends(get_db)):
    return await empty_repo_jobs.next_job_number(db)


@router.get("/{job_id}", response_model=EmptyRepoJobOut)
async def get_job(job_id: int, db: AsyncSession = Depends(get_db)):
    return EmptyRepoJobOut.model_validate(await empty_repo_jobs.get_job(db, job_id))


@router.post("/", response_model=EmptyRepoJobOut, status_code=201)
async def create_job(body: EmptyRepoJobCreate, db: AsyncSession = Depends(get_db)):
    job = await empty_repo_jobs.create_job(db, body)
    await invalidate_cache("dashboard:*")
    return EmptyRepoJobOut.model_validate(job)


@router.patch("/{job_id}", response_model=EmptyRepoJobOut)
async def update_job(
    job_id: int,
    body: EmptyRepoJobUpdate,
    db: AsyncSession = Depends(get_db),
):
    job = await empty_repo_jobs.update_job(db, job_id, body)
    await invalidate_cache("dashboard:*")
    return EmptyRepoJobOut.model_validate(job)


@router.post("/{job_id}/cancel", response_model=EmptyRepoJobOut)
async def cancel_job(
    job_id: int,
    body: CancelRequest,
    db: AsyncSession = Depends(get_db),
):
    job = await empty_repo_jobs.cancel_job(db, job_id, body.reason)
    await invalidate_cache("dashboard:*")
    return EmptyRepoJobOut.model_validate(job)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_job(job_id: int, db: AsyncSession = Depends(get_db)):
    await empty_repo_jobs.delete_job(db, job_id)
    await invalidate_cache("dashboard:*")


@router.post("/{job_id}/cro-generated", response_model=EmptyRepoJobOut)
async def mark_cro_generated(job_id: int, db: AsyncSession = Depends(get_db)):
    return EmptyRepoJobOut.model_validate(await empty_repo_jobs.mark_cro_generated(db, job_id))
