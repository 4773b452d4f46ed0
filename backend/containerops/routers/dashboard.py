"""Dashboard summaries (cached in Redis)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.database import get_db
from containerops.schemas.dashboard import RouteSummary, StatusSummary
from containerops.services import dashboard

router = APIRouter()


@router.get("/status-summary", response_model=StatusSummary)
async def status_summary(db: AsyncSession = Depends(get_db)):
    return await dashboard.status_summary(db)


@router.get("/route-summary", response_model=list[RouteSummary])
async def route_summary(db: AsyncSession = Depends(get_db)):
    return await dashboard.route_summary(db)
