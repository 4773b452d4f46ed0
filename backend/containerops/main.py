import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from containerops.config import settings
from containerops.middleware.exceptions import register_exception_handlers
from containerops.middleware.security import HTTPSRedirectMiddleware, SecurityHeadersMiddleware
from containerops.routers import (
    bill_management,
    dashboard,
    empty_repo_jobs,
    health,
    inventory,
    leasing_info,
    movement_history,
    shipments,
)
from containerops.utils.cache import close_redis

logger = logging.getLogger("containerops")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"ContainerOps starting ({settings.environment})")
    try:
        yield
    finally:
        await close_redis()
        logger.info("ContainerOps stopped")


app = FastAPI(
    title="ContainerOps",
    description="Container movement ledger and shipping back-office",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (outermost first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)

# HTTPS redirect (production only)
app.add_middleware(HTTPSRedirectMiddleware, force_https=False)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ──────────────────────────────────────────────────
app.include_router(health.router)
app.include_router(movement_history.router, prefix="/api/movement-history", tags=["movement-history"])
app.include_router(shipments.router, prefix="/api/shipments", tags=["shipments"])
app.include_router(empty_repo_jobs.router, prefix="/api/empty-repo-jobs", tags=["empty-repo-jobs"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(leasing_info.router, prefix="/api/leasing-info", tags=["leasing-info"])
app.include_router(bill_management.router, prefix="/api/bill-management", tags=["bill-management"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
