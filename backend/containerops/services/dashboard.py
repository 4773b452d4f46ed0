"""Dashboard read models built from the ledger's current-state view.

Results are plain dicts so they round-trip through the Redis cache
unchanged.  Ledger-writing routes invalidate "dashboard:*".
"""

from collections import Counter, defaultdict

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.config import settings
from containerops.models.empty_repo_job import EmptyRepoJob, RepoShipmentContainer
from containerops.models.port import Port
from containerops.models.shipment import Shipment, ShipmentContainer
from containerops.services.ledger import latest_per_container
from containerops.utils.cache import cached


@cached(ttl=settings.dashboard_cache_ttl, prefix="dashboard")
async def status_summary(db: AsyncSession) -> dict:
    """Number of containers in each current status."""
    counts = Counter(row.status for row in await latest_per_container(db))
    return {
        "total": sum(counts.values()),
        "statuses": [
            {"status": status, "count": count}
            for status, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ],
    }


async def _route_counts(db: AsyncSession, job_model, container_model, fk) -> list[tuple]:
    container_count = (
        select(fk, func.count(container_model.id).label("containers"))
        .group_by(fk)
        .subquery()
    )
    result = await db.execute(
        select(
            job_model.pol_port_id,
            job_model.pod_port_id,
            func.count(job_model.id),
            func.coalesce(func.sum(container_count.c.containers), 0),
        )
        .outerjoin(container_count, container_count.c[fk.key] == job_model.id)
        .where(job_model.status == "ACTIVE")
        .group_by(job_model.pol_port_id, job_model.pod_port_id)
    )
    return list(result.all())


@cached(ttl=settings.dashboard_cache_ttl, prefix="dashboard")
async def route_summary(db: AsyncSession) -> list[dict]:
    """Active shipments and empty-repo jobs per POL → POD pair."""
    routes = defaultdict(lambda: {"shipments": 0, "empty_repo_jobs": 0, "containers": 0})

    for pol_id, pod_id, jobs, containers in await _route_counts(
        db, Shipment, ShipmentContainer, ShipmentContainer.shipment_id
    ):
        routes[(pol_id, pod_id)]["shipments"] += jobs
        routes[(pol_id, pod_id)]["containers"] += int(containers)

    for pol_id, pod_id, jobs, containers in await _route_counts(
        db, EmptyRepoJob, RepoShipmentContainer, RepoShipmentContainer.empty_repo_job_id
    ):
        routes[(pol_id, pod_id)]["empty_repo_jobs"] += jobs
        routes[(pol_id, pod_id)]["containers"] += int(containers)

    port_ids = {port_id for pair in routes for port_id in pair}
    codes = {}
    if port_ids:
        result = await db.execute(select(Port.id, Port.port_code).where(Port.id.in_(port_ids)))
        codes = dict(result.all())

    summary = [
        {
            "pol_port_code": codes.get(pol_id),
            "pod_port_code": codes.get(pod_id),
            **counts,
        }
        for (pol_id, pod_id), counts in routes.items()
    ]
    summary.sort(key=lambda r: (-(r["shipments"] + r["empty_repo_jobs"]), r["pol_port_code"] or ""))
    return summary
