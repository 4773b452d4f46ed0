"""Pydantic schemas for dashboard summaries."""

from pydantic import BaseModel


class StatusCount(BaseModel):
    status: str
    count: int


class StatusSummary(BaseModel):
    total: int
    statuses: list[StatusCount]


class RouteSummary(BaseModel):
    pol_port_code: str | None = None
    pod_port_code: str | None = None
    shipments: int
    empty_repo_jobs: int
    containers: int
