"""Container status state machine and transition resolver.

resolve_transition() decides, for a requested status change, which
status label, port and depot the next ledger row carries.  It is pure:
the caller loads the previous row and the owning job and persists the
result.

Location rules:
  * Job-driven statuses (gate-in, SOB, discharge, empty returned) take
    their port and depot from the owning job, never from the client.
  * SOB accepts a client-selected carrier as its depot.
  * Lateral, maintenance and exception statuses keep the previous row's
    location unless the client supplies one.

Gate-in and discharge labels are chosen by job kind: a shipment moves
laden, an empty-repo job moves empty.
"""

from dataclasses import dataclass
from typing import Protocol, Union

from containerops.middleware.exceptions import ValidationFailedError

# ── Status labels ────────────────────────────────────────────

ALLOTTED = "ALLOTTED"
EMPTY_PICKED_UP = "EMPTY PICKED UP"
LADEN_GATE_IN = "LADEN GATE-IN"
EMPTY_GATE_IN = "EMPTY GATE-IN"
SOB = "SOB"
LADEN_DISCHARGE = "LADEN DISCHARGE(ATA)"
EMPTY_DISCHARGE = "EMPTY DISCHARGE"
EMPTY_RETURNED = "EMPTY RETURNED"
AVAILABLE = "AVAILABLE"
UNAVAILABLE = "UNAVAILABLE"
UNDER_CLEANING = "UNDER CLEANING"
UNDER_SURVEY = "UNDER SURVEY"
UNDER_REPAIR = "UNDER REPAIR/UNDER TESTING"
DAMAGED = "DAMAGED"
CANCELLED = "CANCELLED"
RETURNED_TO_DEPOT = "RETURNED TO DEPOT"

MAINTENANCE_STATUSES = frozenset({UNDER_CLEANING, UNDER_SURVEY, UNDER_REPAIR})
GATE_IN_STATUSES = frozenset({LADEN_GATE_IN, EMPTY_GATE_IN})
DISCHARGE_STATUSES = frozenset({LADEN_DISCHARGE, EMPTY_DISCHARGE})

# Statuses that mean the container has physically moved for a job
PHYSICAL_LIFECYCLE_STATUSES = frozenset({
    EMPTY_PICKED_UP,
    LADEN_GATE_IN,
    EMPTY_GATE_IN,
    SOB,
    LADEN_DISCHARGE,
    EMPTY_DISCHARGE,
    EMPTY_RETURNED,
})

# Latest statuses under which commercial terms may still change
COMMERCIALLY_OPEN_STATUSES = frozenset({AVAILABLE, ALLOTTED})

_FROM_MAINTENANCE = frozenset({AVAILABLE}) | MAINTENANCE_STATUSES

LEGAL_TRANSITIONS: dict[str, frozenset[str]] = {
    ALLOTTED: frozenset({EMPTY_PICKED_UP}),
    EMPTY_PICKED_UP: GATE_IN_STATUSES | {DAMAGED, CANCELLED},
    LADEN_GATE_IN: frozenset({SOB}),
    EMPTY_GATE_IN: frozenset({SOB}),
    SOB: DISCHARGE_STATUSES | {DAMAGED},
    LADEN_DISCHARGE: frozenset({EMPTY_RETURNED, DAMAGED}),
    EMPTY_DISCHARGE: frozenset({EMPTY_RETURNED, DAMAGED}),
    EMPTY_RETURNED: frozenset({AVAILABLE, UNAVAILABLE}),
    AVAILABLE: frozenset({UNAVAILABLE}),
    UNAVAILABLE: MAINTENANCE_STATUSES,
    UNDER_CLEANING: _FROM_MAINTENANCE - {UNDER_CLEANING},
    UNDER_SURVEY: _FROM_MAINTENANCE - {UNDER_SURVEY},
    UNDER_REPAIR: _FROM_MAINTENANCE - {UNDER_REPAIR},
    DAMAGED: frozenset({RETURNED_TO_DEPOT}),
    CANCELLED: frozenset({RETURNED_TO_DEPOT}),
    RETURNED_TO_DEPOT: frozenset({UNAVAILABLE, AVAILABLE}),
}

# Every label resolve_transition() accepts as a request
SUPPORTED_STATUSES = frozenset().union(*LEGAL_TRANSITIONS.values())

_JOB_DRIVEN = GATE_IN_STATUSES | DISCHARGE_STATUSES | {SOB, EMPTY_RETURNED}


# ── Job context ──────────────────────────────────────────────

@dataclass(frozen=True)
class ShipmentContext:
    id: int
    job_number: str
    pol_port_id: int | None
    pod_port_id: int | None
    carrier_address_book_id: int | None = None
    empty_return_depot_address_book_id: int | None = None


@dataclass(frozen=True)
class EmptyRepoContext:
    id: int
    job_number: str
    pol_port_id: int | None
    pod_port_id: int | None
    carrier_address_book_id: int | None = None
    empty_return_depot_address_book_id: int | None = None


JobContext = Union[ShipmentContext, EmptyRepoContext, None]


def job_context_from(entity) -> JobContext:
    """Build a JobContext from a Shipment or EmptyRepoJob row (or None)."""
    if entity is None:
        return None
    # Imported here to keep this module free of ORM imports at load time
    from containerops.models.empty_repo_job import EmptyRepoJob

    cls = EmptyRepoContext if isinstance(entity, EmptyRepoJob) else ShipmentContext
    return cls(
        id=entity.id,
        job_number=entity.job_number,
        pol_port_id=entity.pol_port_id,
        pod_port_id=entity.pod_port_id,
        carrier_address_book_id=entity.carrier_address_book_id,
        empty_return_depot_address_book_id=entity.empty_return_depot_address_book_id,
    )


# ── Resolver ─────────────────────────────────────────────────

class LedgerPosition(Protocol):
    status: str
    port_id: int | None
    address_book_id: int | None


@dataclass(frozen=True)
class TransitionResult:
    status: str
    port_id: int | None
    address_book_id: int | None
    remarks: str | None
    vessel_name: str | None


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def canonical_status(requested: str, job: JobContext) -> str:
    """Uppercase the label and pick the laden/empty variant for the job kind."""
    status = requested.strip().upper()
    if status in GATE_IN_STATUSES and job is not None:
        return EMPTY_GATE_IN if isinstance(job, EmptyRepoContext) else LADEN_GATE_IN
    if status in DISCHARGE_STATUSES and job is not None:
        return EMPTY_DISCHARGE if isinstance(job, EmptyRepoContext) else LADEN_DISCHARGE
    return status


def is_legal_transition(current: str, requested: str) -> bool:
    return requested in LEGAL_TRANSITIONS.get(current, frozenset())


def resolve_transition(
    requested_status: str,
    previous: LedgerPosition,
    job: JobContext = None,
    address_book_id: int | None = None,
    port_id: int | None = None,
    remarks: str | None = None,
    vessel_name: str | None = None,
) -> TransitionResult:
    """Compute the fields of the ledger row that follows ``previous``.

    Raises:
        ValidationFailedError: unknown status, a transition not allowed
            from the previous status, or a job-driven status requested
            without an owning job.
    """
    status = canonical_status(requested_status, job)
    if status not in SUPPORTED_STATUSES:
        raise ValidationFailedError(f"Unsupported status transition: {requested_status}")

    if not is_legal_transition(previous.status, status):
        raise ValidationFailedError(
            f"Illegal status transition: {previous.status} -> {status}"
        )

    if status in _JOB_DRIVEN and job is None:
        raise ValidationFailedError(
            f"Status {status} requires an owning shipment or empty repo job"
        )

    if status == EMPTY_PICKED_UP:
        new_port = previous.port_id if previous.port_id is not None else (
            job.pol_port_id if job else None
        )
        new_depot = previous.address_book_id

    elif status in GATE_IN_STATUSES:
        new_port = job.pol_port_id
        new_depot = None

    elif status == SOB:
        new_port = job.pod_port_id if job.pod_port_id is not None else job.pol_port_id
        new_depot = address_book_id if address_book_id is not None else job.carrier_address_book_id

    elif status in DISCHARGE_STATUSES:
        new_port = job.pod_port_id
        new_depot = None

    elif status == EMPTY_RETURNED:
        new_port = job.pod_port_id
        new_depot = job.empty_return_depot_address_book_id

    else:
        # Lateral, maintenance and exception statuses
        new_port = port_id if port_id is not None else previous.port_id
        new_depot = address_book_id if address_book_id is not None else previous.address_book_id

    return TransitionResult(
        status=status,
        port_id=new_port,
        address_book_id=new_depot,
        remarks=_clean(remarks),
        vessel_name=_clean(vessel_name),
    )
