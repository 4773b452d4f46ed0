"""Status transition resolver tests (pure, no database)."""

from types import SimpleNamespace

import pytest

from containerops.middleware.exceptions import ValidationFailedError
from containerops.services.transitions import (
    ALLOTTED,
    AVAILABLE,
    CANCELLED,
    DAMAGED,
    EMPTY_DISCHARGE,
    EMPTY_GATE_IN,
    EMPTY_PICKED_UP,
    EMPTY_RETURNED,
    LADEN_DISCHARGE,
    LADEN_GATE_IN,
    LEGAL_TRANSITIONS,
    RETURNED_TO_DEPOT,
    SOB,
    UNAVAILABLE,
    UNDER_CLEANING,
    UNDER_REPAIR,
    UNDER_SURVEY,
    EmptyRepoContext,
    ShipmentContext,
    canonical_status,
    resolve_transition,
)

ALL_STATUSES = [
    ALLOTTED, EMPTY_PICKED_UP, LADEN_GATE_IN, EMPTY_GATE_IN, SOB, LADEN_DISCHARGE,
    EMPTY_DISCHARGE, EMPTY_RETURNED, AVAILABLE, UNAVAILABLE, UNDER_CLEANING,
    UNDER_SURVEY, UNDER_REPAIR, DAMAGED, CANCELLED, RETURNED_TO_DEPOT,
]

SHIPMENT = ShipmentContext(
    id=1,
    job_number="25/00001",
    pol_port_id=10,
    pod_port_id=20,
    carrier_address_book_id=300,
    empty_return_depot_address_book_id=400,
)
REPO_JOB = EmptyRepoContext(
    id=2,
    job_number="RST/NSAJEB/25/ER00001",
    pol_port_id=10,
    pod_port_id=20,
    carrier_address_book_id=301,
    empty_return_depot_address_book_id=401,
)


def previous(status: str, port_id: int | None = 10, address_book_id: int | None = 100):
    return SimpleNamespace(status=status, port_id=port_id, address_book_id=address_book_id)


def job_for(status: str):
    """A job whose kind keeps ``status`` as its own canonical label."""
    return REPO_JOB if status in (EMPTY_GATE_IN, EMPTY_DISCHARGE) else SHIPMENT


@pytest.mark.unit
class TestTransitionTable:

    @pytest.mark.parametrize("current", ALL_STATUSES)
    def test_only_listed_transitions_are_accepted(self, current):
        legal = LEGAL_TRANSITIONS[current]
        for target in ALL_STATUSES:
            prev = previous(current)
            if target in legal:
                result = resolve_transition(target, prev, job_for(target))
                assert result.status == target
            else:
                with pytest.raises(ValidationFailedError):
                    resolve_transition(target, prev, job_for(target))

    def test_allotted_cannot_be_requested(self):
        with pytest.raises(ValidationFailedError, match="Unsupported status transition"):
            resolve_transition(ALLOTTED, previous(AVAILABLE), SHIPMENT)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationFailedError, match="Unsupported status transition: IN ORBIT"):
            resolve_transition("IN ORBIT", previous(AVAILABLE))

    def test_illegal_message_names_both_statuses(self):
        with pytest.raises(ValidationFailedError, match="AVAILABLE -> SOB"):
            resolve_transition(SOB, previous(AVAILABLE), SHIPMENT)

    def test_job_driven_status_requires_job(self):
        with pytest.raises(ValidationFailedError, match="requires an owning shipment"):
            resolve_transition(LADEN_GATE_IN, previous(EMPTY_PICKED_UP))

    def test_lateral_move_needs_no_job(self):
        result = resolve_transition(UNAVAILABLE, previous(AVAILABLE))
        assert result.status == UNAVAILABLE


@pytest.mark.unit
class TestCanonicalLabels:

    def test_lowercase_request_is_uppercased(self):
        assert canonical_status("  empty picked up ", SHIPMENT) == EMPTY_PICKED_UP

    def test_gate_in_label_follows_job_kind(self):
        assert canonical_status(EMPTY_GATE_IN, SHIPMENT) == LADEN_GATE_IN
        assert canonical_status(LADEN_GATE_IN, REPO_JOB) == EMPTY_GATE_IN

    def test_discharge_label_follows_job_kind(self):
        result = resolve_transition(LADEN_DISCHARGE, previous(SOB), REPO_JOB)
        assert result.status == EMPTY_DISCHARGE

    def test_without_job_label_is_kept(self):
        assert canonical_status(LADEN_GATE_IN, None) == LADEN_GATE_IN


@pytest.mark.unit
class TestLocationRules:

    def test_empty_picked_up_keeps_previous_location(self):
        result = resolve_transition(EMPTY_PICKED_UP, previous(ALLOTTED, 11, 111), SHIPMENT)
        assert (result.port_id, result.address_book_id) == (11, 111)

    def test_empty_picked_up_falls_back_to_pol(self):
        result = resolve_transition(EMPTY_PICKED_UP, previous(ALLOTTED, None, 111), SHIPMENT)
        assert result.port_id == SHIPMENT.pol_port_id
        assert result.address_book_id == 111

    def test_gate_in_at_pol_without_depot(self):
        result = resolve_transition(
            LADEN_GATE_IN, previous(EMPTY_PICKED_UP), SHIPMENT, address_book_id=999, port_id=999
        )
        assert result.port_id == SHIPMENT.pol_port_id
        assert result.address_book_id is None

    def test_sob_uses_selected_carrier(self):
        result = resolve_transition(SOB, previous(LADEN_GATE_IN), SHIPMENT, address_book_id=555)
        assert result.port_id == SHIPMENT.pod_port_id
        assert result.address_book_id == 555

    def test_sob_defaults_to_job_carrier(self):
        result = resolve_transition(SOB, previous(EMPTY_GATE_IN), REPO_JOB)
        assert result.address_book_id == REPO_JOB.carrier_address_book_id

    def test_sob_falls_back_to_pol_without_pod(self):
        job = ShipmentContext(id=3, job_number="25/00003", pol_port_id=10, pod_port_id=None)
        result = resolve_transition(SOB, previous(LADEN_GATE_IN), job)
        assert result.port_id == 10

    def test_discharge_at_pod_without_depot(self):
        result = resolve_transition(LADEN_DISCHARGE, previous(SOB, 20, 300), SHIPMENT)
        assert result.port_id == SHIPMENT.pod_port_id
        assert result.address_book_id is None

    def test_empty_returned_to_job_return_depot(self):
        result = resolve_transition(EMPTY_RETURNED, previous(LADEN_DISCHARGE, 20, None), SHIPMENT)
        assert result.port_id == SHIPMENT.pod_port_id
        assert result.address_book_id == SHIPMENT.empty_return_depot_address_book_id

    def test_exception_status_accepts_client_location(self):
        result = resolve_transition(
            DAMAGED, previous(EMPTY_PICKED_UP), SHIPMENT, port_id=77, address_book_id=88
        )
        assert (result.port_id, result.address_book_id) == (77, 88)

    def test_maintenance_keeps_previous_location(self):
        result = resolve_transition(UNDER_SURVEY, previous(UNAVAILABLE, 12, 122))
        assert (result.port_id, result.address_book_id) == (12, 122)

    def test_remarks_and_vessel_are_trimmed(self):
        result = resolve_transition(
            UNAVAILABLE, previous(AVAILABLE), remarks="  dent on door ", vessel_name="   "
        )
        assert result.remarks == "dent on door"
        assert result.vessel_name is None
