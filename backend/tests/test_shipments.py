"""Shipment orchestrator tests."""

from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import (
    ConflictError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from containerops.models import BillManagement, MovementHistory, ShipmentContainer
from containerops.schemas.shipment import JobContainerIn, ShipmentCreate, ShipmentUpdate
from containerops.services import billing, ledger, shipments
from containerops.services.transitions import (
    ALLOTTED,
    AVAILABLE,
    CANCELLED,
    EMPTY_PICKED_UP,
)

SHIPMENT_DATE = datetime(2025, 1, 10)


def shipment_body(ports, parties, inventories, **overrides) -> ShipmentCreate:
    data = {
        "date": SHIPMENT_DATE,
        "pol_port_id": ports.nsa.id,
        "pod_port_id": ports.jeb.id,
        "customer_address_book_id": parties.customer.id,
        "carrier_address_book_id": parties.carrier.id,
        "empty_return_depot_address_book_id": parties.jeb_depot.id,
        "containers": [JobContainerIn(inventory_id=c.id) for c in inventories],
    }
    data.update(overrides)
    return ShipmentCreate(**data)


async def rows_for(db: AsyncSession, inventory_id: int) -> list[MovementHistory]:
    return await ledger.history_for_inventory(db, inventory_id)


@pytest.mark.integration
@pytest.mark.asyncio
class TestShipmentCreate:

    async def test_first_shipment_of_the_year(self, db_session: AsyncSession, x123, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [x123]))

        assert shipment.job_number == "25/00001"
        assert shipment.house_bl == "RST/NSAJEB/25/00001"
        assert shipment.status == "ACTIVE"
        assert [c.inventory_id for c in shipment.containers] == [x123.id]

        allotted = [row for row in await rows_for(db_session, x123.id) if row.status == ALLOTTED]
        assert len(allotted) == 1
        assert allotted[0].date == SHIPMENT_DATE
        assert allotted[0].shipment_id == shipment.id
        assert allotted[0].port_id == ports.nsa.id
        assert allotted[0].address_book_id == parties.nsa_depot.id

        bill = await billing.find_by_shipment(db_session, shipment.id)
        assert bill.billing_status == "Pending"
        assert bill.payment_status == "Unpaid"
        assert bill.due_amount == 0

    async def test_container_by_number(self, db_session: AsyncSession, x123, ports, parties):
        body = shipment_body(
            ports, parties, [], containers=[JobContainerIn(container_number=" x123 ")]
        )
        shipment = await shipments.create_shipment(db_session, body)
        assert shipment.containers[0].inventory_id == x123.id

    async def test_unknown_container_number_gets_no_ledger_row(
        self, db_session: AsyncSession, ports, parties
    ):
        body = shipment_body(
            ports, parties, [], containers=[JobContainerIn(container_number="ZZZU9999999")]
        )
        shipment = await shipments.create_shipment(db_session, body)
        assert shipment.containers[0].inventory_id is None
        assert await ledger.latest_per_container(db_session) == []

    async def test_numbers_increase_per_route(self, db_session: AsyncSession, ports, parties):
        first = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        second = await shipments.create_shipment(
            db_session,
            shipment_body(ports, parties, [], pol_port_id=ports.jeb.id, pod_port_id=ports.nsa.id),
        )
        third = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))

        assert [s.job_number for s in (first, second, third)] == ["25/00001", "25/00002", "25/00003"]
        assert [s.house_bl for s in (first, second, third)] == [
            "RST/NSAJEB/25/00001",
            "RST/JEBNSA/25/00001",
            "RST/NSAJEB/25/00002",
        ]

    async def test_unknown_port(self, db_session: AsyncSession, ports, parties):
        with pytest.raises(ResourceNotFoundError, match="POD port"):
            await shipments.create_shipment(
                db_session, shipment_body(ports, parties, [], pod_port_id=4242)
            )


@pytest.mark.integration
@pytest.mark.asyncio
class TestShipmentUpdate:

    async def test_container_diff(self, db_session: AsyncSession, make_container, ports, parties):
        a, b, c, d = [await make_container(f"CONU000000{i}") for i in range(1, 5)]
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [a, b, c]))
        before = {i.id: len(await rows_for(db_session, i.id)) for i in (a, b, c, d)}

        await shipments.update_shipment(db_session, shipment.id, ShipmentUpdate(
            containers=[JobContainerIn(inventory_id=i.id) for i in (b, c, d)],
        ))

        a_rows = await rows_for(db_session, a.id)
        assert len(a_rows) == before[a.id] + 1
        assert a_rows[-1].status == AVAILABLE
        assert a_rows[-1].shipment_id is None
        assert a_rows[-1].address_book_id == parties.nsa_depot.id

        d_rows = await rows_for(db_session, d.id)
        assert len(d_rows) == before[d.id] + 1
        assert d_rows[-1].status == ALLOTTED
        assert d_rows[-1].shipment_id == shipment.id

        assert len(await rows_for(db_session, b.id)) == before[b.id]
        assert len(await rows_for(db_session, c.id)) == before[c.id]

        assignments = (
            await db_session.execute(
                select(ShipmentContainer.inventory_id).where(ShipmentContainer.shipment_id == shipment.id)
            )
        ).scalars().all()
        assert sorted(assignments) == sorted([b.id, c.id, d.id])

    async def test_omitting_containers_keeps_them(self, db_session: AsyncSession, x123, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [x123]))
        count = len(await rows_for(db_session, x123.id))

        updated = await shipments.update_shipment(
            db_session, shipment.id, ShipmentUpdate(vessel_name="MSC Aurora")
        )
        assert updated.vessel_name == "MSC Aurora"
        assert len(updated.containers) == 1
        assert len(await rows_for(db_session, x123.id)) == count

    async def test_port_change_rederives_house_bl_only(self, db_session: AsyncSession, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))

        updated = await shipments.update_shipment(
            db_session, shipment.id, ShipmentUpdate(pod_port_id=ports.sin.id)
        )
        assert updated.job_number == "25/00001"
        assert updated.house_bl == "RST/NSASIN/25/00001"
        assert updated.pod_port_id == ports.sin.id

    async def test_port_change_takes_next_number_on_new_route(
        self, db_session: AsyncSession, ports, parties
    ):
        await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        other = await shipments.create_shipment(
            db_session, shipment_body(ports, parties, [], pod_port_id=ports.sin.id)
        )
        assert other.house_bl == "RST/NSASIN/25/00001"

        moved = await shipments.update_shipment(
            db_session, other.id, ShipmentUpdate(pod_port_id=ports.jeb.id)
        )
        assert moved.house_bl == "RST/NSAJEB/25/00002"
        assert moved.job_number == "25/00002"

        unchanged = await shipments.update_shipment(
            db_session, other.id, ShipmentUpdate(pod_port_id=ports.jeb.id)
        )
        assert unchanged.house_bl == "RST/NSAJEB/25/00002"

    async def test_blank_date_is_ignored(self, db_session: AsyncSession, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        updated = await shipments.update_shipment(db_session, shipment.id, ShipmentUpdate(date=""))
        assert updated.date == SHIPMENT_DATE


@pytest.mark.integration
@pytest.mark.asyncio
class TestShipmentCancel:

    async def test_cancel_releases_containers(self, db_session: AsyncSession, x123, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [x123]))

        cancelled = await shipments.cancel_shipment(db_session, shipment.id, "customer withdrew")

        assert cancelled.status == CANCELLED
        assert cancelled.remark.startswith("[CANCELLED on ")
        assert cancelled.remark.endswith("] customer withdrew")

        latest = await ledger.latest_for_inventory(db_session, x123.id)
        assert latest.status == AVAILABLE
        assert latest.port_id == ports.nsa.id
        assert latest.address_book_id == parties.nsa_depot.id
        assert latest.remarks == f"Shipment cancelled - {shipment.job_number}"

    async def test_incomplete_leasing_is_skipped(self, db_session: AsyncSession, make_container, ports, parties):
        leased = await make_container("LEAS0000001")
        unleased = await make_container("NOLS0000002", with_leasing=False)
        shipment = await shipments.create_shipment(
            db_session, shipment_body(ports, parties, [leased, unleased])
        )

        await shipments.cancel_shipment(db_session, shipment.id, "vessel omitted port")

        assert (await ledger.latest_for_inventory(db_session, leased.id)).status == AVAILABLE
        assert (await ledger.latest_for_inventory(db_session, unleased.id)).status == ALLOTTED

    async def test_strict_cancel_fails_on_incomplete_leasing(
        self, db_session: AsyncSession, make_container, ports, parties
    ):
        unleased = await make_container("NOLS0000002", with_leasing=False)
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [unleased]))

        with pytest.raises(ValidationFailedError, match="incomplete leasing info"):
            await shipments.cancel_shipment(db_session, shipment.id, "typo", best_effort=False)

    async def test_cannot_cancel_twice(self, db_session: AsyncSession, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        await shipments.cancel_shipment(db_session, shipment.id, "first")
        with pytest.raises(ConflictError, match="already cancelled"):
            await shipments.cancel_shipment(db_session, shipment.id, "second")


@pytest.mark.integration
@pytest.mark.asyncio
class TestShipmentDelete:

    async def test_delete_detaches_bill_and_keeps_history(
        self, db_session: AsyncSession, x123, ports, parties
    ):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, [x123]))
        shipment_id, job_number = shipment.id, shipment.job_number
        bill_id = (await billing.find_by_shipment(db_session, shipment_id)).id
        await shipments.save_bl_assignments(db_session, shipment_id, "draft", [["X123"]])

        await shipments.delete_shipment(db_session, shipment_id)

        with pytest.raises(ResourceNotFoundError):
            await shipments.get_shipment(db_session, shipment_id)

        bill = await db_session.get(BillManagement, bill_id)
        assert bill.shipment_id is None
        assert bill.remarks == "Shipment Deleted"
        assert bill.shipment_number == job_number
        assert bill.shipment_date == SHIPMENT_DATE
        assert bill.customer_name == "Acme Trading"
        assert bill.port_details == "Nhava Sheva → Jebel Ali"

        history = await rows_for(db_session, x123.id)
        assert [row.status for row in history] == [AVAILABLE, ALLOTTED, AVAILABLE]
        assert all(row.shipment_id is None for row in history)
        assert history[1].job_number == job_number
        assert history[-1].remarks == f"Shipment deleted - {job_number}"

        leftovers = (
            await db_session.execute(
                select(ShipmentContainer).where(ShipmentContainer.shipment_id == shipment_id)
            )
        ).scalars().all()
        assert leftovers == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestShipmentHelpers:

    async def test_can_edit_inventory_follows_latest_status(
        self, db_session: AsyncSession, make_container, ports, parties
    ):
        free = await make_container("FREE0000001")
        busy = await make_container("BUSY0000002")
        fresh = await make_container("NEWU0000003", in_service=False)
        await shipments.create_shipment(db_session, shipment_body(ports, parties, [busy]))

        assert (await shipments.can_edit_inventory(db_session, free.id))["can_edit"] is True

        verdict = await shipments.can_edit_inventory(db_session, busy.id)
        assert verdict["can_edit"] is False
        assert verdict["reason"] == "Container is currently ALLOTTED."

        assert (await shipments.can_edit_inventory(db_session, fresh.id))["can_edit"] is False
        assert (await shipments.can_edit_inventory(db_session, 999))["reason"] == "Container not found."

    async def test_bl_assignments_replace_grouping(self, db_session: AsyncSession, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        await shipments.save_bl_assignments(db_session, shipment.id, "original", [["A1", "A2"], ["A3"]])
        await shipments.save_bl_assignments(db_session, shipment.id, "original", [["A1"], ["A2", "A3"]])

        saved = await shipments.get_bl_assignments(db_session, shipment.id, "original")
        assert saved["groups"] == [["A1"], ["A2", "A3"]]
        assert (await shipments.get_bl_assignments(db_session, shipment.id, "draft"))["groups"] == []

    async def test_cro_first_date_is_kept(self, db_session: AsyncSession, ports, parties):
        shipment = await shipments.create_shipment(db_session, shipment_body(ports, parties, []))
        first = (await shipments.mark_cro_generated(db_session, shipment.id)).first_cro_generation_date
        again = await shipments.mark_cro_generated(db_session, shipment.id)
        assert again.has_cro_generated is True
        assert again.first_cro_generation_date == first

    async def test_status_progress_blocks_swap(self, db_session: AsyncSession, x123, ports, parties):
        await shipments.create_shipment(db_session, shipment_body(ports, parties, [x123]))
        await ledger.append_status_for_containers(db_session, [x123.id], EMPTY_PICKED_UP)
        verdict = await shipments.can_edit_inventory(db_session, x123.id)
        assert verdict["reason"] == f"Container is currently {EMPTY_PICKED_UP}."
