"""Container inventory tests: creation, editing and deletion eligibility."""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from containerops.middleware.exceptions import ConflictError
from containerops.schemas.inventory import InventoryCreate, InventoryUpdate
from containerops.schemas.leasing import LeasingInfoFields
from containerops.schemas.shipment import JobContainerIn, ShipmentCreate
from containerops.services import inventory, ledger, shipments
from containerops.services.transitions import (
    ALLOTTED,
    AVAILABLE,
    EMPTY_GATE_IN,
    EMPTY_PICKED_UP,
    EMPTY_RETURNED,
    SOB,
    UNAVAILABLE,
)
from containerops.utils.locks import PROGRESSED_REASON

ON_HIRE = datetime(2024, 5, 20)


def history(db: AsyncSession, inventory_id: int, *statuses: str) -> None:
    """Write ``statuses`` as one day apart ledger rows with no job reference."""
    for day, status in enumerate(statuses, start=1):
        ledger.append_row(db, inventory_id, status, date=datetime(2024, 7, day))


@pytest.mark.integration
@pytest.mark.asyncio
class TestCreateInventory:

    async def test_create_places_container_in_service(self, db_session: AsyncSession, ports, parties):
        created = await inventory.create_inventory(db_session, InventoryCreate(
            container_number=" abcu1234567 ",
            container_size="40FT",
            leasing_info=[LeasingInfoFields(
                leasor_address_book_id=parties.leasor.id,
                port_id=ports.jeb.id,
                on_hire_depot_address_book_id=parties.jeb_depot.id,
                on_hire_date=ON_HIRE,
            )],
        ))

        assert created.container_number == "ABCU1234567"
        assert created.leasing_info[0].ownership_type == "Lease"

        rows = await ledger.history_for_inventory(db_session, created.id)
        assert len(rows) == 1
        assert rows[0].status == AVAILABLE
        assert rows[0].date == ON_HIRE
        assert rows[0].port_id == ports.jeb.id
        assert rows[0].address_book_id == parties.jeb_depot.id

    async def test_without_on_hire_location_no_ledger_row(self, db_session: AsyncSession):
        created = await inventory.create_inventory(
            db_session, InventoryCreate(container_number="ABCU7654321")
        )
        assert await ledger.history_for_inventory(db_session, created.id) == []

    async def test_duplicate_number(self, db_session: AsyncSession, x123):
        with pytest.raises(ConflictError) as exc_info:
            await inventory.create_inventory(db_session, InventoryCreate(container_number="x123"))
        assert exc_info.value.error_code == "DUPLICATE_CONTAINER"
        assert exc_info.value.message == "Container with this number already exists"


@pytest.mark.integration
@pytest.mark.asyncio
class TestUpdateInventory:

    async def test_available_container_is_editable(self, db_session: AsyncSession, x123):
        updated = await inventory.update_inventory(
            db_session, x123.id, InventoryUpdate(manufacturer="CIMC", tare_weight="2200")
        )
        assert updated.manufacturer == "CIMC"
        assert (await inventory.can_edit_container(db_session, x123.id))["can_edit"] is True

    async def test_progressed_container_is_frozen(self, db_session: AsyncSession, x123):
        history(db_session, x123.id, UNAVAILABLE)
        await db_session.flush()

        verdict = await inventory.can_edit_container(db_session, x123.id)
        assert verdict == {"can_edit": False, "reason": PROGRESSED_REASON, "action": "movement_status"}

        with pytest.raises(ConflictError, match="progressed in movement status"):
            await inventory.update_inventory(db_session, x123.id, InventoryUpdate(manufacturer="CIMC"))

    async def test_nested_leasing_remarks_stay_editable(self, db_session: AsyncSession, x123):
        history(db_session, x123.id, UNAVAILABLE)
        await db_session.flush()
        leasing_id = x123.leasing_info[0].id

        updated = await inventory.update_inventory(db_session, x123.id, InventoryUpdate(
            leasing_info=[{"id": leasing_id, "remarks": "sub-leased"}],
        ))
        assert updated.leasing_info[0].remarks == "sub-leased"

    async def test_renaming_to_existing_number(self, db_session: AsyncSession, make_container, x123):
        other = await make_container("OTHU0000001")
        with pytest.raises(ConflictError, match="already exists"):
            await inventory.update_inventory(
                db_session, other.id, InventoryUpdate(container_number="x123")
            )


@pytest.mark.integration
@pytest.mark.asyncio
class TestDeleteEligibility:

    async def test_no_history_is_deletable(self, db_session: AsyncSession, make_container):
        fresh = await make_container("NEWU0000001", in_service=False)
        assert await inventory.can_delete_container(db_session, fresh.id) == {
            "can_delete": True,
            "reason": None,
        }

    async def test_allotted_only_is_deletable(self, db_session: AsyncSession, make_container):
        container = await make_container("ALLU0000001", in_service=False)
        history(db_session, container.id, ALLOTTED)
        await db_session.flush()

        assert (await inventory.can_delete_container(db_session, container.id))["can_delete"] is True

    async def test_completed_lifecycle_blocks_delete(self, db_session: AsyncSession, make_container):
        container = await make_container("LIFU0000001", in_service=False)
        history(db_session, container.id, AVAILABLE, ALLOTTED, EMPTY_PICKED_UP, EMPTY_GATE_IN, SOB,
                EMPTY_RETURNED, AVAILABLE)
        await db_session.flush()

        verdict = await inventory.can_delete_container(db_session, container.id)
        assert verdict == {"can_delete": False, "reason": inventory.LIFECYCLE_REASON}

    async def test_assigned_container_blocks_delete(self, db_session: AsyncSession, x123, ports, parties):
        await shipments.create_shipment(db_session, ShipmentCreate(
            date=datetime(2025, 1, 10),
            pol_port_id=ports.nsa.id,
            pod_port_id=ports.jeb.id,
            containers=[JobContainerIn(inventory_id=x123.id)],
        ))

        verdict = await inventory.can_delete_container(db_session, x123.id)
        assert verdict == {"can_delete": False, "reason": inventory.ALLOCATED_REASON}

        with pytest.raises(ConflictError, match="allocated to a shipment"):
            await inventory.delete_inventory(db_session, x123.id)

    async def test_delete_removes_history(self, db_session: AsyncSession, x123):
        await inventory.delete_inventory(db_session, x123.id)

        assert await ledger.history_for_inventory(db_session, x123.id) == []
        assert (await inventory.list_inventory(db_session))[1] == 0

    async def test_bulk_edit_status(self, db_session: AsyncSession, make_container):
        free = await make_container("FREE0000001")
        frozen = await make_container("FROZ0000002")
        history(db_session, frozen.id, UNAVAILABLE)
        await db_session.flush()

        results = {
            item["id"]: item
            for item in await inventory.bulk_edit_status(db_session, [free.id, frozen.id])
        }
        assert results[free.id]["can_edit"] is True
        assert results[free.id]["can_delete"] is True
        assert results[frozen.id]["can_edit"] is False
        assert results[frozen.id]["reason"] == PROGRESSED_REASON
