"""Pytest configuration and fixtures for ContainerOps tests.

Every test gets a fresh in-memory SQLite database with the full schema,
a small set of ports and counterparties, and a helper to place
containers in service.  The HTTP client shares the test's session so
API tests and direct service assertions see the same data.
"""

from datetime import datetime
from types import SimpleNamespace
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from containerops.config import settings
from containerops.database import Base, get_db
from containerops.main import app
from containerops.models import AddressBook, Inventory, LeasingInfo, Port
from containerops.services import ledger
from containerops.services.transitions import AVAILABLE

# Well before any job date used in the tests
IN_SERVICE_DATE = datetime(2024, 6, 1)


# ── Test Database Setup ──────────────────────────────────────────

@pytest.fixture(autouse=True)
def _no_cache(monkeypatch):
    """Tests never talk to Redis."""
    monkeypatch.setattr(settings, "cache_enabled", False)


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the database dependency pointed at the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Reference Data ───────────────────────────────────────────────

@pytest_asyncio.fixture
async def ports(db_session: AsyncSession) -> SimpleNamespace:
    nsa = Port(port_code="NSA", port_name="Nhava Sheva", country="India")
    jeb = Port(port_code="JEB", port_name="Jebel Ali", country="UAE")
    sin = Port(port_code="SIN", port_name="Singapore", country="Singapore")
    db_session.add_all([nsa, jeb, sin])
    await db_session.flush()
    return SimpleNamespace(nsa=nsa, jeb=jeb, sin=sin)


@pytest_asyncio.fixture
async def parties(db_session: AsyncSession) -> SimpleNamespace:
    customer = AddressBook(company_name="Acme Trading", business_type="Customer")
    carrier = AddressBook(company_name="Blue Line", business_type="Carrier")
    other_carrier = AddressBook(company_name="Red Sea Lines", business_type="Carrier")
    leasor = AddressBook(company_name="Boxlease Ltd", business_type="Leasor")
    nsa_depot = AddressBook(company_name="NSA Depot", business_type="Depot Terminal")
    jeb_depot = AddressBook(company_name="JEB Depot", business_type="Depot Terminal")
    db_session.add_all([customer, carrier, other_carrier, leasor, nsa_depot, jeb_depot])
    await db_session.flush()
    return SimpleNamespace(
        customer=customer,
        carrier=carrier,
        other_carrier=other_carrier,
        leasor=leasor,
        nsa_depot=nsa_depot,
        jeb_depot=jeb_depot,
    )


# ── Containers ───────────────────────────────────────────────────

@pytest.fixture
def make_container(db_session: AsyncSession, ports, parties):
    """Factory: a leased container, optionally already AVAILABLE at its on-hire depot."""

    async def _make(number: str, in_service: bool = True, with_leasing: bool = True) -> Inventory:
        inventory = Inventory(container_number=number, container_size="20FT")
        if with_leasing:
            inventory.leasing_info.append(LeasingInfo(
                ownership_type="Lease",
                leasor_address_book_id=parties.leasor.id,
                port_id=ports.nsa.id,
                on_hire_depot_address_book_id=parties.nsa_depot.id,
                on_hire_date=IN_SERVICE_DATE,
                lease_rent_per_day="1.50",
            ))
        db_session.add(inventory)
        await db_session.flush()

        if in_service:
            ledger.append_row(
                db_session,
                inventory_id=inventory.id,
                status=AVAILABLE,
                date=IN_SERVICE_DATE,
                port_id=ports.nsa.id,
                address_book_id=parties.nsa_depot.id,
            )
            await db_session.flush()
        return inventory

    return _make


@pytest_asyncio.fixture
async def x123(make_container) -> Inventory:
    return await make_container("X123")
