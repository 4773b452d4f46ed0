"""Aggregate model imports for Alembic auto-detection and mapper setup."""

# ── Reference data ───────────────────────────────────────────
from containerops.models.port import Port
from containerops.models.address_book import AddressBook

# ── Container inventory ─────────────────────────────────────
from containerops.models.inventory import Inventory, LeasingInfo

# ── Jobs ─────────────────────────────────────────────────────
from containerops.models.shipment import BlAssignment, Shipment, ShipmentContainer
from containerops.models.empty_repo_job import EmptyRepoJob, RepoShipmentContainer

# ── Ledger ───────────────────────────────────────────────────
from containerops.models.movement_history import MovementHistory

# ── Billing & numbering ─────────────────────────────────────
from containerops.models.bill_management import BillManagement
from containerops.models.sequence_counter import SequenceCounter

__all__ = [
    "Port", "AddressBook",
    "Inventory", "LeasingInfo",
    "Shipment", "ShipmentContainer", "BlAssignment",
    "EmptyRepoJob", "RepoShipmentContainer",
    "MovementHistory",
    "BillManagement", "SequenceCounter",
]
