"""Shipment — a laden booking from POL to POD.

Owns a job number ({yy}/{seq5}, global per year) and a house BL
(RST/{POL}{POD}/{yy}/{seq5}, sequenced per route).  The containers
committed to it are mirrored in ShipmentContainer; their lifecycle lives
in the movement ledger.

Lifecycle:  ACTIVE → CANCELLED   (deletion removes the row entirely)
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from containerops.database import Base


class Shipment(Base):
    __tablename__ = "shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    house_bl: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # ── Routing ──────────────────────────────────────────────
    pol_port_id: Mapped[int] = mapped_column(Integer, ForeignKey("ports.id"), nullable=False)
    pod_port_id: Mapped[int] = mapped_column(Integer, ForeignKey("ports.id"), nullable=False)
    transhipment_port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))

    # ── Parties ──────────────────────────────────────────────
    customer_address_book_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("address_book.id"))
    consignee_address_book_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("address_book.id"))
    shipper_address_book_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("address_book.id"))
    carrier_address_book_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("address_book.id"))
    empty_return_depot_address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )
    exp_handling_agent_address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )
    imp_handling_agent_address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )

    # ── Booking details ──────────────────────────────────────
    quotation_ref_number: Mapped[str | None] = mapped_column(String(100))
    ref_number: Mapped[str | None] = mapped_column(String(100))
    master_bl: Mapped[str | None] = mapped_column(String(100))
    shipping_term: Mapped[str | None] = mapped_column(String(50))
    vessel_name: Mapped[str | None] = mapped_column(String(255))
    quantity: Mapped[str | None] = mapped_column(String(20))
    pol_free_days: Mapped[str | None] = mapped_column(String(20))
    pod_free_days: Mapped[str | None] = mapped_column(String(20))
    pol_detention_rate: Mapped[str | None] = mapped_column(String(20))
    pod_detention_rate: Mapped[str | None] = mapped_column(String(20))

    # ── Dates ────────────────────────────────────────────────
    gs_date: Mapped[datetime | None] = mapped_column(DateTime)
    eta_to_pod: Mapped[datetime | None] = mapped_column(DateTime)
    estimate_date: Mapped[datetime | None] = mapped_column(DateTime)
    sob_date: Mapped[datetime | None] = mapped_column(DateTime)

    # ── Status ───────────────────────────────────────────────
    # ACTIVE | CANCELLED
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", index=True)
    remark: Mapped[str | None] = mapped_column(Text)
    has_cro_generated: Mapped[bool] = mapped_column(Boolean, default=False)
    first_cro_generation_date: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    pol_port = relationship("Port", foreign_keys=[pol_port_id], lazy="selectin")
    pod_port = relationship("Port", foreign_keys=[pod_port_id], lazy="selectin")
    customer = relationship("AddressBook", foreign_keys=[customer_address_book_id], lazy="selectin")
    containers = relationship(
        "ShipmentContainer",
        back_populates="shipment",
        lazy="selectin",
        order_by="ShipmentContainer.id",
        cascade="all, delete-orphan",
    )


class ShipmentContainer(Base):
    """A container committed to a shipment."""

    __tablename__ = "shipment_containers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shipment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shipments.id"), nullable=False, index=True
    )
    inventory_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("inventory.id"), index=True
    )
    container_number: Mapped[str | None] = mapped_column(String(50))
    capacity: Mapped[str | None] = mapped_column(String(50))
    tare: Mapped[str | None] = mapped_column(String(50))
    port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))
    depot_name: Mapped[str | None] = mapped_column(String(255))

    shipment = relationship("Shipment", back_populates="containers")


class BlAssignment(Base):
    """Grouping of a shipment's containers onto individual bills of lading."""

    __tablename__ = "bl_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shipment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shipments.id"), nullable=False, index=True
    )
    # draft | original | seaway
    bl_type: Mapped[str] = mapped_column(String(20), nullable=False)
    bl_index: Mapped[int] = mapped_column(Integer, nullable=False)
    # ["ABCU1234567", "ABCU7654321"]
    container_numbers: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
