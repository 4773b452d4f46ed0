"""Inventory — a physical container owned or leased by the operator.

There is deliberately no status column: where a container is and what it
is doing is read from its MovementHistory rows (the latest row wins).

LeasingInfo rows record each on-hire period.  A container may be re-leased
after off-hire, so the relationship is one-to-many.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from containerops.database import Base


class Inventory(Base):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    container_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    # ── Physical attributes ──────────────────────────────────
    container_category: Mapped[str | None] = mapped_column(String(50))  # "Tank", "Dry"
    container_type: Mapped[str | None] = mapped_column(String(50))
    container_size: Mapped[str | None] = mapped_column(String(20))  # "20FT", "40FT"
    container_class: Mapped[str | None] = mapped_column(String(50))
    container_capacity: Mapped[str | None] = mapped_column(String(50))
    capacity_unit: Mapped[str | None] = mapped_column(String(20))
    manufacturer: Mapped[str | None] = mapped_column(String(255))
    build_year: Mapped[str | None] = mapped_column(String(10))
    gross_weight: Mapped[str | None] = mapped_column(String(50))
    tare_weight: Mapped[str | None] = mapped_column(String(50))
    initial_survey_date: Mapped[datetime | None] = mapped_column(DateTime)

    # ── Metadata ─────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    leasing_info = relationship(
        "LeasingInfo",
        back_populates="inventory",
        lazy="selectin",
        order_by="LeasingInfo.id",
        cascade="all, delete-orphan",
    )


class LeasingInfo(Base):
    __tablename__ = "leasing_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    inventory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("inventory.id"), nullable=False, index=True
    )

    # ── Commercial terms ─────────────────────────────────────
    ownership_type: Mapped[str] = mapped_column(String(20), default="Lease")  # Own | Lease
    leasing_ref_no: Mapped[str | None] = mapped_column(String(100))
    leasor_address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )
    lease_rent_per_day: Mapped[str | None] = mapped_column(String(50))

    # ── On-hire location ─────────────────────────────────────
    port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))
    on_hire_depot_address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )

    # ── Hire period ──────────────────────────────────────────
    on_hire_date: Mapped[datetime | None] = mapped_column(DateTime)
    off_hire_date: Mapped[datetime | None] = mapped_column(DateTime)

    remarks: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # ── Relationships ────────────────────────────────────────
    inventory = relationship("Inventory", back_populates="leasing_info")
