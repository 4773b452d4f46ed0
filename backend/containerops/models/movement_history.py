"""MovementHistory — the append-only container movement ledger.

One row per status change per container.  Rows are only ever inserted;
the single permitted in-place edit is an administrative correction of
date, remarks, maintenance status or vessel name.

The current state of a container is its row with the greatest
(date, id).  Containers with no rows have never been placed in service.

A row references at most one owning job: shipment_id XOR
empty_repo_job_id.  job_number is copied onto the row so the reference
stays readable after the job itself has been deleted.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from containerops.database import Base


class MovementHistory(Base):
    __tablename__ = "movement_history"
    __table_args__ = (
        Index("ix_movement_history_inventory_date", "inventory_id", "date", "id"),
        CheckConstraint(
            "shipment_id IS NULL OR empty_repo_job_id IS NULL",
            name="ck_movement_history_single_job",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    inventory_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("inventory.id"), nullable=False, index=True
    )

    # ── State ────────────────────────────────────────────────
    # ALLOTTED | EMPTY PICKED UP | LADEN GATE-IN | EMPTY GATE-IN | SOB | ...
    status: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    maintenance_status: Mapped[str | None] = mapped_column(String(100))

    # ── Location ─────────────────────────────────────────────
    port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))
    # Depot, terminal or carrier the container sits with
    address_book_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("address_book.id")
    )

    # ── Owning job ───────────────────────────────────────────
    shipment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("shipments.id", ondelete="SET NULL"), index=True
    )
    empty_repo_job_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("empty_repo_jobs.id", ondelete="SET NULL"), index=True
    )
    job_number: Mapped[str | None] = mapped_column(String(50))

    remarks: Mapped[str | None] = mapped_column(Text)
    vessel_name: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # ── Relationships ────────────────────────────────────────
    inventory = relationship("Inventory", lazy="selectin")
    port = relationship("Port", lazy="selectin")
    address_book = relationship("AddressBook", lazy="selectin")
