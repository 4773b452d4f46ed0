"""EmptyRepoJob — repositioning of empty containers between ports.

Mirrors Shipment without cargo parties.  The job number doubles as the
house BL: RST/{POL}{POD}/{yy}/ER{seq5}, where the ER sequence is global
across every route.

Lifecycle:  ACTIVE → CANCELLED   (deletion removes the row entirely)
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from containerops.database import Base


class EmptyRepoJob(Base):
    __tablename__ = "empty_repo_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    house_bl: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # ── Routing ──────────────────────────────────────────────
    pol_port_id: Mapped[int] = mapped_column(Integer, ForeignKey("ports.id"), nullable=False)
    pod_port_id: Mapped[int] = mapped_column(Integer, ForeignKey("ports.id"), nullable=False)
    transhipment_port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))

    # ── Parties ──────────────────────────────────────────────
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
    master_bl: Mapped[str | None] = mapped_column(String(100))
    shipping_term: Mapped[str | None] = mapped_column(String(50))
    vessel_name: Mapped[str | None] = mapped_column(String(255))
    quantity: Mapped[str | None] = mapped_column(String(20))

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
    containers = relationship(
        "RepoShipmentContainer",
        back_populates="job",
        lazy="selectin",
        order_by="RepoShipmentContainer.id",
        cascade="all, delete-orphan",
    )


class RepoShipmentContainer(Base):
    """A container committed to an empty-repositioning job."""

    __tablename__ = "repo_shipment_containers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    empty_repo_job_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("empty_repo_jobs.id"), nullable=False, index=True
    )
    inventory_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("inventory.id"), index=True
    )
    container_number: Mapped[str | None] = mapped_column(String(50))
    capacity: Mapped[str | None] = mapped_column(String(50))
    tare: Mapped[str | None] = mapped_column(String(50))
    port_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("ports.id"))
    depot_name: Mapped[str | None] = mapped_column(String(255))

    job = relationship("EmptyRepoJob", back_populates="containers")
