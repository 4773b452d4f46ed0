"""BillManagement — billing record for a shipment.

Created automatically (zero amounts, Pending/Unpaid) when a shipment is
created.  When the shipment is deleted the row is detached rather than
removed: shipment_id is cleared and a snapshot of the shipment's job
number, date, customer and route is copied onto the row.

billing_status:  Pending → Generated (once an invoice number is set)
payment_status:  Unpaid | Partial | Paid (derived from amounts)
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from containerops.database import Base


class BillManagement(Base):
    __tablename__ = "bill_management"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invoice_no: Mapped[str] = mapped_column(String(50), default="", index=True)

    # ── Amounts ──────────────────────────────────────────────
    invoice_amount: Mapped[float] = mapped_column(Float, default=0.0)
    paid_amount: Mapped[float] = mapped_column(Float, default=0.0)
    due_amount: Mapped[float] = mapped_column(Float, default=0.0)

    # ── Status ───────────────────────────────────────────────
    billing_status: Mapped[str] = mapped_column(String(20), default="Pending")
    payment_status: Mapped[str] = mapped_column(String(20), default="Unpaid")

    # ── Shipment link ────────────────────────────────────────
    shipment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("shipments.id", ondelete="SET NULL"), index=True
    )

    # ── Snapshot (filled when the shipment is deleted) ───────
    shipment_number: Mapped[str | None] = mapped_column(String(50))
    shipment_date: Mapped[datetime | None] = mapped_column(DateTime)
    customer_name: Mapped[str | None] = mapped_column(String(255))
    port_details: Mapped[str | None] = mapped_column(String(255))

    remarks: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    shipment = relationship("Shipment", lazy="selectin")
