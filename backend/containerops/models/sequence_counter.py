"""SequenceCounter — last issued value per (kind, scope).

kind   — "shipment_job", "house_bl", "empty_repo_job", "invoice"
scope  — the part of the reference the sequence restarts on, e.g. "25"
         for the yearly shipment job number or "NSAJEB/25" for a route's
         house BL.  "*" for sequences that never restart.

The row is read FOR UPDATE inside the transaction that inserts the new
entity, so two concurrent creates cannot draw the same number.
"""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from containerops.database import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"
    __table_args__ = (UniqueConstraint("kind", "scope", name="uq_sequence_counters_kind_scope"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    kind: Mapped[str] = mapped_column(String(50), nullable=False)
    scope: Mapped[str] = mapped_column(String(100), nullable=False)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
