"""Port — a seaport referenced as POL/POD, on-hire port, or ledger location."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from containerops.database import Base


class Port(Base):
    __tablename__ = "ports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # UN/LOCODE-style short code used in job numbers: "NSA", "JEB"
    port_code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False, index=True)
    port_name: Mapped[str] = mapped_column(String(255), nullable=False)
    country: Mapped[str | None] = mapped_column(String(100))
