"""AddressBook — counterparties: customers, carriers, lessors, depots."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from containerops.database import Base


class AddressBook(Base):
    __tablename__ = "address_book"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # "Customer", "Carrier", "Leasor", "Depot Terminal", ...
    business_type: Mapped[str | None] = mapped_column(String(100))
    country: Mapped[str | None] = mapped_column(String(100))
