"""Reading database model - the index ledger."""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.meter import Meter


class Reading(Base):
    """Dated meter index reading."""

    __tablename__ = "readings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    meter_id: Mapped[str] = mapped_column(ForeignKey("meters.id"), index=True)
    reading_date: Mapped[date] = mapped_column(index=True)
    value: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2))

    # Relationships
    meter: Mapped["Meter"] = relationship(back_populates="readings")
