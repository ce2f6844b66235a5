"""Meter database model."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.reading import Reading
    from utilbill.models.stall import Stall


class Meter(Base):
    """Utility meter attached to a stall."""

    __tablename__ = "meters"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    serial_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # Stored as text; parsed into UtilityType by the engine
    meter_type: Mapped[str] = mapped_column(String(20), index=True)
    multiplier: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("1"))
    stall_id: Mapped[str] = mapped_column(ForeignKey("stalls.id"), index=True)

    # Relationships
    stall: Mapped["Stall"] = relationship(back_populates="meters")
    readings: Mapped[list["Reading"]] = relationship(back_populates="meter")
