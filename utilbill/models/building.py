"""Building database model."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.stall import Stall


class Building(Base):
    """Building with its per-utility rate table."""

    __tablename__ = "buildings"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))

    # Per-unit rates
    electric_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    water_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    lpg_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    # Minimum billed consumption (LPG floor is a global setting)
    electric_minimum: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    water_minimum: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    markup_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    penalty_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    # Relationships
    stalls: Mapped[list["Stall"]] = relationship(back_populates="building")
