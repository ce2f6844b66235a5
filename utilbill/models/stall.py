"""Stall database model."""

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.building import Building
    from utilbill.models.meter import Meter
    from utilbill.models.tenant import Tenant


class Stall(Base):
    """Rentable unit inside a building; vacant when tenant_id is null."""

    __tablename__ = "stalls"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    building_id: Mapped[str] = mapped_column(ForeignKey("buildings.id"), index=True)
    tenant_id: Mapped[str | None] = mapped_column(
        ForeignKey("tenants.id"),
        nullable=True,
        index=True,
    )

    # Relationships
    building: Mapped["Building"] = relationship(back_populates="stalls")
    tenant: Mapped["Tenant | None"] = relationship(back_populates="stalls")
    meters: Mapped[list["Meter"]] = relationship(back_populates="stall")
