"""Tenant database model."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from utilbill.core.database import Base

if TYPE_CHECKING:
    from utilbill.models.stall import Stall


class Tenant(Base):
    """Tenant occupying one or more stalls."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(30), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    vat_code: Mapped[str | None] = mapped_column(String(30), nullable=True)
    wt_code: Mapped[str | None] = mapped_column(String(30), nullable=True)
    for_penalty: Mapped[bool] = mapped_column(default=False)

    # Relationships
    stalls: Mapped[list["Stall"]] = relationship(back_populates="tenant")
