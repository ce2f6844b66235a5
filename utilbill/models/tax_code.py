"""VAT and withholding tax code models.

Percentages are stored as entered: either points (12 for 12%) or a
fraction (0.12). The engine normalizes them on read.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from utilbill.core.database import Base


class VatCode(Base):
    """VAT percentages per utility."""

    __tablename__ = "vat_codes"

    code: Mapped[str] = mapped_column(String(30), primary_key=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    electric: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
    water: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
    lpg: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))


class WithholdingCode(Base):
    """Withholding tax percentages per utility (applied to VAT)."""

    __tablename__ = "wt_codes"

    code: Mapped[str] = mapped_column(String(30), primary_key=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    electric: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
    water: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
    lpg: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("0"))
