"""Read-only catalog snapshots consumed by the billing engine."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from utilbill.models.enums import UtilityType


class MeterRecord(BaseModel):
    """Meter as seen by the engine."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    serial_number: str | None = None
    meter_type: str
    multiplier: Decimal = Decimal("1")
    stall_id: str


class StallRecord(BaseModel):
    """Stall as seen by the engine."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    building_id: str
    tenant_id: str | None = None


class TenantRecord(BaseModel):
    """Tenant tax profile."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str | None = None
    vat_code: str | None = None
    wt_code: str | None = None
    for_penalty: bool = False


class BuildingRecord(BaseModel):
    """Building rate table."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str | None = None
    electric_rate: Decimal = Decimal("0")
    water_rate: Decimal = Decimal("0")
    lpg_rate: Decimal = Decimal("0")
    electric_minimum: Decimal = Decimal("0")
    water_minimum: Decimal = Decimal("0")
    markup_rate: Decimal = Decimal("0")
    penalty_rate: Decimal = Decimal("0")


class TaxRates(BaseModel):
    """Raw VAT and withholding percentages per utility, as stored.

    Missing codes resolve to zero rates.
    """

    model_config = ConfigDict(frozen=True)

    vat: dict[UtilityType, Decimal]
    wt: dict[UtilityType, Decimal]


class ReadingRecord(BaseModel):
    """Latest index value located inside a window."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    value: Decimal
    reading_date: date
