"""Rate-of-change result schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from utilbill.models.enums import UtilityType
from utilbill.schemas.billing import ItemError
from utilbill.schemas.period import Period, WindowSet


class RocIndices(BaseModel):
    model_config = ConfigDict(frozen=True)

    anchor_index: Decimal
    previous_index: Decimal
    current_index: Decimal


class RocConsumptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    anchor_to_previous: Decimal
    previous_to_current: Decimal


class RocResult(BaseModel):
    """Rate of change for one meter across anchor, previous and current windows.

    ``rate_of_change_percent`` is None when the anchor-to-previous baseline is
    zero: the change cannot be expressed as a percentage.
    """

    model_config = ConfigDict(frozen=True)

    meter_id: str
    stall_id: str
    tenant_id: str | None
    building_id: str
    utility_type: UtilityType
    windows: WindowSet
    indices: RocIndices
    consumptions: RocConsumptions
    delta: Decimal
    rate_of_change_percent: int | None


class RocItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    meter_id: str
    result: RocResult | None = None
    error: ItemError | None = None


class RocGroup(BaseModel):
    """Per-utility sums; the percentage is recomputed from the sums."""

    model_config = ConfigDict(frozen=True)

    utility_type: UtilityType
    meter_ids: list[str]
    anchor_to_previous: Decimal
    previous_to_current: Decimal
    delta: Decimal
    rate_of_change_percent: int | None


class TenantRoc(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: str | None
    windows: WindowSet
    items: list[RocItem]
    groups: list[RocGroup]


class BuildingRoc(BaseModel):
    model_config = ConfigDict(frozen=True)

    building_id: str
    building_name: str | None
    windows: WindowSet
    items: list[RocItem]
    groups: list[RocGroup]
    tenants: list[TenantRoc]


class ConsumptionTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    electric: Decimal = Decimal("0")
    water: Decimal = Decimal("0")
    lpg: Decimal = Decimal("0")


class ConsumptionComparison(BaseModel):
    """Per-utility consumption for a window measured against its predecessor."""

    model_config = ConfigDict(frozen=True)

    building_id: str
    building_name: str | None
    current_period: Period
    previous_period: Period
    totals: ConsumptionTotals
    skipped_meter_ids: list[str]


class ConsumptionSlice(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    period: Period
    totals: ConsumptionTotals


class ConsumptionSlices(BaseModel):
    model_config = ConfigDict(frozen=True)

    building_id: str
    building_name: str | None
    anchor_period: Period
    slices: list[ConsumptionSlice]
    skipped_meter_ids: list[str]
