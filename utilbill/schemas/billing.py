"""Billing result schemas.

All results are frozen: once the engine builds a result it is never mutated.
Monetary and consumption figures are rounded to 2 decimal places.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from utilbill.core.errors import Entity, ErrorKind
from utilbill.models.enums import BillingMode, UtilityType
from utilbill.schemas.period import Period

ZERO = Decimal("0")


class RateTriple(BaseModel):
    """Rate composition exposed on every bill, even when markup is zero."""

    model_config = ConfigDict(frozen=True)

    utility_rate: Decimal
    markup_rate: Decimal
    system_rate: Decimal


class Charges(BaseModel):
    """Outcome of the tax cascade for one meter."""

    model_config = ConfigDict(frozen=True)

    consumption: Decimal
    base: Decimal
    vat: Decimal
    wt: Decimal
    penalty: Decimal
    total: Decimal


class ChargeTotals(BaseModel):
    """Summed monetary fields for a bucket of bills."""

    model_config = ConfigDict(frozen=True)

    base: Decimal = ZERO
    vat: Decimal = ZERO
    wt: Decimal = ZERO
    penalty: Decimal = ZERO
    total: Decimal = ZERO


class MeterInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    meter_id: str
    serial_number: str | None
    utility_type: UtilityType
    multiplier: Decimal


class StallInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    stall_id: str
    building_id: str
    tenant_id: str | None


class TenantInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: str
    tenant_name: str | None
    vat_code: str | None
    wt_code: str | None
    for_penalty: bool


class IndexPair(BaseModel):
    """The two located index readings a bill is derived from."""

    model_config = ConfigDict(frozen=True)

    previous_index: Decimal
    current_index: Decimal


class BillingResult(BaseModel):
    """Bill for one meter over one window pair.

    ``rate_of_change_percent`` is filled in for meter and tenant bills and is
    None when the meter has no rate of change for the same window.
    """

    model_config = ConfigDict(frozen=True)

    mode: BillingMode
    meter: MeterInfo
    stall: StallInfo
    tenant: TenantInfo
    current_period: Period
    previous_period: Period
    indices: IndexPair
    rates: RateTriple
    vat_rate: Decimal
    wt_rate: Decimal
    penalty_rate: Decimal
    building_penalty_rate: Decimal
    billing: Charges
    rate_of_change_percent: int | None = None


class ItemError(BaseModel):
    """A per-meter failure recorded inside a batch result."""

    model_config = ConfigDict(frozen=True)

    meter_id: str
    kind: ErrorKind
    entity: Entity | None = None
    message: str


class BillingItem(BaseModel):
    """One entry of a batch: either a result or an error."""

    model_config = ConfigDict(frozen=True)

    meter_id: str
    result: BillingResult | None = None
    error: ItemError | None = None


class BillingAggregate(BaseModel):
    """Tenant- or building-scope billing."""

    model_config = ConfigDict(frozen=True)

    scope: str
    scope_id: str
    mode: BillingMode
    items: list[BillingItem]
    totals_by_type: dict[UtilityType, ChargeTotals]
    grand_totals: ChargeTotals


class StatementRow(BaseModel):
    """Flat sheet row for the building statement."""

    model_config = ConfigDict(frozen=True)

    stall_id: str
    tenant_id: str
    tenant_name: str | None
    meter_id: str
    serial_number: str | None
    utility_type: UtilityType
    multiplier: Decimal
    reading_previous: Decimal
    reading_present: Decimal
    consumed: Decimal
    system_rate: Decimal
    utility_rate: Decimal | None
    vat_rate: Decimal | None
    total_amount: Decimal
    previous_consumed: Decimal | None
    rate_of_change_pct: int | None
    vat_code: str | None
    wt_code: str | None
    for_penalty: bool


class TenantStatement(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: str
    tenant_name: str | None
    rows: list[StatementRow]


class StatementTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_consumed: Decimal
    total_amount: Decimal


class BuildingStatement(BaseModel):
    """Building billing flattened into sheet rows grouped by tenant."""

    model_config = ConfigDict(frozen=True)

    building_id: str
    mode: BillingMode
    current_period: Period
    previous_period: Period
    tenants: list[TenantStatement]
    totals: StatementTotals
    errors: list[ItemError]
