"""Building statement: billing rows grouped by tenant, decorated with rate of change."""

import logging
from collections.abc import Collection
from decimal import ROUND_HALF_UP, Decimal

from utilbill.core.numbers import ZERO, round2
from utilbill.models.enums import BillingMode
from utilbill.schemas.billing import (
    BillingResult,
    BuildingStatement,
    StatementRow,
    StatementTotals,
    TenantStatement,
)
from utilbill.schemas.rate_of_change import RocResult
from utilbill.services.billing import compute_building_billing
from utilbill.services.catalog import BillingCatalog
from utilbill.services.periods import PeriodStrategy
from utilbill.services.rate_of_change import rate_of_change_by_meter
from utilbill.services.taxes import PercentUnit

logger = logging.getLogger(__name__)

RATE_PLACES = Decimal("0.000001")
VAT_RATE_PLACES = Decimal("0.0001")


def _row(result: BillingResult, roc: RocResult | None) -> StatementRow:
    charges = result.billing
    return StatementRow(
        stall_id=result.stall.stall_id,
        tenant_id=result.tenant.tenant_id,
        tenant_name=result.tenant.tenant_name,
        meter_id=result.meter.meter_id,
        serial_number=result.meter.serial_number,
        utility_type=result.meter.utility_type,
        multiplier=result.meter.multiplier,
        reading_previous=result.indices.previous_index,
        reading_present=result.indices.current_index,
        consumed=charges.consumption,
        system_rate=result.rates.system_rate,
        utility_rate=(charges.base / charges.consumption).quantize(RATE_PLACES, ROUND_HALF_UP)
        if charges.consumption > ZERO
        else None,
        vat_rate=(charges.vat / charges.base).quantize(VAT_RATE_PLACES)
        if charges.base > ZERO
        else None,
        total_amount=charges.total,
        previous_consumed=roc.consumptions.anchor_to_previous if roc else None,
        rate_of_change_pct=roc.rate_of_change_percent if roc else None,
        vat_code=result.tenant.vat_code,
        wt_code=result.tenant.wt_code,
        for_penalty=result.tenant.for_penalty,
    )


async def compute_building_statement(
    catalog: BillingCatalog,
    building_id: str,
    window: PeriodStrategy,
    penalty_pct: Decimal | None = None,
    scope: Collection[str] | None = None,
    mode: BillingMode = BillingMode.MARKUP,
    penalty_unit: PercentUnit = PercentUnit.AUTO,
) -> BuildingStatement:
    """Flatten building billing into tenant-grouped sheet rows.

    A meter whose rate of change cannot be computed keeps its billing row
    with the rate-of-change columns left empty.
    """
    aggregate = await compute_building_billing(
        catalog, building_id, window, penalty_pct, scope, mode, penalty_unit
    )
    billed = [i.result for i in aggregate.items if i.result is not None]
    errors = [i.error for i in aggregate.items if i.error is not None]

    rocs = await rate_of_change_by_meter(catalog, [r.meter.meter_id for r in billed], window)
    rows = [_row(result, rocs[result.meter.meter_id]) for result in billed]

    tenants: dict[str, TenantStatement] = {}
    for row in rows:
        current = tenants.get(row.tenant_id)
        tenants[row.tenant_id] = TenantStatement(
            tenant_id=row.tenant_id,
            tenant_name=row.tenant_name,
            rows=[*(current.rows if current else []), row],
        )

    windows = window.resolve()
    logger.info("Statement for building %s: %d row(s)", building_id, len(rows))
    return BuildingStatement(
        building_id=building_id,
        mode=mode,
        current_period=windows.current,
        previous_period=windows.previous,
        tenants=list(tenants.values()),
        totals=StatementTotals(
            total_consumed=round2(sum((r.consumed for r in rows), ZERO)),
            total_amount=round2(sum((r.total_amount for r in rows), ZERO)),
        ),
        errors=errors,
    )
