"""Meter, tenant and building billing."""

import asyncio
import logging
from collections.abc import Collection
from decimal import Decimal

from utilbill.core.errors import (
    BillingError,
    Entity,
    ErrorKind,
    ForbiddenError,
    InsufficientDataError,
    NotFoundError,
)
from utilbill.core.numbers import ZERO, round2
from utilbill.models.enums import BillingMode, PeriodRole
from utilbill.schemas.billing import (
    BillingAggregate,
    BillingItem,
    BillingResult,
    Charges,
    IndexPair,
    ItemError,
    MeterInfo,
    StallInfo,
    TenantInfo,
)
from utilbill.schemas.catalog import ReadingRecord
from utilbill.schemas.period import Period
from utilbill.services.aggregation import aggregate_billing
from utilbill.services.batch import run_batch
from utilbill.services.catalog import BillingCatalog
from utilbill.services.consumption import consumption_for, effective_multiplier, parse_utility_type
from utilbill.services.periods import PeriodStrategy
from utilbill.services.rates import compose_rate
from utilbill.services.taxes import (
    PercentUnit,
    apply_tax_cascade,
    normalize_percent,
    tax_fractions_for,
)

logger = logging.getLogger(__name__)


def check_scope(building_id: str, scope: Collection[str] | None) -> None:
    """Raise ForbiddenError when ``building_id`` is outside the allow-list.

    ``None`` means unrestricted; an empty allow-list grants nothing.
    """
    if scope is not None and str(building_id) not in {str(b) for b in scope}:
        raise ForbiddenError(f"No access to building {building_id}")


def item_error(meter_id: str, exc: BillingError) -> ItemError:
    return ItemError(meter_id=meter_id, kind=exc.kind, entity=exc.entity, message=exc.message)


async def locate_indices(
    catalog: BillingCatalog,
    meter_id: str,
    periods: list[Period],
) -> list[ReadingRecord]:
    """Latest reading in each window, failing with every missing window named."""
    readings = await asyncio.gather(
        *(catalog.latest_reading(meter_id, p.start, p.end) for p in periods)
    )
    missing = [p for p, r in zip(periods, readings) if r is None]
    if missing:
        labels = ", ".join(f"{p.role.value} [{p.label}]" for p in missing)
        raise InsufficientDataError(
            f"No readings for meter {meter_id} in {labels}",
            [p.role for p in missing],
        )
    return list(readings)


async def compute_meter_billing(
    catalog: BillingCatalog,
    meter_id: str,
    window: PeriodStrategy,
    penalty_pct: Decimal | None = None,
    scope: Collection[str] | None = None,
    mode: BillingMode = BillingMode.STANDARD,
    penalty_unit: PercentUnit = PercentUnit.AUTO,
) -> BillingResult:
    """Bill one meter for the current window against the previous one.

    The penalty percentage is request-scoped and only applies to tenants
    flagged for penalty; the building's stored penalty rate is reported but
    never used in place of it.
    """
    meter = await catalog.get_meter(meter_id)
    utility = parse_utility_type(meter.meter_type)

    stall = await catalog.get_stall(meter.stall_id)
    check_scope(stall.building_id, scope)

    building = await catalog.get_building(stall.building_id)
    if stall.tenant_id is None:
        raise NotFoundError(Entity.TENANT, "Stall has no tenant")
    tenant = await catalog.get_tenant(stall.tenant_id)

    windows = window.resolve()
    previous, current = await locate_indices(
        catalog, meter.id, [windows.previous, windows.current]
    )

    tax_rates = await catalog.get_tax_rates(tenant.vat_code, tenant.wt_code)
    vat_fraction, wt_fraction = tax_fractions_for(utility, tax_rates)
    penalty_fraction = (
        normalize_percent(penalty_pct, penalty_unit) if tenant.for_penalty and penalty_pct else ZERO
    )

    multiplier = effective_multiplier(meter.multiplier)
    consumption = consumption_for(utility, multiplier, previous.value, current.value, building)
    rates = compose_rate(utility, building, mode)
    charges = apply_tax_cascade(
        consumption * rates.system_rate,
        vat_fraction,
        wt_fraction,
        for_penalty=tenant.for_penalty,
        penalty_fraction=penalty_fraction,
    )

    result = BillingResult(
        mode=mode,
        meter=MeterInfo(
            meter_id=meter.id,
            serial_number=meter.serial_number,
            utility_type=utility,
            multiplier=multiplier,
        ),
        stall=StallInfo(
            stall_id=stall.id,
            building_id=stall.building_id,
            tenant_id=stall.tenant_id,
        ),
        tenant=TenantInfo(
            tenant_id=tenant.id,
            tenant_name=tenant.name,
            vat_code=tenant.vat_code,
            wt_code=tenant.wt_code,
            for_penalty=tenant.for_penalty,
        ),
        current_period=windows.current,
        previous_period=windows.previous,
        indices=IndexPair(
            previous_index=round2(previous.value),
            current_index=round2(current.value),
        ),
        rates=rates,
        vat_rate=vat_fraction,
        wt_rate=wt_fraction,
        penalty_rate=penalty_fraction,
        building_penalty_rate=building.penalty_rate,
        billing=Charges(
            consumption=consumption,
            base=charges.base,
            vat=charges.vat,
            wt=charges.wt,
            penalty=charges.penalty,
            total=charges.total,
        ),
    )
    logger.debug("Billed meter %s: %s", meter.id, result.billing)
    return result


async def _bill_meters(
    catalog: BillingCatalog,
    meter_ids: list[str],
    window: PeriodStrategy,
    penalty_pct: Decimal | None,
    mode: BillingMode,
    penalty_unit: PercentUnit,
    max_concurrency: int | None,
    timeout: float | None,
) -> list[tuple[str, BillingResult | BillingError]]:
    # Scope is checked once by the caller, not per item
    return await run_batch(
        meter_ids,
        lambda meter_id: compute_meter_billing(
            catalog, meter_id, window, penalty_pct, None, mode, penalty_unit
        ),
        max_concurrency=max_concurrency,
        timeout=timeout,
    )


def _build_aggregate(
    scope: str,
    scope_id: str,
    mode: BillingMode,
    items: list[BillingItem],
) -> BillingAggregate:
    totals_by_type, grand_totals = aggregate_billing(items)
    failed = sum(1 for i in items if i.error is not None)
    logger.info(
        "Billed %s %s: %d item(s), %d failed, grand total %s",
        scope,
        scope_id,
        len(items),
        failed,
        grand_totals.total,
    )
    return BillingAggregate(
        scope=scope,
        scope_id=scope_id,
        mode=mode,
        items=items,
        totals_by_type=totals_by_type,
        grand_totals=grand_totals,
    )


async def compute_tenant_billing(
    catalog: BillingCatalog,
    tenant_id: str,
    window: PeriodStrategy,
    penalty_pct: Decimal | None = None,
    scope: Collection[str] | None = None,
    mode: BillingMode = BillingMode.STANDARD,
    penalty_unit: PercentUnit = PercentUnit.AUTO,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> BillingAggregate:
    """Bill every meter in the tenant's stalls that falls inside ``scope``.

    Per-meter failures are reported inline and excluded from the totals.
    """
    stalls = await catalog.list_stalls(tenant_id=tenant_id)
    if not stalls:
        raise NotFoundError(Entity.STALL, "No stalls found for this tenant")

    if scope is not None:
        stalls = [s for s in stalls if str(s.building_id) in {str(b) for b in scope}]
        if not stalls:
            raise ForbiddenError("No accessible stalls for this tenant")

    meters = await catalog.list_meters([s.id for s in stalls])
    if not meters:
        raise NotFoundError(Entity.METER, "No meters found for this tenant")

    outcomes = await _bill_meters(
        catalog,
        [m.id for m in meters],
        window,
        penalty_pct,
        mode,
        penalty_unit,
        max_concurrency,
        timeout,
    )
    items = [
        BillingItem(meter_id=meter_id, error=item_error(meter_id, outcome))
        if isinstance(outcome, BillingError)
        else BillingItem(meter_id=meter_id, result=outcome)
        for meter_id, outcome in outcomes
    ]
    return _build_aggregate("tenant", tenant_id, mode, items)


def is_missing_tenant(exc: BillingError) -> bool:
    return exc.kind is ErrorKind.NOT_FOUND and exc.entity is Entity.TENANT


async def compute_building_billing(
    catalog: BillingCatalog,
    building_id: str,
    window: PeriodStrategy,
    penalty_pct: Decimal | None = None,
    scope: Collection[str] | None = None,
    mode: BillingMode = BillingMode.STANDARD,
    penalty_unit: PercentUnit = PercentUnit.AUTO,
    skip_missing_tenants: bool = True,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> BillingAggregate:
    """Bill every meter in a building.

    With ``skip_missing_tenants`` (the default) meters whose tenant cannot be
    resolved, including meters in vacant stalls, are left out of the result
    entirely. Every other per-meter failure is reported as an item error.
    """
    check_scope(building_id, scope)
    await catalog.get_building(building_id)

    stalls = await catalog.list_stalls(building_id=building_id)
    if not stalls:
        raise NotFoundError(Entity.STALL, "No stalls found for this building")

    meters = await catalog.list_meters([s.id for s in stalls])
    if not meters:
        raise NotFoundError(Entity.METER, "No meters found for this building")

    outcomes = await _bill_meters(
        catalog,
        [m.id for m in meters],
        window,
        penalty_pct,
        mode,
        penalty_unit,
        max_concurrency,
        timeout,
    )

    items: list[BillingItem] = []
    for meter_id, outcome in outcomes:
        if isinstance(outcome, BillingError):
            if skip_missing_tenants and is_missing_tenant(outcome):
                logger.info("Skipping meter %s: %s", meter_id, outcome.message)
                continue
            items.append(BillingItem(meter_id=meter_id, error=item_error(meter_id, outcome)))
        else:
            items.append(BillingItem(meter_id=meter_id, result=outcome))

    return _build_aggregate("building", building_id, mode, items)
