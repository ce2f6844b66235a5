"""Rate-of-change analytics.

For a meter, three windows (anchor, previous, current) yield two consecutive
consumptions. The rate of change is

    ceil((previous_to_current - anchor_to_previous) / anchor_to_previous * 100)

rounded up on purpose, and None when the anchor-to-previous baseline is zero.
Tenant and building variants recompute the percentage from per-utility sums
rather than averaging per-meter percentages.
"""

import asyncio
import logging
import math
from collections.abc import Collection
from datetime import date
from decimal import Decimal
from functools import reduce

from utilbill.core.errors import BillingError, Entity, ForbiddenError, NotFoundError
from utilbill.core.numbers import ZERO, round2
from utilbill.models.enums import PeriodRole, UtilityType
from utilbill.schemas.billing import BillingAggregate, BillingResult
from utilbill.schemas.catalog import BuildingRecord, MeterRecord, StallRecord
from utilbill.schemas.period import Period
from utilbill.schemas.rate_of_change import (
    BuildingRoc,
    ConsumptionComparison,
    ConsumptionSlice,
    ConsumptionSlices,
    ConsumptionTotals,
    RocConsumptions,
    RocGroup,
    RocIndices,
    RocItem,
    RocResult,
    TenantRoc,
)
from utilbill.services.aggregation import UTILITY_ORDER
from utilbill.services.batch import run_batch
from utilbill.services.billing import check_scope, item_error, locate_indices
from utilbill.services.catalog import BillingCatalog
from utilbill.services.consumption import consumption_for, effective_multiplier, parse_utility_type
from utilbill.services.periods import PeriodStrategy, previous_same_length, split_window

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


def rate_of_change_percent(baseline: Decimal, latest: Decimal) -> int | None:
    """Ceiling percentage change from ``baseline`` to ``latest``."""
    if baseline <= ZERO:
        return None
    return math.ceil((latest - baseline) * HUNDRED / baseline)


async def compute_meter_roc(
    catalog: BillingCatalog,
    meter_id: str,
    window: PeriodStrategy,
    scope: Collection[str] | None = None,
) -> RocResult:
    """Rate of change for one meter.

    Raises InsufficientDataError naming every window without a reading.
    """
    meter = await catalog.get_meter(meter_id)
    utility = parse_utility_type(meter.meter_type)
    stall = await catalog.get_stall(meter.stall_id)
    check_scope(stall.building_id, scope)
    building = await catalog.get_building(stall.building_id)

    windows = window.resolve()
    anchor, previous, current = await locate_indices(
        catalog, meter.id, [windows.anchor, windows.previous, windows.current]
    )

    multiplier = effective_multiplier(meter.multiplier)
    anchor_to_previous = consumption_for(
        utility, multiplier, anchor.value, previous.value, building
    )
    previous_to_current = consumption_for(
        utility, multiplier, previous.value, current.value, building
    )

    return RocResult(
        meter_id=meter.id,
        stall_id=stall.id,
        tenant_id=stall.tenant_id,
        building_id=stall.building_id,
        utility_type=utility,
        windows=windows,
        indices=RocIndices(
            anchor_index=round2(anchor.value),
            previous_index=round2(previous.value),
            current_index=round2(current.value),
        ),
        consumptions=RocConsumptions(
            anchor_to_previous=anchor_to_previous,
            previous_to_current=previous_to_current,
        ),
        delta=round2(previous_to_current - anchor_to_previous),
        rate_of_change_percent=rate_of_change_percent(anchor_to_previous, previous_to_current),
    )


async def rate_of_change_by_meter(
    catalog: BillingCatalog,
    meter_ids: list[str],
    window: PeriodStrategy,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> dict[str, RocResult | None]:
    """Rate of change keyed by meter id; meters that cannot be analyzed map to None."""
    outcomes = await run_batch(
        meter_ids,
        lambda meter_id: compute_meter_roc(catalog, meter_id, window),
        max_concurrency=max_concurrency,
        timeout=timeout,
    )
    return {
        meter_id: None if isinstance(outcome, BillingError) else outcome
        for meter_id, outcome in outcomes
    }


def _with_percent(result: BillingResult, roc: RocResult | None) -> BillingResult:
    return result.model_copy(
        update={"rate_of_change_percent": roc.rate_of_change_percent if roc else None}
    )


async def bill_with_rate_of_change(
    catalog: BillingCatalog,
    result: BillingResult,
    window: PeriodStrategy,
) -> BillingResult:
    """Attach the meter's rate of change for the same window to its bill."""
    rocs = await rate_of_change_by_meter(catalog, [result.meter.meter_id], window)
    return _with_percent(result, rocs[result.meter.meter_id])


async def aggregate_with_rate_of_change(
    catalog: BillingCatalog,
    aggregate: BillingAggregate,
    window: PeriodStrategy,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> BillingAggregate:
    """Attach rate of change to every successful item; totals are unchanged."""
    billed = [i.meter_id for i in aggregate.items if i.result is not None]
    rocs = await rate_of_change_by_meter(catalog, billed, window, max_concurrency, timeout)
    items = [
        item.model_copy(update={"result": _with_percent(item.result, rocs[item.meter_id])})
        if item.result is not None
        else item
        for item in aggregate.items
    ]
    return aggregate.model_copy(update={"items": items})


def group_by_type(results: list[RocResult]) -> list[RocGroup]:
    """Sum consumptions per utility and recompute the percentage from the sums."""

    def fold(
        acc: dict[UtilityType, tuple[list[str], Decimal, Decimal]],
        result: RocResult,
    ) -> dict[UtilityType, tuple[list[str], Decimal, Decimal]]:
        meter_ids, a2p, p2c = acc.get(result.utility_type, ([], ZERO, ZERO))
        return {
            **acc,
            result.utility_type: (
                [*meter_ids, result.meter_id],
                a2p + result.consumptions.anchor_to_previous,
                p2c + result.consumptions.previous_to_current,
            ),
        }

    sums = reduce(fold, results, {})
    groups: list[RocGroup] = []
    for utility in UTILITY_ORDER:
        if utility not in sums:
            continue
        meter_ids, a2p, p2c = sums[utility]
        a2p, p2c = round2(a2p), round2(p2c)
        groups.append(
            RocGroup(
                utility_type=utility,
                meter_ids=meter_ids,
                anchor_to_previous=a2p,
                previous_to_current=p2c,
                delta=round2(p2c - a2p),
                rate_of_change_percent=rate_of_change_percent(a2p, p2c),
            )
        )
    return groups


async def _roc_items(
    catalog: BillingCatalog,
    meters: list[MeterRecord],
    window: PeriodStrategy,
    max_concurrency: int | None,
    timeout: float | None,
) -> list[RocItem]:
    outcomes = await run_batch(
        [m.id for m in meters],
        lambda meter_id: compute_meter_roc(catalog, meter_id, window),
        max_concurrency=max_concurrency,
        timeout=timeout,
    )
    return [
        RocItem(meter_id=meter_id, error=item_error(meter_id, outcome))
        if isinstance(outcome, BillingError)
        else RocItem(meter_id=meter_id, result=outcome)
        for meter_id, outcome in outcomes
    ]


def _successes(items: list[RocItem]) -> list[RocResult]:
    return [i.result for i in items if i.result is not None]


async def compute_tenant_roc(
    catalog: BillingCatalog,
    tenant_id: str,
    window: PeriodStrategy,
    scope: Collection[str] | None = None,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> TenantRoc:
    """Rate of change for every meter of a tenant, grouped by utility."""
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

    items = await _roc_items(catalog, meters, window, max_concurrency, timeout)
    logger.info("Rate of change for tenant %s: %d meter(s)", tenant_id, len(items))
    return TenantRoc(
        tenant_id=tenant_id,
        windows=window.resolve(),
        items=items,
        groups=group_by_type(_successes(items)),
    )


async def _building_meters(
    catalog: BillingCatalog,
    building_id: str,
    scope: Collection[str] | None,
) -> tuple[BuildingRecord, list[StallRecord], list[MeterRecord]]:
    check_scope(building_id, scope)
    building = await catalog.get_building(building_id)
    stalls = await catalog.list_stalls(building_id=building_id)
    if not stalls:
        raise NotFoundError(Entity.STALL, "No stalls found for this building")
    meters = await catalog.list_meters([s.id for s in stalls])
    if not meters:
        raise NotFoundError(Entity.METER, "No meters found for this building")
    return building, stalls, meters


async def compute_building_roc(
    catalog: BillingCatalog,
    building_id: str,
    window: PeriodStrategy,
    scope: Collection[str] | None = None,
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> BuildingRoc:
    """Rate of change for a building, grouped by utility overall and per tenant.

    Meters in vacant stalls are reported under a tenant entry with no id.
    """
    building, stalls, meters = await _building_meters(catalog, building_id, scope)
    windows = window.resolve()
    items = await _roc_items(catalog, meters, window, max_concurrency, timeout)

    tenant_of_stall = {s.id: s.tenant_id for s in stalls}
    tenant_of_meter = {m.id: tenant_of_stall.get(m.stall_id) for m in meters}
    tenant_ids = list(dict.fromkeys(s.tenant_id for s in stalls))

    tenants: list[TenantRoc] = []
    for tenant_id in tenant_ids:
        tenant_items = [i for i in items if tenant_of_meter[i.meter_id] == tenant_id]
        if not tenant_items:
            continue
        tenants.append(
            TenantRoc(
                tenant_id=tenant_id,
                windows=windows,
                items=tenant_items,
                groups=group_by_type(_successes(tenant_items)),
            )
        )

    logger.info("Rate of change for building %s: %d meter(s)", building_id, len(items))
    return BuildingRoc(
        building_id=building.id,
        building_name=building.name,
        windows=windows,
        items=items,
        groups=group_by_type(_successes(items)),
        tenants=tenants,
    )


def _totals(pairs: list[tuple[UtilityType, Decimal]]) -> ConsumptionTotals:
    sums = {
        utility: round2(sum((units for u, units in pairs if u is utility), ZERO))
        for utility in UtilityType
    }
    return ConsumptionTotals(
        electric=sums[UtilityType.ELECTRIC],
        water=sums[UtilityType.WATER],
        lpg=sums[UtilityType.LPG],
    )


async def compute_building_consumption_comparison(
    catalog: BillingCatalog,
    building_id: str,
    window: PeriodStrategy,
    scope: Collection[str] | None = None,
) -> ConsumptionComparison:
    """Per-utility consumption of the current window against the previous one.

    Meters lacking a reading in either window are skipped.
    """
    building, _, meters = await _building_meters(catalog, building_id, scope)
    meters_by_id = {m.id: m for m in meters}
    windows = window.resolve()

    async def measure(meter_id: str) -> tuple[UtilityType, Decimal]:
        meter = meters_by_id[meter_id]
        utility = parse_utility_type(meter.meter_type)
        previous, current = await locate_indices(
            catalog, meter.id, [windows.previous, windows.current]
        )
        units = consumption_for(
            utility,
            effective_multiplier(meter.multiplier),
            previous.value,
            current.value,
            building,
        )
        return utility, units

    outcomes = await run_batch([m.id for m in meters], measure)
    measured = [o for _, o in outcomes if not isinstance(o, BillingError)]
    skipped = [meter_id for meter_id, o in outcomes if isinstance(o, BillingError)]

    return ConsumptionComparison(
        building_id=building.id,
        building_name=building.name,
        current_period=windows.current,
        previous_period=windows.previous,
        totals=_totals(measured),
        skipped_meter_ids=skipped,
    )


async def compute_building_consumption_slices(
    catalog: BillingCatalog,
    building_id: str,
    start: date,
    end: date,
    count: int = 4,
    scope: Collection[str] | None = None,
) -> ConsumptionSlices:
    """Split ``[start, end]`` into ``count`` slices and total consumption per slice.

    Each slice is measured from the previous slice's latest index; the first
    slice uses the same-length window right before it as its anchor.
    """
    building, _, meters = await _building_meters(catalog, building_id, scope)
    bounds = split_window(start, end, count)
    meters_by_id = {m.id: m for m in meters}

    anchor_start, anchor_end = previous_same_length(*bounds[0])
    anchor = Period(role=PeriodRole.ANCHOR, start=anchor_start, end=anchor_end)
    periods = [Period(role=PeriodRole.CURRENT, start=s, end=e) for s, e in bounds]

    async def measure(meter_id: str) -> list[tuple[int, UtilityType, Decimal]]:
        meter = meters_by_id[meter_id]
        utility = parse_utility_type(meter.meter_type)
        multiplier = effective_multiplier(meter.multiplier)
        readings = await asyncio.gather(
            *(catalog.latest_reading(meter.id, p.start, p.end) for p in [anchor, *periods])
        )
        return [
            (index, utility, consumption_for(utility, multiplier, prev.value, curr.value, building))
            for index, (prev, curr) in enumerate(zip(readings, readings[1:]))
            if prev is not None and curr is not None
        ]

    outcomes = await run_batch([m.id for m in meters], measure)
    measured = [
        row for _, o in outcomes if not isinstance(o, BillingError) for row in o
    ]
    skipped = [
        meter_id for meter_id, o in outcomes if isinstance(o, BillingError) or not o
    ]

    slices = [
        ConsumptionSlice(
            label=period.end.strftime("%Y-%m"),
            period=period,
            totals=_totals([(u, units) for i, u, units in measured if i == index]),
        )
        for index, period in enumerate(periods)
    ]
    return ConsumptionSlices(
        building_id=building.id,
        building_name=building.name,
        anchor_period=anchor,
        slices=slices,
        skipped_meter_ids=skipped,
    )
