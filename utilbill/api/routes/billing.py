"""Billing routes for meters, tenants and buildings."""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from utilbill.api.dependencies import get_building_scope, get_catalog, get_window
from utilbill.models.enums import BillingMode
from utilbill.schemas.billing import BillingAggregate, BillingResult, BuildingStatement
from utilbill.services import billing as billing_service
from utilbill.services import rate_of_change as roc_service
from utilbill.services import statements as statement_service
from utilbill.services.catalog import BillingCatalog
from utilbill.services.periods import PeriodStrategy
from utilbill.services.taxes import PercentUnit

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/meters/{meter_id}", response_model=BillingResult)
async def bill_meter(
    meter_id: str,
    window: PeriodStrategy = Depends(get_window),
    penalty_rate: Decimal | None = Query(None, ge=0, description="Penalty percentage"),
    penalty_unit: PercentUnit = Query(PercentUnit.AUTO),
    mode: BillingMode = Query(BillingMode.STANDARD),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> BillingResult:
    """Bill one meter: current window index against the previous window index.

    The bill carries the meter's rate of change for the same window.
    """
    result = await billing_service.compute_meter_billing(
        catalog, meter_id, window, penalty_rate, scope, mode, penalty_unit
    )
    return await roc_service.bill_with_rate_of_change(catalog, result, window)


@router.get("/tenants/{tenant_id}", response_model=BillingAggregate)
async def bill_tenant(
    tenant_id: str,
    window: PeriodStrategy = Depends(get_window),
    penalty_rate: Decimal | None = Query(None, ge=0, description="Penalty percentage"),
    penalty_unit: PercentUnit = Query(PercentUnit.AUTO),
    mode: BillingMode = Query(BillingMode.STANDARD),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> BillingAggregate:
    """Bill all meters of a tenant; failed meters are listed with their error.

    Each billed meter carries its rate of change for the same window.
    """
    aggregate = await billing_service.compute_tenant_billing(
        catalog, tenant_id, window, penalty_rate, scope, mode, penalty_unit
    )
    return await roc_service.aggregate_with_rate_of_change(catalog, aggregate, window)


@router.get("/buildings/{building_id}", response_model=BillingAggregate)
async def bill_building(
    building_id: str,
    window: PeriodStrategy = Depends(get_window),
    penalty_rate: Decimal | None = Query(None, ge=0, description="Penalty percentage"),
    penalty_unit: PercentUnit = Query(PercentUnit.AUTO),
    mode: BillingMode = Query(BillingMode.STANDARD),
    skip_missing_tenants: bool = Query(True, description="Omit meters without a tenant"),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> BillingAggregate:
    """Bill all meters of a building.

    Meters whose tenant cannot be resolved are omitted unless
    ``skip_missing_tenants`` is false.
    """
    return await billing_service.compute_building_billing(
        catalog,
        building_id,
        window,
        penalty_rate,
        scope,
        mode,
        penalty_unit,
        skip_missing_tenants=skip_missing_tenants,
    )


@router.get("/buildings/{building_id}/statement", response_model=BuildingStatement)
async def building_statement(
    building_id: str,
    window: PeriodStrategy = Depends(get_window),
    penalty_rate: Decimal | None = Query(None, ge=0, description="Penalty percentage"),
    penalty_unit: PercentUnit = Query(PercentUnit.AUTO),
    mode: BillingMode = Query(BillingMode.MARKUP),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> BuildingStatement:
    """Building billing sheet grouped by tenant, with rate of change per meter."""
    return await statement_service.compute_building_statement(
        catalog, building_id, window, penalty_rate, scope, mode, penalty_unit
    )
