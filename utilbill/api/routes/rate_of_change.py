"""Rate-of-change routes."""

from fastapi import APIRouter, Depends, Query

from utilbill.api.dependencies import get_building_scope, get_catalog, get_window
from utilbill.schemas.rate_of_change import (
    BuildingRoc,
    ConsumptionComparison,
    ConsumptionSlices,
    RocResult,
    TenantRoc,
)
from utilbill.services import rate_of_change as roc_service
from utilbill.services.catalog import BillingCatalog
from utilbill.services.periods import PeriodStrategy, parse_date

router = APIRouter(prefix="/rate-of-change", tags=["rate-of-change"])


@router.get("/meters/{meter_id}", response_model=RocResult)
async def meter_rate_of_change(
    meter_id: str,
    window: PeriodStrategy = Depends(get_window),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> RocResult:
    """Anchor, previous and current consumption for one meter and their change."""
    return await roc_service.compute_meter_roc(catalog, meter_id, window, scope)


@router.get("/tenants/{tenant_id}", response_model=TenantRoc)
async def tenant_rate_of_change(
    tenant_id: str,
    window: PeriodStrategy = Depends(get_window),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> TenantRoc:
    """Rate of change for every meter of a tenant, grouped by utility."""
    return await roc_service.compute_tenant_roc(catalog, tenant_id, window, scope)


@router.get("/buildings/{building_id}", response_model=BuildingRoc)
async def building_rate_of_change(
    building_id: str,
    window: PeriodStrategy = Depends(get_window),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> BuildingRoc:
    """Rate of change for a building, grouped by utility and by tenant."""
    return await roc_service.compute_building_roc(catalog, building_id, window, scope)


@router.get("/buildings/{building_id}/comparison", response_model=ConsumptionComparison)
async def building_consumption_comparison(
    building_id: str,
    window: PeriodStrategy = Depends(get_window),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> ConsumptionComparison:
    """Per-utility consumption totals for the window against the previous one."""
    return await roc_service.compute_building_consumption_comparison(
        catalog, building_id, window, scope
    )


@router.get("/buildings/{building_id}/slices", response_model=ConsumptionSlices)
async def building_consumption_slices(
    building_id: str,
    start_date: str = Query(..., description="Window start, YYYY-MM-DD"),
    end_date: str = Query(..., description="Window end, YYYY-MM-DD"),
    slices: int = Query(4, ge=1, le=12),
    scope: list[str] | None = Depends(get_building_scope),
    catalog: BillingCatalog = Depends(get_catalog),
) -> ConsumptionSlices:
    """Split the window into consecutive slices and total consumption per slice."""
    return await roc_service.compute_building_consumption_slices(
        catalog,
        building_id,
        parse_date(start_date),
        parse_date(end_date),
        slices,
        scope,
    )
