"""Shared route dependencies."""

from fastapi import Header, Query

from utilbill.services.catalog import BillingCatalog, SqlCatalog
from utilbill.services.periods import PeriodStrategy, WindowKind, parse_date, window_for


def get_catalog() -> BillingCatalog:
    """Catalog backed by the application database."""
    return SqlCatalog()


def get_building_scope(
    x_building_scope: str | None = Header(
        None,
        description="Comma-separated building ids the caller may access; omit for no restriction",
    ),
) -> list[str] | None:
    """Scope restriction supplied by the outer authorization layer."""
    if x_building_scope is None:
        return None
    return [b.strip() for b in x_building_scope.split(",") if b.strip()]


def get_window(
    end_date: str = Query(..., description="Period end, YYYY-MM-DD"),
    start_date: str | None = Query(None, description="Period start, YYYY-MM-DD (range windows)"),
    window: WindowKind = Query(WindowKind.CALENDAR, description="Period strategy"),
) -> PeriodStrategy:
    """Resolve the caller's explicit period strategy."""
    end = parse_date(end_date)
    start = parse_date(start_date) if start_date else None
    return window_for(window, end, start)
