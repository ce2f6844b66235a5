"""Catalog and reading lookups the engine depends on.

``BillingCatalog`` is the collaborator contract; ``SqlCatalog`` implements it
on the SQLAlchemy models. Each call opens its own short-lived session so
per-meter computations can run concurrently.
"""

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from utilbill.core.database import AsyncSessionLocal
from utilbill.core.errors import Entity, NotFoundError
from utilbill.core.numbers import ZERO
from utilbill.models.building import Building
from utilbill.models.enums import UtilityType
from utilbill.models.meter import Meter
from utilbill.models.reading import Reading
from utilbill.models.stall import Stall
from utilbill.models.tax_code import VatCode, WithholdingCode
from utilbill.models.tenant import Tenant
from utilbill.schemas.catalog import (
    BuildingRecord,
    MeterRecord,
    ReadingRecord,
    StallRecord,
    TaxRates,
    TenantRecord,
)


class BillingCatalog(Protocol):
    """Read-only lookups. ``get_*`` raise NotFoundError when absent."""

    async def get_meter(self, meter_id: str) -> MeterRecord: ...

    async def get_stall(self, stall_id: str) -> StallRecord: ...

    async def get_tenant(self, tenant_id: str) -> TenantRecord: ...

    async def get_building(self, building_id: str) -> BuildingRecord: ...

    async def get_tax_rates(self, vat_code: str | None, wt_code: str | None) -> TaxRates: ...

    async def latest_reading(
        self, meter_id: str, start: date, end: date
    ) -> ReadingRecord | None: ...

    async def list_stalls(
        self, *, tenant_id: str | None = None, building_id: str | None = None
    ) -> list[StallRecord]: ...

    async def list_meters(self, stall_ids: Sequence[str]) -> list[MeterRecord]: ...


def _rates_from(row: VatCode | WithholdingCode | None) -> dict[UtilityType, object]:
    if row is None:
        return {utility: ZERO for utility in UtilityType}
    return {
        UtilityType.ELECTRIC: row.electric,
        UtilityType.WATER: row.water,
        UtilityType.LPG: row.lpg,
    }


class SqlCatalog:
    """BillingCatalog backed by the relational models."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    ) -> None:
        self._session_factory = session_factory

    async def get_meter(self, meter_id: str) -> MeterRecord:
        async with self._session_factory() as db:
            meter = await db.get(Meter, meter_id)
            if meter is None:
                raise NotFoundError(Entity.METER)
            return MeterRecord.model_validate(meter)

    async def get_stall(self, stall_id: str) -> StallRecord:
        async with self._session_factory() as db:
            stall = await db.get(Stall, stall_id)
            if stall is None:
                raise NotFoundError(Entity.STALL, "Stall not found for this meter")
            return StallRecord.model_validate(stall)

    async def get_tenant(self, tenant_id: str) -> TenantRecord:
        async with self._session_factory() as db:
            tenant = await db.get(Tenant, tenant_id)
            if tenant is None:
                raise NotFoundError(Entity.TENANT)
            return TenantRecord.model_validate(tenant)

    async def get_building(self, building_id: str) -> BuildingRecord:
        async with self._session_factory() as db:
            building = await db.get(Building, building_id)
            if building is None:
                raise NotFoundError(Entity.BUILDING)
            return BuildingRecord.model_validate(building)

    async def get_tax_rates(self, vat_code: str | None, wt_code: str | None) -> TaxRates:
        async with self._session_factory() as db:
            vat_row = await db.get(VatCode, vat_code) if vat_code else None
            wt_row = await db.get(WithholdingCode, wt_code) if wt_code else None
            return TaxRates(vat=_rates_from(vat_row), wt=_rates_from(wt_row))

    async def latest_reading(self, meter_id: str, start: date, end: date) -> ReadingRecord | None:
        async with self._session_factory() as db:
            result = await db.execute(
                select(Reading)
                .where(
                    Reading.meter_id == meter_id,
                    Reading.reading_date >= start,
                    Reading.reading_date <= end,
                )
                .order_by(Reading.reading_date.desc(), Reading.id.desc())
                .limit(1)
            )
            reading = result.scalar_one_or_none()
            return ReadingRecord.model_validate(reading) if reading else None

    async def list_stalls(
        self, *, tenant_id: str | None = None, building_id: str | None = None
    ) -> list[StallRecord]:
        query = select(Stall)
        if tenant_id is not None:
            query = query.where(Stall.tenant_id == tenant_id)
        if building_id is not None:
            query = query.where(Stall.building_id == building_id)

        async with self._session_factory() as db:
            result = await db.execute(query.order_by(Stall.id))
            return [StallRecord.model_validate(s) for s in result.scalars().all()]

    async def list_meters(self, stall_ids: Sequence[str]) -> list[MeterRecord]:
        if not stall_ids:
            return []
        async with self._session_factory() as db:
            result = await db.execute(
                select(Meter).where(Meter.stall_id.in_(list(stall_ids))).order_by(Meter.id)
            )
            return [MeterRecord.model_validate(m) for m in result.scalars().all()]
