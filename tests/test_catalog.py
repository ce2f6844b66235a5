"""Tests for the SQLAlchemy-backed catalog."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from utilbill.core.database import create_tables
from utilbill.core.errors import Entity, NotFoundError
from utilbill.models import Building, Meter, Reading, Stall, Tenant, VatCode, WithholdingCode
from utilbill.models.enums import UtilityType
from utilbill.services.billing import compute_meter_billing
from utilbill.services.catalog import SqlCatalog
from utilbill.services.periods import CalendarWindow


@asynccontextmanager
async def seeded_catalog(db_path: Path) -> AsyncIterator[SqlCatalog]:
    """Catalog over a freshly seeded SQLite file; the engine is disposed on exit."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    await create_tables(engine)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async with session_factory() as db:
        db.add_all(
            [
                VatCode(code="VAT12", electric=12, water=12, lpg=12),
                WithholdingCode(code="WT2", electric=2, water=2, lpg=2),
                Building(
                    id="B1",
                    name="North Market",
                    electric_rate=Decimal("10"),
                    electric_minimum=Decimal("1"),
                ),
                Tenant(id="T1", name="Corner Bakery", vat_code="VAT12", wt_code="WT2"),
            ]
        )
        await db.flush()
        db.add_all(
            [
                Stall(id="S1", building_id="B1", tenant_id="T1"),
                Stall(id="S2", building_id="B1", tenant_id=None),
            ]
        )
        await db.flush()
        db.add_all(
            [
                Meter(id="M1", meter_type="electric", stall_id="S1"),
                Meter(id="M2", meter_type="Electric", stall_id="S2"),
            ]
        )
        await db.flush()
        db.add_all(
            [
                Reading(meter_id="M1", reading_date=date(2024, 2, 5), value=Decimal("90")),
                Reading(meter_id="M1", reading_date=date(2024, 2, 20), value=Decimal("100")),
                Reading(meter_id="M1", reading_date=date(2024, 3, 10), value=Decimal("140")),
                Reading(meter_id="M1", reading_date=date(2024, 3, 10), value=Decimal("150")),
            ]
        )
        await db.commit()

    try:
        yield SqlCatalog(session_factory)
    finally:
        await engine.dispose()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path to a fresh SQLite file."""
    return tmp_path / "catalog.db"


class TestSqlCatalog:
    """Tests for catalog lookups against a real database."""

    def test_lookups(self, db_path: Path) -> None:
        """Test entity lookups return engine records."""

        async def scenario() -> None:
            async with seeded_catalog(db_path) as catalog:
                meter = await catalog.get_meter("M1")
                assert meter.stall_id == "S1"
                assert meter.multiplier == Decimal("1")

                building = await catalog.get_building("B1")
                assert building.electric_rate == Decimal("10")

                tenant = await catalog.get_tenant("T1")
                assert tenant.for_penalty is False

                stalls = await catalog.list_stalls(building_id="B1")
                assert [s.id for s in stalls] == ["S1", "S2"]
                assert [s.id for s in await catalog.list_stalls(tenant_id="T1")] == ["S1"]

                meters = await catalog.list_meters(["S1", "S2"])
                assert [m.id for m in meters] == ["M1", "M2"]
                assert await catalog.list_meters([]) == []

        asyncio.run(scenario())

    def test_missing_entities(self, db_path: Path) -> None:
        """Test absent rows raise not-found errors for their entity."""

        async def scenario() -> None:
            async with seeded_catalog(db_path) as catalog:
                with pytest.raises(NotFoundError) as exc_info:
                    await catalog.get_meter("M9")
                assert exc_info.value.entity is Entity.METER

                with pytest.raises(NotFoundError) as exc_info:
                    await catalog.get_building("B9")
                assert exc_info.value.entity is Entity.BUILDING

        asyncio.run(scenario())

    def test_tax_rates(self, db_path: Path) -> None:
        """Test tax codes resolve per utility and missing codes are zero."""

        async def scenario() -> None:
            async with seeded_catalog(db_path) as catalog:
                rates = await catalog.get_tax_rates("VAT12", None)
                assert rates.vat[UtilityType.WATER] == Decimal("12")
                assert rates.wt[UtilityType.WATER] == Decimal("0")

        asyncio.run(scenario())

    def test_latest_reading(self, db_path: Path) -> None:
        """Test the latest reading wins and same-day ties go to the newest row."""

        async def scenario() -> None:
            async with seeded_catalog(db_path) as catalog:
                february = await catalog.latest_reading(
                    "M1", date(2024, 2, 1), date(2024, 2, 29)
                )
                assert february.value == Decimal("100")

                march = await catalog.latest_reading("M1", date(2024, 3, 1), date(2024, 3, 31))
                assert march.value == Decimal("150")

                april = await catalog.latest_reading("M1", date(2024, 4, 1), date(2024, 4, 30))
                assert april is None

        asyncio.run(scenario())

    def test_meter_billing_end_to_end(self, db_path: Path) -> None:
        """Test the engine bills a meter straight from the database."""

        async def scenario() -> None:
            async with seeded_catalog(db_path) as catalog:
                window = CalendarWindow(date(2024, 3, 15))
                result = await compute_meter_billing(catalog, "M1", window)

                assert result.billing.consumption == Decimal("50.00")
                assert result.billing.vat == Decimal("60.00")
                assert result.billing.wt == Decimal("1.20")
                assert result.billing.total == Decimal("558.80")

        asyncio.run(scenario())
