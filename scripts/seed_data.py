"""Seed script to populate the database with sample data."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select

from utilbill.core.database import AsyncSessionLocal, create_tables
from utilbill.models import Building, Meter, Reading, Stall, Tenant, VatCode, WithholdingCode


async def seed_database() -> None:
    """Seed the database with one building, three tenants and three months of readings."""
    await create_tables()

    async with AsyncSessionLocal() as db:
        # Check if data already exists
        result = await db.execute(select(Building))
        if result.first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        db.add_all(
            [
                VatCode(code="VAT12", description="Standard VAT", electric=12, water=12, lpg=12),
                VatCode(code="VATEX", description="VAT exempt", electric=0, water=0, lpg=0),
                WithholdingCode(code="WT2", description="2% of VAT", electric=2, water=2, lpg=2),
            ]
        )

        building = Building(
            id="BLDG-1",
            name="North Market",
            electric_rate=Decimal("10.00"),
            water_rate=Decimal("93.00"),
            lpg_rate=Decimal("80.00"),
            electric_minimum=Decimal("1.00"),
            water_minimum=Decimal("3.00"),
            markup_rate=Decimal("1.50"),
            penalty_rate=Decimal("0.20"),
        )
        db.add(building)

        tenants = [
            Tenant(id="TNT-1", name="Corner Bakery", vat_code="VAT12", wt_code="WT2"),
            Tenant(id="TNT-2", name="Fresh Greens", vat_code="VAT12", for_penalty=True),
            Tenant(id="TNT-3", name="Noodle House", vat_code="VATEX"),
        ]
        db.add_all(tenants)

        stalls = [
            Stall(id="STL-1", building_id=building.id, tenant_id="TNT-1"),
            Stall(id="STL-2", building_id=building.id, tenant_id="TNT-2"),
            Stall(id="STL-3", building_id=building.id, tenant_id="TNT-3"),
            Stall(id="STL-4", building_id=building.id, tenant_id=None),
        ]
        db.add_all(stalls)
        await db.flush()

        print(f"Created building {building.id} with {len(stalls)} stalls")

        meters = [
            Meter(id="MTR-E1", serial_number="E-1001", meter_type="electric", stall_id="STL-1"),
            Meter(id="MTR-W1", serial_number="W-2001", meter_type="water", stall_id="STL-1"),
            Meter(
                id="MTR-E2",
                serial_number="E-1002",
                meter_type="electric",
                multiplier=Decimal("40"),
                stall_id="STL-2",
            ),
            Meter(id="MTR-L3", serial_number="L-3001", meter_type="lpg", stall_id="STL-3"),
            Meter(id="MTR-E4", serial_number="E-1004", meter_type="electric", stall_id="STL-4"),
        ]
        db.add_all(meters)
        await db.flush()

        # One reading near the end of each of the last three months
        today = date.today()
        month_ends = []
        cursor = today.replace(day=1) - timedelta(days=1)
        for _ in range(3):
            month_ends.append(cursor.replace(day=min(cursor.day, 28)))
            cursor = cursor.replace(day=1) - timedelta(days=1)
        month_ends.reverse()
        month_ends.append(today)

        daily = {
            "MTR-E1": Decimal("12.5"),
            "MTR-W1": Decimal("0.4"),
            "MTR-E2": Decimal("0.9"),
            "MTR-L3": Decimal("1.1"),
            "MTR-E4": Decimal("0"),
        }
        count = 0
        for meter in meters:
            value = Decimal("1000.00")
            for step, reading_date in enumerate(month_ends):
                value += daily[meter.id] * 30 * (1 + Decimal(step) / 10)
                db.add(Reading(meter_id=meter.id, reading_date=reading_date, value=value))
                count += 1

        await db.commit()

        print(f"Created {count} readings ({len(month_ends)} dates x {len(meters)} meters)")
        print("\nSeed data created successfully!")
        print(f"\nTry: GET /api/billing/buildings/{building.id}?end_date={today.isoformat()}")


if __name__ == "__main__":
    asyncio.run(seed_database())
