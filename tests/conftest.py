"""Shared fixtures.

The ``facility`` catalog models one building billed for March 2024
(calendar windows ending 2024-03-15):

- current  = 2024-03-01..2024-03-15
- previous = 2024-02-01..2024-02-29
- anchor   = 2024-01-01..2024-01-31

Meters:
- M-E1  electric, tenant T1 (VAT 12%, no WT): 50 -> 100 -> 150
- M-W1  water x93, tenant T1: 10 -> 10 -> 10 (always billed at the 3.00 floor)
- M-E2  electric, tenant T2 (VAT 12%, WT 2%, penalty): 0 -> 100 -> 220
- M-E4  electric in vacant stall S4
"""

from datetime import date

import pytest
from fakes import FakeCatalog

from utilbill.services.periods import CalendarWindow

END_DATE = date(2024, 3, 15)


@pytest.fixture
def march() -> CalendarWindow:
    """Calendar windows ending mid-March 2024."""
    return CalendarWindow(END_DATE)


@pytest.fixture
def facility() -> FakeCatalog:
    """One building, two tenants, a vacant stall and four meters."""
    catalog = (
        FakeCatalog()
        .add_building(
            "B1",
            name="North Market",
            electric_rate="10.00",
            water_rate="93.00",
            lpg_rate="80.00",
            electric_minimum="1.00",
            water_minimum="3.00",
            markup_rate="1.50",
            penalty_rate="0.20",
        )
        .add_vat_code("VAT12", "12")
        .add_wt_code("WT2", "2")
        .add_tenant("T1", name="Corner Bakery", vat_code="VAT12")
        .add_tenant("T2", name="Fresh Greens", vat_code="VAT12", wt_code="WT2", for_penalty=True)
        .add_stall("S1", "B1", "T1")
        .add_stall("S2", "B1", "T2")
        .add_stall("S4", "B1", None)
        .add_meter("M-E1", "S1", "electric")
        .add_meter("M-W1", "S1", "water", multiplier="93")
        .add_meter("M-E2", "S2", "electric")
        .add_meter("M-E4", "S4", "electric")
    )
    for meter_id, values in {
        "M-E1": ("50", "100", "150"),
        "M-W1": ("10", "10", "10"),
        "M-E2": ("0", "100", "220"),
        "M-E4": ("5", "6", "7"),
    }.items():
        anchor, previous, current = values
        catalog.add_reading(meter_id, "2024-01-31", anchor)
        catalog.add_reading(meter_id, "2024-02-20", previous)
        catalog.add_reading(meter_id, "2024-03-10", current)
    return catalog
