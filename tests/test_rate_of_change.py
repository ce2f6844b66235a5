"""Tests for rate-of-change analytics."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest
from fakes import FakeCatalog

from utilbill.core.errors import ErrorKind, ForbiddenError, InsufficientDataError, ValidationError
from utilbill.models.enums import PeriodRole, UtilityType
from utilbill.services.billing import compute_meter_billing, compute_tenant_billing
from utilbill.services.periods import CalendarWindow
from utilbill.services.rate_of_change import (
    aggregate_with_rate_of_change,
    bill_with_rate_of_change,
    compute_building_consumption_comparison,
    compute_building_consumption_slices,
    compute_building_roc,
    compute_meter_roc,
    compute_tenant_roc,
    group_by_type,
    rate_of_change_percent,
)


class TestRateOfChangePercent:
    """Tests for the percentage formula."""

    @pytest.mark.parametrize(
        ("baseline", "latest", "expected"),
        [
            ("100", "120", 20),
            ("3", "4", 34),
            ("3", "2", -33),
            ("50", "50", 0),
            ("0", "10", None),
        ],
    )
    def test_ceiling(self, baseline: str, latest: str, expected: int | None) -> None:
        """Test the percentage is rounded up and undefined for a zero baseline."""
        assert rate_of_change_percent(Decimal(baseline), Decimal(latest)) == expected


class TestMeterRoc:
    """Tests for single-meter rate of change."""

    def test_growth(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test consumption growing from 100 to 120 is a 20% change."""
        result = asyncio.run(compute_meter_roc(facility, "M-E2", march))

        assert result.indices.anchor_index == Decimal("0.00")
        assert result.consumptions.anchor_to_previous == Decimal("100.00")
        assert result.consumptions.previous_to_current == Decimal("120.00")
        assert result.delta == Decimal("20.00")
        assert result.rate_of_change_percent == 20

    def test_zero_baseline(self, march: CalendarWindow) -> None:
        """Test a stagnant baseline with no floor gives no percentage."""
        catalog = (
            FakeCatalog()
            .add_building("B1")
            .add_stall("S1", "B1", None)
            .add_meter("M1", "S1")
            .add_reading("M1", "2024-01-20", "40")
            .add_reading("M1", "2024-02-20", "40")
            .add_reading("M1", "2024-03-10", "50")
        )

        result = asyncio.run(compute_meter_roc(catalog, "M1", march))

        assert result.consumptions.anchor_to_previous == Decimal("0.00")
        assert result.consumptions.previous_to_current == Decimal("10.00")
        assert result.rate_of_change_percent is None

    def test_vacant_stall_is_measured(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test rate of change does not need a tenant."""
        result = asyncio.run(compute_meter_roc(facility, "M-E4", march))

        assert result.tenant_id is None
        assert result.rate_of_change_percent == 0

    def test_missing_anchor_named(self, facility: FakeCatalog) -> None:
        """Test the error names the window that has no reading."""
        window = CalendarWindow(date(2024, 2, 25))

        with pytest.raises(InsufficientDataError) as exc_info:
            asyncio.run(compute_meter_roc(facility, "M-E1", window))

        assert exc_info.value.missing == [PeriodRole.ANCHOR]
        assert "anchor [2023-12-01..2023-12-31]" in exc_info.value.message

    def test_scope_denied(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test a building outside the scope is forbidden."""
        with pytest.raises(ForbiddenError):
            asyncio.run(compute_meter_roc(facility, "M-E1", march, scope=["B7"]))


class TestGrouping:
    """Tests for per-utility grouping."""

    def test_percentage_from_sums(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test the group percentage comes from summed consumptions."""
        results = [
            asyncio.run(compute_meter_roc(facility, meter_id, march))
            for meter_id in ("M-E1", "M-E2", "M-W1")
        ]

        groups = group_by_type(results)

        assert [g.utility_type for g in groups] == [UtilityType.ELECTRIC, UtilityType.WATER]
        electric = groups[0]
        assert electric.meter_ids == ["M-E1", "M-E2"]
        assert electric.anchor_to_previous == Decimal("150.00")
        assert electric.previous_to_current == Decimal("170.00")
        # ceil(20 / 150 * 100) = ceil(13.33)
        assert electric.rate_of_change_percent == 14

    def test_empty(self) -> None:
        """Test no results give no groups."""
        assert group_by_type([]) == []


class TestTenantRoc:
    """Tests for tenant rate of change."""

    def test_groups(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test a tenant's meters are grouped by utility."""
        report = asyncio.run(compute_tenant_roc(facility, "T1", march))

        assert [i.meter_id for i in report.items] == ["M-E1", "M-W1"]
        assert [g.rate_of_change_percent for g in report.groups] == [0, 0]
        assert report.windows.anchor.start == date(2024, 1, 1)

    def test_failed_meter_excluded_from_groups(
        self, facility: FakeCatalog, march: CalendarWindow
    ) -> None:
        """Test a meter without readings is reported but not summed."""
        facility.add_meter("M-E9", "S2")

        report = asyncio.run(compute_tenant_roc(facility, "T2", march))

        assert [i.meter_id for i in report.items if i.error] == ["M-E9"]
        assert report.groups[0].meter_ids == ["M-E2"]
        assert report.groups[0].rate_of_change_percent == 20


class TestBuildingRoc:
    """Tests for building rate of change."""

    def test_overall_and_per_tenant(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test building groups include every meter and tenants are split out."""
        report = asyncio.run(compute_building_roc(facility, "B1", march))

        assert report.building_name == "North Market"
        electric = report.groups[0]
        assert electric.meter_ids == ["M-E1", "M-E2", "M-E4"]
        assert electric.anchor_to_previous == Decimal("151.00")
        assert electric.previous_to_current == Decimal("171.00")
        assert electric.rate_of_change_percent == 14

        assert [t.tenant_id for t in report.tenants] == ["T1", "T2", None]
        assert report.tenants[1].groups[0].rate_of_change_percent == 20


class TestConsumptionComparison:
    """Tests for building consumption comparison."""

    def test_totals(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test per-utility totals for the current window."""
        facility.add_meter("M-L9", "S2", "lpg")

        comparison = asyncio.run(compute_building_consumption_comparison(facility, "B1", march))

        assert comparison.totals.electric == Decimal("171.00")
        assert comparison.totals.water == Decimal("3.00")
        assert comparison.totals.lpg == Decimal("0.00")
        assert comparison.skipped_meter_ids == ["M-L9"]
        assert comparison.previous_period.end == date(2024, 2, 29)


class TestConsumptionSlices:
    """Tests for sliced building consumption."""

    def test_slices(self, facility: FakeCatalog) -> None:
        """Test each slice is measured from the one before it."""
        facility.add_meter("M-L9", "S2", "lpg")

        report = asyncio.run(
            compute_building_consumption_slices(
                facility, "B1", date(2024, 2, 1), date(2024, 3, 15), count=2
            )
        )

        assert report.anchor_period.start == date(2024, 1, 10)
        assert report.anchor_period.end == date(2024, 1, 31)
        assert [s.label for s in report.slices] == ["2024-02", "2024-03"]
        assert report.slices[0].period.end == date(2024, 2, 22)
        assert report.slices[0].totals.electric == Decimal("151.00")
        assert report.slices[1].totals.electric == Decimal("171.00")
        assert report.slices[1].totals.water == Decimal("3.00")
        assert report.skipped_meter_ids == ["M-L9"]

    def test_scope_checked_before_slice_count(self, facility: FakeCatalog) -> None:
        """Test a building outside the scope is forbidden even with a bad slice count."""
        with pytest.raises(ForbiddenError):
            asyncio.run(
                compute_building_consumption_slices(
                    facility, "B1", date(2024, 2, 1), date(2024, 2, 2), count=3, scope=["B2"]
                )
            )

    def test_invalid_count(self, facility: FakeCatalog) -> None:
        """Test more slices than days is rejected."""
        with pytest.raises(ValidationError):
            asyncio.run(
                compute_building_consumption_slices(
                    facility, "B1", date(2024, 2, 1), date(2024, 2, 2), count=3
                )
            )


def _add_meter_without_anchor(catalog: FakeCatalog) -> None:
    """Meter in stall S2 billable for March but with no January reading."""
    catalog.add_meter("M-E5", "S2")
    catalog.add_reading("M-E5", "2024-02-20", "10")
    catalog.add_reading("M-E5", "2024-03-10", "20")


class TestBillingWithRateOfChange:
    """Tests for rate of change attached to meter and tenant bills."""

    def test_meter_bill(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test a meter bill carries the meter's rate of change."""

        async def scenario():
            result = await compute_meter_billing(facility, "M-E2", march)
            return await bill_with_rate_of_change(facility, result, march)

        bill = asyncio.run(scenario())

        assert bill.rate_of_change_percent == 20
        assert bill.billing.total == Decimal("1341.12")

    def test_meter_bill_without_anchor(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test a meter that cannot be analyzed is still billed with no percentage."""
        _add_meter_without_anchor(facility)

        async def scenario():
            result = await compute_meter_billing(facility, "M-E5", march)
            return await bill_with_rate_of_change(facility, result, march)

        bill = asyncio.run(scenario())

        assert bill.rate_of_change_percent is None
        assert bill.billing.consumption == Decimal("10.00")

    def test_tenant_items(self, facility: FakeCatalog, march: CalendarWindow) -> None:
        """Test every billed item gets its own percentage and totals are unchanged."""
        _add_meter_without_anchor(facility)
        facility.add_meter("M-L9", "S2", "lpg")

        async def scenario():
            aggregate = await compute_tenant_billing(facility, "T2", march)
            return aggregate, await aggregate_with_rate_of_change(facility, aggregate, march)

        plain, decorated = asyncio.run(scenario())

        percents = {
            i.meter_id: i.result.rate_of_change_percent for i in decorated.items if i.result
        }
        assert percents == {"M-E2": 20, "M-E5": None}
        failed = [i for i in decorated.items if i.error is not None]
        assert [i.meter_id for i in failed] == ["M-L9"]
        assert failed[0].error.kind is ErrorKind.INSUFFICIENT_DATA
        assert decorated.grand_totals == plain.grand_totals
