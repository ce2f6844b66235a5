"""Immutable roll-ups of per-meter results."""

from collections.abc import Iterable
from functools import reduce

from utilbill.core.numbers import round2
from utilbill.models.enums import UtilityType
from utilbill.schemas.billing import BillingItem, ChargeTotals

EMPTY_TOTALS = ChargeTotals()

# Display order for per-type buckets
UTILITY_ORDER = (UtilityType.ELECTRIC, UtilityType.WATER, UtilityType.LPG)


def add_totals(left: ChargeTotals, right: ChargeTotals) -> ChargeTotals:
    """Field-wise sum, producing a new value."""
    return ChargeTotals(
        base=left.base + right.base,
        vat=left.vat + right.vat,
        wt=left.wt + right.wt,
        penalty=left.penalty + right.penalty,
        total=left.total + right.total,
    )


def round_totals(totals: ChargeTotals) -> ChargeTotals:
    return ChargeTotals(
        base=round2(totals.base),
        vat=round2(totals.vat),
        wt=round2(totals.wt),
        penalty=round2(totals.penalty),
        total=round2(totals.total),
    )


def _fold(
    acc: tuple[dict[UtilityType, ChargeTotals], ChargeTotals],
    item: BillingItem,
) -> tuple[dict[UtilityType, ChargeTotals], ChargeTotals]:
    by_type, grand = acc
    if item.result is None:
        return acc
    charges = item.result.billing
    bill = ChargeTotals(
        base=charges.base,
        vat=charges.vat,
        wt=charges.wt,
        penalty=charges.penalty,
        total=charges.total,
    )
    utility = item.result.meter.utility_type
    updated = {**by_type, utility: add_totals(by_type.get(utility, EMPTY_TOTALS), bill)}
    return updated, add_totals(grand, bill)


def aggregate_billing(
    items: Iterable[BillingItem],
) -> tuple[dict[UtilityType, ChargeTotals], ChargeTotals]:
    """Sum successful items per utility and overall.

    Failed items are excluded. Rounding is applied once, after summing.
    """
    by_type, grand = reduce(_fold, items, ({}, EMPTY_TOTALS))
    ordered = {u: round_totals(by_type[u]) for u in UTILITY_ORDER if u in by_type}
    return ordered, round_totals(grand)
