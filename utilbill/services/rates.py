"""Unit rate composition."""

from decimal import Decimal

from utilbill.core.errors import ValidationError
from utilbill.core.numbers import ZERO, to_decimal
from utilbill.models.enums import BillingMode, UtilityType
from utilbill.schemas.billing import RateTriple
from utilbill.schemas.catalog import BuildingRecord


def utility_rate_for(utility: UtilityType, building: BuildingRecord) -> Decimal:
    """Per-unit utility rate configured on the building."""
    if utility is UtilityType.ELECTRIC:
        return to_decimal(building.electric_rate)
    if utility is UtilityType.WATER:
        return to_decimal(building.water_rate)
    if utility is UtilityType.LPG:
        return to_decimal(building.lpg_rate)
    raise ValidationError(f"Unsupported meter type: {utility!r}")


def compose_rate(
    utility: UtilityType,
    building: BuildingRecord,
    mode: BillingMode = BillingMode.STANDARD,
) -> RateTriple:
    """Resolve the system rate used to price consumption.

    Standard mode bills the utility rate alone; markup mode adds the
    building's markup. Both report the building markup for transparency.
    """
    utility_rate = utility_rate_for(utility, building)
    markup_rate = to_decimal(building.markup_rate)
    applied_markup = markup_rate if mode is BillingMode.MARKUP else ZERO
    return RateTriple(
        utility_rate=utility_rate,
        markup_rate=markup_rate,
        system_rate=utility_rate + applied_markup,
    )
