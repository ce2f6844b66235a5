"""Consumption derived from a pair of index readings."""

from decimal import Decimal

from utilbill.core.config import settings
from utilbill.core.errors import ValidationError
from utilbill.core.numbers import ZERO, round2, to_decimal
from utilbill.models.enums import UtilityType
from utilbill.schemas.catalog import BuildingRecord


def parse_utility_type(raw: str | None) -> UtilityType:
    """Map a stored meter type onto the closed UtilityType set."""
    normalized = str(raw or "").strip().lower()
    try:
        return UtilityType(normalized)
    except ValueError:
        raise ValidationError(f"Unsupported meter type: {raw!r}") from None


def minimum_for(
    utility: UtilityType,
    building: BuildingRecord,
    lpg_minimum: Decimal | None = None,
) -> Decimal:
    """Minimum billable consumption for a utility in a building.

    Electric and water floors are configured per building; LPG uses one
    global floor for both billing and rate-of-change.
    """
    if utility is UtilityType.ELECTRIC:
        return to_decimal(building.electric_minimum)
    if utility is UtilityType.WATER:
        return to_decimal(building.water_minimum)
    if utility is UtilityType.LPG:
        return to_decimal(settings.LPG_MIN_CONSUMPTION if lpg_minimum is None else lpg_minimum)
    raise ValidationError(f"Unsupported meter type: {utility!r}")


def effective_multiplier(multiplier: Decimal | None) -> Decimal:
    """A missing or zero multiplier means no conversion."""
    value = to_decimal(multiplier)
    return value if value else Decimal("1")


def compute_consumption(
    previous_index: Decimal,
    current_index: Decimal,
    multiplier: Decimal,
    minimum: Decimal,
) -> Decimal:
    """Billable units between two index readings.

    consumption = (current - previous) * multiplier when positive, otherwise
    the minimum floor. Stagnant, negative and rolled-over meters therefore
    always bill at least the floor.
    """
    raw = (to_decimal(current_index) - to_decimal(previous_index)) * effective_multiplier(
        multiplier
    )
    return round2(raw if raw > ZERO else to_decimal(minimum))


def consumption_for(
    utility: UtilityType,
    multiplier: Decimal,
    previous_index: Decimal,
    current_index: Decimal,
    building: BuildingRecord,
    lpg_minimum: Decimal | None = None,
) -> Decimal:
    """Compute consumption applying the utility's floor for ``building``."""
    minimum = minimum_for(utility, building, lpg_minimum)
    return compute_consumption(previous_index, current_index, multiplier, minimum)
