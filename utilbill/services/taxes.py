"""Tax cascade: VAT on base, withholding on VAT, optional penalty on base.

Order and rounding are fixed:

    vat     = base * vat_fraction
    wt      = vat * wt_fraction          (from VAT, never from base)
    penalty = base * penalty_fraction    (only for penalty-eligible tenants)
    total   = base + vat + penalty - wt

Each component is rounded to 2 places on its own and the total is the sum of
the rounded components.
"""

from decimal import Decimal
from enum import Enum

from utilbill.core.errors import ValidationError
from utilbill.core.numbers import ZERO, round2, to_decimal
from utilbill.models.enums import UtilityType
from utilbill.schemas.billing import ChargeTotals
from utilbill.schemas.catalog import TaxRates

HUNDRED = Decimal("100")
ONE = Decimal("1")


class PercentUnit(str, Enum):
    """How a raw percentage value should be read.

    AUTO keeps the stored-data heuristic: values >= 1 are points and values
    below 1 are fractions, so exactly 1 means 1% (0.01), not 100%.
    """

    AUTO = "auto"
    POINTS = "points"
    FRACTION = "fraction"


def normalize_percent(value: object, unit: PercentUnit = PercentUnit.AUTO) -> Decimal:
    """Turn a raw percentage into a fraction."""
    number = to_decimal(value)
    if number < ZERO:
        raise ValidationError(f"Percentage must not be negative: {value}")
    if unit is PercentUnit.POINTS:
        return number / HUNDRED
    if unit is PercentUnit.FRACTION:
        return number
    return number / HUNDRED if number >= ONE else number


def tax_fractions_for(utility: UtilityType, rates: TaxRates) -> tuple[Decimal, Decimal]:
    """(vat_fraction, wt_fraction) for one utility; missing entries are zero."""
    vat = normalize_percent(rates.vat.get(utility, ZERO))
    wt = normalize_percent(rates.wt.get(utility, ZERO))
    return vat, wt


def apply_tax_cascade(
    base: Decimal,
    vat_fraction: Decimal,
    wt_fraction: Decimal,
    for_penalty: bool = False,
    penalty_fraction: Decimal = ZERO,
) -> ChargeTotals:
    """Apply VAT, withholding and penalty to a monetary base."""
    amount = to_decimal(base)
    vat = amount * to_decimal(vat_fraction)
    wt = vat * to_decimal(wt_fraction)
    penalty = amount * to_decimal(penalty_fraction) if for_penalty else ZERO

    base_r, vat_r, wt_r, penalty_r = round2(amount), round2(vat), round2(wt), round2(penalty)
    return ChargeTotals(
        base=base_r,
        vat=vat_r,
        wt=wt_r,
        penalty=penalty_r,
        total=round2(base_r + vat_r + penalty_r - wt_r),
    )
