"""Enum definitions for utilities, periods and billing modes."""

from enum import Enum


class UtilityType(str, Enum):
    """Metered utility. Closed set."""

    ELECTRIC = "electric"
    WATER = "water"
    LPG = "lpg"


class PeriodRole(str, Enum):
    """Semantic role of a resolved time window."""

    CURRENT = "current"
    PREVIOUS = "previous"
    ANCHOR = "anchor"


class BillingMode(str, Enum):
    """How the per-unit system rate is composed."""

    STANDARD = "standard"  # utility rate only
    MARKUP = "markup"  # utility rate + building markup
