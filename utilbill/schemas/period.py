"""Period schemas."""

from datetime import date

from pydantic import BaseModel, ConfigDict

from utilbill.models.enums import PeriodRole


class Period(BaseModel):
    """Inclusive date window tagged with its role."""

    model_config = ConfigDict(frozen=True)

    role: PeriodRole
    start: date
    end: date

    @property
    def days(self) -> int:
        """Number of calendar days covered, inclusive."""
        return (self.end - self.start).days + 1

    @property
    def label(self) -> str:
        """Human label used in error messages."""
        return f"{self.start.isoformat()}..{self.end.isoformat()}"


class WindowSet(BaseModel):
    """The three consecutive windows used by billing and rate-of-change."""

    model_config = ConfigDict(frozen=True)

    current: Period
    previous: Period
    anchor: Period
