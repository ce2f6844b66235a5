"""Period resolution.

Billing and rate-of-change both work on three consecutive windows
(anchor, previous, current). Two interchangeable strategies produce them:

- ``CalendarWindow(end)``: current is the month-to-date ending at ``end``;
  previous and anchor are the two full calendar months before it.
- ``RangeWindow(start, end)``: current is ``[start, end]``; previous and
  anchor are windows of the same day count, each immediately preceding the
  next with no gap.

Dates are plain calendar dates; there is no time-of-day or timezone involved.
"""

import calendar
import logging
import re
from datetime import date, timedelta
from enum import Enum
from typing import Protocol

from utilbill.core.errors import ValidationError
from utilbill.models.enums import PeriodRole
from utilbill.schemas.period import Period, WindowSet

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class WindowKind(str, Enum):
    """Period strategy selector exposed to callers."""

    CALENDAR = "calendar"
    RANGE = "range"


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string."""
    if not DATE_PATTERN.match(value or ""):
        raise ValidationError(f"Invalid date '{value}'. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid date '{value}': {exc}") from exc


def ensure_valid_range(start: date, end: date) -> None:
    """Reject windows whose end precedes their start."""
    if end < start:
        raise ValidationError(
            f"Period end {end.isoformat()} must be on or after period start {start.isoformat()}"
        )


def month_span(day: date, months_back: int = 0) -> tuple[date, date]:
    """Return the first and last day of the month ``months_back`` before ``day``'s month."""
    months = day.year * 12 + (day.month - 1) - months_back
    year, month = divmod(months, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def previous_same_length(start: date, end: date) -> tuple[date, date]:
    """Window of identical day count ending the day before ``start``."""
    ensure_valid_range(start, end)
    days = (end - start).days + 1
    prev_end = start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days - 1)
    return prev_start, prev_end


def split_window(start: date, end: date, count: int) -> list[tuple[date, date]]:
    """Split ``[start, end]`` into ``count`` consecutive, gap-free slices.

    Slices are as equal as possible; the remainder days go to the earliest
    slices. The last slice always ends exactly at ``end``.
    """
    ensure_valid_range(start, end)
    if count < 1:
        raise ValidationError("Slice count must be at least 1")

    days = (end - start).days + 1
    if count > days:
        raise ValidationError(f"Cannot split {days} day(s) into {count} slices")

    size, remainder = divmod(days, count)
    slices: list[tuple[date, date]] = []
    cursor = start
    for index in range(count):
        length = size + (1 if index < remainder else 0)
        slice_end = cursor + timedelta(days=length - 1)
        slices.append((cursor, slice_end))
        cursor = slice_end + timedelta(days=1)
    return slices


class PeriodStrategy(Protocol):
    """Anything that resolves the anchor/previous/current triple."""

    def resolve(self) -> WindowSet: ...


class CalendarWindow:
    """Month-driven windows derived from an end date."""

    kind = WindowKind.CALENDAR

    def __init__(self, end: date) -> None:
        self.end = end

    def resolve(self) -> WindowSet:
        current_start = self.end.replace(day=1)
        prev_start, prev_end = month_span(self.end, 1)
        anchor_start, anchor_end = month_span(self.end, 2)
        windows = WindowSet(
            current=Period(role=PeriodRole.CURRENT, start=current_start, end=self.end),
            previous=Period(role=PeriodRole.PREVIOUS, start=prev_start, end=prev_end),
            anchor=Period(role=PeriodRole.ANCHOR, start=anchor_start, end=anchor_end),
        )
        logger.debug("Resolved calendar windows for %s: %s", self.end, windows)
        return windows

    def __repr__(self) -> str:
        return f"CalendarWindow(end={self.end.isoformat()})"


class RangeWindow:
    """Explicit current window with equal-length predecessors."""

    kind = WindowKind.RANGE

    def __init__(self, start: date, end: date) -> None:
        ensure_valid_range(start, end)
        self.start = start
        self.end = end

    def resolve(self) -> WindowSet:
        prev_start, prev_end = previous_same_length(self.start, self.end)
        anchor_start, anchor_end = previous_same_length(prev_start, prev_end)
        windows = WindowSet(
            current=Period(role=PeriodRole.CURRENT, start=self.start, end=self.end),
            previous=Period(role=PeriodRole.PREVIOUS, start=prev_start, end=prev_end),
            anchor=Period(role=PeriodRole.ANCHOR, start=anchor_start, end=anchor_end),
        )
        logger.debug("Resolved range windows for %s..%s: %s", self.start, self.end, windows)
        return windows

    def __repr__(self) -> str:
        return f"RangeWindow(start={self.start.isoformat()}, end={self.end.isoformat()})"


def window_for(kind: WindowKind, end: date, start: date | None = None) -> PeriodStrategy:
    """Build the strategy the caller selected.

    Calendar windows are derived from ``end`` alone, so a start date is
    rejected rather than ignored.
    """
    if kind is WindowKind.CALENDAR:
        if start is not None:
            raise ValidationError("A start date requires range windows (window=range)")
        return CalendarWindow(end)
    if start is None:
        raise ValidationError("A start date is required for range windows")
    return RangeWindow(start, end)
