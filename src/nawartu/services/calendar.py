"""
Calendar - Two-month date-range selection for stays.

The selector holds one persistent selection with two states:
- EMPTY_OR_COMPLETE: nothing selected, or both check-in and check-out set
- PARTIAL: only check-in set

Weeks run Sunday to Saturday. Days before "today" cannot be selected or
hovered. The selector is not synced with remote availability; callers
cross-check the selected range before booking.
"""

import calendar
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from nawartu.models import DateRange
from nawartu.utils.i18n import normalize_language

logger = logging.getLogger('Nawartu')


WEEKDAY_LABELS = {
    "en": ["Su", "Mo", "Tu", "We", "Th", "Fr", "Sa"],
    "ar": ["أح", "إث", "ثل", "أر", "خم", "جم", "سب"],
}

MONTH_NAMES = {
    "en": [
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ],
    "ar": [
        "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
        "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
    ],
}

NIGHTS_LABEL = {"en": "nights", "ar": "ليلة"}


class SelectionState:
    EMPTY_OR_COMPLETE = "empty_or_complete"
    PARTIAL = "partial"


def add_months(year: int, month: int, delta: int) -> tuple[int, int]:
    """Shift a (year, month) pair by ``delta`` months, in either direction."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_grid(year: int, month: int) -> list[date]:
    """
    Days shown for a month: Sunday on/before the 1st through Saturday on/after
    the last day. Always whole weeks.
    """
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])

    # date.weekday(): Monday=0 ... Sunday=6
    start = first - timedelta(days=(first.weekday() + 1) % 7)
    end = last + timedelta(days=(5 - last.weekday()) % 7)

    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def weekday_labels(lang: str) -> list[str]:
    return WEEKDAY_LABELS[normalize_language(lang)]


def month_title(year: int, month: int, lang: str) -> str:
    """Localized 'Month YYYY' heading."""
    return f"{MONTH_NAMES[normalize_language(lang)][month - 1]} {year}"


def format_nights(nights: int, lang: str) -> str:
    return f"{nights} {NIGHTS_LABEL[normalize_language(lang)]}"


@dataclass
class DayCell:
    """How one day of the grid should be drawn."""
    date: date
    in_month: bool
    past: bool = False
    start: bool = False
    end: bool = False
    in_range: bool = False
    preview: bool = False
    hovered: bool = False
    today: bool = False

    @property
    def disabled(self) -> bool:
        return self.past


class DateRangeSelector:
    """
    Stateful check-in/check-out picker over two consecutive months.
    """

    def __init__(
        self,
        today: Callable[[], date] = date.today,
        anchor: Optional[date] = None
    ):
        """
        Initialize the selector.

        Args:
            today: Clock returning the current day
            anchor: Any day in the first visible month (None = today)
        """
        self._today = today
        anchor = anchor or today()
        self.year = anchor.year
        self.month = anchor.month
        self.selection = DateRange()
        self.hovered: Optional[date] = None

    @property
    def today(self) -> date:
        return self._today()

    @property
    def state(self) -> str:
        if self.selection.start is not None and self.selection.end is None:
            return SelectionState.PARTIAL
        return SelectionState.EMPTY_OR_COMPLETE

    @property
    def nights(self) -> Optional[int]:
        return self.selection.nights

    def is_disabled(self, day: date) -> bool:
        """Days strictly before today cannot be picked."""
        return day < self.today

    def select_date(self, day: date) -> bool:
        """
        Apply a click on ``day``.

        Returns:
            False if the day is disabled and the selection did not change
        """
        if self.is_disabled(day):
            logger.debug(f"Ignoring selection of past date {day}")
            return False

        start = self.selection.start
        if self.state == SelectionState.PARTIAL and day >= start:
            self.selection = DateRange(start, day)
            self.hovered = None
        else:
            # New selection, or a restart because the day precedes check-in
            self.selection = DateRange(day)
        return True

    def hover(self, day: Optional[date]) -> None:
        """Set the hovered day (None when the pointer leaves the grid)."""
        if day is not None and self.is_disabled(day):
            return
        self.hovered = day

    def clear(self) -> None:
        self.selection = DateRange()
        self.hovered = None

    def next_month(self) -> None:
        self.year, self.month = add_months(self.year, self.month, 1)

    def previous_month(self) -> None:
        self.year, self.month = add_months(self.year, self.month, -1)

    def visible_months(self) -> list[tuple[int, int]]:
        """The anchor month and the one after it."""
        return [(self.year, self.month), add_months(self.year, self.month, 1)]

    def _in_preview(self, day: date) -> bool:
        start = self.selection.start
        if self.state != SelectionState.PARTIAL or self.hovered is None:
            return False
        if self.hovered < start:
            return False
        return start < day < self.hovered

    def day_cell(self, day: date, year: int, month: int) -> DayCell:
        """Classify ``day`` as drawn inside the grid of (year, month)."""
        start, end = self.selection.start, self.selection.end
        is_start = start is not None and day == start
        is_end = end is not None and day == end
        in_range = start is not None and end is not None and start < day < end

        return DayCell(
            date=day,
            in_month=(day.year, day.month) == (year, month),
            past=self.is_disabled(day),
            start=is_start,
            end=is_end,
            in_range=(in_range or self._in_preview(day)) and not (is_start or is_end),
            preview=self._in_preview(day),
            hovered=(
                self.hovered == day and not is_start and not is_end and end is None
            ),
            today=day == self.today and not is_start and not is_end,
        )

    def month_cells(self, year: int, month: int) -> list[DayCell]:
        return [self.day_cell(day, year, month) for day in month_grid(year, month)]
