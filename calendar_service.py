from __future__ import annotations
import calendar
import datetime
from typing import Dict, List, Optional, Sequence

from loguru import logger

from models import CalendarBucket, CalendarDay, Session, WeekDay

GRID_CELLS = 42
MONTH_NAMES = list(calendar.month_name)[1:]
DAY_LABELS = ["M", "T", "W", "T", "F", "S", "S"]


def monday_position(day: datetime.date) -> int:
    """Column of ``day`` in a Monday-first week.

    Counting weekdays with Sunday as 0, Sunday moves to the last column and
    every other day shifts down by one.
    """
    sunday_first = (day.weekday() + 1) % 7
    return 6 if sunday_first == 0 else sunday_first - 1


class MonthCursor:
    """The month currently displayed by a calendar view."""

    def __init__(self, year: int, month: int) -> None:
        if not 1 <= month <= 12:
            raise ValueError("month must be between 1 and 12")
        self.year = year
        self.month = month

    @classmethod
    def today(cls, today: Optional[datetime.date] = None) -> "MonthCursor":
        today = today or datetime.date.today()
        return cls(today.year, today.month)

    def previous(self) -> "MonthCursor":
        if self.month == 1:
            return MonthCursor(self.year - 1, 12)
        return MonthCursor(self.year, self.month - 1)

    def next(self) -> "MonthCursor":
        if self.month == 12:
            return MonthCursor(self.year + 1, 1)
        return MonthCursor(self.year, self.month + 1)

    @property
    def first_day(self) -> datetime.date:
        return datetime.date(self.year, self.month, 1)

    @property
    def title(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]} {self.year}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonthCursor):
            return NotImplemented
        return (self.year, self.month) == (other.year, other.month)

    def __repr__(self) -> str:
        return f"MonthCursor({self.year}, {self.month})"


class DateSelection:
    """Tracks the date picked on the calendar."""

    def __init__(self, selected: Optional[datetime.date] = None) -> None:
        self.selected = selected

    def toggle(
        self,
        day: datetime.date,
        buckets: Dict[datetime.date, CalendarBucket],
    ) -> Optional[datetime.date]:
        """Select ``day``, or clear the selection if it is already selected.

        Days without sessions cannot be selected and leave the selection as
        it was.
        """
        bucket = buckets.get(day)
        if bucket is None or not bucket.sessions:
            return self.selected
        self.selected = None if self.selected == day else day
        return self.selected

    def clear(self) -> None:
        self.selected = None

    def sessions_on(
        self, buckets: Dict[datetime.date, CalendarBucket]
    ) -> List[Session]:
        if self.selected is None or self.selected not in buckets:
            return []
        return list(buckets[self.selected].sessions)


class CalendarService:
    """Group sessions by day for calendar and weekly activity views."""

    @staticmethod
    def bucket_by_date(
        sessions: Sequence[Session],
    ) -> Dict[datetime.date, CalendarBucket]:
        grouped: Dict[datetime.date, list[Session]] = {}
        for s in sorted(sessions, key=lambda s: (s.date, s.id)):
            grouped.setdefault(s.date, []).append(s)
        return {
            day: CalendarBucket(date=day, sessions=items)
            for day, items in grouped.items()
        }

    @staticmethod
    def grid_dates(year: int, month: int) -> List[tuple[datetime.date, bool]]:
        """Return the 42 dates of a month grid with their in-month flag."""
        first = datetime.date(year, month, 1)
        start = first - datetime.timedelta(days=monday_position(first))
        dates = []
        for i in range(GRID_CELLS):
            day = start + datetime.timedelta(days=i)
            dates.append((day, day.year == year and day.month == month))
        return dates

    def month_grid(
        self,
        year: int,
        month: int,
        sessions: Sequence[Session],
        today: Optional[datetime.date] = None,
    ) -> List[CalendarDay]:
        today = today or datetime.date.today()
        buckets = self.bucket_by_date(sessions)
        cells = []
        for day, in_month in self.grid_dates(year, month):
            bucket = buckets.get(day)
            cells.append(
                CalendarDay(
                    date=day,
                    in_month=in_month,
                    is_today=day == today,
                    types=bucket.types if bucket else [],
                    session_count=len(bucket.sessions) if bucket else 0,
                )
            )
        logger.debug(
            "Built grid for {}-{:02d} with {} active days",
            year,
            month,
            sum(1 for c in cells if c.has_session),
        )
        return cells

    def month_view(
        self,
        cursor: MonthCursor,
        sessions: Sequence[Session],
        today: Optional[datetime.date] = None,
    ) -> dict:
        return {
            "year": cursor.year,
            "month": cursor.month,
            "title": cursor.title,
            "days": self.month_grid(cursor.year, cursor.month, sessions, today),
        }

    @staticmethod
    def sessions_on(
        day: datetime.date, sessions: Sequence[Session]
    ) -> List[Session]:
        return sorted((s for s in sessions if s.date == day), key=lambda s: s.id)

    @staticmethod
    def week_activity(
        sessions: Sequence[Session], today: Optional[datetime.date] = None
    ) -> List[WeekDay]:
        """Return Monday to Sunday of the current week with activity flags."""
        today = today or datetime.date.today()
        monday = today - datetime.timedelta(days=monday_position(today))
        days = {s.date for s in sessions}
        week = []
        for i, label in enumerate(DAY_LABELS):
            day = monday + datetime.timedelta(days=i)
            week.append(
                WeekDay(
                    date=day,
                    label=label,
                    has_session=day in days,
                    is_today=day == today,
                    is_future=day > today,
                )
            )
        return week
