import os
import sys
import calendar
import datetime
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from calendar_service import (
    GRID_CELLS,
    CalendarService,
    DateSelection,
    MonthCursor,
    monday_position,
)
from models import parse_session


def session(sid, date, kind):
    data = {"id": sid, "type": kind, "date": date}
    if kind == "strength":
        data["exercises"] = [{"name": "Squat", "sets": [{"reps": 5, "weight": 80}]}]
    else:
        data[kind] = {"duration": 40}
    return parse_session(data)


class MonthGridTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.calendar = CalendarService()

    def test_every_grid_has_42_cells_starting_monday(self) -> None:
        for year in (2020, 2021, 2024, 2025):
            for month in range(1, 13):
                cells = self.calendar.grid_dates(year, month)
                self.assertEqual(len(cells), GRID_CELLS)
                self.assertEqual(cells[0][0].weekday(), 0)
                first = datetime.date(year, month, 1)
                self.assertIn((first, True), cells)
                self.assertEqual(
                    sum(1 for _, in_month in cells if in_month),
                    calendar.monthrange(year, month)[1],
                )

    def test_month_starting_sunday(self) -> None:
        cells = self.calendar.grid_dates(2024, 9)
        self.assertEqual(cells[0], (datetime.date(2024, 8, 26), False))
        self.assertEqual(cells[6], (datetime.date(2024, 9, 1), True))

    def test_month_starting_monday(self) -> None:
        cells = self.calendar.grid_dates(2024, 4)
        self.assertEqual(cells[0], (datetime.date(2024, 4, 1), True))

    def test_short_february(self) -> None:
        cells = self.calendar.grid_dates(2021, 2)
        self.assertEqual(cells[0][0], datetime.date(2021, 2, 1))
        self.assertEqual(cells[-1], (datetime.date(2021, 3, 14), False))

    def test_monday_position(self) -> None:
        self.assertEqual(monday_position(datetime.date(2024, 9, 1)), 6)
        self.assertEqual(monday_position(datetime.date(2024, 9, 2)), 0)
        self.assertEqual(monday_position(datetime.date(2024, 3, 1)), 4)

    def test_day_with_several_types(self) -> None:
        sessions = [
            session(2, "2024-03-01", "cycling"),
            session(1, "2024-03-01", "strength"),
            session(3, "2024-03-05", "running"),
        ]
        grid = self.calendar.month_grid(2024, 3, sessions, datetime.date(2024, 3, 5))
        by_date = {c.date: c for c in grid}
        first = by_date[datetime.date(2024, 3, 1)]
        self.assertEqual(first.types, ["strength", "cycling"])
        self.assertEqual(first.session_count, 2)
        self.assertTrue(first.selectable)
        fifth = by_date[datetime.date(2024, 3, 5)]
        self.assertTrue(fifth.is_today)
        self.assertEqual(fifth.types, ["running"])
        self.assertFalse(by_date[datetime.date(2024, 3, 2)].has_session)
        self.assertEqual(grid[0].date, datetime.date(2024, 2, 26))
        self.assertFalse(grid[0].in_month)

    def test_month_view(self) -> None:
        view = self.calendar.month_view(MonthCursor(2024, 3), [], datetime.date(2024, 3, 5))
        self.assertEqual(view["title"], "March 2024")
        self.assertEqual(len(view["days"]), GRID_CELLS)

    def test_sessions_on(self) -> None:
        sessions = [
            session(5, "2024-03-01", "running"),
            session(2, "2024-03-01", "strength"),
            session(3, "2024-03-02", "cycling"),
        ]
        found = self.calendar.sessions_on(datetime.date(2024, 3, 1), sessions)
        self.assertEqual([s.id for s in found], [2, 5])
        self.assertEqual(self.calendar.sessions_on(datetime.date(2024, 3, 9), sessions), [])


class SelectionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.buckets = CalendarService.bucket_by_date(
            [
                session(1, "2024-03-01", "strength"),
                session(2, "2024-03-01", "cycling"),
                session(3, "2024-03-04", "running"),
            ]
        )
        self.selection = DateSelection()

    def test_toggle_selects_and_deselects(self) -> None:
        day = datetime.date(2024, 3, 1)
        self.assertEqual(self.selection.toggle(day, self.buckets), day)
        self.assertEqual([s.id for s in self.selection.sessions_on(self.buckets)], [1, 2])
        self.assertIsNone(self.selection.toggle(day, self.buckets))
        self.assertEqual(self.selection.sessions_on(self.buckets), [])

    def test_switch_selection(self) -> None:
        self.selection.toggle(datetime.date(2024, 3, 1), self.buckets)
        self.selection.toggle(datetime.date(2024, 3, 4), self.buckets)
        self.assertEqual(self.selection.selected, datetime.date(2024, 3, 4))

    def test_empty_day_is_ignored(self) -> None:
        self.selection.toggle(datetime.date(2024, 3, 1), self.buckets)
        self.selection.toggle(datetime.date(2024, 3, 2), self.buckets)
        self.assertEqual(self.selection.selected, datetime.date(2024, 3, 1))
        self.selection.clear()
        self.selection.toggle(datetime.date(2024, 3, 2), self.buckets)
        self.assertIsNone(self.selection.selected)


class MonthCursorTestCase(unittest.TestCase):
    def test_wraps_years(self) -> None:
        self.assertEqual(MonthCursor(2024, 1).previous(), MonthCursor(2023, 12))
        self.assertEqual(MonthCursor(2024, 12).next(), MonthCursor(2025, 1))
        self.assertEqual(MonthCursor(2024, 6).next().previous(), MonthCursor(2024, 6))

    def test_title_and_today(self) -> None:
        cursor = MonthCursor.today(datetime.date(2024, 9, 17))
        self.assertEqual(cursor.title, "September 2024")
        self.assertEqual(cursor.first_day, datetime.date(2024, 9, 1))

    def test_invalid_month(self) -> None:
        with self.assertRaises(ValueError):
            MonthCursor(2024, 13)
        with self.assertRaises(ValueError):
            MonthCursor(2024, 0)


class WeekActivityTestCase(unittest.TestCase):
    def test_week_flags(self) -> None:
        # Wednesday
        today = datetime.date(2024, 3, 13)
        sessions = [
            session(1, "2024-03-11", "strength"),
            session(2, "2024-03-13", "running"),
            session(3, "2024-03-10", "cycling"),
        ]
        week = CalendarService.week_activity(sessions, today)
        self.assertEqual([d.label for d in week], ["M", "T", "W", "T", "F", "S", "S"])
        self.assertEqual(week[0].date, datetime.date(2024, 3, 11))
        self.assertEqual([d.has_session for d in week], [True, False, True, False, False, False, False])
        self.assertTrue(week[2].is_today)
        self.assertEqual([d.is_future for d in week], [False] * 3 + [True] * 4)

    def test_sunday_belongs_to_previous_monday(self) -> None:
        week = CalendarService.week_activity([], datetime.date(2024, 9, 1))
        self.assertEqual(week[0].date, datetime.date(2024, 8, 26))
        self.assertTrue(week[6].is_today)


if __name__ == "__main__":
    unittest.main()
