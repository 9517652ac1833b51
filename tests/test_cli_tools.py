import os
import sys
import csv
import calendar
import json
import shutil
import datetime
import tempfile
import unittest
from contextlib import redirect_stdout
from io import StringIO

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from cli import (
    backup_db,
    demo_data,
    export_workouts,
    restore_db,
    show_calendar,
    show_progress,
    show_streak,
)
from db import WorkoutRepository
from models import parse_session

TODAY = datetime.date(2024, 3, 15)


class CLIToolsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.tmpdir, "test.db")
        self.yaml_path = os.path.join(self.tmpdir, "settings.yaml")

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _run(self, func, *args) -> str:
        buf = StringIO()
        with redirect_stdout(buf):
            func(*args)
        return buf.getvalue()

    def test_demo_data_once(self) -> None:
        out = self._run(demo_data, self.db_path, TODAY)
        self.assertIn("Demo data inserted", out)
        sessions = WorkoutRepository(self.db_path).fetch_sessions()
        self.assertEqual([s.type for s in sessions], ["strength", "cycling", "strength", "running"])
        out = self._run(demo_data, self.db_path, TODAY)
        self.assertIn("already contains", out)
        self.assertEqual(len(WorkoutRepository(self.db_path).fetch_sessions()), 4)

    def test_export_csv_and_json(self) -> None:
        demo_data(self.db_path, TODAY)
        out_dir = os.path.join(self.tmpdir, "out")
        os.makedirs(out_dir)
        paths = export_workouts(self.db_path, "csv", out_dir)
        self.assertEqual(len(paths), 4)
        with open(paths[0], newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0], ["Date", "Exercise", "Set", "Reps", "Weight", "RPE"])
        self.assertEqual(rows[1], ["2024-03-08", "Bench Press", "1", "5", "60.0", "7"])
        self.assertEqual(rows[2][1], "Squat")
        with open(paths[1], newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0][:3], ["Date", "Type", "title"])
        self.assertEqual(rows[1][1], "cycling")

        paths = export_workouts(self.db_path, "json", out_dir)
        with open(paths[-1], encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data["type"], "running")
        self.assertEqual(data["running"]["distance"], 5.0)

    def test_backup_and_restore(self) -> None:
        repo = WorkoutRepository(self.db_path)
        repo.create(parse_session({"type": "running", "date": "2024-03-01", "running": {"duration": 20}}))
        backup = os.path.join(self.tmpdir, "backup.db")
        backup_db(self.db_path, backup)
        repo.create(parse_session({"type": "running", "date": "2024-03-02", "running": {"duration": 20}}))
        self.assertEqual(len(repo.fetch_sessions()), 2)
        restore_db(backup, self.db_path)
        self.assertEqual(len(WorkoutRepository(self.db_path).fetch_sessions()), 1)

    def test_show_progress(self) -> None:
        out = self._run(show_progress, self.db_path, "Bench Press")
        self.assertIn("No data for Bench Press yet.", out)
        demo_data(self.db_path, TODAY)
        out = self._run(show_progress, self.db_path, "Bench Press")
        self.assertIn("Trend: weight +5", out)
        self.assertIn("Personal Record!", out)

    def test_show_streak(self) -> None:
        demo_data(self.db_path, datetime.date.today())
        out = self._run(show_streak, self.db_path, self.yaml_path)
        self.assertIn("Streak: 2 days", out)
        self.assertIn("Weekly goal: 3 of 4 completed", out)

    def test_show_calendar(self) -> None:
        demo_data(self.db_path, TODAY)
        out = self._run(show_calendar, self.db_path, 2024, 3)
        lines = out.splitlines()
        self.assertEqual(lines[0].strip(), "March 2024")
        self.assertIn("15SR", out)
        self.assertIn("14C", out)

    def test_show_calendar_partial_month(self) -> None:
        today = datetime.date.today()
        out = self._run(show_calendar, self.db_path, 2023, None)
        self.assertEqual(
            out.splitlines()[0].strip(), f"{calendar.month_name[today.month]} 2023"
        )
        out = self._run(show_calendar, self.db_path, None, 2)
        self.assertEqual(out.splitlines()[0].strip(), f"February {today.year}")


if __name__ == "__main__":
    unittest.main()
