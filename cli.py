import argparse
import csv
import datetime
import os
import shutil

from loguru import logger

from calendar_service import CalendarService, MonthCursor
from config import YamlConfig, default_db_path
from db import SettingsRepository, WorkoutRepository
from gamification_service import GamificationService
from logger_config import setup_logger
from models import StrengthSession, parse_session, session_summary
from settings_schema import load_settings
from stats_service import StatisticsService

BADGES = {"strength": "S", "cycling": "C", "running": "R"}


def export_workouts(
    db_path: str, fmt: str, output_dir: str = ".", user_id: str = "local"
) -> list[str]:
    """Write one file per workout and return the written paths."""
    workouts = WorkoutRepository(db_path)
    paths = []
    for session in workouts.fetch_sessions(user_id):
        out_path = os.path.join(output_dir, f"workout_{session.id}.{fmt}")
        with open(out_path, "w", encoding="utf-8", newline="") as f:
            if fmt == "json":
                f.write(session.model_dump_json())
            else:
                writer = csv.writer(f)
                if isinstance(session, StrengthSession):
                    writer.writerow(["Date", "Exercise", "Set", "Reps", "Weight", "RPE"])
                    for ex in session.exercises:
                        for i, s in enumerate(ex.sets, start=1):
                            writer.writerow(
                                [session.date, ex.name, i, s.reps, s.weight, s.rpe or ""]
                            )
                else:
                    summary = session_summary(session).model_dump()
                    writer.writerow(["Date", "Type", *summary.keys()])
                    writer.writerow(
                        [
                            session.date,
                            session.type,
                            *["" if v is None else v for v in summary.values()],
                        ]
                    )
        paths.append(out_path)
    logger.info("Exported {} workouts to {}", len(paths), output_dir)
    return paths


def backup_db(db_path: str, backup_path: str) -> None:
    shutil.copy(db_path, backup_path)


def restore_db(backup_path: str, db_path: str) -> None:
    shutil.copy(backup_path, db_path)


def demo_data(db_path: str, today: datetime.date | None = None) -> None:
    """Populate the database with demo workouts if empty."""
    workouts = WorkoutRepository(db_path)
    if workouts.fetch_all_workouts():
        print("Database already contains workouts")
        return
    today = today or datetime.date.today()
    records = [
        {
            "type": "strength",
            "date": (today - datetime.timedelta(days=7)).isoformat(),
            "exercises": [
                {"name": "Bench Press", "sets": [{"reps": 5, "weight": 60.0, "rpe": 7}]},
                {"name": "Squat", "sets": [{"reps": 5, "weight": 80.0}]},
            ],
        },
        {
            "type": "cycling",
            "date": (today - datetime.timedelta(days=1)).isoformat(),
            "cycling": {"title": "Evening ride", "duration": 45, "distance": 18.5},
        },
        {
            "type": "strength",
            "date": today.isoformat(),
            "exercises": [
                {
                    "name": "Bench Press",
                    "sets": [
                        {"reps": 5, "weight": 65.0, "rpe": 8},
                        {"reps": 3, "weight": 65.0, "rpe": 9},
                    ],
                }
            ],
        },
        {
            "type": "running",
            "date": today.isoformat(),
            "running": {"duration": 30, "distance": 5.0, "avg_pace": 6.0},
        },
    ]
    for record in records:
        workouts.create(parse_session(record))
    print("Demo data inserted")


def show_progress(db_path: str, exercise: str, user_id: str = "local") -> None:
    stats = StatisticsService(WorkoutRepository(db_path))
    report = stats.progress(exercise, user_id=user_id)
    if not report.has_data:
        print(f"No data for {exercise} yet.")
        return
    for point in report.series:
        print(
            f"{point.date}  max {point.max_weight:g}  vol {point.total_volume:g}  1RM {point.estimated_1rm:g}"
        )
    print(
        f"Trend: weight {report.weight_trend:+g}, volume {report.volume_trend:+g}, 1RM {report.one_rm_trend:+g}"
    )
    if report.is_pr:
        print("Personal Record!")


def show_streak(db_path: str, yaml_path: str | None = None, user_id: str = "local") -> None:
    sessions = WorkoutRepository(db_path).fetch_sessions(user_id)
    game = GamificationService(SettingsRepository(db_path, yaml_path))
    streak = game.workout_streak(sessions)
    goal = game.weekly_goal(sessions, user_id)
    print(f"Streak: {streak.length} day{'s' if streak.length != 1 else ''} (record {streak.record})")
    status = "Goal completed!" if goal.is_complete else f"{goal.achieved} of {goal.target} completed"
    print(f"Weekly goal: {status}")


def show_calendar(
    db_path: str, year: int | None = None, month: int | None = None, user_id: str = "local"
) -> None:
    today = datetime.date.today()
    # a missing part of the month falls back to the current one
    cursor = MonthCursor(year or today.year, month or today.month)
    sessions = WorkoutRepository(db_path).fetch_sessions(user_id)
    grid = CalendarService().month_grid(cursor.year, cursor.month, sessions)
    print(cursor.title.center(41))
    print(" ".join(d.ljust(5) for d in ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]))
    for row in range(6):
        cells = []
        for day in grid[row * 7 : row * 7 + 7]:
            if not day.in_month:
                cells.append(" " * 5)
                continue
            badges = "".join(BADGES[t] for t in day.types)
            cells.append(f"{day.day:2d}{badges}".ljust(5))
        print(" ".join(cells).rstrip())


def main() -> None:
    parser = argparse.ArgumentParser(description="Utility commands")
    parser.add_argument("--yaml", default=None)
    parser.add_argument("--user", default="local")
    sub = parser.add_subparsers(dest="cmd", required=True)

    exp = sub.add_parser("export")
    exp.add_argument("--db", default=default_db_path())
    exp.add_argument("--fmt", choices=["csv", "json"], default="csv")
    exp.add_argument("--out", default=".")

    bkp = sub.add_parser("backup")
    bkp.add_argument("--db", default=default_db_path())
    bkp.add_argument("--out", default="backup.db")

    rst = sub.add_parser("restore")
    rst.add_argument("--in", dest="src", default="backup.db")
    rst.add_argument("--db", default=default_db_path())

    demo = sub.add_parser("demo")
    demo.add_argument("--db", default=default_db_path())

    prog = sub.add_parser("progress")
    prog.add_argument("exercise")
    prog.add_argument("--db", default=default_db_path())

    strk = sub.add_parser("streak")
    strk.add_argument("--db", default=default_db_path())

    cal = sub.add_parser("calendar")
    cal.add_argument("--db", default=default_db_path())
    cal.add_argument("--year", type=int)
    cal.add_argument("--month", type=int, choices=range(1, 13))

    args = parser.parse_args()
    config = load_settings(YamlConfig(args.yaml).load())
    setup_logger(config.log_level, config.log_file)

    if args.cmd == "export":
        export_workouts(args.db, args.fmt, args.out, args.user)
    elif args.cmd == "backup":
        backup_db(args.db, args.out)
    elif args.cmd == "restore":
        restore_db(args.src, args.db)
    elif args.cmd == "demo":
        demo_data(args.db)
    elif args.cmd == "progress":
        show_progress(args.db, args.exercise, args.user)
    elif args.cmd == "streak":
        show_streak(args.db, args.yaml, args.user)
    elif args.cmd == "calendar":
        show_calendar(args.db, args.year, args.month, args.user)


if __name__ == "__main__":
    main()
