import datetime
from typing import Optional, Sequence

from loguru import logger

from db import SettingsRepository
from errors import InvalidInputError
from models import (
    Achievement,
    Session,
    StreakState,
    StrengthSession,
    WeeklyGoalState,
)
from settings_schema import DEFAULT_WEEKLY_GOAL

# upper bound on days walked back, not a rule about streak length
STREAK_WALK_LIMIT = 365
GOAL_WINDOW_DAYS = 7
MIN_WEEKLY_GOAL = 2
MAX_WEEKLY_GOAL = 7


def _workout_milestone(key: str, name: str, count: int, total: int) -> Achievement:
    return Achievement(
        id=key,
        name=name,
        description=f"Complete {count} workouts",
        unlocked=total >= count,
        progress=total,
        target=count,
    )


class GamificationService:
    """Streaks, weekly goals and achievements."""

    def __init__(self, settings_repo: Optional[SettingsRepository] = None) -> None:
        self.settings = settings_repo

    @staticmethod
    def training_days(sessions: Sequence[Session]) -> set[datetime.date]:
        return {s.date for s in sessions}

    @staticmethod
    def current_streak(
        days: set[datetime.date], today: Optional[datetime.date] = None
    ) -> int:
        """Count consecutive training days ending today or yesterday."""
        today = today or datetime.date.today()
        yesterday = today - datetime.timedelta(days=1)
        if today not in days and yesterday not in days:
            return 0
        streak = 0
        check = today
        for i in range(STREAK_WALK_LIMIT):
            if check in days:
                streak += 1
            elif i > 0:
                break
            check -= datetime.timedelta(days=1)
        return streak

    @staticmethod
    def record_streak(days: set[datetime.date]) -> int:
        if not days:
            return 0
        ordered = sorted(days)
        record = current = 1
        for prev, nxt in zip(ordered, ordered[1:]):
            if (nxt - prev).days == 1:
                current += 1
            else:
                record = max(record, current)
                current = 1
        return max(record, current)

    def workout_streak(
        self, sessions: Sequence[Session], today: Optional[datetime.date] = None
    ) -> StreakState:
        """Return current and record workout streak lengths."""
        days = self.training_days(sessions)
        length = self.current_streak(days, today)
        return StreakState(length=length, record=max(length, self.record_streak(days)))

    def get_weekly_goal(self, user_id: str = "local") -> int:
        if self.settings is None:
            return DEFAULT_WEEKLY_GOAL
        return self.settings.get_weekly_goal(user_id)

    def set_weekly_goal(self, user_id: str, target: int) -> int:
        if not MIN_WEEKLY_GOAL <= target <= MAX_WEEKLY_GOAL:
            logger.warning("Rejected weekly goal {} for {}", target, user_id)
            raise InvalidInputError(
                f"weekly goal must be between {MIN_WEEKLY_GOAL} and {MAX_WEEKLY_GOAL}"
            )
        if self.settings is None:
            raise RuntimeError("no settings store configured")
        self.settings.set_weekly_goal(user_id, target)
        logger.info("Weekly goal for {} set to {}", user_id, target)
        return target

    @staticmethod
    def sessions_in_window(
        sessions: Sequence[Session], today: Optional[datetime.date] = None
    ) -> int:
        """Count sessions over the last seven days, today included."""
        today = today or datetime.date.today()
        start = today - datetime.timedelta(days=GOAL_WINDOW_DAYS - 1)
        return sum(1 for s in sessions if start <= s.date <= today)

    def weekly_goal(
        self,
        sessions: Sequence[Session],
        user_id: str = "local",
        today: Optional[datetime.date] = None,
        target: Optional[int] = None,
    ) -> WeeklyGoalState:
        return WeeklyGoalState(
            target=target if target is not None else self.get_weekly_goal(user_id),
            achieved=self.sessions_in_window(sessions, today),
        )

    def achievements(
        self, sessions: Sequence[Session], today: Optional[datetime.date] = None
    ) -> list[Achievement]:
        total = len(sessions)
        streak = self.current_streak(self.training_days(sessions), today)
        unique = len(
            {
                ex.name
                for s in sessions
                if isinstance(s, StrengthSession)
                for ex in s.exercises
            }
        )
        return [
            Achievement(
                id="first-workout",
                name="First Steps",
                description="Complete your first workout",
                unlocked=total >= 1,
            ),
            _workout_milestone("10-workouts", "Getting Started", 10, total),
            _workout_milestone("50-workouts", "Dedicated", 50, total),
            _workout_milestone("100-workouts", "Centurion", 100, total),
            Achievement(
                id="3-day-streak",
                name="On Fire",
                description="Achieve a 3-day streak",
                unlocked=streak >= 3,
            ),
            Achievement(
                id="7-day-streak",
                name="Week Warrior",
                description="Achieve a 7-day streak",
                unlocked=streak >= 7,
            ),
            Achievement(
                id="30-day-streak",
                name="Unstoppable",
                description="Achieve a 30-day streak",
                unlocked=streak >= 30,
                progress=streak,
                target=30,
            ),
            Achievement(
                id="10-exercises",
                name="Variety",
                description="Try 10 different exercises",
                unlocked=unique >= 10,
                progress=unique,
                target=10,
            ),
        ]

    def achievement_summary(
        self, sessions: Sequence[Session], today: Optional[datetime.date] = None
    ) -> dict:
        items = self.achievements(sessions, today)
        unlocked = [a for a in items if a.unlocked]
        upcoming = next(
            (a for a in items if not a.unlocked and a.progress is not None), None
        )
        return {
            "unlocked": len(unlocked),
            "total": len(items),
            "recent": unlocked[-3:],
            "next": upcoming,
            "achievements": items,
        }
