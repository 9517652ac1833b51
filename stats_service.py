from __future__ import annotations
import datetime
from typing import Dict, List, Optional, Sequence

from loguru import logger

from algorithms import MetricCalculator
from db import WorkoutRepository
from errors import NoDataError
from models import (
    SESSION_TYPES,
    DerivedMetric,
    PersonalRecord,
    ProgressReport,
    Session,
    StrengthSession,
)


def _chronological(sessions: Sequence[Session]) -> list[Session]:
    return sorted(sessions, key=lambda s: (s.date, s.id))


def monday_of(day: datetime.date) -> datetime.date:
    """Return the Monday starting the ISO week containing ``day``."""
    return day - datetime.timedelta(days=day.weekday())


class StatisticsService:
    """Compute workout statistics for analysis.

    Every method works on a snapshot of sessions supplied by the caller and
    returns freshly built results; nothing is cached between calls.
    """

    def __init__(self, workout_repo: Optional[WorkoutRepository] = None) -> None:
        self.workouts = workout_repo

    def _snapshot(
        self, sessions: Optional[Sequence[Session]], user_id: str
    ) -> Sequence[Session]:
        if sessions is not None:
            return sessions
        if self.workouts is None:
            return []
        return self.workouts.fetch_sessions(user_id)

    @staticmethod
    def exercise_series(
        exercise: str, sessions: Sequence[Session]
    ) -> List[DerivedMetric]:
        """Return one metric per session that logged ``exercise``.

        Names match exactly. When a session lists the exercise more than once
        only the first entry is used. The series is ordered by date, then by
        session id.
        """
        series: list[DerivedMetric] = []
        for session in _chronological(sessions):
            if not isinstance(session, StrengthSession):
                continue
            entry = session.find_exercise(exercise)
            if entry is None:
                continue
            series.append(
                MetricCalculator.for_exercise(entry, session.date, session.id)
            )
        return series

    def progress(
        self,
        exercise: str,
        sessions: Optional[Sequence[Session]] = None,
        user_id: str = "local",
    ) -> ProgressReport:
        """Return the progress report for ``exercise``.

        An exercise that was never logged yields a report without series
        rather than an error.
        """
        series = self.exercise_series(exercise, self._snapshot(sessions, user_id))
        if not series:
            logger.debug("No progress data for {}", exercise)
            return ProgressReport(exercise=exercise)
        current = series[-1]
        previous = series[-2] if len(series) > 1 else None
        all_time_max = max(m.max_weight for m in series)
        all_time_1rm = max(m.estimated_1rm for m in series)
        report = ProgressReport(
            exercise=exercise,
            series=series,
            current=current,
            previous=previous,
            weight_trend=current.max_weight - previous.max_weight if previous else 0.0,
            volume_trend=(
                current.total_volume - previous.total_volume if previous else 0.0
            ),
            one_rm_trend=(
                current.estimated_1rm - previous.estimated_1rm if previous else 0.0
            ),
            all_time_max_weight=all_time_max,
            all_time_1rm=all_time_1rm,
            # at or above the best so far, not necessarily a new record
            is_pr=current.max_weight >= all_time_max,
        )
        logger.debug(
            "Progress for {}: {} points, pr={}", exercise, len(series), report.is_pr
        )
        return report

    def exercise_names(
        self,
        sessions: Optional[Sequence[Session]] = None,
        user_id: str = "local",
    ) -> List[str]:
        """Distinct strength exercise names, most recently trained first."""
        names: Dict[str, None] = {}
        for session in reversed(_chronological(self._snapshot(sessions, user_id))):
            if isinstance(session, StrengthSession):
                for ex in session.exercises:
                    names.setdefault(ex.name, None)
        return list(names)

    def personal_records(
        self,
        sessions: Optional[Sequence[Session]] = None,
        user_id: str = "local",
    ) -> List[PersonalRecord]:
        """Return the heaviest weight and best estimated 1RM per exercise."""
        snapshot = self._snapshot(sessions, user_id)
        records = []
        for name in sorted(self.exercise_names(snapshot)):
            series = self.exercise_series(name, snapshot)
            heaviest = series[0]
            strongest = series[0]
            for m in series[1:]:
                if m.max_weight > heaviest.max_weight:
                    heaviest = m
                if m.estimated_1rm > strongest.estimated_1rm:
                    strongest = m
            records.append(
                PersonalRecord(
                    exercise=name,
                    max_weight=heaviest.max_weight,
                    max_weight_date=heaviest.date,
                    estimated_1rm=strongest.estimated_1rm,
                    estimated_1rm_date=strongest.date,
                    sessions=len(series),
                )
            )
        return records

    def personal_record(
        self,
        exercise: str,
        sessions: Optional[Sequence[Session]] = None,
        user_id: str = "local",
    ) -> PersonalRecord:
        for rec in self.personal_records(sessions, user_id):
            if rec.exercise == exercise:
                return rec
        raise NoDataError(f"no sets logged for {exercise}")

    def overview(
        self,
        sessions: Optional[Sequence[Session]] = None,
        today: Optional[datetime.date] = None,
        user_id: str = "local",
        recent: int = 5,
    ) -> dict:
        """Return dashboard totals for the session snapshot."""
        snapshot = _chronological(self._snapshot(sessions, user_id))
        today = today or datetime.date.today()
        week_start = monday_of(today)
        week_end = week_start + datetime.timedelta(days=6)
        by_type = {t: 0 for t in SESSION_TYPES}
        for s in snapshot:
            by_type[s.type] += 1
        unique = {
            ex.name
            for s in snapshot
            if isinstance(s, StrengthSession)
            for ex in s.exercises
        }
        return {
            "total": len(snapshot),
            "by_type": by_type,
            "unique_exercises": len(unique),
            "this_week": sum(1 for s in snapshot if week_start <= s.date <= week_end),
            "recent": [s.id for s in reversed(snapshot[-recent:])] if recent else [],
        }
