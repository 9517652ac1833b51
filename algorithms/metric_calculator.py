import datetime
from typing import Optional, Sequence

from loguru import logger

from errors import InvalidExerciseDataError
from models import DerivedMetric, ExerciseEntry, SetEntry
from .math_tools import MathTools


class MetricCalculator:
    """Derive per-exercise metrics from the sets of one session."""

    @staticmethod
    def from_sets(
        sets: Sequence[SetEntry],
        date: Optional[datetime.date] = None,
        session_id: Optional[int] = None,
        name: str | None = None,
    ) -> DerivedMetric:
        if not sets:
            logger.warning("Rejected exercise {} without sets", name or "<unnamed>")
            raise InvalidExerciseDataError(name)
        weights = [s.weight for s in sets]
        best = sets[MathTools.best_index(weights)]
        return DerivedMetric(
            date=date,
            session_id=session_id,
            max_weight=MathTools.max_weight(weights),
            total_volume=MathTools.volume((s.reps, s.weight) for s in sets),
            estimated_1rm=max(MathTools.epley_1rm(s.weight, s.reps) for s in sets),
            best_set=best,
        )

    @classmethod
    def for_exercise(
        cls,
        exercise: ExerciseEntry,
        date: Optional[datetime.date] = None,
        session_id: Optional[int] = None,
    ) -> DerivedMetric:
        return cls.from_sets(exercise.sets, date, session_id, exercise.name)
