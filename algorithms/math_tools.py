import math
from typing import Iterable, Sequence

from errors import InvalidExerciseDataError


class MathTools:
    """Provides essential mathematical utilities for workout calculations."""

    EPLEY_DIVISOR: int = 30

    @staticmethod
    def round_half_away(value: float) -> float:
        """Round to the nearest integer, halves away from zero."""
        if value < 0:
            return -math.floor(-value + 0.5)
        return float(math.floor(value + 0.5))

    @classmethod
    def epley_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Epley formula.

        A single rep is its own maximum. Otherwise the estimate is
        ``weight * (1 + reps / 30)`` rounded to a whole number.
        """
        if reps < 1:
            raise ValueError("reps must be at least 1")
        if reps == 1:
            return float(weight)
        return cls.round_half_away(weight * (1 + reps / cls.EPLEY_DIVISOR))

    @staticmethod
    def volume(sets: Iterable[tuple[int, float]]) -> float:
        """Compute training volume as the sum of reps times weight."""
        vol = 0.0
        for reps, weight in sets:
            vol += reps * weight
        return vol

    @staticmethod
    def max_weight(weights: Sequence[float]) -> float:
        if not weights:
            raise InvalidExerciseDataError()
        return float(max(weights))

    @staticmethod
    def best_index(weights: Sequence[float]) -> int:
        """Index of the heaviest weight; the earliest wins a tie."""
        if not weights:
            raise InvalidExerciseDataError()
        best = 0
        for i in range(1, len(weights)):
            if weights[i] > weights[best]:
                best = i
        return best
