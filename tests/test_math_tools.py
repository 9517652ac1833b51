import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from algorithms import MathTools
from errors import InvalidExerciseDataError


class MathToolsTestCase(unittest.TestCase):
    def test_round_half_away(self) -> None:
        self.assertEqual(MathTools.round_half_away(2.5), 3)
        self.assertEqual(MathTools.round_half_away(0.5), 1)
        self.assertEqual(MathTools.round_half_away(3.49), 3)
        self.assertEqual(MathTools.round_half_away(-2.5), -3)
        self.assertEqual(MathTools.round_half_away(0.0), 0)

    def test_epley_single_rep_is_weight(self) -> None:
        for weight in [0.0, 20.0, 62.5, 101.25, 250.0]:
            self.assertEqual(MathTools.epley_1rm(weight, 1), weight)

    def test_epley_values(self) -> None:
        self.assertEqual(MathTools.epley_1rm(100, 5), 117)
        self.assertEqual(MathTools.epley_1rm(60, 5), 70)
        self.assertEqual(MathTools.epley_1rm(45, 10), 60)
        self.assertEqual(MathTools.epley_1rm(0, 10), 0)
        with self.assertRaises(ValueError):
            MathTools.epley_1rm(100, 0)

    def test_epley_monotonic(self) -> None:
        weights = [20 + 2.5 * i for i in range(73)]
        for reps in range(2, 13):
            values = [MathTools.epley_1rm(w, reps) for w in weights]
            for a, b in zip(values, values[1:]):
                self.assertLess(a, b)
        for weight in weights:
            values = [MathTools.epley_1rm(weight, r) for r in range(1, 21)]
            for a, b in zip(values, values[1:]):
                self.assertLessEqual(a, b)

    def test_volume(self) -> None:
        sets = [(10, 100.0), (5, 150.0)]
        self.assertEqual(MathTools.volume(sets), 10 * 100.0 + 5 * 150.0)
        self.assertEqual(MathTools.volume([]), 0.0)

    def test_max_weight_and_best_index(self) -> None:
        self.assertEqual(MathTools.max_weight([50, 80, 80, 60]), 80)
        self.assertEqual(MathTools.best_index([50, 80, 80, 60]), 1)
        self.assertEqual(MathTools.best_index([0, 0]), 0)
        with self.assertRaises(InvalidExerciseDataError):
            MathTools.max_weight([])
        with self.assertRaises(InvalidExerciseDataError):
            MathTools.best_index([])


if __name__ == "__main__":
    unittest.main()
