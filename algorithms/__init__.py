from .math_tools import MathTools
from .metric_calculator import MetricCalculator

__all__ = ["MathTools", "MetricCalculator"]
