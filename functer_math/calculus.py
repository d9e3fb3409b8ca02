"""
Numeric calculus used at evaluation time.

    central_difference(math.sin, 0.0)          -> ~1.0
    simpson(lambda t: t * t, 0.0, 3.0)         -> 9.0
"""

import logging
from typing import Callable

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_STEP = 0.001
DEFAULT_INTERVALS = 20


def central_difference(func: Callable[[float], float], x: float, h: float = DEFAULT_STEP) -> float:
    """(f(x+h) - f(x-h)) / 2h. Non-finite samples propagate; errors from func are not masked."""
    return (func(x + h) - func(x - h)) / (2 * h)


def derivative_of(func: Callable[[float], float], h: float = DEFAULT_STEP) -> Callable[[float], float]:
    """Callable derivative of func, suitable for a `derivative_<name>` scope entry."""
    def derivative(x):
        return central_difference(func, x, h)
    return derivative


def simpson_weights(intervals: int) -> np.ndarray:
    """1, 4, 2, 4, ..., 2, 4, 1"""
    weights = np.ones(intervals + 1)
    weights[1:-1:2] = 4.0
    weights[2:-1:2] = 2.0
    return weights


def simpson(func: Callable[[float], float], lower: float, upper: float,
            intervals: int = DEFAULT_INTERVALS) -> float:
    """
    Simpson's 1/3 rule over `intervals` subintervals (must be even).

    A sample where func raises counts as 0 so one bad point does not
    lose the whole integral.
    """
    if intervals <= 0 or intervals % 2:
        raise ValueError(f"Simpson's rule needs a positive even interval count, got {intervals}")

    lower, upper = float(lower), float(upper)
    h = (upper - lower) / intervals
    points = np.linspace(lower, upper, intervals + 1)

    samples = np.empty(intervals + 1)
    failed = 0
    for i, p in enumerate(points):
        try:
            samples[i] = float(func(float(p)))
        except Exception:
            samples[i] = 0.0
            failed += 1
    if failed:
        logger.debug(f"simpson: {failed}/{intervals + 1} samples failed on [{lower}, {upper}]")

    return float(h / 3 * np.dot(simpson_weights(intervals), samples))
