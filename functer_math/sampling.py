"""
Grid and curve sampling for renderers and physics steps.

These are the hot loops the native path exists for: every cell or sample
calls a compiled function once.
"""

import logging
import math
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import numpy as np

from .compiled import CompiledFunction

logger = logging.getLogger(__name__)


def _satisfied(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def constraint_mask(groups: Iterable[Sequence[CompiledFunction]], xs: Sequence[float],
                    ys: Sequence[float], scope: Optional[Mapping[str, Any]] = None) -> np.ndarray:
    """
    Boolean grid of shape (len(ys), len(xs)).

    A cell is set when ANY group has ALL of its constraints true at (x, y).
    Invalid functions are dropped; a group left empty never matches.
    """
    live = []
    for group in groups:
        valid = [c for c in group if c.is_valid]
        if valid:
            live.append([c.native or c.evaluate for c in valid])
        else:
            logger.debug("constraint group has no valid functions, skipped")

    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    mask = np.zeros((len(ys), len(xs)), dtype=bool)
    if not live:
        return mask

    cell: Dict[str, Any] = dict(scope or {})
    for row, y in enumerate(ys):
        cell["y"] = float(y)
        for col, x in enumerate(xs):
            cell["x"] = float(x)
            mask[row, col] = any(
                all(_satisfied(fn(cell)) for fn in group) for group in live
            )
    return mask


def sample_curve(engine, f: CompiledFunction, g: CompiledFunction, xs: Sequence[float],
                 t: float = 0.0, X: Optional[float] = None,
                 Y: Optional[float] = None) -> np.ndarray:
    """
    Values of g composed with f over xs; non-finite values become NaN (curve gaps).
    X and Y default as in MathEngine.evaluate_chain.
    """
    xs = np.asarray(xs, dtype=float)
    values = np.full(len(xs), np.nan)
    if not f.is_valid or not g.is_valid:
        return values
    for i, x in enumerate(xs):
        y = engine.evaluate_chain(g, f, float(x), t, X, Y)
        try:
            y = float(y)
        except (TypeError, ValueError):
            continue
        if math.isfinite(y):
            values[i] = y
    return values
