"""
Numeric vocabulary shared by the evaluator program and native functions.

Arithmetic helpers follow IEEE-754 semantics instead of raising:
1/0 -> inf, 0/0 -> nan, (-8)^(1/3) -> nan.
"""

import math
from typing import Callable, Dict


# ============================================================================
# ARITHMETIC
# ============================================================================

def safe_div(a, b):
    try:
        return a / b
    except ZeroDivisionError:
        if a != a or a == 0:
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def safe_pow(a, b):
    try:
        r = a ** b
    except ZeroDivisionError:
        return math.inf
    except OverflowError:
        return math.inf
    if isinstance(r, complex):
        return math.nan
    return r


def nth_root(x, n):
    """Real n-th root; odd roots of negatives are negative."""
    if n == 0:
        return math.nan
    if x < 0 and float(n).is_integer() and int(n) % 2 == 1:
        return -safe_pow(-x, 1.0 / n)
    return safe_pow(x, 1.0 / n)


def log(x, base=None):
    """Natural log, or log in the given base."""
    if base is None:
        return math.log(x)
    return math.log(x, base)


def sign(x):
    if x != x:
        return math.nan
    return (x > 0) - (x < 0)


def sec(x): return safe_div(1.0, math.cos(x))
def csc(x): return safe_div(1.0, math.sin(x))
def cot(x): return safe_div(math.cos(x), math.sin(x))


# ============================================================================
# TABLES
# ============================================================================

CONSTANTS: Dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "Infinity": math.inf,
    "NaN": math.nan,
}

FUNCTIONS: Dict[str, Callable] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "sec": sec,
    "csc": csc,
    "cot": cot,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sinh": math.sinh,
    "cosh": math.cosh,
    "tanh": math.tanh,
    "sqrt": math.sqrt,
    "abs": abs,
    "exp": math.exp,
    "log": log,
    "log10": math.log10,
    "nthRoot": nth_root,
    "floor": math.floor,
    "ceil": math.ceil,
    "sign": sign,
    "min": min,
    "max": max,
}
