"""
MathEngine - one object holding the parser, evaluator and settings.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .boundaries import Boundary, extract_boundaries
from .calculus import central_difference, derivative_of, simpson
from .compiled import CompiledFunction
from .config import EngineConfig
from .evaluator import Evaluator
from .latex import LatexParser
from .nodes import Node
from .transpile import to_evaluator_text

logger = logging.getLogger(__name__)

Formula = Union[str, CompiledFunction]


class MathEngine:
    """
    Unified interface for compiling and evaluating formulas.

    Usage:
        engine = MathEngine()

        # Compile once, evaluate many times
        f = engine.compile(r"\\frac{1}{2}x^{2}")
        f.evaluate({"x": 3})                      # 4.5

        # World function g sees the player function f
        g = engine.compile("f + f'(X)")
        engine.evaluate_chain(g, f, x=1, X=2)     # 0.5 + 2.0

        # Constraints and their drawable edges
        engine.evaluate_condition("0 < y <= 1", {"y": 0.5})   # True
        engine.get_boundaries("y > sin(x)")
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        for warning in self.config.validate():
            logger.warning(f"EngineConfig: {warning}")

        self.evaluator = Evaluator(helpers={"integral": self.integrate})

    def parse(self, text: str) -> Node:
        """Parse formula text to a node tree (raises LatexParseError)."""
        return LatexParser().parse(text)

    def transpile_tree(self, tree: Node) -> str:
        return to_evaluator_text(tree, self.config.default_variable)

    def transpile(self, text: str) -> str:
        """Evaluator text for a formula; "" when it cannot be expressed."""
        return self.transpile_tree(self.parse(text))

    def compile(self, text: str) -> CompiledFunction:
        """Compile a formula. Never raises; check `is_valid` / `error`."""
        return CompiledFunction(text, self)

    def compile_tree(self, tree: Node, raw: str = "") -> CompiledFunction:
        """Compile an already built tree, e.g. one from nodes.from_json."""
        return CompiledFunction(raw or repr(tree), self, tree=tree)

    def get_boundaries(self, text: str) -> List[Boundary]:
        try:
            tree = self.parse(text)
        except Exception as e:
            logger.debug(f"No boundaries for {text!r}: {e}")
            return []
        return extract_boundaries(tree, self.config.default_variable)

    # -- calculus ------------------------------------------------------------

    def numerical_derivative(self, func: Callable[[float], float], x: float,
                             h: Optional[float] = None) -> float:
        return central_difference(func, x, self.config.step if h is None else h)

    def integrate(self, func: Callable[[float], float], lower: float, upper: float) -> float:
        return simpson(func, lower, upper, self.config.simpson_intervals)

    # -- composed evaluation -------------------------------------------------

    def function_scope(self, f: CompiledFunction, x: float, t: float = 0.0,
                       X: Optional[float] = None, Y: Optional[float] = None) -> Dict[str, Any]:
        """
        Scope a world function g sees when composed with player function f:
        f (value at x), F (callable f), derivative_f, x, X, Y, t, T, pi, e.
        """
        def F(value):
            return f.evaluate_native({"x": value, "t": t, "T": t, "pi": math.pi, "e": math.e})

        return {
            "f": F(x),
            "F": F,
            "derivative_f": derivative_of(F, self.config.step),
            "x": x,
            "X": x if X is None else X,
            "Y": 0.0 if Y is None else Y,
            "t": t,
            "T": t,
            "pi": math.pi,
            "e": math.e,
        }

    def evaluate_chain(self, g: CompiledFunction, f: CompiledFunction, x: float,
                       t: float = 0.0, X: Optional[float] = None,
                       Y: Optional[float] = None) -> float:
        """g evaluated over the scope of player function f at x."""
        if not g.is_valid or not f.is_valid:
            return math.nan
        return g.evaluate_native(self.function_scope(f, x, t, X, Y))

    def evaluate_condition(self, condition: Formula, scope: Mapping[str, Any]) -> bool:
        """Truth of a constraint; invalid formulas and NaN are False."""
        compiled = condition if isinstance(condition, CompiledFunction) else self.compile(condition)
        if not compiled.is_valid:
            return False
        result = compiled.evaluate_native(scope)
        if isinstance(result, float) and math.isnan(result):
            return False
        return bool(result)

    def evaluate_scalar(self, formula: Formula, scope: Optional[Mapping[str, Any]] = None) -> float:
        """Numeric value of a formula, NaN when invalid."""
        compiled = formula if isinstance(formula, CompiledFunction) else self.compile(formula)
        result = compiled.evaluate(scope)
        try:
            return float(result)
        except (TypeError, ValueError):
            return math.nan
