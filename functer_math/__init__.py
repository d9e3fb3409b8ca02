"""
Functer Math
============
Formula compilation for function-graph puzzles.

Usage:
    from functer_math import MathEngine

    engine = MathEngine()

    # Compile once, evaluate per frame
    f = engine.compile(r"\\sin(x) + \\frac{x}{2}")
    f.evaluate({"x": 1.0})
    f.evaluate_native({"x": 1.0})      # fast path when available

    # Constraints, chained or not
    engine.evaluate_condition("4 \\le x < 6", {"x": 5})

    # Region edges for drawing
    engine.get_boundaries("0 < y <= 1")

    # Trees from MathJSON
    from functer_math import from_json
    engine.compile_tree(from_json(["Tuple", ["Prime", "f"], "X"]))

There is no module-level engine: construct one and pass it around.
"""

from .nodes import (
    Head, Node, NumberLiteral, Symbol, Operation,
    Num, Sym, Op,
    from_json, to_json, free_symbols,
)
from .latex import LatexParser, LatexParseError
from .evaluator import Evaluator, CompiledProgram, EvaluatorSyntaxError, UndefinedSymbolError
from .chains import Link, comparison_links, flatten_chain
from .transpile import EvaluatorTranspiler, to_evaluator_text
from .native import NativeFunction, compile_native, to_native_text
from .boundaries import Boundary, extract_boundaries, SOLID, DOTTED
from .calculus import central_difference, derivative_of, simpson
from .compiled import CompiledFunction
from .config import EngineConfig
from .engine import MathEngine
from .sampling import constraint_mask, sample_curve

__version__ = "0.1.0"
__all__ = [
    # Tree
    'Head', 'Node', 'NumberLiteral', 'Symbol', 'Operation',
    'Num', 'Sym', 'Op', 'from_json', 'to_json', 'free_symbols',

    # Parsing and compilation
    'LatexParser', 'LatexParseError',
    'Evaluator', 'CompiledProgram', 'EvaluatorSyntaxError', 'UndefinedSymbolError',
    'Link', 'comparison_links', 'flatten_chain',
    'EvaluatorTranspiler', 'to_evaluator_text',
    'NativeFunction', 'compile_native', 'to_native_text',
    'CompiledFunction',

    # Geometry and calculus
    'Boundary', 'extract_boundaries', 'SOLID', 'DOTTED',
    'central_difference', 'derivative_of', 'simpson',
    'constraint_mask', 'sample_curve',

    # Engine
    'EngineConfig', 'MathEngine',
]
