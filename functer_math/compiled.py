"""
CompiledFunction: the engine's unit of output.

Construction runs the whole pipeline once (parse, transpile, evaluator
compile, optional native synthesis) and never raises. A failed build
leaves `is_valid` False with the message in `error`; evaluation never
raises either and reports failure as NaN.
"""

import logging
import math
import numbers
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .evaluator import CompiledProgram
from .native import NativeFunction, compile_native
from .nodes import Node

if TYPE_CHECKING:
    from .engine import MathEngine

logger = logging.getLogger(__name__)

UNSUPPORTED = "Unsupported expression"


class CompiledFunction:
    """
    A formula compiled for repeated evaluation over a scope.

    Attributes:
        raw:          input text, kept for display
        tree:         parsed node tree (None if parsing failed)
        transpiled:   evaluator-syntax text
        program:      compiled evaluator program, the source of truth
        native_text:  source of the synthesized Python function, if any
        native:       call-time-safe native function, or None
        is_valid:     construction succeeded
        error:        construction error message
    """

    def __init__(self, raw: str, engine: "MathEngine", tree: Optional[Node] = None):
        self.raw = raw
        self.tree: Optional[Node] = None
        self.transpiled: Optional[str] = None
        self.program: Optional[CompiledProgram] = None
        self.native_text: Optional[str] = None
        self.native: Optional[NativeFunction] = None
        self.is_valid = False
        self.error: Optional[str] = None

        try:
            if tree is None:
                if not raw or not raw.strip():
                    raise ValueError("Empty")
                tree = engine.parse(raw)
            self.tree = tree
            self.transpiled = engine.transpile_tree(tree)
            if not self.transpiled:
                raise ValueError(UNSUPPORTED)
            self.program = engine.evaluator.compile(self.transpiled)
            self.is_valid = True
        except Exception as e:
            self.error = str(e) or type(e).__name__
            logger.debug(f"Compile failed for {raw!r}: {self.error}")
            return

        if engine.config.enable_native:
            self._build_native(tree)

    def _build_native(self, tree: Node):
        try:
            self.native = compile_native(tree)
        except Exception as e:
            logger.debug(f"Native synthesis failed for {self.raw!r}: {e}")
            self.native = None
        if self.native is not None:
            self.native_text = self.native.source
        else:
            logger.debug(f"No native path for {self.raw!r}")

    @property
    def has_native(self) -> bool:
        return self.native is not None

    def evaluate(self, scope: Optional[Mapping[str, Any]] = None) -> Any:
        """Evaluate through the evaluator program; NaN on any failure."""
        if not self.is_valid:
            return math.nan
        try:
            return _as_result(self.program.evaluate(scope))
        except Exception as e:
            logger.debug(f"Evaluation of {self.raw!r} failed: {e}")
            return math.nan

    def evaluate_native(self, scope: Optional[Mapping[str, Any]] = None) -> Any:
        """Evaluate through the native function when there is one."""
        if self.native is None:
            return self.evaluate(scope)
        return _as_result(self.native(scope))

    __call__ = evaluate

    def __repr__(self):
        state = "valid" if self.is_valid else f"invalid: {self.error}"
        return f"CompiledFunction({self.raw!r}, {state})"


def _as_result(value: Any) -> Any:
    """Numbers and booleans pass through; anything else is NaN."""
    if isinstance(value, numbers.Real):
        return value
    return math.nan
