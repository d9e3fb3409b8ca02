"""
Native synthesis: tree -> Python source compiled into a plain function.

This is the fast path for hot loops (region fills, physics steps). It
covers a strict subset of what the evaluator handles; for anything else
`to_native_text` returns None and callers stay on the evaluator.

Generated code looks like:

    def _native(scope):
        pi = scope.get('pi', _builtins['pi'])
        return ((2.0 * scope['x']) + _m.sin(pi))

Scope names are looked up where they are used, so a missing name raises
only on the branch that reads it.
"""

import keyword
import logging
import math
import textwrap
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set

from .chains import comparison_links
from .functions import CONSTANTS, FUNCTIONS, safe_div, safe_pow
from .nodes import KNOWN_HEADS, Head, Node, NumberLiteral, Operation, Symbol, is_head
from .transpile import CONSTANT_NAMES, group_items, is_callee

logger = logging.getLogger(__name__)

_BUILTINS: Dict[str, Any] = dict(CONSTANTS)
_BUILTINS.update(FUNCTIONS)

_GLOBALS = {
    "_m": math,
    "_div": safe_div,
    "_pow": safe_pow,
    "_builtins": _BUILTINS,
}

_RESERVED = {"scope", "bool", "abs"}


def is_local_name(name: str) -> bool:
    """Names the generated function may reference."""
    return (name.isidentifier() and not keyword.iskeyword(name)
            and not name.startswith("_") and name not in _RESERVED)


class _Synth:
    """Collects referenced builtin names while emitting one expression."""

    def __init__(self):
        self.names: Set[str] = set()

    def name(self, name: str) -> Optional[str]:
        name = CONSTANT_NAMES.get(name, name)
        if not is_local_name(name):
            return None
        if name not in _BUILTINS:
            return f"scope[{name!r}]"
        self.names.add(name)
        return name

    def emit(self, node: Node) -> Optional[str]:
        if isinstance(node, NumberLiteral):
            return _number(node.value)
        if isinstance(node, Symbol):
            return self.name(node.name)
        rule = _NATIVE_RULES.get(node.head)
        if rule is not None:
            return rule(self, node)
        if node.head in KNOWN_HEADS:
            return None
        return self.call(node.head, node.args)

    def emit_all(self, nodes: Iterable[Node]) -> Optional[List[str]]:
        out = []
        for n in nodes:
            s = self.emit(n)
            if s is None:
                return None
            out.append(s)
        return out

    def call(self, name: str, args) -> Optional[str]:
        fn = self.name(name)
        parts = self.emit_all(args)
        if fn is None or parts is None:
            return None
        return f"{fn}({', '.join(parts)})"


def _number(value: float) -> str:
    if math.isnan(value):
        return "_m.nan"
    if math.isinf(value):
        return "_m.inf" if value > 0 else "(-_m.inf)"
    text = repr(float(value))
    return f"({text})" if value < 0 else text


# ============================================================================
# RULES
# ============================================================================

NativeRule = Callable[[_Synth, Operation], Optional[str]]


def _join(op: str) -> NativeRule:
    def rule(s, node):
        parts = s.emit_all(node.args)
        if not parts:
            return None
        return "(" + f" {op} ".join(parts) + ")"
    return rule


def _helper(fn: str, arity: int) -> NativeRule:
    def rule(s, node):
        if len(node.args) != arity:
            return None
        parts = s.emit_all(node.args)
        if parts is None:
            return None
        return f"{fn}({', '.join(parts)})"
    return rule


def _negate(s, node):
    if len(node.args) != 1:
        return None
    inner = s.emit(node.args[0])
    return None if inner is None else f"(-{inner})"


def _log(s, node):
    if len(node.args) == 1:
        return _helper("_m.log10", 1)(s, node)
    return _helper("_m.log", 2)(s, node)


def _logic(op: str) -> NativeRule:
    def rule(s, node):
        parts = s.emit_all(node.args)
        if not parts:
            return None
        return "(" + f" {op} ".join(f"bool({p})" for p in parts) + ")"
    return rule


def _not(s, node):
    if len(node.args) != 1:
        return None
    inner = s.emit(node.args[0])
    return None if inner is None else f"(not {inner})"


def _comparison(s, node):
    links = comparison_links(node)
    if not links:
        return None
    parts = []
    for link in links:
        left, right = s.emit(link.left), s.emit(link.right)
        if left is None or right is None:
            return None
        parts.append(f"({left} {link.symbol} {right})")
    if len(parts) == 1:
        return parts[0]
    return "(" + " and ".join(parts) + ")"


def _invisible(s, node):
    items = list(node.args)
    if not items:
        return None
    factors = []
    i = 0
    while i < len(items):
        group = group_items(items[i + 1]) if i + 1 < len(items) else None
        if group is not None and is_callee(items[i]):
            factors.append(s.call(items[i].name, group))
            i += 2
        else:
            factors.append(s.emit(items[i]))
            i += 1
    if any(f is None for f in factors):
        return None
    if len(factors) == 1:
        return factors[0]
    return "(" + " * ".join(factors) + ")"


def _delimiter(s, node):
    if len(node.args) != 1 or is_head(node.args[0], Head.SEQUENCE):
        return None
    return s.emit(node.args[0])


def _passthrough(s, node):
    if len(node.args) != 1:
        return None
    return s.emit(node.args[0])


def _tuple(s, node):
    if not node.args or not is_callee(node.args[0]):
        return None
    rest = list(node.args[1:])
    if len(rest) == 1 and group_items(rest[0]) is not None:
        rest = group_items(rest[0])
    return s.call(node.args[0].name, rest)


# Prime, Integrate, Sec/Csc/Cot, inverse and hyperbolic trig, Root,
# Floor/Ceil/Sign are left out: any of them sends the input to the evaluator.
_NATIVE_RULES: Dict[str, NativeRule] = {
    Head.ADD.value: _join("+"),
    Head.SUBTRACT.value: _join("-"),
    Head.MULTIPLY.value: _join("*"),
    Head.DIVIDE.value: _helper("_div", 2),
    Head.RATIONAL.value: _helper("_div", 2),
    Head.POWER.value: _helper("_pow", 2),
    Head.NEGATE.value: _negate,
    Head.SQRT.value: _helper("_m.sqrt", 1),
    Head.SIN.value: _helper("_m.sin", 1),
    Head.COS.value: _helper("_m.cos", 1),
    Head.TAN.value: _helper("_m.tan", 1),
    Head.ABS.value: _helper("abs", 1),
    Head.EXP.value: _helper("_m.exp", 1),
    Head.LN.value: _helper("_m.log", 1),
    Head.LOG.value: _log,

    Head.EQUAL.value: _comparison,
    Head.NOT_EQUAL.value: _comparison,
    Head.LESS.value: _comparison,
    Head.LESS_EQUAL.value: _comparison,
    Head.GREATER.value: _comparison,
    Head.GREATER_EQUAL.value: _comparison,

    Head.AND.value: _logic("and"),
    Head.OR.value: _logic("or"),
    Head.NOT.value: _not,

    Head.INVISIBLE.value: _invisible,
    Head.DELIMITER.value: _delimiter,
    Head.TUPLE.value: _tuple,
    Head.HOLD.value: _passthrough,
    Head.BLOCK.value: _passthrough,
}


# ============================================================================
# PUBLIC API
# ============================================================================

def to_native_text(node: Node) -> Optional[str]:
    """Python expression text for node, or None if the node is unsupported."""
    return _Synth().emit(node)


def native_source(node: Node) -> Optional[str]:
    """Full source of the `_native(scope)` function for node."""
    synth = _Synth()
    expr = synth.emit(node)
    if expr is None:
        return None
    lines = []
    for name in sorted(synth.names):
        lines.append(f"{name} = scope.get({name!r}, _builtins[{name!r}])")
    lines.append(f"return {expr}")
    body = textwrap.indent("\n".join(lines), "    ")
    return f"def _native(scope):\n{body}\n"


class NativeFunction:
    """
    A synthesized function that never raises: any failure during a call,
    including names missing from scope, yields NaN.
    """

    def __init__(self, source: str, fn: Callable[[Mapping[str, Any]], Any]):
        self.source = source
        self._fn = fn

    def __call__(self, scope: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            return self._fn(scope if scope is not None else {})
        except Exception:
            return math.nan

    def __repr__(self):
        return f"NativeFunction({self.source!r})"


def compile_native(node: Node) -> Optional[NativeFunction]:
    """Synthesize and compile node; None when unsupported or when compilation fails."""
    source = native_source(node)
    if source is None:
        return None
    try:
        code = compile(source, "<functer_native>", "exec")
        namespace = dict(_GLOBALS)
        exec(code, namespace)
    except Exception as e:
        logger.debug(f"Native compilation failed for {node!r}: {e}")
        return None
    return NativeFunction(source, namespace["_native"])
