"""
Tree -> evaluator text.

Every head maps to a rule in `_RULES`; a rule returns the evaluator-syntax
text for its node or "" when the node cannot be expressed. An empty child
makes its parent empty, so one unsupported sub-tree fails the whole
transpile instead of producing broken text.

    to_evaluator_text(parse("f + f'(X)"))     -> "(f + derivative_f(X))"
    to_evaluator_text(parse("4 <= x < 6"))    -> "(4 <= x) and (x < 6)"
    to_evaluator_text(parse(r"\\int_0^2 t\\,dt")) -> "integral(t -> t, 0, 2)"
"""

import math
from typing import Callable, Dict, List, Optional, Sequence

from .chains import comparison_links
from .nodes import (
    EULER, INFINITY, KNOWN_HEADS, PI, Head, Node,
    NumberLiteral, Operation, Symbol, is_head, unwrap,
)

_EVALUATOR_KEYWORDS = {"and", "or", "not"}

# canonical constant name -> evaluator name
CONSTANT_NAMES = {
    PI: "pi",
    EULER: "e",
    INFINITY: "Infinity",
}


def format_number(value: float) -> str:
    """Integral floats print without a fraction; negatives are parenthesised."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "(-Infinity)"
    text = str(int(value)) if value.is_integer() else repr(value)
    return f"({text})" if value < 0 else text


def is_name(name: str) -> bool:
    return name.isidentifier() and name not in _EVALUATOR_KEYWORDS


def symbol_text(name: str) -> str:
    if name in CONSTANT_NAMES:
        return CONSTANT_NAMES[name]
    return name if is_name(name) else ""


def is_prime_of_symbol(node: Node) -> bool:
    """Prime(s) for a plain symbol s: the derivative marker the engine supports."""
    return (is_head(node, Head.PRIME) and len(node.args) == 1
            and isinstance(node.args[0], Symbol) and is_name(node.args[0].name))


def is_callee(node: Node) -> bool:
    """A symbol that, written before a group, reads as a function call."""
    return (isinstance(node, Symbol) and node.name not in CONSTANT_NAMES
            and is_name(node.name))


def group_items(node: Node) -> Optional[List[Node]]:
    """Items of a parenthesised group: Delimiter(a), Delimiter(Sequence(a, b))."""
    if not is_head(node, Head.DELIMITER):
        return None
    if len(node.args) == 1 and is_head(node.args[0], Head.SEQUENCE):
        return list(node.args[0].args)
    return list(node.args)


class EvaluatorTranspiler:
    """
    Rewrites a node tree into evaluator syntax.

    `variable` is the argument a bare derivative marker is evaluated at:
    `f'` becomes `derivative_f(x)`.
    """

    def __init__(self, variable: str = "x"):
        self.variable = variable

    def __call__(self, node: Node) -> str:
        return self.text(node)

    def text(self, node: Node) -> str:
        if isinstance(node, NumberLiteral):
            return format_number(node.value)
        if isinstance(node, Symbol):
            return symbol_text(node.name)
        rule = _RULES.get(node.head)
        if rule is not None:
            return rule(self, node)
        return self.generic_call(node)

    def texts(self, nodes: Sequence[Node]) -> Optional[List[str]]:
        """Transpile every node, or None if any of them fails."""
        out = []
        for n in nodes:
            s = self.text(n)
            if not s:
                return None
            out.append(s)
        return out

    def call(self, name: str, args: Sequence[Node]) -> str:
        parts = self.texts(args)
        if parts is None:
            return ""
        return f"{name}({', '.join(parts)})"

    def derivative_call(self, prime: Operation, args: Sequence[Node]) -> str:
        # f'(v) -> derivative_f(v), never derivative_f(x)(v)
        return self.call(f"derivative_{prime.args[0].name}", args)

    def generic_call(self, node: Operation) -> str:
        if node.head in KNOWN_HEADS or not is_name(node.head):
            return ""
        return self.call(node.head, node.args)


# ============================================================================
# RULES
# ============================================================================

Rule = Callable[[EvaluatorTranspiler, Operation], str]


def _variadic(op: str) -> Rule:
    def rule(t, node):
        parts = t.texts(node.args)
        if not parts:
            return ""
        return "(" + f" {op} ".join(parts) + ")"
    return rule


def _binary(template: str) -> Rule:
    def rule(t, node):
        if len(node.args) != 2:
            return ""
        parts = t.texts(node.args)
        return template.format(*parts) if parts else ""
    return rule


def _unary_call(name: str) -> Rule:
    def rule(t, node):
        if len(node.args) != 1:
            return ""
        return t.call(name, node.args)
    return rule


def _negate(t, node):
    if len(node.args) != 1:
        return ""
    inner = t.text(node.args[0])
    return f"-({inner})" if inner else ""


def _log(t, node):
    if len(node.args) == 1:
        return t.call("log10", node.args)
    if len(node.args) == 2:
        return t.call("log", node.args)
    return ""


def _root(t, node):
    if len(node.args) == 1:
        return t.call("sqrt", node.args)
    if len(node.args) == 2:
        return t.call("nthRoot", node.args)
    return ""


def _prime(t, node):
    if not is_prime_of_symbol(node):
        return ""
    return f"derivative_{node.args[0].name}({t.variable})"


def _invisible(t, node):
    items = list(node.args)
    if not items:
        return ""
    factors = []
    i = 0
    while i < len(items):
        item = items[i]
        group = group_items(items[i + 1]) if i + 1 < len(items) else None
        if group is not None and is_prime_of_symbol(item):
            factors.append(t.derivative_call(item, group))
            i += 2
        elif group is not None and is_callee(item):
            factors.append(t.call(item.name, group))
            i += 2
        else:
            factors.append(t.text(item))
            i += 1
    if not all(factors):
        return ""
    if len(factors) == 1:
        return factors[0]
    return "(" + " * ".join(factors) + ")"


def _delimiter(t, node):
    if len(node.args) != 1 or is_head(node.args[0], Head.SEQUENCE):
        return ""
    return t.text(node.args[0])


def _passthrough(t, node):
    if len(node.args) != 1:
        return ""
    return t.text(node.args[0])


def _tuple(t, node):
    if not node.args:
        return ""
    head, rest = node.args[0], list(node.args[1:])
    if len(rest) == 1 and group_items(rest[0]) is not None:
        rest = group_items(rest[0])
    if is_prime_of_symbol(head):
        return t.derivative_call(head, rest)
    if is_callee(head):
        return t.call(head.name, rest)
    return ""


def _logic(op: str) -> Rule:
    def rule(t, node):
        parts = t.texts(node.args)
        if not parts:
            return ""
        if len(parts) == 1:
            return parts[0]
        return "(" + f" {op} ".join(parts) + ")"
    return rule


def _not(t, node):
    if len(node.args) != 1:
        return ""
    inner = t.text(node.args[0])
    return f"(not {inner})" if inner else ""


def _comparison(t, node):
    links = comparison_links(node)
    if not links:
        return ""
    parts = []
    for link in links:
        left, right = t.text(link.left), t.text(link.right)
        if not left or not right:
            return ""
        parts.append(f"({left} {link.symbol} {right})")
    if len(parts) == 1:
        return parts[0]
    return "(" + " and ".join(parts) + ")"


def _integrate(t, node):
    if len(node.args) != 2:
        return ""
    body = unwrap(node.args[0], Head.HOLD, Head.BLOCK)
    var = ""
    if is_head(body, Head.FUNCTION, Head.LAMBDA):
        if not body.args:
            return ""
        params = body.args[1:]
        if params and isinstance(params[0], Symbol):
            var = params[0].name
        body = unwrap(body.args[0], Head.HOLD, Head.BLOCK)

    limits = node.args[1]
    if not is_head(limits, Head.LIMITS, Head.TRIPLE, Head.TUPLE):
        return ""
    bounds = list(limits.args)
    if len(bounds) == 3:
        bound_var = unwrap(bounds[0], Head.HOLD)
        if not isinstance(bound_var, Symbol):
            return ""
        var = bound_var.name
        bounds = bounds[1:]
    if len(bounds) != 2:
        return ""
    var = var or t.variable
    if not is_name(var):
        return ""

    parts = t.texts([body] + bounds)
    if parts is None:
        return ""
    body_text, lower, upper = parts
    return f"integral({var} -> {body_text}, {lower}, {upper})"


_RULES: Dict[str, Rule] = {
    Head.ADD.value: _variadic("+"),
    Head.SUBTRACT.value: _variadic("-"),
    Head.MULTIPLY.value: _variadic("*"),
    Head.DIVIDE.value: _binary("({0}) / ({1})"),
    Head.RATIONAL.value: _binary("({0}) / ({1})"),
    Head.POWER.value: _binary("({0}) ^ ({1})"),
    Head.NEGATE.value: _negate,
    Head.SQRT.value: _unary_call("sqrt"),
    Head.ROOT.value: _root,

    Head.SIN.value: _unary_call("sin"),
    Head.COS.value: _unary_call("cos"),
    Head.TAN.value: _unary_call("tan"),
    Head.SEC.value: _unary_call("sec"),
    Head.CSC.value: _unary_call("csc"),
    Head.COT.value: _unary_call("cot"),
    Head.ARCSIN.value: _unary_call("asin"),
    Head.ARCCOS.value: _unary_call("acos"),
    Head.ARCTAN.value: _unary_call("atan"),
    Head.SINH.value: _unary_call("sinh"),
    Head.COSH.value: _unary_call("cosh"),
    Head.TANH.value: _unary_call("tanh"),
    Head.ABS.value: _unary_call("abs"),
    Head.EXP.value: _unary_call("exp"),
    Head.LN.value: _unary_call("log"),
    Head.LOG.value: _log,
    Head.FLOOR.value: _unary_call("floor"),
    Head.CEIL.value: _unary_call("ceil"),
    Head.SIGN.value: _unary_call("sign"),

    Head.EQUAL.value: _comparison,
    Head.NOT_EQUAL.value: _comparison,
    Head.LESS.value: _comparison,
    Head.LESS_EQUAL.value: _comparison,
    Head.GREATER.value: _comparison,
    Head.GREATER_EQUAL.value: _comparison,

    Head.AND.value: _logic("and"),
    Head.OR.value: _logic("or"),
    Head.NOT.value: _not,

    Head.PRIME.value: _prime,
    Head.INVISIBLE.value: _invisible,
    Head.DELIMITER.value: _delimiter,
    Head.TUPLE.value: _tuple,
    Head.HOLD.value: _passthrough,
    Head.BLOCK.value: _passthrough,
    Head.INTEGRATE.value: _integrate,
}


def to_evaluator_text(node: Node, variable: str = "x") -> str:
    """Evaluator-syntax text for node, or "" when it cannot be expressed."""
    return EvaluatorTranspiler(variable).text(node)
