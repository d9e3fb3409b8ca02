"""
Symbolic expression tree produced by the LaTeX parser.

A node is one of:
    NumberLiteral(value)      numeric leaf
    Symbol(name)              variable or named constant ("Pi", "ExponentialE")
    Operation(head, args)     operator / function application

Heads follow MathJSON naming ("Add", "LessEqual", "Prime", ...). Any other
string head is treated as a call to a scope function of that name.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Set, Tuple, Union


# ============================================================================
# HEADS
# ============================================================================

class Head(str, Enum):
    """Operator heads the engine knows about."""
    ADD = "Add"
    SUBTRACT = "Subtract"
    MULTIPLY = "Multiply"
    DIVIDE = "Divide"
    RATIONAL = "Rational"
    POWER = "Power"
    NEGATE = "Negate"
    SQRT = "Sqrt"
    ROOT = "Root"

    SIN = "Sin"
    COS = "Cos"
    TAN = "Tan"
    SEC = "Sec"
    CSC = "Csc"
    COT = "Cot"
    ARCSIN = "Arcsin"
    ARCCOS = "Arccos"
    ARCTAN = "Arctan"
    SINH = "Sinh"
    COSH = "Cosh"
    TANH = "Tanh"
    ABS = "Abs"
    EXP = "Exp"
    LN = "Ln"
    LOG = "Log"
    FLOOR = "Floor"
    CEIL = "Ceil"
    SIGN = "Sign"

    EQUAL = "Equal"
    NOT_EQUAL = "NotEqual"
    LESS = "Less"
    LESS_EQUAL = "LessEqual"
    GREATER = "Greater"
    GREATER_EQUAL = "GreaterEqual"

    AND = "And"
    OR = "Or"
    NOT = "Not"

    PRIME = "Prime"
    INVISIBLE = "InvisibleOperator"
    DELIMITER = "Delimiter"
    SEQUENCE = "Sequence"
    TUPLE = "Tuple"

    INTEGRATE = "Integrate"
    FUNCTION = "Function"
    LAMBDA = "Lambda"
    BLOCK = "Block"
    HOLD = "Hold"
    LIMITS = "Limits"
    TRIPLE = "Triple"

    def __str__(self):
        return self.value


KNOWN_HEADS = frozenset(h.value for h in Head)

COMPARISON_HEADS = frozenset({
    Head.EQUAL.value, Head.NOT_EQUAL.value,
    Head.LESS.value, Head.LESS_EQUAL.value,
    Head.GREATER.value, Head.GREATER_EQUAL.value,
})

LOGIC_HEADS = frozenset({Head.AND.value, Head.OR.value, Head.NOT.value})

# Canonical constant names emitted by the parser
PI = "Pi"
EULER = "ExponentialE"
INFINITY = "PositiveInfinity"


# ============================================================================
# NODE TYPES
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    value: float

    def __repr__(self):
        v = self.value
        if math.isfinite(v) and v == int(v):
            return str(int(v))
        return repr(v)


@dataclass(frozen=True)
class Symbol:
    name: str

    def __repr__(self):
        return self.name


@dataclass(frozen=True)
class Operation:
    head: str
    args: Tuple["Node", ...] = ()

    def __post_init__(self):
        # Heads may arrive as Head members; keep plain strings so that
        # generic call heads and known heads compare the same way.
        object.__setattr__(self, "head", str(self.head))
        object.__setattr__(self, "args", tuple(self.args))

    def __repr__(self):
        inner = ", ".join(repr(a) for a in self.args)
        return f"{self.head}({inner})"


Node = Union[NumberLiteral, Symbol, Operation]


# ============================================================================
# CONSTRUCTORS
# ============================================================================

def Num(v): return NumberLiteral(float(v))
def Sym(name): return Symbol(name)
def Op(head, *args): return Operation(head, tuple(_wrap(a) for a in args))


def _wrap(value) -> Node:
    if isinstance(value, (NumberLiteral, Symbol, Operation)):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not expression nodes")
    if isinstance(value, (int, float)):
        return Num(value)
    if isinstance(value, str):
        return Sym(value)
    raise TypeError(f"cannot build a node from {value!r}")


def is_head(node: Node, *heads) -> bool:
    """True if node is an Operation whose head is one of heads."""
    return isinstance(node, Operation) and node.head in {str(h) for h in heads}


def is_comparison(node: Node) -> bool:
    return isinstance(node, Operation) and node.head in COMPARISON_HEADS


def is_symbol(node: Node, name: str = None) -> bool:
    if not isinstance(node, Symbol):
        return False
    return name is None or node.name == name


# ============================================================================
# MATHJSON INTEROP
# ============================================================================

def from_json(data: Any) -> Node:
    """
    Build a tree from MathJSON-style nested lists.

        from_json(["Add", "x", 1])                  -> Add(x, 1)
        from_json(["LessEqual", 0, ["Less", "y", 1]])
        from_json({"num": "2.5"})                   -> 2.5
    """
    if isinstance(data, bool):
        raise TypeError("booleans are not expression nodes")
    if isinstance(data, (int, float)):
        return Num(data)
    if isinstance(data, str):
        return Sym(data)
    if isinstance(data, dict):
        if "num" in data:
            return Num(float(data["num"]))
        if "sym" in data:
            return Sym(data["sym"])
        if "fn" in data:
            return from_json(data["fn"])
        raise ValueError(f"unrecognised MathJSON object: {data!r}")
    if isinstance(data, (list, tuple)):
        if not data:
            raise ValueError("empty MathJSON list")
        head = data[0]
        if not isinstance(head, str):
            raise ValueError(f"MathJSON head must be a string, got {head!r}")
        return Operation(head, tuple(from_json(a) for a in data[1:]))
    raise TypeError(f"cannot convert {data!r} to a node")


def to_json(node: Node) -> Any:
    """Inverse of from_json."""
    if isinstance(node, NumberLiteral):
        v = node.value
        return int(v) if math.isfinite(v) and v == int(v) else v
    if isinstance(node, Symbol):
        return node.name
    return [node.head] + [to_json(a) for a in node.args]


# ============================================================================
# TRAVERSAL
# ============================================================================

def free_symbols(node: Node) -> FrozenSet[str]:
    """Names of all Symbol leaves, excluding integration variables."""
    found: Set[str] = set()

    def visit(n, bound):
        if isinstance(n, Symbol):
            if n.name not in bound:
                found.add(n.name)
            return
        if isinstance(n, NumberLiteral):
            return
        if n.head == Head.INTEGRATE.value:
            var = integration_variable(n)
            inner = bound | {var} if var else bound
            if n.args:
                visit(n.args[0], inner)
            for limit in n.args[1:]:
                visit(limit, bound)
            return
        for a in n.args:
            visit(a, bound)

    visit(node, frozenset())
    return frozenset(found)


def integration_variable(node: Operation) -> str:
    """Bound variable of an Integrate node ('' when it cannot be found)."""
    if len(node.args) > 1 and isinstance(node.args[1], Operation):
        limits = node.args[1].args
        if len(limits) >= 3:
            var = unwrap(limits[0], Head.HOLD)
            if isinstance(var, Symbol):
                return var.name
    if node.args and is_head(node.args[0], Head.FUNCTION, Head.LAMBDA):
        params = node.args[0].args[1:]
        if params and isinstance(params[0], Symbol):
            return params[0].name
    return ""


def unwrap(node: Node, *heads) -> Node:
    """Strip single-argument wrappers (Hold, Block, Delimiter, ...)."""
    while isinstance(node, Operation) and node.head in {str(h) for h in heads} \
            and len(node.args) == 1:
        node = node.args[0]
    return node
