"""
Embedded evaluator for the text produced by transpile.to_evaluator_text.

Syntax (lowest to highest precedence):

    a or b
    a and b
    not a
    a < b <= c          comparisons chain: (a < b) and (b <= c)
    a + b,  a - b
    a * b,  a / b
    -a,  +a
    a ^ b               right associative, binds tighter than unary minus
    f(a, b),  v -> body numbers, names, calls, grouping, binder

Text is parsed once and compiled into a tree of closures; evaluation only
walks the closures.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .functions import CONSTANTS, FUNCTIONS, safe_div, safe_pow

logger = logging.getLogger(__name__)

Scope = Mapping[str, Any]
Thunk = Callable[[Scope], Any]


class EvaluatorSyntaxError(ValueError):
    """Raised when evaluator text cannot be compiled."""


class UndefinedSymbolError(NameError):
    """Raised at evaluation time for names missing from scope and builtins."""


_TOKEN = re.compile(r"""
    \s*(?:
        (?P<num>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
      | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<op>->|==|!=|<=|>=|[-+*/^(),<>])
    )""", re.VERBOSE)

_KEYWORDS = {"and", "or", "not"}

_COMPARE = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
}


def tokenize(text: str) -> List[Tuple[str, Any]]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = _TOKEN.match(text, pos)
        if not m:
            raise EvaluatorSyntaxError(f"Unexpected character {text[pos]!r} at position {pos}")
        if m.group("num") is not None:
            tokens.append(("num", float(m.group("num"))))
        elif m.group("name") is not None:
            name = m.group("name")
            tokens.append(("kw" if name in _KEYWORDS else "name", name))
        else:
            tokens.append(("op", m.group("op")))
        pos = m.end()
    return tokens


class CompiledProgram:
    """Compiled evaluator text. Immutable; safe to share and re-enter."""

    def __init__(self, source: str, root: Thunk):
        self.source = source
        self._root = root

    def evaluate(self, scope: Optional[Scope] = None) -> Any:
        return self._root(scope if scope is not None else {})

    def __repr__(self):
        return f"CompiledProgram({self.source!r})"


class Evaluator:
    """
    Compiles evaluator text against a table of builtins.

    Names resolve against the caller's scope first, then the builtins
    (constants, functions and any injected helpers such as `integral`).
    """

    def __init__(self, helpers: Optional[Dict[str, Any]] = None):
        self.builtins: Dict[str, Any] = dict(CONSTANTS)
        self.builtins.update(FUNCTIONS)
        if helpers:
            self.builtins.update(helpers)

    def compile(self, text: str) -> CompiledProgram:
        if not text or not text.strip():
            raise EvaluatorSyntaxError("Empty expression")
        parser = _Parser(tokenize(text), self.builtins)
        root = parser.parse()
        return CompiledProgram(text, root)


class _Parser:
    """Recursive descent over evaluator tokens, emitting closures."""

    def __init__(self, tokens, builtins):
        self.tokens = tokens
        self.pos = 0
        self.builtins = builtins

    def _current(self):
        return self.tokens[self.pos] if self.pos < len(self.tokens) else (None, None)

    def _peek(self, offset=1):
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else (None, None)

    def _consume(self):
        token = self._current()
        self.pos += 1
        return token

    def _expect(self, op):
        kind, value = self._current()
        if kind != "op" or value != op:
            found = "end of input" if kind is None else repr(value)
            raise EvaluatorSyntaxError(f"Expected {op!r} but found {found}")
        self.pos += 1

    def _at(self, kind, *values):
        k, v = self._current()
        return k == kind and (not values or v in values)

    def parse(self) -> Thunk:
        node = self._parse_or()
        if self.pos < len(self.tokens):
            raise EvaluatorSyntaxError(f"Unexpected token {self._current()[1]!r}")
        return node

    def _parse_or(self) -> Thunk:
        left = self._parse_and()
        while self._at("kw", "or"):
            self._consume()
            right = self._parse_and()
            left = (lambda l, r: lambda s: bool(l(s)) or bool(r(s)))(left, right)
        return left

    def _parse_and(self) -> Thunk:
        left = self._parse_not()
        while self._at("kw", "and"):
            self._consume()
            right = self._parse_not()
            left = (lambda l, r: lambda s: bool(l(s)) and bool(r(s)))(left, right)
        return left

    def _parse_not(self) -> Thunk:
        if self._at("kw", "not"):
            self._consume()
            operand = self._parse_not()
            return lambda s: not operand(s)
        return self._parse_comparison()

    def _parse_comparison(self) -> Thunk:
        first = self._parse_additive()
        links = []
        while self._at("op", *_COMPARE):
            op = self._consume()[1]
            links.append((_COMPARE[op], self._parse_additive()))
        if not links:
            return first
        if len(links) == 1:
            cmp, right = links[0]
            return lambda s: cmp(first(s), right(s))

        terms = [first] + [t for _, t in links]
        cmps = [c for c, _ in links]

        def chain(s):
            left = terms[0](s)
            for cmp, term in zip(cmps, terms[1:]):
                right = term(s)
                if not cmp(left, right):
                    return False
                left = right
            return True
        return chain

    def _parse_additive(self) -> Thunk:
        left = self._parse_term()
        while self._at("op", "+", "-"):
            op = self._consume()[1]
            right = self._parse_term()
            if op == "+":
                left = (lambda l, r: lambda s: l(s) + r(s))(left, right)
            else:
                left = (lambda l, r: lambda s: l(s) - r(s))(left, right)
        return left

    def _parse_term(self) -> Thunk:
        left = self._parse_unary()
        while self._at("op", "*", "/"):
            op = self._consume()[1]
            right = self._parse_unary()
            if op == "*":
                left = (lambda l, r: lambda s: l(s) * r(s))(left, right)
            else:
                left = (lambda l, r: lambda s: safe_div(l(s), r(s)))(left, right)
        return left

    def _parse_unary(self) -> Thunk:
        if self._at("op", "-"):
            self._consume()
            operand = self._parse_unary()
            return lambda s: -operand(s)
        if self._at("op", "+"):
            self._consume()
            return self._parse_unary()
        return self._parse_power()

    def _parse_power(self) -> Thunk:
        base = self._parse_postfix()
        if self._at("op", "^"):
            self._consume()
            exponent = self._parse_unary()
            return lambda s: safe_pow(base(s), exponent(s))
        return base

    def _parse_postfix(self) -> Thunk:
        node = self._parse_primary()
        while self._at("op", "("):
            self._consume()
            args = self._parse_arguments()
            node = self._call(node, args)
        return node

    def _parse_arguments(self) -> List[Thunk]:
        args = []
        if self._at("op", ")"):
            self._consume()
            return args
        while True:
            args.append(self._parse_argument())
            if self._at("op", ","):
                self._consume()
                continue
            self._expect(")")
            return args

    def _parse_argument(self) -> Thunk:
        kind, value = self._current()
        if kind == "name" and self._peek() == ("op", "->"):
            self.pos += 2
            return self._binder(value, self._parse_or())
        return self._parse_or()

    def _parse_primary(self) -> Thunk:
        kind, value = self._current()
        if kind == "num":
            self._consume()
            return lambda s: value
        if kind == "name":
            self._consume()
            return self._lookup(value)
        if kind == "op" and value == "(":
            self._consume()
            inner = self._parse_or()
            self._expect(")")
            return inner
        if kind is None:
            raise EvaluatorSyntaxError("Unexpected end of input")
        raise EvaluatorSyntaxError(f"Unexpected token {value!r}")

    def _lookup(self, name: str) -> Thunk:
        builtins = self.builtins

        def load(s):
            try:
                return s[name]
            except KeyError:
                pass
            try:
                return builtins[name]
            except KeyError:
                raise UndefinedSymbolError(f"Undefined symbol: {name}") from None
        return load

    @staticmethod
    def _call(callee: Thunk, args: List[Thunk]) -> Thunk:
        if len(args) == 1:
            arg = args[0]
            return lambda s: callee(s)(arg(s))
        return lambda s: callee(s)(*[a(s) for a in args])

    @staticmethod
    def _binder(name: str, body: Thunk) -> Thunk:
        """`v -> body`: evaluates to a one-argument function closing over scope."""
        def bind(s):
            def fn(value):
                local = dict(s)
                local[name] = value
                return body(local)
            return fn
        return bind
