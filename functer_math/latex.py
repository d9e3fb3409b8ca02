"""
LaTeX / plain-text formula parser.

Parses in non-canonical mode: the tree mirrors what was written. Nothing is
simplified, reordered or folded, so `f + f'(X)` keeps the bare symbol next to
the applied derivative marker and `4 <= x < 6` keeps its chain shape.

    parser = LatexParser()
    parser.parse(r"\\frac{1}{2}x^{2}")   -> InvisibleOperator(Divide(1, 2), Power(x, 2))
    parser.parse("4 < x < 6")           -> Less(4, x, 6)
    parser.parse(r"4 \\le x < 6")        -> LessEqual(4, Less(x, 6))
"""

import re
from typing import List, Optional, Tuple

from .nodes import (
    EULER, INFINITY, PI, Head, Node, Num, Op, Sym,
)


class LatexParseError(ValueError):
    """Raised for malformed formula text."""


# ============================================================================
# VOCABULARY
# ============================================================================

# word -> function head
FUNCTION_WORDS = {
    "sin": Head.SIN, "cos": Head.COS, "tan": Head.TAN,
    "sec": Head.SEC, "csc": Head.CSC, "cot": Head.COT,
    "arcsin": Head.ARCSIN, "arccos": Head.ARCCOS, "arctan": Head.ARCTAN,
    "asin": Head.ARCSIN, "acos": Head.ARCCOS, "atan": Head.ARCTAN,
    "sinh": Head.SINH, "cosh": Head.COSH, "tanh": Head.TANH,
    "sqrt": Head.SQRT, "abs": Head.ABS, "exp": Head.EXP,
    "ln": Head.LN, "log": Head.LOG,
    "floor": Head.FLOOR, "ceil": Head.CEIL, "sign": Head.SIGN,
}

_INVERSE_TRIG = {
    Head.SIN: Head.ARCSIN, Head.COS: Head.ARCCOS, Head.TAN: Head.ARCTAN,
}

_LOGIC_WORDS = {"and", "or", "not"}

# longest first so "sinh" wins over "sin" and "sign" over "sin"
_SPLIT_WORDS = sorted(list(FUNCTION_WORDS) + ["pi"], key=len, reverse=True)

GREEK = {
    "alpha", "beta", "gamma", "delta", "epsilon", "varepsilon", "zeta", "eta",
    "theta", "vartheta", "iota", "kappa", "lambda", "mu", "nu", "xi", "rho",
    "sigma", "tau", "upsilon", "phi", "varphi", "chi", "psi", "omega",
    "Gamma", "Delta", "Theta", "Lambda", "Xi", "Sigma", "Phi", "Psi", "Omega",
}

_COMMAND_TOKENS = {
    "cdot": ("op", "*"), "times": ("op", "*"), "ast": ("op", "*"),
    "div": ("op", "/"),
    "le": ("op", "<="), "leq": ("op", "<="), "leqslant": ("op", "<="),
    "ge": ("op", ">="), "geq": ("op", ">="), "geqslant": ("op", ">="),
    "lt": ("op", "<"), "gt": ("op", ">"),
    "ne": ("op", "!="), "neq": ("op", "!="),
    "land": ("op", "and"), "wedge": ("op", "and"),
    "lor": ("op", "or"), "vee": ("op", "or"),
    "lnot": ("op", "not"), "neg": ("op", "not"),
    "prime": ("prime", 1),
    "pi": ("ident", PI),
    "infty": ("ident", INFINITY),
    "exponentialE": ("ident", EULER),
    "differentialD": ("ident", "d"),
    "frac": ("frac", None), "dfrac": ("frac", None), "tfrac": ("frac", None),
    "int": ("int", None),
    "vert": ("bar", None), "lvert": ("bar", None), "rvert": ("bar", None),
    "mid": ("bar", None),
}

_IGNORED_COMMANDS = {
    "left", "right", "displaystyle", "textstyle", "limits", "nolimits",
    "quad", "qquad", "big", "Big", "bigl", "bigr", "Bigl", "Bigr",
}

_NAME_COMMANDS = {"mathrm", "operatorname", "text", "mathit", "textrm"}

_RELATIONS = {
    "<": Head.LESS, "<=": Head.LESS_EQUAL,
    ">": Head.GREATER, ">=": Head.GREATER_EQUAL,
    "=": Head.EQUAL, "!=": Head.NOT_EQUAL,
}

_CLOSERS = {"(": ")", "[": "]", "\\{": "\\}"}

Token = Tuple[str, object, int]

_NUMBER = re.compile(r"\d+\.\d*|\.\d+|\d+")
_COMMAND = re.compile(r"\\([A-Za-z]+)")
_GROUP = re.compile(r"\s*\{([^{}]*)\}")
_LETTERS = re.compile(r"[A-Za-z]+")
_NAME_SUFFIX = re.compile(r"_(\{[A-Za-z0-9_]+\}|[A-Za-z0-9_]+)")
_SUBSCRIPT = re.compile(r"_(\{\s*[A-Za-z0-9]+\s*\}|[A-Za-z0-9])")


# ============================================================================
# TOKENIZER
# ============================================================================

class _Tokenizer:

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.tokens: List[Token] = []

    def run(self) -> List[Token]:
        text = self.text
        while self.pos < len(text):
            c = text[self.pos]
            if c.isspace() or c in "$~":
                self.pos += 1
            elif c == "\\":
                self._command()
            elif c.isdigit() or (c == "." and text[self.pos + 1:self.pos + 2].isdigit()):
                m = _NUMBER.match(text, self.pos)
                self._emit("num", float(m.group(0)))
                self.pos = m.end()
            elif c.isalpha():
                self._letters()
            elif c == "'":
                start = self.pos
                while self.pos < len(text) and text[self.pos] == "'":
                    self.pos += 1
                self.tokens.append(("prime", self.pos - start, start))
            else:
                self._symbol(c)
        return self.tokens

    def _emit(self, kind, value, pos=None):
        self.tokens.append((kind, value, self.pos if pos is None else pos))

    def _symbol(self, c):
        two = self.text[self.pos:self.pos + 2]
        pairs = {"<=": "<=", ">=": ">=", "!=": "!=", "==": "=", "&&": "and",
                 "||": "or", "**": "^"}
        if two in pairs:
            self._emit("op", pairs[two])
            self.pos += 2
            return
        if c in "+-*/^_<>=":
            self._emit("op", c)
        elif c == "!":
            self._emit("op", "not")
        elif c in "([":
            self._emit("open", c)
        elif c in ")]":
            self._emit("close", c)
        elif c == "{":
            self._emit("lbrace", c)
        elif c == "}":
            self._emit("rbrace", c)
        elif c == "|":
            self._emit("bar", c)
        elif c == ",":
            self._emit("comma", c)
        else:
            raise LatexParseError(f"Unexpected character {c!r} at position {self.pos}")
        self.pos += 1

    def _command(self):
        text = self.text
        start = self.pos
        m = _COMMAND.match(text, self.pos)
        if not m:
            nxt = text[self.pos + 1:self.pos + 2]
            self.pos += 2
            if nxt in (",", ";", ":", "!", " ", ""):
                return
            if nxt in ("{", "}"):
                self.tokens.append(("open" if nxt == "{" else "close", "\\" + nxt, start))
                return
            if nxt == "|":
                self.tokens.append(("bar", "|", start))
                return
            raise LatexParseError(f"Unknown command \\{nxt} at position {start}")

        name = m.group(1)
        self.pos = m.end()
        if name in _IGNORED_COMMANDS:
            # \left. and \right. are invisible delimiters
            if name in ("left", "right") and text[self.pos:self.pos + 1] == ".":
                self.pos += 1
            return
        if name in _NAME_COMMANDS:
            self._name_group(start)
        elif name in _COMMAND_TOKENS:
            kind, value = _COMMAND_TOKENS[name]
            self.tokens.append((kind, value, start))
        elif name in FUNCTION_WORDS:
            self.tokens.append(("func", name, start))
        elif name in GREEK:
            self.tokens.append(("ident", name, start))
            self._subscript()
        else:
            raise LatexParseError(f"Unknown command \\{name} at position {start}")

    def _name_group(self, start):
        """\\mathrm{..}, \\operatorname{..}: a multi-letter name."""
        m = _GROUP.match(self.text, self.pos)
        if not m:
            raise LatexParseError(f"Expected '{{' after command at position {start}")
        self.pos = m.end()
        word = re.sub(r"[^A-Za-z0-9_]", "", m.group(1))
        if not word:
            return
        if word in FUNCTION_WORDS:
            self.tokens.append(("func", word, start))
        elif word in _LOGIC_WORDS:
            self.tokens.append(("op", word, start))
        elif word == "pi":
            self.tokens.append(("ident", PI, start))
        else:
            self.tokens.append(("ident", word, start))
            self._subscript()

    def _letters(self):
        text = self.text
        start = self.pos
        m = _LETTERS.match(text, self.pos)
        run = m.group(0)
        self.pos = m.end()

        if run in _LOGIC_WORDS:
            self.tokens.append(("op", run, start))
            return
        if run in FUNCTION_WORDS:
            self.tokens.append(("func", run, start))
            return
        if run == "pi":
            self.tokens.append(("ident", PI, start))
            return
        if len(run) > 1 and text[self.pos:self.pos + 1] == "_":
            # derivative_f, x_max: one name
            sub = _NAME_SUFFIX.match(text, self.pos)
            if sub:
                self.pos = sub.end()
                self.tokens.append(("ident", run + "_" + sub.group(1).strip("{}"), start))
                return

        i = 0
        while i < len(run):
            for word in _SPLIT_WORDS:
                if run.startswith(word, i):
                    if word == "pi":
                        self.tokens.append(("ident", PI, start + i))
                    else:
                        self.tokens.append(("func", word, start + i))
                    i += len(word)
                    break
            else:
                self.tokens.append(("ident", run[i], start + i))
                i += 1
        if self.tokens[-1][0] == "ident":
            self._subscript()

    def _subscript(self):
        """Merge x_1 / x_{12} into the preceding identifier."""
        m = _SUBSCRIPT.match(self.text, self.pos)
        if not m:
            return
        kind, name, start = self.tokens[-1]
        self.tokens[-1] = (kind, f"{name}_{m.group(1).strip('{} ')}", start)
        self.pos = m.end()


# ============================================================================
# PARSER
# ============================================================================

class LatexParser:
    """Parse LaTeX or plain text to a symbolic tree."""

    def __init__(self):
        self.tokens: List[Token] = []
        self.pos = 0
        self._abs_depth = 0
        self._integral_depth = 0

    def parse(self, text: str) -> Node:
        text = self._preprocess(text)
        if not text:
            raise LatexParseError("Empty expression")
        self.tokens = _Tokenizer(text).run()
        self.pos = 0
        self._abs_depth = 0
        self._integral_depth = 0
        if not self.tokens:
            raise LatexParseError("Empty expression")

        node = self._parse_or()
        if self._current()[0] is not None:
            raise self._error("Unexpected")
        return node

    def _preprocess(self, text: str) -> str:
        text = text.replace("$$", "").replace("$", "")
        text = text.replace("\\!", "").replace("\\,", " ").replace("\\;", " ").replace("\\:", " ")
        return text.strip()

    # -- token helpers -------------------------------------------------------

    def _current(self) -> Token:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else (None, None, -1)

    def _peek(self, offset: int = 1) -> Token:
        i = self.pos + offset
        return self.tokens[i] if i < len(self.tokens) else (None, None, -1)

    def _consume(self) -> Token:
        token = self._current()
        self.pos += 1
        return token

    def _at(self, kind: str, *values) -> bool:
        k, v, _ = self._current()
        return k == kind and (not values or v in values)

    def _expect(self, kind: str, value=None):
        if not self._at(kind, *(() if value is None else (value,))):
            raise self._error(f"Expected {value or kind!r}, found")
        return self._consume()

    def _error(self, what: str) -> LatexParseError:
        kind, value, pos = self._current()
        if kind is None:
            return LatexParseError(f"{what} end of input")
        return LatexParseError(f"{what} {value if value is not None else kind!r} at position {pos}")

    # -- grammar -------------------------------------------------------------

    def _parse_or(self) -> Node:
        args = [self._parse_and()]
        while self._at("op", "or"):
            self._consume()
            args.append(self._parse_and())
        return args[0] if len(args) == 1 else Op(Head.OR, *args)

    def _parse_and(self) -> Node:
        args = [self._parse_not()]
        while self._at("op", "and"):
            self._consume()
            args.append(self._parse_not())
        return args[0] if len(args) == 1 else Op(Head.AND, *args)

    def _parse_not(self) -> Node:
        if self._at("op", "not"):
            self._consume()
            return Op(Head.NOT, self._parse_not())
        return self._parse_relation()

    def _parse_relation(self) -> Node:
        first = self._parse_additive()
        ops, terms = [], [first]
        while self._at("op", *_RELATIONS):
            ops.append(_RELATIONS[self._consume()[1]])
            terms.append(self._parse_additive())
        if not ops:
            return first
        if all(op == ops[0] for op in ops):
            return Op(ops[0], *terms)
        # mixed relations nest to the right: a < b <= c -> Less(a, LessEqual(b, c))
        node = Op(ops[-1], terms[-2], terms[-1])
        for i in range(len(ops) - 2, -1, -1):
            node = Op(ops[i], terms[i], node)
        return node

    def _parse_additive(self) -> Node:
        left = self._parse_term()
        # a run of + written in sequence is one variadic Add
        terms: Optional[List[Node]] = None
        while self._at("op", "+", "-"):
            op = self._consume()[1]
            right = self._parse_term()
            if op == "+":
                terms = terms + [right] if terms else [left, right]
                left = Op(Head.ADD, *terms)
            else:
                terms = None
                left = Op(Head.SUBTRACT, left, right)
        return left

    def _parse_term(self) -> Node:
        left = self._parse_unary()
        factors: Optional[List[Node]] = None
        while self._at("op", "*", "/"):
            op = self._consume()[1]
            right = self._parse_unary()
            if op == "*":
                factors = factors + [right] if factors else [left, right]
                left = Op(Head.MULTIPLY, *factors)
            else:
                factors = None
                left = Op(Head.DIVIDE, left, right)
        return left

    def _parse_unary(self) -> Node:
        if self._at("op", "-"):
            self._consume()
            return Op(Head.NEGATE, self._parse_unary())
        if self._at("op", "not"):
            self._consume()
            return Op(Head.NOT, self._parse_unary())
        if self._at("op", "+"):
            self._consume()
            return self._parse_unary()
        return self._parse_implicit()

    def _parse_implicit(self) -> Node:
        items = [self._parse_power()]
        while self._starts_operand():
            items.append(self._parse_power())
        return items[0] if len(items) == 1 else Op(Head.INVISIBLE, *items)

    def _starts_operand(self) -> bool:
        kind = self._current()[0]
        if self._at_differential():
            return False
        if kind == "bar":
            return self._abs_depth == 0
        return kind in ("num", "ident", "func", "frac", "int", "open", "lbrace")

    def _at_differential(self) -> bool:
        return (self._integral_depth > 0 and self._at("ident", "d")
                and self._peek()[0] == "ident")

    def _parse_power(self) -> Node:
        base = self._parse_primary()
        base = self._apply_primes(base)
        if self._at("op", "^"):
            self._consume()
            if self._at("prime"):
                return self._apply_primes(base)
            if self._at("lbrace") and self._peek()[0] == "prime" and self._peek(2)[0] == "rbrace":
                self._consume()
                base = self._apply_primes(base)
                self._consume()
                return base
            exponent = self._parse_script()
            return Op(Head.POWER, base, exponent)
        if self._at("op", "_"):
            raise self._error("Unexpected subscript")
        return base

    def _apply_primes(self, node: Node) -> Node:
        while self._at("prime"):
            for _ in range(self._consume()[1]):
                node = Op(Head.PRIME, node)
        return node

    def _parse_script(self) -> Node:
        """Argument of ^ or _: a braced group or a single item."""
        if self._at("lbrace"):
            self._consume()
            node = self._parse_or()
            self._expect("rbrace")
            return node
        if self._at("op", "-"):
            self._consume()
            return Op(Head.NEGATE, self._parse_script())
        return self._parse_primary()

    def _parse_primary(self) -> Node:
        kind, value, pos = self._current()

        if kind == "num":
            self._consume()
            return Num(value)

        if kind == "ident":
            self._consume()
            if value == "e":
                return Sym(EULER)
            return Sym(value)

        if kind == "open":
            self._consume()
            items = self._parse_items(_CLOSERS[value])
            if not items:
                return Op(Head.DELIMITER)
            if len(items) == 1:
                return Op(Head.DELIMITER, items[0])
            return Op(Head.DELIMITER, Op(Head.SEQUENCE, *items))

        if kind == "lbrace":
            self._consume()
            node = self._parse_or()
            self._expect("rbrace")
            return node

        if kind == "bar":
            self._consume()
            self._abs_depth += 1
            try:
                node = self._parse_or()
            finally:
                self._abs_depth -= 1
            self._expect("bar")
            return Op(Head.ABS, node)

        if kind == "func":
            self._consume()
            return self._parse_function(value)

        if kind == "frac":
            self._consume()
            numerator = self._parse_script()
            denominator = self._parse_script()
            return Op(Head.DIVIDE, numerator, denominator)

        if kind == "int":
            self._consume()
            return self._parse_integral()

        raise self._error("Unexpected")

    def _parse_items(self, closer: str) -> List[Node]:
        """Comma separated expressions up to the matching closer."""
        items = []
        if self._at("close", closer):
            self._consume()
            return items
        saved, self._abs_depth = self._abs_depth, 0
        try:
            while True:
                items.append(self._parse_or())
                if self._at("comma"):
                    self._consume()
                    continue
                break
        finally:
            self._abs_depth = saved
        if not self._at("close", closer):
            raise self._error(f"Expected {closer!r}, found")
        self._consume()
        return items

    def _parse_function(self, word: str) -> Node:
        head = FUNCTION_WORDS[word]
        base: Optional[Node] = None
        power: Optional[Node] = None
        index: Optional[Node] = None

        while self._at("op", "_", "^"):
            op = self._consume()[1]
            if op == "_":
                base = self._parse_script()
            else:
                power = self._parse_script()

        if head == Head.SQRT and self._at("open", "["):
            self._consume()
            index = self._parse_or()
            if not self._at("close", "]"):
                raise self._error("Expected ']', found")
            self._consume()

        if self._at("open", "("):
            self._consume()
            args = self._parse_items(")")
        elif self._at("lbrace"):
            args = [self._parse_script()]
        else:
            if not self._starts_operand():
                raise self._error(f"Missing argument for {word}:")
            items = [self._parse_power()]
            while self._current()[0] in ("num", "ident") and not self._at_differential():
                items.append(self._parse_power())
            args = [items[0] if len(items) == 1 else Op(Head.INVISIBLE, *items)]

        # sin^{-1} x is arcsin x
        if power is not None and head in _INVERSE_TRIG and power == Op(Head.NEGATE, Num(1)):
            head, power = _INVERSE_TRIG[head], None

        if head == Head.SQRT and index is not None:
            node = Op(Head.ROOT, *args, index)
        elif head == Head.LOG and base is not None:
            node = Op(Head.LOG, *args, base)
        else:
            node = Op(head, *args)

        if power is not None:
            node = Op(Head.POWER, node, power)
        return node

    def _parse_integral(self) -> Node:
        lower = upper = None
        for _ in range(2):
            if self._at("op", "_"):
                self._consume()
                lower = self._parse_script()
            elif self._at("op", "^"):
                self._consume()
                upper = self._parse_script()
        if lower is None or upper is None:
            raise LatexParseError("Only definite integrals with both limits are supported")

        self._integral_depth += 1
        try:
            body = Num(1) if self._at_differential() else self._parse_additive()
            var = "x"
            if self._at_differential():
                self._consume()
                var = self._consume()[1]
        finally:
            self._integral_depth -= 1

        return Op(
            Head.INTEGRATE,
            Op(Head.FUNCTION, body, Sym(var)),
            Op(Head.LIMITS, Sym(var), lower, upper),
        )
