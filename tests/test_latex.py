"""
Tests for the LaTeX / plain-text parser.
"""

import pytest

from functer_math.latex import LatexParseError, LatexParser
from functer_math.nodes import Head, Num, Op, Sym


def parse(text):
    return LatexParser().parse(text)


class TestArithmetic:
    """Operator precedence and non-canonical shapes."""

    def test_sum_of_product(self):
        assert parse("2*x + 1") == Op(Head.ADD, Op(Head.MULTIPLY, 2, "x"), 1)

    def test_variadic_sum_is_flat(self):
        assert parse("a + b + c") == Op(Head.ADD, "a", "b", "c")

    def test_subtraction_breaks_sum(self):
        assert parse("a + b - c") == Op(Head.SUBTRACT, Op(Head.ADD, "a", "b"), "c")

    def test_braces_are_transparent(self):
        assert parse("{a + b} + c") == Op(Head.ADD, Op(Head.ADD, "a", "b"), "c")

    def test_implicit_product(self):
        assert parse("2x") == Op(Head.INVISIBLE, 2, "x")
        assert parse("xy") == Op(Head.INVISIBLE, "x", "y")

    def test_fraction_times_power(self):
        assert parse(r"\frac{1}{2}x^{2}") == Op(
            Head.INVISIBLE, Op(Head.DIVIDE, 1, 2), Op(Head.POWER, "x", 2)
        )

    def test_negation_binds_looser_than_power(self):
        assert parse("-x^2") == Op(Head.NEGATE, Op(Head.POWER, "x", 2))

    def test_cdot(self):
        assert parse(r"3 \cdot y") == Op(Head.MULTIPLY, 3, "y")

    def test_decimal_numbers(self):
        assert parse("2.5") == Num(2.5)
        assert parse(".5") == Num(0.5)


class TestSymbols:
    """Names, subscripts and constants."""

    def test_pi_and_e(self):
        assert parse(r"\pi") == Sym("Pi")
        assert parse("e^{x}") == Op(Head.POWER, "ExponentialE", "x")

    def test_subscripts(self):
        assert parse("x_1 + x_{12}") == Op(Head.ADD, "x_1", "x_12")

    def test_multi_letter_name_with_suffix(self):
        assert parse("derivative_f(2)") == Op(
            Head.INVISIBLE, "derivative_f", Op(Head.DELIMITER, 2)
        )

    def test_greek(self):
        assert parse(r"\theta") == Sym("theta")

    def test_mathrm_name(self):
        assert parse(r"\mathrm{speed}") == Sym("speed")


class TestFunctions:
    """Named functions with and without backslash."""

    def test_plain_and_latex_sin(self):
        assert parse("sin(x)") == Op(Head.SIN, "x")
        assert parse(r"\sin x") == Op(Head.SIN, "x")

    def test_inverse_sine(self):
        assert parse(r"\sin^{-1}x") == Op(Head.ARCSIN, "x")

    def test_squared_sine(self):
        assert parse(r"\sin^{2}x") == Op(Head.POWER, Op(Head.SIN, "x"), 2)

    def test_roots(self):
        assert parse(r"\sqrt{x}") == Op(Head.SQRT, "x")
        assert parse(r"\sqrt[3]{x}") == Op(Head.ROOT, "x", 3)

    def test_log_with_base(self):
        assert parse(r"\log_{2}(8)") == Op(Head.LOG, 8, 2)
        assert parse(r"\ln(x)") == Op(Head.LN, "x")

    def test_absolute_value(self):
        assert parse("|x|") == Op(Head.ABS, "x")
        assert parse(r"\left|x - 1\right|") == Op(Head.ABS, Op(Head.SUBTRACT, "x", 1))

    def test_call_with_several_arguments(self):
        assert parse("g(a, b)") == Op(
            Head.INVISIBLE, "g", Op(Head.DELIMITER, Op(Head.SEQUENCE, "a", "b"))
        )


class TestRelations:
    """Comparisons, chains and logic."""

    def test_same_relation_chain_is_flat(self):
        assert parse("4 < x < 6") == Op(Head.LESS, 4, "x", 6)

    def test_mixed_chain_nests_right(self):
        assert parse(r"4 \le x < 6") == Op(Head.LESS_EQUAL, 4, Op(Head.LESS, "x", 6))

    def test_plain_text_operators(self):
        assert parse("x >= 1") == Op(Head.GREATER_EQUAL, "x", 1)
        assert parse("x != 1") == Op(Head.NOT_EQUAL, "x", 1)
        assert parse("x == 1") == Op(Head.EQUAL, "x", 1)

    def test_conjunction(self):
        assert parse("0 <= y and y < 1") == Op(
            Head.AND, Op(Head.LESS_EQUAL, 0, "y"), Op(Head.LESS, "y", 1)
        )

    def test_logic_precedence(self):
        assert parse(r"a < 1 \lor b < 1 \land c < 1") == Op(
            Head.OR,
            Op(Head.LESS, "a", 1),
            Op(Head.AND, Op(Head.LESS, "b", 1), Op(Head.LESS, "c", 1)),
        )

    def test_not(self):
        assert parse("not x > 1") == Op(Head.NOT, Op(Head.GREATER, "x", 1))

    def test_not_inside_arithmetic(self):
        expected = Op(Head.ADD, 1, Op(Head.NOT, Op(Head.DELIMITER, Op(Head.LESS, "x", 1))))
        assert parse(r"1 + \neg(x<1)") == expected


class TestDerivativeMarker:
    """f', f^{\\prime} and applied derivatives."""

    def test_bare_prime(self):
        assert parse("f'") == Op(Head.PRIME, "f")

    def test_applied_prime_next_to_symbol(self):
        expected = Op(
            Head.ADD, "f",
            Op(Head.INVISIBLE, Op(Head.PRIME, "f"), Op(Head.DELIMITER, "X")),
        )
        assert parse("f + f'(X)") == expected

    def test_latex_prime(self):
        assert parse(r"f^{\prime}\left(X\right)") == Op(
            Head.INVISIBLE, Op(Head.PRIME, "f"), Op(Head.DELIMITER, "X")
        )


class TestIntegrals:
    """Definite integrals."""

    def test_constant_integrand(self):
        assert parse(r"\int_{0}^{10} 1 \, dx") == Op(
            Head.INTEGRATE, Op(Head.FUNCTION, 1, "x"), Op(Head.LIMITS, "x", 0, 10)
        )

    def test_bound_variable_from_differential(self):
        assert parse(r"\int_0^2 t\,dt") == Op(
            Head.INTEGRATE, Op(Head.FUNCTION, "t", "t"), Op(Head.LIMITS, "t", 0, 2)
        )

    def test_limits_in_either_order(self):
        assert parse(r"\int^{3}_{0} x^{2} \, dx") == parse(r"\int_{0}^{3} x^{2} \, dx")

    def test_indefinite_integral_rejected(self):
        with pytest.raises(LatexParseError):
            parse(r"\int x \, dx")


class TestErrors:
    """Malformed input raises LatexParseError."""

    @pytest.mark.parametrize("text", ["", "   ", "$$"])
    def test_empty(self, text):
        with pytest.raises(LatexParseError):
            parse(text)

    @pytest.mark.parametrize("text", ["(x + 1", "x + 1)", "x +", r"\foo{x}", "x ; y", "|x"])
    def test_malformed(self, text):
        with pytest.raises(LatexParseError):
            parse(text)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse("(")

    def test_parser_is_reusable(self):
        parser = LatexParser()
        with pytest.raises(LatexParseError):
            parser.parse("(x")
        assert parser.parse("x") == Sym("x")
