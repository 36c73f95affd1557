"""Test that API functions return typed results."""

import sympy as sp

from rumus_pkg.api import (
    evaluate,
    format_number,
    plot,
    render_expression,
    simplify_expression,
    to_sympy,
    validate_expression,
)
from rumus_pkg.number import Number, Rational
from rumus_pkg.types import EvalResult, NodeError, ValidationError


class TestEvaluate:
    """Test evaluate()."""

    def test_exact_result(self):
        """Rational results keep their exact form alongside a decimal."""
        result = evaluate("3/5+2/3+7/4")
        assert isinstance(result, EvalResult)
        assert result.ok is True
        assert result.result == "181/60"
        assert result.approx == "3.01666666667"
        assert result.free_symbols == []

    def test_rendered(self):
        result = evaluate("frac(2,3)+1")
        assert result.rendered == ["2  ", "-+1", "3  "]

    def test_functions(self):
        assert evaluate("sin(90)").result == "1"
        assert evaluate("sin(90)", angle_unit="radian").result != "1"
        assert evaluate("gcd(12, 18)").result == "6"
        assert evaluate("cos(60)", use_floats=True).result == "0.5"

    def test_validation_error(self):
        result = evaluate("__import__('os')")
        assert result.ok is False
        assert result.error_code == "INVALID_CHARACTER"

    def test_upgrade_error(self):
        result = evaluate("2+")
        assert result.ok is False
        assert result.error_code == "EXPECTED_UNIT"

    def test_maths_error_keeps_context(self):
        """Evaluation errors still report what was parsed."""
        result = evaluate("x+1")
        assert result.ok is False
        assert result.error_code == "MISSING_VARIABLE"
        assert result.free_symbols == ["x"]
        assert result.rendered == ["x+1"]

    def test_division_by_zero(self):
        result = evaluate("1/0")
        assert result.error_code == "DIVISION_BY_ZERO"

    def test_inaccuracy_corrected(self):
        """Approximate results drop floating-point noise before display."""
        assert evaluate("(2^(1/2))^2").result == "2"
        assert evaluate("sqrt(2)^2").result == "2"

    def test_approximate_fraction(self):
        assert evaluate("sin(30)").fraction == "1/2"
        assert evaluate("sqrt(2)").fraction is None
        assert evaluate("1/3").fraction is None
        assert "fraction" not in evaluate("1/3").to_dict()

    def test_to_dict(self):
        data = evaluate("1+1").to_dict()
        assert data["ok"] is True
        assert data["result"] == "2"
        assert "error" not in data


class TestSimplify:
    """Test simplify_expression()."""

    def test_collects_like_terms(self):
        result = simplify_expression("2x+3x^2+6x^2+x+7")
        assert result.ok is True
        assert result.result == "7+3*x+9*(x^2)"
        assert result.free_symbols == ["x"]

    def test_error(self):
        result = simplify_expression("2*")
        assert result.ok is False
        assert result.error_code == "EXPECTED_UNIT"


class TestRenderAndValidate:
    """Test render_expression() and validate_expression()."""

    def test_render(self):
        result = render_expression("sqrt(4)")
        assert result.ok is True
        assert result.rendered == [" .-", "\\|4"]

    def test_render_clipped(self):
        result = render_expression("123456", width=3, height=1)
        assert result.rendered == ["123"]

    def test_validate(self):
        result = validate_expression("y+2x")
        assert result.ok is True
        assert result.free_symbols == ["y", "x"]
        assert validate_expression("2+").error_code == "EXPECTED_UNIT"
        assert validate_expression("(").error_code == "UNBALANCED_PARENS"


def test_plot_returns_eval_result():
    result = plot("x^2", x_min=-5, x_max=5)
    assert isinstance(result, EvalResult)
    assert result.ok is True
    assert result.rendered


def test_to_sympy():
    x = sp.Symbol("x")
    assert to_sympy("x*x+2x") == x**2 + 2 * x
    assert to_sympy("sin(90)") == 1
    assert to_sympy("sin(x)", angle_unit="radian") == sp.sin(x)


def test_to_sympy_raises():
    try:
        to_sympy("2+")
    except NodeError as e:
        assert e.code == "EXPECTED_UNIT"
    else:
        raise AssertionError("to_sympy should raise NodeError")

    try:
        to_sympy("2$")
    except ValidationError as e:
        assert e.code == "INVALID_CHARACTER"
    else:
        raise AssertionError("to_sympy should raise ValidationError")


def test_format_number():
    assert format_number(Rational(1, 3), precision=4) == "0.3333"
    assert format_number(Rational(5, 1)) == "5"
    assert format_number(Number.from_decimal("2.50")) == "2.5"
