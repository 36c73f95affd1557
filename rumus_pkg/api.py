"""Public API for Rumus - returns structured objects without side effects."""

from __future__ import annotations

import decimal

import sympy as sp

from . import config
from .ascii_renderer import AsciiRenderer
from .evaluate import AngleUnit, EvaluationSettings
from .logging_config import get_logger
from .number import (
    DecimalAccuracy,
    DecimalNumber,
    Number,
    Rational,
    decimal_to_fraction,
    format_decimal,
)
from .parser import parse
from .plotting import plot_function
from .render import Area, Viewport
from .simplified import (
    SimplifiedAdd,
    SimplifiedFunctionCall,
    SimplifiedMultiply,
    SimplifiedNode,
    SimplifiedNumber,
    SimplifiedPower,
    SimplifiedVariable,
)
from .structured import StructuredNode
from .types import EvalResult, MathsError, NodeError, ValidationError

logger = get_logger("api")

_USER_ERRORS = (ValidationError, NodeError, MathsError)


def _settings(angle_unit: str | None = None, use_floats: bool | None = None) -> EvaluationSettings:
    settings = EvaluationSettings()
    return EvaluationSettings(
        angle_unit=AngleUnit(angle_unit) if angle_unit is not None else settings.angle_unit,
        use_floats=use_floats if use_floats is not None else settings.use_floats,
    )


def _error(e: Exception, **kwargs) -> EvalResult:
    return EvalResult(ok=False, error=str(e), error_code=getattr(e, "code", None), **kwargs)


def format_number(value: Number, precision: int | None = None) -> str:
    """Format a number as a decimal rounded to ``precision`` significant digits."""
    precision = precision or config.OUTPUT_PRECISION
    rounded = decimal.Context(prec=precision).plus(value.to_decimal())
    return format_decimal(rounded)


def approximate_fraction(value: Number) -> str | None:
    """Show an approximate decimal as a nearby fraction, if one is simple enough.

    Exact values are already shown exactly, so they give None, as do
    approximations with no fraction below config.FRACTION_MAX_DENOMINATOR.
    """
    if not isinstance(value, DecimalNumber) or value.accuracy is not DecimalAccuracy.APPROXIMATION:
        return None
    fraction = decimal_to_fraction(value.value, max_denominator=config.FRACTION_MAX_DENOMINATOR)
    if fraction is None or fraction.denominator == 1:
        return None
    return str(fraction)


def _render_lines(tree: StructuredNode, width: int | None = None, height: int | None = None):
    renderer = AsciiRenderer()
    viewport = Viewport(Area(width, height)) if width and height else None
    renderer.draw_all(tree.disambiguate(), None, viewport)
    return renderer.lines


def evaluate(
    expression: str,
    angle_unit: str | None = None,
    use_floats: bool | None = None,
) -> EvalResult:
    """Evaluate a mathematical expression.

    Args:
        expression: Expression string (e.g., "2+2", "frac(3,5)+sin(90)")
        angle_unit: "degree" or "radian" (default: config.DEFAULT_ANGLE_UNIT)
        use_floats: Evaluate functions with floats rather than SymPy

    Returns:
        EvalResult with the exact result, its decimal form, a nearby fraction
        for approximate results, free symbols and the rendered expression

    Example:
        >>> from rumus_pkg.api import evaluate
        >>> result = evaluate("3/5+2/3+7/4")
        >>> print(result.result)
        181/60
        >>> print(result.approx)
        3.01666666667
    """
    try:
        tree = parse(expression)
    except (ValidationError, NodeError) as e:
        return _error(e)

    free_symbols = tree.variables()
    rendered = _render_lines(tree)
    try:
        value = tree.evaluate(_settings(angle_unit, use_floats)).correct_inaccuracy()
    except MathsError as e:
        return _error(e, free_symbols=free_symbols, rendered=rendered)

    return EvalResult(
        ok=True,
        result=str(value),
        approx=format_number(value),
        fraction=approximate_fraction(value),
        free_symbols=free_symbols,
        rendered=rendered,
    )


def simplify_expression(expression: str) -> EvalResult:
    """Reduce an expression symbolically.

    Example:
        >>> from rumus_pkg.api import simplify_expression
        >>> print(simplify_expression("2x+3x^2+6x^2+x+7").result)
        7+3*x+9*(x^2)
    """
    try:
        node = parse(expression).simplify().flatten().sort()
        reduced, status = node.reduce()
    except _USER_ERRORS as e:
        return _error(e)

    logger.debug(f"Reduced {expression!r} to {reduced} ({status.name})")
    return EvalResult(ok=True, result=str(reduced), free_symbols=_simplified_variables(reduced))


def _simplified_variables(node: SimplifiedNode) -> list[str]:
    found: list[str] = []

    def collect(item: SimplifiedNode) -> None:
        if isinstance(item, SimplifiedVariable):
            if item.name not in found:
                found.append(item.name)
        elif isinstance(item, (SimplifiedAdd, SimplifiedMultiply)):
            for child in item.items:
                collect(child)
        elif isinstance(item, SimplifiedPower):
            collect(item.base)
            collect(item.exp)
        elif isinstance(item, SimplifiedFunctionCall):
            for arg in item.args:
                collect(arg)

    collect(node)
    return found


def render_expression(
    expression: str, width: int | None = None, height: int | None = None
) -> EvalResult:
    """Render an expression as lines of ASCII text.

    Args:
        expression: Expression string
        width: Viewport width; with height, clips the output
        height: Viewport height

    Example:
        >>> from rumus_pkg.api import render_expression
        >>> render_expression("frac(2,3)+1").rendered
        ['2  ', '-+1', '3  ']
    """
    try:
        tree = parse(expression)
    except (ValidationError, NodeError) as e:
        return _error(e)
    return EvalResult(ok=True, rendered=_render_lines(tree, width, height))


def validate_expression(expression: str) -> EvalResult:
    """Check that an expression imports and upgrades, without evaluating it.

    Example:
        >>> from rumus_pkg.api import validate_expression
        >>> validate_expression("2+").error_code
        'EXPECTED_UNIT'
    """
    try:
        tree = parse(expression)
    except (ValidationError, NodeError) as e:
        return _error(e)
    return EvalResult(ok=True, free_symbols=tree.variables())


def plot(
    expression: str,
    variable: str = "x",
    x_min: float = -10,
    x_max: float = 10,
    points: int | None = None,
    ascii: bool = True,
) -> EvalResult:
    """Plot a single-variable function.

    Example:
        >>> from rumus_pkg.api import plot
        >>> result = plot("x^2", x_min=-5, x_max=5)
        >>> print(result.ok)
        True
    """
    return plot_function(expression, variable, x_min, x_max, points=points, ascii=ascii)


def _number_to_sympy(value: Number) -> sp.Expr:
    if isinstance(value, Rational):
        return sp.Rational(value.numerator, value.denominator)
    if isinstance(value, DecimalNumber) and value.accuracy is DecimalAccuracy.APPROXIMATION:
        return sp.Float(str(value.value), config.DECIMAL_PRECISION)
    return sp.Rational(str(value.to_decimal()))


def _simplified_to_sympy(node: SimplifiedNode, settings: EvaluationSettings) -> sp.Expr:
    if isinstance(node, SimplifiedNumber):
        return _number_to_sympy(node.value)
    if isinstance(node, SimplifiedVariable):
        return sp.Symbol(node.name)
    if isinstance(node, SimplifiedMultiply):
        return sp.Mul(*(_simplified_to_sympy(item, settings) for item in node.items))
    if isinstance(node, SimplifiedAdd):
        return sp.Add(*(_simplified_to_sympy(item, settings) for item in node.items))
    if isinstance(node, SimplifiedPower):
        return sp.Pow(
            _simplified_to_sympy(node.base, settings), _simplified_to_sympy(node.exp, settings)
        )
    if isinstance(node, SimplifiedFunctionCall):
        args = [_simplified_to_sympy(arg, settings) for arg in node.args]
        func = config.SYMPY_FUNCTIONS[node.function.render_name]
        if node.function.argument_count == 1 and settings.angle_unit is AngleUnit.DEGREE:
            args = [arg * sp.pi / 180 for arg in args]
        return func(*args)
    raise TypeError(f"cannot convert {type(node).__name__} to SymPy")


def to_sympy(expression: str, angle_unit: str | None = None) -> sp.Expr:
    """Convert an expression's reduced form to a SymPy expression.

    Trigonometric arguments are converted to radians when the angle unit is
    degrees, so the SymPy expression has the same value.

    Raises:
        ValidationError: If the text is malformed
        NodeError: If the expression does not upgrade
        MathsError: If reduction fails

    Example:
        >>> from rumus_pkg.api import to_sympy
        >>> to_sympy("x*x+2x")
        x**2 + 2*x
    """
    node = parse(expression).simplify().flatten().sort()
    reduced, _ = node.reduce()
    return _simplified_to_sympy(reduced, _settings(angle_unit))
