"""Plotting of single-variable expressions, as ASCII or with matplotlib."""

from __future__ import annotations

from decimal import Decimal

try:
    # Set non-GUI backend before importing pyplot to avoid Tkinter issues
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from . import config
from .compiled import CompiledNode
from .evaluate import EvaluationSettings
from .logging_config import get_logger, safe_log
from .number import Number
from .parser import parse
from .types import EvalResult, MathsError, NodeError, ValidationError

logger = get_logger("plotting")


def sample_function(
    compiled: CompiledNode, x_min: float, x_max: float, points: int
) -> list[tuple[float, float]]:
    """Evaluate a compiled expression at evenly spaced points.

    Points which fail to evaluate (division by zero, square roots of negative
    numbers and so on) are left out.
    """
    if points < 2:
        points = 2
    step = (x_max - x_min) / (points - 1)
    samples = []
    for i in range(points):
        x = x_min + step * i
        try:
            y = compiled.evaluate_raw(Number.from_decimal(Decimal(repr(x))))
        except MathsError as e:
            safe_log("plotting", "debug", f"Skipping x={x}: {e.code}")
            continue
        samples.append((x, float(y.to_decimal())))
    return samples


def ascii_plot(
    samples: list[tuple[float, float]],
    x_min: float,
    x_max: float,
    rows: int | None = None,
    cols: int | None = None,
) -> list[str]:
    """Draw samples on a character grid, with axes where zero is in range."""
    rows = rows or config.PLOT_ROWS
    cols = cols or config.PLOT_COLS
    plot_chars = [[" " for _ in range(cols)] for _ in range(rows)]

    y_values = [y for _, y in samples]
    y_min, y_max = min(y_values), max(y_values)
    y_range = y_max - y_min if y_max != y_min else 1
    x_range = x_max - x_min if x_max != x_min else 1

    for x, y in samples:
        col = int((x - x_min) / x_range * (cols - 1))
        row = int((y - y_min) / y_range * (rows - 1))
        col = max(0, min(cols - 1, col))
        row = max(0, min(rows - 1, row))
        plot_chars[row][col] = "*"

    # Add axes
    x_axis_row = int((0 - y_min) / y_range * (rows - 1)) if y_min <= 0 <= y_max else -1
    y_axis_col = int((0 - x_min) / x_range * (cols - 1)) if x_min <= 0 <= x_max else -1

    lines = []
    # Row 0 is the lowest y value, so draw from the top down
    for r in reversed(range(rows)):
        line = []
        for c in range(cols):
            if plot_chars[r][c] == "*":
                line.append("*")
            elif r == x_axis_row and c == y_axis_col:
                line.append("+")
            elif r == x_axis_row:
                line.append("-")
            elif c == y_axis_col:
                line.append("|")
            else:
                line.append(" ")
        lines.append("".join(line))
    return lines


def _save_matplotlib_plot(samples, expression: str, variable: str) -> str:
    import tempfile

    import numpy as np

    x_vals = np.array([x for x, _ in samples])
    y_vals = np.array([y for _, y in samples])

    fig, ax = plt.subplots(figsize=(10, 6))
    ax.plot(x_vals, y_vals, linewidth=2, color="#2E86AB", label=f"f({variable}) = {expression}")
    ax.set_xlabel(variable, fontsize=12, fontweight="bold")
    ax.set_ylabel(f"f({variable})", fontsize=12, fontweight="bold")
    ax.set_title(f"Plot of {expression}", fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3, linestyle="--")
    ax.axhline(y=0, color="k", linewidth=0.8, linestyle="-", alpha=0.3)
    ax.axvline(x=0, color="k", linewidth=0.8, linestyle="-", alpha=0.3)
    ax.legend(loc="best", fontsize=10)
    plt.tight_layout()

    temp_file = tempfile.NamedTemporaryFile(suffix=".png", delete=False)
    temp_path = temp_file.name
    temp_file.close()
    try:
        plt.savefig(temp_path, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)
    return temp_path


def plot_function(
    expression: str,
    variable: str = "x",
    x_min: float = -10,
    x_max: float = 10,
    points: int | None = None,
    ascii: bool = True,
    settings: EvaluationSettings | None = None,
) -> EvalResult:
    """Plot a single-variable function.

    The expression is compiled once with ``variable`` as its parameter, then
    sampled across the range.

    Args:
        expression: Function expression to plot (e.g., "x^2", "sin(x)")
        variable: Variable name to plot against (default: "x")
        x_min: Minimum x value for plot range (default: -10)
        x_max: Maximum x value for plot range (default: 10)
        points: Number of points to sample (default: config.PLOT_POINTS)
        ascii: If True, return ASCII plot lines; if False, save a PNG with
            matplotlib (default: True)
        settings: Evaluation settings for function calls

    Returns:
        EvalResult with:
        - ok=True: ``rendered`` holds the ASCII plot, or ``result`` the PNG path
        - ok=False: ``error`` and ``error_code`` describe the failure

    Examples:
        >>> result = plot_function("x^2", x_min=-5, x_max=5)
        >>> len(result.rendered) == config.PLOT_ROWS
        True
    """
    if not ascii and not HAS_MATPLOTLIB:
        return EvalResult(
            ok=False,
            error="matplotlib not installed. Use ascii=True for ASCII plot.",
            error_code="MISSING_DEPENDENCY",
        )
    if x_min >= x_max:
        return EvalResult(ok=False, error="x_min must be below x_max", error_code="BAD_RANGE")

    points = points or config.PLOT_POINTS
    try:
        compiled = CompiledNode.from_structured(parse(expression), variable, settings)
    except (ValidationError, NodeError) as e:
        return EvalResult(ok=False, error=str(e), error_code=e.code)

    samples = sample_function(compiled, x_min, x_max, points)
    if not samples:
        return EvalResult(
            ok=False,
            error="Cannot plot: function has no values in range",
            error_code="NO_POINTS",
        )

    if ascii:
        return EvalResult(ok=True, rendered=ascii_plot(samples, x_min, x_max))

    try:
        path = _save_matplotlib_plot(samples, expression, variable)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to save plot: {e}", exc_info=True)
        return EvalResult(ok=False, error=f"Failed to save plot: {e}", error_code="PLOT_FAILED")
    return EvalResult(ok=True, result=path)
