"""Tests for function plotting."""

import os
from unittest.mock import patch

import pytest

from rumus_pkg import config
from rumus_pkg.compiled import CompiledNode
from rumus_pkg.parser import parse
from rumus_pkg.plotting import ascii_plot, plot_function, sample_function


def test_ascii_plot_size():
    result = plot_function("x^2", x_min=-5, x_max=5)
    assert result.ok is True
    assert len(result.rendered) == config.PLOT_ROWS
    assert all(len(line) == config.PLOT_COLS for line in result.rendered)


def test_ascii_plot_draws_axes():
    lines = ascii_plot([(-1.0, -1.0), (1.0, 1.0)], -1, 1, rows=3, cols=3)
    assert lines == [" |*", "-+-", "*| "]


def test_sample_function_skips_failures():
    compiled = CompiledNode.from_structured(parse("1/x"), "x")
    samples = sample_function(compiled, -1, 1, 3)
    assert [x for x, _ in samples] == [-1.0, 1.0]


def test_no_points():
    result = plot_function("sqrt(x)", x_min=-10, x_max=-1)
    assert result.ok is False
    assert result.error_code == "NO_POINTS"


def test_bad_range():
    result = plot_function("x", x_min=5, x_max=1)
    assert result.error_code == "BAD_RANGE"


def test_parse_error():
    result = plot_function("x+")
    assert result.error_code == "EXPECTED_UNIT"


def test_missing_matplotlib():
    with patch("rumus_pkg.plotting.HAS_MATPLOTLIB", False):
        result = plot_function("x", ascii=False)
    assert result.ok is False
    assert result.error_code == "MISSING_DEPENDENCY"


def test_matplotlib_plot():
    pytest.importorskip("matplotlib")
    pytest.importorskip("numpy")
    result = plot_function("x^2", ascii=False, points=20)
    assert result.ok is True
    try:
        assert result.result.endswith(".png")
        assert os.path.getsize(result.result) > 0
    finally:
        os.remove(result.result)
