"""Tests for compiled nodes."""

import pytest
from util import dec, dec_approx, rat

from rumus_pkg.compiled import CompiledNode
from rumus_pkg.number import DecimalAccuracy
from rumus_pkg.parser import parse
from rumus_pkg.types import InvariantError, MathsError, MathsErrorKind


def test_compiled_matches_structured():
    tree = parse("3/5+2/3+7/4")
    compiled = CompiledNode.from_structured(tree)
    assert compiled.evaluate() == tree.evaluate() == rat(181, 60)


def test_parameter_is_substituted():
    compiled = CompiledNode.from_structured(parse("2x^2+1"), "x")
    assert compiled.evaluate_raw(rat(3)) == rat(19)
    assert compiled.evaluate_raw(dec("0.5")) == dec("1.5")


def test_compiled_sqrt():
    compiled = CompiledNode.from_structured(parse("sqrt(x)"), "x")
    assert compiled.evaluate_raw(rat(9)) == dec("3")
    with pytest.raises(MathsError) as excinfo:
        compiled.evaluate_raw(rat(-9))
    assert excinfo.value.kind == MathsErrorKind.INVALID_SQRT


def test_compiled_sqrt_accuracy():
    compiled = CompiledNode.from_structured(parse("sqrt(x)^2"), "x")
    assert compiled.evaluate_raw(rat(4)) == dec("4")
    squared = compiled.evaluate_raw(rat(2))
    assert squared.accuracy is DecimalAccuracy.APPROXIMATION
    assert squared.correct_inaccuracy() == dec_approx("2")


def test_other_variables_fail_when_evaluated():
    compiled = CompiledNode.from_structured(parse("x+y"), "x")
    with pytest.raises(MathsError) as excinfo:
        compiled.evaluate_raw(rat(1))
    assert excinfo.value.kind == MathsErrorKind.MISSING_VARIABLE


def test_parameterised_node_needs_substitution():
    compiled = CompiledNode.from_structured(parse("x+1"), "x")
    with pytest.raises(MathsError):
        compiled.evaluate()
    assert compiled.substitute("x", rat(4)).evaluate() == rat(5)


def test_substitution_is_checked():
    compiled = CompiledNode.from_structured(parse("x+1"), "x")
    with pytest.raises(InvariantError):
        compiled.substitute("y", rat(1))
    substituted = compiled.substitute("x", rat(1))
    with pytest.raises(InvariantError):
        substituted.substitute("x", rat(2))
