"""Mathematical functions which may be called from any node tree."""

from __future__ import annotations

import math
from decimal import Decimal
from enum import Enum

import sympy as sp

from . import config
from .evaluate import AngleUnit, EvaluationSettings
from .number import CONTEXT, DecimalAccuracy, Number
from .types import InvariantError

_NAMES = {1: "sin", 2: "cos", 3: "gcd"}
_ARGUMENT_COUNTS = {1: 1, 2: 1, 3: 2}


class Function(Enum):
    """Closed set of callable functions; the value is the serialization code."""

    SINE = 1
    COSINE = 2
    GREATEST_COMMON_DENOMINATOR = 3

    @property
    def render_name(self) -> str:
        """Suggested text when rendering this function."""
        return _NAMES[self.value]

    @property
    def argument_count(self) -> int:
        return _ARGUMENT_COUNTS[self.value]

    @staticmethod
    def from_name(name: str) -> Function | None:
        for function in Function:
            if function.render_name == name:
                return function
        return None

    def evaluate(self, arguments: list[Number], settings: EvaluationSettings) -> Number:
        """Evaluate this function for already-evaluated arguments.

        Args:
            arguments: One Number per argument slot
            settings: Angle unit and float usage for trigonometric functions

        Returns:
            The result; trigonometric results are tagged Approximation

        Raises:
            InvariantError: If the argument count does not match the function
        """
        if len(arguments) != self.argument_count:
            raise InvariantError(
                f"function {self.render_name} expected {self.argument_count} "
                f"arguments, but got {len(arguments)}"
            )

        if self is Function.GREATEST_COMMON_DENOMINATOR:
            return _gcd(arguments[0], arguments[1])
        return _trigonometric(self, arguments[0], settings)


def _trigonometric(function: Function, argument: Number, settings: EvaluationSettings) -> Number:
    target = argument.to_decimal()
    degrees = settings.angle_unit is AngleUnit.DEGREE

    if settings.use_floats:
        radians = float(target)
        if degrees:
            radians = radians * math.pi / 180
        func = math.sin if function is Function.SINE else math.cos
        value = Decimal(repr(func(radians)))
    else:
        exact = sp.Rational(str(target))
        if degrees:
            exact = exact * sp.pi / 180
        func = config.SYMPY_FUNCTIONS[function.render_name]
        value = Decimal(str(func(exact).evalf(config.DECIMAL_PRECISION + 5)))

    result = Number.from_decimal(CONTEXT.create_decimal(value), DecimalAccuracy.APPROXIMATION)
    return result.correct_inaccuracy()


def _gcd(a: Number, b: Number) -> Number:
    # Integer-only; non-whole arguments give 1
    int_a = a.to_whole()
    int_b = b.to_whole()
    if int_a is None or int_b is None:
        return Number.from_decimal(Decimal(1), DecimalAccuracy.EXACT)
    return Number.from_int(math.gcd(int_a, int_b))
