"""Exact-or-decimal number model with checked arithmetic.

This module handles:
- Rational numbers bounded to the signed 64-bit range
- Decimal numbers bounded to a 96-bit mantissa, tagged Exact or Approximation
- Checked arithmetic which raises MathsError instead of wrapping around
- Correction of floating-point noise in approximate results
- Approximating decimals as fractions by walking the Stern-Brocot tree

All decimal arithmetic goes through the module-level CONTEXT; the thread-local
default context is never touched.
"""

from __future__ import annotations

import decimal
import math
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import sympy as sp

from . import config
from .logging_config import get_logger
from .types import MathsError, MathsErrorKind

logger = get_logger("number")

CONTEXT = decimal.Context(
    prec=config.DECIMAL_PRECISION,
    rounding=decimal.ROUND_HALF_EVEN,
    traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
)

_MIN_SCALE_QUANTUM = Decimal(1).scaleb(-config.MAX_DECIMAL_SCALE)


class DecimalAccuracy(Enum):
    """Whether a decimal value may carry floating-point error."""

    EXACT = 1
    APPROXIMATION = 2


def _overflow() -> MathsError:
    return MathsError(MathsErrorKind.OVERFLOW)


def _fit_decimal(value: Decimal) -> Decimal:
    """Clamp a decimal to the supported scale and reject out-of-range magnitudes."""
    if value.is_nan() or value.is_infinite():
        raise _overflow()
    if value.as_tuple().exponent < -config.MAX_DECIMAL_SCALE:
        value = value.quantize(_MIN_SCALE_QUANTUM, context=CONTEXT)
    if abs(value) > config.MAX_DECIMAL_MANTISSA:
        raise _overflow()
    return value


def _fit_int(value: int) -> int:
    if value < config.INT64_MIN or value > config.INT64_MAX:
        raise _overflow()
    return value


def _decimal_op(op, *args) -> Decimal:
    """Run a CONTEXT operation, translating decimal signals into MathsError."""
    try:
        return _fit_decimal(op(*args))
    except decimal.DivisionByZero:
        raise MathsError(MathsErrorKind.DIVISION_BY_ZERO) from None
    except (decimal.Overflow, decimal.InvalidOperation):
        raise _overflow() from None


def format_decimal(value: Decimal) -> str:
    """Format a decimal in plain notation without trailing fractional zeros."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("", "-0"):
        return "0"
    return text


def _combined_accuracy(a: Number, b: Number) -> DecimalAccuracy:
    if (
        a.accuracy is DecimalAccuracy.APPROXIMATION
        or b.accuracy is DecimalAccuracy.APPROXIMATION
    ):
        return DecimalAccuracy.APPROXIMATION
    return DecimalAccuracy.EXACT


class Number:
    """Common behaviour of Rational and DecimalNumber.

    Arithmetic between two rationals stays rational; anything involving a
    decimal yields a decimal, tagged Approximation if either side was.
    Ordering compares numeric values, equality compares representations.
    """

    __slots__ = ()

    accuracy = DecimalAccuracy.EXACT

    @staticmethod
    def from_int(value: int) -> Rational:
        return Rational(_fit_int(value), 1)

    @staticmethod
    def from_decimal(
        value: Decimal | str | int,
        accuracy: DecimalAccuracy = DecimalAccuracy.EXACT,
    ) -> DecimalNumber:
        return DecimalNumber(_fit_decimal(Decimal(value)), accuracy)

    @staticmethod
    def zero() -> Rational:
        return Rational(0, 1)

    @staticmethod
    def one() -> Rational:
        return Rational(1, 1)

    def to_decimal(self) -> Decimal:
        raise NotImplementedError

    def simplify(self) -> Number:
        return self

    def to_whole(self) -> int | None:
        """Return the value as an int if it is whole, otherwise None."""
        raise NotImplementedError

    def is_zero(self) -> bool:
        return self.to_decimal() == 0

    def is_one(self) -> bool:
        return self.to_decimal() == 1

    def is_negative(self) -> bool:
        return self.to_decimal() < 0

    def correct_inaccuracy(self) -> Number:
        return self

    # Ordering by numeric value

    def __lt__(self, other: Number) -> bool:
        return self.to_decimal() < other.to_decimal()

    def __le__(self, other: Number) -> bool:
        return self.to_decimal() <= other.to_decimal()

    def __gt__(self, other: Number) -> bool:
        return self.to_decimal() > other.to_decimal()

    def __ge__(self, other: Number) -> bool:
        return self.to_decimal() >= other.to_decimal()

    # Checked arithmetic

    def checked_add(self, other: Number) -> Number:
        if isinstance(self, Rational) and isinstance(other, Rational):
            return Rational(
                self.numerator * other.denominator + other.numerator * self.denominator,
                self.denominator * other.denominator,
            ).simplify()
        return DecimalNumber(
            _decimal_op(CONTEXT.add, self.to_decimal(), other.to_decimal()),
            _combined_accuracy(self, other),
        )

    def checked_sub(self, other: Number) -> Number:
        return self.checked_add(-other)

    def checked_mul(self, other: Number) -> Number:
        if isinstance(self, Rational) and isinstance(other, Rational):
            return Rational(
                self.numerator * other.numerator,
                self.denominator * other.denominator,
            ).simplify()
        return DecimalNumber(
            _decimal_op(CONTEXT.multiply, self.to_decimal(), other.to_decimal()),
            _combined_accuracy(self, other),
        )

    def checked_div(self, other: Number) -> Number:
        if other.is_zero():
            raise MathsError(MathsErrorKind.DIVISION_BY_ZERO)
        if isinstance(self, Rational) and isinstance(other, Rational):
            return Rational(
                self.numerator * other.denominator,
                self.denominator * other.numerator,
            ).simplify()
        return DecimalNumber(
            _decimal_op(CONTEXT.divide, self.to_decimal(), other.to_decimal()),
            _combined_accuracy(self, other),
        )

    def reciprocal(self) -> Number:
        return Number.one().checked_div(self)

    def powi(self, exponent: int) -> Number:
        """Raise to an integer power.

        Raises:
            MathsError: DIVISION_BY_ZERO for a zero base with a negative exponent,
                OVERFLOW when the result leaves the representable range.
        """
        if exponent < 0:
            if self.is_zero():
                raise MathsError(MathsErrorKind.DIVISION_BY_ZERO)
            return self.reciprocal().powi(-exponent)
        if exponent == 0:
            if isinstance(self, DecimalNumber):
                return DecimalNumber(Decimal(1), self.accuracy)
            return Number.one()
        return self._powi_unsigned(exponent)

    def _powi_unsigned(self, exponent: int) -> Number:
        raise NotImplementedError

    def checked_pow(self, exponent: Number) -> Number:
        """Raise to an arbitrary power.

        Whole exponents are exact. A rational exponent n/d is exact when base^n
        has an exact d-th root, and otherwise falls back to an approximate
        decimal power. Even roots of negative values are imaginary.

        Example:
            >>> Rational(8, 1).checked_pow(Rational(-2, 3))
            Rational(numerator=1, denominator=4)
        """
        whole = exponent.to_whole()
        if whole is not None:
            return self.powi(whole)

        if isinstance(exponent, Rational):
            exponent = exponent.simplify()
            powered = self.powi(exponent.numerator)
            return powered._root(exponent.denominator)

        if self.is_negative():
            raise MathsError(MathsErrorKind.IMAGINARY)
        return DecimalNumber(
            _approximate_power(self.to_decimal(), exponent.to_decimal()),
            DecimalAccuracy.APPROXIMATION,
        )

    def _root(self, degree: int) -> Number:
        negative = self.is_negative()
        if negative and degree % 2 == 0:
            raise MathsError(MathsErrorKind.IMAGINARY)

        if isinstance(self, Rational):
            numerator, numerator_exact = sp.integer_nthroot(abs(self.numerator), degree)
            denominator, denominator_exact = sp.integer_nthroot(self.denominator, degree)
            if numerator_exact and denominator_exact:
                sign = -1 if negative else 1
                return Rational(sign * int(numerator), int(denominator))

        magnitude = _approximate_power(
            abs(self.to_decimal()), CONTEXT.divide(Decimal(1), Decimal(degree))
        )
        return DecimalNumber(
            -magnitude if negative else magnitude, DecimalAccuracy.APPROXIMATION
        )


def _approximate_power(base: Decimal, exponent: Decimal) -> Decimal:
    if base == 0:
        if exponent < 0:
            raise MathsError(MathsErrorKind.DIVISION_BY_ZERO)
        return Decimal(0)
    return _decimal_op(CONTEXT.power, base, exponent)


@dataclass(frozen=True)
class Rational(Number):
    """An exact fraction of two 64-bit integers."""

    numerator: int
    denominator: int

    def to_decimal(self) -> Decimal:
        return _decimal_op(CONTEXT.divide, Decimal(self.numerator), Decimal(self.denominator))

    def simplify(self) -> Rational:
        """Divide through by the gcd and move any sign onto the numerator.

        Raises:
            MathsError: OVERFLOW if the simplified parts leave the 64-bit range.
        """
        numerator, denominator = self.numerator, self.denominator
        if denominator < 0:
            numerator, denominator = -numerator, -denominator
        divisor = math.gcd(numerator, denominator) or 1
        return Rational(
            _fit_int(numerator // divisor), _fit_int(denominator // divisor)
        )

    def to_whole(self) -> int | None:
        if self.numerator % self.denominator == 0:
            return self.numerator // self.denominator
        return None

    def is_zero(self) -> bool:
        return self.numerator == 0

    def is_one(self) -> bool:
        return self.numerator == self.denominator

    def is_negative(self) -> bool:
        return (self.numerator < 0) != (self.denominator < 0) and self.numerator != 0

    def _powi_unsigned(self, exponent: int) -> Number:
        # Reject before computing, so huge exponents cannot stall
        for part in (self.numerator, self.denominator):
            if abs(part) > 1 and (abs(part).bit_length() - 1) * exponent > 63:
                raise _overflow()
        return Rational(self.numerator**exponent, self.denominator**exponent).simplify()

    def sqrt(self) -> DecimalNumber:
        """Square root as a decimal, exact when both parts are perfect squares."""
        if self.is_negative():
            raise MathsError(MathsErrorKind.INVALID_SQRT)
        reduced = self.simplify()
        numerator, numerator_exact = sp.integer_nthroot(abs(reduced.numerator), 2)
        denominator, denominator_exact = sp.integer_nthroot(abs(reduced.denominator), 2)
        if numerator_exact and denominator_exact:
            root = _decimal_op(CONTEXT.divide, Decimal(int(numerator)), Decimal(int(denominator)))
            # A root like 1/3 has no finite decimal form
            if _decimal_op(CONTEXT.multiply, root, Decimal(int(denominator))) == int(numerator):
                return DecimalNumber(root)
            return DecimalNumber(root, DecimalAccuracy.APPROXIMATION)
        return DecimalNumber(
            _decimal_op(CONTEXT.sqrt, self.to_decimal()), DecimalAccuracy.APPROXIMATION
        )

    def __neg__(self) -> Rational:
        return Rational(-self.numerator, self.denominator).simplify()

    def __str__(self) -> str:
        if self.denominator == 1:
            return str(self.numerator)
        return f"{self.numerator}/{self.denominator}"


@dataclass(frozen=True)
class DecimalNumber(Number):
    """A decimal value with an accuracy tag."""

    value: Decimal
    accuracy: DecimalAccuracy = DecimalAccuracy.EXACT

    def to_decimal(self) -> Decimal:
        return self.value

    def to_whole(self) -> int | None:
        if self.value != self.value.to_integral_value(context=CONTEXT):
            return None
        whole = int(self.value)
        if whole < config.INT64_MIN or whole > config.INT64_MAX:
            return None
        return whole

    def _powi_unsigned(self, exponent: int) -> Number:
        return DecimalNumber(
            _decimal_op(CONTEXT.power, self.value, Decimal(exponent)), self.accuracy
        )

    def sqrt(self) -> DecimalNumber:
        if self.value < 0:
            raise MathsError(MathsErrorKind.INVALID_SQRT)
        root = _decimal_op(CONTEXT.sqrt, self.value)
        if _decimal_op(CONTEXT.multiply, root, root) != self.value:
            return DecimalNumber(root, DecimalAccuracy.APPROXIMATION)
        return DecimalNumber(root, self.accuracy)

    def correct_inaccuracy(self) -> DecimalNumber:
        if self.accuracy is not DecimalAccuracy.APPROXIMATION:
            return self
        corrected = correct_decimal_inaccuracy(self.value)
        if corrected != self.value:
            logger.debug("Corrected inaccuracy: %s -> %s", self.value, corrected)
        return DecimalNumber(corrected, self.accuracy)

    def __neg__(self) -> DecimalNumber:
        return DecimalNumber(-self.value, self.accuracy)

    def __str__(self) -> str:
        return format_decimal(self.value)


def correct_decimal_inaccuracy(value: Decimal, run_length: int | None = None) -> Decimal:
    """Remove floating-point noise from a decimal.

    Looks for a run of at least ``run_length`` zeros or nines in the fractional
    digits. The value is cut off where the run starts; a run of nines then adds
    one unit in the last kept place. This can misfire on values which really do
    contain such a run.

    Args:
        value: Decimal to correct
        run_length: Minimum run length, defaults to config.INACCURACY_RUN_LENGTH

    Returns:
        The corrected decimal, or ``value`` unchanged if no run was found

    Example:
        >>> correct_decimal_inaccuracy(Decimal("5.1401999999999997"))
        Decimal('5.1402')
    """
    if run_length is None:
        run_length = config.INACCURACY_RUN_LENGTH

    whole, _, fraction = format(abs(value), "f").partition(".")
    match = re.search(f"0{{{run_length},}}|9{{{run_length},}}", fraction)
    if match is None:
        return value

    kept = fraction[: match.start()]
    result = Decimal(f"{whole}.{kept}") if kept else Decimal(whole)
    if match.group().startswith("9"):
        result = CONTEXT.add(result, Decimal(1).scaleb(-len(kept)))

    if value < 0:
        result = CONTEXT.minus(result)
    if result == 0:
        result = Decimal(0)
    return result


def decimal_to_fraction(
    value: Decimal,
    accuracy: Decimal | None = None,
    max_denominator: int | None = None,
) -> Rational | None:
    """Approximate a decimal as a fraction by walking the Stern-Brocot tree.

    Args:
        value: Decimal to approximate
        accuracy: Relative tolerance between 0 and 1; smaller is closer but
            slower. Defaults to config.FRACTION_ACCURACY.
        max_denominator: Give up once denominators grow past this; without
            it, values close to 0 or to a whole number take a long walk.

    Returns:
        The first fraction found within tolerance, or None if the search
        gave up

    Example:
        >>> decimal_to_fraction(Decimal("0.3333333333"))
        Rational(numerator=1, denominator=3)
    """
    if accuracy is None:
        accuracy = Decimal(str(config.FRACTION_ACCURACY))

    sign = -1 if value < 0 else 1
    value = abs(value)
    max_error = accuracy if value == 0 else CONTEXT.multiply(value, accuracy)

    whole = int(value.to_integral_value(rounding=decimal.ROUND_FLOOR, context=CONTEXT))
    value = CONTEXT.subtract(value, Decimal(whole))

    if value < max_error:
        return Rational(sign * whole, 1)
    if 1 - max_error < value:
        return Rational(sign * (whole + 1), 1)

    lower_n, lower_d = 0, 1
    upper_n, upper_d = 1, 1
    while True:
        middle_n = lower_n + upper_n
        middle_d = lower_d + upper_d
        if max_denominator is not None and middle_d > max_denominator:
            return None
        if middle_d * (value + max_error) < middle_n:
            upper_n, upper_d = middle_n, middle_d
        elif middle_n < (value - max_error) * middle_d:
            lower_n, lower_d = middle_n, middle_d
        else:
            return Rational(sign * (whole * middle_d + middle_n), middle_d)
