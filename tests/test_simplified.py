"""Tests for simplified trees: conversion, flattening, sorting and reduction."""

import unittest

from util import rat, tokens, uns_list

from rumus_pkg.simplified import (
    ReductionStatus,
    SimplifiedAdd,
    SimplifiedMultiply,
    SimplifiedNumber,
    SimplifiedPower,
    SimplifiedVariable,
)
from rumus_pkg.unstructured import Fraction, Parentheses, Power, token, variable


def simplify(node_list):
    return node_list.upgrade().simplify().flatten().sort()


def reduce(node_list):
    node, _ = simplify(node_list).reduce()
    return node


def n(numerator, denominator=1):
    return SimplifiedNumber(rat(numerator, denominator))


def v(name):
    return SimplifiedVariable(name)


def nested_expression():
    """1 + (2 + (3 * (4 * 5) * 6) + (7 + 8)) * 9"""
    return uns_list(
        token("1"),
        token("+"),
        Parentheses(
            uns_list(
                token("2"),
                token("+"),
                Parentheses(
                    uns_list(
                        token("3"),
                        token("*"),
                        Parentheses(tokens("4*5")),
                        token("*"),
                        token("6"),
                    )
                ),
                token("+"),
                Parentheses(tokens("7+8")),
            )
        ),
        token("*"),
        token("9"),
    )


class TestSimplify(unittest.TestCase):
    """Test conversion to simplified trees, with flattening and sorting."""

    def test_sum_is_sorted(self):
        self.assertEqual(simplify(tokens("12+56+34")), SimplifiedAdd([n(12), n(34), n(56)]))

    def test_products_sort_after_numbers(self):
        self.assertEqual(
            simplify(tokens("12+56*2+34")),
            SimplifiedAdd([n(12), n(34), SimplifiedMultiply([n(2), n(56)])]),
        )

    def test_nested_parentheses_flatten(self):
        self.assertEqual(
            simplify(nested_expression()),
            SimplifiedAdd(
                [
                    n(1),
                    SimplifiedMultiply(
                        [
                            n(9),
                            SimplifiedAdd(
                                [
                                    n(2),
                                    n(7),
                                    n(8),
                                    SimplifiedMultiply([n(3), n(4), n(5), n(6)]),
                                ]
                            ),
                        ]
                    ),
                ]
            ),
        )

    def test_subtraction_becomes_negated_addition(self):
        self.assertEqual(
            simplify(tokens("1-5")),
            SimplifiedAdd([n(1), SimplifiedMultiply([n(-1), n(5)])]),
        )

    def test_str(self):
        self.assertEqual(str(simplify(tokens("1-5"))), "1+(-1)*5")


class TestReduce(unittest.TestCase):
    """Test symbolic reduction."""

    def test_numeric_sums(self):
        self.assertEqual(reduce(tokens("12+56+34")), n(102))
        self.assertEqual(reduce(tokens("12+56*2+34")), n(158))
        self.assertEqual(reduce(nested_expression()), n(3394))

    def test_division(self):
        self.assertEqual(reduce(tokens("8/2")), n(4))
        self.assertEqual(reduce(tokens("3/5+2/3+7/4")), n(181, 60))
        self.assertEqual(reduce(uns_list(Fraction(tokens("2"), tokens("3")))), n(2, 3))

    def test_rational_exponent_is_split(self):
        """Test that a^(n/d) becomes (a^n)^(1/d)."""
        tree = uns_list(token("5"), Power(uns_list(Fraction(tokens("2"), tokens("3")))))
        self.assertEqual(reduce(tree), SimplifiedPower(n(25), n(1, 3)))

    def test_like_factors_combine(self):
        tree = uns_list(
            variable("x"),
            token("*"),
            variable("x"),
            Power(tokens("3")),
            token("*"),
            variable("y"),
            Power(tokens("10")),
            token("*"),
            variable("x"),
            token("*"),
            variable("y"),
        )
        self.assertEqual(
            reduce(tree),
            SimplifiedMultiply([SimplifiedPower(v("x"), n(5)), SimplifiedPower(v("y"), n(11))]),
        )

    def test_power_distributes_over_product(self):
        tree = uns_list(Parentheses(tokens("xxy")), Power(tokens("3")))
        self.assertEqual(
            reduce(tree),
            SimplifiedMultiply([SimplifiedPower(v("x"), n(6)), SimplifiedPower(v("y"), n(3))]),
        )

    def test_coefficient_stays_in_product(self):
        tree = uns_list(token("3"), variable("x"), Power(tokens("2")))
        self.assertEqual(
            reduce(tree), SimplifiedMultiply([n(3), SimplifiedPower(v("x"), n(2))])
        )

    def test_like_terms_combine(self):
        tree = uns_list(
            token("2"),
            variable("x"),
            token("+"),
            token("3"),
            variable("x"),
            Power(tokens("2")),
            token("+"),
            token("6"),
            variable("x"),
            Power(tokens("2")),
            token("+"),
            variable("x"),
            token("+"),
            token("7"),
        )
        self.assertEqual(
            reduce(tree),
            SimplifiedAdd(
                [
                    n(7),
                    SimplifiedMultiply([n(3), v("x")]),
                    SimplifiedMultiply([n(9), SimplifiedPower(v("x"), n(2))]),
                ]
            ),
        )

    def test_terms_cancel_to_zero(self):
        self.assertEqual(reduce(tokens("x-x")), n(0))
        self.assertEqual(reduce(tokens("0*x+1")), n(1))

    def test_power_of_power(self):
        tree = uns_list(
            Parentheses(uns_list(variable("x"), Power(tokens("2")))), Power(tokens("3"))
        )
        self.assertEqual(reduce(tree), SimplifiedPower(v("x"), n(6)))


class TestReductionStatus(unittest.TestCase):
    """Test that reduction reports whether anything changed."""

    def test_reduction_is_idempotent(self):
        for text in ("12+56+34", "2x+3x", "xxx", "3x", "x+y"):
            with self.subTest(text=text):
                node, _ = simplify(tokens(text)).reduce()
                again, status = node.reduce()
                self.assertEqual(again, node)
                self.assertEqual(status, ReductionStatus.NO_REDUCTION)

    def test_change_is_reported(self):
        _, status = simplify(tokens("1+2")).reduce()
        self.assertEqual(status, ReductionStatus.PERFORMED_REDUCTION)
        self.assertTrue(status.performed)

    def test_reduce_does_not_mutate(self):
        node = simplify(tokens("1+2"))
        node.reduce()
        self.assertEqual(node, SimplifiedAdd([n(1), n(2)]))
