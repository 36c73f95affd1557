"""Tests for upgrading unstructured token lists into structured trees."""

import unittest

from util import dec, rat, render, tokens, uns_list

from rumus_pkg.parser import Parser
from rumus_pkg.structured import Add, Multiply, NumberNode, Parentheses, Variable
from rumus_pkg.types import NodeError, NodeErrorKind
from rumus_pkg.unstructured import Fraction, Power, token, variable
from rumus_pkg.unstructured import Parentheses as UParentheses


class TestUpgrade(unittest.TestCase):
    """Test operator precedence and units."""

    def test_precedence(self):
        """Test that multiplication binds tighter than addition."""
        self.assertEqual(
            tokens("12*34+56*78").upgrade(),
            Add(
                Multiply(NumberNode(rat(12)), NumberNode(rat(34))),
                Multiply(NumberNode(rat(56)), NumberNode(rat(78))),
            ),
        )

    def test_negative_numbers(self):
        """Test that leading minuses fold into the number."""
        self.assertEqual(tokens("-12").upgrade(), NumberNode(rat(-12)))
        self.assertEqual(tokens("----12").upgrade(), NumberNode(rat(12)))
        self.assertEqual(render(tokens("-12").upgrade()), ["-12"])

    def test_minus_after_subtract(self):
        """Test that subtraction and negation are not confused."""
        self.assertEqual(tokens("1--2").upgrade().evaluate(), rat(3))

    def test_negated_container(self):
        """Test that a minus before a non-number multiplies it by -1."""
        tree = uns_list(token("-"), Fraction(tokens("1"), tokens("2"))).upgrade()
        self.assertEqual(tree.evaluate(), rat(-1, 2))


class TestImplicitMultiply(unittest.TestCase):
    """Test that adjacent units multiply."""

    def test_number_and_variable(self):
        self.assertEqual(
            tokens("2x").upgrade(), Multiply(NumberNode(rat(2)), Variable("x"))
        )

    def test_decimal_and_variable(self):
        self.assertEqual(
            tokens("0.5x").upgrade(), Multiply(NumberNode(dec("0.5")), Variable("x"))
        )

    def test_number_and_parentheses(self):
        self.assertEqual(
            uns_list(token("2"), UParentheses(tokens("1+x"))).upgrade(),
            Multiply(
                NumberNode(rat(2)),
                Parentheses(Add(NumberNode(rat(1)), Variable("x"))),
            ),
        )

    def test_variable_run_is_right_associative(self):
        self.assertEqual(
            tokens("xyz+2").upgrade(),
            Add(
                Multiply(Variable("x"), Multiply(Variable("y"), Variable("z"))),
                NumberNode(rat(2)),
            ),
        )


class TestUpgradeErrors(unittest.TestCase):
    """Test the NodeError kinds raised while upgrading."""

    def assert_node_error(self, node_list, kind):
        with self.assertRaises(NodeError) as ctx:
            node_list.upgrade()
        self.assertEqual(ctx.exception.kind, kind)
        self.assertEqual(ctx.exception.code, kind.name)

    def test_power_missing_base(self):
        self.assert_node_error(uns_list(Power(tokens("2"))), NodeErrorKind.POWER_MISSING_BASE)
        self.assert_node_error(
            uns_list(token("1"), token("+"), Power(tokens("2"))),
            NodeErrorKind.POWER_MISSING_BASE,
        )

    def test_expected_unit(self):
        self.assert_node_error(tokens("2+"), NodeErrorKind.EXPECTED_UNIT)
        self.assert_node_error(tokens("*3"), NodeErrorKind.EXPECTED_UNIT)
        self.assert_node_error(uns_list(), NodeErrorKind.EXPECTED_UNIT)

    def test_unexpected_tokens_at_end(self):
        self.assert_node_error(tokens("12.34.56"), NodeErrorKind.UNEXPECTED_TOKENS_AT_END)
        self.assert_node_error(tokens("1.2.3"), NodeErrorKind.UNEXPECTED_TOKENS_AT_END)

    def test_overflow(self):
        self.assert_node_error(tokens("1234512345" * 4), NodeErrorKind.OVERFLOW)

    def test_upgrade_node_on_token(self):
        with self.assertRaises(NodeError) as ctx:
            Parser.upgrade_node(variable("x"))
        self.assertEqual(ctx.exception.kind, NodeErrorKind.CANNOT_UPGRADE_TOKEN)
