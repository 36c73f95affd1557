"""Tests for text import and validation."""

import unittest

import pytest
from util import dec, rat, tokens, uns_list

from rumus_pkg.function import Function
from rumus_pkg.parser import (
    is_balanced,
    parse,
    preprocess,
    split_top_level_commas,
    text_to_unstructured,
)
from rumus_pkg.types import NodeError, ValidationError
from rumus_pkg.unstructured import (
    Fraction,
    FunctionCall,
    Parentheses,
    Power,
    Sqrt,
    UnstructuredNodeRoot,
    token,
    variable,
)


class TestPreprocess(unittest.TestCase):
    """Test validation of raw text."""

    def assert_code(self, text, code):
        with self.assertRaises(ValidationError) as ctx:
            preprocess(text)
        self.assertEqual(ctx.exception.code, code)

    def test_empty(self):
        self.assert_code("   ", "EMPTY_INPUT")

    def test_too_long(self):
        self.assert_code("1" * 10001, "TOO_LONG")

    def test_invalid_character(self):
        self.assert_code("2 $ 3", "INVALID_CHARACTER")
        self.assert_code("__import__('os')", "INVALID_CHARACTER")

    def test_unbalanced(self):
        self.assert_code("(1+2", "UNBALANCED_PARENS")
        self.assert_code("1+2)", "UNBALANCED_PARENS")

    def test_double_star_is_power(self):
        self.assertEqual(preprocess(" 2**3 "), "2^3")


class TestTextImport(unittest.TestCase):
    """Test conversion of text to unstructured trees."""

    def imported(self, text):
        return text_to_unstructured(text)

    def test_tokens(self):
        self.assertEqual(self.imported("12 + 3.5"), UnstructuredNodeRoot(tokens("12+3.5")))

    def test_letters_are_variables(self):
        self.assertEqual(self.imported("2xy"), UnstructuredNodeRoot(tokens("2xy")))

    def test_containers(self):
        self.assertEqual(
            self.imported("frac(1,2)+sqrt(4)"),
            UnstructuredNodeRoot(
                uns_list(
                    Fraction(tokens("1"), tokens("2")),
                    token("+"),
                    Sqrt(tokens("4")),
                )
            ),
        )

    def test_parentheses_and_powers(self):
        self.assertEqual(
            self.imported("(1+x)^2"),
            UnstructuredNodeRoot(uns_list(Parentheses(tokens("1+x")), Power(tokens("2")))),
        )
        self.assertEqual(
            self.imported("x^(y+1)"),
            UnstructuredNodeRoot(uns_list(variable("x"), Power(tokens("y+1")))),
        )
        self.assertEqual(
            self.imported("2^x3"),
            UnstructuredNodeRoot(uns_list(token("2"), Power(tokens("x")), token("3"))),
        )

    def test_negative_exponent_without_parentheses(self):
        self.assertEqual(
            self.imported("x^-2"),
            UnstructuredNodeRoot(uns_list(variable("x"), Power(tokens("-2")))),
        )
        self.assertEqual(
            self.imported("2^--y"),
            UnstructuredNodeRoot(uns_list(token("2"), Power(tokens("--y")))),
        )

    def test_function_calls(self):
        self.assertEqual(
            self.imported("gcd(12, 18)"),
            UnstructuredNodeRoot(
                uns_list(
                    FunctionCall(
                        Function.GREATEST_COMMON_DENOMINATOR, [tokens("12"), tokens("18")]
                    )
                )
            ),
        )

    def test_single_letter_before_parentheses_multiplies(self):
        self.assertEqual(
            self.imported("x(1)"),
            UnstructuredNodeRoot(uns_list(variable("x"), Parentheses(tokens("1")))),
        )

    def assert_code(self, text, code):
        with self.assertRaises(ValidationError) as ctx:
            self.imported(text)
        self.assertEqual(ctx.exception.code, code)

    def test_import_errors(self):
        self.assert_code("foo(1)", "UNKNOWN_FUNCTION")
        self.assert_code("gcd(1)", "BAD_ARGUMENTS")
        self.assert_code("sqrt(1,2)", "BAD_ARGUMENTS")
        self.assert_code("1,2", "BAD_ARGUMENTS")
        self.assert_code("2^", "MISSING_EXPONENT")
        self.assert_code("2^()", "MISSING_EXPONENT")
        self.assert_code("2^-", "MISSING_EXPONENT")
        self.assert_code("2^-+1", "MISSING_EXPONENT")


class TestParse(unittest.TestCase):
    """Test import followed by upgrade."""

    def test_evaluates(self):
        self.assertEqual(parse("3/5+2/3+7/4").evaluate(), rat(181, 60))
        self.assertEqual(parse("frac(1,2)+sqrt(16)").evaluate(), dec("4.5"))
        self.assertEqual(parse("2(3+4)").evaluate(), rat(14))
        self.assertEqual(parse("2^10").evaluate(), rat(1024))
        self.assertEqual(parse("2^-1").evaluate(), rat(1, 2))

    def test_upgrade_errors_propagate(self):
        with self.assertRaises(NodeError):
            parse("2+")
        with self.assertRaises(NodeError):
            parse("^2")


def test_is_balanced():
    assert is_balanced("(a(b)c)") == (True, None)
    assert is_balanced("(()") == (False, 0)
    assert is_balanced("())") == (False, 2)


@pytest.mark.parametrize(
    "text,parts",
    [
        ("1,2", ["1", "2"]),
        ("gcd(1,2), 3", ["gcd(1,2)", "3"]),
        ("", []),
    ],
)
def test_split_top_level_commas(text, parts):
    assert split_top_level_commas(text) == parts
