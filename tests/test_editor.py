"""Tests for the interactive editing session."""

import unittest

import pytest
from util import rat, tokens, uns_list

from rumus_pkg.editor import EditingSession
from rumus_pkg.function import Function
from rumus_pkg.nav import NavPath
from rumus_pkg.types import NodeError, NodeErrorKind, ValidationError
from rumus_pkg.unstructured import Fraction, FunctionCall, Sqrt, UnstructuredNodeRoot


class TestKeyScripts(unittest.TestCase):
    """Test building trees by pressing keys."""

    def setUp(self):
        self.session = EditingSession()

    def test_typing(self):
        self.session.press_keys("12+x")
        self.assertEqual(self.session.root, UnstructuredNodeRoot(tokens("12+x")))
        self.assertEqual(self.session.path, NavPath([4]))

    def test_fraction(self):
        self.session.press_keys("1<frac>2<down>3")
        self.assertEqual(
            self.session.root,
            UnstructuredNodeRoot(uns_list(*tokens("1").items, Fraction(tokens("2"), tokens("3")))),
        )
        self.assertEqual(self.session.render(show_cursor=False), [" 2", "1-", " 3"])

    def test_function_keys(self):
        self.session.press_keys("<gcd>12<right>18")
        self.assertEqual(
            self.session.root,
            UnstructuredNodeRoot(
                uns_list(
                    FunctionCall(
                        Function.GREATEST_COMMON_DENOMINATOR, [tokens("12"), tokens("18")]
                    )
                )
            ),
        )
        self.assertEqual(self.session.evaluate(), rat(6))

    def test_backspace(self):
        self.session.press_keys("123<bs><bs>4")
        self.assertEqual(self.session.root, UnstructuredNodeRoot(tokens("14")))

    def test_clear(self):
        self.session.press_keys("<sqrt>4<clear>")
        self.assertEqual(self.session.root, UnstructuredNodeRoot())
        self.assertEqual(self.session.path, NavPath())

    def test_unknown_key(self):
        with self.assertRaises(ValidationError) as ctx:
            self.session.press_keys("<tan>")
        self.assertEqual(ctx.exception.code, "UNKNOWN_KEY")

    def test_untypeable_character(self):
        with self.assertRaises(ValidationError) as ctx:
            self.session.press_keys("$")
        self.assertEqual(ctx.exception.code, "INVALID_CHARACTER")


class TestEvaluation(unittest.TestCase):
    """Test upgrading and evaluating a session."""

    def test_evaluate(self):
        session = EditingSession()
        session.press_keys("12+<frac>3<down>4<right>*2")
        self.assertEqual(session.evaluate(), rat(27, 2))

    def test_sqrt(self):
        session = EditingSession()
        session.press_keys("<sqrt>16")
        self.assertEqual(session.root, UnstructuredNodeRoot(uns_list(Sqrt(tokens("16")))))
        self.assertEqual(session.evaluate().to_decimal(), 4)

    def test_incomplete_expression(self):
        session = EditingSession()
        session.press_keys("2+")
        with self.assertRaises(NodeError) as ctx:
            session.evaluate()
        self.assertEqual(ctx.exception.kind, NodeErrorKind.EXPECTED_UNIT)


def test_save_and_load(tmp_path):
    session = EditingSession()
    session.press_keys("1+<frac>x<down>2")
    path = str(tmp_path / "session.rumus")
    session.save(path)

    loaded = EditingSession()
    loaded.load(path)
    assert loaded.root == session.root
    assert loaded.path == NavPath()
    assert loaded.render(show_cursor=False) == session.render(show_cursor=False)


def test_load_invalid_file(tmp_path):
    path = tmp_path / "broken.rumus"
    path.write_bytes(b"\x05")
    session = EditingSession()
    with pytest.raises(ValidationError) as exc_info:
        session.load(str(path))
    assert exc_info.value.code == "INVALID_SESSION_FILE"
    assert session.root == UnstructuredNodeRoot()


class TestReplaceWithResult(unittest.TestCase):
    """Test replacing the tree with its evaluated result."""

    def test_fraction_result(self):
        session = EditingSession()
        session.press_keys("1-7/4<eq>")
        self.assertEqual(
            session.root,
            UnstructuredNodeRoot(uns_list(Fraction(tokens("-3"), tokens("4")))),
        )
        self.assertEqual(session.path, NavPath([1]))

    def test_decimal_result(self):
        session = EditingSession()
        session.press_keys("1.25+0.25<eq>*2")
        self.assertEqual(session.root, UnstructuredNodeRoot(tokens("1.5*2")))
        self.assertEqual(session.evaluate().to_decimal(), 3)

    def test_whole_result(self):
        session = EditingSession()
        session.press_keys("6*7")
        self.assertEqual(session.replace_with_result(), rat(42))
        self.assertEqual(session.root, UnstructuredNodeRoot(tokens("42")))
