"""Tests for ASCII rendering of unstructured and structured trees."""

import unittest

from util import complex_unstructured_expression, dec, rat, render, tokens, uns_list

from rumus_pkg.ascii_renderer import AsciiRenderer
from rumus_pkg.nav import NavPath
from rumus_pkg.number import DecimalNumber, Number
from rumus_pkg.render import (
    Area,
    CalculatedPoint,
    GlyphKind,
    LayoutComputationProperties,
    Viewport,
    ViewportPoint,
)
from rumus_pkg.structured import Add, Divide, Multiply, NumberNode, Power
from rumus_pkg.unstructured import (
    Fraction,
    Parentheses,
    UnstructuredNodeRoot,
    token,
)
from rumus_pkg.unstructured import Power as UPower


def num(value: int) -> NumberNode:
    return NumberNode(Number.from_int(value))


class TestAsciiRender(unittest.TestCase):
    """Test rendering of whole trees."""

    def test_flat_structured_tree(self):
        """Test that a tree without nesting renders on one line."""
        tree = Add(Multiply(num(12), num(34)), Multiply(num(56), num(78))).disambiguate()
        self.assertEqual(render(tree), ["12*34+56*78"])

    def test_nested_fractions(self):
        """Test that structured divisions render like unstructured fractions."""
        tree = Add(
            Add(num(12), Divide(Add(num(34), Divide(num(56), num(78))), num(90))),
            num(12),
        ).disambiguate()
        expected = [
            "      56   ",
            "   34+--   ",
            "      78   ",
            "12+-----+12",
            "    90     ",
        ]
        self.assertEqual(render(tree), expected)
        self.assertEqual(render(complex_unstructured_expression()), expected)

    def test_cursor(self):
        """Test that the cursor is drawn inside a nested list."""
        tree = complex_unstructured_expression()
        self.assertEqual(
            render(tree, NavPath([3, 0, 3, 1, 1])),
            [
                "      56    ",
                "   34+---   ",
                "      7|8   ",
                "12+------+12",
                "     90     ",
            ],
        )

    def test_cursor_matches_adjacent_height(self):
        """Test that the cursor takes the height of the item beside it."""
        tree = complex_unstructured_expression()
        self.assertEqual(
            render(tree, NavPath([3, 0, 3])),
            [
                "      |56   ",
                "   34+|--   ",
                "      |78   ",
                "12+------+12",
                "     90     ",
            ],
        )

    def test_rational_renders_as_fraction(self):
        """Test that rationals which aren't whole are drawn as fractions."""
        tree = Add(NumberNode(rat(2, 3)), NumberNode(rat(1)))
        self.assertEqual(render(tree), ["2  ", "-+1", "3  "])


class TestViewport(unittest.TestCase):
    """Test clipping of rendered output to a viewport."""

    def test_no_viewport_shows_everything(self):
        self.assertEqual(render(tokens("12345")), ["12345"])

    def test_large_viewport_pads(self):
        self.assertEqual(
            render(tokens("12345"), viewport=Viewport(Area(10, 3))),
            ["12345     ", "          ", "          "],
        )

    def test_exact_viewport(self):
        self.assertEqual(render(tokens("12345"), viewport=Viewport(Area(5, 1))), ["12345"])

    def test_viewport_at_origin_prunes_right(self):
        self.assertEqual(render(tokens("12345"), viewport=Viewport(Area(2, 1))), ["12"])

    def test_offset_viewport_prunes_both_sides(self):
        viewport = Viewport(Area(2, 1), CalculatedPoint(1, 0))
        self.assertEqual(render(tokens("12345"), viewport=viewport), ["23"])

    def test_viewport_clips_partial_glyphs(self):
        """Test that a glyph which doesn't fully fit is clipped, not dropped."""
        nodes = uns_list(Fraction(tokens("1+2+3+4"), tokens("5+6+7+8")))
        viewport = Viewport(Area(3, 3), CalculatedPoint(2, 0))
        self.assertEqual(render(nodes, viewport=viewport), ["2+3", "---", "6+7"])


class TestParenthesesAndPowers(unittest.TestCase):
    """Test rendering of brackets and exponents."""

    def test_tall_parentheses(self):
        nodes = uns_list(
            token("1"),
            token("+"),
            Parentheses(
                uns_list(
                    Fraction(
                        uns_list(Fraction(tokens("2"), tokens("3"))),
                        uns_list(Parentheses(tokens("4"))),
                    )
                )
            ),
        )
        self.assertEqual(
            render(nodes),
            [
                "  / 2 \\",
                "  | - |",
                "  | 3 |",
                "1+|---|",
                "  \\(4)/",
            ],
        )

    def test_structured_power(self):
        tree = Power(NumberNode(dec("12")), NumberNode(dec("3"))).disambiguate()
        self.assertEqual(render(tree), ["  3", "12 "])

    def test_power_with_fraction_exponent(self):
        tree = Add(
            Add(
                Add(
                    Power(NumberNode(dec("12")), NumberNode(dec("3"))),
                    Power(
                        NumberNode(dec("45")),
                        Divide(NumberNode(dec("67")), NumberNode(dec("8"))),
                    ),
                ),
                NumberNode(dec("9")),
            ),
            num(1),
        ).disambiguate()
        self.assertEqual(
            render(tree),
            [
                "      67    ",
                "      --    ",
                "  3    8    ",
                "12 +45  +9+1",
            ],
        )

    def test_unstructured_power(self):
        tree = UnstructuredNodeRoot(uns_list(token("1"), token("2"), UPower(tokens("34"))))
        self.assertEqual(render(tree), ["  34", "12  "])

    def test_power_after_fraction(self):
        tree = UnstructuredNodeRoot(
            uns_list(
                Fraction(tokens("12"), tokens("34")),
                token("+"),
                token("5"),
                UPower(tokens("67")),
            )
        )
        self.assertEqual(render(tree), ["12  67", "--+5  ", "34    "])

    def test_power_of_parentheses(self):
        tree = UnstructuredNodeRoot(
            uns_list(
                Parentheses(
                    uns_list(Fraction(tokens("12"), tokens("34")), token("+"), token("5"))
                ),
                UPower(tokens("67")),
            )
        )
        self.assertEqual(
            render(tree),
            [
                "      67",
                "/12  \\  ",
                "|--+5|  ",
                "\\34  /  ",
            ],
        )

    def test_stacked_powers(self):
        """Test that each power sits above the one before it."""
        tree = UnstructuredNodeRoot(
            uns_list(
                token("1"),
                token("+"),
                token("2"),
                UPower(tokens("2")),
                UPower(tokens("3")),
                UPower(tokens("4")),
                token("+"),
                token("1"),
            )
        )
        self.assertEqual(
            render(tree),
            [
                "     4  ",
                "    3   ",
                "   2    ",
                "1+2   +1",
            ],
        )
        self.assertEqual(tree.upgrade().evaluate(), rat(16777218))

    def test_fractional_exponents(self):
        tree = UnstructuredNodeRoot(
            uns_list(token("4"), UPower(uns_list(Fraction(tokens("1"), tokens("2")))))
        )
        self.assertEqual(render(tree), [" 1", " -", " 2", "4 "])
        self.assertEqual(tree.upgrade().evaluate(), rat(2))

        tree = UnstructuredNodeRoot(
            uns_list(
                token("8"),
                UPower(uns_list(token("-"), Fraction(tokens("2"), tokens("3")))),
            )
        )
        self.assertEqual(render(tree), ["  2", " --", "  3", "8  "])
        self.assertEqual(tree.upgrade().evaluate(), rat(1, 4))

    def test_inexact_root_is_decimal(self):
        tree = UnstructuredNodeRoot(
            uns_list(token("7"), UPower(uns_list(Fraction(tokens("1"), tokens("2")))))
        )
        self.assertEqual(render(tree), [" 1", " -", " 2", "7 "])
        self.assertIsInstance(tree.upgrade().evaluate(), DecimalNumber)


def test_exponent_has_reduced_size():
    """Only the exponent's glyphs are drawn at a reduced size."""
    tree = UnstructuredNodeRoot(
        uns_list(token("1"), token("+"), token("2"), UPower(tokens("3")))
    ).upgrade()
    block = tree.layout(AsciiRenderer(), None, LayoutComputationProperties())
    for glyph, _ in block.glyphs:
        if glyph.glyph.kind is GlyphKind.DIGIT and glyph.glyph.number == 3:
            assert glyph.size_reduction_level == 1
        else:
            assert glyph.size_reduction_level == 0


def test_power_with_no_base_lays_out():
    """A power without a base can still be drawn while it is being edited."""
    tree = UnstructuredNodeRoot(uns_list(UPower(uns_list())))
    tree.layout(AsciiRenderer(), None, LayoutComputationProperties())


def test_viewport_includes_point():
    viewport = Viewport(Area(4, 2))
    assert viewport.includes_point(ViewportPoint(0, 0))
    assert viewport.includes_point(ViewportPoint(3, 1))
    assert not viewport.includes_point(ViewportPoint(4, 1))
    assert not viewport.includes_point(ViewportPoint(-1, 0))
