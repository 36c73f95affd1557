"""Helpers for building trees and numbers in tests."""

from decimal import Decimal

from rumus_pkg.ascii_renderer import AsciiRenderer
from rumus_pkg.number import DecimalAccuracy, DecimalNumber, Rational
from rumus_pkg.unstructured import (
    Fraction,
    UnstructuredNodeList,
    UnstructuredNodeRoot,
    token,
    variable,
)


def tokens(text: str) -> UnstructuredNodeList:
    """A list of tokens, one per character; letters become variables."""
    return UnstructuredNodeList(
        [variable(char) if char.isalpha() else token(char) for char in text]
    )


def uns_list(*items) -> UnstructuredNodeList:
    return UnstructuredNodeList(list(items))


def render(node, path=None, viewport=None) -> list[str]:
    renderer = AsciiRenderer()
    navigator = path.to_navigator() if path is not None else None
    renderer.draw_all(node, navigator, viewport)
    return renderer.lines


def rat(numerator: int, denominator: int = 1) -> Rational:
    return Rational(numerator, denominator)


def dec(text: str) -> DecimalNumber:
    return DecimalNumber(Decimal(text), DecimalAccuracy.EXACT)


def dec_approx(text: str) -> DecimalNumber:
    return DecimalNumber(Decimal(text), DecimalAccuracy.APPROXIMATION)


def complex_unstructured_expression() -> UnstructuredNodeRoot:
    """Builds this expression:

    ```
          56
       34+--
          78
    12+-----+12
        90
    ```
    """
    return UnstructuredNodeRoot(
        uns_list(
            token("1"),
            token("2"),
            token("+"),
            Fraction(
                uns_list(
                    token("3"),
                    token("4"),
                    token("+"),
                    Fraction(tokens("56"), tokens("78")),
                ),
                tokens("90"),
            ),
            token("+"),
            token("1"),
            token("2"),
        )
    )
