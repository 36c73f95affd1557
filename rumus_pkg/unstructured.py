"""The unstructured node tree, suited to user input.

Unstructured nodes keep a loose structure: flat lists of tokens wherever
possible, with container nodes only where the layout needs nesting (fractions,
square roots, parentheses, powers and function calls). They cannot be
evaluated directly and must be upgraded to a structured tree first.

This module handles:
- Tokens and container node types
- Resolving a NavPath to the list and index it addresses
- Laying the tree out, including the cursor
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Union

from . import layout as common
from .function import Function
from .number import DecimalNumber, Number, Rational, format_decimal
from .render import (
    Glyph,
    GlyphKind,
    LayoutBlock,
    LayoutComputationProperties,
    Renderer,
)
from .types import InvariantError

if TYPE_CHECKING:
    from .nav import NavPathNavigator
    from .structured import StructuredNode


class TokenKind(Enum):
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    DIGIT = "digit"
    POINT = "."
    VARIABLE = "variable"


_TOKEN_GLYPHS = {
    TokenKind.ADD: GlyphKind.ADD,
    TokenKind.SUBTRACT: GlyphKind.SUBTRACT,
    TokenKind.MULTIPLY: GlyphKind.MULTIPLY,
    TokenKind.DIVIDE: GlyphKind.DIVIDE,
    TokenKind.POINT: GlyphKind.POINT,
}


@dataclass(frozen=True)
class Token:
    """A character-sized item with nothing nested inside it."""

    kind: TokenKind
    digit: int | None = None
    name: str | None = None

    @staticmethod
    def from_char(char: str) -> Token | None:
        """Convert an operator, point or digit character to a Token.

        Any character could name a variable, so this never returns a variable
        token; use Token.variable for those.
        """
        if char.isdigit() and char.isascii():
            return Token(TokenKind.DIGIT, digit=int(char))
        for kind in (TokenKind.ADD, TokenKind.SUBTRACT, TokenKind.MULTIPLY,
                     TokenKind.DIVIDE, TokenKind.POINT):
            if kind.value == char:
                return Token(kind)
        return None

    @staticmethod
    def of_digit(digit: int) -> Token:
        return Token(TokenKind.DIGIT, digit=digit)

    @staticmethod
    def variable(name: str) -> Token:
        return Token(TokenKind.VARIABLE, name=name)

    def to_glyph(self) -> Glyph:
        if self.kind is TokenKind.DIGIT:
            return Glyph.digit(self.digit)
        if self.kind is TokenKind.VARIABLE:
            return Glyph.variable(self.name)
        return Glyph.simple(_TOKEN_GLYPHS[self.kind])

    def __str__(self) -> str:
        if self.kind is TokenKind.DIGIT:
            return str(self.digit)
        if self.kind is TokenKind.VARIABLE:
            return self.name
        return self.kind.value


class UnstructuredNode:
    """Base class for every unstructured node."""

    is_container = True

    def slots(self) -> list[UnstructuredNodeList]:
        """Child lists in slot order, as addressed by a NavPath."""
        raise NotImplementedError

    def navigate_trace(
        self,
        path: NavPathNavigator,
        trace: Callable[[UnstructuredItem], None],
    ) -> tuple[UnstructuredNodeList, int]:
        trace(self)
        if path.here():
            raise InvariantError("navigation path must end on an unstructured node list")

        if not self.is_container:
            raise InvariantError("cannot navigate into a token")
        slot = path.next()
        slots = self.slots()
        if slot >= len(slots):
            raise InvariantError(
                f"index {slot} out of range for {type(self).__name__} navigation"
            )
        return slots[slot].navigate_trace(path.step(), trace)

    def layout(
        self,
        renderer: Renderer,
        path: NavPathNavigator | None,
        properties: LayoutComputationProperties,
    ) -> LayoutBlock:
        raise NotImplementedError

    def upgrade(self) -> StructuredNode:
        """Upgrade a single node; bare tokens cannot be upgraded on their own."""
        from .parser import Parser

        return Parser.upgrade_node(self)


@dataclass
class UnstructuredNodeList:
    """An ordered sequence of unstructured nodes."""

    items: list[UnstructuredNode] = field(default_factory=list)

    def navigate(self, path: NavPathNavigator) -> tuple[UnstructuredNodeList, int]:
        return self.navigate_trace(path, lambda item: None)

    def navigate_trace(
        self,
        path: NavPathNavigator,
        trace: Callable[[UnstructuredItem], None],
    ) -> tuple[UnstructuredNodeList, int]:
        """Follow ``path`` to the list and index it addresses.

        ``trace`` is called with every list and node passed on the way, in order.

        Raises:
            InvariantError: If the path runs out of range or ends on a node
        """
        trace(self)
        if path.here():
            return self, path.next()
        index = path.next()
        if index >= len(self.items):
            raise InvariantError(f"index {index} out of range for list navigation")
        return self.items[index].navigate_trace(path.step(), trace)

    def layout(
        self,
        renderer: Renderer,
        path: NavPathNavigator | None,
        properties: LayoutComputationProperties,
    ) -> LayoutBlock:
        cursor_index = None
        child_paths: list[NavPathNavigator | None] = [None] * len(self.items)
        if path is not None:
            if path.here():
                cursor_index = path.next()
            elif path.next() < len(self.items):
                child_paths[path.next()] = path.step()

        layouts = [
            node.layout(renderer, child_path, properties)
            for node, child_path in zip(self.items, child_paths)
        ]

        if cursor_index is not None:
            # The cursor takes the size of its taller neighbour
            if not layouts:
                match = LayoutBlock.from_glyph(renderer, Glyph.digit(0), properties)
            elif cursor_index == 0:
                match = layouts[0]
            elif cursor_index == len(layouts):
                match = layouts[-1]
            else:
                after = layouts[cursor_index]
                before = layouts[cursor_index - 1]
                match = after if after.area.height > before.area.height else before

            cursor_layout = LayoutBlock.from_glyph(
                renderer, Glyph.cursor(match.area.height), properties
            ).with_baseline(match.baseline)
            layouts.insert(cursor_index, cursor_layout)

        if not layouts:
            layouts.append(
                LayoutBlock.from_glyph(renderer, Glyph.simple(GlyphKind.PLACEHOLDER), properties)
            )

        return LayoutBlock.layout_horizontal(layouts)

    def upgrade(self) -> StructuredNode:
        from .parser import Parser

        return Parser(self.items).parse()

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class TokenNode(UnstructuredNode):
    token: Token

    is_container = False

    def slots(self) -> list[UnstructuredNodeList]:
        return []

    def layout(self, renderer, path, properties):
        return LayoutBlock.from_glyph(renderer, self.token.to_glyph(), properties)


@dataclass
class Sqrt(UnstructuredNode):
    inner: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)

    def slots(self) -> list[UnstructuredNodeList]:
        return [self.inner]

    def layout(self, renderer, path, properties):
        return common.layout_sqrt(self.inner, renderer, path, properties)


@dataclass
class Fraction(UnstructuredNode):
    top: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)
    bottom: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)

    def slots(self) -> list[UnstructuredNodeList]:
        return [self.top, self.bottom]

    def layout(self, renderer, path, properties):
        return common.layout_fraction(self.top, self.bottom, renderer, path, properties)


@dataclass
class Parentheses(UnstructuredNode):
    inner: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)

    def slots(self) -> list[UnstructuredNodeList]:
        return [self.inner]

    def layout(self, renderer, path, properties):
        return common.layout_parentheses(self.inner, renderer, path, properties)


@dataclass
class Power(UnstructuredNode):
    """An exponent; its base is only found when the tree is upgraded."""

    exp: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)

    def slots(self) -> list[UnstructuredNodeList]:
        return [self.exp]

    def layout(self, renderer, path, properties):
        return common.layout_power(None, self.exp, renderer, path, properties)


@dataclass
class FunctionCall(UnstructuredNode):
    function: Function
    args: list[UnstructuredNodeList] = field(default_factory=list)

    @staticmethod
    def new(function: Function) -> FunctionCall:
        """Create a call with one empty list per argument."""
        return FunctionCall(
            function, [UnstructuredNodeList() for _ in range(function.argument_count)]
        )

    def slots(self) -> list[UnstructuredNodeList]:
        return self.args

    def layout(self, renderer, path, properties):
        return common.layout_function_call(self.function, self.args, renderer, path, properties)


UnstructuredItem = Union[UnstructuredNode, UnstructuredNodeList]


def token(char: str) -> TokenNode:
    """Build a token node from an operator, point or digit character."""
    parsed = Token.from_char(char)
    if parsed is None:
        raise ValueError(f"no token for character {char!r}")
    return TokenNode(parsed)


def variable(name: str) -> TokenNode:
    return TokenNode(Token.variable(name))


def _text_to_nodes(text: str) -> list[UnstructuredNode]:
    return [token(char) for char in text]


@dataclass
class UnstructuredNodeRoot:
    """The root of an unstructured tree."""

    root: UnstructuredNodeList = field(default_factory=UnstructuredNodeList)

    @staticmethod
    def from_number(number: Number) -> UnstructuredNodeRoot:
        """Build a tree displaying ``number``.

        Decimals and whole rationals become digit tokens; other rationals
        become a fraction of digit tokens.
        """
        if isinstance(number, DecimalNumber):
            items = _text_to_nodes(format_decimal(number.value))
        elif isinstance(number, Rational) and number.denominator != 1:
            items = [
                Fraction(
                    UnstructuredNodeList(_text_to_nodes(str(number.numerator))),
                    UnstructuredNodeList(_text_to_nodes(str(number.denominator))),
                )
            ]
        else:
            items = _text_to_nodes(str(number))
        return UnstructuredNodeRoot(UnstructuredNodeList(items))

    def layout(
        self,
        renderer: Renderer,
        path: NavPathNavigator | None,
        properties: LayoutComputationProperties,
    ) -> LayoutBlock:
        return self.root.layout(renderer, path, properties)

    def upgrade(self) -> StructuredNode:
        return self.root.upgrade()
