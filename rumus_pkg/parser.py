"""Upgrading unstructured trees, and importing expressions from text.

This module handles:
- The recursive-descent parser which upgrades unstructured node lists into
  structured trees (operator precedence, unary minus, implicit multiplication)
- Input sanitization and validation for text expressions
- Conversion of text such as ``frac(1, 2)+sqrt(x)`` into unstructured trees
- Balancing checks for parentheses
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache

from . import structured as st
from . import unstructured as un
from .config import (
    ALLOWED_CHARS_RE,
    CACHE_SIZE_PARSE,
    FUNCTION_NAMES,
    INT64_MAX,
    MAX_DECIMAL_MANTISSA,
    MAX_DECIMAL_SCALE,
    MAX_INPUT_LENGTH,
    NAME_RE,
)
from .function import Function
from .logging_config import get_logger
from .number import DecimalNumber, Number, Rational
from .types import NodeError, NodeErrorKind, ValidationError
from .unstructured import TokenKind

logger = get_logger("parser")

# Items which start a new unit when they directly follow another one
_IMPLICIT_MULTIPLY_NODES = (un.Fraction, un.Sqrt, un.Parentheses, un.FunctionCall)
_IMPLICIT_MULTIPLY_TOKENS = (TokenKind.VARIABLE, TokenKind.DIGIT)


class Parser:
    """Converts a flat list of unstructured nodes into one structured node.

    Precedence, lowest first: addition and subtraction, then multiplication,
    division and implicit multiplication, then units (numbers, variables and
    containers) with any powers applied to them.
    """

    def __init__(self, items: list[un.UnstructuredNode]):
        self.items = items
        self.index = 0

    def parse(self) -> st.StructuredNode:
        """Parse the whole list.

        Raises:
            NodeError: If the items do not form a valid expression
        """
        try:
            result = self._parse_level1()
            if self.index < len(self.items):
                raise NodeError(NodeErrorKind.UNEXPECTED_TOKENS_AT_END)
        except NodeError as e:
            logger.debug(f"Upgrade failed at item {self.index}: {e.code}")
            raise
        return result

    @staticmethod
    def upgrade_node(node: un.UnstructuredNode) -> st.StructuredNode:
        """Upgrade a single unstructured node on its own.

        Raises:
            NodeError: POWER_MISSING_BASE for a power, CANNOT_UPGRADE_TOKEN for
                a bare token
        """
        if isinstance(node, un.Sqrt):
            return st.Sqrt(node.inner.upgrade())
        if isinstance(node, un.Parentheses):
            return st.Parentheses(node.inner.upgrade())
        if isinstance(node, un.Fraction):
            return st.Divide(node.top.upgrade(), node.bottom.upgrade())
        if isinstance(node, un.FunctionCall):
            return st.FunctionCall(node.function, [arg.upgrade() for arg in node.args])
        if isinstance(node, un.Power):
            raise NodeError(NodeErrorKind.POWER_MISSING_BASE)
        raise NodeError(NodeErrorKind.CANNOT_UPGRADE_TOKEN)

    def _current(self) -> un.UnstructuredNode | None:
        if self.index < len(self.items):
            return self.items[self.index]
        return None

    def _current_token(self) -> TokenKind | None:
        item = self._current()
        if isinstance(item, un.TokenNode):
            return item.token.kind
        return None

    def _advance(self) -> None:
        self.index += 1

    def _parse_level1(self) -> st.StructuredNode:
        out = self._parse_level2()
        while self._current_token() in (TokenKind.ADD, TokenKind.SUBTRACT):
            operator = self._current_token()
            self._advance()
            right = self._parse_level2()
            out = st.Add(out, right) if operator is TokenKind.ADD else st.Subtract(out, right)
        return out

    def _parse_level2(self) -> st.StructuredNode:
        out = self._parse_level3()
        while self._current_token() in (TokenKind.MULTIPLY, TokenKind.DIVIDE):
            operator = self._current_token()
            self._advance()
            right = self._parse_level3()
            out = st.Multiply(out, right) if operator is TokenKind.MULTIPLY else st.Divide(out, right)
        return out

    def _parse_level3(self) -> st.StructuredNode:
        # Each leading minus flips the sign
        negative = False
        while self._current_token() is TokenKind.SUBTRACT:
            self._advance()
            negative = not negative

        item = self._current()
        kind = self._current_token()
        if kind in (TokenKind.DIGIT, TokenKind.POINT):
            unit = st.NumberNode(self._parse_number())
        elif kind is TokenKind.VARIABLE:
            unit = st.Variable(item.token.name)
            self._advance()
        elif isinstance(item, un.Power):
            raise NodeError(NodeErrorKind.POWER_MISSING_BASE)
        elif isinstance(item, _IMPLICIT_MULTIPLY_NODES):
            unit = Parser.upgrade_node(item)
            self._advance()
        else:
            raise NodeError(NodeErrorKind.EXPECTED_UNIT)

        while isinstance(self._current(), un.Power):
            unit = st.Power(unit, self._current().exp.upgrade())
            self._advance()

        if negative:
            if isinstance(unit, st.NumberNode):
                unit = st.NumberNode(-unit.value)
            else:
                unit = st.Multiply(st.NumberNode(Number.from_int(-1)), unit)

        if self._starts_implicit_multiply():
            unit = st.Multiply(unit, self._parse_level3())
        return unit

    def _starts_implicit_multiply(self) -> bool:
        return (
            isinstance(self._current(), _IMPLICIT_MULTIPLY_NODES)
            or self._current_token() in _IMPLICIT_MULTIPLY_TOKENS
        )

    def _parse_number(self) -> Number:
        """Consume a run of digits, with at most one point.

        Whole literals which fit in 64 bits become rationals; anything with a
        point, or too large for 64 bits, becomes an exact decimal.
        """
        mantissa = 0
        scale = 0
        seen_point = False
        while True:
            kind = self._current_token()
            if kind is TokenKind.DIGIT:
                mantissa = mantissa * 10 + self._current().token.digit
                if seen_point:
                    scale += 1
            elif kind is TokenKind.POINT and not seen_point:
                seen_point = True
            else:
                break
            self._advance()

        if mantissa > MAX_DECIMAL_MANTISSA or scale > MAX_DECIMAL_SCALE:
            raise NodeError(NodeErrorKind.OVERFLOW)
        if not seen_point and mantissa <= INT64_MAX:
            return Rational(mantissa, 1)

        digits = tuple(int(char) for char in str(mantissa))
        return DecimalNumber(Decimal((0, digits, -scale)))


def is_balanced(input_str: str) -> tuple[bool, int | None]:
    """Check if parentheses are balanced. Returns (is_balanced, error_position)."""
    stack: list[int] = []
    for i, char in enumerate(input_str):
        if char == "(":
            stack.append(i)
        elif char == ")":
            if not stack:
                return False, i
            stack.pop()
    if stack:
        return False, stack[0]  # Position of first unmatched
    return True, None


def split_top_level_commas(input_str: str) -> list[str]:
    """Split string by commas that are not inside parentheses."""
    parts: list[str] = []
    current = []
    depth = 0
    for char in input_str:
        if char == "," and depth == 0:
            part = "".join(current).strip()
            if part:
                parts.append(part)
            current = []
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        current.append(char)
    # append last segment
    last = "".join(current).strip()
    if last:
        parts.append(last)
    return parts


def preprocess(input_str: str) -> str:
    """Validate raw text and normalise it for import.

    Raises:
        ValidationError: EMPTY_INPUT, TOO_LONG, INVALID_CHARACTER or
            UNBALANCED_PARENS
    """
    input_str = input_str.strip()
    if not input_str:
        raise ValidationError("Input cannot be empty", "EMPTY_INPUT")
    if len(input_str) > MAX_INPUT_LENGTH:
        raise ValidationError(
            f"Input too long (>{MAX_INPUT_LENGTH} characters)", "TOO_LONG"
        )
    if not ALLOWED_CHARS_RE.match(input_str):
        bad = next(char for char in input_str if not ALLOWED_CHARS_RE.match(char))
        raise ValidationError(f"Invalid character {bad!r} in input", "INVALID_CHARACTER")

    balanced, position = is_balanced(input_str)
    if not balanced:
        raise ValidationError(
            f"Unbalanced parentheses at position {position}", "UNBALANCED_PARENS"
        )

    return input_str.replace("**", "^")


def _matching_paren(text: str, open_index: int) -> int:
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    raise ValidationError(
        f"Unbalanced parentheses at position {open_index}", "UNBALANCED_PARENS"
    )


def _arguments(name: str, inner: str, expected: int) -> list[un.UnstructuredNodeList]:
    parts = split_top_level_commas(inner)
    if len(parts) != expected:
        raise ValidationError(
            f"{name}() takes {expected} argument(s), got {len(parts)}", "BAD_ARGUMENTS"
        )
    return [un.UnstructuredNodeList(_import_items(part)) for part in parts]


def _import_items(text: str) -> list[un.UnstructuredNode]:
    """Convert validated text into a list of unstructured nodes."""
    items: list[un.UnstructuredNode] = []
    i = 0
    while i < len(text):
        char = text[i]

        if char.isspace():
            i += 1
        elif char == "(":
            end = _matching_paren(text, i)
            items.append(un.Parentheses(un.UnstructuredNodeList(_import_items(text[i + 1 : end]))))
            i = end + 1
        elif char == "^":
            i = _import_exponent(text, i + 1, items)
        elif char == ",":
            raise ValidationError(
                f"Unexpected ',' at position {i} outside function arguments", "BAD_ARGUMENTS"
            )
        elif char.isalpha():
            i = _import_name(text, i, items)
        else:
            items.append(un.token(char))
            i += 1
    return items


def _import_exponent(text: str, i: int, items: list[un.UnstructuredNode]) -> int:
    while i < len(text) and text[i].isspace():
        i += 1

    # A run of minus signs negates the exponent, as in x^-2
    signs = []
    while i < len(text) and text[i] == "-":
        signs.append(un.token("-"))
        i += 1

    if i < len(text) and text[i] == "(":
        end = _matching_paren(text, i)
        exp = _import_items(text[i + 1 : end])
        i = end + 1
    elif i < len(text) and (text[i].isdigit() or text[i] == "."):
        start = i
        while i < len(text) and (text[i].isdigit() or text[i] == "."):
            i += 1
        exp = _import_items(text[start:i])
    elif i < len(text) and text[i].isalpha():
        exp = [un.variable(text[i])]
        i += 1
    else:
        raise ValidationError(
            f"'^' at position {i - 1} must be followed by an exponent", "MISSING_EXPONENT"
        )

    if not exp:
        raise ValidationError(f"Empty exponent at position {i}", "MISSING_EXPONENT")
    items.append(un.Power(un.UnstructuredNodeList(signs + exp)))
    return i


def _import_name(text: str, i: int, items: list[un.UnstructuredNode]) -> int:
    name = NAME_RE.match(text, i).group(0)
    after = i + len(name)
    while after < len(text) and text[after].isspace():
        after += 1
    called = after < len(text) and text[after] == "("

    if not called or (len(name) == 1 and name not in FUNCTION_NAMES):
        # Letters are single-character variables, so "xy" is x times y
        items.extend(un.variable(letter) for letter in name)
        return i + len(name)

    end = _matching_paren(text, after)
    inner = text[after + 1 : end]
    if name == "sqrt":
        (arg,) = _arguments(name, inner, 1)
        items.append(un.Sqrt(arg))
    elif name == "frac":
        top, bottom = _arguments(name, inner, 2)
        items.append(un.Fraction(top, bottom))
    elif name in FUNCTION_NAMES:
        function = Function.from_name(name)
        items.append(un.FunctionCall(function, _arguments(name, inner, FUNCTION_NAMES[name])))
    else:
        raise ValidationError(f"Unknown function {name!r}", "UNKNOWN_FUNCTION")
    return end + 1


def text_to_unstructured(text: str) -> un.UnstructuredNodeRoot:
    """Import a text expression as an unstructured tree.

    Args:
        text: Expression such as ``"frac(1,2)+sqrt(x)^2"``

    Returns:
        Root of the imported tree

    Raises:
        ValidationError: If the text is malformed

    Example:
        >>> text_to_unstructured("12+x").root.items[2]
        TokenNode(token=Token(kind=<TokenKind.ADD: '+'>, digit=None, name=None))
    """
    return un.UnstructuredNodeRoot(un.UnstructuredNodeList(_import_items(preprocess(text))))


@lru_cache(maxsize=CACHE_SIZE_PARSE)
def parse(text: str) -> st.StructuredNode:
    """Import text and upgrade it to a structured tree.

    Raises:
        ValidationError: If the text is malformed
        NodeError: If the imported tree does not form a valid expression
    """
    return text_to_unstructured(text).upgrade()
