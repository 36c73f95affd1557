"""Compact binary format for unstructured trees, numbers, functions and errors.

Layout:
- Counts are variable-length: every 0xFF byte adds 255 and the final byte,
  below 0xFF, is added to the total (``FF 02`` is 257)
- A list is its item count followed by its items
- A token is one byte with the top bit set; a variable token is followed by
  its name as a single byte
- Other nodes start with a tag: 1 sqrt, 2 fraction, 3 parentheses, 4 power,
  5 function call (function code, argument count, argument lists)
- A number is tag 1 with a 16-byte decimal and an accuracy byte, or tag 2
  with two native-endian signed 64-bit integers

Deserializing returns None for truncated or unrecognised input.
"""

from __future__ import annotations

import struct
from decimal import Decimal
from typing import Callable, Iterator, Optional, TypeVar

from .function import Function
from .logging_config import get_logger
from .number import DecimalAccuracy, DecimalNumber, Number, Rational
from .types import MathsError, MathsErrorKind, NodeError, NodeErrorKind
from .unstructured import (
    Fraction,
    FunctionCall,
    Parentheses,
    Power,
    Sqrt,
    Token,
    TokenKind,
    TokenNode,
    UnstructuredNode,
    UnstructuredNodeList,
    UnstructuredNodeRoot,
)

logger = get_logger("serialize")

T = TypeVar("T")

_TOKEN_CODES = {
    TokenKind.ADD: 1,
    TokenKind.SUBTRACT: 2,
    TokenKind.MULTIPLY: 3,
    TokenKind.DIVIDE: 4,
    TokenKind.POINT: 15,
}
_CODE_TOKENS = {code: kind for kind, code in _TOKEN_CODES.items()}
_DIGIT_CODE = 5
_VARIABLE_CODE = 16
_TOKEN_FLAG = 0x80

_SQRT_TAG = 1
_FRACTION_TAG = 2
_PARENTHESES_TAG = 3
_POWER_TAG = 4
_FUNCTION_CALL_TAG = 5

_DECIMAL_TAG = 1
_RATIONAL_TAG = 2

_SIGN_BIT = 1 << 31
_U32_MASK = 0xFFFFFFFF


class _Truncated(Exception):
    """Raised internally when the input runs out."""


def _next(stream: Iterator[int]) -> int:
    try:
        return next(stream)
    except StopIteration:
        raise _Truncated from None


def _take(stream: Iterator[int], count: int) -> bytes:
    return bytes(_next(stream) for _ in range(count))


# Counts


def serialize_count(value: int) -> bytes:
    if value < 0:
        raise ValueError("cannot serialize negative numbers")
    result = bytearray()
    while value >= 0xFF:
        value -= 0xFF
        result.append(0xFF)
    result.append(value)
    return bytes(result)


def _read_count(stream: Iterator[int]) -> int:
    total = 0
    while True:
        byte = _next(stream)
        total += byte
        if byte != 0xFF:
            return total


# Tokens and nodes


def serialize_token(token: Token) -> bytes:
    if token.kind is TokenKind.DIGIT:
        return bytes([_DIGIT_CODE + token.digit])
    if token.kind is TokenKind.VARIABLE:
        return bytes([_VARIABLE_CODE]) + token.name.encode("latin-1")
    return bytes([_TOKEN_CODES[token.kind]])


def _read_token(first: int, stream: Iterator[int]) -> Token | None:
    if first in _CODE_TOKENS:
        return Token(_CODE_TOKENS[first])
    if _DIGIT_CODE <= first < _DIGIT_CODE + 10:
        return Token.of_digit(first - _DIGIT_CODE)
    if first == _VARIABLE_CODE:
        return Token.variable(bytes([_next(stream)]).decode("latin-1"))
    return None


def serialize_node(node: UnstructuredNode) -> bytes:
    if isinstance(node, TokenNode):
        data = bytearray(serialize_token(node.token))
        data[0] |= _TOKEN_FLAG
        return bytes(data)
    if isinstance(node, Sqrt):
        return bytes([_SQRT_TAG]) + serialize_list(node.inner)
    if isinstance(node, Fraction):
        return bytes([_FRACTION_TAG]) + serialize_list(node.top) + serialize_list(node.bottom)
    if isinstance(node, Parentheses):
        return bytes([_PARENTHESES_TAG]) + serialize_list(node.inner)
    if isinstance(node, Power):
        return bytes([_POWER_TAG]) + serialize_list(node.exp)
    if isinstance(node, FunctionCall):
        data = bytes([_FUNCTION_CALL_TAG, node.function.value, len(node.args)])
        return data + b"".join(serialize_list(arg) for arg in node.args)
    raise TypeError(f"cannot serialize {type(node).__name__}")


def _read_node(stream: Iterator[int]) -> UnstructuredNode | None:
    tag = _next(stream)
    if tag & _TOKEN_FLAG:
        token = _read_token(tag & ~_TOKEN_FLAG, stream)
        return TokenNode(token) if token is not None else None
    if tag == _SQRT_TAG:
        inner = _read_list(stream)
        return Sqrt(inner) if inner is not None else None
    if tag == _FRACTION_TAG:
        top = _read_list(stream)
        bottom = _read_list(stream) if top is not None else None
        return Fraction(top, bottom) if bottom is not None else None
    if tag == _PARENTHESES_TAG:
        inner = _read_list(stream)
        return Parentheses(inner) if inner is not None else None
    if tag == _POWER_TAG:
        exp = _read_list(stream)
        return Power(exp) if exp is not None else None
    if tag == _FUNCTION_CALL_TAG:
        function = _read_function(stream)
        if function is None:
            return None
        args = []
        for _ in range(_next(stream)):
            arg = _read_list(stream)
            if arg is None:
                return None
            args.append(arg)
        return FunctionCall(function, args)
    return None


def serialize_list(node_list: UnstructuredNodeList) -> bytes:
    return serialize_count(len(node_list.items)) + b"".join(
        serialize_node(item) for item in node_list.items
    )


def _read_list(stream: Iterator[int]) -> UnstructuredNodeList | None:
    items = []
    for _ in range(_read_count(stream)):
        item = _read_node(stream)
        if item is None:
            return None
        items.append(item)
    return UnstructuredNodeList(items)


def _read_root(stream: Iterator[int]) -> UnstructuredNodeRoot | None:
    root = _read_list(stream)
    return UnstructuredNodeRoot(root) if root is not None else None


# Numbers


def _decimal_to_bytes(value: Decimal) -> bytes:
    sign, digits, exponent = value.as_tuple()
    mantissa = int("".join(map(str, digits)) or "0")
    if exponent > 0:
        mantissa *= 10**exponent
        exponent = 0
    flags = (-exponent) << 16
    if sign:
        flags |= _SIGN_BIT
    return struct.pack(
        "<IIII",
        flags,
        mantissa & _U32_MASK,
        (mantissa >> 32) & _U32_MASK,
        (mantissa >> 64) & _U32_MASK,
    )


def _decimal_from_bytes(data: bytes) -> Decimal:
    flags, lo, mid, hi = struct.unpack("<IIII", data)
    mantissa = lo | (mid << 32) | (hi << 64)
    scale = (flags >> 16) & 0xFF
    sign = 1 if flags & _SIGN_BIT else 0
    digits = tuple(int(char) for char in str(mantissa))
    return Decimal((sign, digits, -scale))


def serialize_number(number: Number) -> bytes:
    if isinstance(number, DecimalNumber):
        return (
            bytes([_DECIMAL_TAG])
            + _decimal_to_bytes(number.value)
            + bytes([number.accuracy.value])
        )
    return bytes([_RATIONAL_TAG]) + struct.pack("=qq", number.numerator, number.denominator)


def _read_number(stream: Iterator[int]) -> Number | None:
    tag = _next(stream)
    if tag == _DECIMAL_TAG:
        value = _decimal_from_bytes(_take(stream, 16))
        try:
            accuracy = DecimalAccuracy(_next(stream))
        except ValueError:
            return None
        return DecimalNumber(value, accuracy)
    if tag == _RATIONAL_TAG:
        numerator, denominator = struct.unpack("=qq", _take(stream, 16))
        return Rational(numerator, denominator)
    return None


# Functions and errors


def serialize_function(function: Function) -> bytes:
    return bytes([function.value])


def _read_function(stream: Iterator[int]) -> Function | None:
    try:
        return Function(_next(stream))
    except ValueError:
        return None


def serialize_error(error: NodeError | MathsError) -> bytes:
    return bytes([error.kind.value])


def _read_node_error(stream: Iterator[int]) -> NodeError | None:
    try:
        return NodeError(NodeErrorKind(_next(stream)))
    except ValueError:
        return None


def _read_maths_error(stream: Iterator[int]) -> MathsError | None:
    try:
        return MathsError(MathsErrorKind(_next(stream)))
    except ValueError:
        return None


_SERIALIZERS: list[tuple[type, Callable[..., bytes]]] = [
    (UnstructuredNodeRoot, lambda root: serialize_list(root.root)),
    (UnstructuredNodeList, serialize_list),
    (UnstructuredNode, serialize_node),
    (Token, serialize_token),
    (Number, serialize_number),
    (Function, serialize_function),
    (NodeError, serialize_error),
    (MathsError, serialize_error),
    (int, serialize_count),
]

_READERS: dict[type, Callable[[Iterator[int]], Optional[object]]] = {
    UnstructuredNodeRoot: _read_root,
    UnstructuredNodeList: _read_list,
    UnstructuredNode: _read_node,
    Token: lambda stream: _read_token(_next(stream), stream),
    Number: _read_number,
    Function: _read_function,
    NodeError: _read_node_error,
    MathsError: _read_maths_error,
    int: _read_count,
}


def serialize(value) -> bytes:
    """Serialize a tree, list, node, token, number, function, error or count.

    Example:
        >>> serialize(UnstructuredNodeRoot(UnstructuredNodeList([token("1")])))
        b'\\x01\\x86'
    """
    for kind, serializer in _SERIALIZERS:
        if isinstance(value, kind):
            return serializer(value)
    raise TypeError(f"cannot serialize {type(value).__name__}")


def deserialize(kind: type[T], data: bytes) -> T | None:
    """Read a value of ``kind`` from the start of ``data``.

    Args:
        kind: One of the types accepted by serialize, e.g. UnstructuredNodeRoot
        data: Serialized bytes

    Returns:
        The value, or None if the data is truncated or not recognised
    """
    reader = _READERS.get(kind)
    if reader is None:
        raise TypeError(f"cannot deserialize {kind.__name__}")
    try:
        return reader(iter(data))
    except _Truncated:
        logger.debug(f"Truncated input while reading {kind.__name__}")
        return None
