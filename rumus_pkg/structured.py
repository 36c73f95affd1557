"""The structured node tree, suited to evaluation.

Structured trees are usually produced by upgrading an unstructured tree, but
can also be built directly. Binary operators take exactly two operands, so
``3+2+4`` is ``Add(Add(3, 2), 4)``. Trees are immutable; operations such as
substitution return new trees.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable

from . import layout as common
from .evaluate import Evaluable, EvaluationSettings
from .function import Function
from .number import Number, Rational
from .render import Glyph, GlyphKind, LayoutBlock, LayoutComputationProperties, Renderer
from .simplified import (
    SimplifiedAdd,
    SimplifiedFunctionCall,
    SimplifiedMultiply,
    SimplifiedNode,
    SimplifiedNumber,
    SimplifiedPower,
    SimplifiedVariable,
)
from .types import MathsError, MathsErrorKind


class StructuredNode(Evaluable):
    """Base class for structured nodes."""

    def children(self) -> list[StructuredNode]:
        return []

    def map_children(self, func: Callable[[StructuredNode], StructuredNode]) -> StructuredNode:
        """Return a copy with ``func`` applied to each direct child."""
        return self

    def add_or_sub(self) -> bool:
        return isinstance(self, (Add, Subtract))

    def mul_or_div(self) -> bool:
        return isinstance(self, (Multiply, Divide))

    def in_parentheses_or_self(self, parens: bool) -> StructuredNode:
        return Parentheses(self) if parens else self

    def disambiguate(self) -> StructuredNode:
        """Return a copy with parentheses added to show the order of operations.

        Parentheses go around operations which mix precedence, like (3+2)*4, and
        around operations which go against the associativity of - and /, like
        3-(3-2). Only this node's own operands are considered. Upgrade the tree
        before calling this.
        """
        return self

    def evaluate(self, settings: EvaluationSettings | None = None) -> Number:
        raise NotImplementedError

    def substitute(self, variable: str, value: Number) -> StructuredNode:
        return self.substitute_variable(variable, NumberNode(value))

    def walk(self, func: Callable[[StructuredNode], None]) -> None:
        """Call ``func`` on this node and every descendant, parents first."""
        func(self)
        for child in self.children():
            child.walk(func)

    def substitute_variable(self, name: str, subst: StructuredNode) -> StructuredNode:
        """Return a copy with every use of variable ``name`` replaced by ``subst``."""
        return self.map_children(lambda child: child.substitute_variable(name, subst))

    def variables(self) -> list[str]:
        """Names of the variables used in this tree, in order of first use."""
        found: list[str] = []

        def collect(node: StructuredNode) -> None:
            if isinstance(node, Variable) and node.name not in found:
                found.append(node.name)

        self.walk(collect)
        return found

    def layout(
        self,
        renderer: Renderer,
        path=None,
        properties: LayoutComputationProperties = LayoutComputationProperties(),
    ) -> LayoutBlock:
        raise NotImplementedError

    def simplify(self) -> SimplifiedNode:
        raise NotImplementedError


def _settings(settings: EvaluationSettings | None) -> EvaluationSettings:
    return settings if settings is not None else EvaluationSettings()


def _layout_decimal(renderer, value, properties) -> LayoutBlock:
    negative = value < 0
    if negative:
        value = -value
    glyphs = [
        Glyph.simple(GlyphKind.POINT) if char == "." else Glyph.digit(int(char))
        for char in format(value, "f")
    ]
    if negative:
        glyphs.insert(0, Glyph.simple(GlyphKind.SUBTRACT))
    return LayoutBlock.layout_horizontal(
        [LayoutBlock.from_glyph(renderer, glyph, properties) for glyph in glyphs]
    )


@dataclass(frozen=True)
class NumberNode(StructuredNode):
    value: Number

    def evaluate(self, settings=None) -> Number:
        return self.value

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        value = self.value
        if isinstance(value, Rational):
            if value.denominator == 1:
                return _layout_decimal(renderer, Decimal(value.numerator), properties)
            return common.layout_fraction(
                NumberNode(Number.from_decimal(value.numerator)),
                NumberNode(Number.from_decimal(value.denominator)),
                renderer,
                None,
                properties,
            )
        return _layout_decimal(renderer, value.to_decimal(), properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedNumber(self.value)


@dataclass(frozen=True)
class Variable(StructuredNode):
    name: str

    def evaluate(self, settings=None) -> Number:
        raise MathsError(MathsErrorKind.MISSING_VARIABLE)

    def substitute_variable(self, name: str, subst: StructuredNode) -> StructuredNode:
        return subst if self.name == name else self

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return LayoutBlock.from_glyph(renderer, Glyph.variable(self.name), properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedVariable(self.name)


@dataclass(frozen=True)
class Sqrt(StructuredNode):
    inner: StructuredNode

    def children(self):
        return [self.inner]

    def map_children(self, func):
        return Sqrt(func(self.inner))

    def evaluate(self, settings=None) -> Number:
        return self.inner.evaluate(_settings(settings)).sqrt()

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return common.layout_sqrt(self.inner, renderer, path, properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedPower(self.inner.simplify(), SimplifiedNumber(Rational(1, 2)))


@dataclass(frozen=True)
class Power(StructuredNode):
    base: StructuredNode
    exp: StructuredNode

    def children(self):
        return [self.base, self.exp]

    def map_children(self, func):
        return Power(func(self.base), func(self.exp))

    def evaluate(self, settings=None) -> Number:
        settings = _settings(settings)
        return self.base.evaluate(settings).checked_pow(self.exp.evaluate(settings))

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return common.layout_power(self.base, self.exp, renderer, path, properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedPower(self.base.simplify(), self.exp.simplify())


@dataclass(frozen=True)
class _BinaryOperation(StructuredNode):
    left: StructuredNode
    right: StructuredNode

    glyph_kind = GlyphKind.ADD

    def children(self):
        return [self.left, self.right]

    def map_children(self, func):
        return type(self)(func(self.left), func(self.right))

    def _operate(self, left: Number, right: Number) -> Number:
        raise NotImplementedError

    def evaluate(self, settings=None) -> Number:
        settings = _settings(settings)
        return self._operate(self.left.evaluate(settings), self.right.evaluate(settings))

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        # Structured trees never carry a cursor
        left = self.left.layout(renderer, None, properties)
        operator = LayoutBlock.from_glyph(
            renderer, Glyph.simple(self.glyph_kind), properties
        ).move_right_of_other(left)
        right = self.right.layout(renderer, None, properties).move_right_of_other(operator)
        return left.merge_along_baseline(operator).merge_along_baseline(right)


class Add(_BinaryOperation):
    glyph_kind = GlyphKind.ADD

    def disambiguate(self):
        return Add(self.left, self.right.in_parentheses_or_self(self.right.add_or_sub()))

    def _operate(self, left, right):
        return left.checked_add(right)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedAdd([self.left.simplify(), self.right.simplify()])


class Subtract(_BinaryOperation):
    glyph_kind = GlyphKind.SUBTRACT

    def disambiguate(self):
        return Subtract(self.left, self.right.in_parentheses_or_self(self.right.add_or_sub()))

    def _operate(self, left, right):
        return left.checked_sub(right)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedAdd([self.left.simplify(), self.right.simplify().negate()])


class Multiply(_BinaryOperation):
    glyph_kind = GlyphKind.MULTIPLY

    def disambiguate(self):
        return Multiply(
            self.left.in_parentheses_or_self(self.left.add_or_sub()),
            self.right.in_parentheses_or_self(
                self.right.add_or_sub() or self.right.mul_or_div()
            ),
        )

    def _operate(self, left, right):
        return left.checked_mul(right)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedMultiply([self.left.simplify(), self.right.simplify()])


class Divide(_BinaryOperation):
    glyph_kind = GlyphKind.DIVIDE

    def disambiguate(self):
        return Divide(
            self.left.in_parentheses_or_self(self.left.add_or_sub()),
            self.right.in_parentheses_or_self(
                self.right.add_or_sub() or self.right.mul_or_div()
            ),
        )

    def _operate(self, left, right):
        return left.checked_div(right)

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return common.layout_fraction(self.left, self.right, renderer, path, properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedMultiply([self.left.simplify(), self.right.simplify().reciprocal()])


@dataclass(frozen=True)
class Parentheses(StructuredNode):
    """Grouping for display only; evaluation passes straight through."""

    inner: StructuredNode

    def children(self):
        return [self.inner]

    def map_children(self, func):
        return Parentheses(func(self.inner))

    def evaluate(self, settings=None) -> Number:
        return self.inner.evaluate(_settings(settings))

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return common.layout_parentheses(self.inner, renderer, path, properties)

    def simplify(self) -> SimplifiedNode:
        return self.inner.simplify()


@dataclass(frozen=True)
class FunctionCall(StructuredNode):
    function: Function
    args: list[StructuredNode] = field(default_factory=list)

    def children(self):
        return list(self.args)

    def map_children(self, func):
        return FunctionCall(self.function, [func(arg) for arg in self.args])

    def evaluate(self, settings=None) -> Number:
        settings = _settings(settings)
        return self.function.evaluate([arg.evaluate(settings) for arg in self.args], settings)

    def layout(self, renderer, path=None, properties=LayoutComputationProperties()):
        return common.layout_function_call(self.function, self.args, renderer, path, properties)

    def simplify(self) -> SimplifiedNode:
        return SimplifiedFunctionCall(self.function, [arg.simplify() for arg in self.args])
