"""Compiled node trees: opaque, but quick to evaluate repeatedly.

Compiling a structured tree turns every node into a closure which calls the
closures of its children, discarding the tree's structure. The result is
parameterised on one variable, whose value is passed down through the
closures, which makes compiled nodes a good fit for sampling a function many
times, as plotting does.
"""

from __future__ import annotations

from typing import Callable

from . import structured as st
from .evaluate import Evaluable, EvaluationSettings
from .number import Number
from .types import InvariantError, MathsError, MathsErrorKind

CompiledFunction = Callable[[Number], Number]


def _missing_variable(_param: Number) -> Number:
    raise MathsError(MathsErrorKind.MISSING_VARIABLE)


def _binary(
    left: CompiledFunction,
    right: CompiledFunction,
    operation: Callable[[Number, Number], Number],
) -> CompiledFunction:
    return lambda n: operation(left(n), right(n))


def _compile(
    node: st.StructuredNode, param_var: str | None, settings: EvaluationSettings
) -> CompiledFunction:
    if isinstance(node, st.NumberNode):
        value = node.value
        return lambda n: value
    if isinstance(node, st.Variable):
        if node.name == param_var:
            return lambda n: n
        return _missing_variable
    if isinstance(node, st.Parentheses):
        return _compile(node.inner, param_var, settings)
    if isinstance(node, st.Sqrt):
        inner = _compile(node.inner, param_var, settings)
        return lambda n: inner(n).sqrt()
    if isinstance(node, st.Power):
        base = _compile(node.base, param_var, settings)
        exp = _compile(node.exp, param_var, settings)
        return lambda n: base(n).checked_pow(exp(n))
    if isinstance(node, st.Add):
        return _binary(
            _compile(node.left, param_var, settings),
            _compile(node.right, param_var, settings),
            Number.checked_add,
        )
    if isinstance(node, st.Subtract):
        return _binary(
            _compile(node.left, param_var, settings),
            _compile(node.right, param_var, settings),
            Number.checked_sub,
        )
    if isinstance(node, st.Multiply):
        return _binary(
            _compile(node.left, param_var, settings),
            _compile(node.right, param_var, settings),
            Number.checked_mul,
        )
    if isinstance(node, st.Divide):
        return _binary(
            _compile(node.left, param_var, settings),
            _compile(node.right, param_var, settings),
            Number.checked_div,
        )
    if isinstance(node, st.FunctionCall):
        function = node.function
        args = [_compile(arg, param_var, settings) for arg in node.args]
        return lambda n: function.evaluate([arg(n) for arg in args], settings)
    raise InvariantError(f"cannot compile {type(node).__name__}")


class CompiledNode(Evaluable):
    """A compiled expression, optionally parameterised on one variable.

    Example:
        >>> node = CompiledNode.from_structured(parse("2x+1"), "x")
        >>> node.evaluate_raw(Number.from_int(3))
        Rational(numerator=7, denominator=1)
    """

    def __init__(self, func: CompiledFunction, param_var: str | None = None):
        self.func = func
        # Only kept to validate substitute()
        self.param_var = param_var

    @staticmethod
    def from_structured(
        node: st.StructuredNode,
        param_var: str | None = None,
        settings: EvaluationSettings | None = None,
    ) -> CompiledNode:
        """Compile a structured tree.

        Args:
            node: Tree to compile
            param_var: Variable replaced by the parameter of evaluate_raw
            settings: Evaluation settings captured for function calls

        Returns:
            The compiled node. Variables other than ``param_var`` raise
            MISSING_VARIABLE when evaluated, not when compiled.
        """
        settings = settings if settings is not None else EvaluationSettings()
        return CompiledNode(_compile(node, param_var, settings), param_var)

    def evaluate_raw(self, param: Number) -> Number:
        """Evaluate with ``param`` in place of the parameter variable.

        Without a parameter variable, pass any value.
        """
        return self.func(param)

    def evaluate(self, settings: EvaluationSettings | None = None) -> Number:
        if self.param_var is not None:
            raise MathsError(MathsErrorKind.MISSING_VARIABLE)
        return self.func(Number.zero())

    def substitute(self, variable: str, value: Number) -> CompiledNodeSubstituted:
        if variable != self.param_var:
            raise InvariantError(
                f"cannot substitute {variable} in node which was compiled for {self.param_var!r}"
            )
        return CompiledNodeSubstituted(self, value)


class CompiledNodeSubstituted(Evaluable):
    """A compiled node together with its parameter value.

    This may be evaluated, but not substituted again.
    """

    def __init__(self, node: CompiledNode, value: Number):
        self.node = node
        self.value = value

    def evaluate(self, settings: EvaluationSettings | None = None) -> Number:
        return self.node.evaluate_raw(self.value)

    def substitute(self, variable: str, value: Number) -> Evaluable:
        raise InvariantError("cannot substitute into a compiled node more than once")
