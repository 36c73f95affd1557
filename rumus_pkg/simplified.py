"""Simplified node trees, used for symbolic reduction.

A simplified tree has fewer variants than a structured one but the same
meaning: ``1 - 2`` is ``1 + (-1 * 2)`` and ``a / b`` is ``a * b^-1``, so no
subtraction or division nodes are needed. Add and Multiply hold any number of
children, which makes commutative rewrites such as collecting like terms a
matter of sorting and scanning a list.

Typical use::

    node = structured.simplify().flatten().sort()
    node, status = node.reduce()

Nodes are treated as values. ``flatten``, ``sort`` and ``reduce`` all return
new trees rather than changing the receiver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import TYPE_CHECKING

from .number import DecimalNumber, Number, Rational

if TYPE_CHECKING:
    from .function import Function


class ReductionStatus(Enum):
    PERFORMED_REDUCTION = "performed"
    NO_REDUCTION = "none"

    @staticmethod
    def of(changed: bool) -> ReductionStatus:
        return ReductionStatus.PERFORMED_REDUCTION if changed else ReductionStatus.NO_REDUCTION

    @property
    def performed(self) -> bool:
        return self is ReductionStatus.PERFORMED_REDUCTION


class SimplifiedNode:
    """Base class for simplified nodes.

    ``kind_order`` fixes how different variants sort against each other:
    numbers, variables, multiplications, powers, additions, function calls.
    """

    kind_order = 0

    def negate(self) -> SimplifiedNode:
        """Return this node multiplied by -1."""
        return SimplifiedMultiply([SimplifiedNumber(Number.from_int(-1)), self])

    def reciprocal(self) -> SimplifiedNode:
        """Return this node raised to the power -1."""
        return SimplifiedPower(self, SimplifiedNumber(Number.from_int(-1)))

    def flatten(self) -> SimplifiedNode:
        """Merge nested Add and Multiply nodes into their parent.

        For example 1 + (2 + (3 + 4)) + 5 becomes 1 + 2 + 3 + 4 + 5.
        """
        return self

    def sort(self) -> SimplifiedNode:
        """Sort Add and Multiply children throughout the tree."""
        return self

    def reduce(self) -> tuple[SimplifiedNode, ReductionStatus]:
        """Perform mathematical reduction on this tree.

        The result has the same meaning as the original and loses no
        precision beyond what a decimal can represent. Reduction is repeated
        on rewritten nodes until nothing more changes.

        Returns:
            The reduced tree and whether any reduction took place

        Raises:
            MathsError: If number arithmetic fails, e.g. on overflow
        """
        return self, ReductionStatus.NO_REDUCTION

    def compare(self, other: SimplifiedNode) -> int:
        """Three-way comparison under the total order used for sorting."""
        if self.kind_order != other.kind_order:
            return -1 if self.kind_order < other.kind_order else 1
        return self._compare_same_kind(other)

    def _compare_same_kind(self, other: SimplifiedNode) -> int:
        return 0

    def __lt__(self, other: SimplifiedNode) -> bool:
        return self.compare(other) < 0


sort_key = cmp_to_key(lambda a, b: a.compare(b))


def _compare_values(left, right) -> int:
    if left < right:
        return -1
    if right < left:
        return 1
    return 0


def _compare_lists(left: list[SimplifiedNode], right: list[SimplifiedNode]) -> int:
    for a, b in zip(left, right):
        result = a.compare(b)
        if result:
            return result
    return _compare_values(len(left), len(right))


def _wrap(node: SimplifiedNode) -> str:
    text = str(node)
    if isinstance(node, (SimplifiedNumber, SimplifiedVariable, SimplifiedFunctionCall)):
        if not text.startswith("-"):
            return text
    return f"({text})"


@dataclass
class SimplifiedNumber(SimplifiedNode):
    value: Number

    kind_order = 1

    def _compare_same_kind(self, other):
        return _compare_values(self.value, other.value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class SimplifiedVariable(SimplifiedNode):
    name: str

    kind_order = 2

    def _compare_same_kind(self, other):
        return _compare_values(self.name, other.name)

    def __str__(self) -> str:
        return self.name


@dataclass
class _SimplifiedSequence(SimplifiedNode):
    items: list[SimplifiedNode] = field(default_factory=list)

    def flatten(self):
        result = []
        for item in self.items:
            flattened = item.flatten()
            # Both operations are associative, so nested children can be lifted
            if type(flattened) is type(self):
                result.extend(flattened.items)
            else:
                result.append(flattened)
        return type(self)(result)

    def sort(self):
        return type(self)(sorted((item.sort() for item in self.items), key=sort_key))

    def _compare_same_kind(self, other):
        return _compare_lists(self.items, other.items)

    def _reduce_children(self) -> tuple[list[SimplifiedNode], bool]:
        """Reduce every child, lifting same-kind children and re-sorting on change."""
        changed = False
        children: list[SimplifiedNode] = []
        for item in sorted(self.items, key=sort_key):
            reduced, status = item.reduce()
            if status.performed:
                changed = True
            if type(reduced) is type(self):
                children.extend(reduced.items)
                changed = True
            else:
                children.append(reduced)
        if changed:
            children.sort(key=sort_key)
        return children, changed


def _leading_numbers(items: list[SimplifiedNode]) -> tuple[list[Number], list[SimplifiedNode]]:
    numbers = []
    index = 0
    while index < len(items) and isinstance(items[index], SimplifiedNumber):
        numbers.append(items[index].value)
        index += 1
    return numbers, items[index:]


def _runs(pairs: list[tuple[SimplifiedNode, SimplifiedNode]]):
    """Group adjacent (key, value) pairs whose keys compare equal."""
    run: list[tuple[SimplifiedNode, SimplifiedNode]] = []
    for pair in pairs:
        if run and run[0][0].compare(pair[0]) != 0:
            yield run
            run = []
        run.append(pair)
    if run:
        yield run


class SimplifiedMultiply(_SimplifiedSequence):
    kind_order = 3

    def reduce(self):
        children, changed = self._reduce_children()

        numbers, rest = _leading_numbers(children)
        if numbers:
            if any(number.is_zero() for number in numbers):
                return SimplifiedNumber(Number.zero()), ReductionStatus.PERFORMED_REDUCTION

            product = Number.one()
            for number in numbers:
                product = product.checked_mul(number)

            if product.is_one() and rest:
                children = rest
                changed = True
            elif len(numbers) > 1:
                children = [SimplifiedNumber(product)] + rest
                changed = True

        numbers, rest = _leading_numbers(children)
        combined = self._combine_like_terms(rest)
        if combined is not None:
            node, _ = SimplifiedMultiply(
                [SimplifiedNumber(number) for number in numbers] + combined
            ).reduce()
            return node, ReductionStatus.PERFORMED_REDUCTION

        if not children:
            return SimplifiedNumber(Number.one()), ReductionStatus.PERFORMED_REDUCTION
        if len(children) == 1:
            return children[0], ReductionStatus.PERFORMED_REDUCTION
        return SimplifiedMultiply(children), ReductionStatus.of(changed)

    @staticmethod
    def _combine_like_terms(terms: list[SimplifiedNode]) -> list[SimplifiedNode] | None:
        """Merge factors sharing a base, e.g. x * x^3 into x^4.

        Returns None if no factors were merged.
        """
        dissected = []
        for term in terms:
            if isinstance(term, SimplifiedPower):
                dissected.append((term.base, term.exp, term))
            else:
                dissected.append((term, SimplifiedNumber(Number.one()), term))
        dissected.sort(key=lambda entry: sort_key(entry[0]))

        result = []
        combined = False
        for run in _runs([(base, (exp, term)) for base, exp, term in dissected]):
            if len(run) == 1:
                result.append(run[0][1][1])
                continue
            exponent, _ = SimplifiedAdd([exp for _, (exp, _) in run]).reduce()
            power, _ = SimplifiedPower(run[0][0], exponent).reduce()
            result.append(power)
            combined = True

        return result if combined else None

    def __str__(self) -> str:
        return "*".join(_wrap(item) for item in self.items)


class SimplifiedAdd(_SimplifiedSequence):
    kind_order = 5

    def reduce(self):
        children, changed = self._reduce_children()

        numbers, rest = _leading_numbers(children)
        if numbers:
            total = Number.zero()
            for number in numbers:
                total = total.checked_add(number)

            if total.is_zero() and rest:
                children = rest
                changed = True
            elif len(numbers) > 1:
                children = [SimplifiedNumber(total)] + rest
                changed = True

        numbers, rest = _leading_numbers(children)
        combined = self._combine_like_terms(rest)
        if combined is not None:
            node, _ = SimplifiedAdd(
                [SimplifiedNumber(number) for number in numbers] + combined
            ).reduce()
            return node, ReductionStatus.PERFORMED_REDUCTION

        if not children:
            return SimplifiedNumber(Number.zero()), ReductionStatus.PERFORMED_REDUCTION
        if len(children) == 1:
            return children[0], ReductionStatus.PERFORMED_REDUCTION
        return SimplifiedAdd(children), ReductionStatus.of(changed)

    @staticmethod
    def _dissect(term: SimplifiedNode) -> tuple[SimplifiedNode, Number]:
        if isinstance(term, SimplifiedMultiply) and term.items:
            first = term.items[0]
            if isinstance(first, SimplifiedNumber):
                rest = term.items[1:]
                if len(rest) == 1:
                    return rest[0], first.value
                return SimplifiedMultiply(rest), first.value
        return term, Number.one()

    @staticmethod
    def _combine_like_terms(terms: list[SimplifiedNode]) -> list[SimplifiedNode] | None:
        """Merge terms differing only in coefficient, e.g. 2x + x into 3x.

        Returns None if no terms were merged.
        """
        dissected = []
        for original in terms:
            term, coefficient = SimplifiedAdd._dissect(original)
            dissected.append((term, (coefficient, original)))
        dissected.sort(key=lambda entry: sort_key(entry[0]))

        result = []
        combined = False
        for run in _runs(dissected):
            if len(run) == 1:
                result.append(run[0][1][1])
                continue

            coefficient = Number.zero()
            for _, (value, _) in run:
                coefficient = coefficient.checked_add(value)
            combined = True

            term = run[0][0]
            if coefficient.is_zero():
                continue
            if coefficient.is_one():
                result.append(term)
            elif isinstance(term, SimplifiedMultiply):
                result.append(SimplifiedMultiply([SimplifiedNumber(coefficient)] + term.items))
            else:
                result.append(SimplifiedMultiply([SimplifiedNumber(coefficient), term]))

        return result if combined else None

    def __str__(self) -> str:
        text = ""
        for index, item in enumerate(self.items):
            part = str(item) if isinstance(item, SimplifiedMultiply) else _wrap(item)
            if index and not part.startswith("-"):
                text += "+"
            text += part
        return text


@dataclass
class SimplifiedPower(SimplifiedNode):
    base: SimplifiedNode
    exp: SimplifiedNode

    kind_order = 4

    def flatten(self):
        return SimplifiedPower(self.base.flatten(), self.exp.flatten())

    def sort(self):
        return SimplifiedPower(self.base.sort(), self.exp.sort())

    def _compare_same_kind(self, other):
        return self.base.compare(other.base) or self.exp.compare(other.exp)

    def reduce(self):
        base, base_status = self.base.reduce()
        exp, exp_status = self.exp.reduce()
        changed = base_status.performed or exp_status.performed
        performed = ReductionStatus.PERFORMED_REDUCTION

        exp_value = exp.value if isinstance(exp, SimplifiedNumber) else None

        # a^(n/d) = (a^n)^(1/d)
        if isinstance(exp_value, Rational):
            n, d = exp_value.numerator, exp_value.denominator
            if n != 1 and d != 1:
                node, _ = SimplifiedPower(
                    SimplifiedPower(base, SimplifiedNumber(Rational(n, 1))),
                    SimplifiedNumber(Rational(1, d)),
                ).reduce()
                return node, performed

        if exp_value is not None:
            whole = exp_value.to_whole()
            if whole == 1:
                return base, performed
            if whole == 0:
                return SimplifiedNumber(Number.one()), performed

        if isinstance(base, SimplifiedNumber) and exp_value is not None:
            whole = exp_value.to_whole()
            if whole is not None:
                return SimplifiedNumber(base.value.powi(whole)), performed
            if isinstance(exp_value, DecimalNumber):
                return SimplifiedNumber(base.value.checked_pow(exp_value)), performed
            # A remaining 1/d exponent is a root, which stays as it is

        elif isinstance(base, SimplifiedPower):
            # (x^a)^b = x^(ab)
            new_exp, _ = SimplifiedMultiply([base.exp, exp]).reduce()
            if not _is_split_rational(new_exp):
                node, _ = SimplifiedPower(base.base, new_exp).reduce()
                return node, performed

        elif isinstance(base, SimplifiedMultiply):
            # (ab)^n = a^n * b^n
            node, _ = SimplifiedMultiply(
                [SimplifiedPower(term, exp) for term in base.items]
            ).reduce()
            return node, performed

        # TODO: expand powers of sums, e.g. (a+b)^2 into a^2+2ab+b^2
        return SimplifiedPower(base, exp), ReductionStatus.of(changed)

    def __str__(self) -> str:
        return f"{_wrap(self.base)}^{_wrap(self.exp)}"


def _is_split_rational(node: SimplifiedNode) -> bool:
    """Whether a Power with this exponent would be split into two powers again."""
    if not isinstance(node, SimplifiedNumber) or not isinstance(node.value, Rational):
        return False
    return node.value.numerator != 1 and node.value.denominator != 1


@dataclass
class SimplifiedFunctionCall(SimplifiedNode):
    function: Function
    args: list[SimplifiedNode] = field(default_factory=list)

    kind_order = 6

    def flatten(self):
        return SimplifiedFunctionCall(self.function, [arg.flatten() for arg in self.args])

    def sort(self):
        return SimplifiedFunctionCall(self.function, [arg.sort() for arg in self.args])

    def _compare_same_kind(self, other):
        return _compare_values(self.function.value, other.function.value) or _compare_lists(
            self.args, other.args
        )

    def reduce(self):
        args = []
        changed = False
        for arg in self.args:
            reduced, status = arg.reduce()
            changed = changed or status.performed
            args.append(reduced)
        return SimplifiedFunctionCall(self.function, args), ReductionStatus.of(changed)

    def __str__(self) -> str:
        return f"{self.function.render_name}({','.join(str(arg) for arg in self.args)})"
