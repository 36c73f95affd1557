"""Layouts shared by the unstructured and structured trees.

Each function takes the child trees, the renderer, an optional cursor
navigator and the layout properties, and returns a LayoutBlock. Children
only need a ``layout(renderer, path, properties)`` method.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .render import (
    Glyph,
    GlyphKind,
    LayoutBlock,
    LayoutBlockSpecial,
    LayoutComputationProperties,
    MergeBaseline,
    Renderer,
)
from .types import InvariantError

if TYPE_CHECKING:
    from .function import Function
    from .nav import NavPathNavigator


def _step_into_slot(path: NavPathNavigator | None, slot: int) -> NavPathNavigator | None:
    if path is None:
        return None
    return path.step_if_next(slot)


def layout_sqrt(
    inner: Any,
    renderer: Renderer,
    path: NavPathNavigator | None,
    properties: LayoutComputationProperties,
) -> LayoutBlock:
    inner_layout = inner.layout(renderer, _step_into_slot(path, 0), properties)
    symbol_layout = LayoutBlock.from_glyph(renderer, Glyph.sqrt(inner_layout.area), properties)

    # The contents sit in the bottom right of the symbol, less the padding
    x_offset = (
        symbol_layout.area.width - inner_layout.area.width - renderer.square_root_padding()
    )
    y_offset = symbol_layout.area.height - inner_layout.area.height

    return symbol_layout.merge_in_place(
        inner_layout.offset(x_offset, y_offset), MergeBaseline.OTHER_AS_BASELINE
    )


def layout_fraction(
    top: Any,
    bottom: Any,
    renderer: Renderer,
    path: NavPathNavigator | None,
    properties: LayoutComputationProperties,
) -> LayoutBlock:
    top_path = bottom_path = None
    if path is not None:
        if path.next() == 0:
            top_path = path.step()
        elif path.next() == 1:
            bottom_path = path.step()
        else:
            raise InvariantError(f"fraction has no slot {path.next()}")

    top_layout = top.layout(renderer, top_path, properties)
    bottom_layout = bottom.layout(renderer, bottom_path, properties)

    line_width = max(top_layout.area.width, bottom_layout.area.width)
    line_layout = LayoutBlock.from_glyph(
        renderer, Glyph.fraction(line_width), properties
    ).move_below_other(top_layout)
    bottom_layout = bottom_layout.move_below_other(line_layout)

    return top_layout.merge_along_vertical_centre(
        line_layout, MergeBaseline.OTHER_AS_BASELINE
    ).merge_along_vertical_centre(bottom_layout, MergeBaseline.SELF_AS_BASELINE)


def _bracket(
    inner_layout: LayoutBlock, renderer: Renderer, properties: LayoutComputationProperties
) -> tuple[LayoutBlock, LayoutBlock]:
    height = inner_layout.area.height
    left = LayoutBlock.from_glyph(renderer, Glyph.left_parenthesis(height), properties)
    right = LayoutBlock.from_glyph(renderer, Glyph.right_parenthesis(height), properties)
    return (
        left.with_baseline(inner_layout.baseline),
        right.with_baseline(inner_layout.baseline),
    )


def layout_parentheses(
    inner: Any,
    renderer: Renderer,
    path: NavPathNavigator | None,
    properties: LayoutComputationProperties,
) -> LayoutBlock:
    inner_layout = inner.layout(renderer, _step_into_slot(path, 0), properties)
    left, right = _bracket(inner_layout, renderer, properties)
    return LayoutBlock.layout_horizontal([left, inner_layout, right])


def layout_power(
    base: Any | None,
    exp: Any,
    renderer: Renderer,
    path: NavPathNavigator | None,
    properties: LayoutComputationProperties,
) -> LayoutBlock:
    """Lay out a power.

    Without a base (the unstructured form) the exponent is returned flagged as
    a high-precedence superscript, and layout_horizontal attaches it to the
    item on its left. With a base, the base is moved down by the exponent's
    height and the exponent right by the base's width::

          67
          --
          8
        45
    """
    if base is None:
        exp_layout = exp.layout(renderer, _step_into_slot(path, 0), properties.reduce_size())
        return exp_layout.with_special(
            LayoutBlockSpecial(baseline_merge_with_high_precedence=True, superscript=True)
        )

    # Structured trees carry no cursor
    base_layout = base.layout(renderer, None, properties)
    exp_layout = exp.layout(renderer, None, properties.reduce_size())

    base_layout = base_layout.offset(0, exp_layout.area.height)
    exp_layout = exp_layout.offset(base_layout.area.width, 0)
    return base_layout.merge_in_place(exp_layout, MergeBaseline.SELF_AS_BASELINE)


def layout_function_call(
    function: Function,
    args: list[Any],
    renderer: Renderer,
    path: NavPathNavigator | None,
    properties: LayoutComputationProperties,
) -> LayoutBlock:
    arg_layouts = []
    for i, arg in enumerate(args):
        if i > 0:
            arg_layouts.append(
                LayoutBlock.from_glyph(renderer, Glyph.simple(GlyphKind.COMMA), properties)
            )
        arg_layouts.append(arg.layout(renderer, _step_into_slot(path, i), properties))
    joined = LayoutBlock.layout_horizontal(arg_layouts)

    name_layout = LayoutBlock.from_glyph(renderer, Glyph.function_name(function), properties)
    left, right = _bracket(joined, renderer, properties)
    return LayoutBlock.layout_horizontal([name_layout, left, joined, right])
