"""Layout and rendering contract shared by every node tree.

This module handles:
- Geometry types (Area, CalculatedPoint, ViewportPoint, Viewport)
- Glyphs, the atomic drawable items, and their sized form
- LayoutBlock, which positions glyphs and merges blocks together
- The Renderer abstract base class implemented by concrete backends

A tree computes its layout by asking the renderer how large each glyph is, then
combining LayoutBlocks. Drawing is a second pass over the finished layout.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from .types import InvariantError

if TYPE_CHECKING:
    from .function import Function
    from .nav import NavPathNavigator


@dataclass(frozen=True)
class Area:
    width: int
    height: int

    @staticmethod
    def square(size: int) -> Area:
        return Area(size, size)


@dataclass(frozen=True)
class CalculatedPoint:
    """A point relative to the top-left of a layout."""

    x: int
    y: int

    def dx(self, delta: int) -> CalculatedPoint:
        return CalculatedPoint(self.x + delta, self.y)

    def dy(self, delta: int) -> CalculatedPoint:
        return CalculatedPoint(self.x, self.y + delta)

    def to_viewport_point(self, viewport: Viewport | None) -> ViewportPoint:
        if viewport is None:
            return ViewportPoint(self.x, self.y)
        return ViewportPoint(self.x - viewport.offset.x, self.y - viewport.offset.y)


@dataclass(frozen=True)
class ViewportPoint:
    """A point relative to the top-left of the viewport; may be negative."""

    x: int
    y: int

    def dx(self, delta: int) -> ViewportPoint:
        return ViewportPoint(self.x + delta, self.y)

    def dy(self, delta: int) -> ViewportPoint:
        return ViewportPoint(self.x, self.y + delta)


@dataclass(frozen=True)
class ViewportVisibility:
    """Visibility of an item within a viewport.

    ``clipped`` is False when the whole item is visible. Otherwise the clip
    amounts say how much of each edge lies outside the viewport, and
    ``invisible`` is True if nothing of the item needs drawing.
    """

    clipped: bool = False
    invisible: bool = False
    top_clip: int = 0
    bottom_clip: int = 0
    left_clip: int = 0
    right_clip: int = 0


VISIBLE = ViewportVisibility()


@dataclass
class Viewport:
    """The visible window onto a layout; ``offset`` scrolls it."""

    size: Area
    offset: CalculatedPoint = field(default_factory=lambda: CalculatedPoint(0, 0))

    def includes_point(self, point: ViewportPoint) -> bool:
        return (
            0 <= point.x < self.size.width
            and 0 <= point.y < self.size.height
        )

    def visibility(self, point: ViewportPoint, area: Area) -> ViewportVisibility:
        left_clip = -point.x if point.x < 0 else 0
        top_clip = -point.y if point.y < 0 else 0

        end_x = point.x + area.width
        right_clip = end_x - self.size.width if end_x > self.size.width else 0
        end_y = point.y + area.height
        bottom_clip = end_y - self.size.height if end_y > self.size.height else 0

        if not (top_clip or bottom_clip or left_clip or right_clip):
            return VISIBLE

        return ViewportVisibility(
            clipped=True,
            invisible=(
                end_x + area.width < 0
                or end_y + area.height < 0
                or point.x > self.size.width
                or point.y > self.size.height
            ),
            top_clip=top_clip,
            bottom_clip=bottom_clip,
            left_clip=left_clip,
            right_clip=right_clip,
        )


class GlyphKind(Enum):
    DIGIT = "digit"
    POINT = "point"
    FUNCTION_NAME = "function_name"
    COMMA = "comma"
    VARIABLE = "variable"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    FRACTION = "fraction"
    LEFT_PARENTHESIS = "left_parenthesis"
    RIGHT_PARENTHESIS = "right_parenthesis"
    SQRT = "sqrt"
    CURSOR = "cursor"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class Glyph:
    """An atomic drawable item.

    Only the payload field relevant to ``kind`` is set: ``number`` for digits,
    ``function`` for function names, ``name`` for variables, ``inner_width``
    for fraction lines, ``inner_height`` for parentheses, ``inner_area`` for
    square roots and ``height`` for the cursor.
    """

    kind: GlyphKind
    number: int | None = None
    function: Function | None = None
    name: str | None = None
    inner_width: int | None = None
    inner_height: int | None = None
    inner_area: Area | None = None
    height: int | None = None

    @staticmethod
    def digit(number: int) -> Glyph:
        return Glyph(GlyphKind.DIGIT, number=number)

    @staticmethod
    def function_name(function: Function) -> Glyph:
        return Glyph(GlyphKind.FUNCTION_NAME, function=function)

    @staticmethod
    def variable(name: str) -> Glyph:
        return Glyph(GlyphKind.VARIABLE, name=name)

    @staticmethod
    def fraction(inner_width: int) -> Glyph:
        return Glyph(GlyphKind.FRACTION, inner_width=inner_width)

    @staticmethod
    def left_parenthesis(inner_height: int) -> Glyph:
        return Glyph(GlyphKind.LEFT_PARENTHESIS, inner_height=inner_height)

    @staticmethod
    def right_parenthesis(inner_height: int) -> Glyph:
        return Glyph(GlyphKind.RIGHT_PARENTHESIS, inner_height=inner_height)

    @staticmethod
    def sqrt(inner_area: Area) -> Glyph:
        return Glyph(GlyphKind.SQRT, inner_area=inner_area)

    @staticmethod
    def cursor(height: int) -> Glyph:
        return Glyph(GlyphKind.CURSOR, height=height)

    @staticmethod
    def simple(kind: GlyphKind) -> Glyph:
        """Glyph without a payload: point, comma, operators, placeholder."""
        return Glyph(kind)

    def to_sized(self, renderer: Renderer, size_reduction_level: int) -> SizedGlyph:
        return SizedGlyph(self, renderer.size(self, size_reduction_level), size_reduction_level)


@dataclass(frozen=True)
class SizedGlyph:
    glyph: Glyph
    area: Area
    size_reduction_level: int = 0


@dataclass(frozen=True)
class ViewportGlyph:
    """A glyph placed relative to the viewport, ready to draw."""

    glyph: SizedGlyph
    point: ViewportPoint
    visibility: ViewportVisibility


@dataclass(frozen=True)
class LayoutBlockSpecial:
    """Rarely used flags controlling how a block merges.

    ``baseline_merge_with_high_precedence`` makes layout_horizontal merge the
    block with its left neighbour before any other merge, so that an exponent
    sits at the height of the item it belongs to. ``superscript`` makes
    merge_along_baseline place the block above the block before it.
    """

    baseline_merge_with_high_precedence: bool = False
    superscript: bool = False


class MergeBaseline(Enum):
    SELF_AS_BASELINE = "self"
    OTHER_AS_BASELINE = "other"


def _glyphs_area(glyphs: list[tuple[SizedGlyph, CalculatedPoint]]) -> Area:
    width = 0
    height = 0
    for glyph, point in glyphs:
        width = max(width, point.x + glyph.area.width)
        height = max(height, point.y + glyph.area.height)
    return Area(width, height)


@dataclass
class LayoutBlock:
    """A set of glyphs at calculated points, with a baseline for alignment."""

    glyphs: list[tuple[SizedGlyph, CalculatedPoint]] = field(default_factory=list)
    baseline: int = 0
    area: Area = field(default_factory=lambda: Area(0, 0))
    special: LayoutBlockSpecial = field(default_factory=LayoutBlockSpecial)

    @staticmethod
    def empty() -> LayoutBlock:
        return LayoutBlock()

    @staticmethod
    def new(glyphs: list[tuple[SizedGlyph, CalculatedPoint]], baseline: int) -> LayoutBlock:
        return LayoutBlock(glyphs, baseline, _glyphs_area(glyphs))

    @staticmethod
    def from_glyph(
        renderer: Renderer, glyph: Glyph, properties: LayoutComputationProperties
    ) -> LayoutBlock:
        """Create a block holding one glyph at the origin, with a centred baseline."""
        sized = glyph.to_sized(renderer, properties.size_reduction_level)
        return LayoutBlock(
            [(sized, CalculatedPoint(0, 0))], sized.area.height // 2, sized.area
        )

    def with_baseline(self, baseline: int) -> LayoutBlock:
        return replace(self, baseline=baseline)

    def with_special(self, special: LayoutBlockSpecial) -> LayoutBlock:
        return replace(self, special=special)

    def offset(self, dx: int, dy: int) -> LayoutBlock:
        glyphs = [(g, p.dx(dx).dy(dy)) for g, p in self.glyphs]
        return LayoutBlock(glyphs, self.baseline + dy, _glyphs_area(glyphs), self.special)

    def merge_along_baseline(self, other: LayoutBlock) -> LayoutBlock:
        if other.special.superscript:
            # Only powers use superscript: self is the base, other the exponent,
            # which has already been moved right of the base
            base = self.offset(0, other.area.height)
            return base.merge_in_place(other, MergeBaseline.SELF_AS_BASELINE)

        # Points cannot go negative, so the lesser-baselined block moves down
        if self.baseline < other.baseline:
            lesser, greater = self, other
        else:
            lesser, greater = other, self
        difference = greater.baseline - lesser.baseline

        glyphs = [(g, p.dy(difference)) for g, p in lesser.glyphs]
        glyphs.extend(greater.glyphs)
        return LayoutBlock.new(glyphs, greater.baseline)

    def merge_along_vertical_centre(
        self, other: LayoutBlock, baseline: MergeBaseline
    ) -> LayoutBlock:
        self_centre = self.area.width // 2
        other_centre = other.area.width // 2
        if self_centre < other_centre:
            thinner, difference, wider = self, other_centre - self_centre, other
        else:
            thinner, difference, wider = other, self_centre - other_centre, self

        glyphs = [(g, p.dx(difference)) for g, p in thinner.glyphs]
        glyphs.extend(wider.glyphs)
        return LayoutBlock.new(glyphs, self._pick_baseline(other, baseline))

    def merge_in_place(self, other: LayoutBlock, baseline: MergeBaseline) -> LayoutBlock:
        """Merge the glyphs of two blocks without moving either."""
        return LayoutBlock.new(
            self.glyphs + other.glyphs, self._pick_baseline(other, baseline)
        )

    def _pick_baseline(self, other: LayoutBlock, baseline: MergeBaseline) -> int:
        if baseline is MergeBaseline.SELF_AS_BASELINE:
            return self.baseline
        return other.baseline

    def move_right_of_other(self, other: LayoutBlock) -> LayoutBlock:
        return self.offset(other.area.width, 0)

    def move_below_other(self, other: LayoutBlock) -> LayoutBlock:
        return self.offset(0, other.area.height)

    @staticmethod
    def layout_horizontal(layouts: list[LayoutBlock]) -> LayoutBlock:
        """Lay blocks out left to right along a shared baseline.

        Blocks flagged ``baseline_merge_with_high_precedence`` are merged into
        their left neighbour first, from left to right.
        """
        layouts = list(layouts)

        # Indexes shift down by one after each merge
        i_offset = 0
        for i, layout in enumerate(list(layouts)):
            i -= i_offset
            if layout.special.baseline_merge_with_high_precedence and i > 0:
                left = layouts[i - 1]
                layouts[i - 1 : i + 1] = [
                    left.merge_along_baseline(layout.move_right_of_other(left))
                ]
                i_offset += 1

        block = LayoutBlock.empty()
        for layout in layouts:
            block = block.merge_along_baseline(layout.move_right_of_other(block))
        return block

    def for_viewport(self, viewport: Viewport | None) -> list[ViewportGlyph]:
        result = []
        for glyph, point in self.glyphs:
            viewport_point = point.to_viewport_point(viewport)
            if viewport is None:
                visibility = VISIBLE
            else:
                visibility = viewport.visibility(viewport_point, glyph.area)
            result.append(ViewportGlyph(glyph, viewport_point, visibility))
        return result


@dataclass(frozen=True)
class LayoutComputationProperties:
    size_reduction_level: int = 0

    def reduce_size(self) -> LayoutComputationProperties:
        return LayoutComputationProperties(self.size_reduction_level + 1)


class Renderer(ABC):
    """Capability contract for drawing node trees.

    Subclasses report glyph sizes and draw glyphs onto a surface; computing
    the layout and walking it are shared.
    """

    @abstractmethod
    def size(self, glyph: Glyph, size_reduction_level: int) -> Area:
        """Return the size the glyph will be drawn at."""

    @abstractmethod
    def init(self, size: Area) -> None:
        """Prepare a draw surface of the given size."""

    @abstractmethod
    def draw(self, glyph: ViewportGlyph) -> None:
        """Draw one glyph at its viewport point."""

    def layout(
        self,
        root: Any,
        path: NavPathNavigator | None,
        properties: LayoutComputationProperties,
    ) -> LayoutBlock:
        return root.layout(self, path, properties)

    def draw_all(
        self,
        root: Any,
        path: NavPathNavigator | None = None,
        viewport: Viewport | None = None,
    ) -> LayoutBlock:
        """Lay out a tree, initialise the surface and draw every glyph."""
        layout = self.layout(root, path, LayoutComputationProperties())
        self.draw_all_by_layout(layout, viewport)
        return layout

    def draw_all_by_layout(self, layout: LayoutBlock, viewport: Viewport | None = None) -> None:
        area = viewport.size if viewport is not None else layout.area
        viewport_glyphs = layout.for_viewport(viewport)

        self.init(area)
        for glyph in viewport_glyphs:
            self.draw(glyph)

    def cursor_visibility(
        self,
        root: Any,
        path: NavPathNavigator,
        viewport: Viewport | None,
    ) -> ViewportVisibility:
        """Return the visibility of the cursor glyph when ``root`` is laid out.

        Raises:
            InvariantError: If the layout contains no cursor
        """
        layout = self.layout(root, path, LayoutComputationProperties())
        for glyph in layout.for_viewport(viewport):
            if glyph.glyph.glyph.kind is GlyphKind.CURSOR:
                return glyph.visibility
        raise InvariantError("cursor was not rendered")

    def square_root_padding(self) -> int:
        """Gap between the right edge of a square root and its contents."""
        return 0
