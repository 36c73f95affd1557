"""Renderer which draws node trees as lines of ASCII text."""

from __future__ import annotations

from dataclasses import replace

from .render import (
    Area,
    Glyph,
    GlyphKind,
    Renderer,
    ViewportGlyph,
    ViewportPoint,
)

_SIMPLE_CHARS = {
    GlyphKind.POINT: ".",
    GlyphKind.ADD: "+",
    GlyphKind.SUBTRACT: "-",
    GlyphKind.MULTIPLY: "*",
    GlyphKind.DIVIDE: "/",
    GlyphKind.COMMA: ",",
    GlyphKind.PLACEHOLDER: "X",
}


class AsciiRenderer(Renderer):
    """Draws into ``lines``, one string per row.

    Example:
        >>> renderer = AsciiRenderer()
        >>> renderer.draw_all(root)  # doctest: +SKIP
        >>> renderer.lines
        ['12*34+56*78']
    """

    def __init__(self):
        self.lines: list[str] = []

    def size(self, glyph: Glyph, size_reduction_level: int) -> Area:
        kind = glyph.kind
        if kind is GlyphKind.FUNCTION_NAME:
            return Area(len(glyph.function.render_name), 1)
        if kind is GlyphKind.FRACTION:
            return Area(glyph.inner_width, 1)
        if kind is GlyphKind.SQRT:
            return Area(glyph.inner_area.width + 2, glyph.inner_area.height + 1)
        if kind in (GlyphKind.LEFT_PARENTHESIS, GlyphKind.RIGHT_PARENTHESIS):
            return Area(1, glyph.inner_height)
        if kind is GlyphKind.CURSOR:
            return Area(1, glyph.height)
        return Area.square(1)

    def init(self, size: Area) -> None:
        self.lines = [" " * size.width for _ in range(size.height)]

    def _put_char(self, char: str, point: ViewportPoint) -> None:
        line = self.lines[point.y]
        self.lines[point.y] = line[: point.x] + char + line[point.x + 1 :]

    def draw(self, viewport_glyph: ViewportGlyph) -> None:
        visibility = viewport_glyph.visibility
        glyph = viewport_glyph.glyph.glyph
        point = viewport_glyph.point

        if visibility.clipped:
            if visibility.invisible:
                return
            # Only fraction lines can be drawn partially
            if glyph.kind is not GlyphKind.FRACTION:
                return
            # A one-row line clipped vertically is entirely outside
            if visibility.top_clip or visibility.bottom_clip:
                return
            width = glyph.inner_width
            if visibility.left_clip:
                width -= visibility.left_clip
                point = ViewportPoint(0, point.y)
            if visibility.right_clip:
                width -= visibility.right_clip
            glyph = replace(glyph, inner_width=width)

        kind = glyph.kind
        if kind is GlyphKind.DIGIT:
            self._put_char(str(glyph.number), point)
        elif kind in _SIMPLE_CHARS:
            self._put_char(_SIMPLE_CHARS[kind], point)
        elif kind is GlyphKind.VARIABLE:
            self._put_char(glyph.name, point)
        elif kind is GlyphKind.FUNCTION_NAME:
            for dx, char in enumerate(glyph.function.render_name):
                self._put_char(char, point.dx(dx))
        elif kind is GlyphKind.FRACTION:
            for dx in range(glyph.inner_width):
                self._put_char("-", point.dx(dx))
        elif kind is GlyphKind.LEFT_PARENTHESIS:
            self._draw_parenthesis(point, glyph.inner_height, "(", "/", "\\")
        elif kind is GlyphKind.RIGHT_PARENTHESIS:
            self._draw_parenthesis(point, glyph.inner_height, ")", "\\", "/")
        elif kind is GlyphKind.SQRT:
            inner = glyph.inner_area
            self._put_char("\\", point.dy(inner.height))
            for dy in range(1, inner.height + 1):
                self._put_char("|", point.dx(1).dy(dy))
            self._put_char(".", point.dx(1))
            for dx in range(2, 2 + inner.width):
                self._put_char("-", point.dx(dx))
        elif kind is GlyphKind.CURSOR:
            for dy in range(glyph.height):
                self._put_char("|", point.dy(dy))

    def _draw_parenthesis(
        self, point: ViewportPoint, height: int, single: str, top: str, bottom: str
    ) -> None:
        if height <= 1:
            self._put_char(single, point)
            return
        self._put_char(top, point)
        for dy in range(1, height - 1):
            self._put_char("|", point.dy(dy))
        self._put_char(bottom, point.dy(height - 1))
