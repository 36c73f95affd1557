"""Cursor positions inside an unstructured node tree.

A NavPath is the sequence of indexes taken from the root to reach the cursor.
Indexes alternate between a slot of a node (0 for the top of a fraction, 1 for
the bottom) and a position within the list in that slot. A list position of
``len(items)`` places the cursor after the last item.

For ``12+(23/45)``, with the fraction drawn as a container:

- ``[0]`` is before the ``1``
- ``[3]`` is just before the fraction
- ``[3, 0, 0]`` is at the start of the numerator
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .render import LayoutComputationProperties
from .types import InvariantError

if TYPE_CHECKING:
    from .render import Renderer
    from .unstructured import UnstructuredNodeList


class NavPath:
    """Mutable cursor path; see the module docstring for how indexes are read."""

    def __init__(self, path: list[int] | None = None):
        self.path = list(path) if path is not None else [0]

    def to_navigator(self) -> NavPathNavigator:
        return NavPathNavigator(self, 0)

    def root(self) -> bool:
        """True if the cursor is directly inside the root list."""
        return len(self.path) == 1

    def pop(self, n: int) -> None:
        del self.path[len(self.path) - n :]

    def push(self, index: int) -> None:
        self.path.append(index)

    def offset(self, n: int) -> None:
        """Add n to the final index. Does not enter or leave nodes."""
        new_index = self.path[-1] + n
        if new_index < 0:
            raise InvariantError(f"cursor offset {n} moves before the start of a list")
        self.path[-1] = new_index

    def copy(self) -> NavPath:
        return NavPath(self.path)

    def __len__(self) -> int:
        return len(self.path)

    def __getitem__(self, index: int) -> int:
        return self.path[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NavPath):
            return self.path == other.path
        return NotImplemented

    def __repr__(self) -> str:
        return f"NavPath({self.path!r})"


class NavPathNavigator:
    """Read-only walker over a NavPath, one index at a time."""

    __slots__ = ("path", "index")

    def __init__(self, path: NavPath, index: int = 0):
        self.path = path
        self.index = index

    def next(self) -> int:
        return self.path.path[self.index]

    def here(self) -> bool:
        """True if only one index is left, so the cursor is in this list."""
        return self.index == len(self.path.path) - 1

    def step(self) -> NavPathNavigator:
        return NavPathNavigator(self.path, self.index + 1)

    def step_if_next(self, required_next: int) -> NavPathNavigator | None:
        if self.next() == required_next:
            return self.step()
        return None


class MoveVerticalDirection(Enum):
    UP = "up"
    DOWN = "down"


class MoveResult(Enum):
    """Outcome of a vertical move."""

    MOVED_WITHIN = "moved_within"
    MOVED_OUT = "moved_out"


def match_vertical_cursor_points(
    renderer: Renderer,
    top: UnstructuredNodeList,
    bottom: UnstructuredNodeList,
    direction: MoveVerticalDirection,
) -> list[int]:
    """Map cursor positions between two vertically centred lists.

    Returns a list ``v`` where moving from position ``i`` of the source list in
    ``direction`` lands on position ``v[i]`` of the other list.

    Args:
        renderer: Renderer used to measure each item
        top: Upper list (e.g. a numerator)
        bottom: Lower list (e.g. a denominator)
        direction: UP moves from bottom to top, DOWN from top to bottom
    """
    if direction is MoveVerticalDirection.UP:
        from_list, to_list = bottom, top
    else:
        from_list, to_list = top, bottom

    # Default properties: size reduction is assumed to scale roughly linearly
    properties = LayoutComputationProperties()
    from_widths = [item.layout(renderer, None, properties).area.width for item in from_list.items]
    to_widths = [item.layout(renderer, None, properties).area.width for item in to_list.items]

    from_total, to_total = sum(from_widths), sum(to_widths)
    from_offset, to_offset = 0, 0
    if from_total < to_total:
        from_offset = (to_total - from_total) // 2
    elif from_total > to_total:
        to_offset = (from_total - to_total) // 2

    from_points = [from_offset]
    for width in from_widths:
        from_points.append(from_points[-1] + width)
    to_points = [to_offset]
    for width in to_widths:
        to_points.append(to_points[-1] + width)

    result = []
    for from_point in from_points:
        closest = 0
        for i, to_point in enumerate(to_points):
            if abs(to_point - from_point) < abs(to_points[closest] - from_point):
                closest = i
        result.append(closest)
    return result
