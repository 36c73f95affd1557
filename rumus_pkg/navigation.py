"""Cursor movement and editing over an unstructured tree.

Every operation takes the root, the cursor NavPath (updated in place), the
renderer and an optional Viewport. After moving, the viewport is scrolled just
far enough to keep the cursor visible.
"""

from __future__ import annotations

from .logging_config import get_logger
from .nav import MoveResult, MoveVerticalDirection, NavPath, match_vertical_cursor_points
from .render import CalculatedPoint, Renderer, Viewport
from .types import InvariantError
from .unstructured import (
    Fraction,
    FunctionCall,
    TokenNode,
    UnstructuredItem,
    UnstructuredNode,
    UnstructuredNodeRoot,
)

logger = get_logger("navigation")


def ensure_cursor_visible(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None,
) -> None:
    """Scroll the viewport, if there is one, so that the cursor is inside it.

    Raises:
        InvariantError: If the cursor is clipped on two opposite sides, so no
            scroll position would show it
    """
    if viewport is None:
        return

    visibility = renderer.cursor_visibility(root, path.to_navigator(), viewport)
    if not visibility.clipped:
        return

    offset = viewport.offset
    if visibility.top_clip and visibility.bottom_clip:
        raise InvariantError("cursor does not fit vertically in viewport")
    if visibility.top_clip:
        offset = offset.dy(-visibility.top_clip)
    elif visibility.bottom_clip:
        offset = offset.dy(visibility.bottom_clip)

    if visibility.left_clip and visibility.right_clip:
        raise InvariantError("cursor does not fit horizontally in viewport")
    if visibility.left_clip:
        offset = offset.dx(-visibility.left_clip)
    elif visibility.right_clip:
        offset = offset.dx(visibility.right_clip)

    logger.debug(f"Scrolled viewport from {viewport.offset} to {offset}")
    viewport.offset = offset


def _enclosing_function_call(root: UnstructuredNodeRoot, path: NavPath) -> FunctionCall | None:
    """Return the function call whose argument holds the cursor, if any."""
    outer_path = path.copy()
    outer_path.pop(2)
    outer_list, index = root.root.navigate(outer_path.to_navigator())
    node = outer_list.items[index]
    return node if isinstance(node, FunctionCall) else None


def move_right(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None = None,
) -> None:
    current, index = root.root.navigate(path.to_navigator())

    if index == len(current.items):
        if not path.root():
            call = _enclosing_function_call(root, path)
            argument = path[len(path) - 2]
            if call is not None and argument < len(call.args) - 1:
                # Hop to the start of the next argument
                path.pop(2)
                path.push(argument + 1)
                path.push(0)
                ensure_cursor_visible(root, path, renderer, viewport)
                return

            # Leave the list and its container, then step past the container
            path.pop(2)
            path.offset(1)
    elif isinstance(current.items[index], TokenNode):
        path.offset(1)
    else:
        path.push(0)
        path.push(0)

    ensure_cursor_visible(root, path, renderer, viewport)


def move_left(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None = None,
) -> None:
    current, index = root.root.navigate(path.to_navigator())

    if index == 0:
        if not path.root():
            call = _enclosing_function_call(root, path)
            argument = path[len(path) - 2]
            if call is not None and argument > 0:
                # Hop to the end of the previous argument
                path.pop(2)
                path.push(argument - 1)
                path.push(len(call.args[argument - 1]))
                ensure_cursor_visible(root, path, renderer, viewport)
                return

            # The index already sits before the container
            path.pop(2)
    else:
        path.offset(-1)
        left = current.items[index - 1]
        if isinstance(left, FunctionCall):
            # TODO: handle functions with no arguments once one exists
            path.push(len(left.args) - 1)
            path.push(len(left.args[-1]))
        elif not isinstance(left, TokenNode):
            first_slot = left.slots()[0]
            path.push(0)
            path.push(len(first_slot))

    ensure_cursor_visible(root, path, renderer, viewport)


def nav_node_list(root: UnstructuredNodeRoot, path: NavPath) -> list[UnstructuredNode | None]:
    """Return the node at each element of the path, or None where it is a list."""
    items: list[UnstructuredItem] = []
    root.root.navigate_trace(path.to_navigator(), items.append)
    return [item if isinstance(item, UnstructuredNode) else None for item in items]


def nav_nodes_outwards(
    root: UnstructuredNodeRoot, path: NavPath
) -> list[tuple[int, int, UnstructuredNode]]:
    """List the nodes along the path from the cursor outwards.

    Each entry is ``(index, reverse_index, node)``: ``index`` is the node's
    position in the path and ``reverse_index`` counts from the path's end.
    """
    nodes = nav_node_list(root, path)
    result = []
    for reverse_index, node in enumerate(reversed(nodes)):
        if node is not None:
            result.append((len(nodes) - reverse_index - 1, reverse_index, node))
    return result


def move_vertically(
    root: UnstructuredNodeRoot,
    path: NavPath,
    direction: MoveVerticalDirection,
    renderer: Renderer,
    viewport: Viewport | None = None,
) -> MoveResult:
    """Move the cursor between the top and bottom of the nearest fraction.

    In a square root at the top of a fraction, moving down should still reach
    the bottom of that fraction, so the whole path is searched from the inside
    out.
    """
    if direction is MoveVerticalDirection.UP:
        allowing_slot, target_slot = 1, 0
    else:
        allowing_slot, target_slot = 0, 1

    moved_within = False
    for index, reverse_index, node in nav_nodes_outwards(root, path):
        if isinstance(node, Fraction) and path[index] == allowing_slot:
            match_points = match_vertical_cursor_points(
                renderer, node.top, node.bottom, direction
            )
            new_index = match_points[path[index + 1]]

            path.pop(reverse_index + 1)
            path.push(target_slot)
            path.push(new_index)
            moved_within = True
            break

    ensure_cursor_visible(root, path, renderer, viewport)
    return MoveResult.MOVED_WITHIN if moved_within else MoveResult.MOVED_OUT


def move_up(root, path, renderer, viewport=None) -> MoveResult:
    return move_vertically(root, path, MoveVerticalDirection.UP, renderer, viewport)


def move_down(root, path, renderer, viewport=None) -> MoveResult:
    return move_vertically(root, path, MoveVerticalDirection.DOWN, renderer, viewport)


def insert(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None,
    node: UnstructuredNode,
) -> None:
    """Insert ``node`` at the cursor.

    The cursor moves past a token, or into the first slot of a container.
    """
    current, index = root.root.navigate(path.to_navigator())
    current.items.insert(index, node)

    if isinstance(node, TokenNode):
        path.offset(1)
    else:
        path.push(0)
        path.push(0)

    ensure_cursor_visible(root, path, renderer, viewport)


def delete(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None = None,
) -> None:
    """Delete the item behind the cursor.

    At the start of a container's list this moves right first, which
    deletes an empty container.
    """
    current, index = root.root.navigate(path.to_navigator())

    if index > 0:
        del current.items[index - 1]
        path.offset(-1)
    elif not path.root():
        move_right(root, path, renderer, viewport)
        delete(root, path, renderer, viewport)

    ensure_cursor_visible(root, path, renderer, viewport)


def clear(
    root: UnstructuredNodeRoot,
    path: NavPath,
    renderer: Renderer,
    viewport: Viewport | None = None,
) -> None:
    """Remove everything, and reset the cursor and viewport."""
    root.root.items = []
    path.path = [0]
    if viewport is not None:
        viewport.offset = CalculatedPoint(0, 0)
