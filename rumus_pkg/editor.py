"""Interactive editing session: a tree, its cursor and its viewport.

The session is what a calculator front end drives. Key presses insert nodes
or move the cursor, and the tree can be rendered, upgraded and evaluated at
any point.
"""

from __future__ import annotations

import re

from . import navigation
from .ascii_renderer import AsciiRenderer
from .evaluate import EvaluationSettings
from .function import Function
from .logging_config import get_logger
from .nav import MoveResult, NavPath
from .number import Number
from .render import Renderer, Viewport
from .serialize import deserialize, serialize
from .structured import StructuredNode
from .types import ValidationError
from .unstructured import (
    Fraction,
    FunctionCall,
    Parentheses,
    Power,
    Sqrt,
    Token,
    TokenNode,
    UnstructuredNode,
    UnstructuredNodeRoot,
)

logger = get_logger("editor")

KEY_SCRIPT_RE = re.compile(r"<([a-z]+)>|(\S)")

# Named keys which insert a new container
_CONTAINER_KEYS = {
    "frac": Fraction,
    "sqrt": Sqrt,
    "pow": Power,
    "paren": Parentheses,
}


class EditingSession:
    """An unstructured tree being edited, with a cursor.

    Example:
        >>> session = EditingSession()
        >>> session.press_keys("12+<frac>3<down>4")
        >>> session.render(show_cursor=False)
        ['   3', '12+-', '   4']
    """

    def __init__(self, renderer: Renderer | None = None, viewport: Viewport | None = None):
        self.root = UnstructuredNodeRoot()
        self.path = NavPath()
        self.renderer = renderer if renderer is not None else AsciiRenderer()
        self.viewport = viewport

    def insert(self, node: UnstructuredNode) -> None:
        navigation.insert(self.root, self.path, self.renderer, self.viewport, node)

    def type_char(self, char: str) -> None:
        """Insert the token for a typed character; letters become variables."""
        token = Token.from_char(char)
        if token is None:
            if not char.isalpha():
                raise ValidationError(f"Cannot type {char!r}", "INVALID_CHARACTER")
            token = Token.variable(char)
        self.insert(TokenNode(token))

    def move_left(self) -> None:
        navigation.move_left(self.root, self.path, self.renderer, self.viewport)

    def move_right(self) -> None:
        navigation.move_right(self.root, self.path, self.renderer, self.viewport)

    def move_up(self) -> MoveResult:
        return navigation.move_up(self.root, self.path, self.renderer, self.viewport)

    def move_down(self) -> MoveResult:
        return navigation.move_down(self.root, self.path, self.renderer, self.viewport)

    def delete(self) -> None:
        navigation.delete(self.root, self.path, self.renderer, self.viewport)

    def clear(self) -> None:
        navigation.clear(self.root, self.path, self.renderer, self.viewport)

    def press(self, key: str) -> None:
        """Handle one named key, such as ``"left"`` or ``"frac"``.

        Raises:
            ValidationError: UNKNOWN_KEY if the key has no action
        """
        actions = {
            "left": self.move_left,
            "right": self.move_right,
            "up": self.move_up,
            "down": self.move_down,
            "bs": self.delete,
            "clear": self.clear,
            "eq": self.replace_with_result,
        }
        if key in actions:
            actions[key]()
        elif key in _CONTAINER_KEYS:
            self.insert(_CONTAINER_KEYS[key]())
        elif Function.from_name(key) is not None:
            self.insert(FunctionCall.new(Function.from_name(key)))
        else:
            raise ValidationError(f"Unknown key <{key}>", "UNKNOWN_KEY")

    def press_keys(self, script: str) -> None:
        """Run a key script: plain characters are typed, ``<name>`` keys pressed."""
        for match in KEY_SCRIPT_RE.finditer(script):
            key, char = match.groups()
            if key is not None:
                self.press(key)
            else:
                self.type_char(char)
        logger.debug(f"Ran key script {script!r}, cursor at {self.path}")

    def render(self, show_cursor: bool = True) -> list[str]:
        path = self.path.to_navigator() if show_cursor else None
        self.renderer.draw_all(self.root, path, self.viewport)
        return list(self.renderer.lines)

    def upgrade(self) -> StructuredNode:
        return self.root.upgrade()

    def evaluate(self, settings: EvaluationSettings | None = None) -> Number:
        return self.upgrade().evaluate(settings)

    def replace_with_result(self, settings: EvaluationSettings | None = None) -> Number:
        """Evaluate the tree and replace it with its result, cursor at the end."""
        value = self.evaluate(settings).correct_inaccuracy()
        self.root = UnstructuredNodeRoot.from_number(value)
        self.path = NavPath([len(self.root.root.items)])
        if self.viewport is not None:
            navigation.ensure_cursor_visible(self.root, self.path, self.renderer, self.viewport)
        return value

    def save(self, path: str) -> None:
        with open(path, "wb") as f:
            f.write(serialize(self.root))

    def load(self, path: str) -> None:
        """Replace the tree with one saved by save(), with the cursor at the start.

        Raises:
            ValidationError: INVALID_SESSION_FILE if the file cannot be decoded
        """
        with open(path, "rb") as f:
            root = deserialize(UnstructuredNodeRoot, f.read())
        if root is None:
            raise ValidationError(f"Could not read session from {path}", "INVALID_SESSION_FILE")
        self.root = root
        self.path = NavPath()
        if self.viewport is not None:
            navigation.ensure_cursor_visible(self.root, self.path, self.renderer, self.viewport)
