"""Type definitions, result dataclasses and error types for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass
class EvalResult:
    """Result of evaluating, simplifying or rendering a mathematical expression."""

    ok: bool
    result: str | None = None
    approx: str | None = None
    fraction: str | None = None
    free_symbols: list[str] | None = None
    rendered: list[str] | None = None
    error: str | None = None
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.result is not None:
            result_dict["result"] = self.result
        if self.approx is not None:
            result_dict["approx"] = self.approx
        if self.fraction is not None:
            result_dict["fraction"] = self.fraction
        if self.free_symbols is not None:
            result_dict["free_symbols"] = self.free_symbols
        if self.rendered is not None:
            result_dict["rendered"] = self.rendered
        if self.error is not None:
            result_dict["error"] = self.error
        if self.error_code is not None:
            result_dict["error_code"] = self.error_code
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r}, error_code={self.error_code!r})"
        parts = [f"ok={self.ok}"]
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.approx is not None:
            parts.append(f"approx={self.approx!r}")
        if self.fraction is not None:
            parts.append(f"fraction={self.fraction!r}")
        if self.free_symbols is not None:
            parts.append(f"free_symbols={self.free_symbols!r}")
        return f"EvalResult({', '.join(parts)})"


class InvariantError(RuntimeError):
    """Raised when an internal contract is broken.

    These indicate a programming error (a bad navigation path, a function called
    with the wrong number of arguments, a double substitution) rather than bad
    user input, so callers are not expected to recover from them.
    """


class NodeErrorKind(Enum):
    """Kinds of failure while upgrading an unstructured tree."""

    UNEXPECTED_TOKENS_AT_END = 1
    POWER_MISSING_BASE = 2
    EXPECTED_UNIT = 3
    CANNOT_UPGRADE_TOKEN = 4
    OVERFLOW = 5


_NODE_ERROR_MESSAGES = {
    NodeErrorKind.UNEXPECTED_TOKENS_AT_END: "syntax error",
    NodeErrorKind.POWER_MISSING_BASE: "no base given for power",
    NodeErrorKind.EXPECTED_UNIT: "syntax error",
    NodeErrorKind.CANNOT_UPGRADE_TOKEN: "internal syntax error",
    NodeErrorKind.OVERFLOW: "numeric overflow",
}


class NodeError(Exception):
    """Raised when an unstructured tree cannot be upgraded into a structured one."""

    def __init__(self, kind: NodeErrorKind):
        self.kind = kind
        self.code = kind.name
        self.message = _NODE_ERROR_MESSAGES[kind]
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NodeError) and other.kind == self.kind

    def __hash__(self) -> int:
        return hash((NodeError, self.kind))


class MathsErrorKind(Enum):
    """Kinds of failure while evaluating or reducing a tree."""

    DIVISION_BY_ZERO = 1
    INVALID_SQRT = 2
    MISSING_VARIABLE = 3
    OVERFLOW = 4
    IMAGINARY = 5


_MATHS_ERROR_MESSAGES = {
    MathsErrorKind.DIVISION_BY_ZERO: "division by zero",
    MathsErrorKind.INVALID_SQRT: "invalid square root",
    MathsErrorKind.MISSING_VARIABLE: "cannot evaluate variable",
    MathsErrorKind.OVERFLOW: "numeric overflow",
    MathsErrorKind.IMAGINARY: "imaginary",
}


class MathsError(Exception):
    """Raised when evaluation, reduction or checked arithmetic fails."""

    def __init__(self, kind: MathsErrorKind):
        self.kind = kind
        self.code = kind.name
        self.message = _MATHS_ERROR_MESSAGES[kind]
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MathsError) and other.kind == self.kind

    def __hash__(self) -> int:
        return hash((MathsError, self.kind))


class ValidationError(Exception):
    """Raised when textual input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
