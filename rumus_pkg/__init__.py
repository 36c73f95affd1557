"""Rumus package: editable expression trees, rendering, evaluation and reduction."""

__all__ = [
    "config",
    "number",
    "unstructured",
    "structured",
    "simplified",
    "compiled",
    "navigation",
    "editor",
    "serialize",
    "parser",
    "cli",
    "types",
    "api",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "evaluate",
    "simplify_expression",
    "render_expression",
    "validate_expression",
    "plot",
    "to_sympy",
]
