"""Centralized configuration for Rumus.

This module defines:
- Decimal precision and range limits for the number model
- Float-inaccuracy correction threshold
- Default evaluation settings (angle unit, float usage)
- Input validation limits and cache sizes for text import
- Plot and viewport dimensions
- Function names and their SymPy counterparts
- Regex patterns for text import

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with RUMUS_)
"""

import os
import re

import sympy as sp

# Version is defined in pyproject.toml [project] section
try:
    import importlib.metadata

    VERSION = importlib.metadata.version("rumus")
except Exception:
    # Fallback if package not installed
    VERSION = "0.1.0"

# Number model
DECIMAL_PRECISION = int(os.getenv("RUMUS_DECIMAL_PRECISION", "28"))  # significant digits
MAX_DECIMAL_SCALE = int(os.getenv("RUMUS_MAX_DECIMAL_SCALE", "28"))  # fractional digits
MAX_DECIMAL_MANTISSA = 2**96 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Length of a run of 0s or 9s treated as floating-point noise
INACCURACY_RUN_LENGTH = int(os.getenv("RUMUS_INACCURACY_RUN_LENGTH", "10"))

# Evaluation defaults
DEFAULT_ANGLE_UNIT = os.getenv("RUMUS_ANGLE_UNIT", "degree")  # "degree", "radian"
USE_FLOATS = os.getenv("RUMUS_USE_FLOATS", "false").lower() == "true"
OUTPUT_PRECISION = int(os.getenv("RUMUS_OUTPUT_PRECISION", "12"))

# Stern-Brocot search tolerance, relative to the value being approximated
FRACTION_ACCURACY = float(os.getenv("RUMUS_FRACTION_ACCURACY", "1e-9"))
# Approximate results are only shown as fractions below this denominator
FRACTION_MAX_DENOMINATOR = int(os.getenv("RUMUS_FRACTION_MAX_DENOMINATOR", "10000"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("RUMUS_MAX_INPUT_LENGTH", "10000"))  # characters

# Cache configuration
CACHE_SIZE_PARSE = int(os.getenv("RUMUS_CACHE_SIZE_PARSE", "256"))

# Plotting
PLOT_ROWS = int(os.getenv("RUMUS_PLOT_ROWS", "20"))
PLOT_COLS = int(os.getenv("RUMUS_PLOT_COLS", "60"))
PLOT_POINTS = int(os.getenv("RUMUS_PLOT_POINTS", "100"))

# Editing session viewport (0 disables the viewport)
VIEWPORT_WIDTH = int(os.getenv("RUMUS_VIEWPORT_WIDTH", "40"))
VIEWPORT_HEIGHT = int(os.getenv("RUMUS_VIEWPORT_HEIGHT", "8"))

# Names recognised by text import, with their argument counts
FUNCTION_NAMES = {
    "sin": 1,
    "cos": 1,
    "gcd": 2,
}

SYMPY_FUNCTIONS = {
    "sin": sp.sin,
    "cos": sp.cos,
    "gcd": sp.gcd,
}

ALLOWED_CHARS_RE = re.compile(r"^[0-9A-Za-z+\-*/^().,\s]*$")
NAME_RE = re.compile(r"[A-Za-z]+")
