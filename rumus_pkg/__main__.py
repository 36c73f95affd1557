"""Main entry point for running rumus_pkg as a module.

This allows running Rumus with:
    python -m rumus_pkg
    python -m rumus_pkg --health-check
    python -m rumus_pkg -e "3/5+2/3+7/4"

This is equivalent to running:
    python -m rumus_pkg.cli
"""

from __future__ import annotations

import sys

from .cli import main_entry

if __name__ == "__main__":
    sys.exit(main_entry())
