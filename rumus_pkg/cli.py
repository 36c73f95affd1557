from __future__ import annotations

import argparse
import json
import logging
import shlex
from typing import Any

from .config import VERSION
from .types import EvalResult, MathsError, NodeError, ValidationError

logger = logging.getLogger(__name__)

HELP_TEXT = """\
Type an expression to evaluate it, e.g. 3/5+2/3+7/4 or frac(1,2)+sqrt(16).

Editing session commands:
  :keys SCRIPT      Press keys: characters are typed, <name> keys pressed
                    (<left> <right> <up> <down> <bs> <clear> <frac> <sqrt>
                    <pow> <paren> <sin> <cos> <gcd> <eq>)
  :show             Render the session with its cursor
  :eval             Evaluate the session
  :clear            Empty the session
  :save PATH        Save the session to a file
  :load PATH        Load a session saved with :save

Other commands:
  :simplify EXPR    Reduce an expression symbolically
  :plot EXPR [VAR]  Draw an ASCII plot of EXPR against VAR (default x)
  help              Show this text
  quit, exit        Leave
"""


def _health_check() -> int:
    """Run health check to verify dependencies and basic operations.

    Returns:
        Exit code (0 for success, non-zero for failures)
    """
    checks_passed = 0
    checks_failed = 0

    print("Running Rumus health check...")
    print("-" * 50)

    try:
        import sympy as sp

        print(f"[OK] SymPy {sp.__version__} imported successfully")
        checks_passed += 1
    except ImportError as e:
        print(f"[FAIL] SymPy import failed: {e}")
        checks_failed += 1

    try:
        from .api import evaluate

        result = evaluate("2+2")
        if result.ok and result.result == "4":
            print("[OK] Basic evaluation works")
            checks_passed += 1
        else:
            print(f"[FAIL] Basic evaluation failed: expected 4, got {result}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Evaluation check failed: {e}")
        checks_failed += 1

    try:
        from .api import simplify_expression

        result = simplify_expression("x+x")
        if result.ok and result.result == "2*x":
            print("[OK] Symbolic reduction works")
            checks_passed += 1
        else:
            print(f"[FAIL] Reduction check failed: {result}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Reduction check failed: {e}")
        checks_failed += 1

    try:
        from .editor import EditingSession

        session = EditingSession()
        session.press_keys("1<frac>2<down>3")
        if session.render(show_cursor=False) == [" 2", "1-", " 3"]:
            print("[OK] Editing and rendering work")
            checks_passed += 1
        else:
            print(f"[FAIL] Rendering check failed: {session.render(show_cursor=False)}")
            checks_failed += 1
    except Exception as e:
        print(f"[FAIL] Editing check failed: {e}")
        checks_failed += 1

    # Check optional dependencies
    try:
        import numpy

        print(f"[OK] NumPy {numpy.__version__} available")
        checks_passed += 1
    except ImportError:
        print("[WARN] NumPy not available (image plots disabled)")
        print("  To install: pip install numpy matplotlib")

    try:
        import matplotlib

        print(f"[OK] Matplotlib {matplotlib.__version__} available")
        checks_passed += 1
    except ImportError:
        print("[WARN] Matplotlib not available (image plots disabled)")
        print("  To install: pip install numpy matplotlib")

    print("-" * 50)
    print(f"Results: {checks_passed} passed, {checks_failed} failed")

    if checks_failed > 0:
        print("\n[WARN] Some health checks failed. Core functionality may be impaired.")
        return 1

    print("\n[OK] All health checks passed!")
    return 0


def print_result_pretty(res: dict[str, Any], output_format: str = "human") -> None:
    """Print result in specified format.

    Args:
        res: Result dictionary, as produced by EvalResult.to_dict()
        output_format: "json" for JSON output, "human" for human-readable
    """
    if output_format == "json":
        print(json.dumps(res, indent=2, ensure_ascii=False))
        return
    if not res.get("ok"):
        print("Error:", res.get("error"))
        return
    for line in res.get("rendered") or []:
        print(line)
    result = res.get("result")
    if result is not None:
        print(result)
    approx = res.get("approx")
    if approx and approx != result:
        print("Decimal:", approx)
    fraction = res.get("fraction")
    if fraction:
        print("Fraction: ~", fraction)


def _session_result(session) -> EvalResult:
    from .api import approximate_fraction, format_number

    try:
        value = session.evaluate().correct_inaccuracy()
    except (NodeError, MathsError) as e:
        return EvalResult(ok=False, error=str(e), error_code=e.code)
    return EvalResult(
        ok=True,
        result=str(value),
        approx=format_number(value),
        fraction=approximate_fraction(value),
    )


def _default_session():
    from . import config as _config
    from .editor import EditingSession
    from .render import Area, Viewport

    viewport = None
    if _config.VIEWPORT_WIDTH > 0 and _config.VIEWPORT_HEIGHT > 0:
        viewport = Viewport(Area(_config.VIEWPORT_WIDTH, _config.VIEWPORT_HEIGHT))
    return EditingSession(viewport=viewport)


def _plot_command(argument: str) -> EvalResult:
    from .api import plot

    parts = shlex.split(argument)
    if not parts:
        return EvalResult(ok=False, error="Usage: :plot EXPR [VAR]", error_code="BAD_COMMAND")
    variable = parts[1] if len(parts) > 1 else "x"
    return plot(parts[0], variable=variable)


def handle_command(session, line: str, output_format: str = "human") -> None:
    """Run one REPL command against an editing session."""
    from .api import evaluate, simplify_expression

    command, _, argument = line.partition(" ")
    argument = argument.strip()

    try:
        if command == ":keys":
            session.press_keys(argument)
            print_result_pretty(EvalResult(ok=True, rendered=session.render()).to_dict(), output_format)
        elif command == ":show":
            print_result_pretty(EvalResult(ok=True, rendered=session.render()).to_dict(), output_format)
        elif command == ":eval":
            print_result_pretty(_session_result(session).to_dict(), output_format)
        elif command == ":clear":
            session.clear()
        elif command == ":save":
            session.save(argument)
            print(f"Saved session to {argument}")
        elif command == ":load":
            session.load(argument)
            print_result_pretty(EvalResult(ok=True, rendered=session.render()).to_dict(), output_format)
        elif command == ":simplify":
            print_result_pretty(simplify_expression(argument).to_dict(), output_format)
        elif command == ":plot":
            print_result_pretty(_plot_command(argument).to_dict(), output_format)
        elif command.startswith(":"):
            print(f"Error: Unknown command {command}. Type 'help' for commands.")
        else:
            print_result_pretty(evaluate(line).to_dict(), output_format)
    except (ValidationError, NodeError, MathsError) as e:
        print_result_pretty(EvalResult(ok=False, error=str(e), error_code=e.code).to_dict(), output_format)
    except OSError as e:
        logger.warning(f"File operation failed: {e}")
        print(f"Error: {e}")


def repl_loop(output_format: str = "human") -> None:
    """Interactive REPL loop with graceful interrupt handling."""
    try:
        import readline  # noqa: F401
    except (ImportError, ModuleNotFoundError):
        # readline not available on Windows - that's fine
        pass

    print("Rumus - type 'help' for commands, 'quit' to exit.")
    session = _default_session()

    while True:
        try:
            raw = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye.")
            return
        if not raw:
            continue
        if raw.lower() in ("quit", "exit"):
            print("Goodbye.")
            return
        if raw.lower() == "help":
            print(HELP_TEXT)
            continue
        handle_command(session, raw, output_format)


def main_entry(argv: list[str] | None = None) -> int:
    """
    Main entry point for Rumus CLI.

    Args:
        argv: Optional command-line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(prog="rumus")
    parser.add_argument(
        "-e",
        "--eval",
        type=str,
        help="Evaluate one expression and exit (non-interactive)",
        dest="eval_expr",
    )
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Emit JSON for machine parsing (deprecated, use --format json)",
    )
    parser.add_argument(
        "--format",
        type=str,
        choices=["json", "human"],
        default="human",
        help="Output format: json (machine-readable) or human (human-readable)",
    )
    parser.add_argument(
        "--simplify",
        action="store_true",
        help="Reduce the --eval expression symbolically instead of evaluating it",
    )
    parser.add_argument(
        "--plot",
        type=str,
        metavar="VAR",
        help="Plot the --eval expression against VAR as ASCII",
    )
    parser.add_argument("--x-min", type=float, default=-10, help="Plot range start")
    parser.add_argument("--x-max", type=float, default=10, help="Plot range end")
    parser.add_argument("--points", type=int, help="Number of plot samples")
    parser.add_argument(
        "--angle-unit",
        type=str,
        choices=["degree", "radian"],
        help="Angle unit for sin and cos",
    )
    parser.add_argument(
        "--use-floats",
        action="store_true",
        help="Evaluate functions with floats rather than SymPy",
    )
    parser.add_argument(
        "-p", "--precision", type=int, help="Set output precision (significant digits)"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="Show program version"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Set logging level",
    )
    parser.add_argument("--log-file", type=str, help="Write logs to file")
    parser.add_argument(
        "--health-check",
        action="store_true",
        help="Run health check and verify dependencies",
    )
    args = parser.parse_args(argv)

    output_format = args.format
    if args.json:  # Backward compatibility for deprecated -j flag
        output_format = "json"

    from .logging_config import setup_logging

    setup_logging(level=args.log_level, log_file=args.log_file)

    # Apply CLI configuration overrides
    import rumus_pkg.config as _config

    if args.precision and args.precision > 0:
        _config.OUTPUT_PRECISION = int(args.precision)
    if args.angle_unit:
        _config.DEFAULT_ANGLE_UNIT = args.angle_unit
    if args.use_floats:
        _config.USE_FLOATS = True

    if args.version:
        print(VERSION)
        return 0
    if args.health_check:
        return _health_check()
    if args.eval_expr is not None:
        expr = args.eval_expr.strip()
        # Remove ">>>" prompt if present
        if expr.startswith(">>>"):
            expr = expr[3:].strip()

        from .api import evaluate, plot, simplify_expression

        if args.plot:
            res = plot(
                expr,
                variable=args.plot,
                x_min=args.x_min,
                x_max=args.x_max,
                points=args.points,
            )
        elif args.simplify:
            res = simplify_expression(expr)
        else:
            res = evaluate(expr)
        print_result_pretty(res.to_dict(), output_format)
        return 0 if res.ok else 1

    repl_loop(output_format)
    return 0


if __name__ == "__main__":
    import sys

    sys.exit(main_entry())
