"""Command-line evaluator and interactive REPL for formulas."""

from __future__ import annotations

import argparse
import json
import logging
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

from rulecalc.engine import Evaluator
from rulecalc.errors import FormulaSyntaxError, Result
from rulecalc.parsing.formula_parser import DEFAULT_MAX_DEPTH
from rulecalc.values import OptionRecord, Tag, from_json


def format_value(value: Any, max_items: int = 10, max_width: int = 60) -> str:
    """Format a value for display.

    Args:
        value: The value to format
        max_items: Maximum number of list items to show before eliding
        max_width: Maximum character width before truncating
    """
    if value is None:
        return "null"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, int):
        return str(value)
    elif isinstance(value, float):
        return f"{value:.15g}"
    elif isinstance(value, str):
        if len(value) > max_width:
            return json.dumps(value[:max_width - 3] + "...")
        return json.dumps(value)
    elif isinstance(value, OptionRecord):
        return f"{{{format_value(value.display_text)}: {format_value(value.raw_value)}}}"
    elif isinstance(value, Tag):
        return f":{value.name}"
    elif isinstance(value, list):
        formatted = []
        for i, v in enumerate(value):
            if i >= max_items:
                remaining = len(value) - max_items
                formatted.append(f"...+{remaining} more")
                break
            formatted.append(format_value(v, max_items, max_width))

        result = "[" + ", ".join(formatted) + "]"

        if len(result) > max_width:
            return result[:max_width - 4] + "...]"

        return result
    else:
        s = str(value)
        if len(s) > max_width:
            return s[:max_width - 3] + "..."
        return s


def print_result(result: Result) -> None:
    """Print an evaluation result; errors go to stderr."""
    if result.ok:
        print(format_value(result.value))
    elif isinstance(result.error, FormulaSyntaxError):
        print(f"Syntax error: {result.error}", file=sys.stderr)
    else:
        print(f"Error ({result.error.kind.value}): {result.error}", file=sys.stderr)


def load_scope(path: Path) -> dict[str, Any]:
    """Load a JSON object as a scope. Objects with display_text become options."""
    data = json.loads(path.read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Scope file must contain a JSON object: {path}")
    return from_json(data)


def print_help() -> None:
    """Print REPL help."""
    print("""
Enter a formula to evaluate it against the current scope.

  Examples:
    1 + 2 * 3
    sum(a, b, 10) > 20 ? "high" : "low"
    includes_any(colours, "red")
    list[index] == "yes"

  Commands:
    scope                 Show the current scope
    set <name> = <json>   Bind a name in the scope
    unset <name>          Remove a name from the scope
    functions             List builtin functions
    help                  Show this help
    exit, quit            Leave the REPL
""")


def run_file(file_path: Path, evaluator: Evaluator, scope: dict[str, Any], verbose: bool = False) -> int:
    """Evaluate one formula per line of a file.

    Blank lines and lines starting with # are skipped.

    Returns:
        0 if every formula evaluated, 1 otherwise
    """
    try:
        content = file_path.read_text()
    except OSError as e:
        print(f"Error reading file: {e}", file=sys.stderr)
        return 1

    status = 0
    for line in content.splitlines():
        formula = line.strip()
        if not formula or formula.startswith("#"):
            continue
        if verbose:
            print(f">>> {formula}")
        result = evaluator.evaluate(formula, scope)
        print_result(result)
        if not result.ok:
            status = 1
    return status


def _set_binding(line: str, scope: dict[str, Any]) -> None:
    """Handle 'set name = <json>'."""
    name, sep, raw = line[4:].partition("=")
    name = name.strip()
    if not sep or not name:
        print("Usage: set <name> = <json>")
        return
    try:
        scope[name] = from_json(json.loads(raw.strip()))
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON: {e}")
        return
    print(f"{name} = {format_value(scope[name])}")


def run_repl(evaluator: Evaluator, scope: dict[str, Any]) -> int:
    """Run the interactive REPL."""
    print("rulecalc REPL - business rule formulas")
    print("Type 'help' for commands, 'exit' to quit.\n")

    history_file = Path.home() / ".rulecalc_history"
    try:
        readline.read_history_file(history_file)
    except (FileNotFoundError, OSError):
        pass

    try:
        while True:
            try:
                line = input("rule> ").strip()
            except EOFError:
                print()
                break

            if not line:
                continue

            lower = line.lower()
            if lower in ("exit", "quit"):
                break
            elif lower == "help":
                print_help()
            elif lower == "scope":
                if not scope:
                    print("(empty scope)")
                for name, value in sorted(scope.items()):
                    print(f"{name} = {format_value(value)}")
            elif lower == "functions":
                print(", ".join(evaluator.functions.names()))
            elif lower.startswith("set "):
                _set_binding(line, scope)
            elif lower.startswith("unset "):
                scope.pop(line[6:].strip(), None)
            else:
                print_result(evaluator.evaluate(line, scope))
    except KeyboardInterrupt:
        print()
    finally:
        try:
            readline.write_history_file(history_file)
        except OSError:
            pass

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Evaluate business rule formulas"
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Evaluate a single formula and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Evaluate one formula per line from a file and exit",
    )
    arg_parser.add_argument(
        "-s", "--scope",
        type=Path,
        help="JSON file holding the scope (an object of name -> value)",
    )
    arg_parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum expression nesting depth (default {DEFAULT_MAX_DEPTH})",
    )
    arg_parser.add_argument(
        "--lazy-ternary",
        action="store_true",
        help="Evaluate only the chosen branch of ?: expressions",
    )
    arg_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Echo formulas from -f/--file and log evaluation failures",
    )

    args = arg_parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    scope: dict[str, Any] = {}
    if args.scope:
        if not args.scope.exists():
            print(f"Error: Scope file not found: {args.scope}", file=sys.stderr)
            return 1
        try:
            scope = load_scope(args.scope)
        except ValueError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    evaluator = Evaluator(max_depth=args.max_depth, lazy_ternary=args.lazy_ternary)

    if args.file:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return 1
        return run_file(args.file, evaluator, scope, args.verbose)

    if args.command:
        result = evaluator.evaluate(args.command, scope)
        print_result(result)
        return 0 if result.ok else 1

    return run_repl(evaluator, scope)


if __name__ == "__main__":
    sys.exit(main())
