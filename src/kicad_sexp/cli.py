"""
Command-line interface for kicad-sexp.

    kicad-sexp check <file>...          - Parse files and report syntax errors
    kicad-sexp fmt <file>               - Re-serialize a file with formatting rules

Examples:
    kicad-sexp check board.kicad_pcb footprint.kicad_mod
    kicad-sexp fmt footprint.kicad_mod --preset kicad
    kicad-sexp fmt board.kicad_pcb --rule kicad_pcb=2 --rule general=0 --check

Exit Codes:
    0 - Success
    1 - Parse failure, or --check found a file that does not round-trip
"""

import argparse
import difflib
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from kicad_sexp import __version__
from kicad_sexp.config import Config
from kicad_sexp.exceptions import ParseError, SexpError
from kicad_sexp.formatter import PRESETS, Serializer, rules_from_preset
from kicad_sexp.parser import Parser, read_file

__all__ = ["main"]


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for kicad-sexp CLI."""
    parser = argparse.ArgumentParser(
        prog="kicad-sexp",
        description="Parse and format KiCad S-expression files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"kicad-sexp {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    check_parser = subparsers.add_parser("check", help="Parse files and report errors")
    check_parser.add_argument("files", nargs="+", help="S-expression files to check")

    fmt_parser = subparsers.add_parser("fmt", help="Re-serialize a file")
    fmt_parser.add_argument("file", help="S-expression file to format")
    fmt_parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Rules preset (default: from config, else none)",
    )
    fmt_parser.add_argument(
        "--rule",
        action="append",
        default=[],
        metavar="TAG=K",
        help="Keep K children inline after TAG (repeatable)",
    )
    fmt_parser.add_argument("--indent", type=int, help="Spaces per indentation level")
    fmt_parser.add_argument(
        "--check",
        action="store_true",
        help="Do not print; exit 1 and show a diff if the file would change",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    err_console = Console(stderr=True)
    try:
        config = Config.load()
    except SexpError as e:
        err_console.print(f"[red]Config error:[/red] {escape(str(e))}")
        return 1

    if args.command == "check":
        return _run_check(args.files, config, err_console)
    return _run_fmt(args, config, err_console)


def _run_check(files: List[str], config: Config, err_console: Console) -> int:
    failures = 0
    for path in files:
        try:
            Parser(read_file(path), max_depth=config.parse.max_depth, source=path).parse()
        except SexpError as e:
            failures += 1
            _report(err_console, path, e)
        else:
            err_console.print(f"[green]ok[/green] {escape(path)}")
    return 1 if failures else 0


def _run_fmt(args: argparse.Namespace, config: Config, err_console: Console) -> int:
    if args.preset:
        rules = rules_from_preset(args.preset)
    else:
        rules = config.format.build_rules()

    for spec in args.rule:
        tag, sep, arity = spec.partition("=")
        if not sep or not tag or not arity.isdigit():
            err_console.print(f"[red]Error:[/red] invalid rule {escape(spec)!r}, expected TAG=K")
            return 1
        rules.insert(tag, int(arity))

    indent = " " * args.indent if args.indent is not None else config.format.indent_string

    try:
        text = read_file(args.file)
        tree = Parser(text, max_depth=config.parse.max_depth, source=args.file).parse()
        output = Serializer(rules, indent=indent).serialize(tree)
    except SexpError as e:
        _report(err_console, args.file, e)
        return 1

    # Keep the final newline of files saved by editors
    if output and text.endswith("\n"):
        output += "\n"

    if args.check:
        if output == text:
            return 0
        diff = difflib.unified_diff(
            text.splitlines(keepends=True),
            output.splitlines(keepends=True),
            fromfile=args.file,
            tofile=f"{args.file} (formatted)",
        )
        sys.stdout.writelines(diff)
        return 1

    sys.stdout.write(output)
    if output and not output.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def _report(console: Console, path: str, error: SexpError) -> None:
    """Print a one-line diagnostic, with position for parse errors."""
    location = escape(path)
    if isinstance(error, ParseError) and error.position is not None:
        line, column = error.position
        location = f"{location}:{line}:{column}"
    console.print(f"[red]error[/red] {location}: {escape(error.message)}")
    for suggestion in error.suggestions:
        console.print(f"  [dim]hint:[/dim] {escape(suggestion)}")


if __name__ == "__main__":
    sys.exit(main())
