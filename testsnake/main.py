#!/usr/bin/env python3
"""testsnake/main.py - CLI entry-point for the testsnake linter.

Usage examples
--------------
    # Check every package under the current directory
    testsnake check ./...

    # JSON lines, written to a file
    testsnake check ./pkg/... --format json --output findings.jsonl

    # Show what each t.Run call resolves to (debugging aid)
    testsnake names ./pkg/foo

    # List registered checkers
    testsnake checkers

Exit codes
----------
    0   No findings.
    1   One or more sub-test names are not snake_case.
    2   Infrastructure failure (bad path, bad option, checker crash).
  130   Interrupted.

The module doubles as ``python -m testsnake`` via the companion
``testsnake/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import List, Optional, Sequence, TextIO

from goast_shims.errors import ConfigError, ShimsError
from goast_shims.golit import quote
from goast_shims.source import GoProgram, load_program
from goast_shims.type_oracle import TypeOracle
from testsnake import __version__
from testsnake.checker import DEFAULT_REGISTRY, CheckerRunner, CheckerRunResults
from testsnake.config import OUTPUT_FORMATS, AnalysisConfig
from testsnake.matcher import DEFAULT_TEST_FILE_SUFFIX, candidate_values, find_candidate_calls
from testsnake.validator import is_valid_snake_case

_log = logging.getLogger("testsnake")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_FINDINGS: int = 1
EXIT_INFRA: int = 2
EXIT_INTERRUPTED: int = 130

_LOGGER_NAMES = ("testsnake", "goast_shims")

_handler: Optional[logging.Handler] = None


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``testsnake`` and ``goast_shims`` loggers.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    global _handler
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    for name in _LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Repeated calls (tests, embedding) replace the previous handler.
        if _handler is not None:
            logger.removeHandler(_handler)
        logger.addHandler(handler)
    _handler = handler


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _split_names(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    return [name.strip() for name in raw.split(",") if name.strip()]


def _emit_results(results: CheckerRunResults, fmt: str, stream: TextIO) -> None:
    """Write *results* to *stream* in the chosen format."""
    if fmt == "json":
        body = results.to_json_lines()
    else:
        body = results.to_gcc_format()
    if body:
        stream.write(body + "\n")
    if fmt == "summary":
        stream.write("\n" + results.summary() + "\n")


def _load(paths: Sequence[str], config: AnalysisConfig) -> Optional[GoProgram]:
    try:
        program = load_program(paths, recursive=config.recursive, exclude=config.exclude)
    except ShimsError as exc:
        _log.error("%s", exc)
        return None
    if not program.files:
        _log.warning("no Go files found in %s", " ".join(paths))
    return program


# ===========================================================================
# Sub-command implementations
# ===========================================================================

def cmd_check(args: argparse.Namespace) -> int:
    """Run the registered checkers over the named packages."""
    config = AnalysisConfig(
        test_file_suffix=args.test_suffix,
        recursive=args.recursive,
        exclude=list(args.exclude or []),
        honor_nolint=not args.no_nolint,
        output_format=args.format,
        checkers=_split_names(args.checkers),
    )
    try:
        config.ensure_valid(DEFAULT_REGISTRY.names)
    except ConfigError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    program = _load(args.paths, config)
    if program is None:
        return EXIT_INFRA

    runner = CheckerRunner(options=config.runner_options())
    results = runner.run(program, checkers=config.checkers)

    out = _open_output(args.output)
    try:
        _emit_results(results, config.output_format, out)
    finally:
        if out is not sys.stdout:
            out.close()

    if results.internal_error_count:
        return EXIT_INFRA
    return EXIT_FINDINGS if results.finding_count else EXIT_OK


def cmd_names(args: argparse.Namespace) -> int:
    """List every sub-test call and what its name resolves to."""
    config = AnalysisConfig(test_file_suffix=args.test_suffix, recursive=args.recursive)
    try:
        config.ensure_valid()
    except ConfigError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    program = _load(args.paths, config)
    if program is None:
        return EXIT_INFRA

    out = _open_output(args.output)
    try:
        for package in program.packages:
            test_files = package.test_files(config.test_file_suffix)
            if not test_files:
                continue
            oracle = TypeOracle(package)
            for gofile in test_files:
                for candidate in find_candidate_calls(gofile, oracle):
                    call_at = gofile.location(candidate.call)
                    values = candidate_values(candidate, gofile, oracle)
                    if not values:
                        out.write(f"{call_at}: <unresolved>\n")
                    for value in values:
                        verdict = "ok" if is_valid_snake_case(value.text) else "bad"
                        out.write(
                            f"{call_at}: {quote(value.text)} at {value.location} [{verdict}]\n"
                        )
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


def cmd_checkers(args: argparse.Namespace) -> int:
    """List registered checkers."""
    for cls in DEFAULT_REGISTRY.get_all():
        ids = ", ".join(sorted(cls.error_ids))
        sys.stdout.write(f"{cls.name:<16} [{ids}] {cls.description}\n")
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="testsnake",
        description="Checks that Go sub-test names passed to t.Run are snake_case.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              testsnake check ./...
              testsnake check ./pkg/... --format json -o findings.jsonl
              testsnake names ./pkg/foo
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_input_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "paths",
            nargs="+",
            metavar="PATH",
            help="Go files or package directories (a trailing /... recurses).",
        )
        p.add_argument(
            "-r", "--recursive",
            action="store_true",
            help="Walk directories recursively.",
        )
        p.add_argument(
            "--test-suffix",
            default=DEFAULT_TEST_FILE_SUFFIX,
            metavar="SUFFIX",
            help=f"File name suffix of test files (default: {DEFAULT_TEST_FILE_SUFFIX}).",
        )
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Report sub-test names that are not snake_case.",
    )
    _add_input_args(p_check)
    p_check.add_argument(
        "-f", "--format",
        choices=list(OUTPUT_FORMATS),
        default="gcc",
        help="Output format (default: gcc).",
    )
    p_check.add_argument(
        "--exclude",
        action="append",
        metavar="PATTERN",
        help="Skip files matching this glob (repeatable).",
    )
    p_check.add_argument(
        "--no-nolint",
        action="store_true",
        help="Ignore //nolint directives.",
    )
    p_check.add_argument(
        "--checkers",
        default=None,
        metavar="NAMES",
        help="Comma-separated checker names to run (default: all).",
    )
    p_check.set_defaults(func=cmd_check)

    # --- names -------------------------------------------------------------
    p_names = subparsers.add_parser(
        "names",
        help="Show the resolved name of every sub-test call.",
    )
    _add_input_args(p_names)
    p_names.set_defaults(func=cmd_names)

    # --- checkers ----------------------------------------------------------
    p_checkers = subparsers.add_parser(
        "checkers",
        help="List registered checkers.",
    )
    p_checkers.set_defaults(func=cmd_checkers)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the testsnake CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return EXIT_INTERRUPTED
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
