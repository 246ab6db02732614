"""testsnake - snake_case sub-test names for Go.

A lint rule for Go test files: every name passed to ``t.Run``, ``b.Run``
or ``f.Run`` must be snake_case.  Names are resolved statically, through
literals, constants, single-assignment variables, constant concatenation
and table-driven tests that ``range`` over a composite literal.

Submodules
----------
validator
    ``is_valid_snake_case`` and ``suggest_snake_case``.
resolver
    Compile-time string value of a name argument (``Resolved`` /
    ``UNRESOLVED``).
matcher
    Candidate ``Run`` calls, table-driven extraction, per-file ``scan``.
checker
    Checker lifecycle, registry and runner with suppression filtering.
config
    ``AnalysisConfig``.
main
    CLI entry-point with subcommands: ``check``, ``names``, ``checkers``.

Usage
-----
Command-line::

    testsnake check ./...
    python -m testsnake check ./pkg/... --format json

Programmatic::

    from goast_shims import load_program
    from testsnake.checker import CheckerRunner

    results = CheckerRunner().run(load_program(["./..."]))
    print(results.to_gcc_format())
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
