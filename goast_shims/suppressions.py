"""
goast_shims/suppressions.py
═══════════════════════════

Diagnostic suppressions from three sources:

  1. Inline ``//nolint`` directives in the Go source
  2. File-level suppressions (path patterns, passed programmatically)
  3. Global suppressions (command-line or config)

Inline directives follow the golangci-lint form::

    //nolint                      every linter
    //nolint:testsnake            one linter
    //nolint:testsnake,errcheck   several
    //nolint:testsnake // legacy  with an explanation

A directive applies to its own line and to the line below it, so it can
trail the offending statement or sit on the line above.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from fnmatch import fnmatch
from typing import Dict, Iterable, List, Set, Tuple

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from goast_shims.diagnostics import Diagnostic
from goast_shims.source import GoSourceFile

logger = logging.getLogger(__name__)

ALL_LINTERS = "*"

NOLINT_GRAMMAR = Grammar(r'''
    directive    = "//nolint" linters? trailer
    linters      = ":" linter more_linters
    more_linters = ("," linter)*
    linter       = ~r"[A-Za-z0-9_.\-]+"
    trailer      = ~r"\s*(//.*)?"
''')


class _NolintVisitor(NodeVisitor):
    """Collects the linter names a directive names (``*`` for all)."""

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_directive(self, node, visited_children) -> Set[str]:
        _, linters, _ = visited_children
        if isinstance(linters, list):
            return set(linters[0])
        return {ALL_LINTERS}

    def visit_linters(self, node, visited_children) -> List[str]:
        _, first, rest = visited_children
        names = [first]
        if isinstance(rest, list):
            names.extend(pair[1] for pair in rest)
        return names

    def visit_linter(self, node, visited_children) -> str:
        return node.text


def parse_nolint(comment: str) -> Set[str]:
    """
    Linter names suppressed by one comment's text.

    Empty when the comment is not a ``//nolint`` directive.
    """
    try:
        tree = NOLINT_GRAMMAR.parse(comment.rstrip())
    except ParseError:
        return set()
    return _NolintVisitor().visit(tree)


class SuppressionManager:
    """
    Decides whether a diagnostic is suppressed.

    A suppression names either an error id or a checker name; ``*`` matches
    every diagnostic.

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(gofile)
    >>> sm.add_file_suppression("testsnake", "legacy/*_test.go")
    >>> sm.add_global_suppression("checkerInternalError")
    >>> kept = sm.filter_diagnostics(diagnostics)
    """

    def __init__(self) -> None:
        # (file, line) -> linter names suppressed there
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern -> names
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        self._global: Set[str] = set()

    def load_inline_suppressions(self, gofile: GoSourceFile) -> int:
        """Scan ``gofile``'s comments for directives; returns how many were found."""
        found = 0
        for comment in gofile.comments():
            names = parse_nolint(gofile.text(comment))
            if not names:
                continue
            line = comment.start_point[0] + 1
            self._inline[(gofile.path, line)].update(names)
            found += 1
        if found:
            logger.debug("%s: %d nolint directive(s)", gofile.path, found)
        return found

    def add_inline_suppression(self, name: str, file: str, line: int) -> None:
        self._inline[(file, line)].add(name)

    def add_file_suppression(self, name: str, file_pattern: str) -> None:
        """Suppress ``name`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(name)

    def add_global_suppression(self, name: str) -> None:
        self._global.add(name)

    @staticmethod
    def _matches(names: Set[str], diag: Diagnostic) -> bool:
        return (
            ALL_LINTERS in names
            or diag.error_id in names
            or (bool(diag.checker_name) and diag.checker_name in names)
        )

    def is_suppressed(self, diag: Diagnostic) -> bool:
        if self._matches(self._global, diag):
            return True

        loc = diag.location
        # Same line, or a directive on the line above.
        for line_offset in (0, 1):
            names = self._inline.get((loc.file, loc.line - line_offset))
            if names and self._matches(names, diag):
                return True

        for pattern, names in self._file_level.items():
            if not self._matches(names, diag):
                continue
            if pattern == loc.file or loc.file.endswith(pattern) or fnmatch(loc.file, pattern):
                return True
        return False

    def filter_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


__all__ = [
    "ALL_LINTERS",
    "NOLINT_GRAMMAR",
    "parse_nolint",
    "SuppressionManager",
]
