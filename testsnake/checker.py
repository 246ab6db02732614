"""
testsnake/checker.py
════════════════════

Checker framework that runs lint rules over a loaded ``GoProgram``.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌──────────────────┐                                   │
  │  │ TestSnakeChecker │   (more rules register alongside) │
  │  └────────┬─────────┘                                   │
  │           │                                             │
  │  ┌────────▼────────────────────────────────────────┐    │
  │  │        CheckerContext                           │    │
  │  │  GoProgram │ TypeOracle per package │ options   │    │
  │  └────────────────────────┬────────────────────────┘    │
  │                           │                             │
  │  ┌────────────────────────▼────────────────────────┐    │
  │  │        SuppressionManager                       │    │
  │  │  //nolint  │  file-level  │  global             │    │
  │  └────────────────────────┬────────────────────────┘    │
  │                           │                             │
  │  ┌────────────────────────▼────────────────────────┐    │
  │  │        CheckerRunResults (gcc / JSON / summary) │    │
  │  └─────────────────────────────────────────────────┘    │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        - read options
  2. **collect_evidence()** - walk the program, gather offending sites
  3. **diagnose()**         - turn evidence into diagnostics
  4. **report()**           - return diagnostics filtered by suppressions

License: MIT
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Sequence, Tuple, Type

from goast_shims.diagnostics import Diagnostic, DiagnosticSeverity, SourceLocation
from goast_shims.source import GoPackage, GoProgram
from goast_shims.suppressions import SuppressionManager
from goast_shims.type_oracle import TypeOracle
from testsnake.matcher import DEFAULT_TEST_FILE_SUFFIX, ERROR_ID, scan

logger = logging.getLogger(__name__)

INTERNAL_ERROR_ID = "checkerInternalError"


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 - CONTEXT
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    program      : the loaded GoProgram
    suppressions : SuppressionManager
    options      : user-provided options dict
    """
    program: GoProgram
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    options: Dict[str, Any] = field(default_factory=dict)
    _oracles: Dict[Tuple[str, str], TypeOracle] = field(default_factory=dict, repr=False)

    def oracle_for(self, package: GoPackage) -> TypeOracle:
        """The package's oracle, built on first use and shared between checkers."""
        key = (package.directory, package.name)
        oracle = self._oracles.get(key)
        if oracle is None:
            oracle = self._oracles[key] = TypeOracle(package)
        return oracle

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 - CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

class Checker(ABC):
    """
    Abstract base class for all checkers.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """Called before evidence collection.  Default does nothing."""
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """Append diagnostics to ``self._diagnostics``."""
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        location: SourceLocation,
        severity: Optional[DiagnosticSeverity] = None,
        extra: str = "",
        evidence: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Helper to create and store a diagnostic."""
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            location=location,
            checker_name=self.name,
            extra=extra,
            evidence=evidence or {},
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 - CHECKERS
# ═════════════════════════════════════════════════════════════════════════

class TestSnakeChecker(Checker):
    """
    Sub-test names passed to ``t.Run`` / ``b.Run`` / ``f.Run`` must be
    snake_case.

    Only files ending in the test file suffix are scanned; the rest of the
    package still informs constant and type resolution.
    """

    __test__ = False  # not a pytest test class

    name: ClassVar[str] = "testsnake"
    description: ClassVar[str] = (
        "checks that test names passed to t.Run follow snake_case convention"
    )
    error_ids: ClassVar[FrozenSet[str]] = frozenset({ERROR_ID})
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        super().__init__()
        self._suffix = DEFAULT_TEST_FILE_SUFFIX
        self._findings: List[Diagnostic] = []

    def configure(self, ctx: CheckerContext) -> None:
        self._suffix = ctx.get_option("test_file_suffix", DEFAULT_TEST_FILE_SUFFIX)

    def collect_evidence(self, ctx: CheckerContext) -> None:
        for package in ctx.program.packages:
            test_files = package.test_files(self._suffix)
            if not test_files:
                continue
            oracle = ctx.oracle_for(package)
            for gofile in test_files:
                try:
                    found = scan(gofile, oracle, self._suffix)
                except Exception as exc:
                    # One unreadable file must not cost the others their findings.
                    logger.error("%s: scan failed: %s", gofile.path, exc, exc_info=True)
                    self._findings.append(Diagnostic(
                        error_id=INTERNAL_ERROR_ID,
                        message=f"Checker '{self.name}' failed on {gofile.path}: {exc}",
                        severity=DiagnosticSeverity.INFORMATION,
                        location=SourceLocation(file=gofile.path),
                        checker_name=self.name,
                    ))
                    continue
                logger.debug("%s: %d bad sub-test name(s)", gofile.path, len(found))
                self._findings.extend(found)

    def diagnose(self, ctx: CheckerContext) -> None:
        self._diagnostics.extend(self._findings)


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 - CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(TestSnakeChecker)
    >>> checkers = registry.get_all()
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def get_all(self) -> List[Type[Checker]]:
        return list(self._checkers.values())

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


DEFAULT_REGISTRY = CheckerRegistry()
DEFAULT_REGISTRY.register(TestSnakeChecker)


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 - CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    @property
    def internal_error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.error_id == INTERNAL_ERROR_ID)

    @property
    def finding_count(self) -> int:
        return self.total_count - self.internal_error_count

    def by_severity(self, severity: DiagnosticSeverity) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == severity]

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def to_json_lines(self) -> str:
        """One JSON object per diagnostic, one per line."""
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {self.finding_count} finding(s) "
            f"in {self.stats.get('files', 0)} file(s)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against a ``GoProgram``.

    Usage
    -----
    >>> runner = CheckerRunner(options={"honor_nolint": True})
    >>> results = runner.run(program)
    >>> print(results.summary())

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry - source of checker classes
    suppressions: SuppressionManager - pre-loaded suppression rules
    options     : dict - ``test_file_suffix``, ``honor_nolint``
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.registry = registry or DEFAULT_REGISTRY
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}

    def _select(self, checkers: Optional[Sequence[str]]) -> List[Type[Checker]]:
        if checkers is None:
            return self.registry.get_all()
        selected: List[Type[Checker]] = []
        for name in checkers:
            cls = self.registry.get_by_name(name)
            if cls is None:
                logger.warning("unknown checker %r ignored", name)
                continue
            selected.append(cls)
        return selected

    def run(
        self,
        program: GoProgram,
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against ``program``.

        Parameters
        ----------
        program  : GoProgram
        checkers : list of checker names to run (None = all registered)
        """
        results = CheckerRunResults()
        results.stats["files"] = len(program.files)

        if self.options.get("honor_nolint", True):
            for gofile in program.files:
                self.suppressions.load_inline_suppressions(gofile)

        ctx = CheckerContext(
            program=program,
            suppressions=self.suppressions,
            options=self.options,
        )

        for cls in self._select(checkers):
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Report the failure and keep going with the other checkers.
                logger.error("checker %s failed: %s", checker_name, exc, exc_info=True)
                diags = [Diagnostic(
                    error_id=INTERNAL_ERROR_ID,
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms
            logger.info("%s: %d diagnostic(s) in %.1fms", checker_name, len(diags), elapsed_ms)

        return results


__all__ = [
    "INTERNAL_ERROR_ID",
    "CheckerContext",
    "Checker",
    "TestSnakeChecker",
    "CheckerRegistry",
    "DEFAULT_REGISTRY",
    "CheckerRunResults",
    "CheckerRunner",
]
