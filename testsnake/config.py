"""
testsnake/config.py
═══════════════════

Options for one analysis run.  The naming rule itself has no knobs; these
control which files are read and how results are reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from goast_shims.errors import ConfigError
from testsnake.matcher import DEFAULT_TEST_FILE_SUFFIX

OUTPUT_FORMATS = ("gcc", "json", "summary")


@dataclass
class AnalysisConfig:
    """Tuning knobs for a ``testsnake check`` run."""
    test_file_suffix: str = DEFAULT_TEST_FILE_SUFFIX
    recursive: bool = False
    exclude: List[str] = field(default_factory=list)
    honor_nolint: bool = True
    output_format: str = "gcc"
    checkers: Optional[List[str]] = None

    def validate(self, known_checkers: Sequence[str] = ()) -> List[str]:
        """Return a list of problems (empty if valid)."""
        problems: List[str] = []
        if not self.test_file_suffix.endswith(".go"):
            problems.append(
                f"test_file_suffix must end in .go, got {self.test_file_suffix!r}"
            )
        if self.output_format not in OUTPUT_FORMATS:
            problems.append(
                f"output_format must be one of {', '.join(OUTPUT_FORMATS)}, "
                f"got {self.output_format!r}"
            )
        if any(not pattern for pattern in self.exclude):
            problems.append("exclude patterns must not be empty")
        if self.checkers is not None:
            if not self.checkers:
                problems.append("checkers must name at least one checker")
            if known_checkers:
                for name in self.checkers:
                    if name not in known_checkers:
                        problems.append(f"unknown checker {name!r}")
        return problems

    def ensure_valid(self, known_checkers: Sequence[str] = ()) -> "AnalysisConfig":
        """Raise ``ConfigError`` listing every problem ``validate`` finds."""
        problems = self.validate(known_checkers)
        if problems:
            raise ConfigError("; ".join(problems))
        return self

    def runner_options(self) -> Dict[str, Any]:
        """Options dict handed to ``CheckerRunner``."""
        return {
            "test_file_suffix": self.test_file_suffix,
            "honor_nolint": self.honor_nolint,
        }


__all__ = [
    "OUTPUT_FORMATS",
    "AnalysisConfig",
]
