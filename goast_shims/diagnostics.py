"""
goast_shims/diagnostics.py
══════════════════════════

Diagnostic model shared by every checker that runs on the substrate.

A ``Diagnostic`` is a pure value: where (``SourceLocation``), what
(``message``), and which rule produced it.  It serializes to one JSON
object per line, or to the familiar ``file:line:col: message (id)``
form that editors and CI annotators understand.

License: MIT
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class DiagnosticSeverity(Enum):
    """Severity levels, in the vocabulary lint drivers share."""
    ERROR = "error"
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code (1-based line, 1-based byte column)."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "testsnake")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    checker_name : Name of the checker that produced this
    extra        : Additional context string (e.g. a suggested replacement)
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    checker_name: str = ""
    extra: str = ""
    evidence: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a flat dict."""
        result: Dict[str, Any] = {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "linter": self.checker_name,
            "errorId": self.error_id,
        }
        if self.extra:
            result["extra"] = self.extra
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json())

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: message (linter)."""
        return f"{self.location}: {self.message} ({self.error_id})"

    def __str__(self) -> str:
        return self.to_gcc_format()


__all__ = [
    "DiagnosticSeverity",
    "SourceLocation",
    "Diagnostic",
]
