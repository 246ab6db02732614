"""
goast_shims - Parsed-Program Substrate for Go Lint Rules
========================================================

This package provides the infrastructure a Go lint rule written in Python
stands on: parsed files grouped into packages, a symbol/type/constant
oracle over each package, and the diagnostic and suppression model the
rule reports through.

Core modules
------------
source
    Loads ``.go`` files, parses them with tree-sitter, groups them into
    packages by directory and package clause.
ast_helper
    Safe accessors and traversal helpers for tree-sitter Go nodes.
type_oracle
    Scopes, symbol resolution, static type strings, string constant
    evaluation and the per-variable write index.
golit
    Go string literal decoding (``strconv.Unquote``) and ``%q`` rendering.
diagnostics
    ``Diagnostic`` / ``SourceLocation`` / ``DiagnosticSeverity``.
suppressions
    ``//nolint`` directives plus file and global suppressions.
errors
    ``ShimsError`` hierarchy with ``GOAST-NNNN`` codes.

Quick start
-----------
>>> from goast_shims import load_program, TypeOracle
>>> program = load_program(["./..."])
>>> for package in program.packages:
...     oracle = TypeOracle(package)
"""

from __future__ import annotations

import logging
from typing import List

from goast_shims.diagnostics import Diagnostic, DiagnosticSeverity, SourceLocation
from goast_shims.errors import (
    ConfigError,
    ErrorCode,
    ErrorCodes,
    GoLiteralError,
    ShimsError,
    SourceLoadError,
)
from goast_shims.source import (
    GoPackage,
    GoProgram,
    GoSourceFile,
    build_program,
    discover_files,
    load_program,
    parse_file,
    parse_source,
)
from goast_shims.suppressions import SuppressionManager
from goast_shims.type_oracle import Symbol, SymbolKind, TypeOracle, Write, WriteKind

__version__ = "0.1.0"
__license__ = "MIT"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__: List[str] = [
    "Diagnostic",
    "DiagnosticSeverity",
    "SourceLocation",
    "ConfigError",
    "ErrorCode",
    "ErrorCodes",
    "GoLiteralError",
    "ShimsError",
    "SourceLoadError",
    "GoPackage",
    "GoProgram",
    "GoSourceFile",
    "build_program",
    "discover_files",
    "load_program",
    "parse_file",
    "parse_source",
    "SuppressionManager",
    "Symbol",
    "SymbolKind",
    "TypeOracle",
    "Write",
    "WriteKind",
]
