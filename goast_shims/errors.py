# goast_shims/errors.py
"""
Error types for the Go analysis substrate.

Error Hierarchy:
────────────────
    ShimsError (base)
    ├── SourceLoadError   - a Go source file or directory cannot be read
    ├── GoLiteralError    - a Go string literal is malformed
    └── ConfigError       - analysis configuration is invalid

Error Codes:
────────────
Every error carries a code of the form ``GOAST-NNNN``:
  - 0001-0999: source loading
  - 1000-1999: literal decoding
  - 2000-2999: configuration

Analyses never raise for source shapes they do not understand; these
exceptions are reserved for infrastructure failures.  ``GoLiteralError``
is the one exception the resolver expects to see, and it converts it into
an unresolved outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ErrorCode:
    """A structured ``PREFIX-NNNN`` error code."""
    prefix: str
    number: int

    @property
    def code(self) -> str:
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code


class ErrorCodes:
    """Predefined error codes."""
    SOURCE_NOT_FOUND = ErrorCode("GOAST", 1)
    SOURCE_UNREADABLE = ErrorCode("GOAST", 2)

    LITERAL_SYNTAX = ErrorCode("GOAST", 1000)

    CONFIG_INVALID = ErrorCode("GOAST", 2000)


class ShimsError(Exception):
    """
    Base exception for all substrate errors.

    Attributes
    ----------
    code  : ErrorCode
    path  : file the error refers to ("" when not file-specific)
    cause : the underlying exception, if any
    """

    default_code: ErrorCode = ErrorCodes.SOURCE_UNREADABLE

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        path: str = "",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        prefix = f"{self.path}: " if self.path else ""
        return f"{prefix}{self.message} [{self.code}]"


class SourceLoadError(ShimsError):
    """A Go source file or directory could not be loaded."""
    default_code = ErrorCodes.SOURCE_UNREADABLE


class GoLiteralError(ShimsError):
    """A Go string literal could not be decoded."""
    default_code = ErrorCodes.LITERAL_SYNTAX

    def __init__(self, message: str, literal: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.literal = literal


class ConfigError(ShimsError):
    """Analysis configuration is invalid."""
    default_code = ErrorCodes.CONFIG_INVALID


__all__ = [
    "ErrorCode",
    "ErrorCodes",
    "ShimsError",
    "SourceLoadError",
    "GoLiteralError",
    "ConfigError",
]
