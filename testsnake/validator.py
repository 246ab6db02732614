"""
testsnake/validator.py
══════════════════════

The naming convention for sub-test names.

A valid name is one or more runs of lower-case ASCII letters and digits
joined by single underscores::

    my_test_case    ok
    case2           ok
    myTestCase      upper-case letter
    _leading        empty first run
    double__under   empty middle run
    with space      space is not allowed

The check is pure and total: every string gets an answer, the empty string
included.
"""

from __future__ import annotations

import re
from typing import Optional

SNAKE_CASE_PATTERN = re.compile(r"[a-z0-9]+(?:_[a-z0-9]+)*")

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RUN = re.compile(r"[^a-z0-9]+")


def is_valid_snake_case(text: str) -> bool:
    """True iff ``text`` is a non-empty snake_case name."""
    if not text:
        return False
    if any(ch.isupper() for ch in text):
        return False
    return SNAKE_CASE_PATTERN.fullmatch(text) is not None


def suggest_snake_case(text: str) -> Optional[str]:
    """
    Best-effort snake_case spelling of ``text``.

    Camel-case boundaries and runs of anything that is not a lower-case
    ASCII letter or digit become single underscores.  Returns ``None`` when
    ``text`` is already valid or nothing usable is left.

    >>> suggest_snake_case("invalidSnake")
    'invalid_snake'
    >>> suggest_snake_case("HTTPServer returns 404")
    'http_server_returns_404'
    """
    if is_valid_snake_case(text):
        return None
    spaced = _ACRONYM_BOUNDARY.sub(r"\1_\2", text)
    spaced = _CAMEL_BOUNDARY.sub(r"\1_\2", spaced)
    suggestion = _SEPARATOR_RUN.sub("_", spaced.lower()).strip("_")
    return suggestion or None


__all__ = [
    "SNAKE_CASE_PATTERN",
    "is_valid_snake_case",
    "suggest_snake_case",
]
