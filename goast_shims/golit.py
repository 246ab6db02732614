"""
goast_shims/golit.py
════════════════════

Go string literal codec.

``unquote`` decodes the source text of an interpreted (``"..."``) or raw
(`` `...` ``) Go string literal into its value; ``quote`` renders a value
the way Go's ``%q`` verb does.  Go strings are byte sequences: ``\\xNN``
and octal escapes produce single bytes, which may leave the result invalid
UTF-8.  Such bytes survive the round trip as surrogate escapes and are
rendered back as ``\\xNN``.

The literal grammar is a Parsimonious PEG, the same tool the rest of the
code base uses for small languages.
"""

from __future__ import annotations

import logging
from typing import List

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import Node, NodeVisitor

from goast_shims.errors import GoLiteralError

logger = logging.getLogger(__name__)


GO_STRING_GRAMMAR = Grammar(r'''
    literal      = raw / interpreted

    raw          = "`" raw_body "`"
    raw_body     = ~r"[^`]*"

    interpreted  = "\"" piece* "\""
    piece        = escape / plain
    plain        = ~r"[^\"\\\n]+"
    escape       = simple_esc / hex_esc / little_u / big_u / octal_esc
    simple_esc   = ~r"\\[abfnrtv\\\"]"
    hex_esc      = ~r"\\x[0-9a-fA-F]{2}"
    little_u     = ~r"\\u[0-9a-fA-F]{4}"
    big_u        = ~r"\\U[0-9a-fA-F]{8}"
    octal_esc    = ~r"\\[0-3][0-7]{2}"
''')

_SIMPLE_ESCAPES = {
    "a": b"\x07",
    "b": b"\x08",
    "f": b"\x0c",
    "n": b"\n",
    "r": b"\r",
    "t": b"\t",
    "v": b"\x0b",
    "\\": b"\\",
    '"': b'"',
}

_QUOTE_ESCAPES = {
    "\x07": "\\a",
    "\x08": "\\b",
    "\x0c": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\x0b": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


class _LiteralDecoder(NodeVisitor):
    """Folds a literal parse tree into the bytes of the string value."""

    unwrapped_exceptions = (GoLiteralError,)

    def generic_visit(self, node: Node, visited_children: List) -> object:
        return visited_children or node

    def visit_literal(self, node, visited_children) -> bytes:
        return visited_children[0]

    def visit_raw(self, node, visited_children) -> bytes:
        # Carriage returns inside raw literals are discarded.
        _, body, _ = visited_children
        return body.text.replace("\r", "").encode("utf-8")

    def visit_interpreted(self, node, visited_children) -> bytes:
        _, pieces, _ = visited_children
        if not isinstance(pieces, list):
            return b""
        return b"".join(pieces)

    def visit_piece(self, node, visited_children) -> bytes:
        return visited_children[0]

    def visit_escape(self, node, visited_children) -> bytes:
        return visited_children[0]

    def visit_plain(self, node, visited_children) -> bytes:
        return node.text.encode("utf-8")

    def visit_simple_esc(self, node, visited_children) -> bytes:
        return _SIMPLE_ESCAPES[node.text[1]]

    def visit_hex_esc(self, node, visited_children) -> bytes:
        return bytes([int(node.text[2:], 16)])

    def visit_octal_esc(self, node, visited_children) -> bytes:
        return bytes([int(node.text[1:], 8)])

    def visit_little_u(self, node, visited_children) -> bytes:
        return _code_point(node.text, int(node.text[2:], 16))

    def visit_big_u(self, node, visited_children) -> bytes:
        return _code_point(node.text, int(node.text[2:], 16))


def _code_point(text: str, value: int) -> bytes:
    if value > 0x10FFFF or 0xD800 <= value <= 0xDFFF:
        raise GoLiteralError(
            f"escape sequence {text} is an invalid Unicode code point",
            literal=text,
        )
    return chr(value).encode("utf-8")


def unquote(text: str) -> str:
    """
    Decode the source text of a Go string literal.

    Raises
    ------
    GoLiteralError
        If ``text`` is not a well-formed interpreted or raw string literal.
    """
    try:
        tree = GO_STRING_GRAMMAR.parse(text)
    except ParseError as exc:
        raise GoLiteralError(
            f"malformed Go string literal {text!r}",
            literal=text,
            cause=exc,
        ) from exc
    value = _LiteralDecoder().visit(tree)
    return value.decode("utf-8", errors="surrogateescape")


def quote(value: str) -> str:
    """Render ``value`` as Go's ``%q`` verb would."""
    out = ['"']
    for ch in value:
        cp = ord(ch)
        if ch in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[ch])
        elif 0xDC80 <= cp <= 0xDCFF:
            out.append(f"\\x{cp - 0xDC00:02x}")
        elif ch == " " or (ch.isprintable() and cp != 0x7F):
            out.append(ch)
        elif cp < 0x80:
            out.append(f"\\x{cp:02x}")
        elif cp < 0x10000:
            out.append(f"\\u{cp:04x}")
        else:
            out.append(f"\\U{cp:08x}")
    out.append('"')
    return "".join(out)


__all__ = [
    "GO_STRING_GRAMMAR",
    "unquote",
    "quote",
]
