"""
testsnake/resolver.py
═════════════════════

Compile-time string value of a sub-test name argument.

``resolve`` either produces the string with the position to report it at,
or declines with ``UNRESOLVED``.  Declining is a normal outcome: names
built at run time (formatting, indexing, several assignments) are simply
not checked.

    ┌───────────────────────────────┬───────────────────────────────────┐
    │ argument                      │ outcome                           │
    ├───────────────────────────────┼───────────────────────────────────┤
    │ "lit" / `lit`                 │ decoded literal, at the literal   │
    │ constName                     │ constant value, at the identifier │
    │ varName (written exactly once │ value of that write, at the       │
    │   with a constant value)      │ identifier                        │
    │ "a" + "b", ("x"), string(c)   │ folded value, at the expression   │
    │ tc.name                       │ unresolved (table-driven path)    │
    │ anything else                 │ unresolved                        │
    └───────────────────────────────┴───────────────────────────────────┘
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import ClassVar, Optional, Union

from tree_sitter import Node

from goast_shims.ast_helper import is_string_literal, unwrap_parens
from goast_shims.diagnostics import SourceLocation
from goast_shims.errors import GoLiteralError
from goast_shims.golit import unquote
from goast_shims.source import GoSourceFile
from goast_shims.type_oracle import SymbolKind, TypeOracle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolved:
    """A name whose value is known at compile time."""
    text: str
    location: SourceLocation
    node: Optional[Node] = field(default=None, compare=False, repr=False)

    resolved: ClassVar[bool] = True


class Unresolved:
    """The name's value cannot be determined statically."""

    resolved: ClassVar[bool] = False
    _instance: ClassVar[Optional["Unresolved"]] = None

    def __new__(cls) -> "Unresolved":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED = Unresolved()

ResolvedValue = Union[Resolved, Unresolved]


def _at(gofile: GoSourceFile, node: Node, text: str) -> Resolved:
    return Resolved(text=text, location=gofile.location(node), node=node)


def resolve(expr: Optional[Node], gofile: GoSourceFile, oracle: TypeOracle) -> ResolvedValue:
    """
    Resolve ``expr`` (in ``gofile``) to its compile-time string value.

    Never raises for source shapes it does not understand.
    """
    inner = unwrap_parens(expr)
    if expr is None or inner is None:
        return UNRESOLVED

    if inner.type == "selector_expression":
        return UNRESOLVED

    if is_string_literal(expr):
        try:
            return _at(gofile, expr, unquote(gofile.text(expr)))
        except GoLiteralError as exc:
            logger.debug("%s: %s", gofile.location(expr), exc)
            return UNRESOLVED

    if inner.type == "identifier":
        return _resolve_identifier(expr, inner, gofile, oracle)

    value = oracle.constant_value(gofile, inner)
    if value is None:
        logger.debug("%s: %s is not constant", gofile.location(expr), inner.type)
        return UNRESOLVED
    return _at(gofile, expr, value)


def _resolve_identifier(
    expr: Node, ident: Node, gofile: GoSourceFile, oracle: TypeOracle
) -> ResolvedValue:
    sym = oracle.object_of(gofile, ident)
    if sym is None:
        return UNRESOLVED

    if sym.kind == SymbolKind.CONST:
        value = oracle.constant_value(gofile, ident)
        return UNRESOLVED if value is None else _at(gofile, expr, value)

    if sym.kind == SymbolKind.VAR:
        write = oracle.single_write(sym)
        if write is None:
            logger.debug(
                "%s: %s is not written exactly once with a value",
                gofile.location(ident), sym.name,
            )
            return UNRESOLVED
        value = oracle.constant_value(write.file, write.rhs)
        return UNRESOLVED if value is None else _at(gofile, expr, value)

    return UNRESOLVED


__all__ = [
    "Resolved",
    "Unresolved",
    "UNRESOLVED",
    "ResolvedValue",
    "resolve",
]
