#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
goast_shims/type_oracle.py
══════════════════════════

Symbol, type and constant oracle for one Go package.

Tree-sitter gives us syntax only.  Analyses need the answers a type
checker would give about that syntax, so this module rebuilds the part
of Go's semantics they rely on:

    ┌─────────────────────────────────────────────────────────────────┐
    │  Scopes & Symbols                                               │
    │    • package block (all files), file block (imports)            │
    │    • function, block, for/if/switch/case implicit blocks        │
    │    • Go visibility: a local name is in scope after its spec     │
    │    • ``:=`` redeclaration reuses the existing symbol            │
    ├─────────────────────────────────────────────────────────────────┤
    │  Static Types                                                   │
    │    • canonical strings in ``go/types`` form (``*testing.T``)    │
    │    • import aliases and type aliases are resolved               │
    │    • declared, inferred (``&T{}``, ``T{}``, conversions,        │
    │      package functions), struct fields, range elements          │
    ├─────────────────────────────────────────────────────────────────┤
    │  Constants                                                      │
    │    • string literals, named constants (incl. implicit           │
    │      repetition in const groups), ``+`` concatenation,          │
    │      conversions of constants to string types                   │
    ├─────────────────────────────────────────────────────────────────┤
    │  Writes                                                         │
    │    • every define, assignment, compound assignment, inc/dec,   │
    │      range binding and address-taking of a variable             │
    └─────────────────────────────────────────────────────────────────┘

The oracle is built once per package and is read-only afterwards apart
from internal memo tables; answers are ``None`` whenever the syntax is
not enough to decide.

License: MIT
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field as dc_field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from tree_sitter import Node

from goast_shims.ast_helper import (
    BLOCK_NODE_TYPES,
    FUNCTION_NODE_TYPES,
    NodeKey,
    call_arguments,
    expression_items,
    field,
    has_token,
    is_string_literal,
    named,
    node_key,
    unwrap_parens,
)
from goast_shims.errors import GoLiteralError
from goast_shims.golit import unquote
from goast_shims.source import GoPackage, GoSourceFile

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 - SYMBOLS, SCOPES, WRITES
# ═══════════════════════════════════════════════════════════════════════════

class SymbolKind(Enum):
    CONST = "const"
    VAR = "var"
    TYPE = "type"
    FUNC = "func"
    PACKAGE = "package"


class WriteKind(Enum):
    """How a variable is written."""
    DEFINE = "define"        # x := v
    DECLARE = "declare"      # var x = v
    ASSIGN = "assign"        # x = v
    COMPOUND = "compound"    # x += v
    INCDEC = "incdec"        # x++
    RANGE = "range"          # for _, x = range ...
    ADDRESS = "address"      # &x (may be written through the pointer)


SIMPLE_WRITES = frozenset({WriteKind.DEFINE, WriteKind.DECLARE, WriteKind.ASSIGN})


@dataclass(eq=False)
class Symbol:
    """A declared name.  Compared by identity, like ``types.Object``."""
    name: str
    kind: SymbolKind
    file: Optional[GoSourceFile] = None
    ident: Optional[Node] = None
    type_node: Optional[Node] = None
    value_node: Optional[Node] = None
    range_clause: Optional[Node] = None
    range_index: int = 0
    is_alias: bool = False
    import_path: str = ""

    def __repr__(self) -> str:
        return f"<Symbol {self.kind.value} {self.name}>"


@dataclass(frozen=True)
class Write:
    """One write of an identifier; ``rhs`` is the paired value, if any."""
    file: GoSourceFile
    lhs: Node
    rhs: Optional[Node]
    kind: WriteKind


@dataclass(eq=False)
class Scope:
    kind: str
    node: Optional[Node] = None
    parent: Optional["Scope"] = None
    symbols: Dict[str, List[Tuple[int, Symbol]]] = dc_field(default_factory=dict)

    def declare(self, sym: Symbol, visible_from: int = -1) -> None:
        self.symbols.setdefault(sym.name, []).append((visible_from, sym))

    def lookup(self, name: str, pos: Optional[int] = None) -> Optional[Symbol]:
        """Symbol ``name`` visible at byte offset ``pos`` (any when ``pos`` is None)."""
        best: Optional[Tuple[int, Symbol]] = None
        for visible_from, sym in self.symbols.get(name, ()):
            if pos is not None and visible_from > pos:
                continue
            if best is None or visible_from >= best[0]:
                best = (visible_from, sym)
        return best[1] if best else None


@dataclass
class _FileIndex:
    file: GoSourceFile
    imports: Dict[str, Symbol] = dc_field(default_factory=dict)
    dot_imports: List[str] = dc_field(default_factory=list)
    defs: Dict[NodeKey, Symbol] = dc_field(default_factory=dict)
    uses: Dict[NodeKey, Scope] = dc_field(default_factory=dict)
    writes: List[Write] = dc_field(default_factory=list)


_PREDECLARED_TYPES = frozenset({
    "any", "bool", "byte", "comparable", "complex64", "complex128", "error",
    "float32", "float64", "int", "int8", "int16", "int32", "int64", "rune",
    "string", "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
})

_MAJOR_VERSION = re.compile(r"v[0-9]+")
_GOPKG_VERSION = re.compile(r"^(.*)\.v[0-9]+$")


def import_name(path: str) -> str:
    """Default local name of an imported package (the path's last element)."""
    parts = [p for p in path.split("/") if p]
    if not parts:
        return ""
    last = parts[-1]
    if _MAJOR_VERSION.fullmatch(last) and len(parts) > 1:
        last = parts[-2]
    m = _GOPKG_VERSION.match(last)
    if m:
        last = m.group(1)
    return last.replace("-", "_")


def _identifiers(node: Optional[Node]) -> List[Node]:
    return [c for c in named(node) if c.type == "identifier"]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 - THE ORACLE
# ═══════════════════════════════════════════════════════════════════════════

class TypeOracle:
    """
    Answers symbol, type and constant questions about one ``GoPackage``.

    Usage
    -----
    >>> oracle = TypeOracle(package)
    >>> sym = oracle.object_of(gofile, ident_node)
    >>> oracle.type_of(gofile, receiver_node)
    '*testing.T'
    >>> oracle.constant_value(gofile, expr_node)
    'valid_snake'
    """

    def __init__(self, package: GoPackage) -> None:
        self.package = package
        self.package_scope = Scope(kind="package")
        self._files: Dict[str, _FileIndex] = {}
        self._writes_by_symbol: Optional[Dict[Symbol, List[Write]]] = None
        self._const_memo: Dict[Tuple[str, NodeKey], Optional[str]] = {}
        self._type_memo: Dict[Tuple[str, NodeKey], Optional[str]] = {}
        self._in_progress: Set[Tuple[str, str, NodeKey]] = set()

        for gofile in package.files:
            self._files[gofile.path] = _FileIndex(file=gofile)
        for gofile in package.files:
            self._declare_package_level(self._files[gofile.path])
        for gofile in package.files:
            self._walk(self._files[gofile.path], gofile.root, self.package_scope)
        logger.debug(
            "oracle for package %s: %d file(s), %d package-level name(s)",
            package.name, len(package.files), len(self.package_scope.symbols),
        )

    # ─────────────────────────────────────────────────────────────────
    #  Declarations
    # ─────────────────────────────────────────────────────────────────

    def _index(self, gofile: GoSourceFile) -> _FileIndex:
        idx = self._files.get(gofile.path)
        if idx is None:
            raise KeyError(f"{gofile.path} is not part of package {self.package.name}")
        return idx

    def _define(
        self,
        idx: _FileIndex,
        scope: Scope,
        ident: Node,
        kind: SymbolKind,
        visible_from: int = -1,
        **attrs,
    ) -> Optional[Symbol]:
        name = idx.file.text(ident)
        if name == "_":
            return None
        sym = Symbol(name=name, kind=kind, file=idx.file, ident=ident, **attrs)
        scope.declare(sym, visible_from)
        idx.defs[node_key(ident)] = sym
        return sym

    def _declare_package_level(self, idx: _FileIndex) -> None:
        for decl in named(idx.file.root):
            t = decl.type
            if t == "import_declaration":
                self._declare_imports(idx, decl)
            elif t == "const_declaration":
                self._declare_consts(idx, decl, self.package_scope)
            elif t == "var_declaration":
                for spec in self._var_specs(decl):
                    self._declare_var_spec(idx, spec, self.package_scope)
            elif t == "type_declaration":
                self._declare_types(idx, decl, self.package_scope)
            elif t == "function_declaration":
                name = field(decl, "name")
                if name is not None:
                    self._define(idx, self.package_scope, name, SymbolKind.FUNC,
                                 value_node=decl)

    def _declare_imports(self, idx: _FileIndex, decl: Node) -> None:
        specs = [n for n in named(decl) if n.type == "import_spec"]
        for spec_list in (n for n in named(decl) if n.type == "import_spec_list"):
            specs.extend(n for n in named(spec_list) if n.type == "import_spec")
        for spec in specs:
            path_node = field(spec, "path")
            if path_node is None:
                continue
            try:
                path = unquote(idx.file.text(path_node))
            except GoLiteralError:
                continue
            alias = field(spec, "name")
            if alias is not None:
                if alias.type == "dot":
                    idx.dot_imports.append(path)
                    continue
                if alias.type != "package_identifier":
                    continue  # blank import
                local = idx.file.text(alias)
            else:
                local = import_name(path)
            idx.imports[local] = Symbol(
                name=local, kind=SymbolKind.PACKAGE, file=idx.file,
                ident=alias, import_path=path,
            )

    def _declare_consts(self, idx: _FileIndex, decl: Node, scope: Scope) -> None:
        local = scope.kind != "package"
        last_values: List[Node] = []
        last_type: Optional[Node] = None
        for spec in (n for n in named(decl) if n.type == "const_spec"):
            value_list = field(spec, "value")
            type_node = field(spec, "type")
            if value_list is not None:
                last_values = expression_items(value_list)
                last_type = type_node
            else:
                # Implicit repetition of the previous expression list.
                type_node = last_type
            names = [n for n in spec.children_by_field_name("name")] or _identifiers(spec)
            for i, ident in enumerate(names):
                value = last_values[i] if i < len(last_values) else None
                self._define(
                    idx, scope, ident, SymbolKind.CONST,
                    visible_from=spec.end_byte if local else -1,
                    type_node=type_node, value_node=value,
                )

    @staticmethod
    def _var_specs(decl: Node) -> List[Node]:
        specs: List[Node] = []
        for child in named(decl):
            if child.type == "var_spec":
                specs.append(child)
            elif child.type == "var_spec_list":
                specs.extend(n for n in named(child) if n.type == "var_spec")
        return specs

    def _declare_var_spec(self, idx: _FileIndex, spec: Node, scope: Scope) -> None:
        local = scope.kind != "package"
        names = [n for n in spec.children_by_field_name("name")] or _identifiers(spec)
        values = expression_items(field(spec, "value"))
        paired = len(values) == len(names)
        for i, ident in enumerate(names):
            value = values[i] if paired else None
            self._define(
                idx, scope, ident, SymbolKind.VAR,
                visible_from=spec.end_byte if local else -1,
                type_node=field(spec, "type"), value_node=value,
            )
            if values and idx.file.text(ident) != "_":
                idx.writes.append(Write(idx.file, ident, value, WriteKind.DECLARE))

    def _declare_types(self, idx: _FileIndex, decl: Node, scope: Scope) -> None:
        local = scope.kind != "package"
        for spec in named(decl):
            if spec.type not in ("type_spec", "type_alias"):
                continue
            name = field(spec, "name")
            if name is None:
                continue
            self._define(
                idx, scope, name, SymbolKind.TYPE,
                visible_from=name.start_byte if local else -1,
                type_node=field(spec, "type"),
                is_alias=spec.type == "type_alias",
            )

    def _declare_params(self, idx: _FileIndex, scope: Scope, fn: Node) -> None:
        for field_name in ("receiver", "parameters", "result"):
            plist = field(fn, field_name)
            if plist is None or plist.type != "parameter_list":
                continue
            for param in named(plist):
                if param.type == "parameter_declaration":
                    type_node = field(param, "type")
                elif param.type == "variadic_parameter_declaration":
                    type_node = None
                else:
                    continue
                for ident in param.children_by_field_name("name"):
                    if ident.type == "identifier":
                        self._define(idx, scope, ident, SymbolKind.VAR,
                                     visible_from=fn.start_byte, type_node=type_node)

    # ─────────────────────────────────────────────────────────────────
    #  Walk: local declarations, uses, writes
    # ─────────────────────────────────────────────────────────────────

    def _walk(self, idx: _FileIndex, root: Node, scope: Scope) -> None:
        stack: List[Tuple[Node, Scope, bool]] = [(root, scope, False)]
        while stack:
            node, scope, is_fn_body = stack.pop()
            t = node.type
            local = scope.kind != "package"

            if t in FUNCTION_NODE_TYPES:
                fscope = Scope(kind="function", node=node, parent=scope)
                self._declare_params(idx, fscope, node)
                body = field(node, "body")
                pending = [(c, fscope, c == body) for c in node.children]
                stack.extend(reversed(pending))
                continue

            if (t == "block" and not is_fn_body) or (t in BLOCK_NODE_TYPES and t != "block"):
                scope = Scope(kind=t, node=node, parent=scope)
                local = True

            if t == "identifier" or t == "type_identifier":
                key = node_key(node)
                if key not in idx.defs:
                    idx.uses[key] = scope
            elif t == "short_var_declaration":
                self._visit_define(idx, scope, node)
            elif t == "var_declaration" and local:
                for spec in self._var_specs(node):
                    self._declare_var_spec(idx, spec, scope)
            elif t == "const_declaration" and local:
                self._declare_consts(idx, node, scope)
            elif t == "type_declaration" and local:
                self._declare_types(idx, node, scope)
            elif t == "range_clause":
                self._visit_range(idx, scope, node)
            elif t == "receive_statement":
                self._visit_receive(idx, scope, node)
            elif t == "type_switch_statement":
                self._visit_type_switch(idx, scope, node)
            elif t == "assignment_statement":
                self._visit_assign(idx, node)
            elif t in ("inc_statement", "dec_statement"):
                operand = unwrap_parens(named(node)[0]) if named(node) else None
                if operand is not None and operand.type == "identifier":
                    idx.writes.append(Write(idx.file, operand, None, WriteKind.INCDEC))
            elif t == "unary_expression" and has_token(node, "&"):
                operand = unwrap_parens(field(node, "operand"))
                if operand is not None and operand.type == "identifier":
                    idx.writes.append(Write(idx.file, operand, None, WriteKind.ADDRESS))

            stack.extend((c, scope, False) for c in reversed(node.children))

    def _visit_define(self, idx: _FileIndex, scope: Scope, node: Node) -> None:
        lhs = expression_items(field(node, "left"))
        rhs = expression_items(field(node, "right"))
        paired = len(lhs) == len(rhs)
        for i, ident in enumerate(lhs):
            if ident.type != "identifier":
                continue
            name = idx.file.text(ident)
            if name == "_":
                continue
            value = rhs[i] if paired else None
            existing = scope.lookup(name)
            if existing is not None and existing.kind == SymbolKind.VAR:
                # Redeclaration in the same scope assigns the existing variable.
                idx.defs[node_key(ident)] = existing
            else:
                self._define(idx, scope, ident, SymbolKind.VAR,
                             visible_from=node.end_byte, value_node=value)
            idx.writes.append(Write(idx.file, ident, value, WriteKind.DEFINE))

    def _visit_range(self, idx: _FileIndex, scope: Scope, clause: Node) -> None:
        lhs = expression_items(field(clause, "left"))
        defines = has_token(clause, ":=")
        for i, ident in enumerate(lhs):
            if ident.type != "identifier" or idx.file.text(ident) == "_":
                continue
            if defines:
                self._define(idx, scope, ident, SymbolKind.VAR,
                             visible_from=clause.end_byte,
                             range_clause=clause, range_index=i)
            idx.writes.append(Write(idx.file, ident, None, WriteKind.RANGE))

    def _visit_receive(self, idx: _FileIndex, scope: Scope, stmt: Node) -> None:
        lhs = expression_items(field(stmt, "left"))
        defines = has_token(stmt, ":=")
        for ident in lhs:
            if ident.type != "identifier" or idx.file.text(ident) == "_":
                continue
            if defines:
                self._define(idx, scope, ident, SymbolKind.VAR,
                             visible_from=stmt.end_byte)
            idx.writes.append(Write(idx.file, ident, None,
                                    WriteKind.DEFINE if defines else WriteKind.ASSIGN))

    def _visit_type_switch(self, idx: _FileIndex, scope: Scope, stmt: Node) -> None:
        value = field(stmt, "value")
        for ident in expression_items(field(stmt, "alias")):
            if ident.type == "identifier":
                self._define(idx, scope, ident, SymbolKind.VAR,
                             visible_from=value.end_byte if value else stmt.start_byte)

    def _visit_assign(self, idx: _FileIndex, stmt: Node) -> None:
        op = field(stmt, "operator")
        simple = op is None or op.type == "="
        lhs = expression_items(field(stmt, "left"))
        rhs = expression_items(field(stmt, "right"))
        paired = len(lhs) == len(rhs)
        for i, target in enumerate(lhs):
            target = unwrap_parens(target)
            if target is None or target.type != "identifier":
                continue
            if simple:
                idx.writes.append(Write(idx.file, target, rhs[i] if paired else None,
                                        WriteKind.ASSIGN))
            else:
                idx.writes.append(Write(idx.file, target, None, WriteKind.COMPOUND))

    # ─────────────────────────────────────────────────────────────────
    #  Objects
    # ─────────────────────────────────────────────────────────────────

    def object_of(self, gofile: GoSourceFile, ident: Node) -> Optional[Symbol]:
        """The symbol an identifier defines or refers to (``None`` if predeclared/unknown)."""
        idx = self._index(gofile)
        key = node_key(ident)
        sym = idx.defs.get(key)
        if sym is not None:
            return sym
        name = gofile.text(ident)
        scope = idx.uses.get(key, self.package_scope)
        pos = ident.start_byte
        while scope is not None:
            if scope.kind == "package":
                return scope.lookup(name) or idx.imports.get(name)
            sym = scope.lookup(name, pos)
            if sym is not None:
                return sym
            scope = scope.parent
        return None

    def _lookup_package(self, gofile: GoSourceFile, name: str) -> Optional[Symbol]:
        return self.package_scope.lookup(name) or self._index(gofile).imports.get(name)

    # ─────────────────────────────────────────────────────────────────
    #  Writes
    # ─────────────────────────────────────────────────────────────────

    def writes_of(self, sym: Symbol) -> List[Write]:
        """Every recorded write of ``sym`` anywhere in the package, in file order."""
        if self._writes_by_symbol is None:
            table: Dict[Symbol, List[Write]] = {}
            for idx in self._files.values():
                for write in idx.writes:
                    target = self.object_of(idx.file, write.lhs)
                    if target is not None:
                        table.setdefault(target, []).append(write)
            self._writes_by_symbol = table
        return list(self._writes_by_symbol.get(sym, ()))

    def single_write(self, sym: Symbol) -> Optional[Write]:
        """
        The one simple write of ``sym`` with a paired value.

        ``None`` if the variable is written zero or several times, through a
        compound/inc-dec/range form, has its address taken, or receives one
        value of a multi-value expression.
        """
        if sym.kind != SymbolKind.VAR:
            return None
        writes = self.writes_of(sym)
        if len(writes) != 1:
            return None
        write = writes[0]
        if write.kind not in SIMPLE_WRITES or write.rhs is None:
            return None
        return write

    # ─────────────────────────────────────────────────────────────────
    #  Constants
    # ─────────────────────────────────────────────────────────────────

    def constant_value(self, gofile: GoSourceFile, expr: Optional[Node]) -> Optional[str]:
        """Compile-time string value of ``expr``, or ``None``."""
        expr = unwrap_parens(expr)
        if expr is None:
            return None
        key = (gofile.path, node_key(expr))
        if key in self._const_memo:
            return self._const_memo[key]
        guard = ("const",) + key
        if guard in self._in_progress:
            return None  # constant initialization cycle
        self._in_progress.add(guard)
        try:
            value = self._eval_const(gofile, expr)
        finally:
            self._in_progress.discard(guard)
        self._const_memo[key] = value
        return value

    def _eval_const(self, gofile: GoSourceFile, expr: Node) -> Optional[str]:
        t = expr.type
        if is_string_literal(expr):
            try:
                return unquote(gofile.text(expr))
            except GoLiteralError as exc:
                logger.debug("undecodable literal at %s: %s", gofile.location(expr), exc)
                return None
        if t == "identifier":
            sym = self.object_of(gofile, expr)
            if sym is None or sym.kind != SymbolKind.CONST or sym.file is None:
                return None
            return self.constant_value(sym.file, sym.value_node)
        if t == "binary_expression":
            return self._eval_concatenation(gofile, expr)
        if t == "call_expression":
            return self._eval_conversion(gofile, expr)
        return None

    def _eval_concatenation(self, gofile: GoSourceFile, expr: Node) -> Optional[str]:
        """
        Fold ``a + b + c``.  The parser nests such chains to the left, so
        the left spine is walked in a loop and its depth never reaches the
        interpreter stack.
        """
        operands: List[Optional[Node]] = []
        node: Optional[Node] = expr
        while node is not None and node.type == "binary_expression":
            op = field(node, "operator")
            if op is None or op.type != "+":
                return None
            operands.append(field(node, "right"))
            node = unwrap_parens(field(node, "left"))
        operands.append(node)
        parts: List[str] = []
        for operand in reversed(operands):
            value = self.constant_value(gofile, operand)
            if value is None:
                return None
            parts.append(value)
        return "".join(parts)

    def _eval_conversion(self, gofile: GoSourceFile, call: Node) -> Optional[str]:
        fn = unwrap_parens(field(call, "function"))
        args = call_arguments(call)
        if fn is None or fn.type != "identifier" or len(args) != 1:
            return None
        sym = self.object_of(gofile, fn)
        if sym is None:
            if gofile.text(fn) != "string":
                return None
        elif sym.kind != SymbolKind.TYPE or sym.file is None:
            return None
        elif self.underlying_type(sym.file, sym.type_node) != "string":
            return None
        return self.constant_value(gofile, args[0])

    # ─────────────────────────────────────────────────────────────────
    #  Types
    # ─────────────────────────────────────────────────────────────────

    def type_of(self, gofile: GoSourceFile, expr: Optional[Node]) -> Optional[str]:
        """Static type of ``expr`` as a ``go/types`` string, or ``None``."""
        expr = unwrap_parens(expr)
        if expr is None:
            return None
        key = (gofile.path, node_key(expr))
        if key in self._type_memo:
            return self._type_memo[key]
        guard = ("type",) + key
        if guard in self._in_progress:
            return None
        self._in_progress.add(guard)
        try:
            result = self._infer_type(gofile, expr)
        finally:
            self._in_progress.discard(guard)
        self._type_memo[key] = result
        return result

    def _infer_type(self, gofile: GoSourceFile, expr: Node) -> Optional[str]:
        t = expr.type
        if t == "identifier":
            return self._symbol_type(self.object_of(gofile, expr))
        if is_string_literal(expr):
            return "string"
        if t == "unary_expression":
            operand = field(expr, "operand")
            inner = self.type_of(gofile, operand)
            if inner is None:
                return None
            if has_token(expr, "&"):
                return "*" + inner
            if has_token(expr, "*"):
                return inner[1:] if inner.startswith("*") else None
            return inner
        if t == "composite_literal":
            return self.type_string(gofile, field(expr, "type"))
        if t == "selector_expression":
            return self._selector_type(gofile, expr)
        if t == "call_expression":
            return self._call_type(gofile, expr)
        return None

    def _symbol_type(self, sym: Optional[Symbol]) -> Optional[str]:
        if sym is None or sym.file is None or sym.kind not in (SymbolKind.VAR, SymbolKind.CONST):
            return None
        if sym.type_node is not None:
            return self.type_string(sym.file, sym.type_node)
        if sym.range_clause is not None:
            elem = self._range_element_type(sym)
            return self.type_string(*elem) if elem else None
        if sym.value_node is not None:
            return self.type_of(sym.file, sym.value_node)
        return None

    def _selector_type(self, gofile: GoSourceFile, expr: Node) -> Optional[str]:
        operand = unwrap_parens(field(expr, "operand"))
        fld = field(expr, "field")
        if operand is None or fld is None:
            return None
        if operand.type == "identifier":
            sym = self.object_of(gofile, operand)
            if sym is not None and sym.kind == SymbolKind.PACKAGE:
                return None  # members of other packages are not visible
        struct = self._struct_of_expr(gofile, operand)
        if struct is None:
            return None
        sfile, snode = struct
        for name, type_node in self._struct_field_decls(sfile, snode):
            if name == gofile.text(fld):
                return self.type_string(sfile, type_node)
        return None

    def _call_type(self, gofile: GoSourceFile, call: Node) -> Optional[str]:
        fn = unwrap_parens(field(call, "function"))
        if fn is None or fn.type != "identifier":
            return None
        sym = self.object_of(gofile, fn)
        args = call_arguments(call)
        if sym is None:
            if gofile.text(fn) == "new" and args:
                inner = self.type_string(gofile, args[0])
                return "*" + inner if inner else None
            if gofile.text(fn) == "string":
                return "string"
            return None
        if sym.kind == SymbolKind.TYPE and sym.file is not None:
            return self._named_type_string(sym)
        if sym.kind == SymbolKind.FUNC and sym.file is not None and sym.value_node is not None:
            result = field(sym.value_node, "result")
            if result is not None and result.type != "parameter_list":
                return self.type_string(sym.file, result)
        return None

    def _named_type_string(self, sym: Symbol) -> Optional[str]:
        if sym.is_alias and sym.file is not None:
            return self.type_string(sym.file, sym.type_node)
        return f"{self.package.name}.{sym.name}" if self.package.name else sym.name

    def type_string(self, gofile: GoSourceFile, tnode: Optional[Node]) -> Optional[str]:
        """Canonical string of a type expression (``*testing.T``, ``[]pkg.Case``)."""
        if tnode is None:
            return None
        guard = ("typestr", gofile.path, node_key(tnode))
        if guard in self._in_progress:
            return None  # alias cycle
        self._in_progress.add(guard)
        try:
            return self._type_string(gofile, tnode)
        finally:
            self._in_progress.discard(guard)

    def _type_string(self, gofile: GoSourceFile, tnode: Node) -> Optional[str]:
        t = tnode.type
        if t in ("parenthesized_type", "parenthesized_expression"):
            inner = named(tnode)
            return self.type_string(gofile, inner[0]) if inner else None
        if t == "pointer_type" or (t == "unary_expression" and has_token(tnode, "*")):
            inner_nodes = named(tnode)
            inner = self.type_string(gofile, inner_nodes[-1]) if inner_nodes else None
            return "*" + inner if inner else None
        if t in ("qualified_type", "selector_expression"):
            pkg = field(tnode, "package") or field(tnode, "operand")
            name = field(tnode, "name") or field(tnode, "field")
            if pkg is None or name is None:
                return None
            pkg_name = gofile.text(pkg)
            imported = self._index(gofile).imports.get(pkg_name)
            path = imported.import_path if imported is not None else pkg_name
            return f"{path}.{gofile.text(name)}"
        if t in ("type_identifier", "identifier"):
            sym = self.object_of(gofile, tnode)
            if sym is None:
                return self._unbound_type_string(gofile, tnode)
            if sym.kind != SymbolKind.TYPE:
                return None
            return self._named_type_string(sym)
        if t == "slice_type":
            elem = self.type_string(gofile, field(tnode, "element"))
            return "[]" + elem if elem else None
        if t == "array_type":
            elem = self.type_string(gofile, field(tnode, "element"))
            length = field(tnode, "length")
            size = gofile.text(length) if length is not None else "..."
            return f"[{size}]{elem}" if elem else None
        if t == "implicit_length_array_type":
            elem = self.type_string(gofile, field(tnode, "element"))
            return f"[...]{elem}" if elem else None
        if t == "map_type":
            key = self.type_string(gofile, field(tnode, "key"))
            value = self.type_string(gofile, field(tnode, "value"))
            return f"map[{key}]{value}" if key and value else None
        return " ".join(gofile.text(tnode).split())

    def _unbound_type_string(self, gofile: GoSourceFile, tnode: Node) -> str:
        # Predeclared, or brought in by a dot import.  With several dot
        # imports the owning package is unknown, so the bare name stands.
        name = gofile.text(tnode)
        if name in _PREDECLARED_TYPES:
            return name
        dots = self._index(gofile).dot_imports
        if len(dots) == 1:
            return f"{dots[0]}.{name}"
        return name

    def underlying_type(self, gofile: GoSourceFile, tnode: Optional[Node]) -> Optional[str]:
        """Type string after following named and alias types to their definition."""
        resolved = self._resolve_named(gofile, tnode)
        if resolved is None:
            return None
        rfile, rnode = resolved
        return self.type_string(rfile, rnode)

    def _resolve_named(
        self, gofile: GoSourceFile, tnode: Optional[Node], depth: int = 0
    ) -> Optional[Tuple[GoSourceFile, Node]]:
        if tnode is None or depth > 16:
            return None
        if tnode.type in ("type_identifier", "identifier"):
            sym = self.object_of(gofile, tnode)
            if sym is None:
                return (gofile, tnode)
            if sym.kind != SymbolKind.TYPE or sym.file is None:
                return None
            return self._resolve_named(sym.file, sym.type_node, depth + 1)
        if tnode.type == "parenthesized_type":
            inner = named(tnode)
            return self._resolve_named(gofile, inner[0], depth + 1) if inner else None
        return (gofile, tnode)

    # ─────────────────────────────────────────────────────────────────
    #  Structs & collections
    # ─────────────────────────────────────────────────────────────────

    def _struct_type_node(
        self, gofile: GoSourceFile, tnode: Optional[Node]
    ) -> Optional[Tuple[GoSourceFile, Node]]:
        resolved = self._resolve_named(gofile, tnode)
        if resolved is None:
            return None
        rfile, rnode = resolved
        if rnode.type == "pointer_type":
            inner = named(rnode)
            return self._struct_type_node(rfile, inner[-1]) if inner else None
        if rnode.type == "struct_type":
            return (rfile, rnode)
        return None

    def _struct_field_decls(
        self, gofile: GoSourceFile, struct_node: Node
    ) -> List[Tuple[str, Node]]:
        """``(name, type node)`` per field, in declaration order."""
        fields: List[Tuple[str, Node]] = []
        for decl_list in (n for n in named(struct_node) if n.type == "field_declaration_list"):
            for decl in (n for n in named(decl_list) if n.type == "field_declaration"):
                type_node = field(decl, "type")
                names = decl.children_by_field_name("name")
                if names:
                    fields.extend((gofile.text(n), type_node) for n in names)
                elif type_node is not None:
                    # Embedded field: named after its type.
                    embedded = gofile.text(type_node).lstrip("*").split(".")[-1]
                    fields.append((embedded, type_node))
        return fields

    def _struct_of_expr(
        self, gofile: GoSourceFile, expr: Node
    ) -> Optional[Tuple[GoSourceFile, Node]]:
        if expr.type == "identifier":
            sym = self.object_of(gofile, expr)
            if sym is None or sym.file is None:
                return None
            if sym.type_node is not None:
                return self._struct_type_node(sym.file, sym.type_node)
            if sym.range_clause is not None:
                elem = self._range_element_type(sym)
                return self._struct_type_node(*elem) if elem else None
            if sym.value_node is not None:
                return self._struct_of_expr(sym.file, unwrap_parens(sym.value_node))
            return None
        if expr.type == "unary_expression" and has_token(expr, "&"):
            operand = unwrap_parens(field(expr, "operand"))
            return self._struct_of_expr(gofile, operand) if operand is not None else None
        if expr.type == "composite_literal":
            return self._struct_type_node(gofile, field(expr, "type"))
        return None

    def collection_type_node(
        self, gofile: GoSourceFile, expr: Optional[Node]
    ) -> Optional[Tuple[GoSourceFile, Node]]:
        """Declared type expression of a collection-valued expression."""
        expr = unwrap_parens(expr)
        if expr is None:
            return None
        if expr.type == "composite_literal":
            tnode = field(expr, "type")
            return (gofile, tnode) if tnode is not None else None
        if expr.type == "identifier":
            sym = self.object_of(gofile, expr)
            if sym is None or sym.file is None or sym.kind != SymbolKind.VAR:
                return None
            if sym.type_node is not None:
                return (sym.file, sym.type_node)
            if sym.value_node is not None:
                return self.collection_type_node(sym.file, sym.value_node)
        return None

    def element_type_node(
        self, gofile: GoSourceFile, collection_type: Node, index: int = 1
    ) -> Optional[Tuple[GoSourceFile, Node]]:
        """Key (``index`` 0) or element (``index`` 1) type node of a collection type."""
        resolved = self._resolve_named(gofile, collection_type)
        if resolved is None:
            return None
        rfile, rnode = resolved
        if rnode.type in ("slice_type", "array_type", "implicit_length_array_type"):
            if index == 0:
                return None  # int index; no syntax to point at
            elem = field(rnode, "element")
            return (rfile, elem) if elem is not None else None
        if rnode.type == "map_type":
            part = field(rnode, "key" if index == 0 else "value")
            return (rfile, part) if part is not None else None
        return None

    def _range_element_type(self, sym: Symbol) -> Optional[Tuple[GoSourceFile, Node]]:
        if sym.range_clause is None or sym.file is None:
            return None
        coll = self.collection_type_node(sym.file, field(sym.range_clause, "right"))
        if coll is None:
            return None
        return self.element_type_node(coll[0], coll[1], sym.range_index)

    def element_field_names(
        self, gofile: GoSourceFile, collection_literal: Node
    ) -> List[str]:
        """
        Field names, in order, of the struct elements of a collection literal.

        Empty when the element type is not a struct this package declares.
        """
        coll = self.collection_type_node(gofile, collection_literal)
        if coll is None:
            return []
        elem = self.element_type_node(coll[0], coll[1], 1)
        if elem is None:
            return []
        return self.struct_fields(*elem)

    def struct_fields(self, gofile: GoSourceFile, type_node: Optional[Node]) -> List[str]:
        """Field names of a struct type (through names and pointers), in order."""
        struct = self._struct_type_node(gofile, type_node)
        if struct is None:
            return []
        return [name for name, _ in self._struct_field_decls(*struct)]


__all__ = [
    "SymbolKind",
    "WriteKind",
    "SIMPLE_WRITES",
    "Symbol",
    "Write",
    "Scope",
    "TypeOracle",
    "import_name",
]
