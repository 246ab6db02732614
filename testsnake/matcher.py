"""
testsnake/matcher.py
════════════════════

Finds sub-test registrations and extracts the names they are given.

    ┌───────────────────────┐   ┌────────────────────┐   ┌───────────────┐
    │ find_candidate_calls  │──▶│ candidate_values   │──▶│ scan          │
    │ x.Run(name, body)     │   │ direct: resolve()  │   │ validator +   │
    │ x : *testing.{T,B,F}  │   │ tc.f  : table rows │   │ Diagnostic    │
    └───────────────────────┘   └────────────────────┘   └───────────────┘

Table-driven tests are recognized in this shape::

    tests := []struct{ name string; ... }{
        {name: "first_case", ...},
        {"second_case", ...},
    }
    for _, tc := range tests {
        t.Run(tc.name, func(t *testing.T) { ... })
    }

Every row of the collection literal contributes the value of its ``name``
field; values are reported at the row's field position.  Calls are visited
in document order and rows in element order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node

from goast_shims.ast_helper import (
    call_arguments,
    composite_body,
    expression_items,
    field,
    iter_parents,
    iter_preorder,
    keyed_element_parts,
    literal_elements,
    named,
    selector_parts,
    unwrap_literal_element,
    unwrap_parens,
)
from goast_shims.diagnostics import Diagnostic, DiagnosticSeverity
from goast_shims.golit import quote
from goast_shims.source import GoSourceFile
from goast_shims.type_oracle import Symbol, TypeOracle
from testsnake.resolver import Resolved, resolve
from testsnake.validator import is_valid_snake_case, suggest_snake_case

logger = logging.getLogger(__name__)

ERROR_ID = "testsnake"
RUN_METHOD = "Run"
DEFAULT_TEST_FILE_SUFFIX = "_test.go"

RECOGNIZED_TEST_TYPES = frozenset({
    "*testing.T",
    "*testing.B",
    "*testing.F",
})

MESSAGE_TEMPLATE = 'test name {quoted} should use snake_case (e.g., "my_test_case")'


@dataclass(frozen=True)
class CandidateCall:
    """A ``Run`` call on a test context with at least two arguments."""
    call: Node
    receiver: Node
    name_argument: Node
    body_argument: Node


@dataclass(frozen=True)
class TableBinding:
    """Link from ``loopVar.field`` to the collection literal it ranges over."""
    loop_variable: Symbol
    field_name: str
    range_statement: Node
    collection_literal: Node
    collection_file: GoSourceFile


def format_message(value: str) -> str:
    return MESSAGE_TEMPLATE.format(quoted=quote(value))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 - CANDIDATE CALLS
# ═══════════════════════════════════════════════════════════════════════════

def find_candidate_calls(gofile: GoSourceFile, oracle: TypeOracle) -> Iterator[CandidateCall]:
    """Every ``recv.Run(name, body, ...)`` with ``recv`` a testing context."""
    for node in iter_preorder(gofile.root):
        if node.type != "call_expression":
            continue
        receiver, method = selector_parts(unwrap_parens(field(node, "function")))
        if receiver is None or method is None or gofile.text(method) != RUN_METHOD:
            continue
        receiver_type = oracle.type_of(gofile, receiver)
        if receiver_type not in RECOGNIZED_TEST_TYPES:
            logger.debug(
                "%s: Run on %s, not a test context",
                gofile.location(node), receiver_type or "unknown type",
            )
            continue
        args = call_arguments(node)
        if len(args) < 2:
            continue
        yield CandidateCall(
            call=node, receiver=receiver, name_argument=args[0], body_argument=args[1]
        )


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 - TABLE-DRIVEN EXTRACTION
# ═══════════════════════════════════════════════════════════════════════════

def _range_value_ident(stmt: Node) -> Tuple[Optional[Node], Optional[Node]]:
    """``(range_clause, value identifier)`` of a ``for k, v := range x`` statement."""
    clause = next((c for c in named(stmt) if c.type == "range_clause"), None)
    if clause is None:
        return None, None
    left = expression_items(field(clause, "left"))
    if len(left) < 2:
        return clause, None
    value = unwrap_parens(left[1])
    if value is None or value.type != "identifier":
        return clause, None
    return clause, value


def _collection_literal(
    clause: Node, gofile: GoSourceFile, oracle: TypeOracle
) -> Optional[Tuple[GoSourceFile, Node]]:
    ranged = unwrap_parens(field(clause, "right"))
    if ranged is None:
        return None
    if ranged.type == "composite_literal":
        return gofile, ranged
    if ranged.type != "identifier":
        return None
    sym = oracle.object_of(gofile, ranged)
    write = oracle.single_write(sym) if sym is not None else None
    if write is None:
        return None
    rhs = unwrap_parens(write.rhs)
    if rhs is None or rhs.type != "composite_literal":
        return None
    return write.file, rhs


def find_table_binding(
    selector: Node, call: Node, gofile: GoSourceFile, oracle: TypeOracle
) -> Optional[TableBinding]:
    """Bind ``loopVar.field`` to the range statement around ``call``."""
    operand, fld = selector_parts(unwrap_parens(selector))
    operand = unwrap_parens(operand)
    if operand is None or fld is None or operand.type != "identifier":
        return None
    loop_var = oracle.object_of(gofile, operand)
    if loop_var is None:
        return None

    for stmt in iter_parents(call):
        if stmt.type != "for_statement":
            continue
        clause, value = _range_value_ident(stmt)
        if clause is None or value is None:
            continue
        if oracle.object_of(gofile, value) is not loop_var:
            continue
        collection = _collection_literal(clause, gofile, oracle)
        if collection is None:
            logger.debug("%s: range over a non-literal collection", gofile.location(stmt))
            return None
        cfile, literal = collection
        return TableBinding(
            loop_variable=loop_var,
            field_name=gofile.text(fld),
            range_statement=stmt,
            collection_literal=literal,
            collection_file=cfile,
        )
    return None


def _row_field_value(
    row_body: Node, field_name: str, positional_fields: List[str], gofile: GoSourceFile
) -> Optional[Node]:
    items = named(row_body)
    keyed = [item for item in items if item.type == "keyed_element"]
    if keyed:
        for item in keyed:
            key, value = keyed_element_parts(item)
            if key is not None and gofile.text(key) == field_name:
                return value
        return None
    if field_name not in positional_fields:
        return None
    index = positional_fields.index(field_name)
    if index >= len(items):
        return None
    return unwrap_literal_element(items[index])


def extract_table(
    selector: Node, call: Node, gofile: GoSourceFile, oracle: TypeOracle
) -> List[Resolved]:
    """Resolved values of ``selector``'s field across the ranged table's rows."""
    binding = find_table_binding(selector, call, gofile, oracle)
    if binding is None:
        return []
    cfile = binding.collection_file
    literal = binding.collection_literal
    positional_fields = oracle.element_field_names(cfile, literal)

    values: List[Resolved] = []
    for element in literal_elements(field(literal, "body")):
        row = element
        if element.type == "keyed_element":
            _, row = keyed_element_parts(element)
        row_body = composite_body(row)
        if row_body is None:
            continue
        value_node = _row_field_value(row_body, binding.field_name, positional_fields, cfile)
        if value_node is None:
            continue
        value = resolve(value_node, cfile, oracle)
        if isinstance(value, Resolved):
            values.append(value)
    logger.debug(
        "%s: table %s.%s yields %d name(s)",
        gofile.location(call), binding.loop_variable.name, binding.field_name, len(values),
    )
    return values


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 - SCAN
# ═══════════════════════════════════════════════════════════════════════════

def candidate_values(
    candidate: CandidateCall, gofile: GoSourceFile, oracle: TypeOracle
) -> List[Resolved]:
    """Every statically known name a candidate call registers."""
    name = unwrap_parens(candidate.name_argument)
    if name is not None and name.type == "selector_expression":
        return extract_table(name, candidate.call, gofile, oracle)
    value = resolve(candidate.name_argument, gofile, oracle)
    return [value] if isinstance(value, Resolved) else []


def find_violations(
    gofile: GoSourceFile,
    oracle: TypeOracle,
    test_file_suffix: str = DEFAULT_TEST_FILE_SUFFIX,
) -> Iterator[Resolved]:
    """Resolved sub-test names in ``gofile`` that are not snake_case."""
    if not gofile.is_test_file(test_file_suffix):
        return
    for candidate in find_candidate_calls(gofile, oracle):
        for value in candidate_values(candidate, gofile, oracle):
            if not is_valid_snake_case(value.text):
                yield value


def make_diagnostic(value: Resolved, checker_name: str = ERROR_ID) -> Diagnostic:
    return Diagnostic(
        error_id=ERROR_ID,
        message=format_message(value.text),
        severity=DiagnosticSeverity.STYLE,
        location=value.location,
        checker_name=checker_name,
        extra=suggest_snake_case(value.text) or "",
        evidence={"name": value.text},
    )


def scan(
    gofile: GoSourceFile,
    oracle: TypeOracle,
    test_file_suffix: str = DEFAULT_TEST_FILE_SUFFIX,
) -> List[Diagnostic]:
    """Diagnostics for one file, in document order."""
    return [make_diagnostic(v) for v in find_violations(gofile, oracle, test_file_suffix)]


__all__ = [
    "ERROR_ID",
    "RECOGNIZED_TEST_TYPES",
    "MESSAGE_TEMPLATE",
    "DEFAULT_TEST_FILE_SUFFIX",
    "CandidateCall",
    "TableBinding",
    "format_message",
    "find_candidate_calls",
    "find_table_binding",
    "extract_table",
    "candidate_values",
    "find_violations",
    "make_diagnostic",
    "scan",
]
