#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
goast_shims/ast_helper.py
═════════════════════════

Traversal and query helpers for tree-sitter Go syntax trees.

    ┌─────────────────────────────────────────────────────────────────┐
    │  Safe Accessors                                                 │
    │    • field lookup, comment-free named children                  │
    │    • node identity keys                                         │
    ├─────────────────────────────────────────────────────────────────┤
    │  Traversal                                                      │
    │    • Pre-order iteration (document order)                       │
    │    • Parent chain walking                                       │
    ├─────────────────────────────────────────────────────────────────┤
    │  Expression Shapes                                              │
    │    • call / selector / composite literal decomposition          │
    │    • literal element unwrapping (old and new grammar shapes)    │
    └─────────────────────────────────────────────────────────────────┘

Design Principles
─────────────────
1. **Non-invasive**: trees are never modified.

2. **Defensive**: every helper accepts ``None`` and returns an empty
   result rather than raising, so partially parsed files flow through.

3. **Grammar tolerant**: tree-sitter-go has reshaped a few nodes over its
   releases (``keyed_element`` / ``literal_element``, ``statement_list``).
   Helpers look at both shapes so callers never have to.

License: MIT
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node


# ═══════════════════════════════════════════════════════════════════════════
#  CONSTANTS
# ═══════════════════════════════════════════════════════════════════════════

STRING_LITERAL_TYPES = frozenset({
    "interpreted_string_literal",
    "raw_string_literal",
})

# Nodes that introduce a new lexical block.
BLOCK_NODE_TYPES = frozenset({
    "block",
    "for_statement",
    "if_statement",
    "expression_switch_statement",
    "type_switch_statement",
    "select_statement",
    "expression_case",
    "default_case",
    "type_case",
    "communication_case",
})

FUNCTION_NODE_TYPES = frozenset({
    "function_declaration",
    "method_declaration",
    "func_literal",
})

NodeKey = Tuple[int, int, str]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 - SAFE ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

def node_key(node: Node) -> NodeKey:
    """
    Identity of a node within its tree.

    Two distinct nodes never share start, end *and* type, so this is a
    stable dictionary key that does not depend on wrapper object identity.
    """
    return (node.start_byte, node.end_byte, node.type)


def field(node: Optional[Node], name: str) -> Optional[Node]:
    """Safely get a named field child."""
    if node is None:
        return None
    return node.child_by_field_name(name)


def named(node: Optional[Node]) -> List[Node]:
    """Named children with comments filtered out."""
    if node is None:
        return []
    return [c for c in node.named_children if c.type != "comment"]


def has_token(node: Optional[Node], token: str) -> bool:
    """True if ``node`` has an anonymous child token spelled ``token``."""
    if node is None:
        return False
    return any(not c.is_named and c.type == token for c in node.children)


def expression_items(node: Optional[Node]) -> List[Node]:
    """Items of an ``expression_list`` (or the node itself if it is not a list)."""
    if node is None:
        return []
    if node.type == "expression_list":
        return named(node)
    return [node]


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of enclosing parentheses."""
    while node is not None and node.type == "parenthesized_expression":
        inner = named(node)
        node = inner[0] if inner else None
    return node


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 - TRAVERSAL
# ═══════════════════════════════════════════════════════════════════════════

def iter_preorder(root: Optional[Node]) -> Iterator[Node]:
    """
    Iterate over every node in pre-order (document order).

    Iterative, so deeply nested expressions do not hit the recursion limit.
    """
    if root is None:
        return
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        yield node
        # Push in reverse so the leftmost child is visited first (LIFO)
        stack.extend(reversed(node.children))


def iter_parents(node: Optional[Node]) -> Iterator[Node]:
    """Iterate from the immediate parent up to the root."""
    current = node.parent if node is not None else None
    while current is not None:
        yield current
        current = current.parent


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 - EXPRESSION SHAPES
# ═══════════════════════════════════════════════════════════════════════════

def is_string_literal(node: Optional[Node]) -> bool:
    return node is not None and node.type in STRING_LITERAL_TYPES


def call_arguments(call: Node) -> List[Node]:
    """Argument expressions of a ``call_expression``."""
    return named(field(call, "arguments"))


def selector_parts(node: Optional[Node]) -> Tuple[Optional[Node], Optional[Node]]:
    """``(operand, field)`` of a ``selector_expression``."""
    if node is None or node.type != "selector_expression":
        return None, None
    return field(node, "operand"), field(node, "field")


def unwrap_literal_element(node: Optional[Node]) -> Optional[Node]:
    """The expression inside a ``literal_element`` wrapper, if any."""
    if node is not None and node.type == "literal_element":
        inner = named(node)
        return inner[0] if inner else None
    return node


def keyed_element_parts(node: Node) -> Tuple[Optional[Node], Optional[Node]]:
    """``(key, value)`` of a ``keyed_element``, unwrapped."""
    key = field(node, "key")
    value = field(node, "value")
    if key is None or value is None:
        children = named(node)
        if len(children) < 2:
            return None, None
        key, value = children[0], children[-1]
    return unwrap_literal_element(key), unwrap_literal_element(value)


def literal_elements(literal_value: Optional[Node]) -> List[Node]:
    """Elements of a ``literal_value`` body (keyed or positional)."""
    if literal_value is None or literal_value.type != "literal_value":
        return []
    return named(literal_value)


def composite_body(node: Optional[Node]) -> Optional[Node]:
    """
    The ``literal_value`` of a composite literal row.

    Accepts ``T{...}``, ``&T{...}``, and the elided ``{...}`` form used
    inside an enclosing collection literal.
    """
    node = unwrap_parens(unwrap_literal_element(node))
    if node is None:
        return None
    if node.type == "unary_expression" and has_token(node, "&"):
        node = unwrap_parens(field(node, "operand"))
        if node is None:
            return None
    if node.type == "composite_literal":
        return field(node, "body")
    if node.type == "literal_value":
        return node
    return None


__all__ = [
    "STRING_LITERAL_TYPES",
    "BLOCK_NODE_TYPES",
    "FUNCTION_NODE_TYPES",
    "NodeKey",
    "node_key",
    "field",
    "named",
    "has_token",
    "expression_items",
    "unwrap_parens",
    "iter_preorder",
    "iter_parents",
    "is_string_literal",
    "call_arguments",
    "selector_parts",
    "unwrap_literal_element",
    "keyed_element_parts",
    "literal_elements",
    "composite_body",
]
