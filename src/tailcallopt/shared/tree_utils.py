"""
Structural Utilities

Node builders, a deep subset-pattern matcher over the tagged node variants,
and list-zipping helpers that build assignment / declaration statements.
"""

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Set

from .nodes import (
    Node, NodeType, Identifier, ExpressionStatement,
    AssignmentExpression, SequenceExpression, VariableDeclaration, VariableDeclarator,
    Expression, Statement, BlockStatement, FunctionDeclaration, FUNCTION_NODE_TYPES,
)
from ..utils.config import UNDEFINED_NAME, STRICT_DIRECTIVE


# ============================================
# BUILDERS
# ============================================

def undefined() -> Identifier:
    return Identifier(UNDEFINED_NAME)


def assignment(name: str, value: Optional[Expression] = None) -> AssignmentExpression:
    """`name = value` (or `name = undefined`)"""
    return AssignmentExpression("=", Identifier(name), value if value is not None else undefined())


def zip_assign(names: Sequence[str], values: Optional[Sequence[Optional[Expression]]] = None) -> List[Statement]:
    """
    One `name = value;` statement per name, pairing by position.
    Missing values become `undefined`.
    """
    values = values or ()
    return [
        ExpressionStatement(assignment(name, values[i] if i < len(values) else None))
        for i, name in enumerate(names)
    ]


def zip_declare(names: Sequence[str], values: Optional[Sequence[Optional[Expression]]] = None) -> List[Statement]:
    """One `var name [= value];` declaration per name."""
    values = values or ()
    return [
        VariableDeclaration((VariableDeclarator(Identifier(name), values[i] if i < len(values) else None),))
        for i, name in enumerate(names)
    ]


def declare_all(names: Sequence[str]) -> List[Statement]:
    """A single combined `var a, b, c;` (nothing when `names` is empty)."""
    if not names:
        return []
    return [VariableDeclaration(tuple(VariableDeclarator(Identifier(name)) for name in names))]


# ============================================
# PATTERN MATCHING
# ============================================

def match_node(value: Any, pattern: Any) -> bool:
    """
    Deep subset match.

    A Mapping pattern matches a node when every key names a field (or the
    special key "type", compared with the node's NodeType) whose value matches
    recursively. A Node pattern is compared structurally with `==`. Any other
    pattern is compared with `==`.

        match_node(call, {"type": NodeType.CALL_EXPRESSION,
                          "callee": {"type": NodeType.IDENTIFIER, "name": "fact"}})
    """
    if isinstance(pattern, Mapping):
        if not isinstance(value, Node):
            return False
        for key, sub_pattern in pattern.items():
            if key == "type":
                if value.node_type != sub_pattern:
                    return False
                continue
            if not hasattr(value, key):
                return False
            if not match_node(getattr(value, key), sub_pattern):
                return False
        return True
    return value == pattern


def self_call_pattern(name: Optional[str]) -> Mapping[str, Any]:
    """Pattern for a direct call to `name`."""
    return {
        "type": NodeType.CALL_EXPRESSION,
        "callee": {"type": NodeType.IDENTIFIER, "name": name},
    }


def is_directive(node: Any, text: str = STRICT_DIRECTIVE) -> bool:
    """True for the statement `"use strict";`"""
    return match_node(node, {
        "type": NodeType.EXPRESSION_STATEMENT,
        "expression": {"type": NodeType.LITERAL, "value": text},
    })


def is_undefined_reset(node: Any, names: Iterable[str]) -> bool:
    """
    True for an expression statement made only of `x = undefined`
    assignments (plain or comma-sequenced) whose targets are all in `names`.
    """
    names = set(names)
    if not match_node(node, {"type": NodeType.EXPRESSION_STATEMENT}):
        return False
    expression = node.expression
    parts = expression.expressions if isinstance(expression, SequenceExpression) else (expression,)
    for part in parts:
        if not match_node(part, {
            "type": NodeType.ASSIGNMENT_EXPRESSION,
            "operator": "=",
            "left": {"type": NodeType.IDENTIFIER},
            "right": undefined(),
        }):
            return False
        if part.left.name not in names:
            return False
    return True


# ============================================
# DECLARATION SCAN
# ============================================

def declared_names(body: BlockStatement) -> Set[str]:
    """
    Names bound by `var` declarations and function declarations anywhere in
    a function body, without descending into nested functions (a nested
    function declaration's own name is included).
    """
    found: Set[str] = set()
    _collect_declared(body, found)
    return found


def _collect_declared(value: Any, found: Set[str]) -> None:
    if isinstance(value, tuple):
        for item in value:
            _collect_declared(item, found)
        return
    if not isinstance(value, Node):
        return
    if isinstance(value, FunctionDeclaration):
        found.add(value.id.name)
        return
    if value.node_type in FUNCTION_NODE_TYPES:
        return
    if isinstance(value, VariableDeclarator):
        found.add(value.id.name)
    for _, child in value.child_fields():
        _collect_declared(child, found)
