"""
Tree Validation Pass

Validates that a rewritten tree is a structurally well-formed instance of the
grammar, so that printing it yields a program the parser would accept.

This pass checks STRUCTURAL properties only:
1. Every field holds the kind of node the grammar allows there
2. Operators belong to their operator tables
3. Declarations and comma sequences are non-empty
4. Assignment and update targets are assignable
5. Loop heads are expressions or declarations, never statements
6. Labeled `continue`/`break` target an enclosing label

If this pass fails, it indicates a bug in the rewrite, not a user error.
The first invalid field is reported as a path such as `body[0].body.body[2].init`.
"""

import logging
import re
from typing import Any, List, Optional, Tuple

from .base import BasePass, PassContext
from .tail_calls import TailCallPass
from ..shared.errors import SchemaError
from ..shared.nodes import (
    Node, Statement, Expression, Identifier, Literal, BlockStatement, VariableDeclaration,
    VariableDeclarator, MemberExpression, FunctionDeclaration, FunctionExpression,
    ASSIGNMENT_OPERATORS, BINARY_OPERATORS, LOGICAL_OPERATORS, UNARY_OPERATORS, UPDATE_OPERATORS,
    LOOP_NODE_TYPES,
)
from ..utils.config import VAR_KIND

logger = logging.getLogger("tailcallopt.passes.tree_validation")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class TreeValidationVisitor:
    """
    Visitor for validating tree nodes; dispatch goes through `Node.accept`.
    Raises SchemaError on the first problem.
    """

    def __init__(self):
        self.nodes_validated = 0
        self._path: List[str] = []
        # (label name, labels a loop) for the enclosing labeled statements
        self._labels: List[Tuple[str, bool]] = []
        self._loop_depth = 0

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        return ".".join(self._path)

    def _fail(self, message: str, node: Optional[Node] = None) -> None:
        raise SchemaError(message, self.path, node.location if node is not None else None)

    def _check(self, node: Node, field: str, value: Any, kinds: Tuple[type, ...],
               what: str, optional: bool = False) -> None:
        """Validate one child field: kind check, then recurse."""
        self._path.append(field)
        try:
            if value is None:
                if not optional:
                    self._fail(f"missing {what}", node)
                return
            if not isinstance(value, kinds):
                self._fail(f"expected {what}, found {type(value).__name__}", node)
            value.accept(self)
        finally:
            self._path.pop()

    def _check_list(self, node: Node, field: str, values: Any, kinds: Tuple[type, ...],
                    what: str, non_empty: bool = False) -> None:
        if not isinstance(values, tuple):
            self._path.append(field)
            self._fail(f"expected a tuple of {what}, found {type(values).__name__}", node)
        if non_empty and not values:
            self._path.append(field)
            self._fail(f"expected at least one {what}", node)
        for index, value in enumerate(values):
            self._check(node, f"{field}[{index}]", value, kinds, what)

    def _check_operator(self, node: Node, operator: str, allowed: frozenset) -> None:
        if operator not in allowed:
            self._path.append("operator")
            self._fail(f"unknown operator {operator!r}", node)

    def _check_assignable(self, node: Node, field: str, target: Any) -> None:
        if not isinstance(target, (Identifier, MemberExpression)):
            self._path.append(field)
            self._fail(f"invalid assignment target {type(target).__name__}", node)

    def _check_function(self, node: Any) -> None:
        # Labels and loops do not cross function boundaries
        saved = self._labels, self._loop_depth
        self._labels, self._loop_depth = [], 0
        try:
            self._check_list(node, "params", node.params, (Identifier,), "parameter identifier")
            self._check(node, "body", node.body, (BlockStatement,), "function body block")
        finally:
            self._labels, self._loop_depth = saved

    def _check_loop_body(self, node: Node) -> None:
        self._loop_depth += 1
        try:
            self._check(node, "body", node.body, (Statement,), "statement")
        finally:
            self._loop_depth -= 1

    def _check_for_each(self, node: Any) -> None:
        left = node.left
        if isinstance(left, VariableDeclaration):
            if len(left.declarations) != 1 or left.declarations[0].init is not None:
                self._path.append("left")
                self._fail("loop variable declaration must declare one name without initializer", node)
            self._check(node, "left", left, (VariableDeclaration,), "declaration")
        else:
            self._check_assignable(node, "left", left)
            self._check(node, "left", left, (Expression,), "expression")
        self._check(node, "right", node.right, (Expression,), "expression")
        self._check_loop_body(node)

    # ------------------------------------------------------------------
    # dispatch targets
    # ------------------------------------------------------------------

    def generic_visit(self, node: Node) -> None:
        self._fail(f"unknown node kind {type(node).__name__}", node)

    def visit_program(self, node) -> None:
        self.nodes_validated += 1
        self._check_list(node, "body", node.body, (Statement,), "statement")

    def visit_function_declaration(self, node: FunctionDeclaration) -> None:
        self.nodes_validated += 1
        self._check(node, "id", node.id, (Identifier,), "function name")
        self._check_function(node)

    def visit_function_expression(self, node: FunctionExpression) -> None:
        self.nodes_validated += 1
        self._check(node, "id", node.id, (Identifier,), "function name", optional=True)
        self._check_function(node)

    def visit_block_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check_list(node, "body", node.body, (Statement,), "statement")

    def visit_return_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "argument", node.argument, (Expression,), "expression", optional=True)

    def visit_variable_declaration(self, node) -> None:
        self.nodes_validated += 1
        if node.kind != VAR_KIND:
            self._path.append("kind")
            self._fail(f"unsupported declaration kind {node.kind!r}", node)
        self._check_list(node, "declarations", node.declarations, (VariableDeclarator,),
                         "declarator", non_empty=True)

    def visit_variable_declarator(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "id", node.id, (Identifier,), "identifier")
        self._check(node, "init", node.init, (Expression,), "expression", optional=True)

    def visit_if_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "test", node.test, (Expression,), "expression")
        self._check(node, "consequent", node.consequent, (Statement,), "statement")
        self._check(node, "alternate", node.alternate, (Statement,), "statement", optional=True)

    def visit_for_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "init", node.init, (VariableDeclaration, Expression),
                    "declaration or expression", optional=True)
        self._check(node, "test", node.test, (Expression,), "expression", optional=True)
        self._check(node, "update", node.update, (Expression,), "expression", optional=True)
        self._check_loop_body(node)

    def visit_for_in_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check_for_each(node)

    def visit_for_of_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check_for_each(node)

    def visit_while_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "test", node.test, (Expression,), "expression")
        self._check_loop_body(node)

    def visit_do_while_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check_loop_body(node)
        self._check(node, "test", node.test, (Expression,), "expression")

    def visit_expression_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "expression", node.expression, (Expression,), "expression")

    def visit_empty_statement(self, node) -> None:
        self.nodes_validated += 1

    def visit_continue_statement(self, node) -> None:
        self.nodes_validated += 1
        if node.label is None:
            if self._loop_depth == 0:
                self._fail("continue outside of a loop", node)
            return
        self._check(node, "label", node.label, (Identifier,), "label identifier")
        for name, is_loop in reversed(self._labels):
            if name == node.label.name:
                if not is_loop:
                    self._path.append("label")
                    self._fail(f"continue target '{name}' does not label a loop", node)
                return
        self._path.append("label")
        self._fail(f"undefined label '{node.label.name}'", node)

    def visit_break_statement(self, node) -> None:
        self.nodes_validated += 1
        if node.label is None:
            if self._loop_depth == 0:
                self._fail("break outside of a loop", node)
            return
        self._check(node, "label", node.label, (Identifier,), "label identifier")
        if not any(name == node.label.name for name, _ in self._labels):
            self._path.append("label")
            self._fail(f"undefined label '{node.label.name}'", node)

    def visit_labeled_statement(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "label", node.label, (Identifier,), "label identifier")
        name = node.label.name
        if any(existing == name for existing, _ in self._labels):
            self._path.append("label")
            self._fail(f"label '{name}' is already declared", node)
        is_loop = isinstance(node.body, Node) and node.body.node_type in LOOP_NODE_TYPES
        self._labels.append((name, is_loop))
        try:
            self._check(node, "body", node.body, (Statement,), "statement")
        finally:
            self._labels.pop()

    def visit_identifier(self, node: Identifier) -> None:
        self.nodes_validated += 1
        if not isinstance(node.name, str) or not _IDENTIFIER_RE.match(node.name):
            self._path.append("name")
            self._fail(f"invalid identifier name {node.name!r}", node)

    def visit_literal(self, node: Literal) -> None:
        self.nodes_validated += 1
        if node.value is not None and not isinstance(node.value, (bool, int, float, str)):
            self._path.append("value")
            self._fail(f"invalid literal value of type {type(node.value).__name__}", node)

    def visit_array_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_list(node, "elements", node.elements, (Expression,), "expression")

    def visit_call_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "callee", node.callee, (Expression,), "expression")
        self._check_list(node, "arguments", node.arguments, (Expression,), "expression")

    def visit_member_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "object", node.object, (Expression,), "expression")
        if node.computed:
            self._check(node, "property", node.property, (Expression,), "expression")
        else:
            self._check(node, "property", node.property, (Identifier,), "property identifier")

    def visit_conditional_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check(node, "test", node.test, (Expression,), "expression")
        self._check(node, "consequent", node.consequent, (Expression,), "expression")
        self._check(node, "alternate", node.alternate, (Expression,), "expression")

    def visit_assignment_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_operator(node, node.operator, ASSIGNMENT_OPERATORS)
        self._check_assignable(node, "left", node.left)
        self._check(node, "left", node.left, (Expression,), "expression")
        self._check(node, "right", node.right, (Expression,), "expression")

    def visit_sequence_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_list(node, "expressions", node.expressions, (Expression,), "expression",
                         non_empty=True)

    def visit_binary_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_operator(node, node.operator, BINARY_OPERATORS)
        self._check(node, "left", node.left, (Expression,), "expression")
        self._check(node, "right", node.right, (Expression,), "expression")

    def visit_logical_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_operator(node, node.operator, LOGICAL_OPERATORS)
        self._check(node, "left", node.left, (Expression,), "expression")
        self._check(node, "right", node.right, (Expression,), "expression")

    def visit_unary_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_operator(node, node.operator, UNARY_OPERATORS)
        self._check(node, "argument", node.argument, (Expression,), "expression")

    def visit_update_expression(self, node) -> None:
        self.nodes_validated += 1
        self._check_operator(node, node.operator, UPDATE_OPERATORS)
        self._check_assignable(node, "argument", node.argument)
        self._check(node, "argument", node.argument, (Expression,), "expression")


def validate_tree(node: Node) -> int:
    """
    Validate `node`; returns the number of nodes checked.

    Raises:
        SchemaError: naming the first invalid field
    """
    if not isinstance(node, Node):
        raise SchemaError(f"expected a syntax node, found {type(node).__name__}")
    visitor = TreeValidationVisitor()
    node.accept(visitor)
    return visitor.nodes_validated


class TreeValidationPass(BasePass):
    """Pass/fail gate after the rewrite; the tree is returned unchanged."""
    requires = [TailCallPass]

    def run(self, tree: Node, pcx: PassContext) -> Node:
        logger.debug("Starting tree validation")
        count = validate_tree(tree)
        pcx.set_analysis(TreeValidationPass, count)
        logger.debug(f"Tree validation complete: {count} nodes validated")
        return tree
