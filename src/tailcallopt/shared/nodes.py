"""
Syntax Tree Definitions

One frozen dataclass per node kind, with ESTree field names. Nodes are
immutable: every rewrite builds new nodes (dataclasses.replace), so the input
tree and the rewritten tree never alias a mutable subtree.

- `location` is keyword-only and excluded from equality, so `==` is purely
  structural (the tail-call matcher relies on this)
- child lists are tuples
- every class carries its `node_type` tag as a plain class attribute

Visitor Pattern Support:
- `accept(visitor)` dispatches to `visitor.visit_<node_type>` and falls back
  to `visitor.generic_visit`
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from .source_location import SourceLocation

LiteralValue = Union[float, str, bool, None]


class NodeType(Enum):
    """Node kinds (values are the ESTree type names)"""
    PROGRAM = "Program"
    FUNCTION_DECLARATION = "FunctionDeclaration"
    FUNCTION_EXPRESSION = "FunctionExpression"
    RETURN_STATEMENT = "ReturnStatement"
    BLOCK_STATEMENT = "BlockStatement"
    VARIABLE_DECLARATION = "VariableDeclaration"
    VARIABLE_DECLARATOR = "VariableDeclarator"
    IF_STATEMENT = "IfStatement"
    FOR_STATEMENT = "ForStatement"
    FOR_IN_STATEMENT = "ForInStatement"
    FOR_OF_STATEMENT = "ForOfStatement"
    WHILE_STATEMENT = "WhileStatement"
    DO_WHILE_STATEMENT = "DoWhileStatement"
    EXPRESSION_STATEMENT = "ExpressionStatement"
    EMPTY_STATEMENT = "EmptyStatement"
    CONTINUE_STATEMENT = "ContinueStatement"
    BREAK_STATEMENT = "BreakStatement"
    LABELED_STATEMENT = "LabeledStatement"
    IDENTIFIER = "Identifier"
    LITERAL = "Literal"
    ARRAY_EXPRESSION = "ArrayExpression"
    CALL_EXPRESSION = "CallExpression"
    MEMBER_EXPRESSION = "MemberExpression"
    CONDITIONAL_EXPRESSION = "ConditionalExpression"
    ASSIGNMENT_EXPRESSION = "AssignmentExpression"
    SEQUENCE_EXPRESSION = "SequenceExpression"
    BINARY_EXPRESSION = "BinaryExpression"
    LOGICAL_EXPRESSION = "LogicalExpression"
    UNARY_EXPRESSION = "UnaryExpression"
    UPDATE_EXPRESSION = "UpdateExpression"
    GENERIC = "Generic"


# Operator tables shared by the parser, printer, validator and runtime
ASSIGNMENT_OPERATORS = frozenset({
    "=", "+=", "-=", "*=", "/=", "%=", "<<=", ">>=", ">>>=", "&=", "|=", "^=",
})
BINARY_OPERATORS = frozenset({
    "==", "!=", "===", "!==", "<", "<=", ">", ">=", "<<", ">>", ">>>",
    "+", "-", "*", "/", "%", "|", "^", "&",
})
LOGICAL_OPERATORS = frozenset({"||", "&&"})
UNARY_OPERATORS = frozenset({"-", "+", "!", "~", "typeof", "void"})
UPDATE_OPERATORS = frozenset({"++", "--"})


@dataclass(frozen=True)
class Node:
    """Base class for all syntax nodes"""
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False, kw_only=True)

    node_type = NodeType.GENERIC

    def child_fields(self) -> Iterator[Tuple[str, Any]]:
        """Yield (field name, value) for every child field in declaration order."""
        for f in fields(self):
            if f.name != "location":
                yield f.name, getattr(self, f.name)

    def with_children(self, children: Dict[str, Any]) -> "Node":
        """Rebuild this node with the given child fields replaced."""
        return replace(self, **children)

    def accept(self, visitor: Any) -> Any:
        """Dispatch to `visitor.visit_<kind>`, or `visitor.generic_visit`."""
        method = getattr(visitor, f"visit_{self.node_type.name.lower()}", None)
        if method is None:
            method = visitor.generic_visit
        return method(self)


@dataclass(frozen=True)
class Statement(Node):
    """Base class for statements"""


@dataclass(frozen=True)
class Expression(Node):
    """Base class for expressions"""


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identifier(Expression):
    name: str

    node_type = NodeType.IDENTIFIER


@dataclass(frozen=True)
class Literal(Expression):
    """Number (float), string, boolean or null (None) literal"""
    value: LiteralValue

    node_type = NodeType.LITERAL


@dataclass(frozen=True)
class ArrayExpression(Expression):
    elements: Tuple[Expression, ...] = ()

    node_type = NodeType.ARRAY_EXPRESSION


@dataclass(frozen=True)
class CallExpression(Expression):
    callee: Expression
    arguments: Tuple[Expression, ...] = ()

    node_type = NodeType.CALL_EXPRESSION


@dataclass(frozen=True)
class MemberExpression(Expression):
    """`object.property` (computed=False, property is an Identifier) or `object[property]`"""
    object: Expression
    property: Expression
    computed: bool = False

    node_type = NodeType.MEMBER_EXPRESSION


@dataclass(frozen=True)
class ConditionalExpression(Expression):
    test: Expression
    consequent: Expression
    alternate: Expression

    node_type = NodeType.CONDITIONAL_EXPRESSION


@dataclass(frozen=True)
class AssignmentExpression(Expression):
    operator: str
    left: Expression
    right: Expression

    node_type = NodeType.ASSIGNMENT_EXPRESSION


@dataclass(frozen=True)
class SequenceExpression(Expression):
    expressions: Tuple[Expression, ...]

    node_type = NodeType.SEQUENCE_EXPRESSION


@dataclass(frozen=True)
class BinaryExpression(Expression):
    operator: str
    left: Expression
    right: Expression

    node_type = NodeType.BINARY_EXPRESSION


@dataclass(frozen=True)
class LogicalExpression(Expression):
    operator: str
    left: Expression
    right: Expression

    node_type = NodeType.LOGICAL_EXPRESSION


@dataclass(frozen=True)
class UnaryExpression(Expression):
    operator: str
    argument: Expression
    prefix: bool = True

    node_type = NodeType.UNARY_EXPRESSION


@dataclass(frozen=True)
class UpdateExpression(Expression):
    operator: str
    argument: Expression
    prefix: bool

    node_type = NodeType.UPDATE_EXPRESSION


@dataclass(frozen=True)
class FunctionExpression(Expression):
    id: Optional[Identifier]
    params: Tuple[Identifier, ...]
    body: "BlockStatement"

    node_type = NodeType.FUNCTION_EXPRESSION

    @property
    def name(self) -> Optional[str]:
        return self.id.name if self.id is not None else None


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Program(Node):
    body: Tuple[Statement, ...] = ()

    node_type = NodeType.PROGRAM


@dataclass(frozen=True)
class FunctionDeclaration(Statement):
    id: Identifier
    params: Tuple[Identifier, ...]
    body: "BlockStatement"

    node_type = NodeType.FUNCTION_DECLARATION

    @property
    def name(self) -> Optional[str]:
        return self.id.name if self.id is not None else None


@dataclass(frozen=True)
class BlockStatement(Statement):
    body: Tuple[Statement, ...] = ()

    node_type = NodeType.BLOCK_STATEMENT


@dataclass(frozen=True)
class ReturnStatement(Statement):
    argument: Optional[Expression] = None

    node_type = NodeType.RETURN_STATEMENT


@dataclass(frozen=True)
class VariableDeclarator(Node):
    id: Identifier
    init: Optional[Expression] = None

    node_type = NodeType.VARIABLE_DECLARATOR


@dataclass(frozen=True)
class VariableDeclaration(Statement):
    declarations: Tuple[VariableDeclarator, ...]
    kind: str = "var"

    node_type = NodeType.VARIABLE_DECLARATION


@dataclass(frozen=True)
class IfStatement(Statement):
    test: Expression
    consequent: Statement
    alternate: Optional[Statement] = None

    node_type = NodeType.IF_STATEMENT


@dataclass(frozen=True)
class ForStatement(Statement):
    init: Optional[Union[VariableDeclaration, Expression]]
    test: Optional[Expression]
    update: Optional[Expression]
    body: Statement

    node_type = NodeType.FOR_STATEMENT


@dataclass(frozen=True)
class ForInStatement(Statement):
    left: Union[VariableDeclaration, Expression]
    right: Expression
    body: Statement

    node_type = NodeType.FOR_IN_STATEMENT


@dataclass(frozen=True)
class ForOfStatement(Statement):
    left: Union[VariableDeclaration, Expression]
    right: Expression
    body: Statement

    node_type = NodeType.FOR_OF_STATEMENT


@dataclass(frozen=True)
class WhileStatement(Statement):
    test: Expression
    body: Statement

    node_type = NodeType.WHILE_STATEMENT


@dataclass(frozen=True)
class DoWhileStatement(Statement):
    body: Statement
    test: Expression

    node_type = NodeType.DO_WHILE_STATEMENT


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression

    node_type = NodeType.EXPRESSION_STATEMENT


@dataclass(frozen=True)
class EmptyStatement(Statement):
    node_type = NodeType.EMPTY_STATEMENT


@dataclass(frozen=True)
class ContinueStatement(Statement):
    label: Optional[Identifier] = None

    node_type = NodeType.CONTINUE_STATEMENT


@dataclass(frozen=True)
class BreakStatement(Statement):
    label: Optional[Identifier] = None

    node_type = NodeType.BREAK_STATEMENT


@dataclass(frozen=True)
class LabeledStatement(Statement):
    label: Identifier
    body: Statement

    node_type = NodeType.LABELED_STATEMENT


# ---------------------------------------------------------------------------
# Catch-all
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GenericNode(Node):
    """
    A node kind with no dedicated class (e.g. built by a foreign front end).
    Children are kept as ordered (name, value) pairs so the walker can
    still recurse into them; no rewrite rule ever matches it.
    """
    kind: str
    children: Tuple[Tuple[str, Any], ...] = ()

    node_type = NodeType.GENERIC

    def child_fields(self) -> Iterator[Tuple[str, Any]]:
        yield from self.children

    def with_children(self, children: Dict[str, Any]) -> "Node":
        return replace(self, children=tuple((name, children.get(name, value))
                                            for name, value in self.children))


FunctionNode = Union[FunctionDeclaration, FunctionExpression]

LOOP_NODE_TYPES = frozenset({
    NodeType.FOR_STATEMENT, NodeType.FOR_IN_STATEMENT, NodeType.FOR_OF_STATEMENT,
    NodeType.WHILE_STATEMENT, NodeType.DO_WHILE_STATEMENT,
})
FUNCTION_NODE_TYPES = frozenset({NodeType.FUNCTION_DECLARATION, NodeType.FUNCTION_EXPRESSION})
