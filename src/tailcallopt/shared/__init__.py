"""
Shared components: syntax nodes, scope bookkeeping, structural helpers,
diagnostics and tree serialization.
"""

from .source_location import SourceLocation
from .errors import (
    Error, ErrorReporter, TailCallOptError, SourceError, ReservedNameError, TailCallArityError,
    SchemaError, ImplementationError,
)
from .nodes import (
    Node, NodeType, Statement, Expression, Program, FunctionDeclaration, FunctionExpression,
    BlockStatement, ReturnStatement, VariableDeclaration, VariableDeclarator, IfStatement,
    ForStatement, ForInStatement, ForOfStatement, WhileStatement, DoWhileStatement,
    ExpressionStatement, EmptyStatement, ContinueStatement, BreakStatement, LabeledStatement,
    Identifier, Literal, ArrayExpression, CallExpression, MemberExpression, ConditionalExpression,
    AssignmentExpression, SequenceExpression, BinaryExpression, LogicalExpression,
    UnaryExpression, UpdateExpression, GenericNode,
)
from .scope import ScopeContext
