"""
Syntax Tree Transformer
Converts the Lark parse tree into syntax tree nodes with source locations
"""

import logging
from typing import Any, Optional, Tuple, Union

from lark import Transformer, v_args
from lark.lexer import Token
from typing_extensions import TypeAlias

from ...shared.errors import ImplementationError
from ...shared.nodes import (
    Node, Program, FunctionDeclaration, FunctionExpression, BlockStatement, VariableDeclaration,
    VariableDeclarator, EmptyStatement, IfStatement, ForStatement, ForInStatement, ForOfStatement,
    WhileStatement, DoWhileStatement, ReturnStatement, ContinueStatement, BreakStatement,
    LabeledStatement, ExpressionStatement, SequenceExpression, ConditionalExpression,
    CallExpression, MemberExpression, ArrayExpression, Identifier, Literal, Expression, Statement,
)
from ...shared.source_location import SourceLocation
from .expressions import ExpressionParser, operator_text
from .literals import LiteralParser

LarkMeta: TypeAlias = Any
Params: TypeAlias = Tuple[Identifier, ...]

logger: logging.Logger = logging.getLogger(__name__)


@v_args(inline=True, meta=True)
class JSTransformer(Transformer):
    """
    Parse tree to syntax tree.

    Anonymous punctuation and keywords are filtered by the grammar, so each
    method receives only the meaningful children (None for absent optionals).
    """

    def __init__(self) -> None:
        super().__init__()
        self.current_file: str = ""  # Must be set by parser before use
        self.current_source: str = ""
        self.expression_parser: ExpressionParser = ExpressionParser(
            self._extract_location, lambda: self.current_source
        )

    def __default__(self, data, children, meta):
        raise ImplementationError(f"Missing transformer method for grammar rule '{data}'")

    def _extract_location(self, meta: LarkMeta) -> SourceLocation:
        """Extract location from Lark meta object"""
        if not self.current_file:
            raise RuntimeError(
                "Parser bug: current_file not set. "
                "Parser must set current_file before transforming."
            )
        if meta is None or getattr(meta, "empty", True):
            return SourceLocation(file=self.current_file, line=0, column=0)
        return SourceLocation(
            file=self.current_file,
            line=meta.line,
            column=meta.column,
            start=meta.start_pos,
            end=meta.end_pos,
            end_line=meta.end_line,
            end_column=meta.end_column,
        )

    def _token_location(self, token: Token) -> SourceLocation:
        return SourceLocation(
            file=self.current_file,
            line=token.line or 0,
            column=token.column or 0,
            start=token.start_pos or 0,
            end=token.end_pos or 0,
            end_line=token.end_line or 0,
            end_column=token.end_column or 0,
        )

    def _name(self, token: Optional[Token]) -> Optional[Identifier]:
        if token is None:
            return None
        return Identifier(str(token), location=self._token_location(token))

    # =========================================================================
    # PROGRAM STRUCTURE
    # =========================================================================

    def program(self, meta: LarkMeta, *statements: Statement) -> Program:
        return Program(tuple(statements), location=self._extract_location(meta))

    def block(self, meta: LarkMeta, *statements: Statement) -> BlockStatement:
        return BlockStatement(tuple(statements), location=self._extract_location(meta))

    # =========================================================================
    # FUNCTIONS
    # =========================================================================

    def function_declaration(self, meta: LarkMeta, name: Token, params: Optional[Params],
                             body: BlockStatement) -> FunctionDeclaration:
        return FunctionDeclaration(self._name(name), params or (), body, location=self._extract_location(meta))

    def function_expression(self, meta: LarkMeta, name: Optional[Token], params: Optional[Params],
                            body: BlockStatement) -> FunctionExpression:
        return FunctionExpression(self._name(name), params or (), body, location=self._extract_location(meta))

    def params(self, meta: LarkMeta, *names: Token) -> Params:
        return tuple(self._name(name) for name in names)

    # =========================================================================
    # DECLARATIONS
    # =========================================================================

    def variable_statement(self, meta: LarkMeta, declarators: Tuple[VariableDeclarator, ...]) -> VariableDeclaration:
        return VariableDeclaration(declarators, location=self._extract_location(meta))

    def var_init(self, meta: LarkMeta, declarators: Tuple[VariableDeclarator, ...]) -> VariableDeclaration:
        return VariableDeclaration(declarators, location=self._extract_location(meta))

    def declarator_list(self, meta: LarkMeta, *declarators: VariableDeclarator) -> Tuple[VariableDeclarator, ...]:
        return tuple(declarators)

    def declarator(self, meta: LarkMeta, name: Token, init: Optional[Expression]) -> VariableDeclarator:
        return VariableDeclarator(self._name(name), init, location=self._extract_location(meta))

    def var_binding(self, meta: LarkMeta, name: Token) -> VariableDeclaration:
        location = self._extract_location(meta)
        declarator = VariableDeclarator(self._name(name), location=self._token_location(name))
        return VariableDeclaration((declarator,), location=location)

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def empty_statement(self, meta: LarkMeta) -> EmptyStatement:
        return EmptyStatement(location=self._extract_location(meta))

    def expression_statement(self, meta: LarkMeta, expression: Expression) -> ExpressionStatement:
        return ExpressionStatement(expression, location=self._extract_location(meta))

    def if_statement(self, meta: LarkMeta, test: Expression, consequent: Statement,
                     alternate: Optional[Statement]) -> IfStatement:
        return IfStatement(test, consequent, alternate, location=self._extract_location(meta))

    def for_statement(self, meta: LarkMeta, init: Optional[Union[VariableDeclaration, Expression]],
                      test: Optional[Expression], update: Optional[Expression], body: Statement) -> ForStatement:
        return ForStatement(init, test, update, body, location=self._extract_location(meta))

    def for_in_statement(self, meta: LarkMeta, left: Node, right: Expression, body: Statement) -> ForInStatement:
        return ForInStatement(self._binding(left), right, body, location=self._extract_location(meta))

    def for_of_statement(self, meta: LarkMeta, left: Node, right: Expression, body: Statement) -> ForOfStatement:
        return ForOfStatement(self._binding(left), right, body, location=self._extract_location(meta))

    def _binding(self, left: Node) -> Node:
        if isinstance(left, VariableDeclaration):
            return left
        return self.expression_parser.check_binding(left)

    def while_statement(self, meta: LarkMeta, test: Expression, body: Statement) -> WhileStatement:
        return WhileStatement(test, body, location=self._extract_location(meta))

    def do_while_statement(self, meta: LarkMeta, body: Statement, test: Expression) -> DoWhileStatement:
        return DoWhileStatement(body, test, location=self._extract_location(meta))

    def return_statement(self, meta: LarkMeta, argument: Optional[Expression]) -> ReturnStatement:
        return ReturnStatement(argument, location=self._extract_location(meta))

    def continue_statement(self, meta: LarkMeta, label: Optional[Token]) -> ContinueStatement:
        return ContinueStatement(self._name(label), location=self._extract_location(meta))

    def break_statement(self, meta: LarkMeta, label: Optional[Token]) -> BreakStatement:
        return BreakStatement(self._name(label), location=self._extract_location(meta))

    def labeled_statement(self, meta: LarkMeta, label: Token, body: Statement) -> LabeledStatement:
        return LabeledStatement(self._name(label), body, location=self._extract_location(meta))

    # =========================================================================
    # EXPRESSIONS
    # =========================================================================

    def sequence(self, meta: LarkMeta, *expressions: Expression) -> SequenceExpression:
        return SequenceExpression(tuple(expressions), location=self._extract_location(meta))

    def assignment(self, meta: LarkMeta, target: Expression, operator: str, value: Expression) -> Expression:
        return self.expression_parser.parse_assignment(meta, target, operator, value)

    def conditional(self, meta: LarkMeta, test: Expression, consequent: Expression,
                    alternate: Expression) -> ConditionalExpression:
        return ConditionalExpression(test, consequent, alternate, location=self._extract_location(meta))

    def logical_or(self, meta: LarkMeta, left: Expression, right: Expression) -> Expression:
        return self.expression_parser.parse_logical(meta, left, "||", right)

    def logical_and(self, meta: LarkMeta, left: Expression, right: Expression) -> Expression:
        return self.expression_parser.parse_logical(meta, left, "&&", right)

    def bitwise_or(self, meta: LarkMeta, left: Expression, right: Expression) -> Expression:
        return self.expression_parser.parse_binary(meta, left, "|", right)

    def bitwise_xor(self, meta: LarkMeta, left: Expression, right: Expression) -> Expression:
        return self.expression_parser.parse_binary(meta, left, "^", right)

    def bitwise_and(self, meta: LarkMeta, left: Expression, right: Expression) -> Expression:
        return self.expression_parser.parse_binary(meta, left, "&", right)

    def binary(self, meta: LarkMeta, left: Expression, operator: str, right: Expression) -> Expression:
        return self.expression_parser.parse_binary(meta, left, operator, right)

    def unary(self, meta: LarkMeta, operator: str, argument: Expression) -> Expression:
        return self.expression_parser.parse_unary(meta, operator, argument)

    def prefix_update(self, meta: LarkMeta, operator: str, argument: Expression) -> Expression:
        return self.expression_parser.parse_update(meta, operator, argument, True)

    def postfix_update(self, meta: LarkMeta, argument: Expression, operator: str) -> Expression:
        return self.expression_parser.parse_update(meta, operator, argument, False)

    def member(self, meta: LarkMeta, obj: Expression, name: Token) -> MemberExpression:
        return MemberExpression(obj, self._name(name), False, location=self._extract_location(meta))

    def computed_member(self, meta: LarkMeta, obj: Expression, prop: Expression) -> MemberExpression:
        return MemberExpression(obj, prop, True, location=self._extract_location(meta))

    def call(self, meta: LarkMeta, callee: Expression, arguments: Optional[Tuple[Expression, ...]]) -> CallExpression:
        return CallExpression(callee, arguments or (), location=self._extract_location(meta))

    def arguments(self, meta: LarkMeta, *items: Expression) -> Tuple[Expression, ...]:
        return tuple(items)

    def array(self, meta: LarkMeta, elements: Optional[Tuple[Expression, ...]]) -> ArrayExpression:
        return ArrayExpression(elements or (), location=self._extract_location(meta))

    # =========================================================================
    # ATOMS
    # =========================================================================

    def identifier(self, meta: LarkMeta, name: Token) -> Identifier:
        return Identifier(str(name), location=self._token_location(name))

    def number(self, meta: LarkMeta, token: Token) -> Literal:
        return LiteralParser.parse_number(str(token), self._token_location(token))

    def string(self, meta: LarkMeta, token: Token) -> Literal:
        return LiteralParser.parse_string(str(token), self._token_location(token))

    def true_literal(self, meta: LarkMeta) -> Literal:
        return Literal(True, location=self._extract_location(meta))

    def false_literal(self, meta: LarkMeta) -> Literal:
        return Literal(False, location=self._extract_location(meta))

    def null_literal(self, meta: LarkMeta) -> Literal:
        return Literal(None, location=self._extract_location(meta))

    # =========================================================================
    # OPERATOR RULES
    # =========================================================================

    def assign_op(self, meta: LarkMeta, token: Token) -> str:
        return operator_text(token)

    equality_op = relational_op = shift_op = assign_op
    additive_op = multiplicative_op = unary_op = update_op = assign_op
