"""
Expression Parser
Builds operator expressions and checks assignment targets
"""

from typing import Any, Callable

from typing_extensions import TypeAlias
from lark.lexer import Token

from ...shared.nodes import (
    Expression, Identifier, MemberExpression, AssignmentExpression, BinaryExpression,
    LogicalExpression, UnaryExpression, UpdateExpression,
)
from ...shared.source_location import SourceLocation

# Type aliases for better clarity
LarkMeta: TypeAlias = Any  # Lark's internal Meta object
LocationExtractor: TypeAlias = Callable[[LarkMeta], SourceLocation]


class ExpressionParser:
    """Dedicated parser for operator expressions"""

    def __init__(self, location_extractor: LocationExtractor, source_text: Callable[[], str]) -> None:
        self.extract_location = location_extractor
        self.source_text = source_text

    def parse_binary(self, meta: LarkMeta, left: Expression, operator: str, right: Expression) -> BinaryExpression:
        return BinaryExpression(operator, left, right, location=self.extract_location(meta))

    def parse_logical(self, meta: LarkMeta, left: Expression, operator: str, right: Expression) -> LogicalExpression:
        return LogicalExpression(operator, left, right, location=self.extract_location(meta))

    def parse_unary(self, meta: LarkMeta, operator: str, argument: Expression) -> UnaryExpression:
        return UnaryExpression(operator, argument, True, location=self.extract_location(meta))

    def parse_assignment(self, meta: LarkMeta, target: Expression, operator: str, value: Expression) -> AssignmentExpression:
        self._check_target(target, "assignment")
        return AssignmentExpression(operator, target, value, location=self.extract_location(meta))

    def parse_update(self, meta: LarkMeta, operator: str, argument: Expression, prefix: bool) -> UpdateExpression:
        self._check_target(argument, f"'{operator}'")
        return UpdateExpression(operator, argument, prefix, location=self.extract_location(meta))

    def check_binding(self, target: Expression) -> Expression:
        """Left side of for-in / for-of"""
        self._check_target(target, "loop variable")
        return target

    def _check_target(self, target: Expression, what: str) -> None:
        if isinstance(target, (Identifier, MemberExpression)):
            return
        from ..parser import ParseError
        location = target.location
        raise ParseError(
            f"invalid {what} target",
            location.file if location is not None else "",
            location,
            source_code=self.source_text(),
            help="only variables and member accesses can be assigned",
        )


def operator_text(token: Token) -> str:
    return str(token)
