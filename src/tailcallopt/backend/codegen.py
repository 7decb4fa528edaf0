"""
Code Generation

Syntax tree back to JavaScript source text. The output re-parses to the same
tree (up to source locations): parentheses are emitted exactly where operator
precedence requires them, and a dangling `else` is always bound to the right
`if` by bracing the inner statement.
"""

import logging
import math
import re
from typing import Any, Dict, List

from ..shared.errors import ImplementationError
from ..shared.nodes import (
    Node, Program, Statement, Expression, BlockStatement, IfStatement, ForStatement,
    ForInStatement, ForOfStatement, WhileStatement, LabeledStatement, VariableDeclaration,
    FunctionExpression, Literal,
)
from ..utils.config import DEFAULT_INDENT

logger = logging.getLogger("tailcallopt.backend.codegen")

# Precedence levels, loosest first
SEQUENCE = 0
ASSIGNMENT = 1
CONDITIONAL = 2
LOGICAL_OR = 3
LOGICAL_AND = 4
BITWISE_OR = 5
BITWISE_XOR = 6
BITWISE_AND = 7
EQUALITY = 8
RELATIONAL = 9
SHIFT = 10
ADDITIVE = 11
MULTIPLICATIVE = 12
UNARY = 13
POSTFIX = 14
CALL = 15
PRIMARY = 16

BINARY_PRECEDENCE: Dict[str, int] = {
    "||": LOGICAL_OR,
    "&&": LOGICAL_AND,
    "|": BITWISE_OR,
    "^": BITWISE_XOR,
    "&": BITWISE_AND,
    "==": EQUALITY, "!=": EQUALITY, "===": EQUALITY, "!==": EQUALITY,
    "<": RELATIONAL, ">": RELATIONAL, "<=": RELATIONAL, ">=": RELATIONAL,
    "<<": SHIFT, ">>": SHIFT, ">>>": SHIFT,
    "+": ADDITIVE, "-": ADDITIVE,
    "*": MULTIPLICATIVE, "/": MULTIPLICATIVE, "%": MULTIPLICATIVE,
}

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
    "\v": "\\v",
    "\0": "\\0",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


_FUNCTION_START = re.compile(r"function\b")


def format_number(value: float) -> str:
    """JavaScript-style number text: integral values without a fraction."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(float(value))


def format_string(value: str) -> str:
    out: List[str] = ['"']
    for ch in value:
        escaped = _STRING_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ord(ch) < 0x20:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def _ends_with_open_if(node: Any) -> bool:
    """True when an `else` printed after `node` would attach to an if inside it."""
    if isinstance(node, IfStatement):
        return node.alternate is None or _ends_with_open_if(node.alternate)
    if isinstance(node, (ForStatement, ForInStatement, ForOfStatement, WhileStatement, LabeledStatement)):
        return _ends_with_open_if(node.body)
    return False


class CodeGenerator:
    """
    Visitor that prints one node. Statement methods return text whose first
    line is unindented and whose later lines carry absolute indentation.
    """

    def __init__(self, indent: str = DEFAULT_INDENT):
        self.indent = indent
        self._level = 0

    def generate(self, node: Node) -> str:
        if isinstance(node, Program):
            return "\n".join(self._statement(s) for s in node.body)
        if isinstance(node, Statement):
            return self._statement(node)
        if isinstance(node, Expression):
            return self._expression(node, SEQUENCE)
        return self._unsupported(node)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _pad(self) -> str:
        return self.indent * self._level

    def _unsupported(self, node: Any) -> str:
        raise ImplementationError(f"cannot print node kind {type(node).__name__}")

    def _statement(self, node: Statement) -> str:
        return node.accept(self)

    def _block(self, node: BlockStatement) -> str:
        if not node.body:
            return "{}"
        self._level += 1
        try:
            lines = [self._pad() + self._statement(s) for s in node.body]
        finally:
            self._level -= 1
        return "{\n" + "\n".join(lines) + "\n" + self._pad() + "}"

    def _substatement(self, node: Statement) -> str:
        """Body of if/loop, placed after its header."""
        if isinstance(node, BlockStatement):
            return " " + self._block(node)
        self._level += 1
        try:
            return "\n" + self._pad() + self._statement(node)
        finally:
            self._level -= 1

    def _expression(self, node: Expression, min_precedence: int) -> str:
        text, precedence = node.accept(self)
        if precedence < min_precedence:
            return f"({text})"
        return text

    def _declarations(self, node: VariableDeclaration) -> str:
        parts = []
        for declarator in node.declarations:
            if declarator.init is None:
                parts.append(declarator.id.name)
            else:
                parts.append(f"{declarator.id.name} = {self._expression(declarator.init, ASSIGNMENT)}")
        return f"{node.kind} " + ", ".join(parts)

    def _for_left(self, left: Any) -> str:
        if isinstance(left, VariableDeclaration):
            return self._declarations(left)
        return self._expression(left, CALL)

    def generic_visit(self, node: Node) -> Any:
        return self._unsupported(node)

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def visit_function_declaration(self, node) -> str:
        params = ", ".join(p.name for p in node.params)
        return f"function {node.id.name}({params}) {self._block(node.body)}"

    def visit_block_statement(self, node) -> str:
        return self._block(node)

    def visit_variable_declaration(self, node) -> str:
        return self._declarations(node) + ";"

    def visit_empty_statement(self, node) -> str:
        return ";"

    def visit_expression_statement(self, node) -> str:
        text = self._expression(node.expression, SEQUENCE)
        if _FUNCTION_START.match(text):
            # would re-parse as a declaration
            text = f"({text})"
        return text + ";"

    def visit_if_statement(self, node) -> str:
        consequent = node.consequent
        if node.alternate is not None and _ends_with_open_if(consequent):
            consequent = BlockStatement((consequent,))
        text = f"if ({self._expression(node.test, SEQUENCE)})" + self._substatement(consequent)
        if node.alternate is None:
            return text
        text += " else" if isinstance(consequent, BlockStatement) else "\n" + self._pad() + "else"
        if isinstance(node.alternate, IfStatement):
            return text + " " + self._statement(node.alternate)
        return text + self._substatement(node.alternate)

    def visit_for_statement(self, node) -> str:
        if node.init is None:
            init = ""
        elif isinstance(node.init, VariableDeclaration):
            init = self._declarations(node.init)
        else:
            init = self._expression(node.init, SEQUENCE)
        test = self._expression(node.test, SEQUENCE) if node.test is not None else ""
        update = self._expression(node.update, SEQUENCE) if node.update is not None else ""
        head = "for (" + init + ";" + (" " + test if test else "") + ";" + (" " + update if update else "") + ")"
        return head + self._substatement(node.body)

    def visit_for_in_statement(self, node) -> str:
        head = f"for ({self._for_left(node.left)} in {self._expression(node.right, SEQUENCE)})"
        return head + self._substatement(node.body)

    def visit_for_of_statement(self, node) -> str:
        head = f"for ({self._for_left(node.left)} of {self._expression(node.right, ASSIGNMENT)})"
        return head + self._substatement(node.body)

    def visit_while_statement(self, node) -> str:
        return f"while ({self._expression(node.test, SEQUENCE)})" + self._substatement(node.body)

    def visit_do_while_statement(self, node) -> str:
        body = self._substatement(node.body)
        separator = " " if isinstance(node.body, BlockStatement) else "\n" + self._pad()
        return f"do{body}{separator}while ({self._expression(node.test, SEQUENCE)});"

    def visit_return_statement(self, node) -> str:
        if node.argument is None:
            return "return;"
        return f"return {self._expression(node.argument, SEQUENCE)};"

    def visit_continue_statement(self, node) -> str:
        return f"continue {node.label.name};" if node.label is not None else "continue;"

    def visit_break_statement(self, node) -> str:
        return f"break {node.label.name};" if node.label is not None else "break;"

    def visit_labeled_statement(self, node) -> str:
        return f"{node.label.name}: {self._statement(node.body)}"

    # ------------------------------------------------------------------
    # expressions: each returns (text, precedence)
    # ------------------------------------------------------------------

    def visit_identifier(self, node):
        return node.name, PRIMARY

    def visit_literal(self, node: Literal):
        value = node.value
        if value is None:
            return "null", PRIMARY
        if isinstance(value, bool):
            return ("true" if value else "false"), PRIMARY
        if isinstance(value, (int, float)):
            text = format_number(value)
            return text, (UNARY if text.startswith("-") else PRIMARY)
        return format_string(value), PRIMARY

    def visit_array_expression(self, node):
        return "[" + ", ".join(self._expression(e, ASSIGNMENT) for e in node.elements) + "]", PRIMARY

    def visit_function_expression(self, node: FunctionExpression):
        name = f" {node.id.name}" if node.id is not None else ""
        params = ", ".join(p.name for p in node.params)
        return f"function{name}({params}) {self._block(node.body)}", ASSIGNMENT

    def visit_call_expression(self, node):
        callee = self._expression(node.callee, CALL)
        args = ", ".join(self._expression(a, ASSIGNMENT) for a in node.arguments)
        return f"{callee}({args})", CALL

    def visit_member_expression(self, node):
        obj = self._expression(node.object, CALL)
        if isinstance(node.object, Literal) and isinstance(node.object.value, (int, float)) \
                and not isinstance(node.object.value, bool):
            obj = f"({obj})"
        if node.computed:
            return f"{obj}[{self._expression(node.property, SEQUENCE)}]", CALL
        return f"{obj}.{node.property.name}", CALL

    def visit_conditional_expression(self, node):
        test = self._expression(node.test, LOGICAL_OR)
        consequent = self._expression(node.consequent, ASSIGNMENT)
        alternate = self._expression(node.alternate, ASSIGNMENT)
        return f"{test} ? {consequent} : {alternate}", CONDITIONAL

    def visit_assignment_expression(self, node):
        left = self._expression(node.left, CALL)
        right = self._expression(node.right, ASSIGNMENT)
        return f"{left} {node.operator} {right}", ASSIGNMENT

    def visit_sequence_expression(self, node):
        return ", ".join(self._expression(e, ASSIGNMENT) for e in node.expressions), SEQUENCE

    def visit_binary_expression(self, node):
        precedence = BINARY_PRECEDENCE[node.operator]
        left = self._expression(node.left, precedence)
        right = self._expression(node.right, precedence + 1)
        return f"{left} {node.operator} {right}", precedence

    visit_logical_expression = visit_binary_expression

    def visit_unary_expression(self, node):
        argument = self._expression(node.argument, UNARY)
        if node.operator.isalpha():
            return f"{node.operator} {argument}", UNARY
        if node.operator in "+-" and argument.startswith(node.operator):
            # `- -x`, not the decrement `--x`
            return f"{node.operator} {argument}", UNARY
        return f"{node.operator}{argument}", UNARY

    def visit_update_expression(self, node):
        if node.prefix:
            argument = self._expression(node.argument, UNARY)
            return f"{node.operator}{argument}", UNARY
        return f"{self._expression(node.argument, CALL)}{node.operator}", POSTFIX


def generate(node: Node, indent: str = DEFAULT_INDENT) -> str:
    """Print `node` (Program, statement or expression) as JavaScript source."""
    return CodeGenerator(indent).generate(node)
