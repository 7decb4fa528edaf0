"""
Tail Call Elimination Pass

Rewrites self-recursive calls in tail position into a labeled loop:

    function fact(x, acc) {            function fact(x, acc) {
        acc = acc || 1;                    var _tco_temp_x, ...;
        if (x) return fact(x - 1,    =>    _tailCall_: while (true) {
                           x * acc);           acc = acc || 1;
        else return acc;                       if (x) { <stage args>; continue _tailCall_; }
    }                                          else return acc;
                                           }
                                       }

Alongside the conversion, every `var` is hoisted to one declaration at the top
of its function (so locals can be reset at the start of each iteration),
`return a ? b : c` is split into if/else so each branch can be converted,
and a leading "use strict" directive is kept as the first statement.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional, Sequence, Tuple

from .base import BasePass, PassContext
from .tree_walker import TreeWalker
from ..shared.errors import TailCallArityError
from ..shared.nodes import (
    Node, NodeType, Program, BlockStatement, ReturnStatement, ExpressionStatement,
    VariableDeclaration, IfStatement, ForStatement, ForInStatement, ForOfStatement,
    WhileStatement, LabeledStatement, ContinueStatement, Identifier, Literal,
    AssignmentExpression, SequenceExpression, ConditionalExpression, CallExpression,
    Expression, Statement, FunctionNode,
)
from ..shared.scope import ScopeContext, check_not_reserved
from ..shared.tree_utils import (
    undefined, zip_assign, zip_declare, declare_all, match_node, self_call_pattern,
    is_directive, is_undefined_reset,
)
from ..utils.config import TEMP_NAME_PREFIX, LOOP_LABEL, UNDEFINED_NAME

logger = logging.getLogger("tailcallopt.passes.tail_calls")


@dataclass
class TailCallStats:
    """What the rewrite did, per run."""
    optimized_functions: List[str] = field(default_factory=list)
    converted_calls: int = 0
    normalized_ternaries: int = 0
    hoisted_vars: int = 0


def _is_constant(expr: Expression) -> bool:
    """Literals and `undefined` cannot read a parameter."""
    return isinstance(expr, Literal) or expr == Identifier(UNDEFINED_NAME)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class TailCallRewriter:
    """
    Owns the walker and the handlers registered on it. One rewriter may be
    reused; all per-function state lives on the ScopeContext of that call.
    """

    def __init__(self, temp_prefix: str = TEMP_NAME_PREFIX, loop_label: str = LOOP_LABEL):
        self.temp_prefix = temp_prefix
        self.loop_label = loop_label
        self.stats = TailCallStats()

        self.walker = TreeWalker()
        self.walker.register(NodeType.PROGRAM, self._handle_program)
        self.walker.register(NodeType.FUNCTION_DECLARATION, self._handle_function)
        self.walker.register(NodeType.FUNCTION_EXPRESSION, self._handle_function)
        self.walker.register(NodeType.RETURN_STATEMENT, self._handle_return)
        self.walker.register(NodeType.BLOCK_STATEMENT, self._handle_block)
        self.walker.register(NodeType.VARIABLE_DECLARATION, self._handle_variable_declaration)
        self.walker.register(NodeType.FOR_STATEMENT, self._handle_for)
        self.walker.register(NodeType.FOR_IN_STATEMENT, self._handle_for_each)
        self.walker.register(NodeType.FOR_OF_STATEMENT, self._handle_for_each)
        self.walker.register(NodeType.EXPRESSION_STATEMENT, self._handle_expression_statement)
        self.walker.register(NodeType.LABELED_STATEMENT, self._handle_labeled)

    def rewrite(self, tree: Node, ctx: Optional[ScopeContext] = None) -> Node:
        return self.walker.walk(tree, ctx if ctx is not None else ScopeContext.root())

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    def _handle_program(self, node: Program, ctx: ScopeContext) -> Program:
        """Top-level code is a hoisting scope of its own, with no name to recurse on."""
        scope = ScopeContext.root()
        scope.parent = ctx
        if node.body and is_directive(node.body[0]):
            scope.directive_candidate = node.body[0]

        statements = self._strip_resets(list(self.walker.walk(node.body, scope)), scope.local_vars)
        prologue = [scope.use_strict_directive] if scope.use_strict_directive is not None else []
        body = prologue + declare_all(scope.local_vars) + statements
        return replace(node, body=tuple(body))

    def _handle_function(self, node: FunctionNode, ctx: ScopeContext) -> FunctionNode:
        scope = ScopeContext.for_function(node, ctx, self.temp_prefix, self.loop_label)
        walked = self.walker.walk(node.body, scope)
        statements: List[Statement] = list(walked.body)

        if scope.is_tail_recursive:
            # Locals are reset at the top of each iteration, as a fresh call would see them.
            statements = zip_assign(scope.local_vars) + statements
            if not statements or not isinstance(statements[-1], ReturnStatement):
                statements.append(ReturnStatement())
            loop = LabeledStatement(
                Identifier(self.loop_label),
                WhileStatement(Literal(True), BlockStatement(tuple(statements))),
            )
            statements = zip_declare(scope.used_temp_names) + [loop]
            self.stats.optimized_functions.append(node.name)
            logger.debug(f"wrapped {node.name} in a tail call loop "
                         f"(temps: {scope.used_temp_names}, locals: {scope.local_vars})")
        else:
            statements = self._strip_resets(statements, scope.local_vars)

        prologue = [scope.use_strict_directive] if scope.use_strict_directive is not None else []
        body = prologue + declare_all(scope.local_vars) + statements
        return replace(node, body=replace(walked, body=tuple(body)))

    @staticmethod
    def _strip_resets(statements: List[Statement], local_vars: Sequence[str]) -> List[Statement]:
        """Drop leading `x = undefined` statements; hoisted locals already start undefined."""
        index = 0
        while index < len(statements) and is_undefined_reset(statements[index], local_vars):
            index += 1
        return statements[index:]

    # ------------------------------------------------------------------
    # Returns
    # ------------------------------------------------------------------

    def _handle_return(self, node: ReturnStatement, ctx: ScopeContext) -> Statement:
        if ctx.scope_name is not None and match_node(node.argument, self_call_pattern(ctx.scope_name)):
            return self._convert_tail_call(node, ctx)
        if match_node(node.argument, {"type": NodeType.CONDITIONAL_EXPRESSION}):
            return self._convert_ternary(node, ctx)
        return self.walker.walk_children(node, ctx)

    def _convert_tail_call(self, node: ReturnStatement, ctx: ScopeContext) -> BlockStatement:
        """
        Replace `return name(args)` with parameter updates and a labeled continue.

        Arguments identical to their own parameter are skipped. Two or more
        changed arguments are staged through temps, unless every changed
        argument but the last is a constant; then the last one is assigned
        first and the constants after it, so nothing reads an updated parameter.
        """
        call: CallExpression = node.argument
        arguments = tuple(self.walker.walk(arg, ctx) for arg in call.arguments)
        if len(arguments) > len(ctx.params):
            raise TailCallArityError(
                f"tail call to `{ctx.scope_name}` passes {_plural(len(arguments), 'argument')}, "
                f"but `{ctx.scope_name}` declares {_plural(len(ctx.params), 'parameter')}",
                call.location,
                help="remove the extra arguments",
                label="self-call in tail position",
            )
        ctx.mark_tail_recursive()

        changed: List[Tuple[int, str, Expression]] = []
        for index, param in enumerate(ctx.params):
            arg = arguments[index] if index < len(arguments) else undefined()
            if arg == Identifier(param):
                continue
            changed.append((index, param, arg))

        needs_temps = len(changed) > 1 and not all(_is_constant(arg) for _, _, arg in changed[:-1])
        if needs_temps:
            temps = [ctx.use_temp(index) for index, _, _ in changed]
            statements = (
                zip_assign(temps, [arg for _, _, arg in changed])
                + zip_assign([param for _, param, _ in changed], [Identifier(t) for t in temps])
            )
        else:
            ordered = changed[-1:] + changed[:-1]
            statements = zip_assign([param for _, param, _ in ordered], [arg for _, _, arg in ordered])

        statements.append(ContinueStatement(Identifier(self.loop_label)))
        self.stats.converted_calls += 1
        logger.debug(f"converted tail call in {ctx.scope_name}: "
                     f"{_plural(len(changed), 'changed argument')}, temps={needs_temps}")
        return BlockStatement(tuple(statements), location=node.location)

    def _convert_ternary(self, node: ReturnStatement, ctx: ScopeContext) -> Statement:
        """`return t ? a : b` -> `if (t) return a; else return b;`, walked again."""
        ternary: ConditionalExpression = node.argument
        self.stats.normalized_ternaries += 1
        rewritten = IfStatement(
            ternary.test,
            self._wrap_with_return(ternary.consequent),
            self._wrap_with_return(ternary.alternate),
            location=node.location,
        )
        return self.walker.walk(rewritten, ctx)

    @staticmethod
    def _wrap_with_return(expression: Expression) -> Statement:
        if isinstance(expression, SequenceExpression):
            *effects, last = expression.expressions
            return BlockStatement(
                tuple(ExpressionStatement(e, location=e.location) for e in effects)
                + (ReturnStatement(last, location=last.location),)
            )
        return ReturnStatement(expression, location=expression.location)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _handle_block(self, node: BlockStatement, ctx: ScopeContext) -> BlockStatement:
        body = self.walker.walk(node.body, ctx)
        if len(body) == 1 and isinstance(body[0], BlockStatement):
            body = body[0].body
        return replace(node, body=body)

    def _handle_variable_declaration(self, node: VariableDeclaration, ctx: ScopeContext) -> ExpressionStatement:
        """`var a = 1, b;` -> `a = 1, b = undefined;` with a and b hoisted."""
        assignments = []
        for declarator in node.declarations:
            name = declarator.id.name
            check_not_reserved(name, declarator.id.location, self.temp_prefix, self.loop_label)
            ctx.add_local(name)
            init = self.walker.walk(declarator.init, ctx) if declarator.init is not None else undefined()
            assignments.append(AssignmentExpression("=", declarator.id, init, location=declarator.location))
        self.stats.hoisted_vars += len(assignments)
        return ExpressionStatement(SequenceExpression(tuple(assignments)), location=node.location)

    def _handle_for(self, node: ForStatement, ctx: ScopeContext) -> ForStatement:
        walked = self.walker.walk_children(node, ctx)
        if isinstance(walked.init, ExpressionStatement):
            walked = replace(walked, init=walked.init.expression)
        return walked

    def _handle_for_each(self, node: ForInStatement | ForOfStatement, ctx: ScopeContext) -> Statement:
        left: Any = node.left
        if isinstance(left, VariableDeclaration):
            declarator = left.declarations[0]
            check_not_reserved(declarator.id.name, declarator.id.location, self.temp_prefix, self.loop_label)
            ctx.add_local(declarator.id.name)
            self.stats.hoisted_vars += 1
            left = declarator.id
        else:
            left = self.walker.walk(left, ctx)
        return replace(
            node,
            left=left,
            right=self.walker.walk(node.right, ctx),
            body=self.walker.walk(node.body, ctx),
        )

    def _handle_expression_statement(self, node: ExpressionStatement, ctx: ScopeContext) -> Statement:
        if node is ctx.directive_candidate:
            ctx.use_strict_directive = node
            return BlockStatement(())
        return self.walker.walk_children(node, ctx)

    def _handle_labeled(self, node: LabeledStatement, ctx: ScopeContext) -> Statement:
        check_not_reserved(node.label.name, node.label.location, self.temp_prefix, self.loop_label)
        return self.walker.walk_children(node, ctx)


class TailCallPass(BasePass):
    """
    Tail call elimination over a Program or a single function node.

    Stores TailCallStats as its analysis result.
    """
    requires = []

    def run(self, tree: Node, pcx: PassContext) -> Node:
        logger.debug("Starting tail call elimination")
        rewriter = TailCallRewriter(pcx.temp_prefix, pcx.loop_label)
        result = rewriter.rewrite(tree)
        pcx.set_analysis(TailCallPass, rewriter.stats)
        logger.debug(f"Tail call elimination complete: {rewriter.stats.converted_calls} call(s) converted "
                     f"in {len(rewriter.stats.optimized_functions)} function(s)")
        return result
