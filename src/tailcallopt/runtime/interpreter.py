"""
Interpreter

Reference evaluator for the supported JavaScript subset. It exists so that a
program and its rewritten form can be run side by side: same results, and a
call depth that the rewritten form no longer grows.

Each JavaScript call costs a bounded number of Python frames, so the call
depth limit (StackOverflowError, JavaScript's RangeError) is enforced by
counting calls, with Python's own recursion limit raised to fit it.
"""

import logging
import math
import sys
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..shared.nodes import (
    Node, NodeType, Program, FunctionDeclaration, FunctionExpression, FunctionNode, Identifier,
    MemberExpression, VariableDeclaration, VariableDeclarator, Statement, Expression,
    FUNCTION_NODE_TYPES,
)
from ..shared.tree_utils import is_directive
from ..utils.config import DEFAULT_MAX_CALL_DEPTH, PYTHON_FRAMES_PER_CALL
from .builtins import get_property, set_property, property_keys, iterate_values, make_globals
from .environment import Environment
from .errors import JSReferenceError, JSTypeError, StackOverflowError
from .values import (
    UNDEFINED, JSFunction, NativeFunction, to_boolean, to_number, to_string,
    to_int32, to_uint32, type_of, strict_equals, loose_equals,
)

logger = logging.getLogger("tailcallopt.runtime.interpreter")

# Recursion limit slack for the frames below the first JavaScript call
_RECURSION_MARGIN = 1000


class _ReturnSignal(Exception):
    def __init__(self, value: Any):
        self.value = value


class _BreakSignal(Exception):
    def __init__(self, label: Optional[str] = None):
        self.label = label


class _ContinueSignal(Exception):
    def __init__(self, label: Optional[str] = None):
        self.label = label


def _js_divide(a: float, b: float) -> float:
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        negative = (a < 0) != (math.copysign(1.0, b) < 0)
        return -math.inf if negative else math.inf
    return a / b


def _js_remainder(a: float, b: float) -> float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    if math.isinf(b):
        return a
    return math.fmod(a, b)


def _js_add(a: Any, b: Any) -> Any:
    if isinstance(a, (str, list)) or isinstance(b, (str, list)):
        return to_string(a) + to_string(b)
    return to_number(a) + to_number(b)


def _js_compare(a: Any, b: Any, test: Callable[[Any, Any], bool]) -> bool:
    if isinstance(a, str) and isinstance(b, str):
        return test(a, b)
    x, y = to_number(a), to_number(b)
    if math.isnan(x) or math.isnan(y):
        return False
    return test(x, y)


_ARITHMETIC: Dict[str, Callable[[Any, Any], Any]] = {
    "+": _js_add,
    "-": lambda a, b: to_number(a) - to_number(b),
    "*": lambda a, b: to_number(a) * to_number(b),
    "/": lambda a, b: _js_divide(to_number(a), to_number(b)),
    "%": lambda a, b: _js_remainder(to_number(a), to_number(b)),
    "<<": lambda a, b: float(to_int32(to_int32(a) << (to_uint32(b) & 31))),
    ">>": lambda a, b: float(to_int32(a) >> (to_uint32(b) & 31)),
    ">>>": lambda a, b: float(to_uint32(a) >> (to_uint32(b) & 31)),
    "&": lambda a, b: float(to_int32(a) & to_int32(b)),
    "|": lambda a, b: float(to_int32(a) | to_int32(b)),
    "^": lambda a, b: float(to_int32(a) ^ to_int32(b)),
    "==": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    "===": strict_equals,
    "!==": lambda a, b: not strict_equals(a, b),
    "<": lambda a, b: _js_compare(a, b, lambda x, y: x < y),
    ">": lambda a, b: _js_compare(a, b, lambda x, y: x > y),
    "<=": lambda a, b: _js_compare(a, b, lambda x, y: x <= y),
    ">=": lambda a, b: _js_compare(a, b, lambda x, y: x >= y),
}


def _hoisted_declarations(value: Any, names: List[str], functions: List[FunctionDeclaration]) -> None:
    """`var` names and function declarations of one function body, in source order."""
    if isinstance(value, tuple):
        for item in value:
            _hoisted_declarations(item, names, functions)
        return
    if not isinstance(value, Node):
        return
    if isinstance(value, FunctionDeclaration):
        functions.append(value)
        return
    if value.node_type in FUNCTION_NODE_TYPES:
        return
    if isinstance(value, VariableDeclarator):
        names.append(value.id.name)
    for _, child in value.child_fields():
        _hoisted_declarations(child, names, functions)


class Interpreter:
    """
    Tree-walking evaluator.

        interp = Interpreter()
        interp.run(program)
        interp.get_function("fact")(5, 1)   # 120.0
    """

    def __init__(self, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH):
        self.max_call_depth = max_call_depth
        self.global_env = Environment()
        for name, value in make_globals().items():
            self.global_env.declare(name, value)
        self._depth = 0
        self._strict = False
        self._statements: Dict[NodeType, Callable[[Any, Environment], None]] = {
            NodeType.FUNCTION_DECLARATION: self._exec_nothing,
            NodeType.EMPTY_STATEMENT: self._exec_nothing,
            NodeType.BLOCK_STATEMENT: self._exec_block,
            NodeType.EXPRESSION_STATEMENT: self._exec_expression,
            NodeType.VARIABLE_DECLARATION: self._exec_var,
            NodeType.IF_STATEMENT: self._exec_if,
            NodeType.RETURN_STATEMENT: self._exec_return,
            NodeType.CONTINUE_STATEMENT: self._exec_continue,
            NodeType.BREAK_STATEMENT: self._exec_break,
            NodeType.LABELED_STATEMENT: self._exec_labeled,
            NodeType.WHILE_STATEMENT: self._exec_loop,
            NodeType.DO_WHILE_STATEMENT: self._exec_loop,
            NodeType.FOR_STATEMENT: self._exec_loop,
            NodeType.FOR_IN_STATEMENT: self._exec_loop,
            NodeType.FOR_OF_STATEMENT: self._exec_loop,
        }
        self._expressions: Dict[NodeType, Callable[[Any, Environment], Any]] = {
            NodeType.IDENTIFIER: self._eval_identifier,
            NodeType.LITERAL: lambda node, env: node.value,
            NodeType.ARRAY_EXPRESSION: lambda node, env: [self.evaluate(e, env) for e in node.elements],
            NodeType.FUNCTION_EXPRESSION: self._eval_function,
            NodeType.CALL_EXPRESSION: self._eval_call,
            NodeType.MEMBER_EXPRESSION: self._eval_member,
            NodeType.CONDITIONAL_EXPRESSION: self._eval_conditional,
            NodeType.ASSIGNMENT_EXPRESSION: self._eval_assignment,
            NodeType.SEQUENCE_EXPRESSION: self._eval_sequence,
            NodeType.BINARY_EXPRESSION: self._eval_binary,
            NodeType.LOGICAL_EXPRESSION: self._eval_logical,
            NodeType.UNARY_EXPRESSION: self._eval_unary,
            NodeType.UPDATE_EXPRESSION: self._eval_update,
        }

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------

    def run(self, program: Program) -> Any:
        """Execute a program in the global environment; returns the last expression statement's value."""
        self._strict = bool(program.body) and is_directive(program.body[0])
        logger.debug(f"Running {len(program.body)} statement(s), strict={self._strict}, "
                     f"max call depth {self.max_call_depth}")
        self._hoist(program.body, self.global_env)
        result = UNDEFINED
        with self._python_stack():
            for statement in program.body:
                if statement.node_type == NodeType.EXPRESSION_STATEMENT:
                    result = self.evaluate(statement.expression, self.global_env)
                else:
                    self.execute(statement, self.global_env)
        return result

    def get_function(self, name: str) -> JSFunction:
        """A global function by name."""
        try:
            value = self.global_env.lookup(name)
        except KeyError:
            raise JSReferenceError(f"{name} is not defined") from None
        if not isinstance(value, JSFunction):
            raise JSTypeError(f"{name} is not a function")
        return value

    def call(self, func: Any, args: List[Any]) -> Any:
        """Call a JavaScript function value from Python."""
        with self._python_stack():
            return self._call(func, args)

    @contextmanager
    def _python_stack(self) -> Iterator[None]:
        needed = self.max_call_depth * PYTHON_FRAMES_PER_CALL + _RECURSION_MARGIN
        previous = sys.getrecursionlimit()
        if needed > previous:
            sys.setrecursionlimit(needed)
        try:
            yield
        except RecursionError:
            raise StackOverflowError("Maximum call stack size exceeded") from None
        finally:
            if needed > previous:
                sys.setrecursionlimit(previous)

    # ------------------------------------------------------------------
    # functions
    # ------------------------------------------------------------------

    def _make_function(self, node: FunctionNode, env: Environment) -> JSFunction:
        body = node.body.body
        strict = self._strict or (bool(body) and is_directive(body[0]))
        return JSFunction(node, env, self, strict=strict)

    def _hoist(self, body: Any, env: Environment) -> None:
        names: List[str] = []
        functions: List[FunctionDeclaration] = []
        _hoisted_declarations(body, names, functions)
        for name in names:
            if not env.declares(name):
                env.declare(name, UNDEFINED)
        for declaration in functions:
            env.declare(declaration.id.name, self._make_function(declaration, env))

    def _call(self, func: Any, args: List[Any]) -> Any:
        if isinstance(func, NativeFunction):
            return func(*args)
        if not isinstance(func, JSFunction):
            raise JSTypeError(f"{to_string(func)} is not a function")
        if self._depth >= self.max_call_depth:
            raise StackOverflowError("Maximum call stack size exceeded")

        node = func.node
        env = Environment(func.closure)
        for i, param in enumerate(node.params):
            env.declare(param.name, args[i] if i < len(args) else UNDEFINED)
        self._hoist(node.body.body, env)

        outer_strict = self._strict
        self._strict = func.strict
        self._depth += 1
        try:
            for statement in node.body.body:
                self.execute(statement, env)
        except _ReturnSignal as signal:
            return signal.value
        finally:
            self._depth -= 1
            self._strict = outer_strict
        return UNDEFINED

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def execute(self, node: Statement, env: Environment) -> None:
        handler = self._statements.get(node.node_type)
        if handler is None:
            raise JSTypeError(f"cannot execute {type(node).__name__}", node.location)
        handler(node, env)

    def _exec_nothing(self, node, env) -> None:
        pass

    def _exec_block(self, node, env) -> None:
        for statement in node.body:
            self.execute(statement, env)

    def _exec_expression(self, node, env) -> None:
        self.evaluate(node.expression, env)

    def _exec_var(self, node: VariableDeclaration, env) -> None:
        for declarator in node.declarations:
            if declarator.init is not None:
                self._assign_name(declarator.id, self.evaluate(declarator.init, env), env)

    def _exec_if(self, node, env) -> None:
        if to_boolean(self.evaluate(node.test, env)):
            self.execute(node.consequent, env)
        elif node.alternate is not None:
            self.execute(node.alternate, env)

    def _exec_return(self, node, env) -> None:
        value = UNDEFINED if node.argument is None else self.evaluate(node.argument, env)
        raise _ReturnSignal(value)

    def _exec_continue(self, node, env) -> None:
        raise _ContinueSignal(node.label.name if node.label is not None else None)

    def _exec_break(self, node, env) -> None:
        raise _BreakSignal(node.label.name if node.label is not None else None)

    def _exec_labeled(self, node, env, labels: frozenset = frozenset()) -> None:
        labels = labels | {node.label.name}
        body = node.body
        if body.node_type == NodeType.LABELED_STATEMENT:
            self._exec_labeled(body, env, labels)
        elif body.node_type in self._LOOP_RUNNERS:
            self._exec_loop(body, env, labels)
        else:
            try:
                self.execute(body, env)
            except _BreakSignal as signal:
                if signal.label not in labels:
                    raise

    # ------------------------------------------------------------------
    # loops
    # ------------------------------------------------------------------

    _LOOP_RUNNERS = {
        NodeType.WHILE_STATEMENT: "_run_while",
        NodeType.DO_WHILE_STATEMENT: "_run_do_while",
        NodeType.FOR_STATEMENT: "_run_for",
        NodeType.FOR_IN_STATEMENT: "_run_for_in",
        NodeType.FOR_OF_STATEMENT: "_run_for_of",
    }

    def _exec_loop(self, node, env, labels: frozenset = frozenset()) -> None:
        getattr(self, self._LOOP_RUNNERS[node.node_type])(node, env, labels)

    def _iterate(self, body: Statement, env: Environment, labels: frozenset) -> bool:
        """Run one iteration; False when the loop should stop."""
        try:
            self.execute(body, env)
        except _BreakSignal as signal:
            if signal.label is None or signal.label in labels:
                return False
            raise
        except _ContinueSignal as signal:
            if signal.label is None or signal.label in labels:
                return True
            raise
        return True

    def _run_while(self, node, env, labels) -> None:
        while to_boolean(self.evaluate(node.test, env)):
            if not self._iterate(node.body, env, labels):
                break

    def _run_do_while(self, node, env, labels) -> None:
        while True:
            if not self._iterate(node.body, env, labels):
                break
            if not to_boolean(self.evaluate(node.test, env)):
                break

    def _run_for(self, node, env, labels) -> None:
        if isinstance(node.init, VariableDeclaration):
            self._exec_var(node.init, env)
        elif node.init is not None:
            self.evaluate(node.init, env)
        while node.test is None or to_boolean(self.evaluate(node.test, env)):
            if not self._iterate(node.body, env, labels):
                break
            if node.update is not None:
                self.evaluate(node.update, env)

    def _run_for_each(self, node, env, labels, items: List[Any]) -> None:
        target = node.left
        if isinstance(target, VariableDeclaration):
            target = target.declarations[0].id
        for item in items:
            self._store(target, item, env)
            if not self._iterate(node.body, env, labels):
                break

    def _run_for_in(self, node, env, labels) -> None:
        obj = self.evaluate(node.right, env)
        if obj is UNDEFINED or obj is None:
            return
        self._run_for_each(node, env, labels, property_keys(obj))

    def _run_for_of(self, node, env, labels) -> None:
        self._run_for_each(node, env, labels, iterate_values(self.evaluate(node.right, env)))

    # ------------------------------------------------------------------
    # expressions
    # ------------------------------------------------------------------

    def evaluate(self, node: Expression, env: Environment) -> Any:
        handler = self._expressions.get(node.node_type)
        if handler is None:
            raise JSTypeError(f"cannot evaluate {type(node).__name__}", node.location)
        return handler(node, env)

    def _eval_identifier(self, node: Identifier, env) -> Any:
        try:
            return env.lookup(node.name)
        except KeyError:
            raise JSReferenceError(f"{node.name} is not defined", node.location) from None

    def _eval_function(self, node: FunctionExpression, env) -> JSFunction:
        if node.id is None:
            return self._make_function(node, env)
        # the name is visible inside the function only
        own = Environment(env)
        func = self._make_function(node, own)
        own.declare(node.id.name, func)
        return func

    def _eval_call(self, node, env) -> Any:
        callee = self.evaluate(node.callee, env)
        args = [self.evaluate(arg, env) for arg in node.arguments]
        if not isinstance(callee, (JSFunction, NativeFunction)):
            raise JSTypeError(f"{self._describe(node.callee)} is not a function", node.location)
        return self._call(callee, args)

    def _describe(self, node: Expression) -> str:
        if isinstance(node, Identifier):
            return node.name
        if isinstance(node, MemberExpression) and not node.computed:
            return f"{self._describe(node.object)}.{node.property.name}"
        return "expression"

    def _property_key(self, node: MemberExpression, env) -> Any:
        if node.computed:
            return self.evaluate(node.property, env)
        return node.property.name

    def _eval_member(self, node: MemberExpression, env) -> Any:
        obj = self.evaluate(node.object, env)
        key = self._property_key(node, env)
        try:
            return get_property(obj, key)
        except JSTypeError as e:
            e.location = e.location or node.location
            raise

    def _eval_conditional(self, node, env) -> Any:
        if to_boolean(self.evaluate(node.test, env)):
            return self.evaluate(node.consequent, env)
        return self.evaluate(node.alternate, env)

    def _eval_sequence(self, node, env) -> Any:
        value = UNDEFINED
        for expression in node.expressions:
            value = self.evaluate(expression, env)
        return value

    def _eval_binary(self, node, env) -> Any:
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        return _ARITHMETIC[node.operator](left, right)

    def _eval_logical(self, node, env) -> Any:
        left = self.evaluate(node.left, env)
        if node.operator == "&&":
            return self.evaluate(node.right, env) if to_boolean(left) else left
        return left if to_boolean(left) else self.evaluate(node.right, env)

    def _eval_unary(self, node, env) -> Any:
        operator = node.operator
        if operator == "typeof" and isinstance(node.argument, Identifier) and env.resolve(node.argument.name) is None:
            return "undefined"
        value = self.evaluate(node.argument, env)
        if operator == "!":
            return not to_boolean(value)
        if operator == "-":
            return -to_number(value)
        if operator == "+":
            return to_number(value)
        if operator == "~":
            return float(~to_int32(value))
        if operator == "typeof":
            return type_of(value)
        return UNDEFINED  # void

    def _eval_update(self, node, env) -> Any:
        old = to_number(self.evaluate(node.argument, env))
        new = old + 1 if node.operator == "++" else old - 1
        self._store(node.argument, new, env)
        return new if node.prefix else old

    def _eval_assignment(self, node, env) -> Any:
        if node.operator == "=":
            value = self.evaluate(node.right, env)
        else:
            current = self.evaluate(node.left, env)
            value = _ARITHMETIC[node.operator[:-1]](current, self.evaluate(node.right, env))
        self._store(node.left, value, env)
        return value

    def _store(self, target: Expression, value: Any, env: Environment) -> None:
        if isinstance(target, Identifier):
            self._assign_name(target, value, env)
            return
        obj = self.evaluate(target.object, env)
        key = self._property_key(target, env)
        try:
            set_property(obj, key, value)
        except JSTypeError as e:
            e.location = e.location or target.location
            raise

    def _assign_name(self, target: Identifier, value: Any, env: Environment) -> None:
        if env.assign(target.name, value):
            return
        if self._strict:
            raise JSReferenceError(f"{target.name} is not defined", target.location)
        env.root().declare(target.name, value)


def run_source(source: str, max_call_depth: int = DEFAULT_MAX_CALL_DEPTH) -> Interpreter:
    """Parse and run `source`; returns the interpreter for function lookup."""
    from ..frontend.parser import Parser
    interpreter = Interpreter(max_call_depth)
    interpreter.run(Parser().parse(source))
    return interpreter
