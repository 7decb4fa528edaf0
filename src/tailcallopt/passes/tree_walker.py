"""
Generic Tree Walker

Dispatches each node to the handler registered for its NodeType; any other
node is rebuilt structurally from its walked children. Handlers own their
node completely and recurse (or not) through the walker themselves.

When a child tuple is rebuilt, a walked element that came back as a
BlockStatement is spliced into the tuple in its place, so one statement can
expand into several siblings.
"""

from typing import Any, Callable, Dict, List

from ..shared.nodes import Node, NodeType, BlockStatement
from ..shared.scope import ScopeContext

Handler = Callable[[Any, ScopeContext], Any]


class TreeWalker:
    """walk(node, context) -> node'"""

    def __init__(self):
        self.handlers: Dict[NodeType, Handler] = {}

    def register(self, node_type: NodeType, handler: Handler) -> None:
        self.handlers[node_type] = handler

    def walk(self, value: Any, ctx: ScopeContext) -> Any:
        if isinstance(value, tuple):
            return self.walk_list(value, ctx)
        if not isinstance(value, Node):
            return value
        handler = self.handlers.get(value.node_type)
        if handler is not None:
            return handler(value, ctx)
        return self.walk_children(value, ctx)

    def walk_children(self, node: Node, ctx: ScopeContext) -> Node:
        """Rebuild `node` with every child field walked, in declaration order."""
        changes = {name: self.walk(child, ctx) for name, child in node.child_fields()}
        return node.with_children(changes)

    def walk_list(self, items: tuple, ctx: ScopeContext) -> tuple:
        result: List[Any] = []
        for item in items:
            walked = self.walk(item, ctx)
            if isinstance(walked, BlockStatement):
                result.extend(walked.body)
            else:
                result.append(walked)
        return tuple(result)
