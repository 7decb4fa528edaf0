"""
Tree Serialization to S-Expressions
===================================

Converts syntax trees to a canonical S-expression format for testing and
debugging (`--dump-tree`, pass dumps). Node kinds become kebab-case symbols,
fields become `:keyword value` pairs:

    (return-statement :argument (call-expression :callee (identifier "fact") :arguments ()))

Uses structured sexpr (nested lists + sexpdata.Symbol), then pretty-prints
for readable output.
"""

import re
from typing import Any

import sexpdata

from .nodes import Node, Identifier, Literal, GenericNode

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _kebab(name: str) -> str:
    return _CAMEL.sub("-", name).lower()


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    if sexpr is None:
        return "nil"
    if isinstance(sexpr, bool):
        return "true" if sexpr else "false"
    if isinstance(sexpr, (int, float)):
        return str(sexpr)
    # Symbol subclasses str, so it is checked first
    if isinstance(sexpr, sexpdata.Symbol):
        return str(sexpr)
    if isinstance(sexpr, str):
        escaped = sexpr.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # Keyword and value share a line
        lines = [parts[0]]
        i = 1
        while i < len(parts):
            if parts[i].startswith(":") and i + 1 < len(parts):
                lines.append(f"{next_prefix}{parts[i]} {parts[i + 1]}")
                i += 2
            else:
                lines.append(next_prefix + parts[i])
                i += 1
        return "(" + "\n".join(lines) + f"\n{prefix})"
    return str(sexpr)


def serialize_tree(node: Any, include_location: bool = False, pretty: bool = True) -> str:
    """
    Serialize a tree to an S-expression string.

    Args:
        node: Node (or tuple of nodes) to serialize
        include_location: Append `:loc ("file" line column)` to located nodes
        pretty: Pretty-printed (default) or compact single-line output
    """
    serializer = TreeSerializer(include_location=include_location)
    sexpr = serializer.serialize_to_sexpr(node)
    if pretty:
        return _pretty_dumps(sexpr)
    return sexpdata.dumps(sexpr)


class TreeSerializer:
    """Syntax tree to structured S-expression serializer."""

    def __init__(self, include_location: bool = False):
        self.include_location = include_location

    def _sym(self, s: str) -> sexpdata.Symbol:
        return sexpdata.Symbol(s)

    def serialize(self, node: Any) -> str:
        return _pretty_dumps(self.serialize_to_sexpr(node))

    def serialize_to_sexpr(self, value: Any) -> Any:
        """Serialize any node or field value to structured sexpr (list/Symbol/str/number)."""
        if value is None:
            return self._sym("nil")
        if isinstance(value, bool):
            # sexpdata renders True as a bare t and False as ()
            return self._sym("true" if value else "false")
        if isinstance(value, tuple):
            return [self.serialize_to_sexpr(item) for item in value]
        if not isinstance(value, Node):
            return value

        method = getattr(self, f"_serialize_{type(value).__name__}", None)
        core = method(value) if method is not None else self._serialize_fields(value)
        if self.include_location and value.location is not None:
            loc = value.location
            core.extend([self._sym(":loc"), [loc.file, loc.line, loc.column]])
        return core

    def _serialize_fields(self, node: Node) -> list:
        out: list = [self._sym(_kebab(type(node).__name__))]
        for name, child in node.child_fields():
            out.extend([self._sym(f":{_kebab(name)}"), self.serialize_to_sexpr(child)])
        return out

    def _serialize_Identifier(self, node: Identifier) -> list:
        return [self._sym("identifier"), node.name]

    def _serialize_Literal(self, node: Literal) -> list:
        value = node.value
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return [self._sym("literal"), self.serialize_to_sexpr(value)]

    def _serialize_GenericNode(self, node: GenericNode) -> list:
        out: list = [self._sym("generic"), node.kind]
        for name, child in node.children:
            out.extend([self._sym(f":{_kebab(name)}"), self.serialize_to_sexpr(child)])
        return out
