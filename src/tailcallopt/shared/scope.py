"""
Scope Context

Per-function record of recursion-relevant state.

A fresh ScopeContext is opened for every function node the rewriter enters.
It does not inherit the enclosing function's name, parameters or recursion
state: self-recursion is detected purely per function. The enclosing context
is kept only as a back-reference.

Lifecycle: created on entering a function node, filled while the body is
walked, read once by the function handler to rebuild the body, then dropped.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ReservedNameError
from .nodes import FunctionDeclaration, FunctionExpression, Statement, ExpressionStatement
from .source_location import SourceLocation
from .tree_utils import declared_names, is_directive
from ..utils.config import TEMP_NAME_PREFIX, LOOP_LABEL


def check_not_reserved(name: str, location: Optional[SourceLocation] = None,
                       temp_prefix: str = TEMP_NAME_PREFIX, loop_label: str = LOOP_LABEL) -> None:
    """Raise ReservedNameError when a user declaration would collide with generated names."""
    if name.startswith(temp_prefix) or name == loop_label:
        raise ReservedNameError(
            f"'{name}' is reserved for generated code",
            location,
            help=f"rename it; identifiers starting with '{temp_prefix}' and the label "
                 f"'{loop_label}' are used by the tail call rewrite",
        )


@dataclass
class ScopeContext:
    """
    Recursion state for one function body.

    Invariants:
    - used_temp_names is a subset of temp_names
    - local_vars never contains a parameter name
    - the body is loop-wrapped iff is_tail_recursive is true once the
      body has been walked
    """
    scope_name: Optional[str] = None
    params: List[str] = field(default_factory=list)
    temp_names: List[str] = field(default_factory=list)
    used_temp_names: List[str] = field(default_factory=list)
    local_vars: List[str] = field(default_factory=list)
    is_tail_recursive: bool = False
    use_strict_directive: Optional[ExpressionStatement] = None
    directive_candidate: Optional[Statement] = field(default=None, repr=False)
    parent: Optional[ScopeContext] = field(default=None, repr=False, compare=False)

    @classmethod
    def root(cls) -> ScopeContext:
        """Context for top-level program code (no function, nothing to detect)."""
        return cls()

    @classmethod
    def for_function(cls, node: FunctionDeclaration | FunctionExpression,
                     parent: Optional[ScopeContext] = None,
                     temp_prefix: str = TEMP_NAME_PREFIX,
                     loop_label: str = LOOP_LABEL) -> ScopeContext:
        """Open a fresh context for `node`; generated temp names are `prefix + param`."""
        params = [p.name for p in node.params]
        for param in node.params:
            check_not_reserved(param.name, param.location, temp_prefix, loop_label)
        if node.id is not None:
            check_not_reserved(node.id.name, node.id.location, temp_prefix, loop_label)

        scope_name = node.name
        # A parameter, var or nested function of the same name shadows the
        # function itself, so calls to that name are not self-calls.
        if scope_name is not None and (scope_name in params or scope_name in declared_names(node.body)):
            scope_name = None

        statements = node.body.body
        candidate = statements[0] if statements and is_directive(statements[0]) else None

        return cls(
            scope_name=scope_name,
            params=params,
            temp_names=[temp_prefix + name for name in params],
            directive_candidate=candidate,
            parent=parent,
        )

    def add_local(self, name: str) -> None:
        """Register a hoisted var (parameters and duplicates are ignored)."""
        if name in self.params or name in self.local_vars:
            return
        self.local_vars.append(name)

    def use_temp(self, index: int) -> str:
        """Mark the temp for parameter `index` as needed and return its name."""
        name = self.temp_names[index]
        if name not in self.used_temp_names:
            self.used_temp_names.append(name)
        return name

    def mark_tail_recursive(self) -> None:
        self.is_tail_recursive = True
