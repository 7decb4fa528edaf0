"""
Optimizer Driver

Orchestrates parse -> rewrite -> validate -> print, and holds the public
entry point `tail_call_optimise`.
"""

import logging
from typing import Any, Optional

from ..backend.codegen import generate
from ..frontend.parser import Parser
from ..passes.base import PassContext, PassManager
from ..passes.tail_calls import TailCallPass, TailCallStats
from ..passes.tree_validation import TreeValidationPass
from ..runtime.values import JSFunction
from ..shared.errors import TailCallOptError
from ..shared.nodes import Node, Program
from ..utils.config import TEMP_NAME_PREFIX, LOOP_LABEL, DEFAULT_INDENT, DEFAULT_SOURCE_FILE

logger = logging.getLogger("tailcallopt.compiler.driver")


class OptimizationResult:
    """Outcome of `TailCallOptimizer.compile`: output text or collected diagnostics."""

    def __init__(
        self,
        tree: Optional[Program] = None,
        output: Optional[str] = None,
        pcx: Optional[PassContext] = None,
        success: bool = False,
    ):
        self.tree = tree
        self.output = output
        self.pcx = pcx
        self.success = success

    @property
    def stats(self) -> Optional[TailCallStats]:
        if self.pcx is None or not self.pcx.has_analysis(TailCallPass):
            return None
        return self.pcx.get_analysis(TailCallPass)

    def has_errors(self) -> bool:
        if self.pcx is not None and self.pcx.reporter.has_errors():
            return True
        return not self.success

    def get_errors(self) -> list:
        if self.pcx is not None and self.pcx.reporter.has_errors():
            return [self.pcx.reporter.format_all_errors(color=False)]
        return []


class TailCallOptimizer:
    """
    Owns a parser, the pass pipeline and the printer.

    - optimise_tree(node): rewrite only; the caller's tree is not validated
    - optimise_source(text): parse, rewrite, validate, print; raises on error
    - compile(text): as optimise_source, but errors become diagnostics
    """

    def __init__(
        self,
        parser: Optional[Parser] = None,
        temp_prefix: str = TEMP_NAME_PREFIX,
        loop_label: str = LOOP_LABEL,
        indent: str = DEFAULT_INDENT,
        validate: bool = True,
    ):
        self.parser = parser if parser is not None else Parser()
        self.temp_prefix = temp_prefix
        self.loop_label = loop_label
        self.indent = indent

        self.pass_manager = PassManager()
        self.pass_manager.register_pass(TailCallPass)
        if validate:
            self.pass_manager.register_pass(TreeValidationPass)

    def _context(self) -> PassContext:
        return PassContext(temp_prefix=self.temp_prefix, loop_label=self.loop_label)

    def optimise_tree(self, node: Node) -> Node:
        """Rewrite a Program or function node, returning a new tree."""
        return TailCallPass().run(node, self._context())

    def run_pipeline(self, source: str, source_file: str = DEFAULT_SOURCE_FILE,
                     pcx: Optional[PassContext] = None, dump_tree: bool = False) -> Program:
        """Parse and run every registered pass; returns the final tree."""
        pcx = pcx if pcx is not None else self._context()
        pcx.add_source(source_file, source)
        program = self.parser.parse(source, source_file)
        return self.pass_manager.run_all(program, pcx, dump_tree=dump_tree)

    def optimise_source(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> str:
        """Optimized source text for `source`."""
        return generate(self.run_pipeline(source, source_file), self.indent)

    def compile(self, source: str, source_file: str = DEFAULT_SOURCE_FILE,
                dump_tree: bool = False) -> OptimizationResult:
        pcx = self._context()
        try:
            tree = self.run_pipeline(source, source_file, pcx, dump_tree=dump_tree)
        except TailCallOptError as e:
            logger.debug(f"Optimization of {source_file} failed: {e.message}")
            pcx.reporter.report_exception(e)
            return OptimizationResult(pcx=pcx, success=False)
        return OptimizationResult(tree=tree, output=generate(tree, self.indent), pcx=pcx, success=True)

    def optimise(self, value: Any) -> Any:
        """
        Dispatch on input kind:
        - syntax node: rewritten node (not validated)
        - source text: optimized source text
        - JSFunction from the reference runtime: optimized source text of that function
        """
        if isinstance(value, Node):
            return self.optimise_tree(value)
        if isinstance(value, str):
            return self.optimise_source(value)
        if isinstance(value, JSFunction):
            return self.optimise_source(value.source)
        raise TypeError(
            f"tail_call_optimise expects a syntax node, source text or function, got {type(value).__name__}"
        )


_default_optimizer: Optional[TailCallOptimizer] = None


def _optimizer() -> TailCallOptimizer:
    global _default_optimizer
    if _default_optimizer is None:
        _default_optimizer = TailCallOptimizer()
    return _default_optimizer


def tail_call_optimise(value: Any) -> Any:
    """
    Eliminate self-recursive tail calls.

    Node in, node out; text (or a runtime function) in, text out.
    """
    return _optimizer().optimise(value)
