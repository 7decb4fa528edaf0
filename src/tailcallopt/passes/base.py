"""
Base Pass System

Passes transform a syntax tree into a new syntax tree. They never mutate
their input; state shared between passes lives on the PassContext.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type

from ..shared.errors import ErrorReporter, ImplementationError
from ..shared.nodes import Node
from ..shared.serialization import serialize_tree
from ..utils.config import TEMP_NAME_PREFIX, LOOP_LABEL

logger = logging.getLogger("tailcallopt.passes.base")


class PassContext:
    """
    Single home for everything a pipeline run shares: naming configuration,
    the error reporter, known source texts and per-pass analysis results.
    """

    def __init__(self, temp_prefix: str = TEMP_NAME_PREFIX, loop_label: str = LOOP_LABEL):
        self.temp_prefix = temp_prefix
        self.loop_label = loop_label

        self._analysis_results: Dict[Type['BasePass'], Any] = {}
        self.source_files: Dict[str, str] = {}
        self.reporter = ErrorReporter(self.source_files)

    def add_source(self, source_file: str, source: str) -> None:
        self.source_files[source_file] = source

    def get_analysis(self, pass_class: Type['BasePass']) -> Any:
        """Get analysis results from a pass"""
        if pass_class not in self._analysis_results:
            raise ImplementationError(f"no results from {pass_class.__name__} on this context")
        return self._analysis_results[pass_class]

    def has_analysis(self, pass_class: Type['BasePass']) -> bool:
        return pass_class in self._analysis_results

    def set_analysis(self, pass_class: Type['BasePass'], results: Any) -> None:
        """Store analysis results"""
        self._analysis_results[pass_class] = results


class BasePass(ABC):
    """
    A tree-to-tree pass. `requires` names passes whose results must already
    be on the PassContext when this one runs.
    """
    requires: List[Type['BasePass']] = []

    @abstractmethod
    def run(self, tree: Node, pcx: PassContext) -> Node:
        raise NotImplementedError


class PassManager:
    """Runs passes in registration order against one PassContext."""

    def __init__(self):
        self.passes: List[Type[BasePass]] = []

    def register_pass(self, pass_class: Type[BasePass]) -> None:
        unmet = [dep.__name__ for dep in pass_class.requires if dep not in self.passes]
        if unmet:
            raise ImplementationError(
                f"{pass_class.__name__} must be registered after {', '.join(unmet)}"
            )
        self.passes.append(pass_class)

    def run_all(self, tree: Node, pcx: PassContext, dump_tree: bool = False) -> Node:
        """
        Run every pass on `tree`, each on the previous one's output.

        With dump_tree, the tree after each pass is logged as an S-expression.
        """
        for pass_class in self.passes:
            started = time.perf_counter()
            tree = pass_class().run(tree, pcx)
            logger.debug(f"{pass_class.__name__} finished in "
                         f"{(time.perf_counter() - started) * 1000:.2f} ms")
            if dump_tree:
                logger.debug(f"After {pass_class.__name__}:\n{serialize_tree(tree)}")
        return tree
