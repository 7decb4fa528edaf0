"""
tailcallopt: self-recursive tail call elimination for JavaScript.

    from tailcallopt import tail_call_optimise
    print(tail_call_optimise(source_text))
"""

from .compiler.driver import TailCallOptimizer, OptimizationResult, tail_call_optimise
from .backend.codegen import generate
from .frontend.parser import Parser, ParseError
from .shared.errors import (
    TailCallOptError, SourceError, ReservedNameError, TailCallArityError, SchemaError,
    ImplementationError,
)

__version__ = "0.1.0"

__all__ = [
    "tail_call_optimise",
    "TailCallOptimizer",
    "OptimizationResult",
    "Parser",
    "generate",
    "TailCallOptError",
    "SourceError",
    "ParseError",
    "ReservedNameError",
    "TailCallArityError",
    "SchemaError",
    "ImplementationError",
]
