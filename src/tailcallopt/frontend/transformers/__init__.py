"""
Syntax Tree Transformers
========================

Specialized transformers for different node types.
"""

from .base import JSTransformer
from .literals import LiteralParser
from .expressions import ExpressionParser

__all__ = [
    'JSTransformer',
    'LiteralParser',
    'ExpressionParser',
]
