"""
Back end: syntax tree to JavaScript source text.
"""

from .codegen import CodeGenerator, generate

__all__ = ['CodeGenerator', 'generate']
