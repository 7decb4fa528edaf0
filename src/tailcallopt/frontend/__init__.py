"""
Front end: source text to syntax tree.
"""

from .parser import Parser, ParseError

__all__ = ['Parser', 'ParseError']
