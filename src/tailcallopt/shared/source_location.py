"""
Source Location (Span)

Line/column span of a syntax node in the text it was parsed from.
Nodes built by the rewriter carry no location.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Where a node came from: 1-based line and column of its first character,
    lexer character offsets, and the line/column just past its end (0 when
    the lexer did not report one).
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    @property
    def single_line(self) -> bool:
        return self.end_line in (0, self.line)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
