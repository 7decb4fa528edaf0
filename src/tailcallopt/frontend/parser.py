"""
Parser

Source text to syntax tree: a Lark LALR parser over `grammar.lark`, followed by
JSTransformer. Lark's own exceptions never escape; they become ParseError
with a SourceLocation.
"""

import logging
from pathlib import Path
from typing import Optional

from lark import Lark
from lark.exceptions import (
    UnexpectedToken, UnexpectedCharacters, UnexpectedEOF, VisitError, ParseError as LarkParseError,
)

from ..shared.errors import SourceError, TailCallOptError, PARSE_ERROR_CODE
from ..shared.nodes import Program
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, DEFAULT_SOURCE_FILE
from .transformers.base import JSTransformer

logger = logging.getLogger("tailcallopt.frontend.parser")

# Longer "expected" lists are left out of the message
_MAX_EXPECTED_SHOWN = 8


class ParseError(SourceError):
    """Parse error with source location"""
    error_code = PARSE_ERROR_CODE

    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None,
                 source_code: Optional[str] = None, help: Optional[str] = None):
        super().__init__(message, location, source_code=source_code, help=help)
        self.source_file = source_file


class Parser:
    """
    - takes source code, returns a Program
    - preserves source locations
    - uses Lark's on-disk grammar cache
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            str(grammar_path),
            start='program',
            parser='lalr',              # Required for caching
            cache=cache_file,
            propagate_positions=True,   # Locations for diagnostics
            maybe_placeholders=True,    # Absent optionals arrive as None
        )
        self.transformer = JSTransformer()

    def parse(self, source: str, source_file: str = DEFAULT_SOURCE_FILE) -> Program:
        """Parse source code to a Program."""
        self.transformer.current_file = source_file
        self.transformer.current_source = source
        try:
            tree = self.parser.parse(source)
        except UnexpectedCharacters as e:
            raise ParseError(
                f"unexpected character {e.char!r}",
                source_file,
                self._location(source_file, e.line, e.column),
                source_code=source,
            ) from e
        except UnexpectedEOF as e:
            raise ParseError("unexpected end of input", source_file, source_code=source) from e
        except UnexpectedToken as e:
            raise ParseError(
                self._unexpected_token_message(e),
                source_file,
                self._location(source_file, e.line, e.column),
                source_code=source,
            ) from e
        except LarkParseError as e:
            raise ParseError(f"Parse error: {e}", source_file, source_code=source) from e

        try:
            program = self.transformer.transform(tree)
        except VisitError as e:
            if isinstance(e.orig_exc, TailCallOptError):
                raise e.orig_exc from None
            raise
        logger.debug(f"Parsed {source_file}: {len(program.body)} top-level statement(s)")
        return program

    @staticmethod
    def _location(source_file: str, line: object, column: object) -> Optional[SourceLocation]:
        # Lark reports "?" when the position is unknown
        if not isinstance(line, int) or not isinstance(column, int) or line < 1:
            return None
        return SourceLocation(file=source_file, line=line, column=column)

    @staticmethod
    def _unexpected_token_message(e: UnexpectedToken) -> str:
        token = e.token
        if token.type == "$END":
            found = "end of input"
        else:
            found = repr(str(token))
        expected = sorted(e.expected or ())
        if expected and len(expected) <= _MAX_EXPECTED_SHOWN:
            return f"unexpected {found}, expected one of: {', '.join(expected)}"
        return f"unexpected {found}"
