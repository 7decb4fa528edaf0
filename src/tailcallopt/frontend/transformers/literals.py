"""
Literal Parser
Handles decoding of number and string literal tokens
"""

import re
from typing import Dict

from ...shared.nodes import Literal
from ...shared.source_location import SourceLocation

_SIMPLE_ESCAPES: Dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}

_ESCAPE_RE = re.compile(r"\\(x[0-9a-fA-F]{2}|u[0-9a-fA-F]{4}|.)", re.DOTALL)


class LiteralParser:
    """Dedicated parser for literal values"""

    @staticmethod
    def parse_number(text: str, location: SourceLocation) -> Literal:
        """Numbers are always floats, as in JavaScript."""
        if text[:2].lower() == "0x":
            return Literal(float(int(text[2:], 16)), location=location)
        return Literal(float(text), location=location)

    @staticmethod
    def parse_string(quoted: str, location: SourceLocation) -> Literal:
        return Literal(LiteralParser.unescape(quoted[1:-1]), location=location)

    @staticmethod
    def unescape(body: str) -> str:
        def replace(match: re.Match) -> str:
            escape = match.group(1)
            if escape[0] in "xu" and len(escape) > 1:
                return chr(int(escape[1:], 16))
            return _SIMPLE_ESCAPES.get(escape, escape)

        return _ESCAPE_RE.sub(replace, body)
