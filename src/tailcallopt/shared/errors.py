"""
Error Reporting

Diagnostics are rendered rustc-style (header, location arrow, source snippet
with a caret underline, help/note annotations).

Exception hierarchy:
- TailCallOptError: base for everything the optimizer raises on purpose
  - SourceError: the user's source text is at fault (parse errors,
    reserved identifiers, bad tail-call arity)
  - SchemaError: the rewritten tree is not well formed (a rewrite bug)
- ImplementationError: internal invariant violated
"""

import os
import re
from dataclasses import dataclass
from typing import Optional, List, Dict
from .source_location import SourceLocation


PARSE_ERROR_CODE = "E0001"
RESERVED_NAME_CODE = "E0101"
ARITY_ERROR_CODE = "E0102"
SCHEMA_ERROR_CODE = "E0999"

_ANSI = {"bold": "\033[1m", "red": "\033[31m", "blue": "\033[34m", "cyan": "\033[36m"}
_ANSI_RESET = "\033[0m"

# An identifier, a number, or else a single character
_TOKEN_RE = re.compile(r"[A-Za-z0-9_$.]+|\S")


def color_enabled() -> bool:
    """NO_COLOR (any value) or TAILCALLOPT_COLOR=never turns ANSI styling off."""
    if os.environ.get("NO_COLOR"):
        return False
    return os.environ.get("TAILCALLOPT_COLOR", "").lower() not in ("0", "false", "no", "never")


@dataclass
class Error:
    """One diagnostic: message, primary location, optional annotations."""
    message: str
    location: Optional[SourceLocation]
    code: Optional[str] = None
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None


class DiagnosticRenderer:
    """
    Renders one Error as text. Output (plain)::

        error[E0102]: tail call to `fact` passes 3 arguments, but `fact` declares 2 parameters
         --> fact.js:1:32
          |
        1 | function fact(x, acc) { return fact(x - 1, acc, 0); }
          |                                ^^^^^^^^^^^^^^^^^^^ self-call in tail position
          |
          = help: remove the extra arguments

    Without the file's text only the header and the `-->` line are produced.
    """

    def __init__(self, source_files: Dict[str, str], color: bool):
        self.source_files = source_files
        self.color = color

    def paint(self, text: str, *styles: str) -> str:
        if not self.color or not styles:
            return text
        return "".join(_ANSI[s] for s in styles) + text + _ANSI_RESET

    def render(self, error: Error) -> str:
        code = f"[{error.code}]" if error.code else ""
        lines = [self.paint(f"error{code}", "bold", "red") + self.paint(f": {error.message}", "bold")]

        loc = error.location
        source = self.source_files.get(loc.file) if loc is not None else None
        if source is None:
            where = str(loc) if loc is not None else "<unknown location>"
            lines.append(self.paint(" --> ", "bold", "blue") + where)
            lines.extend(self.annotations(error, 1))
            return "\n".join(lines)

        width = len(str(loc.line))
        gutter = " " * (width + 1)
        text_lines = source.split("\n")
        line_text = text_lines[loc.line - 1] if 0 < loc.line <= len(text_lines) else ""

        lines.append(self.paint(" " * width + "--> ", "bold", "blue") + str(loc))
        lines.append(self.paint(gutter + "|", "bold", "blue"))
        lines.append(self.paint(f"{loc.line} | ", "bold", "blue") + line_text)
        underline = " " * (max(loc.column, 1) - 1) + "^" * self.span_width(loc, line_text)
        if error.label:
            underline += f" {error.label}"
        lines.append(self.paint(gutter + "| ", "bold", "blue") + self.paint(underline, "bold", "red"))
        lines.extend(self.annotations(error, width))
        return "\n".join(lines)

    @staticmethod
    def span_width(loc: SourceLocation, line_text: str) -> int:
        start = max(loc.column, 1)
        if loc.single_line and loc.end_column > start:
            return loc.end_column - start
        token = _TOKEN_RE.match(line_text, start - 1)
        return len(token.group()) if token else 1

    def annotations(self, error: Error, width: int) -> List[str]:
        pairs = [(kind, text) for kind, text in (("help", error.help), ("note", error.note)) if text]
        if not pairs:
            return []
        pad = " " * (width + 1)
        rendered = [self.paint(pad + "|", "bold", "blue")]
        for kind, text in pairs:
            rendered.append(self.paint(pad + "= ", "bold", "cyan") + self.paint(f"{kind}: ", "bold") + text)
        return rendered


def format_diagnostic(error: Error, source_files: Dict[str, str], color: Optional[bool] = None) -> str:
    use_color = color_enabled() if color is None else color
    return DiagnosticRenderer(source_files, use_color).render(error)


class ErrorReporter:
    """Collects diagnostics and renders them against the known source files."""

    def __init__(self, source_files: Dict[str, str]):
        self.source_files = source_files
        self.errors: List[Error] = []

    def report_exception(self, exc: "TailCallOptError") -> None:
        self.errors.append(exc.to_error())

    def has_errors(self) -> bool:
        return bool(self.errors)

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        return format_diagnostic(error, self.source_files, color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        renderer = DiagnosticRenderer(self.source_files, color_enabled() if color is None else color)
        count = len(self.errors)
        plural = "" if count == 1 else "s"
        summary = (renderer.paint("error", "bold", "red")
                   + renderer.paint(f": aborting due to {count} previous error{plural}", "bold"))
        return "\n\n".join([renderer.render(e) for e in self.errors] + [summary])


# ============================================================================
# Exception Classes
# ============================================================================

class TailCallOptError(Exception):
    """Base exception for all optimizer errors"""
    error_code = "E0000"

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def to_error(self) -> Error:
        return Error(message=self.message, location=self.location, code=self.error_code)

    def __str__(self):
        if self.location:
            return f"error[{self.error_code}]: {self.message}\n --> {self.location}"
        return self.message


class SourceError(TailCallOptError):
    """
    Error in the user's source program, rendered with a source snippet when
    the source text is known.
    """
    def __init__(self,
                 message: str,
                 location: Optional[SourceLocation] = None,
                 error_code: Optional[str] = None,
                 source_code: Optional[str] = None,
                 help: Optional[str] = None,
                 note: Optional[str] = None,
                 label: Optional[str] = None):
        super().__init__(message, location)
        if error_code is not None:
            self.error_code = error_code
        self.source_code = source_code
        self.help_text = help
        self.note_text = note
        self.label_text = label

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            help=self.help_text,
            note=self.note_text,
            label=self.label_text,
        )

    def __str__(self):
        source_files: Dict[str, str] = {}
        if self.source_code and self.location:
            source_files[self.location.file] = self.source_code
        return format_diagnostic(self.to_error(), source_files)


class ReservedNameError(SourceError):
    """A declaration uses an identifier reserved for generated code."""
    error_code = RESERVED_NAME_CODE


class TailCallArityError(SourceError):
    """A tail self-call passes more arguments than the function declares."""
    error_code = ARITY_ERROR_CODE


class SchemaError(TailCallOptError):
    """
    The rewritten tree is not a well-formed instance of the grammar.

    `path` names the first invalid field, e.g. ``body[0].body.body[2].init``.
    Always indicates a bug in the rewrite, never a user error.
    """
    error_code = SCHEMA_ERROR_CODE

    def __init__(self, message: str, path: str = "", location: Optional[SourceLocation] = None):
        super().__init__(f"{path}: {message}" if path else message, location)
        self.path = path
        self.reason = message

    def to_error(self) -> Error:
        return Error(
            message=self.message,
            location=self.location,
            code=self.error_code,
            note="this is a bug in the tail call rewrite, not in the input program",
        )


class ImplementationError(Exception):
    """
    Error in the optimizer's own Python code (missing handler, invalid
    internal state). Never used for problems in the user's program.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
