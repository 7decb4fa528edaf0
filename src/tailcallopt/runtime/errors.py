"""
Runtime Errors

Raised by the reference interpreter. These model JavaScript's thrown errors
(ReferenceError, TypeError, RangeError) and are distinct from the optimizer's
own TailCallOptError hierarchy.
"""

from typing import Optional

from ..shared.source_location import SourceLocation


class JSRuntimeError(Exception):
    """Base for errors raised while evaluating a program"""
    js_name = "Error"

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        super().__init__(message)
        self.message = message
        self.location = location

    def __str__(self):
        if self.location:
            return f"{self.js_name}: {self.message} (at {self.location})"
        return f"{self.js_name}: {self.message}"


class JSReferenceError(JSRuntimeError):
    """Read of an undeclared name, or strict-mode write to one"""
    js_name = "ReferenceError"


class JSTypeError(JSRuntimeError):
    """Call of a non-function, property access on null/undefined"""
    js_name = "TypeError"


class StackOverflowError(JSRuntimeError):
    """Call depth exceeded (JavaScript's RangeError: Maximum call stack size exceeded)"""
    js_name = "RangeError"
