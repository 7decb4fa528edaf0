"""
Reference runtime for the supported JavaScript subset
"""

from .environment import Environment
from .errors import JSRuntimeError, JSReferenceError, JSTypeError, StackOverflowError
from .interpreter import Interpreter, run_source
from .values import UNDEFINED, JSFunction, NativeFunction, JSObject

__all__ = [
    "Environment",
    "Interpreter",
    "run_source",
    "UNDEFINED",
    "JSFunction",
    "NativeFunction",
    "JSObject",
    "JSRuntimeError",
    "JSReferenceError",
    "JSTypeError",
    "StackOverflowError",
]
