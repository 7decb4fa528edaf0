"""
Runtime Values

JavaScript values as Python objects:

- numbers are floats, strings are str, booleans are bool, null is None
- arrays are Python lists
- undefined is the UNDEFINED singleton
- functions are JSFunction (closures over an Environment) or NativeFunction
- plain objects (only Math, here) are JSObject

Coercion helpers follow the ECMAScript abstract operations for the subset of
values above.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..shared.nodes import FunctionNode, FunctionDeclaration, ExpressionStatement

if TYPE_CHECKING:
    from .environment import Environment
    from .interpreter import Interpreter


class _Undefined:
    """The `undefined` value"""
    _instance: Optional["_Undefined"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "undefined"

    def __bool__(self):
        return False


UNDEFINED = _Undefined()


@dataclass(eq=False)
class JSFunction:
    """
    User-defined function: its syntax node plus the environment it closes over.
    Calling it from Python runs it through the owning interpreter.
    """
    node: FunctionNode
    closure: "Environment"
    interpreter: "Interpreter" = field(repr=False)
    strict: bool = False

    @property
    def name(self) -> str:
        return self.node.name or ""

    @property
    def arity(self) -> int:
        return len(self.node.params)

    @property
    def source(self) -> str:
        """The function's source text, as `Function.prototype.toString` would give it."""
        from ..backend.codegen import generate
        node = self.node
        if node.id is not None:
            return generate(FunctionDeclaration(node.id, node.params, node.body))
        return generate(ExpressionStatement(node))

    def __call__(self, *args: Any) -> Any:
        return self.interpreter.call(self, list(args))

    def __repr__(self):
        return f"<JSFunction {self.name or '(anonymous)'}>"


@dataclass(eq=False)
class NativeFunction:
    """Built-in function implemented in Python"""
    name: str
    impl: Callable[..., Any]

    def __call__(self, *args: Any) -> Any:
        return self.impl(*args)

    def __repr__(self):
        return f"<NativeFunction {self.name}>"


@dataclass(eq=False)
class JSObject:
    """Plain object: string keys to values"""
    properties: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        return self.properties.get(key, UNDEFINED)

    def set(self, key: str, value: Any) -> None:
        self.properties[key] = value


def is_callable(value: Any) -> bool:
    return isinstance(value, (JSFunction, NativeFunction))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================
# TYPE CONVERSION
# ============================================

def to_boolean(value: Any) -> bool:
    if value is UNDEFINED or value is None:
        return False
    if isinstance(value, bool):
        return value
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def to_number(value: Any) -> float:
    if value is UNDEFINED:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        return _string_to_number(value)
    if isinstance(value, list):
        return to_number(to_string(value))
    return math.nan


def _string_to_number(text: str) -> float:
    text = text.strip()
    if text == "":
        return 0.0
    if text[:2].lower() == "0x":
        try:
            return float(int(text[2:], 16))
        except ValueError:
            return math.nan
    if text in ("Infinity", "+Infinity"):
        return math.inf
    if text == "-Infinity":
        return -math.inf
    # Python accepts spellings JavaScript does not
    if any(ch.isalpha() and ch not in "eE" for ch in text):
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def to_string(value: Any) -> str:
    from ..backend.codegen import format_number
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if is_number(value):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if v is UNDEFINED or v is None else to_string(v) for v in value)
    if isinstance(value, JSFunction):
        return value.source
    if isinstance(value, NativeFunction):
        return f"function {value.name}() {{ [native code] }}"
    return "[object Object]"


def to_int32(value: Any) -> int:
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    n = int(number) & 0xFFFFFFFF
    return n - 0x100000000 if n >= 0x80000000 else n


def to_uint32(value: Any) -> int:
    return to_int32(value) & 0xFFFFFFFF


def to_index(value: Any) -> Optional[int]:
    """Array index for `value`, or None when it is not a valid one."""
    if isinstance(value, str):
        if not value.isdigit():
            return None
        value = float(value)
    if not is_number(value) or math.isnan(value) or math.isinf(value):
        return None
    if value < 0 or not float(value).is_integer():
        return None
    return int(value)


def type_of(value: Any) -> str:
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if is_callable(value):
        return "function"
    return "object"


# ============================================
# EQUALITY
# ============================================

def strict_equals(a: Any, b: Any) -> bool:
    if is_number(a) and is_number(b):
        return a == b  # NaN != NaN falls out of float comparison
    if type_of(a) != type_of(b):
        return False
    if isinstance(a, (str, bool)):
        return a == b
    return a is b


def loose_equals(a: Any, b: Any) -> bool:
    nullish = (UNDEFINED, None)
    if a in nullish or b in nullish:
        return a in nullish and b in nullish
    if type_of(a) == type_of(b):
        return strict_equals(a, b)
    if isinstance(a, bool):
        return loose_equals(to_number(a), b)
    if isinstance(b, bool):
        return loose_equals(a, to_number(b))
    if is_number(a) and isinstance(b, str):
        return a == to_number(b)
    if isinstance(a, str) and is_number(b):
        return to_number(a) == b
    if isinstance(a, list) and not isinstance(b, list):
        return loose_equals(to_string(a), b)
    if isinstance(b, list) and not isinstance(a, list):
        return loose_equals(a, to_string(b))
    return False


def array_index_of(items: List[Any], target: Any) -> float:
    for i, item in enumerate(items):
        if strict_equals(item, target):
            return float(i)
    return -1.0
