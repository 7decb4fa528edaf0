"""
Built-in globals and property access for arrays, strings and objects
"""

import math
from typing import Any, List

from .errors import JSTypeError
from .values import (
    UNDEFINED, NativeFunction, JSObject, to_number, to_string, to_index, array_index_of, to_boolean,
)


def _int_arg(args: List[Any], i: int, length: int, default: int) -> int:
    """Relative index argument (negative counts from the end), clamped to [0, length]."""
    if i >= len(args) or args[i] is UNDEFINED:
        return default
    number = to_number(args[i])
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return length if number > 0 else 0
    n = int(number)
    if n < 0:
        return max(length + n, 0)
    return min(n, length)


def _slice(sequence, args):
    start = _int_arg(args, 0, len(sequence), 0)
    end = _int_arg(args, 1, len(sequence), len(sequence))
    return sequence[start:end]


def _array_method(items: List[Any], name: str) -> Any:
    if name == "slice":
        return NativeFunction("slice", lambda *args: list(_slice(items, args)))
    if name == "push":
        def push(*args):
            items.extend(args)
            return float(len(items))
        return NativeFunction("push", push)
    if name == "pop":
        return NativeFunction("pop", lambda *args: items.pop() if items else UNDEFINED)
    if name == "concat":
        def concat(*args):
            out = list(items)
            for arg in args:
                if isinstance(arg, list):
                    out.extend(arg)
                else:
                    out.append(arg)
            return out
        return NativeFunction("concat", concat)
    if name == "indexOf":
        return NativeFunction("indexOf", lambda target=UNDEFINED, *rest: array_index_of(items, target))
    if name == "join":
        def join(separator=UNDEFINED, *rest):
            sep = "," if separator is UNDEFINED else to_string(separator)
            return sep.join("" if v is UNDEFINED or v is None else to_string(v) for v in items)
        return NativeFunction("join", join)
    return UNDEFINED


def _string_method(text: str, name: str) -> Any:
    if name == "charAt":
        def char_at(position=UNDEFINED, *rest):
            i = 0 if position is UNDEFINED else int(to_number(position))
            return text[i] if 0 <= i < len(text) else ""
        return NativeFunction("charAt", char_at)
    if name == "slice":
        return NativeFunction("slice", lambda *args: _slice(text, args))
    if name == "indexOf":
        return NativeFunction("indexOf", lambda target=UNDEFINED, *rest: float(text.find(to_string(target))))
    return UNDEFINED


def get_property(obj: Any, key: Any) -> Any:
    """`obj[key]`; raises JSTypeError on null or undefined."""
    if obj is UNDEFINED or obj is None:
        raise JSTypeError(f"cannot read property {to_string(key)!r} of {to_string(obj)}")
    if isinstance(obj, (list, str)):
        index = to_index(key)
        if index is not None:
            return obj[index] if index < len(obj) else UNDEFINED
        name = to_string(key)
        if name == "length":
            return float(len(obj))
        if isinstance(obj, list):
            return _array_method(obj, name)
        return _string_method(obj, name)
    if isinstance(obj, JSObject):
        return obj.get(to_string(key))
    if isinstance(obj, NativeFunction) and to_string(key) == "name":
        return obj.name
    return UNDEFINED


def set_property(obj: Any, key: Any, value: Any) -> None:
    """`obj[key] = value`"""
    if obj is UNDEFINED or obj is None:
        raise JSTypeError(f"cannot set property {to_string(key)!r} of {to_string(obj)}")
    if isinstance(obj, list):
        index = to_index(key)
        if index is not None:
            if index >= len(obj):
                obj.extend([UNDEFINED] * (index + 1 - len(obj)))
            obj[index] = value
            return
        if to_string(key) == "length":
            length = to_index(value)
            if length is None:
                raise JSTypeError("invalid array length")
            del obj[length:]
            obj.extend([UNDEFINED] * (length - len(obj)))
        return
    if isinstance(obj, JSObject):
        obj.set(to_string(key), value)


def property_keys(obj: Any) -> List[str]:
    """Enumerable keys for for-in"""
    if isinstance(obj, (list, str)):
        return [str(i) for i in range(len(obj))]
    if isinstance(obj, JSObject):
        return list(obj.properties)
    return []


def iterate_values(obj: Any) -> List[Any]:
    """Values for for-of; only arrays and strings are iterable."""
    if isinstance(obj, (list, str)):
        return list(obj)
    raise JSTypeError(f"{to_string(obj)} is not iterable")


# ============================================
# GLOBALS
# ============================================

def _math_max(*args):
    numbers = [to_number(a) for a in args]
    if any(math.isnan(n) for n in numbers):
        return math.nan
    return max(numbers, default=-math.inf)


def _math_min(*args):
    numbers = [to_number(a) for a in args]
    if any(math.isnan(n) for n in numbers):
        return math.nan
    return min(numbers, default=math.inf)


def _math_floor(value=UNDEFINED, *rest):
    number = to_number(value)
    if math.isnan(number) or math.isinf(number):
        return number
    return float(math.floor(number))


def _math_abs(value=UNDEFINED, *rest):
    return abs(to_number(value))


def make_math() -> JSObject:
    return JSObject({
        "floor": NativeFunction("floor", _math_floor),
        "abs": NativeFunction("abs", _math_abs),
        "max": NativeFunction("max", _math_max),
        "min": NativeFunction("min", _math_min),
        "PI": math.pi,
    })


def make_globals() -> dict:
    """Bindings of the global environment"""
    return {
        "undefined": UNDEFINED,
        "NaN": math.nan,
        "Infinity": math.inf,
        "Math": make_math(),
        "isNaN": NativeFunction("isNaN", lambda value=UNDEFINED, *rest: math.isnan(to_number(value))),
        "String": NativeFunction("String", lambda value="", *rest: to_string(value)),
        "Number": NativeFunction("Number", lambda value=0.0, *rest: to_number(value)),
        "Boolean": NativeFunction("Boolean", lambda value=UNDEFINED, *rest: to_boolean(value)),
    }
