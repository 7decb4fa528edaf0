"""
Tests for the reference interpreter used to compare programs before and
after the rewrite.
"""

import math

import pytest

from tailcallopt.runtime import (
    Environment, Interpreter, JSFunction, JSReferenceError, JSRuntimeError, JSTypeError,
    StackOverflowError, UNDEFINED, run_source,
)
from tailcallopt.runtime.values import (
    loose_equals, strict_equals, to_boolean, to_int32, to_number, to_string, type_of,
)
from tests.test_utils import parse


def evaluate(interpreter: Interpreter, source: str):
    return interpreter.run(parse(source))


class TestEnvironment:
    def test_lookup_walks_parents(self):
        outer = Environment()
        outer.declare("a", 1.0)
        inner = Environment(outer)
        assert inner.lookup("a") == 1.0
        assert inner.resolve("a") is outer
        assert not inner.declares("a")

    def test_lookup_unbound_raises_key_error(self):
        with pytest.raises(KeyError):
            Environment().lookup("missing")

    def test_assign_updates_nearest_binding(self):
        outer = Environment()
        outer.declare("a", 1.0)
        inner = Environment(outer)
        assert inner.assign("a", 2.0)
        assert outer.lookup("a") == 2.0
        assert not inner.assign("b", 3.0)

    def test_root_and_names(self):
        root = Environment()
        child = Environment(Environment(root))
        assert child.root() is root
        child.declare("x", 1.0)
        assert list(child.names()) == ["x"]


class TestConversions:
    @pytest.mark.parametrize("value,expected", [
        (UNDEFINED, False), (None, False), (0.0, False), (math.nan, False), ("", False),
        (1.0, True), ("0", True), ([], True),
    ])
    def test_to_boolean(self, value, expected):
        assert to_boolean(value) is expected

    @pytest.mark.parametrize("value,expected", [
        (None, 0.0), (True, 1.0), ("  12 ", 12.0), ("", 0.0), ("0x10", 16.0),
        ("-Infinity", -math.inf), ([], 0.0), ([7.0], 7.0),
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [UNDEFINED, "abc", "inf", "nan", [1.0, 2.0]])
    def test_to_number_nan(self, value):
        assert math.isnan(to_number(value))

    @pytest.mark.parametrize("value,expected", [
        (UNDEFINED, "undefined"), (None, "null"), (True, "true"), (3.0, "3"), (0.25, "0.25"),
        ([1.0, UNDEFINED, "a"], "1,,a"), (math.inf, "Infinity"),
    ])
    def test_to_string(self, value, expected):
        assert to_string(value) == expected

    def test_to_int32_wraps(self):
        assert to_int32(2.0 ** 32 + 5) == 5
        assert to_int32(2.0 ** 31) == -(2 ** 31)
        assert to_int32(math.nan) == 0

    @pytest.mark.parametrize("value,expected", [
        (UNDEFINED, "undefined"), (None, "object"), (True, "boolean"), (1.0, "number"),
        ("s", "string"), ([], "object"),
    ])
    def test_type_of(self, value, expected):
        assert type_of(value) == expected

    def test_equality(self):
        assert strict_equals(1.0, 1.0)
        assert not strict_equals(math.nan, math.nan)
        assert not strict_equals("1", 1.0)
        assert loose_equals("1", 1.0)
        assert loose_equals(None, UNDEFINED)
        assert not loose_equals(None, 0.0)
        assert loose_equals(True, 1.0)
        items = []
        assert strict_equals(items, items)
        assert not strict_equals(items, [])


class TestExpressions:
    @pytest.mark.parametrize("source,expected", [
        ("1 + 2 * 3;", 7.0),
        ("7 % 3;", 1.0),
        ("-7 % 3;", -1.0),
        ("'a' + 1;", "a1"),
        ("1 + '2';", "12"),
        ("[1, 2] + '';", "1,2"),
        ("5 / 2;", 2.5),
        ("1 / 0;", math.inf),
        ("-1 / 0;", -math.inf),
        ("1 << 3;", 8.0),
        ("-8 >> 1;", -4.0),
        ("-1 >>> 28;", 15.0),
        ("6 & 3;", 2.0),
        ("6 | 3;", 7.0),
        ("6 ^ 3;", 5.0),
        ("~0;", -1.0),
        ("'b' > 'a';", True),
        ("2 < '10';", True),
        ("1 == '1';", True),
        ("1 === '1';", False),
        ("null == undefined;", True),
        ("!0;", True),
        ("typeof 'x';", "string"),
        ("typeof notDeclared;", "undefined"),
        ("typeof Math.floor;", "function"),
        ("void 0;", UNDEFINED),
        ("0 || 'fallback';", "fallback"),
        ("1 && 2;", 2.0),
        ("null && f();", None),
        ("true ? 'y' : 'n';", "y"),
        ("(1, 2, 3);", 3.0),
        ("+'4';", 4.0),
    ])
    def test_value(self, interpreter, source, expected):
        assert evaluate(interpreter, source) == expected

    def test_nan_results(self, interpreter):
        assert math.isnan(evaluate(interpreter, "0 / 0;"))
        assert math.isnan(evaluate(interpreter, "undefined + 1;"))
        assert math.isnan(evaluate(interpreter, "5 % 0;"))

    def test_update_and_compound_assignment(self, interpreter):
        evaluate(interpreter, "var i = 1; var a = i++; var b = ++i; i += 10; i *= 2;")
        env = interpreter.global_env
        assert env.lookup("a") == 1.0
        assert env.lookup("b") == 3.0
        assert env.lookup("i") == 26.0

    def test_logical_short_circuit(self, interpreter):
        evaluate(interpreter, "var calls = 0; function f() { calls++; return true; } false && f(); true || f();")
        assert interpreter.global_env.lookup("calls") == 0.0


class TestArraysAndStrings:
    @pytest.mark.parametrize("source,expected", [
        ("[1, 2, 3].length;", 3.0),
        ("[1, 2, 3][1];", 2.0),
        ("[1, 2, 3][5];", UNDEFINED),
        ("[1, 2, 3].slice(1);", [2.0, 3.0]),
        ("[1, 2, 3].slice(-1);", [3.0]),
        ("[1, 2, 3].slice(0, 2);", [1.0, 2.0]),
        ("[1, 2].concat([3], 4);", [1.0, 2.0, 3.0, 4.0]),
        ("[1, 2, 3].indexOf(2);", 1.0),
        ("[1, 2, 3].indexOf('2');", -1.0),
        ("[1, null, 3].join('-');", "1--3"),
        ("[1, 2].join();", "1,2"),
        ("'hello'.length;", 5.0),
        ("'hello'[1];", "e"),
        ("'hello'.charAt(4);", "o"),
        ("'hello'.charAt(9);", ""),
        ("'hello'.slice(1, 3);", "el"),
        ("'hello'.indexOf('l');", 2.0),
    ])
    def test_value(self, interpreter, source, expected):
        assert evaluate(interpreter, source) == expected

    def test_push_and_pop_mutate(self, interpreter):
        evaluate(interpreter, "var xs = [1]; var n = xs.push(2, 3); var last = xs.pop();")
        env = interpreter.global_env
        assert env.lookup("xs") == [1.0, 2.0]
        assert env.lookup("n") == 3.0
        assert env.lookup("last") == 3.0

    def test_index_assignment_grows_array(self, interpreter):
        evaluate(interpreter, "var xs = []; xs[2] = 'c';")
        assert interpreter.global_env.lookup("xs") == [UNDEFINED, UNDEFINED, "c"]

    def test_length_assignment_truncates(self, interpreter):
        evaluate(interpreter, "var xs = [1, 2, 3]; xs.length = 1;")
        assert interpreter.global_env.lookup("xs") == [1.0]

    def test_property_of_undefined_is_type_error(self, interpreter):
        with pytest.raises(JSTypeError) as exc_info:
            evaluate(interpreter, "var u; u.length;")
        assert "cannot read property 'length' of undefined" in str(exc_info.value)
        assert exc_info.value.location is not None


class TestGlobals:
    @pytest.mark.parametrize("source,expected", [
        ("Math.floor(2.7);", 2.0),
        ("Math.floor(-2.5);", -3.0),
        ("Math.abs(-4);", 4.0),
        ("Math.max(1, 5, 3);", 5.0),
        ("Math.min();", math.inf),
        ("isNaN('abc');", True),
        ("String(12);", "12"),
        ("Number('3.5');", 3.5),
        ("Boolean('');", False),
        ("Infinity;", math.inf),
    ])
    def test_value(self, interpreter, source, expected):
        assert evaluate(interpreter, source) == expected

    def test_math_pi(self, interpreter):
        assert evaluate(interpreter, "Math.PI;") == math.pi


class TestStatements:
    def test_loops(self, interpreter):
        evaluate(interpreter, """
        var total = 0;
        for (var i = 0; i < 5; i++) { if (i === 3) continue; total += i; }
        var j = 0;
        while (true) { j++; if (j > 4) break; }
        var k = 10;
        do { k--; } while (k > 20);
        """)
        env = interpreter.global_env
        assert env.lookup("total") == 7.0
        assert env.lookup("j") == 5.0
        assert env.lookup("k") == 9.0

    def test_for_in_and_for_of(self, interpreter):
        evaluate(interpreter, """
        var keys = '';
        for (var k in ['a', 'b']) keys += k;
        var values = '';
        for (var v of ['a', 'b']) values += v;
        """)
        assert interpreter.global_env.lookup("keys") == "01"
        assert interpreter.global_env.lookup("values") == "ab"

    def test_for_of_non_iterable(self, interpreter):
        with pytest.raises(JSTypeError, match="is not iterable"):
            evaluate(interpreter, "for (var x of 5) ;")

    def test_labeled_continue_and_break(self, interpreter):
        evaluate(interpreter, """
        var hits = 0;
        outer: for (var i = 0; i < 3; i++) {
            for (var j = 0; j < 3; j++) {
                if (j === 1) continue outer;
                if (i === 2) break outer;
                hits++;
            }
        }
        """)
        assert interpreter.global_env.lookup("hits") == 2.0

    def test_labeled_block_break(self, interpreter):
        evaluate(interpreter, "var x = 0; done: { x = 1; break done; }")
        assert interpreter.global_env.lookup("x") == 1.0

    def test_last_expression_value(self, interpreter):
        assert evaluate(interpreter, "var a = 2; a * 3; var b;") == 6.0
        assert Interpreter().run(parse("var a;")) is UNDEFINED


class TestFunctions:
    def test_call_from_python(self, interpreter):
        evaluate(interpreter, "function add(a, b) { return a + b; }")
        add = interpreter.get_function("add")
        assert isinstance(add, JSFunction)
        assert add(2.0, 3.0) == 5.0
        assert add.name == "add"
        assert add.arity == 2

    def test_missing_arguments_are_undefined(self, interpreter):
        evaluate(interpreter, "function f(a, b) { return typeof b; }")
        assert interpreter.get_function("f")(1.0) == "undefined"

    def test_no_return_gives_undefined(self, interpreter):
        evaluate(interpreter, "function f() { }")
        assert interpreter.get_function("f")() is UNDEFINED

    def test_function_hoisting(self, interpreter):
        assert evaluate(interpreter, "f(); function f() { return 'hoisted'; }") == "hoisted"

    def test_var_hoisting_inside_function(self, interpreter):
        evaluate(interpreter, "function f() { var before = typeof x; var x = 1; return before; }")
        assert interpreter.get_function("f")() == "undefined"

    def test_closures(self, interpreter):
        evaluate(interpreter, """
        function counter() { var n = 0; return function () { n++; return n; }; }
        var next = counter();
        next(); next();
        """)
        assert evaluate(interpreter, "next();") == 3.0

    def test_named_function_expression_sees_own_name(self, interpreter):
        evaluate(interpreter, "var f = function fac(n) { return n ? n * fac(n - 1) : 1; };")
        assert interpreter.get_function("f")(5.0) == 120.0
        with pytest.raises(JSReferenceError):
            evaluate(interpreter, "fac;")

    def test_function_source(self, interpreter):
        evaluate(interpreter, "function f(a) { return a; } var g = function (b) { return b; };")
        assert interpreter.get_function("f").source == "function f(a) {\n    return a;\n}"
        assert interpreter.get_function("g").source == "(function(b) {\n    return b;\n});"

    def test_calling_non_function(self, interpreter):
        with pytest.raises(JSTypeError, match="x is not a function"):
            evaluate(interpreter, "var x = 1; x();")

    def test_get_function_errors(self, interpreter):
        evaluate(interpreter, "var notFn = 1;")
        with pytest.raises(JSReferenceError):
            interpreter.get_function("missing")
        with pytest.raises(JSTypeError):
            interpreter.get_function("notFn")


class TestScoping:
    def test_undeclared_read_is_reference_error(self, interpreter):
        with pytest.raises(JSReferenceError) as exc_info:
            evaluate(interpreter, "missing + 1;")
        assert str(exc_info.value).startswith("ReferenceError: missing is not defined")

    def test_sloppy_assignment_creates_global(self, interpreter):
        evaluate(interpreter, "function f() { leaked = 1; } f();")
        assert interpreter.global_env.lookup("leaked") == 1.0

    def test_strict_program_rejects_undeclared_assignment(self, interpreter):
        with pytest.raises(JSReferenceError, match="leaked is not defined"):
            evaluate(interpreter, '"use strict"; function f() { leaked = 1; } f();')

    def test_strict_function_rejects_undeclared_assignment(self, interpreter):
        evaluate(interpreter, 'function f() { "use strict"; leaked = 1; } function g() { other = 1; }')
        interpreter.get_function("g")()
        with pytest.raises(JSReferenceError):
            interpreter.get_function("f")()

    def test_var_is_function_scoped(self, interpreter):
        evaluate(interpreter, "function f() { if (true) { var inner = 'x'; } return inner; }")
        assert interpreter.get_function("f")() == "x"


class TestCallDepth:
    SOURCE = "function down(n) { return n ? down(n - 1) : 'bottom'; }"

    def test_within_limit(self):
        interpreter = Interpreter(max_call_depth=50)
        interpreter.run(parse(self.SOURCE))
        assert interpreter.get_function("down")(49.0) == "bottom"

    def test_exceeding_limit_is_range_error(self):
        interpreter = Interpreter(max_call_depth=50)
        interpreter.run(parse(self.SOURCE))
        with pytest.raises(StackOverflowError) as exc_info:
            interpreter.get_function("down")(50.0)
        assert str(exc_info.value) == "RangeError: Maximum call stack size exceeded"
        assert isinstance(exc_info.value, JSRuntimeError)

    def test_depth_resets_after_overflow(self):
        interpreter = Interpreter(max_call_depth=50)
        interpreter.run(parse(self.SOURCE))
        with pytest.raises(StackOverflowError):
            interpreter.get_function("down")(100.0)
        assert interpreter.get_function("down")(10.0) == "bottom"

    def test_recursion_limit_restored(self):
        import sys
        before = sys.getrecursionlimit()
        interpreter = Interpreter(max_call_depth=500)
        interpreter.run(parse(self.SOURCE))
        interpreter.get_function("down")(400.0)
        assert sys.getrecursionlimit() == before

    def test_run_source(self):
        interpreter = run_source(self.SOURCE, max_call_depth=10)
        assert interpreter.max_call_depth == 10
        with pytest.raises(StackOverflowError):
            interpreter.get_function("down")(20.0)
