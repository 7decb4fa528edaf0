"""
Tests for node builders, subset matching and declaration scanning.
"""

from tailcallopt.shared.nodes import (
    CallExpression, ExpressionStatement, Identifier, Literal, NodeType, VariableDeclaration,
    VariableDeclarator,
)
from tailcallopt.shared.tree_utils import (
    assignment, declare_all, declared_names, is_directive, is_undefined_reset, match_node,
    self_call_pattern, undefined, zip_assign, zip_declare,
)
from tailcallopt.backend.codegen import generate
from tests.test_utils import parse, parse_function


class TestBuilders:
    def test_assignment_defaults_to_undefined(self):
        assert generate(assignment("a")) == "a = undefined"
        assert generate(assignment("a", Literal(1.0))) == "a = 1"

    def test_zip_assign_pairs_by_position(self):
        statements = zip_assign(["a", "b", "c"], [Literal(1.0), Identifier("x")])
        assert [generate(s) for s in statements] == ["a = 1;", "b = x;", "c = undefined;"]

    def test_zip_assign_without_values(self):
        assert [generate(s) for s in zip_assign(["a"])] == ["a = undefined;"]
        assert zip_assign([]) == []

    def test_zip_declare_one_statement_per_name(self):
        statements = zip_declare(["t1", "t2"])
        assert [generate(s) for s in statements] == ["var t1;", "var t2;"]
        assert all(len(s.declarations) == 1 for s in statements)

    def test_zip_declare_with_values(self):
        [statement] = zip_declare(["t"], [Literal(0.0)])
        assert generate(statement) == "var t = 0;"

    def test_declare_all_combines(self):
        [statement] = declare_all(["a", "b", "c"])
        assert generate(statement) == "var a, b, c;"
        assert declare_all([]) == []


class TestMatchNode:
    def test_type_and_nested_fields(self):
        call = parse("fact(x - 1);").body[0].expression
        assert match_node(call, self_call_pattern("fact"))
        assert not match_node(call, self_call_pattern("other"))

    def test_extra_fields_in_value_are_ignored(self):
        node = parse("f(1, 2);").body[0].expression
        assert match_node(node, {"type": NodeType.CALL_EXPRESSION})

    def test_unknown_field_fails(self):
        assert not match_node(Identifier("a"), {"nope": 1})

    def test_mapping_pattern_against_non_node(self):
        assert not match_node("fact", {"type": NodeType.IDENTIFIER})
        assert not match_node(None, {"type": NodeType.IDENTIFIER})

    def test_node_pattern_compares_structurally(self):
        assert match_node(parse("x;").body[0].expression, Identifier("x"))

    def test_plain_values(self):
        assert match_node(1.0, 1.0)
        assert not match_node("a", "b")

    def test_computed_callee_is_not_self_call(self):
        call = parse("obj.fact(1);").body[0].expression
        assert isinstance(call, CallExpression)
        assert not match_node(call, self_call_pattern("fact"))


class TestStatementShapes:
    def test_is_directive(self):
        assert is_directive(parse('"use strict";').body[0])
        assert is_directive(parse("'use strict';").body[0])
        assert not is_directive(parse('"use asm";').body[0])
        assert not is_directive(parse("x;").body[0])

    def test_is_undefined_reset(self):
        assert is_undefined_reset(parse("a = undefined;").body[0], ["a"])
        assert is_undefined_reset(ExpressionStatement(assignment("a")), {"a"})

    def test_sequence_of_resets(self):
        statement = parse("a = undefined, b = undefined;").body[0]
        assert is_undefined_reset(statement, ["a", "b"])
        assert not is_undefined_reset(statement, ["a"])

    def test_not_a_reset(self):
        assert not is_undefined_reset(parse("a = 1;").body[0], ["a"])
        assert not is_undefined_reset(parse("a += undefined;").body[0], ["a"])
        assert not is_undefined_reset(parse("a.b = undefined;").body[0], ["a"])
        assert not is_undefined_reset(parse("var a;").body[0], ["a"])


class TestDeclaredNames:
    def test_collects_vars_anywhere_in_body(self):
        function = parse_function("""
        function f(p) {
            var a = 1;
            if (p) { var b; }
            for (var i = 0; i < 2; i++) {}
            for (var k in p) {}
            return a;
        }
        """)
        assert declared_names(function.body) == {"a", "b", "i", "k"}

    def test_nested_functions(self):
        function = parse_function("""
        function f() {
            function g() { var hidden; }
            var h = function named() { var alsoHidden; };
        }
        """)
        assert declared_names(function.body) == {"g", "h"}

    def test_params_not_included(self):
        function = parse_function("function f(a) { return a; }")
        assert declared_names(function.body) == set()


def test_declarators_are_built_without_location():
    [statement] = declare_all(["a"])
    assert statement == VariableDeclaration((VariableDeclarator(Identifier("a")),))
    assert statement.location is None
    assert undefined() == Identifier("undefined")
