"""
Tests for S-expression tree dumps.
"""

import sexpdata

from tailcallopt.shared.nodes import (
    ExpressionStatement, GenericNode, Identifier, Literal, MemberExpression, Program, ReturnStatement,
)
from tailcallopt.shared.serialization import TreeSerializer, serialize_tree
from tailcallopt.shared.source_location import SourceLocation
from tests.test_utils import parse, parse_function


class TestSerializeTree:
    def test_identifier_and_literal_forms(self):
        assert serialize_tree(Identifier("x")) == '(identifier "x")'
        assert serialize_tree(Literal(1.0)) == "(literal 1)"
        assert serialize_tree(Literal(1.5)) == "(literal 1.5)"
        assert serialize_tree(Literal("s")) == '(literal "s")'
        assert serialize_tree(Literal(True)) == "(literal true)"
        assert serialize_tree(Literal(None)) == "(literal nil)"

    def test_kinds_and_fields_are_kebab_case(self):
        text = serialize_tree(parse("x;"))
        assert text == '(program :body ((expression-statement :expression (identifier "x"))))'

    def test_absent_child_is_nil(self):
        assert serialize_tree(ReturnStatement()) == "(return-statement :argument nil)"

    def test_boolean_fields(self):
        node = MemberExpression(Identifier("a"), Identifier("b"))
        assert serialize_tree(node) == '(member-expression :object (identifier "a") :property (identifier "b") :computed false)'

    def test_strings_are_escaped(self):
        assert serialize_tree(Literal('a"b')) == '(literal "a\\"b")'

    def test_generic_node(self):
        node = GenericNode("WithStatement", (("object", Identifier("o")),))
        assert serialize_tree(node) == '(generic "WithStatement" :object (identifier "o"))'

    def test_long_forms_break_across_lines(self):
        function = parse_function(
            "function fact(x, acc) { acc = acc || 1; if (x) return fact(x - 1, x * acc); else return acc; }"
        )
        text = serialize_tree(function)
        lines = text.split("\n")
        assert len(lines) > 1
        assert lines[0] == "(function-declaration"
        assert lines[1].startswith('  :id (identifier "fact")')
        assert text.count("(") == text.count(")")

    def test_compact_output_is_one_line(self):
        function = parse_function("function f(n) { return f(n - 1); }")
        text = serialize_tree(function, pretty=False)
        assert "\n" not in text
        assert '(identifier "f")' in text

    def test_compact_output_reads_back(self):
        text = serialize_tree(parse("f(1);"), pretty=False)
        form = sexpdata.loads(text)
        assert form[0] == sexpdata.Symbol("program")


class TestLocations:
    def test_locations_are_optional(self):
        node = Identifier("x", location=SourceLocation("a.js", 2, 5))
        assert serialize_tree(node) == '(identifier "x")'
        assert serialize_tree(node, include_location=True) == '(identifier "x" :loc ("a.js" 2 5))'

    def test_parsed_tree_carries_locations(self):
        text = TreeSerializer(include_location=True).serialize(parse("\n  y;"))
        assert ':loc ("<test>" 2 3)' in text

    def test_built_nodes_have_no_location(self):
        node = Program((ExpressionStatement(Identifier("y")),))
        assert ":loc" not in serialize_tree(node, include_location=True)
