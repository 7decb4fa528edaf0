"""
Tests for the optimizer driver, the public entry point and the CLI.
"""

from dataclasses import replace

import pytest

from tailcallopt import OptimizationResult, TailCallOptimizer, tail_call_optimise
from tailcallopt.__main__ import main
from tailcallopt.frontend.parser import ParseError
from tailcallopt.passes.base import BasePass, PassContext, PassManager
from tailcallopt.passes.tail_calls import TailCallPass
from tailcallopt.passes.tree_validation import TreeValidationPass
from tailcallopt.runtime.interpreter import Interpreter
from tailcallopt.shared.errors import ImplementationError, ReservedNameError, SchemaError
from tailcallopt.shared.nodes import ExpressionStatement, FunctionDeclaration, Program
from tailcallopt.utils.io_utils import read_source_file, write_source_file
from tests.test_utils import parse, parse_function, strip_ansi

COUNTDOWN = "function countdown(n) { if (n) return countdown(n - 1); return 'done'; }"


class TestTailCallOptimise:
    def test_text_in_text_out(self):
        output = tail_call_optimise(COUNTDOWN)
        assert isinstance(output, str)
        assert "_tailCall_: while (true)" in output

    def test_node_in_node_out(self):
        function = parse_function(COUNTDOWN)
        result = tail_call_optimise(function)
        assert isinstance(result, FunctionDeclaration)
        assert result != function
        assert result.id == function.id

    def test_program_node(self):
        result = tail_call_optimise(parse(COUNTDOWN))
        assert isinstance(result, Program)

    def test_runtime_function_in_text_out(self):
        interpreter = Interpreter()
        interpreter.run(parse(COUNTDOWN))
        output = tail_call_optimise(interpreter.get_function("countdown"))
        assert output.startswith("function countdown(n) {")
        assert "continue _tailCall_;" in output

    def test_anonymous_runtime_function(self):
        interpreter = Interpreter()
        interpreter.run(parse("var f = function (n) { return n; };"))
        assert tail_call_optimise(interpreter.get_function("f")) == "(function(n) {\n    return n;\n});"

    @pytest.mark.parametrize("value", [42, None, ["function f() {}"], b"function f() {}"])
    def test_other_inputs_rejected(self, value):
        with pytest.raises(TypeError, match="expects a syntax node, source text or function"):
            tail_call_optimise(value)

    def test_errors_propagate(self):
        with pytest.raises(ReservedNameError):
            tail_call_optimise("function f(_tco_temp_a) {}")
        with pytest.raises(ParseError):
            tail_call_optimise("function (")


class TestTailCallOptimizer:
    def test_custom_naming(self):
        optimizer = TailCallOptimizer(temp_prefix="$", loop_label="again", indent="  ")
        output = optimizer.optimise("function f(a, b) { return a ? f(b, a - 1) : b; }")
        assert output.split("\n")[:4] == [
            "function f(a, b) {",
            "  var $a;",
            "  var $b;",
            "  again: while (true) {",
        ]

    def test_compile_success(self):
        result = TailCallOptimizer().compile(COUNTDOWN, "countdown.js")
        assert isinstance(result, OptimizationResult)
        assert result.success
        assert not result.has_errors()
        assert result.get_errors() == []
        assert result.output.startswith("function countdown(n) {")
        assert result.stats.optimized_functions == ["countdown"]
        assert result.pcx.has_analysis(TreeValidationPass)

    def test_compile_failure(self):
        result = TailCallOptimizer().compile("var _tailCall_;", "bad.js")
        assert not result.success
        assert result.tree is None and result.output is None
        assert result.has_errors()
        assert "error[E0101]" in result.get_errors()[0]

    def test_validation_can_be_disabled(self):
        result = TailCallOptimizer(validate=False).compile(COUNTDOWN)
        assert result.success
        assert result.pcx.has_analysis(TailCallPass)
        assert not result.pcx.has_analysis(TreeValidationPass)

    def test_result_without_context(self):
        result = OptimizationResult()
        assert result.stats is None
        assert result.has_errors()
        assert result.get_errors() == []

    def test_optimise_tree_does_not_validate(self):
        optimizer = TailCallOptimizer()
        tree = optimizer.optimise_tree(parse(COUNTDOWN))
        assert isinstance(tree, Program)


class TestCommandLine:
    @pytest.fixture
    def source_file(self, tmp_path):
        path = tmp_path / "countdown.js"
        path.write_text(COUNTDOWN + "\n", encoding="utf-8")
        return path

    def test_prints_optimized_source(self, source_file, capsys):
        assert main([str(source_file)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("function countdown(n) {")
        assert "_tailCall_: while (true)" in out

    def test_writes_output_file(self, source_file, tmp_path, capsys):
        target = tmp_path / "out.js"
        assert main([str(source_file), "-o", str(target)]) == 0
        assert capsys.readouterr().out == ""
        text = target.read_text(encoding="utf-8")
        assert text.endswith("}\n")
        assert "continue _tailCall_;" in text

    def test_dump_tree(self, source_file, capsys):
        assert main([str(source_file), "--dump-tree"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("(program")
        assert '(identifier "_tailCall_")' in out

    def test_run_function(self, source_file, capsys):
        assert main([str(source_file), "--run", "countdown", "5000"]) == 0
        assert capsys.readouterr().out.strip() == "done"

    def test_run_with_literal_arguments(self, tmp_path, capsys):
        path = tmp_path / "kind.js"
        path.write_text("function kind(a, b) { return typeof a + ':' + typeof b; }", encoding="utf-8")
        assert main([str(path), "--run", "kind", "true", "abc"]) == 0
        assert capsys.readouterr().out.strip() == "boolean:string"

    def test_run_unknown_function(self, source_file, capsys):
        assert main([str(source_file), "--run", "missing"]) == 1
        assert "ReferenceError: missing is not defined" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.js")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_directory_is_not_a_file(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 1
        assert "not a file" in capsys.readouterr().err

    def test_diagnostics_on_stderr(self, tmp_path, capsys):
        path = tmp_path / "bad.js"
        path.write_text("function h(a) { return h(a, a); }", encoding="utf-8")
        assert main([str(path)]) == 1
        err = strip_ansi(capsys.readouterr().err)
        assert "error[E0102]: tail call to `h` passes 2 arguments" in err
        assert "aborting due to 1 previous error" in err


class TestPassManager:
    def test_validation_must_follow_rewrite(self):
        manager = PassManager()
        with pytest.raises(ImplementationError, match="TreeValidationPass must be registered after TailCallPass"):
            manager.register_pass(TreeValidationPass)

    def test_passes_run_in_order(self):
        manager = PassManager()
        manager.register_pass(TailCallPass)
        manager.register_pass(TreeValidationPass)
        pcx = PassContext()
        tree = manager.run_all(parse(COUNTDOWN), pcx)
        assert pcx.get_analysis(TailCallPass).optimized_functions == ["countdown"]
        assert pcx.get_analysis(TreeValidationPass) > 0
        assert isinstance(tree, Program)

    def test_missing_analysis(self):
        with pytest.raises(ImplementationError, match="no results from TailCallPass"):
            PassContext().get_analysis(TailCallPass)


class TestSourceFiles:
    def test_write_ends_with_one_newline(self, tmp_path):
        target = tmp_path / "out.js"
        write_source_file(target, "x;\n\n")
        assert target.read_text(encoding="utf-8") == "x;\n"

    def test_read_errors_name_the_path(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="file not found"):
            read_source_file(tmp_path / "nope.js")
        with pytest.raises(IsADirectoryError, match="not a file"):
            read_source_file(tmp_path)


class _ForInitAsStatement(BasePass):
    """Puts the first loop's init back inside an ExpressionStatement."""
    requires = [TailCallPass]

    def run(self, tree, pcx):
        function = tree.body[0]
        statements = list(function.body.body)
        loop = statements[1]
        statements[1] = replace(loop, init=ExpressionStatement(loop.init))
        return replace(tree, body=(replace(function, body=replace(function.body, body=tuple(statements))),))


class TestValidationFailure:
    SOURCE = "function f(n) { for (var i = 0; i < n; i++) {} return i; }"

    @pytest.fixture
    def broken_optimizer(self):
        optimizer = TailCallOptimizer()
        optimizer.pass_manager = PassManager()
        for pass_class in (TailCallPass, _ForInitAsStatement, TreeValidationPass):
            optimizer.pass_manager.register_pass(pass_class)
        return optimizer

    def test_text_path_raises(self, broken_optimizer):
        with pytest.raises(SchemaError) as exc_info:
            broken_optimizer.optimise_source(self.SOURCE)
        assert exc_info.value.path == "body[0].body.body[1].init"
        assert "found ExpressionStatement" in exc_info.value.reason

    def test_compile_reports_schema_error(self, broken_optimizer):
        result = broken_optimizer.compile(self.SOURCE, "loop.js")
        assert not result.success
        assert result.output is None and result.tree is None
        [text] = result.get_errors()
        assert text.startswith("error[E0999]: body[0].body.body[1].init: expected declaration or expression")
        assert "this is a bug in the tail call rewrite" in text
