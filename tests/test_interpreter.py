"""
Tests for the tree-walking interpreter.
"""

import io
import textwrap

import pytest

from sable import (
    parse, evaluate, run_source, render,
    Interpreter, ExecutionResult, Environment, SableConfig,
    ValueType,
)


def eval_source(source: str, env=None, output=None, config=None):
    """Helper to parse and evaluate source that is expected to be valid."""
    program, errors = parse(textwrap.dedent(source))
    assert errors == [], [str(e) for e in errors]
    return evaluate(program, env, output, config)


def eval_render(source: str, **kwargs) -> str:
    return render(eval_source(source, **kwargs))


def eval_error(source: str, **kwargs) -> str:
    """Helper returning the message of the Error value the source produces."""
    result = eval_source(source, **kwargs)
    assert result.type == ValueType.ERROR, render(result)
    return result.data


class TestBasics:
    """Test literals, bindings and statement sequencing."""

    def test_let_then_lookup(self):
        """let x = 5; x; evaluates to 5."""
        result = eval_source("let x = 5; x;")
        assert result.type == ValueType.INTEGER
        assert result.data == 5

    @pytest.mark.parametrize("source,expected", [
        ("5", "5"),
        ("true", "true"),
        ("false", "false"),
        ("nil", "nil"),
        ('"hello"', "hello"),
        ("[1, 2 * 2, 3 + 3]", "[1, 4, 6]"),
        ("[]", "[]"),
    ])
    def test_literals(self, source, expected):
        """Literals evaluate to their own values."""
        assert eval_render(source) == expected

    def test_empty_program(self):
        """An empty program evaluates to nil."""
        assert eval_render("") == "nil"

    def test_let_value_is_nil(self):
        """A let statement itself evaluates to nil."""
        assert eval_render("let a = 1;") == "nil"

    def test_last_statement_wins(self):
        """A program evaluates to its last statement's value."""
        assert eval_render("1; 2; 3") == "3"

    def test_persistent_environment(self):
        """Reusing an Environment keeps bindings between evaluations."""
        env = Environment()
        eval_source("let a = 10;", env=env)
        eval_source("let b = a * 2;", env=env)
        assert eval_render("a + b", env=env) == "30"

    def test_blocks_do_not_create_scopes(self):
        """Bindings made in a bare block stay visible afterwards."""
        assert eval_render("{ let inner = 4; } inner") == "4"


class TestOperators:
    """Test prefix and infix operators."""

    @pytest.mark.parametrize("source,expected", [
        ("1 + 2 * 3", "7"),
        ("(1 + 2) * 3", "9"),
        ("-50 + 100 + -50", "0"),
        ("20 + 2 * -10", "0"),
        ("50 / 2 * 2 + 10", "60"),
        ("3 * (3 * 3) + 10", "37"),
        ("(5 + 10 * 2 + 15 / 3) * 2 + -10", "50"),
        ("7 / 2", "3"),
        ("-7 / 2", "-3"),
        ("7 / -2", "-3"),
        ("-7 / -2", "3"),
    ])
    def test_integer_arithmetic(self, source, expected):
        """Integer arithmetic with truncating division."""
        assert eval_render(source) == expected

    @pytest.mark.parametrize("source,expected", [
        ("1 < 2", "true"),
        ("1 > 2", "false"),
        ("2 <= 2", "true"),
        ("3 >= 4", "false"),
        ("1 == 1", "true"),
        ("1 != 1", "false"),
        ("true == true", "true"),
        ("true != false", "true"),
        ("(1 < 2) == true", "true"),
        ('"a" == "a"', "true"),
        ('"a" != "b"', "true"),
        ("nil == nil", "true"),
        ("1 == true", "false"),
        ("0 == nil", "false"),
        ('1 != "1"', "true"),
        ("[1] == [1]", "false"),
        ("len == len", "true"),
    ])
    def test_comparisons(self, source, expected):
        """Comparison and equality operators."""
        assert eval_render(source) == expected

    def test_array_identity_equality(self):
        """The same array value equals itself."""
        assert eval_render("let a = [1]; let b = a; a == b") == "true"

    @pytest.mark.parametrize("source,expected", [
        ("!true", "false"),
        ("!false", "true"),
        ("!5", "false"),
        ("!!5", "true"),
        ("!nil", "true"),
        ("!0", "false"),
    ])
    def test_bang(self, source, expected):
        """! negates truthiness."""
        assert eval_render(source) == expected

    @pytest.mark.parametrize("source,expected", [
        ("true and false", "false"),
        ("true and 1", "true"),
        ("nil or 0", "true"),
        ("false or nil", "false"),
        ("false and undefinedThing", "false"),
        ("true or undefinedThing", "true"),
    ])
    def test_logical(self, source, expected):
        """and/or short-circuit and return booleans."""
        assert eval_render(source) == expected

    def test_string_concatenation(self):
        """+ on two strings concatenates."""
        assert eval_render('"Hello" + " " + "World!"') == "Hello World!"

    @pytest.mark.parametrize("source,message", [
        ("5 + true;", "type mismatch: INTEGER + BOOLEAN"),
        ("5 + true; 5;", "type mismatch: INTEGER + BOOLEAN"),
        ('1 < "2"', "type mismatch: INTEGER < STRING"),
        ("-true", "unknown operator: -BOOLEAN"),
        ("true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
        ('"a" - "b"', "unknown operator: STRING - STRING"),
        ('"a" < "b"', "unknown operator: STRING < STRING"),
        ("5; true + false; 5", "unknown operator: BOOLEAN + BOOLEAN"),
        ("if (10 > 1) { true + false; }", "unknown operator: BOOLEAN + BOOLEAN"),
    ])
    def test_operator_errors(self, source, message):
        """Operators on unsupported kinds produce Error values."""
        assert eval_error(source) == message

    def test_division_by_zero(self):
        """Division by zero is an Error, not a crash."""
        assert eval_error("1/0") == "division by zero"

    def test_error_skips_rest_of_block(self, capsys):
        """Statements after an Error in the same block do not run."""
        result = eval_source("1/0; print 5; 7")
        assert result.data == "division by zero"
        assert capsys.readouterr().out == ""

    @pytest.mark.parametrize("source", [
        "9223372036854775807 + 1",
        "-9223372036854775807 - 2",
        "9223372036854775807 * 2",
        "-(-9223372036854775807 - 1)",
        "(-9223372036854775807 - 1) / -1",
    ])
    def test_integer_overflow(self, source):
        """Results outside the 64-bit range are Errors."""
        assert eval_error(source) == "integer overflow"

    def test_int64_min_reachable(self):
        """The most negative integer can still be computed."""
        assert eval_render("-9223372036854775807 - 1") == "-9223372036854775808"


class TestConditionals:
    """Test if/else expressions."""

    @pytest.mark.parametrize("source,expected", [
        ("if (true) { 10 }", "10"),
        ("if (false) { 10 }", "nil"),
        ("if (1) { 10 }", "10"),
        ("if (0) { 10 }", "10"),
        ("if (1 < 2) { 10 }", "10"),
        ("if (1 > 2) { 10 }", "nil"),
        ("if (1 > 2) { 10 } else { 20 }", "20"),
        ("if (1 < 2) { 10 } else { 20 }", "10"),
        ("if true { }", "nil"),
        ("if false { 1 } else if true { 2 } else { 3 }", "2"),
        ("if false { 1 } else if false { 2 } else { 3 }", "3"),
    ])
    def test_if_else(self, source, expected):
        """if picks a branch by truthiness."""
        assert eval_render(source) == expected

    def test_if_nil(self):
        """nil is falsy when used as a condition."""
        assert eval_render("let isNil = if nil { true } else { false }; isNil") == "false"

    def test_if_statement_then_negative(self):
        """A leading if is its own statement, not the left side of a subtraction."""
        assert eval_render("if true { 10 } else { 20 }\n-1") == "-1"
        assert eval_render("let a = [5];\nif false { 1 }\n[a][0]") == "[5]"

    def test_condition_error_propagates(self):
        """An Error in the condition is the result."""
        assert eval_error("if (missing) { 1 }") == "unbound identifier: missing"


class TestReturn:
    """Test return statements."""

    @pytest.mark.parametrize("source,expected", [
        ("return 10;", "10"),
        ("return 10; 9;", "10"),
        ("return 2 * 5; 9;", "10"),
        ("9; return 2 * 5; 9;", "10"),
        ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", "10"),
        ("return;", "nil"),
    ])
    def test_return(self, source, expected):
        """return stops evaluation and yields its value."""
        assert eval_render(source) == expected

    def test_top_level_return_unwrapped(self):
        """The result of evaluate is never a return signal."""
        assert eval_source("return 1;").type == ValueType.INTEGER

    def test_return_inside_function(self):
        """return leaves only the innermost function."""
        source = """
            let f = fn(x) {
                if (x > 1) { return x * 10; }
                return 0;
            };
            f(3) + f(1)
        """
        assert eval_render(source) == "30"

    def test_return_through_let(self):
        """A return inside an if used as a let value leaves the function."""
        source = "let f = fn() { let y = if true { return 5 }; 10 }; f()"
        assert eval_render(source) == "5"


class TestFunctions:
    """Test function values, calls and closures."""

    @pytest.mark.parametrize("source,expected", [
        ("let identity = fn(x) { x; }; identity(5);", "5"),
        ("let identity = fn(x) { return x; }; identity(5);", "5"),
        ("let double = fn(x) { x * 2; }; double(5);", "10"),
        ("let add = fn(x, y) { x + y; }; add(5, 5);", "10"),
        ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", "20"),
        ("fn(x) { x; }(5)", "5"),
        ("fn add(a, b) { a + b } add(1, 2)", "3"),
        ("let noop = fn() { }; noop()", "nil"),
    ])
    def test_calls(self, source, expected):
        """Function application."""
        assert eval_render(source) == expected

    def test_function_value_render(self):
        """Function values render as a placeholder."""
        assert eval_render("fn(x, y) { x + y }") == "fn(x, y) {...}"

    def test_closures(self):
        """Closures keep the scope they were defined in."""
        source = """
            let newAdder = fn(x) { fn(y) { x + y } };
            let addTwo = newAdder(2);
            addTwo(3);
        """
        assert eval_render(source) == "5"

    def test_independent_closures(self):
        """Each call creates its own captured scope."""
        source = """
            let newAdder = fn(x) { fn(y) { x + y } };
            let addTwo = newAdder(2);
            let addThree = newAdder(3);
            addTwo(1) + addThree(1)
        """
        assert eval_render(source) == "7"

    def test_lexical_not_dynamic_scope(self):
        """A function sees its defining scope, not the caller's."""
        source = """
            let x = 1;
            let f = fn() { x };
            let g = fn(x) { f() };
            g(2)
        """
        assert eval_render(source) == "1"

    def test_parameters_do_not_leak(self):
        """Parameters are bound in the call's own scope."""
        env = Environment()
        eval_source("let f = fn(p) { p }; f(1);", env=env)
        assert env.get("p") is None

    def test_recursion(self):
        """Named recursion through the enclosing binding."""
        source = """
            let fib = fn(n) { if (n < 2) { n } else { fib(n - 1) + fib(n - 2) } };
            fib(15)
        """
        assert eval_render(source) == "610"

    def test_higher_order_functions(self):
        """Functions can be passed and returned."""
        source = """
            let map = fn(arr, f) {
                if (len(arr) == 0) { [] } else { push(map(rest(arr), f), f(first(arr))) }
            };
            let reverse = fn(arr) {
                if (len(arr) == 0) { [] } else { push(reverse(rest(arr)), first(arr)) }
            };
            reverse(map(reverse([1, 2, 3]), fn(x) { x * 2 }))
        """
        assert eval_render(source) == "[6, 4, 2]"

    def test_wrong_arity(self):
        """Calling with the wrong number of arguments is an Error."""
        message = eval_error("let f = fn(x) { x }; f(1, 2)")
        assert message == "wrong number of arguments: expected 1, got 2"

    def test_not_a_function(self):
        """Calling a non-function is an Error."""
        assert eval_error("5(1)") == "not a function: INTEGER"

    def test_argument_error_propagates(self):
        """An Error while evaluating an argument is the call's result."""
        assert eval_error("let f = fn(x) { x }; f(1 / 0)") == "division by zero"

    def test_error_inside_function_stops_body(self, capsys):
        """An Error unwinds the function body and the caller."""
        result = eval_source("let f = fn() { 1 / 0; print 5; }; f(); print 6;")
        assert result.data == "division by zero"
        assert capsys.readouterr().out == ""

    def test_call_depth_limit(self):
        """Unbounded recursion stops at max_call_depth."""
        config = SableConfig(max_call_depth=10)
        message = eval_error("let f = fn(n) { f(n + 1) }; f(0)", config=config)
        assert message == "stack overflow: maximum call depth of 10 exceeded"

    def test_within_call_depth_limit(self):
        """Recursion below the limit is fine."""
        config = SableConfig(max_call_depth=10)
        source = "let count = fn(n) { if (n == 0) { 0 } else { 1 + count(n - 1) } }; count(9)"
        assert eval_render(source, config=config) == "9"

    def test_host_recursion_limit(self):
        """Exhausting the Python stack becomes an Error value."""
        config = SableConfig(max_call_depth=10 ** 9)
        message = eval_error("let f = fn(n) { f(n + 1) }; f(0)", config=config)
        assert message == "stack overflow: maximum recursion depth exceeded"

    def test_interpreter_reusable_after_overflow(self):
        """The same interpreter keeps working after a stack overflow."""
        interpreter = Interpreter(config=SableConfig(max_call_depth=5))
        env = Environment()
        program, _ = parse("let f = fn(n) { f(n + 1) }; f(0)")
        assert interpreter.evaluate(program, env).is_error
        program, _ = parse("let g = fn(n) { n * 2 }; g(21)")
        assert render(interpreter.evaluate(program, env)) == "42"


class TestIdentifiers:
    """Test name resolution."""

    def test_unbound_identifier(self):
        """Unknown names are an Error naming the identifier."""
        assert eval_error("foobar;") == "unbound identifier: foobar"

    def test_builtins_are_values(self):
        """Built-ins can be bound to other names."""
        assert eval_render('let f = len; f("ab")') == "2"
        assert eval_render("len") == "builtin function len"

    def test_user_binding_shadows_builtin(self):
        """A let with a built-in's name hides the built-in."""
        assert eval_render("let len = fn(x) { 99 }; len([1])") == "99"


class TestArrays:
    """Test arrays, indexing and the array built-ins."""

    def test_builtins_on_array(self):
        """first, last, len and push on the same array."""
        setup = "let arr = [1, 2, 3];"
        assert eval_render(setup + " first(arr);") == "1"
        assert eval_render(setup + " last(arr);") == "3"
        assert eval_render(setup + " len(arr);") == "3"
        assert eval_render(setup + " push(arr, 4);") == "[1, 2, 3, 4]"

    def test_push_does_not_mutate(self):
        """push leaves the original binding as it was."""
        assert eval_render("let arr = [1, 2, 3]; let more = push(arr, 4); arr") == "[1, 2, 3]"

    def test_rest(self):
        """rest of arrays and strings."""
        assert eval_render("rest([1, 2, 3])") == "[2, 3]"
        assert eval_render("rest([])") == "nil"
        assert eval_render('rest("hello")') == "ello"

    @pytest.mark.parametrize("source,expected", [
        ("[1, 2, 3][0]", "1"),
        ("[1, 2, 3][1 + 1]", "3"),
        ("let i = 0; [1][i];", "1"),
        ("let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];", "6"),
        ("[1, 2][5]", "nil"),
        ("[1, 2, 3][3]", "nil"),
        ("[1, 2, 3][-1]", "nil"),
        ("[[1, 2], [3]][0][1]", "2"),
    ])
    def test_indexing(self, source, expected):
        """Index expressions; out-of-range gives nil."""
        assert eval_render(source) == expected

    def test_index_non_array(self):
        """Indexing anything but an array is an Error."""
        assert eval_error('"abc"[0]') == "index operator not supported: STRING"

    def test_non_integer_index(self):
        """Array indexes must be integers."""
        assert eval_error("[1][true]") == "array index must be INTEGER, got BOOLEAN"

    def test_builtin_errors(self):
        """Built-in misuse is an Error value."""
        assert eval_error("len(1)") == 'argument to "len" not supported, got INTEGER'
        assert eval_error('len("one", "two")') == "wrong number of arguments: expected 1, got 2"


class TestPrint:
    """Test the print statement."""

    def test_print_to_stream(self):
        """print writes renderings to the interpreter output."""
        out = io.StringIO()
        result = eval_source('print 1 + 2; print "hi"; print [1, nil];', output=out)
        assert out.getvalue() == "3\nhi\n[1, nil]\n"
        assert render(result) == "nil"

    def test_print_defaults_to_stdout(self, capsys):
        """Without an output stream print goes to stdout."""
        eval_source("print 42;")
        assert capsys.readouterr().out == "42\n"

    def test_print_error_propagates(self, capsys):
        """An Error operand is returned instead of printed."""
        assert eval_error("print 1 / 0; print 2;") == "division by zero"
        assert capsys.readouterr().out == ""


class TestRunSource:
    """Test the run_source convenience function."""

    def test_success(self):
        """Valid source produces a value."""
        result = run_source("let x = 2; x * 21")
        assert isinstance(result, ExecutionResult)
        assert result.success
        assert render(result.value) == "42"

    def test_parse_errors(self):
        """Nothing is evaluated when parsing fails."""
        out = io.StringIO()
        result = run_source("print 1; let = 2;", output=out)
        assert not result.success
        assert result.value is None
        assert len(result.parse_errors) == 1
        assert out.getvalue() == ""

    def test_runtime_error(self):
        """A runtime Error is not a success."""
        result = run_source("1 / 0")
        assert not result.success
        assert result.value.is_error

    def test_max_errors_from_config(self):
        """The parse error cap comes from the config."""
        result = run_source("@; @; @;", config=SableConfig(max_errors=1))
        assert len(result.parse_errors) == 1
