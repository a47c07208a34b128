import io
import unittest

from loa.core.environment import Environment
from loa.core.evaluation import Interpreter
from loa.core.lexical import tokenize
from loa.core.parser import parse
from loa.lang.error import ErrorKind, ExecutionError, Fault
from loa.lang.session import run


def output_of(source):
    """Runs source and returns everything it printed."""
    output = io.StringIO()
    run(source, output)
    return output.getvalue()


class EvaluationTestCase(unittest.TestCase):

    def assertOutput(self, expected, source):
        self.assertEqual(expected, output_of(source), source)

    def assertFault(self, fault, source, position=None):
        """Asserts that running source fails with fault (at position, if given) and returns the error."""
        with self.assertRaises(ExecutionError) as cm:
            output_of(source)
        self.assertIs(fault, cm.exception.fault, source)
        self.assertIs(ErrorKind.RUNTIME, cm.exception.kind)
        if position is not None:
            self.assertEqual(position, cm.exception.position, source)
        return cm.exception


class ExpressionTestCase(EvaluationTestCase):

    def test_arithmetic(self):
        cases = {
            "print(2 + 3 * 4)": "14\n",
            "print(10 - 4 - 3)": "3\n",
            "print((2 + 3) * 4)": "20\n",
            "print(7 / 2)": "3.5\n",
            "print(4 / 2)": "2\n",
            "print(7 % 3)": "1\n",
            "print(-7 % 3)": "2\n",
            "print(-(1 + 2))": "-3\n",
            "print(0.1 + 0.2)": "0.30000000000000004\n",
        }
        for case, expected in cases.items():
            self.assertOutput(expected, case)

    def test_strings(self):
        cases = {
            "print(\"hello, \" + \"world\")": "hello, world\n",
            "print(\"n = \" + 3)": "n = 3\n",
            "print(2.5 + \"!\")": "2.5!\n",
            "print(\"is \" + true)": "is true\n",
            "print(\"\" + nil)": "nil\n",
            "print(\"a\\tb\")": "a\tb\n",
            "print(\"abc\" < \"abd\")": "true\n",
        }
        for case, expected in cases.items():
            self.assertOutput(expected, case)

    def test_comparison_and_equality(self):
        cases = {
            "print(1 < 2, 2 <= 2, 3 > 4, 4 >= 5)": "true\ntrue\nfalse\nfalse\n",
            "print(1 == 1, 1 != 1)": "true\nfalse\n",
            "print(1 == \"1\", 0 == false, nil == nil)": "false\nfalse\ntrue\n",
        }
        for case, expected in cases.items():
            self.assertOutput(expected, case)

    def test_logical_operators(self):
        cases = {
            "print(true && false, true || false)": "false\ntrue\n",
            "print(1 && \"x\")": "true\n",
            "print(0 || nil)": "false\n",
            "print(!0, !\"\", !nil)": "true\nfalse\ntrue\n",
        }
        for case, expected in cases.items():
            self.assertOutput(expected, case)

    def test_short_circuit(self):
        source = (
            "fun boom():\n"
            "    print(\"boom\")\n"
            "    return true\n"
            "print(false && boom())\n"
            "print(true || boom())\n"
            "print(true && boom())\n"
        )
        self.assertOutput("false\ntrue\nboom\ntrue\n", source)

    def test_print(self):
        source = "fun f():\n    return\nprint(f)\nprint(f())\nprint()\nprint(nil, false)\n"
        self.assertOutput("<fun f>\nnil\n\nnil\nfalse\n", source)


class StatementTestCase(EvaluationTestCase):

    def test_assignment(self):
        self.assertOutput("30\n", "x = 10\ny = 20\nprint(x + y)\n")
        self.assertOutput("2\n", "x = 1\nx = x + 1\nprint(x)\n")

    def test_while(self):
        self.assertOutput("1\n2\n3\n4\n5\n", "x = 1\nwhile (x <= 5): print(x); x = x + 1\n")
        self.assertOutput("", "while false:\n    print(\"never\")\n")

    def test_if_chain(self):
        template = (
            "x = {}\n"
            "y = 10\n"
            "if (x < y):\n"
            "    print(\"x is less than y\")\n"
            "else if (x == y):\n"
            "    print(\"x equals y\")\n"
            "else:\n"
            "    print(\"x is greater than y\")\n"
        )
        cases = {
            5: "x is less than y\n",
            10: "x equals y\n",
            15: "x is greater than y\n",
        }
        for x, expected in cases.items():
            self.assertOutput(expected, template.format(x))

    def test_if_without_matching_branch(self):
        self.assertOutput("after\n", "if false: print(\"no\")\nelse if nil: print(\"no\")\nprint(\"after\")\n")

    def test_truthiness(self):
        source = (
            "if \"\": print(\"empty string\")\n"
            "if 0: print(\"zero\")\n"
            "else: print(\"not zero\")\n"
            "if -1: print(\"minus one\")\n"
        )
        self.assertOutput("empty string\nnot zero\nminus one\n", source)

    def test_break_and_continue(self):
        source = (
            "i = 0\n"
            "while (i < 5):\n"
            "    i = i + 1\n"
            "    if (i == 2):\n"
            "        continue\n"
            "    if (i == 5):\n"
            "        break\n"
            "    print(i)\n"
        )
        self.assertOutput("1\n3\n4\n", source)

    def test_break_leaves_innermost_loop(self):
        source = (
            "i = 0\n"
            "while (i < 2):\n"
            "    i = i + 1\n"
            "    while true:\n"
            "        break\n"
            "    print(i)\n"
        )
        self.assertOutput("1\n2\n", source)

    def test_leading_comment(self):
        self.assertOutput("1\n2\n", "/* header */ print(1)\nif true:\n    /* note */ print(2)\n")

    def test_blocks_share_scope(self):
        self.assertOutput("2\n", "if true:\n    y = 2\nprint(y)\n")


class FunctionTestCase(EvaluationTestCase):

    def test_call(self):
        self.assertOutput("5\n", "fun add(a, b):\n    return a + b\nprint(add(2, 3))\n")

    def test_implicit_nil(self):
        self.assertOutput("nil\nnil\n", "fun f():\n    x = 1\nfun g():\n    return\nprint(f())\nprint(g())\n")

    def test_recursion(self):
        source = (
            "fun fib(n):\n"
            "    if (n < 2):\n"
            "        return n\n"
            "    return fib(n - 1) + fib(n - 2)\n"
            "print(fib(10))\n"
        )
        self.assertOutput("55\n", source)

    def test_return_from_loop(self):
        self.assertOutput("7\n", "fun first():\n    while true:\n        return 7\nprint(first())\n")

    def test_closure(self):
        source = (
            "fun make_counter():\n"
            "    count = 0\n"
            "    fun next():\n"
            "        count = count + 1\n"
            "        return count\n"
            "    return next\n"
            "c = make_counter()\n"
            "print(c())\n"
            "print(c())\n"
            "d = make_counter()\n"
            "print(d())\n"
        )
        self.assertOutput("1\n2\n1\n", source)

    def test_assignment_reaches_globals(self):
        source = "total = 0\nfun add(n):\n    total = total + n\nadd(5)\nadd(2)\nprint(total)\n"
        self.assertOutput("7\n", source)

    def test_locals_stay_local(self):
        source = "fun f(a):\n    local = a\nf(1)\nprint(local)\n"
        self.assertFault(Fault.UNDEFINED_VARIABLE, source, (4, 7))

    def test_parameters_shadow_globals(self):
        self.assertOutput("2\n1\n", "a = 1\nfun f(a):\n    print(a)\nf(2)\nprint(a)\n")

    def test_argument_order(self):
        source = "fun show(x):\n    print(x)\n    return x\nprint(show(1) + show(2))\n"
        self.assertOutput("1\n2\n3\n", source)

    def test_functions_are_values(self):
        source = (
            "fun twice(f, x):\n"
            "    return f(f(x))\n"
            "fun inc(n):\n"
            "    return n + 1\n"
            "print(twice(inc, 1))\n"
            "g = inc\n"
            "print(g == inc, g(0))\n"
        )
        self.assertOutput("3\ntrue\n1\n", source)


class FaultTestCase(EvaluationTestCase):

    def test_undefined_variable(self):
        error = self.assertFault(Fault.UNDEFINED_VARIABLE, "x = 1\nprint(x + zz)\n", (2, 11))
        self.assertEqual("undefined variable 'zz'", error.message)

    def test_innermost_position(self):
        source = "fun f(a):\n    return a + missing\nprint(f(1))\n"
        self.assertFault(Fault.UNDEFINED_VARIABLE, source, (2, 16))

    def test_type_mismatch(self):
        error = self.assertFault(Fault.TYPE_MISMATCH, "print(1 - \"a\")\n", (1, 9))
        self.assertEqual("unsupported operand type(s) for '-': number and string", error.message)
        self.assertFault(Fault.TYPE_MISMATCH, "print(-\"a\")\n", (1, 7))
        self.assertFault(Fault.TYPE_MISMATCH, "print(1 < \"2\")\n")

    def test_arity_mismatch(self):
        source = "fun f(a):\n    return a\nf(1, 2)\n"
        error = self.assertFault(Fault.ARITY_MISMATCH, source, (3, 1))
        self.assertEqual("f() takes 1 argument(s) but 2 were given", error.message)

    def test_arity_checked_before_arguments(self):
        source = "fun f(a):\n    return a\nfun loud():\n    print(\"evaluated\")\nf(loud(), 1)\n"
        output = io.StringIO()
        with self.assertRaises(ExecutionError):
            run(source, output)
        self.assertEqual("", output.getvalue())

    def test_not_callable(self):
        error = self.assertFault(Fault.NOT_CALLABLE, "x = 1\nx()\n", (2, 1))
        self.assertEqual("number value is not callable", error.message)
        self.assertFault(Fault.NOT_CALLABLE, "\"text\"(1)\n")

    def test_division_by_zero(self):
        self.assertFault(Fault.DIVISION_BY_ZERO, "print(1 / 0)\n", (1, 9))
        self.assertFault(Fault.DIVISION_BY_ZERO, "print(1 % (2 - 2))\n")

    def test_misplaced_control_flow(self):
        cases = {
            "return 1\n": ((1, 1), "'return' outside function"),
            "x = 1\nbreak\n": ((2, 1), "'break' outside loop"),
            "if true:\n    continue\n": ((2, 5), "'continue' outside loop"),
            "fun f():\n    break\nwhile true:\n    f()\n": ((2, 5), "'break' outside loop"),
        }
        for case, (position, message) in cases.items():
            error = self.assertFault(Fault.INVALID_CONTROL_FLOW, case, position)
            self.assertEqual(message, error.message, case)

    def test_call_depth(self):
        source = "fun forever(n):\n    return forever(n + 1)\nforever(0)\n"
        error = self.assertFault(Fault.CALL_DEPTH, source, (2, 12))
        self.assertIn("forever()", error.message)

    def test_deep_but_bounded_recursion(self):
        source = (
            "fun count(n):\n"
            "    if (n == 0):\n"
            "        return 0\n"
            "    return 1 + count(n - 1)\n"
            "print(count(150))\n"
        )
        self.assertOutput("150\n", source)

    def test_nesting_depth(self):
        source = "print(" + " + ".join(["1"] * 6000) + ")\n"
        error = self.assertFault(Fault.NESTING_DEPTH, source)
        self.assertEqual(1, error.line)
        self.assertEqual("code is nested too deeply", error.message)

    def test_deep_but_bounded_expression(self):
        self.assertOutput("2000\n", "print(" + " + ".join(["1"] * 2000) + ")\n")

    def test_output_before_fault_is_kept(self):
        output = io.StringIO()
        with self.assertRaises(ExecutionError):
            run("print(1)\nprint(nope)\nprint(2)\n", output)
        self.assertEqual("1\n", output.getvalue())


class InterpreterTestCase(unittest.TestCase):

    def test_execute_returns_environment(self):
        environment = run("x = 1\nfun f():\n    return x\n", io.StringIO())
        self.assertEqual(1.0, environment.get("x"))
        self.assertEqual("f", environment.get("f").name)

    def test_execute_in_given_environment(self):
        environment = Environment()
        environment.define("greeting", "hi")
        output = io.StringIO()
        Interpreter(output).execute(parse(tokenize("print(greeting)\nanswer = 42\n")), environment)
        self.assertEqual("hi\n", output.getvalue())
        self.assertEqual(42.0, environment.get("answer"))

    def test_depth_reset_after_fault(self):
        interpreter = Interpreter(io.StringIO())
        program = parse(tokenize("fun forever():\n    return forever()\nforever()\n"))
        for __ in range(2):
            with self.assertRaises(ExecutionError) as cm:
                interpreter.execute(program)
            self.assertIs(Fault.CALL_DEPTH, cm.exception.fault)
        self.assertEqual(0, interpreter.depth)


if __name__ == '__main__':
    unittest.main()
