"""Tree-walking evaluator for Loa.

Statements are executed for their effect (output, bindings); expressions are evaluated to values (see values.py).
Non-local control flow (return, break, continue) unwinds the Python stack with ControlFlow exceptions, which are not
errors: they are caught at the nearest function call or loop. One that escapes its boundary (return at top level,
break outside a loop) is turned into an ExecutionError.

Errors raised while evaluating an expression are located at the innermost node being evaluated, so an undefined
variable points at the identifier and a type mismatch at its operator.
"""

import sys

from loa.core.environment import Environment
from loa.core.grammar import (
    TOO_DEEP, Assignment, BinaryOp, Break, Call, Continue, ExpressionStatement, FunctionDef, Identifier, If, Literal,
    Print, Return, UnaryOp, While, allow_deep_trees,
)
from loa.core.values import Function, binary, is_truthy, kind_of, to_text, unary
from loa.lang.error import ExecutionError, Fault


class ControlFlow(Exception):
    """Unwinds execution up to a loop or function call boundary."""
    keyword = None

    def __init__(self, node):
        super().__init__(self.keyword)
        self.node = node

    def misplaced(self, where):
        return ExecutionError(Fault.INVALID_CONTROL_FLOW, f"'{self.keyword}' outside {where}", self.node.line,
                              self.node.column)


class ReturnSignal(ControlFlow):
    keyword = "return"

    def __init__(self, node, value):
        super().__init__(node)
        self.value = value


class BreakSignal(ControlFlow):
    keyword = "break"


class ContinueSignal(ControlFlow):
    keyword = "continue"


class Interpreter:
    """Executes Programs, writing print output to output (any object with a write method, sys.stdout by default).

    MAX_DEPTH bounds nested function calls so that runaway recursion is reported as a Loa error. Each Loa call takes
    a dozen or so Python frames, so the Python recursion limit is raised (see grammar.allow_deep_trees) while
    executing. Expressions nested deeper than Python allows are reported as NESTING_DEPTH at the deepest node reached.
    """
    MAX_DEPTH = 200

    def __init__(self, output=None):
        self.output = output
        self.depth = 0

        self._statements = {
            Print: self.exec_print,
            Assignment: self.exec_assignment,
            If: self.exec_if,
            While: self.exec_while,
            FunctionDef: self.exec_function_def,
            Return: self.exec_return,
            Break: self.exec_break,
            Continue: self.exec_continue,
            ExpressionStatement: self.exec_expression,
        }
        self._expressions = {
            Literal: self.eval_literal,
            Identifier: self.eval_identifier,
            BinaryOp: self.eval_binary,
            UnaryOp: self.eval_unary,
            Call: self.eval_call,
        }

    def write(self, text):
        output = self.output if self.output is not None else sys.stdout
        output.write(text)

    def execute(self, program, environment=None):
        """Runs program in environment (a fresh global frame if None) and returns that environment."""
        if environment is None:
            environment = Environment()

        allow_deep_trees()

        self.depth = 0
        try:
            self.execute_block(program.statements, environment)
        except ReturnSignal as signal:
            raise signal.misplaced("function")
        except (BreakSignal, ContinueSignal) as signal:
            raise signal.misplaced("loop")
        return environment

    def execute_block(self, statements, environment):
        for statement in statements:
            self.execute_statement(statement, environment)

    def execute_statement(self, statement, environment):
        try:
            self._statements[type(statement)](statement, environment)
        except ExecutionError as error:
            error.locate(statement.line, statement.column)
            raise
        except RecursionError:
            raise ExecutionError(Fault.NESTING_DEPTH, TOO_DEEP, statement.line, statement.column) from None

    def evaluate(self, expression, environment):
        try:
            return self._expressions[type(expression)](expression, environment)
        except ExecutionError as error:
            error.locate(expression.line, expression.column)
            raise
        except RecursionError:
            raise ExecutionError(Fault.NESTING_DEPTH, TOO_DEEP, expression.line, expression.column) from None

    # statements

    def exec_print(self, statement, environment):
        values = [self.evaluate(arg, environment) for arg in statement.args]
        if not values:
            self.write("\n")
        for value in values:
            self.write(to_text(value) + "\n")

    def exec_assignment(self, statement, environment):
        environment.assign(statement.name, self.evaluate(statement.value, environment))

    def exec_if(self, statement, environment):
        for condition, block in statement.branches:
            if is_truthy(self.evaluate(condition, environment)):
                self.execute_block(block, environment)
                return

        if statement.else_block is not None:
            self.execute_block(statement.else_block, environment)

    def exec_while(self, statement, environment):
        while is_truthy(self.evaluate(statement.condition, environment)):
            try:
                self.execute_block(statement.body, environment)
            except BreakSignal:
                break
            except ContinueSignal:
                continue

    def exec_function_def(self, statement, environment):
        function = Function(statement.name, statement.params, statement.body, environment)
        environment.define(statement.name, function)

    def exec_return(self, statement, environment):
        value = None
        if statement.value is not None:
            value = self.evaluate(statement.value, environment)
        raise ReturnSignal(statement, value)

    def exec_break(self, statement, environment):
        raise BreakSignal(statement)

    def exec_continue(self, statement, environment):
        raise ContinueSignal(statement)

    def exec_expression(self, statement, environment):
        self.evaluate(statement.expression, environment)

    # expressions

    def eval_literal(self, expression, environment):
        return expression.value

    def eval_identifier(self, expression, environment):
        return environment.get(expression.name)

    def eval_binary(self, expression, environment):
        left = self.evaluate(expression.left, environment)

        if expression.op == "&&":
            return is_truthy(left) and is_truthy(self.evaluate(expression.right, environment))
        elif expression.op == "||":
            return is_truthy(left) or is_truthy(self.evaluate(expression.right, environment))

        right = self.evaluate(expression.right, environment)
        return binary(expression.op, left, right)

    def eval_unary(self, expression, environment):
        return unary(expression.op, self.evaluate(expression.operand, environment))

    def eval_call(self, expression, environment):
        callee = self.evaluate(expression.callee, environment)
        if not isinstance(callee, Function):
            raise ExecutionError(Fault.NOT_CALLABLE, f"{kind_of(callee).value} value is not callable")

        if len(expression.args) != len(callee.params):
            msg = f"{callee.name}() takes {len(callee.params)} argument(s) but {len(expression.args)} were given"
            raise ExecutionError(Fault.ARITY_MISMATCH, msg)

        args = [self.evaluate(arg, environment) for arg in expression.args]
        return self.invoke(callee, args)

    def invoke(self, function, args):
        """Calls function with already evaluated args in a new frame enclosed by the function's closure."""
        if self.depth >= Interpreter.MAX_DEPTH:
            raise ExecutionError(Fault.CALL_DEPTH, f"maximum call depth ({Interpreter.MAX_DEPTH}) exceeded in "
                                                   f"{function.name}()")

        frame = function.closure.child()
        for param, arg in zip(function.params, args):
            frame.define(param, arg)

        self.depth += 1
        try:
            self.execute_block(function.body, frame)
        except ReturnSignal as signal:
            return signal.value
        except (BreakSignal, ContinueSignal) as signal:
            raise signal.misplaced("loop")
        finally:
            self.depth -= 1
        return None
