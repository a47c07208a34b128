"""Abstract syntax tree of Loa programs.

Formally, Loa can be defined as

```
<program>     ::= <statement>*
<statement>   ::= "print" "(" [<expr> ("," <expr>)*] ")"         ; Print
                | <name> "=" <expr>                              ; Assignment
                | "if" <expr> ":" <block>
                  ("else" "if" <expr> ":" <block>)*
                  ["else" ":" <block>]                           ; If
                | "while" <expr> ":" <block>                     ; While
                | "fun" <name> "(" [<name> ("," <name>)*] ")" ":" <block>  ; FunctionDef
                | "return" [<expr>]                              ; Return
                | "break" | "continue"                           ; Break, Continue
                | <expr>                                         ; ExpressionStatement
<expr>        ::= <literal> | <name> | <expr> <op> <expr> | <op> <expr> | <expr> "(" [<expr> ("," <expr>)*] ")"
```

Every node records the line and column it started at; positions are left out of equality, so a program and the
re-parsed rendering of that program compare equal.
"""

import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from loa.core import numerical


INDENT = "    "

# trees are parsed and walked recursively, a dozen or so Python frames per level of nesting
RECURSION_LIMIT = 10000
TOO_DEEP = "code is nested too deeply"


def allow_deep_trees():
    """Raises Python's recursion limit to RECURSION_LIMIT if it is lower. Never lowers it."""
    if sys.getrecursionlimit() < RECURSION_LIMIT:
        sys.setrecursionlimit(RECURSION_LIMIT)

# binding power of binary operators, loosest first
PRECEDENCE = {
    "||": 1,
    "&&": 2,
    "==": 3, "!=": 3,
    "<": 4, "<=": 4, ">": 4, ">=": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6, "%": 6,
}
UNARY_PRECEDENCE = 7
CALL_PRECEDENCE = 8


@dataclass
class Node:
    line: int = field(default=0, compare=False, repr=False, kw_only=True)
    column: int = field(default=0, compare=False, repr=False, kw_only=True)


class Expression(Node):
    """Base of expression nodes. render returns source text with the minimum parentheses needed."""
    precedence = CALL_PRECEDENCE

    def render(self):
        raise NotImplementedError()

    def render_operand(self, operand, precedence):
        """Renders operand, wrapped in parentheses if it binds looser than precedence."""
        if operand.precedence < precedence:
            return f"({operand.render()})"
        return operand.render()


class Statement(Node):
    """Base of statement nodes. render returns source lines at the given indentation depth."""

    def render(self, indents=0):
        raise NotImplementedError()


def render_string(text):
    escaped = text.replace("\\", "\\\\").replace("\"", "\\\"").replace("\n", "\\n").replace("\t", "\\t")
    return f"\"{escaped}\""


def render_block(statements, indents):
    return "\n".join(statement.render(indents) for statement in statements)


@dataclass
class Literal(Expression):
    value: object

    def render(self):
        if self.value is None:
            return "nil"
        elif isinstance(self.value, bool):
            return "true" if self.value else "false"
        elif isinstance(self.value, float):
            return numerical.to_literal(self.value)
        return render_string(self.value)


@dataclass
class Identifier(Expression):
    name: str

    def render(self):
        return self.name


@dataclass
class BinaryOp(Expression):
    op: str
    left: Expression
    right: Expression

    @property
    def precedence(self):
        return PRECEDENCE[self.op]

    def render(self):
        # left-associative: an equally binding right operand needs parentheses
        left = self.render_operand(self.left, self.precedence)
        right = self.render_operand(self.right, self.precedence + 1)
        return f"{left} {self.op} {right}"


@dataclass
class UnaryOp(Expression):
    op: str
    operand: Expression
    precedence = UNARY_PRECEDENCE

    def render(self):
        return self.op + self.render_operand(self.operand, UNARY_PRECEDENCE)


@dataclass
class Call(Expression):
    callee: Expression
    args: List[Expression]

    def render(self):
        args = ", ".join(arg.render() for arg in self.args)
        return f"{self.render_operand(self.callee, CALL_PRECEDENCE)}({args})"


@dataclass
class Print(Statement):
    args: List[Expression]

    def render(self, indents=0):
        args = ", ".join(arg.render() for arg in self.args)
        return f"{INDENT * indents}print({args})"


@dataclass
class Assignment(Statement):
    name: str
    value: Expression

    def render(self, indents=0):
        return f"{INDENT * indents}{self.name} = {self.value.render()}"


@dataclass
class If(Statement):
    """if/else if/else chain. branches is an ordered list of (condition, block) pairs."""
    branches: List[Tuple[Expression, List[Statement]]]
    else_block: Optional[List[Statement]] = None

    def render(self, indents=0):
        lines = []
        for idx, (condition, block) in enumerate(self.branches):
            keyword = "if" if idx == 0 else "else if"
            lines.append(f"{INDENT * indents}{keyword} ({condition.render()}):")
            lines.append(render_block(block, indents + 1))

        if self.else_block is not None:
            lines.append(f"{INDENT * indents}else:")
            lines.append(render_block(self.else_block, indents + 1))
        return "\n".join(lines)


@dataclass
class While(Statement):
    condition: Expression
    body: List[Statement]

    def render(self, indents=0):
        header = f"{INDENT * indents}while ({self.condition.render()}):"
        return header + "\n" + render_block(self.body, indents + 1)


@dataclass
class FunctionDef(Statement):
    name: str
    params: List[str]
    body: List[Statement]

    def render(self, indents=0):
        header = f"{INDENT * indents}fun {self.name}({', '.join(self.params)}):"
        return header + "\n" + render_block(self.body, indents + 1)


@dataclass
class Return(Statement):
    value: Optional[Expression] = None

    def render(self, indents=0):
        if self.value is None:
            return f"{INDENT * indents}return"
        return f"{INDENT * indents}return {self.value.render()}"


@dataclass
class Break(Statement):

    def render(self, indents=0):
        return f"{INDENT * indents}break"


@dataclass
class Continue(Statement):

    def render(self, indents=0):
        return f"{INDENT * indents}continue"


@dataclass
class ExpressionStatement(Statement):
    expression: Expression

    def render(self, indents=0):
        return INDENT * indents + self.expression.render()


@dataclass
class Program(Node):
    statements: List[Statement]

    def render(self):
        """Returns canonical source of the whole program: re-parsing it yields an equal Program."""
        if not self.statements:
            return ""
        return render_block(self.statements, 0) + "\n"
