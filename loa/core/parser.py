"""Recursive-descent parser for Loa: converts a token stream into a Program (see grammar.py for the node types).

Expressions are parsed one precedence tier per method, loosest first:

```
or              ; ||
and             ; &&
equality        ; == !=
relational      ; < <= > >=
additive        ; + -
multiplicative  ; * / %
unary           ; - !        (prefix, right-recursive)
call            ; f(args)    (postfix, may chain: f(1)(2))
primary         ; literal, name, parenthesised expression
```

All binary operators are left-associative. Assignment is a statement, not an expression. Parsing stops at the first
grammar violation with a ParseError that says what was expected and what was found.
"""

from loa.core.grammar import (
    TOO_DEEP, Assignment, BinaryOp, Break, Call, Continue, ExpressionStatement, FunctionDef, Identifier, If, Literal,
    Print, Program, Return, UnaryOp, While, allow_deep_trees,
)
from loa.core.lexical import TokenType
from loa.lang.error import ParseError


class Parser:
    """Consumes tokens lazily, buffering only as much lookahead as is needed (two tokens at most)."""
    LITERALS = {"true": True, "false": False, "nil": None}

    def __init__(self, tokens):
        self.tokens = iter(tokens)
        self.buffer = []
        self.previous = None  # last consumed token

    def peek(self, offset=0):
        """Returns token offset positions ahead without consuming it. The stream ends with EOF, which repeats."""
        while len(self.buffer) <= offset:
            if self.buffer and self.buffer[-1].type is TokenType.EOF:
                return self.buffer[-1]
            self.buffer.append(next(self.tokens))
        return self.buffer[offset]

    @property
    def current(self):
        return self.peek()

    def advance(self):
        token = self.peek()
        if token.type is not TokenType.EOF:
            self.buffer.pop(0)
        self.previous = token
        return token

    def check(self, token_type, lexeme=None, offset=0):
        token = self.peek(offset)
        return token.type is token_type and (lexeme is None or token.lexeme == lexeme)

    def match(self, token_type, lexeme=None):
        """Consumes and returns current token if it matches, else returns None."""
        if self.check(token_type, lexeme):
            return self.advance()
        return None

    def error(self, expected, message=None, token=None):
        token = token or self.current
        return ParseError(expected, token.describe(), token.line, token.column, message)

    def expect(self, token_type, lexeme=None, expected=None):
        """Consumes current token, raising a ParseError if it doesn't match."""
        if not self.check(token_type, lexeme):
            raise self.error(expected or (f"'{lexeme}'" if lexeme else token_type.value))
        return self.advance()

    def parse(self):
        """Parses whole token stream. This is the only method callers need."""
        allow_deep_trees()

        statements = []
        try:
            while not self.check(TokenType.EOF):
                statements.extend(self.statement())
        except RecursionError:
            # the token stream may have died with the stack, so only buffered tokens are safe to look at
            token = self.buffer[0] if self.buffer else self.previous
            raise ParseError("less deeply nested code", token.describe(), token.line, token.column, TOO_DEEP)
        return Program(statements, line=1, column=1)

    # statements

    def statement(self):
        """Parses one statement line. Returns a list, since a simple line may hold several ';'-separated statements."""
        if self.check(TokenType.KEYWORD, "if"):
            return [self.if_statement()]
        elif self.check(TokenType.KEYWORD, "while"):
            return [self.while_statement()]
        elif self.check(TokenType.KEYWORD, "fun"):
            return [self.function_def()]
        elif self.check(TokenType.INDENT):
            raise self.error("statement", "unexpected indent")
        return self.simple_line()

    def simple_line(self):
        statements = [self.simple_statement()]
        while self.match(TokenType.PUNCTUATION, ";"):
            if self.check(TokenType.NEWLINE):
                break
            statements.append(self.simple_statement())
        self.expect(TokenType.NEWLINE, expected="end of line")
        return statements

    def simple_statement(self):
        token = self.current

        if self.check(TokenType.KEYWORD, "print"):
            return self.print_statement()

        elif self.check(TokenType.KEYWORD, "return"):
            self.advance()
            value = None
            if not (self.check(TokenType.NEWLINE) or self.check(TokenType.PUNCTUATION, ";")):
                value = self.expression()
            return Return(value, line=token.line, column=token.column)

        elif self.match(TokenType.KEYWORD, "break"):
            return Break(line=token.line, column=token.column)

        elif self.match(TokenType.KEYWORD, "continue"):
            return Continue(line=token.line, column=token.column)

        elif self.check(TokenType.IDENTIFIER) and self.check(TokenType.OPERATOR, "=", offset=1):
            self.advance()
            self.advance()
            value = self.expression()
            return Assignment(token.lexeme, value, line=token.line, column=token.column)

        expression = self.expression()
        if self.check(TokenType.OPERATOR, "="):
            raise self.error("end of line", "left side of assignment must be a variable")
        return ExpressionStatement(expression, line=token.line, column=token.column)

    def print_statement(self):
        token = self.advance()
        self.expect(TokenType.PUNCTUATION, "(")
        args = self.arguments()
        return Print(args, line=token.line, column=token.column)

    def if_statement(self):
        token = self.advance()
        branches = [(self.expression(), self.body())]
        else_block = None

        while self.match(TokenType.KEYWORD, "else"):
            if self.match(TokenType.KEYWORD, "if"):
                branches.append((self.expression(), self.body()))
            else:
                else_block = self.body()
                break

        return If(branches, else_block, line=token.line, column=token.column)

    def while_statement(self):
        token = self.advance()
        condition = self.expression()
        return While(condition, self.body(), line=token.line, column=token.column)

    def function_def(self):
        token = self.advance()
        name = self.expect(TokenType.IDENTIFIER, expected="function name").lexeme
        self.expect(TokenType.PUNCTUATION, "(")

        params = []
        if not self.check(TokenType.PUNCTUATION, ")"):
            while True:
                param = self.expect(TokenType.IDENTIFIER, expected="parameter name")
                if param.lexeme in params:
                    raise self.error("parameter name", f"duplicate parameter '{param.lexeme}'", param)
                params.append(param.lexeme)
                if not self.match(TokenType.PUNCTUATION, ","):
                    break
        self.expect(TokenType.PUNCTUATION, ")")

        return FunctionDef(name, params, self.body(), line=token.line, column=token.column)

    def body(self):
        """Parses ':' followed by a block: either an indented suite or simple statements on the same line."""
        self.expect(TokenType.PUNCTUATION, ":")
        if not self.match(TokenType.NEWLINE):
            return self.simple_line()

        self.expect(TokenType.INDENT, expected="indented block")
        statements = []
        while not self.match(TokenType.DEDENT):
            statements.extend(self.statement())
        return statements

    # expressions

    def expression(self):
        return self.logical_or()

    def binary(self, operators, operand):
        """Parses a left-associative chain of operand separated by any of operators."""
        left = operand()
        while self.current.type is TokenType.OPERATOR and self.current.lexeme in operators:
            token = self.advance()
            right = operand()
            left = BinaryOp(token.lexeme, left, right, line=token.line, column=token.column)
        return left

    def logical_or(self):
        return self.binary(("||",), self.logical_and)

    def logical_and(self):
        return self.binary(("&&",), self.equality)

    def equality(self):
        return self.binary(("==", "!="), self.relational)

    def relational(self):
        return self.binary(("<", "<=", ">", ">="), self.additive)

    def additive(self):
        return self.binary(("+", "-"), self.multiplicative)

    def multiplicative(self):
        return self.binary(("*", "/", "%"), self.unary)

    def unary(self):
        if self.check(TokenType.OPERATOR, "-") or self.check(TokenType.OPERATOR, "!"):
            token = self.advance()
            return UnaryOp(token.lexeme, self.unary(), line=token.line, column=token.column)
        return self.call()

    def call(self):
        expression = self.primary()
        while self.match(TokenType.PUNCTUATION, "("):
            expression = Call(expression, self.arguments(), line=expression.line, column=expression.column)
        return expression

    def arguments(self):
        """Parses comma-separated expressions up to and including the closing ')'. The '(' is already consumed."""
        args = []
        if not self.check(TokenType.PUNCTUATION, ")"):
            args.append(self.expression())
            while self.match(TokenType.PUNCTUATION, ","):
                args.append(self.expression())
        self.expect(TokenType.PUNCTUATION, ")", expected="',' or ')'" if args else "')'")
        return args

    def primary(self):
        token = self.current

        if token.type in (TokenType.NUMBER, TokenType.STRING):
            self.advance()
            return Literal(token.value, line=token.line, column=token.column)

        elif token.type is TokenType.KEYWORD and token.lexeme in Parser.LITERALS:
            self.advance()
            return Literal(Parser.LITERALS[token.lexeme], line=token.line, column=token.column)

        elif token.type is TokenType.IDENTIFIER:
            self.advance()
            return Identifier(token.lexeme, line=token.line, column=token.column)

        elif self.match(TokenType.PUNCTUATION, "("):
            expression = self.expression()
            self.expect(TokenType.PUNCTUATION, ")")
            return expression

        raise self.error("expression")


def parse(tokens):
    """Returns Program parsed from tokens (any iterable of Tokens ending with EOF). Raises ParseError."""
    return Parser(tokens).parse()
