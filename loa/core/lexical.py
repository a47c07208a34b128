"""Lexical analysis for Loa: converts source text into a lazy stream of Tokens.

Loa is line-oriented and indentation-significant. The lexer turns layout into explicit tokens so that the parser never
has to look at raw whitespace:

```
NEWLINE  ; ends every logical line that produced at least one token
INDENT   ; first token of a logical line sits deeper than the enclosing block
DEDENT   ; one per block closed by a shallower line (must land on an enclosing level)
EOF      ; always last, preceded by a final NEWLINE and the DEDENTs needed to get back to column 1
```

Blank lines and comment-only lines (`// ...` or `/* ... */`) produce nothing, and newlines inside parentheses are
ignored, so an argument list may span several lines. Indentation is the whitespace a logical line starts with, up to
its first token or comment, and must be made of spaces.
"""

from dataclasses import dataclass
from enum import Enum

from loa.lang.error import LexError


class TokenType(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    NEWLINE = "end of line"
    INDENT = "indent"
    DEDENT = "dedent"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    """A single token. lexeme is the source text, value the decoded payload (float for numbers, text for strings)."""
    type: TokenType
    lexeme: str
    value: object = None
    line: int = 1
    column: int = 1

    def describe(self):
        """Human-readable description used in syntax errors."""
        if self.type in (TokenType.NEWLINE, TokenType.INDENT, TokenType.DEDENT, TokenType.EOF):
            return self.type.value
        return f"'{self.lexeme}'"


def is_digit(char):
    return char is not None and "0" <= char <= "9"


def is_name_first(char):
    return char is not None and (char.isalpha() or char == "_")


def is_name_rest(char):
    return char is not None and (char.isalnum() or char == "_")


class Lexer:
    """Single-pass, forward-only scanner. Iterating over a Lexer yields its Tokens lazily; a Lexer can only be
    iterated once, call tokenize for a fresh scan.
    """
    KEYWORDS = {"if", "else", "while", "fun", "return", "print", "true", "false", "nil", "break", "continue"}
    OPERATORS = ["==", "!=", "<=", ">=", "&&", "||", "+", "-", "*", "/", "%", "=", "<", ">", "!"]  # longest first
    PUNCTUATION = "(),:;"
    ESCAPES = {"n": "\n", "t": "\t", "\"": "\"", "\\": "\\"}

    def __init__(self, source):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.line_begin = 0  # index where the current physical line starts

        self.levels = [0]    # indentation stack
        self.depth = 0       # parenthesis nesting, newlines are ignored while > 0

    def __iter__(self):
        return self.tokens()

    def peek(self, offset=0):
        pos = self.pos + offset
        if pos < len(self.source):
            return self.source[pos]
        return None

    def advance(self):
        char = self.source[self.pos]
        self.pos += 1
        if char == "\n":
            self.line += 1
            self.column = 1
            self.line_begin = self.pos
        else:
            self.column += 1
        return char

    def tokens(self):
        """Generates all tokens of self.source, ending with EOF."""
        line_open = False  # whether the current logical line has produced tokens
        leading = ""       # whitespace the current physical line starts with

        while True:
            if not line_open and self.pos == self.line_begin:
                leading = self.leading_space()
            self.skip_space()

            char = self.peek()
            if char is None:
                break

            if char == "\n":
                line, column = self.line, self.column
                self.advance()
                if line_open and self.depth == 0:
                    yield Token(TokenType.NEWLINE, "\n", None, line, column)
                    line_open = False
                continue

            if not line_open:
                yield from self.indentation(leading)
                line_open = True

            yield self.scan_token()

        if line_open:
            yield Token(TokenType.NEWLINE, "", None, self.line, self.column)
        while len(self.levels) > 1:
            self.levels.pop()
            yield Token(TokenType.DEDENT, "", None, self.line, self.column)
        yield Token(TokenType.EOF, "", None, self.line, self.column)

    def leading_space(self):
        """Returns the spaces and tabs at the current position, without consuming them."""
        end = self.pos
        while end < len(self.source) and self.source[end] in " \t":
            end += 1
        return self.source[self.pos:end]

    def indentation(self, leading):
        """Generates INDENT/DEDENT tokens for a logical line whose first token is at the current position. leading is
        the whitespace its first physical line starts with; comments after it don't count as indentation.
        """
        if "\t" in leading:
            raise LexError("tabs are not allowed in indentation", self.line, leading.index("\t") + 1)

        width = len(leading)
        if width > self.levels[-1]:
            self.levels.append(width)
            yield Token(TokenType.INDENT, leading, None, self.line, 1)
            return

        while width < self.levels[-1]:
            self.levels.pop()
            yield Token(TokenType.DEDENT, "", None, self.line, self.column)

        if width != self.levels[-1]:
            raise LexError("inconsistent dedent: indentation does not match any enclosing block", self.line,
                           self.column)

    def skip_space(self):
        """Skips spaces, tabs, carriage returns and comments, but not newlines."""
        while True:
            char = self.peek()
            if char in (" ", "\t", "\r"):
                self.advance()
            elif char == "/" and self.peek(1) == "/":
                while self.peek() not in (None, "\n"):
                    self.advance()
            elif char == "/" and self.peek(1) == "*":
                self.skip_block_comment()
            else:
                return

    def skip_block_comment(self):
        line, column = self.line, self.column
        self.advance()
        self.advance()

        while self.peek() is not None:
            if self.peek() == "*" and self.peek(1) == "/":
                self.advance()
                self.advance()
                return
            self.advance()

        raise LexError("unterminated block comment", line, column)

    def scan_token(self):
        """Scans a single non-layout token starting at the current position."""
        line, column = self.line, self.column
        char = self.peek()

        if is_digit(char):
            return self.read_number()
        if char == "\"":
            return self.read_string()
        if is_name_first(char):
            return self.read_name()

        for operator in Lexer.OPERATORS:
            if self.source.startswith(operator, self.pos):
                for __ in operator:
                    self.advance()
                return Token(TokenType.OPERATOR, operator, None, line, column)

        if char in Lexer.PUNCTUATION:
            self.advance()
            if char == "(":
                self.depth += 1
            elif char == ")":
                self.depth = max(self.depth - 1, 0)  # stray ')' is the parser's problem
            return Token(TokenType.PUNCTUATION, char, None, line, column)

        if char in "&|":
            raise LexError(f"unexpected character '{char}' (did you mean '{char * 2}'?)", line, column)
        raise LexError(f"unexpected character '{char}'", line, column)

    def read_number(self):
        start, line, column = self.pos, self.line, self.column

        while is_digit(self.peek()):
            self.advance()

        if self.peek() == ".":
            self.advance()
            if not is_digit(self.peek()):
                raise LexError("malformed number: expected digit after decimal point", self.line, self.column)
            while is_digit(self.peek()):
                self.advance()
            if self.peek() == ".":
                raise LexError("malformed number: more than one decimal point", line, column)

        if is_name_rest(self.peek()):
            bad = self.source[start:self.pos + 1]
            raise LexError(f"malformed number '{bad}'", line, column)

        lexeme = self.source[start:self.pos]
        return Token(TokenType.NUMBER, lexeme, float(lexeme), line, column)

    def read_string(self):
        start, line, column = self.pos, self.line, self.column
        self.advance()  # opening quote

        chars = []
        while True:
            char = self.peek()
            if char is None or char == "\n":
                raise LexError("unterminated string", line, column)
            self.advance()

            if char == "\"":
                break
            elif char == "\\":
                escape = self.peek()
                if escape is None or escape == "\n":
                    raise LexError("unterminated string", line, column)
                if escape not in Lexer.ESCAPES:
                    raise LexError(f"unknown escape sequence '\\{escape}'", self.line, self.column - 1)
                self.advance()
                chars.append(Lexer.ESCAPES[escape])
            else:
                chars.append(char)

        return Token(TokenType.STRING, self.source[start:self.pos], "".join(chars), line, column)

    def read_name(self):
        start, line, column = self.pos, self.line, self.column
        while is_name_rest(self.peek()):
            self.advance()

        name = self.source[start:self.pos]
        token_type = TokenType.KEYWORD if name in Lexer.KEYWORDS else TokenType.IDENTIFIER
        return Token(token_type, name, None, line, column)


def tokenize(source):
    """Returns a lazy iterator over the tokens of source. Raises LexError (when consumed) on malformed input."""
    return iter(Lexer(source))
