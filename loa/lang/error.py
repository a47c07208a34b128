"""Error handling for the Loa language. Only LoaErrors should be encountered while running a program: if another type
of error is raised and makes it all the way to ErrorHandler, it is assumed to be an internal issue.

Errors come in three kinds, ordered by the phase that raises them:

```
LexError        ; malformed token: bad number, unterminated string, unknown character, broken indentation
ParseError      ; grammar violation, carries what was expected and what was found instead
ExecutionError  ; runtime fault: undefined variable, type mismatch, bad call, division by zero, stray return/break
```

All of them are fatal to the current run and carry the (1-based) line and column they refer to.
"""

import sys
from enum import Enum

from termcolor import colored


class ErrorKind(Enum):
    """Phase that produced a LoaError."""
    LEX = "lex"
    SYNTAX = "syntax"
    RUNTIME = "runtime"


class Fault(Enum):
    """Reason an ExecutionError was raised."""
    UNDEFINED_VARIABLE = "undefined variable"
    TYPE_MISMATCH = "type mismatch"
    NOT_CALLABLE = "not callable"
    ARITY_MISMATCH = "arity mismatch"
    DIVISION_BY_ZERO = "division by zero"
    INVALID_CONTROL_FLOW = "invalid control flow"
    CALL_DEPTH = "call depth exceeded"
    NESTING_DEPTH = "nesting too deep"


class LoaError(Exception):
    """Base of every error a Loa program can produce. kind is None for errors raised by the host layer (e.g. a file
    that can't be read) rather than by one of the interpreter phases.
    """
    kind = None

    def __init__(self, message, line=None, column=None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def locate(self, line, column):
        """Sets position of error if it doesn't have one yet. Innermost caller wins, so the first call sticks."""
        if self.line is None:
            self.line = line
            self.column = column
        return self

    @property
    def position(self):
        return self.line, self.column

    def __str__(self):
        if self.line is None:
            return self.message
        return f"{self.line}:{self.column}: {self.message}"


class LexError(LoaError):
    """Raised by the lexer on a malformed token."""
    kind = ErrorKind.LEX


class ParseError(LoaError):
    """Raised by the parser on the first grammar violation. expected and found are human-readable descriptions."""
    kind = ErrorKind.SYNTAX

    def __init__(self, expected, found, line=None, column=None, message=None):
        if message is None:
            message = f"expected {expected}, found {found}"
        super().__init__(message, line, column)

        self.expected = expected
        self.found = found


class ExecutionError(LoaError):
    """Raised by the evaluator. fault is the Fault that caused it."""
    kind = ErrorKind.RUNTIME

    def __init__(self, fault, message, line=None, column=None):
        super().__init__(message, line, column)
        self.fault = fault


class ErrorHandler:
    """Context manager that reports Loa errors. Any other exception is reported as internal and re-raised."""
    ERROR = "red"

    def __init__(self, fatal=True):
        self.fatal = fatal
        self.sources = {}  # path: source text, used to show the offending line
        self.path = None   # path of the source currently being run

    def register_file(self, path, source):
        """Registers source under path. Should be called prior to running source."""
        self.sources[path] = source
        self.path = path

    @staticmethod
    def diagnose(line, column):
        """Returns line with a caret under column, highlighted and bolded."""
        diagnosis = "  " + line.expandtabs(1) + "\n"
        diagnosis += "  " + " " * (column - 1)
        diagnosis += colored("^", ErrorHandler.ERROR, attrs=["bold"])
        return diagnosis

    def offending_line(self, error):
        """Returns source line that error refers to, or None if it can't be found."""
        source = self.sources.get(self.path)
        if source is None or error.line is None:
            return None

        lines = source.split("\n")  # only \n ends a line, as in the lexer
        if 0 < error.line <= len(lines):
            return lines[error.line - 1]
        return None

    def throw(self, error, internal=False):
        """Reports error, which must be a LoaError. Exits with status 1 if fatal."""
        location = self.path or "<input>"
        if error.line is not None:
            location += f":{error.line}:{error.column}"
        error_msg = colored(f"{location}: ", attrs=["bold"])

        if internal:
            error_msg += colored("[internal] ", ErrorHandler.ERROR, attrs=["bold"])

        label = f"{error.kind.value} error: " if error.kind else "error: "
        error_msg += colored(label, ErrorHandler.ERROR, attrs=["bold"]) + error.message
        print(error_msg, file=sys.stderr)

        line = self.offending_line(error)
        if line is not None and not internal:
            print(ErrorHandler.diagnose(line, error.column), file=sys.stderr)

        if self.fatal:
            sys.exit(1)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        do_exit = False
        if exc_type is KeyboardInterrupt:
            self.throw(LoaError("keyboard interrupt"))
        elif exc_type is SystemExit:
            do_exit = True
        elif exc_type is RecursionError:
            self.throw(LoaError("maximum recursion depth exceeded"))
        elif exc_type is not None and issubclass(exc_type, LoaError):
            self.throw(exc_val)
        elif exc_type is not None:
            self.throw(LoaError(f"unknown error: '{exc_type.__name__}: {exc_val}'"), internal=True)
            do_exit = True

        return not do_exit
