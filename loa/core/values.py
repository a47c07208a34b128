"""Runtime values of Loa and the rules for combining them.

Values are plain Python objects, tagged by Kind:

```
Number    ; float
String    ; str
Boolean   ; bool
Nil       ; None
Function  ; Function (user-defined, closes over its defining Environment)
```

Values are immutable: operators always produce new values. The only implicit conversion is to text, done by `+` when
either operand is a String; everything else that doesn't fit the tables below is a type mismatch.
"""

import operator
from dataclasses import dataclass, field
from enum import Enum

from loa.core import numerical
from loa.lang.error import ExecutionError, Fault


class Kind(Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    FUNCTION = "function"
    NIL = "nil"


@dataclass(eq=False)
class Function:
    """User-defined function. Compared by identity."""
    name: str
    params: list
    body: list = field(repr=False)
    closure: object = field(repr=False)  # Environment the function was defined in

    def __str__(self):
        return f"<fun {self.name}>"


def kind_of(value):
    """Returns Kind of value. bool is checked before float since Python treats booleans as numbers."""
    if value is None:
        return Kind.NIL
    if isinstance(value, bool):
        return Kind.BOOLEAN
    if isinstance(value, float):
        return Kind.NUMBER
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, Function):
        return Kind.FUNCTION
    raise TypeError(f"not a Loa value: {value!r}")


def is_truthy(value):
    """false, nil and the number 0 are falsy; everything else (including the empty string) is truthy."""
    if value is None or value is False:
        return False
    if kind_of(value) is Kind.NUMBER:
        return value != 0
    return True


def to_text(value):
    """Canonical text of value, as written by print."""
    kind = kind_of(value)
    if kind is Kind.NUMBER:
        return numerical.to_text(value)
    elif kind is Kind.BOOLEAN:
        return "true" if value else "false"
    elif kind is Kind.NIL:
        return "nil"
    return str(value)


def mismatch(op, *operands):
    kinds = " and ".join(kind_of(value).value for value in operands)
    return ExecutionError(Fault.TYPE_MISMATCH, f"unsupported operand type(s) for '{op}': {kinds}")


def equals(left, right):
    """Values of different kinds are never equal; functions are equal only to themselves."""
    if kind_of(left) is not kind_of(right):
        return False
    if kind_of(left) is Kind.FUNCTION:
        return left is right
    return left == right


COMPARISONS = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def binary(op, left, right):
    """Applies binary operator op (anything but the short-circuiting '&&' and '||') to two evaluated operands."""
    if op == "==":
        return equals(left, right)
    if op == "!=":
        return not equals(left, right)

    left_kind, right_kind = kind_of(left), kind_of(right)

    if op in COMPARISONS:
        if left_kind is not right_kind or left_kind not in (Kind.NUMBER, Kind.STRING):
            raise mismatch(op, left, right)
        return COMPARISONS[op](left, right)

    if op == "+" and Kind.STRING in (left_kind, right_kind):
        return to_text(left) + to_text(right)

    if op in numerical.ARITHMETIC:
        if left_kind is not Kind.NUMBER or right_kind is not Kind.NUMBER:
            raise mismatch(op, left, right)
        return numerical.ARITHMETIC[op](left, right)

    raise ValueError(f"unknown binary operator '{op}'")


def unary(op, operand):
    """Applies unary operator op to an evaluated operand."""
    if op == "!":
        return not is_truthy(operand)
    if op == "-":
        if kind_of(operand) is not Kind.NUMBER:
            raise mismatch(op, operand)
        return -operand
    raise ValueError(f"unknown unary operator '{op}'")
