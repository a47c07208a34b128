"""Numbers in Loa. Every number is a Python float (a float64), whether or not its literal has a decimal point.

This module only knows about numbers: checking that operands actually are numbers is done in values.py.
"""

import operator
from decimal import Decimal

from loa.lang.error import ExecutionError, Fault


EXACT_LIMIT = 1e16  # beyond this, not every integer is representable, so integral floats keep their exponent form


def to_text(number):
    """Returns shortest decimal representation of number: integral values are shown without a fraction."""
    if number.is_integer() and abs(number) < EXACT_LIMIT:
        return str(int(number))
    return repr(number)


def to_literal(number):
    """Returns number as source text the lexer accepts (digits with at most one decimal point, no exponent)."""
    if number.is_integer():
        return str(int(number))
    return format(Decimal(repr(number)), "f")


def divide(left, right):
    if right == 0:
        raise ExecutionError(Fault.DIVISION_BY_ZERO, "division by zero")
    return left / right


def modulo(left, right):
    """Floored modulo: the result takes the sign of right."""
    if right == 0:
        raise ExecutionError(Fault.DIVISION_BY_ZERO, "modulo by zero")
    return left % right


ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": divide,
    "%": modulo,
}
