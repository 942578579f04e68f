"""Tree-walking evaluation of madx syntax trees.

Values are 32-bit signed integers (Python ints, wrapped after every operation) or floats. Integer division truncates
toward zero and the remainder takes the sign of the dividend, as in C. Bitwise operators and shifts are only defined
on integers: float operands are truncated to integers, the integer operator is applied, and the result is converted
back to a float. This is lossy and does not look at the float's bit pattern.
"""

import math
import operator

from madx.lang.error import DivisionByZero, InvalidAssignment, ShiftOverflow, UndefinedVariable
from madx.lang.grammar import Operation
from madx.lang.lexical import INT_MAX


INT_BITS = 32
INT_MIN = -INT_MAX - 1


def wrap(num):
    """Wraps num around to a 32-bit signed integer."""
    return (num - INT_MIN) % 2 ** INT_BITS + INT_MIN


def truncate(num):
    """Converts a float to an integer: toward zero, saturating at the integer bounds, NaN becomes 0."""
    if math.isnan(num):
        return 0
    if num >= INT_MAX:
        return INT_MAX
    if num <= INT_MIN:
        return INT_MIN
    return int(num)


def divide(left, right):
    if right == 0:
        raise DivisionByZero()

    if isinstance(left, int) and isinstance(right, int):
        quotient = abs(left) // abs(right)
        return quotient if (left < 0) == (right < 0) else -quotient
    return left / right


def modulo(left, right):
    if right == 0:
        raise DivisionByZero()

    if isinstance(left, int) and isinstance(right, int):
        return left - right * divide(left, right)
    if math.isinf(left):
        return math.nan  # fmod(inf, y) is NaN in C, math.fmod raises instead
    return math.fmod(left, right)


def shift_left(left, right):
    if not 0 <= right < INT_BITS:
        raise ShiftOverflow(right)
    return left << right


def shift_right(left, right):
    if not 0 <= right < INT_BITS:
        raise ShiftOverflow(right)
    return left >> right


ARITHMETIC = {
    Operation.ADD: operator.add,
    Operation.SUBTRACT: operator.sub,
    Operation.MULTIPLY: operator.mul,
    Operation.DIVIDE: divide,
    Operation.MODULO: modulo,
}

BITWISE = {
    Operation.LSHIFT: shift_left,
    Operation.RSHIFT: shift_right,
    Operation.BITAND: operator.and_,
    Operation.BITOR: operator.or_,
    Operation.BITXOR: operator.xor,
}


def arithmetic(fn, left, right):
    result = fn(left, right)
    return wrap(result) if isinstance(result, int) else result


def bitwise(fn, left, right):
    if isinstance(left, float) or isinstance(right, float):
        return float(wrap(fn(as_int(left), as_int(right))))
    return wrap(fn(left, right))


def as_int(num):
    return truncate(num) if isinstance(num, float) else num


def evaluate(tree, variables):
    """Evaluates tree post-order and returns its value. variables (name: value) is read by identifiers and written by
    assignments. Raises an EvaluationError if the tree cannot be evaluated.
    """
    op = tree.op

    if op in (Operation.NUMBER, Operation.FLOAT):
        return tree.value

    if op is Operation.IDENT:
        if tree.value not in variables:
            raise UndefinedVariable(tree.value)
        return variables[tree.value]

    if op is Operation.ASSIGN:
        value = evaluate(tree.right, variables)
        if tree.left.op is not Operation.IDENT:
            raise InvalidAssignment()
        variables[tree.left.value] = value
        return variables[tree.left.value]

    if op is Operation.GLUE:
        value = None
        for statement in tree.glued():  # the value of a compound statement is the value of its last statement
            value = evaluate(statement, variables)
        return value

    if op is Operation.NEGATE:
        operand = evaluate(tree.left, variables)
        return -operand if isinstance(operand, float) else wrap(-operand)

    if op is Operation.BITNOT:
        operand = evaluate(tree.left, variables)
        return float(~truncate(operand)) if isinstance(operand, float) else wrap(~operand)

    left = evaluate(tree.left, variables)
    right = evaluate(tree.right, variables)
    if op in ARITHMETIC:
        return arithmetic(ARITHMETIC[op], left, right)
    return bitwise(BITWISE[op], left, right)
