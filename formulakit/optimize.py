r"""@package formulakit.optimize

Rewrite based simplification of formula trees.

optimize() walks a tree bottom-up: the children of a node are optimized
first, then the rules for the node itself are applied. For each node the
first matching rule wins, in this order:

    * constant folding (skipped if the computation fails or is not finite)
    * additive identities, like terms (`a+a = 2*a`, `a-a = 0`) and
      normalization of negative right operands (`a+(-k) = a-k`)
    * multiplicative identities, moving numbers to the left
    * division identities
    * power identities, negative exponents, `10^log10(a) = a`, `e^log(a) = a`
    * double negation
    * moving negations out of products and quotients
    * `(-a)^k` for integer `k`
    * special function values and symmetries, e.g. `cos(-a) = cos(a)`

Rules that build a new node from already simplified parts simplify only that
new node again. The result is therefore a fixed point of optimize().
"""

import cmath
import logging

from .errors import EvaluationError
from .functions import FunctionId
from .lexer import Operator
from .nodes import BinaryOp, Call, Number, UnaryMinus, Variable, bottom_up
from .nodes import ZERO, ONE, TWO, MINUS_ONE


__all__ = [
    "optimize",
]


def optimize(node):
    r"""Return a simplified tree equivalent to `node`.

    The given tree is not modified. Unchanged subtrees are reused in the
    result.
    """
    result = bottom_up(node, _rebuild)
    if logging.getLogger().isEnabledFor(logging.DEBUG):
        logging.debug("optimized %d nodes to %d: %s",
                      _size(node), _size(result), result)
    return result


def _size(node):
    return sum(1 for _ in node.traverse_tree(include_root=True))


def _rebuild(node, children):
    if any(new is not old for new, (_, old) in zip(children, node.children())):
        node = node.replace_children(children)
    return _simplify(node)


def _simplify(node):
    r"""Apply the rules to a node whose children are already simplified."""
    if isinstance(node, Call):
        return _simplify_call(node)
    folded = _fold(node)
    if folded is not None:
        return folded
    if isinstance(node, UnaryMinus):
        return _simplify_minus(node)
    if isinstance(node, BinaryOp):
        return _BINARY_RULES[node.op](node)
    return node


def _fold(node):
    children = [child for _, child in node.children()]
    if not children or not all(isinstance(c, Number) for c in children):
        return None
    try:
        value = node.calc(0)
    except (EvaluationError, OverflowError):
        return None
    if not cmath.isfinite(value):
        return None
    return Number(value, pos=node.pos)


def _is_negative(node):
    r"""Whether the node is a negation or a number with negative real part."""
    if isinstance(node, Number):
        return node.value.real < 0
    return isinstance(node, UnaryMinus)


def _negate(node):
    if isinstance(node, Number):
        return Number(-node.value, pos=node.pos)
    if isinstance(node, UnaryMinus):
        return node.operand
    return _simplify(UnaryMinus(node, pos=node.pos))


def _binary(op, l, r, pos=None):
    return _simplify(BinaryOp(op, l, r, pos=pos))


def _is_integer(node):
    if not isinstance(node, Number) or not node.is_real():
        return False
    v = node.value.real
    return cmath.isfinite(v) and v == int(v)


def _simplify_add(node):
    l, r = node.left, node.right
    if l == ZERO:
        return r
    if r == ZERO:
        return l
    if _is_negative(r):
        return _binary(Operator.SUBTRACT, l, _negate(r), node.pos)
    if l == r:
        return _binary(Operator.MULTIPLY, TWO, l, node.pos)
    return node


def _simplify_subtract(node):
    l, r = node.left, node.right
    if r == ZERO:
        return l
    if l == ZERO:
        return _negate(r)
    if _is_negative(r):
        return _binary(Operator.ADD, l, _negate(r), node.pos)
    if l == r:
        return ZERO
    return node


def _simplify_multiply(node):
    l, r = node.left, node.right
    if l == ZERO or r == ZERO:
        return ZERO
    if l == ONE:
        return r
    if r == ONE:
        return l
    if l == MINUS_ONE:
        return _negate(r)
    if r == MINUS_ONE:
        return _negate(l)
    if isinstance(r, Number):
        return _binary(Operator.MULTIPLY, r, l, node.pos)
    return _hoist_signs(node)


def _simplify_divide(node):
    l, r = node.left, node.right
    if r == ONE:
        return l
    if r == MINUS_ONE:
        return _negate(l)
    return _hoist_signs(node)


def _hoist_signs(node):
    r"""Remove negations of the operands of `*` and `/`.

    Two negations cancel, a single one is moved in front of the operation.
    """
    l, r = node.left, node.right
    if _is_negative(l) and _is_negative(r):
        return _binary(node.op, _negate(l), _negate(r), node.pos)
    if _is_negative(l):
        return _negate(_binary(node.op, _negate(l), r, node.pos))
    if _is_negative(r):
        return _negate(_binary(node.op, l, _negate(r), node.pos))
    return node


def _simplify_power(node):
    l, r = node.left, node.right
    if l == ZERO:
        return ZERO
    if l == ONE or r == ZERO:
        return ONE
    if r == ONE:
        return l
    if _is_negative(r):
        return _binary(
            Operator.DIVIDE, ONE,
            _binary(Operator.POWER, l, _negate(r), node.pos),
            node.pos
        )
    if (l == Number(10) and isinstance(r, Call)
            and r.function is FunctionId.LOG10):
        return r.operand
    if _is_negative(l) and _is_integer(r):
        power = _binary(Operator.POWER, _negate(l), r, node.pos)
        if int(r.value.real) % 2 == 0:
            return power
        return _negate(power)
    if (isinstance(l, Variable) and l.name == "e" and isinstance(r, Call)
            and r.function in (FunctionId.LOG, FunctionId.LN)):
        return r.operand
    return node


def _simplify_minus(node):
    a = node.operand
    if isinstance(a, UnaryMinus):
        return a.operand
    return node


def _simplify_call(node):
    f, a = node.function, node.operand
    if (f in (FunctionId.LOG, FunctionId.LN) and isinstance(a, Variable)
            and a.name == "e"):
        return ONE
    if f is FunctionId.LOG10 and a == Number(10):
        return ONE
    folded = _fold(node)
    if folded is not None:
        return folded
    if f in (FunctionId.SIN, FunctionId.TAN) and _is_negative(a):
        # odd
        return _negate(_simplify(Call(f, _negate(a), pos=node.pos)))
    if f is FunctionId.COS and _is_negative(a):
        # even
        return _simplify(Call(f, _negate(a), pos=node.pos))
    return node


_BINARY_RULES = {
    Operator.ADD: _simplify_add,
    Operator.SUBTRACT: _simplify_subtract,
    Operator.MULTIPLY: _simplify_multiply,
    Operator.DIVIDE: _simplify_divide,
    Operator.POWER: _simplify_power,
}
