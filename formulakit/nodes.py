r"""@package formulakit.nodes

Abstract syntax tree of formulas.

A formula is represented by a tree of Node objects. The set of node types is
closed:

    * Number: a (complex) literal
    * Argument: the free argument `x` of the formula
    * Variable: a named value looked up at evaluation time
    * UnaryMinus: negation of its operand
    * BinaryOp: one of the operators `+ - * / ^` applied to two operands
    * Call: one of the builtin functions applied to its operand

Every node can render itself as text (`str(node)`), as LaTeX (latex()) and as
Python source (source()), compare itself structurally to other nodes,
evaluate itself (calc()) and create the tree of its derivative w.r.t. the
argument (derivative()).

All these operations walk the tree with bottom_up(), which uses an explicit
stack instead of recursion. Trees of any depth (e.g. a sum of thousands of
terms) can hence be processed.

Nodes are immutable. Operations like derivative() or the optimizer
(optimize.optimize()) build new trees, possibly reusing unchanged subtrees.
"""

from abc import ABCMeta, abstractmethod
import logging
import math
import re

from .errors import EvaluationError, UndefinedVariableError
from .errors import UnsupportedDerivativeError
from .functions import ComplexContext, FunctionId
from .lexer import Operator, PRECEDENCE


__all__ = [
    "Node",
    "Number",
    "Argument",
    "Variable",
    "UnaryMinus",
    "BinaryOp",
    "Call",
    "bottom_up",
    "ZERO",
    "ONE",
    "TWO",
    "MINUS_ONE",
]


## Precedence of nodes that never need parentheses.
_ATOM = max(PRECEDENCE.values()) + 1

_DEFAULT_CONTEXT = ComplexContext()

_GREEK = frozenset([
    "alpha", "beta", "delta", "epsilon", "zeta", "eta", "theta", "iota",
    "kappa", "lambda", "mu", "nu", "xi", "pi", "rho", "sigma", "tau",
    "upsilon", "phi", "chi", "psi", "omega",
])


def _format_real(v):
    r"""Format a float such that the lexer reads back the same value."""
    if math.isinf(v):
        # overflows to infinity again when read back
        return "1e999" if v > 0 else "-1e999"
    if math.isfinite(v) and v == math.floor(v) and abs(v) < 1e15:
        return "%d" % v
    return repr(v)


_EXPONENT = re.compile(r"e([+-]?\d+)")


def _latex_exponent(match):
    return r" \cdot 10^{%d}" % int(match.group(1))


def _paren(s):
    return "(%s)" % s


def _latex_paren(s):
    return r"\left(%s\right)" % s


def bottom_up(root, visit):
    r"""Compute a value for each node of a tree, children first.

    The function `visit(node, args)` is called once for each node, where
    `args` is the list of values computed for the node's children (in the
    order of Node.children()). Children are visited left to right, i.e. for
    `a+b` all of `a` is visited before any node of `b`.

    The tree is walked using an explicit stack, so the depth of the tree is
    not limited by the recursion limit.

    @return The value computed for `root`.
    """
    results = []
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        children = node.children()
        if expanded or not children:
            n = len(children)
            args = results[len(results)-n:]
            del results[len(results)-n:]
            results.append(visit(node, args))
        else:
            stack.append((node, True))
            stack.extend((child, False) for _, child in reversed(children))
    return results[0]


class Node(metaclass=ABCMeta):
    r"""Base class of all nodes of the syntax tree.

    Child classes implement the local part of each operation, i.e. given the
    results for the children: _render(), _latex(), _source(), _apply() and
    _derivative(). Structural comparison uses _label() and children().
    """

    def __init__(self, pos=None):
        self._pos = pos
        self._hash = None

    @property
    def pos(self):
        r"""Offset into the source text this node was parsed from (or `None`)."""
        return self._pos

    @property
    def precedence(self):
        r"""Binding strength used to decide on parentheses when rendering."""
        return _ATOM

    def children(self):
        r"""Tuple of (name, node) pairs of the direct sub nodes."""
        return ()

    def replace_children(self, children):
        r"""Return a node like this one with the given sub nodes."""
        return self

    def traverse_tree(self, include_root=False, parents=None):
        r"""Generator that walks through the complete tree.

        In each iteration, the returned values represent the current node's
        parents (as a list from root to immediate parent), its name in its
        parent, and the node itself.

        @b Examples
        \code
            for parents, name, node in root.traverse_tree():
                print("-"*len(parents), name)
        \endcode
        """
        if parents is None:
            parents = []
        if include_root:
            yield parents, "", self
        stack = [(parents + [self], iter(self.children()))]
        while stack:
            path, remaining = stack[-1]
            for name, node in remaining:
                yield path, name, node
                stack.append((path + [node], iter(node.children())))
                break
            else:
                stack.pop()

    def print_tree(self, root_name='root'):
        r"""Print the whole tree, one node per line."""
        def _p(node, name, parents=()):
            print("%s%s [%s] <%s>" % (
                ". " * len(parents), name, node.nice_name, type(node).__name__
            ))
        _p(self, root_name)
        for parents, name, node in self.traverse_tree():
            _p(node, name, parents)

    @property
    def nice_name(self):
        r"""Short description of the node itself (without sub nodes)."""
        return str(self)

    def __str__(self):
        return bottom_up(self, lambda node, args: node._render(args))

    def __repr__(self):
        return "<%s %s>" % (self.__class__.__name__, self)

    def latex(self):
        r"""Return LaTeX markup representing the tree."""
        return bottom_up(self, lambda node, args: node._latex(args))

    def source(self):
        r"""Return a Python expression computing the tree.

        The expression refers to the names `x` (argument), `_vars` (variable
        mapping), `_ctx` (arithmetic context), `_var` (variable lookup helper)
        and `_F` (functions.FunctionId).
        """
        return bottom_up(self, lambda node, args: node._source(args))

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        pairs = [(self, other)]
        while pairs:
            a, b = pairs.pop()
            if a is b:
                continue
            if type(a) is not type(b) or a._label() != b._label():
                return False
            pairs.extend((ca, cb) for (_, ca), (_, cb)
                         in zip(a.children(), b.children()))
        return True

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        if self._hash is None:
            def _h(node, hashes):
                if node._hash is None:
                    node._hash = hash((type(node).__name__, node._label())
                                      + tuple(hashes))
                return node._hash
            bottom_up(self, _h)
        return self._hash

    def calc(self, x, vars=None, ctx=None):
        r"""Evaluate the tree.

        @param x
            Value of the argument.
        @param vars
            Mapping of (lower case) variable names to values.
        @param ctx
            Arithmetic context, functions.ComplexContext by default.

        @b Raises

        errors.EvaluationError (or a subclass) at the first problem
        encountered.
        """
        # pylint: disable=redefined-builtin
        if ctx is None:
            ctx = _DEFAULT_CONTEXT
        if vars is None:
            vars = {}
        x = ctx.convert(x)
        return ctx.result(
            bottom_up(self, lambda node, args: node._apply(args, x, vars, ctx))
        )

    def derivative(self, simplify=True):
        r"""Return the tree of the derivative w.r.t. the argument `x`.

        @param simplify
            Whether to pass the result through optimize.optimize() (default).
            With `False`, the raw result of the derivative rules is returned.

        @b Raises

        errors.UnsupportedDerivativeError if a function without a derivative
        rule is encountered.
        """
        logging.debug("derivative of %s", self)
        result = bottom_up(self, lambda node, args: node._derivative(args))
        if simplify:
            from .optimize import optimize
            result = optimize(result)
        return result

    @abstractmethod
    def _label(self):
        r"""Tuple identifying the node itself, excluding its children."""
        pass

    @abstractmethod
    def _render(self, args):
        r"""Canonical text given the texts of the children."""
        pass

    @abstractmethod
    def _latex(self, args):
        pass

    @abstractmethod
    def _source(self, args):
        pass

    @abstractmethod
    def _apply(self, args, x, vars, ctx):
        r"""Value of the node given the values of the children."""
        pass

    @abstractmethod
    def _derivative(self, args):
        r"""Raw derivative given the derivatives of the children."""
        pass


class Number(Node):
    r"""Numeric literal, stored as a complex number."""

    def __init__(self, value, pos=None):
        super(Number, self).__init__(pos=pos)
        self._value = complex(value)

    @property
    def value(self):
        return self._value

    def is_real(self):
        return self._value.imag == 0

    def _label(self):
        return (self._value,)

    def _render(self, args):
        real, imag = self._value.real, self._value.imag
        if imag == 0:
            return _format_real(real)
        if real == 0:
            return _format_real(imag) + "i"
        return "(%s%s%si)" % (_format_real(real), "-" if imag < 0 else "+",
                              _format_real(abs(imag)))

    def _latex(self, args):
        s = _EXPONENT.sub(_latex_exponent, self._render(args))
        if s.startswith("("):
            return _latex_paren(s[1:-1])
        return s

    def _source(self, args):
        v = self._value
        if math.isfinite(v.real) and math.isfinite(v.imag):
            return repr(v)
        return "complex(%r)" % str(v)

    def _apply(self, args, x, vars, ctx):
        return self._value

    def _derivative(self, args):
        return ZERO


class Argument(Node):
    r"""The free argument `x` of the formula."""

    def _label(self):
        return ()

    def _render(self, args):
        return "x"

    def _latex(self, args):
        return "x"

    def _source(self, args):
        return "x"

    def _apply(self, args, x, vars, ctx):
        return x

    def _derivative(self, args):
        return ONE


class Variable(Node):
    r"""Named variable whose value is taken from the binding table."""

    def __init__(self, name, pos=None):
        super(Variable, self).__init__(pos=pos)
        self._name = name

    @property
    def name(self):
        return self._name

    def _label(self):
        return (self._name,)

    def _render(self, args):
        return self._name

    def _latex(self, args):
        if self._name in _GREEK:
            return "\\" + self._name
        if len(self._name) > 1:
            return r"\mathrm{%s}" % self._name
        return self._name

    def _source(self, args):
        return "_var(_vars, _ctx, %r)" % self._name

    def _apply(self, args, x, vars, ctx):
        try:
            value = vars[self._name]
        except KeyError:
            raise UndefinedVariableError(self._name, pos=self._pos)
        return ctx.convert(value)

    def _derivative(self, args):
        return ZERO


class UnaryMinus(Node):
    r"""Negation of the operand."""

    def __init__(self, operand, pos=None):
        super(UnaryMinus, self).__init__(pos=pos)
        self._operand = operand

    @property
    def operand(self):
        return self._operand

    @property
    def precedence(self):
        return PRECEDENCE[Operator.MINUS]

    @property
    def nice_name(self):
        return "-"

    def children(self):
        return (("a", self._operand),)

    def replace_children(self, children):
        return UnaryMinus(children[0], pos=self._pos)

    def _label(self):
        return ()

    def _render(self, args):
        a, = args
        if isinstance(self._operand, BinaryOp):
            a = _paren(a)
        return "-" + a

    def _latex(self, args):
        a, = args
        if isinstance(self._operand, BinaryOp):
            a = _latex_paren(a)
        return "-" + a

    def _source(self, args):
        return "(-%s)" % args[0]

    def _apply(self, args, x, vars, ctx):
        return -args[0]

    def _derivative(self, args):
        return UnaryMinus(args[0])


class BinaryOp(Node):
    r"""Binary operation `left op right` for one of the operators `+-*/^`."""

    def __init__(self, op, left, right, pos=None):
        super(BinaryOp, self).__init__(pos=pos)
        self._op = op
        self._left = left
        self._right = right

    @property
    def op(self):
        return self._op

    @property
    def left(self):
        return self._left

    @property
    def right(self):
        return self._right

    @property
    def precedence(self):
        return PRECEDENCE[self._op]

    @property
    def nice_name(self):
        return self._op.symbol

    def children(self):
        return (("l", self._left), ("r", self._right))

    def replace_children(self, children):
        l, r = children
        return BinaryOp(self._op, l, r, pos=self._pos)

    def _left_needs_parens(self):
        l = self._left
        return isinstance(l, BinaryOp) and (
            l.precedence < self.precedence
            or (l.precedence == self.precedence and self._op.right_assoc)
        )

    def _right_needs_parens(self):
        r = self._right
        return isinstance(r, BinaryOp) and (
            r.precedence < self.precedence
            or (r.precedence == self.precedence and not self._op.right_assoc)
        )

    def _label(self):
        return (self._op,)

    def _render(self, args):
        l, r = args
        if self._left_needs_parens():
            l = _paren(l)
        if self._right_needs_parens():
            r = _paren(r)
        return "%s%s%s" % (l, self._op.symbol, r)

    def _latex(self, args):
        op = self._op
        l, r = args
        if op is Operator.DIVIDE and (len(l) > 1 or len(r) > 1):
            return r"\frac{%s}{%s}" % (l, r)
        if self._left_needs_parens() or (
                op is Operator.POWER
                and (_is_negated(self._left)
                     or (isinstance(self._left, Number) and r"\cdot" in l))):
            l = _latex_paren(l)
        if op is Operator.POWER:
            return "%s^{%s}" % (l, r)
        if self._right_needs_parens():
            r = _latex_paren(r)
        if op is Operator.MULTIPLY:
            if isinstance(self._right, Number) or r[:1].isdigit() or r[:1] == "-":
                return r"%s \cdot %s" % (l, r)
            return "%s %s" % (l, r)
        return "%s%s%s" % (l, op.symbol, r)

    def _source(self, args):
        l, r = args
        if self._op is Operator.DIVIDE:
            return "_ctx.divide(%s, %s)" % (l, r)
        if self._op is Operator.POWER:
            return "_ctx.power(%s, %s)" % (l, r)
        return "(%s %s %s)" % (l, self._op.symbol, r)

    def _apply(self, args, x, vars, ctx):
        l, r = args
        op = self._op
        if op is Operator.ADD:
            return l + r
        if op is Operator.SUBTRACT:
            return l - r
        if op is Operator.MULTIPLY:
            return l * r
        if op is Operator.DIVIDE:
            return ctx.divide(l, r, pos=self._pos)
        if op is Operator.POWER:
            return ctx.power(l, r, pos=self._pos)
        raise EvaluationError("unknown operator '%s'" % op, pos=self._pos)

    def _derivative(self, args):
        op, l, r = self._op, self._left, self._right
        dl, dr = args
        if op in (Operator.ADD, Operator.SUBTRACT):
            return BinaryOp(op, dl, dr)
        if op is Operator.MULTIPLY:
            # r * dl/dx + l * dr/dx
            return _add(_mul(r, dl), _mul(l, dr))
        if op is Operator.DIVIDE:
            # (r * dl/dx - l * dr/dx) / r^2
            return _div(_sub(_mul(r, dl), _mul(l, dr)), _pow(r, TWO))
        if op is Operator.POWER:
            # r * l^(r-1) * dl/dx + l^r * ln(l) * dr/dx
            return _add(
                _mul(_mul(r, _pow(l, _sub(r, ONE))), dl),
                _mul(_mul(self, Call(FunctionId.LOG, l)), dr),
            )
        raise UnsupportedDerivativeError(
            "derivative of operator '%s' is not supported" % op, pos=self._pos
        )


class Call(Node):
    r"""Application of a builtin function (see functions.FunctionId)."""

    def __init__(self, function, operand, pos=None):
        super(Call, self).__init__(pos=pos)
        self._function = function
        self._operand = operand

    @property
    def function(self):
        return self._function

    @property
    def operand(self):
        return self._operand

    @property
    def nice_name(self):
        return str(self._function)

    def children(self):
        return (("a", self._operand),)

    def replace_children(self, children):
        return Call(self._function, children[0], pos=self._pos)

    def _label(self):
        return (self._function,)

    def _render(self, args):
        return "%s(%s)" % (self._function, args[0])

    def _latex(self, args):
        a, = args
        f = self._function
        if f is FunctionId.SQRT:
            return r"\sqrt{%s}" % a
        if f is FunctionId.CBRT:
            return r"\sqrt[3]{%s}" % a
        name = _LATEX_NAMES.get(f)
        if name is None:
            name = r"\operatorname{%s}" % f
        return name + _latex_paren(a)

    def _source(self, args):
        return "_ctx.function(_F.%s, %s)" % (self._function.name, args[0])

    def _apply(self, args, x, vars, ctx):
        return ctx.function(self._function, args[0], pos=self._pos)

    def _derivative(self, args):
        try:
            rule = _DERIVATIVES[self._function]
        except KeyError:
            raise UnsupportedDerivativeError(
                "derivative of '%s' is not supported" % self._function,
                pos=self._pos
            )
        return _mul(rule(self._operand), args[0])


## Distinguished constants used for pattern matching.
ZERO = Number(0)
ONE = Number(1)
TWO = Number(2)
MINUS_ONE = Number(-1)


def _is_negated(node):
    if isinstance(node, Number):
        return node.value.real < 0
    return isinstance(node, UnaryMinus)


def _add(l, r):
    return BinaryOp(Operator.ADD, l, r)


def _sub(l, r):
    return BinaryOp(Operator.SUBTRACT, l, r)


def _mul(l, r):
    return BinaryOp(Operator.MULTIPLY, l, r)


def _div(l, r):
    return BinaryOp(Operator.DIVIDE, l, r)


def _pow(l, r):
    return BinaryOp(Operator.POWER, l, r)


def _call(f, a):
    return Call(f, a)


def _recip_sqrt(a):
    return _div(ONE, _call(FunctionId.SQRT, a))


# Outer derivatives f'(a); the chain rule factor da/dx is added by Call.
_DERIVATIVES = {
    FunctionId.SIN: lambda a: _call(FunctionId.COS, a),
    FunctionId.COS: lambda a: UnaryMinus(_call(FunctionId.SIN, a)),
    FunctionId.TAN: lambda a: _div(ONE, _pow(_call(FunctionId.COS, a), TWO)),
    FunctionId.ARCSIN: lambda a: _recip_sqrt(_sub(ONE, _pow(a, TWO))),
    FunctionId.ARCCOS: lambda a: _div(
        MINUS_ONE, _call(FunctionId.SQRT, _sub(ONE, _pow(a, TWO)))
    ),
    FunctionId.ARCTAN: lambda a: _div(ONE, _add(ONE, _pow(a, TWO))),
    FunctionId.SINH: lambda a: _call(FunctionId.COSH, a),
    FunctionId.COSH: lambda a: _call(FunctionId.SINH, a),
    FunctionId.TANH: lambda a: _div(ONE, _pow(_call(FunctionId.COSH, a), TWO)),
    FunctionId.ARCSINH: lambda a: _recip_sqrt(_add(_pow(a, TWO), ONE)),
    FunctionId.ARCCOSH: lambda a: _recip_sqrt(_sub(_pow(a, TWO), ONE)),
    FunctionId.ARCTANH: lambda a: _div(ONE, _sub(ONE, _pow(a, TWO))),
    FunctionId.SQRT: lambda a: _div(ONE, _mul(TWO, _call(FunctionId.SQRT, a))),
    FunctionId.EXP: lambda a: _call(FunctionId.EXP, a),
    FunctionId.LN: lambda a: _div(ONE, a),
    FunctionId.LOG: lambda a: _div(ONE, a),
    FunctionId.LOG10: lambda a: _div(
        ONE, _mul(a, _call(FunctionId.LOG, Number(10)))
    ),
}

_LATEX_NAMES = {
    FunctionId.SIN: r"\sin",
    FunctionId.COS: r"\cos",
    FunctionId.TAN: r"\tan",
    FunctionId.ARCSIN: r"\arcsin",
    FunctionId.ARCCOS: r"\arccos",
    FunctionId.ARCTAN: r"\arctan",
    FunctionId.SINH: r"\sinh",
    FunctionId.COSH: r"\cosh",
    FunctionId.TANH: r"\tanh",
    FunctionId.EXP: r"\exp",
    FunctionId.LN: r"\ln",
    FunctionId.LOG: r"\ln",
    FunctionId.LOG10: r"\log_{10}",
    FunctionId.LOG2: r"\log_{2}",
    FunctionId.GAMMA: r"\Gamma",
}
