r"""@package formulakit.evaluators

Evaluators computing values of a formula tree.

A formula tree itself can be evaluated at a point via nodes.Node.calc(). For
repeated evaluation, a formula hands out *evaluators*, i.e. callable objects
created once for a tree and a variable table. All evaluators share the same
interface:

    * `e(x)` computes the value at the point `x`
    * `e.diff(x, n=1)` computes the n'th derivative at `x`
    * `e.calc_n(xs)` computes the values at all points of `xs` into a newly
      created `numpy` array
    * `e.function(n=0)` returns a plain callable for the n'th derivative

The following evaluators exist:

    * TreeEvaluator: walks the tree over the complex numbers (the reference)
    * RealEvaluator: walks the tree but restricts all values to be real
    * CompiledEvaluator: turns the tree into a flat program once and runs
      that program for each point

Derivative trees are created lazily the first time they are needed and are
kept for later calls.

@b Examples

\code
    f = parse("a*sin(x)", vars=dict(a=2))
    e = create_evaluator("compiled", f)
    ys = e.calc_n(np.linspace(0, 1, 10))
\endcode
"""

from abc import ABCMeta, abstractmethod
import logging
import operator

import numpy as np

from .errors import UndefinedVariableError
from .functions import ComplexContext, RealContext
from .lexer import Operator
from .nodes import Argument, BinaryOp, Call, Number, UnaryMinus, Variable
from .nodes import bottom_up


__all__ = [
    "TreeEvaluator",
    "RealEvaluator",
    "CompiledEvaluator",
    "create_evaluator",
]


class _Evaluator(metaclass=ABCMeta):
    r"""Base class for all evaluator classes.

    Child classes implement _create_function() to turn a tree into a
    callable.
    """

    ## Arithmetic context used for all computations.
    ctx = ComplexContext()

    ## `numpy` data type of results of calc_n().
    dtype = complex

    def __init__(self, root, vars):
        r"""Create an evaluator for a tree.

        @param root
            Root node of the formula tree.
        @param vars
            Mapping of variable values. It is not copied, i.e. later changes
            to the mapping affect subsequent evaluations.
        """
        # pylint: disable=redefined-builtin
        ## Variable values used during evaluation.
        self.vars = vars
        self._roots = [root]
        self._funcs = []
        self._get_func(0)

    @property
    def root(self):
        r"""Root node of the evaluated tree."""
        return self._roots[0]

    def __call__(self, x):
        r"""Compute the value at a point x."""
        return self._funcs[0](x)

    def diff(self, x, n=1):
        r"""Evaluate the n'th derivative of the formula at a point x."""
        return self._get_func(n)(x)

    def calc_n(self, xs, n=0):
        r"""Evaluate the n'th derivative at each point of `xs`.

        The result is a new array on each call. Its elements are identical
        to what evaluating each point separately would return.
        """
        fn = self._get_func(n)
        xs = np.asarray(xs)
        result = np.empty(xs.shape, dtype=self.dtype)
        for i, x in np.ndenumerate(xs):
            result[i] = fn(x)
        return result

    def function(self, n=0):
        r"""Return a callable for the n'th derivative."""
        fn = self._get_func(n)
        return lambda x: fn(x) # pylint: disable=unnecessary-lambda

    def _get_func(self, n):
        r"""Cached creation of the callable for the n'th derivative."""
        for i in range(len(self._funcs), n+1):
            if i >= len(self._roots):
                self._roots.append(self._roots[i-1].derivative())
            self._funcs.append(self._create_function(self._roots[i]))
        return self._funcs[n]

    @abstractmethod
    def _create_function(self, root):
        r"""Return a callable computing the value of the given tree."""
        pass


class TreeEvaluator(_Evaluator):
    r"""Evaluator walking the tree over the complex numbers."""

    def _create_function(self, root):
        ctx, vars = self.ctx, self.vars # pylint: disable=redefined-builtin
        return lambda x: root.calc(x, vars, ctx)


class RealEvaluator(TreeEvaluator):
    r"""Evaluator restricted to real values.

    The argument has to be real and results are returned as `float`. Any
    intermediate result with a non-vanishing imaginary part raises a
    errors.DomainError, e.g. ``"logarithm of a negative number"``.
    """
    ctx = RealContext()
    dtype = float


_ARITHMETIC = {
    Operator.ADD: operator.add,
    Operator.SUBTRACT: operator.sub,
    Operator.MULTIPLY: operator.mul,
}


class CompiledEvaluator(_Evaluator):
    r"""Evaluator running a flat program generated from the tree.

    The tree is translated once per evaluator (and derivative order) into a
    list of small functions in postfix order. Each of them takes its
    operands from a value stack and pushes its result. Evaluating a point
    then runs this list without walking the tree again.

    Results, raised error classes and error positions are the same as for
    the TreeEvaluator.
    """

    def _create_function(self, root):
        ctx, vars = self.ctx, self.vars # pylint: disable=redefined-builtin
        program = []
        bottom_up(root, lambda node, args: program.append(
            self._compile_node(node, vars, ctx)
        ))
        logging.debug("compiled %s into %d steps", root, len(program))
        def _run(x):
            stack = []
            x = ctx.convert(x)
            for step in program:
                step(stack, x)
            return ctx.result(stack[0])
        return _run

    @staticmethod
    def _compile_node(node, vars, ctx):
        r"""Return the step computing one node from its operands."""
        # pylint: disable=redefined-builtin
        pos = node.pos
        if isinstance(node, Number):
            value = node.value
            return lambda s, x: s.append(value)
        if isinstance(node, Argument):
            return lambda s, x: s.append(x)
        if isinstance(node, Variable):
            name = node.name
            def _variable(s, x):
                try:
                    value = vars[name]
                except KeyError:
                    raise UndefinedVariableError(name, pos=pos)
                s.append(ctx.convert(value))
            return _variable
        if isinstance(node, UnaryMinus):
            def _negate(s, x):
                s[-1] = -s[-1]
            return _negate
        if isinstance(node, Call):
            fid = node.function
            def _call(s, x):
                s[-1] = ctx.function(fid, s[-1], pos=pos)
            return _call
        if isinstance(node, BinaryOp):
            op = node.op
            if op is Operator.DIVIDE:
                func = lambda a, b: ctx.divide(a, b, pos=pos)
            elif op is Operator.POWER:
                func = lambda a, b: ctx.power(a, b, pos=pos)
            else:
                func = _ARITHMETIC[op]
            def _binary(s, x):
                r = s.pop()
                s[-1] = func(s[-1], r)
            return _binary
        raise TypeError("Cannot compile node %r" % (node,))


_EVALUATORS = {
    "tree": TreeEvaluator,
    "real": RealEvaluator,
    "compiled": CompiledEvaluator,
}


def create_evaluator(kind, formula):
    r"""Create an evaluator of the given kind for a formula.

    @param kind
        One of ``"tree"``, ``"real"`` or ``"compiled"``.
    @param formula
        Object with `root` and `vars` attributes, usually a
        formula.Formula.
    """
    try:
        cls = _EVALUATORS[kind]
    except KeyError:
        raise ValueError("Unknown evaluator kind '%s'. Valid kinds are: %s"
                         % (kind, ", ".join(sorted(_EVALUATORS))))
    return cls(formula.root, formula.vars)
