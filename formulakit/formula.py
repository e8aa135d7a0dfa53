r"""@package formulakit.formula

The Formula facade and its table of variables.

A Formula owns the root of a parsed tree (see nodes) and a Vars table with
the values of the variables used in it. It bundles evaluation,
simplification, differentiation and rendering.

Formulas are usually created by parser.parse():

\code
    f = parse("a*x^2 + pi", vars=dict(a=2))
    f.calc(1.5)             # -> (7.641592653589793+0j)
    str(f.derivative())     # -> 'a*(2*x)'
    f.set("a", 3)
    xs, ys, errors = f.interval(-1, 0.5, 1)
\endcode
"""

import math
from types import MappingProxyType
import warnings

import numpy as np

from .config import get_config
from .errors import EvaluationError, FormulaWarning
from .evaluators import create_evaluator
from .nodes import Variable
from .numutils import grid
from .optimize import optimize


__all__ = [
    "DEFAULT_VARS",
    "Vars",
    "Formula",
]


## Constants available in every formula unless overridden.
DEFAULT_VARS = MappingProxyType({
    "e": math.e,
    "pi": math.pi,
    "phi": (1.0 + math.sqrt(5.0)) / 2.0,
})


def _normalize(name):
    if not isinstance(name, str):
        raise TypeError("Variable names must be strings, got %r" % (name,))
    return name.lower()


class Vars(dict):
    r"""Table of variable values.

    Names are case-insensitive and stored in lower case, values are stored
    as `complex`. A new table contains the constants of DEFAULT_VARS, which
    may be overridden (issuing a errors.FormulaWarning). The name `x` is
    reserved for the argument of formulas and cannot be used.
    """

    def __init__(self, *args, **kwargs):
        super(Vars, self).__init__(
            (name, complex(value)) for name, value in DEFAULT_VARS.items()
        )
        self.update(*args, **kwargs)

    def __setitem__(self, name, value):
        name = _normalize(name)
        if name == "x":
            raise ValueError("'x' is the argument of formulas and cannot be "
                             "used as a variable")
        value = complex(value)
        if name in DEFAULT_VARS and value != DEFAULT_VARS[name]:
            warnings.warn("Overriding the constant '%s' with %s."
                          % (name, value), FormulaWarning, stacklevel=2)
        super(Vars, self).__setitem__(name, value)

    def __getitem__(self, name):
        return super(Vars, self).__getitem__(_normalize(name))

    def __delitem__(self, name):
        super(Vars, self).__delitem__(_normalize(name))

    def __contains__(self, name):
        return (isinstance(name, str)
                and super(Vars, self).__contains__(name.lower()))

    def get(self, name, default=None):
        if name in self:
            return self[name]
        return default

    def update(self, *args, **kwargs):
        for name, value in dict(*args, **kwargs).items():
            self[name] = value

    def setdefault(self, name, value=None):
        if name not in self:
            self[name] = value
        return self[name]

    def set(self, name, value):
        r"""Set the value of a variable."""
        self[name] = value

    def duplicate(self):
        r"""Return an independent copy of this table."""
        result = Vars()
        dict.update(result, self)
        return result

    copy = duplicate

    def __repr__(self):
        return "Vars(%s)" % super(Vars, self).__repr__()


class Formula(object):
    r"""A parsed formula with its variable values.

    @param root
        Root node of the formula tree.
    @param vars
        Mapping of variable values. A Vars object is used as is (and hence
        shared with the caller), anything else is copied into a new Vars
        table.
    """

    def __init__(self, root, vars=None):
        # pylint: disable=redefined-builtin
        if not isinstance(vars, Vars):
            vars = Vars(vars or {})
        self._root = root
        self._vars = vars
        self._evaluators = dict()

    @property
    def root(self):
        r"""Root node of the formula tree."""
        return self._root

    @classmethod
    def _derived(cls, root, view):
        formula = cls.__new__(cls)
        formula._root = root
        formula._vars = view
        formula._evaluators = dict()
        return formula

    @property
    def vars(self):
        r"""The Vars table used for evaluation.

        For formulas created by derivative(), this is a read-only view of the
        table of the original formula.
        """
        return self._vars

    def set(self, name, value):
        r"""Set the value of a variable (see Vars.set()).

        @b Raises

        `TypeError` for formulas created by derivative(), whose variables
        can only be changed through the original formula.
        """
        if not isinstance(self._vars, Vars):
            raise TypeError("variables of a derived formula are read-only; "
                            "set them on the original formula")
        self._vars.set(name, value)

    def variable_names(self):
        r"""Sorted list of the names of all variables used in the formula."""
        return sorted(set(
            node.name
            for _, _, node in self._root.traverse_tree(include_root=True)
            if isinstance(node, Variable)
        ))

    def evaluator(self, kind=None):
        r"""Return an evaluator for this formula (see evaluators).

        @param kind
            Kind of evaluator. By default, the configured kind is used.
        """
        if kind is None:
            kind = get_config().evaluator
        try:
            return self._evaluators[kind]
        except KeyError:
            pass
        evaluator = self._evaluators[kind] = create_evaluator(kind, self)
        return evaluator

    def calc(self, x=0):
        r"""Evaluate the formula at the point `x`."""
        return self.evaluator()(x)

    def calc_n(self, xs):
        r"""Evaluate the formula at each point in `xs` into a new array."""
        return self.evaluator().calc_n(xs)

    def interval(self, x_min, x_step, x_max, kind=None):
        r"""Evaluate the formula on an equidistant grid.

        The grid consists of the points `x_min + i*x_step` up to and
        including `x_max`.

        @param kind
            Kind of evaluator to use (see evaluator()).

        @return Tuple `(xs, ys, errors)`. The arrays `xs` and `ys` contain
            only the points at which evaluation succeeded. The list `errors`
            contains a pair `(x, exception)` for each other point.
        """
        fn = self.evaluator(kind)
        xs, ys, errors = [], [], []
        for x in grid(x_min, x_step, x_max):
            try:
                y = fn(x)
            except EvaluationError as e:
                errors.append((x, e))
                continue
            xs.append(x)
            ys.append(y)
        return np.array(xs, dtype=float), np.array(ys, dtype=fn.dtype), errors

    def optimize(self):
        r"""Replace the tree by its simplified form and return this formula."""
        self._root = optimize(self._root)
        self._evaluators.clear()
        return self

    def derivative(self, simplify=None):
        r"""Return a new formula for the derivative w.r.t. `x`.

        The new formula sees the variable values of this formula through a
        read-only view. Later changes made with set() on this formula are
        hence visible in the derivative, but the derivative cannot change
        them.

        @param simplify
            Whether to simplify the derivative. By default, the
            ``simplify_derivative`` configuration option is used.
        """
        if simplify is None:
            simplify = get_config().simplify_derivative
        view = self._vars
        if isinstance(view, Vars):
            view = MappingProxyType(view)
        return Formula._derived(self._root.derivative(simplify=simplify), view)

    def latex(self):
        r"""Return LaTeX markup of the formula."""
        return self._root.latex()

    def source(self):
        r"""Return Python source computing the formula."""
        return self._root.source()

    def __str__(self):
        return str(self._root)

    def __repr__(self):
        return "Formula(%r)" % str(self._root)
