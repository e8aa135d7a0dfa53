r"""@package formulakit.functions

Table of builtin functions and the arithmetic contexts used to evaluate them.

The formula language knows a fixed set of 21 unary functions. Their names
are looked up case-insensitively by the lexer via lookup(), which maps a name
to a member of the FunctionId enumeration.

Numerical evaluation of these functions (and of the operators that can fail,
i.e. division and exponentiation) is delegated to an *arithmetic context*.
The ComplexContext is the default and computes everything over the complex
numbers, using `mpmath` for the transcendental functions so that e.g.
\f$ \mathrm{erf}(z) \f$ and \f$ \Gamma(z) \f$ work for complex arguments too.
The RealContext restricts evaluation to real values and reports any step
leaving the real axis as an error.
"""

import cmath
from enum import Enum
from types import MappingProxyType

from mpmath import mp

from .errors import DivisionByZeroError, DomainError, UnknownFunctionError


__all__ = [
    "FunctionId",
    "FUNCTIONS",
    "lookup",
    "ComplexContext",
    "RealContext",
]


class FunctionId(Enum):
    r"""Identifiers of the builtin functions.

    The value of each member is the (lower case) name of the function as
    written in formulas.
    """
    ARCSIN = "arcsin"
    ARCCOS = "arccos"
    ARCTAN = "arctan"
    ARCSINH = "arcsinh"
    ARCCOSH = "arccosh"
    ARCTANH = "arctanh"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"
    SQRT = "sqrt"
    CBRT = "cbrt"
    EXP = "exp"
    LN = "ln"
    LOG = "log"
    LOG10 = "log10"
    LOG2 = "log2"
    ERF = "erf"
    GAMMA = "gamma"

    def __str__(self):
        return self.value


## Read-only mapping of function names to their identifiers.
FUNCTIONS = MappingProxyType(dict((f.value, f) for f in FunctionId))

_LOGARITHMS = frozenset([FunctionId.LN, FunctionId.LOG, FunctionId.LOG2,
                         FunctionId.LOG10])

_IMPLEMENTATIONS = {
    FunctionId.ARCSIN: mp.asin,
    FunctionId.ARCCOS: mp.acos,
    FunctionId.ARCTAN: mp.atan,
    FunctionId.ARCSINH: mp.asinh,
    FunctionId.ARCCOSH: mp.acosh,
    FunctionId.ARCTANH: mp.atanh,
    FunctionId.SIN: mp.sin,
    FunctionId.COS: mp.cos,
    FunctionId.TAN: mp.tan,
    FunctionId.SINH: mp.sinh,
    FunctionId.COSH: mp.cosh,
    FunctionId.TANH: mp.tanh,
    FunctionId.SQRT: mp.sqrt,
    FunctionId.CBRT: mp.cbrt,
    FunctionId.EXP: mp.exp,
    FunctionId.LN: mp.log,
    FunctionId.LOG: mp.log,
    FunctionId.LOG10: mp.log10,
    FunctionId.LOG2: lambda z: mp.log(z, 2),
    FunctionId.ERF: mp.erf,
    FunctionId.GAMMA: mp.gamma,
}


def lookup(name):
    r"""Return the FunctionId for a function name or `None` if unknown.

    The lookup is case-insensitive.
    """
    return FUNCTIONS.get(name.lower())


def _function_name(fid):
    return getattr(fid, 'value', fid)


class ComplexContext(object):
    r"""Arithmetic over the complex numbers.

    All methods take an optional `pos` argument, which is attached to any
    raised error to point at the offending part of the formula.
    """
    ## Short name of this context.
    name = "complex"

    def convert(self, x):
        r"""Convert an argument value to the type used in computations."""
        return complex(x)

    def result(self, y):
        r"""Convert a final result to the type returned to users."""
        return y

    def function(self, fid, z, pos=None):
        r"""Apply the function identified by `fid` to the value `z`."""
        impl = self._implementation(fid, pos)
        try:
            y = complex(impl(mp.mpc(z)))
        except (ValueError, ZeroDivisionError) as e:
            raise DomainError("%s(%s): %s" % (_function_name(fid), z, e),
                              pos=pos)
        return self._check_finite(fid, z, y, pos)

    def divide(self, a, b, pos=None):
        r"""Divide `a` by `b`, failing for exact zero denominators."""
        if b == 0:
            raise DivisionByZeroError("division by zero", pos=pos)
        return a / b

    def power(self, a, b, pos=None):
        r"""Compute `a` to the power of `b`."""
        try:
            return a ** b
        except ZeroDivisionError:
            raise DivisionByZeroError("division by zero", pos=pos)
        except OverflowError:
            raise DomainError("numeric overflow in power", pos=pos)

    def _implementation(self, fid, pos):
        try:
            return _IMPLEMENTATIONS[fid]
        except (KeyError, TypeError):
            raise UnknownFunctionError(
                "unknown function '%s'" % _function_name(fid), pos=pos
            )

    def _check_finite(self, fid, z, y, pos):
        if cmath.isfinite(z) and not cmath.isfinite(y):
            raise DomainError("%s(%s) is not finite" % (_function_name(fid), z),
                              pos=pos)
        return y


class RealContext(ComplexContext):
    r"""Arithmetic restricted to the real numbers.

    Values are still passed around as `complex` with vanishing imaginary
    part, but any operation producing a non-real value raises a DomainError.
    Logarithms of negative numbers are reported explicitly.
    """
    name = "real"

    def convert(self, x):
        x = complex(x)
        if x.imag != 0:
            raise DomainError("argument %s is not real" % x)
        return x

    def result(self, y):
        if y.imag != 0:
            raise DomainError("result %s is not real" % y)
        return y.real

    def function(self, fid, z, pos=None):
        impl = self._implementation(fid, pos)
        if z.imag != 0:
            raise DomainError("complex value %s in real evaluation" % z,
                              pos=pos)
        x = z.real
        if fid in _LOGARITHMS and x < 0:
            raise DomainError("logarithm of a negative number", pos=pos)
        try:
            if fid is FunctionId.CBRT and x < 0:
                y = -mp.cbrt(mp.mpf(-x))
            else:
                y = impl(mp.mpf(x))
        except (ValueError, ZeroDivisionError) as e:
            raise DomainError("%s(%s): %s" % (fid.value, x, e), pos=pos)
        if isinstance(y, mp.mpc):
            if y.imag != 0:
                raise DomainError("%s(%s) has no real value" % (fid.value, x),
                                  pos=pos)
            y = y.real
        return self._check_finite(fid, z, complex(float(y), 0.0), pos)

    def power(self, a, b, pos=None):
        if a.imag != 0 or b.imag != 0:
            raise DomainError("complex value in real evaluation", pos=pos)
        try:
            y = a.real ** b.real
        except ZeroDivisionError:
            raise DivisionByZeroError("division by zero", pos=pos)
        except OverflowError:
            raise DomainError("numeric overflow in power", pos=pos)
        if isinstance(y, complex):
            raise DomainError("%s^%s has no real value" % (a.real, b.real),
                              pos=pos)
        return complex(y, 0.0)
