r"""@package formulakit.numutils

Miscellaneous numerical utilities and helpers.


@b Examples

```
    >>> isclose(1+1e-12j, 1)
    True
    >>> grid(0.0, 0.5, 2.0)
    array([0. , 0.5, 1. , 1.5, 2. ])
```
"""

import cmath
import math

import numpy as np


__all__ = [
    "isclose",
    "grid",
    "central_difference",
]


def isclose(a, b, rel_tol=1e-9, abs_tol=1e-12):
    r"""Compare two (complex) numbers with a relative and absolute tolerance.

    Two infinite values compare equal only if they are equal.
    """
    return cmath.isclose(complex(a), complex(b), rel_tol=rel_tol,
                         abs_tol=abs_tol)


def grid(x_min, x_step, x_max):
    r"""Return the points `x_min + i*x_step` not exceeding `x_max`.

    The end point is included if it lies on the grid (up to rounding). An
    empty array is returned for `x_max < x_min`.

    @b Raises

    ValueError if `x_step` is not positive.
    """
    if not x_step > 0:
        raise ValueError("step must be positive, got %r" % (x_step,))
    if x_max < x_min:
        return np.empty(0)
    n = int(math.floor((x_max - x_min) / x_step + 1e-9)) + 1
    return x_min + x_step * np.arange(n)


def central_difference(func, x, h=1e-6):
    r"""Approximate the derivative of `func` at `x` by a centered difference.

    The truncation error is of order `h**2`.
    """
    return (func(x + h) - func(x - h)) / (2.0 * h)
