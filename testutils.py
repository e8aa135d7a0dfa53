r"""@package testutils

Utilities to add more features to `unittest` classes.

This module provides FormulaTestCase, a subclass of `unittest.TestCase` with
assertions for complex results and for the positions of formula errors. It
obeys the global configuration settings in TestSettings, which can be set by
the script invoking the test run (see `tests.py`).

The decorator slowtest marks tests that are skipped on normal runs. The
script starting the test must set `TestSettings.skipslow` to `False` for the
slow tests to be run.
"""

import cmath
import functools
import sys
import time
import unittest


__all__ = [
    "FormulaTestCase",
    "TestSettings",
    "slowtest",
]


def slowtest(func):
    """Decorator for skipping a test if TestSettings.skipslow is true."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if TestSettings.skipslow:
            raise unittest.SkipTest("skipping slow tests")
        return func(*args, **kwargs)
    return wrapper


def _counts(result):
    return tuple(len(getattr(result, name, ())) for name in
                 ("errors", "failures", "skipped"))


class FormulaTestCase(unittest.TestCase):
    """Base class for the unit tests of formulakit.

    Deriving from this class adds:
        * timing of individual tests (needs `verbosity=2`) if
          TestSettings.timing is true
        * assertComplexAlmostEqual(), assertListAlmostEqual() (which accepts
          complex elements) and assertErrorAt()
    """
    _result = None
    _before = (0, 0, 0)

    def run(self, result=None):
        self._result = result
        self._before = _counts(result)
        return unittest.TestCase.run(self, result)

    def _print_timing(self):
        if not TestSettings.timing:
            return False
        result = self._result
        if result is not None:
            if _counts(result) != self._before:
                # failed, errored or skipped
                return False
            if (getattr(result, "dots", True)
                    or not getattr(result, "showAll", False)):
                return False
        return True

    def __call__(self, *args, **kwargs):
        start = time.time()
        try:
            return unittest.TestCase.__call__(self, *args, **kwargs)
        finally:
            if self._print_timing():
                print("(%.4f seconds) ... " % (time.time() - start),
                      file=sys.stderr, end='')

    def assertIsType(self, obj, cls):
        r"""Assert that an object is exactly of a certain type."""
        self.assertIs(type(obj), cls)

    def assertComplexAlmostEqual(self, a, b, rel_tol=1e-9, abs_tol=1e-12,
                                 msg=None):
        r"""Assert that two (complex) numbers agree within the tolerances."""
        if not cmath.isclose(complex(a), complex(b), rel_tol=rel_tol,
                             abs_tol=abs_tol):
            std_msg = "%r != %r (difference: %r)" % (a, b, abs(a-b))
            raise self.failureException(self._formatMessage(msg, std_msg))

    def assertErrorAt(self, exc, pos, message=None):
        r"""Assert position and (optionally) message of a formula error."""
        self.assertEqual(exc.pos, pos, "error %r not at position %r"
                         % (str(exc), pos))
        if message is not None:
            self.assertEqual(exc.message, message)

    def assertListAlmostEqual(self, a, b, places=None, delta=None):
        r"""Assert that two sequences contain (almost) the same values.

        Elements may be complex. They are compared by the modulus of their
        difference.
        """
        if places is not None and delta is not None:
            raise TypeError("Cannot use delta and places at the same time")
        if places is None and delta is None:
            places = 7
        a, b = list(a), list(b)
        if len(a) != len(b):
            raise self.failureException(
                "Lists have different lengths (%d != %d)" % (len(a), len(b))
            )
        def _differs(x, y):
            if x == y:
                return False
            if delta is not None:
                return abs(x-y) > delta
            return round(abs(x-y), places) != 0
        fails = [i for i in range(len(a)) if _differs(a[i], b[i])]
        if fails:
            max_n = 9
            msg = "%d elements differ.\n%s:\n" % (
                len(fails),
                "Differing elements" if len(fails) <= max_n
                else "First few differing elements"
            )
            msg += "\n".join("  [%d] %r != %r    (difference: %r)"
                             % (i, a[i], b[i], b[i]-a[i])
                             for i in fails[:max_n])
            raise self.failureException(msg)


class TestSettings(object):
    """Global settings for tests."""
    ## Stop test run on first fail/error.
    failfast = False
    ## Whether output is buffered.\ Just information, cannot be used to toggle output buffering.
    buffering = False
    ## Whether the timing for each test case should be printed.
    timing = False
    ## Control whether tests marked as slowtest should be skipped.
    skipslow = True
