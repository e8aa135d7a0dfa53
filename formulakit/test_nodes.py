#!/usr/bin/env python3

import io
import unittest
import sys
from contextlib import redirect_stdout

from testutils import FormulaTestCase
from .errors import DivisionByZeroError, DomainError, UndefinedVariableError
from .functions import FunctionId, RealContext
from .lexer import Operator
from .nodes import Argument, BinaryOp, Call, Number, UnaryMinus, Variable
from .nodes import ZERO, ONE
from .optimize import optimize
from .parser import parse_node


_VARS = dict(a=1.5, b=-0.5, c=2.0, e=2.718281828459045)


class TestRendering(FormulaTestCase):
    def test_parentheses(self):
        cases = [
            ("1^2^3", "1^2^3"),
            ("(1^2)^3", "(1^2)^3"),
            ("a-(b-c)", "a-(b-c)"),
            ("(a-b)-c", "a-b-c"),
            ("a+(b+c)", "a+(b+c)"),
            ("a/(b*c)", "a/(b*c)"),
            ("a*b/c", "a*b/c"),
            ("(a+b)*c", "(a+b)*c"),
            ("-(a+b)", "-(a+b)"),
            ("-a", "-a"),
            ("--a", "--a"),
            ("sin(x)^2", "sin(x)^2"),
            ("sin(x+1)", "sin(x+1)"),
            ("2x", "2*x"),
            ("x ^ (a + b)", "x^(a+b)"),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                self.assertEqual(str(parse_node(text)), expected)

    def test_numbers(self):
        self.assertEqual(str(Number(2)), "2")
        self.assertEqual(str(Number(-2)), "-2")
        self.assertEqual(str(Number(0.5)), "0.5")
        self.assertEqual(str(Number(1e-5)), "1e-05")
        self.assertEqual(str(Number(1e20)), "1e+20")
        self.assertEqual(str(Number(3j)), "3i")
        self.assertEqual(str(Number(-3j)), "-3i")
        self.assertEqual(str(Number(2+3j)), "(2+3i)")
        self.assertEqual(str(Number(2-3j)), "(2-3i)")
        self.assertEqual(str(Number(float("inf"))), "1e999")
        self.assertEqual(str(Number(float("-inf"))), "-1e999")
        self.assertEqual(str(Number(complex(0, float("inf")))), "1e999i")
        self.assertEqual(str(parse_node("1e999")), "1e999")

    def test_roundtrip(self):
        texts = [
            "1^2^3", "a-(b-c)", "-x^2", "2^-x", "sin(x)^2 + 3x/2",
            "(1+2i)*x", "x-(2-3i)", "exp(-x)/2", "-(a+b)*c", "1e-5*x",
            "(-2)^x", "a/b/c", "a/(b/c)", "x^-a^2", "cbrt(-x) - -x",
            "3i*x", "-2.5*x", "1e999", "1e999i", "x - 1e999",
        ]
        for text in texts:
            with self.subTest(text=text):
                root = parse_node(text)
                again = parse_node(str(root))
                self.assertEqual(again, root)
                self.assertComplexAlmostEqual(again.calc(0.7, _VARS),
                                              root.calc(0.7, _VARS))

    def test_latex(self):
        cases = [
            ("x/2", "x/2"),
            ("(x+1)/2", r"\frac{x+1}{2}"),
            ("x^(a+b)", "x^{a+b}"),
            ("2x", "2 x"),
            ("x*2", r"x \cdot 2"),
            ("(a+b)*c", r"\left(a+b\right) c"),
            ("-(a+b)", r"-\left(a+b\right)"),
            ("(-a)^2", r"\left(-a\right)^{2}"),
            ("pi*x", r"\pi x"),
            ("ab", r"\mathrm{ab}"),
            ("sqrt(x)", r"\sqrt{x}"),
            ("cbrt(x)", r"\sqrt[3]{x}"),
            ("log(x)", r"\ln\left(x\right)"),
            ("log10(x)", r"\log_{10}\left(x\right)"),
            ("log2(x)", r"\log_{2}\left(x\right)"),
            ("sin(x)", r"\sin\left(x\right)"),
            ("gamma(x)", r"\Gamma\left(x\right)"),
            ("erf(x)", r"\operatorname{erf}\left(x\right)"),
            ("arcsinh(x)", r"\operatorname{arcsinh}\left(x\right)"),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                self.assertEqual(parse_node(text).latex(), expected)
        self.assertEqual(Number(1e-5).latex(), r"1 \cdot 10^{-5}")
        self.assertEqual(Number(2+3j).latex(), r"\left(2+3i\right)")

    def test_source(self):
        self.assertEqual(parse_node("x").source(), "x")
        self.assertEqual(parse_node("a").source(), "_var(_vars, _ctx, 'a')")
        self.assertEqual(parse_node("-x").source(), "(-x)")
        self.assertEqual(parse_node("x/2").source(), "_ctx.divide(x, (2+0j))")
        self.assertEqual(parse_node("sin(x)").source(),
                         "_ctx.function(_F.SIN, x)")

    def test_print_tree(self):
        out = io.StringIO()
        with redirect_stdout(out):
            parse_node("a+sin(x)").print_tree()
        self.assertEqual(
            out.getvalue().splitlines(),
            [
                "root [+] <BinaryOp>",
                ". l [a] <Variable>",
                ". r [sin] <Call>",
                ". . a [x] <Argument>",
            ]
        )


class TestEquality(FormulaTestCase):
    def test_structural(self):
        self.assertEqual(parse_node("x+1"), parse_node("x + 1"))
        self.assertNotEqual(parse_node("x+1"), parse_node("1+x"))
        self.assertNotEqual(Number(2), Variable("a"))
        self.assertNotEqual(Argument(), Variable("x"))
        self.assertEqual(Number(0), ZERO)
        self.assertEqual(Number(1, pos=5), ONE)
        self.assertNotEqual(Call(FunctionId.SIN, Argument()),
                            Call(FunctionId.COS, Argument()))
        self.assertEqual(hash(parse_node("a*sin(x)")),
                         hash(parse_node("a * sin(x)")))
        self.assertEqual(len({parse_node("x^2"), parse_node("x ^ 2")}), 1)

    def test_immutable(self):
        root = parse_node("x+1")
        with self.assertRaises(AttributeError):
            root.left = Number(2)
        with self.assertRaises(AttributeError):
            root.right.value = 3

    def test_traverse(self):
        root = parse_node("a*(x+1)")
        names = [name for _, name, _ in root.traverse_tree()]
        self.assertEqual(names, ["l", "r", "l", "r"])
        depths = [len(parents)
                  for parents, _, _ in root.traverse_tree(include_root=True)]
        self.assertEqual(depths, [0, 1, 1, 2, 2])


class TestCalc(FormulaTestCase):
    def test_arithmetic(self):
        self.assertEqual(parse_node("2+3*4").calc(0), 14)
        self.assertEqual(parse_node("x^2").calc(3), 9)
        self.assertEqual(parse_node("a*x").calc(2, dict(a=3)), 6)
        self.assertEqual(parse_node("7/2").calc(0), 3.5)
        self.assertEqual(parse_node("-x").calc(2j), -2j)

    def test_functions(self):
        self.assertEqual(parse_node("sqrt(-4)").calc(0), 2j)
        self.assertComplexAlmostEqual(parse_node("log(-1)").calc(0),
                                      3.141592653589793j)
        self.assertComplexAlmostEqual(parse_node("gamma(5)").calc(0), 24)
        self.assertComplexAlmostEqual(parse_node("cbrt(8)").calc(0), 2)
        self.assertComplexAlmostEqual(parse_node("erf(0)").calc(0), 0)
        self.assertComplexAlmostEqual(
            parse_node("cbrt(x)").calc(-8, ctx=RealContext()), -2
        )

    def test_undefined_variable(self):
        with self.assertRaises(UndefinedVariableError) as cm:
            parse_node("1 + a/b").calc(0)
        self.assertEqual(cm.exception.name, "a")
        self.assertErrorAt(cm.exception, 4, "undefined variable 'a'")

    def test_division_by_zero(self):
        with self.assertRaises(DivisionByZeroError) as cm:
            parse_node("1/(x-1)").calc(1)
        self.assertEqual(cm.exception.pos, 1)
        with self.assertRaises(DivisionByZeroError):
            parse_node("0^-1").calc(0)
        self.assertEqual(parse_node("1/x").calc(1e-300), 1e300)

    def test_domain(self):
        with self.assertRaises(DomainError) as cm:
            parse_node("2*gamma(x)").calc(0)
        self.assertEqual(cm.exception.pos, 2)
        with self.assertRaises(DomainError):
            parse_node("log(x)").calc(0)

    def test_fail_fast(self):
        root = BinaryOp(Operator.ADD, Variable("first"), Variable("second"))
        with self.assertRaises(UndefinedVariableError) as cm:
            root.calc(0)
        self.assertEqual(cm.exception.name, "first")
        self.assertEqual(UnaryMinus(Number(2)).calc(0), -2)


class TestDeepTrees(FormulaTestCase):
    def test_long_sum(self):
        text = "+".join(["x"] * 1000)
        root = parse_node(text)
        self.assertEqual(str(root), text)
        self.assertEqual(root.calc(1), 1000)
        self.assertEqual(sum(1 for _ in root.traverse_tree()), 1998)
        self.assertEqual(root, parse_node(text))
        self.assertEqual(hash(root), hash(parse_node(text)))
        self.assertNotEqual(root, parse_node(text + "+1"))
        self.assertEqual(str(root.derivative()), "1000")
        self.assertTrue(root.latex().startswith("x+x+"))
        self.assertEqual(str(optimize(parse_node("+".join(["1"] * 1000)))),
                         "1000")

    def test_nested(self):
        root = parse_node("(" * 1000 + "x" + ")" * 1000)
        self.assertEqual(root, Argument())
        root = parse_node("-" * 1000 + "x")
        self.assertEqual(root.calc(3), 3)
        self.assertEqual(str(root), "-" * 1000 + "x")


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
