#!/usr/bin/env python3

import io
import unittest
import sys

from testutils import FormulaTestCase
from .functions import FunctionId
from .lexer import Lexer, Operator, TokenType


def _tokens(text):
    return [(tok.type, tok.data) for tok in Lexer(text)]


def _types(text):
    return [tok.type for tok in Lexer(text)]


def _ops(text):
    return [tok.op for tok in Lexer(text) if tok.type is TokenType.OPERATOR]


N = TokenType.NUMERIC
I = TokenType.IDENTIFIER
O = TokenType.OPERATOR
W = TokenType.WHITESPACE


class _BrokenStream(object):
    def read(self):
        raise OSError("device not ready")


class TestLexer(FormulaTestCase):
    def test_simple(self):
        self.assertEqual(
            _ops("2x^2 - sin(x)"),
            [Operator.MULTIPLY, Operator.POWER, Operator.SUBTRACT,
             Operator.FUNC, Operator.OPEN, Operator.CLOSE]
        )
        self.assertEqual(
            _tokens("1 + x"),
            [(N, "1"), (W, " "), (O, "+"), (W, " "), (I, "x")]
        )

    def test_positions(self):
        self.assertEqual([tok.pos for tok in Lexer("1 + x")], [0, 1, 2, 3, 4])
        self.assertEqual([tok.pos for tok in Lexer("4x")], [0, 1, 1])

    def test_end_of_input(self):
        lexer = Lexer("x")
        self.assertIs(lexer.next().type, I)
        tok = lexer.next()
        self.assertIs(tok.type, TokenType.ERROR)
        self.assertIsNone(lexer.err)
        self.assertIs(lexer.next().type, TokenType.ERROR)
        self.assertEqual(list(Lexer("")), [])

    def test_unary_minus(self):
        self.assertEqual(_ops("-x"), [Operator.MINUS])
        self.assertEqual(_ops("2*-x"), [Operator.MULTIPLY, Operator.MINUS])
        self.assertEqual(_ops("(-x)"),
                         [Operator.OPEN, Operator.MINUS, Operator.CLOSE])
        self.assertEqual(_ops("x-1"), [Operator.SUBTRACT])
        self.assertEqual(_ops("(x)-1"),
                         [Operator.OPEN, Operator.CLOSE, Operator.SUBTRACT])
        self.assertEqual(_ops("2 - -3"), [Operator.SUBTRACT, Operator.MINUS])
        self.assertEqual(_ops("x^-2"), [Operator.POWER, Operator.MINUS])

    def test_implicit_multiplication(self):
        self.assertEqual(_ops("2(x)"),
                         [Operator.MULTIPLY, Operator.OPEN, Operator.CLOSE])
        self.assertEqual(
            _ops("(a)(b)"),
            [Operator.OPEN, Operator.CLOSE, Operator.MULTIPLY, Operator.OPEN,
             Operator.CLOSE]
        )
        self.assertEqual(_ops("x sin(x)"),
                         [Operator.MULTIPLY, Operator.FUNC, Operator.OPEN,
                          Operator.CLOSE])
        self.assertEqual(_types("2 x"), [N, W, O, I])
        self.assertEqual(_tokens("ab"), [(I, "ab")])
        tokens = list(Lexer("3x"))
        self.assertEqual(tokens[1].data, "*")
        self.assertIs(tokens[1].op, Operator.MULTIPLY)

    def test_numbers(self):
        self.assertEqual(_tokens("1.5e3"), [(N, "1.5e3")])
        self.assertEqual(_tokens("1.5E-3"), [(N, "1.5E-3")])
        self.assertEqual(_tokens(".5"), [(N, ".5")])
        self.assertEqual(_tokens("1.5e"), [(N, "1.5"), (O, "*"), (I, "e")])
        self.assertEqual(
            _tokens("2e+x"),
            [(N, "2"), (O, "*"), (I, "e"), (O, "+"), (I, "x")]
        )
        self.assertEqual(_tokens("5.5.5"), [(N, "5.5"), (O, "*"), (N, ".5")])
        self.assertEqual(_tokens("1."), [(N, "1.")])
        self.assertEqual(_tokens("2.x"), [(N, "2."), (O, "*"), (I, "x")])

    def test_imaginary_numbers(self):
        self.assertEqual(_tokens("3i"), [(N, "3i")])
        self.assertEqual(_tokens("3I"), [(N, "3I")])
        self.assertEqual(_tokens("i"), [(N, "i")])
        self.assertEqual(_tokens("I"), [(N, "I")])
        self.assertEqual(_tokens("3in"), [(N, "3"), (O, "*"), (I, "in")])
        self.assertEqual(_tokens("pi"), [(I, "pi")])

    def test_combined_numbers(self):
        self.assertEqual(_tokens("1.3e-3+4.5e-7i"), [(N, "1.3e-3+4.5e-7i")])
        self.assertEqual(_tokens("1 + 2i"), [(N, "1 + 2i")])
        self.assertEqual(_tokens("(1+2i)"),
                         [(O, "("), (N, "1+2i"), (O, ")")])
        self.assertEqual(_tokens("x+1+2i"),
                         [(I, "x"), (O, "+"), (N, "1+2i")])
        self.assertEqual(_tokens("1+2i-x")[0], (N, "1+2i"))
        # grouping would change the value
        self.assertEqual(
            _tokens("2*1+2i"),
            [(N, "2"), (O, "*"), (N, "1"), (O, "+"), (N, "2i")]
        )
        self.assertEqual(
            _tokens("1+2i*x"),
            [(N, "1"), (O, "+"), (N, "2i"), (O, "*"), (I, "x")]
        )
        self.assertEqual(_tokens("1+x"), [(N, "1"), (O, "+"), (I, "x")])

    def test_identifiers(self):
        self.assertEqual(_tokens("a_1"), [(I, "a_1")])
        self.assertEqual(_tokens("αβ"), [(I, "αβ")])
        tokens = list(Lexer("SIN(x)"))
        self.assertIs(tokens[0].type, O)
        self.assertIs(tokens[0].op, Operator.FUNC)
        self.assertIs(tokens[0].function, FunctionId.SIN)
        self.assertEqual(tokens[0].data, "SIN")
        self.assertIs(list(Lexer("log10"))[0].function, FunctionId.LOG10)
        self.assertIs(list(Lexer("sine"))[0].type, I)

    def test_whitespace(self):
        self.assertEqual(_tokens(" \t x"), [(W, " \t "), (I, "x")])
        self.assertEqual(_types("1\u00a0 +\ufeff2"), [N, W, O, W, N])
        self.assertEqual(_types("1\n+2"), [N, TokenType.UNKNOWN, O, N])
        self.assertEqual(_types("1\r"), [N, TokenType.UNKNOWN])

    def test_unknown(self):
        self.assertEqual(_types("4&4"), [N, TokenType.UNKNOWN, N])
        tokens = list(Lexer("4&4"))
        self.assertEqual(tokens[1].pos, 1)
        self.assertEqual(tokens[1].data, "&")

    def test_stream(self):
        self.assertEqual(_tokens(io.StringIO("x+1")),
                         [(I, "x"), (O, "+"), (N, "1")])
        lexer = Lexer(_BrokenStream())
        self.assertIs(lexer.next().type, TokenType.ERROR)
        self.assertIsInstance(lexer.err, OSError)

    def test_operator_table(self):
        self.assertGreater(Operator.MINUS.precedence, Operator.POWER.precedence)
        self.assertGreater(Operator.POWER.precedence, Operator.FUNC.precedence)
        self.assertGreater(Operator.FUNC.precedence,
                           Operator.MULTIPLY.precedence)
        self.assertEqual(Operator.MULTIPLY.precedence,
                         Operator.DIVIDE.precedence)
        self.assertGreater(Operator.DIVIDE.precedence, Operator.ADD.precedence)
        self.assertTrue(Operator.POWER.right_assoc)
        self.assertFalse(Operator.SUBTRACT.right_assoc)
        self.assertEqual(str(Operator.POWER), "^")


def run_tests():
    suite = unittest.TestLoader().loadTestsFromModule(sys.modules[__name__])
    return len(unittest.TextTestRunner(verbosity=2).run(suite).failures)


if __name__ == '__main__':
    unittest.main()
