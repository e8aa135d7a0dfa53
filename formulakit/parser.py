r"""@package formulakit.parser

Shunting-yard parser turning formula text into a formula.Formula.

The parser consumes the tokens of a lexer.Lexer and rearranges them into
postfix order using an output queue and an operator stack. Afterwards, the
queue is reduced into a tree of nodes.Node objects using a stack, so the
nesting depth of a formula is not limited by the recursion limit.

Lexing errors (unknown characters) are collected and parsing continues, so
that all of them can be reported at once. Structural errors abort parsing.
In both cases a errors.FormulaSyntaxError is raised containing all the
problems found.

@b Examples

\code
    f = parse("sin(x)^2 + 3x")
    print(f.calc(0.5))
    print(f.derivative())
\endcode
"""

import logging

from .config import get_config
from .errors import FormulaSyntaxError, LexError, ParseError
from .formula import Formula
from .functions import FunctionId
from .lexer import Lexer, Operator, TokenType
from .nodes import Argument, BinaryOp, Call, Number, UnaryMinus, Variable


__all__ = [
    "parse",
    "parse_node",
    "parse_number",
    "Parser",
]


def parse(text, vars=None, optimize=None):
    r"""Parse a formula.

    @param text
        Formula text or readable text stream.
    @param vars
        Optional mapping of variable values. Names are case-insensitive.
        The constants `e`, `pi` and `phi` are always available unless
        overridden here.
    @param optimize
        Whether to simplify the parsed tree right away. By default, the
        ``optimize_after_parse`` configuration option is used.

    @return formula.Formula object.

    @b Raises

    errors.FormulaSyntaxError if the text is not a valid formula.
    """
    # pylint: disable=redefined-builtin
    root = parse_node(text)
    formula = Formula(root, vars)
    if optimize is None:
        optimize = get_config().optimize_after_parse
    if optimize:
        formula.optimize()
    return formula


def parse_node(text):
    r"""Parse a formula and return the root node of its tree."""
    return Parser(Lexer(text)).parse()


def parse_number(data, pos=None):
    r"""Convert the text of a numeric token into a complex number.

    Literals with a trailing `i` are imaginary. Combined literals like
    ``1.5+2i`` are split at the `+` which is not part of an exponent.
    """
    literal = "".join(data.split())
    try:
        if literal.lower() == "i":
            return complex(0.0, 1.0)
        if literal[-1] not in ('i', 'I'):
            return complex(float(literal), 0.0)
        body = literal[:-1]
        split = None
        for k in range(1, len(body)):
            if body[k] == '+' and body[k-1] not in ('e', 'E'):
                split = k
        if split is None:
            return complex(0.0, float(body))
        return complex(float(body[:split]), float(body[split+1:]))
    except (ValueError, IndexError) as e:
        raise ParseError("could not parse number '%s': %s" % (data, e),
                         pos=pos)


class Parser(object):
    r"""Operator precedence parser for the tokens of one formula."""

    def __init__(self, lexer):
        self._lexer = lexer
        self._output = []
        self._stack = []
        self._errors = []

    def parse(self):
        r"""Parse all tokens and return the root node.

        May only be called once per parser.
        """
        try:
            self._shunt()
            while self._stack:
                self._pop_operator(drain=True)
            if self._errors:
                raise FormulaSyntaxError(self._errors)
            if not self._output:
                raise ParseError("empty formula")
            logging.debug("postfix: %s", self._output)
            root = self._reduce()
        except ParseError as e:
            raise FormulaSyntaxError(self._errors + [e])
        return root

    def _shunt(self):
        for tok in self._lexer:
            if tok.type is TokenType.WHITESPACE:
                continue
            if tok.type is TokenType.UNKNOWN:
                self._errors.append(LexError("bad input", pos=tok.pos))
            elif tok.type in (TokenType.NUMERIC, TokenType.IDENTIFIER):
                self._output.append(tok)
            elif tok.op in (Operator.FUNC, Operator.OPEN):
                self._stack.append(tok)
            elif tok.op is Operator.CLOSE:
                self._close(tok)
            else:
                self._push_operator(tok)
        if self._lexer.err is not None:
            self._errors.append(LexError("could not read input: %s"
                                         % self._lexer.err,
                                         pos=self._lexer.pos))

    def _close(self, tok):
        stack = self._stack
        while stack and stack[-1].op is not Operator.OPEN:
            self._pop_operator()
        if not stack:
            raise ParseError("mismatched closing parenthesis", pos=tok.pos)
        stack.pop()
        if stack and stack[-1].op is Operator.FUNC:
            # The group is the function's operand.
            self._pop_operator()

    def _push_operator(self, tok):
        op = tok.op
        stack = self._stack
        while stack and stack[-1].op is not Operator.OPEN:
            top = stack[-1].op
            if not (top.precedence > op.precedence
                    or (top.precedence == op.precedence
                        and not op.right_assoc)):
                break
            self._pop_operator()
        stack.append(tok)

    def _pop_operator(self, drain=False):
        tok = self._stack.pop()
        if drain and tok.op is Operator.OPEN:
            # Unclosed parenthesis, implicitly closed at the end.
            return
        self._output.append(tok)

    def _operands(self, tok, nodes, n):
        if len(nodes) < n:
            raise ParseError("operator has no operands", pos=tok.pos)
        args = nodes[len(nodes)-n:]
        del nodes[len(nodes)-n:]
        return args

    def _reduce(self):
        r"""Build the tree from the postfix queue, left to right."""
        nodes = []
        for tok in self._output:
            if tok.type is TokenType.NUMERIC:
                nodes.append(Number(parse_number(tok.data, tok.pos),
                                    pos=tok.pos))
            elif tok.type is TokenType.IDENTIFIER:
                name = tok.data.lower()
                if name == "x":
                    nodes.append(Argument(pos=tok.pos))
                else:
                    nodes.append(Variable(name, pos=tok.pos))
            elif tok.op is Operator.FUNC:
                a, = self._operands(tok, nodes, 1)
                nodes.append(self._call(tok, a))
            elif tok.op is Operator.MINUS:
                a, = self._operands(tok, nodes, 1)
                nodes.append(UnaryMinus(a, pos=tok.pos))
            else:
                left, right = self._operands(tok, nodes, 2)
                nodes.append(BinaryOp(tok.op, left, right, pos=tok.pos))
        if len(nodes) > 1:
            raise ParseError("some operands remain unparsed",
                             pos=self._output[0].pos)
        return nodes[0]

    def _call(self, tok, a):
        if tok.function is FunctionId.EXP:
            return BinaryOp(Operator.POWER, Variable("e", pos=tok.pos), a,
                            pos=tok.pos)
        function = tok.function
        if function is FunctionId.LN:
            function = FunctionId.LOG
        return Call(function, a, pos=tok.pos)
