r"""@package formulakit.lexer

Lexical analysis of formulas.

The Lexer splits the formula text into a stream of classified Token objects
which are consumed one at a time by the parser. Besides plain tokenizing, the
lexer takes care of two context dependent decisions:

    * whether a `-` is a binary subtraction or a unary minus (it is unary at
      the start of the input and after any operator except a closing
      parenthesis)
    * implicit multiplication: in `4x`, `2(x+1)` or `(a)(b)`, a synthetic `*`
      token is emitted between the two operands

@b Examples

\code
    for tok in Lexer("2x^2 - sin(x)"):
        print(tok)
\endcode
"""

from enum import Enum
import unicodedata

from .functions import lookup


__all__ = [
    "TokenType",
    "Operator",
    "Token",
    "Lexer",
    "PRECEDENCE",
    "RIGHT_ASSOC",
]


class TokenType(Enum):
    r"""Kinds of tokens produced by the Lexer."""
    ERROR = 0
    UNKNOWN = 1
    WHITESPACE = 2
    NUMERIC = 3
    IDENTIFIER = 4
    OPERATOR = 5


class Operator(Enum):
    r"""Operators known to the parser.

    Function application is an operator too, binding the operand following
    the function name.
    """
    FUNC = 1
    OPEN = 2
    CLOSE = 3
    ADD = 4
    SUBTRACT = 5
    MINUS = 6
    MULTIPLY = 7
    DIVIDE = 8
    POWER = 9

    @property
    def symbol(self):
        r"""Character representing the operator in formulas."""
        return _SYMBOLS[self]

    @property
    def precedence(self):
        return PRECEDENCE[self]

    @property
    def right_assoc(self):
        return self in RIGHT_ASSOC

    def __str__(self):
        return self.symbol


_SYMBOLS = {
    Operator.FUNC: "func",
    Operator.OPEN: "(",
    Operator.CLOSE: ")",
    Operator.ADD: "+",
    Operator.SUBTRACT: "-",
    Operator.MINUS: "-",
    Operator.MULTIPLY: "*",
    Operator.DIVIDE: "/",
    Operator.POWER: "^",
}

## Binding strength of the operators (higher binds tighter).
PRECEDENCE = {
    Operator.OPEN: 0,
    Operator.CLOSE: 0,
    Operator.ADD: 1,
    Operator.SUBTRACT: 1,
    Operator.MULTIPLY: 2,
    Operator.DIVIDE: 2,
    Operator.FUNC: 3,
    Operator.POWER: 4,
    Operator.MINUS: 5,
}

## Operators grouping from the right, i.e. `a^b^c = a^(b^c)`.
RIGHT_ASSOC = frozenset([Operator.MINUS, Operator.POWER, Operator.FUNC])

_OPERATOR_CHARS = {
    '(': Operator.OPEN,
    ')': Operator.CLOSE,
    '+': Operator.ADD,
    '*': Operator.MULTIPLY,
    '/': Operator.DIVIDE,
    '^': Operator.POWER,
}


class Token(object):
    r"""A single token of the formula text.

    @param type
        The TokenType of the token.
    @param data
        The text of the token (empty for the final ERROR token).
    @param pos
        Offset of the first character of the token in the source text.
    @param op
        The Operator for OPERATOR tokens.
    @param function
        The functions.FunctionId for function tokens (`op == FUNC`).
    """
    __slots__ = ("type", "data", "pos", "op", "function")

    def __init__(self, type, data, pos, op=None, function=None):
        # pylint: disable=redefined-builtin
        self.type = type
        self.data = data
        self.pos = pos
        self.op = op
        self.function = function

    def __repr__(self):
        if self.type is TokenType.OPERATOR:
            if self.op is Operator.FUNC:
                return "Token(func %s@%d)" % (self.function, self.pos)
            return "Token(%s %r@%d)" % (self.op.name, self.data, self.pos)
        return "Token(%s %r@%d)" % (self.type.name, self.data, self.pos)


def _is_digit(c):
    return '0' <= c <= '9'


def _is_identifier_start(c):
    if c.isascii():
        return c.isalpha()
    return c.isidentifier()


def _is_identifier_continue(c):
    if c.isascii():
        return c.isalnum() or c == '_'
    return c in '\u200c\u200d' or ("a" + c).isidentifier()


def _is_whitespace(c):
    return c in (' ', '\t', '\ufeff') or unicodedata.category(c) == 'Zs'


class Lexer(object):
    r"""Lexer turning formula text into Token objects.

    Call next() repeatedly to get one token at a time. When the input is
    exhausted, a token of type TokenType.ERROR is returned. The `err`
    attribute then is `None` for a regular end of input or holds the
    exception raised while reading the source stream.
    """
    def __init__(self, source):
        r"""Create a lexer for a string or a readable text stream."""
        ## Error encountered while reading the input (or `None`).
        self.err = None
        if hasattr(source, 'read'):
            try:
                source = source.read()
            except (OSError, UnicodeError) as e:
                self.err = e
                source = ""
        self._text = source
        self._pos = 0
        self._last_type = None
        self._last_op = None

    @property
    def pos(self):
        r"""Current offset into the source text."""
        return self._pos

    def __iter__(self):
        while True:
            tok = self.next()
            if tok.type is TokenType.ERROR:
                return
            yield tok

    def next(self):
        r"""Scan and return the next Token."""
        text, start = self._text, self._pos
        if start >= len(text):
            return Token(TokenType.ERROR, "", start)
        numeric = self._numeric_start(start)
        identifier = not numeric and _is_identifier_start(text[start])
        if numeric or identifier or text[start] == '(':
            if (self._last_type in (TokenType.NUMERIC, TokenType.IDENTIFIER)
                    or (self._last_type is TokenType.OPERATOR
                        and self._last_op is Operator.CLOSE)):
                self._last_type = TokenType.OPERATOR
                self._last_op = Operator.MULTIPLY
                return Token(TokenType.OPERATOR, "*", start,
                             op=Operator.MULTIPLY)
        op = function = None
        if numeric:
            tt = TokenType.NUMERIC
            self._pos = self._numeric_end(start)
        elif identifier:
            tt, function = self._consume_identifier()
            if function is not None:
                op = Operator.FUNC
        elif self._consume_operator():
            tt = TokenType.OPERATOR
            op = self._last_op
        elif self._consume_whitespace():
            while self._consume_whitespace():
                pass
            # Whitespace is transparent for the context decisions.
            return Token(TokenType.WHITESPACE, text[start:self._pos], start)
        else:
            self._pos += 1
            tt = TokenType.UNKNOWN
        self._last_type = tt
        return Token(tt, text[start:self._pos], start, op=op,
                     function=function)

    def _peek(self, i):
        if i < len(self._text):
            return self._text[i]
        return ''

    def _numeric_start(self, i):
        c = self._peek(i)
        return _is_digit(c) or (c == '.' and _is_digit(self._peek(i+1)))

    def _consume_digits(self, i):
        while _is_digit(self._peek(i)):
            i += 1
        return i

    def _real_end(self, i):
        r"""Return the end of a real literal (mantissa and exponent) at i."""
        start = i
        i = self._consume_digits(i)
        if self._peek(i) == '.' and (i > start or _is_digit(self._peek(i+1))):
            i = self._consume_digits(i+1)
        if self._peek(i) in ('e', 'E'):
            j = i + 1
            if self._peek(j) in ('+', '-'):
                j += 1
            if _is_digit(self._peek(j)):
                # Otherwise the `e` could belong to the next token.
                i = self._consume_digits(j)
        return i

    def _imaginary_end(self, i):
        r"""Return the position after an `i` suffix at i or `None`."""
        if self._peek(i) in ('i', 'I'):
            c = self._peek(i+1)
            if not (c and _is_identifier_continue(c)):
                return i + 1
        return None

    def _skip_blanks(self, i):
        while self._peek(i) in (' ', '\t'):
            i += 1
        return i

    def _numeric_end(self, start):
        i = self._real_end(start)
        imag_end = self._imaginary_end(i)
        if imag_end is not None:
            return imag_end
        combined = self._combined_end(i)
        return i if combined is None else combined

    def _combined_end(self, i):
        r"""Try to extend a real literal ending at i by `+<imaginary>`.

        The combined literal is only formed where grouping it cannot change
        the meaning of the formula, i.e. the literal is not preceded by an
        operator binding tighter than `+` and the imaginary part is not
        followed by one.
        """
        if not (self._last_type is None
                or (self._last_type is TokenType.OPERATOR
                    and self._last_op in (Operator.OPEN, Operator.ADD))):
            return None
        j = self._skip_blanks(i)
        if self._peek(j) != '+':
            return None
        j = self._skip_blanks(j+1)
        if not self._numeric_start(j):
            return None
        end = self._imaginary_end(self._real_end(j))
        if end is None:
            return None
        if self._peek(self._skip_blanks(end)) not in ('', ')', '+', '-'):
            return None
        return end

    def _consume_identifier(self):
        i = self._pos + 1
        while True:
            c = self._peek(i)
            if not c or not _is_identifier_continue(c):
                break
            i += 1
        ident = self._text[self._pos:i].lower()
        self._pos = i
        if ident == "i":
            return TokenType.NUMERIC, None
        function = lookup(ident)
        if function is not None:
            self._last_op = Operator.FUNC
            return TokenType.OPERATOR, function
        return TokenType.IDENTIFIER, None

    def _consume_operator(self):
        c = self._peek(self._pos)
        if c == '-':
            if (self._last_type is None
                    or (self._last_type is TokenType.OPERATOR
                        and self._last_op is not Operator.CLOSE)):
                op = Operator.MINUS
            else:
                op = Operator.SUBTRACT
        else:
            op = _OPERATOR_CHARS.get(c)
            if op is None:
                return False
        self._pos += 1
        self._last_op = op
        return True

    def _consume_whitespace(self):
        c = self._peek(self._pos)
        if c and _is_whitespace(c):
            self._pos += 1
            return True
        return False
