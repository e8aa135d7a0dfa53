r"""@package formulakit.errors

Exceptions and warnings raised by the formula system.

All errors derive from FormulaError, which stores the (0-based) character
offset into the parsed text at which the problem was detected, if known.
"""


__all__ = [
    "FormulaError",
    "LexError",
    "ParseError",
    "FormulaSyntaxError",
    "EvaluationError",
    "UndefinedVariableError",
    "DivisionByZeroError",
    "UnknownFunctionError",
    "DomainError",
    "UnsupportedDerivativeError",
    "FormulaWarning",
]


class FormulaError(Exception):
    r"""Base class of all errors of the formula system.

    The string representation is ``"<pos>: <message>"`` or just the message
    in case no position is known.
    """
    def __init__(self, message, pos=None):
        super(FormulaError, self).__init__(message)
        ## Human readable description of the problem.
        self.message = message
        ## Character offset into the source text (or `None`).
        self.pos = pos

    def __str__(self):
        if self.pos is None:
            return self.message
        return "%d: %s" % (self.pos, self.message)


class LexError(FormulaError):
    r"""Raised for characters that cannot start any token."""
    pass


class ParseError(FormulaError):
    r"""Raised for structural problems found by the parser."""
    pass


class FormulaSyntaxError(FormulaError):
    r"""Collection of all lexing/parsing errors found in one formula.

    The individual errors are available in the `errors` list, in the order
    in which they were encountered.
    """
    def __init__(self, errors):
        errors = list(errors)
        pos = errors[0].pos if errors else None
        super(FormulaSyntaxError, self).__init__(
            "; ".join(str(e) for e in errors), pos=None
        )
        ## List of LexError and ParseError objects.
        self.errors = errors
        ## Position of the first error.
        self.first_pos = pos

    def __str__(self):
        return self.message


class EvaluationError(FormulaError):
    r"""Base class for errors during numeric evaluation."""
    pass


class UndefinedVariableError(EvaluationError):
    r"""A variable has no value in the binding table."""
    def __init__(self, name, pos=None):
        super(UndefinedVariableError, self).__init__(
            "undefined variable '%s'" % name, pos=pos
        )
        ## Name of the missing variable.
        self.name = name


class DivisionByZeroError(EvaluationError):
    pass


class UnknownFunctionError(EvaluationError):
    pass


class DomainError(EvaluationError):
    r"""A function was evaluated outside of where it is defined."""
    pass


class UnsupportedDerivativeError(FormulaError):
    r"""A function has no rule in the derivative table."""
    pass


class FormulaWarning(UserWarning):
    """Warning issued when formulas might not evaluate as expected."""
    pass
