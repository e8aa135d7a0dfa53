r"""@package formulakit

Parsing, evaluation, differentiation and rendering of formulas.

A formula is a textual mathematical expression in one free argument `x` and
any number of named variables, e.g. `a*sin(x)^2 + 3x/2`. The
formulakit.parser module turns such text into a formulakit.formula.Formula
object, which can be evaluated over the complex numbers, differentiated
symbolically w.r.t. `x`, simplified (formulakit.optimize) and rendered as
plain text or LaTeX.

The syntax tree (formulakit.nodes) is built by a shunting-yard parser from
the tokens of the formulakit.lexer. Numerical evaluation of the builtin
functions is done by the arithmetic contexts of formulakit.functions. For
evaluating a formula at many points, see formulakit.evaluators.
"""
