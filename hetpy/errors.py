"""
Exceptions raised by the hetpy solver core.

Non-convergence of the self-consistent cycle is not an exception: it is
reported by the boolean returned from ``SelfConsistentSolver.run``.
"""


class HetpyError(Exception):
    """Base class for all solver errors."""


class ShapeMismatchError(HetpyError, ValueError):
    """Two fields, or a field and an operator, do not have the same shape."""


class DomainCoverageError(HetpyError, ValueError):
    """The layer table does not cover a queried position."""


class SingularOperatorError(HetpyError, ArithmeticError):
    """The factorisation of a linear operator met a (numerically) zero pivot."""
