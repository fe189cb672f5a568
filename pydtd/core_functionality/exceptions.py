#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Exceptions and warning categories raised by pydtd.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 12, 2026"
__updated__ = "October 02, 2026"


class DTDError(Exception):
    """Base class for every error pydtd raises on purpose."""


class InvalidArgument(DTDError, ValueError):
    """Bad input: dimension mismatch, malformed configuration, non-numeric values."""


class DataError(DTDError):
    """Input files that cannot be read or do not line up with each other."""


class NumericalError(DTDError, ArithmeticError):
    """Base class for failures that happen while evaluating the model."""


class SingularMatrix(NumericalError):
    """The weighted gram matrix X^T diag(g) X is not positive definite."""


class DidNotConverge(NumericalError):
    """A per-sample non-negative least squares solve ran out of iterations."""

    def __init__(self, message: str, sample_index: int = -1):
        super().__init__(message)
        self.sample_index = sample_index


class DegenerateCorrelation(NumericalError):
    """The loss or gradient is undefined at the current point."""


class TrainingAborted(DTDError):
    """A numerical failure stopped a FISTA run.

    The iterations completed before the failure are kept in ``partial_result``
    and the numerical error is chained as ``__cause__``.
    """

    def __init__(self, message: str, partial_result=None):
        super().__init__(message)
        self.partial_result = partial_result


class DegenerateCorrelationWarning(RuntimeWarning):
    """Some rows of C_hat or C have zero variance, their correlation is NaN."""


class ModeConflictWarning(UserWarning):
    """A requested estimator mode disagrees with the mode a model was trained with."""
