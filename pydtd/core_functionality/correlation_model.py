#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Correlation loss of a weight vector g and its analytic gradient.

The loss is the negative mean, over cell types, of the Pearson correlation
between the estimated composition C_hat(g) and the true composition C:

    L(g) = -1/T * sum_t cor(C_hat_t(g), C_t)

The gradient differentiates through the closed form C_hat = M X^T G Y with
M = (X^T G X)^-1. For feature k, dC_hat/dg_k = (M x_k) r_k where r_k is row k
of the residual R = Y - X C_hat, so

    dL/dg_k = -1/T * sum_j (X M A)[k, j] * R[k, j]

with A[t] the derivative of cor(C_hat_t, C_t) with respect to C_hat_t.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 14, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from typing import Optional, Tuple
import warnings

# third-party modules
import numpy as np

# project modules
from pydtd.core_functionality.estimation import (
    EstimatorMode, direct_solution, nonneg_solution
)
from pydtd.core_functionality.exceptions import DegenerateCorrelationWarning, InvalidArgument
from pydtd.core_functionality.validation import (
    as_float_matrix, as_weight_vector, check_dimensions, check_positive_int
)


def _centered(matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    centered = matrix - matrix.mean(axis=1, keepdims=True)
    norms = np.linalg.norm(centered, axis=1)
    # rows that are constant up to round-off count as zero variance
    scale = np.abs(matrix).max(axis=1) * np.sqrt(matrix.shape[1]) * np.finfo(float).eps
    norms[norms <= scale] = 0.0
    return centered, norms


def row_correlations(estimate: np.ndarray, truth: np.ndarray) -> np.ndarray:
    """ Pearson correlation between matching rows of two matrices.

    Args:
        estimate (np.ndarray): Estimated composition, types x samples.
        truth (np.ndarray): True composition, same shape.

    Returns:
        np.ndarray: One correlation per row, NaN where either row has zero variance.
    """
    estimate_centered, estimate_norms = _centered(estimate)
    truth_centered, truth_norms = _centered(truth)
    with np.errstate(divide="ignore", invalid="ignore"):
        correlations = (estimate_centered * truth_centered).sum(axis=1) / (estimate_norms * truth_norms)
    correlations[(estimate_norms == 0) | (truth_norms == 0)] = np.nan
    return correlations


class CorrelationModel():

    def __init__(
        self,
        x_matrix,
        y_matrix,
        c_matrix,
        estimator_mode=EstimatorMode.DIRECT,
        nnls_max_iter: Optional[int] = None,
    ):
        """ Holds X, Y and C for one training run and evaluates the loss of weight vectors.

        Args:
            x_matrix: Reference matrix, features x types.
            y_matrix: Training mixtures, features x samples.
            c_matrix: True composition of the mixtures, types x samples.
            estimator_mode (optional): Estimator used to score C_hat, "direct" or "non_negative".
                The gradient always uses the direct closed form. Defaults to EstimatorMode.DIRECT.
            nnls_max_iter (Optional[int], optional): Per-sample iteration budget of the non-negative
                solver. Defaults to max(3 * n_types, 50).

        Raises:
            InvalidArgument: If the matrices are malformed or their dimensions do not match.
        """
        self._x = as_float_matrix(x_matrix, "CorrelationModel", "X")
        self._y = as_float_matrix(y_matrix, "CorrelationModel", "Y")
        self._c = as_float_matrix(c_matrix, "CorrelationModel", "C")
        self._n_features, self._n_types, self._n_samples = check_dimensions(
            self._x, self._y, np.ones(self._x.shape[0]), "CorrelationModel", c_matrix=self._c
        )
        self._estimator_mode = EstimatorMode.parse(estimator_mode)
        if nnls_max_iter is None:
            nnls_max_iter = max(3 * self._n_types, 50)
        self._nnls_max_iter = check_positive_int(nnls_max_iter, "CorrelationModel", "nnls_max_iter")

    @property
    def n_features(self) -> int:
        return self._n_features

    @property
    def n_types(self) -> int:
        return self._n_types

    @property
    def n_samples(self) -> int:
        return self._n_samples

    @property
    def estimator_mode(self) -> EstimatorMode:
        return self._estimator_mode

    def check_weights(self, g) -> np.ndarray:
        """ Validate a weight vector against this model.

        Raises:
            InvalidArgument: If g is not a finite vector with one entry per feature, or has negative
                entries while the model estimates non-negatively.
        """
        g = as_weight_vector(g, "CorrelationModel", "g", length=self._n_features)
        if self._estimator_mode == EstimatorMode.NON_NEGATIVE and np.any(g < 0):
            raise InvalidArgument("In CorrelationModel: 'g' must not contain negative entries in non_negative mode")
        return g

    def estimate(self, g) -> np.ndarray:
        """Estimated composition C_hat(g) with the model's estimator."""
        return self._estimate(self.check_weights(g))

    def _estimate(self, g: np.ndarray) -> np.ndarray:
        if self._estimator_mode == EstimatorMode.DIRECT:
            c_hat, _ = direct_solution(self._x, self._y, g)
            return c_hat
        return nonneg_solution(self._x, self._y, g, self._nnls_max_iter)

    def correlations(self, g) -> np.ndarray:
        """Correlation of every row of C_hat(g) with the matching row of C."""
        return row_correlations(self.estimate(g), self._c)

    def evaluate(self, g) -> float:
        """ Loss of g: the negative mean row correlation between C_hat(g) and C.

        A row with zero variance gives a NaN correlation; the NaN is kept in the mean and a
        DegenerateCorrelationWarning is issued.

        Raises:
            SingularMatrix: In direct mode, if X^T diag(g) X is not positive definite.
            DidNotConverge: In non-negative mode, if a sample's solve does not converge.
        """
        return self._loss(self._estimate(self.check_weights(g)))

    def _loss(self, c_hat: np.ndarray) -> float:
        correlations = row_correlations(c_hat, self._c)
        if np.any(np.isnan(correlations)):
            warnings.warn(
                f"{int(np.isnan(correlations).sum())} of {self._n_types} rows have an undefined correlation",
                DegenerateCorrelationWarning,
            )
        return -float(np.mean(correlations))

    def gradient(self, g) -> np.ndarray:
        """ Gradient of the loss with respect to g, capped at zero from above.

        Always computed through the direct closed form, also in non-negative mode. This is the exact
        derivative of the mean over the types. The gradient of the summed correlation is n_types
        times larger, and so is a lambda tuned against it.

        Raises:
            SingularMatrix: If X^T diag(g) X is not positive definite.
        """
        g = self.check_weights(g)
        c_hat, xtgxi = direct_solution(self._x, self._y, g)
        return self._gradient(c_hat, xtgxi)

    def loss_and_gradient(self, g) -> Tuple[float, np.ndarray]:
        """Loss and gradient sharing one (X^T G X)^-1."""
        g = self.check_weights(g)
        c_hat, xtgxi = direct_solution(self._x, self._y, g)
        if self._estimator_mode == EstimatorMode.DIRECT:
            loss = self._loss(c_hat)
        else:
            loss = self._loss(nonneg_solution(self._x, self._y, g, self._nnls_max_iter))
        return loss, self._gradient(c_hat, xtgxi)

    def _gradient(self, c_hat: np.ndarray, xtgxi: np.ndarray) -> np.ndarray:
        estimate_centered, estimate_norms = _centered(c_hat)
        truth_centered, truth_norms = _centered(self._c)
        degenerate = (estimate_norms == 0) | (truth_norms == 0)

        with np.errstate(divide="ignore", invalid="ignore"):
            correlations = (estimate_centered * truth_centered).sum(axis=1) / (estimate_norms * truth_norms)
            # d cor(C_hat_t, C_t) / d C_hat_t
            a = (
                truth_centered / truth_norms[:, None]
                - correlations[:, None] * estimate_centered / estimate_norms[:, None]
            ) / estimate_norms[:, None]
        a[degenerate] = np.nan
        if np.any(degenerate):
            warnings.warn(
                f"{int(degenerate.sum())} of {self._n_types} rows have an undefined correlation",
                DegenerateCorrelationWarning,
            )

        residual = self._y - self._x @ c_hat
        gradient = -((self._x @ (xtgxi @ a)) * residual).sum(axis=1) / self._n_types
        return np.minimum(gradient, 0.0)
