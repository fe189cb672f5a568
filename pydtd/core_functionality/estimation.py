#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Weighted least squares estimators of the composition matrix C.

Given a reference matrix X (features x types), mixtures Y (features x samples)
and a weight vector g, both estimators solve

    argmin_C || diag(g)^(1/2) (Y - X C) ||_2

either in closed form ("direct"), C = (X^T G X)^-1 X^T G Y, or column by
column under the constraint C >= 0 ("non_negative").
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 13, 2026"
__updated__ = "October 02, 2026"

# built-in modules
from enum import Enum
from typing import Optional, Tuple
import warnings

# third-party modules
import numpy as np
import pandas as pd
from scipy.linalg import LinAlgError, cho_factor, cho_solve

# project modules
from pydtd.core_functionality.exceptions import (
    DidNotConverge, InvalidArgument, ModeConflictWarning, SingularMatrix
)
from pydtd.core_functionality.validation import (
    as_float_matrix, as_weight_vector, check_dimensions, check_positive_int
)

# Tolerance of the X^T G X (X^T G X)^-1 == I check, scaled by n_types^2
POSDEF_CHECK_EPSILON = 1e-8

RAISE_ON_FAILURE = "raise"
SKIP_ON_FAILURE = "skip"


class EstimatorMode(str, Enum):
    DIRECT = "direct"
    NON_NEGATIVE = "non_negative"

    @classmethod
    def parse(cls, value) -> "EstimatorMode":
        """ Resolve a mode given as an EstimatorMode or a string ("direct", "non_negative", "non-negative").

        Raises:
            InvalidArgument: If the value names no estimator.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "_")
            for mode in cls:
                if mode.value == key:
                    return mode
        raise InvalidArgument(
            f"In EstimatorMode: there is no estimator for '{value}', "
            f"use one of {[mode.value for mode in cls]}"
        )


def invert_weighted_gram(x_matrix: np.ndarray, g: np.ndarray) -> np.ndarray:
    """ Compute (X^T diag(g) X)^-1 with a Cholesky solve against the identity.

    diag(g) is applied as a row scaling of X, never built as a dense matrix.

    Args:
        x_matrix (np.ndarray): Reference matrix, features x types.
        g (np.ndarray): Weight vector, one entry per feature.

    Raises:
        SingularMatrix: If X^T diag(g) X is not (numerically) positive definite.

    Returns:
        np.ndarray: The inverse, types x types.
    """
    n_types = x_matrix.shape[1]
    gram = (x_matrix * g[:, None]).T @ x_matrix
    gram = 0.5 * (gram + gram.T)
    if not np.all(np.isfinite(gram)) or np.any(np.diag(gram) <= 0):
        raise SingularMatrix("X^T diag(g) X is not positive definite (non-positive diagonal)")

    try:
        factor, lower = cho_factor(gram, lower=True, check_finite=False)
    except LinAlgError as e:
        raise SingularMatrix(f"X^T diag(g) X is not positive definite: {e}") from e

    pivots = np.abs(np.diag(factor))
    if pivots.min() ** 2 <= pivots.max() ** 2 * n_types * 100 * np.finfo(float).eps:
        raise SingularMatrix("X^T diag(g) X is numerically singular")

    identity = np.eye(n_types)
    xtgxi = cho_solve((factor, lower), identity, check_finite=False)
    residual = np.linalg.norm(xtgxi @ gram - identity)
    if not np.isfinite(residual) or residual >= n_types * n_types * POSDEF_CHECK_EPSILON:
        raise SingularMatrix(f"X^T diag(g) X could not be inverted accurately (residual {residual:.3e})")
    return xtgxi


def direct_solution(x_matrix: np.ndarray, y_matrix: np.ndarray, g: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    # unchecked variant used by the correlation model
    xtgxi = invert_weighted_gram(x_matrix, g)
    c_hat = xtgxi @ ((x_matrix * g[:, None]).T @ y_matrix)
    return c_hat, xtgxi


def estimate_direct(x_matrix, y_matrix, g) -> Tuple[np.ndarray, np.ndarray]:
    """ Closed form weighted least squares estimate C = (X^T G X)^-1 X^T G Y.

    Args:
        x_matrix: Reference matrix, features x types.
        y_matrix: Mixture matrix, features x samples.
        g: Weight vector, one entry per feature.

    Raises:
        InvalidArgument: If the inputs are not numeric or their dimensions do not match.
        SingularMatrix: If X^T diag(g) X is not positive definite.

    Returns:
        Tuple[np.ndarray, np.ndarray]: the estimate (types x samples) and (X^T G X)^-1 (types x types).
    """
    x_matrix = as_float_matrix(x_matrix, "estimate_direct", "X")
    y_matrix = as_float_matrix(y_matrix, "estimate_direct", "Y")
    g = as_weight_vector(g, "estimate_direct", "g")
    check_dimensions(x_matrix, y_matrix, g, "estimate_direct")
    return direct_solution(x_matrix, y_matrix, g)


def _solve_passive(ata_pp: np.ndarray, atb_p: np.ndarray) -> np.ndarray:
    try:
        return np.linalg.solve(ata_pp, atb_p)
    except np.linalg.LinAlgError:
        return np.linalg.pinv(ata_pp) @ atb_p


def _fnnls(
    ata: np.ndarray,
    atb: np.ndarray,
    max_iter: int,
    tolerance: Optional[float] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fast Non-Negativity-Constrained Least Squares (FNNLS)
    Bro & de Jong (1997): works on the normal equations A^T A and A^T b.

    Returns:
        x: solution vector (n,)
        P_mask: boolean mask of passive set (active coefficients > 0 at optimum)

    Raises:
        DidNotConverge: if max_iter inner plus outer steps are used up.
    """
    n = atb.shape[0]
    if tolerance is None:
        tolerance = 10 * np.finfo(float).eps * max(np.linalg.norm(ata, 1), 1.0) * n

    x = np.zeros(n, dtype=float)
    passive = np.zeros(n, dtype=bool)
    w = atb - ata @ x
    iters = 0

    # Outer loop: add the variable with the largest positive Lagrange multiplier
    while True:
        active = ~passive
        if not np.any(active):
            break
        w_active = np.where(active, w, -np.inf)
        j = int(np.argmax(w_active))
        if w_active[j] <= tolerance:
            break  # KKT satisfied

        passive[j] = True
        first_solve = True
        while True:
            iters += 1
            if iters > max_iter:
                raise DidNotConverge(f"FNNLS: maximum iterations ({max_iter}) exceeded")

            p_idx = np.flatnonzero(passive)
            s = np.zeros(n, dtype=float)
            s[p_idx] = _solve_passive(ata[np.ix_(p_idx, p_idx)], atb[p_idx])

            if first_solve and s[j] <= 0:
                # j only looked attractive through round-off, keep it out of this round
                passive[j] = False
                w[j] = 0.0
                break
            first_solve = False

            if np.all(s[p_idx] > 0):
                x = s
                break

            # step towards s until the first passive coefficient hits zero
            blocking = p_idx[s[p_idx] <= 0]
            denominators = x[blocking] - s[blocking]
            ratios = np.divide(
                x[blocking], denominators, out=np.zeros_like(denominators), where=denominators > 0
            )
            alpha = float(ratios.min())
            x = x + alpha * (s - x)
            x[blocking[np.argmin(ratios)]] = 0.0
            passive &= x > 0
            x[~passive] = 0.0

        if not first_solve:
            w = atb - ata @ x

    x[x < 0] = 0.0
    return x, passive


def estimate_nonneg(
    x_matrix,
    y_matrix,
    g,
    max_iter: Optional[int] = None,
    on_failure: str = RAISE_ON_FAILURE,
) -> np.ndarray:
    """ Non-negative weighted least squares, solved independently for each sample.

    For every column y of Y computes argmin_{c >= 0} || diag(g)^(1/2) (y - X c) ||_2.

    Args:
        x_matrix: Reference matrix, features x types.
        y_matrix: Mixture matrix, features x samples.
        g: Weight vector, one non-negative entry per feature.
        max_iter (Optional[int], optional): Iteration budget per sample. Defaults to max(3 * n_types, 50).
        on_failure (str, optional): "raise" raises DidNotConverge for the first sample that runs out
            of iterations, "skip" fills that sample's column with NaN and warns. Defaults to "raise".

    Raises:
        InvalidArgument: If inputs are malformed, g has negative entries or on_failure is unknown.
        DidNotConverge: If a sample's solve runs out of iterations and on_failure is "raise".

    Returns:
        np.ndarray: Estimated composition, types x samples, with no negative entries.
    """
    x_matrix = as_float_matrix(x_matrix, "estimate_nonneg", "X")
    y_matrix = as_float_matrix(y_matrix, "estimate_nonneg", "Y")
    g = as_weight_vector(g, "estimate_nonneg", "g")
    check_dimensions(x_matrix, y_matrix, g, "estimate_nonneg")
    if np.any(g < 0):
        raise InvalidArgument("In estimate_nonneg: 'g' must not contain negative entries")
    if on_failure not in (RAISE_ON_FAILURE, SKIP_ON_FAILURE):
        raise InvalidArgument(
            f"In estimate_nonneg: 'on_failure' must be '{RAISE_ON_FAILURE}' or '{SKIP_ON_FAILURE}'"
        )
    if max_iter is None:
        max_iter = max(3 * x_matrix.shape[1], 50)
    max_iter = check_positive_int(max_iter, "estimate_nonneg", "max_iter")
    return nonneg_solution(x_matrix, y_matrix, g, max_iter, on_failure)


def nonneg_solution(
    x_matrix: np.ndarray,
    y_matrix: np.ndarray,
    g: np.ndarray,
    max_iter: int,
    on_failure: str = RAISE_ON_FAILURE,
) -> np.ndarray:
    # unchecked variant used by the correlation model
    root_g = np.sqrt(g)[:, None]
    weighted_x = x_matrix * root_g
    ata = weighted_x.T @ weighted_x
    atb = weighted_x.T @ (y_matrix * root_g)

    c_hat = np.zeros((x_matrix.shape[1], y_matrix.shape[1]))
    for sample_index in range(y_matrix.shape[1]):
        try:
            c_hat[:, sample_index], _ = _fnnls(ata, atb[:, sample_index], max_iter)
        except DidNotConverge as e:
            if on_failure == RAISE_ON_FAILURE:
                raise DidNotConverge(f"Sample {sample_index}: {e}", sample_index=sample_index) from e
            warnings.warn(f"Non-negative solve of sample {sample_index} did not converge, column set to NaN",
                          RuntimeWarning)
            c_hat[:, sample_index] = np.nan
    return c_hat


def estimate_composition(x_matrix, y_matrix, model, mode=None, max_iter: Optional[int] = None):
    """ Estimate the composition of new mixtures with a fixed weight vector.

    The model is either a weight vector or a TrainingResult. A TrainingResult's estimator mode
    always wins over the mode argument; a conflicting mode argument only triggers a
    ModeConflictWarning. For a plain vector without mode, "direct" is used.

    Args:
        x_matrix: Reference matrix, features x types (numpy array or DataFrame).
        y_matrix: Mixtures, features x samples (numpy array or DataFrame).
        model: Weight vector with one entry per feature, or a TrainingResult.
        mode (optional): EstimatorMode or its name. Defaults to None.
        max_iter (Optional[int], optional): Iteration budget of the non-negative solver. Defaults to None.

    Raises:
        InvalidArgument: If the inputs are malformed or g has the wrong length.
        SingularMatrix: In direct mode, if X^T diag(g) X is not positive definite.
        DidNotConverge: In non-negative mode, if a sample's solve does not converge.

    Returns:
        Estimated composition, types x samples. A DataFrame (types as index, samples as columns)
        when both X and Y are DataFrames, otherwise a numpy array.
    """
    from pydtd.core_functionality.training_result import TrainingResult

    requested_mode = None if mode is None else EstimatorMode.parse(mode)
    if isinstance(model, TrainingResult):
        g = model.final_g
        resolved_mode = model.estimator_mode
        if requested_mode is not None and requested_mode != resolved_mode:
            warnings.warn(
                f"in estimate_composition: mode '{requested_mode.value}' is not consistent with the "
                f"model's estimator mode, using '{resolved_mode.value}'",
                ModeConflictWarning,
            )
    else:
        g = model
        resolved_mode = requested_mode or EstimatorMode.DIRECT

    x_values = as_float_matrix(x_matrix, "estimate_composition", "X")
    y_values = as_float_matrix(y_matrix, "estimate_composition", "Y")
    g = as_weight_vector(g, "estimate_composition", "g")
    check_dimensions(x_values, y_values, g, "estimate_composition")

    if resolved_mode == EstimatorMode.DIRECT:
        c_hat, _ = direct_solution(x_values, y_values, g)
    else:
        c_hat = estimate_nonneg(x_values, y_values, g, max_iter=max_iter)

    if isinstance(x_matrix, pd.DataFrame) and isinstance(y_matrix, pd.DataFrame):
        return pd.DataFrame(c_hat, index=x_matrix.columns, columns=y_matrix.columns)
    return c_hat
