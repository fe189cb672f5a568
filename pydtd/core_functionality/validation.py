#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Input checks shared by the estimators, the correlation model and the optimizer.
Every check raises InvalidArgument with the calling function and argument name.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 12, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from numbers import Integral, Real
from typing import Optional, Tuple, Union

# third-party modules
import numpy as np
import pandas as pd

# project modules
from pydtd.core_functionality.exceptions import InvalidArgument


def _where(function_name: str, argument_name: str) -> str:
    return f"In {function_name}: '{argument_name}'"


def as_float_matrix(value, function_name: str, argument_name: str) -> np.ndarray:
    """ Convert a matrix-like input to a 2D float array.

    Args:
        value: numpy array, pandas DataFrame or nested sequence.
        function_name (str): Name of the calling function, used in the error message.
        argument_name (str): Name of the argument, used in the error message.

    Raises:
        InvalidArgument: If the input is not numeric, not two dimensional, empty or not finite.

    Returns:
        np.ndarray: The input as a float array.
    """
    if isinstance(value, pd.DataFrame):
        value = value.to_numpy()
    try:
        matrix = np.asarray(value, dtype=float)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{_where(function_name, argument_name)} is not numeric")
    if matrix.ndim == 1:
        matrix = matrix.reshape(-1, 1)
    if matrix.ndim != 2:
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a matrix, got {matrix.ndim} dimensions")
    if matrix.size == 0:
        raise InvalidArgument(f"{_where(function_name, argument_name)} is empty")
    if not np.all(np.isfinite(matrix)):
        raise InvalidArgument(f"{_where(function_name, argument_name)} contains NaN or infinite values")
    return matrix


def as_weight_vector(value, function_name: str, argument_name: str, length: Optional[int] = None) -> np.ndarray:
    """ Convert a vector-like input to a 1D float array, optionally checking its length."""
    if isinstance(value, (pd.Series, pd.DataFrame)):
        value = value.to_numpy()
    try:
        vector = np.asarray(value, dtype=float)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{_where(function_name, argument_name)} is not numeric")
    if vector.ndim == 2 and 1 in vector.shape:
        vector = vector.reshape(-1)
    if vector.ndim != 1 or vector.size == 0:
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a non-empty vector")
    if not np.all(np.isfinite(vector)):
        raise InvalidArgument(f"{_where(function_name, argument_name)} contains NaN or infinite values")
    if length is not None and vector.size != length:
        raise InvalidArgument(
            f"{_where(function_name, argument_name)} has length {vector.size}, expected {length}"
        )
    return vector.copy()


def check_penalty(
    value, function_name: str, argument_name: str, length: Optional[int] = None, non_negative: bool = True
) -> Union[float, np.ndarray]:
    """ Check an L1 penalty: a finite scalar, or a finite vector of the given length. Negative entries
    are refused unless non_negative is False."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{_where(function_name, argument_name)} is not numeric")
    if isinstance(value, Real):
        penalty = float(value)
        if not np.isfinite(penalty) or (non_negative and penalty < 0):
            raise InvalidArgument(f"{_where(function_name, argument_name)} must be a finite number"
                                  + (" >= 0" if non_negative else ""))
        return penalty
    penalty_vector = as_weight_vector(value, function_name, argument_name)
    if penalty_vector.size == 1:
        return check_penalty(float(penalty_vector[0]), function_name, argument_name, non_negative=non_negative)
    if length is not None and penalty_vector.size != length:
        raise InvalidArgument(
            f"{_where(function_name, argument_name)} must have length 1 or {length}, got {penalty_vector.size}"
        )
    if non_negative and np.any(penalty_vector < 0):
        raise InvalidArgument(f"{_where(function_name, argument_name)} must not contain negative entries")
    return penalty_vector


def check_positive_int(value, function_name: str, argument_name: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be an integer")
    if value < minimum:
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be >= {minimum}, got {value}")
    return int(value)


def check_positive_float(value, function_name: str, argument_name: str, lower_bound: float = 0.0) -> float:
    """ Check a finite float strictly greater than lower_bound."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a number")
    value = float(value)
    if not np.isfinite(value) or value <= lower_bound:
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a finite number > {lower_bound}")
    return value


def check_non_negative_float(value, function_name: str, argument_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a number")
    value = float(value)
    if not np.isfinite(value) or value < 0:
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be a finite number >= 0")
    return value


def check_bool(value, function_name: str, argument_name: str) -> bool:
    if not isinstance(value, (bool, np.bool_)):
        raise InvalidArgument(f"{_where(function_name, argument_name)} must be True or False")
    return bool(value)


def check_dimensions(
    x_matrix: np.ndarray,
    y_matrix: np.ndarray,
    g: np.ndarray,
    function_name: str,
    c_matrix: Optional[np.ndarray] = None,
) -> Tuple[int, int, int]:
    """ Check that X, Y, g (and optionally C) describe the same features, types and samples.

    Args:
        x_matrix (np.ndarray): Reference matrix, features x types.
        y_matrix (np.ndarray): Mixture matrix, features x samples.
        g (np.ndarray): Weight vector, one entry per feature.
        function_name (str): Name of the calling function, used in the error message.
        c_matrix (Optional[np.ndarray], optional): Truth matrix, types x samples. Defaults to None.

    Raises:
        InvalidArgument: If any dimension does not match.

    Returns:
        Tuple[int, int, int]: number of features, number of types, number of samples.
    """
    n_features, n_types = x_matrix.shape
    if y_matrix.shape[0] != n_features or g.size != n_features:
        raise InvalidArgument(
            f"In {function_name}: dimension of provided input (X, Y, g) does not match "
            f"(nrow(X)={n_features}, nrow(Y)={y_matrix.shape[0]}, length(g)={g.size})"
        )
    n_samples = y_matrix.shape[1]
    if c_matrix is not None and c_matrix.shape != (n_types, n_samples):
        raise InvalidArgument(
            f"In {function_name}: 'C' must have shape ({n_types}, {n_samples}) "
            f"(ncol(X) x ncol(Y)), got {c_matrix.shape}"
        )
    return n_features, n_types, n_samples
