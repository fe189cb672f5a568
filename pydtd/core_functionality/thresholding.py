#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Proximal operator of the L1 penalty and the constraints applied to candidate weight vectors.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 12, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from typing import Union

# third-party modules
import numpy as np

# project modules
from pydtd.core_functionality.exceptions import InvalidArgument
from pydtd.core_functionality.validation import as_weight_vector, check_penalty

IDENTITY_NORMALIZATION = "identity"
NORM2_NORMALIZATION = "norm2"
NORMALIZATIONS = (IDENTITY_NORMALIZATION, NORM2_NORMALIZATION)


def soft_threshold(x, lambda_parameter: Union[float, np.ndarray]) -> np.ndarray:
    """ Soft thresholding, the proximal operator of the L1 norm.

    Computes sign(x_i) * max(|x_i| - lambda_i, 0) elementwise (see e.g. Bubeck 2015).

    Args:
        x: Vector to shrink, usually g - step_size * gradient(g).
        lambda_parameter (Union[float, np.ndarray]): Penalty, either one number or one per entry of x.

    Raises:
        InvalidArgument: If x is not a numeric vector, or lambda_parameter is not numeric or
            neither of length 1 nor of the same length as x. A negative penalty is allowed here and
            widens x; the optimizer refuses it.

    Returns:
        np.ndarray: New vector with the same length as x.
    """
    x = as_weight_vector(x, "soft_threshold", "x")
    penalty = check_penalty(
        lambda_parameter, "soft_threshold", "lambda_parameter", length=x.size, non_negative=False
    )
    return _shrink(x, penalty)


def _shrink(x: np.ndarray, penalty: Union[float, np.ndarray]) -> np.ndarray:
    # unchecked variant for the optimizer's inner loop
    return np.sign(x) * np.maximum(np.abs(x) - penalty, 0.0)


def project_positive(x: np.ndarray) -> np.ndarray:
    """Set all negative entries to zero."""
    return np.maximum(x, 0.0)


def normalize(x: np.ndarray, normalization: str = IDENTITY_NORMALIZATION) -> np.ndarray:
    """ Rescale a weight vector.

    Args:
        x (np.ndarray): Weight vector.
        normalization (str, optional): "identity" leaves x unchanged, "norm2" rescales it to unit
            euclidean norm. A zero vector is returned unchanged. Defaults to "identity".

    Raises:
        InvalidArgument: If the normalization is unknown.

    Returns:
        np.ndarray: The rescaled vector (a copy).
    """
    if normalization == IDENTITY_NORMALIZATION:
        return x.copy()
    if normalization == NORM2_NORMALIZATION:
        length = np.linalg.norm(x)
        if length == 0 or not np.isfinite(length):
            return x.copy()
        return x / length
    raise InvalidArgument(
        f"In normalize: 'normalization' must be one of {NORMALIZATIONS}, got '{normalization}'"
    )
