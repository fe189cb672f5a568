#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
k-fold cross validation of the L1 penalty lambda.

The samples (columns of Y and C) are split into folds. For every lambda the
model is trained on all but one fold and scored on the held-out fold with the
trained g. The lambda with the lowest mean held-out loss is refit on all samples.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 27, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from typing import List, Optional, Sequence
import warnings

# third-party modules
import numpy as np
import pandas as pd

# project modules
from pydtd.core_functionality.correlation_model import CorrelationModel
from pydtd.core_functionality.estimation import EstimatorMode
from pydtd.core_functionality.exceptions import (
    DegenerateCorrelation, InvalidArgument, NumericalError, TrainingAborted
)
from pydtd.core_functionality.fista import FistaConfig, FistaOptimizer
from pydtd.core_functionality.training_result import TrainingResult
from pydtd.core_functionality.validation import (
    as_float_matrix, as_weight_vector, check_bool, check_positive_int
)

DEFAULT_LAMBDA_EXPONENTS = np.linspace(-20, 0, 21)


class CrossValidationResult():

    def __init__(
        self,
        lambda_sequence: np.ndarray,
        fold_losses: np.ndarray,
        folds: List[np.ndarray],
        best_model: TrainingResult,
    ):
        """ Held-out losses of every lambda and fold, and the model refit with the best lambda.

        Args:
            lambda_sequence (np.ndarray): Penalties that were tried.
            fold_losses (np.ndarray): Held-out loss, lambdas x folds, NaN where training or scoring failed.
            folds (List[np.ndarray]): Sample indices of every fold.
            best_model (TrainingResult): Model trained on all samples with best_lambda.
        """
        self.lambda_sequence = np.asarray(lambda_sequence, dtype=float)
        self.fold_losses = np.asarray(fold_losses, dtype=float)
        self.folds = folds
        self.best_model = best_model

    @property
    def mean_losses(self) -> np.ndarray:
        """Mean held-out loss per lambda over the folds that produced a loss."""
        return _nan_mean(self.fold_losses)

    @property
    def best_lambda(self) -> float:
        return float(self.lambda_sequence[np.nanargmin(self.mean_losses)])

    def summary_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            self.fold_losses,
            columns=[f"fold_{i + 1}" for i in range(self.fold_losses.shape[1])],
        )
        frame.insert(0, "lambda", self.lambda_sequence)
        frame.insert(1, "mean_loss", self.mean_losses)
        frame.insert(2, "std_loss", _nan_std(self.fold_losses))
        return frame

    def __repr__(self) -> str:
        return (
            f'CrossValidationResult(n_lambda={len(self.lambda_sequence)}, n_folds={len(self.folds)}, '
            f'best_lambda={self.best_lambda:.4g})'
        )


def _nan_mean(losses: np.ndarray) -> np.ndarray:
    # a lambda where every fold failed keeps NaN
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanmean(losses, axis=1)


def _nan_std(losses: np.ndarray) -> np.ndarray:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=RuntimeWarning)
        return np.nanstd(losses, axis=1)


def default_lambda_sequence(x_matrix, y_matrix, c_matrix, g0=None, estimator_mode=EstimatorMode.DIRECT) -> np.ndarray:
    """ Geometric grid max|grad L(g0)| * 2^(-20 ... 0) with 21 values.

    Falls back to the unscaled grid when the gradient at g0 is zero or undefined.
    """
    model = CorrelationModel(x_matrix, y_matrix, c_matrix, estimator_mode=estimator_mode)
    if g0 is None:
        g0 = np.ones(model.n_features)
    try:
        scale = float(np.max(np.abs(model.gradient(g0))))
    except NumericalError:
        scale = np.nan
    if not np.isfinite(scale) or scale == 0:
        scale = 1.0
    return scale * 2.0 ** DEFAULT_LAMBDA_EXPONENTS


def make_folds(n_samples: int, n_folds: int, seed: Optional[int] = None) -> List[np.ndarray]:
    """Shuffle the sample indices and split them into n_folds folds of (nearly) equal size."""
    rng = np.random.default_rng(seed)
    return [np.sort(fold) for fold in np.array_split(rng.permutation(n_samples), n_folds)]


def cross_validate_lambda(
    x_matrix,
    y_matrix,
    c_matrix,
    g0=None,
    lambda_sequence: Optional[Sequence[float]] = None,
    n_folds: int = 5,
    estimator_mode=EstimatorMode.DIRECT,
    config: Optional[FistaConfig] = None,
    seed: Optional[int] = None,
    verbose: bool = False,
) -> CrossValidationResult:
    """ Pick the L1 penalty by k-fold cross validation over the samples.

    Args:
        x_matrix: Reference matrix, features x types.
        y_matrix: Training mixtures, features x samples.
        c_matrix: True composition, types x samples.
        g0 (optional): Start value of g for every training run. Defaults to all ones.
        lambda_sequence (Optional[Sequence[float]], optional): Penalties to try. Defaults to
            default_lambda_sequence().
        n_folds (int, optional): Number of folds, >= 2. Every fold needs at least two samples. Defaults to 5.
        estimator_mode (optional): "direct" or "non_negative". Defaults to EstimatorMode.DIRECT.
        config (Optional[FistaConfig], optional): Optimizer settings of every run. Defaults to FistaConfig().
        seed (Optional[int], optional): Seed of the fold assignment. Defaults to None.
        verbose (bool, optional): Print one line per lambda. Defaults to False.

    Raises:
        InvalidArgument: If the inputs are malformed or there are too few samples for n_folds.
        DegenerateCorrelation: If no lambda gives a finite held-out loss.
        TrainingAborted: If the final refit on all samples fails.

    Returns:
        CrossValidationResult: Held-out losses and the refit model.
    """
    x_values = as_float_matrix(x_matrix, "cross_validate_lambda", "X")
    y_values = as_float_matrix(y_matrix, "cross_validate_lambda", "Y")
    c_values = as_float_matrix(c_matrix, "cross_validate_lambda", "C")
    n_folds = check_positive_int(n_folds, "cross_validate_lambda", "n_folds", minimum=2)
    verbose = check_bool(verbose, "cross_validate_lambda", "verbose")
    estimator_mode = EstimatorMode.parse(estimator_mode)
    n_samples = y_values.shape[1]
    if n_samples < 2 * n_folds:
        raise InvalidArgument(
            f"In cross_validate_lambda: {n_samples} samples are too few for {n_folds} folds "
            f"(at least two samples per fold are needed)"
        )
    if g0 is None:
        g0 = np.ones(x_values.shape[0])
    g0 = as_weight_vector(g0, "cross_validate_lambda", "g0", length=x_values.shape[0])
    if config is None:
        config = FistaConfig()

    if lambda_sequence is None:
        lambda_sequence = default_lambda_sequence(x_values, y_values, c_values, g0, estimator_mode)
    lambda_sequence = as_weight_vector(lambda_sequence, "cross_validate_lambda", "lambda_sequence")
    if np.any(lambda_sequence < 0):
        raise InvalidArgument("In cross_validate_lambda: 'lambda_sequence' must not contain negative values")

    feature_names = [str(name) for name in x_matrix.index] if isinstance(x_matrix, pd.DataFrame) else None
    folds = make_folds(n_samples, n_folds, seed)
    fold_losses = np.full((len(lambda_sequence), n_folds), np.nan)

    for lambda_index, lambda_parameter in enumerate(lambda_sequence):
        for fold_index, test_samples in enumerate(folds):
            train_samples = np.setdiff1d(np.arange(n_samples), test_samples)
            optimizer = FistaOptimizer(
                x_values, y_values[:, train_samples], c_values[:, train_samples],
                g0=g0, lambda_parameter=lambda_parameter, estimator_mode=estimator_mode, config=config,
            )
            try:
                trained = optimizer.run()
                test_model = CorrelationModel(
                    x_values, y_values[:, test_samples], c_values[:, test_samples], estimator_mode=estimator_mode
                )
                fold_losses[lambda_index, fold_index] = test_model.evaluate(trained.final_g)
            except (TrainingAborted, NumericalError) as e:
                if verbose:
                    print(f"  lambda {lambda_parameter:.4g}, fold {fold_index + 1}: failed ({e})")
        if verbose:
            print(f"lambda {lambda_parameter:.4g}: mean held-out loss "
                  f"{_nan_mean(fold_losses[lambda_index:lambda_index + 1])[0]:.6g}")

    mean_losses = _nan_mean(fold_losses)
    if np.all(np.isnan(mean_losses)):
        raise DegenerateCorrelation("In cross_validate_lambda: no lambda produced a finite held-out loss")
    best_lambda = float(lambda_sequence[np.nanargmin(mean_losses)])
    if verbose:
        print(f"Refitting on all {n_samples} samples with lambda {best_lambda:.4g}")

    best_model = FistaOptimizer(
        x_values, y_values, c_values, g0=g0, lambda_parameter=best_lambda,
        estimator_mode=estimator_mode, config=config, feature_names=feature_names,
    ).run()
    return CrossValidationResult(lambda_sequence, fold_losses, folds, best_model)
