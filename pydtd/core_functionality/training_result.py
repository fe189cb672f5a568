#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Result of a FISTA training run.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 20, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from enum import Enum
from typing import List, Optional, Sequence, Union

# third-party modules
import numpy as np
import pandas as pd

# project modules
from pydtd.core_functionality.estimation import EstimatorMode


class TerminationReason(str, Enum):
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"
    # only on the partial result carried by TrainingAborted
    ABORTED = "aborted"


class TrainingResult():

    def __init__(
        self,
        final_g: np.ndarray,
        history: np.ndarray,
        loss_history: Sequence[float],
        termination_reason: TerminationReason,
        estimator_mode: EstimatorMode,
        lambda_parameter: Union[float, np.ndarray],
        feature_names: Optional[List[str]] = None,
    ):
        """ Collects the outcome of FistaOptimizer.run().

        Args:
            final_g (np.ndarray): Weight vector of the last accepted iteration.
            history (np.ndarray): Weight vectors, features x (iterations + 1); column 0 is the start value.
            loss_history (Sequence[float]): Loss of every column of history.
            termination_reason (TerminationReason): Why the run stopped.
            estimator_mode (EstimatorMode): Estimator the model was trained with.
            lambda_parameter (Union[float, np.ndarray]): L1 penalty used for training.
            feature_names (Optional[List[str]], optional): Labels of the features. Defaults to None.

        Raises:
            ValueError: If history and loss_history disagree in length or final_g in size.
        """
        history = np.asarray(history, dtype=float)
        if history.ndim != 2 or history.shape[0] != len(final_g):
            raise ValueError("history must be a features x (iterations + 1) matrix")
        if history.shape[1] != len(loss_history):
            raise ValueError("loss_history must have one entry per history column")
        if feature_names is not None and len(feature_names) != len(final_g):
            raise ValueError("feature_names must have one entry per feature")
        self._final_g = np.array(final_g, dtype=float)
        self._history = history
        self._loss_history = np.array(loss_history, dtype=float)
        self._termination_reason = TerminationReason(termination_reason)
        self._estimator_mode = EstimatorMode.parse(estimator_mode)
        self._lambda_parameter = lambda_parameter
        self._feature_names = None if feature_names is None else list(feature_names)

    @property
    def final_g(self) -> np.ndarray:
        return self._final_g

    @property
    def history(self) -> np.ndarray:
        return self._history

    @property
    def loss_history(self) -> np.ndarray:
        return self._loss_history

    @property
    def objective_history(self) -> np.ndarray:
        """Loss plus L1 penalty of every column of history, the quantity FISTA minimizes."""
        penalties = np.atleast_1d(np.asarray(self._lambda_parameter, dtype=float))[:, None]
        return self._loss_history + (penalties * np.abs(self._history)).sum(axis=0)

    @property
    def final_loss(self) -> float:
        return float(self._loss_history[-1])

    @property
    def iterations(self) -> int:
        """Number of completed iterations (history columns minus the start value)."""
        return self._history.shape[1] - 1

    @property
    def termination_reason(self) -> TerminationReason:
        return self._termination_reason

    @property
    def estimator_mode(self) -> EstimatorMode:
        return self._estimator_mode

    @property
    def lambda_parameter(self) -> Union[float, np.ndarray]:
        return self._lambda_parameter

    @property
    def feature_names(self) -> Optional[List[str]]:
        return self._feature_names

    def history_frame(self) -> pd.DataFrame:
        """History as a DataFrame, features as rows and iterations (0 = start value) as columns."""
        index = self._feature_names if self._feature_names is not None else range(len(self._final_g))
        return pd.DataFrame(self._history, index=index, columns=range(self._history.shape[1]))

    def loss_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "iteration": np.arange(len(self._loss_history)),
            "loss": self._loss_history,
            "objective": self.objective_history,
        })

    def __repr__(self) -> str:
        return (
            f'TrainingResult(iterations={self.iterations}, final_loss={self.final_loss:.6g}, '
            f'termination_reason={self._termination_reason.value}, estimator_mode={self._estimator_mode.value})'
        )
