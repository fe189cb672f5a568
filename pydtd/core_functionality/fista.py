#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
FISTA optimizer for the weight vector g.

Minimizes L(g) + lambda * |g|_1, where L is the negative mean correlation of
CorrelationModel, with an accelerated proximal gradient scheme [1]:

    u     = soft_threshold(y - s * grad L(y), s * lambda)      (step line search over s)
    g_new = u, or g_old when u does not improve F               (adaptive restart [2])
    y     = g_new + ne * (g_new - g_old)                        (momentum line search over ne > 0)

Both line searches rank their candidates by F(g) = L(g) + sum(lambda * |g|).

References
[1]: Beck, A. & Teboulle, M. A Fast Iterative Shrinkage-Thresholding Algorithm for
    Linear Inverse Problems. SIAM J. Imaging Sci. 2, 183-202 (2009).
[2]: O'Donoghue, B. & Candes, E. Adaptive Restart for Accelerated Gradient Schemes.
    Found. Comput. Math. 15, 715-732 (2015).
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "August 20, 2026"
__updated__ = "October 18, 2026"

# built-in modules
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

# third-party modules
import numpy as np
import pandas as pd

# project modules
from pydtd.core_functionality.correlation_model import CorrelationModel
from pydtd.core_functionality.estimation import EstimatorMode
from pydtd.core_functionality.exceptions import (
    DegenerateCorrelation, InvalidArgument, NumericalError, TrainingAborted
)
from pydtd.core_functionality.thresholding import (
    NORMALIZATIONS, _shrink, normalize, project_positive
)
from pydtd.core_functionality.training_result import TerminationReason, TrainingResult
from pydtd.core_functionality.validation import (
    as_weight_vector, check_bool, check_non_negative_float, check_penalty,
    check_positive_float, check_positive_int
)


class FistaConfig():

    def __init__(
        self,
        max_iterations: int = 500,
        stop_threshold: float = 1e-13,
        initial_step_size: Optional[float] = None,
        line_search_speed: float = 2.0,
        line_search_cycles: int = 5,
        use_restart: bool = True,
        verbose: bool = False,
        positive_subspace: Optional[bool] = None,
        normalization: str = "identity",
        n_workers: int = 1,
    ):
        """ Settings of one FISTA run, checked once at construction.

        Args:
            max_iterations (int, optional): Iteration budget. Defaults to 500.
            stop_threshold (float, optional): Run converges once both the gradient step and the momentum
                step move g by less than this (euclidean norm). Defaults to 1e-13.
            initial_step_size (Optional[float], optional): First step size. None estimates it with a
                Barzilai-Borwein step from the first gradient. Defaults to None.
            line_search_speed (float, optional): Factor the step size grows or shrinks by, > 1. Defaults to 2.0.
            line_search_cycles (int, optional): Number of step sizes (and momentum factors) tried per
                iteration, >= 2. Defaults to 5.
            use_restart (bool, optional): Reject steps that increase the penalized loss and reset the
                momentum. Defaults to True.
            verbose (bool, optional): Print one line per iteration. Defaults to False.
            positive_subspace (Optional[bool], optional): Project every candidate onto g >= 0. None means
                True for non_negative estimation and False for direct estimation. Defaults to None.
            normalization (str, optional): "identity" or "norm2" (rescale candidates to unit norm).
                Defaults to "identity".
            n_workers (int, optional): Threads used to evaluate line search candidates. Defaults to 1.

        Raises:
            InvalidArgument: If any setting is out of range.
        """
        self.max_iterations = check_positive_int(max_iterations, "FistaConfig", "max_iterations")
        self.stop_threshold = check_non_negative_float(stop_threshold, "FistaConfig", "stop_threshold")
        self.initial_step_size = None if initial_step_size is None else check_positive_float(
            initial_step_size, "FistaConfig", "initial_step_size"
        )
        self.line_search_speed = check_positive_float(
            line_search_speed, "FistaConfig", "line_search_speed", lower_bound=1.0
        )
        self.line_search_cycles = check_positive_int(line_search_cycles, "FistaConfig", "line_search_cycles", minimum=2)
        self.use_restart = check_bool(use_restart, "FistaConfig", "use_restart")
        self.verbose = check_bool(verbose, "FistaConfig", "verbose")
        self.positive_subspace = None if positive_subspace is None else check_bool(
            positive_subspace, "FistaConfig", "positive_subspace"
        )
        if normalization not in NORMALIZATIONS:
            raise InvalidArgument(
                f"In FistaConfig: 'normalization' must be one of {NORMALIZATIONS}, got '{normalization}'"
            )
        self.normalization = normalization
        self.n_workers = check_positive_int(n_workers, "FistaConfig", "n_workers")

    def resolve_positive_subspace(self, estimator_mode: EstimatorMode) -> bool:
        """ Decide whether candidates are projected onto g >= 0 for the given estimator.

        Raises:
            InvalidArgument: If positive_subspace is explicitly False for non_negative estimation.
        """
        if self.positive_subspace is None:
            return estimator_mode == EstimatorMode.NON_NEGATIVE
        if not self.positive_subspace and estimator_mode == EstimatorMode.NON_NEGATIVE:
            raise InvalidArgument(
                "In FistaConfig: 'positive_subspace' cannot be False with non_negative estimation"
            )
        return self.positive_subspace

    def to_dict(self) -> dict:
        return dict(vars(self))

    def __repr__(self) -> str:
        settings = ", ".join(f"{key}={value!r}" for key, value in self.to_dict().items())
        return f"FistaConfig({settings})"


def _decreasing_candidates(largest: float, speed: float, cycles: int) -> np.ndarray:
    """[largest, largest / speed, ..., largest / speed^(cycles - 2), 0]"""
    candidates = largest / speed ** np.arange(cycles - 1, dtype=float)
    return np.append(candidates, 0.0)


def _momentum_factors(largest: float, speed: float, cycles: int) -> np.ndarray:
    """[largest, largest / speed, ..., largest / speed^(cycles - 1)]"""
    return largest / speed ** np.arange(cycles, dtype=float)


class FistaOptimizer():

    def __init__(
        self,
        x_matrix,
        y_matrix,
        c_matrix,
        g0=None,
        lambda_parameter=0.0,
        estimator_mode=EstimatorMode.DIRECT,
        config: Optional[FistaConfig] = None,
        feature_names: Optional[Sequence[str]] = None,
    ):
        """ Sets up a FISTA run on fixed training data.

        Args:
            x_matrix: Reference matrix, features x types (numpy array or DataFrame).
            y_matrix: Training mixtures, features x samples.
            c_matrix: True composition of the training mixtures, types x samples.
            g0 (optional): Start value of g, one entry per feature. Defaults to all ones.
            lambda_parameter (optional): L1 penalty, a number >= 0 or one per feature. Defaults to 0.0.
            estimator_mode (optional): "direct" or "non_negative". Defaults to EstimatorMode.DIRECT.
            config (Optional[FistaConfig], optional): Optimizer settings. Defaults to FistaConfig().
            feature_names (Optional[Sequence[str]], optional): Feature labels for the result. Defaults to
                the index of x_matrix when it is a DataFrame.

        Raises:
            InvalidArgument: If the data, start value, penalty or configuration are malformed.
        """
        self._model = CorrelationModel(x_matrix, y_matrix, c_matrix, estimator_mode=estimator_mode)
        n_features = self._model.n_features
        if g0 is None:
            g0 = np.ones(n_features)
        self._g0 = self._model.check_weights(as_weight_vector(g0, "FistaOptimizer", "g0", length=n_features))
        self._lambda_parameter = check_penalty(lambda_parameter, "FistaOptimizer", "lambda_parameter", length=n_features)

        if config is None:
            config = FistaConfig()
        if not isinstance(config, FistaConfig):
            raise InvalidArgument("In FistaOptimizer: 'config' must be a FistaConfig")
        self._config = config
        self._positive_subspace = config.resolve_positive_subspace(self._model.estimator_mode)

        if feature_names is None and isinstance(x_matrix, pd.DataFrame):
            feature_names = [str(name) for name in x_matrix.index]
        if feature_names is not None and len(feature_names) != n_features:
            raise InvalidArgument(
                f"In FistaOptimizer: 'feature_names' has length {len(feature_names)}, expected {n_features}"
            )
        self._feature_names = None if feature_names is None else list(feature_names)
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def model(self) -> CorrelationModel:
        return self._model

    @property
    def config(self) -> FistaConfig:
        return self._config

    def _constrain(self, g: np.ndarray) -> np.ndarray:
        if self._positive_subspace:
            g = project_positive(g)
        return normalize(g, self._config.normalization)

    def _trial_loss(self, g: np.ndarray) -> float:
        # candidates that make the model degenerate can never be selected
        if not np.all(np.isfinite(g)):
            return np.inf
        try:
            loss = self._model.evaluate(g)
        except NumericalError as e:
            if self._config.verbose:
                print(f"    candidate rejected: {e}")
            return np.inf
        return loss if np.isfinite(loss) else np.inf

    def _trial_losses(self, candidates: List[np.ndarray]) -> np.ndarray:
        if self._executor is not None:
            return np.array(list(self._executor.map(self._trial_loss, candidates)))
        return np.array([self._trial_loss(candidate) for candidate in candidates])

    def _objective(self, g: np.ndarray, loss: float) -> float:
        """Loss plus the L1 penalty of g, +inf for an infeasible candidate."""
        if not np.isfinite(loss):
            return np.inf
        return loss + float(np.sum(self._lambda_parameter * np.abs(g)))

    def _current_loss(self, g: np.ndarray) -> float:
        loss = self._model.evaluate(g)
        if not np.isfinite(loss):
            raise DegenerateCorrelation("Loss is undefined at the current g")
        return loss

    def _current_gradient(self, g: np.ndarray) -> np.ndarray:
        gradient = self._model.gradient(g)
        if not np.all(np.isfinite(gradient)):
            raise DegenerateCorrelation("Gradient is undefined at the current g")
        return gradient

    def _initial_step_size(self, g0: np.ndarray, gradient0: np.ndarray) -> float:
        """ Barzilai-Borwein step from g0 and a trial point one unit along the negative gradient."""
        gradient_norm = np.linalg.norm(gradient0)
        if gradient_norm == 0:
            return 1.0
        fallback = 1.0 / gradient_norm

        g1 = self._constrain(g0 - gradient0 / gradient_norm)
        try:
            gradient1 = self._model.gradient(g1)
        except NumericalError:
            return fallback
        delta_g = g1 - g0
        delta_gradient = gradient1 - gradient0
        denominator = float(delta_gradient @ delta_gradient)
        if not np.isfinite(denominator) or denominator == 0:
            return fallback
        step_size = abs(float(delta_g @ delta_gradient)) / denominator
        if not np.isfinite(step_size) or step_size <= 0:
            return fallback
        return step_size

    def _result(self, history: List[np.ndarray], losses: List[float], reason: TerminationReason) -> TrainingResult:
        return TrainingResult(
            final_g=history[-1],
            history=np.column_stack(history),
            loss_history=losses,
            termination_reason=reason,
            estimator_mode=self._model.estimator_mode,
            lambda_parameter=self._lambda_parameter,
            feature_names=self._feature_names,
        )

    def run(self) -> TrainingResult:
        """ Run FISTA until convergence or until max_iterations are used up.

        Raises:
            TrainingAborted: If the model becomes degenerate at the current g (singular X^T G X,
                failed non-negative solve, undefined loss or gradient). The iterations completed so far
                are attached as partial_result.

        Returns:
            TrainingResult: The final g, its history and the loss of every history entry.
        """
        config = self._config
        if config.n_workers > 1:
            with ThreadPoolExecutor(max_workers=config.n_workers) as executor:
                self._executor = executor
                try:
                    return self._iterate()
                finally:
                    self._executor = None
        return self._iterate()

    def _iterate(self) -> TrainingResult:
        config = self._config
        speed = config.line_search_speed
        cycles = config.line_search_cycles
        step_penalty = self._lambda_parameter

        tweak_vec = self._constrain(self._g0)
        history = [tweak_vec.copy()]
        losses: List[float] = []
        try:
            loss = self._current_loss(tweak_vec)
        except NumericalError as e:
            losses.append(np.nan)
            raise TrainingAborted(
                f"Training aborted at the start value: {e}",
                partial_result=self._result(history, losses, TerminationReason.ABORTED),
            ) from e
        losses.append(loss)
        objective = self._objective(tweak_vec, loss)

        y_vec, y_loss, y_objective = tweak_vec.copy(), loss, objective
        step_size = config.initial_step_size
        reason = TerminationReason.MAX_ITER_REACHED

        if config.verbose:
            print(f"FISTA: {self._model.n_features} features, {self._model.n_types} types, "
                  f"{self._model.n_samples} samples, estimator {self._model.estimator_mode.value}")
            print(f"Iteration 0: loss {loss:.8g}, objective {objective:.8g}")

        for iteration in range(1, config.max_iterations + 1):
            try:
                gradient = self._current_gradient(y_vec)
            except NumericalError as e:
                raise TrainingAborted(
                    f"Training aborted in iteration {iteration}: {e}",
                    partial_result=self._result(history, losses, TerminationReason.ABORTED),
                ) from e
            if step_size is None:
                step_size = self._initial_step_size(y_vec, gradient)

            # gradient step, the last candidate (step size 0) is y_vec itself
            step_sizes = _decreasing_candidates(step_size, speed, cycles)
            candidates = [
                self._constrain(_shrink(y_vec - s * gradient, s * step_penalty)) for s in step_sizes[:-1]
            ]
            candidate_losses = np.append(self._trial_losses(candidates), y_loss)
            candidates.append(y_vec.copy())
            candidate_objectives = [
                self._objective(candidate, candidate_loss)
                for candidate, candidate_loss in zip(candidates[:-1], candidate_losses[:-1])
            ] + [y_objective]
            best = int(np.argmin(candidate_objectives))
            u, u_loss, u_objective = candidates[best], float(candidate_losses[best]), candidate_objectives[best]
            if best == 0:
                step_size = min(step_size * speed, np.finfo(float).max)
            elif best == cycles - 1:
                step_size = step_size / speed

            tweak_old, old_objective = tweak_vec, objective
            restarted = not np.isfinite(u_objective) or (config.use_restart and u_objective > old_objective)
            if not restarted:
                tweak_vec, loss, objective = u, u_loss, u_objective

            # momentum step along the last accepted move
            y_prev = y_vec
            direction = tweak_vec - tweak_old
            largest_factor = (iteration - 1) / (iteration + 2)
            momentum, y_vec, y_loss, y_objective = 0.0, tweak_vec.copy(), loss, objective
            if not restarted and largest_factor > 0 and np.any(direction):
                factors = _momentum_factors(largest_factor, speed, cycles)
                extrapolated = [self._constrain(tweak_vec + ne * direction) for ne in factors]
                extrapolated_losses = self._trial_losses(extrapolated)
                extrapolated_objectives = [
                    self._objective(point, point_loss) for point, point_loss in zip(extrapolated, extrapolated_losses)
                ]
                chosen = int(np.argmin(extrapolated_objectives))
                if np.isfinite(extrapolated_objectives[chosen]):
                    momentum = float(factors[chosen])
                    y_vec = extrapolated[chosen]
                    y_loss, y_objective = float(extrapolated_losses[chosen]), extrapolated_objectives[chosen]

            history.append(tweak_vec.copy())
            losses.append(loss)

            if config.verbose:
                print(f"Iteration {iteration}: loss {loss:.8g}, objective {objective:.8g}, "
                      f"step size {step_size:.4g}, momentum {momentum:.4g}" + (", restart" if restarted else ""))

            if best == cycles - 1:
                # no step was taken, so measure the smallest step that was tried
                step_change = np.linalg.norm(candidates[-2] - y_prev)
            else:
                step_change = np.linalg.norm(u - y_prev)
            momentum_change = np.linalg.norm(momentum * direction)
            if step_change < config.stop_threshold and momentum_change < config.stop_threshold:
                reason = TerminationReason.CONVERGED
                break

        if config.verbose:
            print(f"FISTA finished after {len(history) - 1} iterations ({reason.value}), loss {losses[-1]:.8g}")
        return self._result(history, losses, reason)
