#!/usr/bin/env python
# -*- coding: utf-8 -*-

'''
Plot the path of every g_i over the iterations of a training run.

With many features the paths are hard to tell apart, so they are split into
number_pics panels: panel j holds the features whose final |g_i| falls below
the j/number_pics quantile of all final |g|.
'''

__version__ = "0.3.0"
__status__ = "Development"
__project__ = "pydtd"
__created__ = "September 02, 2026"
__updated__ = "September 30, 2026"

# built-in modules
from typing import Callable, List, Optional, Sequence, Tuple
import warnings

# third-party modules
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

# project modules
from pydtd.core_functionality.exceptions import InvalidArgument
from pydtd.core_functionality.training_result import TrainingResult
from pydtd.core_functionality.validation import check_bool, check_positive_int


def log10p1(g: np.ndarray) -> np.ndarray:
    return np.log10(g + 1)


def _history_of(model) -> Tuple[np.ndarray, List[str]]:
    # CrossValidationResult is matched by attribute to keep this module free of the optimizer
    if hasattr(model, "best_model") and isinstance(model.best_model, TrainingResult):
        model = model.best_model
    if isinstance(model, TrainingResult):
        history = model.history
        names = model.feature_names or [str(i) for i in range(history.shape[0])]
        return history, names
    if isinstance(model, pd.DataFrame):
        return model.to_numpy(dtype=float), [str(name) for name in model.index]
    if isinstance(model, np.ndarray) and model.ndim == 2:
        return model.astype(float), [str(i) for i in range(model.shape[0])]
    raise InvalidArgument(
        "In plot_g_path: 'model' can not be used (provide a TrainingResult, a CrossValidationResult "
        "or a history matrix)"
    )


def _checked_transform(function: Callable, values: np.ndarray, argument_name: str) -> np.ndarray:
    try:
        transformed = np.asarray(function(values), dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"In plot_g_path: '{argument_name}' does not return a numeric vector") from e
    if transformed.shape != values.shape:
        raise InvalidArgument(f"In plot_g_path: '{argument_name}' must keep the shape of its input")
    return transformed


def quantile_panels(final_g: np.ndarray, number_pics: int) -> Tuple[np.ndarray, np.ndarray]:
    """ Assign every feature to the first quantile range that holds its final |g|.

    Returns:
        Tuple[np.ndarray, np.ndarray]: The quantile levels (0-1, two digits) and the panel index per feature.
    """
    levels = np.round(np.linspace(0, 1, number_pics + 1)[1:], 2)
    quantile_values = np.quantile(np.abs(final_g), levels)
    panels = np.array([int(np.argmax(quantile_values >= abs(value))) for value in final_g], dtype=int)
    return levels, panels


def plot_g_path(
    model,
    number_pics: int = 3,
    g_transform: Callable = log10p1,
    iteration_transform: Optional[Callable] = None,
    y_label: str = "log10(g+1)",
    x_label: str = "iteration",
    subset: Optional[Sequence[str]] = None,
    title: str = "",
    show_legend: bool = False,
    show_plot: bool = False,
) -> Figure:
    """ Plot the regression path of each g_i over all iterations.

    Args:
        model: TrainingResult, CrossValidationResult (its best_model is used) or a history matrix
            (features x iterations, numpy array or DataFrame with feature names as index).
        number_pics (int, optional): Number of quantile panels. Defaults to 3.
        g_transform (Callable, optional): Applied to every g value before plotting. Defaults to log10(g + 1).
        iteration_transform (Optional[Callable], optional): Applied to the iteration numbers. Defaults to None.
        y_label (str, optional): Label of the y axis. Defaults to "log10(g+1)".
        x_label (str, optional): Label of the x axis. Defaults to "iteration".
        subset (Optional[Sequence[str]], optional): Feature names to plot. Unknown names are ignored,
            and if none is known all features are plotted. Defaults to None.
        title (str, optional): Figure title. Defaults to "".
        show_legend (bool, optional): Add a legend with the feature names. Defaults to False.
        show_plot (bool, optional): Call plt.show(). Defaults to False.

    Raises:
        InvalidArgument: If the model or one of the transforms can not be used.

    Returns:
        Figure: The matplotlib figure, one axis per panel.
    """
    number_pics = check_positive_int(number_pics, "plot_g_path", "number_pics")
    show_legend = check_bool(show_legend, "plot_g_path", "show_legend")
    history, names = _history_of(model)

    if subset is not None:
        known = [name for name in subset if name in names]
        if known:
            rows = [names.index(name) for name in known]
            history, names = history[rows], known
        else:
            warnings.warn("In plot_g_path: subset could not be used, all features are plotted")

    final_g = history[:, -1]
    levels, panels = quantile_panels(final_g, number_pics)
    g_values = _checked_transform(g_transform, history, "g_transform")
    iterations = np.arange(history.shape[1], dtype=float)
    if iteration_transform is not None:
        iterations = _checked_transform(iteration_transform, iterations, "iteration_transform")

    fig, axes = plt.subplots(1, number_pics, figsize=(4 * number_pics + 2, 5), sharey=True, squeeze=False)
    colors = plt.cm.viridis(np.linspace(0, 1, max(len(names), 2)))
    for panel, ax in enumerate(axes[0]):
        for row in np.flatnonzero(panels == panel):
            ax.plot(iterations, g_values[row], '-', color=colors[row], label=names[row])
        ax.set_title(f"below {levels[panel] * 100:g}% Quantile")
        ax.set_xlabel(x_label)
    axes[0][0].set_ylabel(y_label)
    if title:
        fig.suptitle(title)
    if show_legend:
        handles, labels = [], []
        for ax in axes[0]:
            ax_handles, ax_labels = ax.get_legend_handles_labels()
            handles.extend(ax_handles)
            labels.extend(ax_labels)
        fig.legend(handles, labels, loc='center left', bbox_to_anchor=(1.0, 0.5), frameon=False)
    fig.tight_layout()
    if show_plot:
        plt.show()
    return fig
