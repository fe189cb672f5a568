import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from pydtd.core_functionality.cross_validation import CrossValidationResult
from pydtd.core_functionality.exceptions import InvalidArgument
from pydtd.core_functionality.g_path import log10p1, plot_g_path, quantile_panels
from pydtd.core_functionality.training_result import TrainingResult


@pytest.fixture
def result():
    rng = np.random.default_rng(0)
    history = np.cumprod(rng.uniform(0.8, 1.2, (12, 6)), axis=1)
    return TrainingResult(
        final_g=history[:, -1],
        history=history,
        loss_history=np.linspace(-0.5, -0.8, 6),
        termination_reason="max_iter_reached",
        estimator_mode="direct",
        lambda_parameter=0.0,
        feature_names=[f"gene{i}" for i in range(12)],
    )


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_quantile_panels():
    levels, panels = quantile_panels(np.arange(10, dtype=float), 2)
    np.testing.assert_allclose(levels, [0.5, 1.0])
    np.testing.assert_array_equal(panels, [0, 0, 0, 0, 0, 1, 1, 1, 1, 1])


def test_plot_has_one_axis_per_panel(result):
    fig = plot_g_path(result, number_pics=3, title="g path")
    assert len(fig.axes) == 3
    assert fig.axes[0].get_ylabel() == "log10(g+1)"
    assert fig.axes[0].get_title() == "below 33% Quantile"
    assert sum(len(ax.get_lines()) for ax in fig.axes) == 12


def test_plotted_values_are_transformed(result):
    fig = plot_g_path(result, number_pics=1)
    line = fig.axes[0].get_lines()[0]
    np.testing.assert_allclose(line.get_ydata(), log10p1(result.history[0]))
    np.testing.assert_allclose(line.get_xdata(), np.arange(6))


def test_iteration_transform(result):
    fig = plot_g_path(result, number_pics=1, iteration_transform=lambda it: it + 1, x_label="step")
    np.testing.assert_allclose(fig.axes[0].get_lines()[0].get_xdata(), np.arange(1, 7))
    assert fig.axes[0].get_xlabel() == "step"


def test_subset(result):
    fig = plot_g_path(result, number_pics=1, subset=["gene1", "gene4", "unknown"], show_legend=True)
    assert len(fig.axes[0].get_lines()) == 2


def test_unknown_subset_plots_all(result):
    with pytest.warns(UserWarning, match="subset"):
        fig = plot_g_path(result, number_pics=1, subset=["unknown"])
    assert len(fig.axes[0].get_lines()) == 12


def test_cross_validation_result_uses_best_model(result):
    cv_result = CrossValidationResult([0.1], np.array([[-0.5]]), [np.arange(3)], result)
    fig = plot_g_path(cv_result, number_pics=2)
    assert sum(len(ax.get_lines()) for ax in fig.axes) == 12


def test_history_dataframe(result):
    fig = plot_g_path(result.history_frame(), number_pics=1, show_legend=True)
    labels = [line.get_label() for line in fig.axes[0].get_lines()]
    assert labels == [f"gene{i}" for i in range(12)]


def test_history_matrix():
    fig = plot_g_path(np.ones((4, 3)), number_pics=1)
    assert len(fig.axes[0].get_lines()) == 4


def test_invalid_model_raises():
    with pytest.raises(InvalidArgument):
        plot_g_path([1.0, 2.0])


def test_invalid_transform_raises(result):
    with pytest.raises(InvalidArgument):
        plot_g_path(result, g_transform=lambda g: g[0])


def test_invalid_number_pics_raises(result):
    with pytest.raises(InvalidArgument):
        plot_g_path(result, number_pics=0)
