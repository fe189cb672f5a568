import numpy as np
import pytest

from pydtd.core_functionality.correlation_model import CorrelationModel, row_correlations
from pydtd.core_functionality.estimation import EstimatorMode
from pydtd.core_functionality.exceptions import (
    DegenerateCorrelationWarning, InvalidArgument, SingularMatrix
)


@pytest.fixture
def noisy_data():
    rng = np.random.default_rng(5)
    x = rng.uniform(0.5, 5.0, (25, 3))
    c = rng.uniform(0.1, 1.0, (3, 15))
    y = x @ c + rng.normal(0, 0.4, (25, 15))
    return x, y, c


@pytest.fixture
def model(noisy_data):
    return CorrelationModel(*noisy_data)


def _numerical_gradient(model, g, h=1e-6):
    gradient = np.zeros_like(g)
    for k in range(g.size):
        step = np.zeros_like(g)
        step[k] = h
        gradient[k] = (model.evaluate(g + step) - model.evaluate(g - step)) / (2 * h)
    return gradient


def test_row_correlations_match_numpy():
    rng = np.random.default_rng(0)
    a = rng.normal(size=(4, 10))
    b = rng.normal(size=(4, 10))
    expected = [np.corrcoef(a[i], b[i])[0, 1] for i in range(4)]
    np.testing.assert_allclose(row_correlations(a, b), expected, rtol=1e-12)


def test_row_correlations_constant_row_is_nan():
    a = np.array([[1.0, 2.0, 3.0], [2.0, 2.0, 2.0]])
    b = np.array([[1.0, 0.0, 1.0], [1.0, 2.0, 3.0]])
    correlations = row_correlations(a, b)
    assert np.isfinite(correlations[0])
    assert np.isnan(correlations[1])


def test_noiseless_data_has_loss_minus_one(noisy_data):
    x, _, c = noisy_data
    model = CorrelationModel(x, x @ c, c)
    assert model.evaluate(np.ones(x.shape[0])) == pytest.approx(-1.0, abs=1e-10)


def test_loss_is_negative_mean_correlation(model, noisy_data):
    g = np.ones(noisy_data[0].shape[0])
    assert model.evaluate(g) == pytest.approx(-np.mean(model.correlations(g)))
    assert -1.0 <= model.evaluate(g) <= 1.0


def test_gradient_matches_finite_differences(model, noisy_data):
    rng = np.random.default_rng(9)
    g = rng.uniform(0.5, 1.5, noisy_data[0].shape[0])
    analytic = model.gradient(g)
    numerical = _numerical_gradient(model, g)
    np.testing.assert_allclose(analytic, np.minimum(numerical, 0.0), rtol=1e-4, atol=1e-7)


def test_gradient_is_never_positive(model, noisy_data):
    g = np.ones(noisy_data[0].shape[0])
    assert np.all(model.gradient(g) <= 0)


def test_loss_and_gradient_match_separate_calls(model, noisy_data):
    g = np.linspace(0.5, 2.0, noisy_data[0].shape[0])
    loss, gradient = model.loss_and_gradient(g)
    assert loss == pytest.approx(model.evaluate(g))
    np.testing.assert_allclose(gradient, model.gradient(g))


def test_non_negative_mode_uses_direct_gradient(noisy_data):
    x, y, c = noisy_data
    g = np.ones(x.shape[0])
    direct = CorrelationModel(x, y, c)
    non_negative = CorrelationModel(x, y, c, estimator_mode="non_negative")
    assert non_negative.estimator_mode is EstimatorMode.NON_NEGATIVE
    np.testing.assert_allclose(non_negative.gradient(g), direct.gradient(g))
    assert np.all(non_negative.estimate(g) >= 0)


def test_non_negative_mode_rejects_negative_weights(noisy_data):
    x, y, c = noisy_data
    model = CorrelationModel(x, y, c, estimator_mode=EstimatorMode.NON_NEGATIVE)
    g = np.ones(x.shape[0])
    g[3] = -0.1
    with pytest.raises(InvalidArgument):
        model.evaluate(g)


def test_constant_truth_row_warns_and_gives_nan(noisy_data):
    x, y, c = noisy_data
    c = c.copy()
    c[1] = 0.3
    model = CorrelationModel(x, y, c)
    with pytest.warns(DegenerateCorrelationWarning):
        assert np.isnan(model.evaluate(np.ones(x.shape[0])))


def test_singular_weights_raise(model, noisy_data):
    with pytest.raises(SingularMatrix):
        model.evaluate(np.zeros(noisy_data[0].shape[0]))


def test_wrong_truth_shape_raises(noisy_data):
    x, y, c = noisy_data
    with pytest.raises(InvalidArgument, match="'C'"):
        CorrelationModel(x, y, c[:, :-1])


def test_wrong_weight_length_raises(model):
    with pytest.raises(InvalidArgument):
        model.evaluate(np.ones(3))


def test_dimensions(model):
    assert (model.n_features, model.n_types, model.n_samples) == (25, 3, 15)
