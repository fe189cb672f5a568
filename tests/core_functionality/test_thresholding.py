import numpy as np
import pytest

from pydtd.core_functionality.thresholding import soft_threshold, normalize, project_positive
from pydtd.core_functionality.exceptions import InvalidArgument


@pytest.fixture
def random_vector():
    rng = np.random.default_rng(42)
    return rng.normal(0, 3, 50)


def test_soft_threshold_known_values():
    x = np.array([-3.0, -0.5, 0.0, 0.5, 3.0])
    np.testing.assert_array_equal(soft_threshold(x, 1.0), [-2.0, 0.0, 0.0, 0.0, 2.0])


def test_zero_penalty_is_identity(random_vector):
    np.testing.assert_array_equal(soft_threshold(random_vector, 0), random_vector)


@pytest.mark.parametrize("lambda_parameter", [0.1, 1.0, 2.5, 100.0])
def test_shrinkage_bound_and_sign(random_vector, lambda_parameter):
    shrunk = soft_threshold(random_vector, lambda_parameter)
    assert np.all(np.abs(shrunk) <= np.abs(random_vector))
    nonzero = shrunk != 0
    assert np.all(np.sign(shrunk[nonzero]) == np.sign(random_vector[nonzero]))


def test_vector_penalty_per_coordinate():
    x = np.array([2.0, -2.0, 2.0])
    lambdas = np.array([0.5, 1.0, 3.0])
    np.testing.assert_allclose(soft_threshold(x, lambdas), [1.5, -1.0, 0.0])


def test_length_one_penalty_acts_as_scalar():
    x = np.array([2.0, -2.0])
    np.testing.assert_allclose(soft_threshold(x, [1.0]), [1.0, -1.0])


def test_penalty_of_wrong_length_raises():
    with pytest.raises(InvalidArgument, match="lambda_parameter"):
        soft_threshold(np.ones(3), np.ones(2))


def test_negative_penalty_widens():
    x = np.array([1.0, -1.0, 0.0])
    np.testing.assert_allclose(soft_threshold(x, -0.5), [1.5, -1.5, 0.0])
    np.testing.assert_allclose(soft_threshold(x, [-0.5, 0.5, -1.0]), [1.5, -0.5, 0.0])


def test_non_numeric_input_raises():
    with pytest.raises(InvalidArgument):
        soft_threshold(np.ones(3), "a lot")
    with pytest.raises(InvalidArgument):
        soft_threshold(["a", "b"], 1.0)


def test_input_is_not_modified(random_vector):
    original = random_vector.copy()
    soft_threshold(random_vector, 1.0)
    np.testing.assert_array_equal(random_vector, original)


def test_project_positive():
    np.testing.assert_array_equal(project_positive(np.array([-1.0, 0.0, 2.0])), [0.0, 0.0, 2.0])


def test_normalize_norm2():
    normalized = normalize(np.array([3.0, 4.0]), "norm2")
    np.testing.assert_allclose(normalized, [0.6, 0.8])


def test_normalize_zero_vector_unchanged():
    np.testing.assert_array_equal(normalize(np.zeros(3), "norm2"), np.zeros(3))


def test_normalize_identity_returns_copy():
    x = np.array([1.0, 2.0])
    result = normalize(x, "identity")
    np.testing.assert_array_equal(result, x)
    assert result is not x


def test_normalize_unknown_raises():
    with pytest.raises(InvalidArgument):
        normalize(np.ones(2), "max")
