"""
Tests for codebook initialization
"""

import pytest
import numpy as np
from somap.config import InitStrategy
from somap.errors import ConfigError, DimensionError
from somap.initializers import INITIALIZERS, linear_init, random_init


@pytest.fixture
def six_iris():
    return np.array(
        [
            [5.1, 3.5, 1.4, 0.2],
            [4.9, 3.0, 1.4, 0.2],
            [4.7, 3.2, 1.3, 0.2],
            [4.6, 3.1, 1.5, 0.2],
            [5.0, 3.6, 1.4, 0.2],
            [5.4, 3.9, 1.7, 0.4],
        ]
    )


@pytest.mark.unit
class TestRandomInit:
    """Test random initialization"""

    @pytest.mark.unit
    def test_values_within_column_bounds(self):
        data = np.array([[1.2, 3.4], [4.5, 6.7]])
        codebook = random_init(data, (3, 4), np.random.RandomState(0))
        assert codebook.shape == (12, 2)
        assert np.all(codebook >= data.min(axis=0))
        assert np.all(codebook <= data.max(axis=0))

    @pytest.mark.unit
    def test_reproducible_with_seed(self, six_iris):
        first = random_init(six_iris, (2, 3), np.random.RandomState(42))
        second = random_init(six_iris, (2, 3), np.random.RandomState(42))
        np.testing.assert_array_equal(first, second)

    @pytest.mark.unit
    def test_constant_column(self, six_iris):
        codebook = random_init(six_iris[:5], (2, 2))
        np.testing.assert_allclose(codebook[:, 3], 0.2)

    @pytest.mark.unit
    def test_invalid_data(self):
        with pytest.raises(DimensionError):
            random_init(None, (2, 2))
        with pytest.raises(DimensionError):
            random_init(np.empty((0, 3)), (2, 2))
        with pytest.raises(DimensionError):
            random_init(np.array([[1.0, np.nan]]), (2, 2))

    @pytest.mark.unit
    def test_invalid_size(self, six_iris):
        with pytest.raises(ConfigError):
            random_init(six_iris, (-1, 2))

    @pytest.mark.unit
    def test_data_untouched(self, six_iris):
        original = six_iris.copy()
        random_init(six_iris, (2, 3))
        np.testing.assert_array_equal(six_iris, original)


@pytest.mark.unit
class TestLinearInit:
    """Test linear (principal component) initialization"""

    @pytest.mark.unit
    def test_shape(self, six_iris):
        codebook = linear_init(six_iris, (5, 2))
        assert codebook.shape == (10, 4)

    @pytest.mark.unit
    def test_centred_on_data_mean(self, six_iris):
        codebook = linear_init(six_iris, (3, 3))
        np.testing.assert_allclose(
            codebook.mean(axis=0), six_iris.mean(axis=0), atol=1e-10
        )

    @pytest.mark.unit
    def test_spans_main_component(self):
        rng = np.random.RandomState(0)
        data = rng.normal(size=(200, 3)) * np.array([5.0, 1.0, 0.1])
        codebook = linear_init(data, (6, 2))
        spread = codebook.max(axis=0) - codebook.min(axis=0)
        assert spread[0] > spread[1] > spread[2]

    @pytest.mark.unit
    def test_deterministic(self, six_iris):
        np.testing.assert_allclose(
            linear_init(six_iris, (2, 3), np.random.RandomState(1)),
            linear_init(six_iris, (2, 3), np.random.RandomState(2)),
        )

    @pytest.mark.unit
    def test_one_feature(self):
        data = np.array([[1.0], [2.0], [3.0]])
        codebook = linear_init(data, (1, 4))
        assert codebook.shape == (4, 1)
        np.testing.assert_allclose(codebook.mean(), 2.0)

    @pytest.mark.unit
    def test_insufficient_samples(self):
        with pytest.raises(DimensionError, match="at least 2 samples"):
            linear_init(np.array([[1.0, 1.0]]), (5, 2))

    @pytest.mark.unit
    def test_invalid_inputs(self, six_iris):
        with pytest.raises(DimensionError):
            linear_init(None, (1, 2))
        with pytest.raises(ConfigError):
            linear_init(six_iris, None)
        with pytest.raises(ConfigError):
            linear_init(six_iris, (-1, 2))


@pytest.mark.unit
def test_initializer_registry():
    assert INITIALIZERS[InitStrategy.RANDOM] is random_init
    assert INITIALIZERS[InitStrategy.LINEAR] is linear_init
