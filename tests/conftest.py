"""
Pytest configuration and fixtures for somap tests
"""

import pytest
import numpy as np
from somap import Map, MapConfig, TrainConfig, UnitShape, Algorithm, DecayStrategy


@pytest.fixture
def iris_data():
    """Five iris samples with four features"""
    return np.array(
        [
            [5.1, 3.5, 1.4, 0.1],
            [4.9, 3.0, 1.4, 0.2],
            [4.7, 3.2, 1.3, 0.3],
            [4.6, 3.1, 1.5, 0.4],
            [5.0, 3.6, 1.4, 0.5],
        ]
    )


@pytest.fixture
def iris_codebook():
    """Three codebook vectors taken from iris_data"""
    return np.array(
        [
            [5.1, 3.5, 1.4, 0.1],
            [4.9, 3.0, 1.4, 0.2],
            [5.0, 3.6, 1.4, 0.5],
        ]
    )


@pytest.fixture
def sample_data():
    """Generate sample 3D data for testing"""
    rng = np.random.RandomState(42)
    return rng.random_sample((50, 3))


@pytest.fixture
def map_config():
    """2x3 hexagonal map configuration"""
    return MapConfig(size=(2, 3), unit_shape=UnitShape.HEXAGONAL, seed=42)


@pytest.fixture
def seq_config():
    """Sequential training configuration"""
    return TrainConfig(
        algorithm=Algorithm.SEQUENTIAL,
        radius=10.0,
        radius_decay=DecayStrategy.LINEAR,
        learning_rate=0.5,
        learning_rate_decay=DecayStrategy.LINEAR,
    )


@pytest.fixture
def batch_config():
    """Batch training configuration"""
    return TrainConfig(
        algorithm=Algorithm.BATCH,
        radius=10.0,
        radius_decay=DecayStrategy.LINEAR,
        learning_rate=0.5,
        learning_rate_decay=DecayStrategy.LINEAR,
        workers=2,
    )


@pytest.fixture
def iris_map(map_config, iris_data):
    """Untrained map built from iris_data"""
    return Map(map_config, iris_data, verbose=False)


@pytest.fixture
def trained_map(sample_data):
    """Map trained on sample_data"""
    som = Map(MapConfig(size=(4, 5), seed=42), sample_data, verbose=False)
    som.train(TrainConfig(radius=2.0), sample_data, 200)
    return som
