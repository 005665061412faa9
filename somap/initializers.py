"""
Codebook initialization strategies
"""

from types import MappingProxyType
from typing import Optional, Tuple

import numpy as np
from sklearn.decomposition import PCA

from .config import InitStrategy, UnitShape, validate_size
from .errors import DimensionError
from .grid import grid_coords


def _validate_data(data) -> np.ndarray:
    if data is None:
        raise DimensionError("Invalid data matrix: None")
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2 or data.shape[0] == 0 or data.shape[1] == 0:
        raise DimensionError(f"Invalid data matrix shape: {data.shape}")
    if not np.all(np.isfinite(data)):
        raise DimensionError("Input data contains NaN or infinite values")
    return data


def random_init(
    data: np.ndarray,
    size: Tuple[int, int],
    rng: Optional[np.random.RandomState] = None,
) -> np.ndarray:
    """
    Codebook of uniformly distributed values bounded by the data.

    Every column j of the returned (units x features) matrix lies within
    [min(data[:, j]), max(data[:, j])].
    """
    data = _validate_data(data)
    rows, cols = validate_size(size)
    if rng is None:
        rng = np.random.RandomState()

    col_min = data.min(axis=0)
    col_max = data.max(axis=0)
    unit = rng.random_sample((rows * cols, data.shape[1]))
    return col_min + unit * (col_max - col_min)


def linear_init(
    data: np.ndarray,
    size: Tuple[int, int],
    rng: Optional[np.random.RandomState] = None,
) -> np.ndarray:
    """
    Codebook spread over the plane of the two main principal components.

    Principal directions are scaled by the square root of their variance.
    Lattice coordinates are normalised to [-1, 1] and the longer lattice
    side follows the first component. The result is deterministic, rng is
    accepted so all initializers share one signature.
    """
    data = _validate_data(data)
    rows, cols = validate_size(size)
    n_samples, n_features = data.shape
    if n_samples < 2:
        raise DimensionError(
            f"Linear initialization needs at least 2 samples, got {n_samples}"
        )

    n_components = min(2, n_samples, n_features)
    pca = PCA(n_components=n_components)
    pca.fit(data)
    directions = pca.components_ * np.sqrt(pca.explained_variance_)[:, np.newaxis]

    coords = grid_coords(UnitShape.RECTANGULAR, (rows, cols))
    span = coords.max(axis=0) - coords.min(axis=0)
    # a lattice side of length one stays at the centre
    normalized = np.divide(
        coords - coords.min(axis=0),
        span,
        out=np.full_like(coords, 0.5),
        where=span > 0,
    )
    centered = (normalized - 0.5) * 2

    # x runs along lattice columns, y along lattice rows
    if rows >= cols:
        centered = centered[:, ::-1]

    return data.mean(axis=0) + centered[:, :n_components] @ directions


INITIALIZERS = MappingProxyType(
    {
        InitStrategy.RANDOM: random_init,
        InitStrategy.LINEAR: linear_init,
    }
)
