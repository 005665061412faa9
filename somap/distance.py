"""Distance calculation and best matching unit search for SOM."""

import heapq
from typing import Callable, List, Union

import numpy as np
import structlog

from .config import DistanceMetric
from .errors import DimensionError

logger = structlog.get_logger(__name__)

# Rows per block when mapping a whole data set, bounds the temporary
# (rows x units x features) array
BMU_CHUNK_ROWS = 1024


class DistanceCalculator:
    """Calculate distances using different metrics."""

    # Constants for numerical stability
    EPSILON = 1e-8  # Small value to prevent division by zero

    @staticmethod
    def euclidean(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Calculate Euclidean distance."""
        return np.linalg.norm(a - b, axis=-1)

    @staticmethod
    def manhattan(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Calculate Manhattan distance."""
        return np.sum(np.abs(a - b), axis=-1)

    @staticmethod
    def cosine(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Calculate cosine distance."""
        # Cosine distance = 1 - cosine similarity
        dot_product = np.sum(a * b, axis=-1)
        norm_a = np.linalg.norm(a, axis=-1)
        norm_b = np.linalg.norm(b, axis=-1)
        similarity = dot_product / (norm_a * norm_b + DistanceCalculator.EPSILON)
        return 1 - similarity

    @staticmethod
    def chebyshev(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        """Calculate Chebyshev distance."""
        return np.max(np.abs(a - b), axis=-1)

    @classmethod
    def get(cls, metric: Union[DistanceMetric, str]) -> Callable:
        """Resolve a metric to its function, falling back to Euclidean"""
        metric_map = {
            DistanceMetric.EUCLIDEAN: cls.euclidean,
            DistanceMetric.MANHATTAN: cls.manhattan,
            DistanceMetric.COSINE: cls.cosine,
            DistanceMetric.CHEBYSHEV: cls.chebyshev,
        }
        try:
            return metric_map[DistanceMetric(metric)]
        except ValueError:
            logger.warning("Unknown distance metric, using euclidean", metric=metric)
            return cls.euclidean


def _as_vector(v) -> np.ndarray:
    if v is None:
        raise DimensionError("Invalid vector supplied: None")
    v = np.asarray(v, dtype=np.float64)
    if v.ndim != 1 or v.size == 0:
        raise DimensionError(f"Invalid vector supplied: shape {v.shape}")
    return v


def _as_matrix(m, name: str = "matrix") -> np.ndarray:
    if m is None:
        raise DimensionError(f"Invalid {name} supplied: None")
    m = np.asarray(m, dtype=np.float64)
    if m.ndim != 2 or m.shape[0] == 0 or m.shape[1] == 0:
        raise DimensionError(f"Invalid {name} supplied: shape {m.shape}")
    return m


def distance(metric: Union[DistanceMetric, str], a, b) -> float:
    """
    Distance between vectors a and b.

    Unknown metrics fall back to Euclidean distance.

    Raises:
        DimensionError: if either vector is None/empty or their lengths differ
    """
    a = _as_vector(a)
    b = _as_vector(b)
    if a.shape != b.shape:
        raise DimensionError(f"Incorrect vector dims. a: {a.size}, b: {b.size}")
    return float(DistanceCalculator.get(metric)(a, b))


def distance_matrix(metric: Union[DistanceMetric, str], x, y=None) -> np.ndarray:
    """Pairwise distances between rows of x and rows of y (x when omitted)"""
    x = _as_matrix(x)
    y = x if y is None else _as_matrix(y)
    if x.shape[1] != y.shape[1]:
        raise DimensionError(
            f"Matrix column mismatch: {x.shape[1]} != {y.shape[1]}"
        )
    calc = DistanceCalculator.get(metric)
    return calc(x[:, np.newaxis, :], y[np.newaxis, :, :])


def _row_distances(metric, v, m) -> np.ndarray:
    v = _as_vector(v)
    m = _as_matrix(m)
    if v.size != m.shape[1]:
        raise DimensionError(
            f"Vector and matrix dimension mismatch: {v.size} != {m.shape[1]}"
        )
    return DistanceCalculator.get(metric)(m, v)


def closest_vec(metric: Union[DistanceMetric, str], v, m) -> int:
    """
    Index of the row of m closest to v.

    Ties resolve to the lowest row index.
    """
    dists = _row_distances(metric, v, m)
    # argmin returns the first occurrence of the minimum
    return int(np.argmin(dists))


class BoundedMaxHeap:
    """
    Max-heap holding at most ``capacity`` (distance, index) items.

    Once full, a candidate replaces the current maximum only if it is
    strictly smaller, so the heap keeps the ``capacity`` smallest distances
    seen, preferring earlier indices on ties.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise DimensionError(f"Invalid capacity supplied: {capacity}")
        self.capacity = capacity
        # heapq is a min-heap: store negated keys
        self._items: List = []

    def __len__(self) -> int:
        return len(self._items)

    def push(self, value: float, index: int) -> None:
        item = (-value, -index)
        if len(self._items) < self.capacity:
            heapq.heappush(self._items, item)
        elif value < -self._items[0][0]:
            heapq.heapreplace(self._items, item)

    def peek(self) -> float:
        return -self._items[0][0]

    def sorted_indices(self) -> List[int]:
        """Indices ordered by ascending distance, then ascending index"""
        return [-i for _, i in sorted(self._items, key=lambda it: (-it[0], -it[1]))]


def closest_n_vec(metric: Union[DistanceMetric, str], n: int, v, m) -> List[int]:
    """
    Indices of the n rows of m closest to v, closest first.

    Raises:
        DimensionError: on invalid inputs or if n is not in [1, rows]
    """
    dists = _row_distances(metric, v, m)
    rows = len(dists)
    valid_n = isinstance(n, (int, np.integer)) and not isinstance(n, bool)
    if not valid_n or n <= 0 or n > rows:
        raise DimensionError(f"Invalid number of closest vectors requested: {n}")

    if n == 1:
        return [closest_vec(metric, v, m)]

    heap = BoundedMaxHeap(n)
    for i, d in enumerate(dists):
        heap.push(float(d), i)
    return heap.sorted_indices()


def bmus(data, codebook, metric: Union[DistanceMetric, str] = DistanceMetric.EUCLIDEAN):
    """
    Best matching unit of every data row.

    Returns:
        Array of codebook row indices, one per data row
    """
    data = _as_matrix(data, "data")
    codebook = _as_matrix(codebook, "codebook")
    if data.shape[1] != codebook.shape[1]:
        raise DimensionError(
            "Data and codebook dimension mismatch: "
            f"{data.shape[1]} != {codebook.shape[1]}"
        )
    indices = np.empty(data.shape[0], dtype=np.int64)
    for start in range(0, data.shape[0], BMU_CHUNK_ROWS):
        chunk = data[start : start + BMU_CHUNK_ROWS]
        indices[start : start + len(chunk)] = np.argmin(
            distance_matrix(metric, chunk, codebook), axis=1
        )
    return indices
