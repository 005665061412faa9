"""
Sequential and batch SOM training algorithms

Both algorithms are generators: they mutate the codebook they are given
and yield ``(iteration, metrics)`` after every step (sequential) or epoch
(batch), leaving callbacks, progress reporting and stopping to the caller.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterator, List, Tuple

import numpy as np

from .config import TrainConfig
from .decay import learning_rate, radius
from .distance import DistanceCalculator, bmus
from .errors import ConfigError
from .neighborhood import get_kernel


def default_workers() -> int:
    return os.cpu_count() or 1


def partition_rows(rows: int, workers: int) -> List[Tuple[int, int]]:
    """
    Split ``rows`` into contiguous [start, stop) ranges, one per worker.

    Every range holds ``rows // workers`` rows and the last one also takes
    the remainder. Workers are capped at ``rows`` so no range is empty.
    """
    if rows <= 0:
        raise ConfigError(f"Invalid number of rows: {rows}")
    if workers <= 0:
        raise ConfigError(f"Invalid number of workers: {workers}")

    workers = min(workers, rows)
    step = rows // workers
    bounds = [(i * step, (i + 1) * step) for i in range(workers)]
    bounds[-1] = (bounds[-1][0], rows)
    return bounds


def train_sequential(
    codebook: np.ndarray,
    data: np.ndarray,
    unit_dist: np.ndarray,
    config: TrainConfig,
    iterations: int,
    rng: np.random.RandomState,
) -> Iterator[Tuple[int, Dict]]:
    """
    Sequential (online) training, one random sample per iteration.

    Units closer to the BMU than the current radius move towards the sample
    by ``learning_rate * kernel(distance, radius)``; the BMU itself takes the
    full learning rate step.
    """
    kernel = get_kernel(config.neighborhood)
    metric = DistanceCalculator.get(config.distance_metric)

    for t in range(iterations):
        sample = data[rng.randint(data.shape[0])]
        dists = metric(codebook, sample)
        bmu = int(np.argmin(dists))

        r = radius(t, iterations, config.radius_decay, config.radius)
        lr = learning_rate(
            t, iterations, config.learning_rate_decay, config.learning_rate
        )

        within = unit_dist[bmu] < r
        d = unit_dist[bmu][within]
        theta = np.where(d == 0, 1.0, kernel(d, r))
        codebook[within] += lr * theta[:, np.newaxis] * (sample - codebook[within])

        yield t, {"radius": r, "learning_rate": lr, "qe": float(dists[bmu])}


def batch_partial(
    codebook: np.ndarray,
    rows: np.ndarray,
    unit_dist: np.ndarray,
    radius_value: float,
    kernel: Callable,
    metric,
) -> Tuple[np.ndarray, np.ndarray, float]:
    """
    Accumulate one partition's contribution to a batch epoch.

    Returns:
        (vector_sum, weight_sum, bmu_distance_sum) where vector_sum is
        units x features, weight_sum has one entry per unit
    """
    bmu_idx = bmus(rows, codebook, metric)
    lattice = unit_dist[bmu_idx]
    weights = np.where(lattice < radius_value, kernel(lattice, radius_value), 0.0)

    vector_sum = weights.T @ rows
    weight_sum = weights.sum(axis=0)
    dist_sum = float(np.sum(DistanceCalculator.get(metric)(rows, codebook[bmu_idx])))
    return vector_sum, weight_sum, dist_sum


def train_batch(
    codebook: np.ndarray,
    data: np.ndarray,
    unit_dist: np.ndarray,
    config: TrainConfig,
    iterations: int,
    workers: int,
) -> Iterator[Tuple[int, Dict]]:
    """
    Batch training, one codebook update per pass over the data.

    Each epoch the partitions are mapped in parallel against a read-only
    snapshot of the codebook. Partial sums are added in partition order once
    every worker has finished, and each unit with non-zero weight is replaced
    by its weighted mean. Units with zero weight keep their vector.
    """
    kernel = get_kernel(config.neighborhood)
    partitions = partition_rows(data.shape[0], workers)

    with ThreadPoolExecutor(
        max_workers=len(partitions), thread_name_prefix="somap-batch"
    ) as pool:
        for epoch in range(iterations):
            r = radius(epoch, iterations, config.radius_decay, config.radius)

            snapshot = codebook.copy()
            snapshot.setflags(write=False)
            futures = [
                pool.submit(
                    batch_partial,
                    snapshot,
                    data[start:stop],
                    unit_dist,
                    r,
                    kernel,
                    config.distance_metric,
                )
                for start, stop in partitions
            ]

            vector_sum = np.zeros_like(codebook)
            weight_sum = np.zeros(codebook.shape[0])
            dist_sum = 0.0
            for future in futures:
                partial_vectors, partial_weights, partial_dist = future.result()
                vector_sum += partial_vectors
                weight_sum += partial_weights
                dist_sum += partial_dist

            updated = weight_sum != 0
            codebook[updated] = (
                vector_sum[updated] / weight_sum[updated][:, np.newaxis]
            )

            yield epoch, {"radius": r, "qe": dist_sum / data.shape[0]}
