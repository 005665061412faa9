"""
Map quality measures
"""

import math
from typing import Union

import numpy as np

from .config import DistanceMetric
from .distance import bmus, closest_n_vec
from .errors import DimensionError, QualityError
from .grid import Grid, distance_matrix

# Lattice units closer than this are neighbours, diagonal ones included
ADJACENCY_THRESHOLD = 1.01 * math.sqrt(2)


def _matrix(m, name: str, sentinel: float) -> np.ndarray:
    if m is None:
        raise QualityError(f"invalid {name} supplied: None", value=sentinel)
    m = np.asarray(m, dtype=np.float64)
    if m.ndim != 2 or m.shape[0] == 0 or m.shape[1] == 0:
        raise QualityError(f"invalid {name} shape: {m.shape}", value=sentinel)
    return m


def _unit_distance(grid: Union[Grid, np.ndarray], sentinel: float) -> np.ndarray:
    if isinstance(grid, Grid):
        return grid.unit_distance
    return distance_matrix(_matrix(grid, "grid", sentinel))


def _check_columns(data: np.ndarray, codebook: np.ndarray, sentinel: float):
    if data.shape[1] != codebook.shape[1]:
        raise QualityError(
            "data and codebook dimension mismatch: "
            f"{data.shape[1]} != {codebook.shape[1]}",
            value=sentinel,
        )


def _check_units(codebook: np.ndarray, udist: np.ndarray, sentinel: float):
    if codebook.shape[0] != udist.shape[0]:
        raise QualityError(
            "grid and codebook dimension mismatch: "
            f"{udist.shape[0]} != {codebook.shape[0]}",
            value=sentinel,
        )


def quantization_error(data, codebook) -> float:
    """
    Mean Euclidean distance between samples and their BMUs.

    Raises:
        QualityError: with value -1.0 on missing or mismatched inputs
    """
    data = _matrix(data, "data", -1.0)
    codebook = _matrix(codebook, "codebook", -1.0)
    _check_columns(data, codebook, -1.0)

    bmu_idx = bmus(data, codebook, DistanceMetric.EUCLIDEAN)
    dists = np.linalg.norm(data - codebook[bmu_idx], axis=1)
    return float(np.mean(dists))


def topographic_error(data, codebook, grid: Union[Grid, np.ndarray]) -> float:
    """
    Fraction of samples whose two closest units are not lattice neighbours.

    Args:
        data: samples x features
        codebook: units x features
        grid: Grid or its (units x 2) coordinate matrix

    Raises:
        QualityError: with value -1.0 on missing or mismatched inputs
    """
    data = _matrix(data, "data", -1.0)
    codebook = _matrix(codebook, "codebook", -1.0)
    if grid is None:
        raise QualityError("invalid grid supplied: None", value=-1.0)
    _check_columns(data, codebook, -1.0)
    udist = _unit_distance(grid, -1.0)
    _check_units(codebook, udist, -1.0)

    errors = 0
    for sample in data:
        try:
            first, second = closest_n_vec(DistanceMetric.EUCLIDEAN, 2, sample, codebook)
        except DimensionError as e:
            raise QualityError(str(e), value=-1.0) from e
        if udist[first, second] >= ADJACENCY_THRESHOLD:
            errors += 1

    return errors / data.shape[0]


def topographic_product(codebook, grid: Union[Grid, np.ndarray]) -> float:
    """
    Topographic product of the codebook with respect to the lattice.

    For every unit the k nearest neighbours in codebook space are compared
    with the k nearest neighbours on the lattice, for all k. Values near 0
    mean the orderings agree.

    Returns:
        The product, or +inf if two codebook vectors are identical

    Raises:
        QualityError: with value 0.0 on missing or mismatched inputs
    """
    codebook = _matrix(codebook, "codebook", 0.0)
    if grid is None:
        raise QualityError("invalid grid supplied: None", value=0.0)
    udist = _unit_distance(grid, 0.0)
    _check_units(codebook, udist, 0.0)

    n_units = codebook.shape[0]
    cdist = distance_matrix(codebook)
    off_diagonal = ~np.eye(n_units, dtype=bool)
    if np.any(cdist[off_diagonal] == 0):
        return math.inf

    # first column of each ordering is the unit itself
    u_order = np.argsort(udist, axis=1, kind="stable")[:, 1:]
    c_order = np.argsort(cdist, axis=1, kind="stable")[:, 1:]
    row = np.arange(n_units)[:, np.newaxis]

    q1 = cdist[row, u_order] / cdist[row, c_order]
    q2 = udist[row, u_order] / udist[row, c_order]
    log_p3 = np.cumsum(np.log(q1) + np.log(q2), axis=1)
    k = np.arange(1, n_units)

    return float(np.sum(log_p3 / (2 * k)) / (n_units * (n_units - 1)))


def umatrix(codebook, grid: Union[Grid, np.ndarray]) -> np.ndarray:
    """Mean codebook distance of every unit to its lattice neighbours"""
    codebook = _matrix(codebook, "codebook", -1.0)
    if grid is None:
        raise QualityError("invalid grid supplied: None", value=-1.0)
    udist = _unit_distance(grid, -1.0)
    _check_units(codebook, udist, -1.0)

    neighbours = (udist > 0) & (udist < ADJACENCY_THRESHOLD)
    cdist = distance_matrix(codebook)
    return np.sum(cdist * neighbours, axis=1) / np.sum(neighbours, axis=1)
