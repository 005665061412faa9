"""
Lattice construction: unit coordinates and unit-to-unit distances
"""

import math
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

from .config import UnitShape, coerce_enum, validate_size
from .errors import ConfigError, DimensionError

# Vertical spacing of hexagonal rows, keeps all six neighbours at distance 1
HEX_ROW_SCALE = math.sqrt(0.75)


def grid_coords(
    unit_shape: Union[UnitShape, str], size: Tuple[int, int]
) -> np.ndarray:
    """
    Planar coordinates of lattice units, one row per unit.

    Unit ``k`` sits in lattice column ``k // rows`` and lattice row
    ``k % rows``. Hexagonal lattices shift odd rows by half a unit along x
    and compress y by sqrt(0.75).

    Args:
        unit_shape: UnitShape or its string value
        size: (rows, cols) of the lattice

    Returns:
        Array of shape (rows * cols, 2)
    """
    unit_shape = coerce_enum(unit_shape, UnitShape, "unit shape")
    rows, cols = validate_size(size)

    k = np.arange(rows * cols)
    lattice_col = k // rows
    lattice_row = k % rows

    x = lattice_col.astype(np.float64)
    y = lattice_row.astype(np.float64)
    if unit_shape == UnitShape.HEXAGONAL:
        x += 0.5 * (lattice_row % 2)
        y *= HEX_ROW_SCALE

    return np.column_stack((x, y))


def distance_matrix(points: np.ndarray) -> np.ndarray:
    """Hollow symmetric matrix of Euclidean distances between rows of points"""
    if points is None:
        raise DimensionError("Invalid matrix supplied: None")
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[0] == 0:
        raise DimensionError(f"Invalid matrix shape: {points.shape}")
    diff = points[:, np.newaxis, :] - points[np.newaxis, :, :]
    dist = np.sqrt(np.sum(diff**2, axis=-1))
    # guard against rounding leaving tiny non-zero values
    np.fill_diagonal(dist, 0.0)
    return dist


@dataclass(frozen=True, eq=False)
class Grid:
    """Immutable SOM lattice"""

    size: Tuple[int, int]
    unit_shape: UnitShape
    coords: np.ndarray
    unit_distance: np.ndarray

    @property
    def n_units(self) -> int:
        return self.size[0] * self.size[1]

    def __repr__(self) -> str:
        return f"Grid(size={self.size}, unit_shape={self.unit_shape.value})"


def build_grid(unit_shape: Union[UnitShape, str], size: Tuple[int, int]) -> Grid:
    """Build a lattice and precompute its unit distance matrix"""
    unit_shape = coerce_enum(unit_shape, UnitShape, "unit shape")
    size = validate_size(size)

    coords = grid_coords(unit_shape, size)
    udist = distance_matrix(coords)
    coords.setflags(write=False)
    udist.setflags(write=False)

    return Grid(size=size, unit_shape=unit_shape, coords=coords, unit_distance=udist)


def unit_distance(grid: Grid) -> np.ndarray:
    """Euclidean distances between all lattice units of grid"""
    if grid is None:
        raise DimensionError("Invalid grid supplied: None")
    return grid.unit_distance


def grid_size(
    data: np.ndarray, unit_shape: Union[UnitShape, str] = UnitShape.HEXAGONAL
) -> Tuple[int, int]:
    """
    Estimate lattice dimensions for a data set.

    The number of units follows the 5 * sqrt(samples) heuristic; the side
    ratio follows the ratio of the two largest principal variances.

    Returns:
        (rows, cols) with rows >= cols
    """
    if data is None:
        raise DimensionError("Invalid data matrix: None")
    unit_shape = coerce_enum(unit_shape, UnitShape, "unit shape")
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2 or data.size == 0:
        raise DimensionError(f"Invalid data matrix shape: {data.shape}")

    n_samples, n_features = data.shape
    units = int(math.ceil(5 * math.sqrt(n_samples)))

    if n_features == 1:
        return 1, units
    if n_samples < 2:
        side = max(2, int(math.sqrt(units)))
        return side, side

    eigvals = np.sort(np.linalg.eigvalsh(np.cov(data, rowvar=False)))[::-1]
    if eigvals[1] <= 0:
        # data lies on a line
        return units, 1
    ratio = math.sqrt(eigvals[0] / eigvals[1])
    area = units / ratio
    if unit_shape == UnitShape.HEXAGONAL:
        area *= HEX_ROW_SCALE

    cols = int(min(units, max(1, round(math.sqrt(area)))))
    rows = int(max(1, round(units / cols)))
    if rows < cols:
        rows, cols = cols, rows
    if rows * cols <= 1:
        raise ConfigError(f"Could not estimate grid size for data {data.shape}")
    return rows, cols
