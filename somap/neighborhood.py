"""Neighbourhood kernels: update weight as a function of lattice distance."""

from types import MappingProxyType
from typing import Callable, Union

import numpy as np

from .config import Neighborhood, coerce_enum


def _result(value):
    return float(value) if np.ndim(value) == 0 else value


def gaussian(distance, radius):
    """exp(-d^2 / (2 r^2))"""
    distance = np.asarray(distance, dtype=np.float64)
    return _result(np.exp(-(distance**2) / (2 * radius**2)))


def bubble(distance, radius):
    """1 inside the radius (inclusive), 0 outside"""
    distance = np.asarray(distance, dtype=np.float64)
    return _result(np.where(distance <= radius, 1.0, 0.0))


def mexican_hat(distance, radius):
    """Mexican hat wavelet: positive inside the radius, zero on it, negative outside"""
    distance = np.asarray(distance, dtype=np.float64)
    ratio = distance**2 / radius**2
    scale = 2 / (np.sqrt(3 * radius) * np.pi**0.25)
    return _result(scale * (1 - ratio) * np.exp(-ratio / 2))


KERNELS = MappingProxyType(
    {
        Neighborhood.GAUSSIAN: gaussian,
        Neighborhood.BUBBLE: bubble,
        Neighborhood.MEXICAN_HAT: mexican_hat,
    }
)


def get_kernel(neighborhood: Union[Neighborhood, str]) -> Callable:
    return KERNELS[coerce_enum(neighborhood, Neighborhood, "neighborhood function")]
