"""
Configuration classes and enums for SOM
"""

import math
import numbers
from enum import Enum
from dataclasses import dataclass, asdict
from typing import Optional, Tuple, Dict

from .errors import ConfigError


class UnitShape(Enum):
    """Shape of a lattice unit"""

    RECTANGULAR = "rectangle"
    HEXAGONAL = "hexagon"


class Algorithm(Enum):
    """Training algorithms"""

    SEQUENTIAL = "seq"
    BATCH = "batch"


class DecayStrategy(Enum):
    """Decay strategies for radius and learning rate"""

    EXPONENTIAL = "exp"
    LINEAR = "lin"
    INVERSE = "inv"


class Neighborhood(Enum):
    """Neighborhood kernels"""

    GAUSSIAN = "gaussian"
    BUBBLE = "bubble"
    MEXICAN_HAT = "mexican"


class DistanceMetric(Enum):
    """Distance metrics for BMU search"""

    EUCLIDEAN = "euclidean"
    MANHATTAN = "manhattan"
    COSINE = "cosine"
    CHEBYSHEV = "chebyshev"


class InitStrategy(Enum):
    """Codebook initialization strategies"""

    RANDOM = "random"
    LINEAR = "linear"


def coerce_enum(value, enum_class, field_name: str):
    """Convert a string (or enum member) into a member of enum_class"""
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(value)
    except ValueError:
        supported = ", ".join(member.value for member in enum_class)
        raise ConfigError(
            f"Unsupported {field_name}: {value!r} (supported: {supported})"
        ) from None


def validate_size(size) -> Tuple[int, int]:
    """Check lattice dimensions and return them as a tuple"""
    if size is None:
        raise ConfigError("Lattice size must be supplied")
    size = tuple(size)
    # only planar lattices
    if len(size) != 2:
        raise ConfigError(f"Incorrect number of dimensions supplied: {len(size)}")
    for dim in size:
        if isinstance(dim, bool) or not isinstance(dim, numbers.Integral) or dim <= 0:
            raise ConfigError(f"Incorrect SOM dimensions supplied: {size}")
    if size[0] * size[1] <= 1:
        raise ConfigError(f"Degenerate SOM dimensions supplied: {size}")
    return int(size[0]), int(size[1])


def _positive_finite(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value) and value > 0


@dataclass
class MapConfig:
    """Lattice and codebook configuration"""

    # (rows, cols) of the lattice
    size: Tuple[int, int]
    unit_shape: UnitShape = UnitShape.HEXAGONAL
    init_strategy: InitStrategy = InitStrategy.RANDOM

    # Reproducibility
    seed: Optional[int] = None

    def __post_init__(self):
        self.unit_shape = coerce_enum(self.unit_shape, UnitShape, "unit shape")
        self.init_strategy = coerce_enum(
            self.init_strategy, InitStrategy, "init strategy"
        )

    @property
    def n_units(self) -> int:
        return int(self.size[0]) * int(self.size[1])

    def validate(self) -> None:
        self.size = validate_size(self.size)

    def to_dict(self) -> Dict:
        """Convert config to dictionary for serialization"""
        config_dict = asdict(self)
        for key, value in config_dict.items():
            if isinstance(value, Enum):
                config_dict[key] = value.value
        config_dict["size"] = list(self.size)
        return config_dict

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "MapConfig":
        """Create config from dictionary"""
        config_dict = dict(config_dict)
        if "size" in config_dict:
            config_dict["size"] = tuple(config_dict["size"])
        return cls(**config_dict)


@dataclass
class TrainConfig:
    """Training configuration"""

    algorithm: Algorithm = Algorithm.SEQUENTIAL

    # Initial radius; resolved by the map when None
    radius: Optional[float] = None
    radius_decay: DecayStrategy = DecayStrategy.EXPONENTIAL
    neighborhood: Neighborhood = Neighborhood.GAUSSIAN

    # Only used by the sequential algorithm
    learning_rate: float = 0.5
    learning_rate_decay: DecayStrategy = DecayStrategy.EXPONENTIAL

    distance_metric: DistanceMetric = DistanceMetric.EUCLIDEAN

    # Batch worker count, defaults to available CPUs
    workers: Optional[int] = None

    _enum_fields = {
        "algorithm": (Algorithm, "training algorithm"),
        "radius_decay": (DecayStrategy, "radius decay strategy"),
        "neighborhood": (Neighborhood, "neighborhood function"),
        "learning_rate_decay": (DecayStrategy, "learning rate decay strategy"),
        "distance_metric": (DistanceMetric, "distance metric"),
    }

    def __post_init__(self):
        for field_name, (enum_class, label) in self._enum_fields.items():
            setattr(
                self,
                field_name,
                coerce_enum(getattr(self, field_name), enum_class, label),
            )

    def validate(self) -> None:
        """Raise ConfigError if any parameter is out of range"""
        if not _positive_finite(self.radius):
            raise ConfigError(f"Invalid SOM unit radius: {self.radius}")
        if self.algorithm == Algorithm.SEQUENTIAL and not _positive_finite(
            self.learning_rate
        ):
            raise ConfigError(f"Invalid SOM learning rate: {self.learning_rate}")
        if self.workers is not None and (
            isinstance(self.workers, bool)
            or not isinstance(self.workers, numbers.Integral)
            or self.workers <= 0
        ):
            raise ConfigError(f"Invalid number of workers: {self.workers}")

    def to_dict(self) -> Dict:
        config_dict = asdict(self)
        for key, value in config_dict.items():
            if isinstance(value, Enum):
                config_dict[key] = value.value
        return config_dict

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "TrainConfig":
        return cls(**config_dict)
