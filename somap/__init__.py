"""
somap: Self-Organizing Map training engine

Rectangular and hexagonal lattices, sequential and parallel batch
training, decay schedules, neighbourhood kernels and map quality measures.
"""

from .core import Map
from .config import (
    MapConfig,
    TrainConfig,
    UnitShape,
    Algorithm,
    DecayStrategy,
    Neighborhood,
    DistanceMetric,
    InitStrategy,
)
from .errors import (
    SOMError,
    ConfigError,
    DecayError,
    DimensionError,
    QualityError,
    TrainingError,
)
from .grid import Grid, build_grid, grid_coords, grid_size
from .callbacks import Callback, EarlyStoppingCallback, HistoryCallback
from .dataset import DataSet, create_clustered_data, scale
from .observability import (
    setup_logging,
    trace_operation,
    get_metrics,
    log_training_metrics,
)

__version__ = "0.1.0"

__all__ = [
    "Map",
    "MapConfig",
    "TrainConfig",
    "UnitShape",
    "Algorithm",
    "DecayStrategy",
    "Neighborhood",
    "DistanceMetric",
    "InitStrategy",
    "SOMError",
    "ConfigError",
    "DecayError",
    "DimensionError",
    "QualityError",
    "TrainingError",
    "Grid",
    "build_grid",
    "grid_coords",
    "grid_size",
    "Callback",
    "EarlyStoppingCallback",
    "HistoryCallback",
    "DataSet",
    "create_clustered_data",
    "scale",
    "setup_logging",
    "trace_operation",
    "get_metrics",
    "log_training_metrics",
]
