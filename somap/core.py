"""
Core SOM implementation
"""

import dataclasses
import os
import pickle
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import structlog
from tqdm import tqdm

from .callbacks import Callback
from .config import Algorithm, DistanceMetric, MapConfig, TrainConfig
from .distance import bmus
from .errors import ConfigError, DimensionError, SOMError, TrainingError
from .grid import Grid, build_grid
from .initializers import INITIALIZERS
from .observability import (
    log_bmu_query,
    log_map_created,
    log_training_metrics,
    trace_operation,
)
from . import quality
from .training import default_workers, train_batch, train_sequential

logger = structlog.get_logger(__name__)


def ensure_models_dir(filepath: str) -> str:
    """Ensure models directory exists and return full path"""
    if not os.path.isabs(filepath):
        models_dir = Path("models")
        models_dir.mkdir(exist_ok=True)
        return str(models_dir / filepath)
    return filepath


class Map:
    """
    Self-Organizing Map: a lattice of units and their codebook vectors

    The codebook is created from the data when the map is built and every
    call to ``train`` continues from its current state.
    """

    def __init__(self, config: MapConfig, data: np.ndarray, verbose: bool = True):
        """
        Build the lattice and initialize the codebook

        Args:
            config: MapConfig with lattice size, unit shape and init strategy
            data: samples x features matrix used for initialization
            verbose: Whether to show training progress

        Raises:
            ConfigError: on invalid configuration
            DimensionError: on missing or malformed data
        """
        self._setup(config, verbose)
        data = self._check_data(data, check_features=False)

        init_func = INITIALIZERS[config.init_strategy]
        self._codebook = init_func(data, config.size, self.rng)

        log_map_created()
        logger.info(
            "Map created",
            size=config.size,
            unit_shape=config.unit_shape.value,
            init_strategy=config.init_strategy.value,
            n_features=self.n_features,
        )

    def _setup(self, config: MapConfig, verbose: bool) -> None:
        if config is None:
            raise ConfigError("Map configuration must be supplied")
        config.validate()
        self.config = config
        self.verbose = verbose

        # local RNG for reproducibility
        if config.seed is not None:
            self.rng = np.random.RandomState(config.seed)
        else:
            self.rng = np.random.RandomState()

        self._grid = build_grid(config.unit_shape, config.size)
        self._codebook: Optional[np.ndarray] = None

        self.metadata = {
            "creation_time": datetime.now().isoformat(),
            "training_history": [],
            "total_iterations": 0,
            "config": config.to_dict(),
        }

        # Control flag for early stopping
        self.stop_training = False

    @classmethod
    def from_codebook(
        cls, config: MapConfig, codebook: np.ndarray, verbose: bool = False
    ) -> "Map":
        """Rebuild a map around an existing codebook"""
        som = cls.__new__(cls)
        som._setup(config, verbose)
        codebook = som._check_matrix(codebook, "codebook")
        if codebook.shape[0] != som.n_units:
            raise DimensionError(
                f"Codebook has {codebook.shape[0]} rows, "
                f"lattice has {som.n_units} units"
            )
        som._codebook = codebook.copy()
        return som

    @property
    def grid(self) -> Grid:
        return self._grid

    @property
    def codebook(self) -> np.ndarray:
        """Copy of the codebook, units x features"""
        return self._codebook.copy()

    @property
    def unit_distance(self) -> np.ndarray:
        return self._grid.unit_distance

    @property
    def n_units(self) -> int:
        return self._grid.n_units

    @property
    def n_features(self) -> int:
        return self._codebook.shape[1]

    @staticmethod
    def _check_matrix(data, name: str = "data") -> np.ndarray:
        if data is None:
            raise DimensionError(f"Invalid {name} supplied: None")
        data = np.asarray(data, dtype=np.float64)
        if data.ndim != 2:
            raise DimensionError(f"Input {name} must be 2D array, got {data.ndim}D")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise DimensionError(f"Input {name} is empty")
        if np.any(np.isnan(data)) or np.any(np.isinf(data)):
            raise DimensionError(f"Input {name} contains NaN or infinite values")
        return data

    def _check_data(self, data, check_features: bool = True) -> np.ndarray:
        data = self._check_matrix(data)
        if check_features and data.shape[1] != self.n_features:
            raise DimensionError(
                f"Expected {self.n_features} features, got {data.shape[1]}"
            )
        return data

    def _resolve_train_config(self, train_config: TrainConfig) -> TrainConfig:
        if train_config is None:
            raise ConfigError("Training configuration must be supplied")
        if train_config.radius is None:
            train_config = dataclasses.replace(
                train_config, radius=max(self.config.size) / 2
            )
        train_config.validate()
        return train_config

    def train(
        self,
        train_config: TrainConfig,
        data: np.ndarray,
        iterations: int,
        callbacks: Optional[List[Callback]] = None,
    ) -> "Map":
        """
        Train the map on data

        The codebook is replaced only when the run finishes, so a failed run
        leaves the map as it was.

        Args:
            train_config: TrainConfig with algorithm and schedules
            data: Input data of shape (n_samples, n_features)
            iterations: Sequential steps or batch epochs
            callbacks: List of callback objects

        Returns:
            self for method chaining

        Raises:
            ConfigError: on invalid iterations or configuration
            DimensionError: on missing or mismatched data
            TrainingError: if a training step fails
        """
        if (
            isinstance(iterations, bool)
            or not isinstance(iterations, (int, np.integer))
            or iterations <= 0
        ):
            raise ConfigError(f"Invalid number of iterations: {iterations}")
        data = self._check_data(data)
        train_config = self._resolve_train_config(train_config)

        callbacks = list(callbacks or [])
        working = self._codebook.copy()
        if train_config.algorithm == Algorithm.BATCH:
            workers = train_config.workers or default_workers()
            steps = train_batch(
                working, data, self.unit_distance, train_config, iterations, workers
            )
        else:
            steps = train_sequential(
                working, data, self.unit_distance, train_config, iterations, self.rng
            )

        self.stop_training = False
        for callback in callbacks:
            callback.on_training_begin(self)

        rows, cols = self.config.size
        algorithm = train_config.algorithm.value
        start_time = time.time()
        completed = 0
        last_metrics: Dict = {}

        with trace_operation(
            "train", algorithm=algorithm, iterations=iterations, rows=rows, cols=cols
        ):
            iterator = steps
            if self.verbose:
                iterator = tqdm(
                    steps, total=iterations, desc=f"Training SOM ({algorithm})"
                )
            try:
                for t, metrics in iterator:
                    completed += 1
                    last_metrics = metrics

                    for callback in callbacks:
                        callback.on_epoch_end(t, self, metrics)

                    if self.verbose:
                        iterator.set_postfix(
                            {
                                "QE": f"{metrics['qe']:.4f}",
                                "r": f"{metrics['radius']:.3f}",
                            }
                        )

                    if self.stop_training:
                        logger.info("Training stopped", iteration=t)
                        break
            except (SOMError, ValueError, ArithmeticError) as e:
                raise TrainingError(
                    f"Training aborted at iteration {completed}: {e}"
                ) from e
            finally:
                steps.close()
                if self.verbose:
                    iterator.close()

        duration = time.time() - start_time
        self._codebook = working

        self.metadata["total_iterations"] += completed
        self.metadata["last_training"] = datetime.now().isoformat()
        self.metadata["training_history"].append(
            {
                "train_config": train_config.to_dict(),
                "iterations": iterations,
                "completed": completed,
                "duration_seconds": duration,
                "final_metrics": last_metrics,
            }
        )
        log_training_metrics(rows, cols, algorithm, duration, completed)

        for callback in callbacks:
            callback.on_training_end(self)

        return self

    def bmus(self, data: np.ndarray) -> np.ndarray:
        """Find BMU indices for input data"""
        data = self._check_data(data)
        log_bmu_query(data.shape[0])
        return bmus(data, self._codebook, DistanceMetric.EUCLIDEAN)

    def transform(self, data: np.ndarray) -> np.ndarray:
        """Map data to the lattice coordinates of their BMUs"""
        return self._grid.coords[self.bmus(data)]

    def quant_error(self, data: np.ndarray) -> float:
        return quality.quantization_error(data, self._codebook)

    def topo_error(self, data: np.ndarray) -> float:
        return quality.topographic_error(data, self._codebook, self._grid)

    def topo_product(self) -> float:
        return quality.topographic_product(self._codebook, self._grid)

    def umatrix(self) -> np.ndarray:
        return quality.umatrix(self._codebook, self._grid)

    def save(self, filepath: str):
        """Save map to file"""
        full_path = ensure_models_dir(filepath)

        save_data = {
            "config": self.config.to_dict(),
            "codebook": self._codebook,
            "metadata": self.metadata,
        }

        try:
            with open(full_path, "wb") as f:
                pickle.dump(save_data, f)
        except (IOError, OSError) as e:
            raise IOError(f"Failed to save model to {full_path}: {e}")

        logger.info("Model saved", path=full_path)

    @classmethod
    def load(cls, filepath: str) -> "Map":
        """Load map from file"""
        full_path = ensure_models_dir(filepath)

        try:
            with open(full_path, "rb") as f:
                save_data = pickle.load(f)
        except (IOError, OSError) as e:
            raise IOError(f"Failed to load model from {full_path}: {e}")

        config = MapConfig.from_dict(save_data["config"])
        som = cls.from_codebook(config, save_data["codebook"])
        som.metadata = save_data["metadata"]
        return som

    def export_codebook(self, filepath: str) -> str:
        """Write the codebook as a row-major float64 .npy matrix"""
        full_path = ensure_models_dir(filepath)
        np.save(full_path, np.ascontiguousarray(self._codebook, dtype=np.float64))
        return full_path

    def get_info(self) -> Dict:
        """Get comprehensive information about the map"""
        return {
            "config": self.config.to_dict(),
            "metadata": self.metadata,
            "shape": self.config.size,
            "n_units": self.n_units,
            "n_features": self.n_features,
            "total_iterations": self.metadata["total_iterations"],
        }

    def plot_umatrix(self, show_plot=True, save_path="umatrix.png"):
        """Render the U-matrix of the map"""
        from .visualization import SOMVisualizer

        SOMVisualizer.plot_umatrix(self, show_plot, save_path)
        return self

    def plot_component_planes(self, show_plot=True, save_path="components.png"):
        """Render one lattice plane per feature"""
        from .visualization import SOMVisualizer

        SOMVisualizer.plot_component_planes(self, show_plot, save_path)
        return self
