"""
Callback system for monitoring and intervention during SOM training
"""

from abc import ABC, abstractmethod
from typing import Dict, List, TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from .core import Map

logger = structlog.get_logger(__name__)


class Callback(ABC):
    """Abstract base class for callbacks

    ``on_epoch_end`` runs after every sequential step or batch epoch. The
    map's codebook is only committed once training ends.
    """

    @abstractmethod
    def on_training_begin(self, som: "Map") -> None:
        pass

    @abstractmethod
    def on_epoch_end(self, epoch: int, som: "Map", metrics: Dict) -> None:
        pass

    @abstractmethod
    def on_training_end(self, som: "Map") -> None:
        pass


class HistoryCallback(Callback):
    """Record the metrics of every epoch"""

    def __init__(self):
        self.history: List[Dict] = []

    def on_training_begin(self, som: "Map") -> None:
        self.history = []

    def on_epoch_end(self, epoch: int, som: "Map", metrics: Dict) -> None:
        self.history.append({"epoch": epoch, **metrics})

    def on_training_end(self, som: "Map") -> None:
        pass


class EarlyStoppingCallback(Callback):
    """Stop training once the monitored metric stops improving"""

    def __init__(
        self, monitor: str = "qe", patience: int = 10, min_delta: float = 1e-4
    ):
        self.monitor = monitor
        self.patience = patience
        self.min_delta = min_delta
        self.best_value = float("inf")
        self.wait = 0

    def on_training_begin(self, som: "Map") -> None:
        self.best_value = float("inf")
        self.wait = 0

    def on_epoch_end(self, epoch: int, som: "Map", metrics: Dict) -> None:
        current_value = metrics.get(self.monitor, float("inf"))
        if current_value < self.best_value - self.min_delta:
            self.best_value = current_value
            self.wait = 0
        else:
            self.wait += 1
            if self.wait >= self.patience:
                som.stop_training = True
                logger.info(
                    "Early stopping triggered", epoch=epoch, monitor=self.monitor
                )

    def on_training_end(self, som: "Map") -> None:
        pass
