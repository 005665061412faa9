"""
Exception hierarchy for somap
"""

import math


class SOMError(Exception):
    """Base class for all somap errors"""


class ConfigError(SOMError, ValueError):
    """Invalid map or training configuration"""


class DecayError(ConfigError):
    """Invalid initial value passed to a decay schedule"""

    def __init__(self, message: str):
        super().__init__(message)
        self.value = math.nan


class DimensionError(SOMError, ValueError):
    """Missing, empty or mismatched input matrices and vectors"""


class QualityError(SOMError, ValueError):
    """A quality metric could not be computed.

    ``value`` holds the sentinel the metric reports on failure.
    """

    def __init__(self, message: str, value: float = -1.0):
        super().__init__(message)
        self.value = value


class TrainingError(SOMError, RuntimeError):
    """Training step failed; the codebook was left unmodified"""
