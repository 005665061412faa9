"""
Decay schedules for the neighbourhood radius and the learning rate
"""

from typing import Union

import structlog

from .config import DecayStrategy
from .errors import ConfigError, DecayError

logger = structlog.get_logger(__name__)

# Values reached at the last iteration of a schedule
RADIUS_FLOOR = 1.0
LEARNING_RATE_FLOOR = 0.01


def _resolve_strategy(strategy) -> DecayStrategy:
    try:
        return DecayStrategy(strategy)
    except ValueError:
        logger.warning("Unknown decay strategy, using exponential", strategy=strategy)
        return DecayStrategy.EXPONENTIAL


def _decay(
    iteration: int,
    total: int,
    strategy: Union[DecayStrategy, str],
    initial: float,
    floor: float,
    name: str,
) -> float:
    if not initial > 0:
        raise DecayError(f"Invalid initial {name}: {initial}")
    if total < 1:
        raise ConfigError(f"Invalid number of iterations: {total}")
    if iteration < 0 or iteration >= total:
        raise ConfigError(f"Invalid iteration {iteration} of {total}")

    strategy = _resolve_strategy(strategy)
    if iteration == 0 or total == 1:
        return float(initial)

    progress = iteration / (total - 1)
    if strategy == DecayStrategy.LINEAR:
        return initial - progress * (initial - floor)
    elif strategy == DecayStrategy.INVERSE:
        rate = (initial / floor - 1) / (total - 1)
        return initial / (1 + rate * iteration)
    else:  # EXPONENTIAL
        return initial * (floor / initial) ** progress


def radius(
    iteration: int,
    total: int,
    strategy: Union[DecayStrategy, str],
    radius0: float,
) -> float:
    """
    Neighbourhood radius at the given iteration.

    Starts at radius0 and reaches 1.0 at iteration total - 1.

    Raises:
        DecayError: if radius0 is not positive
    """
    return _decay(iteration, total, strategy, radius0, RADIUS_FLOOR, "radius")


def learning_rate(
    iteration: int,
    total: int,
    strategy: Union[DecayStrategy, str],
    learning_rate0: float,
) -> float:
    """
    Learning rate at the given iteration.

    Starts at learning_rate0 and reaches 0.01 at iteration total - 1.

    Raises:
        DecayError: if learning_rate0 is not positive
    """
    return _decay(
        iteration,
        total,
        strategy,
        learning_rate0,
        LEARNING_RATE_FLOOR,
        "learning rate",
    )
