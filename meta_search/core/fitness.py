"""
Fitness Tracker - incremental accuracy statistics for archived designs.

Each observation updates an exact running mean. The confidence interval is
the normal approximation of a binomial proportion:

    stderr = sqrt(mean * (1 - mean) / n)
    bounds = mean ∓ z * stderr,  clamped to [0, 1]

Retirement: once a design has at least `retire_min_evaluations` observations
and a mean strictly below `retire_below_mean`, it should be disabled.
"""

from typing import Optional, Tuple
import logging
import math

import numpy as np

from .design import Fitness
from ..config import FitnessPolicy

logger = logging.getLogger(__name__)


def confidence_interval(mean: float, count: int, z: float = 1.96) -> Tuple[float, float]:
    """Clamped normal-approximation interval around `mean` after `count` observations."""
    if count <= 0:
        return 0.0, 0.0

    variance = mean * (1.0 - mean) / count
    stderr = math.sqrt(max(0.0, variance))
    low, high = np.clip([mean - z * stderr, mean + z * stderr], 0.0, 1.0)
    return float(low), float(high)


class FitnessTracker:
    """
    Pure update rules; the archive owns the state.

    USAGE:
        tracker = FitnessTracker()
        design.fitness = tracker.observe(design.fitness, 0.72)
        if tracker.should_retire(design.fitness):
            design.enabled = False
    """

    def __init__(self, policy: Optional[FitnessPolicy] = None):
        self.policy = policy or FitnessPolicy()

    def observe(self, fitness: Fitness, accuracy: float) -> Fitness:
        """
        Fold one observed accuracy into the statistics.

        Raises:
            ValueError: accuracy is NaN
        """
        accuracy = float(accuracy)
        if math.isnan(accuracy):
            raise ValueError("Observed accuracy is NaN")
        if not 0.0 <= accuracy <= 1.0:
            logger.warning(f"Accuracy {accuracy} outside [0, 1], clipping")
            accuracy = float(np.clip(accuracy, 0.0, 1.0))

        new_count = fitness.count + 1
        new_mean = (fitness.mean * fitness.count + accuracy) / new_count
        low, high = confidence_interval(new_mean, new_count, self.policy.z_score)

        return Fitness(mean=new_mean, lower=low, upper=high, count=new_count)

    def should_retire(self, fitness: Fitness) -> bool:
        return (
            fitness.count >= self.policy.retire_min_evaluations
            and fitness.mean < self.policy.retire_below_mean
        )
