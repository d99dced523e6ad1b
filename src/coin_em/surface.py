"""
Log-likelihood surface over the (θ_A, θ_B) grid.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Sequence

from .coin_utils import Experiment, log_likelihood

logger = logging.getLogger(__name__)

THETA_MIN = 0.01
THETA_SPAN = 0.98


@dataclass(frozen=True)
class LikelihoodGrid:
    """
    Log-likelihood values on a square grid.

    values[i, j] holds the log-likelihood at θ_A = theta_from_index(i),
    θ_B = theta_from_index(j).
    """
    values: np.ndarray
    min_ll: float
    max_ll: float
    resolution: int

    @property
    def thetas(self) -> np.ndarray:
        """Axis coordinates shared by both parameters, shape (resolution+1,)."""
        return theta_from_index(np.arange(self.resolution + 1), self.resolution)


def theta_from_index(index, resolution: int):
    """Map grid index k in 0..resolution to θ = 0.01 + (k/resolution)*0.98."""
    return THETA_MIN + (index / resolution) * THETA_SPAN


def build_surface(experiments: Sequence[Experiment], resolution: int) -> LikelihoodGrid:
    """
    Evaluate the mixture log-likelihood on a (resolution+1)^2 grid.

    Parameters:
    -----------
    experiments : sequence of Experiment
        Observed experiments
    resolution : int
        Number of grid steps per axis (must be positive)

    Returns:
    --------
    LikelihoodGrid
        Read-only grid of values with its minimum and maximum
    """
    thetas = theta_from_index(np.arange(resolution + 1), resolution)
    theta_a, theta_b = np.meshgrid(thetas, thetas, indexing="ij")

    values = log_likelihood(theta_a, theta_b, experiments)
    values.setflags(write=False)

    min_ll = float(values.min())
    max_ll = float(values.max())
    logger.debug(f"Surface built: resolution={resolution}, min={min_ll:.6f}, max={max_ll:.6f}")

    return LikelihoodGrid(values=values, min_ll=min_ll, max_ll=max_ll, resolution=resolution)
