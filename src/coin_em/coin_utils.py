"""
Common utilities for the two-coin mixture model.

This module provides the deterministic random stream, the synthetic experiment
generator and the mixture log-likelihood shared by the surface builder and the
EM solver.
"""

import numpy as np
from dataclasses import dataclass
from typing import Iterator, Literal, Sequence, Tuple, Union


# ============================================================
# Numerical Constants
# ============================================================

MIXING_WEIGHT = 0.5  # Fixed prior P(coin A); the model has no learned weight
LOG_PROB_PENALTY = -1000.0  # Substituted for log(0) per experiment

LCG_MULTIPLIER = 1103515245
LCG_INCREMENT = 12345
LCG_MASK = 0x7FFFFFFF


# ============================================================
# Deterministic Sequence Generator
# ============================================================

class SeededRandom:
    """
    Linear-congruential stream of reals in [0, 1].

    The state is a single integer updated as
    s <- (s * 1103515245 + 12345) & 0x7fffffff
    and each draw yields s / 0x7fffffff. Two generators created with the same
    seed produce identical sequences. Not suitable for cryptographic use.

    Parameters:
    -----------
    seed : int
        Initial state of the generator
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._state = self.seed

    def __call__(self) -> float:
        self._state = (self._state * LCG_MULTIPLIER + LCG_INCREMENT) & LCG_MASK
        return self._state / LCG_MASK

    def __iter__(self) -> Iterator[float]:
        while True:
            yield self()

    def reset(self) -> None:
        """Restart the stream from the seed."""
        self._state = self.seed


# ============================================================
# Experiments
# ============================================================

@dataclass(frozen=True)
class Experiment:
    """Summary of one run of coin flips drawn from a single hidden coin."""
    heads: int
    tails: int
    true_coin: Literal["A", "B"]

    @property
    def n_flips(self) -> int:
        return self.heads + self.tails


def synthesize_experiments(
    seed: int,
    theta_a: float,
    theta_b: float,
    num_experiments: int,
    flips_per_experiment: int,
) -> Tuple[Experiment, ...]:
    """
    Generate synthetic two-coin experiments from a seeded stream.

    For each experiment one draw picks the coin (< 0.5 selects coin A), then
    `flips_per_experiment` draws are compared against the chosen bias to
    count heads. Inputs are assumed to be validated by the caller.

    Parameters:
    -----------
    seed : int
        Seed of the deterministic stream
    theta_a, theta_b : float
        True head probabilities of coins A and B
    num_experiments : int
        Number of experiments to generate
    flips_per_experiment : int
        Number of flips in every experiment

    Returns:
    --------
    tuple of Experiment
        Experiments in generation order
    """
    rng = SeededRandom(seed)
    experiments = []
    for _ in range(num_experiments):
        use_coin_a = rng() < 0.5
        theta = theta_a if use_coin_a else theta_b
        heads = 0
        for _ in range(flips_per_experiment):
            if rng() < theta:
                heads += 1
        experiments.append(Experiment(
            heads=heads,
            tails=flips_per_experiment - heads,
            true_coin="A" if use_coin_a else "B",
        ))
    return tuple(experiments)


def experiments_to_arrays(experiments: Sequence[Experiment]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Convert experiments to (heads, tails) float arrays of shape (N,).
    """
    heads = np.array([exp.heads for exp in experiments], dtype=float)
    tails = np.array([exp.tails for exp in experiments], dtype=float)
    return heads, tails


# ============================================================
# Mixture Log-Likelihood
# ============================================================

def log_likelihood(
    theta_a: Union[float, np.ndarray],
    theta_b: Union[float, np.ndarray],
    experiments: Sequence[Experiment],
) -> Union[float, np.ndarray]:
    """
    Compute the log-likelihood of the experiments under the two-coin mixture.

    Each experiment contributes log(p) with
    p = π θ_A^h (1-θ_A)^t + (1-π) θ_B^h (1-θ_B)^t and π = 0.5.
    If p underflows to zero the experiment contributes LOG_PROB_PENALTY
    instead, so the result is always finite.

    Because π = 0.5, swapping θ_A and θ_B leaves the value unchanged.

    Parameters:
    -----------
    theta_a, theta_b : float or np.ndarray
        Head probabilities of the two components. Arrays are broadcast
        against each other and evaluated element-wise.
    experiments : sequence of Experiment
        Observed experiments

    Returns:
    --------
    float or np.ndarray
        Summed log-likelihood (float for scalar input)
    """
    theta_a = np.asarray(theta_a, dtype=float)
    theta_b = np.asarray(theta_b, dtype=float)
    ll = np.zeros(np.broadcast(theta_a, theta_b).shape)

    for exp in experiments:
        p_a = MIXING_WEIGHT * theta_a ** exp.heads * (1.0 - theta_a) ** exp.tails
        p_b = (1.0 - MIXING_WEIGHT) * theta_b ** exp.heads * (1.0 - theta_b) ** exp.tails
        p = p_a + p_b
        positive = p > 0
        ll = ll + np.where(positive, np.log(np.where(positive, p, 1.0)), LOG_PROB_PENALTY)

    if ll.ndim == 0:
        return float(ll)
    return ll
