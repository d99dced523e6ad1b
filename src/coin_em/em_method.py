"""
EM Method - Expectation-Maximization for the Two-Coin Problem

This module implements the EM fixed-point iteration that estimates the head
probabilities (θ_A, θ_B) of two coins from experiments whose coin of origin
is hidden, with the mixing weight fixed at one half.

Main components:
1. EM iteration with path tracking and convergence detection
2. Console report helpers used by the command-line entry point
"""

import logging
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .coin_utils import Experiment, experiments_to_arrays, log_likelihood

logger = logging.getLogger(__name__)

# ============================================================
# Constants
# ============================================================

DEFAULT_MAX_ITER = 50
DEFAULT_TOL = 1e-6
FALLBACK_RESPONSIBILITY = 0.5

# Output formatting
SECTION_WIDTH = 70
COL_LABEL_WIDTH = 22
COL_NUM_WIDTH = 14


# ============================================================
# 1) EM iteration
# ============================================================

class EMStatus(str, Enum):
    """Terminal state of an EM run."""
    CONVERGED = "converged"
    MAX_ITER_REACHED = "max_iter_reached"


@dataclass(frozen=True)
class EMResult:
    """
    Trajectory of an EM run.

    path[0] is the starting point and every following entry is the result of
    one EM update.
    """
    path: Tuple[Tuple[float, float], ...]
    status: EMStatus

    @property
    def n_iterations(self) -> int:
        return len(self.path) - 1

    @property
    def start(self) -> Tuple[float, float]:
        return self.path[0]

    @property
    def final(self) -> Tuple[float, float]:
        return self.path[-1]

    @property
    def converged(self) -> bool:
        return self.status is EMStatus.CONVERGED


def _e_step(theta_a: float, theta_b: float, heads: np.ndarray, tails: np.ndarray) -> np.ndarray:
    """
    Compute the responsibility of coin A for each experiment.

    The mixing weight is equal for both coins and cancels in the ratio, so
    only the component likelihoods are used. Experiments to which both coins
    assign zero likelihood are split evenly.
    """
    p_a = theta_a ** heads * (1.0 - theta_a) ** tails
    p_b = theta_b ** heads * (1.0 - theta_b) ** tails
    total = p_a + p_b
    positive = total > 0
    return np.where(positive, p_a / np.where(positive, total, 1.0), FALLBACK_RESPONSIBILITY)


def _m_step(
    w_a: np.ndarray,
    heads: np.ndarray,
    n_flips: np.ndarray,
    theta_a: float,
    theta_b: float,
) -> Tuple[float, float]:
    """
    Re-estimate both biases from responsibility-weighted counts.

    A parameter whose weighted denominator is zero is left unchanged.
    """
    w_b = 1.0 - w_a
    num_a = float(np.sum(w_a * heads))
    denom_a = float(np.sum(w_a * n_flips))
    num_b = float(np.sum(w_b * heads))
    denom_b = float(np.sum(w_b * n_flips))

    new_theta_a = num_a / denom_a if denom_a > 0 else theta_a
    new_theta_b = num_b / denom_b if denom_b > 0 else theta_b
    return new_theta_a, new_theta_b


def run_em(
    experiments: Sequence[Experiment],
    start: Tuple[float, float],
    max_iter: int = DEFAULT_MAX_ITER,
    tol: float = DEFAULT_TOL,
) -> EMResult:
    """
    Run EM from a starting bias pair and record every visited point.

    Iteration stops when both parameters move by less than `tol` in one
    update (CONVERGED) or after `max_iter` updates (MAX_ITER_REACHED). The
    returned path therefore holds between 2 and max_iter + 1 points, and the
    log-likelihood along it is non-decreasing.

    Parameters:
    -----------
    experiments : sequence of Experiment
        Observed experiments
    start : tuple of float
        Initial (θ_A, θ_B), each in (0, 1)
    max_iter : int
        Maximum number of EM updates (default: 50)
    tol : float
        Per-axis convergence tolerance (default: 1e-6)

    Returns:
    --------
    EMResult
        Visited points and terminal status
    """
    heads, tails = experiments_to_arrays(experiments)
    n_flips = heads + tails

    theta_a, theta_b = float(start[0]), float(start[1])
    path = [(theta_a, theta_b)]
    status = EMStatus.MAX_ITER_REACHED

    for iteration in range(max_iter):
        w_a = _e_step(theta_a, theta_b, heads, tails)
        new_theta_a, new_theta_b = _m_step(w_a, heads, n_flips, theta_a, theta_b)
        path.append((new_theta_a, new_theta_b))

        delta_a = abs(new_theta_a - theta_a)
        delta_b = abs(new_theta_b - theta_b)
        logger.debug(
            f"EM iter {iteration + 1}: θ_A={new_theta_a:.6f}, θ_B={new_theta_b:.6f}, "
            f"Δ=({delta_a:.2e}, {delta_b:.2e})"
        )

        theta_a, theta_b = new_theta_a, new_theta_b
        if delta_a < tol and delta_b < tol:
            status = EMStatus.CONVERGED
            break

    logger.info(
        f"EM finished ({status.value}) after {len(path) - 1} iterations: "
        f"θ_A={theta_a:.6f}, θ_B={theta_b:.6f}"
    )
    return EMResult(path=tuple(path), status=status)


def path_log_likelihoods(result: EMResult, experiments: Sequence[Experiment]) -> np.ndarray:
    """Log-likelihood of the experiments at every point of an EM path."""
    return np.array([log_likelihood(a, b, experiments) for a, b in result.path])


# ============================================================
# 2) Output formatting functions
# ============================================================

def print_section_header(title: str, width: int = SECTION_WIDTH) -> None:
    """Print a section header."""
    print("\n" + "="*width)
    print(title)
    print("="*width)


def print_experiments(experiments: Sequence[Experiment]) -> None:
    """Print one line per generated experiment."""
    for k, exp in enumerate(experiments, start=1):
        print(f"Exp {k}: {exp.heads}H/{exp.tails}T (was coin {exp.true_coin})")


def print_surface_summary(min_ll: float, max_ll: float, resolution: int, n_levels: int) -> None:
    """Print grid size, log-likelihood range and contour count."""
    print(f"{'Grid':<{COL_LABEL_WIDTH}} {resolution + 1} x {resolution + 1}")
    print(f"{'Min log-likelihood':<{COL_LABEL_WIDTH}} {min_ll:>{COL_NUM_WIDTH}.6f}")
    print(f"{'Max log-likelihood':<{COL_LABEL_WIDTH}} {max_ll:>{COL_NUM_WIDTH}.6f}")
    print(f"{'Contour levels':<{COL_LABEL_WIDTH}} {n_levels}")


def print_em_results(result: EMResult, ll_start: float, ll_final: float,
                     true_thetas: Optional[Tuple[float, float]] = None,
                     max_iter: int = DEFAULT_MAX_ITER) -> None:
    """Print start/end points, iteration count and convergence state."""
    a0, b0 = result.start
    a1, b1 = result.final
    print(f"Start: ({a0:.2f}, {b0:.2f})    log-likelihood: {ll_start:.6f}")
    print(f"End:   ({a1:.3f}, {b1:.3f})    log-likelihood: {ll_final:.6f}")
    print(f"Iterations: {result.n_iterations} / {max_iter}")
    print(f"Convergence: {'Yes' if result.converged else 'No (max iterations reached)'}")
    if true_thetas is not None:
        print(f"True: ({true_thetas[0]:.2f}, {true_thetas[1]:.2f})")


def print_execution_time(timings: Dict[str, float]) -> None:
    """Print per-stage execution times in seconds."""
    for name, seconds in timings.items():
        print(f"{name + ':':<{COL_LABEL_WIDTH}} {seconds:>10.6f} seconds")


def print_plot_output(output_file: str) -> None:
    """Print plot output information."""
    print(f"\nPlot saved: {output_file}")
    print("="*SECTION_WIDTH)
