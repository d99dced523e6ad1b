"""
Marching-squares contour extraction on the log-likelihood grid.

Each unit cell of the grid is classified by which of its four corners lie at
or above the contour level, and the 4-bit case index selects which cell edges
the iso-line crosses. Crossing points are linearly interpolated along the
edges and returned as independent line segments in plot coordinates, with
θ_A growing to the right and θ_B growing upward.
"""

import numpy as np
from typing import Dict, List, NamedTuple, Sequence, Tuple, Union

from .surface import LikelihoodGrid

# ============================================================
# Constants
# ============================================================

DEFAULT_NUM_CONTOURS = 50
DEFAULT_LEVEL_EXPONENT = 0.6  # < 1 packs levels towards the maximum
INTERP_EPS = 1e-10

BOTTOM, TOP, LEFT, RIGHT = "bottom", "top", "left", "right"

# Corner bits: 1 = (i, j), 2 = (i+1, j), 4 = (i, j+1), 8 = (i+1, j+1).
# Saddle cases 6 and 9 use a fixed pairing without center disambiguation.
CASE_TABLE: Dict[int, Tuple[Tuple[str, str], ...]] = {
    1: ((BOTTOM, LEFT),),
    2: ((RIGHT, BOTTOM),),
    3: ((RIGHT, LEFT),),
    4: ((LEFT, TOP),),
    5: ((BOTTOM, TOP),),
    6: ((LEFT, BOTTOM), (RIGHT, TOP)),
    7: ((RIGHT, TOP),),
    8: ((TOP, RIGHT),),
    9: ((TOP, BOTTOM), (LEFT, RIGHT)),
    10: ((TOP, BOTTOM),),
    11: ((TOP, LEFT),),
    12: ((LEFT, RIGHT),),
    13: ((BOTTOM, RIGHT),),
    14: ((BOTTOM, LEFT),),
}

Point = Tuple[float, float]


class Segment(NamedTuple):
    """Line segment in plot coordinates."""
    x1: float
    y1: float
    x2: float
    y2: float


def default_contour_levels(
    min_ll: float,
    max_ll: float,
    num_levels: int = DEFAULT_NUM_CONTOURS,
    exponent: float = DEFAULT_LEVEL_EXPONENT,
) -> List[float]:
    """
    Contour levels level_k = min + ((k+1)/(n+1))^exponent * (max - min).

    With exponent < 1 the levels concentrate near the maximum, which reveals
    the structure around the optima.
    """
    span = max_ll - min_ll
    return [
        min_ll + ((k + 1) / (num_levels + 1)) ** exponent * span
        for k in range(num_levels)
    ]


def classify_cells(values: np.ndarray, level: float) -> np.ndarray:
    """
    Compute the marching-squares case index of every cell.

    Returns an int array of shape (rows-1, cols-1) where entry (i, j) is the
    case of the cell with lower-left corner (i, j).
    """
    above = (values >= level).astype(np.int8)
    return (
        above[:-1, :-1]
        | (above[1:, :-1] << 1)
        | (above[:-1, 1:] << 2)
        | (above[1:, 1:] << 3)
    )


def _lerp(va: float, vb: float, pa: Point, pb: Point, level: float) -> Point:
    if abs(vb - va) < INTERP_EPS:
        return ((pa[0] + pb[0]) / 2, (pa[1] + pb[1]) / 2)
    t = (level - va) / (vb - va)
    return (pa[0] + t * (pb[0] - pa[0]), pa[1] + t * (pb[1] - pa[1]))


def _cell_segments(
    values: np.ndarray,
    i: int,
    j: int,
    case: int,
    level: float,
    resolution: int,
    plot_size: float,
) -> List[Segment]:
    v00 = float(values[i, j])
    v10 = float(values[i + 1, j])
    v01 = float(values[i, j + 1])
    v11 = float(values[i + 1, j + 1])

    x0 = (i / resolution) * plot_size
    x1 = ((i + 1) / resolution) * plot_size
    y0 = plot_size - ((j + 1) / resolution) * plot_size  # top edge
    y1 = plot_size - (j / resolution) * plot_size  # bottom edge

    edges = {
        BOTTOM: _lerp(v00, v10, (x0, y1), (x1, y1), level),
        TOP: _lerp(v01, v11, (x0, y0), (x1, y0), level),
        LEFT: _lerp(v00, v01, (x0, y1), (x0, y0), level),
        RIGHT: _lerp(v10, v11, (x1, y1), (x1, y0), level),
    }
    return [
        Segment(edges[start][0], edges[start][1], edges[end][0], edges[end][1])
        for start, end in CASE_TABLE[case]
    ]


def extract_contours(
    grid: Union[LikelihoodGrid, np.ndarray],
    levels: Sequence[float],
    plot_size: float,
) -> Dict[float, List[Segment]]:
    """
    Extract iso-lines of the grid at each level with marching squares.

    Parameters:
    -----------
    grid : LikelihoodGrid or np.ndarray
        Surface to contour; arrays must be square with at least 2 rows and
        are indexed [i, j] with i along θ_A and j along θ_B
    levels : sequence of float
        Contour levels
    plot_size : float
        Side length of the square plot area in output units

    Returns:
    --------
    dict
        Level -> list of Segment, in level order. Segments within a level
        follow cell order (i, then j) and are not joined into polylines.
    """
    values = np.asarray(getattr(grid, "values", grid), dtype=float)
    if values.ndim != 2 or values.shape[0] != values.shape[1] or values.shape[0] < 2:
        raise ValueError(f"grid must be a square 2D array with at least 2 rows, got shape {values.shape}")
    resolution = values.shape[0] - 1

    contours: Dict[float, List[Segment]] = {}
    for level in levels:
        level = float(level)
        cases = classify_cells(values, level)
        boundary_i, boundary_j = np.nonzero((cases != 0) & (cases != 15))

        segments: List[Segment] = []
        for i, j in zip(boundary_i.tolist(), boundary_j.tolist()):
            segments.extend(
                _cell_segments(values, i, j, int(cases[i, j]), level, resolution, plot_size)
            )
        contours[level] = segments
    return contours
