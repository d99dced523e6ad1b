"""
Rendering of the log-likelihood surface, its contours and the EM path.

Two interchangeable strategies share one scene description:
1. RasterRenderer - per-pixel heatmap drawn with matplotlib, saved as PNG
2. SvgRenderer    - one rectangle per grid cell, emitted as SVG markup

Both draw the heatmap, the contour segments, a ring at the true parameters,
the EM path with its start and end markers, and a color-bar legend.
"""

import io
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np
import matplotlib
matplotlib.use('Agg')  # Set backend (no GUI required)
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection
from matplotlib.patches import Circle

from .coin_utils import Experiment, synthesize_experiments
from .colormap import colorize, colorize_hsl, color_bar_hsl, hsl_css, likelihood_colormap
from .contour import Segment, default_contour_levels, extract_contours
from .em_method import EMResult, run_em
from .surface import THETA_MIN, THETA_SPAN, LikelihoodGrid, build_surface

logger = logging.getLogger(__name__)

# ============================================================
# Drawing constants
# ============================================================

CONTOUR_COLOR = "rgba(0,0,0,0.6)"
CONTOUR_RGBA = (0.0, 0.0, 0.0, 0.6)
PATH_COLOR = "#ff4444"
END_COLOR = "#44ff44"
TRUE_MARKER_RADIUS = 8
START_MARKER_RADIUS = 5
END_MARKER_RADIUS = 6
COLOR_BAR_STEPS = 50
COLOR_BAR_HEIGHT = 16
COLOR_BAR_GAP = 12
DPI = 100


# ============================================================
# 1) Coordinate mapping
# ============================================================

def theta_to_plot(theta_a: float, theta_b: float, plot_size: float) -> Tuple[float, float]:
    """Map a bias pair to plot coordinates (θ_A to the right, θ_B upward)."""
    x = ((theta_a - THETA_MIN) / THETA_SPAN) * plot_size
    y = plot_size - ((theta_b - THETA_MIN) / THETA_SPAN) * plot_size
    return x, y


def plot_to_theta(x: float, y: float, plot_size: float) -> Tuple[float, float]:
    """Map a point in plot coordinates (e.g. a click) back to a bias pair."""
    theta_a = THETA_MIN + (x / plot_size) * THETA_SPAN
    theta_b = THETA_MIN + (1 - y / plot_size) * THETA_SPAN
    return theta_a, theta_b


def color_range(grid: LikelihoodGrid) -> Tuple[float, float]:
    """Colorizer range for a grid; a flat surface gets a unit-width range."""
    if grid.max_ll > grid.min_ll:
        return grid.min_ll, grid.max_ll
    return grid.min_ll, grid.min_ll + 1.0


# ============================================================
# 2) Scene
# ============================================================

@dataclass(frozen=True)
class SurfaceScene:
    """Everything a renderer draws, computed from one configuration."""
    experiments: Tuple[Experiment, ...]
    grid: LikelihoodGrid
    levels: List[float]
    contours: Dict[float, List[Segment]]
    em_result: EMResult
    true_thetas: Tuple[float, float]
    show_em_path: bool
    plot_size: float
    timings: Dict[str, float] = field(default_factory=dict)

    @property
    def draws_em_path(self) -> bool:
        return self.show_em_path and len(self.em_result.path) > 1


def build_scene(config: Dict) -> SurfaceScene:
    """
    Run synthesis, surface, EM and contour extraction for a validated config.

    Parameters:
    -----------
    config : dict
        Configuration as returned by validate_config

    Returns:
    --------
    SurfaceScene
        Computed scene with per-stage execution times in seconds
    """
    timings = {}

    start_time = time.time()
    experiments = synthesize_experiments(
        config["seed"],
        config["true_theta_a"],
        config["true_theta_b"],
        config["num_experiments"],
        config["flips_per_experiment"],
    )
    timings["synthesis"] = time.time() - start_time

    start_time = time.time()
    grid = build_surface(experiments, config["resolution"])
    timings["surface"] = time.time() - start_time

    start_time = time.time()
    em_result = run_em(experiments, (config["em_start"][0], config["em_start"][1]))
    timings["em"] = time.time() - start_time

    start_time = time.time()
    levels = default_contour_levels(grid.min_ll, grid.max_ll, config["num_contours"])
    contours = extract_contours(grid, levels, config["plot_size"])
    timings["contours"] = time.time() - start_time

    logger.info(
        f"Scene built: {len(experiments)} experiments, {grid.resolution + 1}x{grid.resolution + 1} grid, "
        f"{sum(len(s) for s in contours.values())} contour segments, "
        f"{em_result.n_iterations} EM iterations"
    )

    return SurfaceScene(
        experiments=experiments,
        grid=grid,
        levels=levels,
        contours=contours,
        em_result=em_result,
        true_thetas=(config["true_theta_a"], config["true_theta_b"]),
        show_em_path=config["show_em_path"],
        plot_size=config["plot_size"],
        timings=timings,
    )


# ============================================================
# 3) Rasterization
# ============================================================

def cell_colors(grid: LikelihoodGrid) -> np.ndarray:
    """RGB color of every grid cell, shape (resolution+1, resolution+1, 3)."""
    vmin, vmax = color_range(grid)
    n = grid.resolution + 1
    colors = np.empty((n, n, 3), dtype=np.uint8)
    for i in range(n):
        for j in range(n):
            colors[i, j] = colorize(float(grid.values[i, j]), vmin, vmax)
    return colors


def rasterize_surface(grid: LikelihoodGrid, plot_size: int) -> np.ndarray:
    """
    Paint the grid into an opaque RGBA image of plot_size x plot_size pixels.

    Pixel (px, py) shows cell i = floor(px / cell), j = floor((size-1-py) / cell)
    with cell = size / (resolution + 1), clamped to the last cell, so θ_B
    grows upward in the image.
    """
    size = int(plot_size)
    cell = size / (grid.resolution + 1)
    colors = cell_colors(grid)

    pixels = np.arange(size)
    i_index = np.minimum(np.floor(pixels / cell).astype(int), grid.resolution)
    j_index = np.minimum(np.floor((size - 1 - pixels) / cell).astype(int), grid.resolution)

    image = np.empty((size, size, 4), dtype=np.uint8)
    image[..., :3] = colors[i_index[np.newaxis, :], j_index[:, np.newaxis]]
    image[..., 3] = 255
    return image


# ============================================================
# 4) Renderers
# ============================================================

class SurfaceRenderer(ABC):
    """Strategy that turns a SurfaceScene into an image file's bytes."""

    name: str = ""
    extension: str = ""
    media_type: str = ""

    @abstractmethod
    def render(self, scene: SurfaceScene) -> bytes:
        """Render the scene to encoded file content."""

    def save(self, scene: SurfaceScene, output_path: str) -> str:
        """Write the rendered scene to output_path + extension and return the file name."""
        output_file = f"{output_path}{self.extension}"
        with open(output_file, "wb") as f:
            f.write(self.render(scene))
        logger.info(f"{self.name} plot written to {output_file}")
        return output_file


def _path_points(scene: SurfaceScene) -> List[Tuple[float, float]]:
    return [theta_to_plot(a, b, scene.plot_size) for a, b in scene.em_result.path]


class RasterRenderer(SurfaceRenderer):
    """PNG output through matplotlib."""

    name = "raster"
    extension = ".png"
    media_type = "image/png"

    def __init__(self, dpi: int = 120):
        self.dpi = dpi

    def render(self, scene: SurfaceScene) -> bytes:
        size = scene.plot_size
        image = rasterize_surface(scene.grid, int(size))

        fig, (ax, ax_bar) = plt.subplots(
            2, 1,
            figsize=(size / DPI + 1.0, (size + COLOR_BAR_HEIGHT + COLOR_BAR_GAP) / DPI + 1.2),
            gridspec_kw={"height_ratios": [size, COLOR_BAR_HEIGHT]},
        )

        # Heatmap in plot coordinates: y grows downward
        ax.imshow(image, extent=(0, size, size, 0), interpolation="nearest")

        segments = [
            [(seg.x1, seg.y1), (seg.x2, seg.y2)]
            for level_segments in scene.contours.values()
            for seg in level_segments
        ]
        if segments:
            ax.add_collection(LineCollection(segments, colors=[CONTOUR_RGBA], linewidths=1))

        true_x, true_y = theta_to_plot(*scene.true_thetas, size)
        ax.add_patch(Circle((true_x, true_y), TRUE_MARKER_RADIUS, fill=False, edgecolor="white", linewidth=2))

        if scene.draws_em_path:
            points = _path_points(scene)
            xs, ys = zip(*points)
            ax.plot(xs, ys, color=PATH_COLOR, linewidth=2)
            ax.add_patch(Circle(points[0], START_MARKER_RADIUS, color=PATH_COLOR, zorder=5))
            ax.add_patch(Circle(points[-1], END_MARKER_RADIUS, facecolor=END_COLOR,
                                edgecolor="white", linewidth=2, zorder=6))

        ticks = np.linspace(0, size, 5)
        tick_thetas = [THETA_MIN + k * THETA_SPAN / 4 for k in range(5)]
        ax.set_xlim(0, size)
        ax.set_ylim(size, 0)
        ax.set_xticks(ticks)
        ax.set_xticklabels([f"{t:.2f}" for t in tick_thetas])
        ax.set_yticks(ticks)
        ax.set_yticklabels([f"{t:.2f}" for t in reversed(tick_thetas)])
        ax.set_xlabel("θ_A", fontsize=11)
        ax.set_ylabel("θ_B", fontsize=11)
        ax.set_title("Two-Coin EM: Log-Likelihood Surface", fontsize=12)

        ax_bar.imshow(np.arange(COLOR_BAR_STEPS)[np.newaxis, :], cmap=likelihood_colormap(COLOR_BAR_STEPS),
                      aspect="auto", interpolation="nearest")
        ax_bar.set_yticks([])
        ax_bar.set_xticks([0, COLOR_BAR_STEPS - 1])
        ax_bar.set_xticklabels(["Low LL", "High LL"], fontsize=9)

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=self.dpi, bbox_inches="tight")
        plt.close(fig)
        return buf.getvalue()


class SvgRenderer(SurfaceRenderer):
    """SVG markup with one rectangle per grid cell."""

    name = "svg"
    extension = ".svg"
    media_type = "image/svg+xml"

    def render(self, scene: SurfaceScene) -> bytes:
        return self.render_markup(scene).encode("utf-8")

    def render_markup(self, scene: SurfaceScene) -> str:
        size = scene.plot_size
        grid = scene.grid
        n = grid.resolution + 1
        cell = size / n
        vmin, vmax = color_range(grid)
        height = size + COLOR_BAR_GAP + COLOR_BAR_HEIGHT + 14

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{size:g}" height="{height:g}" '
            f'viewBox="0 0 {size:g} {height:g}">'
        ]

        parts.append('<g shape-rendering="crispEdges">')
        for i in range(n):
            for j in range(n):
                fill = hsl_css(*colorize_hsl(float(grid.values[i, j]), vmin, vmax))
                parts.append(
                    f'<rect x="{i * cell:.3f}" y="{size - (j + 1) * cell:.3f}" '
                    f'width="{cell:.3f}" height="{cell:.3f}" fill="{fill}"/>'
                )
        parts.append('</g>')

        parts.append(f'<g stroke="{CONTOUR_COLOR}" stroke-width="1">')
        for level_segments in scene.contours.values():
            for seg in level_segments:
                parts.append(
                    f'<line x1="{seg.x1:.3f}" y1="{seg.y1:.3f}" x2="{seg.x2:.3f}" y2="{seg.y2:.3f}"/>'
                )
        parts.append('</g>')

        true_x, true_y = theta_to_plot(*scene.true_thetas, size)
        parts.append(
            f'<circle cx="{true_x:.3f}" cy="{true_y:.3f}" r="{TRUE_MARKER_RADIUS}" '
            f'fill="none" stroke="white" stroke-width="2"/>'
        )

        if scene.draws_em_path:
            points = _path_points(scene)
            d = " ".join(
                f"{'M' if k == 0 else 'L'} {x:.3f} {y:.3f}" for k, (x, y) in enumerate(points)
            )
            parts.append(f'<path d="{d}" stroke="{PATH_COLOR}" stroke-width="2" fill="none"/>')
            parts.append(
                f'<circle cx="{points[0][0]:.3f}" cy="{points[0][1]:.3f}" '
                f'r="{START_MARKER_RADIUS}" fill="{PATH_COLOR}"/>'
            )
            parts.append(
                f'<circle cx="{points[-1][0]:.3f}" cy="{points[-1][1]:.3f}" r="{END_MARKER_RADIUS}" '
                f'fill="{END_COLOR}" stroke="#ffffff" stroke-width="2"/>'
            )

        parts.append(self._color_bar(size))
        parts.append('</svg>')
        return "\n".join(parts)

    @staticmethod
    def _color_bar(size: float) -> str:
        label_width = 48
        bar_width = max(size - 2 * label_width, COLOR_BAR_STEPS)
        step = bar_width / COLOR_BAR_STEPS
        top = size + COLOR_BAR_GAP
        text_y = top + COLOR_BAR_HEIGHT - 4

        parts = ['<g font-size="10" font-family="sans-serif">']
        parts.append(f'<text x="0" y="{text_y:g}">Low LL</text>')
        for k, color in enumerate(color_bar_hsl(COLOR_BAR_STEPS)):
            parts.append(
                f'<rect x="{label_width + k * step:.3f}" y="{top:g}" width="{step:.3f}" '
                f'height="{COLOR_BAR_HEIGHT}" fill="{color}"/>'
            )
        parts.append(f'<text x="{label_width + bar_width + 4:.3f}" y="{text_y:g}">High LL</text>')
        parts.append('</g>')
        return "".join(parts)


RENDERERS: Dict[str, type] = {
    RasterRenderer.name: RasterRenderer,
    SvgRenderer.name: SvgRenderer,
}


def get_renderer(name: str) -> SurfaceRenderer:
    """Return a renderer instance for 'raster' or 'svg'."""
    try:
        return RENDERERS[name]()
    except KeyError:
        raise ValueError(f"Unknown renderer '{name}', expected one of {sorted(RENDERERS)}") from None
