"""Two-coin EM surface explorer.

This package synthesizes two-coin experiments, evaluates the mixture
log-likelihood over the (θ_A, θ_B) grid, runs EM from a chosen start point,
extracts contour lines with marching squares and renders the result.
"""

from .coin_utils import (
    Experiment,
    SeededRandom,
    synthesize_experiments,
    experiments_to_arrays,
    log_likelihood,
    MIXING_WEIGHT,
    LOG_PROB_PENALTY,
)
from .surface import (
    LikelihoodGrid,
    build_surface,
    theta_from_index,
    THETA_MIN,
    THETA_SPAN,
)
from .em_method import (
    EMResult,
    EMStatus,
    run_em,
    path_log_likelihoods,
    print_section_header,
    print_experiments,
    print_surface_summary,
    print_em_results,
    print_execution_time,
    print_plot_output,
    DEFAULT_MAX_ITER,
    DEFAULT_TOL,
)
from .contour import (
    Segment,
    CASE_TABLE,
    classify_cells,
    default_contour_levels,
    extract_contours,
)
from .colormap import (
    colorize,
    colorize_hsl,
    hsl_to_rgb,
    hsl_css,
    color_bar_hsl,
    likelihood_colormap,
)
from .config import (
    ConfigError,
    load_config,
    apply_defaults,
    validate_config,
    DEFAULT_TRUE_THETA_A,
    DEFAULT_TRUE_THETA_B,
    DEFAULT_NUM_EXPERIMENTS,
    DEFAULT_FLIPS_PER_EXPERIMENT,
    DEFAULT_SEED,
    DEFAULT_RESOLUTION,
    DEFAULT_EM_START,
    DEFAULT_PLOT_SIZE,
)
from .render import (
    SurfaceScene,
    SurfaceRenderer,
    RasterRenderer,
    SvgRenderer,
    build_scene,
    get_renderer,
    rasterize_surface,
    cell_colors,
    theta_to_plot,
    plot_to_theta,
)

__all__ = [
    "Experiment",
    "SeededRandom",
    "synthesize_experiments",
    "experiments_to_arrays",
    "log_likelihood",
    "MIXING_WEIGHT",
    "LOG_PROB_PENALTY",
    "LikelihoodGrid",
    "build_surface",
    "theta_from_index",
    "THETA_MIN",
    "THETA_SPAN",
    "EMResult",
    "EMStatus",
    "run_em",
    "path_log_likelihoods",
    "print_section_header",
    "print_experiments",
    "print_surface_summary",
    "print_em_results",
    "print_execution_time",
    "print_plot_output",
    "DEFAULT_MAX_ITER",
    "DEFAULT_TOL",
    "Segment",
    "CASE_TABLE",
    "classify_cells",
    "default_contour_levels",
    "extract_contours",
    "colorize",
    "colorize_hsl",
    "hsl_to_rgb",
    "hsl_css",
    "color_bar_hsl",
    "likelihood_colormap",
    "ConfigError",
    "load_config",
    "apply_defaults",
    "validate_config",
    "DEFAULT_TRUE_THETA_A",
    "DEFAULT_TRUE_THETA_B",
    "DEFAULT_NUM_EXPERIMENTS",
    "DEFAULT_FLIPS_PER_EXPERIMENT",
    "DEFAULT_SEED",
    "DEFAULT_RESOLUTION",
    "DEFAULT_EM_START",
    "DEFAULT_PLOT_SIZE",
    "SurfaceScene",
    "SurfaceRenderer",
    "RasterRenderer",
    "SvgRenderer",
    "build_scene",
    "get_renderer",
    "rasterize_surface",
    "cell_colors",
    "theta_to_plot",
    "plot_to_theta",
]
