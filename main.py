"""
Main execution script for the two-coin EM surface explorer.

This script reads configuration from a JSON file, synthesizes two-coin
experiments, evaluates the log-likelihood surface over (θ_A, θ_B), runs EM
from the configured start point, extracts contour lines and writes the
rendered surface as PNG or SVG.
"""

import argparse
import logging
import sys
import os
import time

# Add src directory to path to import coin_em package
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from coin_em import (
    ConfigError,
    load_config,
    validate_config,
    build_scene,
    get_renderer,
    log_likelihood,
    print_section_header,
    print_experiments,
    print_surface_summary,
    print_em_results,
    print_execution_time,
    print_plot_output,
)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Visualize the two-coin log-likelihood surface and the EM path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --config configs/config_default.json
  python main.py --config configs/config_svg.json --verbose
        """
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to JSON configuration file. Example configs are in configs/ directory."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every EM iteration"
    )

    # If no arguments provided, show help
    if len(sys.argv) == 1:
        parser.print_help()
        sys.exit(0)

    args = parser.parse_args()

    if args.config is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    try:
        validate_config(config)
    except ConfigError as e:
        print(f"Error: Invalid configuration: {e}")
        sys.exit(1)

    print(f"Configuration file: {args.config}")
    print(f"Parameters: θ_A={config['true_theta_a']}, θ_B={config['true_theta_b']}, "
          f"experiments={config['num_experiments']}, flips={config['flips_per_experiment']}, "
          f"seed={config['seed']}, resolution={config['resolution']}")

    total_start_time = time.time()
    scene = build_scene(config)

    print_section_header("GENERATED DATA")
    print_experiments(scene.experiments)

    print_section_header("LOG-LIKELIHOOD SURFACE")
    print_surface_summary(scene.grid.min_ll, scene.grid.max_ll, scene.grid.resolution, len(scene.levels))

    print_section_header("EM ALGORITHM")
    em_result = scene.em_result
    ll_start = log_likelihood(*em_result.start, scene.experiments)
    ll_final = log_likelihood(*em_result.final, scene.experiments)
    print_em_results(em_result, ll_start, ll_final, true_thetas=scene.true_thetas)

    renderer = get_renderer(config["renderer"])
    render_start_time = time.time()
    output_file = renderer.save(scene, config["output_path"])
    timings = dict(scene.timings)
    timings["render"] = time.time() - render_start_time
    timings["total"] = time.time() - total_start_time

    print_section_header("EXECUTION TIME")
    print_execution_time(timings)

    print_plot_output(output_file)


if __name__ == "__main__":
    main()
