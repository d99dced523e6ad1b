"""
Configuration loading and validation.

Configurations are flat JSON objects. Missing keys fall back to the DEFAULT_*
values below; `validate_config` rejects out-of-range values before they reach
the numeric kernel.
"""

import json
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# ============================================================
# Default values
# ============================================================

DEFAULT_TRUE_THETA_A = 0.3
DEFAULT_TRUE_THETA_B = 0.7
DEFAULT_NUM_EXPERIMENTS = 5
DEFAULT_FLIPS_PER_EXPERIMENT = 10
DEFAULT_SEED = 42
DEFAULT_RESOLUTION = 100
DEFAULT_SHOW_EM_PATH = True
DEFAULT_EM_START = [0.2, 0.8]
DEFAULT_PLOT_SIZE = 400
DEFAULT_NUM_CONTOURS = 50
DEFAULT_RENDERER = "raster"
DEFAULT_OUTPUT_PATH = "em_surface"

RENDERERS = ("raster", "svg")


class ConfigError(ValueError):
    """Raised when a configuration value is outside its valid range."""
    pass


def load_config(config_path: str) -> Dict:
    """
    Load configuration from JSON file.

    Parameters:
    -----------
    config_path : str
        Path to JSON configuration file

    Returns:
    --------
    dict
        Configuration dictionary with default values applied
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        print(f"Error: Configuration file '{config_path}' not found.")
        print("Using default parameters.")
        config = {}
    except json.JSONDecodeError as e:
        print(f"Error: Failed to parse JSON file: {e}")
        raise

    return apply_defaults(config)


def apply_defaults(config: Optional[Dict] = None) -> Dict:
    """Fill every known key from `config` or its default."""
    config = config or {}
    return {
        "true_theta_a": config.get("true_theta_a", DEFAULT_TRUE_THETA_A),
        "true_theta_b": config.get("true_theta_b", DEFAULT_TRUE_THETA_B),
        "num_experiments": config.get("num_experiments", DEFAULT_NUM_EXPERIMENTS),
        "flips_per_experiment": config.get("flips_per_experiment", DEFAULT_FLIPS_PER_EXPERIMENT),
        "seed": config.get("seed", DEFAULT_SEED),
        "resolution": config.get("resolution", DEFAULT_RESOLUTION),
        "show_em_path": config.get("show_em_path", DEFAULT_SHOW_EM_PATH),
        "em_start": config.get("em_start", list(DEFAULT_EM_START)),
        "plot_size": config.get("plot_size", DEFAULT_PLOT_SIZE),
        "num_contours": config.get("num_contours", DEFAULT_NUM_CONTOURS),
        "renderer": config.get("renderer", DEFAULT_RENDERER),
        "output_path": config.get("output_path", DEFAULT_OUTPUT_PATH),
        "_raw_config": config,
    }


def _check_probability(name: str, value) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not 0.0 < value < 1.0:
        raise ConfigError(f"{name} must be in the open interval (0, 1), got {value!r}")


def _check_positive_int(name: str, value) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")


def validate_config(config: Dict) -> Dict:
    """
    Check that a defaults-applied configuration is within range.

    Raises:
    ------
    ConfigError
        If a count is not a positive integer, a probability lies outside
        (0, 1), the renderer is unknown, show_em_path is not a boolean,
        or output_path is not a non-empty string

    Returns:
    --------
    dict
        The same configuration, for chaining
    """
    _check_probability("true_theta_a", config["true_theta_a"])
    _check_probability("true_theta_b", config["true_theta_b"])
    _check_positive_int("num_experiments", config["num_experiments"])
    _check_positive_int("flips_per_experiment", config["flips_per_experiment"])
    _check_positive_int("resolution", config["resolution"])
    _check_positive_int("num_contours", config["num_contours"])

    if not isinstance(config["seed"], int) or isinstance(config["seed"], bool):
        raise ConfigError(f"seed must be an integer, got {config['seed']!r}")

    em_start = config["em_start"]
    if not isinstance(em_start, (list, tuple)) or len(em_start) != 2:
        raise ConfigError(f"em_start must be [theta_a, theta_b], got {em_start!r}")
    _check_probability("em_start[0]", em_start[0])
    _check_probability("em_start[1]", em_start[1])

    plot_size = config["plot_size"]
    if not isinstance(plot_size, (int, float)) or isinstance(plot_size, bool) or plot_size <= 0:
        raise ConfigError(f"plot_size must be positive, got {plot_size!r}")

    if config["renderer"] not in RENDERERS:
        raise ConfigError(f"renderer must be one of {RENDERERS}, got {config['renderer']!r}")

    if not isinstance(config["show_em_path"], bool):
        raise ConfigError(f"show_em_path must be true or false, got {config['show_em_path']!r}")

    if not isinstance(config["output_path"], str) or not config["output_path"]:
        raise ConfigError(f"output_path must be a non-empty string, got {config['output_path']!r}")

    logger.debug(f"Configuration validated: {', '.join(f'{k}={v}' for k, v in config.items() if k != '_raw_config')}")
    return config
