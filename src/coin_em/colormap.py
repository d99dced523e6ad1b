"""
Scalar colorizer for the log-likelihood heatmap.

A value is normalized to t in [0, 1] against its range, stretched with
t^2.5 so that more of the palette is spent near the maximum, and mapped to
a hue running from blue (240°, low) to red (0°, high).
"""

import math
from typing import List, Tuple

import numpy as np
from matplotlib.colors import ListedColormap

COLOR_POWER = 2.5
HUE_LOW = 240.0
SAT_BASE, SAT_GAIN = 80.0, 20.0
LIGHT_BASE, LIGHT_GAIN = 20.0, 50.0


def _stretch(value: float, vmin: float, vmax: float) -> float:
    t = (value - vmin) / (vmax - vmin)
    if t < 0:
        raise ValueError(f"value {value!r} is below the range minimum {vmin!r}")
    return math.pow(t, COLOR_POWER)


def colorize_hsl(value: float, vmin: float, vmax: float) -> Tuple[float, float, float]:
    """
    Map a value in [vmin, vmax] to (hue°, saturation%, lightness%).

    t is not clamped: values above vmax extrapolate the hue past red into
    negative degrees, values below vmin raise ValueError.
    """
    t = _stretch(value, vmin, vmax)
    h = (1 - t) * HUE_LOW
    s = SAT_BASE + t * SAT_GAIN
    l = LIGHT_BASE + t * LIGHT_GAIN
    return h, s, l


def _css_number(x: float) -> str:
    x = float(x)
    if x.is_integer():
        return str(int(x))
    return repr(x)


def hsl_css(h: float, s: float, l: float) -> str:
    """
    Format an HSL triple as a CSS color string.

    Whole numbers print without a decimal point; other values keep full
    float precision.
    """
    return f"hsl({_css_number(h)}, {_css_number(s)}%, {_css_number(l)}%)"


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[int, int, int]:
    """
    Convert hue (degrees), saturation and lightness (percent) to 8-bit RGB.
    """
    s = s / 100
    l = l / 100
    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    h_norm = h / 360
    return (
        _round_half_up(_hue_to_rgb(p, q, h_norm + 1 / 3) * 255),
        _round_half_up(_hue_to_rgb(p, q, h_norm) * 255),
        _round_half_up(_hue_to_rgb(p, q, h_norm - 1 / 3) * 255),
    )


def colorize(value: float, vmin: float, vmax: float) -> Tuple[int, int, int]:
    """Map a value in [vmin, vmax] to an opaque 8-bit (r, g, b) triple."""
    return hsl_to_rgb(*colorize_hsl(value, vmin, vmax))


def color_bar_hsl(n_steps: int = 50) -> List[str]:
    """CSS colors of an n-step legend from low to high."""
    return [hsl_css(*colorize_hsl(k / (n_steps - 1), 0.0, 1.0)) for k in range(n_steps)]


def likelihood_colormap(n_steps: int = 256) -> ListedColormap:
    """Matplotlib colormap sampling the colorizer on [0, 1]."""
    colors = np.array([colorize(k / (n_steps - 1), 0.0, 1.0) for k in range(n_steps)]) / 255.0
    return ListedColormap(colors, name="likelihood")
