# fractal_terrain/color_maps.py

"""
================================================================================
SHARED COLOR MAPPING UTILITIES
================================================================================
This module contains the normalization and color mapping functions used to
turn raw buffers (fractal heights, Voronoi values) into displayable data.

It is designed to be a pure, stateless utility with no file or display
dependencies, so both the core and the offline bake script can use it.
================================================================================
"""
import logging

import numpy as np

from . import config as DEFAULTS
from .grid import GridBuffer

logger = logging.getLogger(__name__)

# --- Default Color Mappings ---
# Colors of the vertical gradient palette, keyed like DEFAULTS.PALETTE_LEVELS.
COLOR_MAP_PALETTE = {
    "floor": (0, 0, 60),            # Bottom of the palette (normalized height 0)
    "deep_water": (10, 30, 110),
    "shallow_water": (26, 102, 255),
    "sand": (240, 230, 140),
    "grass": (34, 139, 34),
    "rock": (112, 128, 144),
    "snow": (255, 255, 255)
}

PALETTE_STEPS = 256 # The number of entries of the palette LUT


def _as_array(values) -> np.ndarray:
    if isinstance(values, GridBuffer):
        return values.values
    return np.asarray(values, dtype=np.float64)


def normalize_to_grayscale(values) -> np.ndarray:
    """
    Maps a buffer to [0, 1] with (v - min) / (max - min).

    Accepts a GridBuffer or any array and returns a new float64 array of the
    same 2D shape. A buffer with no range (max == min) maps every cell to
    DEFAULTS.DEGENERATE_NORMALIZED_VALUE instead of dividing by zero.
    """
    array = _as_array(values)
    low = float(array.min())
    high = float(array.max())
    if high == low:
        logger.warning(f"Buffer has no range (all cells = {low}); using constant {DEFAULTS.DEGENERATE_NORMALIZED_VALUE}.")
        return np.full(array.shape, DEFAULTS.DEGENERATE_NORMALIZED_VALUE, dtype=np.float64)
    return (array - low) / (high - low)


# --- Color Lookup Table (LUT) Generation ---
def create_palette_lut() -> np.ndarray:
    """Creates a PALETTE_STEPS-entry RGB LUT for the vertical height gradient."""
    levels = DEFAULTS.PALETTE_LEVELS
    stops = [0.0] + list(levels.values())
    colors = np.array([COLOR_MAP_PALETTE["floor"]] + [COLOR_MAP_PALETTE[name] for name in levels], dtype=np.float64)

    t = np.linspace(0.0, 1.0, PALETTE_STEPS)
    lut = np.stack([np.interp(t, stops, colors[:, channel]) for channel in range(3)], axis=-1)
    return np.round(lut).astype(np.uint8)


def get_grayscale_array(normalized_values: np.ndarray) -> np.ndarray:
    """Converts normalized [0, 1] data into a (rows, columns) uint8 array."""
    return (np.clip(normalized_values, 0.0, 1.0) * 255).astype(np.uint8)


def get_palette_color_array(normalized_values: np.ndarray, palette_lut: np.ndarray = None) -> np.ndarray:
    """
    Converts normalized [0, 1] heights into a (rows, columns, 3) RGB array by
    sampling the palette the same way the mesh's palette UV does.
    """
    if palette_lut is None:
        palette_lut = create_palette_lut()
    indices = (np.clip(normalized_values, 0.0, 1.0) * (len(palette_lut) - 1)).astype(np.intp)
    return palette_lut[indices]
