# fractal_terrain/voronoi.py

"""
================================================================================
MULTI-ORDER VORONOI DIAGRAMS
================================================================================
This module builds a scalar field from the distances to the 1st, 2nd and 3rd
nearest feature points, optionally distorted by a random backward warp.

    value = c1 * d1 + c2 * d2 [+ c3 * d3]

where d1 <= d2 <= d3 are squared Euclidean distances.

Data Contract:
---------------
- Inputs:
    - VoronoiConfig: feature count, grid size, coefficients, perturbation and
      zoning parameters.
    - seed: int. Feature placement and perturbation share one random stream.
- Outputs:
    - A GridBuffer of raw (un-normalized) values. Use
      color_maps.normalize_to_grayscale() for display.
- Side Effects: None.
- Invariants: Given the same config and seed, the output is deterministic.
================================================================================
"""

from dataclasses import dataclass

import numpy as np
from numba import njit
from scipy.ndimage import map_coordinates

from . import config as DEFAULTS
from .errors import require
from .grid import GridBuffer, prepare_buffer
from .rng import make_rng


@dataclass
class VoronoiConfig:
    """Parameters of a Voronoi diagram."""

    feature_count: int = DEFAULTS.DEFAULT_FEATURE_COUNT
    width: int = DEFAULTS.DEFAULT_VORONOI_WIDTH
    height: int = DEFAULTS.DEFAULT_VORONOI_HEIGHT
    c1: float = DEFAULTS.DEFAULT_VORONOI_C1
    c2: float = DEFAULTS.DEFAULT_VORONOI_C2
    c3: float = DEFAULTS.DEFAULT_VORONOI_C3
    use_third_coefficient: bool = DEFAULTS.DEFAULT_USE_THIRD_COEFFICIENT
    perturbation: float = DEFAULTS.DEFAULT_PERTURBATION
    zone_count: int = DEFAULTS.DEFAULT_ZONE_COUNT

    def validate(self):
        require(int(self.feature_count) == self.feature_count and self.feature_count >= 1,
                f"Feature count must be a positive integer, got {self.feature_count}.")
        require(int(self.width) == self.width and int(self.height) == self.height,
                f"Grid size must be integers, got {self.width}x{self.height}.")
        require(self.width >= 1 and self.height >= 1,
                f"Grid size must be at least 1x1, got {self.width}x{self.height}.")
        require(0.0 <= self.perturbation <= 1.0,
                f"Perturbation must be in [0, 1], got {self.perturbation}.")
        require(int(self.zone_count) == self.zone_count and self.zone_count >= 0,
                f"Zone count must be a non-negative integer, got {self.zone_count}.")


def place_features(config: VoronoiConfig, rng: np.random.Generator) -> np.ndarray:
    """
    Places the feature points. Returns a (feature_count, 2) array of (x, y).

    Without zoning, features are spread over [0, width-1) x [0, height-1).
    With N x N zones, feature i lands in zone i mod N^2, uniformly inside it.
    """
    count = int(config.feature_count)
    # One (x, y) pair per feature, drawn x first.
    unit = rng.random((count, 2))

    if config.zone_count < 2:
        return unit * np.array([config.width - 1, config.height - 1], dtype=np.float64)

    zones = int(config.zone_count)
    zone_w = config.width / zones
    zone_h = config.height / zones
    zone_ids = np.arange(count) % (zones * zones)
    origin_x = (zone_ids % zones) * zone_w
    origin_y = (zone_ids // zones) * zone_h
    return np.column_stack((origin_x + unit[:, 0] * zone_w, origin_y + unit[:, 1] * zone_h))


@njit
def nearest_distances(features, width, height, use_third):
    """
    Returns a (height, width, 3) array of the 1st, 2nd and 3rd smallest squared
    distances from every cell to the features.

    A single linear scan keeps the running order; ties go to the feature seen
    first. Orders that cannot be filled (fewer features than slots) repeat the
    last one found. Without `use_third` the third slot mirrors the second.
    """
    out = np.empty((height, width, 3))
    count = features.shape[0]
    for y in range(height):
        for x in range(width):
            d1 = np.inf
            d2 = np.inf
            d3 = np.inf
            for i in range(count):
                dx = features[i, 0] - x
                dy = features[i, 1] - y
                dist = dx * dx + dy * dy
                if dist < d1:
                    d3 = d2
                    d2 = d1
                    d1 = dist
                elif dist < d2:
                    d3 = d2
                    d2 = dist
                elif use_third and dist < d3:
                    d3 = dist
            if count < 2:
                d2 = d1
            if count < 3 or not use_third:
                d3 = d2
            out[y, x, 0] = d1
            out[y, x, 1] = d2
            out[y, x, 2] = d3
    return out


def perturb(values: np.ndarray, perturbation: float, rng: np.random.Generator) -> np.ndarray:
    """
    Backward-warps a (height, width) field: every output cell copies the input
    cell at a random offset of up to perturbation * size pixels per axis,
    truncated to an integer and clamped to the grid.
    """
    height, width = values.shape
    max_dx = perturbation * width
    max_dy = perturbation * height

    # Row-major, x then y per cell.
    offsets = rng.uniform(-1.0, 1.0, (height, width, 2))
    y_idx, x_idx = np.mgrid[0:height, 0:width]
    src_x = np.trunc(x_idx + offsets[..., 0] * max_dx)
    src_y = np.trunc(y_idx + offsets[..., 1] * max_dy)

    # Integral coordinates with order=0 make this a plain lookup; 'nearest'
    # clamps anything outside the grid to the border.
    coords = np.array([src_y.ravel(), src_x.ravel()])
    return map_coordinates(values, coords, order=0, mode='nearest').reshape(height, width)


def combine(distances: np.ndarray, config: VoronoiConfig) -> np.ndarray:
    """Weighted sum of the nearest distances."""
    values = config.c1 * distances[..., 0] + config.c2 * distances[..., 1]
    if config.use_third_coefficient:
        values = values + config.c3 * distances[..., 2]
    return values


def generate(config: VoronoiConfig, seed: int, out: GridBuffer = None) -> GridBuffer:
    """
    Generates a Voronoi diagram.

    Args:
        config (VoronoiConfig): Diagram parameters.
        seed (int): Seed of the random stream.
        out (GridBuffer, optional): Caller-owned buffer to fill.

    Returns:
        GridBuffer: Raw diagram values.
    """
    config.validate()
    rng = make_rng(seed)
    buffer = prepare_buffer(out, int(config.width), int(config.height))

    features = place_features(config, rng)
    distances = nearest_distances(features, buffer.width, buffer.height, bool(config.use_third_coefficient))
    values = combine(distances, config)

    if config.perturbation > 0:
        values = perturb(values, config.perturbation, rng)

    buffer.values[:, :] = values
    return buffer
