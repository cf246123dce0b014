# fractal_terrain/diamond_square.py

"""
================================================================================
DIAMOND-SQUARE FRACTAL SURFACE
================================================================================
This module fills a square GridBuffer with a fractal height field using the
Diamond-Square algorithm. It is designed to be a pure, stateless utility.

Data Contract:
---------------
- Inputs:
    - complexity: int in [1, 10]. The grid side is (2^complexity) + 1,
      capped at 2049.
    - fractal_dimension: float in (0, 1]. Controls how fast the random
      amplitude decays with the subdivision step.
    - seed: int. The whole surface is derived from a single NumPy random
      stream created from this seed.
- Outputs:
    - A GridBuffer of side (2^complexity) + 1 holding raw, un-normalized heights.
- Side Effects: None, apart from writing into a caller-supplied buffer.
- Invariants: Given the same inputs, the output is bit-identical. Every cell is
  written exactly once, so exactly size * size random draws are consumed.
================================================================================
"""

from dataclasses import dataclass

import numpy as np
from numba import njit

from . import config as DEFAULTS
from .errors import TerrainError, require
from .grid import GridBuffer, prepare_buffer
from .rng import make_rng

# Offsets of the square corners, in draw order: NW, NE, SE, SW.
_SQUARE_OFFSETS = np.array([[-1, -1], [1, -1], [1, 1], [-1, 1]])
# Offsets of the diamond tips: left, right, top, bottom.
_DIAMOND_OFFSETS = np.array([[-1, 0], [1, 0], [0, -1], [0, 1]])


@dataclass
class FractalConfig:
    """Parameters of a fractal surface."""

    complexity: int = DEFAULTS.DEFAULT_COMPLEXITY
    fractal_dimension: float = DEFAULTS.DEFAULT_FRACTAL_DIMENSION
    seed: int = DEFAULTS.DEFAULT_SEED

    @property
    def size(self) -> int:
        return grid_size_for_complexity(self.complexity)

    def validate(self):
        grid_size_for_complexity(self.complexity)
        validate_fractal_dimension(self.fractal_dimension)


def grid_size_for_complexity(complexity: int) -> int:
    """Returns the grid side for a complexity, validated and capped."""
    require(int(complexity) == complexity,
            f"Complexity must be an integer, got {complexity}.")
    require(DEFAULTS.MIN_COMPLEXITY <= complexity <= DEFAULTS.MAX_COMPLEXITY,
            f"Complexity must be in [{DEFAULTS.MIN_COMPLEXITY}, {DEFAULTS.MAX_COMPLEXITY}], got {complexity}.")
    return min(2 ** int(complexity) + 1, DEFAULTS.MAX_GRID_SIZE)


def validate_fractal_dimension(fractal_dimension: float):
    require(0.0 < fractal_dimension <= 1.0,
            f"Fractal dimension must be in (0, 1], got {fractal_dimension}.")


@njit
def _neighbour_mean(grid, x, y, half, offsets):
    """Mean of the in-bounds cells at x/y + half * offset. 0 when none exists."""
    size = grid.shape[0]
    total = 0.0
    count = 0
    for k in range(offsets.shape[0]):
        nx = x + offsets[k, 0] * half
        ny = y + offsets[k, 1] * half
        if 0 <= nx < size and 0 <= ny < size:
            total += grid[ny, nx]
            count += 1
    if count > 0:
        return total / count
    return 0.0


@njit
def _diamond_square(grid, draws, fractal_dimension):
    """
    Runs the whole algorithm on a square (size, size) grid.
    `draws` holds size * size uniform values in [-1, 1), consumed in order.
    Returns the number of draws consumed.
    """
    size = grid.shape[0]
    last = size - 1
    exponent = 1.0 - fractal_dimension

    # Seed the first square with the four corners.
    corner_coeff = size ** exponent
    grid[0, 0] = draws[0] * corner_coeff
    grid[0, last] = draws[1] * corner_coeff
    grid[last, last] = draws[2] * corner_coeff
    grid[last, 0] = draws[3] * corner_coeff
    k = 4

    step = last
    while step > 1:
        half = step // 2
        coeff = half ** exponent

        # Square pass: centres of every square of side `step`.
        for y in range(half, size, step):
            for x in range(half, size, step):
                mean = _neighbour_mean(grid, x, y, half, _SQUARE_OFFSETS)
                grid[y, x] = mean + draws[k] * coeff
                k += 1

        # Diamond pass: the column offset alternates every half step.
        shifted = True
        for y in range(0, size, half):
            start = half if shifted else 0
            for x in range(start, size, step):
                mean = _neighbour_mean(grid, x, y, half, _DIAMOND_OFFSETS)
                grid[y, x] = mean + draws[k] * coeff
                k += 1
            shifted = not shifted

        step = half

    return k


def draw_stream(seed: int, count: int) -> np.ndarray:
    """The uniform [-1, 1) stream consumed by the generator for a given seed."""
    rng = make_rng(seed)
    return rng.uniform(-1.0, 1.0, count)


def generate(complexity: int, fractal_dimension: float, seed: int, out: GridBuffer = None) -> GridBuffer:
    """
    Generates a Diamond-Square fractal surface.

    Args:
        complexity (int): Number of subdivision levels, in [1, 10].
        fractal_dimension (float): Roughness in (0, 1].
        seed (int): Seed of the random stream.
        out (GridBuffer, optional): Caller-owned buffer to fill. It is resized
            to the grid side, which must fit its capacity.

    Returns:
        GridBuffer: The filled buffer (`out` when given).
    """
    size = grid_size_for_complexity(complexity)
    validate_fractal_dimension(fractal_dimension)

    draws = draw_stream(seed, size * size)
    buffer = prepare_buffer(out, size, size)
    consumed = _diamond_square(buffer.values, draws, float(fractal_dimension))
    if consumed != size * size:
        raise TerrainError(f"Diamond-Square consumed {consumed} draws for {size * size} cells.")
    return buffer
