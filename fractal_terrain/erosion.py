# fractal_terrain/erosion.py

"""
================================================================================
THERMAL EROSION
================================================================================
Relaxes slopes that are steeper than a talus threshold by moving material from
a cell to its lower neighbours.

Data Contract:
---------------
- Inputs:
    - buffer: GridBuffer (modified in place).
    - threshold_percent: float >= 0, a fraction of the buffer's height range.
    - iterations: int >= 0.
- Outputs: None.
- Side Effects: Mutates the buffer.
- Invariants: The sum of all cells is conserved (up to rounding). A threshold
  of 1.0 or more never moves any material.
================================================================================
"""

import logging

from numba import njit

from .errors import require
from .grid import GridBuffer

logger = logging.getLogger(__name__)


@njit
def erode_cell(grid, x, y, threshold):
    """
    Moves material from cell (x, y) to every neighbour lower by more than
    `threshold`.

    With a threshold of 0.25:

        0.0 0.0 1.0       0.075 0.075 1.0
        0.0 1.0 2.0   >   0.075 0.625 2.0
        0.0 0.0 0.8       0.075 0.075 0.8

    Returns the amount of material removed from the cell.
    """
    height, width = grid.shape
    current = grid[y, x]
    y0 = max(0, y - 1)
    y1 = min(y + 1, height - 1)
    x0 = max(0, x - 1)
    x1 = min(x + 1, width - 1)

    max_diff = 0.0
    total_diff = 0.0
    for ny in range(y0, y1 + 1):
        for nx in range(x0, x1 + 1):
            if nx == x and ny == y:
                continue
            diff = current - grid[ny, nx]
            if diff > threshold:
                total_diff += diff
                if diff > max_diff:
                    max_diff = diff

    if total_diff <= 0.0:
        return 0.0

    moved = 0.5 * (max_diff - threshold)
    grid[y, x] = current - moved
    # Neighbours are untouched since the first loop, so their diffs are unchanged.
    for ny in range(y0, y1 + 1):
        for nx in range(x0, x1 + 1):
            if nx == x and ny == y:
                continue
            diff = current - grid[ny, nx]
            if diff > threshold:
                grid[ny, nx] += moved * (diff / total_diff)
    return moved


@njit
def _erode_pass(grid, threshold):
    height, width = grid.shape
    moved = 0.0
    for y in range(height):
        for x in range(width):
            moved += erode_cell(grid, x, y, threshold)
    return moved


def threshold_value(buffer: GridBuffer, threshold_percent: float) -> float:
    """The absolute talus threshold: the buffer's height range times the percent."""
    low, high = buffer.value_range()
    return (high - low) * threshold_percent


def validate_erosion_parameters(threshold_percent: float, iterations: int):
    require(threshold_percent >= 0.0,
            f"Erosion threshold must be >= 0, got {threshold_percent}.")
    require(int(iterations) == iterations and iterations >= 0,
            f"Erosion iterations must be a non-negative integer, got {iterations}.")


def erode(buffer: GridBuffer, threshold_percent: float, iterations: int):
    """
    Applies `iterations` passes of thermal erosion to the buffer, in place.

    Each pass scans the single mutable buffer row by row, so a cell sees the
    updated heights of the neighbours already processed in the same pass.
    The threshold is computed once from the initial height range.
    """
    validate_erosion_parameters(threshold_percent, iterations)

    threshold = threshold_value(buffer, threshold_percent)
    logger.debug(f"Eroding {buffer.width}x{buffer.height} buffer: threshold {threshold:.4f}, {iterations} iterations.")

    for i in range(int(iterations)):
        moved = _erode_pass(buffer.values, threshold)
        logger.debug(f"  - Pass {i + 1}: moved {moved:.4f} units of material.")
        if moved == 0.0:
            # Nothing is above the threshold any more; later passes are no-ops.
            break
