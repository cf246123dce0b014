# fractal_terrain/grid.py

"""
================================================================================
GRID BUFFER
================================================================================
This module provides the GridBuffer class, the only piece of state shared by
the generators, the erosion filter and the tessellator.

Data Contract:
---------------
- Storage: one contiguous float64 NumPy array allocated once, at a capacity
  chosen by the caller. The active grid is a (height, width) row-major view
  over the start of that storage, so `index = x + y * width`.
- Bounds: get() returns the sentinel 0.0 outside the grid, set() ignores
  writes outside the grid. Neither raises.
- Lifecycle: reset() zero-fills the active grid, resize() re-views the storage
  without reallocating, release() drops the storage. The buffer is a context
  manager that releases itself on exit.
- Invariants: width >= 1, height >= 1, width * height <= capacity.
================================================================================
"""

import numpy as np

from .errors import BufferCapacityError, require

# Value returned by get() for coordinates outside the grid.
OUT_OF_BOUNDS_VALUE = 0.0


class GridBuffer:
    """A fixed-capacity, row-major scalar grid."""

    def __init__(self, width: int, height: int, capacity: int = None):
        """
        Allocates the storage and exposes a zero-filled width x height grid.

        Args:
            width (int): Number of columns of the active grid.
            height (int): Number of rows of the active grid.
            capacity (int, optional): Number of cells to allocate. Defaults to
                width * height. A larger capacity lets the buffer be resized
                up to that many cells without reallocating.
        """
        _validate_dimensions(width, height)
        if capacity is None:
            capacity = width * height
        if width * height > capacity:
            raise BufferCapacityError(
                f"A {width}x{height} grid needs {width * height} cells, "
                f"capacity is {capacity}."
            )

        self._storage = np.zeros(capacity, dtype=np.float64)
        self.capacity = capacity
        self._bind(width, height)

    @classmethod
    def with_max_size(cls, max_width: int, max_height: int) -> "GridBuffer":
        """Allocates a buffer able to hold any grid up to max_width x max_height."""
        return cls(max_width, max_height, capacity=max_width * max_height)

    @classmethod
    def from_array(cls, values) -> "GridBuffer":
        """Builds a buffer holding a copy of a 2D (rows, columns) array."""
        array = np.asarray(values, dtype=np.float64)
        require(array.ndim == 2, f"Expected a 2D array, got {array.ndim} dimensions.")
        height, width = array.shape
        buffer = cls(width, height)
        buffer.values[:, :] = array
        return buffer

    def _bind(self, width: int, height: int):
        self.width = width
        self.height = height
        self.values = self._storage[:width * height].reshape(height, width)

    # --- Lifecycle ---

    def reset(self):
        """Zero-fills the active grid in place."""
        self._check_alive()
        self.values.fill(0.0)

    def resize(self, width: int, height: int):
        """
        Re-views the storage as a zero-filled width x height grid.
        The storage is never reallocated; requests above capacity are rejected.
        """
        self._check_alive()
        _validate_dimensions(width, height)
        if width * height > self.capacity:
            raise BufferCapacityError(
                f"Cannot resize to {width}x{height} ({width * height} cells), "
                f"capacity is {self.capacity}."
            )
        self._bind(width, height)
        self.reset()

    def release(self):
        """Drops the storage. The buffer cannot be used afterwards."""
        self._storage = None
        self.values = None

    @property
    def released(self) -> bool:
        return self._storage is None

    def _check_alive(self):
        if self._storage is None:
            raise RuntimeError("GridBuffer has been released.")

    def __enter__(self):
        self._check_alive()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    # --- Access ---

    @property
    def shape(self) -> tuple:
        return (self.height, self.width)

    @property
    def cells(self) -> np.ndarray:
        """The active grid as a flat, row-major view."""
        self._check_alive()
        return self._storage[:self.width * self.height]

    def __len__(self):
        return self.width * self.height

    def index(self, x: int, y: int) -> int:
        return x + y * self.width

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> float:
        self._check_alive()
        if not self.in_bounds(x, y):
            return OUT_OF_BOUNDS_VALUE
        return float(self.values[y, x])

    def set(self, x: int, y: int, value: float) -> bool:
        """Writes a cell. Returns False (and writes nothing) outside the grid."""
        self._check_alive()
        if not self.in_bounds(x, y):
            return False
        self.values[y, x] = value
        return True

    def value_range(self) -> tuple:
        """Returns (min, max) over the active grid."""
        self._check_alive()
        return float(self.values.min()), float(self.values.max())

    def copy(self) -> "GridBuffer":
        return GridBuffer.from_array(self.values)

    def __repr__(self):
        state = "released" if self.released else f"{self.width}x{self.height}"
        return f"GridBuffer({state}, capacity={self.capacity})"


def _validate_dimensions(width: int, height: int):
    require(int(width) == width and int(height) == height,
            f"Grid dimensions must be integers, got {width}x{height}.")
    require(width >= 1 and height >= 1,
            f"Grid dimensions must be at least 1x1, got {width}x{height}.")


def prepare_buffer(out: GridBuffer, width: int, height: int) -> GridBuffer:
    """
    Returns `out` resized to width x height, or a new buffer when `out` is None.
    Used by the generators to honour a caller-owned scratch buffer.
    """
    if out is None:
        return GridBuffer(width, height)
    out.resize(width, height)
    return out
