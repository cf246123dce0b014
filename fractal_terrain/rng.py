# fractal_terrain/rng.py

"""
Random stream construction.

Every generation call builds its own stream from an explicit seed; nothing in
this package keeps a shared or global generator.
"""

import numpy as np

from .errors import require


def validate_seed(seed: int):
    require(isinstance(seed, (int, np.integer)) and not isinstance(seed, bool),
            f"Seed must be an integer, got {seed!r}.")
    require(seed >= 0, f"Seed must be non-negative, got {seed}.")


def make_rng(seed: int) -> np.random.Generator:
    """Returns a fresh NumPy generator for a non-negative integer seed."""
    validate_seed(seed)
    return np.random.default_rng(int(seed))
