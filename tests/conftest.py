import logging

import numpy as np
import pytest

from fractal_terrain import GridBuffer


@pytest.fixture
def logger():
    return logging.getLogger("fractal_terrain.tests")


@pytest.fixture
def random_buffer():
    """A 300x300 buffer of uniform noise."""
    rng = np.random.default_rng(2024)
    return GridBuffer.from_array(rng.random((300, 300)))


@pytest.fixture
def erosion_example():
    """The 3x3 slope used to illustrate a single erosion step."""
    return np.array([
        [0.0, 0.0, 1.0],
        [0.0, 1.0, 2.0],
        [0.0, 0.0, 0.8],
    ])
