# fractal_terrain/__init__.py

# This file makes the 'fractal_terrain' directory a Python package.
# It also defines the public API of the package.

from .color_maps import normalize_to_grayscale
from .diamond_square import FractalConfig
from .diamond_square import generate as generate_fractal
from .erosion import erode
from .errors import BufferCapacityError, InvalidParameterError, TerrainError
from .generator import TerrainGenerator
from .grid import GridBuffer
from .tessellation import MeshChunk, tessellate
from .voronoi import VoronoiConfig
from .voronoi import generate as generate_voronoi

__all__ = [
    "GridBuffer",
    "FractalConfig",
    "VoronoiConfig",
    "MeshChunk",
    "TerrainGenerator",
    "generate_fractal",
    "erode",
    "generate_voronoi",
    "tessellate",
    "normalize_to_grayscale",
    "TerrainError",
    "InvalidParameterError",
    "BufferCapacityError",
]
