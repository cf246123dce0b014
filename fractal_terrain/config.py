# fractal_terrain/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the terrain
synthesizer. These values are used if they are not explicitly provided by the
user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC RUN.
Instead, pass a configuration dictionary to the TerrainGenerator instance.
================================================================================
"""

# --- Random Streams ---
DEFAULT_SEED = 1337
# Offset applied to the master seed for the Voronoi stream so that a fractal
# surface and a diagram generated from the same master seed are unrelated.
VORONOI_SEED_OFFSET = 54321

# --- Fractal Surface (Diamond-Square) ---
# The grid side is (2^complexity) + 1.
DEFAULT_COMPLEXITY = 8
MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 10
# Hard cap on the grid side, whatever the complexity.
MAX_GRID_SIZE = 2049
# Smaller values create smooth surfaces, higher values rougher ones.
# The surface has a fractal dimension of 2 + this value.
DEFAULT_FRACTAL_DIMENSION = 0.35

# --- Thermal Erosion ---
# Talus threshold as a fraction of the buffer's height range.
DEFAULT_EROSION_THRESHOLD_PERCENT = 0.25
DEFAULT_EROSION_ITERATIONS = 10

# --- Voronoi Diagram ---
DEFAULT_FEATURE_COUNT = 128
DEFAULT_VORONOI_WIDTH = 512
DEFAULT_VORONOI_HEIGHT = 512
# Weights of the 1st, 2nd and 3rd nearest squared distances.
DEFAULT_VORONOI_C1 = -1.0
DEFAULT_VORONOI_C2 = 1.0
DEFAULT_VORONOI_C3 = 0.0
DEFAULT_USE_THIRD_COEFFICIENT = False
# Maximum pixel displacement, as a fraction of the grid size.
DEFAULT_PERTURBATION = 0.0
# 0 or 1 disables zoning, N spreads the features over N x N zones.
DEFAULT_ZONE_COUNT = 0

# --- Normalization ---
# Value used for every cell when a buffer has no height range at all.
DEGENERATE_NORMALIZED_VALUE = 0.5

# --- Tessellation ---
# Renderers commonly limit a single mesh to 255x255 vertices; 200 leaves margin.
DEFAULT_MAX_CHUNK_SIZE = 200
MIN_CHUNK_SIZE = 2
# Meshes are laid out in a cube of this side: X/Y in [-extent/2, extent/2]
# and Z in [0, extent].
DEFAULT_SPATIAL_EXTENT = 100.0
# Split each quad along the diagonal with the smallest height difference.
DEFAULT_ADAPTIVE_DIAGONAL = True
# U coordinate of the 1D palette texture (vertical gradient).
PALETTE_U = 0.5

# --- Height Palette (Normalized 0.0 to 1.0) ---
# Upper bound of each band of the vertical gradient texture.
PALETTE_LEVELS = {
    "deep_water": 0.2,
    "shallow_water": 0.3,
    "sand": 0.34,
    "grass": 0.55,
    "rock": 0.8,
    "snow": 1.0
}
