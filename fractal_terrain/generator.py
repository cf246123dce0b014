# fractal_terrain/generator.py

"""
================================================================================
CORE TERRAIN GENERATOR
================================================================================
This module contains the TerrainGenerator class, the configured entry point to
the synthesis pipeline: fractal surface or Voronoi diagram, optional thermal
erosion, then tessellation into mesh chunks.

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): A dictionary of parameters which can override the
      internal defaults. Expected keys include 'seed', 'complexity', etc.
    - logger: A configured Python logging object for runtime messages.
- Outputs (from methods):
    - GridBuffers of raw values, MeshChunk lists, normalized arrays.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and configuration, the output is
  deterministic. No call keeps state that changes the result of a later call:
  every generation builds its own random stream from the stored seed.
================================================================================
"""

import logging
import time

import numpy as np

from . import color_maps
from . import config as DEFAULTS
from . import diamond_square
from . import erosion
from . import rng
from . import tessellation
from . import voronoi
from .grid import GridBuffer


def time_seed() -> int:
    """A fresh 32-bit seed derived from the clock, for "new terrain" requests."""
    return time.time_ns() & 0xFFFFFFFF


class TerrainGenerator:
    """
    Generates fractal surfaces and Voronoi diagrams and turns them into meshes.
    This class is backend-only and does not handle any display.
    """
    def __init__(self, config: dict, logger: logging.Logger):
        """
        Initializes the terrain generator.

        Args:
            config (dict): User-defined parameters to override defaults. A
                missing or None 'seed' is replaced by a clock-derived one.
            logger (logging.Logger): The logger instance for all output.
        """
        self.logger = logger
        self.user_config = config
        self.logger.info("TerrainGenerator initializing...")

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed'),
            'voronoi_seed_offset': self.user_config.get('voronoi_seed_offset', DEFAULTS.VORONOI_SEED_OFFSET),

            'complexity': self.user_config.get('complexity', DEFAULTS.DEFAULT_COMPLEXITY),
            'fractal_dimension': self.user_config.get('fractal_dimension', DEFAULTS.DEFAULT_FRACTAL_DIMENSION),

            'erosion_threshold_percent': self.user_config.get('erosion_threshold_percent', DEFAULTS.DEFAULT_EROSION_THRESHOLD_PERCENT),
            'erosion_iterations': self.user_config.get('erosion_iterations', DEFAULTS.DEFAULT_EROSION_ITERATIONS),

            'feature_count': self.user_config.get('feature_count', DEFAULTS.DEFAULT_FEATURE_COUNT),
            'voronoi_width': self.user_config.get('voronoi_width', DEFAULTS.DEFAULT_VORONOI_WIDTH),
            'voronoi_height': self.user_config.get('voronoi_height', DEFAULTS.DEFAULT_VORONOI_HEIGHT),
            'voronoi_c1': self.user_config.get('voronoi_c1', DEFAULTS.DEFAULT_VORONOI_C1),
            'voronoi_c2': self.user_config.get('voronoi_c2', DEFAULTS.DEFAULT_VORONOI_C2),
            'voronoi_c3': self.user_config.get('voronoi_c3', DEFAULTS.DEFAULT_VORONOI_C3),
            'use_third_coefficient': self.user_config.get('use_third_coefficient', DEFAULTS.DEFAULT_USE_THIRD_COEFFICIENT),
            'perturbation': self.user_config.get('perturbation', DEFAULTS.DEFAULT_PERTURBATION),
            'zone_count': self.user_config.get('zone_count', DEFAULTS.DEFAULT_ZONE_COUNT),

            'max_chunk_size': self.user_config.get('max_chunk_size', DEFAULTS.DEFAULT_MAX_CHUNK_SIZE),
            'spatial_extent': self.user_config.get('spatial_extent', DEFAULTS.DEFAULT_SPATIAL_EXTENT),
            'adaptive_diagonal': self.user_config.get('adaptive_diagonal', DEFAULTS.DEFAULT_ADAPTIVE_DIAGONAL),
        }

        if self.settings['seed'] is None:
            self.settings['seed'] = time_seed()
            self.logger.debug("No seed provided, derived one from the clock.")

        # --- Public Properties for easy access ---
        self.seed = self.settings['seed']

        # Fail fast on bad parameters, before anything is allocated.
        self.validate()

        self.logger.info(f"TerrainGenerator initialized with seed: {self.seed}")
        self.logger.info(
            f"Fractal surface: complexity {self.settings['complexity']} "
            f"({self.fractal_config.size}x{self.fractal_config.size} cells), "
            f"fractal dimension {self.settings['fractal_dimension']}"
        )

    def validate(self):
        """Checks every setting. Raises InvalidParameterError on the first bad one."""
        rng.validate_seed(self.seed)
        rng.validate_seed(self.seed + self.settings['voronoi_seed_offset'])
        self.fractal_config.validate()
        erosion.validate_erosion_parameters(
            self.settings['erosion_threshold_percent'], self.settings['erosion_iterations']
        )
        self.voronoi_config.validate()
        tessellation.validate_layout(self.settings['max_chunk_size'], self.settings['spatial_extent'])

    @property
    def fractal_config(self) -> diamond_square.FractalConfig:
        return diamond_square.FractalConfig(
            complexity=self.settings['complexity'],
            fractal_dimension=self.settings['fractal_dimension'],
            seed=self.seed,
        )

    @property
    def voronoi_config(self) -> voronoi.VoronoiConfig:
        return voronoi.VoronoiConfig(
            feature_count=self.settings['feature_count'],
            width=self.settings['voronoi_width'],
            height=self.settings['voronoi_height'],
            c1=self.settings['voronoi_c1'],
            c2=self.settings['voronoi_c2'],
            c3=self.settings['voronoi_c3'],
            use_third_coefficient=self.settings['use_third_coefficient'],
            perturbation=self.settings['perturbation'],
            zone_count=self.settings['zone_count'],
        )

    def reseed(self, seed: int = None) -> int:
        """Stores a new seed (clock-derived when None) for later generations."""
        seed = time_seed() if seed is None else seed
        rng.validate_seed(seed)
        rng.validate_seed(seed + self.settings['voronoi_seed_offset'])
        self.seed = seed
        self.settings['seed'] = self.seed
        self.logger.info(f"Reseeded with: {self.seed}")
        return self.seed

    def max_buffer(self) -> GridBuffer:
        """A buffer big enough for any fractal surface this generator can produce."""
        size = diamond_square.grid_size_for_complexity(DEFAULTS.MAX_COMPLEXITY)
        return GridBuffer.with_max_size(size, size)

    def generate_fractal(self, out: GridBuffer = None) -> GridBuffer:
        """Generates the fractal surface for the current settings and seed."""
        start_time = time.perf_counter()
        buffer = diamond_square.generate(
            self.settings['complexity'],
            self.settings['fractal_dimension'],
            self.seed,
            out=out,
        )
        self.logger.info(
            f"Generated {buffer.width}x{buffer.height} fractal surface "
            f"in {time.perf_counter() - start_time:.3f} seconds."
        )
        return buffer

    def erode(self, buffer: GridBuffer):
        """Applies thermal erosion with the configured threshold and iterations."""
        start_time = time.perf_counter()
        erosion.erode(buffer, self.settings['erosion_threshold_percent'], self.settings['erosion_iterations'])
        self.logger.info(
            f"Eroded surface ({self.settings['erosion_iterations']} iterations, "
            f"threshold {self.settings['erosion_threshold_percent']:.0%}) "
            f"in {time.perf_counter() - start_time:.3f} seconds."
        )

    def generate_voronoi(self, out: GridBuffer = None) -> GridBuffer:
        """Generates the Voronoi diagram for the current settings and seed."""
        start_time = time.perf_counter()
        # The offset keeps the diagram unrelated to the surface of the same seed.
        buffer = voronoi.generate(self.voronoi_config, self.seed + self.settings['voronoi_seed_offset'], out=out)
        self.logger.info(
            f"Generated {buffer.width}x{buffer.height} Voronoi diagram with "
            f"{self.settings['feature_count']} features in {time.perf_counter() - start_time:.3f} seconds."
        )
        return buffer

    def tessellate(self, buffer: GridBuffer) -> list:
        """Converts a height buffer into mesh chunks with the configured layout."""
        start_time = time.perf_counter()
        chunks = tessellation.tessellate(
            buffer,
            max_chunk_size=self.settings['max_chunk_size'],
            spatial_extent=self.settings['spatial_extent'],
            adaptive_diagonal=self.settings['adaptive_diagonal'],
        )
        self.logger.info(f"Built {len(chunks)} mesh chunks in {time.perf_counter() - start_time:.3f} seconds.")
        return chunks

    def build_terrain(self, out: GridBuffer = None, erode: bool = True) -> tuple:
        """
        Runs the full terrain pipeline: fractal surface, erosion, tessellation.

        Returns:
            tuple: (GridBuffer, list of MeshChunk)
        """
        # Settings may have been edited since construction; check before `out` is touched.
        self.validate()
        buffer = self.generate_fractal(out=out)
        if erode:
            self.erode(buffer)
        return buffer, self.tessellate(buffer)

    def normalize(self, buffer: GridBuffer) -> np.ndarray:
        """Normalizes a buffer to [0, 1] for display."""
        return color_maps.normalize_to_grayscale(buffer)
