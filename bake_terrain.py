# bake_terrain.py

"""
================================================================================
OFFLINE TERRAIN BAKER SCRIPT
================================================================================
This script is a command-line tool for generating a terrain and writing it to
a package directory ("baking") that an external renderer can load:

    heightmap.png    grayscale, normalized fractal surface
    palette.png      the same surface through the height palette
    voronoi.png      grayscale, normalized Voronoi diagram
    chunks/*.npz     one file per mesh chunk, named by content hash
    manifest.json    chunk origins/sizes mapped to chunk files
    generation_config.json   the consolidated settings, for exact replay

The core package never touches the filesystem; all I/O lives here.

Usage:
    python bake_terrain.py --config path/to/your/config.json
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import hashlib
import numpy as np
from PIL import Image
from tqdm import tqdm

# Add project root to Python path to allow importing from fractal_terrain
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from fractal_terrain.generator import TerrainGenerator
from fractal_terrain.tessellation import MeshChunk
from fractal_terrain import color_maps


def save_grayscale(normalized: np.ndarray, file_path: str):
    """Saves normalized [0, 1] data as an 8-bit grayscale PNG."""
    Image.fromarray(color_maps.get_grayscale_array(normalized)).save(file_path, 'PNG')


def save_palette(normalized: np.ndarray, file_path: str):
    """Saves normalized heights through the height palette as an RGB PNG."""
    Image.fromarray(color_maps.get_palette_color_array(normalized)).save(file_path, 'PNG')


def save_chunk(chunk: MeshChunk, directory: str) -> str:
    """
    Saves a mesh chunk as a compressed .npz file named by its content hash.
    Returns the hash.
    """
    digest = hashlib.sha256()
    for array in (chunk.vertices, chunk.triangles):
        digest.update(np.ascontiguousarray(array).tobytes())
    chunk_hash = digest.hexdigest()

    file_path = os.path.join(directory, f"{chunk_hash}.npz")
    if not os.path.exists(file_path):
        np.savez_compressed(
            file_path,
            vertices=chunk.vertices.astype(np.float32),
            normals=chunk.normals.astype(np.float32),
            palette_uv=chunk.palette_uv.astype(np.float32),
            planar_uv=chunk.planar_uv.astype(np.float32),
            triangles=chunk.triangles,
        )
    return chunk_hash


def bake_terrain(config_path: str, output_dir: str = None):
    """
    Loads a configuration, generates the terrain and the Voronoi diagram, and
    saves everything to a package directory.
    """
    # 1. --- Setup Logging ---
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("Baker")

    # 2. --- Load Configuration ---
    logger.info(f"Loading configuration from: {config_path}")
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return None

    params = config.get('terrain_generation_parameters', {})
    generator = TerrainGenerator(config=params, logger=logger)

    # 3. --- Prepare Output Directories ---
    if output_dir is None:
        output_dir = os.path.join("baked_terrains", f"seed_{generator.seed}")
    chunks_dir = os.path.join(output_dir, "chunks")
    os.makedirs(chunks_dir, exist_ok=True)
    logger.info(f"Output directory set to '{output_dir}'")

    start_time = time.perf_counter()

    # 4. --- Terrain: surface, erosion, tessellation ---
    with generator.max_buffer() as buffer:
        buffer, chunks = generator.build_terrain(out=buffer, erode=config.get('erode', True))
        normalized = color_maps.normalize_to_grayscale(buffer)
        save_grayscale(normalized, os.path.join(output_dir, "heightmap.png"))
        save_palette(normalized, os.path.join(output_dir, "palette.png"))
        grid_size = [buffer.width, buffer.height]

    manifest = {
        "grid_size": grid_size,
        "spatial_extent": generator.settings['spatial_extent'],
        "chunks": []
    }
    for chunk in tqdm(chunks, desc="Saving Chunks"):
        chunk_hash = save_chunk(chunk, chunks_dir)
        manifest["chunks"].append({
            "name": chunk.name,
            "origin": [chunk.origin_x, chunk.origin_y],
            "size": [chunk.columns, chunk.rows],
            "file": f"{chunk_hash}.npz"
        })

    # 5. --- Voronoi diagram ---
    if config.get('bake_voronoi', True):
        diagram = generator.generate_voronoi()
        save_grayscale(color_maps.normalize_to_grayscale(diagram), os.path.join(output_dir, "voronoi.png"))

    # 6. --- Manifest and "birth certificate" ---
    with open(os.path.join(output_dir, "manifest.json"), 'w') as f:
        json.dump(manifest, f, indent=2)
    with open(os.path.join(output_dir, "generation_config.json"), 'w') as f:
        json.dump(generator.settings, f, indent=4)

    end_time = time.perf_counter()
    unique_files = len({entry["file"] for entry in manifest["chunks"]})
    logger.info(f"Baking complete! Total time: {end_time - start_time:.2f} seconds.")
    logger.info(f"  - {len(chunks)} chunks -> {unique_files} unique chunk files saved")
    logger.info(f"Baked terrain and manifest.json saved to: {output_dir}")
    return output_dir


# --- Command-Line Interface ---
if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Offline baker for fractal terrain meshes and Voronoi diagrams.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to the JSON configuration file for the terrain to be baked."
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output package directory (defaults to baked_terrains/seed_<seed>)."
    )
    args = parser.parse_args()

    bake_terrain(args.config, args.output)
