# fractal_terrain/tessellation.py

"""
================================================================================
GRID TO MESH TESSELLATION
================================================================================
Converts a height buffer into a set of bounded-size triangle meshes that an
external renderer can display.

Data Contract:
---------------
- Inputs:
    - buffer: GridBuffer of at least 2x2 cells.
    - max_chunk_size: maximum number of vertices per chunk side (>= 2).
    - spatial_extent: side of the cube the meshes are laid out in. X and Y
      span [-extent/2, extent/2], Z spans [0, extent].
    - adaptive_diagonal: split quads along the flattest diagonal.
- Outputs:
    - A list of MeshChunk. Adjacent chunks share their seam row/column, so the
      union of all chunks covers the buffer with exactly one line of overlap.
- Side Effects: None.
- Invariants: Z is remapped with the range of the whole buffer, so every
  chunk uses the same height-to-palette mapping. Seam vertices get identical
  positions and normals in both chunks.
================================================================================
"""

import logging
from dataclasses import dataclass

import numpy as np

from . import config as DEFAULTS
from .errors import require
from .grid import GridBuffer

logger = logging.getLogger(__name__)

# Normals are computed on a window grown by this many cells on every side, then
# cropped, so vertices on a seam see all of their adjacent faces.
NORMAL_PADDING = 1


@dataclass
class MeshChunk:
    """
    One renderable sub-mesh. Vertex i sits at grid cell
    (origin_x + i % columns, origin_y + i // columns).
    """

    origin_x: int
    origin_y: int
    columns: int
    rows: int
    vertices: np.ndarray    # (rows * columns, 3) positions
    normals: np.ndarray     # (rows * columns, 3) unit normals
    palette_uv: np.ndarray  # (rows * columns, 2), U fixed, V = normalized height
    planar_uv: np.ndarray   # (rows * columns, 2), normalized grid (x, y)
    triangles: np.ndarray   # (triangle count, 3) vertex indices

    @property
    def name(self) -> str:
        return f"SubMesh_X{self.origin_x}_Y{self.origin_y}"

    @property
    def x_range(self) -> range:
        return range(self.origin_x, self.origin_x + self.columns)

    @property
    def y_range(self) -> range:
        return range(self.origin_y, self.origin_y + self.rows)


@dataclass
class _Layout:
    """Mapping from grid cells to mesh space, shared by every chunk."""
    width: int
    height: int
    x_spacing: float
    y_spacing: float
    offset: float
    z_min: float
    z_scale: float
    extent: float


def chunk_spans(size: int, max_chunk_size: int) -> list:
    """
    Splits [0, size) into (start, length) spans of at most max_chunk_size,
    each starting on the last line of the previous one.
    """
    step = max_chunk_size - 1
    return [(start, min(max_chunk_size, size - start)) for start in range(0, size - 1, step)]


def quad_triangles(z: np.ndarray, adaptive_diagonal: bool) -> np.ndarray:
    """
    Triangulates a (rows, columns) vertex grid, vertex index = x + y * columns.

    Each quad is split in two:

        fixed, or |A-D| < |B-C|       otherwise (adaptive)
            D - C                         D - C
            | \\ |                         | / |
            B - A                         B - A

    Returns a (2 * quads, 3) int32 array, both triangles of a quad adjacent.
    """
    rows, columns = z.shape
    y, x = np.mgrid[1:rows, 1:columns]
    a = x + y * columns
    b = a - 1
    c = a - columns
    d = a - 1 - columns

    if adaptive_diagonal:
        flat = z.ravel()
        use_ad = np.abs(flat[a] - flat[d]) < np.abs(flat[b] - flat[c])
    else:
        use_ad = np.ones(a.shape, dtype=bool)

    use_ad = use_ad[..., np.newaxis]
    first = np.where(use_ad, np.stack([d, c, a], axis=-1), np.stack([d, c, b], axis=-1))
    second = np.where(use_ad, np.stack([a, b, d], axis=-1), np.stack([b, c, a], axis=-1))
    return np.stack([first, second], axis=2).reshape(-1, 3).astype(np.int32)


def vertex_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Smooth normals: area-weighted average of the adjacent face normals."""
    v0 = vertices[triangles[:, 0]]
    v1 = vertices[triangles[:, 1]]
    v2 = vertices[triangles[:, 2]]
    # Unnormalized cross products are already weighted by twice the face area.
    face_normals = np.cross(v1 - v0, v2 - v0)

    normals = np.zeros_like(vertices)
    for corner in range(3):
        np.add.at(normals, triangles[:, corner], face_normals)

    lengths = np.linalg.norm(normals, axis=1, keepdims=True)
    np.divide(normals, lengths, out=normals, where=lengths > 0)
    return normals


def _window_positions(values: np.ndarray, layout: _Layout, x0: int, x1: int, y0: int, y1: int) -> np.ndarray:
    """Mesh-space positions of the grid window [x0, x1) x [y0, y1), shape (rows, columns, 3)."""
    gy, gx = np.mgrid[y0:y1, x0:x1]
    positions = np.empty((y1 - y0, x1 - x0, 3), dtype=np.float64)
    positions[..., 0] = layout.offset + gx * layout.x_spacing
    positions[..., 1] = layout.offset + gy * layout.y_spacing
    positions[..., 2] = (values[y0:y1, x0:x1] - layout.z_min) * layout.z_scale
    return positions


def _build_chunk(values: np.ndarray, layout: _Layout, x0: int, y0: int, columns: int, rows: int,
                 adaptive_diagonal: bool) -> MeshChunk:
    x1, y1 = x0 + columns, y0 + rows
    positions = _window_positions(values, layout, x0, x1, y0, y1)

    # --- Normals on a padded window, then cropped ---
    px0 = max(x0 - NORMAL_PADDING, 0)
    py0 = max(y0 - NORMAL_PADDING, 0)
    px1 = min(x1 + NORMAL_PADDING, layout.width)
    py1 = min(y1 + NORMAL_PADDING, layout.height)
    padded = _window_positions(values, layout, px0, px1, py0, py1)
    padded_tris = quad_triangles(padded[..., 2], adaptive_diagonal)
    padded_normals = vertex_normals(padded.reshape(-1, 3), padded_tris).reshape(padded.shape)
    normals = padded_normals[y0 - py0:y1 - py0, x0 - px0:x1 - px0]

    # --- Texture coordinates ---
    gy, gx = np.mgrid[y0:y1, x0:x1]
    planar_uv = np.column_stack((gx.ravel() / (layout.width - 1), gy.ravel() / (layout.height - 1)))
    palette_uv = np.column_stack((
        np.full(rows * columns, DEFAULTS.PALETTE_U),
        positions[..., 2].ravel() / layout.extent
    ))

    return MeshChunk(
        origin_x=x0,
        origin_y=y0,
        columns=columns,
        rows=rows,
        vertices=positions.reshape(-1, 3),
        normals=normals.reshape(-1, 3),
        palette_uv=palette_uv,
        planar_uv=planar_uv,
        triangles=quad_triangles(positions[..., 2], adaptive_diagonal),
    )


def validate_layout(max_chunk_size: int, spatial_extent: float):
    require(int(max_chunk_size) == max_chunk_size and max_chunk_size >= DEFAULTS.MIN_CHUNK_SIZE,
            f"Max chunk size must be an integer >= {DEFAULTS.MIN_CHUNK_SIZE}, got {max_chunk_size}.")
    require(spatial_extent > 0, f"Spatial extent must be > 0, got {spatial_extent}.")


def tessellate(
    buffer: GridBuffer,
    max_chunk_size: int = DEFAULTS.DEFAULT_MAX_CHUNK_SIZE,
    spatial_extent: float = DEFAULTS.DEFAULT_SPATIAL_EXTENT,
    adaptive_diagonal: bool = DEFAULTS.DEFAULT_ADAPTIVE_DIAGONAL,
) -> list:
    """
    Splits a height buffer into MeshChunks of at most max_chunk_size vertices
    per side. Chunks are returned column of chunks by column of chunks.
    """
    require(buffer.width >= 2 and buffer.height >= 2,
            f"Tessellation needs at least 2x2 cells, got {buffer.width}x{buffer.height}.")
    validate_layout(max_chunk_size, spatial_extent)

    values = buffer.values
    z_min, z_max = buffer.value_range()
    z_range = z_max - z_min
    if z_range == 0:
        logger.warning("Height buffer is flat; every vertex gets Z = 0.")

    layout = _Layout(
        width=buffer.width,
        height=buffer.height,
        x_spacing=spatial_extent / (buffer.width - 1),
        y_spacing=spatial_extent / (buffer.height - 1),
        offset=-spatial_extent / 2.0,
        z_min=z_min,
        z_scale=spatial_extent / z_range if z_range > 0 else 0.0,
        extent=float(spatial_extent),
    )

    chunks = []
    for x0, columns in chunk_spans(buffer.width, int(max_chunk_size)):
        for y0, rows in chunk_spans(buffer.height, int(max_chunk_size)):
            chunks.append(_build_chunk(values, layout, x0, y0, columns, rows, adaptive_diagonal))

    logger.debug(f"Tessellated {buffer.width}x{buffer.height} buffer into {len(chunks)} chunks.")
    return chunks
