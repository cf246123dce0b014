"""Tests for grid to mesh tessellation."""

import numpy as np
import pytest

from fractal_terrain import GridBuffer, InvalidParameterError, tessellate
from fractal_terrain.tessellation import chunk_spans, quad_triangles


def grid_view(chunk, array):
    """Reshapes a per-vertex array of a chunk to (rows, columns, k)."""
    return array.reshape(chunk.rows, chunk.columns, -1)


class TestChunking:
    def test_spans_share_one_line(self):
        assert chunk_spans(300, 200) == [(0, 200), (199, 101)]
        assert chunk_spans(17, 8) == [(0, 8), (7, 8), (14, 3)]
        assert chunk_spans(10, 200) == [(0, 10)]
        assert chunk_spans(2, 2) == [(0, 2)]

    def test_coverage_with_single_line_overlap(self, random_buffer):
        chunks = tessellate(random_buffer, max_chunk_size=200)
        assert [(c.origin_x, c.origin_y) for c in chunks] == [(0, 0), (0, 199), (199, 0), (199, 199)]

        coverage = np.zeros(random_buffer.shape, dtype=int)
        for chunk in chunks:
            assert chunk.columns <= 200 and chunk.rows <= 200
            coverage[chunk.y_range.start:chunk.y_range.stop, chunk.x_range.start:chunk.x_range.stop] += 1

        y, x = np.mgrid[0:300, 0:300]
        expected = (1 + (x == 199)) * (1 + (y == 199))
        assert np.array_equal(coverage, expected)

    def test_chunk_sizes(self, random_buffer):
        for chunk in tessellate(random_buffer, max_chunk_size=200):
            vertex_count = chunk.rows * chunk.columns
            assert chunk.vertices.shape == (vertex_count, 3)
            assert chunk.normals.shape == (vertex_count, 3)
            assert chunk.palette_uv.shape == (vertex_count, 2)
            assert chunk.planar_uv.shape == (vertex_count, 2)
            assert chunk.triangles.shape == (2 * (chunk.rows - 1) * (chunk.columns - 1), 3)
            assert chunk.triangles.min() >= 0 and chunk.triangles.max() < vertex_count

    def test_chunk_names(self, random_buffer):
        names = [chunk.name for chunk in tessellate(random_buffer, max_chunk_size=200)]
        assert names[1] == "SubMesh_X0_Y199"


class TestLayout:
    def test_positions_span_the_cube(self, random_buffer):
        chunks = tessellate(random_buffer, max_chunk_size=200, spatial_extent=100.0)
        first, last = chunks[0], chunks[-1]

        np.testing.assert_allclose(first.vertices[0, :2], [-50.0, -50.0])
        np.testing.assert_allclose(last.vertices[-1, :2], [50.0, 50.0])

        z = np.concatenate([chunk.vertices[:, 2] for chunk in chunks])
        assert z.min() == pytest.approx(0.0)
        assert z.max() == pytest.approx(100.0)

    def test_vertex_follows_grid_cell(self):
        values = np.random.default_rng(8).random((6, 9))
        buffer = GridBuffer.from_array(values)
        chunk = tessellate(buffer, max_chunk_size=4, spatial_extent=8.0)[1]
        positions = grid_view(chunk, chunk.vertices)

        # Second chunk in x-outer order starts at grid (0, 3).
        assert (chunk.origin_x, chunk.origin_y) == (0, 3)
        low, high = values.min(), values.max()
        assert positions[1, 2, 0] == pytest.approx(-4.0 + 2 * 1.0)
        assert positions[1, 2, 1] == pytest.approx(-4.0 + 4 * 8.0 / 5)
        assert positions[1, 2, 2] == pytest.approx((values[4, 2] - low) / (high - low) * 8.0)

    def test_texture_coordinates(self, random_buffer):
        chunks = tessellate(random_buffer, max_chunk_size=200)
        np.testing.assert_allclose(chunks[0].planar_uv[0], [0.0, 0.0])
        np.testing.assert_allclose(chunks[-1].planar_uv[-1], [1.0, 1.0])

        for chunk in chunks:
            assert (chunk.palette_uv[:, 0] == 0.5).all()
            v = chunk.palette_uv[:, 1]
            assert v.min() >= -1e-12 and v.max() <= 1.0 + 1e-12
            np.testing.assert_allclose(v, chunk.vertices[:, 2] / 100.0)

    def test_flat_buffer(self):
        buffer = GridBuffer.from_array(np.full((5, 7), 2.5))
        chunks = tessellate(buffer, max_chunk_size=4)
        for chunk in chunks:
            assert (chunk.vertices[:, 2] == 0.0).all()
            assert not np.isnan(chunk.normals).any()
            np.testing.assert_allclose(chunk.normals, np.tile([0.0, 0.0, 1.0], (len(chunk.normals), 1)))


class TestTriangulation:
    def test_adaptive_picks_flat_diagonal(self):
        # Vertex order: D=0 (top left), C=1, B=2, A=3 (bottom right).
        along_ad = np.array([[0.0, 0.0], [1.0, 0.0]])
        along_bc = np.array([[0.0, 0.0], [0.0, 1.0]])

        assert quad_triangles(along_ad, True).tolist() == [[0, 1, 3], [3, 2, 0]]
        assert quad_triangles(along_bc, True).tolist() == [[0, 1, 2], [2, 1, 3]]

    def test_fixed_diagonal(self):
        along_bc = np.array([[0.0, 0.0], [0.0, 1.0]])
        assert quad_triangles(along_bc, False).tolist() == [[0, 1, 3], [3, 2, 0]]

    def test_tie_uses_bc_split(self):
        flat = np.zeros((2, 2))
        assert quad_triangles(flat, True).tolist() == [[0, 1, 2], [2, 1, 3]]

    def test_dtype_and_winding(self, random_buffer):
        chunk = tessellate(random_buffer, max_chunk_size=50)[0]
        assert chunk.triangles.dtype == np.int32

        v = chunk.vertices
        t = chunk.triangles
        face_z = np.cross(v[t[:, 1]] - v[t[:, 0]], v[t[:, 2]] - v[t[:, 0]])[:, 2]
        # Every face winds the same way, facing +Z.
        assert (face_z > 0).all()

    def test_both_modes_cover_same_quads(self, random_buffer):
        adaptive = tessellate(random_buffer, max_chunk_size=20, adaptive_diagonal=True)[0]
        fixed = tessellate(random_buffer, max_chunk_size=20, adaptive_diagonal=False)[0]
        assert adaptive.triangles.shape == fixed.triangles.shape
        assert not np.array_equal(adaptive.triangles, fixed.triangles)
        np.testing.assert_array_equal(adaptive.vertices, fixed.vertices)


class TestNormals:
    def test_normals_are_unit_and_point_up(self, random_buffer):
        for chunk in tessellate(random_buffer, max_chunk_size=200):
            np.testing.assert_allclose(np.linalg.norm(chunk.normals, axis=1), 1.0)
            assert (chunk.normals[:, 2] > 0).all()

    def test_seams_match(self, random_buffer):
        chunks = tessellate(random_buffer, max_chunk_size=200)
        left, right = chunks[0], chunks[2]
        assert right.origin_x == left.origin_x + left.columns - 1

        np.testing.assert_array_equal(grid_view(left, left.vertices)[:, -1], grid_view(right, right.vertices)[:, 0])
        np.testing.assert_allclose(grid_view(left, left.normals)[:, -1], grid_view(right, right.normals)[:, 0],
                                   rtol=0, atol=1e-12)

        top, bottom = chunks[0], chunks[1]
        np.testing.assert_allclose(grid_view(top, top.normals)[-1], grid_view(bottom, bottom.normals)[0],
                                   rtol=0, atol=1e-12)

    def test_chunking_does_not_change_normals(self):
        buffer = GridBuffer.from_array(np.random.default_rng(12).random((40, 50)))
        whole = tessellate(buffer, max_chunk_size=1000)[0]
        whole_normals = grid_view(whole, whole.normals)

        for chunk in tessellate(buffer, max_chunk_size=16):
            expected = whole_normals[chunk.y_range.start:chunk.y_range.stop, chunk.x_range.start:chunk.x_range.stop]
            np.testing.assert_allclose(grid_view(chunk, chunk.normals), expected, rtol=0, atol=1e-12)


class TestValidation:
    @pytest.mark.parametrize("shape", [(1, 5), (5, 1), (1, 1)])
    def test_buffer_too_small(self, shape):
        with pytest.raises(InvalidParameterError):
            tessellate(GridBuffer.from_array(np.zeros(shape)))

    @pytest.mark.parametrize("max_chunk_size", [1, 0, 2.5])
    def test_max_chunk_size(self, max_chunk_size):
        with pytest.raises(InvalidParameterError):
            tessellate(GridBuffer(4, 4), max_chunk_size=max_chunk_size)

    @pytest.mark.parametrize("spatial_extent", [0.0, -10.0])
    def test_spatial_extent(self, spatial_extent):
        with pytest.raises(InvalidParameterError):
            tessellate(GridBuffer(4, 4), spatial_extent=spatial_extent)
