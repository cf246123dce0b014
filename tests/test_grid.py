"""Tests for the GridBuffer storage and its lifecycle."""

import numpy as np
import pytest

from fractal_terrain import BufferCapacityError, GridBuffer, InvalidParameterError
from fractal_terrain.grid import OUT_OF_BOUNDS_VALUE, prepare_buffer


class TestAccess:
    def test_new_buffer_is_zero_filled(self):
        buffer = GridBuffer(4, 3)
        assert buffer.shape == (3, 4)
        assert len(buffer) == 12
        assert not buffer.values.any()

    def test_cells_are_row_major(self):
        buffer = GridBuffer(4, 3)
        assert buffer.set(2, 1, 5.0)
        assert buffer.index(2, 1) == 6
        assert buffer.cells[6] == 5.0
        assert buffer.values[1, 2] == 5.0
        assert buffer.get(2, 1) == 5.0

    @pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (4, 0), (0, 3), (100, 100)])
    def test_out_of_bounds_read_returns_sentinel(self, x, y):
        buffer = GridBuffer(4, 3)
        buffer.values.fill(7.0)
        assert buffer.get(x, y) == OUT_OF_BOUNDS_VALUE

    def test_out_of_bounds_write_is_ignored(self):
        buffer = GridBuffer(4, 3)
        # x == width must not wrap onto the next row.
        assert buffer.set(4, 0, 1.0) is False
        assert not buffer.values.any()

    def test_value_range(self):
        buffer = GridBuffer.from_array([[1.0, -2.0], [3.5, 0.0]])
        assert buffer.value_range() == (-2.0, 3.5)

    def test_from_array_copies(self):
        source = np.ones((2, 3))
        buffer = GridBuffer.from_array(source)
        source[0, 0] = 9.0
        assert buffer.width == 3 and buffer.height == 2
        assert buffer.get(0, 0) == 1.0

    def test_from_array_rejects_non_2d(self):
        with pytest.raises(InvalidParameterError):
            GridBuffer.from_array(np.zeros(5))

    @pytest.mark.parametrize("width, height", [(0, 5), (5, 0), (-1, 3)])
    def test_invalid_dimensions(self, width, height):
        with pytest.raises(InvalidParameterError):
            GridBuffer(width, height)


class TestLifecycle:
    def test_resize_reuses_storage(self):
        buffer = GridBuffer.with_max_size(9, 9)
        storage = buffer.cells
        buffer.values.fill(3.0)

        buffer.resize(5, 5)
        assert buffer.shape == (5, 5)
        assert np.shares_memory(buffer.values, storage)
        assert not buffer.values.any()

    def test_resize_above_capacity(self):
        buffer = GridBuffer.with_max_size(5, 5)
        with pytest.raises(BufferCapacityError):
            buffer.resize(6, 5)

    def test_capacity_must_fit_initial_size(self):
        with pytest.raises(BufferCapacityError):
            GridBuffer(4, 4, capacity=10)

    def test_reset(self):
        buffer = GridBuffer(3, 3)
        buffer.values.fill(1.0)
        buffer.reset()
        assert not buffer.values.any()

    def test_context_manager_releases(self):
        with GridBuffer(3, 3) as buffer:
            buffer.set(1, 1, 2.0)
            assert not buffer.released
        assert buffer.released
        with pytest.raises(RuntimeError):
            buffer.reset()

    @pytest.mark.parametrize("access", [
        lambda buffer: buffer.get(0, 0),
        lambda buffer: buffer.set(0, 0, 1.0),
        lambda buffer: buffer.value_range(),
        lambda buffer: buffer.cells,
        lambda buffer: buffer.resize(2, 2),
    ])
    def test_released_buffer_rejects_access(self, access):
        buffer = GridBuffer(3, 3)
        buffer.release()
        with pytest.raises(RuntimeError):
            access(buffer)

    def test_copy_is_independent(self):
        buffer = GridBuffer(2, 2)
        clone = buffer.copy()
        clone.set(0, 0, 1.0)
        assert buffer.get(0, 0) == 0.0

    def test_prepare_buffer(self):
        assert prepare_buffer(None, 3, 2).shape == (2, 3)
        out = GridBuffer.with_max_size(4, 4)
        assert prepare_buffer(out, 3, 3) is out
        assert out.shape == (3, 3)
