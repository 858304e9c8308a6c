"""
Tests for Array2D.
"""

import numpy as np
import pytest

import ndbuf
from ndbuf import (
    Array2D,
    BufferHandle,
    CheckConfig,
    IndexOutOfBoundsError,
    LayoutError,
    StaleViewError,
    TypeMismatchError,
)
from ndbuf import _provider


class TestArray2DCreation:
    """Test Array2D construction."""

    def test_default_is_empty(self):
        m = Array2D()
        assert m.shape == (0, 0)
        assert m.nb_row == 0
        assert m.nb_col == 0
        assert m.is_empty
        assert m.ptr == 0

    def test_shape_constructor(self):
        m = Array2D(3, 4, dtype='float32')
        assert m.shape == (3, 4)
        assert m.size == 12
        assert m.nbytes == 48

    def test_fill_constructor(self):
        m = Array2D(2, 2, 9, dtype='int16')
        assert m.tolist() == [[9, 9], [9, 9]]

    def test_zero_extent(self):
        m = Array2D(0, 5)
        assert m.shape == (0, 5)
        assert m.is_empty

    def test_needs_both_extents(self):
        with pytest.raises(TypeError):
            Array2D(3)

    def test_negative_extent(self):
        with pytest.raises(ValueError):
            Array2D(2, -1)

    def test_from_rows(self, small_matrix):
        assert small_matrix.shape == (2, 3)
        assert small_matrix.tolist() == [[1, 2, 3], [4, 5, 6]]

    def test_from_rows_empty(self):
        m = Array2D.from_rows([], dtype='int32')
        assert m.shape == (0, 0)

    def test_from_rows_ragged(self):
        with pytest.raises(LayoutError):
            Array2D.from_rows([[1, 2], [3]])

    def test_from_numpy_shares(self):
        host = np.zeros((2, 3), dtype=np.int64)
        m = Array2D.from_numpy(host)
        m[1, 2] = 5
        assert host[1, 2] == 5

    def test_from_numpy_zero_rows(self):
        m = Array2D.from_numpy(np.zeros((0, 4)))
        assert m.shape == (0, 4)


class TestArray2DLayoutValidation:
    """Adopting buffers that are not contiguous row-major."""

    def test_rank_mismatch(self):
        with pytest.raises(LayoutError):
            Array2D.from_numpy(np.zeros(6))

    def test_column_major_rejected(self):
        with pytest.raises(LayoutError):
            Array2D.from_numpy(np.zeros((3, 4), order='F'))

    def test_transposed_view_rejected(self):
        with pytest.raises(LayoutError):
            Array2D.from_numpy(np.zeros((3, 4)).T)

    def test_padded_rows_rejected(self):
        handle = ndbuf.create(8, 'float64', (3, 4), (48, 8))
        with pytest.raises(LayoutError):
            Array2D.from_handle(handle)

    def test_single_row_slice_accepted(self):
        host = np.arange(12.0).reshape(3, 4)
        m = Array2D.from_numpy(host[1:2, :])
        assert m.tolist() == [[4.0, 5.0, 6.0, 7.0]]

    def test_type_mismatch(self):
        with pytest.raises(TypeMismatchError):
            Array2D.from_numpy(np.zeros((2, 2), dtype=np.float32), dtype='float64')

    def test_failed_assign_keeps_state(self, small_matrix):
        with pytest.raises(LayoutError):
            small_matrix.assign_handle(BufferHandle(np.zeros((3, 2), dtype=np.int64).T))
        assert small_matrix.tolist() == [[1, 2, 3], [4, 5, 6]]


class TestArray2DAccess:
    """Test element addressing."""

    def test_flat_index(self, small_matrix):
        assert small_matrix.flat_index(0, 0) == 0
        assert small_matrix.flat_index(1, 0) == 3
        assert small_matrix.flat_index(1, 2) == 5

    def test_access_matches_flat_index(self, small_matrix):
        flat = small_matrix.to_numpy().ravel()
        for i in range(2):
            for j in range(3):
                assert small_matrix[i, j] == flat[small_matrix.flat_index(i, j)]
                assert small_matrix.unchecked(i, j) == small_matrix[i, j]

    def test_setitem(self, small_matrix):
        small_matrix[0, 1] = 20
        assert small_matrix.tolist() == [[1, 20, 3], [4, 5, 6]]

    def test_negative_indices(self, small_matrix):
        assert small_matrix[-1, -1] == 6
        assert small_matrix[-2, 0] == 1

    def test_out_of_bounds(self, small_matrix):
        with pytest.raises(IndexOutOfBoundsError):
            _ = small_matrix[2, 0]
        with pytest.raises(IndexError):
            _ = small_matrix[0, 3]

    def test_column_overflow_not_wrapped(self, small_matrix):
        # (0, 3) would alias (1, 0) without the column check
        with pytest.raises(IndexOutOfBoundsError):
            small_matrix[0, 3] = 0
        assert small_matrix[1, 0] == 4

    def test_bad_key(self, small_matrix):
        with pytest.raises(TypeError):
            _ = small_matrix[0]
        with pytest.raises(TypeError):
            _ = small_matrix[0, 1, 2]
        with pytest.raises(TypeError):
            _ = small_matrix[0, 1.0]

    def test_at_checks_even_when_unchecked(self, small_matrix):
        with ndbuf.config.local(checks=CheckConfig.unchecked()):
            with pytest.raises(IndexOutOfBoundsError):
                small_matrix.at(0, 3)
            assert small_matrix.at(1, 1) == 5

    def test_unchecked_write(self, small_matrix):
        small_matrix.set_unchecked(1, 1, 50)
        assert small_matrix[1, 1] == 50

    def test_not_iterable(self, small_matrix):
        with pytest.raises(TypeError):
            iter(small_matrix)
        with pytest.raises(TypeError):
            list(small_matrix)


class TestArray2DResize:
    """Test resize semantics."""

    def test_same_shape_is_noop(self, small_matrix):
        ptr = small_matrix.ptr
        small_matrix.resize(2, 3, 0)
        assert small_matrix.tolist() == [[1, 2, 3], [4, 5, 6]]
        assert small_matrix.ptr == ptr

    def test_grow_keeps_top_left_block(self, small_matrix):
        small_matrix.resize(3, 4)
        assert small_matrix.shape == (3, 4)
        assert small_matrix.tolist()[0][:3] == [1, 2, 3]
        assert small_matrix.tolist()[1][:3] == [4, 5, 6]

    def test_grow_with_value_sets_every_element(self, small_matrix):
        small_matrix.resize(3, 4, 0)
        assert small_matrix.tolist() == [[0] * 4] * 3

    def test_shrink(self, small_matrix):
        small_matrix.resize(1, 2)
        assert small_matrix.tolist() == [[1, 2]]

    def test_reshape_with_value(self, small_matrix):
        small_matrix.resize(3, 2, -1)
        assert small_matrix.tolist() == [[-1, -1], [-1, -1], [-1, -1]]

    def test_allocation_failure_leaves_state(self, small_matrix, monkeypatch):
        def fail(*args, **kwargs):
            raise MemoryError("out of memory")

        monkeypatch.setattr(_provider, "create", fail)
        with pytest.raises(MemoryError):
            small_matrix.resize(4, 4, 0)
        assert small_matrix.shape == (2, 3)
        assert small_matrix.tolist() == [[1, 2, 3], [4, 5, 6]]
        assert small_matrix.is_current

    def test_resize_from_empty(self):
        m = Array2D(dtype='int32')
        m.resize(2, 2, 1)
        assert m.tolist() == [[1, 1], [1, 1]]

    def test_resize_to_empty(self, small_matrix):
        small_matrix.resize(0, 3)
        assert small_matrix.is_empty
        assert small_matrix.shape == (0, 3)

    def test_resize_updates_flat_index(self, small_matrix):
        small_matrix.resize(2, 5)
        assert small_matrix.flat_index(1, 0) == 5
        assert small_matrix[1, 0] == 4


class TestArray2DValueSemantics:
    """Test copy / move / swap and host boundary."""

    def test_copy_is_deep(self, small_matrix):
        other = small_matrix.copy()
        assert other == small_matrix
        other[0, 0] = 0
        assert small_matrix[0, 0] == 1

    def test_assign(self, small_matrix):
        target = Array2D(1, 1, dtype='int64')
        target.assign(small_matrix)
        assert target.shape == (2, 3)
        assert target == small_matrix

    def test_assign_from_array1d(self, small_matrix):
        with pytest.raises(TypeError):
            small_matrix.assign(ndbuf.Array1D(3, dtype='int64'))

    def test_move_from(self, small_matrix):
        target = Array2D(dtype='int64')
        target.move_from(small_matrix)
        assert target.shape == (2, 3)
        assert small_matrix.shape == (0, 0)

    def test_swap(self, small_matrix):
        other = Array2D(1, 1, 0, dtype='int64')
        small_matrix.swap(other)
        assert small_matrix.shape == (1, 1)
        assert other.tolist() == [[1, 2, 3], [4, 5, 6]]

    def test_equality(self, small_matrix):
        assert small_matrix != Array2D.from_rows([[1, 2], [3, 4], [5, 6]], dtype='int64')
        assert small_matrix != Array2D.from_rows([[1, 2, 3], [4, 5, 6]], dtype='int32')
        changed = small_matrix.copy()
        changed[1, 2] = 0
        assert small_matrix != changed
        assert Array2D() == Array2D()

    def test_get_wrappee(self, small_matrix):
        host = small_matrix.get_wrappee().array
        assert host.shape == (2, 3)
        host[0, 0] = 100
        assert small_matrix[0, 0] == 100

    def test_stale_view(self, small_matrix):
        small_matrix.get_wrappee().replace(np.zeros((4, 4), dtype=np.int64))
        with pytest.raises(StaleViewError):
            _ = small_matrix[0, 0]
        small_matrix.refresh()
        assert small_matrix.shape == (4, 4)
        assert small_matrix[3, 3] == 0

    def test_repr(self, small_matrix):
        assert repr(small_matrix) == 'Array2D([[1, 2, 3], [4, 5, 6]], dtype=int64)'
