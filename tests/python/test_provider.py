"""
Tests for the buffer provider (handles, views, tokens, allocation).
"""

import numpy as np
import pytest

from ndbuf import (
    BufferHandle,
    BufferView,
    LayoutError,
    StaleViewError,
    TypeMismatchError,
    create,
)
from ndbuf._provider import contiguous_strides


class TestBufferView:
    """Test view snapshots."""

    def test_view_of_1d_array(self, host_array, host_handle):
        view = host_handle.request_view()
        assert isinstance(view, BufferView)
        assert view.ptr == host_array.ctypes.data
        assert view.itemsize == 8
        assert view.format == 'float64'
        assert view.ndim == 1
        assert view.shape == (6,)
        assert view.strides == (8,)
        assert view.size == 6

    def test_view_of_2d_array(self):
        handle = BufferHandle(np.zeros((2, 3), dtype=np.int32))
        view = handle.request_view()
        assert view.shape == (2, 3)
        assert view.strides == (12, 4)
        assert view.format == 'int32'

    def test_null_view(self):
        view = BufferHandle.null().request_view()
        assert view.is_null
        assert view.ptr == 0
        assert view.ndim == 0
        assert view.shape == ()
        assert view.size == 0

    def test_repeated_views_are_equal(self, host_handle):
        assert host_handle.request_view() == host_handle.request_view()

    def test_non_native_byte_order_format(self):
        handle = BufferHandle(np.zeros(3, dtype=np.dtype('int32').newbyteorder()))
        assert handle.request_view().format != 'int32'


class TestBufferHandle:
    """Test handle value semantics."""

    def test_rejects_non_ndarray(self):
        with pytest.raises(TypeError):
            BufferHandle([1, 2, 3])

    def test_rejects_read_only_array(self):
        with pytest.raises(LayoutError):
            BufferHandle(np.frombuffer(b"\x00" * 16, dtype=np.float64))
        frozen = np.zeros(3)
        frozen.flags.writeable = False
        with pytest.raises(LayoutError):
            BufferHandle(frozen)

    def test_replace_rejects_read_only_array(self, host_handle):
        frozen = np.zeros(3)
        frozen.flags.writeable = False
        with pytest.raises(LayoutError):
            host_handle.replace(frozen)
        assert host_handle.epoch == 0

    def test_share_aliases(self, host_array, host_handle):
        alias = host_handle.share()
        assert alias.shares_with(host_handle)
        assert alias.array is host_array

    def test_copy_duplicates(self, host_array, host_handle):
        dup = host_handle.copy()
        assert not dup.shares_with(host_handle)
        dup.array[0] = 100.0
        assert host_array[0] == 0.0
        np.testing.assert_array_equal(dup.array[1:], host_array[1:])

    def test_copy_of_null(self):
        assert BufferHandle.null().copy().is_null

    def test_replace_bumps_epoch_for_all_sharers(self, host_handle):
        alias = host_handle.share()
        assert host_handle.epoch == 0
        alias.replace(np.zeros(2))
        assert host_handle.epoch == 1
        assert host_handle.request_view().shape == (2,)
        assert host_handle.request_view().epoch == 1

    def test_copy_does_not_follow_replace(self, host_handle):
        dup = host_handle.copy()
        host_handle.replace(np.zeros(2))
        assert dup.epoch == 0
        assert dup.request_view().shape == (6,)

    def test_repr(self, host_handle):
        assert 'shape=(6,)' in repr(host_handle)
        assert repr(BufferHandle.null()) == 'BufferHandle(null)'


class TestViewToken:
    """Test epoch tokens."""

    def test_token_current_until_replace(self, host_handle):
        token = host_handle.token()
        assert token.is_current
        token.validate()
        host_handle.replace(np.ones(6))
        assert not token.is_current
        with pytest.raises(StaleViewError):
            token.validate()

    def test_token_keeps_array_alive(self):
        handle = BufferHandle(np.arange(4.0))
        view = handle.request_view()
        token = handle.token()
        handle.replace(None)
        assert token._keepalive is not None
        assert token._keepalive.ctypes.data == view.ptr


class TestCreate:
    """Test allocation through the provider."""

    def test_create_1d(self):
        handle = create(4, 'int32', (5,), (4,))
        view = handle.request_view()
        assert view.shape == (5,)
        assert view.strides == (4,)
        assert view.format == 'int32'

    def test_create_2d_row_major(self):
        handle = create(8, 'float64', (3, 4), (32, 8))
        view = handle.request_view()
        assert view.shape == (3, 4)
        assert view.strides == (32, 8)

    def test_create_padded_strides(self):
        handle = create(8, 'float64', (3, 4), (48, 8))
        view = handle.request_view()
        assert view.strides == (48, 8)
        handle.array[2, 3] = 1.0
        assert handle.array[2, 3] == 1.0

    def test_create_zero_length(self):
        handle = create(8, 'float64', (0,), (8,))
        assert handle.request_view().size == 0

    def test_create_itemsize_mismatch(self):
        with pytest.raises(TypeMismatchError):
            create(4, 'float64', (3,), (4,))

    def test_create_rank_mismatch(self):
        with pytest.raises(LayoutError):
            create(8, 'float64', (3, 2), (8,))

    def test_create_negative_extent(self):
        with pytest.raises(LayoutError):
            create(8, 'float64', (-1,), (8,))

    def test_create_unknown_type(self):
        with pytest.raises(ValueError):
            create(16, 'complex128', (2,), (16,))

    def test_contiguous_strides(self):
        assert contiguous_strides((3, 4), 8) == (32, 8)
        assert contiguous_strides((5,), 4) == (4,)
        assert contiguous_strides((2, 3, 4), 1) == (12, 4, 1)
