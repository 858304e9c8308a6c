"""
Adaptor Base Class

Lifecycle shared by the 1-D and 2-D adaptors: adopting a handle, decoding
its view into a typed pointer, and the copy/move/assign operations that
replace the handle. Element access and addressing stay in the concrete
classes.

Cache Invariant:

    After every public call returns, the cached pointer and shape match the
    view of the current handle as it was at adoption time. Any operation
    that replaces the handle refreshes before returning, and refreshes are
    atomic: if the new view fails validation, the adaptor keeps its
    previous handle and cache.

Ownership Model:

    - Copy (``copy()``, ``copy.copy``, ``assign``) deep-copies the buffer.
    - ``from_handle``/``assign_handle``/``from_numpy`` share the buffer
      with the caller; writes are visible on both sides.
    - ``move_from`` transfers the handle and leaves the source empty.
    - ``get_wrappee`` hands a shared handle back to the host.
"""

import ctypes
import logging
import operator
from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple, TypeVar

import numpy as np

from . import _provider
from ._config import config
from ._dtypes import DTypeLike, ctype_of, numpy_dtype_of, type_tag_of, validate_dtype
from ._errors import LayoutError, TypeMismatchError
from ._provider import BufferHandle, BufferView

__all__ = ['BufferAdaptorBase']

logger = logging.getLogger("ndbuf.array")

A = TypeVar('A', bound='BufferAdaptorBase')


def _check_extent(n, what: str) -> int:
    n = operator.index(n)
    if n < 0:
        raise ValueError(f"{what} must be non-negative, got {n}")
    return n


class BufferAdaptorBase(ABC):
    """
    Abstract base for adaptors over a provider handle.

    Required (subclasses must implement):
        _ndim: Rank of the buffers the adaptor adopts
        _strides_for(shape): Byte strides the adaptor allocates with
        _cache_view(view): Store pointer and extents decoded from a view
        shape: Current extents
    """

    _ndim: int = 0

    # =========================================================================
    # Construction Helpers
    # =========================================================================

    def _init_dtype(self, dtype: DTypeLike) -> None:
        self._dtype = validate_dtype(dtype)
        self._ctype = ctype_of(self._dtype)
        self._itemsize = ctypes.sizeof(self._ctype)
        self._pointer_type = ctypes.POINTER(self._ctype)

    def _reset(self) -> None:
        """Drop the handle and return to the empty state."""
        self._handle = BufferHandle.null()
        self._token = self._handle.token()
        self._cache_view(self._handle.request_view())

    @classmethod
    def _new(cls, dtype: DTypeLike):
        obj = cls.__new__(cls)
        obj._init_dtype(dtype)
        obj._reset()
        return obj

    def _allocate(self, shape: Tuple[int, ...]) -> BufferHandle:
        return _provider.create(
            self._itemsize,
            type_tag_of(self._dtype),
            shape,
            self._strides_for(shape),
        )

    # =========================================================================
    # View Refresh
    # =========================================================================

    @abstractmethod
    def _strides_for(self, shape: Sequence[int]) -> Tuple[int, ...]:
        ...

    @abstractmethod
    def _cache_view(self, view: BufferView) -> None:
        ...

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, ...]:
        ...

    @property
    def size(self) -> int:
        """Total number of elements."""
        return int(np.prod(self.shape))

    @property
    def is_empty(self) -> bool:
        return self.size == 0

    def _pointer_from(self, view: BufferView):
        if view.ptr == 0:
            return None
        return ctypes.cast(view.ptr, self._pointer_type)

    def _validate_view(self, view: BufferView) -> None:
        if view.is_null:
            return
        if view.ndim != self._ndim:
            raise LayoutError(
                f"{type(self).__name__} requires a rank-{self._ndim} buffer, got rank {view.ndim}"
            )
        if view.format != self._dtype:
            raise TypeMismatchError(
                f"{type(self).__name__} of {self._dtype} cannot adopt a buffer of {view.format}"
            )
        if view.size == 0:
            return
        expected = self._strides_for(view.shape)
        for extent, actual, wanted in zip(view.shape, view.strides, expected):
            # Strides over a single-element axis are never used for addressing
            if extent > 1 and actual != wanted:
                raise LayoutError(
                    f"{type(self).__name__} requires contiguous strides {expected}, "
                    f"got {view.strides}"
                )

    def _checked_view(self, handle: BufferHandle) -> BufferView:
        """View of ``handle``, validated when layout checks are enabled."""
        view = handle.request_view()
        if config.checks.layout:
            self._validate_view(view)
        return view

    def _adopt(self, handle: BufferHandle, view: Optional[BufferView] = None) -> None:
        """Make ``handle`` current and refresh the cache from its view."""
        if view is None:
            view = self._checked_view(handle)
        self._handle = handle
        self._token = handle.token()
        self._cache_view(view)
        logger.debug("%s refreshed: shape=%s epoch=%d",
                     type(self).__name__, view.shape, view.epoch)

    def _check_current(self) -> None:
        if config.checks.stale_views:
            self._token.validate()

    def refresh(self) -> None:
        """Re-decode the current handle after the host rebound its buffer."""
        self._adopt(self._handle)

    @property
    def is_current(self) -> bool:
        """Whether the cached view still matches the handle."""
        return self._token.is_current

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def dtype(self) -> str:
        """Element type name."""
        return self._dtype

    @property
    def itemsize(self) -> int:
        """Bytes per element."""
        return self._itemsize

    @property
    def nbytes(self) -> int:
        """Total bytes."""
        return self.size * self._itemsize

    @property
    def ptr(self) -> int:
        """Address of the first element (0 when empty-handled)."""
        if self._ptr is None:
            return 0
        return ctypes.cast(self._ptr, ctypes.c_void_p).value or 0

    def _as_ndarray(self) -> np.ndarray:
        """ndarray over the cached pointer (no copy, not owning)."""
        if self._ptr is None or self.size == 0:
            return np.empty(self.shape, dtype=numpy_dtype_of(self._dtype))
        return np.ctypeslib.as_array(self._ptr, shape=self.shape)

    # =========================================================================
    # Alternate Constructors
    # =========================================================================

    @classmethod
    def from_handle(cls, handle: BufferHandle, dtype: Optional[DTypeLike] = None) -> A:
        """
        Wrap an existing handle, sharing its buffer.

        Args:
            handle: Provider handle
            dtype: Element type; inferred from the handle when omitted
        """
        if not isinstance(handle, BufferHandle):
            raise TypeError(f"expected BufferHandle, got {type(handle).__name__}")
        if dtype is None:
            view = handle.request_view()
            dtype = view.format if not view.is_null else 'float64'
            try:
                dtype = validate_dtype(dtype)
            except ValueError as e:
                raise TypeMismatchError(str(e)) from e
        obj = cls._new(dtype)
        obj._adopt(handle)
        return obj

    @classmethod
    def from_numpy(cls, array: np.ndarray, dtype: Optional[DTypeLike] = None) -> A:
        """
        Wrap a numpy array without copying.

        Writes through the adaptor are visible in ``array`` and vice versa.
        """
        if not isinstance(array, np.ndarray):
            raise TypeError(f"expected numpy.ndarray, got {type(array).__name__}")
        return cls.from_handle(BufferHandle(array), dtype)

    # =========================================================================
    # Copy / Move / Assign
    # =========================================================================

    def _check_compatible(self, other: 'BufferAdaptorBase') -> None:
        if not isinstance(other, type(self)):
            raise TypeError(f"expected {type(self).__name__}, got {type(other).__name__}")
        if other._dtype != self._dtype:
            raise TypeMismatchError(
                f"cannot assign {other._dtype} {type(other).__name__} to {self._dtype}"
            )

    def copy(self: A) -> A:
        """Create a deep copy."""
        new = type(self)._new(self._dtype)
        new._adopt(self._handle.copy())
        return new

    def __copy__(self):
        return self.copy()

    def __deepcopy__(self, memo):
        return self.copy()

    def assign(self: A, other: A) -> A:
        """Replace contents with a deep copy of ``other``."""
        self._check_compatible(other)
        if other is not self:
            self._adopt(other._handle.copy())
        return self

    def assign_handle(self: A, handle: BufferHandle) -> A:
        """Adopt ``handle``, sharing its buffer."""
        if not isinstance(handle, BufferHandle):
            raise TypeError(f"expected BufferHandle, got {type(handle).__name__}")
        self._adopt(handle)
        return self

    def move_from(self: A, other: A) -> A:
        """Take over the handle of ``other`` and leave ``other`` empty."""
        self._check_compatible(other)
        if other is not self:
            self._adopt(other._handle)
            other._reset()
        return self

    def swap(self, other: 'BufferAdaptorBase') -> None:
        """Exchange handles with ``other``."""
        self._check_compatible(other)
        mine, theirs = self._handle, other._handle
        # Validate both sides before either adaptor changes
        their_view = self._checked_view(theirs)
        my_view = other._checked_view(mine)
        self._adopt(theirs, their_view)
        other._adopt(mine, my_view)

    def get_wrappee(self) -> BufferHandle:
        """Shared handle on the underlying buffer, for return to the host."""
        return self._handle.share()

    def to_numpy(self) -> np.ndarray:
        """The host array itself (an empty array when no buffer is held)."""
        arr = self._handle.array
        if arr is None:
            return np.empty(self.shape, dtype=numpy_dtype_of(self._dtype))
        return arr

    def fill(self, value) -> None:
        """Set every element to ``value``."""
        if self.size:
            self._check_current()
            self._as_ndarray()[...] = value

    __hash__ = None
