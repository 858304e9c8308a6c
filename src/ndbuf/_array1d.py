"""
One-Dimensional Array Adaptor

Presents a host numpy buffer as a fixed-size random-access sequence with
value semantics.

Access Paths:

    a[i], a[i] = v          Checked (bounds and stale view, per config);
                            negative indices count from the end
    a.at(i)                 Always bounds checked
    a.unchecked(i)          Raw pointer read, no validation at all
    a.set_unchecked(i, v)   Raw pointer write, no validation at all

Example:
    >>> a = Array1D(5, 0, dtype='int32')
    >>> for i in range(5):
    ...     a[i] = i + 1
    >>> a.resize(3)
    >>> a.tolist()
    [1, 2, 3]
    >>> (a.begin() + 1).value
    2
"""

import operator
from collections.abc import Sequence
from typing import Any, Iterable, Iterator, List, Optional, Tuple

from ._base import BufferAdaptorBase, _check_extent
from ._config import config
from ._dtypes import DTypeLike
from ._errors import EmptyContainerError, IndexOutOfBoundsError
from ._iterator import (
    ContiguousIterator,
    RandomAccessIteratorBase,
    ReverseIterator,
    distance,
    iter_range,
)
from ._provider import BufferView

__all__ = ['Array1D']


class Array1D(BufferAdaptorBase, Sequence):
    """
    Contiguous one-dimensional adaptor over a provider buffer.

    Args:
        size: Number of elements; None builds an empty adaptor with no buffer
        value: Initial value of every element (contents are uninitialized
            when omitted)
        dtype: Element type

    Attributes:
        size (int): Number of elements
        dtype (str): Element type name
        nbytes (int): Total bytes

    Example:
        >>> a = Array1D(3, 1.5)
        >>> list(a)
        [1.5, 1.5, 1.5]
        >>> b = a.copy()
        >>> b[0] = 0.0
        >>> a[0]
        1.5
    """

    _ndim = 1

    def __init__(self, size: Optional[int] = None, value: Any = None, *,
                 dtype: DTypeLike = 'float64'):
        self._init_dtype(dtype)
        self._reset()
        if size is not None:
            self._adopt(self._allocate((_check_extent(size, "size"),)))
            if value is not None:
                self.fill(value)

    # -------------------------------------------------------------------------
    # View Cache
    # -------------------------------------------------------------------------

    def _strides_for(self, shape) -> Tuple[int, ...]:
        return (self._itemsize,)

    def _cache_view(self, view: BufferView) -> None:
        self._ptr = self._pointer_from(view)
        self._size = view.size

    @property
    def shape(self) -> Tuple[int]:
        return (self._size,)

    @property
    def size(self) -> int:
        """Number of elements; never refreshes the view."""
        return self._size

    def __len__(self) -> int:
        return self._size

    # -------------------------------------------------------------------------
    # Alternate Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_range(cls, first: RandomAccessIteratorBase, last: RandomAccessIteratorBase,
                   dtype: DTypeLike = 'float64') -> 'Array1D':
        """Allocate ``distance(first, last)`` elements and copy ``[first, last)``."""
        arr = cls(distance(first, last), dtype=dtype)
        ptr = arr._ptr
        for i, value in enumerate(iter_range(first, last)):
            ptr[i] = value
        return arr

    @classmethod
    def from_iterable(cls, values: Iterable[Any], dtype: DTypeLike = 'float64') -> 'Array1D':
        """Create adaptor holding a copy of ``values``."""
        values = list(values)
        arr = cls(len(values), dtype=dtype)
        if values:
            arr._as_ndarray()[:] = values
        return arr

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def _index(self, idx, force_bounds: bool = False) -> int:
        self._check_current()
        i = operator.index(idx)
        if i < 0:
            i += self._size
        if (force_bounds or config.checks.bounds) and not 0 <= i < self._size:
            raise IndexOutOfBoundsError(f"Index {idx} out of bounds [0, {self._size})")
        return i

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            self._check_current()
            return self._as_ndarray()[idx].tolist()
        return self._ptr[self._index(idx)]

    def __setitem__(self, idx, value) -> None:
        if isinstance(idx, slice):
            self._check_current()
            self._as_ndarray()[idx] = value
            return
        self._ptr[self._index(idx)] = value

    def at(self, i: int) -> Any:
        """Element ``i``, bounds checked whatever the configuration."""
        return self._ptr[self._index(i, force_bounds=True)]

    def unchecked(self, i: int) -> Any:
        """Element ``i`` read straight from the cached pointer.

        ``0 <= i < size`` is the caller's responsibility.
        """
        return self._ptr[i]

    def set_unchecked(self, i: int, value: Any) -> None:
        """Write element ``i`` straight through the cached pointer."""
        self._ptr[i] = value

    def front(self) -> Any:
        """First element."""
        if self._size == 0:
            raise EmptyContainerError("front() on empty Array1D")
        self._check_current()
        return self._ptr[0]

    def back(self) -> Any:
        """Last element."""
        if self._size == 0:
            raise EmptyContainerError("back() on empty Array1D")
        self._check_current()
        return self._ptr[self._size - 1]

    # -------------------------------------------------------------------------
    # Iteration
    # -------------------------------------------------------------------------

    def __iter__(self) -> Iterator[Any]:
        self._check_current()
        ptr = self._ptr
        for i in range(self._size):
            yield ptr[i]

    def __reversed__(self) -> Iterator[Any]:
        self._check_current()
        ptr = self._ptr
        for i in range(self._size - 1, -1, -1):
            yield ptr[i]

    def index(self, value: Any, start: int = 0, stop: Optional[int] = None) -> int:
        """Position of the first element equal to ``value`` in ``[start, stop)``.

        Walks the cached length, so the search stays inside the buffer
        whatever the bounds-check configuration.
        """
        self._check_current()
        start, stop, _ = slice(start, stop).indices(self._size)
        ptr = self._ptr
        for i in range(start, stop):
            if ptr[i] == value:
                return i
        raise ValueError(f"{value!r} is not in Array1D")

    def begin(self) -> ContiguousIterator:
        return ContiguousIterator(self._ptr, 0, token=self._token)

    def end(self) -> ContiguousIterator:
        return ContiguousIterator(self._ptr, self._size, token=self._token)

    def cbegin(self) -> ContiguousIterator:
        return ContiguousIterator(self._ptr, 0, const=True, token=self._token)

    def cend(self) -> ContiguousIterator:
        return ContiguousIterator(self._ptr, self._size, const=True, token=self._token)

    def rbegin(self) -> ReverseIterator:
        return ReverseIterator(self.end())

    def rend(self) -> ReverseIterator:
        return ReverseIterator(self.begin())

    def crbegin(self) -> ReverseIterator:
        return ReverseIterator(self.cend())

    def crend(self) -> ReverseIterator:
        return ReverseIterator(self.cbegin())

    # -------------------------------------------------------------------------
    # Size Changes
    # -------------------------------------------------------------------------

    def resize(self, size: int, value: Any = None) -> None:
        """
        Change the number of elements.

        Resizing to the current size does nothing, even with ``value``.
        Otherwise a new buffer is allocated. With ``value`` every element
        is set to it; without, the first ``min(old, new)`` elements are
        kept and the rest are uninitialized. If allocation fails the
        adaptor is left untouched.
        """
        size = _check_extent(size, "size")
        if size == self._size:
            return
        keep = 0 if value is not None else min(size, self._size)
        if keep:
            self._check_current()
        handle = self._allocate((size,))
        new = handle.array
        if value is not None:
            new[...] = value
        elif keep:
            new[:keep] = self._as_ndarray()[:keep]
        self._adopt(handle)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def tolist(self) -> List[Any]:
        """Convert to Python list."""
        self._check_current()
        return self._as_ndarray().tolist()

    def __eq__(self, other):
        if not isinstance(other, Array1D):
            return NotImplemented
        if self._dtype != other._dtype or self._size != other._size:
            return False
        self._check_current()
        other._check_current()
        return bool((self._as_ndarray() == other._as_ndarray()).all())

    def __repr__(self) -> str:
        if self._size == 0:
            return f"Array1D([], dtype={self._dtype})"
        values = self.tolist()
        if self._size > 6:
            values = values[:3] + ['...'] + values[-3:]
        return f"Array1D({values}, dtype={self._dtype})"

    __hash__ = None
