"""
Two-Dimensional Array Adaptor

Row-major matrix view over a host numpy buffer. Shares the lifecycle of
``Array1D`` but caches row and column counts instead of a length.

No iterators are exposed; the surface will be revisited together with
N-dimensional support.
"""

import operator
from typing import Any, Iterable, List, Optional, Tuple

import numpy as np

from ._base import BufferAdaptorBase, _check_extent
from ._config import config
from ._dtypes import DTypeLike
from ._errors import IndexOutOfBoundsError, LayoutError
from ._provider import BufferView

__all__ = ['Array2D']


class Array2D(BufferAdaptorBase):
    """
    Contiguous row-major two-dimensional adaptor.

    Element ``(i, j)`` lives at flat offset ``i * nb_col + j``.

    Args:
        rows: Number of rows; None (with cols None) builds an empty adaptor
        cols: Number of columns
        value: Initial value of every element
        dtype: Element type

    Example:
        >>> m = Array2D(2, 3, 0, dtype='int64')
        >>> m[1, 2] = 7
        >>> m.flat_index(1, 2)
        5
        >>> m.tolist()
        [[0, 0, 0], [0, 0, 7]]
    """

    _ndim = 2

    def __init__(self, rows: Optional[int] = None, cols: Optional[int] = None,
                 value: Any = None, *, dtype: DTypeLike = 'float64'):
        self._init_dtype(dtype)
        self._reset()
        if rows is None and cols is None:
            return
        if rows is None or cols is None:
            raise TypeError("Array2D needs both rows and cols")
        shape = (_check_extent(rows, "rows"), _check_extent(cols, "cols"))
        self._adopt(self._allocate(shape))
        if value is not None:
            self.fill(value)

    # -------------------------------------------------------------------------
    # View Cache
    # -------------------------------------------------------------------------

    def _strides_for(self, shape) -> Tuple[int, ...]:
        return (shape[1] * self._itemsize, self._itemsize)

    def _cache_view(self, view: BufferView) -> None:
        self._ptr = self._pointer_from(view)
        if view.ndim == 0:
            self._rows, self._cols = 0, 0
        elif view.ndim == 1:
            self._rows, self._cols = view.shape[0], 1
        else:
            self._rows = view.shape[0]
            self._cols = int(np.prod(view.shape[1:]))

    @property
    def nb_row(self) -> int:
        return self._rows

    @property
    def nb_col(self) -> int:
        return self._cols

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._rows, self._cols)

    @property
    def size(self) -> int:
        return self._rows * self._cols

    # Not iterable: Python would otherwise fall back to __getitem__(0), ...
    __iter__ = None

    # -------------------------------------------------------------------------
    # Alternate Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[Any]], dtype: DTypeLike = 'float64') -> 'Array2D':
        """Create adaptor holding a copy of ``rows`` (equal lengths required)."""
        rows = [list(r) for r in rows]
        lengths = {len(r) for r in rows}
        if len(lengths) > 1:
            raise LayoutError(f"rows have different lengths: {sorted(lengths)}")
        nb_col = lengths.pop() if lengths else 0
        arr = cls(len(rows), nb_col, dtype=dtype)
        if arr.size:
            arr._as_ndarray()[...] = rows
        return arr

    # -------------------------------------------------------------------------
    # Element Access
    # -------------------------------------------------------------------------

    def flat_index(self, i: int, j: int) -> int:
        """Offset of ``(i, j)`` from the first element."""
        return i * self._cols + j

    def _index(self, key, force_bounds: bool = False) -> int:
        self._check_current()
        try:
            i, j = key
        except (TypeError, ValueError):
            raise TypeError(f"Array2D indices must be (row, col), got {key!r}") from None
        i, j = operator.index(i), operator.index(j)
        if i < 0:
            i += self._rows
        if j < 0:
            j += self._cols
        if (force_bounds or config.checks.bounds) and not (
                0 <= i < self._rows and 0 <= j < self._cols):
            raise IndexOutOfBoundsError(
                f"Index {tuple(key)} out of bounds for shape {self.shape}"
            )
        return self.flat_index(i, j)

    def __getitem__(self, key):
        return self._ptr[self._index(key)]

    def __setitem__(self, key, value) -> None:
        self._ptr[self._index(key)] = value

    def at(self, i: int, j: int) -> Any:
        """Element ``(i, j)``, bounds checked whatever the configuration."""
        return self._ptr[self._index((i, j), force_bounds=True)]

    def unchecked(self, i: int, j: int) -> Any:
        """Element ``(i, j)`` read straight from the cached pointer."""
        return self._ptr[self.flat_index(i, j)]

    def set_unchecked(self, i: int, j: int, value: Any) -> None:
        """Write element ``(i, j)`` straight through the cached pointer."""
        self._ptr[self.flat_index(i, j)] = value

    # -------------------------------------------------------------------------
    # Size Changes
    # -------------------------------------------------------------------------

    def resize(self, rows: int, cols: int, value: Any = None) -> None:
        """
        Change the shape.

        Same-shape resize does nothing, even with ``value``. Otherwise a
        new buffer is allocated. With ``value`` every element is set to
        it; without, the overlapping top-left block is kept and the rest
        is uninitialized. If allocation fails the adaptor is left
        untouched.
        """
        shape = (_check_extent(rows, "rows"), _check_extent(cols, "cols"))
        if shape == self.shape:
            return
        keep_r = min(shape[0], self._rows)
        keep_c = min(shape[1], self._cols)
        keep = value is None and keep_r and keep_c
        if keep:
            self._check_current()
        handle = self._allocate(shape)
        new = handle.array
        if value is not None:
            new[...] = value
        elif keep:
            new[:keep_r, :keep_c] = self._as_ndarray()[:keep_r, :keep_c]
        self._adopt(handle)

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def tolist(self) -> List[List[Any]]:
        """Convert to nested Python lists, one per row."""
        self._check_current()
        return self._as_ndarray().tolist()

    def __eq__(self, other):
        if not isinstance(other, Array2D):
            return NotImplemented
        if self._dtype != other._dtype or self.shape != other.shape:
            return False
        self._check_current()
        other._check_current()
        return bool((self._as_ndarray() == other._as_ndarray()).all())

    def __repr__(self) -> str:
        return f"Array2D({self.tolist()}, dtype={self._dtype})"

    __hash__ = None
