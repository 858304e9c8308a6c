"""Buffer Provider.

This module is the boundary between the adaptors and the host runtime
that owns the memory. Host arrays are numpy ndarrays; the adaptors never
touch them directly but go through a ``BufferHandle``.

Key Concepts:
    - Handle: A reference to a host array. Copying a handle with
      ``share()`` aliases the same array; ``copy()`` duplicates it.
    - View: A snapshot of the array layout (address, shape, strides).
      A view is only valid until the handle is rebound.
    - Epoch: Every handle slot carries a counter bumped by ``replace()``.
      A ``ViewToken`` remembers the epoch it was taken at, which turns
      use of a stale view into a detectable fault.

Example:
    >>> handle = create(8, 'float64', (4,), (8,))
    >>> view = handle.request_view()
    >>> view.shape
    (4,)
    >>> alias = handle.share()
    >>> alias.replace(np.zeros(2))
    >>> handle.request_view().shape
    (2,)
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple

import numpy as np

from ._dtypes import numpy_dtype_of, type_tag_of
from ._errors import LayoutError, StaleViewError, TypeMismatchError

__all__ = [
    'BufferView',
    'BufferHandle',
    'ViewToken',
    'create',
    'contiguous_strides',
    'type_tag_of',
]

logger = logging.getLogger("ndbuf.provider")


# =============================================================================
# View
# =============================================================================

@dataclass(frozen=True)
class BufferView:
    """Layout snapshot of a host array.

    Attributes:
        ptr: Address of the first element (0 for a null handle).
        itemsize: Bytes per element.
        format: Type tag of the elements.
        ndim: Rank.
        shape: Extent per dimension.
        strides: Byte stride per dimension.
        epoch: Slot epoch the view was taken at.
    """
    ptr: int
    itemsize: int
    format: str
    ndim: int
    shape: Tuple[int, ...]
    strides: Tuple[int, ...]
    epoch: int = 0

    @property
    def size(self) -> int:
        """Number of elements (0 for a null view)."""
        if self.ndim == 0:
            return 0
        return int(np.prod(self.shape))

    @property
    def is_null(self) -> bool:
        return self.ptr == 0 and self.ndim == 0


_NULL_FORMAT = ''


# =============================================================================
# Handle
# =============================================================================

class _Slot:
    """Shared state behind aliasing handles."""

    __slots__ = ('array', 'epoch')

    def __init__(self, array: Optional[np.ndarray]):
        self.array = array
        self.epoch = 0


def _check_host_array(array: Optional[np.ndarray]) -> None:
    if array is None:
        return
    if not isinstance(array, np.ndarray):
        raise TypeError(f"BufferHandle wraps numpy.ndarray, got {type(array).__name__}")
    if not array.flags.writeable:
        raise LayoutError("BufferHandle requires a writeable array")


class BufferHandle:
    """Reference to a host-managed array.

    A null handle (``BufferHandle()``) refers to no array and yields an
    empty view. Read-only arrays are rejected with LayoutError, since
    adaptors write through the raw pointer.

    Attributes:
        _slot: Shared slot holding the array and its epoch.
    """

    __slots__ = ('_slot',)

    def __init__(self, array: Optional[np.ndarray] = None):
        _check_host_array(array)
        self._slot = _Slot(array)

    @classmethod
    def null(cls) -> 'BufferHandle':
        """Handle referring to no array."""
        return cls()

    @classmethod
    def _from_slot(cls, slot: _Slot) -> 'BufferHandle':
        handle = cls.__new__(cls)
        handle._slot = slot
        return handle

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def is_null(self) -> bool:
        return self._slot.array is None

    @property
    def epoch(self) -> int:
        """Number of times the slot was rebound."""
        return self._slot.epoch

    @property
    def array(self) -> Optional[np.ndarray]:
        """The host array itself (None for a null handle)."""
        return self._slot.array

    # -------------------------------------------------------------------------
    # Provider Contract
    # -------------------------------------------------------------------------

    def request_view(self) -> BufferView:
        """Describe the current layout of the array.

        Repeated calls on an unmutated handle return equal views.
        """
        arr = self._slot.array
        if arr is None:
            return BufferView(0, 0, _NULL_FORMAT, 0, (), (), self._slot.epoch)
        dtype = arr.dtype
        fmt = dtype.name if dtype.isnative else dtype.str
        return BufferView(
            ptr=arr.__array_interface__['data'][0],
            itemsize=dtype.itemsize,
            format=fmt,
            ndim=arr.ndim,
            shape=tuple(int(n) for n in arr.shape),
            strides=tuple(int(s) for s in arr.strides),
            epoch=self._slot.epoch,
        )

    def token(self) -> 'ViewToken':
        """Token bound to the current epoch of this handle."""
        return ViewToken(self._slot, self._slot.epoch, self._slot.array)

    def share(self) -> 'BufferHandle':
        """Second handle on the same array (reference semantics)."""
        return BufferHandle._from_slot(self._slot)

    def copy(self) -> 'BufferHandle':
        """Handle on a deep copy of the array (value semantics)."""
        arr = self._slot.array
        if arr is None:
            return BufferHandle()
        logger.debug("Copying buffer: shape=%s dtype=%s", arr.shape, arr.dtype)
        return BufferHandle(arr.copy(order='K'))

    def replace(self, array: Optional[np.ndarray]) -> None:
        """Rebind every handle sharing this slot to ``array``.

        Models the host runtime reallocating the buffer. Views and tokens
        taken before the call become stale.
        """
        _check_host_array(array)
        self._slot.array = array
        self._slot.epoch += 1
        logger.debug("Buffer rebound: epoch=%d", self._slot.epoch)

    def shares_with(self, other: 'BufferHandle') -> bool:
        """Whether both handles alias the same slot."""
        return self._slot is other._slot

    def __repr__(self) -> str:
        arr = self._slot.array
        if arr is None:
            return "BufferHandle(null)"
        return f"BufferHandle(shape={arr.shape}, dtype={arr.dtype}, epoch={self._slot.epoch})"


# =============================================================================
# View Token
# =============================================================================

class ViewToken:
    """Ties a cached pointer to the epoch it was decoded at.

    The token also keeps the viewed array alive, so a pointer decoded from
    it never points into freed memory even after the slot was rebound.
    """

    __slots__ = ('_slot', '_epoch', '_keepalive')

    def __init__(self, slot: _Slot, epoch: int, keepalive: Any = None):
        self._slot = slot
        self._epoch = epoch
        self._keepalive = keepalive

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_current(self) -> bool:
        return self._slot.epoch == self._epoch

    def validate(self) -> None:
        """Raise StaleViewError if the slot was rebound since the token was taken."""
        if self._slot.epoch != self._epoch:
            raise StaleViewError(
                f"Buffer was rebound (view epoch {self._epoch}, "
                f"buffer epoch {self._slot.epoch}); call refresh()"
            )


# =============================================================================
# Allocation
# =============================================================================

def contiguous_strides(shape: Sequence[int], itemsize: int) -> Tuple[int, ...]:
    """Row-major strides without padding: ``[prod(shape[1:])*itemsize, ..., itemsize]``."""
    strides = []
    step = itemsize
    for extent in reversed(shape):
        strides.append(step)
        step *= extent
    return tuple(reversed(strides))


def create(
    itemsize: int,
    type_tag: str,
    shape: Sequence[int],
    strides: Sequence[int],
) -> BufferHandle:
    """Allocate an uninitialized host array.

    Args:
        itemsize: Bytes per element; must match ``type_tag``.
        type_tag: Element type tag (see ``type_tag_of``).
        shape: Extent per dimension.
        strides: Byte stride per dimension, computed by the caller.

    Returns:
        Handle on the new array.

    Raises:
        LayoutError: If shape and strides disagree in rank, or an extent
            or stride is negative.
        TypeMismatchError: If itemsize does not match type_tag.
        MemoryError: Propagated unchanged from numpy.
    """
    dtype = numpy_dtype_of(type_tag)
    if dtype.itemsize != itemsize:
        raise TypeMismatchError(
            f"itemsize {itemsize} does not match type tag {type_tag!r} ({dtype.itemsize})"
        )
    shape = tuple(int(n) for n in shape)
    strides = tuple(int(s) for s in strides)
    if len(shape) != len(strides):
        raise LayoutError(f"shape {shape} and strides {strides} differ in rank")
    if any(n < 0 for n in shape):
        raise LayoutError(f"negative extent in shape {shape}")
    if any(s < 0 for s in strides):
        raise LayoutError(f"negative stride in {strides}")

    if 0 in shape or strides == contiguous_strides(shape, itemsize):
        # Strides of an array holding no element carry no information;
        # numpy picks its own for those.
        arr = np.empty(shape, dtype=dtype, order='C')
    else:
        nbytes = sum((n - 1) * s for n, s in zip(shape, strides)) + itemsize
        raw = np.empty(nbytes, dtype=np.uint8)
        arr = np.ndarray(shape, dtype=dtype, buffer=raw, strides=strides)

    logger.debug("Allocated buffer: shape=%s strides=%s dtype=%s", shape, strides, dtype.name)
    return BufferHandle(arr)
