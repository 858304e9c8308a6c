"""
ndbuf - Sequence Adaptors over Foreign Numeric Buffers

Container adaptors that present a host-owned numpy buffer as a
random-access sequence with value semantics:

- Array1D: contiguous 1-D sequence with C++-style random-access iterators
- Array2D: contiguous row-major matrix
- Buffer provider: handles, layout views and epoch tokens that detect use
  of a cached pointer after the host rebound the buffer
- Reusable random-access iterator base for new contiguous adaptors

Architecture:
    ┌──────────────────────────────────────────────┐
    │          Array1D / Array2D (adaptors)         │
    │   cached pointer + extents, refreshed on      │
    │   every handle replacement                    │
    ├──────────────────────────────────────────────┤
    │  BufferHandle ── request_view() ──> BufferView│
    │  (numpy ndarray owned by the host runtime)    │
    └──────────────────────────────────────────────┘

Example:
    >>> import ndbuf
    >>> a = ndbuf.Array1D(5, 0, dtype='int32')
    >>> a[:] = [1, 2, 3, 4, 5]
    >>> a.resize(3)
    >>> a.rbegin().value
    3
    >>> ndbuf.distance(a.begin(), a.end())
    3
    >>> host = a.get_wrappee().array  # hand the buffer back to numpy
"""

__version__ = '0.1.0'

from ._array1d import Array1D
from ._array2d import Array2D
from ._base import BufferAdaptorBase
from ._config import CheckConfig, NdbufConfig, config, get_config, set_checks
from ._dtypes import (
    DType,
    float32,
    float64,
    int8,
    int16,
    int32,
    int64,
    normalize_dtype,
    type_tag_of,
    uint8,
    uint16,
    uint32,
    uint64,
    validate_dtype,
)
from ._errors import (
    EmptyContainerError,
    IndexOutOfBoundsError,
    InvalidIteratorError,
    LayoutError,
    NdbufError,
    StaleViewError,
    TypeMismatchError,
)
from ._iterator import (
    ContiguousIterator,
    RandomAccessIteratorBase,
    ReverseIterator,
    distance,
    iter_range,
)
from ._provider import BufferHandle, BufferView, ViewToken, create

__all__ = [
    # Version
    '__version__',

    # Adaptors
    'Array1D',
    'Array2D',
    'BufferAdaptorBase',

    # Iterators
    'RandomAccessIteratorBase',
    'ContiguousIterator',
    'ReverseIterator',
    'distance',
    'iter_range',

    # Buffer provider
    'BufferHandle',
    'BufferView',
    'ViewToken',
    'create',
    'type_tag_of',

    # Type constants
    'DType',
    'int8',
    'int16',
    'int32',
    'int64',
    'uint8',
    'uint16',
    'uint32',
    'uint64',
    'float32',
    'float64',
    'normalize_dtype',
    'validate_dtype',

    # Configuration
    'CheckConfig',
    'NdbufConfig',
    'config',
    'get_config',
    'set_checks',

    # Errors
    'NdbufError',
    'IndexOutOfBoundsError',
    'EmptyContainerError',
    'InvalidIteratorError',
    'LayoutError',
    'TypeMismatchError',
    'StaleViewError',
]
