"""
Data Type Definitions

Maps the element types an adaptor can hold onto their ctypes pointer type,
their numpy dtype and the runtime type tag the buffer provider expects.
"""

import ctypes
from enum import Enum
from typing import Any, Dict, Tuple, Type, Union

import numpy as np

__all__ = [
    'DType',
    'DTypeLike',
    'int8', 'int16', 'int32', 'int64',
    'uint8', 'uint16', 'uint32', 'uint64',
    'float32', 'float64',
    'normalize_dtype',
    'validate_dtype',
    'is_float_dtype',
    'is_int_dtype',
    'dtype_itemsize',
    'ctype_of',
    'numpy_dtype_of',
    'type_tag_of',
]


class DType(Enum):
    """
    Element Type Enumeration.

    Example:
        >>> from ndbuf import Array1D, DType
        >>> arr = Array1D(100, dtype=DType.float32)
        >>>
        >>> # Or use module-level constants
        >>> import ndbuf
        >>> arr = Array1D(100, dtype=ndbuf.int64)
    """

    int8 = 'int8'
    int16 = 'int16'
    int32 = 'int32'
    int64 = 'int64'
    uint8 = 'uint8'
    uint16 = 'uint16'
    uint32 = 'uint32'
    uint64 = 'uint64'
    float32 = 'float32'
    float64 = 'float64'

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"DType.{self.name}"


DTypeLike = Union[str, DType, np.dtype, Type[np.generic]]


# =============================================================================
# Module-Level Constants (For Clean Syntax)
# =============================================================================

int8 = DType.int8
int16 = DType.int16
int32 = DType.int32
int64 = DType.int64
uint8 = DType.uint8
uint16 = DType.uint16
uint32 = DType.uint32
uint64 = DType.uint64
float32 = DType.float32
float64 = DType.float64


# =============================================================================
# Type Mapping
# =============================================================================

# name -> (ctypes_type, itemsize)
_TYPE_MAP: Dict[str, Tuple[Any, int]] = {
    'int8': (ctypes.c_int8, 1),
    'int16': (ctypes.c_int16, 2),
    'int32': (ctypes.c_int32, 4),
    'int64': (ctypes.c_int64, 8),
    'uint8': (ctypes.c_uint8, 1),
    'uint16': (ctypes.c_uint16, 2),
    'uint32': (ctypes.c_uint32, 4),
    'uint64': (ctypes.c_uint64, 8),
    'float32': (ctypes.c_float, 4),
    'float64': (ctypes.c_double, 8),
}


# =============================================================================
# Type Utilities
# =============================================================================

def normalize_dtype(dtype: DTypeLike) -> str:
    """
    Normalize dtype to its canonical string name.

    Accepts DType members, strings, numpy dtypes and numpy scalar types.

    Example:
        >>> normalize_dtype(DType.float32)
        'float32'
        >>> normalize_dtype(np.int64)
        'int64'
    """
    if isinstance(dtype, DType):
        return dtype.value
    if isinstance(dtype, str):
        if dtype in _TYPE_MAP:
            return dtype
        try:
            return np.dtype(dtype).name
        except TypeError:
            raise ValueError(f"Invalid dtype: {dtype!r}") from None
    if isinstance(dtype, np.dtype):
        return dtype.name
    if isinstance(dtype, type) and issubclass(dtype, np.generic):
        return np.dtype(dtype).name
    raise TypeError(f"dtype must be str, DType or numpy dtype, got {type(dtype)}")


def validate_dtype(dtype: DTypeLike) -> str:
    """
    Validate dtype and return its canonical name.

    Raises:
        ValueError: If dtype is not supported
    """
    name = normalize_dtype(dtype)
    if name not in _TYPE_MAP:
        raise ValueError(f"Unsupported dtype: {name}. "
                         f"Supported: {list(_TYPE_MAP.keys())}")
    return name


def is_float_dtype(dtype: DTypeLike) -> bool:
    """Check if dtype is floating point."""
    return normalize_dtype(dtype) in ('float32', 'float64')


def is_int_dtype(dtype: DTypeLike) -> bool:
    """Check if dtype is integer."""
    name = normalize_dtype(dtype)
    return name in _TYPE_MAP and not is_float_dtype(name)


def dtype_itemsize(dtype: DTypeLike) -> int:
    """Size in bytes of one element."""
    return _TYPE_MAP[validate_dtype(dtype)][1]


def ctype_of(dtype: DTypeLike):
    """ctypes scalar type used to address elements of ``dtype``."""
    return _TYPE_MAP[validate_dtype(dtype)][0]


def numpy_dtype_of(dtype: DTypeLike) -> np.dtype:
    """Native-endian numpy dtype for ``dtype``."""
    return np.dtype(validate_dtype(dtype))


def type_tag_of(dtype: DTypeLike) -> str:
    """
    Runtime type tag handed to the buffer provider.

    The tag is the canonical dtype name; a view reports the same tag for
    any native-endian array of that element type.
    """
    return validate_dtype(dtype)
