"""
Random-Access Iterators

Position objects over a contiguous buffer, with the operator surface of a
C++ random-access iterator. They complement (not replace) Python
iteration: adaptors still implement ``__iter__``.

Type Hierarchy:

    RandomAccessIteratorBase (ABC)
    ├── ContiguousIterator     # typed pointer + element index
    └── ReverseIterator        # wraps another random-access iterator

A concrete iterator implements the primitive set:

    advance()        ++it
    retreat()        --it
    offset(n)        it += n
    dereference()    *it          (read)
    store(value)     *it = value  (write)
    address          it->         (element address)
    equals(other)    it == other
    less_than(other) it < other
    clone()          copy

and the base derives everything else from it:

    it.post_increment(), it.post_decrement()
    it -= n, it + n, n + it, it - n, it_a - it_b
    it[n], it[n] = value, it.value
    !=, <=, >=, >

Derived comparisons assume ``equals`` and ``less_than`` describe one total
order; an inconsistent pair makes them meaningless.

Example:
    >>> arr = Array1D.from_iterable([1, 2, 3], dtype='int32')
    >>> it = arr.begin()
    >>> (it + 1).value
    2
    >>> distance(arr.begin(), arr.end())
    3
"""

import ctypes
import operator
from abc import ABC, abstractmethod
from typing import Any, Iterator, Optional

from ._config import config
from ._errors import InvalidIteratorError

__all__ = [
    'RandomAccessIteratorBase',
    'ContiguousIterator',
    'ReverseIterator',
    'distance',
    'iter_range',
]


def _as_offset(n) -> Optional[int]:
    """``n`` as a Python int, or None when it is not an integer."""
    try:
        return operator.index(n)
    except TypeError:
        return None


class RandomAccessIteratorBase(ABC):
    """
    Abstract base for random-access iterators.

    Holds no state of its own; subclasses provide the primitives.
    """

    __slots__ = ()

    # =========================================================================
    # Primitives
    # =========================================================================

    @abstractmethod
    def advance(self) -> 'RandomAccessIteratorBase':
        """Move one element forward in place (``++it``); return self."""
        ...

    @abstractmethod
    def retreat(self) -> 'RandomAccessIteratorBase':
        """Move one element backward in place (``--it``); return self."""
        ...

    @abstractmethod
    def offset(self, n: int) -> 'RandomAccessIteratorBase':
        """Move ``n`` elements in place (``it += n``); return self."""
        ...

    @abstractmethod
    def dereference(self) -> Any:
        """Read the element at the current position."""
        ...

    @abstractmethod
    def store(self, value: Any) -> None:
        """Write the element at the current position."""
        ...

    @property
    @abstractmethod
    def address(self) -> int:
        """Address of the element at the current position."""
        ...

    @abstractmethod
    def equals(self, other: 'RandomAccessIteratorBase') -> bool:
        ...

    @abstractmethod
    def less_than(self, other: 'RandomAccessIteratorBase') -> bool:
        ...

    @abstractmethod
    def clone(self) -> 'RandomAccessIteratorBase':
        """Independent iterator at the same position."""
        ...

    def distance_to(self, other: 'RandomAccessIteratorBase') -> int:
        """Signed number of steps from self to ``other`` (``other - self``).

        The default walks element by element; subclasses with O(1)
        arithmetic override it.
        """
        steps = 0
        it = self.clone()
        if it.less_than(other):
            while not it.equals(other):
                it.advance()
                steps += 1
        else:
            while not it.equals(other):
                it.retreat()
                steps -= 1
        return steps

    # =========================================================================
    # Derived Operations
    # =========================================================================

    def post_increment(self) -> 'RandomAccessIteratorBase':
        """``it++``: advance in place and return the previous position."""
        previous = self.clone()
        self.advance()
        return previous

    def post_decrement(self) -> 'RandomAccessIteratorBase':
        """``it--``: retreat in place and return the previous position."""
        previous = self.clone()
        self.retreat()
        return previous

    @property
    def value(self) -> Any:
        return self.dereference()

    @value.setter
    def value(self, value: Any) -> None:
        self.store(value)

    def __iadd__(self, n):
        n = _as_offset(n)
        if n is None:
            return NotImplemented
        return self.offset(n)

    def __isub__(self, n):
        n = _as_offset(n)
        if n is None:
            return NotImplemented
        return self.offset(-n)

    def __add__(self, n):
        n = _as_offset(n)
        if n is None:
            return NotImplemented
        return self.clone().offset(n)

    def __radd__(self, n):
        return self.__add__(n)

    def __sub__(self, other):
        if isinstance(other, RandomAccessIteratorBase):
            return other.distance_to(self)
        n = _as_offset(other)
        if n is None:
            return NotImplemented
        return self.clone().offset(-n)

    def __getitem__(self, n: int) -> Any:
        return (self + n).dereference()

    def __setitem__(self, n: int, value: Any) -> None:
        (self + n).store(value)

    def __copy__(self):
        return self.clone()

    # -------------------------------------------------------------------------
    # Comparisons
    # -------------------------------------------------------------------------

    def __eq__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return self.equals(other)

    def __ne__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return not self.equals(other)

    def __lt__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return self.less_than(other)

    def __le__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return not other.less_than(self)

    def __ge__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return not self.less_than(other)

    def __gt__(self, other):
        if not isinstance(other, RandomAccessIteratorBase):
            return NotImplemented
        return other.less_than(self)

    __hash__ = None


# =============================================================================
# Contiguous Pointer Iterator
# =============================================================================

class ContiguousIterator(RandomAccessIteratorBase):
    """
    Iterator over a typed ctypes pointer.

    A default-constructed iterator points at no buffer; it compares as
    address 0 and raises InvalidIteratorError when dereferenced.

    Args:
        pointer: ctypes ``POINTER(T)`` to the first element, or None
        index: Element offset from ``pointer``
        const: Reject writes through this iterator
        token: ViewToken of the adaptor that produced the pointer
    """

    __slots__ = ('_pointer', '_base', '_itemsize', '_index', '_const', '_token')

    def __init__(self, pointer=None, index: int = 0, *, const: bool = False, token=None):
        self._pointer = pointer
        if pointer is None:
            self._base = 0
            self._itemsize = 0
        else:
            self._base = ctypes.cast(pointer, ctypes.c_void_p).value or 0
            self._itemsize = ctypes.sizeof(pointer._type_)
        self._index = index
        self._const = const
        self._token = token

    @property
    def is_const(self) -> bool:
        return self._const

    def _check(self) -> None:
        if self._pointer is None:
            raise InvalidIteratorError("Iterator does not point into a buffer")
        if self._token is not None and config.checks.stale_views:
            self._token.validate()

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def advance(self):
        self._index += 1
        return self

    def retreat(self):
        self._index -= 1
        return self

    def offset(self, n: int):
        self._index += n
        return self

    def dereference(self):
        self._check()
        return self._pointer[self._index]

    def store(self, value) -> None:
        if self._const:
            raise TypeError("const iterator does not support assignment")
        self._check()
        self._pointer[self._index] = value

    @property
    def address(self) -> int:
        return self._base + self._index * self._itemsize

    def equals(self, other) -> bool:
        return self.address == other.address

    def less_than(self, other) -> bool:
        return self.address < other.address

    def clone(self):
        return ContiguousIterator(self._pointer, self._index,
                                  const=self._const, token=self._token)

    def distance_to(self, other) -> int:
        if isinstance(other, ContiguousIterator) and self._itemsize:
            return (other.address - self.address) // self._itemsize
        return super().distance_to(other)

    def __repr__(self) -> str:
        kind = "const " if self._const else ""
        return f"<{kind}ContiguousIterator address=0x{self.address:x}>"


# =============================================================================
# Reverse Iterator
# =============================================================================

class ReverseIterator(RandomAccessIteratorBase):
    """
    Reverses the direction of another random-access iterator.

    ``ReverseIterator(it)`` dereferences the element just before ``it``,
    so ``ReverseIterator(end)`` refers to the last element.
    """

    __slots__ = ('_current',)

    def __init__(self, base: RandomAccessIteratorBase):
        self._current = base.clone()

    def base(self) -> RandomAccessIteratorBase:
        """Copy of the underlying forward iterator."""
        return self._current.clone()

    def advance(self):
        self._current.retreat()
        return self

    def retreat(self):
        self._current.advance()
        return self

    def offset(self, n: int):
        self._current.offset(-n)
        return self

    def dereference(self):
        return (self._current - 1).dereference()

    def store(self, value) -> None:
        (self._current - 1).store(value)

    @property
    def address(self) -> int:
        return (self._current - 1).address

    def equals(self, other) -> bool:
        return self._current.equals(other._current)

    def less_than(self, other) -> bool:
        return other._current.less_than(self._current)

    def clone(self):
        return ReverseIterator(self._current)

    def distance_to(self, other) -> int:
        if isinstance(other, ReverseIterator):
            return other._current.distance_to(self._current)
        return super().distance_to(other)

    def __repr__(self) -> str:
        return f"ReverseIterator({self._current!r})"


# =============================================================================
# Range Helpers
# =============================================================================

def distance(first: RandomAccessIteratorBase, last: RandomAccessIteratorBase) -> int:
    """Number of steps from ``first`` to ``last``."""
    return first.distance_to(last)


def iter_range(first: RandomAccessIteratorBase,
               last: RandomAccessIteratorBase) -> Iterator[Any]:
    """Yield the elements of ``[first, last)`` in order."""
    it = first.clone()
    while not it.equals(last):
        yield it.dereference()
        it.advance()
