"""
Error handling for ndbuf.

Every exception carries an integer code and a message. Concrete classes
also derive from the builtin exception a plain Python container would
raise, so ``except IndexError`` keeps working on checked access.
"""

from typing import Optional

__all__ = [
    'NDBUF_OK',
    'NDBUF_ERROR_UNKNOWN',
    'NDBUF_ERROR_INDEX_OUT_OF_BOUNDS',
    'NDBUF_ERROR_EMPTY_CONTAINER',
    'NDBUF_ERROR_LAYOUT_MISMATCH',
    'NDBUF_ERROR_TYPE_MISMATCH',
    'NDBUF_ERROR_STALE_VIEW',
    'NDBUF_ERROR_INVALID_ITERATOR',
    'NdbufError',
    'IndexOutOfBoundsError',
    'EmptyContainerError',
    'LayoutError',
    'TypeMismatchError',
    'StaleViewError',
    'InvalidIteratorError',
]


# =============================================================================
# Error Codes
# =============================================================================

NDBUF_OK = 0
NDBUF_ERROR_UNKNOWN = 1

# Access errors (10-19)
NDBUF_ERROR_INDEX_OUT_OF_BOUNDS = 10
NDBUF_ERROR_EMPTY_CONTAINER = 11
NDBUF_ERROR_INVALID_ITERATOR = 12

# Buffer errors (20-29)
NDBUF_ERROR_LAYOUT_MISMATCH = 20
NDBUF_ERROR_TYPE_MISMATCH = 21
NDBUF_ERROR_STALE_VIEW = 22


_ERROR_MESSAGES = {
    NDBUF_OK: "Success",
    NDBUF_ERROR_UNKNOWN: "Unknown error",
    NDBUF_ERROR_INDEX_OUT_OF_BOUNDS: "Index out of bounds",
    NDBUF_ERROR_EMPTY_CONTAINER: "Container is empty",
    NDBUF_ERROR_INVALID_ITERATOR: "Invalid iterator",
    NDBUF_ERROR_LAYOUT_MISMATCH: "Buffer layout mismatch",
    NDBUF_ERROR_TYPE_MISMATCH: "Buffer type mismatch",
    NDBUF_ERROR_STALE_VIEW: "Stale buffer view",
}


# =============================================================================
# Exception Classes
# =============================================================================

class NdbufError(Exception):
    """
    Base exception for all ndbuf errors.

    Attributes:
        code: Integer error code (``NDBUF_ERROR_*``)
        message: Human readable message
    """

    code = NDBUF_ERROR_UNKNOWN

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None):
        if code is not None:
            self.code = code
        if message is None:
            message = _ERROR_MESSAGES.get(self.code, f"Unknown error (code={self.code})")
        self.message = message
        super().__init__(message)

    @classmethod
    def from_code(cls, code: int, context: str = "") -> "NdbufError":
        """Create exception from error code with optional context."""
        base_msg = _ERROR_MESSAGES.get(code, "Unknown error")
        msg = f"{context}: {base_msg}" if context else base_msg
        return cls(msg, code=code)


class IndexOutOfBoundsError(NdbufError, IndexError):
    """Checked index outside ``[0, size)``."""
    code = NDBUF_ERROR_INDEX_OUT_OF_BOUNDS


class EmptyContainerError(NdbufError, IndexError):
    """``front()``/``back()`` on an empty adaptor."""
    code = NDBUF_ERROR_EMPTY_CONTAINER


class InvalidIteratorError(NdbufError, ValueError):
    """Dereferencing an iterator that points at no buffer."""
    code = NDBUF_ERROR_INVALID_ITERATOR


class LayoutError(NdbufError, ValueError):
    """Buffer rank, shape or strides differ from what the adaptor requires."""
    code = NDBUF_ERROR_LAYOUT_MISMATCH


class TypeMismatchError(NdbufError, TypeError):
    """Buffer element type differs from the adaptor dtype."""
    code = NDBUF_ERROR_TYPE_MISMATCH


class StaleViewError(NdbufError, RuntimeError):
    """Cached view used after the host runtime rebound the buffer."""
    code = NDBUF_ERROR_STALE_VIEW
