"""
Shared flat storage behind every tensor view.

A Buffer wraps a one-dimensional numpy array. Views that own the buffer
register with ``acquire`` and deregister with ``release``; once the last owner
lets go the array is dropped and the buffer is dead for good. Iterators keep
only a weak reference and check ``is_alive`` before every access.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from .errors import OutOfRangeError, UnboundResourceError

logger = logging.getLogger("stridetensor.buffer_view")


@dataclass(eq=False)
class Buffer:
    """
    Reference-counted flat element storage.

    Attributes:
        data: One-dimensional numpy array holding the elements, None once dead
        owners: Number of views currently owning this buffer
    """
    data: Optional[np.ndarray] = None
    owners: int = 0

    def __post_init__(self):
        if self.data is None:
            self.data = np.empty(0, dtype=np.float64)
        elif self.data.ndim != 1:
            self.data = self.data.reshape(-1)

    @property
    def is_alive(self) -> bool:
        return self.data is not None

    @property
    def buffer_size(self) -> int:
        return 0 if self.data is None else self.data.size

    @property
    def dtype(self):
        self._check_alive()
        return self.data.dtype

    def acquire(self) -> 'Buffer':
        """Register one more owning view."""
        self._check_alive()
        self.owners += 1
        return self

    def release(self) -> None:
        """Deregister an owning view; the last release frees the storage."""
        if self.owners <= 0:
            raise RuntimeError("Buffer released more often than acquired")
        self.owners -= 1
        if self.owners == 0:
            logger.debug("Releasing buffer %s of %d elements", hex(id(self)), self.buffer_size)
            self.data = None

    def _check_alive(self) -> None:
        if self.data is None:
            raise UnboundResourceError("Buffer has been released")

    def _check_offset(self, offset: int) -> None:
        if offset < 0 or offset >= self.data.size:
            raise OutOfRangeError(f"Buffer offset {offset} out of range for size {self.data.size}")

    def __getitem__(self, offset: int) -> Any:
        return self.get(offset)

    def __setitem__(self, offset: int, value: Any) -> None:
        self.set(offset, value)

    def get(self, offset: int) -> Any:
        """Read the element at buffer position ``offset``."""
        self._check_alive()
        self._check_offset(offset)
        return self.data[offset]

    def set(self, offset: int, value: Any) -> None:
        """Write the element at buffer position ``offset``."""
        self._check_alive()
        self._check_offset(offset)
        self.data[offset] = value

    def gather(self, offsets: Sequence[int]) -> np.ndarray:
        """Read the elements at ``offsets``, in order, into a new array."""
        self._check_alive()
        return self.data[np.asarray(offsets, dtype=np.int64)]

    def scatter(self, offsets: Sequence[int], values: Sequence[Any]) -> None:
        """Write ``values`` to ``offsets`` pairwise."""
        self._check_alive()
        self.data[np.asarray(offsets, dtype=np.int64)] = values

    def __repr__(self) -> str:
        return (f"Buffer(buffer_size={self.buffer_size}, owners={self.owners}, "
                f"alive={self.is_alive}, data_ptr={hex(id(self.data)) if self.is_alive else 'None'})")


def make_buffer(values: Optional[Sequence[Any]] = None, dtype=None) -> Buffer:
    """
    Create a buffer holding a private copy of ``values``.

    Args:
        values: Flat element sequence (any array-like is flattened)
        dtype: Element type, inferred from ``values`` when None

    Returns:
        Buffer instance with no owners yet
    """
    if values is None:
        return Buffer(data=np.empty(0, dtype=np.float64 if dtype is None else dtype))
    return Buffer(data=np.array(values, dtype=dtype).reshape(-1))


def make_zeros_buffer(size: int, dtype=np.float64) -> Buffer:
    """Create a buffer of ``size`` zero-initialised elements."""
    return Buffer(data=np.zeros(size, dtype=dtype))
