"""
Row-major iteration over a tensor view.

The iterator stores a logical position, not a buffer pointer. Every
dereference decodes the position through the view's descriptor, so the same
code walks a packed root tensor, a strided slice and a view whose
single-index axes have stride 0.
"""

import weakref
from typing import Any, Optional

from .buffer_view import Buffer
from .errors import OutOfRangeError, UnboundResourceError
from .tensor_coordinate import MultiIndex, unravel_position
from .tensor_descriptor import TensorDescriptor


class TensorIterator:
    """
    Position in the logical element sequence of a tensor.

    States: unbound (created without a tensor), bound with ``position`` in
    ``[0, count]``, exhausted at ``position == count`` (cannot be
    dereferenced), and invalid once the buffer's last owner released it.

    The iterator holds a weak reference to the buffer and a copy of the
    descriptor, so it never keeps the storage alive on its own.
    """

    def __init__(self, tensor: Optional[Any] = None, position: int = 0):
        """
        Bind an iterator to ``tensor`` at ``position``.

        Args:
            tensor: Tensor to walk; None leaves the iterator unbound
            position: Initial logical position, ``0 <= position <= size``
        """
        self._buffer_ref: Optional[weakref.ref] = None
        self._desc: Optional[TensorDescriptor] = None
        self._position = 0

        if tensor is not None:
            self._buffer_ref = weakref.ref(tensor.get_buffer())
            self._desc = tensor.get_tensor_descriptor()
            if position < 0 or position > self._desc.count:
                raise OutOfRangeError(f"Iterator position {position} out of range [0, {self._desc.count}]")
            self._position = position

    @property
    def position(self) -> int:
        return self._position

    def is_bound(self) -> bool:
        """Whether the iterator was created for a tensor."""
        return self._buffer_ref is not None

    def _check(self) -> Buffer:
        if self._buffer_ref is None:
            raise UnboundResourceError("Unbound iterator")
        buffer = self._buffer_ref()
        if buffer is None or not buffer.is_alive:
            raise UnboundResourceError("Iterator used after its buffer was released")
        return buffer

    def copy(self) -> 'TensorIterator':
        """Create an independent iterator at the same position."""
        other = TensorIterator()
        other._buffer_ref = self._buffer_ref
        other._desc = self._desc
        other._position = self._position
        return other

    def advance(self, n: int = 1) -> 'TensorIterator':
        """
        Move by ``n`` positions (negative moves backwards).

        Raises:
            UnboundResourceError: iterator unbound or buffer released
            OutOfRangeError: result would leave ``[0, size]``
        """
        self._check()
        new_position = self._position + n
        if new_position < 0 or new_position > self._desc.count:
            raise OutOfRangeError(
                f"Iterator moved to {new_position}, outside [0, {self._desc.count}]")
        self._position = new_position
        return self

    def __iadd__(self, n: int) -> 'TensorIterator':
        return self.advance(n)

    def __isub__(self, n: int) -> 'TensorIterator':
        return self.advance(-n)

    def __add__(self, n: int) -> 'TensorIterator':
        return self.copy().advance(n)

    def __sub__(self, n: int) -> 'TensorIterator':
        return self.copy().advance(-n)

    def offset(self) -> int:
        """Buffer position of the current element."""
        self._check()
        if self._position == self._desc.count:
            raise OutOfRangeError("Dereference of an exhausted iterator")
        return self._desc.calculate_position_offset(self._position)

    def index(self) -> MultiIndex:
        """Logical multi-index of the current element."""
        self._check()
        if self._position == self._desc.count:
            raise OutOfRangeError("Exhausted iterator has no index")
        return unravel_position(self._desc.shape, self._position)

    def dereference(self) -> Any:
        """Read the current element."""
        offset = self.offset()
        return self._check().get(offset)

    def set(self, value: Any) -> None:
        """Write the current element, visible through every view of the buffer."""
        offset = self.offset()
        self._check().set(offset, value)

    def __eq__(self, other) -> bool:
        """Same position over the same buffer; both must still be valid."""
        if not isinstance(other, TensorIterator):
            return NotImplemented
        lhs = self._check()
        rhs = other._check()
        return self._position == other._position and lhs is rhs

    __hash__ = None

    def __iter__(self) -> 'TensorIterator':
        return self

    def __next__(self) -> Any:
        self._check()
        if self._position >= self._desc.count:
            raise StopIteration
        value = self.dereference()
        self._position += 1
        return value

    def __repr__(self) -> str:
        if self._desc is None:
            return "TensorIterator(unbound)"
        return f"TensorIterator(position={self._position}, count={self._desc.count})"
