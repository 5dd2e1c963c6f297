"""
Multi-dimensional indices and the conversion between a logical multi-index
and a row-major linear position.
"""

import operator
from typing import List, Optional, Sequence, Union

import numpy as np

from .errors import DimensionMismatchError, OutOfRangeError
from .sequence_utils import product


class MultiIndex:
    """
    One index per axis of a tensor, fastest-varying axis last.

    Compares equal to a list or tuple holding the same entries, so results
    such as ``iterator.index() == [1, 2]`` read naturally.
    """

    def __init__(self, ndim: int, values: Optional[Sequence[int]] = None):
        """
        Args:
            ndim: Number of axes
            values: Index along every axis, all zero when omitted
        """
        entries = [0] * ndim if values is None else list(values)
        if len(entries) != ndim:
            raise ValueError(f"{len(entries)} entries doesn't match size {ndim}")
        self.size = ndim
        self._entries = entries

    def __len__(self) -> int:
        return self.size

    def __iter__(self):
        return iter(self._entries)

    def __getitem__(self, axis: int) -> int:
        return self._entries[axis]

    def __setitem__(self, axis: int, value: int):
        self._entries[axis] = value

    def __eq__(self, other) -> bool:
        if isinstance(other, MultiIndex):
            other = other._entries
        if isinstance(other, (list, tuple)):
            return self._entries == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"MultiIndex({self._entries})"

    def copy(self) -> 'MultiIndex':
        return MultiIndex(self.size, self._entries)

    def to_list(self) -> List[int]:
        return list(self._entries)

    def to_tuple(self) -> tuple:
        return tuple(self._entries)

    def to_array(self) -> np.ndarray:
        """Entries as an int64 numpy array."""
        return np.asarray(self._entries, dtype=np.int64)


IndexLike = Union[int, Sequence[int], MultiIndex]


def make_multi_index(indices: IndexLike) -> MultiIndex:
    """
    Normalize an int, a sequence of ints or a MultiIndex into a MultiIndex.

    Every entry must be an integer (anything accepted by ``operator.index``).
    """
    if isinstance(indices, MultiIndex):
        return indices.copy()
    if isinstance(indices, (list, tuple)):
        values = indices
    elif isinstance(indices, np.ndarray):
        values = indices.tolist()
    else:
        values = [indices]
    try:
        normalized = [operator.index(v) for v in values]
    except TypeError:
        raise TypeError(f"Indices must be integers, got {indices!r}") from None
    return MultiIndex(len(normalized), normalized)


def unravel_position(shape: Sequence[int], position: int) -> MultiIndex:
    """
    Convert a row-major linear position into a multi-index over ``shape``.

    Example:
        unravel_position([3, 4], 6) -> MultiIndex([1, 2])
    """
    count = product(shape)
    if position < 0 or position >= count:
        raise OutOfRangeError(f"Position {position} out of range for shape {tuple(shape)}")

    values = [0] * len(shape)
    for axis in range(len(shape) - 1, -1, -1):
        values[axis] = position % shape[axis]
        position //= shape[axis]
    return MultiIndex(len(shape), values)


def ravel_multi_index(shape: Sequence[int], idx: IndexLike) -> int:
    """Convert a multi-index over ``shape`` into its row-major linear position."""
    idx = make_multi_index(idx)
    if len(idx) != len(shape):
        raise DimensionMismatchError(f"Index dimension {len(idx)} doesn't match shape dimension {len(shape)}")

    position = 0
    for axis, length in enumerate(shape):
        if idx[axis] < 0 or idx[axis] >= length:
            raise OutOfRangeError(f"Index {idx[axis]} out of range for axis {axis} of length {length}")
        position = position * length + idx[axis]
    return position
