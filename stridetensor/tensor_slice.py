"""
Range and Slice: the request language for selecting a strided sub-region of
a tensor, one half-open interval per axis.
"""

import operator
from typing import Iterator, Optional, Sequence, Tuple, Union

from .errors import InvalidRangeError


class Range:
    """
    Half-open interval ``[low, high)`` along one axis.

    ``Range(high)`` is shorthand for ``Range(0, high)``. The interval is not
    validated here; ``low < high`` is checked when a Slice is applied.
    """

    __slots__ = ('low', 'high')

    def __init__(self, low: int, high: Optional[int] = None):
        if high is None:
            low, high = 0, low
        try:
            self.low = operator.index(low)
            self.high = operator.index(high)
        except TypeError:
            raise TypeError(f"Range bounds must be integers, got ({low!r}, {high!r})") from None

    def single(self) -> bool:
        """Whether the interval selects exactly one position."""
        return self.high == self.low + 1

    def __len__(self) -> int:
        return max(0, self.high - self.low)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self.low == other.low and self.high == other.high

    def __hash__(self) -> int:
        return hash((self.low, self.high))

    def __repr__(self) -> str:
        return f"Range({self.low}, {self.high})"


Selector = Union[Range, int]


class Slice:
    """
    Ordered per-axis selection.

    Each selector is a Range or a bare index; a bare index ``i`` becomes
    ``Range(i, i + 1)``. At least one selector must be a Range, otherwise the
    request is an element access and belongs to ``Tensor.at``.
    """

    __slots__ = ('ranges',)

    def __init__(self, *selectors: Selector):
        ranges = []
        has_range = False
        for sel in selectors:
            if isinstance(sel, Range):
                ranges.append(sel)
                has_range = True
            else:
                try:
                    idx = operator.index(sel)
                except TypeError:
                    raise TypeError(f"Slice selectors must be Range or int, got {sel!r}") from None
                ranges.append(Range(idx, idx + 1))

        if not has_range:
            raise InvalidRangeError("Slice requires at least one Range selector")
        self.ranges: Tuple[Range, ...] = tuple(ranges)

    @classmethod
    def from_key(cls, key, shape: Sequence[int]) -> 'Slice':
        """
        Build a Slice from a native indexing key such as ``t[1:3, 0]``.

        Accepts ints, Ranges and ``slice`` objects with a step of 1. Missing
        bounds default to ``0`` and the axis length. Bounds are not clipped,
        so a stop past the axis fails when the Slice is applied.
        """
        if not isinstance(key, tuple):
            key = (key,)

        selectors = []
        for axis, sel in enumerate(key):
            if isinstance(sel, slice):
                if sel.step not in (None, 1):
                    raise ValueError(f"Slice step must be 1, got {sel.step}")
                length = shape[axis] if axis < len(shape) else 0
                low = 0 if sel.start is None else sel.start
                high = length if sel.stop is None else sel.stop
                selectors.append(Range(low, high))
            else:
                selectors.append(sel)
        return cls(*selectors)

    def __len__(self) -> int:
        return len(self.ranges)

    def __getitem__(self, axis: int) -> Range:
        return self.ranges[axis]

    def __iter__(self) -> Iterator[Range]:
        return iter(self.ranges)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Slice):
            return NotImplemented
        return self.ranges == other.ranges

    def __repr__(self) -> str:
        return f"Slice({', '.join(repr(r) for r in self.ranges)})"


def is_slice_key(key) -> bool:
    """Whether an indexing key asks for a sub-region rather than an element."""
    if isinstance(key, (Slice, Range, slice)):
        return True
    if isinstance(key, tuple):
        return any(isinstance(k, (Range, slice)) for k in key)
    return False
