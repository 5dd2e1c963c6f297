"""
Tensor descriptors: the shape, stride and start offset that map a logical
multi-index onto a position in a flat buffer.

A descriptor is an immutable value. Every view-producing operation builds a
new descriptor from an old one through the ``*_tensor_descriptor`` functions
at the bottom of this module; nothing ever edits a descriptor in place.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple, Union

import sympy as sp

from .errors import (
    AxisNotSqueezableError,
    DimensionMismatchError,
    InvalidRangeError,
    OutOfRangeError,
)
from .sequence_utils import inner_product, product, row_major_strides
from .tensor_coordinate import MultiIndex, make_multi_index
from .tensor_slice import Slice


@dataclass(frozen=True)
class TensorDescriptor:
    """
    Strided layout of a tensor inside a flat buffer.

    Attributes:
        shape: Length of every axis
        stride: Buffer positions to advance per unit step along every axis
        start: Buffer position of the element at the all-zero index
        count: Number of addressed elements, the product of ``shape``
    """
    shape: Tuple[int, ...]
    stride: Tuple[int, ...]
    start: int = 0
    count: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'shape', tuple(int(s) for s in self.shape))
        object.__setattr__(self, 'stride', tuple(int(s) for s in self.stride))
        object.__setattr__(self, 'start', int(self.start))

        if len(self.shape) != len(self.stride):
            raise DimensionMismatchError(
                f"Shape and stride must have same size: {len(self.shape)} vs {len(self.stride)}")
        if any(s < 0 for s in self.shape):
            raise ValueError(f"Shape must be non-negative, got {self.shape}")
        if any(s < 0 for s in self.stride):
            raise ValueError(f"Stride must be non-negative, got {self.stride}")
        if self.start < 0:
            raise ValueError(f"Start offset must be non-negative, got {self.start}")

        object.__setattr__(self, 'count', product(self.shape))

    @property
    def ndim(self) -> int:
        return len(self.shape)

    def get_num_of_dimension(self) -> int:
        """Get number of dimensions."""
        return len(self.shape)

    def get_lengths(self) -> List[int]:
        """Get all dimension lengths."""
        return list(self.shape)

    def get_element_space_size(self) -> int:
        """
        Number of buffer positions spanned from ``start`` to the furthest
        addressed element, inclusive.
        """
        if self.count == 0:
            return 0
        return inner_product([s - 1 for s in self.shape], self.stride) + 1

    def check_bound(self, idx: MultiIndex) -> bool:
        """Whether every entry of ``idx`` lies inside its axis."""
        for i in range(self.ndim):
            if idx[i] < 0 or idx[i] >= self.shape[i]:
                return False
        return True

    def calculate_offset(self, idx: Union[Sequence[int], MultiIndex]) -> int:
        """
        Buffer position of the element at multi-index ``idx``.

        Raises:
            DimensionMismatchError: ``len(idx)`` differs from the rank
            OutOfRangeError: any index is outside its axis
        """
        idx = make_multi_index(idx)
        if len(idx) != self.ndim:
            raise DimensionMismatchError(
                f"Index dimension {len(idx)} doesn't match tensor dimension {self.ndim}")
        if not self.check_bound(idx):
            raise OutOfRangeError(f"Index {idx.to_list()} out of range for shape {self.shape}")
        return self.start + inner_product(idx.to_list(), self.stride)

    def calculate_position_offset(self, position: int) -> int:
        """
        Buffer position of the element at row-major logical ``position``.

        Axes are decoded from the last (fastest varying) to the first: the
        index along an axis is ``(position // block) % shape[axis]`` where
        ``block`` is the element count of all later axes.
        """
        if position < 0 or position >= self.count:
            raise OutOfRangeError(f"Position {position} out of range for {self.count} elements")

        offset = 0
        block = 1
        for axis in range(self.ndim - 1, -1, -1):
            offset += ((position // block) % self.shape[axis]) * self.stride[axis]
            block *= self.shape[axis]
        return self.start + offset

    def is_contiguous(self) -> bool:
        """
        Whether the addressed elements are exactly the row-major run
        ``[start, start + count)``. Unit-length axes never move, so their
        strides are ignored.
        """
        if self.count == 0:
            return True
        expected = 1
        for axis in range(self.ndim - 1, -1, -1):
            if self.shape[axis] == 1:
                continue
            if self.stride[axis] != expected:
                return False
            expected *= self.shape[axis]
        return True

    def sympy_calculate_offset(self, symbols: Optional[Sequence[sp.Expr]] = None) -> sp.Expr:
        """
        Offset of a symbolic multi-index as a SymPy expression.

        Args:
            symbols: One expression per axis (defaults to i0, i1, ...)
        """
        if symbols is None:
            symbols = [sp.Symbol(f"i{k}", integer=True, nonnegative=True) for k in range(self.ndim)]
        if len(symbols) != self.ndim:
            raise DimensionMismatchError(
                f"Symbols {len(symbols)} doesn't match tensor dimension {self.ndim}")

        offset = sp.Integer(self.start)
        for sym, stride in zip(symbols, self.stride):
            offset += sym * stride
        return offset

    def sympy_calculate_position_offset(self, symbol: Optional[sp.Expr] = None) -> sp.Expr:
        """
        Offset of a symbolic row-major position as a SymPy expression, using
        the same decode as ``calculate_position_offset``.
        """
        if symbol is None:
            symbol = sp.Symbol("p", integer=True, nonnegative=True)

        offset = sp.Integer(self.start)
        block = 1
        for axis in range(self.ndim - 1, -1, -1):
            offset += ((symbol // block) % self.shape[axis]) * self.stride[axis]
            block *= self.shape[axis]
        return offset

    def __repr__(self) -> str:
        return (f"TensorDescriptor(shape={self.shape}, stride={self.stride}, "
                f"start={self.start}, count={self.count})")


def make_naive_tensor_descriptor(shape: Sequence[int], start: int = 0) -> TensorDescriptor:
    """
    Create a packed row-major descriptor.

    Args:
        shape: Dimension lengths
        start: Buffer position of the first element

    Returns:
        TensorDescriptor instance
    """
    shape = list(shape)
    return TensorDescriptor(shape=shape, stride=row_major_strides(shape), start=start)


def make_strided_tensor_descriptor(shape: Sequence[int],
                                   stride: Sequence[int],
                                   start: int = 0) -> TensorDescriptor:
    """Create a descriptor with explicit strides."""
    return TensorDescriptor(shape=shape, stride=stride, start=start)


def slice_tensor_descriptor(desc: TensorDescriptor, slc: Slice) -> TensorDescriptor:
    """
    Restrict every axis of ``desc`` to the matching Range of ``slc``.

    The new start moves by ``low * stride`` along each axis. An axis selected
    by a single index keeps length 1 and gets stride 0.

    Raises:
        DimensionMismatchError: slice length differs from the rank
        InvalidRangeError: a Range has ``low >= high``
        OutOfRangeError: a Range ends past its axis
    """
    if len(slc) != desc.ndim:
        raise DimensionMismatchError(
            f"Slice dimension {len(slc)} doesn't match tensor dimension {desc.ndim}")

    offset = 0
    new_shape = list(desc.shape)
    new_stride = list(desc.stride)
    for i, rng in enumerate(slc):
        low, high = rng.low, rng.high
        if low >= high:
            raise InvalidRangeError(f"Range low {low} must be less than high {high} on axis {i}")
        if low < 0 or high > desc.shape[i]:
            raise OutOfRangeError(f"Range [{low}, {high}) out of range for axis {i} of length {desc.shape[i]}")

        offset += low * desc.stride[i]
        new_shape[i] = high - low
        if rng.single():
            new_stride[i] = 0

    return replace(desc, shape=tuple(new_shape), stride=tuple(new_stride), start=desc.start + offset)


def subscript_tensor_descriptor(desc: TensorDescriptor, idx: int) -> TensorDescriptor:
    """
    Select position ``idx`` of the leading axis and drop that axis.

    A rank-1 descriptor reduces to rank 0 (empty shape, count 1).
    """
    if desc.ndim == 0:
        raise DimensionMismatchError("Cannot subscript a 0-dimensional tensor")
    if idx < 0 or idx >= desc.shape[0]:
        raise OutOfRangeError(f"Index {idx} out of range for axis 0 of length {desc.shape[0]}")

    return replace(desc, shape=desc.shape[1:], stride=desc.stride[1:],
                   start=desc.start + idx * desc.stride[0])


def squeeze_tensor_descriptor(desc: TensorDescriptor, axis: int = -1) -> TensorDescriptor:
    """
    Drop unit-length axes.

    With ``axis == -1`` every axis of length 1 is dropped; otherwise only
    ``axis``, which must exist and have length 1.
    """
    if axis == -1:
        keep = [i for i in range(desc.ndim) if desc.shape[i] != 1]
    else:
        if axis < 0 or axis >= desc.ndim:
            raise OutOfRangeError(f"Axis {axis} out of bound for squeeze of {desc.ndim}-dimensional tensor")
        if desc.shape[axis] != 1:
            raise AxisNotSqueezableError(
                f"Cannot squeeze axis {axis} of length {desc.shape[axis]}")
        keep = [i for i in range(desc.ndim) if i != axis]

    return replace(desc,
                   shape=tuple(desc.shape[i] for i in keep),
                   stride=tuple(desc.stride[i] for i in keep))


def expand_dims_tensor_descriptor(desc: TensorDescriptor, axis: int) -> TensorDescriptor:
    """Insert a length-1 axis before position ``axis`` (``0 <= axis <= ndim``)."""
    if axis < 0 or axis > desc.ndim:
        raise OutOfRangeError(f"Axis {axis} out of bound for expand_dims of {desc.ndim}-dimensional tensor")

    shape = list(desc.shape)
    stride = list(desc.stride)
    shape.insert(axis, 1)
    stride.insert(axis, 0)
    return replace(desc, shape=tuple(shape), stride=tuple(stride))
