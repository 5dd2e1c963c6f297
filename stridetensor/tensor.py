"""
Tensor views: a descriptor paired with a shared buffer.

Slicing, subscripting and the dimension operations derive new descriptors
over the same buffer, so writes through any view are visible through all
views of that buffer. ``copy`` is the only operation that allocates new
storage for an existing tensor.
"""

import logging
import operator
import warnings
from typing import Any, Callable, List, Optional, Sequence, Union

import numpy as np

from .buffer_view import Buffer, make_buffer, make_zeros_buffer
from .errors import (
    DimensionMismatchError,
    ElementCountMismatchError,
    InvalidRangeError,
    NonContiguousReshapeWarning,
    OutOfRangeError,
    UnboundResourceError,
)
from .format_config import FormatConfig, get_default_format
from .sequence_utils import product
from .tensor_coordinate import MultiIndex
from .tensor_descriptor import (
    TensorDescriptor,
    expand_dims_tensor_descriptor,
    make_naive_tensor_descriptor,
    slice_tensor_descriptor,
    squeeze_tensor_descriptor,
    subscript_tensor_descriptor,
)
from .tensor_iterator import TensorIterator
from .tensor_slice import Range, Slice, is_slice_key

logger = logging.getLogger("stridetensor.tensor")


class Tensor:
    """
    Strided view over a shared, reference-counted buffer.

    A tensor owns its buffer for as long as it lives: the buffer is freed
    when the last owning tensor is released, rebound with ``assign`` or
    garbage collected. ``Tensor()`` is an empty tensor of shape ``(0,)``.

    Attributes:
        tensor_desc: Layout of this view inside the buffer
        format: Options for an external printer
    """

    def __init__(self,
                 buffer: Optional[Buffer] = None,
                 tensor_desc: Optional[TensorDescriptor] = None,
                 format: Optional[FormatConfig] = None):
        """
        Bind a descriptor to a buffer.

        Args:
            buffer: Storage to share; omitted together with ``tensor_desc``
                for an empty tensor
            tensor_desc: Layout of the view inside ``buffer``
            format: Printer options, defaults to the process-wide default
        """
        self._buffer: Optional[Buffer] = None

        if buffer is None and tensor_desc is None:
            buffer = make_buffer()
            tensor_desc = make_naive_tensor_descriptor([0])
        elif buffer is None:
            raise ValueError("Buffer cannot be None")
        elif tensor_desc is None:
            raise ValueError("Tensor descriptor cannot be None")

        if tensor_desc.count and tensor_desc.start + tensor_desc.get_element_space_size() > buffer.buffer_size:
            raise OutOfRangeError(
                f"Descriptor spans {tensor_desc.start + tensor_desc.get_element_space_size()} positions "
                f"but buffer holds {buffer.buffer_size}")

        self.tensor_desc = tensor_desc
        self.format = format.copy() if format is not None else get_default_format()
        self._buffer = buffer.acquire()

    def __del__(self):
        if getattr(self, '_buffer', None) is not None:
            self.release()

    # ---------- ownership ----------

    def get_buffer(self) -> Buffer:
        """Get the owned buffer."""
        if self._buffer is None:
            raise UnboundResourceError("Tensor has been released")
        return self._buffer

    def get_tensor_descriptor(self) -> TensorDescriptor:
        """Get the tensor descriptor."""
        return self.tensor_desc

    def release(self) -> None:
        """Give up ownership of the buffer; the tensor is unusable afterwards."""
        buffer, self._buffer = self._buffer, None
        if buffer is not None:
            buffer.release()

    def is_released(self) -> bool:
        return self._buffer is None

    def share(self) -> 'Tensor':
        """New view of the same elements sharing this tensor's buffer."""
        return self._derive(self.tensor_desc)

    def assign(self, other: 'Tensor') -> 'Tensor':
        """
        Rebind this view to ``other``'s buffer and layout.

        This tensor then aliases ``other``; its previous buffer loses one
        owner. Use ``fill`` to write a value into the existing elements.
        """
        if not isinstance(other, Tensor):
            raise TypeError(f"assign expects a Tensor, got {type(other).__name__}")
        buffer = other.get_buffer().acquire()
        old, self._buffer = self._buffer, buffer
        self.tensor_desc = other.tensor_desc
        self.format = other.format.copy()
        if old is not None:
            old.release()
        return self

    def _derive(self, tensor_desc: TensorDescriptor) -> 'Tensor':
        return Tensor(self.get_buffer(), tensor_desc, self.format)

    def __copy__(self) -> 'Tensor':
        return self.share()

    def __deepcopy__(self, memo) -> 'Tensor':
        return self.copy()

    # ---------- metadata ----------

    @property
    def shape(self) -> tuple:
        return self.tensor_desc.shape

    @property
    def strides(self) -> tuple:
        return self.tensor_desc.stride

    @property
    def ndim(self) -> int:
        return self.tensor_desc.ndim

    @property
    def size(self) -> int:
        return self.tensor_desc.count

    @property
    def start(self) -> int:
        return self.tensor_desc.start

    @property
    def dtype(self):
        return self.get_buffer().dtype

    def empty(self) -> bool:
        """Whether the tensor has no elements."""
        return self.tensor_desc.count == 0

    def is_contiguous(self) -> bool:
        """Whether the elements form one row-major run of the buffer."""
        return self.tensor_desc.is_contiguous()

    def __len__(self) -> int:
        """Number of elements, matching the length of ``iter(tensor)``."""
        return self.tensor_desc.count

    # ---------- iteration ----------

    def begin(self) -> TensorIterator:
        """Iterator at the first element."""
        return TensorIterator(self, 0)

    def end(self) -> TensorIterator:
        """Iterator one past the last element."""
        return TensorIterator(self, self.size)

    def __iter__(self):
        """
        Yield every element in row-major order.

        The generator holds this tensor, so iterating a temporary such as
        ``t.copy()`` keeps its buffer alive until the loop ends.
        """
        it = self.begin()
        end = self.end()
        while it != end:
            yield it.dereference()
            it += 1

    def _logical_offsets(self) -> List[int]:
        offsets = []
        it = self.begin()
        end = self.end()
        while it != end:
            offsets.append(it.offset())
            it += 1
        return offsets

    # ---------- access ----------

    def at(self, indices: Union[Sequence[int], MultiIndex, Slice]) -> Any:
        """
        Element at a multi-index, or a view for a Slice.

        Args:
            indices: One index per axis, or a Slice

        Raises:
            DimensionMismatchError: wrong number of indices or selectors
            OutOfRangeError: index or range outside its axis
            InvalidRangeError: a Range with ``low >= high``
        """
        if isinstance(indices, Slice):
            return self._derive(slice_tensor_descriptor(self.tensor_desc, indices))
        return self.get_buffer().get(self.tensor_desc.calculate_offset(indices))

    def set(self, indices: Union[Sequence[int], MultiIndex], value: Any) -> None:
        """Write the element at a multi-index."""
        offset = self.tensor_desc.calculate_offset(indices)
        self.get_buffer().set(offset, value)

    def subscript(self, idx: int) -> 'Tensor':
        """
        View of position ``idx`` along the leading axis, one rank lower.

        A 1-dimensional tensor gives a 0-dimensional view of one element.
        """
        return self._derive(subscript_tensor_descriptor(self.tensor_desc, operator.index(idx)))

    def item(self) -> Any:
        """The single element of a size-1 tensor as a Python scalar."""
        if self.size != 1:
            raise ValueError(f"Can only convert a tensor of size 1 to a scalar, size is {self.size}")
        value = self.get_buffer().get(self.tensor_desc.calculate_position_offset(0))
        return value.item() if isinstance(value, np.generic) else value

    def _resolve_key(self, key):
        if isinstance(key, Slice):
            return self.at(key)
        if is_slice_key(key):
            return self.at(Slice.from_key(key, self.shape))
        if isinstance(key, (tuple, list, MultiIndex)):
            return None
        return self.subscript(key)

    def __getitem__(self, key):
        """
        ``t[i, j]`` reads an element, ``t[i]`` subscripts the leading axis,
        and ``t[Slice(...)]`` or ``t[1:3, 0]`` returns a sliced view.
        """
        view = self._resolve_key(key)
        if view is None:
            return self.at(key)
        return view

    def __setitem__(self, key, value) -> None:
        """
        ``t[i, j] = v`` writes an element; a subscript or slice key writes
        ``value`` (a scalar or a same-shaped tensor) into every element of
        the selected view.
        """
        view = self._resolve_key(key)
        if view is None:
            self.set(key, value)
        elif isinstance(value, Tensor):
            view.apply_with(value, lambda _, src: src)
        else:
            view.fill(value)

    # ---------- copies and dimension ops ----------

    def copy(self) -> 'Tensor':
        """
        Deep copy of the addressed elements into a new packed buffer.

        Elements are gathered in iteration order, so strided views copy
        correctly.
        """
        values = self.get_buffer().gather(self._logical_offsets())
        return Tensor(Buffer(data=values), make_naive_tensor_descriptor(self.shape), self.format)

    def reshape(self, *dims) -> 'Tensor':
        """
        View of the same elements with a new shape.

        Accepts ``reshape(3, 4)`` or ``reshape((3, 4))``. A non-contiguous
        view is copied first, with a NonContiguousReshapeWarning, and the
        result then no longer aliases this tensor.

        Raises:
            ElementCountMismatchError: product of ``dims`` differs from size
        """
        if len(dims) == 1 and isinstance(dims[0], (list, tuple)):
            dims = tuple(dims[0])
        dims = _normalize_shape(dims)
        if product(dims) != self.size:
            raise ElementCountMismatchError(
                f"Cannot reshape {self.size} elements into shape {dims}")

        source = self
        if not self.tensor_desc.is_contiguous():
            warnings.warn(
                f"Reshape of non-contiguous view {self.shape} with strides {self.strides} copies its elements",
                NonContiguousReshapeWarning, stacklevel=2)
            logger.debug("Copying non-contiguous view before reshape to %s", dims)
            source = self.copy()
        return source._derive(make_naive_tensor_descriptor(dims, start=source.start))

    def squeeze(self, axis: int = -1) -> 'Tensor':
        """Drop every unit axis (``axis=-1``) or the given unit axis."""
        return self._derive(squeeze_tensor_descriptor(self.tensor_desc, operator.index(axis)))

    def expand_dims(self, axis: int) -> 'Tensor':
        """Insert a length-1 axis at ``axis``."""
        return self._derive(expand_dims_tensor_descriptor(self.tensor_desc, operator.index(axis)))

    def ravel(self) -> 'Tensor':
        """Flatten to one axis of length ``size``."""
        return self.reshape(self.size)

    # ---------- element-wise ----------

    def apply(self, func: Callable[[Any], Any]) -> 'Tensor':
        """
        Replace every element ``x`` with ``func(x)``, in iteration order.

        All results are computed before the first write.
        """
        buffer = self.get_buffer()
        offsets = self._logical_offsets()
        values = [func(x) for x in buffer.gather(offsets)]
        if offsets:
            buffer.scatter(offsets, values)
        return self

    def apply_with(self, other: 'Tensor', func: Callable[[Any, Any], Any]) -> 'Tensor':
        """
        Replace every element ``x`` with ``func(x, y)``, where ``y`` is the
        element of ``other`` at the same logical position.

        Raises:
            DimensionMismatchError: shapes differ
        """
        if not isinstance(other, Tensor):
            raise TypeError(f"apply_with expects a Tensor, got {type(other).__name__}")
        if self.shape != other.shape:
            raise DimensionMismatchError(f"Shape mismatch: {self.shape} vs {other.shape}")

        buffer = self.get_buffer()
        offsets = self._logical_offsets()
        lhs = buffer.gather(offsets)
        rhs = other.get_buffer().gather(other._logical_offsets())
        values = [func(x, y) for x, y in zip(lhs, rhs)]
        if offsets:
            buffer.scatter(offsets, values)
        return self

    def fill(self, value: Any) -> 'Tensor':
        """Write ``value`` into every element in place."""
        return self.apply(lambda _: value)

    def _compound(self, other, op: Callable[[Any, Any], Any]) -> 'Tensor':
        if isinstance(other, Tensor):
            return self.apply_with(other, op)
        return self.apply(lambda x: op(x, other))

    def __iadd__(self, other):
        return self._compound(other, operator.add)

    def __isub__(self, other):
        return self._compound(other, operator.sub)

    def __imul__(self, other):
        return self._compound(other, operator.mul)

    def __itruediv__(self, other):
        return self._compound(other, operator.truediv)

    def __imod__(self, other):
        return self._compound(other, operator.mod)

    def __add__(self, other):
        result = self.copy()
        result += other
        return result

    def __sub__(self, other):
        result = self.copy()
        result -= other
        return result

    def __mul__(self, other):
        result = self.copy()
        result *= other
        return result

    def __truediv__(self, other):
        result = self.copy()
        result /= other
        return result

    def __mod__(self, other):
        result = self.copy()
        result %= other
        return result

    def _reflected(self, other, op: Callable[[Any, Any], Any]) -> 'Tensor':
        return self.copy().apply(lambda x: op(other, x))

    __radd__ = __add__
    __rmul__ = __mul__

    def __rsub__(self, other):
        return self._reflected(other, operator.sub)

    def __rtruediv__(self, other):
        return self._reflected(other, operator.truediv)

    def __rmod__(self, other):
        return self._reflected(other, operator.mod)

    # ---------- conversion ----------

    def to_numpy(self) -> np.ndarray:
        """Copy of the addressed elements as a numpy array of this shape."""
        return self.get_buffer().gather(self._logical_offsets()).reshape(self.shape)

    def tolist(self):
        """Nested Python lists (a scalar for 0-dimensional tensors)."""
        return self.to_numpy().tolist()

    def __repr__(self) -> str:
        if self._buffer is None:
            return "Tensor(released)"
        return (f"Tensor(shape={self.shape}, strides={self.strides}, "
                f"start={self.start}, dtype={self.dtype})")


def _normalize_shape(shape) -> tuple:
    if not isinstance(shape, (list, tuple)):
        shape = (shape,)
    try:
        dims = tuple(operator.index(d) for d in shape)
    except TypeError:
        raise TypeError(f"Shape entries must be integers, got {shape!r}") from None
    if any(d < 0 for d in dims):
        raise ValueError(f"Shape must be non-negative, got {dims}")
    return dims


def _check_rank(shape: tuple, rank: Optional[int]) -> None:
    if rank is not None and len(shape) != rank:
        raise DimensionMismatchError(f"Shape {shape} has {len(shape)} dimensions, expected {rank}")


def make_tensor(values: Sequence[Any],
                shape: Sequence[int],
                dtype=None,
                rank: Optional[int] = None,
                format: Optional[FormatConfig] = None) -> Tensor:
    """
    Create a tensor from a flat element sequence.

    Args:
        values: Elements in row-major order (copied)
        shape: Dimension lengths
        dtype: Element type, inferred from ``values`` when None
        rank: Expected number of dimensions, checked when given
        format: Printer options

    Raises:
        ElementCountMismatchError: ``len(values)`` differs from the shape's product
    """
    shape = _normalize_shape(shape)
    _check_rank(shape, rank)
    buffer = make_buffer(values, dtype)
    desc = make_naive_tensor_descriptor(shape)
    if buffer.buffer_size != desc.count:
        raise ElementCountMismatchError(
            f"Number of elements {buffer.buffer_size} doesn't match shape {shape}")
    return Tensor(buffer, desc, format)


def make_zeros_tensor(shape: Sequence[int],
                      dtype=np.float64,
                      rank: Optional[int] = None,
                      format: Optional[FormatConfig] = None) -> Tensor:
    """Create a tensor of zero-initialised elements."""
    shape = _normalize_shape(shape)
    _check_rank(shape, rank)
    desc = make_naive_tensor_descriptor(shape)
    return Tensor(make_zeros_buffer(desc.count, dtype), desc, format)


def make_range_tensor(rng: Range,
                      shape: Sequence[int],
                      dtype=np.int64,
                      rank: Optional[int] = None,
                      format: Optional[FormatConfig] = None) -> Tensor:
    """
    Create a tensor whose buffer positions ``[low, high)`` hold their own
    position and whose remaining positions are zero.

    Example:
        make_range_tensor(Range(12), (3, 4)) holds 0..11 in row-major order
    """
    shape = _normalize_shape(shape)
    _check_rank(shape, rank)
    desc = make_naive_tensor_descriptor(shape)
    if rng.low >= rng.high:
        raise InvalidRangeError(f"Range low {rng.low} must be less than high {rng.high}")
    if rng.low < 0 or rng.high > desc.count:
        raise OutOfRangeError(f"Range [{rng.low}, {rng.high}) out of range for {desc.count} elements")

    buffer = make_zeros_buffer(desc.count, dtype)
    buffer.data[rng.low:rng.high] = np.arange(rng.low, rng.high)
    return Tensor(buffer, desc, format)


def make_scalar_tensor(value: Any, dtype=None, format: Optional[FormatConfig] = None) -> Tensor:
    """
    Create a 0-dimensional tensor holding one element.

    Raises:
        ElementCountMismatchError: ``value`` is array-like with other than one element
    """
    buffer = make_buffer([value], dtype)
    if buffer.buffer_size != 1:
        raise ElementCountMismatchError(
            f"Scalar tensor needs exactly one element, got {buffer.buffer_size}")
    return Tensor(buffer, make_naive_tensor_descriptor([]), format)
