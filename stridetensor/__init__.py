"""
stridetensor - shared-storage strided tensors

This package provides multi-dimensional views over a single flat buffer:
descriptors that map indices to buffer offsets, slicing and reshaping that
derive new descriptors without copying, and iterators that walk any view in
row-major order.
"""

import logging

# Errors
from .errors import (
    TensorError,
    DimensionMismatchError,
    OutOfRangeError,
    InvalidRangeError,
    ElementCountMismatchError,
    UnboundResourceError,
    AxisNotSqueezableError,
    NonContiguousReshapeWarning
)

# Buffers
from .buffer_view import (
    Buffer,
    make_buffer,
    make_zeros_buffer
)

# Coordinates
from .tensor_coordinate import (
    MultiIndex,
    make_multi_index,
    unravel_position,
    ravel_multi_index
)

# Ranges and slices
from .tensor_slice import (
    Range,
    Slice
)

# Descriptors
from .tensor_descriptor import (
    TensorDescriptor,
    make_naive_tensor_descriptor,
    make_strided_tensor_descriptor,
    slice_tensor_descriptor,
    subscript_tensor_descriptor,
    squeeze_tensor_descriptor,
    expand_dims_tensor_descriptor
)

# Iteration
from .tensor_iterator import TensorIterator

# Formatting options
from .format_config import (
    FloatMode,
    FormatConfig,
    get_default_format,
    set_default_format,
    reset_default_format,
    format_options
)

# Tensors
from .tensor import (
    Tensor,
    make_tensor,
    make_zeros_tensor,
    make_range_tensor,
    make_scalar_tensor
)

logging.getLogger("stridetensor").addHandler(logging.NullHandler())

__all__ = [
    # Errors
    'TensorError',
    'DimensionMismatchError',
    'OutOfRangeError',
    'InvalidRangeError',
    'ElementCountMismatchError',
    'UnboundResourceError',
    'AxisNotSqueezableError',
    'NonContiguousReshapeWarning',

    # Buffers
    'Buffer',
    'make_buffer',
    'make_zeros_buffer',

    # Coordinates
    'MultiIndex',
    'make_multi_index',
    'unravel_position',
    'ravel_multi_index',

    # Ranges and slices
    'Range',
    'Slice',

    # Descriptors
    'TensorDescriptor',
    'make_naive_tensor_descriptor',
    'make_strided_tensor_descriptor',
    'slice_tensor_descriptor',
    'subscript_tensor_descriptor',
    'squeeze_tensor_descriptor',
    'expand_dims_tensor_descriptor',

    # Iteration
    'TensorIterator',

    # Formatting options
    'FloatMode',
    'FormatConfig',
    'get_default_format',
    'set_default_format',
    'reset_default_format',
    'format_options',

    # Tensors
    'Tensor',
    'make_tensor',
    'make_zeros_tensor',
    'make_range_tensor',
    'make_scalar_tensor',
]

__version__ = '0.1.0'
