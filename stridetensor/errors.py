"""
Failure taxonomy for stridetensor.

Every error derives from TensorError and from the builtin exception a caller
would naturally expect, so ``except IndexError`` keeps working for
out-of-range access.
"""


class TensorError(Exception):
    """Base class for all stridetensor errors."""


class DimensionMismatchError(TensorError, ValueError):
    """Operand or selector rank disagrees with the expected rank."""


class OutOfRangeError(TensorError, IndexError):
    """Index, axis or iterator position outside its valid bound."""


class InvalidRangeError(TensorError, ValueError):
    """A Range with ``low >= high``, or a Slice without any Range."""


class ElementCountMismatchError(TensorError, ValueError):
    """Supplied element count disagrees with the declared shape."""


class UnboundResourceError(TensorError, RuntimeError):
    """Iterator or view used without, or after, the lifetime of its buffer."""


class AxisNotSqueezableError(TensorError, ValueError):
    """Explicit squeeze of an axis whose length is not 1."""


class NonContiguousReshapeWarning(UserWarning):
    """Reshape of a non-contiguous view had to copy its elements."""
