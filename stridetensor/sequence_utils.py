"""
Sequence helpers shared by descriptors, coordinates and tensors.

Shapes, strides and indices are plain sequences of ints; these functions
reduce them the same way everywhere so the offset math has one definition.
"""

from functools import reduce
from typing import Callable, List, Sequence


class Multiplies:
    """Binary product, usable wherever a reducer is expected."""
    def __call__(self, lhs: int, rhs: int) -> int:
        return lhs * rhs


class Plus:
    """Binary sum, usable wherever a reducer is expected."""
    def __call__(self, lhs: int, rhs: int) -> int:
        return lhs + rhs


multiplies = Multiplies()
plus = Plus()


def reduce_on_sequence(seq: Sequence[int], reduce_func: Callable[[int, int], int], init: int) -> int:
    """
    Fold ``seq`` from the left with ``reduce_func``, starting at ``init``.

    Example:
        reduce_on_sequence([3, 4, 5], multiplies, 1) -> 60
    """
    return reduce(reduce_func, seq, init)


def product(seq: Sequence[int]) -> int:
    """Product of all entries; 1 for an empty sequence."""
    return reduce_on_sequence(seq, multiplies, 1)


def inner_product(lhs: Sequence[int], rhs: Sequence[int]) -> int:
    """Sum of pairwise products of two equally long sequences."""
    if len(lhs) != len(rhs):
        raise ValueError(f"Sequences must have same length: {len(lhs)} vs {len(rhs)}")
    return reduce_on_sequence([a * b for a, b in zip(lhs, rhs)], plus, 0)


def row_major_strides(shape: Sequence[int]) -> List[int]:
    """
    Strides of a packed row-major layout.

    The last axis has stride 1 and every other axis steps over the whole
    block of the axes after it: stride[i] = stride[i + 1] * shape[i + 1].

    Example:
        row_major_strides([3, 4, 5]) -> [20, 5, 1]
    """
    ndim = len(shape)
    strides = [1] * ndim
    for i in range(ndim - 2, -1, -1):
        strides[i] = strides[i + 1] * shape[i + 1]
    return strides
