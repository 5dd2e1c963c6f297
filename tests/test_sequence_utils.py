"""
Tests for sequence utility functions.
"""

import pytest

from stridetensor.sequence_utils import (
    reduce_on_sequence, product, inner_product, row_major_strides,
    multiplies, plus, Multiplies, Plus
)


class TestFunctionObjects:
    """Test function objects."""

    def test_multiplies(self):
        """Test multiplication function object."""
        mult = Multiplies()
        assert mult(3, 4) == 12
        assert mult(0, 5) == 0

        # Test the global instance
        assert multiplies(3, 4) == 12

    def test_plus(self):
        """Test addition function object."""
        add = Plus()
        assert add(3, 4) == 7
        assert plus(3, 4) == 7


class TestReduceOnSequence:
    """Test reduce_on_sequence and the reductions built on it."""

    def test_reduce_multiply(self):
        """Test folding with multiplication."""
        assert reduce_on_sequence([2, 3, 4], multiplies, 1) == 24
        assert reduce_on_sequence([5], multiplies, 2) == 10
        assert reduce_on_sequence([], multiplies, 5) == 5

    def test_reduce_add(self):
        """Test folding with addition."""
        assert reduce_on_sequence([1, 2, 3], plus, 0) == 6
        assert reduce_on_sequence([], plus, 10) == 10

    def test_product(self):
        """Test product of shape entries."""
        assert product([3, 4, 5]) == 60
        assert product([3, 0, 5]) == 0
        # Empty shape describes a single scalar element
        assert product([]) == 1

    def test_inner_product(self):
        """Test inner product of an index and a stride."""
        assert inner_product([1, 2], [4, 1]) == 6
        assert inner_product([], []) == 0

    def test_inner_product_length_mismatch(self):
        """Test sequences of different length are rejected."""
        with pytest.raises(ValueError, match="same length"):
            inner_product([1, 2], [1])


class TestRowMajorStrides:
    """Test row-major stride derivation."""

    def test_basic(self):
        """Test strides of common shapes."""
        assert row_major_strides([3, 4]) == [4, 1]
        assert row_major_strides([3, 4, 5]) == [20, 5, 1]
        assert row_major_strides([7]) == [1]

    def test_scalar(self):
        """Test a scalar shape has no strides."""
        assert row_major_strides([]) == []

    def test_unit_and_zero_axes(self):
        """Test strides around unit and zero-length axes."""
        assert row_major_strides([1, 3, 1, 2]) == [6, 2, 2, 1]
        assert row_major_strides([3, 0]) == [0, 1]

    def test_each_stride_spans_later_axes(self, sample_shapes):
        """Test each stride covers the block of later axes."""
        for shape in sample_shapes.values():
            strides = row_major_strides(shape)
            assert strides[-1] == 1
            for i in range(len(shape) - 1):
                assert strides[i] == strides[i + 1] * shape[i + 1]
