"""
Tests for tensor_iterator module.
"""

import gc

import pytest
import numpy as np

from stridetensor import (
    Range, Slice, Tensor, TensorIterator,
    make_tensor, make_scalar_tensor,
    NonContiguousReshapeWarning, OutOfRangeError, UnboundResourceError
)


class TestIteratorTraversal:
    """Test walking contiguous and strided views."""

    def test_walk_root_tensor(self, matrix_3x4):
        """Test walking a packed tensor from begin to end."""
        values = []
        it = matrix_3x4.begin()
        end = matrix_3x4.end()
        while it != end:
            values.append(it.dereference())
            it += 1
        assert values == list(range(12))

    def test_walk_strided_slice(self, range_tensor_3x4x5):
        """Test walking a strided 3-D slice."""
        # [1:3, :3, 2:]
        sliced = range_tensor_3x4x5.at(Slice(Range(1, 3), Range(3), Range(2, 5)))
        expected = [20 * i + 5 * j + k for i in range(1, 3) for j in range(3) for k in range(2, 5)]
        assert list(sliced) == expected
        assert len(list(sliced)) == sliced.size

    def test_walk_zero_stride_axis(self, matrix_3x4):
        """Test walking a view with a stride-0 axis."""
        row = matrix_3x4.at(Slice(1, Range(4)))
        assert row.strides == (0, 1)
        assert list(row) == [4, 5, 6, 7]

    def test_walk_column(self, matrix_3x4):
        """Test walking a column view."""
        column = matrix_3x4[:, 2]
        assert list(column) == [2, 6, 10]

    def test_walk_scalar(self):
        """Test walking a 0-dimensional tensor."""
        assert list(make_scalar_tensor(5)) == [5]

    def test_exhaustive_walk_matches_numpy(self):
        """Test a 4-D strided walk against numpy slicing."""
        data = np.arange(2 * 3 * 4 * 5)
        tensor = make_tensor(data, (2, 3, 4, 5))
        view = tensor.at(Slice(Range(0, 2), Range(1, 3), 2, Range(1, 5)))
        expected = data.reshape(2, 3, 4, 5)[0:2, 1:3, 2:3, 1:5].ravel().tolist()
        assert list(view) == expected

    def test_visits_each_position_once(self, range_tensor_3x4x5):
        """Test every element is visited exactly once."""
        view = range_tensor_3x4x5[0:3:1, 1:4, 0:5]
        it = view.begin()
        seen = []
        while it != view.end():
            seen.append(it.offset())
            it += 1
        assert len(seen) == view.size
        assert len(set(seen)) == view.size


class TestIteratorMovement:
    """Test advance, arithmetic and bounds."""

    def test_begin_plus_size_is_end(self, range_tensor_3x4x5):
        """Test advancing begin by size reaches end."""
        sliced = range_tensor_3x4x5.at(Slice(Range(1, 3), Range(3), Range(2, 5)))
        assert sliced.begin() + sliced.size == sliced.end()

    def test_arithmetic_returns_new_iterator(self, matrix_3x4):
        """Test + and - leave the original iterator in place."""
        it = matrix_3x4.begin()
        later = it + 5
        assert it.position == 0
        assert later.position == 5
        assert later.dereference() == 5
        assert (later - 2).dereference() == 3

    def test_end_minus_one_is_last(self, matrix_3x4):
        """Test stepping back from end gives the last element."""
        assert (matrix_3x4.end() - 1).dereference() == 11

    def test_advance_past_end(self, matrix_3x4):
        """Test advancing past end is rejected."""
        it = matrix_3x4.end()
        with pytest.raises(OutOfRangeError):
            it.advance(1)
        with pytest.raises(OutOfRangeError):
            matrix_3x4.begin() + 13

    def test_advance_before_begin(self, matrix_3x4):
        """Test moving before begin is rejected."""
        it = matrix_3x4.begin()
        with pytest.raises(OutOfRangeError):
            it -= 1
        assert it.position == 0

    def test_dereference_end(self, matrix_3x4):
        """Test dereferencing end is rejected."""
        with pytest.raises(OutOfRangeError):
            matrix_3x4.end().dereference()

    def test_bind_out_of_range(self, matrix_3x4):
        """Test binding at a position past end is rejected."""
        with pytest.raises(OutOfRangeError):
            TensorIterator(matrix_3x4, 13)

    def test_copy_is_independent(self, matrix_3x4):
        """Test a copied iterator moves on its own."""
        it = matrix_3x4.begin()
        other = it.copy()
        it += 3
        assert other.position == 0

    def test_iterator_protocol(self, matrix_3x4):
        """Test the iterator yields the remaining elements."""
        assert list(matrix_3x4.begin() + 10) == [10, 11]

    def test_index(self, matrix_3x4):
        """Test the logical multi-index of the current position."""
        assert (matrix_3x4.begin() + 5).index() == [1, 1]
        with pytest.raises(OutOfRangeError):
            matrix_3x4.end().index()


class TestIteratorAccess:
    """Test reads and writes through an iterator."""

    def test_set_writes_through(self, matrix_3x4):
        """Test writing through an iterator reaches the root tensor."""
        view = matrix_3x4[1:3, 0:2]
        it = view.begin() + 3
        it.set(-9)
        assert matrix_3x4[2, 1] == -9

    def test_offset(self, matrix_3x4):
        """Test buffer offsets of a strided view."""
        view = matrix_3x4[1:3, 0:2]
        assert [(view.begin() + p).offset() for p in range(4)] == [4, 5, 8, 9]


class TestIteratorEquality:
    """Test comparison rules."""

    def test_same_buffer_same_position(self, matrix_3x4):
        """Test iterators over one buffer compare by position."""
        assert matrix_3x4.begin() == matrix_3x4.share().begin()
        assert matrix_3x4.begin() != matrix_3x4.begin() + 1

    def test_views_of_one_buffer_compare_by_position(self, matrix_3x4):
        """Test different views of one buffer compare equal at one position."""
        assert matrix_3x4.begin() == matrix_3x4[1:3, 0:2].begin()

    def test_different_buffers_never_equal(self, matrix_3x4):
        """Test iterators over different buffers never compare equal."""
        assert matrix_3x4.begin() != matrix_3x4.copy().begin()

    def test_empty_tensor(self):
        """Test begin equals end for an empty tensor."""
        tensor = Tensor()
        assert tensor.size == 0
        assert tensor.begin() == tensor.end()
        with pytest.raises(OutOfRangeError):
            tensor.begin().dereference()


class TestIteratorLifetime:
    """Test unbound and invalidated iterators."""

    def test_unbound_iterator(self, matrix_3x4):
        """Test every use of an unbound iterator fails."""
        it = TensorIterator()
        assert not it.is_bound()
        with pytest.raises(UnboundResourceError):
            it.dereference()
        with pytest.raises(UnboundResourceError):
            it.advance(1)
        with pytest.raises(UnboundResourceError):
            it == matrix_3x4.begin()
        assert repr(it) == "TensorIterator(unbound)"

    def test_invalid_after_release(self):
        """Test an iterator is invalid once its tensor is released."""
        tensor = make_tensor(list(range(6)), (2, 3))
        it = tensor.begin()
        tensor.release()
        with pytest.raises(UnboundResourceError):
            it.dereference()
        with pytest.raises(UnboundResourceError):
            it.advance(1)

    def test_invalid_after_last_owner_deleted(self):
        """Test an iterator is invalid once its last owner is collected."""
        tensor = make_tensor(list(range(6)), (2, 3))
        it = tensor.begin()
        del tensor
        gc.collect()
        with pytest.raises(UnboundResourceError):
            it.dereference()

    def test_view_keeps_buffer_alive(self):
        """Test a surviving view keeps iterators valid."""
        tensor = make_tensor(list(range(6)), (2, 3))
        view = tensor[0:1, 0:2]
        it = tensor.begin() + 4
        tensor.release()
        assert it.dereference() == 4
        assert list(view) == [0, 1]
        view.release()
        with pytest.raises(UnboundResourceError):
            it.dereference()

    def test_iterator_does_not_own_buffer(self):
        """Test an iterator is not counted as an owner."""
        tensor = make_tensor([1, 2], (2,))
        it = tensor.begin()
        assert tensor.get_buffer().owners == 1
        tensor.release()
        with pytest.raises(UnboundResourceError):
            next(it)


class TestTensorIteration:
    """Test the Python iteration protocol of tensors."""

    def test_iterate_temporary_copy(self):
        """Test looping over a copy that nothing else refers to."""
        values = [x for x in make_tensor(list(range(6)), (2, 3)).copy()]
        assert values == list(range(6))

    def test_iterate_binary_result(self, matrix_3x4):
        """Test looping over the result of a binary operator."""
        assert [int(v) for v in matrix_3x4 + 1] == list(range(1, 13))
        assert [int(v) for v in matrix_3x4 + matrix_3x4.copy()] == list(range(0, 24, 2))

    def test_iterate_reshaped_copy(self, matrix_3x4):
        """Test looping over the private copy made by a non-contiguous reshape."""
        with pytest.warns(NonContiguousReshapeWarning):
            values = list(matrix_3x4[0:3, 1:3].reshape(6))
        assert values == [1, 2, 5, 6, 9, 10]

    def test_generator_over_temporary(self, matrix_3x4):
        """Test a lazily consumed generator over a temporary view."""
        doubled = (2 * v for v in matrix_3x4[1:3, 0:2].copy())
        assert list(doubled) == [8, 10, 16, 18]

    def test_release_during_loop(self):
        """Test releasing the tensor stops an ongoing loop."""
        tensor = make_tensor(list(range(4)), (4,))
        values = iter(tensor)
        assert next(values) == 0
        tensor.release()
        with pytest.raises(UnboundResourceError):
            next(values)
