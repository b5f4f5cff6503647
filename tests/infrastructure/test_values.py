import unittest
import numpy as np

from gradops.domain._errors import UnsupportedShapeError
from gradops.domain._shape import ShapeClass
from gradops.infrastructure.values._value import (
    Batch,
    Matrix,
    Vector,
    as_value,
    layout_of,
)


class TestVector(unittest.TestCase):

    def test_construction_copies_and_freezes(self) -> None:
        src = np.array([1.0, 2.0, 3.0])
        v = Vector(src)

        src[0] = 100.0
        self.assertEqual(v.tolist(), [1.0, 2.0, 3.0])
        self.assertFalse(v.array.flags.writeable)
        with self.assertRaises(ValueError):
            v.array[0] = 5.0

    def test_properties(self) -> None:
        v = Vector([1, 2, 3])
        self.assertIs(v.kind, ShapeClass.VECTOR)
        self.assertEqual(v.shape, (3,))
        self.assertEqual(v.size, 3)
        self.assertEqual(len(v), 3)
        self.assertEqual(v.dtype, np.float64)
        self.assertEqual(v[1], 2.0)

    def test_wrong_rank_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            Vector([[1.0, 2.0]])

    def test_to_numpy_is_writable_copy(self) -> None:
        v = Vector([1.0, 2.0])
        arr = v.to_numpy()
        arr[0] = 9.0
        self.assertEqual(v.tolist(), [1.0, 2.0])

    def test_explicit_dtype(self) -> None:
        v = Vector([1.0, 2.0], dtype=np.float32)
        self.assertEqual(v.dtype, np.float32)

    def test_copy_uses_new_storage(self) -> None:
        v = Vector([1.0, 2.0])
        c = v.copy()
        self.assertIsNot(c, v)
        self.assertIsNot(c.array, v.array)
        self.assertEqual(c.tolist(), v.tolist())


class TestMatrix(unittest.TestCase):

    def test_properties(self) -> None:
        m = Matrix([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        self.assertIs(m.kind, ShapeClass.MATRIX)
        self.assertEqual(m.shape, (2, 3))
        self.assertEqual(m.size, 6)
        self.assertEqual(m[1, 2], 6.0)

    def test_wrong_rank_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            Matrix([1.0, 2.0])

    def test_np_asarray_interop(self) -> None:
        m = Matrix([[1.0, 2.0], [3.0, 4.0]])
        np.testing.assert_array_equal(np.asarray(m), [[1.0, 2.0], [3.0, 4.0]])


class TestBatch(unittest.TestCase):

    def test_uniform_batch(self) -> None:
        b = Batch([[[1, 2], [3, 4]], [[5, 6], [7, 8]]])
        self.assertIs(b.kind, ShapeClass.BATCH)
        self.assertEqual(b.shape, (2, 2, 2))
        self.assertEqual(len(b), 2)
        self.assertEqual(b.size, 8)
        self.assertFalse(b.is_ragged)
        self.assertIsInstance(b[0], Matrix)
        self.assertEqual(b[1].tolist(), [[5.0, 6.0], [7.0, 8.0]])

    def test_ragged_batch(self) -> None:
        b = Batch([np.ones((2, 2)), np.ones((1, 3))])
        self.assertTrue(b.is_ragged)
        self.assertEqual(b.shape, (2, None, None))
        self.assertEqual(b.matrix_shapes, ((2, 2), (1, 3)))
        with self.assertRaises(ValueError):
            b.to_numpy()

    def test_from_3d_array(self) -> None:
        arr = np.arange(12, dtype=np.float64).reshape(3, 2, 2)
        b = Batch(arr)
        np.testing.assert_array_equal(b.to_numpy(), arr)

    def test_keeps_existing_matrices(self) -> None:
        m = Matrix([[1.0]])
        b = Batch([m])
        self.assertIs(b[0], m)

    def test_slice_returns_batch(self) -> None:
        b = Batch(np.zeros((3, 1, 1)))
        self.assertIsInstance(b[1:], Batch)
        self.assertEqual(len(b[1:]), 2)

    def test_member_with_wrong_rank_raises(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            Batch([[1.0, 2.0]])


class TestAsValue(unittest.TestCase):

    def test_dispatches_on_rank(self) -> None:
        self.assertIsInstance(as_value([1.0, 2.0]), Vector)
        self.assertIsInstance(as_value([[1.0, 2.0]]), Matrix)
        self.assertIsInstance(as_value(np.zeros((2, 2, 2))), Batch)

    def test_value_is_returned_unchanged(self) -> None:
        v = Vector([1.0])
        self.assertIs(as_value(v), v)

    def test_value_is_converted_when_dtype_differs(self) -> None:
        v = Vector([1.0, 2.0])
        c = as_value(v, dtype=np.float32)
        self.assertIsInstance(c, Vector)
        self.assertEqual(c.dtype, np.float32)
        self.assertEqual(c.tolist(), [1.0, 2.0])

    def test_ragged_list_becomes_batch(self) -> None:
        b = as_value([[[1.0, 2.0]], [[1.0], [2.0]]])
        self.assertIsInstance(b, Batch)
        self.assertEqual(b.matrix_shapes, ((1, 2), (2, 1)))

    def test_scalar_is_unsupported(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            as_value(3.0)

    def test_rank_four_is_unsupported(self) -> None:
        with self.assertRaises(UnsupportedShapeError):
            as_value(np.zeros((1, 1, 1, 1)))

    def test_batch_with_uneven_rows_is_unsupported(self) -> None:
        with self.assertRaises(UnsupportedShapeError) as cm:
            as_value([[[1.0, 2.0], [3.0]], [[1.0, 2.0], [3.0, 4.0]]])
        self.assertEqual(cm.exception.kinds, ("inhomogeneous",))
        self.assertIsInstance(cm.exception.__cause__, ValueError)

    def test_matrix_with_uneven_rows_is_unsupported(self) -> None:
        with self.assertRaises(UnsupportedShapeError) as cm:
            Matrix([[1.0, 2.0], [3.0]])
        self.assertEqual(cm.exception.op, "Matrix")


class TestLayoutOf(unittest.TestCase):

    def test_dense_layout(self) -> None:
        self.assertEqual(layout_of(Vector([1.0, 2.0])), (ShapeClass.VECTOR, (2,)))
        self.assertEqual(
            layout_of(Matrix([[1.0, 2.0]])), (ShapeClass.MATRIX, (1, 2))
        )

    def test_batch_layout_lists_member_shapes(self) -> None:
        b = Batch([np.ones((1, 2)), np.ones((2, 1))])
        self.assertEqual(layout_of(b), (ShapeClass.BATCH, ((1, 2), (2, 1))))


if __name__ == "__main__":
    unittest.main()
