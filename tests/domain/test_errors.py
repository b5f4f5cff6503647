import unittest

from gradops.domain._errors import (
    ContextError,
    ContextMismatchError,
    ContextUnderflowError,
    ShapeMismatchError,
    UnsupportedShapeError,
)
from gradops.domain._shape import ShapeClass


class TestShapeMismatchError(unittest.TestCase):

    def test_attributes_and_message(self) -> None:
        err = ShapeMismatchError("dot", (3,), (4,))
        self.assertEqual(err.op, "dot")
        self.assertEqual(err.expected, (3,))
        self.assertEqual(err.actual, (4,))
        self.assertIn("dot", str(err))
        self.assertIn("(3,)", str(err))
        self.assertIn("(4,)", str(err))

    def test_is_value_error(self) -> None:
        self.assertIsInstance(ShapeMismatchError("mul", 1, 2), ValueError)


class TestUnsupportedShapeError(unittest.TestCase):

    def test_message_uses_shape_class_names(self) -> None:
        err = UnsupportedShapeError("relu", (ShapeClass.MATRIX,))
        self.assertEqual(err.kinds, (ShapeClass.MATRIX,))
        self.assertIn("relu", str(err))
        self.assertIn("matrix", str(err))

    def test_accepts_plain_descriptions(self) -> None:
        err = UnsupportedShapeError("as_value", ["rank-0"])
        self.assertEqual(err.kinds, ("rank-0",))
        self.assertIn("rank-0", str(err))

    def test_is_type_error(self) -> None:
        self.assertIsInstance(UnsupportedShapeError("relu", ()), TypeError)


class TestContextErrors(unittest.TestCase):

    def test_underflow_attributes(self) -> None:
        err = ContextUnderflowError(1, 0)
        self.assertEqual(err.index, 1)
        self.assertEqual(err.size, 0)
        self.assertIn("slot 1", str(err))

    def test_mismatch_attributes(self) -> None:
        err = ContextMismatchError("MulSaved", "DotSaved")
        self.assertEqual(err.expected, "MulSaved")
        self.assertEqual(err.actual, "DotSaved")

    def test_hierarchy(self) -> None:
        self.assertTrue(issubclass(ContextUnderflowError, ContextError))
        self.assertTrue(issubclass(ContextMismatchError, ContextError))
        self.assertTrue(issubclass(ContextError, RuntimeError))


if __name__ == "__main__":
    unittest.main()
