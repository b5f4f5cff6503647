import unittest

from gradops.domain._errors import (
    ContextError,
    ContextMismatchError,
    ContextUnderflowError,
)
from gradops.infrastructure.tensor._tensor_context import Context
from gradops.infrastructure._function import DotSaved, MulSaved
from gradops.infrastructure.values._value import Vector


class TestContext(unittest.TestCase):

    def test_new_context_is_empty(self) -> None:
        ctx = Context()
        self.assertEqual(ctx.saved_values, [])
        self.assertEqual(tuple(ctx.parents), ())
        self.assertIsNone(ctx.backward_fn)

    def test_contexts_do_not_share_saved_values(self) -> None:
        a, b = Context(), Context()
        a.save_for_backward(1)
        self.assertEqual(b.saved_values, [])

    def test_save_appends_in_call_order(self) -> None:
        ctx = Context()
        ctx.save_for_backward("a", "b")
        ctx.save_for_backward("c")
        ctx.save_for_backward("a")  # no deduplication
        self.assertEqual(ctx.saved_values, ["a", "b", "c", "a"])
        self.assertEqual(len(ctx), 4)
        self.assertEqual(ctx.read(0), "a")
        self.assertEqual(ctx.read(2), "c")

    def test_read_before_save_underflows(self) -> None:
        ctx = Context()
        with self.assertRaises(ContextUnderflowError) as cm:
            ctx.read(0)
        self.assertEqual(cm.exception.index, 0)
        self.assertEqual(cm.exception.size, 0)

    def test_read_past_end_underflows(self) -> None:
        ctx = Context()
        ctx.save_for_backward(1)
        with self.assertRaises(ContextUnderflowError):
            ctx.read(1)

    def test_negative_index_is_rejected(self) -> None:
        ctx = Context()
        ctx.save_for_backward(1)
        with self.assertRaises(ContextUnderflowError):
            ctx.read(-1)

    def test_typed_read(self) -> None:
        v = Vector([1.0])
        ctx = Context()
        ctx.save_for_backward(MulSaved(v, v))

        self.assertIsInstance(ctx.read(0, MulSaved), MulSaved)
        with self.assertRaises(ContextMismatchError) as cm:
            ctx.read(0, DotSaved)
        self.assertEqual(cm.exception.expected, "DotSaved")
        self.assertEqual(cm.exception.actual, "MulSaved")

    def test_backward_without_function_raises(self) -> None:
        with self.assertRaises(ContextError):
            Context().backward([1.0])

    def test_backward_returns_tuple(self) -> None:
        ctx = Context(parents=(), backward_fn=lambda g: [g, g])
        self.assertEqual(ctx.backward(3), (3, 3))


if __name__ == "__main__":
    unittest.main()
