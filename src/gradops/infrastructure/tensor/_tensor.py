"""
Tensor record (NumPy backend).

A `Tensor` pairs a numeric value with the metadata a caller needs to track
where it came from:

- `data`: the `Vector`, `Matrix` or `Batch` it holds,
- `grad`: an optional gradient accumulator of identical shape,
- `shape` and `kind`: descriptors of `data`,
- `ctx`: the `Context` of the operation that produced it, if any.

Design notes
------------
- Operations never mutate tensors. Gradient accumulation replaces `grad` with
  a newly built value.
- The producing context keeps `parents` and a `backward_fn`. `propagate`
  follows exactly one such link; walking a whole graph in reverse topological
  order is left to a higher layer.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ...domain._errors import ContextError, ShapeMismatchError
from ...domain._shape import ShapeClass
from ..ops._rank_kernels import RankKernels
from ..values._value import Value, as_value, layout_of
from ._tensor_context import Context


class Tensor:
    """
    Value-plus-metadata wrapper used to track provenance.

    Parameters
    ----------
    data : Value or array-like
        Contents, coerced with `as_value`.
    requires_grad : bool, optional
        Whether gradients should be accumulated into this tensor. Defaults to
        False.
    ctx : Optional[Context], optional
        Context of the producing operation. Typically set by the functional
        wrappers. Defaults to None.
    dtype : dtype-like, optional
        Element dtype used when coercing `data`.
    """

    def __init__(
        self,
        data: Any,
        *,
        requires_grad: bool = False,
        ctx: Optional[Context] = None,
        dtype: Any = None,
    ) -> None:
        self._data: Value = as_value(data, dtype=dtype)
        self._grad: Optional[Value] = None
        self._requires_grad = bool(requires_grad)
        self._ctx = ctx

    @property
    def data(self) -> Value:
        return self._data

    @property
    def grad(self) -> Optional[Value]:
        """Accumulated gradient, or None if nothing has been accumulated."""
        return self._grad

    @property
    def shape(self) -> Tuple[Optional[int], ...]:
        return self._data.shape

    @property
    def kind(self) -> ShapeClass:
        return self._data.kind

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._requires_grad = bool(value)

    @property
    def ctx(self) -> Optional[Context]:
        """Context of the operation that produced this tensor (non-owning)."""
        return self._ctx

    @property
    def is_leaf(self) -> bool:
        return self._ctx is None

    def _set_ctx(self, ctx: Optional[Context]) -> None:
        self._ctx = ctx

    def zero_grad(self) -> None:
        """Clear the stored gradient."""
        self._grad = None

    def accumulate_grad(self, grad: Any) -> None:
        """
        Add `grad` into the stored gradient.

        Parameters
        ----------
        grad : Value or array-like
            Gradient with the same shape class and dimensions as `data`.

        Raises
        ------
        ShapeMismatchError
            If `grad` does not match the layout of `data`.
        """
        g = as_value(grad, dtype=self.dtype)
        if layout_of(g) != layout_of(self._data):
            raise ShapeMismatchError("accumulate_grad", self.shape, g.shape)
        if self._grad is None:
            self._grad = g
        else:
            self._grad = RankKernels.elementwise("accumulate_grad", np.add, self._grad, g)

    def propagate(self, grad_out: Any) -> None:
        """
        Push `grad_out` one step back to the parents of this tensor.

        Runs the producing context's backward function and accumulates each
        returned gradient into the corresponding parent that requires
        gradients. Parents' own contexts are not followed.

        Raises
        ------
        ContextError
            If this tensor was not produced by a tracked operation.
        RuntimeError
            If the backward function returned the wrong number of gradients.
        """
        if self._ctx is None:
            raise ContextError("Tensor has no producing context to propagate through.")

        grads = self._ctx.backward(grad_out)
        parents = tuple(self._ctx.parents)
        if len(grads) != len(parents):
            raise RuntimeError(
                f"backward returned {len(grads)} gradient(s) for {len(parents)} parent(s)."
            )
        for parent, g in zip(parents, grads):
            if g is not None and parent.requires_grad:
                parent.accumulate_grad(g)

    def to_numpy(self) -> np.ndarray:
        return self._data.to_numpy()

    def __repr__(self) -> str:
        return (
            f"Tensor({self._data!r}, requires_grad={self._requires_grad}, "
            f"grad={self._grad!r})"
        )
