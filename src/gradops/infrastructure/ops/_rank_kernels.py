"""
Rank-dispatched numeric kernels (NumPy backend).

`RankKernels` declares one static method per numeric primitive. The actual
implementations are registered below as control paths keyed on the tuple of
operand shape classes, using the same path builder the rest of the package
shares. Calling, say, ``RankKernels.relu(x)`` therefore runs the vector
implementation when ``x`` is a `Vector` and raises a typed error otherwise.

Supported paths
---------------
- ``elementwise``: (vector, vector), (matrix, matrix), (batch, batch)
- ``relu``, ``reduce_sum``, ``log_softmax``: (vector,)
- ``relu_grad``, ``dot``, ``sum_grad``, ``log_softmax_grad``: (vector, vector)
- ``dot_grad``: (vector, vector, vector)

A call whose operands belong to different shape classes raises
`ShapeMismatchError`; a call on a shape class without a path raises
`UnsupportedShapeError`. Extending an operation to another rank means
registering one more path here; the `Function` classes do not change.

All kernels allocate new arrays. Inputs are never written to.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError, UnsupportedShapeError
from ...domain._shape import ShapeClass
from ...domain.utils._control_path import create_path_builder
from ..values._value import Batch, Matrix, Value, Vector

VECTOR = ShapeClass.VECTOR
MATRIX = ShapeClass.MATRIX
BATCH = ShapeClass.BATCH


def _operand_kinds(*args: Any, **kwargs: Any) -> Tuple[ShapeClass, ...]:
    """Dispatch state: shape classes of the `Value` arguments, in order."""
    return tuple(a.kind for a in args if isinstance(a, Value))


def _missing_rank_path(
    method: Callable[..., Any], kinds: Hashable, args: Tuple[Any, ...]
) -> Exception:
    op = args[0] if args and isinstance(args[0], str) else method.__name__
    if len(set(kinds)) > 1:
        return ShapeMismatchError(
            op,
            "operands of one shape class",
            " vs ".join(k.value for k in kinds),
        )
    return UnsupportedShapeError(op, kinds)


# Control-path manager that dispatches kernels on operand shape classes
rank_control_path_manager = create_path_builder(_operand_kinds)


class RankKernels:
    """
    Namespace of numeric kernels; every method is replaced by a dispatcher.

    The bodies below only document the contract of each kernel.
    """

    @staticmethod
    def elementwise(op: str, fn: Callable[..., np.ndarray], a: Value, b: Value) -> Value:
        """
        Apply a binary ufunc to index-aligned elements of `a` and `b`.

        Parameters
        ----------
        op : str
            Operation name used in error messages.
        fn : Callable
            Binary NumPy ufunc (e.g. ``np.multiply``).
        a, b : Value
            Operands of the same shape class and matching dimensions.

        Returns
        -------
        Value
            Result of the same shape class as the operands.
        """
        ...

    @staticmethod
    def relu(x: Value) -> Value:
        """``max(0, x[i])`` for every element."""
        ...

    @staticmethod
    def relu_grad(x: Value, grad_out: Value) -> Value:
        """``grad_out[i]`` where ``x[i] > 0``, else 0."""
        ...

    @staticmethod
    def dot(a: Value, b: Value) -> Value:
        """Inner product returned as a length-1 vector."""
        ...

    @staticmethod
    def dot_grad(a: Value, b: Value, grad_out: Value) -> Tuple[Value, Value]:
        """``(b * g, a * g)`` for the scalar upstream gradient ``g``."""
        ...

    @staticmethod
    def reduce_sum(x: Value) -> Value:
        """Sum of all elements returned as a length-1 vector."""
        ...

    @staticmethod
    def sum_grad(x: Value, grad_out: Value) -> Value:
        """Scalar upstream gradient broadcast to the shape of `x`."""
        ...

    @staticmethod
    def log_softmax(x: Value) -> Value:
        """Numerically stabilized log-softmax."""
        ...

    @staticmethod
    def log_softmax_grad(out: Value, grad_out: Value) -> Value:
        """``g - exp(out) * sum(g)`` given the saved log-softmax output."""
        ...


def _upstream_scalar(op: str, grad_out: Vector) -> Any:
    if grad_out.shape != (1,):
        raise ShapeMismatchError(op, (1,), grad_out.shape)
    return grad_out.array[0]


def _require_same_shape(op: str, a: Value, b: Value) -> None:
    if a.shape != b.shape:
        raise ShapeMismatchError(op, a.shape, b.shape)


# -----------------------------
# Elementwise
# -----------------------------


@rank_control_path_manager(
    RankKernels, RankKernels.elementwise, (VECTOR, VECTOR), _missing_rank_path
)
@rank_control_path_manager(
    RankKernels, RankKernels.elementwise, (MATRIX, MATRIX), _missing_rank_path
)
def _elementwise_dense(op: str, fn: Callable[..., np.ndarray], a, b):
    _require_same_shape(op, a, b)
    return type(a)._wrap(fn(a.array, b.array))


@rank_control_path_manager(
    RankKernels, RankKernels.elementwise, (BATCH, BATCH), _missing_rank_path
)
def _elementwise_batch(op: str, fn: Callable[..., np.ndarray], a: Batch, b: Batch) -> Batch:
    if len(a) != len(b):
        raise ShapeMismatchError(op, f"batch of {len(a)}", f"batch of {len(b)}")
    # each pair goes back through dispatch and takes the matrix path
    return Batch._wrap(
        tuple(
            RankKernels.elementwise(f"{op}[{i}]", fn, x, y)
            for i, (x, y) in enumerate(zip(a, b))
        )
    )


# -----------------------------
# ReLU
# -----------------------------


@rank_control_path_manager(RankKernels, RankKernels.relu, (VECTOR,), _missing_rank_path)
def _relu_vector(x: Vector) -> Vector:
    v = x.array
    return Vector._wrap(np.where(v > 0, v, np.zeros_like(v)))


@rank_control_path_manager(
    RankKernels, RankKernels.relu_grad, (VECTOR, VECTOR), _missing_rank_path
)
def _relu_grad_vector(x: Vector, grad_out: Vector) -> Vector:
    _require_same_shape("relu_grad", x, grad_out)
    g = grad_out.array
    # strict gate: x == 0 passes no gradient
    return Vector._wrap(np.where(x.array > 0, g, np.zeros_like(g)))


# -----------------------------
# Dot
# -----------------------------


@rank_control_path_manager(
    RankKernels, RankKernels.dot, (VECTOR, VECTOR), _missing_rank_path
)
def _dot_vector(a: Vector, b: Vector) -> Vector:
    _require_same_shape("dot", a, b)
    dt = np.result_type(a.dtype, b.dtype)
    return Vector._wrap(np.asarray([np.dot(a.array, b.array)], dtype=dt))


@rank_control_path_manager(
    RankKernels, RankKernels.dot_grad, (VECTOR, VECTOR, VECTOR), _missing_rank_path
)
def _dot_grad_vector(a: Vector, b: Vector, grad_out: Vector) -> Tuple[Vector, Vector]:
    g = _upstream_scalar("dot_grad", grad_out)
    return Vector._wrap(b.array * g), Vector._wrap(a.array * g)


# -----------------------------
# Sum
# -----------------------------


@rank_control_path_manager(
    RankKernels, RankKernels.reduce_sum, (VECTOR,), _missing_rank_path
)
def _reduce_sum_vector(x: Vector) -> Vector:
    return Vector._wrap(np.asarray([np.sum(x.array)], dtype=x.dtype))


@rank_control_path_manager(
    RankKernels, RankKernels.sum_grad, (VECTOR, VECTOR), _missing_rank_path
)
def _sum_grad_vector(x: Vector, grad_out: Vector) -> Vector:
    g = _upstream_scalar("sum_grad", grad_out)
    return Vector._wrap(np.full(x.shape, g, dtype=grad_out.dtype))


# -----------------------------
# LogSoftmax
# -----------------------------


@rank_control_path_manager(
    RankKernels, RankKernels.log_softmax, (VECTOR,), _missing_rank_path
)
def _log_softmax_vector(x: Vector) -> Vector:
    if x.size == 0:
        raise ShapeMismatchError("log_softmax", "non-empty vector", x.shape)

    v = x.array
    # log-sum-exp stabilization: shift by the max before exponentiating
    m = np.max(v)
    shifted = v - m
    z = np.sum(np.exp(shifted))
    return Vector._wrap(shifted - np.log(z))


@rank_control_path_manager(
    RankKernels, RankKernels.log_softmax_grad, (VECTOR, VECTOR), _missing_rank_path
)
def _log_softmax_grad_vector(out: Vector, grad_out: Vector) -> Vector:
    _require_same_shape("log_softmax_grad", out, grad_out)
    g = grad_out.array
    # exp(out) is softmax(x), so this is g - softmax * sum(g)
    return Vector._wrap(g - np.exp(out.array) * np.sum(g))
