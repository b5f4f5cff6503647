"""
Primitive differentiable operations.

This module contains the six primitive operations of gradops, expressed in a
function-style autograd API:

- Each operation is a `Function` subclass with `forward(ctx, ...)` and
  `backward(ctx, grad_out)` static methods.
- Forward saves one frozen, operation-specific record on the context
  (`MulSaved`, `DotSaved`, ...). Backward reads it back by type.
- All per-rank numeric work is delegated to `RankKernels`, which dispatches
  on the shape classes of the operands.
- Public functional wrappers (`mul`, `add`, ...) work on `Tensor` records and
  are responsible for:
  - validating inputs,
  - constructing the `Context` and wiring `backward_fn`,
  - invoking `forward`,
  - attaching the context to the output when gradients are required.

Notes
-----
- Forward and backward accept `Value` instances or array-likes; the latter
  are coerced with `as_value`.
- Forward saves only after its kernel succeeds, so a rejected call leaves the
  context untouched.
- `backward` always returns a tuple with one gradient per forward input.
"""

import warnings
from dataclasses import dataclass
from typing import Any, Tuple, Type

import numpy as np

from ..domain._errors import ShapeMismatchError
from ..domain._function import Function
from .ops._rank_kernels import RankKernels
from .tensor._tensor import Tensor
from .tensor._tensor_context import Context
from .values._value import Value, as_value, layout_of


@dataclass(frozen=True)
class MulSaved:
    """Operands recorded by `MulFn.forward`."""

    a: Value
    b: Value


@dataclass(frozen=True)
class AddSaved:
    """Operand layout recorded by `AddFn.forward`; no values are kept."""

    layout: Tuple[Any, ...]
    shape: Tuple[Any, ...]


@dataclass(frozen=True)
class DotSaved:
    """Operands recorded by `DotFn.forward`."""

    a: Value
    b: Value


@dataclass(frozen=True)
class ReLUSaved:
    """Input recorded by `ReLUFn.forward`."""

    x: Value


@dataclass(frozen=True)
class SumSaved:
    """Input recorded by `SumFn.forward`."""

    x: Value


@dataclass(frozen=True)
class LogSoftmaxSaved:
    """Output recorded by `LogSoftmaxFn.forward`; backward needs no input."""

    out: Value


class MulFn(Function):
    """
    Elementwise multiplication over vectors, matrices and batches.

    Implements:

        out[i] = a[i] * b[i]

    Backward:

        grad_a = b * grad_out
        grad_b = a * grad_out
    """

    @staticmethod
    def forward(ctx: Context, a: Any, b: Any) -> Value:
        """
        Multiply `a` and `b` elementwise.

        Parameters
        ----------
        ctx : Context
            Fresh context; receives a `MulSaved(a, b)` record.
        a, b : Value or array-like
            Operands of the same shape class and matching dimensions. Batches
            are multiplied member by member.

        Returns
        -------
        Value
            The elementwise product, same shape class as the operands.

        Raises
        ------
        ShapeMismatchError
            If the operands differ in shape class or dimensions.
        """
        a, b = as_value(a), as_value(b)
        out = RankKernels.elementwise("mul", np.multiply, a, b)
        ctx.save_for_backward(MulSaved(a, b))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value, Value]:
        """
        Compute ``(b * grad_out, a * grad_out)``.

        Raises
        ------
        ShapeMismatchError
            If `grad_out` does not match the operands.
        """
        saved = ctx.read(0, MulSaved)
        g = as_value(grad_out)
        grad_a = RankKernels.elementwise("mul_backward", np.multiply, saved.b, g)
        grad_b = RankKernels.elementwise("mul_backward", np.multiply, saved.a, g)
        return grad_a, grad_b


class AddFn(Function):
    """
    Elementwise addition over vectors, matrices and batches.

    Implements:

        out[i] = a[i] + b[i]

    Backward:

        grad_a = grad_b = grad_out

    Notes
    -----
    Backward needs no operand values. Forward only records the operand layout
    (`AddSaved`) so that backward can refuse an upstream gradient of another
    shape. The two returned gradients are separate copies of `grad_out`, so
    code that later tracks gradients by identity never sees the same object
    for both inputs.
    """

    @staticmethod
    def forward(ctx: Context, a: Any, b: Any) -> Value:
        a, b = as_value(a), as_value(b)
        out = RankKernels.elementwise("add", np.add, a, b)
        ctx.save_for_backward(AddSaved(layout_of(a), a.shape))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value, Value]:
        """
        Return ``(grad_out, grad_out)`` as two independent values.

        Raises
        ------
        ShapeMismatchError
            If `grad_out` does not have the layout of the operands.
        """
        saved = ctx.read(0, AddSaved)
        g = as_value(grad_out)
        if layout_of(g) != saved.layout:
            raise ShapeMismatchError("add_backward", saved.shape, g.shape)
        return g.copy(), g.copy()


class ReLUFn(Function):
    """
    Rectified linear activation over a vector.

    Implements:

        relu(x) = max(0, x)

    Backward:

        d(relu)/dx = 1 if x > 0 else 0

    Notes
    -----
    The gate is strict: an input of exactly 0 receives zero gradient.
    """

    @staticmethod
    def forward(ctx: Context, x: Any) -> Value:
        x = as_value(x)
        out = RankKernels.relu(x)
        ctx.save_for_backward(ReLUSaved(x))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value]:
        saved = ctx.read(0, ReLUSaved)
        return (RankKernels.relu_grad(saved.x, as_value(grad_out)),)


class DotFn(Function):
    """
    Inner product of two vectors of equal length.

    Implements:

        out = [sum_i a[i] * b[i]]

    Backward:

        grad_a = b * grad_out[0]
        grad_b = a * grad_out[0]

    Notes
    -----
    The scalar result is returned as a length-1 vector, and the upstream
    gradient must be a length-1 vector as well.
    """

    @staticmethod
    def forward(ctx: Context, a: Any, b: Any) -> Value:
        """
        Compute the dot product of `a` and `b`.

        Raises
        ------
        ShapeMismatchError
            If the vectors differ in length.
        UnsupportedShapeError
            If either operand is not a vector.
        """
        a, b = as_value(a), as_value(b)
        out = RankKernels.dot(a, b)
        ctx.save_for_backward(DotSaved(a, b))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value, Value]:
        saved = ctx.read(0, DotSaved)
        return RankKernels.dot_grad(saved.a, saved.b, as_value(grad_out))


class SumFn(Function):
    """
    Sum-reduction of a vector.

    Implements:

        out = [sum_i x[i]]

    Backward:

        grad_x[i] = grad_out[0] for every i
    """

    @staticmethod
    def forward(ctx: Context, x: Any) -> Value:
        x = as_value(x)
        out = RankKernels.reduce_sum(x)
        ctx.save_for_backward(SumSaved(x))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value]:
        saved = ctx.read(0, SumSaved)
        return (RankKernels.sum_grad(saved.x, as_value(grad_out)),)


class LogSoftmaxFn(Function):
    """
    Log-softmax of a vector.

    Implements the log-sum-exp stabilized form:

        m = max(x)
        s = x - m
        out = s - log(sum(exp(s)))

    Backward:

        grad_x = grad_out - exp(out) * sum(grad_out)

    Notes
    -----
    - Subtracting the maximum keeps every exponent at or below 0, so large
      inputs (e.g. ``[1000, 1000, 1000]``) do not overflow.
    - The output, not the input, is saved: ``exp(out)`` is the softmax, which
      is all the Jacobian ``delta_ij - softmax_j`` requires.
    - Non-finite inputs produce a `RuntimeWarning`.
    """

    @staticmethod
    def forward(ctx: Context, x: Any) -> Value:
        x = as_value(x)
        out = RankKernels.log_softmax(x)
        if not np.all(np.isfinite(x.array)):
            warnings.warn(
                "log_softmax received non-finite input values; "
                "the result will contain NaN or infinite entries.",
                RuntimeWarning,
                stacklevel=2,
            )
        ctx.save_for_backward(LogSoftmaxSaved(out))
        return out

    @staticmethod
    def backward(ctx: Context, grad_out: Any) -> Tuple[Value]:
        saved = ctx.read(0, LogSoftmaxSaved)
        return (RankKernels.log_softmax_grad(saved.out, as_value(grad_out)),)


def _apply(name: str, fn: Type[Function], *inputs: Tensor) -> Tensor:
    """
    Run `fn` on tensor records and wire autograd metadata.

    Parameters
    ----------
    name : str
        Public wrapper name used in error messages.
    fn : Type[Function]
        Operation to run.
    *inputs : Tensor
        Operands.

    Returns
    -------
    Tensor
        Output record. Its context is attached only when some input requires
        gradients.

    Raises
    ------
    TypeError
        If any input is not a `Tensor`.
    """
    for t in inputs:
        if not isinstance(t, Tensor):
            raise TypeError(f"{name} expects Tensor inputs, got {type(t).__name__}")

    ctx = Context(
        parents=inputs,
        backward_fn=lambda grad_out: fn.backward(ctx, grad_out),
    )

    out_value = fn.forward(ctx, *(t.data for t in inputs))

    requires_grad = any(t.requires_grad for t in inputs)
    out = Tensor(out_value, requires_grad=requires_grad)
    if requires_grad:
        out._set_ctx(ctx)

    return out


def mul(a: Tensor, b: Tensor) -> Tensor:
    """Elementwise product of two tensors with autograd wiring."""
    return _apply("mul", MulFn, a, b)


def add(a: Tensor, b: Tensor) -> Tensor:
    """Elementwise sum of two tensors with autograd wiring."""
    return _apply("add", AddFn, a, b)


def relu(x: Tensor) -> Tensor:
    """ReLU of a vector tensor with autograd wiring."""
    return _apply("relu", ReLUFn, x)


def dot(a: Tensor, b: Tensor) -> Tensor:
    """Dot product of two vector tensors with autograd wiring."""
    return _apply("dot", DotFn, a, b)


def reduce_sum(x: Tensor) -> Tensor:
    """Sum of a vector tensor, as a length-1 vector tensor."""
    return _apply("reduce_sum", SumFn, x)


def log_softmax(x: Tensor) -> Tensor:
    """
    Log-softmax of a vector tensor with autograd wiring.

    Parameters
    ----------
    x : Tensor
        Vector tensor.

    Returns
    -------
    Tensor
        Tensor of the same length whose exponentials sum to 1.
    """
    return _apply("log_softmax", LogSoftmaxFn, x)
