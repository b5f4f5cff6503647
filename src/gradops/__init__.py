"""
gradops: primitive differentiable tensor operations.

Each operation exposes a forward evaluation and a backward (gradient)
computation, coordinated through a per-invocation `Context`. Operations are
generic over vectors, matrices and batches of matrices where defined.
"""

from .domain._errors import (
    ContextError,
    ContextMismatchError,
    ContextUnderflowError,
    ShapeMismatchError,
    UnsupportedShapeError,
)
from .domain._function import Function
from .domain._shape import ShapeClass
from .infrastructure._config import get_default_dtype, set_default_dtype
from .infrastructure._function import (
    AddFn,
    AddSaved,
    DotFn,
    DotSaved,
    LogSoftmaxFn,
    LogSoftmaxSaved,
    MulFn,
    MulSaved,
    ReLUFn,
    ReLUSaved,
    SumFn,
    SumSaved,
    add,
    dot,
    log_softmax,
    mul,
    reduce_sum,
    relu,
)
from .infrastructure.tensor import Context, Tensor
from .infrastructure.values import Batch, Matrix, Value, Vector, as_value

__all__ = [
    "AddFn",
    "AddSaved",
    "Batch",
    "Context",
    "ContextError",
    "ContextMismatchError",
    "ContextUnderflowError",
    "DotFn",
    "DotSaved",
    "Function",
    "LogSoftmaxFn",
    "LogSoftmaxSaved",
    "Matrix",
    "MulFn",
    "MulSaved",
    "ReLUFn",
    "ReLUSaved",
    "ShapeClass",
    "ShapeMismatchError",
    "SumFn",
    "SumSaved",
    "Tensor",
    "UnsupportedShapeError",
    "Value",
    "Vector",
    "add",
    "as_value",
    "dot",
    "get_default_dtype",
    "log_softmax",
    "mul",
    "reduce_sum",
    "relu",
    "set_default_dtype",
]
