from ._tensor_context import Context
from ._tensor import Tensor

__all__ = [Context.__name__, Tensor.__name__]
